"""
Staff user model and data access functions.
Staff accounts sign in to manage bookings; customers never log in.
"""

from werkzeug.security import generate_password_hash, check_password_hash

from database import get_db


class User:
    """
    Staff user for Flask-Login.
    Wraps a users row with the properties Flask-Login expects.
    """

    def __init__(self, user_dict):
        self.id = user_dict['id']
        self.username = user_dict['username']
        self.email = user_dict['email']
        self.full_name = user_dict['full_name']
        self.active = user_dict['active']
        self.created_at = user_dict['created_at']
        self.last_login = user_dict.get('last_login')

    @property
    def is_authenticated(self):
        return True

    @property
    def is_active(self):
        return self.active == 1

    @property
    def is_anonymous(self):
        return False

    def get_id(self):
        """Required by Flask-Login. Returns user ID as string."""
        return str(self.id)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'full_name': self.full_name,
            'last_login': self.last_login,
        }


def get_user_by_id(user_id: int) -> dict:
    """
    Get user by ID.

    Args:
        user_id: User ID

    Returns:
        User dict or None if not found
    """
    row = get_db().execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()
    return dict(row) if row else None


def get_user_by_username(username: str) -> dict:
    """
    Get user by username.

    Args:
        username: Username to search for

    Returns:
        User dict or None if not found
    """
    row = get_db().execute('SELECT * FROM users WHERE username = ?', (username,)).fetchone()
    return dict(row) if row else None


def create_user(username: str, email: str, password: str, full_name: str = None) -> int:
    """
    Create new user with hashed password.

    Returns:
        New user ID

    Raises:
        sqlite3.IntegrityError if username or email already exists
    """
    db = get_db()
    cursor = db.execute('''
        INSERT INTO users (username, email, password_hash, full_name)
        VALUES (?, ?, ?, ?)
    ''', (username, email, generate_password_hash(password), full_name))
    db.commit()
    return cursor.lastrowid


def update_last_login(user_id: int, timestamp: str) -> None:
    db = get_db()
    db.execute('UPDATE users SET last_login = ? WHERE id = ?', (timestamp, user_id))
    db.commit()


def check_password(user_dict: dict, password: str) -> bool:
    """Verify password against stored hash."""
    return check_password_hash(user_dict['password_hash'], password)
