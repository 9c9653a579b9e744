"""
Database schema definitions.
Table creation, indexes, and structure management.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'reservation_status_history',
        'reservations',
        'customers',
        'service_extras',
        'vehicle_types',
        'services',
        'users'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Staff users
    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            active INTEGER DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            last_login TEXT
        )
    ''')

    # 2. Service catalog
    db.execute('''
        CREATE TABLE services (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            description TEXT,
            duration_minutes INTEGER NOT NULL CHECK(duration_minutes > 0),
            base_price REAL NOT NULL CHECK(base_price >= 0),
            active INTEGER DEFAULT 1,
            display_order INTEGER DEFAULT 0
        )
    ''')

    db.execute('''
        CREATE TABLE vehicle_types (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            code TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            price_multiplier REAL NOT NULL DEFAULT 1.0 CHECK(price_multiplier >= 0)
        )
    ''')

    db.execute('''
        CREATE TABLE service_extras (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            code TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            price REAL NOT NULL CHECK(price >= 0),
            active INTEGER DEFAULT 1
        )
    ''')

    # 3. Customers
    db.execute('''
        CREATE TABLE customers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT UNIQUE NOT NULL COLLATE NOCASE,
            phone TEXT DEFAULT '',
            loyalty_points INTEGER NOT NULL DEFAULT 0,
            total_spent REAL NOT NULL DEFAULT 0,
            created_at TEXT,
            updated_at TEXT
        )
    ''')

    # 4. Reservations
    db.execute('''
        CREATE TABLE reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reference_number TEXT UNIQUE NOT NULL,
            customer_id INTEGER NOT NULL REFERENCES customers(id),
            reservation_date TEXT NOT NULL,
            reservation_time TEXT NOT NULL,
            scheduled_at TEXT NOT NULL,
            service_type TEXT NOT NULL,
            duration_minutes INTEGER NOT NULL,
            vehicle_type TEXT NOT NULL,
            vehicle_year INTEGER,
            vehicle_make TEXT,
            vehicle_model TEXT,
            condition TEXT,
            extras TEXT NOT NULL DEFAULT '[]',
            appointment_type TEXT NOT NULL DEFAULT 'studio',
            total_price REAL NOT NULL CHECK(total_price >= 0),
            status TEXT NOT NULL DEFAULT 'pending',
            payment_method TEXT NOT NULL,
            payment_status TEXT NOT NULL DEFAULT 'pending',
            transaction_id TEXT,
            refund_amount REAL,
            refund_status TEXT,
            loyalty_credited INTEGER NOT NULL DEFAULT 0,
            notes TEXT,
            created_by TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    ''')

    db.execute('''
        CREATE TABLE reservation_status_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER NOT NULL REFERENCES reservations(id) ON DELETE CASCADE,
            old_status TEXT,
            new_status TEXT NOT NULL,
            changed_by TEXT,
            notes TEXT,
            created_at TEXT
        )
    ''')


def create_indexes(db):
    """Create performance and integrity indexes."""

    # Customer indexes
    db.execute('CREATE INDEX idx_customers_name ON customers(name)')

    # Reservation indexes
    db.execute('CREATE INDEX idx_reservations_date ON reservations(reservation_date)')
    db.execute('CREATE INDEX idx_reservations_customer ON reservations(customer_id)')
    db.execute('CREATE INDEX idx_reservations_status ON reservations(status)')
    db.execute('CREATE INDEX idx_reservations_created ON reservations(created_at)')

    # Last-resort double-booking guard: one active reservation per start time.
    # Cancelled and completed rows drop out of the index and free the slot.
    db.execute('''
        CREATE UNIQUE INDEX idx_reservations_active_slot
        ON reservations(reservation_date, reservation_time)
        WHERE status IN ('pending', 'confirmed')
    ''')

    # Status history indexes
    db.execute('CREATE INDEX idx_status_history_reservation ON reservation_status_history(reservation_id)')
