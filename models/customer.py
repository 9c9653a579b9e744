"""
Customer data access.
Customers are looked up by email when booking and accumulate loyalty
points and lifetime spend when their reservations complete.
"""

import sqlite3

from database import get_db


class CustomerStore:
    """Customer records in SQLite."""

    def __init__(self, db_factory=None):
        self._db_factory = db_factory or get_db

    @property
    def db(self):
        return self._db_factory()

    # =========================================================================
    # READ
    # =========================================================================

    def find_by_id(self, customer_id: int) -> dict:
        """
        Get customer by ID.

        Args:
            customer_id: Customer ID

        Returns:
            Customer dict or None if not found
        """
        row = self.db.execute('SELECT * FROM customers WHERE id = ?', (customer_id,)).fetchone()
        return dict(row) if row else None

    def find_by_email(self, email: str) -> dict:
        """
        Get customer by email (case-insensitive).

        Args:
            email: Email address

        Returns:
            Customer dict or None if not found
        """
        row = self.db.execute(
            'SELECT * FROM customers WHERE email = ?', (email.strip(),)
        ).fetchone()
        return dict(row) if row else None

    # =========================================================================
    # WRITE
    # =========================================================================

    def create(self, name: str, email: str, phone: str = '', created_at: str = None,
               commit: bool = True) -> dict:
        """
        Create a customer, committing unless the caller owns the transaction.

        Returns:
            dict: The new customer

        Raises:
            sqlite3.IntegrityError: If the email is already registered
        """
        db = self.db
        try:
            cursor = db.execute('''
                INSERT INTO customers (name, email, phone, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
            ''', (name.strip(), email.strip(), phone or '', created_at, created_at))
            if commit:
                db.commit()
        except Exception:
            if commit:
                db.rollback()
            raise
        return self.find_by_id(cursor.lastrowid)

    def find_or_create(self, name: str, email: str, phone: str = '', created_at: str = None,
                       commit: bool = True) -> dict:
        """
        Resolve a customer by email, creating one if needed.

        A concurrent request may register the same email between the lookup
        and the insert; the loser re-reads the winner's row.

        Returns:
            dict: Existing or new customer
        """
        customer = self.find_by_email(email)
        if customer:
            return customer

        try:
            return self.create(name, email, phone, created_at, commit=commit)
        except sqlite3.IntegrityError:
            customer = self.find_by_email(email)
            if customer is None:
                raise
            return customer

    def increment_loyalty(self, customer_id: int, points: int, updated_at: str = None) -> bool:
        """Add loyalty points (no commit)."""
        cursor = self.db.execute('''
            UPDATE customers
            SET loyalty_points = loyalty_points + ?, updated_at = ?
            WHERE id = ?
        ''', (points, updated_at, customer_id))
        return cursor.rowcount > 0

    def increment_spend(self, customer_id: int, amount: float, updated_at: str = None) -> bool:
        """Add to lifetime spend (no commit)."""
        cursor = self.db.execute('''
            UPDATE customers
            SET total_spent = total_spent + ?, updated_at = ?
            WHERE id = ?
        ''', (amount, updated_at, customer_id))
        return cursor.rowcount > 0
