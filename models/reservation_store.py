"""
Reservation persistence.
SQLite-backed store for reservation records, status history and the
aggregate queries used by statistics.

Write methods other than create() do not commit; group them with
ReservationStore.transaction(). Stores built on the same connection
factory share the connection, so customer counter updates made inside
the block commit or roll back together with the reservation changes.
"""

import json
import sqlite3
from contextlib import contextmanager

from database import get_db
from models.errors import ConflictError, DuplicateReferenceError
from models.reservation_state import OCCUPYING_STATUSES


RESERVATION_COLUMNS = (
    'reference_number', 'customer_id', 'reservation_date', 'reservation_time',
    'scheduled_at', 'service_type', 'duration_minutes', 'vehicle_type',
    'vehicle_year', 'vehicle_make', 'vehicle_model', 'condition', 'extras',
    'appointment_type', 'total_price', 'status', 'payment_method',
    'payment_status', 'transaction_id', 'refund_amount', 'refund_status',
    'loyalty_credited', 'notes', 'created_by', 'created_at', 'updated_at'
)

UPDATABLE_FIELDS = (
    'status', 'payment_status', 'payment_method', 'transaction_id',
    'refund_amount', 'refund_status', 'loyalty_credited', 'notes',
    'total_price', 'updated_at'
)

GROUPABLE_DIMENSIONS = (
    'status', 'payment_status', 'service_type', 'vehicle_type',
    'reservation_date', 'appointment_type', 'customer_id'
)

AGGREGATABLE_FIELDS = ('total_price', 'refund_amount', 'duration_minutes')

BASE_SELECT = '''
    SELECT r.*,
           c.name AS customer_name,
           c.email AS customer_email,
           c.phone AS customer_phone
    FROM reservations r
    JOIN customers c ON r.customer_id = c.id
'''


def _row_to_reservation(row) -> dict:
    """Convert a joined row into a reservation dict with nested customer."""
    if row is None:
        return None

    reservation = dict(row)

    try:
        reservation['extras'] = json.loads(reservation.get('extras') or '[]')
    except (TypeError, ValueError):
        reservation['extras'] = []

    reservation['loyalty_credited'] = bool(reservation.get('loyalty_credited'))

    if 'customer_name' in reservation:
        reservation['customer'] = {
            'id': reservation['customer_id'],
            'name': reservation.pop('customer_name'),
            'email': reservation.pop('customer_email'),
            'phone': reservation.pop('customer_phone'),
        }

    return reservation


def _escape_like(text: str) -> str:
    return text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def build_filters(filters: dict = None) -> tuple:
    """
    Build a WHERE clause from reservation filters.

    Supported keys: start_date, end_date, date, status, statuses,
    payment_status, service_type, customer_id, customer_email.

    Returns:
        tuple: (where_sql, params) where where_sql starts with ' WHERE 1=1'
    """
    filters = filters or {}
    clause = ' WHERE 1=1'
    params = []

    if filters.get('start_date'):
        clause += ' AND r.reservation_date >= ?'
        params.append(filters['start_date'])

    if filters.get('end_date'):
        clause += ' AND r.reservation_date <= ?'
        params.append(filters['end_date'])

    if filters.get('date'):
        clause += ' AND r.reservation_date = ?'
        params.append(filters['date'])

    if filters.get('status'):
        clause += ' AND r.status = ?'
        params.append(filters['status'])

    if filters.get('statuses'):
        placeholders = ','.join('?' * len(filters['statuses']))
        clause += f' AND r.status IN ({placeholders})'
        params.extend(filters['statuses'])

    if filters.get('payment_status'):
        clause += ' AND r.payment_status = ?'
        params.append(filters['payment_status'])

    if filters.get('service_type'):
        clause += ' AND r.service_type = ?'
        params.append(filters['service_type'])

    if filters.get('customer_id'):
        clause += ' AND r.customer_id = ?'
        params.append(filters['customer_id'])

    if filters.get('customer_email'):
        clause += ' AND c.email = ?'
        params.append(filters['customer_email'])

    return clause, params


class ReservationStore:
    """Reservation records in SQLite."""

    def __init__(self, db_factory=None):
        """
        Args:
            db_factory: Callable returning an open sqlite3.Connection with
                sqlite3.Row as row factory (default: database.get_db)
        """
        self._db_factory = db_factory or get_db

    @property
    def db(self):
        return self._db_factory()

    @contextmanager
    def transaction(self):
        """Commit on success, roll back and re-raise on any error."""
        db = self.db
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

    @contextmanager
    def immediate_transaction(self):
        """
        Take the database write lock before the block runs.

        Other writers wait on BEGIN IMMEDIATE until this block commits or
        rolls back, so a slot check and the insert that follows it see the
        same reservations.
        """
        db = self.db
        db.execute('BEGIN IMMEDIATE')
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

    # =========================================================================
    # CREATE
    # =========================================================================

    def create(self, record: dict, changed_by: str = None, commit: bool = True) -> int:
        """
        Insert a reservation and its initial history entry atomically.

        Args:
            record: Column values (see RESERVATION_COLUMNS); extras as a list
            changed_by: Username or 'public' for history
            commit: False when the caller owns the transaction

        Returns:
            int: New reservation ID

        Raises:
            ConflictError: An active reservation already holds this start time
            DuplicateReferenceError: The reference number is taken
        """
        values = dict(record)
        values['extras'] = json.dumps(values.get('extras') or [])
        values['loyalty_credited'] = int(bool(values.get('loyalty_credited')))

        columns = [c for c in RESERVATION_COLUMNS if c in values]
        placeholders = ', '.join('?' * len(columns))

        db = self.db
        try:
            cursor = db.execute(
                f'INSERT INTO reservations ({", ".join(columns)}) VALUES ({placeholders})',
                [values[c] for c in columns]
            )
            reservation_id = cursor.lastrowid

            db.execute('''
                INSERT INTO reservation_status_history
                (reservation_id, old_status, new_status, changed_by, notes, created_at)
                VALUES (?, NULL, ?, ?, 'Reservation created', ?)
            ''', (reservation_id, values.get('status'), changed_by, values.get('created_at')))

            if commit:
                db.commit()

        except sqlite3.IntegrityError as e:
            if commit:
                db.rollback()
            message = str(e)
            if 'reference_number' in message:
                raise DuplicateReferenceError(values.get('reference_number')) from e
            if 'reservation_date' in message or 'reservation_time' in message:
                raise ConflictError(
                    reservation_date=values.get('reservation_date'),
                    reservation_time=values.get('reservation_time')
                ) from e
            raise

        except Exception:
            if commit:
                db.rollback()
            raise

        return reservation_id

    # =========================================================================
    # READ
    # =========================================================================

    def find_by_id(self, reservation_id: int) -> dict:
        """Reservation with nested customer, or None."""
        cursor = self.db.execute(BASE_SELECT + ' WHERE r.id = ?', (reservation_id,))
        return _row_to_reservation(cursor.fetchone())

    def find_by_reference(self, reference_number: str) -> dict:
        """Reservation by reference number, or None."""
        cursor = self.db.execute(
            BASE_SELECT + ' WHERE r.reference_number = ?', (reference_number,)
        )
        return _row_to_reservation(cursor.fetchone())

    def find_active_on_date(self, reservation_date: str) -> list:
        """Reservations that occupy time on a date (pending or confirmed)."""
        return self.find_by_date_range({
            'date': reservation_date,
            'statuses': list(OCCUPYING_STATUSES)
        })

    def find_by_date_range(self, filters: dict = None) -> list:
        """
        All reservations matching filters, ordered by date and time.

        Args:
            filters: See build_filters()

        Returns:
            list of reservation dicts
        """
        where, params = build_filters(filters)
        cursor = self.db.execute(
            BASE_SELECT + where + ' ORDER BY r.reservation_date, r.reservation_time, r.id',
            params
        )
        return [_row_to_reservation(row) for row in cursor.fetchall()]

    def paginate(self, filters: dict, page: int, limit: int) -> tuple:
        """
        One page of reservations, newest first.

        Returns:
            tuple: (list of reservation dicts, total matching count)
        """
        where, params = build_filters(filters)
        db = self.db

        total = db.execute(
            'SELECT COUNT(*) FROM reservations r JOIN customers c ON r.customer_id = c.id' + where,
            params
        ).fetchone()[0]

        cursor = db.execute(
            BASE_SELECT + where + ' ORDER BY r.created_at DESC, r.id DESC LIMIT ? OFFSET ?',
            params + [limit, (page - 1) * limit]
        )
        return [_row_to_reservation(row) for row in cursor.fetchall()], total

    def search(self, query: str = None, filters: dict = None, limit: int = 50) -> list:
        """
        Substring search over reference, service, vehicle model and customer.

        Args:
            query: Case-insensitive text to look for (optional)
            filters: See build_filters()
            limit: Maximum results

        Returns:
            list of reservation dicts, newest first
        """
        where, params = build_filters(filters)

        if query:
            pattern = f'%{_escape_like(query)}%'
            where += '''
                AND (r.reference_number LIKE ? ESCAPE '\\'
                     OR r.service_type LIKE ? ESCAPE '\\'
                     OR r.vehicle_model LIKE ? ESCAPE '\\'
                     OR c.name LIKE ? ESCAPE '\\'
                     OR c.email LIKE ? ESCAPE '\\')
            '''
            params.extend([pattern] * 5)

        cursor = self.db.execute(
            BASE_SELECT + where + ' ORDER BY r.created_at DESC, r.id DESC LIMIT ?',
            params + [limit]
        )
        return [_row_to_reservation(row) for row in cursor.fetchall()]

    # =========================================================================
    # UPDATE
    # =========================================================================

    def update(self, reservation_id: int, fields: dict) -> bool:
        """
        Update whitelisted reservation fields (no commit).

        Returns:
            bool: True if a row was updated
        """
        updates = []
        values = []

        for field in UPDATABLE_FIELDS:
            if field in fields:
                updates.append(f'{field} = ?')
                value = fields[field]
                if field == 'loyalty_credited':
                    value = int(bool(value))
                values.append(value)

        if not updates:
            return False

        values.append(reservation_id)
        cursor = self.db.execute(
            f'UPDATE reservations SET {", ".join(updates)} WHERE id = ?', values
        )
        return cursor.rowcount > 0

    # =========================================================================
    # STATUS HISTORY
    # =========================================================================

    def add_history(self, reservation_id: int, old_status: str, new_status: str,
                    changed_by: str = None, notes: str = None, created_at: str = None):
        """Append a status history entry (no commit)."""
        self.db.execute('''
            INSERT INTO reservation_status_history
            (reservation_id, old_status, new_status, changed_by, notes, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', (reservation_id, old_status, new_status, changed_by, notes, created_at))

    def get_history(self, reservation_id: int) -> list:
        """Status history for a reservation, oldest first."""
        cursor = self.db.execute('''
            SELECT old_status, new_status, changed_by, notes, created_at
            FROM reservation_status_history
            WHERE reservation_id = ?
            ORDER BY id
        ''', (reservation_id,))
        return [dict(row) for row in cursor.fetchall()]

    # =========================================================================
    # AGGREGATES
    # =========================================================================

    def count(self, filters: dict = None) -> int:
        where, params = build_filters(filters)
        return self.db.execute(
            'SELECT COUNT(*) FROM reservations r JOIN customers c ON r.customer_id = c.id' + where,
            params
        ).fetchone()[0]

    def count_by_group(self, dimension: str, filters: dict = None) -> list:
        """
        Count reservations grouped by a column.

        Returns:
            list of (value, count) tuples ordered by value
        """
        if dimension not in GROUPABLE_DIMENSIONS:
            raise ValueError(f'Cannot group reservations by {dimension}')

        where, params = build_filters(filters)
        cursor = self.db.execute(f'''
            SELECT r.{dimension} AS value, COUNT(r.id) AS count
            FROM reservations r
            JOIN customers c ON r.customer_id = c.id
            {where}
            GROUP BY r.{dimension}
            ORDER BY r.{dimension}
        ''', params)
        return [(row['value'], row['count']) for row in cursor.fetchall()]

    def _aggregate(self, function: str, field: str, filters: dict = None):
        if field not in AGGREGATABLE_FIELDS:
            raise ValueError(f'Cannot aggregate reservations by {field}')

        where, params = build_filters(filters)
        return self.db.execute(
            f'SELECT {function}(r.{field}) FROM reservations r '
            f'JOIN customers c ON r.customer_id = c.id' + where,
            params
        ).fetchone()[0]

    def sum(self, field: str, filters: dict = None) -> float:
        """Sum of a numeric field (0 when nothing matches)."""
        return float(self._aggregate('SUM', field, filters) or 0)

    def avg(self, field: str, filters: dict = None) -> float:
        """Average of a numeric field (0 when nothing matches)."""
        return float(self._aggregate('AVG', field, filters) or 0)

    def top_customers(self, filters: dict = None, limit: int = 5) -> list:
        """
        Customers with the most reservations.

        Returns:
            list of dicts: customer_id, name, email, booking_count, total_spent
        """
        where, params = build_filters(filters)
        cursor = self.db.execute(f'''
            SELECT c.id AS customer_id, c.name, c.email,
                   COUNT(r.id) AS booking_count,
                   COALESCE(SUM(r.total_price), 0) AS total_spent
            FROM reservations r
            JOIN customers c ON r.customer_id = c.id
            {where}
            GROUP BY c.id
            ORDER BY booking_count DESC, c.id ASC
            LIMIT ?
        ''', params + [limit])
        return [dict(row) for row in cursor.fetchall()]

    def recent(self, filters: dict = None, limit: int = 10) -> list:
        """Most recently created reservations."""
        where, params = build_filters(filters)
        cursor = self.db.execute(
            BASE_SELECT + where + ' ORDER BY r.created_at DESC, r.id DESC LIMIT ?',
            params + [limit]
        )
        return [_row_to_reservation(row) for row in cursor.fetchall()]
