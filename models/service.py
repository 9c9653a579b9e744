"""
Service catalog queries.
Services define how long a booking occupies the calendar and its base price.
"""

from database import get_db


class ServiceCatalog:
    """Services, vehicle types and extras stored in SQLite."""

    def __init__(self, db_factory=None):
        self._db_factory = db_factory or get_db

    @property
    def db(self):
        return self._db_factory()

    def get_service(self, name: str) -> dict:
        """
        Get an active service by name.

        Args:
            name: Service name as shown to customers

        Returns:
            Service dict or None if unknown/inactive
        """
        if not name:
            return None
        row = self.db.execute(
            'SELECT * FROM services WHERE name = ? AND active = 1', (name.strip(),)
        ).fetchone()
        return dict(row) if row else None

    def get_all_services(self, active_only: bool = True) -> list:
        """All services ordered for display."""
        query = 'SELECT * FROM services'
        if active_only:
            query += ' WHERE active = 1'
        query += ' ORDER BY display_order, name'
        return [dict(row) for row in self.db.execute(query).fetchall()]

    def get_vehicle_type(self, code: str) -> dict:
        """Vehicle type by code, or None."""
        if not code:
            return None
        row = self.db.execute(
            'SELECT * FROM vehicle_types WHERE code = ?', (code.strip().lower(),)
        ).fetchone()
        return dict(row) if row else None

    def get_all_vehicle_types(self) -> list:
        return [dict(row) for row in self.db.execute(
            'SELECT * FROM vehicle_types ORDER BY code'
        ).fetchall()]

    def get_extras(self, codes: list) -> list:
        """
        Active extras for the given codes.

        Returns:
            list of extra dicts (unknown codes are omitted)
        """
        if not codes:
            return []
        placeholders = ','.join('?' * len(codes))
        cursor = self.db.execute(
            f'SELECT * FROM service_extras WHERE active = 1 AND code IN ({placeholders}) ORDER BY code',
            list(codes)
        )
        return [dict(row) for row in cursor.fetchall()]

    def get_all_extras(self) -> list:
        return [dict(row) for row in self.db.execute(
            'SELECT * FROM service_extras WHERE active = 1 ORDER BY code'
        ).fetchall()]
