"""
Pytest configuration and fixtures.
Each test gets its own SQLite file so tests never share bookings.
"""

import os
import pytest
from datetime import datetime
from zoneinfo import ZoneInfo

os.environ['FLASK_ENV'] = 'test'

STAFF_USERNAME = 'staff'
STAFF_PASSWORD = 'staff-password-123'

# Tuesday 10 March 2026, 09:00 UTC
FIXED_NOW = datetime(2026, 3, 10, 9, 0, tzinfo=ZoneInfo('UTC'))


@pytest.fixture
def app(tmp_path):
    """Create test application with an isolated database file."""
    from app import create_app
    from database import init_db

    app = create_app('test', overrides={
        'DATABASE_PATH': str(tmp_path / 'autoglow_test.db'),
        'WTF_CSRF_ENABLED': False,
    })

    with app.app_context():
        init_db()
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def staff_user(app):
    """A staff account to sign in with."""
    from models.user import create_user, get_user_by_id

    user_id = create_user(STAFF_USERNAME, 'staff@autoglow.test', STAFF_PASSWORD, 'Sam Staff')
    return get_user_by_id(user_id)


@pytest.fixture
def authenticated_client(client, staff_user):
    """Test client with a signed-in staff session."""
    response = client.post('/auth/login', json={
        'username': STAFF_USERNAME,
        'password': STAFF_PASSWORD
    })
    assert response.status_code == 200
    return client


@pytest.fixture
def clock():
    from utils.datetime_helpers import FixedClock
    return FixedClock(FIXED_NOW)


@pytest.fixture
def manager(app, clock):
    """Reservation manager on the test database with a frozen clock."""
    from models.customer import CustomerStore
    from models.pricing import CatalogPricing
    from models.reservation import ReservationManager
    from models.reservation_store import ReservationStore
    from models.service import ServiceCatalog

    return ReservationManager(
        store=ReservationStore(),
        customers=CustomerStore(),
        pricing=CatalogPricing(),
        services=ServiceCatalog(),
        clock=clock,
        settings=app.config
    )


@pytest.fixture
def booking_payload():
    """Factory for valid booking requests; keyword arguments override fields."""

    def make(**overrides):
        payload = {
            'customer_name': 'Dana Reyes',
            'customer_email': 'dana@example.com',
            'phone': '+63 917 555 0101',
            'date': '2026-03-12',
            'time': '10:00',
            'service_type': 'Express Wash',
            'vehicle_type': 'sedan',
            'vehicle_year': 2019,
            'vehicle_make': 'Toyota',
            'vehicle_model': 'Corolla',
            'payment_method': 'card',
        }
        payload.update(overrides)
        return payload

    return make
