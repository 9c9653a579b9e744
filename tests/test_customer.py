"""
Tests for customer records and catalog pricing.
"""

import pytest

from models.customer import CustomerStore
from models.errors import ValidationError
from models.pricing import CatalogPricing


class TestCustomerStore:

    def test_find_or_create_creates_once(self, app):
        """Lookup by email reuses the first customer."""
        store = CustomerStore()

        first = store.find_or_create('Dana Reyes', 'dana@example.com', '5550100', '2026-03-10T09:00:00')
        second = store.find_or_create('Dana R.', 'Dana@Example.com')

        assert first['id'] == second['id']
        assert second['name'] == 'Dana Reyes'
        assert first['loyalty_points'] == 0

    def test_counters_commit_with_caller(self, app):
        """Loyalty and spend increments roll back with the caller."""
        from database import get_db

        store = CustomerStore()
        customer = store.create('Lee Park', 'lee@example.com')

        store.increment_loyalty(customer['id'], 7, updated_at='2026-03-10T10:00:00')
        store.increment_spend(customer['id'], 725.5, updated_at='2026-03-10T10:00:00')
        get_db().rollback()

        reloaded = store.find_by_id(customer['id'])
        assert reloaded['loyalty_points'] == 0
        assert reloaded['total_spent'] == 0

    def test_counters_accumulate(self, app):
        """Loyalty and spend increments add up."""
        from database import get_db

        store = CustomerStore()
        customer = store.create('Lee Park', 'lee@example.com')

        store.increment_loyalty(customer['id'], 7)
        store.increment_loyalty(customer['id'], 3)
        store.increment_spend(customer['id'], 725.5)
        get_db().commit()

        reloaded = store.find_by_id(customer['id'])
        assert reloaded['loyalty_points'] == 10
        assert reloaded['total_spent'] == 725.5

    def test_unknown_customer(self, app):
        """Unknown customer IDs return None or False."""
        assert CustomerStore().find_by_id(404) is None
        assert CustomerStore().increment_loyalty(404, 5) is False


class TestCatalogPricing:

    def test_base_price(self, app):
        """Sedan pays the service base price."""
        assert CatalogPricing().price('Full Detail', 'sedan') == 2500.0

    def test_vehicle_multiplier_and_extras(self, app):
        """Vehicle multiplier applies before extras are added."""
        # 3000 x 1.3 + 350 + 300
        assert CatalogPricing().price('Paint Correction', 'truck', ['wax', 'engine_bay']) == 4550.0

    def test_condition_surcharge(self, app):
        """Condition surcharge applies only to known conditions."""
        assert CatalogPricing().price('Express Wash', 'sedan', condition='fair') == 385.0
        assert CatalogPricing().price('Express Wash', 'sedan', condition='Excellent') == 350.0
        assert CatalogPricing().price('Express Wash', 'sedan', condition='muddy') == 350.0

    def test_unknown_service(self, app):
        """Unknown service raises ValidationError."""
        with pytest.raises(ValidationError):
            CatalogPricing().price('Moon Polish', 'sedan')
