"""
Tests for booking statistics.
"""

import pytest

from models.insights import get_booking_stats
from models.reservation_store import ReservationStore


@pytest.fixture
def populated(manager, booking_payload):
    """
    Five bookings around the frozen today (2026-03-10):

    - Dana: 03-08 Express Wash (paid, completed), 03-10 Full Detail suv (paid)
    - Lee: 03-10 Express Wash (cancelled), 03-12 Interior Detail van
    - Kim: 03-20 Express Wash, outside the trend window
    """
    dana = dict(customer_name='Dana Reyes', customer_email='dana@example.com')
    lee = dict(customer_name='Lee Park', customer_email='lee@example.com')
    kim = dict(customer_name='Kim Cruz', customer_email='kim@example.com')

    b1 = manager.create(booking_payload(date='2026-03-08', time='09:00', **dana))
    manager.update_payment_status(b1['id'], 'paid')
    manager.update_status(b1['id'], 'completed')

    b2 = manager.create(booking_payload(date='2026-03-10', time='13:00',
                                        service_type='Full Detail', vehicle_type='suv', **dana))
    manager.update_payment_status(b2['id'], 'paid')

    b3 = manager.create(booking_payload(date='2026-03-10', time='09:00', **lee))
    manager.cancel(b3['id'], reason='Duplicate')

    b4 = manager.create(booking_payload(date='2026-03-12', time='10:00',
                                        service_type='Interior Detail', vehicle_type='van', **lee))

    b5 = manager.create(booking_payload(date='2026-03-20', time='10:00', **kim))

    return [b1, b2, b3, b4, b5]


class TestBookingStats:

    def test_empty_store(self, app, clock):
        """No bookings gives zeros and empty lists."""
        stats = get_booking_stats(ReservationStore(), clock)

        assert stats['summary'] == {
            'total': 0, 'today': 0, 'total_revenue': 0.0, 'average_revenue': 0.0
        }
        assert stats['by_status'] == {
            'pending': 0, 'confirmed': 0, 'completed': 0, 'cancelled': 0
        }
        assert stats['by_service'] == []
        assert stats['by_vehicle_type'] == []
        assert [d['count'] for d in stats['daily_trends']] == [0] * 7
        assert stats['top_customers'] == []
        assert stats['recent_bookings'] == []

    def test_summary(self, manager, populated):
        """Summary counts bookings and revenue from paid ones only."""
        summary = manager.stats()['summary']

        assert summary['total'] == 5
        assert summary['today'] == 2
        # Paid: 350 + 2500 x 1.2
        assert summary['total_revenue'] == 3350.0
        assert summary['average_revenue'] == 1675.0

    def test_breakdowns(self, manager, populated):
        """Status, service and vehicle breakdowns."""
        stats = manager.stats()

        assert stats['by_status'] == {
            'pending': 2, 'confirmed': 1, 'completed': 1, 'cancelled': 1
        }
        assert stats['by_service'] == [
            {'service_type': 'Express Wash', 'count': 3},
            {'service_type': 'Full Detail', 'count': 1},
            {'service_type': 'Interior Detail', 'count': 1},
        ]
        assert stats['by_vehicle_type'] == [
            {'vehicle_type': 'sedan', 'count': 3},
            {'vehicle_type': 'suv', 'count': 1},
            {'vehicle_type': 'van', 'count': 1},
        ]

    def test_daily_trends_cover_last_seven_days(self, manager, populated):
        """Trends list each of the last seven days."""
        trends = manager.stats()['daily_trends']

        assert [d['date'] for d in trends] == [
            '2026-03-04', '2026-03-05', '2026-03-06', '2026-03-07',
            '2026-03-08', '2026-03-09', '2026-03-10'
        ]
        assert [d['count'] for d in trends] == [0, 0, 0, 0, 1, 0, 2]

    def test_daily_trends_respect_range(self, manager, populated):
        """Trends are limited to the requested range."""
        trends = manager.stats(start_date='2026-03-09')['daily_trends']
        assert trends == [
            {'date': '2026-03-09', 'count': 0},
            {'date': '2026-03-10', 'count': 2},
        ]

    def test_top_customers(self, manager, populated):
        """Top customers are ranked by booking count."""
        top = manager.stats()['top_customers']

        assert [c['name'] for c in top] == ['Dana Reyes', 'Lee Park', 'Kim Cruz']
        assert top[0]['booking_count'] == 2
        assert top[0]['total_spent'] == 3350.0

    def test_recent_bookings(self, manager, populated):
        """Recent bookings are newest first."""
        recent = manager.stats()['recent_bookings']
        assert [b['id'] for b in recent] == [b['id'] for b in reversed(populated)]

    def test_date_range_filter(self, manager, populated):
        """Every section honours the date range."""
        stats = manager.stats(start_date='2026-03-10', end_date='2026-03-12')

        assert stats['summary']['total'] == 3
        assert stats['summary']['total_revenue'] == 3000.0
        assert [c['name'] for c in stats['top_customers']] == ['Lee Park', 'Dana Reyes']

    def test_repeated_calls_are_identical(self, manager, populated):
        """Stats are deterministic for an unchanged store."""
        assert manager.stats() == manager.stats()
