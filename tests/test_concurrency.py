"""
Tests for concurrent bookings of the same or overlapping slots.
"""

import threading
import time

from models.errors import ConflictError
from models.reservation_store import ReservationStore


class SlowCheckStore(ReservationStore):
    """Pauses after reading the day's bookings so competing requests interleave."""

    def find_active_on_date(self, reservation_date):
        reservations = super().find_active_on_date(reservation_date)
        time.sleep(0.3)
        return reservations


def _book_in_thread(app, clock, payload, barrier, outcomes, store_class=ReservationStore):
    from models.customer import CustomerStore
    from models.pricing import CatalogPricing
    from models.reservation import ReservationManager
    from models.service import ServiceCatalog

    with app.app_context():
        manager = ReservationManager(
            store=store_class(),
            customers=CustomerStore(),
            pricing=CatalogPricing(),
            services=ServiceCatalog(),
            clock=clock,
            settings=app.config
        )
        barrier.wait()
        try:
            booking = manager.create(payload)
            outcomes.append(('ok', booking['id']))
        except ConflictError:
            outcomes.append(('conflict', None))


def _race(app, clock, payloads, store_class=ReservationStore):
    outcomes = []
    barrier = threading.Barrier(len(payloads))
    threads = [
        threading.Thread(
            target=_book_in_thread,
            args=(app, clock, payload, barrier, outcomes, store_class)
        )
        for payload in payloads
    ]

    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    return outcomes


class TestConcurrentBooking:

    def test_identical_slot_has_one_winner(self, app, clock, booking_payload):
        """Two requests for the same start time: one books, one conflicts."""
        outcomes = _race(app, clock, [
            booking_payload(customer_email=email)
            for email in ('first@example.com', 'second@example.com')
        ])

        kinds = sorted(kind for kind, _ in outcomes)
        assert kinds == ['conflict', 'ok']

    def test_many_concurrent_attempts_book_once(self, app, clock, booking_payload):
        """Five racers for one slot produce exactly one booking."""
        attempts = 5
        outcomes = _race(app, clock, [
            booking_payload(customer_email=f'racer{n}@example.com')
            for n in range(attempts)
        ])

        assert len(outcomes) == attempts
        assert sum(1 for kind, _ in outcomes if kind == 'ok') == 1

    def test_overlapping_starts_have_one_winner(self, app, clock, booking_payload):
        """Overlapping bookings with different start times cannot both be stored."""
        # Full Detail runs 180 minutes, so 10:00 and 10:30 intersect
        outcomes = _race(app, clock, [
            booking_payload(service_type='Full Detail', time='10:00',
                            customer_email='first@example.com'),
            booking_payload(service_type='Full Detail', time='10:30',
                            customer_email='second@example.com'),
        ], store_class=SlowCheckStore)

        kinds = sorted(kind for kind, _ in outcomes)
        assert kinds == ['conflict', 'ok']

    def test_overlap_loser_leaves_no_customer(self, app, clock, booking_payload):
        """The rejected racer leaves no customer row behind."""
        from database import get_db

        _race(app, clock, [
            booking_payload(service_type='Full Detail', time='10:00',
                            customer_email='first@example.com'),
            booking_payload(service_type='Full Detail', time='11:00',
                            customer_email='second@example.com'),
        ], store_class=SlowCheckStore)

        db = get_db()
        assert db.execute('SELECT COUNT(*) FROM reservations').fetchone()[0] == 1
        assert db.execute('SELECT COUNT(*) FROM customers').fetchone()[0] == 1
