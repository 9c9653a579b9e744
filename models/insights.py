"""
Booking statistics.
Read-only aggregates over the reservations of a date range for the staff
dashboard. Empty ranges produce zeros and empty lists.
"""

from datetime import date, timedelta

from models.reservation_state import PAYMENT_PAID, RESERVATION_STATUSES

TREND_DAYS = 7
TOP_CUSTOMERS_LIMIT = 5
RECENT_BOOKINGS_LIMIT = 10


# =============================================================================
# SECTIONS
# =============================================================================

def get_summary(store, filters: dict, today: str) -> dict:
    """
    Headline numbers.

    Revenue only counts paid reservations.

    Returns:
        dict with total, today, total_revenue, average_revenue
    """
    paid = dict(filters, payment_status=PAYMENT_PAID)

    return {
        'total': store.count(filters),
        'today': store.count(dict(filters, date=today)),
        'total_revenue': round(store.sum('total_price', paid), 2),
        'average_revenue': round(store.avg('total_price', paid), 2),
    }


def get_status_breakdown(store, filters: dict) -> dict:
    """Count per status, every status present."""
    counts = {status: 0 for status in RESERVATION_STATUSES}
    for status, count in store.count_by_group('status', filters):
        counts[status] = count
    return counts


def get_daily_trends(store, filters: dict, today: date) -> list:
    """
    Reservation counts for the last seven days ending today.

    Days with no reservations are included with count 0; days outside
    the requested range are left out.

    Returns:
        list of {date, count} in date order
    """
    days = [(today - timedelta(days=offset)).isoformat() for offset in range(TREND_DAYS - 1, -1, -1)]

    start = filters.get('start_date')
    end = filters.get('end_date')
    days = [d for d in days if (not start or d >= start) and (not end or d <= end)]
    if not days:
        return []

    window = dict(filters, start_date=max(days[0], start or days[0]),
                  end_date=min(days[-1], end or days[-1]))
    counts = dict(store.count_by_group('reservation_date', window))

    return [{'date': d, 'count': counts.get(d, 0)} for d in days]


# =============================================================================
# DASHBOARD
# =============================================================================

def get_booking_stats(store, clock, start_date: str = None, end_date: str = None) -> dict:
    """
    Full statistics payload for a date range.

    Args:
        store: Reservation store
        clock: Clock providing today()
        start_date: Inclusive lower bound (YYYY-MM-DD), optional
        end_date: Inclusive upper bound (YYYY-MM-DD), optional

    Returns:
        dict with summary, by_status, by_service, by_vehicle_type,
        daily_trends, top_customers, recent_bookings
    """
    filters = {'start_date': start_date, 'end_date': end_date}
    today = clock.today()

    return {
        'summary': get_summary(store, filters, today.isoformat()),
        'by_status': get_status_breakdown(store, filters),
        'by_service': [
            {'service_type': value, 'count': count}
            for value, count in store.count_by_group('service_type', filters)
        ],
        'by_vehicle_type': [
            {'vehicle_type': value, 'count': count}
            for value, count in store.count_by_group('vehicle_type', filters)
        ],
        'daily_trends': get_daily_trends(store, filters, today),
        'top_customers': [
            dict(customer, total_spent=round(float(customer['total_spent']), 2))
            for customer in store.top_customers(filters, limit=TOP_CUSTOMERS_LIMIT)
        ],
        'recent_bookings': store.recent(filters, limit=RECENT_BOOKINGS_LIMIT),
    }
