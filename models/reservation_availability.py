"""
Slot conflict detection and day availability.

Only reservations in an occupying status (pending, confirmed) block time.
Completed reservations sit in the past and cancelled ones free their slot.
"""

import logging

from models.errors import ValidationError
from models.reservation_state import OCCUPYING_STATUSES
from models.slots import generate_slots, parse_time_to_minutes

logger = logging.getLogger(__name__)

CONFLICT_MODES = ('overlap', 'exact')


# =============================================================================
# CONFLICT DETECTION
# =============================================================================

def _coerce_duration(value, default_duration: int) -> int:
    try:
        duration = int(value)
    except (TypeError, ValueError):
        return default_duration
    return duration if duration > 0 else default_duration


def is_bookable(
    candidate_start,
    requested_duration: int,
    existing_occupied,
    mode: str = 'overlap',
    default_duration: int = 60
) -> bool:
    """
    Decide whether a candidate slot is free.

    Intervals are half-open, so a booking may start exactly when another ends.

    Args:
        candidate_start: 'HH:MM' string or minutes since midnight
        requested_duration: Requested service duration in minutes
        existing_occupied: Iterable of (start, duration) pairs for the same day
        mode: 'overlap' (any intersection blocks) or 'exact' (only identical
            start times block, legacy behaviour)
        default_duration: Used when an existing entry has no usable duration

    Returns:
        bool: True if nothing in existing_occupied blocks the candidate

    Raises:
        ValidationError: If the candidate start or mode is invalid
    """
    if mode not in CONFLICT_MODES:
        raise ValidationError(f'Unknown conflict mode: {mode}', fields=['mode'])

    if isinstance(candidate_start, int):
        start = candidate_start
    else:
        start = parse_time_to_minutes(candidate_start)
    if start is None:
        raise ValidationError('Time must be in 24-hour format (HH:MM)', fields=['time'])

    end = start + _coerce_duration(requested_duration, default_duration)

    for existing_start, existing_duration in existing_occupied:
        occupied_start = parse_time_to_minutes(existing_start)
        if occupied_start is None:
            # Malformed stored time: treat as no occupancy
            continue

        if mode == 'exact':
            if occupied_start == start:
                return False
            continue

        occupied_end = occupied_start + _coerce_duration(existing_duration, default_duration)
        if start < occupied_end and occupied_start < end:
            return False

    return True


def occupied_intervals(reservations: list) -> list:
    """
    Extract (start, duration) pairs from reservation records.

    Records in a non-occupying status are skipped.

    Args:
        reservations: Reservation dicts for a single day

    Returns:
        list of (reservation_time, duration_minutes) tuples
    """
    return [
        (r.get('reservation_time'), r.get('duration_minutes'))
        for r in reservations
        if r.get('status') in OCCUPYING_STATUSES
    ]


# =============================================================================
# DAY AVAILABILITY
# =============================================================================

def get_available_slots(store, reservation_date: str, duration: int, settings: dict) -> dict:
    """
    Compute the free start times for a day.

    Args:
        store: Reservation store
        reservation_date: Day (YYYY-MM-DD)
        duration: Requested duration in minutes
        settings: Booking settings (see utils.helpers.get_booking_settings)

    Returns:
        dict: {
            'date': str,
            'duration': int,
            'available_slots': ['HH:MM', ...],
            'total_slots': int
        }
    """
    candidates = generate_slots(
        reservation_date,
        settings['BUSINESS_OPEN_HOUR'],
        settings['BUSINESS_CLOSE_HOUR'],
        settings['SLOT_GRANULARITY_MINUTES'],
        duration
    )

    existing = occupied_intervals(store.find_active_on_date(reservation_date))

    available = [
        slot for slot in candidates
        if is_bookable(
            slot, duration, existing,
            mode=settings['CONFLICT_MODE'],
            default_duration=settings['DEFAULT_SERVICE_DURATION']
        )
    ]

    logger.debug('Availability for %s (%s min): %d of %d candidates free',
                 reservation_date, duration, len(available), len(candidates))

    return {
        'date': reservation_date,
        'duration': duration,
        'available_slots': available,
        'total_slots': len(available)
    }
