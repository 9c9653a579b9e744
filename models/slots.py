"""
Slot grid calculation.
Turns a business day into the ordered list of bookable start times.
"""

from datetime import datetime

from models.errors import ValidationError


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as HH:MM."""
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def parse_time_to_minutes(value) -> int:
    """
    Convert a stored time value to minutes since midnight.

    Accepts 'HH:MM', 'HH:MM:SS' and time/datetime objects.

    Returns:
        int minutes, or None when the value is missing or malformed
    """
    if value is None:
        return None

    if hasattr(value, 'hour') and hasattr(value, 'minute'):
        return value.hour * 60 + value.minute

    if not isinstance(value, str):
        return None

    parts = value.strip().split(':')
    if len(parts) not in (2, 3):
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def generate_slots(
    reservation_date: str,
    open_hour: int,
    close_hour: int,
    slot_granularity_minutes: int,
    requested_duration_minutes: int
) -> list:
    """
    Candidate start times for a day.

    Start times step by the granularity from open_hour:00 while they are
    before close_hour:00. A start is dropped when start + duration lands
    on or after close_hour:00, so every slot finishes inside business hours.

    Args:
        reservation_date: Day being scheduled (YYYY-MM-DD)
        open_hour: Opening hour (0-23)
        close_hour: Closing hour (1-24), exclusive
        slot_granularity_minutes: Grid step in minutes
        requested_duration_minutes: Service duration in minutes

    Returns:
        list: 'HH:MM' strings in ascending order (may be empty)

    Raises:
        ValidationError: If any argument is out of range
    """
    try:
        datetime.strptime(reservation_date, '%Y-%m-%d')
    except (TypeError, ValueError):
        raise ValidationError('Date must be in YYYY-MM-DD format', fields=['date'])

    if not (0 <= open_hour < close_hour <= 24):
        raise ValidationError('Business hours must satisfy 0 <= open < close <= 24',
                              fields=['open_hour', 'close_hour'])
    if slot_granularity_minutes <= 0:
        raise ValidationError('Slot granularity must be positive',
                              fields=['slot_granularity_minutes'])
    if requested_duration_minutes <= 0:
        raise ValidationError('Duration must be positive', fields=['duration'])

    open_minutes = open_hour * 60
    close_minutes = close_hour * 60

    slots = []
    start = open_minutes
    while start < close_minutes:
        if start + requested_duration_minutes < close_minutes:
            slots.append(minutes_to_time(start))
        start += slot_granularity_minutes
    return slots
