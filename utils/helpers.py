"""
Miscellaneous utility helper functions.
Provides common functionality used across the application.
"""

import math
import random
import string
from datetime import datetime

BOOKING_SETTING_KEYS = (
    'BUSINESS_OPEN_HOUR',
    'BUSINESS_CLOSE_HOUR',
    'SLOT_GRANULARITY_MINUTES',
    'DEFAULT_SERVICE_DURATION',
    'CONFLICT_MODE',
    'REFERENCE_PREFIX',
    'LOYALTY_POINTS_DIVISOR',
    'ITEMS_PER_PAGE',
    'MAX_PAGE_SIZE',
    'SEARCH_LIMIT',
)

DEFAULT_BOOKING_SETTINGS = {
    'BUSINESS_OPEN_HOUR': 8,
    'BUSINESS_CLOSE_HOUR': 18,
    'SLOT_GRANULARITY_MINUTES': 30,
    'DEFAULT_SERVICE_DURATION': 60,
    'CONFLICT_MODE': 'overlap',
    'REFERENCE_PREFIX': 'AG',
    'LOYALTY_POINTS_DIVISOR': 100,
    'ITEMS_PER_PAGE': 20,
    'MAX_PAGE_SIZE': 100,
    'SEARCH_LIMIT': 50,
}


def get_booking_settings(config=None) -> dict:
    """
    Extract booking engine settings from a config mapping.

    Args:
        config: Flask config or any dict (missing keys use defaults)

    Returns:
        dict of booking settings
    """
    settings = dict(DEFAULT_BOOKING_SETTINGS)
    if config:
        for key in BOOKING_SETTING_KEYS:
            if key in config:
                settings[key] = config[key]
    return settings


def generate_reference_number(prefix: str, now: datetime, length: int = 6) -> str:
    """
    Generate a human-readable booking reference.

    Format: PREFIX-<epoch millis>-<random base36>, e.g. AG-1718000000000-X7K2QP

    Args:
        prefix: Reference prefix
        now: Current instant (from the injected clock)
        length: Length of random suffix

    Returns:
        Reference string
    """
    millis = int(now.timestamp() * 1000)
    random_part = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
    return f'{prefix}-{millis}-{random_part}'


def parse_positive_int(value, default: int, maximum: int = None) -> int:
    """
    Parse a positive integer query parameter.

    Args:
        value: Raw value (str/int/None)
        default: Returned when value is missing or invalid
        maximum: Optional upper bound

    Returns:
        int
    """
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum and number > maximum:
        return maximum
    return number


def build_pagination(total: int, page: int, limit: int) -> dict:
    """Pagination metadata for list responses."""
    return {
        'total': total,
        'page': page,
        'pages': math.ceil(total / limit) if limit else 0,
        'limit': limit
    }
