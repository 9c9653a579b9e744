"""
Input validation helper functions.
Provides validation for common input types.
"""

import math
import re
from datetime import datetime

TIME_PATTERN = re.compile(r'^([0-1]\d|2[0-3]):[0-5]\d$')


def validate_email(email: str) -> bool:
    """
    Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def validate_phone(phone: str) -> bool:
    """
    Validate an international phone number.
    Accepts an optional leading + followed by 7 to 15 digits.

    Args:
        phone: Phone number to validate

    Returns:
        True if valid phone format
    """
    if not phone:
        return False

    # Remove spaces and common separators
    cleaned = re.sub(r'[\s\-\(\)\.]', '', phone)

    return bool(re.match(r'^\+?[0-9]{7,15}$', cleaned))


def validate_time_format(time_str: str) -> bool:
    """
    Validate time is in 24-hour HH:MM format.

    Args:
        time_str: Time string to validate

    Returns:
        True if valid format
    """
    if not isinstance(time_str, str):
        return False
    return bool(TIME_PATTERN.match(time_str))


def validate_date_format(date_str: str) -> bool:
    """
    Validate date is in YYYY-MM-DD format.

    Args:
        date_str: Date string to validate

    Returns:
        True if valid format
    """
    if not isinstance(date_str, str):
        return False
    try:
        datetime.strptime(date_str, '%Y-%m-%d')
        return True
    except ValueError:
        return False


def validate_date_range(start_date: str, end_date: str) -> bool:
    """
    Validate that end date is not before start date.

    Args:
        start_date: Start date (YYYY-MM-DD)
        end_date: End date (YYYY-MM-DD)

    Returns:
        True if valid date range
    """
    try:
        start = datetime.strptime(start_date, '%Y-%m-%d')
        end = datetime.strptime(end_date, '%Y-%m-%d')
        return end >= start
    except (TypeError, ValueError):
        return False


def find_missing_fields(data: dict, required: list) -> list:
    """
    List required keys that are absent or blank.

    Args:
        data: Payload dict
        required: Field names in reporting order

    Returns:
        list: Missing field names
    """
    missing = []
    for field in required:
        value = data.get(field)
        if value is None or (isinstance(value, str) and value.strip() == ''):
            missing.append(field)
    return missing


def parse_amount(value) -> float:
    """
    Parse a non-negative monetary amount.

    Returns:
        float amount, or None when the value is not a number >= 0
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount) or amount < 0:
        return None
    return amount


def sanitize_input(text: str, max_length: int = None) -> str:
    """
    Sanitize text input by trimming and limiting length.

    Args:
        text: Text to sanitize
        max_length: Maximum length (optional)

    Returns:
        Sanitized text
    """
    if not text:
        return ''

    # Strip whitespace
    sanitized = str(text).strip()

    # Limit length if specified
    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
