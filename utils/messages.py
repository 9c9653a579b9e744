"""
Centralized user-facing messages.
"""

MESSAGES = {
    # Success messages
    'login_success': 'Welcome {name}',
    'logout_success': 'Signed out',
    'booking_created': 'Booking created successfully',
    'booking_status_updated': 'Booking status updated',
    'booking_payment_updated': 'Payment status updated',
    'booking_cancelled': 'Booking cancelled',

    # Error messages
    'invalid_credentials': 'Invalid username or password',
    'account_disabled': 'Account is disabled',
    'credentials_required': 'Username and password are required',
    'json_required': 'Request body must be JSON',
    'status_required': 'Status is required',
    'payment_status_required': 'Payment status is required',
    'not_found': 'Resource not found',
    'method_not_allowed': 'Method not allowed',
    'server_error': 'An unexpected error occurred',
}


def get_message(key: str, **kwargs) -> str:
    """
    Get message with optional formatting.

    Args:
        key: Message key
        **kwargs: Format parameters

    Returns:
        Formatted message or key if not found
    """
    message = MESSAGES.get(key, key)
    if kwargs:
        return message.format(**kwargs)
    return message
