"""
Reservation status and payment state definitions.
Handles the status transition table and its validation.
"""

from models.errors import InvalidTransitionError, ValidationError


# =============================================================================
# CONSTANTS
# =============================================================================

STATUS_PENDING = 'pending'
STATUS_CONFIRMED = 'confirmed'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'

RESERVATION_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_COMPLETED, STATUS_CANCELLED)

# Statuses that hold a slot on the calendar
OCCUPYING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)

# No status change is accepted out of these
TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

PAYMENT_PENDING = 'pending'
PAYMENT_PAID = 'paid'
PAYMENT_REFUND_PENDING = 'refund-pending'

PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_PAID, PAYMENT_REFUND_PENDING)

PAYMENT_METHODS = ('card', 'cash')

APPOINTMENT_STUDIO = 'studio'
APPOINTMENT_MOBILE = 'mobile'
APPOINTMENT_TYPES = (APPOINTMENT_STUDIO, APPOINTMENT_MOBILE)

REFUND_PENDING = 'pending'

# Allowed status edges. Requesting the current status again is a no-op and
# is handled separately from this table.
VALID_TRANSITIONS = {
    STATUS_PENDING: (STATUS_CONFIRMED, STATUS_CANCELLED),
    STATUS_CONFIRMED: (STATUS_COMPLETED, STATUS_CANCELLED),
    STATUS_COMPLETED: (),
    STATUS_CANCELLED: (),
}


# =============================================================================
# VALIDATION
# =============================================================================

def normalize_status(status) -> str:
    """
    Normalize and validate a reservation status value.

    Raises:
        ValidationError: If the status is unknown
    """
    value = status.strip().lower() if isinstance(status, str) else None
    if value not in RESERVATION_STATUSES:
        raise ValidationError(
            f"Status must be one of: {', '.join(RESERVATION_STATUSES)}",
            fields=['status']
        )
    return value


def normalize_payment_status(payment_status) -> str:
    """
    Normalize and validate a payment status value.

    Raises:
        ValidationError: If the payment status is unknown
    """
    value = payment_status.strip().lower() if isinstance(payment_status, str) else None
    if value not in PAYMENT_STATUSES:
        raise ValidationError(
            f"Payment status must be one of: {', '.join(PAYMENT_STATUSES)}",
            fields=['payment_status']
        )
    return value


def normalize_payment_method(method) -> str:
    """
    Normalize and validate a payment method.

    Raises:
        ValidationError: If the method is not card or cash
    """
    value = method.strip().lower() if isinstance(method, str) else None
    if value not in PAYMENT_METHODS:
        raise ValidationError('Payment method must be "card" or "cash"', fields=['payment_method'])
    return value


def get_allowed_transitions(current_status: str) -> tuple:
    """Statuses reachable from current_status in one step."""
    return VALID_TRANSITIONS.get(current_status, ())


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """
    Check a status change against the transition table.

    Args:
        current_status: Status stored on the reservation
        new_status: Requested status

    Returns:
        bool: True if the status actually changes, False for a same-status no-op

    Raises:
        InvalidTransitionError: If the edge is not allowed
    """
    if current_status == new_status:
        return False

    allowed = get_allowed_transitions(current_status)
    if new_status not in allowed:
        if allowed:
            message = (f'Cannot change status from {current_status} to {new_status}. '
                       f"Allowed transitions: {', '.join(allowed)}")
        else:
            message = f'Reservation is {current_status} and cannot change status'
        raise InvalidTransitionError(current_status, new_status, message)

    return True
