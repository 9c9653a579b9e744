"""
Booking error taxonomy.

Every failure the booking engine reports is one of these kinds so the
API layer can map it to a distinct response:

    ValidationError        -> 400, lists the offending fields
    NotFoundError          -> 404
    ConflictError          -> 409, slot already taken
    InvalidTransitionError -> 400, operation rejected for the current status
    UnexpectedError        -> 500, collaborator failure
"""


class BookingError(Exception):
    """Base class for booking engine errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {}


class ValidationError(BookingError):
    """Missing or malformed input."""

    status_code = 400

    def __init__(self, message: str, fields: list = None):
        super().__init__(message)
        self.fields = list(fields or [])

    def to_dict(self) -> dict:
        return {'fields': self.fields}


class NotFoundError(BookingError):
    """Unknown reservation id or reference."""

    status_code = 404


class ConflictError(BookingError):
    """Requested slot is already booked."""

    status_code = 409

    def __init__(self, message: str = 'Selected time slot is already booked',
                 reservation_date: str = None, reservation_time: str = None):
        super().__init__(message)
        self.reservation_date = reservation_date
        self.reservation_time = reservation_time

    def to_dict(self) -> dict:
        return {'date': self.reservation_date, 'time': self.reservation_time}


class InvalidTransitionError(BookingError):
    """Status change not allowed from the current status."""

    status_code = 400

    def __init__(self, current_status: str, requested_status: str, message: str = None):
        super().__init__(
            message or f'Cannot change status from {current_status} to {requested_status}'
        )
        self.current_status = current_status
        self.requested_status = requested_status

    def to_dict(self) -> dict:
        return {
            'current_status': self.current_status,
            'requested_status': self.requested_status
        }


class UnexpectedError(BookingError):
    """A collaborator failed in a way the engine cannot classify."""

    status_code = 500


class DuplicateReferenceError(Exception):
    """Raised by the store when a generated reference already exists."""
