"""
Tests for input validation and helper utilities.
"""

from datetime import datetime, timezone

import pytest

from models.errors import InvalidTransitionError, ValidationError
from models.reservation_state import (
    normalize_payment_method,
    normalize_payment_status,
    normalize_status,
    validate_status_transition,
)
from utils.helpers import build_pagination, generate_reference_number, parse_positive_int
from utils.validators import (
    find_missing_fields,
    parse_amount,
    sanitize_input,
    validate_date_format,
    validate_date_range,
    validate_email,
    validate_phone,
    validate_time_format,
)


class TestValidateEmail:
    """Tests for email validation."""

    def test_valid_email(self):
        """Well-formed addresses pass."""
        assert validate_email('user@example.com') is True
        assert validate_email('user.name+tag@example.co.uk') is True

    def test_invalid_email(self):
        """Empty or malformed addresses fail."""
        assert validate_email('') is False
        assert validate_email(None) is False
        assert validate_email('missing@domain') is False
        assert validate_email('spaces in@email.com') is False


class TestValidatePhone:
    """Tests for international phone validation."""

    def test_valid_phones(self):
        """International and local numbers pass."""
        assert validate_phone('+639175550101') is True
        assert validate_phone('+1 (415) 555-0100') is True
        assert validate_phone('5550100') is True

    def test_invalid_phones(self):
        """Short, long or lettered numbers fail."""
        assert validate_phone('') is False
        assert validate_phone(None) is False
        assert validate_phone('12345') is False  # Too short
        assert validate_phone('+1234567890123456') is False  # Too long
        assert validate_phone('555-CALL-NOW') is False


class TestValidateTimeFormat:
    """24-hour HH:MM only."""

    def test_valid_times(self):
        """Times across the day pass."""
        for value in ('00:00', '09:30', '14:30', '23:59'):
            assert validate_time_format(value) is True

    def test_invalid_times(self):
        """Non 24-hour forms fail."""
        for value in ('9:30', '24:00', '12:60', '2:30 PM', '09:30:00', '', None, 930):
            assert validate_time_format(value) is False


class TestValidateDates:

    def test_date_format(self):
        """Only real calendar dates pass."""
        assert validate_date_format('2026-02-28') is True
        assert validate_date_format('2028-02-29') is True  # Leap year
        assert validate_date_format('2026-02-29') is False
        assert validate_date_format('03/12/2026') is False
        assert validate_date_format(None) is False

    def test_date_range(self):
        """Start must not be after end."""
        assert validate_date_range('2026-03-01', '2026-03-01') is True
        assert validate_date_range('2026-03-05', '2026-03-01') is False
        assert validate_date_range('invalid', '2026-03-01') is False


class TestPayloadHelpers:

    def test_find_missing_fields(self):
        """Blank and absent fields are missing."""
        data = {'a': 'x', 'b': '  ', 'c': None, 'd': 0}
        assert find_missing_fields(data, ['a', 'b', 'c', 'd', 'e']) == ['b', 'c', 'e']

    def test_parse_amount(self):
        """Only finite non-negative numbers parse."""
        assert parse_amount('125.50') == 125.5
        assert parse_amount(0) == 0.0
        assert parse_amount(-1) is None
        assert parse_amount('nan') is None
        assert parse_amount(True) is None
        assert parse_amount(None) is None

    def test_sanitize_input(self):
        """Input is stripped and truncated."""
        assert sanitize_input('  hello  ') == 'hello'
        assert sanitize_input('hello world', max_length=5) == 'hello'
        assert sanitize_input(None) == ''


class TestReservationEnums:

    def test_normalization(self):
        """Enum values are trimmed and lowercased."""
        assert normalize_status(' Confirmed ') == 'confirmed'
        assert normalize_payment_status('REFUND-PENDING') == 'refund-pending'
        assert normalize_payment_method('Cash') == 'cash'

    @pytest.mark.parametrize('func,value', [
        (normalize_status, 'archived'),
        (normalize_status, None),
        (normalize_payment_status, 'refunded'),
        (normalize_payment_method, 'cheque'),
    ])
    def test_rejects_unknown_values(self, func, value):
        """Unknown enum values raise ValidationError."""
        with pytest.raises(ValidationError):
            func(value)


class TestStatusTransitions:
    """The transition table."""

    @pytest.mark.parametrize('current,new', [
        ('pending', 'confirmed'),
        ('pending', 'cancelled'),
        ('confirmed', 'completed'),
        ('confirmed', 'cancelled'),
    ])
    def test_allowed(self, current, new):
        """Edges in the table are allowed."""
        assert validate_status_transition(current, new) is True

    @pytest.mark.parametrize('status', ['pending', 'confirmed', 'completed', 'cancelled'])
    def test_same_status_is_noop(self, status):
        """Same-status requests report no change."""
        assert validate_status_transition(status, status) is False

    @pytest.mark.parametrize('current,new', [
        ('pending', 'completed'),
        ('confirmed', 'pending'),
        ('completed', 'cancelled'),
        ('completed', 'pending'),
        ('cancelled', 'confirmed'),
    ])
    def test_denied(self, current, new):
        """Edges outside the table raise InvalidTransitionError."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_status_transition(current, new)
        assert exc_info.value.current_status == current
        assert exc_info.value.requested_status == new


class TestHelpers:

    def test_reference_number(self):
        """Reference has prefix, millis and random suffix."""
        now = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
        reference = generate_reference_number('AG', now)

        prefix, millis, suffix = reference.split('-')
        assert prefix == 'AG'
        assert millis == '1773133200000'
        assert len(suffix) == 6
        assert suffix.isalnum() and suffix.upper() == suffix

    def test_parse_positive_int(self):
        """Invalid or non-positive values fall back to the default."""
        assert parse_positive_int('3', 1) == 3
        assert parse_positive_int(None, 20) == 20
        assert parse_positive_int('0', 20) == 20
        assert parse_positive_int('abc', 20) == 20
        assert parse_positive_int('500', 20, maximum=100) == 100

    def test_build_pagination(self):
        """Page count rounds up."""
        assert build_pagination(0, 1, 20) == {'total': 0, 'page': 1, 'pages': 0, 'limit': 20}
        assert build_pagination(41, 2, 20)['pages'] == 3


class TestClocks:

    def test_system_clock_uses_timezone(self):
        """SystemClock reports time in its zone."""
        from datetime import timedelta
        from utils.datetime_helpers import SystemClock

        assert SystemClock('Asia/Manila').now().utcoffset() == timedelta(hours=8)

    def test_fixed_clock(self):
        """FixedClock returns its instant without microseconds in timestamps."""
        from utils.datetime_helpers import FixedClock, format_timestamp

        instant = datetime(2026, 3, 10, 9, 0, 0, 123456, tzinfo=timezone.utc)
        clock = FixedClock(instant)

        assert clock.today().isoformat() == '2026-03-10'
        assert format_timestamp(clock.now()) == '2026-03-10T09:00:00+00:00'
