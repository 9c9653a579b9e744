"""
Reservation lifecycle management.

ReservationManager owns booking creation and every status/payment change,
together with the side effects those changes trigger:

- create: validate, price, check the slot, assign a reference, store
- update_status: transition table, loyalty credit on completion
- update_payment_status: auto-confirm pending bookings once paid
- cancel: refund flagging for paid bookings

Collaborators (store, customers, pricing, services, clock) are injected so
they can be replaced in tests; get_reservation_manager() wires the SQLite
implementations from the Flask app config.
"""

import logging

from flask import current_app

from models.customer import CustomerStore
from models.errors import (
    BookingError,
    ConflictError,
    DuplicateReferenceError,
    InvalidTransitionError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from models.insights import get_booking_stats
from models.pricing import CatalogPricing
from models.reservation_availability import get_available_slots, is_bookable, occupied_intervals
from models.reservation_state import (
    APPOINTMENT_STUDIO,
    APPOINTMENT_TYPES,
    PAYMENT_PAID,
    PAYMENT_PENDING,
    REFUND_PENDING,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_PENDING,
    is_terminal,
    normalize_payment_method,
    normalize_payment_status,
    normalize_status,
    validate_status_transition,
)
from models.reservation_store import ReservationStore
from models.service import ServiceCatalog
from models.slots import parse_time_to_minutes
from utils.datetime_helpers import format_timestamp, get_clock
from utils.helpers import (
    build_pagination,
    generate_reference_number,
    get_booking_settings,
    parse_positive_int,
)
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

logger = logging.getLogger(__name__)

MAX_REFERENCE_ATTEMPTS = 5

REQUIRED_BOOKING_FIELDS = (
    'customer_name',
    'customer_email',
    'date',
    'time',
    'service_type',
    'vehicle_type',
    'payment_method',
)


# =============================================================================
# PAYLOAD VALIDATION
# =============================================================================

def validate_booking_payload(payload: dict, current_year: int = None) -> dict:
    """
    Validate and normalize a booking request.

    All problems are collected so the caller sees every offending field.

    Args:
        payload: Raw request fields
        current_year: Upper bound reference for vehicle_year

    Returns:
        dict: Cleaned booking fields

    Raises:
        ValidationError: With the offending fields listed
    """
    if not isinstance(payload, dict):
        raise ValidationError('Booking data is required', fields=list(REQUIRED_BOOKING_FIELDS))

    problems = []
    fields = []

    def reject(field, message):
        fields.append(field)
        problems.append(message)

    missing = find_missing_fields(payload, REQUIRED_BOOKING_FIELDS)
    if missing:
        fields.extend(missing)
        problems.append(f"Missing required fields: {', '.join(missing)}")

    time_value = payload.get('time')
    if 'time' not in missing and not validate_time_format(time_value):
        reject('time', 'Time must be in 24-hour format (HH:MM) e.g., 14:30')

    date_value = payload.get('date')
    if 'date' not in missing and not validate_date_format(date_value):
        reject('date', 'Date must be in YYYY-MM-DD format')

    email = payload.get('customer_email')
    if 'customer_email' not in missing and not validate_email(str(email).strip()):
        reject('customer_email', 'Invalid email format')

    phone = payload.get('phone')
    if phone and not validate_phone(str(phone)):
        reject('phone', 'Invalid phone format')

    payment_method = payload.get('payment_method')
    if 'payment_method' not in missing:
        try:
            payment_method = normalize_payment_method(payment_method)
        except ValidationError as e:
            reject('payment_method', e.message)

    appointment_type = payload.get('appointment_type') or APPOINTMENT_STUDIO
    if not isinstance(appointment_type, str) or appointment_type.strip().lower() not in APPOINTMENT_TYPES:
        reject('appointment_type', 'Appointment type must be "studio" or "mobile"')
    else:
        appointment_type = appointment_type.strip().lower()

    vehicle_year = payload.get('vehicle_year')
    if vehicle_year not in (None, ''):
        try:
            vehicle_year = int(vehicle_year)
        except (TypeError, ValueError):
            vehicle_year = None
            reject('vehicle_year', 'Vehicle year must be a number')
        else:
            latest = (current_year or 9998) + 1
            if not 1900 <= vehicle_year <= latest:
                reject('vehicle_year', f'Vehicle year must be between 1900 and {latest}')
    else:
        vehicle_year = None

    extras = payload.get('extras') or []
    if not isinstance(extras, list) or not all(isinstance(e, str) for e in extras):
        reject('extras', 'Extras must be a list of extra codes')
        extras = []

    if problems:
        raise ValidationError('; '.join(problems), fields=fields)

    return {
        'customer_name': sanitize_input(payload['customer_name'], 120),
        'customer_email': str(email).strip().lower(),
        'phone': sanitize_input(phone, 30),
        'date': date_value,
        'time': time_value,
        'service_type': str(payload['service_type']).strip(),
        'vehicle_type': str(payload['vehicle_type']).strip().lower(),
        'vehicle_year': vehicle_year,
        'vehicle_make': sanitize_input(payload.get('vehicle_make'), 60) or None,
        'vehicle_model': sanitize_input(payload.get('vehicle_model'), 60) or None,
        'condition': sanitize_input(payload.get('condition'), 30).lower() or None,
        'extras': sorted({e.strip() for e in extras if e.strip()}),
        'appointment_type': appointment_type,
        'notes': sanitize_input(payload.get('notes'), 2000) or None,
        'payment_method': payment_method,
    }


def _validate_filter_dates(start_date: str = None, end_date: str = None):
    bad = [name for name, value in (('start_date', start_date), ('end_date', end_date))
           if value and not validate_date_format(value)]
    if bad:
        raise ValidationError('Dates must be in YYYY-MM-DD format', fields=bad)
    if start_date and end_date and not validate_date_range(start_date, end_date):
        raise ValidationError('End date must not be before start date',
                              fields=['start_date', 'end_date'])


# =============================================================================
# LIFECYCLE MANAGER
# =============================================================================

class ReservationManager:
    """Creates reservations and drives their status and payment changes."""

    def __init__(self, store, customers, pricing, services, clock, settings: dict = None):
        """
        Args:
            store: Reservation store (see models.reservation_store.ReservationStore)
            customers: Customer store (see models.customer.CustomerStore)
            pricing: Object with price(service_type, vehicle_type, extras, condition)
            services: Service catalog (see models.service.ServiceCatalog)
            clock: Object with now() and today()
            settings: Booking settings (see utils.helpers.get_booking_settings)
        """
        self.store = store
        self.customers = customers
        self.pricing = pricing
        self.services = services
        self.clock = clock
        self.settings = get_booking_settings(settings)

    def _timestamp(self) -> str:
        return format_timestamp(self.clock.now())

    # =========================================================================
    # CREATE
    # =========================================================================

    def create(self, payload: dict, created_by: str = None) -> dict:
        """
        Book a slot.

        Args:
            payload: Booking request fields
            created_by: Staff username, None for public bookings

        Returns:
            dict: The stored reservation with nested customer

        Raises:
            ValidationError: Bad or missing fields, unknown service
            ConflictError: The slot is taken (detected here or by the store)
            UnexpectedError: Pricing failed or no unique reference could be made
        """
        data = validate_booking_payload(payload, current_year=self.clock.today().year)

        service = self.services.get_service(data['service_type'])
        if not service:
            raise ValidationError('Invalid service type', fields=['service_type'])
        duration = int(service['duration_minutes'])

        start = parse_time_to_minutes(data['time'])
        opens = int(self.settings['BUSINESS_OPEN_HOUR']) * 60
        closes = int(self.settings['BUSINESS_CLOSE_HOUR']) * 60
        if start < opens or start + duration >= closes:
            raise ValidationError(
                f"{service['name']} must start and finish within business hours",
                fields=['time']
            )

        try:
            price = self.pricing.price(
                data['service_type'], data['vehicle_type'], data['extras'], data['condition']
            )
        except BookingError:
            raise
        except Exception as e:
            logger.exception('Pricing failed for %s/%s', data['service_type'], data['vehicle_type'])
            raise UnexpectedError('Error calculating booking price') from e

        if price is None or price < 0:
            raise UnexpectedError('Error calculating booking price')

        now = self._timestamp()
        record = {
            'reservation_date': data['date'],
            'reservation_time': data['time'],
            'scheduled_at': f"{data['date']}T{data['time']}:00",
            'service_type': service['name'],
            'duration_minutes': duration,
            'vehicle_type': data['vehicle_type'],
            'vehicle_year': data['vehicle_year'],
            'vehicle_make': data['vehicle_make'],
            'vehicle_model': data['vehicle_model'],
            'condition': data['condition'],
            'extras': data['extras'],
            'appointment_type': data['appointment_type'],
            'total_price': float(price),
            'status': STATUS_PENDING,
            'payment_method': data['payment_method'],
            'payment_status': PAYMENT_PENDING,
            'notes': data['notes'],
            'created_by': created_by,
            'created_at': now,
            'updated_at': now,
        }

        reservation_id = None
        for attempt in range(1, MAX_REFERENCE_ATTEMPTS + 1):
            record['reference_number'] = generate_reference_number(
                self.settings['REFERENCE_PREFIX'], self.clock.now()
            )
            try:
                # The slot check and the insert share one write lock
                with self.store.immediate_transaction():
                    existing = occupied_intervals(self.store.find_active_on_date(data['date']))
                    if not is_bookable(
                        data['time'], duration, existing,
                        mode=self.settings['CONFLICT_MODE'],
                        default_duration=self.settings['DEFAULT_SERVICE_DURATION']
                    ):
                        logger.info('Slot %s %s rejected: overlaps an existing booking',
                                    data['date'], data['time'])
                        raise ConflictError(reservation_date=data['date'],
                                            reservation_time=data['time'])

                    customer = self.customers.find_or_create(
                        data['customer_name'], data['customer_email'], data['phone'],
                        created_at=now, commit=False
                    )
                    record['customer_id'] = customer['id']
                    reservation_id = self.store.create(
                        record, changed_by=created_by or 'public', commit=False
                    )
                break
            except DuplicateReferenceError:
                logger.warning('Reference %s already taken (attempt %d)',
                               record['reference_number'], attempt)

        if reservation_id is None:
            raise UnexpectedError('Could not generate a unique booking reference')

        logger.info('Reservation %s created: %s %s %s for customer %s',
                    record['reference_number'], data['date'], data['time'],
                    service['name'], record['customer_id'])

        return self.store.find_by_id(reservation_id)

    # =========================================================================
    # READ
    # =========================================================================

    def get(self, reservation_id: int) -> dict:
        """
        Raises:
            NotFoundError: If no reservation has this ID
        """
        reservation = self.store.find_by_id(reservation_id)
        if not reservation:
            raise NotFoundError('Booking not found')
        return reservation

    def get_by_reference(self, reference_number: str) -> dict:
        """
        Raises:
            NotFoundError: If no reservation has this reference
        """
        reservation = self.store.find_by_reference((reference_number or '').strip())
        if not reservation:
            raise NotFoundError('Booking not found')
        return reservation

    def get_history(self, reservation_id: int) -> list:
        self.get(reservation_id)
        return self.store.get_history(reservation_id)

    def list_reservations(self, status: str = None, customer_email: str = None,
                          start_date: str = None, end_date: str = None,
                          page=1, limit=None) -> dict:
        """
        Paginated reservations, newest first.

        Returns:
            dict: {'items': [...], 'pagination': {total, page, pages, limit}}
        """
        _validate_filter_dates(start_date, end_date)
        filters = {
            'status': normalize_status(status) if status else None,
            'customer_email': customer_email.strip() if customer_email else None,
            'start_date': start_date,
            'end_date': end_date,
        }

        page = parse_positive_int(page, 1)
        limit = parse_positive_int(
            limit, self.settings['ITEMS_PER_PAGE'], self.settings['MAX_PAGE_SIZE']
        )

        items, total = self.store.paginate(filters, page, limit)
        return {'items': items, 'pagination': build_pagination(total, page, limit)}

    def search(self, query: str = None, status: str = None,
               start_date: str = None, end_date: str = None) -> list:
        """Substring search over references, services, vehicles and customers."""
        _validate_filter_dates(start_date, end_date)
        filters = {
            'status': normalize_status(status) if status else None,
            'start_date': start_date,
            'end_date': end_date,
        }
        return self.store.search(
            (query or '').strip() or None, filters, limit=self.settings['SEARCH_LIMIT']
        )

    def available_slots(self, reservation_date: str, duration=None, service_type: str = None) -> dict:
        """
        Free start times for a day.

        Args:
            reservation_date: Day (YYYY-MM-DD)
            duration: Minutes; overrides the service duration when given
            service_type: Take the duration from this service

        Raises:
            ValidationError: Bad date, duration or unknown service
        """
        if duration in (None, ''):
            if service_type:
                service = self.services.get_service(service_type)
                if not service:
                    raise ValidationError('Invalid service type', fields=['service_type'])
                duration = service['duration_minutes']
            else:
                duration = self.settings['DEFAULT_SERVICE_DURATION']

        try:
            duration = int(duration)
        except (TypeError, ValueError):
            raise ValidationError('Duration must be a whole number of minutes', fields=['duration'])

        return get_available_slots(self.store, reservation_date, duration, self.settings)

    def stats(self, start_date: str = None, end_date: str = None) -> dict:
        _validate_filter_dates(start_date, end_date)
        return get_booking_stats(self.store, self.clock, start_date, end_date)

    # =========================================================================
    # STATUS
    # =========================================================================

    def update_status(self, reservation_id: int, new_status: str, notes: str = None,
                      changed_by: str = None) -> dict:
        """
        Move a reservation to a new status.

        Completing a paid reservation credits the customer once:
        floor(price / LOYALTY_POINTS_DIVISOR) points and the price as spend.
        Requesting the current status again is accepted and changes nothing
        except the notes.

        Raises:
            ValidationError: Unknown status
            NotFoundError: Unknown reservation
            InvalidTransitionError: Edge not in the transition table
        """
        new_status = normalize_status(new_status)
        reservation = self.get(reservation_id)
        old_status = reservation['status']

        changed = validate_status_transition(old_status, new_status)
        notes = sanitize_input(notes, 2000) or None

        if not changed and not notes:
            return reservation

        now = self._timestamp()
        fields = {'updated_at': now}
        if changed:
            fields['status'] = new_status
        if notes:
            fields['notes'] = notes

        credit = (
            changed
            and new_status == STATUS_COMPLETED
            and reservation['payment_status'] == PAYMENT_PAID
            and not reservation['loyalty_credited']
        )
        if credit:
            fields['loyalty_credited'] = True

        with self.store.transaction():
            self.store.update(reservation_id, fields)
            if changed:
                self.store.add_history(reservation_id, old_status, new_status,
                                       changed_by, notes, now)
            if credit:
                self._credit_loyalty(reservation, now)

        if changed:
            logger.info('Reservation %s: %s -> %s', reservation['reference_number'],
                        old_status, new_status)

        return self.get(reservation_id)

    def _credit_loyalty(self, reservation: dict, now: str):
        price = float(reservation['total_price'])
        points = int(price // self.settings['LOYALTY_POINTS_DIVISOR'])
        customer_id = reservation['customer_id']

        self.customers.increment_loyalty(customer_id, points, updated_at=now)
        self.customers.increment_spend(customer_id, price, updated_at=now)

        logger.info('Customer %s credited %d points and %.2f spend for %s',
                    customer_id, points, price, reservation['reference_number'])

    # =========================================================================
    # PAYMENT
    # =========================================================================

    def update_payment_status(self, reservation_id: int, payment_status: str,
                              payment_method: str = None, transaction_id: str = None,
                              changed_by: str = None) -> dict:
        """
        Record a payment status change.

        A pending reservation that becomes paid is confirmed automatically.
        Payment updates are accepted in every status, including terminal ones.

        Raises:
            ValidationError: Unknown payment status or method
            NotFoundError: Unknown reservation
        """
        payment_status = normalize_payment_status(payment_status)
        if payment_method:
            payment_method = normalize_payment_method(payment_method)

        reservation = self.get(reservation_id)
        now = self._timestamp()

        fields = {'payment_status': payment_status, 'updated_at': now}
        if payment_method:
            fields['payment_method'] = payment_method
        if transaction_id:
            fields['transaction_id'] = sanitize_input(str(transaction_id), 120)

        auto_confirm = payment_status == PAYMENT_PAID and reservation['status'] == STATUS_PENDING
        if auto_confirm:
            fields['status'] = STATUS_CONFIRMED

        with self.store.transaction():
            self.store.update(reservation_id, fields)
            if auto_confirm:
                self.store.add_history(reservation_id, STATUS_PENDING, STATUS_CONFIRMED,
                                       changed_by, 'Confirmed on payment', now)

        logger.info('Reservation %s payment: %s -> %s%s', reservation['reference_number'],
                    reservation['payment_status'], payment_status,
                    ' (auto-confirmed)' if auto_confirm else '')

        return self.get(reservation_id)

    # =========================================================================
    # CANCEL
    # =========================================================================

    def cancel(self, reservation_id: int, reason: str = None, refund_amount=None,
               changed_by: str = None) -> dict:
        """
        Cancel a reservation and free its slot.

        A refund amount is only validated and recorded when the reservation
        was paid; for unpaid reservations it is ignored.

        Raises:
            NotFoundError: Unknown reservation
            InvalidTransitionError: Already cancelled or completed
            ValidationError: Paid reservation with a refund amount not in (0, price]
        """
        reservation = self.get(reservation_id)
        old_status = reservation['status']

        if is_terminal(old_status):
            raise InvalidTransitionError(old_status, STATUS_CANCELLED, 'Booking cannot be cancelled')

        refund = None
        if refund_amount not in (None, '') and reservation['payment_status'] == PAYMENT_PAID:
            refund = parse_amount(refund_amount)
            if refund is None or refund <= 0 or refund > float(reservation['total_price']):
                raise ValidationError(
                    'Refund amount must be a positive number not exceeding the booking price',
                    fields=['refund_amount']
                )

        reason = sanitize_input(reason, 500) or None
        now = self._timestamp()
        fields = {'status': STATUS_CANCELLED, 'updated_at': now}

        if reason:
            previous = reservation.get('notes')
            fields['notes'] = f'{previous}\nCancelled: {reason}' if previous else f'Cancelled: {reason}'

        if refund:
            fields['refund_amount'] = refund
            fields['refund_status'] = REFUND_PENDING

        with self.store.transaction():
            self.store.update(reservation_id, fields)
            self.store.add_history(reservation_id, old_status, STATUS_CANCELLED,
                                   changed_by, reason, now)

        logger.info('Reservation %s cancelled%s', reservation['reference_number'],
                    f' with refund {refund:.2f} pending' if 'refund_status' in fields else '')

        return self.get(reservation_id)


# =============================================================================
# FACTORY
# =============================================================================

def get_reservation_manager() -> ReservationManager:
    """Build a manager wired to the SQLite stores and the app config."""
    return ReservationManager(
        store=ReservationStore(),
        customers=CustomerStore(),
        pricing=CatalogPricing(),
        services=ServiceCatalog(),
        clock=get_clock(),
        settings=current_app.config
    )
