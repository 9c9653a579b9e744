"""
Booking API routes.

Public: create a booking, look one up by reference, list free slots.
Staff (login required): list, search, stats, detail, history and the
status/payment/cancel operations.

Booking errors raised by the manager propagate to the handlers registered
in app.py, which turn them into JSON error responses.
"""

from flask import request
from flask_login import login_required, current_user

from extensions import csrf
from models.reservation import get_reservation_manager
from utils.api_response import api_error, api_success
from utils.messages import get_message


def _json_body():
    """Request JSON as a dict, or None when missing/invalid."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _staff_name():
    return current_user.username if current_user.is_authenticated else None


def register_routes(bp):
    """Register booking routes on the API blueprint."""

    # ============================================================================
    # PUBLIC
    # ============================================================================

    @bp.route('/bookings', methods=['POST'])
    @csrf.exempt
    def create_booking():
        """
        Create a booking.

        Body: customer_name, customer_email, date, time, service_type,
        vehicle_type, payment_method and optional phone, vehicle_year,
        vehicle_make, vehicle_model, condition, extras, appointment_type, notes.
        """
        data = _json_body()
        if data is None:
            return api_error(get_message('json_required'), 400)

        booking = get_reservation_manager().create(data, created_by=_staff_name())
        return api_success(data=booking, message=get_message('booking_created'), status=201)

    @bp.route('/bookings/reference/<reference_number>')
    def booking_by_reference(reference_number):
        """Look up a booking by its reference (customer self-service)."""
        return api_success(data=get_reservation_manager().get_by_reference(reference_number))

    @bp.route('/bookings/available-slots/<reservation_date>')
    def available_slots(reservation_date):
        """
        Free start times for a day.

        Query params:
            duration: Minutes (default: service duration or the configured default)
            service_type: Use this service's duration
        """
        result = get_reservation_manager().available_slots(
            reservation_date,
            duration=request.args.get('duration'),
            service_type=request.args.get('service_type')
        )
        return api_success(data=result)

    # ============================================================================
    # STAFF
    # ============================================================================

    @bp.route('/bookings')
    @login_required
    def list_bookings():
        """
        Paginated bookings, newest first.

        Query params: status, customer_email, start_date, end_date, page, limit
        """
        result = get_reservation_manager().list_reservations(
            status=request.args.get('status'),
            customer_email=request.args.get('customer_email'),
            start_date=request.args.get('start_date'),
            end_date=request.args.get('end_date'),
            page=request.args.get('page'),
            limit=request.args.get('limit')
        )
        return api_success(data=result['items'], pagination=result['pagination'])

    @bp.route('/bookings/search')
    @login_required
    def search_bookings():
        """Query params: q, status, start_date, end_date."""
        results = get_reservation_manager().search(
            request.args.get('q'),
            status=request.args.get('status'),
            start_date=request.args.get('start_date'),
            end_date=request.args.get('end_date')
        )
        return api_success(data=results, count=len(results))

    @bp.route('/bookings/stats')
    @login_required
    def booking_stats():
        """Dashboard statistics for an optional date range."""
        stats = get_reservation_manager().stats(
            start_date=request.args.get('start_date'),
            end_date=request.args.get('end_date')
        )
        return api_success(data=stats)

    @bp.route('/bookings/<int:reservation_id>')
    @login_required
    def booking_detail(reservation_id):
        return api_success(data=get_reservation_manager().get(reservation_id))

    @bp.route('/bookings/<int:reservation_id>/history')
    @login_required
    def booking_history(reservation_id):
        return api_success(data=get_reservation_manager().get_history(reservation_id))

    @bp.route('/bookings/<int:reservation_id>/status', methods=['PATCH'])
    @login_required
    def update_booking_status(reservation_id):
        """Body: status, notes (optional)."""
        data = _json_body()
        if data is None:
            return api_error(get_message('json_required'), 400)
        if not data.get('status'):
            return api_error(get_message('status_required'), 400, fields=['status'])

        booking = get_reservation_manager().update_status(
            reservation_id, data['status'],
            notes=data.get('notes'),
            changed_by=_staff_name()
        )
        return api_success(data=booking, message=get_message('booking_status_updated'))

    @bp.route('/bookings/<int:reservation_id>/payment', methods=['PATCH'])
    @login_required
    def update_booking_payment(reservation_id):
        """Body: payment_status, payment_method (optional), transaction_id (optional)."""
        data = _json_body()
        if data is None:
            return api_error(get_message('json_required'), 400)
        if not data.get('payment_status'):
            return api_error(get_message('payment_status_required'), 400,
                             fields=['payment_status'])

        booking = get_reservation_manager().update_payment_status(
            reservation_id, data['payment_status'],
            payment_method=data.get('payment_method'),
            transaction_id=data.get('transaction_id'),
            changed_by=_staff_name()
        )
        return api_success(data=booking, message=get_message('booking_payment_updated'))

    @bp.route('/bookings/<int:reservation_id>/cancel', methods=['POST'])
    @login_required
    def cancel_booking(reservation_id):
        """Body (optional): reason, refund_amount."""
        data = _json_body() or {}

        booking = get_reservation_manager().cancel(
            reservation_id,
            reason=data.get('reason'),
            refund_amount=data.get('refund_amount'),
            changed_by=_staff_name()
        )
        return api_success(data=booking, message=get_message('booking_cancelled'))
