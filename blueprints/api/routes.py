"""
API routes for JSON endpoints.
Public catalog and health endpoints; booking routes are registered from
blueprints.api.bookings.
"""

from flask import Blueprint, current_app

from models.service import ServiceCatalog
from utils.api_response import api_success

api_bp = Blueprint('api', __name__)


@api_bp.route('/health')
def health_check():
    """
    Health check endpoint (no authentication required).

    Returns:
        JSON with status and version
    """
    return api_success(data={
        'status': 'ok',
        'version': current_app.config['APP_VERSION'],
        'app': current_app.config['APP_NAME']
    })


@api_bp.route('/services')
def api_services():
    """
    Service catalog for the booking form.

    Returns:
        JSON with services, vehicle types and extras
    """
    catalog = ServiceCatalog()

    return api_success(data={
        'services': catalog.get_all_services(),
        'vehicle_types': catalog.get_all_vehicle_types(),
        'extras': catalog.get_all_extras()
    })


# Booking routes live in their own module
from blueprints.api import bookings  # noqa: E402

bookings.register_routes(api_bp)
