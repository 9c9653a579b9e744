"""
Reservation pricing.

price = (service base price x vehicle multiplier + extras) x condition surcharge

The booking engine only sees price(service_type, vehicle_type, extras,
condition); any object with that method can stand in for CatalogPricing.
"""

import logging

from models.errors import ValidationError
from models.service import ServiceCatalog

logger = logging.getLogger(__name__)

# Surcharge applied on top of the subtotal for heavily soiled vehicles
CONDITION_SURCHARGES = {
    'excellent': 0.0,
    'good': 0.0,
    'fair': 0.10,
    'poor': 0.25,
}


class CatalogPricing:
    """Prices bookings from the service catalog tables."""

    def __init__(self, catalog: ServiceCatalog = None):
        self.catalog = catalog or ServiceCatalog()

    def price(self, service_type: str, vehicle_type: str, extras: list = None,
              condition: str = None) -> float:
        """
        Calculate the price of a booking.

        Args:
            service_type: Service name
            vehicle_type: Vehicle type code (unknown types use multiplier 1.0)
            extras: Extra codes (unknown codes are ignored)
            condition: Vehicle condition (unknown/missing means no surcharge)

        Returns:
            float: Non-negative price rounded to 2 decimals

        Raises:
            ValidationError: If the service does not exist
        """
        service = self.catalog.get_service(service_type)
        if not service:
            raise ValidationError('Invalid service type', fields=['service_type'])

        vehicle = self.catalog.get_vehicle_type(vehicle_type)
        multiplier = vehicle['price_multiplier'] if vehicle else 1.0
        if not vehicle:
            logger.debug('Unknown vehicle type %r priced at base multiplier', vehicle_type)

        subtotal = float(service['base_price']) * float(multiplier)

        for extra in self.catalog.get_extras(list(extras or [])):
            subtotal += float(extra['price'])

        surcharge = CONDITION_SURCHARGES.get((condition or '').strip().lower(), 0.0)
        total = round(subtotal * (1 + surcharge), 2)

        return max(total, 0.0)
