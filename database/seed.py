"""
Database seed data.
Initial data population for fresh database installations.
"""

import os

from werkzeug.security import generate_password_hash


def seed_database(db):
    """Insert initial seed data."""

    # 1. Service catalog (name, description, duration, base price, order)
    services_data = [
        ('Express Wash', 'Exterior hand wash and dry', 30, 350.0, 1),
        ('Interior Detail', 'Vacuum, upholstery shampoo and dashboard care', 90, 1200.0, 2),
        ('Full Detail', 'Complete interior and exterior detail', 180, 2500.0, 3),
        ('Ceramic Coating', 'Paint correction and ceramic protection', 240, 6500.0, 4),
        ('Paint Correction', 'Single-stage machine polish', 120, 3000.0, 5),
    ]

    for name, description, duration, base_price, display_order in services_data:
        db.execute('''
            INSERT INTO services (name, description, duration_minutes, base_price, display_order)
            VALUES (?, ?, ?, ?, ?)
        ''', (name, description, duration, base_price, display_order))

    # 2. Vehicle types and their price multipliers
    vehicle_types_data = [
        ('sedan', 'Sedan', 1.0),
        ('hatchback', 'Hatchback', 1.0),
        ('coupe', 'Coupe', 1.0),
        ('suv', 'SUV', 1.2),
        ('van', 'Van', 1.3),
        ('truck', 'Pickup Truck', 1.3),
    ]

    for code, name, multiplier in vehicle_types_data:
        db.execute('''
            INSERT INTO vehicle_types (code, name, price_multiplier)
            VALUES (?, ?, ?)
        ''', (code, name, multiplier))

    # 3. Extras
    extras_data = [
        ('engine_bay', 'Engine bay cleaning', 300.0),
        ('headlight_restore', 'Headlight restoration', 450.0),
        ('pet_hair', 'Pet hair removal', 250.0),
        ('odor_treatment', 'Ozone odor treatment', 400.0),
        ('wax', 'Carnauba wax finish', 350.0),
    ]

    for code, name, price in extras_data:
        db.execute('''
            INSERT INTO service_extras (code, name, price)
            VALUES (?, ?, ?)
        ''', (code, name, price))

    # 4. Optional bootstrap admin (set ADMIN_PASSWORD to enable)
    admin_password = os.environ.get('ADMIN_PASSWORD')
    if admin_password:
        db.execute('''
            INSERT INTO users (username, email, password_hash, full_name, active)
            VALUES (?, ?, ?, ?, ?)
        ''', ('admin', os.environ.get('ADMIN_EMAIL', 'admin@autoglow.local'),
              generate_password_hash(admin_password), 'System Administrator', 1))
