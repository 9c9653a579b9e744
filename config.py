"""
Flask application configuration classes.
Provides configuration for development, production, and testing environments.
"""

import os
from datetime import timedelta


class Config:
    """Base configuration class with common settings."""

    # Secret key for session management and CSRF protection
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database configuration
    DATABASE_PATH = os.environ.get('DATABASE_PATH') or 'instance/autoglow.db'

    # Security settings
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600  # CSRF token expires after 1 hour
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    PERMANENT_SESSION_LIFETIME = timedelta(
        hours=int(os.environ.get('SESSION_TIMEOUT_HOURS', 8))
    )

    # Pagination
    ITEMS_PER_PAGE = 20
    MAX_PAGE_SIZE = 100
    SEARCH_LIMIT = 50

    # Timezone
    TIMEZONE = os.environ.get('TIMEZONE', 'UTC')

    # Business hours and slot grid
    BUSINESS_OPEN_HOUR = int(os.environ.get('BUSINESS_OPEN_HOUR', 8))
    BUSINESS_CLOSE_HOUR = int(os.environ.get('BUSINESS_CLOSE_HOUR', 18))
    SLOT_GRANULARITY_MINUTES = int(os.environ.get('SLOT_GRANULARITY_MINUTES', 30))
    DEFAULT_SERVICE_DURATION = int(os.environ.get('DEFAULT_SERVICE_DURATION', 60))

    # 'overlap' blocks any intersecting interval, 'exact' only identical start times
    CONFLICT_MODE = os.environ.get('CONFLICT_MODE', 'overlap')

    # Booking references look like AG-1718000000000-X7K2QP
    REFERENCE_PREFIX = os.environ.get('REFERENCE_PREFIX', 'AG')

    # One loyalty point per this many currency units spent
    LOYALTY_POINTS_DIVISOR = 100

    # Application settings
    APP_NAME = 'AutoGlow'
    APP_VERSION = '1.0.0'


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    TESTING = False
    SESSION_COOKIE_SECURE = False
    WTF_CSRF_SSL_STRICT = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'true').lower() == 'true'
    WTF_CSRF_SSL_STRICT = SESSION_COOKIE_SECURE

    SECRET_KEY = os.environ.get('SECRET_KEY') or Config.SECRET_KEY
    DATABASE_PATH = os.environ.get('DATABASE_PATH') or Config.DATABASE_PATH

    # URL scheme preference (follows SESSION_COOKIE_SECURE setting)
    PREFERRED_URL_SCHEME = 'https' if SESSION_COOKIE_SECURE else 'http'

    @classmethod
    def validate(cls) -> None:
        """Validate that required production environment variables are set."""
        secret_key = os.environ.get('SECRET_KEY')
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable must be set in production")
        if len(secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters in production")
        if not os.environ.get('DATABASE_PATH'):
            raise ValueError("DATABASE_PATH environment variable must be set in production")


class TestConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    DEBUG = True
    WTF_CSRF_ENABLED = False  # Disable CSRF for tests
    DATABASE_PATH = os.environ.get('DATABASE_PATH', ':memory:')
    SECRET_KEY = 'test-secret-key'
    TIMEZONE = 'UTC'
    CONFLICT_MODE = 'overlap'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'test': TestConfig,
    'default': DevelopmentConfig
}
