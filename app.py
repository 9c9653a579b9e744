"""
AutoGlow - Car Care Booking Backend
Flask application factory and initialization
"""

import os
import click
import logging
import sqlite3
from flask import Flask, g, request
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager, csrf

# Import database functions
from database import close_db, init_db

from models.errors import BookingError
from models.reservation_availability import CONFLICT_MODES
from utils.api_response import api_error, error_response
from utils.messages import get_message


def create_app(config_name=None, overrides=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')
        overrides: Optional dict applied on top of the config class

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    config_class = config[config_name]
    if config_name == 'production':
        config_class.validate()

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    if app.config.get('CONFLICT_MODE') not in CONFLICT_MODES:
        raise ValueError(f"CONFLICT_MODE must be one of: {', '.join(CONFLICT_MODES)}")

    # Configure logging
    configure_logging(app)

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    login_manager.init_app(app)
    csrf.init_app(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    from blueprints.auth.routes import auth_bp
    from blueprints.api.routes import api_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(api_bp, url_prefix='/api')


def register_error_handlers(app):
    """Register JSON error handlers."""

    @app.errorhandler(BookingError)
    def booking_error(error):
        if error.status_code >= 500:
            app.logger.error('Booking failure: %s', error.message)
        return error_response(error)

    @app.errorhandler(404)
    def not_found_error(error):
        return api_error(get_message('not_found'), 404)

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return api_error(get_message('method_not_allowed'), 405)

    @app.errorhandler(HTTPException)
    def http_error(error):
        return api_error(error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def unexpected_error(error):
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        app.logger.exception('Unhandled error on %s %s', request.method, request.path)
        return api_error(get_message('server_error'), 500)


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('create-user')
    @click.argument('username')
    @click.argument('email')
    @click.option('--full-name', default=None, help='Display name')
    @click.password_option()
    def create_user_command(username, email, full_name, password):
        """Create a new staff user."""
        from models.user import create_user

        with app.app_context():
            try:
                user_id = create_user(
                    username=username,
                    email=email,
                    password=password,
                    full_name=full_name
                )
            except sqlite3.IntegrityError:
                raise click.ClickException(f'Username or email already exists: {username} / {email}')
            click.echo(f'User created successfully! ID: {user_id}')


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/autoglow.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        # Domain modules log through their own module loggers
        for name in ('models', 'blueprints'):
            domain_logger = logging.getLogger(name)
            domain_logger.setLevel(logging.INFO)
            domain_logger.addHandler(file_handler)

        app.logger.setLevel(logging.INFO)
        app.logger.info('AutoGlow startup')
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)
        for name in ('models', 'blueprints'):
            logging.getLogger(name).setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', debug=True)
