"""
Authentication routes: login, logout, current user.
Staff sessions are cookie based (Flask-Login); the endpoints speak JSON.
"""

import logging

from flask import Blueprint, request
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from extensions import csrf
from models.user import User, check_password, get_user_by_username, update_last_login
from utils.api_response import api_error, api_success
from utils.datetime_helpers import format_timestamp, get_clock
from utils.messages import get_message

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
@csrf.exempt
def login():
    """
    Start a staff session.

    Body: username, password, remember (optional)
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return api_error(get_message('json_required'), 400)

    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    if not username or not password:
        return api_error(get_message('credentials_required'), 400,
                         fields=[f for f in ('username', 'password') if not data.get(f)])

    user_dict = get_user_by_username(username)
    if user_dict is None or not check_password(user_dict, password):
        logger.info('Failed login for %r', username)
        return api_error(get_message('invalid_credentials'), 401)

    if not user_dict.get('active'):
        return api_error(get_message('account_disabled'), 403)

    user = User(user_dict)
    login_user(user, remember=bool(data.get('remember')))
    update_last_login(user.id, format_timestamp(get_clock().now()))

    logger.info('User %s signed in', user.username)

    return api_success(
        data=user.to_dict(),
        message=get_message('login_success', name=user.full_name or user.username),
        csrf_token=generate_csrf()
    )


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """End the current session."""
    logout_user()
    return api_success(message=get_message('logout_success'))


@auth_bp.route('/me')
@login_required
def me():
    """Current staff user."""
    return api_success(data=current_user.to_dict())


@auth_bp.route('/csrf-token')
def csrf_token():
    """CSRF token for session requests (send back as X-CSRFToken)."""
    return api_success(data={'csrf_token': generate_csrf()})
