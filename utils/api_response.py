"""
Standardized API response helpers.

Every JSON endpoint answers with the same envelope:

    Success:  {"success": true, "data": {...}, "message": "..."}
    Error:    {"success": false, "error": "message", ...context}

Usage:
    from utils.api_response import api_success, api_error

    return api_success(data=booking, message='Booking created', status=201)
    return api_error('Booking not found', status=404)
"""

from flask import jsonify
from typing import Any


def api_success(
    data: Any = None,
    message: str | None = None,
    status: int = 200,
    **extra_fields: Any
) -> tuple:
    """
    Build a success JSON response.

    Args:
        data: Payload for the 'data' key (omitted when None).
        message: Optional human-readable message.
        status: HTTP status code (default 200).
        **extra_fields: Additional top-level fields (e.g., pagination).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': True}

    if data is not None:
        response['data'] = data

    if message:
        response['message'] = message

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_error(error: str, status: int = 400, **extra_fields: Any) -> tuple:
    """
    Build an error JSON response.

    Args:
        error: Error message safe to show to the client.
        status: HTTP status code (default 400).
        **extra_fields: Error context (e.g., fields, current_status).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': False, 'error': error}

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def error_response(exc) -> tuple:
    """Turn a BookingError into the error envelope with its HTTP status."""
    return api_error(exc.message, status=exc.status_code, **exc.to_dict())
