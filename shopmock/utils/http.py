"""Request parsing helpers shared by the JSON blueprints."""
from flask import current_app, request


def json_body() -> dict:
    """Request JSON object, or an empty dict for a missing or non-object body."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def set_refresh_cookie(response, token):
    config = current_app.config
    response.set_cookie(
        config.get('REFRESH_COOKIE_NAME', 'refreshToken'),
        token,
        httponly=True,
        secure=config.get('REFRESH_COOKIE_SECURE', False),
        samesite='Strict',
        max_age=config.get('JWT_REFRESH_EXPIRES_SECONDS', 7 * 24 * 60 * 60)
    )
    return response


def clear_refresh_cookie(response):
    response.delete_cookie(current_app.config.get('REFRESH_COOKIE_NAME', 'refreshToken'))
    return response


def refresh_cookie():
    return request.cookies.get(current_app.config.get('REFRESH_COOKIE_NAME', 'refreshToken'))
