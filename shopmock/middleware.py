"""Middleware for identity resolution, rate limiting and access control."""
import inspect
from functools import wraps

from flask import g, request

from shopmock.blueprints.metrics import rate_limited_total
from shopmock.exceptions import AuthError, ForbiddenError, RateLimitError
from shopmock.services.auth_service import resolve_session
from shopmock.services.rate_limit_service import TrustTier
from shopmock.state import get_state


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header.split(' ', 1)[1].strip() or None
    return None


def load_identity():
    """
    Load the caller's session and identity into g.

    Called before each request. An invalid or expired token leaves the request
    anonymous; ``require_auth`` turns that into a 401 where it matters.
    """
    g.session = None
    g.identity = None
    g.auth_token = _bearer_token()

    if g.auth_token:
        session = resolve_session(get_state(), g.auth_token)
        if session is not None:
            g.session = session
            g.identity = session.identity


def enforce_rate_limit():
    """Admit or reject the request for the current client address."""
    g.rate_limit_status = None
    state = get_state()
    client_key = request.remote_addr or 'unknown'
    tier = TrustTier.for_identity(g.get('identity'))
    try:
        g.rate_limit_status = state.rate_limiter.check(client_key, tier, request.path)
    except RateLimitError:
        rate_limited_total.labels(tier.value).inc()
        raise


def apply_rate_limit_headers(response):
    status = g.get('rate_limit_status')
    if status is not None:
        response.headers.update(status.headers())
    return response


def _check_authenticated():
    if g.get('session') is None:
        if g.get('auth_token'):
            raise AuthError('Invalid or expired token')
        raise AuthError('Access token required')


def _check_admin():
    _check_authenticated()
    if not g.identity.is_admin:
        raise ForbiddenError('Admin access required')


def _guard(check):
    def decorator(f):
        if inspect.iscoroutinefunction(f):
            @wraps(f)
            async def async_decorated_function(*args, **kwargs):
                check()
                return await f(*args, **kwargs)
            return async_decorated_function

        @wraps(f)
        def decorated_function(*args, **kwargs):
            check()
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def require_auth(f):
    """Decorator: require a valid bearer token bound to a live session."""
    return _guard(_check_authenticated)(f)


def require_admin(f):
    """Decorator: require an authenticated admin identity."""
    return _guard(_check_admin)(f)
