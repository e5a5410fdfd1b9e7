"""
Authentication service - token issuance and identity resolution.

Access and refresh tokens are JWTs that carry the session token (``sid``).
The commerce engine only ever sees the resolved Session/Identity.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

import jwt

from shopmock.exceptions import AuthError
from shopmock.models import Session
from shopmock.services import user_service
from shopmock.services.latency_service import LatencyPoint

logger = logging.getLogger(__name__)

ACCESS = 'access'
REFRESH = 'refresh'


class TokenIssuer:
    """Signs and verifies JWTs for sessions."""

    def __init__(self, secret: str, algorithm: str = 'HS256',
                 access_ttl: int = 24 * 60 * 60, refresh_ttl: int = 7 * 24 * 60 * 60):
        self._secret = secret
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_config(cls, config) -> 'TokenIssuer':
        return cls(
            secret=config['JWT_SECRET'],
            algorithm=config.get('JWT_ALGORITHM', 'HS256'),
            access_ttl=config.get('JWT_ACCESS_EXPIRES_SECONDS', 24 * 60 * 60),
            refresh_ttl=config.get('JWT_REFRESH_EXPIRES_SECONDS', 7 * 24 * 60 * 60)
        )

    def _encode(self, claims: Dict, ttl: int) -> str:
        now = datetime.now(timezone.utc)
        payload = dict(claims, iat=now, exp=now + timedelta(seconds=ttl))
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue(self, session: Session) -> Tuple[str, str]:
        """Return (access_token, refresh_token) for a session."""
        identity = session.identity
        access = self._encode({
            'sub': identity.username,
            'role': identity.role.value,
            'type': identity.behavior.value,
            'sid': session.token,
            'typ': ACCESS,
        }, self.access_ttl)
        refresh = self._encode({
            'sub': identity.username,
            'sid': session.token,
            'typ': REFRESH,
        }, self.refresh_ttl)
        return access, refresh

    def decode(self, token, expected_type: str) -> Optional[Dict]:
        """Verified claims, or None for a missing, expired or malformed token."""
        if not token or not isinstance(token, str):
            return None
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            logger.debug("[AUTH] Expired token")
            return None
        except jwt.InvalidTokenError:
            logger.debug("[AUTH] Invalid token")
            return None
        if payload.get('typ') != expected_type:
            return None
        return payload


def resolve_session(state, token, expected_type: str = ACCESS) -> Optional[Session]:
    """Map a bearer token to its live session, or None."""
    payload = state.tokens.decode(token, expected_type)
    if payload is None:
        return None
    session = state.sessions.get(payload.get('sid'))
    if session is None or session.username != payload.get('sub'):
        return None
    return session


async def login(state, username, password) -> Tuple[Session, str, str]:
    """
    Authenticate and open a new session.

    Performance-glitch users wait for the injected login delay before the
    session is created.
    """
    user = user_service.authenticate(state, username, password)
    identity = user.identity()
    await state.latency.inject(identity, LatencyPoint.LOGIN)

    # The account may have been deleted while the delay was pending
    with state.users.lock:
        if state.users.get(user.username) is not user:
            logger.info(f"[AUTH] {user.username} removed during login, no session created")
            raise AuthError('Invalid credentials')
        session = state.sessions.create(identity)
    access, refresh = state.tokens.issue(session)
    logger.info(f"[AUTH] Login: {user.username}")
    return session, access, refresh


def refresh(state, refresh_token) -> Tuple[Session, str, str]:
    if not refresh_token:
        raise AuthError('Refresh token required')
    session = resolve_session(state, refresh_token, expected_type=REFRESH)
    if session is None:
        raise AuthError('Invalid refresh token')
    access, new_refresh = state.tokens.issue(session)
    return session, access, new_refresh


def logout(state, session: Optional[Session] = None, refresh_token=None) -> bool:
    """Destroy the session named by the bearer session or the refresh token."""
    if session is None and refresh_token:
        session = resolve_session(state, refresh_token, expected_type=REFRESH)
    if session is None:
        return False
    return state.sessions.destroy(session.token)
