"""Session store - opaque token to session record."""
import logging
import secrets
import threading
from typing import Dict, List, Optional

from shopmock.models import Identity, Session

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Exclusive owner of Session objects.

    One session is created per login call. Re-login creates a new token and
    does not invalidate older ones; they live until logout or account
    deletion.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, identity: Identity) -> Session:
        with self._lock:
            token = secrets.token_urlsafe(32)
            while token in self._sessions:
                token = secrets.token_urlsafe(32)
            session = Session(token=token, identity=identity)
            self._sessions[token] = session
        logger.info(f"[SESSION] Created session for {identity.username}")
        return session

    def get(self, token) -> Optional[Session]:
        if not token:
            return None
        return self._sessions.get(token)

    def destroy(self, token) -> bool:
        with self._lock:
            session = self._sessions.pop(token, None)
        if session:
            logger.info(f"[SESSION] Destroyed session for {session.username}")
        return session is not None

    def destroy_for_user(self, username: str) -> int:
        """Destroy every session belonging to ``username``."""
        with self._lock:
            tokens = [t for t, s in self._sessions.items() if s.username == username]
            for token in tokens:
                del self._sessions[token]
        if tokens:
            logger.info(f"[SESSION] Destroyed {len(tokens)} session(s) for {username}")
        return len(tokens)

    def for_user(self, username: str) -> List[Session]:
        with self._lock:
            return [s for s in self._sessions.values() if s.username == username]

    def any_cart_references(self, product_id: int) -> bool:
        with self._lock:
            return any(s.references(product_id) for s in self._sessions.values())

    def __len__(self):
        return len(self._sessions)
