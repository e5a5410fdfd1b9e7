"""
User directory - demo accounts, registration and admin user management.

Accounts live for the process lifetime. Deleting an account also destroys
every session (and therefore every cart) it owns.
"""
import logging
import threading
from functools import lru_cache
from typing import Dict, List, Optional

from shopmock.exceptions import (
    AccountLockedError, AuthError, ForbiddenError, InvalidInputError,
    UserNotFoundError, UsernameTakenError, ValidationError
)
from shopmock.models import BehaviorType, User, UserRole
from werkzeug.security import generate_password_hash

logger = logging.getLogger(__name__)

PROTECTED_USERNAME = 'admin'
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 5

SEED_USERS = [
    ('standard_user', 'secret_sauce', UserRole.USER, BehaviorType.STANDARD),
    ('locked_out_user', 'secret_sauce', UserRole.USER, BehaviorType.LOCKED),
    ('problem_user', 'secret_sauce', UserRole.USER, BehaviorType.PROBLEM),
    ('performance_glitch_user', 'secret_sauce', UserRole.USER, BehaviorType.PERFORMANCE),
    ('visual_user', 'secret_sauce', UserRole.USER, BehaviorType.VISUAL),
    ('error_user', 'secret_sauce', UserRole.USER, BehaviorType.ERROR),
    ('admin', 'admin123', UserRole.ADMIN, BehaviorType.STANDARD),
]


@lru_cache(maxsize=None)
def _seed_password_hash(password: str) -> str:
    """Seed accounts share two passwords; hash each once per process."""
    return generate_password_hash(password, method='scrypt')


class UserDirectory:
    """Username to User mapping, insertion ordered."""

    def __init__(self, users: List[User] = None):
        self._users: Dict[str, User] = {}
        # Held across account deletion and session creation for that account
        self.lock = threading.RLock()
        for user in users or []:
            self._users[user.username] = user

    @classmethod
    def seeded(cls) -> 'UserDirectory':
        users = []
        for username, password, role, behavior in SEED_USERS:
            user = User(username, role=role, behavior=behavior)
            user.password_hash = _seed_password_hash(password)
            users.append(user)
        return cls(users)

    def get(self, username) -> Optional[User]:
        return self._users.get(username)

    def require(self, username) -> User:
        user = self.get(username)
        if user is None:
            raise UserNotFoundError()
        return user

    def all(self) -> List[User]:
        return list(self._users.values())

    def __len__(self):
        return len(self._users)

    def add(self, user: User) -> User:
        with self.lock:
            if user.username in self._users:
                raise UsernameTakenError()
            self._users[user.username] = user
        return user

    def remove(self, username) -> User:
        with self.lock:
            user = self._users.pop(username, None)
        if user is None:
            raise UserNotFoundError()
        return user


def authenticate(state, username, password) -> User:
    """
    Check credentials.

    Raises:
        AuthError: unknown user or wrong password
        AccountLockedError: credentials are right but the account is locked
    """
    user = state.users.get(username) if isinstance(username, str) else None
    if not user or not user.check_password(password):
        logger.info(f"[AUTH] Invalid credentials for {username!r}")
        raise AuthError('Invalid credentials')
    if user.is_locked:
        logger.info(f"[AUTH] Locked account login attempt: {username}")
        raise AccountLockedError()
    return user


def register(state, username, password) -> User:
    """Self-service registration of a standard user."""
    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        raise ValidationError('username and password required')
    if len(username) < MIN_USERNAME_LENGTH or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f'username >= {MIN_USERNAME_LENGTH} chars, password >= {MIN_PASSWORD_LENGTH} chars'
        )

    user = state.users.add(User(username, password=password))
    logger.info(f"[USERS] Registered {username}")
    return user


def create_user(state, username, password, role='user', behavior='standard') -> User:
    """Admin creation of an account with an explicit role and behavior."""
    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        raise ValidationError('username and password required')

    try:
        parsed_role = UserRole(role)
    except ValueError:
        raise InvalidInputError(f'Invalid role: {role}')

    parsed_behavior = BehaviorType.parse(behavior)
    if parsed_behavior is None:
        raise InvalidInputError(f'Invalid type: {behavior}')
    # Behavior quirks only apply to regular users
    if parsed_role == UserRole.ADMIN:
        parsed_behavior = BehaviorType.STANDARD

    user = state.users.add(User(username, role=parsed_role, behavior=parsed_behavior, password=password))
    logger.info(f"[USERS] Admin created {username} ({parsed_role.value}/{parsed_behavior.value})")
    return user


def change_password(state, username, password) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be >= {MIN_PASSWORD_LENGTH} chars')
    state.users.require(username).set_password(password)


def delete_user(state, username) -> User:
    """
    Delete an account and every session it owns.

    Raises:
        ForbiddenError: the built-in admin account cannot be deleted
        UserNotFoundError: unknown username
    """
    if username == PROTECTED_USERNAME:
        raise ForbiddenError('Cannot delete admin')

    with state.users.lock:
        user = state.users.remove(username)
        state.sessions.destroy_for_user(username)
    logger.info(f"[USERS] Deleted {username}")
    return user
