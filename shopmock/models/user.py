"""User model - demo accounts with simulated behavior quirks."""
import enum
from dataclasses import dataclass

from werkzeug.security import generate_password_hash, check_password_hash


class UserRole(str, enum.Enum):
    """User role enum."""
    USER = 'user'
    ADMIN = 'admin'


class BehaviorType(str, enum.Enum):
    """Simulated quirk attached to an account."""
    STANDARD = 'standard'
    LOCKED = 'locked'
    PROBLEM = 'problem'
    PERFORMANCE = 'performance'
    VISUAL = 'visual'
    ERROR = 'error'

    @classmethod
    def parse(cls, value, default=None):
        """Return the member for ``value`` or ``default`` when unknown."""
        try:
            return cls(value)
        except ValueError:
            return default


@dataclass(frozen=True)
class Identity:
    """Authenticated identity as seen by the commerce engine."""
    username: str
    role: UserRole = UserRole.USER
    behavior: BehaviorType = BehaviorType.STANDARD

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class User:
    """Account stored in the user directory."""

    def __init__(self, username, role=UserRole.USER, behavior=BehaviorType.STANDARD, password=None):
        self.username = username
        self.role = UserRole(role)
        self.behavior = BehaviorType(behavior)
        self.password_hash = None
        if password is not None:
            self.set_password(password)

    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')

    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash or password is None:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_locked(self) -> bool:
        return self.behavior == BehaviorType.LOCKED

    def identity(self) -> Identity:
        return Identity(username=self.username, role=self.role, behavior=self.behavior)

    def to_dict(self):
        return {
            'username': self.username,
            'role': self.role.value,
            'type': self.behavior.value,
            'locked': self.is_locked,
        }

    def __repr__(self):
        return f"<User(username='{self.username}', role='{self.role.value}', type='{self.behavior.value}')>"
