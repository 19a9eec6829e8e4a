from .entities import Role, Session, User, role_of
from .repositories import PasswordHasher, SessionRepository, UserRepository

__all__ = [
    "PasswordHasher",
    "Role",
    "Session",
    "SessionRepository",
    "User",
    "UserRepository",
    "role_of",
]
