from .payments import CallbackValidation, Transaction, TransactionStatus
from .users import Role, Session, User, role_of

__all__ = [
    "CallbackValidation",
    "Role",
    "Session",
    "Transaction",
    "TransactionStatus",
    "User",
    "role_of",
]
