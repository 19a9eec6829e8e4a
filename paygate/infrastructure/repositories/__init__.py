from .transactions import SqlAlchemyTransactionRepository
from .users import SqlAlchemySessionRepository, SqlAlchemyUserRepository

__all__ = [
    "SqlAlchemySessionRepository",
    "SqlAlchemyTransactionRepository",
    "SqlAlchemyUserRepository",
]
