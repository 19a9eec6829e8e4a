from .entities import CallbackValidation, Transaction, TransactionStatus
from .repositories import TransactionRepository

__all__ = [
    "CallbackValidation",
    "Transaction",
    "TransactionRepository",
    "TransactionStatus",
]
