from .base import ErrorKind, Failure
from .http import ErrorTranslator, register_error_handler
from .validation import validation_failure

__all__ = [
    "ErrorKind",
    "ErrorTranslator",
    "Failure",
    "register_error_handler",
    "validation_failure",
]
