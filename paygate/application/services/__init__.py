from .auth_session import AuthSessionManager, IssuedToken, extract_bearer
from .password_hashing import WerkzeugPasswordHasher
from .payment_gateway import ZarinpalGateway

__all__ = [
    "AuthSessionManager",
    "IssuedToken",
    "WerkzeugPasswordHasher",
    "ZarinpalGateway",
    "extract_bearer",
]
