from .login_user import LoginResult, LoginUserUseCase
from .logout_user import LogoutUserUseCase
from .revoke_sessions import RevokeUserSessionsUseCase

__all__ = [
    "LoginResult",
    "LoginUserUseCase",
    "LogoutUserUseCase",
    "RevokeUserSessionsUseCase",
]
