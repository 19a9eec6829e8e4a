from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

_PHONE_RE = re.compile(r"^09\d{9}$")


class LoginRequestDTO(BaseModel):
    phone: str = Field(min_length=11, max_length=11)
    password: str = Field(min_length=1, max_length=128)  # No strength check on login

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        value = value.strip()
        if not _PHONE_RE.match(value):
            raise PydanticCustomError(
                "phone_invalid",
                "Phone number must be 11 digits starting with 09",
                {"pattern": _PHONE_RE.pattern},
            )
        return value


class UserDTO(BaseModel):
    id: int
    phone: str
    role: str
    is_admin: bool


class LoginSuccessDTO(BaseModel):
    token: str
    expires_at: str
    user: UserDTO


class SessionsRevokedDTO(BaseModel):
    user_id: int
    revoked: int
