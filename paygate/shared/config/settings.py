# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
from datetime import timedelta
from functools import lru_cache
from typing import Annotated, Any
from urllib.parse import urlparse
from uuid import UUID

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from paygate.shared.logging import logger, mask_data

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}
_SECRET_WORDS_RE = re.compile(r"(password|secret|key)", re.IGNORECASE)


def _section_config() -> SettingsConfigDict:
    return SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        validate_by_name=True,
    )


def _parse_bool(value: str | bool) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


class ConfigError(RuntimeError):
    """Raised at startup when the environment does not describe a valid config."""

    def __init__(self, problems: list[dict[str, str]]) -> None:
        self.problems = problems
        summary = ", ".join(f"{p['field']}: {p['message']}" for p in problems)
        super().__init__(f"invalid configuration: {summary}")


class JwtConfig(BaseSettings):
    secret: str = Field(alias="JWT_SECRET", min_length=32)
    expires_in: str = Field("7d", alias="JWT_EXPIRES_IN", pattern=r"^\d+[smhd]$")
    algorithm: str = Field("HS256", alias="JWT_ALGORITHM")

    model_config = _section_config()

    @property
    def expires_delta(self) -> timedelta:
        amount, unit = _DURATION_RE.match(self.expires_in).groups()  # type: ignore[union-attr]
        return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


class ZarinpalConfig(BaseSettings):
    merchant_id: str = Field(alias="ZARINPAL_MERCHANT_ID")
    sandbox: bool = Field(True, alias="ZARINPAL_SANDBOX")
    callback_url: str = Field(alias="ZARINPAL_CALLBACK_URL")
    webhook_secret: str = Field(alias="ZARINPAL_WEBHOOK_SECRET", min_length=32)

    model_config = _section_config()

    @field_validator("merchant_id")
    @classmethod
    def _validate_merchant_id(cls, value: str) -> str:
        try:
            parsed = UUID(value)
        except ValueError as exc:
            raise ValueError("merchant id must be a UUID") from exc
        if parsed.version != 4:
            raise ValueError("merchant id must be a version 4 UUID")
        return value

    @field_validator("callback_url")
    @classmethod
    def _validate_callback_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("callback url must be an absolute http(s) URL")
        return value

    @field_validator("sandbox", mode="before")
    @classmethod
    def _parse_sandbox(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @property
    def start_pay_url(self) -> str:
        host = "sandbox.zarinpal.com" if self.sandbox else "www.zarinpal.com"
        return f"https://{host}/pg/StartPay/"


class RateLimitConfig(BaseSettings):
    enabled: bool = Field(True, alias="ENABLE_RATE_LIMIT")
    window_ms: int = Field(15 * 60 * 1000, ge=60_000, alias="RATE_LIMIT_WINDOW_MS")
    max_requests: int = Field(100, ge=10, alias="RATE_LIMIT_MAX_REQUESTS")
    login_window_ms: int = Field(15 * 60 * 1000, ge=60_000, alias="LOGIN_RATE_LIMIT_WINDOW_MS")
    login_max_attempts: int = Field(5, ge=1, alias="LOGIN_RATE_LIMIT_MAX")
    redis_url: str | None = Field(None, alias="RATE_LIMIT_REDIS_URL")

    model_config = _section_config()

    @field_validator("enabled", mode="before")
    @classmethod
    def _parse_enabled(cls, value: str | bool) -> bool:
        return _parse_bool(value)


class PaymentsConfig(BaseSettings):
    min_amount: int = Field(1000, ge=1, alias="MIN_TRANSACTION_AMOUNT")
    max_amount: int = Field(50_000_000, ge=10_000, alias="MAX_TRANSACTION_AMOUNT")
    transaction_prefix: str = Field("HTL", min_length=1, max_length=8, alias="TRANSACTION_PREFIX")
    currency: str = Field("IRR", alias="CURRENCY")

    model_config = _section_config()


class SecurityConfig(BaseSettings):
    max_body_bytes: int = Field(10 * 1024 * 1024, ge=1024, alias="MAX_BODY_BYTES")
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        ["http://localhost:3000", "https://htland.ir", "https://www.htland.ir"],
        alias="ALLOWED_ORIGINS",
    )
    trust_proxy: bool = Field(False, alias="TRUST_PROXY")
    enable_hsts: bool = Field(False, alias="ENABLE_HSTS")

    model_config = _section_config()

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("trust_proxy", "enable_hsts", mode="before")
    @classmethod
    def _parse_flags(cls, value: str | bool) -> bool:
        return _parse_bool(value)


class DatabaseConfig(BaseSettings):
    url: str = Field("sqlite:///paygate.db", alias="DATABASE_URL")
    pool_size: int = Field(10, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(5, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")

    model_config = _section_config()


class ServerConfig(BaseSettings):
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3000, ge=1, le=65535, alias="PORT")
    shutdown_timeout: float = Field(10.0, gt=0, alias="SHUTDOWN_TIMEOUT")

    model_config = _section_config()


def _jwt_config_factory() -> JwtConfig:
    return JwtConfig()  # type: ignore[call-arg]


def _zarinpal_config_factory() -> ZarinpalConfig:
    return ZarinpalConfig()  # type: ignore[call-arg]


def _rate_limit_config_factory() -> RateLimitConfig:
    return RateLimitConfig()  # type: ignore[call-arg]


def _payments_config_factory() -> PaymentsConfig:
    return PaymentsConfig()  # type: ignore[call-arg]


def _security_config_factory() -> SecurityConfig:
    return SecurityConfig()  # type: ignore[call-arg]


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig()  # type: ignore[call-arg]


def _server_config_factory() -> ServerConfig:
    return ServerConfig()  # type: ignore[call-arg]


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV", pattern=r"^(development|production|test|staging)$")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str | None = Field("logs/paygate.log", alias="LOG_FILE")

    jwt: JwtConfig = Field(default_factory=_jwt_config_factory)
    zarinpal: ZarinpalConfig = Field(default_factory=_zarinpal_config_factory)
    rate_limit: RateLimitConfig = Field(default_factory=_rate_limit_config_factory)
    payments: PaymentsConfig = Field(default_factory=_payments_config_factory)
    security: SecurityConfig = Field(default_factory=_security_config_factory)
    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    server: ServerConfig = Field(default_factory=_server_config_factory)

    model_config = _section_config()

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError("log level must be one of debug, info, warning, error")
        return level

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")

    def masked_summary(self) -> dict[str, Any]:
        return {
            "environment": self.app_env,
            "port": self.server.port,
            "database": "***",
            "jwt": {"secret": mask_data(self.jwt.secret), "expires_in": self.jwt.expires_in},
            "zarinpal": {
                "merchant_id": mask_data(self.zarinpal.merchant_id),
                "sandbox": self.zarinpal.sandbox,
                "callback_url": self.zarinpal.callback_url,
                "webhook_secret": mask_data(self.zarinpal.webhook_secret),
            },
            "rate_limit": {
                "window_ms": self.rate_limit.window_ms,
                "max": self.rate_limit.max_requests,
                "login_max": self.rate_limit.login_max_attempts,
                "store": "redis" if self.rate_limit.redis_url else "memory",
            },
            "security_level": "high" if self.is_production() else "development",
        }


def _describe_errors(exc: ValidationError) -> list[dict[str, str]]:
    problems = []
    for error in exc.errors():
        loc = error.get("loc", ())
        field = ".".join(str(part) for part in loc if part is not None) or "unknown"
        message = _SECRET_WORDS_RE.sub("***", str(error.get("msg", "invalid value")))
        problems.append({"field": field, "message": message})
    return problems


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    try:
        return AppConfig()  # type: ignore[call-arg]
    except ValidationError as exc:
        problems = _describe_errors(exc)
        logger.error(f"Config validation error: {problems}")
        raise ConfigError(problems) from exc


__all__ = [
    "AppConfig",
    "ConfigError",
    "DatabaseConfig",
    "JwtConfig",
    "PaymentsConfig",
    "RateLimitConfig",
    "SecurityConfig",
    "ServerConfig",
    "ZarinpalConfig",
    "load_config",
]
