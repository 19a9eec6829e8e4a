# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .settings import (
    AppConfig,
    ConfigError,
    DatabaseConfig,
    JwtConfig,
    PaymentsConfig,
    RateLimitConfig,
    SecurityConfig,
    ServerConfig,
    ZarinpalConfig,
    load_config,
)

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
