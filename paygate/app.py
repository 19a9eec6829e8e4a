# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import importlib
from typing import Any, Protocol, cast

from flask import Flask

from paygate.container import Container
from paygate.shared.config import AppConfig, load_config
from paygate.shared.errors.http import register_error_handler
from paygate.shared.logging import logger, setup_logging

CONTAINER_KEY = "paygate.container"


class _CORSCallable(Protocol):
    def __call__(self, app: Flask, **kwargs: Any) -> Any: ...


_flask_cors = importlib.import_module("flask_cors")
CORS = cast(_CORSCallable, _flask_cors.CORS)


def _install_security_headers(app: Flask, config: AppConfig) -> None:
    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("X-Frame-Options", "DENY")

        resp.headers.setdefault("Referrer-Policy", "no-referrer")

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-XSS-Protection", "1; mode=block")
        resp.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline';",
        )

        resp.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        resp.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")

        resp.headers.setdefault(
            "Permissions-Policy",
            "geolocation=(), microphone=(), camera=(), usb=(), magnetometer=(), gyroscope=()",
        )

        resp.headers.setdefault("X-Permitted-Cross-Domain-Policies", "none")

        if config.security.enable_hsts:
            resp.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )

        return resp


def create_app(config: AppConfig | None = None, *, container: Container | None = None) -> Flask:
    config = config or (container.config if container is not None else load_config())
    setup_logging(level=config.log_level, log_file=config.log_file)
    logger.info(f"Configuration loaded: {config.masked_summary()}")

    container = container or Container(config)
    container.database.create_all()

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.security.max_body_bytes
    app.extensions[CONTAINER_KEY] = container
    register_error_handler(
        app, container.translator, trust_proxy=config.security.trust_proxy
    )

    CORS(
        app,
        resources={r"/api/*": {"origins": config.security.allowed_origins}},
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=[
            "RateLimit-Limit",
            "RateLimit-Remaining",
            "RateLimit-Reset",
            "Retry-After",
            "X-Request-ID",
        ],
        supports_credentials=any(o != "*" for o in config.security.allowed_origins),
    )

    gates, adapter = container.gates, container.http_adapter
    app.register_blueprint(container.misc_controller.as_blueprint(gates, adapter))
    app.register_blueprint(container.auth_controller.as_blueprint(gates, adapter))
    app.register_blueprint(container.payment_controller.as_blueprint(gates, adapter))
    app.register_blueprint(container.admin_controller.as_blueprint(gates, adapter))

    _install_security_headers(app, config)

    logger.info("Flask app initialized")
    return app


def container_of(app: Flask) -> Container:
    return app.extensions[CONTAINER_KEY]


__all__ = ["create_app", "container_of"]
