# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime
from http import HTTPStatus

from flask import Blueprint

from paygate.application.services.payment_gateway import ZarinpalGateway
from paygate.infrastructure.db.session import Database
from paygate.infrastructure.health import check_database
from paygate.interfaces.http.flask_adapter import FlaskPipelineAdapter
from paygate.interfaces.http.gates import Gates
from paygate.shared.middleware.context import Outcome, RequestContext, success


class MiscController:
    def __init__(self, *, database: Database, gateway: ZarinpalGateway, environment: str) -> None:
        self._database = database
        self._gateway = gateway
        self._environment = environment

    def as_blueprint(self, gates: Gates, adapter: FlaskPipelineAdapter) -> Blueprint:
        bp = Blueprint("misc", __name__)
        bp.add_url_rule(
            "/api/health", "health", adapter.view(gates.public(), self.health), methods=["GET"]
        )
        return bp

    def health(self, ctx: RequestContext) -> Outcome:
        database_ok = check_database(self._database)
        return success(
            status=HTTPStatus.OK if database_ok else HTTPStatus.SERVICE_UNAVAILABLE,
            success=database_ok,
            environment=self._environment,
            timestamp=datetime.now(UTC).isoformat(),
            database="ok" if database_ok else "unavailable",
            gateway=self._gateway.health_check(),
        )
