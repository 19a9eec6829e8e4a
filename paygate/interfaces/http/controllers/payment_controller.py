# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint
from pydantic import ValidationError

from paygate.application.services.payment_gateway import ZarinpalGateway
from paygate.application.use_cases.payments.settle_callback import SettleCallbackUseCase
from paygate.application.use_cases.payments.start_payment import StartPaymentUseCase
from paygate.domain.payments.entities import Transaction
from paygate.domain.users.entities import Role
from paygate.interfaces.http.dto.payment import (
    CallbackRequestDTO,
    StartPaymentRequestDTO,
    TransactionDTO,
)
from paygate.interfaces.http.flask_adapter import FlaskPipelineAdapter
from paygate.interfaces.http.gates import Gates
from paygate.shared.errors.base import ErrorKind, Failure
from paygate.shared.errors.validation import validation_failure
from paygate.shared.middleware.context import Outcome, RequestContext, success


def transaction_dto(transaction: Transaction) -> TransactionDTO:
    return TransactionDTO(
        id=transaction.id,
        authority=transaction.authority,
        amount=transaction.amount,
        status=transaction.status.value,
        created_at=transaction.created_at.isoformat() if transaction.created_at else None,
        settled_at=transaction.settled_at.isoformat() if transaction.settled_at else None,
    )


class PaymentController:
    def __init__(
        self,
        *,
        gateway: ZarinpalGateway,
        start_payment: StartPaymentUseCase,
        settle_callback: SettleCallbackUseCase,
    ) -> None:
        self._gateway = gateway
        self._start_payment = start_payment
        self._settle_callback = settle_callback

    def start(self, ctx: RequestContext) -> Outcome | Failure:
        if ctx.user is None:
            return Failure(ErrorKind.UNAUTHENTICATED)
        try:
            dto = StartPaymentRequestDTO.model_validate(ctx.body or {})
        except ValidationError as exc:
            return validation_failure(exc)

        result = self._start_payment.execute(
            user_id=ctx.user.id,
            authority=dto.authority,
            amount=dto.amount,
            description=dto.description,
            ip_address=ctx.client_ip,
        )
        if isinstance(result, Failure):
            return result

        return success(
            status=HTTPStatus.CREATED,
            transaction=transaction_dto(result.transaction).model_dump(),
            payment_url=f"{result.request['start_pay_url']}{result.transaction.authority}",
            callback_url=result.request["callback_url"],
            sandbox=result.request["sandbox"],
        )

    def callback(self, ctx: RequestContext) -> Outcome | Failure:
        try:
            dto = CallbackRequestDTO.model_validate(ctx.body or {})
        except ValidationError as exc:
            return validation_failure(exc)

        result = self._settle_callback.execute(dto.authority, dto.status, dto.amount, ctx.client_ip)
        if isinstance(result, Failure):
            return result
        return success(transaction=transaction_dto(result).model_dump())

    def health(self, ctx: RequestContext) -> Outcome:
        return success(gateway=self._gateway.health_check())

    def as_blueprint(self, gates: Gates, adapter: FlaskPipelineAdapter) -> Blueprint:
        bp = Blueprint("payments", __name__, url_prefix="/api/payments")
        bp.add_url_rule(
            "", "start", adapter.view(gates.authenticated(), self.start), methods=["POST"]
        )
        bp.add_url_rule(
            "/callback", "callback", adapter.view(gates.public(), self.callback), methods=["POST"]
        )
        bp.add_url_rule(
            "/health",
            "health",
            adapter.view(gates.authenticated(Role.ADMIN), self.health),
            methods=["GET"],
        )
        return bp
