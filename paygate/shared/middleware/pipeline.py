# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Ordered request pipeline.

Every stage receives an immutable :class:`RequestContext` and returns either
:class:`Continue` with a (possibly evolved) context, or :class:`Halt` with a
:class:`Failure` that ends the request. Stages that need to observe the final
outcome (the login limiter releasing successful attempts, for instance) expose
a ``complete(ctx, outcome)`` hook; hooks run in reverse order for every stage
that let the request through, even when the handler raised.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from paygate.shared.errors.base import Failure
from paygate.shared.middleware.context import Outcome, RequestContext, success

if TYPE_CHECKING:
    from paygate.shared.errors.http import ErrorTranslator
    from paygate.shared.middleware.request_logger import RequestLogger


@dataclass(slots=True, frozen=True)
class Continue:
    context: RequestContext


@dataclass(slots=True, frozen=True)
class Halt:
    failure: Failure


StageResult = Continue | Halt
Handler = Callable[[RequestContext], "Outcome | Failure"]


class Stage(Protocol):
    name: str

    def __call__(self, ctx: RequestContext) -> StageResult: ...


class Pipeline:
    def __init__(
        self,
        stages: Sequence[Stage],
        *,
        translator: ErrorTranslator,
        request_logger: RequestLogger | None = None,
    ) -> None:
        self._stages = tuple(stages)
        self._translator = translator
        self._request_logger = request_logger

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(stage.name for stage in self._stages)

    def extend(self, *stages: Stage) -> Pipeline:
        return Pipeline(
            [*self._stages, *stages],
            translator=self._translator,
            request_logger=self._request_logger,
        )

    def run(self, ctx: RequestContext, handler: Handler) -> Outcome:
        if self._request_logger is not None:
            ctx = self._request_logger.start(ctx)

        passed: list[Stage] = []
        outcome: Outcome | None = None
        try:
            for stage in self._stages:
                result = stage(ctx)
                if isinstance(result, Halt):
                    outcome = self._translator.render(result.failure, ctx, stage=stage.name)
                    break
                ctx = result.context
                passed.append(stage)

            if outcome is None:
                outcome = self._dispatch(ctx, handler)
        except Exception as exc:
            outcome = self._translator.render_exception(exc, ctx)

        # Hooks see every outcome, rendered server errors included.
        for stage in reversed(passed):
            complete = getattr(stage, "complete", None)
            if complete is None:
                continue
            try:
                outcome = complete(ctx, outcome)
            except Exception as exc:
                outcome = self._translator.render_exception(exc, ctx)

        if self._request_logger is not None:
            outcome = self._request_logger.finish(ctx, outcome)
        return outcome

    def _dispatch(self, ctx: RequestContext, handler: Handler) -> Outcome:
        result = handler(ctx)
        if isinstance(result, Failure):
            return self._translator.render(result, ctx)
        return result


__all__ = [
    "Continue",
    "Halt",
    "Handler",
    "Outcome",
    "Pipeline",
    "RequestContext",
    "Stage",
    "StageResult",
    "success",
]
