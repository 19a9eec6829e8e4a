from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class StartPaymentRequestDTO(BaseModel):
    authority: str = Field(min_length=1, max_length=64)
    amount: StrictInt
    description: str = Field("", max_length=255)


class CallbackRequestDTO(BaseModel):
    """Raw callback fields; their values are judged by the gateway validator."""

    model_config = ConfigDict(populate_by_name=True)

    authority: Any = Field(None, alias="Authority")
    status: Any = Field(None, alias="Status")
    amount: Any = None


class TransactionDTO(BaseModel):
    id: str
    authority: str
    amount: int
    status: str
    created_at: str | None = None
    settled_at: str | None = None
