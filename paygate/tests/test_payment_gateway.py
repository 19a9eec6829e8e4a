from __future__ import annotations

import re

import pytest

from conftest import AUTHORITY, MERCHANT_ID, WEBHOOK_SECRET
from paygate.application.services.payment_gateway import (
    ERROR_AMOUNT,
    ERROR_AUTHORITY,
    ERROR_STATUS,
    ZarinpalGateway,
)
from paygate.shared.config import PaymentsConfig, ZarinpalConfig

ID_RE = re.compile(r"^HTL(\d{13})(\d{4})$")


def _gateway(sandbox: bool = True, clock_ms=None) -> ZarinpalGateway:
    config = ZarinpalConfig(
        merchant_id=MERCHANT_ID,
        sandbox=sandbox,
        callback_url="https://shop.example.com/callback",
        webhook_secret=WEBHOOK_SECRET,
    )
    if clock_ms is None:
        return ZarinpalGateway(config, PaymentsConfig())
    return ZarinpalGateway(config, PaymentsConfig(), clock_ms=clock_ms)


def test_transaction_id_format() -> None:
    match = ID_RE.match(_gateway().generate_transaction_id())

    assert match is not None
    assert 1000 <= int(match.group(2)) <= 9999


def test_ten_thousand_ids_are_unique() -> None:
    gateway = _gateway()

    ids = {gateway.generate_transaction_id() for _ in range(10_000)}

    assert len(ids) == 10_000


def test_ids_stay_unique_when_clock_is_frozen() -> None:
    gateway = _gateway(clock_ms=lambda: 1_700_000_000_000)

    ids = [gateway.generate_transaction_id() for _ in range(9_001)]

    assert len(set(ids)) == len(ids)
    assert ids[-1][3:16] == "1700000000001"


def test_valid_callback_passes() -> None:
    result = _gateway().validate_callback(AUTHORITY, "OK", 50_000)

    assert result.valid
    assert result.errors == ()


def test_all_errors_are_reported_together() -> None:
    result = _gateway().validate_callback("A" * 35, "PENDING", 999)

    assert not result.valid
    assert result.errors == (ERROR_AUTHORITY, ERROR_STATUS, ERROR_AMOUNT)


@pytest.mark.parametrize("amount", [1000, 50_000_000, 1000.0, 25_000])
def test_amount_bounds_are_inclusive(amount) -> None:
    assert _gateway().validate_callback(AUTHORITY, "NOK", amount).valid


@pytest.mark.parametrize(
    "amount", [999, 50_000_001, "5000", None, True, float("nan"), float("inf"), 25_000.99, 1000.5]
)
def test_bad_amounts_are_rejected(amount) -> None:
    result = _gateway().validate_callback(AUTHORITY, "OK", amount)

    assert result.errors == (ERROR_AMOUNT,)


@pytest.mark.parametrize("authority", [None, "", "A" * 37, 12345])
def test_bad_authorities_are_rejected(authority) -> None:
    result = _gateway().validate_callback(authority, "OK", 5000)

    assert result.errors == (ERROR_AUTHORITY,)


@pytest.mark.parametrize("status", ["ok", "", None, "FAILED"])
def test_bad_statuses_are_rejected(status) -> None:
    assert _gateway().validate_callback(AUTHORITY, status, 5000).errors == (ERROR_STATUS,)


@pytest.mark.parametrize("value", ["abcdefgh", "12345", "x" * 64, MERCHANT_ID])
def test_mask_keeps_length_and_tail(value) -> None:
    masked = ZarinpalGateway.mask_data(value)

    assert len(masked) == len(value)
    assert masked[-4:] == value[-4:]
    assert set(masked[:-4]) == {"*"}


@pytest.mark.parametrize("value", ["", "abc", "abcd", None, 12345678])
def test_short_or_non_string_values_get_fixed_mask(value) -> None:
    assert ZarinpalGateway.mask_data(value) == "****"


def test_health_check_masks_merchant_id() -> None:
    health = _gateway(sandbox=False).health_check()

    assert health["status"] == "healthy"
    assert health["service"] == "zarinpal"
    assert health["sandbox"] is False
    assert health["merchant_id"].endswith(MERCHANT_ID[-4:])
    assert MERCHANT_ID not in str(health)


def test_payment_request_points_at_sandbox() -> None:
    request = _gateway().payment_request(10_000, "order 42")

    assert ID_RE.match(request["transaction_id"])
    assert request["start_pay_url"] == "https://sandbox.zarinpal.com/pg/StartPay/"
    assert request["callback_url"] == "https://shop.example.com/callback"
