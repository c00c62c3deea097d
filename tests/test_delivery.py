"""Tests for the DeliveryAdapter fallback policy."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from innerlight.otp.delivery import (
    MSG_SEND_FAILED,
    MSG_SEND_REQUEST_FAILED,
    MSG_SENT,
    MSG_SENT_DEV_MODE,
    MSG_SENT_FALLBACK,
    DeliveryAdapter,
    DeliveryPolicy,
)
from innerlight.otp.errors import TransportError
from innerlight.sms.transport import Ack, NullTransport, SMSTransport

PHONE = "9876543210"
CODE = "483920"


@pytest.fixture
def transport():
    """Mocked transport — never actually sends messages."""
    mock = AsyncMock(spec=SMSTransport)
    mock.name = "mock"
    mock.configured = True
    mock.send.return_value = Ack(provider="mock", payload={"return": True})
    return mock


def test_policy_for_environment():
    assert DeliveryPolicy.for_environment(True) is DeliveryPolicy.STRICT
    assert DeliveryPolicy.for_environment(False) is DeliveryPolicy.PERMISSIVE_FALLBACK


def test_message_mentions_code_and_validity(transport):
    adapter = DeliveryAdapter(transport, DeliveryPolicy.STRICT, ttl_seconds=300)
    assert adapter.render_message(CODE) == (
        "Your InnerLight OTP is 483920. Valid for 5 minutes. Do not share with anyone."
    )


# ──────────────────────────────────────────────────────────
# 1. Unconfigured outside production → skip sending
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_unconfigured_dev_mode_skips_transport(transport):
    transport.configured = False
    adapter = DeliveryAdapter(transport, DeliveryPolicy.PERMISSIVE_FALLBACK)

    result = await adapter.deliver(PHONE, CODE)

    assert result.delivered and result.used_fallback and result.expose_code
    assert result.message == MSG_SENT_DEV_MODE
    transport.send.assert_not_called()


# ──────────────────────────────────────────────────────────
# 2/3. Provider failure outside production → fallback
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_provider_failure_falls_back_outside_production(transport):
    transport.send.side_effect = TransportError(detail={"return": False, "message": "Insufficient balance"})
    adapter = DeliveryAdapter(transport, DeliveryPolicy.PERMISSIVE_FALLBACK)

    result = await adapter.deliver(PHONE, CODE)

    assert result.delivered and result.used_fallback and result.expose_code
    assert result.message == MSG_SENT_FALLBACK
    assert result.error is None
    transport.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_successful_send_outside_production_exposes_code(transport):
    adapter = DeliveryAdapter(transport, DeliveryPolicy.PERMISSIVE_FALLBACK)

    result = await adapter.deliver(PHONE, CODE)

    assert result.delivered and not result.used_fallback
    assert result.expose_code
    assert result.message == MSG_SENT


# ──────────────────────────────────────────────────────────
# 4. Production is strict
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_strict_success_never_exposes_code(transport):
    adapter = DeliveryAdapter(transport, DeliveryPolicy.STRICT)

    result = await adapter.deliver(PHONE, CODE)

    assert result.delivered and not result.used_fallback
    assert not result.expose_code
    sent_phone, sent_message = transport.send.call_args.args
    assert sent_phone == PHONE
    assert CODE in sent_message


@pytest.mark.asyncio
async def test_strict_failure_surfaces_provider_detail(transport):
    detail = {"return": False, "message": "Insufficient balance"}
    transport.send.side_effect = TransportError(detail=detail)
    adapter = DeliveryAdapter(transport, DeliveryPolicy.STRICT)

    result = await adapter.deliver(PHONE, CODE)

    assert not result.delivered and not result.expose_code
    assert result.message == MSG_SEND_FAILED
    assert result.error == detail


@pytest.mark.asyncio
async def test_strict_unconfigured_is_a_failure(transport):
    transport.configured = False
    adapter = DeliveryAdapter(transport, DeliveryPolicy.STRICT)

    result = await adapter.deliver(PHONE, CODE)

    assert not result.delivered and not result.expose_code
    transport.send.assert_not_called()


@pytest.mark.asyncio
async def test_strict_request_failure_uses_service_message(transport):
    transport.send.side_effect = TransportError(
        detail="timed out", kind=TransportError.REQUEST_FAILED
    )
    adapter = DeliveryAdapter(transport, DeliveryPolicy.STRICT)

    result = await adapter.deliver(PHONE, CODE)

    assert not result.delivered
    assert result.message == MSG_SEND_REQUEST_FAILED
    assert result.error == "timed out"


@pytest.mark.asyncio
async def test_null_transport_means_not_configured():
    transport = NullTransport()
    assert transport.configured is False

    dev = await DeliveryAdapter(transport, DeliveryPolicy.PERMISSIVE_FALLBACK).deliver(PHONE, CODE)
    assert dev.message == MSG_SENT_DEV_MODE and dev.expose_code

    prod = await DeliveryAdapter(transport, DeliveryPolicy.STRICT).deliver(PHONE, CODE)
    assert not prod.delivered
    assert prod.message == MSG_SEND_FAILED
