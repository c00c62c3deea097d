"""Tests for the OTPClient — envelope parsing and network failures."""

from __future__ import annotations

import httpx
import pytest

from innerlight.services.client_api import (
    SEND_FAILED_MESSAGE,
    VERIFY_FAILED_MESSAGE,
    OTPClient,
)

BASE_URL = "http://backend.test/api"


def _client(handler) -> OTPClient:
    return OTPClient(BASE_URL, transport=httpx.MockTransport(handler))


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.mark.asyncio
async def test_send_otp_parses_debug_code():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/send-otp"
        return httpx.Response(
            200, json={"success": True, "message": "OTP sent successfully (Dev Mode)", "debug": {"otp": "012345"}}
        )

    result = await _client(handler).send_otp("9876543210")

    assert result.success is True
    assert result.debug_otp == "012345"


@pytest.mark.asyncio
async def test_send_otp_returns_error_envelope_as_is():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"success": False, "message": "Invalid phone number. Must be 10 digits."})

    result = await _client(handler).send_otp("12345")

    assert result.success is False
    assert result.message == "Invalid phone number. Must be 10 digits."
    assert result.debug_otp is None


@pytest.mark.asyncio
async def test_send_otp_network_failure():
    result = await _client(_unreachable).send_otp("9876543210")

    assert result.success is False
    assert result.message == SEND_FAILED_MESSAGE


@pytest.mark.asyncio
async def test_verify_otp_success():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/verify-otp"
        return httpx.Response(200, json={"success": True, "message": "OTP verified successfully", "verified": True})

    result = await _client(handler).verify_otp("9876543210", "483920")

    assert result.success and result.verified


@pytest.mark.asyncio
async def test_verify_otp_non_json_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    result = await _client(handler).verify_otp("9876543210", "483920")

    assert result.success is False
    assert result.verified is False
    assert result.message == VERIFY_FAILED_MESSAGE


@pytest.mark.asyncio
async def test_check_health():
    def healthy(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "OK", "message": "InnerLight Backend is running"})

    assert await _client(healthy).check_health() is True
    assert await _client(_unreachable).check_health() is False


@pytest.mark.asyncio
async def test_full_flow_against_app():
    from innerlight.main import create_app
    from innerlight.otp.delivery import DeliveryAdapter, DeliveryPolicy
    from innerlight.sms.transport import NullTransport

    adapter = DeliveryAdapter(NullTransport(), DeliveryPolicy.PERMISSIVE_FALLBACK)
    app = create_app(delivery_adapter=adapter)
    client = OTPClient("http://testserver/api", transport=httpx.ASGITransport(app=app))

    assert await client.check_health() is True

    sent = await client.send_otp("9876543210")
    assert sent.success and sent.debug_otp

    verified = await client.verify_otp("9876543210", sent.debug_otp)
    assert verified.verified is True

    again = await client.verify_otp("9876543210", sent.debug_otp)
    assert again.success is False
    assert "No OTP found" in again.message


@pytest.mark.asyncio
async def test_default_base_url_comes_from_settings(monkeypatch):
    from innerlight.config import settings

    monkeypatch.setattr(settings, "api_base_url", "http://sim.test:5055/api/")
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"status": "OK", "message": "up"})

    assert await OTPClient(transport=httpx.MockTransport(handler)).check_health() is True
    assert seen == ["http://sim.test:5055/api/health"]
