"""OTP API client — async HTTP client for the InnerLight OTP endpoints.

Mirrors what the front-end does: every call returns an envelope, and
network trouble is reported as an unsuccessful envelope instead of an
exception so callers only ever branch on ``success``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from innerlight.config import settings

logger = logging.getLogger(__name__)

SEND_FAILED_MESSAGE = "Failed to send OTP. Please try again."
VERIFY_FAILED_MESSAGE = "Failed to verify OTP. Please try again."


@dataclass
class OTPResponse:
    """Result of a send-otp call."""

    success: bool
    message: str
    debug_otp: str | None = None


@dataclass
class VerifyOTPResponse:
    """Result of a verify-otp call."""

    success: bool
    message: str
    verified: bool = False


class OTPClient:
    """Async HTTP wrapper around ``/api/send-otp``, ``/api/verify-otp`` and ``/api/health``."""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport)

    async def send_otp(self, phone: str) -> OTPResponse:
        """Ask the backend to issue and deliver a code to *phone*."""
        url = f"{self._base_url}/send-otp"
        try:
            async with self._client() as client:
                resp = await client.post(url, json={"phone": phone})
            data = _envelope(resp)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Send OTP error: %s", exc)
            return OTPResponse(success=False, message=SEND_FAILED_MESSAGE)

        debug = data.get("debug") or {}
        return OTPResponse(
            success=bool(data.get("success", False)),
            message=data.get("message", ""),
            debug_otp=debug.get("otp"),
        )

    async def verify_otp(self, phone: str, otp: str) -> VerifyOTPResponse:
        """Submit *otp* for *phone*."""
        url = f"{self._base_url}/verify-otp"
        try:
            async with self._client() as client:
                resp = await client.post(url, json={"phone": phone, "otp": otp})
            data = _envelope(resp)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Verify OTP error: %s", exc)
            return VerifyOTPResponse(success=False, message=VERIFY_FAILED_MESSAGE)

        return VerifyOTPResponse(
            success=bool(data.get("success", False)),
            message=data.get("message", ""),
            verified=bool(data.get("verified", False)),
        )

    async def check_health(self) -> bool:
        """Return ``True`` if the backend reports itself as running."""
        url = f"{self._base_url}/health"
        try:
            async with self._client() as client:
                resp = await client.get(url)
            return _envelope(resp).get("status") == "OK"
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Backend health check failed: %s", exc)
            return False


def _envelope(resp: httpx.Response) -> dict:
    """Parse *resp* as a JSON object; raise ``ValueError`` otherwise."""
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError(f"unexpected response body: {data!r}")
    return data
