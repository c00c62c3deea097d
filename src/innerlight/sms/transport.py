"""SMS transports — the capability the OTP delivery adapter sends through."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from innerlight.otp.errors import TransportError

logger = logging.getLogger(__name__)

FAST2SMS_URL = "https://www.fast2sms.com/dev/bulkV2"


@dataclass
class Ack:
    """Value object returned by a transport once the provider accepted a message."""

    provider: str
    payload: dict[str, Any] = field(default_factory=dict)


class SMSTransport(ABC):
    """Abstract base class for anything that can deliver a text message.

    Implementations return an ``Ack`` on success and raise
    ``TransportError`` for every failure, whether the provider answered
    with an error or could not be reached at all.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (used in logs)."""

    @property
    def configured(self) -> bool:
        """Whether this transport can actually reach a provider."""
        return True

    @abstractmethod
    async def send(self, phone: str, message: str) -> Ack:
        """Deliver *message* to *phone*.

        Parameters
        ----------
        phone:
            Destination number, already validated as 10 digits.
        message:
            Full text of the SMS.
        """


class NullTransport(SMSTransport):
    """Accepts every message without sending anything."""

    @property
    def name(self) -> str:
        return "null"

    @property
    def configured(self) -> bool:
        return False

    async def send(self, phone: str, message: str) -> Ack:
        logger.info("SMS to %s not sent (no transport configured): %s", phone, message)
        return Ack(provider=self.name)


class Fast2SMSTransport(SMSTransport):
    """Sends messages through the Fast2SMS bulk API."""

    def __init__(
        self,
        api_key: str,
        url: str = FAST2SMS_URL,
        sender_id: str = "TXTIND",
        route: str = "v3",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._sender_id = sender_id
        self._route = route
        self._timeout = timeout
        self._client = client

    @property
    def name(self) -> str:
        return "fast2sms"

    async def send(self, phone: str, message: str) -> Ack:
        payload = {
            "route": self._route,
            "sender_id": self._sender_id,
            "message": message,
            "language": "english",
            "numbers": phone,
        }
        headers = {"authorization": self._api_key}

        try:
            if self._client is not None:
                resp = await self._client.post(
                    self._url, json=payload, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.post(self._url, json=payload, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                detail=_response_detail(exc.response), kind=TransportError.REQUEST_FAILED
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                detail=str(exc) or type(exc).__name__, kind=TransportError.REQUEST_FAILED
            ) from exc

        data = _response_detail(resp)
        logger.debug("Fast2SMS response: %s", data)
        if not isinstance(data, dict) or data.get("return") is not True:
            raise TransportError(detail=data)
        return Ack(provider=self.name, payload=data)


def _response_detail(resp: httpx.Response) -> Any:
    """Return the JSON body of *resp*, or its text when it isn't JSON."""
    try:
        return resp.json()
    except ValueError:
        return resp.text
