"""OTP delivery adapter — sends codes and applies the dev/prod fallback policy."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any

from innerlight.otp.errors import TransportError
from innerlight.sms.transport import SMSTransport

logger = logging.getLogger(__name__)

OTP_MESSAGE_TEMPLATE = (
    "Your InnerLight OTP is {code}. Valid for {minutes} minutes. Do not share with anyone."
)

MSG_SENT = "OTP sent successfully"
MSG_SENT_DEV_MODE = "OTP sent successfully (Dev Mode)"
MSG_SENT_FALLBACK = "OTP sent (Dev Fallback - Check Console)"
MSG_SEND_FAILED = "Failed to send OTP via SMS Provider"
MSG_SEND_REQUEST_FAILED = "Failed to send OTP via SMS service"


class DeliveryPolicy(enum.Enum):
    """How delivery failures are treated."""

    STRICT = "strict"
    PERMISSIVE_FALLBACK = "permissive_fallback"

    @classmethod
    def for_environment(cls, is_production: bool) -> DeliveryPolicy:
        return cls.STRICT if is_production else cls.PERMISSIVE_FALLBACK


@dataclass
class DeliveryResult:
    """Outcome of one delivery attempt."""

    delivered: bool
    used_fallback: bool
    message: str
    expose_code: bool = False
    error: Any = None


class DeliveryAdapter:
    """Delivers OTPs through an ``SMSTransport`` under a ``DeliveryPolicy``.

    Whether a credential exists is up to the transport (``configured``).
    Under ``PERMISSIVE_FALLBACK`` a missing credential or a failing provider
    never blocks the caller: delivery is reported as successful and the raw
    code is exposed so it can be entered by hand.  Under ``STRICT`` every
    failure is reported as such and the code is never exposed.
    """

    def __init__(
        self,
        transport: SMSTransport,
        policy: DeliveryPolicy,
        ttl_seconds: int = 300,
    ) -> None:
        self._transport = transport
        self._policy = policy
        self._minutes = max(1, ttl_seconds // 60)

    @property
    def transport(self) -> SMSTransport:
        return self._transport

    @property
    def policy(self) -> DeliveryPolicy:
        return self._policy

    @property
    def is_strict(self) -> bool:
        return self._policy is DeliveryPolicy.STRICT

    def render_message(self, code: str) -> str:
        return OTP_MESSAGE_TEMPLATE.format(code=code, minutes=self._minutes)

    async def deliver(self, phone: str, code: str) -> DeliveryResult:
        """Try to deliver *code* to *phone* and report what happened."""
        if not self._transport.configured:
            if not self.is_strict:
                logger.warning("DEV MODE: simulating SMS. OTP for %s is %s", phone, code)
                return DeliveryResult(
                    delivered=True,
                    used_fallback=True,
                    message=MSG_SENT_DEV_MODE,
                    expose_code=True,
                )
            logger.error("SMS transport is not configured; cannot deliver OTP to %s", phone)
            return DeliveryResult(
                delivered=False,
                used_fallback=False,
                message=MSG_SEND_FAILED,
                error="SMS transport is not configured",
            )

        try:
            ack = await self._transport.send(phone, self.render_message(code))
        except TransportError as exc:
            logger.error("%s error for %s: %s", self._transport.name, phone, exc.detail)
            if self.is_strict:
                return DeliveryResult(
                    delivered=False,
                    used_fallback=False,
                    message=(
                        MSG_SEND_REQUEST_FAILED
                        if exc.kind == TransportError.REQUEST_FAILED
                        else MSG_SEND_FAILED
                    ),
                    error=exc.detail,
                )
            logger.warning("SMS failed. Falling back to mock mode. OTP for %s is %s", phone, code)
            return DeliveryResult(
                delivered=True,
                used_fallback=True,
                message=MSG_SENT_FALLBACK,
                expose_code=True,
            )

        logger.info("OTP delivered to %s via %s", phone, ack.provider)
        return DeliveryResult(
            delivered=True,
            used_fallback=False,
            message=MSG_SENT,
            expose_code=not self.is_strict,
        )
