"""OTP error taxonomy — each error knows the HTTP status it maps to."""

from __future__ import annotations

from typing import Any


class OTPError(Exception):
    """Base class for every failure surfaced by the OTP flow."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_envelope(self) -> dict[str, Any]:
        """Render as the ``{success, message, ...extra}`` response body."""
        return {"success": False, "message": self.message, **self.extra}


class ValidationError(OTPError):
    default_message = "Invalid request"


class NotFoundError(OTPError):
    default_message = "No OTP found for this phone number. Please request a new OTP."


class ExpiredError(OTPError):
    default_message = "OTP has expired. Please request a new one."


class MismatchError(OTPError):
    default_message = "Invalid OTP. Please try again."


class TransportError(OTPError):
    """The SMS provider rejected the message or could not be reached.

    ``detail`` holds whatever diagnostic the provider returned (parsed JSON
    body when available, otherwise a string).  ``kind`` is ``REJECTED`` when
    the provider answered but refused the message, ``REQUEST_FAILED`` when
    the request itself errored or timed out.
    """

    REJECTED = "rejected"
    REQUEST_FAILED = "request_failed"

    status_code = 500
    default_message = "Failed to send OTP via SMS Provider"

    def __init__(
        self, message: str | None = None, detail: Any = None, kind: str = REJECTED
    ) -> None:
        super().__init__(message)
        self.detail = detail
        self.kind = kind

    def to_envelope(self) -> dict[str, Any]:
        envelope = super().to_envelope()
        if self.detail is not None:
            envelope["error"] = self.detail
        return envelope


class InternalError(OTPError):
    status_code = 500
    default_message = "Internal server error"
