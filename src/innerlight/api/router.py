"""OTP API router — issuance, verification and liveness under ``/api``.

Endpoints
---------
POST /api/send-otp     → issue a code and deliver it by SMS
POST /api/verify-otp   → check a submitted code (single use)
GET  /api/health       → liveness probe
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from innerlight.config import settings
from innerlight.otp.delivery import DeliveryAdapter
from innerlight.otp.errors import InternalError, OTPError, TransportError, ValidationError
from innerlight.otp.store import OTPStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["otp"])


# ── Request / response models ────────────────────────────

class SendOTPRequest(BaseModel):
    phone: str | None = None


class DebugInfo(BaseModel):
    otp: str


class SendOTPResponse(BaseModel):
    success: bool
    message: str
    debug: DebugInfo | None = None


class VerifyOTPRequest(BaseModel):
    phone: str | None = None
    otp: str | None = None


class VerifyOTPResponse(BaseModel):
    success: bool
    message: str
    verified: bool


class HealthResponse(BaseModel):
    status: str
    message: str


# ── Dependencies ─────────────────────────────────────────

def get_otp_store(request: Request) -> OTPStore:
    return request.app.state.otp_store


def get_delivery_adapter(request: Request) -> DeliveryAdapter:
    return request.app.state.delivery_adapter


# ── Endpoints ────────────────────────────────────────────

@router.post("/send-otp", response_model=SendOTPResponse, response_model_exclude_none=True)
async def send_otp(
    body: SendOTPRequest | None = None,
    store: OTPStore = Depends(get_otp_store),
    adapter: DeliveryAdapter = Depends(get_delivery_adapter),
):
    """Issue a fresh code for the phone and hand it to the SMS transport.

    The code is stored before delivery starts, so it is verifiable as
    soon as it exists regardless of how delivery turns out.
    """
    phone = body.phone if body else None
    if not phone:
        raise ValidationError("Phone number is required")

    pending = store.issue(phone)
    result = await adapter.deliver(phone, pending.code)

    if not result.delivered:
        raise TransportError(result.message, detail=result.error)

    debug = DebugInfo(otp=pending.code) if result.expose_code else None
    return SendOTPResponse(success=True, message=result.message, debug=debug)


@router.post("/verify-otp", response_model=VerifyOTPResponse)
async def verify_otp(
    body: VerifyOTPRequest | None = None,
    store: OTPStore = Depends(get_otp_store),
):
    """Validate and consume the pending code for the phone."""
    if body is None or not body.phone or not body.otp:
        raise ValidationError("Phone number and OTP are required")

    store.verify(body.phone, body.otp)
    return VerifyOTPResponse(success=True, message="OTP verified successfully", verified=True)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Simple liveness probe."""
    return HealthResponse(status="OK", message=f"{settings.app_name} is running")


# ── Error envelopes ──────────────────────────────────────

async def _otp_error_handler(request: Request, exc: OTPError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.debug("Rejected malformed body on %s: %s", request.url.path, exc.errors())
    error = ValidationError("Invalid request body")
    return JSONResponse(status_code=error.status_code, content=error.to_envelope())


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_envelope())


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as the ``{success: false, message}`` envelope."""
    app.add_exception_handler(OTPError, _otp_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
