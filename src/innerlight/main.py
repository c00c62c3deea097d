"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from innerlight.api.router import register_exception_handlers
from innerlight.api.router import router as otp_router
from innerlight.config import Settings, settings
from innerlight.otp.delivery import DeliveryAdapter, DeliveryPolicy
from innerlight.otp.store import OTPStore
from innerlight.sms.transport import Fast2SMSTransport, NullTransport

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


def build_delivery_adapter(config: Settings) -> DeliveryAdapter:
    """Pick the SMS transport and delivery policy for *config*."""
    if config.fast2sms_api_key:
        transport = Fast2SMSTransport(
            api_key=config.fast2sms_api_key,
            url=config.fast2sms_url,
            sender_id=config.fast2sms_sender_id,
            route=config.fast2sms_route,
            timeout=config.sms_timeout_seconds,
        )
    else:
        transport = NullTransport()
    return DeliveryAdapter(
        transport=transport,
        policy=DeliveryPolicy.for_environment(config.is_production),
        ttl_seconds=config.otp_ttl_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)
    app.state.otp_store.start()
    logger.info(
        "OTP endpoints ready (delivery policy: %s)", app.state.delivery_adapter.policy.value
    )
    yield
    await app.state.otp_store.stop()
    logger.info("Shutting down %s …", settings.app_name)


def create_app(
    store: OTPStore | None = None,
    delivery_adapter: DeliveryAdapter | None = None,
) -> FastAPI:
    """Build the application; *store* and *delivery_adapter* default from settings."""
    app = FastAPI(
        title=settings.app_name,
        description="Phone-number verification by one-time passcode for InnerLight",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.otp_store = store or OTPStore(
        ttl_seconds=settings.otp_ttl_seconds,
        sweep_interval=settings.otp_sweep_interval_seconds,
    )
    app.state.delivery_adapter = delivery_adapter or build_delivery_adapter(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(otp_router)
    register_exception_handlers(app)
    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn (``innerlight`` console script)."""
    uvicorn.run(
        "innerlight.main:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )
