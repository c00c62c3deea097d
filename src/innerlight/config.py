"""InnerLight backend — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── App ───────────────────────────────────────────────
    app_name: str = "InnerLight Backend"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"
    cors_origins: list[str] = ["*"]

    # ── Fast2SMS ──────────────────────────────────────────
    fast2sms_api_key: str = ""
    fast2sms_url: str = "https://www.fast2sms.com/dev/bulkV2"
    fast2sms_sender_id: str = "TXTIND"
    fast2sms_route: str = "v3"
    sms_timeout_seconds: float = 10.0

    # ── OTP ───────────────────────────────────────────────
    otp_ttl_seconds: int = 300
    otp_sweep_interval_seconds: float = 60.0

    # ── API client / simulator ────────────────────────────
    api_base_url: str = "http://localhost:5000/api"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"


# Singleton settings instance
settings = Settings()
