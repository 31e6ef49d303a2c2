from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import Any, ClassVar
import json
from pathlib import Path
import os


def _default_env_file() -> str:
    return os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env"))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=_default_env_file(),
        case_sensitive=True,
    )

    API_PREFIX: str = "/api"

    # JWT configuration. Clerk session tokens are RS256; CLERK_JWT_KEY holds the
    # PEM public key. Without it, HS256 tokens signed with SECRET_KEY are
    # accepted (local development and tests).
    SECRET_KEY: str = "fallback_secret_for_dev_only"
    ALGORITHM: str = "HS256"
    CLERK_JWT_KEY: str = ""
    CLERK_ISSUER: str = ""

    # Use an absolute path so running the app from different directories
    # always resolves the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'inkmity.db'}"
    WAITLIST_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'waitlist.db'}"

    REDIS_URL: str = "redis://localhost:6379/0"
    SLOT_CACHE_TTL_SECONDS: int = 60

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]
    CORS_ALLOW_ALL: bool = False

    # Frontend base URL used for checkout success/cancel redirects
    APP_URL: str = "http://localhost:5173"

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_API_BASE: str = "https://api.stripe.com/v1"
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300

    # Booking and billing policy
    CURRENCY: str = "usd"
    PLATFORM_FEE_CENTS: int = 1000
    CHECKOUT_TTL_MINUTES: int = 30
    BOOKING_COOLDOWN_HOURS: int = 24
    LATE_CANCEL_HOURS: int = 48
    MIN_RESCHEDULE_NOTICE_HOURS: int = 48
    DEFAULT_TIMEZONE: str = "America/New_York"

    # SMTP email settings
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "no-reply@inkmity.com"

    # Waitlist landing page
    WAITLIST_SHARE_BASE_URL: str = "https://inkmity.com/"

    LOG_LEVEL: str = "INFO"
    ENABLE_BACKGROUND_TASKS: bool = True
    EXPIRY_SWEEP_INTERVAL_SECONDS: int = 60

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("APP_URL", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", mode="before")
    def strip_whitespace(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("CURRENCY", mode="before")
    def lower_currency(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def allow_all_if_requested(cls, values: "Settings") -> "Settings":
        if values.CORS_ALLOW_ALL:
            values.CORS_ORIGINS = ["*"]
        return values


def load_settings() -> "Settings":
    return Settings(_env_file=_default_env_file())


settings = load_settings()
