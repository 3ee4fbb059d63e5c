"""
app/config.py — Central configuration loaded from environment variables.
All modules import settings from here; never read os.environ directly elsewhere.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from app.exceptions import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── LLM ──────────────────────────────────────────────────────────────────
    openrouter_api_key: str = Field(..., description="OpenRouter API key")
    openrouter_model: str = Field(
        default="openai/gpt-4o",
        description="OpenRouter model identifier",
    )
    ai_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Per-call timeout for the qualification model",
    )

    # ── Database ──────────────────────────────────────────────────────────────
    database_url: str = Field(..., description="PostgreSQL connection URI")

    # ── Email ─────────────────────────────────────────────────────────────────
    gmail_user: str = Field(..., description="Gmail sender address")
    gmail_app_password: str = Field(..., description="Gmail App Password (16 chars)")
    mailer_dry_run: bool = Field(
        default=True,
        description="If True, print emails to stdout instead of actually sending",
    )
    smtp_timeout_seconds: float = Field(default=15.0, gt=0)
    admin_email: str = Field(
        default="admin@uniqubit.ca",
        description="Operations inbox that receives new-lead alerts",
    )
    admin_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the admin dashboard, used for lead links",
    )
    brand_name: str = Field(default="uniQubit", description="Signature used in outgoing mail")

    # ── Rate limiting ─────────────────────────────────────────────────────────
    rate_limit_max_requests: int = Field(default=10, gt=0)
    rate_limit_window_seconds: int = Field(default=60 * 60, gt=0)
    trust_forwarded_headers: bool = Field(
        default=True,
        description="Key callers on X-Forwarded-For / X-Real-IP; disable when not behind a proxy",
    )

    # ── CAPTCHA ───────────────────────────────────────────────────────────────
    captcha_required: bool = Field(
        default=False,
        description="Require a Turnstile token on every contact submission",
    )
    turnstile_secret_key: str | None = Field(default=None)
    captcha_timeout_seconds: float = Field(default=10.0, gt=0)

    # ── Spam / validation ─────────────────────────────────────────────────────
    spam_score_threshold: int = Field(
        default=8,
        ge=1,
        description="Raw spam score at or above which content is rejected",
    )
    extra_disposable_domains: list[str] = Field(
        default_factory=lambda: [
            "10minutemail.com", "temp-mail.org", "guerrillamail.com",
            "mailinator.com", "throwaway.email", "tempmail.email",
        ],
    )

    # ── Lead scoring weights ──────────────────────────────────────────────────
    # JSON objects in the environment, e.g. BUDGET_WEIGHTS='{"50k-plus": 30, ...}'
    budget_weights: dict[str, int] = Field(
        default_factory=lambda: {"under-5k": 10, "5k-15k": 15, "15k-50k": 20, "50k-plus": 25},
    )
    urgency_weights: dict[str, int] = Field(
        default_factory=lambda: {"exploring": 5, "planning": 10, "within-month": 15, "immediate": 20},
    )
    complexity_weights: dict[str, int] = Field(
        default_factory=lambda: {"simple": 8, "medium": 10, "complex": 15},
    )
    priority_weights: dict[str, int] = Field(
        default_factory=lambda: {"low": 10, "medium": 20, "high": 30},
    )


def check_startup_config(config: "Settings") -> None:
    """
    Fail fast on configuration that would break every request.

    Raises:
        ConfigurationError: CAPTCHA is required but no secret is set, or a
                            scoring weight table does not cover its enum.
    """
    if config.captcha_required and not config.turnstile_secret_key:
        raise ConfigurationError(
            "CAPTCHA_REQUIRED is set but TURNSTILE_SECRET_KEY is missing"
        )

    # Lazy import: scoring imports settings from this module
    from app.services.scoring import ScoreWeights
    ScoreWeights.from_settings(config)


# Singleton — import this everywhere
settings = Settings()
