"""Environment variable loading and validation."""

import os
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/notifier.db"
DEFAULT_APP_URL = "http://localhost:5173"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Secrets and deployment-specific settings read from the environment."""

    def __init__(
        self,
        stripe_webhook_secret: str,
        vapid_public_key: str,
        vapid_private_key: str,
        web_push_email: str,
        stripe_secret_key: Optional[str] = None,
        stripe_price_id: Optional[str] = None,
        app_url: Optional[str] = None,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        allowed_origins: Optional[List[str]] = None,
        environment: Optional[str] = None,
    ):
        self.stripe_webhook_secret = stripe_webhook_secret
        self.vapid_public_key = vapid_public_key
        self.vapid_private_key = vapid_private_key
        self.web_push_email = web_push_email
        self.stripe_secret_key = stripe_secret_key
        self.stripe_price_id = stripe_price_id
        self.app_url = (app_url or DEFAULT_APP_URL).rstrip("/")
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.allowed_origins = allowed_origins or []
        self.environment = environment or "local"

    @property
    def vapid_subject(self) -> str:
        """VAPID ``sub`` claim identifying the sender to push services."""
        return f"mailto:{self.web_push_email}"

    @property
    def checkout_enabled(self) -> bool:
        return bool(self.stripe_secret_key)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Required:
    - STRIPE_WEBHOOK_SECRET: shared secret for webhook signatures
    - VAPID_PUBLIC_KEY / VAPID_PRIVATE_KEY: Web Push application server keys
    - WEB_PUSH_EMAIL: contact address sent in the VAPID claim

    Optional:
    - STRIPE_SECRET_KEY: enables checkout session creation
    - STRIPE_PRICE_ID: default price for checkout sessions
    - APP_URL: front-end base URL for checkout redirects
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/notifier.db)
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL
    - ALLOWED_ORIGINS: comma-separated CORS origins (overrides config file)
    - ENVIRONMENT: label attached to every log record

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors = []

    required = {
        name: os.getenv(name)
        for name in (
            "STRIPE_WEBHOOK_SECRET",
            "VAPID_PUBLIC_KEY",
            "VAPID_PRIVATE_KEY",
            "WEB_PUSH_EMAIL",
        )
    }
    for name, value in required.items():
        if not value or not value.strip():
            errors.append(f"Missing required environment variable: {name}")

    web_push_email = required["WEB_PUSH_EMAIL"]
    if web_push_email and web_push_email.strip():
        try:
            web_push_email = validate_email(
                web_push_email.strip(), check_deliverability=False
            ).normalized
        except EmailNotValidError as e:
            errors.append(f"Invalid email address in WEB_PUSH_EMAIL: '{web_push_email}' - {e}")

    log_level = os.getenv("LOG_LEVEL")
    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    database_url = os.getenv("DATABASE_URL")
    if database_url is not None and "://" not in database_url:
        errors.append(f"Invalid DATABASE_URL: '{database_url}'. Expected a SQLAlchemy URL")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Generate VAPID keys with `vapid --gen` (py-vapid) or `npx web-push generate-vapid-keys`",
                "Copy the webhook signing secret from the billing provider dashboard",
            ],
        )

    return EnvironmentConfig(
        stripe_webhook_secret=required["STRIPE_WEBHOOK_SECRET"].strip(),
        vapid_public_key=required["VAPID_PUBLIC_KEY"].strip(),
        vapid_private_key=required["VAPID_PRIVATE_KEY"].strip(),
        web_push_email=web_push_email,
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY") or None,
        stripe_price_id=os.getenv("STRIPE_PRICE_ID") or None,
        app_url=os.getenv("APP_URL") or None,
        database_url=database_url,
        log_level=log_level.upper() if log_level else None,
        allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS")),
        environment=os.getenv("ENVIRONMENT") or None,
    )


def _split_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]
