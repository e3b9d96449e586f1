"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .duration import DurationParseError, parse_duration, validate_duration_range

# Push services cap message TTL at four weeks
MAX_PUSH_TTL_SECONDS = 28 * 86400


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _duration_field(value: str, min_seconds: int, max_seconds: int, label: str) -> str:
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, min_seconds, max_seconds, label=label)
    except DurationParseError as e:
        raise ValueError(str(e)) from e
    return value


class ServerConfig(BaseModel):
    """HTTP listener and CORS settings."""

    host: str = Field("0.0.0.0", min_length=1, description="Interface to bind")
    port: int = Field(5000, ge=1, le=65535, description="Port to listen on")
    allowed_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by CORS ('*' allows any origin)",
    )

    @field_validator("allowed_origins")
    @classmethod
    def normalize_origins(cls, v: List[str]) -> List[str]:
        """Strip whitespace and trailing slashes, drop empty entries."""
        normalized = []
        for origin in v:
            stripped = origin.strip().rstrip("/")
            if stripped and stripped not in normalized:
                normalized.append(stripped)
        if not normalized:
            raise ValueError("allowed_origins must contain at least one origin")
        return normalized


class NotificationsConfig(BaseModel):
    """Push fan-out settings and payload fallbacks."""

    default_title: str = Field("¡Nueva Contratación Disponible!", min_length=1)
    default_body: str = Field(
        "Revisa los detalles de la última incorporación a nuestro equipo.", min_length=1
    )
    default_url: str = Field("/", min_length=1)
    ttl: str = Field("1d", description="How long the push service keeps undelivered messages")
    delivery_timeout: int = Field(
        10, ge=1, le=120, description="Per-delivery HTTP timeout (seconds)"
    )
    max_workers: int = Field(
        32, ge=1, le=256, description="Upper bound on concurrent delivery threads"
    )

    @field_validator("ttl")
    @classmethod
    def validate_ttl(cls, v: str) -> str:
        return _duration_field(v, 1, MAX_PUSH_TTL_SECONDS, "Push TTL")

    @property
    def ttl_seconds(self) -> int:
        return parse_duration(self.ttl)


class EntitlementsConfig(BaseModel):
    """How subscription events map onto entitlement records."""

    correlation_key: str = Field(
        "chapa", min_length=1, description="Subscription metadata key holding the user identifier"
    )
    plan_tag: str = Field("premium_mensual", min_length=1)
    features: List[str] = Field(
        default_factory=lambda: ["sueldometro", "oraculo", "chatbot_ia"],
        description="Feature flags enabled for an entitled user",
    )
    enforce_event_order: bool = Field(
        False,
        description="Ignore events older than the last applied event for a user",
    )

    @field_validator("correlation_key", "plan_tag")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @field_validator("features")
    @classmethod
    def normalize_features(cls, v: List[str]) -> List[str]:
        """Lowercase, strip, and deduplicate feature names preserving order."""
        normalized = []
        for feature in v:
            name = feature.strip().lower()
            if name and name not in normalized:
                normalized.append(name)
        return normalized


class WebhookConfig(BaseModel):
    """Inbound billing webhook settings."""

    signature_header: str = Field("Stripe-Signature", min_length=1)
    tolerance: str = Field("5m", description="Maximum accepted age of a signed payload")

    @field_validator("tolerance")
    @classmethod
    def validate_tolerance(cls, v: str) -> str:
        return _duration_field(v, 10, 3600, "Webhook tolerance")

    @property
    def tolerance_seconds(self) -> int:
        return parse_duration(self.tolerance)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the notifier service."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    entitlements: EntitlementsConfig = Field(default_factory=EntitlementsConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "forbid"}

    def effective_origins(self, override: Optional[List[str]] = None) -> List[str]:
        """CORS origins, with an environment override taking precedence."""
        if override:
            return list(override)
        return list(self.server.allowed_origins)
