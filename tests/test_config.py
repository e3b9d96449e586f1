"""Tests for configuration loading and validation."""

import warnings
from pathlib import Path

import pytest

from notifier.config import (
    AppConfig,
    ConfigurationError,
    EntitlementsConfig,
    NotificationsConfig,
    ServerConfig,
    WebhookConfig,
    load_app_config,
    load_config,
    load_environment_config,
)
from notifier.config.duration import DurationParseError, parse_duration, validate_duration_range
from notifier.config.validators import check_for_warnings

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_valid_config(self, mock_env_vars):
        app_config, env_config = load_config(FIXTURES_DIR / "valid_config.yaml")

        assert app_config.server.host == "127.0.0.1"
        assert app_config.server.port == 8080
        assert app_config.server.allowed_origins == [
            "https://portalestibavlc.com",
            "http://localhost:5173",
        ]
        assert app_config.notifications.default_title == "Nueva oferta"
        assert app_config.notifications.ttl_seconds == 12 * 3600
        assert app_config.notifications.max_workers == 8
        assert app_config.entitlements.features == ["sueldometro", "oraculo"]
        assert app_config.entitlements.enforce_event_order is True
        assert app_config.webhook.tolerance_seconds == 600
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"

    def test_load_minimal_config_applies_defaults(self, mock_env_vars):
        app_config, _ = load_config(FIXTURES_DIR / "minimal_config.yaml")

        assert app_config.server.port == 5001
        assert app_config.server.allowed_origins == ["*"]
        assert app_config.notifications.default_title == "¡Nueva Contratación Disponible!"
        assert app_config.notifications.default_url == "/"
        assert app_config.entitlements.correlation_key == "chapa"
        assert app_config.entitlements.features == ["sueldometro", "oraculo", "chatbot_ia"]
        assert app_config.entitlements.enforce_event_order is False
        assert app_config.webhook.signature_header == "Stripe-Signature"
        assert app_config.webhook.tolerance_seconds == 300

    def test_no_config_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert load_app_config(None) == AppConfig()

    def test_default_location_is_discovered(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("server:\n  port: 6000\n")

        assert load_app_config(None).server.port == 6000

    def test_explicit_file_not_found(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_app_config(Path("nonexistent.yaml"))

        assert "not found" in str(exc_info.value).lower()

    def test_empty_file(self, tmp_path):
        empty = tmp_path / "empty.yaml"
        empty.write_text("")

        with pytest.raises(ConfigurationError) as exc_info:
            load_app_config(empty)

        assert "empty" in str(exc_info.value).lower()

    def test_invalid_yaml_syntax(self, tmp_path):
        broken = tmp_path / "broken.yaml"
        broken.write_text("server:\n  port: '5000\n    host: x")

        with pytest.raises(ConfigurationError) as exc_info:
            load_app_config(broken)

        assert "parse" in str(exc_info.value).lower()

    def test_non_mapping_file(self, tmp_path):
        listing = tmp_path / "list.yaml"
        listing.write_text("- server\n- logging\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_app_config(listing)


class TestConfigurationValidation:
    """Test schema validation rules."""

    def test_unknown_section_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_app_config(FIXTURES_DIR / "invalid_unknown_section.yaml")

        assert "Unknown configuration key: scan_interval" in str(exc_info.value)

    def test_all_errors_reported_together(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_app_config(FIXTURES_DIR / "invalid_values.yaml")

        error = exc_info.value
        assert len(error.errors) == 4
        message = str(error)
        assert "1." in message and "4." in message
        assert "Suggestions:" in message

    def test_origins_normalized(self):
        config = ServerConfig(allowed_origins=[" https://a.example/ ", "https://a.example", ""])

        assert config.allowed_origins == ["https://a.example"]

    def test_empty_origins_rejected(self):
        with pytest.raises(ValueError):
            ServerConfig(allowed_origins=["  "])

    def test_ttl_upper_bound(self):
        with pytest.raises(ValueError, match="too long"):
            NotificationsConfig(ttl="29d")

    def test_tolerance_bounds(self):
        assert WebhookConfig(tolerance="10s").tolerance_seconds == 10
        with pytest.raises(ValueError):
            WebhookConfig(tolerance="2h")

    def test_blank_correlation_key_rejected(self):
        with pytest.raises(ValueError):
            EntitlementsConfig(correlation_key="   ")

    def test_effective_origins_override(self):
        config = AppConfig()

        assert config.effective_origins() == ["*"]
        assert config.effective_origins(["https://x.example"]) == ["https://x.example"]


class TestConfigurationWarnings:
    """Soft checks that warn instead of failing."""

    @pytest.mark.parametrize("environment", ["production", "local"])
    def test_wildcard_origin_warns_in_every_environment(self, environment):
        messages = check_for_warnings(AppConfig(), environment=environment)

        assert any("allowed_origins" in m and environment in m for m in messages)

    def test_explicit_origins_do_not_warn(self):
        config = AppConfig(server=ServerConfig(allowed_origins=["https://portalestibavlc.com"]))

        assert not any("allowed_origins" in m for m in check_for_warnings(config))

    def test_ordering_protection_disabled(self):
        messages = check_for_warnings(AppConfig())

        assert any("enforce_event_order" in m for m in messages)

    def test_empty_features(self):
        config = AppConfig(
            server=ServerConfig(allowed_origins=["https://portalestibavlc.com"]),
            entitlements=EntitlementsConfig(features=[], enforce_event_order=True),
        )

        assert check_for_warnings(config) == [
            "entitlements.features is empty; subscribers will not gain any feature flags"
        ]

    def test_load_config_emits_user_warnings(self, mock_env_vars):
        with pytest.warns(UserWarning, match="enforce_event_order"):
            load_config(FIXTURES_DIR / "minimal_config.yaml")

    def test_clean_config_emits_nothing(self, mock_env_vars):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            load_config(FIXTURES_DIR / "valid_config.yaml")


class TestEnvironmentConfig:
    """Test environment variable loading."""

    def test_required_variables(self, mock_env_vars):
        env = load_environment_config()

        assert env.stripe_webhook_secret == "whsec_test_secret"
        assert env.vapid_public_key == "BPublicKeyForTests"
        assert env.vapid_subject == "mailto:ops@example.com"
        assert env.database_url == "sqlite:///./data/notifier.db"
        assert env.app_url == "http://localhost:5173"
        assert env.allowed_origins == []
        assert env.environment == "local"
        assert env.checkout_enabled is False

    def test_optional_variables(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
        monkeypatch.setenv("STRIPE_PRICE_ID", "price_123")
        monkeypatch.setenv("APP_URL", "https://portalestibavlc.com/")
        monkeypatch.setenv("DATABASE_URL", "postgresql://svc:pw@db/notifier")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example/, https://b.example")
        monkeypatch.setenv("ENVIRONMENT", "production")

        env = load_environment_config()

        assert env.checkout_enabled is True
        assert env.stripe_price_id == "price_123"
        assert env.app_url == "https://portalestibavlc.com"
        assert env.database_url == "postgresql://svc:pw@db/notifier"
        assert env.log_level == "DEBUG"
        assert env.allowed_origins == ["https://a.example", "https://b.example"]
        assert env.environment == "production"

    def test_missing_variables_aggregated(self, monkeypatch):
        for name in ("STRIPE_WEBHOOK_SECRET", "VAPID_PUBLIC_KEY", "VAPID_PRIVATE_KEY", "WEB_PUSH_EMAIL"):
            monkeypatch.delenv(name, raising=False)

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert len(exc_info.value.errors) == 4
        assert "STRIPE_WEBHOOK_SECRET" in str(exc_info.value)

    def test_invalid_email(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("WEB_PUSH_EMAIL", "not-an-email")

        with pytest.raises(ConfigurationError, match="WEB_PUSH_EMAIL"):
            load_environment_config()

    def test_invalid_log_level_and_database_url(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        monkeypatch.setenv("DATABASE_URL", "notifier.db")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert len(exc_info.value.errors) == 2


class TestDurationParsing:
    """Test duration parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("30s", 30),
            ("15m", 900),
            ("1h30m", 5400),
            ("1d", 86400),
            ("PT15M", 900),
            ("PT1H30M", 5400),
            ("P1D", 86400),
        ],
    )
    def test_valid_durations(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "15", "15mx", "0m", "PT0S", "P", 15])
    def test_invalid_durations(self, value):
        with pytest.raises(DurationParseError):
            parse_duration(value)

    def test_range_validation(self):
        validate_duration_range(60, 10, 3600)
        with pytest.raises(DurationParseError, match="too short"):
            validate_duration_range(5, 10, 3600, label="Webhook tolerance")
