"""Shared fixtures for notifier tests."""

import pytest

from notifier.config.environment import EnvironmentConfig
from notifier.config.models import AppConfig
from notifier.logging.context import clear_log_context
from notifier.persistence import Database
from notifier.registry import EndpointRegistry
from tests.helpers import WEBHOOK_SECRET, FakeTransport

OPTIONAL_ENV_VARS = (
    "STRIPE_SECRET_KEY",
    "STRIPE_PRICE_ID",
    "APP_URL",
    "DATABASE_URL",
    "LOG_LEVEL",
    "ALLOWED_ORIGINS",
    "ENVIRONMENT",
)


@pytest.fixture(autouse=True)
def clean_log_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set required environment variables and clear optional ones."""
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setenv("VAPID_PUBLIC_KEY", "BPublicKeyForTests")
    monkeypatch.setenv("VAPID_PRIVATE_KEY", "private-key-for-tests")
    monkeypatch.setenv("WEB_PUSH_EMAIL", "ops@example.com")
    for name in OPTIONAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def database(tmp_path):
    """File-backed SQLite database, so delivery worker threads share it."""
    db = Database(f"sqlite:///{tmp_path / 'notifier.db'}").initialize()
    yield db
    db.dispose()


@pytest.fixture
def registry(database):
    return EndpointRegistry(database)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def app_config():
    return AppConfig()


@pytest.fixture
def env_config(tmp_path):
    return EnvironmentConfig(
        stripe_webhook_secret=WEBHOOK_SECRET,
        vapid_public_key="BPublicKeyForTests",
        vapid_private_key="private-key-for-tests",
        web_push_email="ops@example.com",
        database_url=f"sqlite:///{tmp_path / 'notifier.db'}",
    )
