import dataclasses

import pytest

from local_services_api.app.core.config import Settings


ENV_VARS = (
    "JWT_SECRET",
    "JWT_REFRESH_SECRET",
    "PROJECT_NAME",
    "ENVIRONMENT",
    "DEBUG",
    "LOG_LEVEL",
    "LOG_FILE",
    "DATABASE_URL",
    "ACCESS_TOKEN_TTL",
    "REFRESH_TOKEN_TTL",
    "CORS_ORIGIN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_missing_secrets_fail_fast():
    with pytest.raises(RuntimeError, match="JWT_SECRET, JWT_REFRESH_SECRET"):
        Settings.from_env()


def test_missing_refresh_secret_is_named(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "one")
    with pytest.raises(RuntimeError, match="JWT_REFRESH_SECRET"):
        Settings.from_env()


def test_equal_secrets_are_rejected(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "same")
    monkeypatch.setenv("JWT_REFRESH_SECRET", "same")
    with pytest.raises(RuntimeError, match="must differ"):
        Settings.from_env()


def test_defaults(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "one")
    monkeypatch.setenv("JWT_REFRESH_SECRET", "two")
    settings = Settings.from_env()
    assert settings.access_token_ttl == 900
    assert settings.refresh_token_ttl == 604800
    assert settings.environment == "development"
    assert settings.debug is False
    assert settings.log_file is None
    assert settings.database_url == "local_services.db"
    assert settings.cors_origin == "http://localhost:5173"


def test_values_are_read_from_environment(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "one")
    monkeypatch.setenv("JWT_REFRESH_SECRET", "two")
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///var/marketplace.db")
    monkeypatch.setenv("ACCESS_TOKEN_TTL", "60")
    monkeypatch.setenv("CORS_ORIGIN", "https://market.example.com")
    settings = Settings.from_env()
    assert settings.environment == "production"
    assert settings.debug is True
    assert settings.database_url == "sqlite:///var/marketplace.db"
    assert settings.access_token_ttl == 60
    assert settings.cors_origin == "https://market.example.com"


def test_non_numeric_ttl_is_a_configuration_error(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "one")
    monkeypatch.setenv("JWT_REFRESH_SECRET", "two")
    monkeypatch.setenv("ACCESS_TOKEN_TTL", "fifteen")
    with pytest.raises(RuntimeError, match="Configuration Error"):
        Settings.from_env()


@pytest.mark.parametrize("field", ["access_token_ttl", "refresh_token_ttl"])
def test_non_positive_ttl_is_rejected(field):
    with pytest.raises(RuntimeError):
        Settings(jwt_secret="one", jwt_refresh_secret="two", **{field: 0})


def test_settings_are_immutable():
    settings = Settings(jwt_secret="one", jwt_refresh_secret="two")
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.jwt_secret = "changed"
