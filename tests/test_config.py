"""Application Configuration — defaults and environment overrides."""

from carbon_api.config import Settings


def test_defaults(monkeypatch):
    for key in ("ENVIRONMENT", "PORT", "BASIC_AUTH_USER", "BASIC_AUTH_PASSWORD"):
        monkeypatch.delenv(key, raising=False)
    settings = Settings(_env_file=None)
    assert settings.environment == "development"
    assert settings.port == 3000
    assert settings.basic_auth_user == "admin"
    assert settings.basic_auth_password == "password"
    assert settings.max_body_bytes == 10 * 1024
    assert settings.max_upload_bytes == 5 * 1024 * 1024
    assert settings.rate_limit == "100/15 minutes"
    assert not settings.is_production


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", " Production ")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("BASIC_AUTH_USER", "ops")
    settings = Settings(_env_file=None)
    assert settings.environment == "production"
    assert settings.is_production
    assert settings.port == 8080
    assert settings.basic_auth_user == "ops"
