# Settings loading and database URL handling.

import pytest

from portfolio_api.core import config, db


def test_defaults(monkeypatch):
    for name in ("DATABASE_URL", "JWT_SECRET", "ACCESS_TOKEN_EXPIRE_MIN", "CORS_ORIGINS", "APPLY_SCHEMA"):
        monkeypatch.delenv(name, raising=False)
    settings = config.load_settings()
    assert settings.database_url == ""
    assert settings.jwt_secret == config.DEFAULT_JWT_SECRET
    assert settings.access_token_expire_minutes == 60
    assert settings.apply_schema is True
    assert settings.cors_origins == config.DEFAULT_CORS_ORIGINS


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/portfolio")
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MIN", "15")
    monkeypatch.setenv("APPLY_SCHEMA", "no")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = config.load_settings()
    assert settings.database_url == "postgresql://u:p@db/portfolio"
    assert settings.access_token_expire_minutes == 15
    assert settings.apply_schema is False
    assert settings.cors_origins == ("https://a.example", "https://b.example")
    assert settings.log_level == "DEBUG"


def test_bad_integer_falls_back(monkeypatch):
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MIN", "soon")
    assert config.load_settings().access_token_expire_minutes == 60


def test_database_requires_url():
    with pytest.raises(RuntimeError):
        db.Database("")


def test_database_url_drops_sslmode():
    database = db.Database("postgresql://u:p@db/portfolio?sslmode=require&application_name=api")
    assert database.url == "postgresql://u:p@db/portfolio?application_name=api"


def test_pool_required_before_use():
    with pytest.raises(RuntimeError):
        db.Database("postgresql://u:p@db/portfolio").pool()


@pytest.mark.parametrize("status, expected", [("DELETE 3", 3), ("DELETE 0", 0), ("", 0)])
def test_affected_rows(status, expected):
    assert db.affected_rows(status) == expected
