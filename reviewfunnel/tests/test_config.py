from __future__ import annotations

import pytest

from reviewfunnel.config import load_settings
from reviewfunnel.errors import ConfigurationError

D1_ENV = {"CF_ACCOUNT_ID": "acct", "CF_DATABASE_ID": "db", "CF_API_TOKEN": "tok"}


@pytest.fixture()
def no_yaml(tmp_path):
    return str(tmp_path / "absent.yaml")


def test_defaults_fall_back_to_memory_with_random_secret(no_yaml):
    a = load_settings({}, config_path=no_yaml)
    b = load_settings({}, config_path=no_yaml)
    assert a.storage_backend == "memory"
    assert a.app_env == "development"
    assert a.secure_cookies is False
    assert a.jwt_secret and a.jwt_secret != b.jwt_secret


def test_backend_auto_selection(no_yaml, tmp_path):
    assert load_settings(D1_ENV, config_path=no_yaml).storage_backend == "d1"
    db = str(tmp_path / "r.db")
    assert load_settings({"REVIEW_DB_PATH": db}, config_path=no_yaml).storage_backend == "sqlite"


def test_explicit_d1_without_credentials_fails(no_yaml):
    with pytest.raises(ConfigurationError):
        load_settings({"STORAGE_BACKEND": "d1", "CF_ACCOUNT_ID": "acct"}, config_path=no_yaml)


def test_unknown_backend_fails(no_yaml):
    with pytest.raises(ConfigurationError):
        load_settings({"STORAGE_BACKEND": "redis"}, config_path=no_yaml)


def test_production_refuses_missing_secret(no_yaml):
    with pytest.raises(ConfigurationError):
        load_settings({"APP_ENV": "production", **D1_ENV}, config_path=no_yaml)


def test_production_refuses_memory_backend(no_yaml):
    with pytest.raises(ConfigurationError):
        load_settings({"APP_ENV": "production", "JWT_SECRET": "s" * 40}, config_path=no_yaml)


def test_production_defaults_to_secure_cookies(no_yaml):
    s = load_settings({"APP_ENV": "production", "JWT_SECRET": "s" * 40, **D1_ENV}, config_path=no_yaml)
    assert s.is_production
    assert s.secure_cookies is True
    assert s.jwt_secret == "s" * 40


def test_yaml_values_and_env_override(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "storage_backend: sqlite\n"
        f"db_path: {tmp_path / 'from_yaml.db'}\n"
        "public_base_url: https://yaml.example.com/\n"
        "request_timeout: 4\n"
        "cors_origins:\n  - https://admin.example.com\n"
        "jwt_secret: from-yaml-secret\n",
        encoding="utf-8",
    )
    s = load_settings({"JWT_SECRET": "from-env-secret", "LOG_LEVEL": "debug"}, config_path=str(cfg))
    assert s.storage_backend == "sqlite"
    assert s.db_path.endswith("from_yaml.db")
    assert s.public_base_url == "https://yaml.example.com"
    assert s.request_timeout == 4.0
    assert s.cors_origins == ["https://admin.example.com"]
    assert s.jwt_secret == "from-env-secret"
    assert s.log_level == "DEBUG"


def test_cors_origins_from_env(no_yaml):
    s = load_settings({"CORS_ORIGINS": "https://a.example.com, https://b.example.com"}, config_path=no_yaml)
    assert s.cors_origins == ["https://a.example.com", "https://b.example.com"]


def test_invalid_timeout(no_yaml):
    with pytest.raises(ConfigurationError):
        load_settings({"D1_TIMEOUT": "soon"}, config_path=no_yaml)


def test_create_app_refuses_insecure_production(monkeypatch, no_yaml):
    from reviewfunnel.api import create_app

    monkeypatch.setenv("REVIEW_CONFIG", no_yaml)
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(ConfigurationError):
        create_app()


def test_factory_import_ignores_ambient_environment(monkeypatch, no_yaml):
    import importlib
    import sys

    from fastapi.testclient import TestClient

    from reviewfunnel.config import Settings

    monkeypatch.setenv("REVIEW_CONFIG", no_yaml)
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.delitem(sys.modules, "reviewfunnel.api", raising=False)
    api = importlib.import_module("reviewfunnel.api")

    settings = Settings(app_env="test", jwt_secret="injected-secret")
    with TestClient(api.create_app(settings=settings)) as c:
        assert c.get("/health").status_code == 200


def test_served_app_reads_environment_on_import(monkeypatch, no_yaml):
    import importlib
    import sys

    monkeypatch.setenv("REVIEW_CONFIG", no_yaml)
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.delitem(sys.modules, "reviewfunnel.main", raising=False)
    with pytest.raises(ConfigurationError):
        importlib.import_module("reviewfunnel.main")
