from __future__ import annotations

# reviewfunnel/config.py
import logging
import os
import secrets
from dataclasses import dataclass, field
from typing import Mapping

import yaml
from fastapi import Request

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# 配置解析顺序（逐项）：
# 1) 环境变量（最高优先级）
# 2) config.yaml（路径可由 REVIEW_CONFIG 指定，默认项目根目录）
# 3) 代码内默认值
_PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
_DEFAULT_CFG_PATH = os.path.join(_PROJECT_ROOT, "config.yaml")

BACKENDS = ("d1", "sqlite", "memory")

DEFAULT_CORS_ORIGINS = [
    "http://localhost:4321",
    "http://127.0.0.1:4321",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

# env var -> settings key
_ENV_KEYS = {
    "APP_ENV": "app_env",
    "STORAGE_BACKEND": "storage_backend",
    "CF_ACCOUNT_ID": "cf_account_id",
    "CF_DATABASE_ID": "cf_database_id",
    "CF_API_TOKEN": "cf_api_token",
    "REVIEW_DB_PATH": "db_path",
    "D1_TIMEOUT": "request_timeout",
    "JWT_SECRET": "jwt_secret",
    "SECURE_COOKIES": "secure_cookies",
    "PUBLIC_BASE_URL": "public_base_url",
    "FEEDBACK_WEBHOOK_URL": "feedback_webhook_url",
    "ADMIN_USERNAME": "admin_username",
    "ADMIN_PASSWORD": "admin_password",
    "LOG_LEVEL": "log_level",
    "CORS_ORIGINS": "cors_origins",
}


@dataclass
class Settings:
    app_env: str = "development"
    storage_backend: str = "memory"
    cf_account_id: str | None = None
    cf_database_id: str | None = None
    cf_api_token: str | None = None
    db_path: str | None = None
    request_timeout: float = 10.0
    jwt_secret: str = ""
    secure_cookies: bool = False
    public_base_url: str = "http://localhost:8000"
    feedback_webhook_url: str | None = None
    admin_username: str | None = None
    admin_password: str | None = None
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def has_d1_credentials(self) -> bool:
        return bool(self.cf_account_id and self.cf_database_id and self.cf_api_token)


def _read_config_yaml(path: str | None = None) -> dict:
    cfg_path = path or os.environ.get("REVIEW_CONFIG") or _DEFAULT_CFG_PATH
    if not os.path.exists(cfg_path):
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"config file must be a mapping: {cfg_path}")
    return cfg


def _as_bool(v) -> bool:
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in ("1", "true", "yes", "on")


def _clean(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def load_settings(env: Mapping[str, str] | None = None, config_path: str | None = None) -> Settings:
    """
    Build Settings from environment + config.yaml.

    Raises ConfigurationError when the result cannot run safely: an explicit
    d1 backend without credentials, or a production deployment without a
    session secret or with a non-durable store.
    """
    env = os.environ if env is None else env
    raw: dict = {}
    for k, v in _read_config_yaml(config_path).items():
        if v is not None:
            raw[k] = v
    for env_key, key in _ENV_KEYS.items():
        v = _clean(env.get(env_key))
        if v is not None:
            raw[key] = v

    s = Settings()
    s.app_env = str(raw.get("app_env", s.app_env)).lower()
    s.cf_account_id = _clean(raw.get("cf_account_id"))
    s.cf_database_id = _clean(raw.get("cf_database_id"))
    s.cf_api_token = _clean(raw.get("cf_api_token"))
    s.db_path = _clean(raw.get("db_path"))
    s.public_base_url = str(raw.get("public_base_url", s.public_base_url)).rstrip("/")
    s.feedback_webhook_url = _clean(raw.get("feedback_webhook_url"))
    s.admin_username = _clean(raw.get("admin_username"))
    s.admin_password = _clean(raw.get("admin_password"))
    s.log_level = str(raw.get("log_level", s.log_level)).upper()
    s.secure_cookies = _as_bool(raw["secure_cookies"]) if "secure_cookies" in raw else s.is_production

    try:
        s.request_timeout = float(raw.get("request_timeout", s.request_timeout))
    except (TypeError, ValueError):
        raise ConfigurationError(f"invalid request_timeout: {raw.get('request_timeout')!r}")

    origins = raw.get("cors_origins")
    if isinstance(origins, str):
        s.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]
    elif isinstance(origins, list):
        s.cors_origins = [str(o) for o in origins]

    backend = _clean(raw.get("storage_backend"))
    if backend is None:
        if s.has_d1_credentials():
            backend = "d1"
        elif s.db_path:
            backend = "sqlite"
        else:
            backend = "memory"
    backend = backend.lower()
    if backend not in BACKENDS:
        raise ConfigurationError(f"unknown storage_backend: {backend}")
    if backend == "d1" and not s.has_d1_credentials():
        raise ConfigurationError(
            "Missing D1 configuration (CF_ACCOUNT_ID, CF_DATABASE_ID, CF_API_TOKEN)."
        )
    if backend == "sqlite" and not s.db_path:
        raise ConfigurationError("storage_backend=sqlite requires REVIEW_DB_PATH")
    s.storage_backend = backend

    secret = _clean(raw.get("jwt_secret"))
    if s.is_production:
        if not secret:
            raise ConfigurationError("JWT_SECRET must be set in production")
        if backend == "memory":
            raise ConfigurationError("production requires a persistent storage backend")
    if not secret:
        # 非生产环境：每个进程随机生成，重启后会话全部失效
        logger.warning("JWT_SECRET not set; using a random per-process secret")
        secret = secrets.token_urlsafe(32)
    s.jwt_secret = secret

    if backend == "memory":
        logger.warning("No store configured; using the in-memory backend (data is lost on restart)")
    return s


def get_settings(request: Request) -> Settings:
    """FastAPI dependency: the settings resolved at startup."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise ConfigurationError("settings not initialised")
    return settings
