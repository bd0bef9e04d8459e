"""Application configuration loader.

Loads configuration from data/config/caseload.yaml (or $CASELOAD_CONFIG),
merges it over built-in defaults and finally applies environment overrides
(NODE_ENV/APP_ENV, PORT, CORS_ORIGIN, CORS_CREDENTIALS, ...).

Usage:
    from caseload.config.app_config import load_app_config

    config = load_app_config()
    if config.is_production:
        ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/caseload.yaml")

DEFAULT_JWT_SECRET = "change-this-secret-in-production"

DEFAULT_PRODUCTION_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
]


@dataclass
class ServerConfig:
    """HTTP server settings."""

    env: str = "development"
    host: str = "127.0.0.1"
    port: int = 3001


@dataclass
class CorsConfig:
    """CORS settings. ``origins=None`` means allow any origin."""

    origins: list[str] | None = None
    credentials: bool = True


@dataclass
class RateLimitConfig:
    """Fixed-window rate limit settings."""

    enabled: bool = False
    window_seconds: int = 900
    max_requests: int = 100
    strict_max_requests: int = 10


@dataclass
class AuthConfig:
    """Optional password + JWT authentication."""

    enabled: bool = False
    jwt_secret: str = DEFAULT_JWT_SECRET
    token_ttl_hours: int = 168


@dataclass
class AIConfig:
    """Hosted generative-AI provider settings."""

    provider: str = "gemini"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    api_key_env: str = "GEMINI_API_KEY"
    fallback_models: list[str] = field(
        default_factory=lambda: [
            "gemini-3-flash-preview",
            "gemini-3-pro-preview",
            "gemini-1.5-flash",
            "gemini-1.5-pro",
            "gemini-pro",
        ]
    )
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout: int = 120

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env) or None
        return None


@dataclass
class AppConfig:
    """Application-wide configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    data_dir: Path = Path("data")
    db_path: Path = Path("data/slp-caseload.db")

    @property
    def is_production(self) -> bool:
        return self.server.env == "production"

    @property
    def backups_dir(self) -> Path:
        return self.data_dir / "backups"

    @property
    def auth_file(self) -> Path:
        return self.data_dir / "auth.json"


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "server": {"env": "development", "host": "127.0.0.1", "port": 3001},
        "cors": {"origins": None, "credentials": True},
        "rate_limit": {
            "enabled": None,
            "window_seconds": 900,
            "max_requests": 100,
            "strict_max_requests": 10,
        },
        "auth": {
            "enabled": None,
            "jwt_secret": DEFAULT_JWT_SECRET,
            "token_ttl_hours": 168,
        },
        "ai": {},
        "paths": {"data_dir": "data", "db_file": "slp-caseload.db"},
    }


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _env_flag(name: str) -> bool | None:
    """Read a boolean environment variable, None when unset."""
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variables on top of file/default values."""
    env = os.environ.get("APP_ENV") or os.environ.get("NODE_ENV")
    if env:
        data["server"]["env"] = env
    if os.environ.get("HOST"):
        data["server"]["host"] = os.environ["HOST"]
    if os.environ.get("PORT"):
        data["server"]["port"] = int(os.environ["PORT"])

    cors_origin = os.environ.get("CORS_ORIGIN")
    if cors_origin:
        data["cors"]["origins"] = [o.strip() for o in cors_origin.split(",") if o.strip()]
    if "CORS_CREDENTIALS" in os.environ:
        data["cors"]["credentials"] = os.environ["CORS_CREDENTIALS"] != "false"

    rate_enabled = _env_flag("RATE_LIMIT_ENABLED")
    if rate_enabled is not None:
        data["rate_limit"]["enabled"] = rate_enabled
    if os.environ.get("RATE_LIMIT_WINDOW_MS"):
        data["rate_limit"]["window_seconds"] = int(os.environ["RATE_LIMIT_WINDOW_MS"]) // 1000
    if os.environ.get("RATE_LIMIT_MAX_REQUESTS"):
        data["rate_limit"]["max_requests"] = int(os.environ["RATE_LIMIT_MAX_REQUESTS"])
    if os.environ.get("RATE_LIMIT_STRICT_MAX"):
        data["rate_limit"]["strict_max_requests"] = int(os.environ["RATE_LIMIT_STRICT_MAX"])

    auth_enabled = _env_flag("AUTH_ENABLED")
    if auth_enabled is not None:
        data["auth"]["enabled"] = auth_enabled
    if os.environ.get("JWT_SECRET"):
        data["auth"]["jwt_secret"] = os.environ["JWT_SECRET"]
    if os.environ.get("JWT_EXPIRES_IN"):
        data["auth"]["token_ttl_hours"] = int(os.environ["JWT_EXPIRES_IN"])

    if os.environ.get("CASELOAD_DATA_DIR"):
        data["paths"]["data_dir"] = os.environ["CASELOAD_DATA_DIR"]
    if os.environ.get("DATABASE_PATH"):
        data["paths"]["db_path"] = os.environ["DATABASE_PATH"]

    return data


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    server = ServerConfig(**data.get("server", {}))
    production = server.env == "production"

    cors_data = data.get("cors", {})
    origins = cors_data.get("origins")
    if origins is None and production:
        origins = list(DEFAULT_PRODUCTION_ORIGINS)
    cors = CorsConfig(origins=origins, credentials=cors_data.get("credentials", True))

    rate_data = dict(data.get("rate_limit", {}))
    if rate_data.get("enabled") is None:
        rate_data["enabled"] = production
    rate_limit = RateLimitConfig(**rate_data)

    auth_data = dict(data.get("auth", {}))
    if auth_data.get("enabled") is None:
        auth_data["enabled"] = production
    auth = AuthConfig(**auth_data)

    ai = AIConfig(**data.get("ai", {}))

    paths = data.get("paths", {})
    data_dir = Path(paths.get("data_dir", "data"))
    db_path = Path(paths["db_path"]) if paths.get("db_path") else data_dir / paths.get(
        "db_file", "slp-caseload.db"
    )

    return AppConfig(
        server=server,
        cors=cors,
        rate_limit=rate_limit,
        auth=auth,
        ai=ai,
        data_dir=data_dir,
        db_path=db_path,
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config from YAML, defaults and environment.

    Args:
        force_reload: If True, ignore cached config and reload.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data = _get_defaults()
    config_file = Path(os.environ.get("CASELOAD_CONFIG", CONFIG_FILE))

    if config_file.exists():
        logger.debug("config.loading", source=str(config_file))
        file_data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
        data = _merge(data, file_data)
    else:
        logger.debug("config.using_defaults")

    _cached_config = _parse_config(_apply_env_overrides(data))
    return _cached_config


def validate_environment(config: AppConfig) -> list[str]:
    """Check the loaded configuration for unsafe production settings.

    Args:
        config: Loaded application config.

    Returns:
        List of human-readable warnings (empty when everything looks fine).
    """
    warnings: list[str] = []
    if not config.is_production:
        return warnings

    if config.auth.enabled and config.auth.jwt_secret == DEFAULT_JWT_SECRET:
        warnings.append("JWT_SECRET is not set; tokens are signed with the default secret")
    if not os.environ.get("CORS_ORIGIN"):
        warnings.append(
            "CORS_ORIGIN is not set; falling back to localhost origins only"
        )
    if not config.rate_limit.enabled:
        warnings.append("Rate limiting is disabled in production")
    return warnings


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
