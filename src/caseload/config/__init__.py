"""Configuration package for the caseload service."""

from caseload.config.app_config import (
    AIConfig,
    AppConfig,
    AuthConfig,
    CorsConfig,
    RateLimitConfig,
    ServerConfig,
    clear_config_cache,
    load_app_config,
    validate_environment,
)
from caseload.config.logging import configure_logging

__all__ = [
    "AIConfig",
    "AppConfig",
    "AuthConfig",
    "CorsConfig",
    "RateLimitConfig",
    "ServerConfig",
    "clear_config_cache",
    "configure_logging",
    "load_app_config",
    "validate_environment",
]
