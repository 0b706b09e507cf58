"""Service layer."""

from .config_service import CONFIG_FILE, ConfigService

__all__ = ["CONFIG_FILE", "ConfigService"]
