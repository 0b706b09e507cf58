"""Configuration service for loading mdboard.yml."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..models.config import MdboardConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "mdboard.yml"


class ConfigService:
    """Service for loading and caching the sync configuration."""

    def __init__(self, project_root: Path, config_path: Path | None = None) -> None:
        """Initialize the config service.

        Args:
            project_root: Directory containing mdboard.yml
            config_path: Explicit config file, overriding project_root/mdboard.yml
        """
        self.project_root = project_root
        self.config_path = config_path or project_root / CONFIG_FILE
        self._config: MdboardConfig | None = None
        self._config_error: str | None = None

    @property
    def has_config_error(self) -> bool:
        """Check if there was an error loading config."""
        return self._config_error is not None

    @property
    def config_error(self) -> str | None:
        """Get the config error message if any."""
        return self._config_error

    def get_config(self) -> MdboardConfig:
        """Get configuration, loading from file if not cached."""
        if self._config is None:
            self._config = self._load_config()
        return self._config

    @property
    def stories_dir(self) -> Path:
        """Story directory, relative to the project root."""
        return self.project_root / self.get_config().sync.stories_dir

    def reload(self) -> None:
        """Clear cached configuration, forcing reload on next access."""
        self._config = None
        self._config_error = None

    def _load_config(self) -> MdboardConfig:
        """Load configuration from file or return default."""
        self._config_error = None

        if not self.config_path.exists():
            logger.debug("No %s found, using defaults", self.config_path.name)
            return MdboardConfig.default()

        try:
            with open(self.config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            return self._fallback(f"Invalid YAML in {self.config_path.name}: {e}")
        except OSError as e:
            return self._fallback(f"Cannot read {self.config_path.name}: {e}")

        if data is None:
            return self._fallback(f"{self.config_path.name} is empty")
        if not isinstance(data, dict):
            return self._fallback(f"{self.config_path.name} must contain a mapping")

        try:
            config = MdboardConfig(**data)
        except (ValidationError, ValueError) as e:
            return self._fallback(f"Invalid configuration in {self.config_path.name}: {e}")

        logger.info(
            "Loaded %s (policy=%s, default_status=%s)",
            self.config_path.name,
            config.sync.policy.value,
            config.sync.default_status,
        )
        return config

    def _fallback(self, message: str) -> MdboardConfig:
        self._config_error = message
        logger.warning(message)
        return MdboardConfig.default()
