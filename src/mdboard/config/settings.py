"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Process-level settings (MDBOARD_* environment variables and CLI flags)."""

    project_root: Path = Field(
        default=Path(),
        description="Path to project root containing mdboard.yml",
    )

    config_file: Path | None = Field(
        default=None,
        description="Explicit config file (default: <project_root>/mdboard.yml)",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "MDBOARD_",
    }

    @property
    def config_path(self) -> Path:
        """Resolved path of the config file."""
        if self.config_file is not None:
            return self.config_file
        return self.project_root / "mdboard.yml"
