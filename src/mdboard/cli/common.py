"""Shared setup for the push and pull commands."""

import logging
from pathlib import Path

from pydantic import ValidationError

from ..github.client import GitHubAuthError, GitHubClient, GitHubClientError
from ..models.config import MdboardConfig
from ..repositories import FilesystemStore, GitHubProjectsRepository
from ..services.config_service import ConfigService
from ..sync.engine import BoardSyncEngine
from .output import error, header, info

logger = logging.getLogger(__name__)


def apply_project_override(config: MdboardConfig, project: str | None) -> MdboardConfig:
    """Return config with --project applied (a node id or a project URL).

    Raises:
        ValueError: If a URL is given but cannot be parsed
    """
    if not project:
        return config
    if "://" in project or project.startswith("github.com/"):
        update = {"project_url": project, "project_id": None}
    else:
        update = {"project_id": project, "project_url": None}
    data = config.model_dump()
    data["project"].update(update)
    return MdboardConfig(**data)


def load_config(
    project_root: Path, config_path: Path | None, project: str | None
) -> tuple[ConfigService, MdboardConfig] | None:
    """Load mdboard.yml and apply CLI overrides; print errors and return None on failure."""
    config_service = ConfigService(project_root, config_path)
    config = config_service.get_config()
    if config_service.has_config_error:
        error(config_service.config_error or "Invalid configuration")
        return None

    try:
        config = apply_project_override(config, project)
    except (ValidationError, ValueError) as e:
        error(f"Invalid --project value: {e}")
        return None

    if not config.project.project_id and not config.project.project_url:
        error("No project configured")
        info("Pass --project <id|url> or set project.project_url in mdboard.yml")
        return None
    return config_service, config


def connect(config: MdboardConfig) -> BoardSyncEngine | None:
    """Authenticate and build the sync engine; print errors and return None on failure."""
    header("Authenticating with GitHub...")
    try:
        client = GitHubClient.from_environment(config.project.base_url)
    except GitHubAuthError as e:
        error(f"GitHub authentication failed: {e}")
        info("Set GITHUB_TOKEN environment variable or run 'gh auth login'")
        return None
    except GitHubClientError as e:
        error(f"GitHub client error: {e}")
        return None

    repository = GitHubProjectsRepository(client, config)
    try:
        project_id = repository.resolve_project_id()
    except (GitHubClientError, ValueError) as e:
        error(f"Cannot resolve project: {e}")
        client.close()
        return None

    logger.debug("Using project %s", project_id)
    return BoardSyncEngine(repository, FilesystemStore(), config)
