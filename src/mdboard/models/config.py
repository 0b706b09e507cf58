"""Configuration models for mdboard.yml."""

import re
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from .story import StoryStatus

DEFAULT_INVALID_ID_PATTERN = r"^DI_lAHOBFSaJM4BEcZZzgJ0"


class SyncPolicy(str, Enum):
    """How markdown -> board sync treats stories already on the board."""

    CREATE_ONLY = "create-only"  # Only add missing items
    FULL_SYNC = "full-sync"  # Also push content, state, and status changes


class StatusAlias(BaseModel):
    """Maps heading text (by substring) to a status name."""

    match: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)

    @field_validator("match")
    @classmethod
    def validate_match(cls, v: str) -> str:
        """Headings are compared lowercased, so aliases are stored lowercased."""
        return v.strip().lower()


def default_status_aliases() -> list[StatusAlias]:
    """Default heading aliases, checked in order (first substring hit wins).

    "To Do" is treated as Ready; override status_aliases to keep it distinct.
    """
    return [
        StatusAlias(match="in review", status=StoryStatus.IN_REVIEW.value),
        StatusAlias(match="in progress", status=StoryStatus.IN_PROGRESS.value),
        StatusAlias(match="backlog", status=StoryStatus.BACKLOG.value),
        StatusAlias(match="done", status=StoryStatus.DONE.value),
        StatusAlias(match="ready", status=StoryStatus.READY.value),
        StatusAlias(match="to do", status=StoryStatus.READY.value),
        StatusAlias(match="todo", status=StoryStatus.READY.value),
    ]


class SyncConfig(BaseModel):
    """Settings for the reconciliation engine."""

    policy: SyncPolicy = SyncPolicy.CREATE_ONLY
    default_status: str = Field(default=StoryStatus.BACKLOG.value, min_length=1)
    status_aliases: list[StatusAlias] = Field(default_factory=default_status_aliases)
    keep_custom_status: bool = Field(
        default=True,
        description="Keep unrecognized section headings verbatim instead of using default_status",
    )
    validate_ids: bool = Field(default=False, description="Warn on badly formatted story ids")
    invalid_id_pattern: str | None = Field(
        default=DEFAULT_INVALID_ID_PATTERN,
        description="Board item ids matching this regex are ignored when matching",
    )
    story_id_field: str = Field(default="Story ID", description="Free-text project field name")
    stories_dir: str = Field(default="stories", description="Relative path to story files")

    @field_validator("invalid_id_pattern")
    @classmethod
    def validate_pattern(cls, v: str | None) -> str | None:
        """Fail early on an invalid regex."""
        if v:
            try:
                re.compile(v)
            except re.error as err:
                raise ValueError(f"Invalid invalid_id_pattern: {err}") from err
        return v or None

    def resolve_heading(self, heading: str) -> str:
        """Map section heading text to a status name.

        Unrecognized headings are returned verbatim (stripped) when
        keep_custom_status is set, otherwise default_status is used.
        """
        text = heading.strip()
        lowered = text.lower()
        for alias in self.status_aliases:
            if alias.match in lowered:
                return alias.status
        if self.keep_custom_status and text:
            return text
        return self.default_status


class ProjectConfig(BaseModel):
    """Which GitHub project to sync with."""

    project_id: str | None = Field(default=None, description="ProjectV2 node id (PVT_...)")
    project_url: str | None = Field(
        default=None,
        description="https://github.com/users|orgs/<owner>/projects/<number>",
    )
    base_url: str = Field(default="api.github.com", description="API host (Enterprise)")

    def get_project_info(self) -> tuple[str, str, int]:
        """Parse project_url into (owner, owner_type, number).

        Raises:
            ValueError: If project_url is missing or malformed
        """
        if not self.project_url:
            raise ValueError("project_url is not configured")
        match = re.search(r"/(users|orgs)/([^/]+)/projects/(\d+)", self.project_url)
        if not match:
            raise ValueError(f"Invalid project URL format: {self.project_url}")
        owner_kind, owner, number = match.groups()
        owner_type = "user" if owner_kind == "users" else "organization"
        return owner, owner_type, int(number)


class MdboardConfig(BaseModel):
    """Root configuration from mdboard.yml."""

    version: int = 1
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)

    @model_validator(mode="after")
    def validate_project(self) -> "MdboardConfig":
        """A project URL, when given, must be parseable."""
        if self.project.project_url:
            self.project.get_project_info()
        return self

    @classmethod
    def default(cls) -> "MdboardConfig":
        """Return default configuration."""
        return cls()
