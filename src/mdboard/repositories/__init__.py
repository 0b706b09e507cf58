"""Repository layer: board snapshots and story files."""

from .filesystem import FilesystemStore
from .github_projects import GitHubProjectsRepository, ProjectNotFoundError
from .protocol import BoardRepository, FileStore

__all__ = [
    "BoardRepository",
    "FileStore",
    "FilesystemStore",
    "GitHubProjectsRepository",
    "ProjectNotFoundError",
]
