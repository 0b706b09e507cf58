"""Protocols for the engine's collaborators."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from ..models.board import Board

if TYPE_CHECKING:
    from ..github.client import GitHubClient


class BoardRepository(Protocol):
    """Source of board snapshots.

    Implementations return a fresh snapshot on every fetch.
    """

    @property
    def client(self) -> GitHubClient:
        """Transport used for board reads, shared with the mutation executor."""
        ...

    def resolve_project_id(self) -> str:
        """Return the board's node id, resolving it if needed."""
        ...

    def fetch_board(self, project_id: str | None = None) -> Board:
        """Fetch the current board.

        Args:
            project_id: Board node id; implementations fall back to their
                configured project.
        """
        ...


class FileStore(Protocol):
    """Text file access used by directory sync and export.

    read raises FileNotFoundError for missing files and OSError for unreadable
    ones; the engine turns both into warnings.
    """

    def read(self, path: Path) -> str: ...

    def write(self, path: Path, text: str) -> None: ...

    def exists(self, path: Path) -> bool: ...

    def list_markdown(self, directory: Path) -> list[Path]:
        """Markdown files directly inside directory, sorted by name."""
        ...
