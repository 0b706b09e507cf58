"""Filesystem-backed file store."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class FilesystemStore:
    """
    Read and write story files on the local filesystem.

    Files are UTF-8 text. Writes create missing parent directories.
    """

    MARKDOWN_SUFFIX = ".md"

    def __init__(self, root: Path | None = None) -> None:
        """
        Initialize the store.

        Args:
            root: Base directory for relative paths (default: current directory)
        """
        self.root = root or Path.cwd()

    def _resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self.root / path

    def read(self, path: Path) -> str:
        """Read a file as text."""
        return self._resolve(path).read_text(encoding="utf-8")

    def write(self, path: Path, text: str) -> None:
        """Write text to a file, creating parent directories."""
        filepath = self._resolve(path)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_text(text, encoding="utf-8")
        logger.debug("Wrote %s (%d bytes)", filepath, len(text))

    def exists(self, path: Path) -> bool:
        return self._resolve(path).is_file()

    def list_markdown(self, directory: Path) -> list[Path]:
        """List .md files directly inside a directory, sorted by name.

        Raises:
            FileNotFoundError: If the directory does not exist
        """
        dirpath = self._resolve(directory)
        if not dirpath.is_dir():
            raise FileNotFoundError(f"Directory not found: {dirpath}")
        return sorted(
            p for p in dirpath.iterdir() if p.is_file() and p.suffix == self.MARKDOWN_SUFFIX
        )
