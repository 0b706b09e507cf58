"""Ids command: suggest story ids for stories written without one."""

import logging
from pathlib import Path

from ..github.client import GitHubClientError
from ..repositories import FilesystemStore
from ..services.config_service import ConfigService
from ..sync.parser import IdPatch, StoryParser
from ..sync.story_file import is_story_file
from .common import connect, load_config
from .output import error, header, info, success, warning

logger = logging.getLogger(__name__)


def run_ids(
    project_root: Path,
    source: Path | None = None,
    config_path: Path | None = None,
    project: str | None = None,
    check_board: bool = False,
) -> int:
    """Print a deterministic id for every story that lacks one.

    Nothing is written; each suggestion is the field line to add under the
    story's list item. Single-story files are skipped since their file name
    always supplies an id.

    Args:
        project_root: Path to project root containing mdboard.yml
        source: Story file or directory (default: sync.stories_dir)
        config_path: Explicit config file
        project: Project node id or URL, overriding the config
        check_board: Also avoid ids already used on the board

    Returns:
        Exit code (0 if every story has an id, 1 if suggestions were printed
        or the scan failed)
    """
    config_service = ConfigService(project_root, config_path)
    config = config_service.get_config()
    if config_service.has_config_error:
        error(config_service.config_error or "Invalid configuration")
        return 1

    source = source or config_service.stories_dir
    if not source.exists():
        error(f"Not found: {source}")
        return 1

    known_ids: set[str] = set()
    if check_board:
        board_ids = _board_story_ids(project_root, config_path, project)
        if board_ids is None:
            return 1
        known_ids |= board_ids

    header(f"Scanning {source} for stories without ids...")
    patches = suggest_ids(_read_documents(source), StoryParser(config.sync), known_ids)

    print()
    if not patches:
        success("Every story has an id")
        return 0

    for patch in patches:
        warning(f"{patch.file}:{patch.line} {patch.title}")
        print(f"    {patch.field_line()}")
    print()
    info(f"{len(patches)} story id suggestion(s); add each line under its story item")
    return 1


def suggest_ids(
    documents: list[tuple[str, str]],
    parser: StoryParser,
    known_ids: set[str] | None = None,
) -> list[IdPatch]:
    """Id suggestions for (file name, text) documents, unique across all of them."""
    taken = set(known_ids or ())
    for file_name, text in documents:
        taken |= {story.id for story in parser.parse(text, file_name).stories if story.id}

    patches: list[IdPatch] = []
    for file_name, text in documents:
        found = parser.parse(text, file_name, known_ids=taken).id_patches
        taken |= {patch.suggested_id for patch in found}
        patches.extend(found)
    logger.debug("Suggested %d ids across %d documents", len(patches), len(documents))
    return patches


def _read_documents(source: Path) -> list[tuple[str, str]]:
    store = FilesystemStore()
    paths = store.list_markdown(source) if source.is_dir() else [source]
    documents = []
    for path in paths:
        try:
            text = store.read(path)
        except OSError as e:
            warning(f"Skipping unreadable file {path}: {e}")
            continue
        if is_story_file(text):
            logger.debug("Skipping single-story file %s", path)
            continue
        documents.append((str(path), text))
    return documents


def _board_story_ids(
    project_root: Path, config_path: Path | None, project: str | None
) -> set[str] | None:
    loaded = load_config(project_root, config_path, project)
    if loaded is None:
        return None
    engine = connect(loaded[1])
    if engine is None:
        return None
    try:
        story_ids = engine.known_story_ids()
    except GitHubClientError as e:
        error(f"Cannot fetch board: {e}")
        return None
    finally:
        engine.client.close()
    info(f"{len(story_ids)} story id(s) on the board")
    return story_ids
