"""Pull command: export the project board to story files."""

import logging
from pathlib import Path

from ..models.log import ExportResult
from .common import connect, load_config
from .output import error, header, info, log_entries, success

logger = logging.getLogger(__name__)


def run_pull(
    project_root: Path,
    target: Path | None = None,
    config_path: Path | None = None,
    project: str | None = None,
    story_id: str | None = None,
    statuses: list[str] | None = None,
    single_file: Path | None = None,
    dry_run: bool = False,
    verbose: int = 0,
) -> int:
    """Write board items to story files.

    Args:
        project_root: Path to project root containing mdboard.yml
        target: Output directory (default: sync.stories_dir)
        config_path: Explicit config file
        project: Project node id or URL, overriding the config
        story_id: Only export this story
        statuses: Only export items in these statuses
        single_file: Write the whole board into this one file instead
        dry_run: Show what would be written without writing
        verbose: Verbosity; 2+ also prints debug entries

    Returns:
        Exit code (0 for success, 1 if any error was recorded)
    """
    loaded = load_config(project_root, config_path, project)
    if loaded is None:
        return 1
    config_service, config = loaded

    engine = connect(config)
    if engine is None:
        return 1

    prefix = "[DRY RUN] " if dry_run else ""
    try:
        if single_file is not None:
            header(f"{prefix}Exporting board to {single_file}...")
            report = engine.export_board_document(single_file, dry_run=dry_run)
        else:
            target = target or config_service.stories_dir
            header(f"{prefix}Exporting board to {target}/...")
            report = engine.export_board(
                target, story_id=story_id, statuses=statuses, dry_run=dry_run
            )
    finally:
        engine.client.close()

    print()
    log_entries(report.logs, show_debug=verbose >= 2)
    print()
    _display_summary(report.result, dry_run)
    return 0 if report.result.success else 1


def _display_summary(result: ExportResult, dry_run: bool) -> None:
    if result.written:
        success(f"{'Would write' if dry_run else 'Wrote'} {result.written} file(s)")
    if result.unchanged:
        info(f"{result.unchanged} file(s) already up to date")
    if not result.files:
        info("No matching items on the board")
    if result.errors:
        error(f"{len(result.errors)} error(s)")
