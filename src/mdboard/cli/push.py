"""Push command: sync markdown stories to the project board."""

import logging
from pathlib import Path

from ..models.config import SyncPolicy
from ..models.log import SyncResult
from .common import connect, load_config
from .output import error, header, info, log_entries, success

logger = logging.getLogger(__name__)


def run_push(
    project_root: Path,
    source: Path | None = None,
    config_path: Path | None = None,
    project: str | None = None,
    policy: SyncPolicy | None = None,
    dry_run: bool = False,
    verbose: int = 0,
) -> int:
    """Create (and with full-sync, update) board items from story markdown.

    Args:
        project_root: Path to project root containing mdboard.yml
        source: Story file or directory (default: sync.stories_dir)
        config_path: Explicit config file
        project: Project node id or URL, overriding the config
        policy: Sync policy, overriding the config
        dry_run: Plan and show mutations without sending them
        verbose: Verbosity; 2+ also prints debug entries

    Returns:
        Exit code (0 for success, 1 if any error was recorded)
    """
    loaded = load_config(project_root, config_path, project)
    if loaded is None:
        return 1
    config_service, config = loaded

    source = source or config_service.stories_dir
    if not source.exists():
        error(f"Not found: {source}")
        return 1

    engine = connect(config)
    if engine is None:
        return 1

    policy = policy or config.sync.policy
    prefix = "[DRY RUN] " if dry_run else ""
    header(f"{prefix}Syncing {source} to the board ({policy.value})...")

    try:
        if source.is_dir():
            report = engine.sync_directory(source, policy=policy, dry_run=dry_run)
        else:
            report = engine.sync_markdown(
                source.read_text(encoding="utf-8"),
                str(source),
                policy=policy,
                dry_run=dry_run,
            )
    finally:
        engine.client.close()

    print()
    log_entries(report.logs, show_debug=verbose >= 2)
    print()
    _display_summary(report.result)
    return 0 if report.result.success else 1


def _display_summary(result: SyncResult) -> None:
    verb = "Would create" if result.dry_run else "Created"
    if result.created:
        success(f"{verb} {result.created} item(s)")
    if result.updated:
        success(f"{'Would apply' if result.dry_run else 'Applied'} {result.updated} update(s)")
    if result.skipped:
        info(f"Skipped {result.skipped} (already on the board)")
    if not result.created and not result.updated:
        info("Board is up to date")
    if result.errors:
        error(f"{len(result.errors)} error(s) in {result.processed_files} file(s)")
