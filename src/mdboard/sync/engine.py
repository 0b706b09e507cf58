"""Sync engine: markdown <-> GitHub Projects board.

This module provides BoardSyncEngine, which wires the pipeline together:
- Push: parse markdown, fetch the board, plan intents, execute mutations
- Pull: fetch the board and write one story file per item

Every public operation returns a report holding the result and the complete
run log. Exceptions are caught here and recorded as errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..github.client import GitHubClientError
from ..models.config import MdboardConfig, SyncPolicy
from ..models.log import ExportReport, ExportResult, RunLog, SyncReport, SyncResult
from ..utils.status import normalize_status_filter
from .executor import MutationBatchExecutor
from .exporter import MarkdownExporter
from .markdown import LineBlockService, MarkdownService
from .parser import ParseResult, StoryParser
from .planner import SyncPlanner
from .story_file import is_story_file, parse_story_file

if TYPE_CHECKING:
    from ..github.client import GitHubClient
    from ..repositories.protocol import BoardRepository, FileStore

logger = logging.getLogger(__name__)


@dataclass
class _Counts:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    aborted: bool = False

    def add(self, other: _Counts) -> None:
        self.created += other.created
        self.updated += other.updated
        self.skipped += other.skipped
        self.aborted = self.aborted or other.aborted


class BoardSyncEngine:
    """Engine for two-way sync between story markdown and a project board.

    Files are processed strictly one after another, and every file is planned
    against a freshly fetched board.
    """

    def __init__(
        self,
        repository: BoardRepository,
        store: FileStore,
        config: MdboardConfig | None = None,
        client: GitHubClient | None = None,
        markdown: MarkdownService | None = None,
    ) -> None:
        """Initialize the sync engine.

        Args:
            repository: Board snapshot source
            store: File access for directory sync and export
            config: Project and sync configuration
            client: Transport for mutations (default: the repository's client)
            markdown: Block-tree service shared by parser and exporter
        """
        self._repository = repository
        self._store = store
        self._config = config or MdboardConfig.default()
        self._client = client
        self._markdown = markdown or LineBlockService()

        sync_config = self._config.sync
        self._parser = StoryParser(sync_config, self._markdown)
        self._planner = SyncPlanner(sync_config)
        self._exporter = MarkdownExporter(self._markdown)

    @property
    def client(self) -> GitHubClient:
        return self._client if self._client is not None else self._repository.client

    # --- Public API: Push ---

    def sync_markdown(
        self,
        text: str,
        file_name: str | None = None,
        policy: SyncPolicy | None = None,
        dry_run: bool = False,
    ) -> SyncReport:
        """Sync the stories of one markdown document to the board.

        Args:
            text: Markdown content (story list document or single-story file)
            file_name: Source name for diagnostics and id fallback
            policy: Override the configured sync policy
            dry_run: Plan and log, but send no mutations

        Returns:
            SyncReport with counts and the full log
        """
        log = RunLog(__name__)
        counts = _Counts()
        try:
            counts = self._sync_document(text, file_name, policy, dry_run, log)
        except Exception as e:
            log.error(f"Sync failed: {e}", file=file_name)

        result = SyncResult.from_log(
            log,
            processed_files=1,
            created=counts.created,
            updated=counts.updated,
            skipped=counts.skipped,
            dry_run=dry_run,
        )
        return SyncReport(result=result, logs=log.entries)

    def sync_directory(
        self,
        source_dir: Path,
        policy: SyncPolicy | None = None,
        dry_run: bool = False,
    ) -> SyncReport:
        """Sync every markdown file in a directory, one file at a time.

        Unreadable files are skipped with a warning. A transport failure stops
        the run; files already synced stay synced.
        """
        log = RunLog(__name__)
        totals = _Counts()
        processed = 0

        try:
            files = self._store.list_markdown(source_dir)
        except OSError as e:
            log.error(f"Cannot list {source_dir}: {e}")
            files = []
        else:
            if not files:
                log.warn(f"No markdown files found in {source_dir}")
            else:
                log.info(f"Found {len(files)} markdown files in {source_dir}")

        for path in files:
            try:
                text = self._store.read(path)
            except OSError as e:
                log.warn(f"Skipping unreadable file: {e}", file=str(path))
                continue

            processed += 1
            try:
                counts = self._sync_document(text, str(path), policy, dry_run, log)
            except GitHubClientError as e:
                log.error(f"Sync stopped: {e}", file=str(path))
                break
            except Exception as e:
                log.error(f"Sync failed: {e}", file=str(path))
                continue

            totals.add(counts)
            if counts.aborted:
                log.warn("Remaining files skipped after a failed mutation round")
                break

        result = SyncResult.from_log(
            log,
            processed_files=processed,
            created=totals.created,
            updated=totals.updated,
            skipped=totals.skipped,
            dry_run=dry_run,
        )
        return SyncReport(result=result, logs=log.entries)

    # --- Public API: Pull ---

    def export_board(
        self,
        target_dir: Path,
        story_id: str | None = None,
        statuses: list[str] | None = None,
        dry_run: bool = False,
    ) -> ExportReport:
        """Write one story file per board item.

        Args:
            target_dir: Directory for story files
            story_id: Only export the item with this story id
            statuses: Only export items in these statuses ("todo" means "ready")
            dry_run: Log what would be written without writing

        Returns:
            ExportReport with file counts and the full log
        """
        log = RunLog(__name__)
        files: list[str] = []
        written = 0
        unchanged = 0

        try:
            board = self._repository.fetch_board()
            total = sum(len(column.items) for column in board.columns)
            log.info(f"Processing {total} items from board {board.name!r}")

            wanted_id = story_id.strip().lower() if story_id else None
            wanted_statuses = (
                {normalize_status_filter(s) for s in statuses} if statuses else None
            )

            for column in board.columns:
                for item in column.items:
                    item_story_id = item.resolve_story_id()
                    if wanted_id and (item_story_id or "").strip().lower() != wanted_id:
                        continue
                    status = (item.status or column.name).strip()
                    if wanted_statuses and normalize_status_filter(status) not in wanted_statuses:
                        continue
                    if not item.title.strip():
                        log.debug("Skipping item with no title", item_id=item.board_item_id)
                        continue

                    path = target_dir / self._exporter.file_name_for(item)
                    files.append(str(path))

                    try:
                        existing = self._store.read(path) if self._store.exists(path) else None
                    except OSError as e:
                        log.warn(f"Cannot read existing file, skipping: {e}", file=str(path))
                        continue

                    exported = self._exporter.export_item(item, existing, column.name)
                    if not exported.changed:
                        unchanged += 1
                        log.debug("File already up to date", file=str(path))
                        continue

                    if exported.created:
                        action = "Created"
                    elif exported.title_fixed:
                        action = "Normalized"
                    else:
                        action = "Updated"
                    if dry_run:
                        log.info(f"[dry run] Would write story file: {path}", action=action)
                        written += 1
                        continue
                    try:
                        self._store.write(path, exported.text)
                    except OSError as e:
                        log.error(f"Failed to write story file: {e}", file=str(path))
                        continue
                    written += 1
                    log.info(f"{action} story file: {path}")

            if wanted_id and not files:
                log.warn(f'Story with ID "{story_id}" was not found on the board')
        except Exception as e:
            log.error(f"Export failed: {e}")

        result = ExportResult.from_log(
            log,
            output_dir=str(target_dir),
            files=files,
            written=written,
            unchanged=unchanged,
        )
        return ExportReport(result=result, logs=log.entries)

    def export_board_document(self, target_file: Path, dry_run: bool = False) -> ExportReport:
        """Write the whole board as a single story list document."""
        log = RunLog(__name__)
        written = 0
        unchanged = 0
        try:
            board = self._repository.fetch_board()
            text = self._exporter.render_board(board)
            existing = self._store.read(target_file) if self._store.exists(target_file) else None
            if existing == text:
                unchanged = 1
                log.debug("Board document already up to date", file=str(target_file))
            elif dry_run:
                written = 1
                log.info(f"[dry run] Would write board document: {target_file}")
            else:
                self._store.write(target_file, text)
                written = 1
                log.info(f"Wrote board document: {target_file}")
        except Exception as e:
            log.error(f"Export failed: {e}")

        result = ExportResult.from_log(
            log,
            output_dir=str(target_file.parent),
            files=[str(target_file)],
            written=written,
            unchanged=unchanged,
        )
        return ExportReport(result=result, logs=log.entries)

    # --- Public API: Ids ---

    def known_story_ids(self) -> set[str]:
        """Story ids already on the board, including ids found in item bodies."""
        return self._repository.fetch_board().story_ids()

    # --- Internals ---

    def parse(self, text: str, file_name: str | None = None) -> ParseResult:
        """Parse a document, choosing the single-story format when it applies."""
        if is_story_file(text):
            return parse_story_file(text, file_name or "story.md", self._config.sync, self._markdown)
        return self._parser.parse(text, file_name)

    def _sync_document(
        self,
        text: str,
        file_name: str | None,
        policy: SyncPolicy | None,
        dry_run: bool,
        log: RunLog,
    ) -> _Counts:
        parsed = self.parse(text, file_name)
        log.extend(parsed.log)
        for patch in parsed.id_patches:
            log.info(
                f'Suggested ID "{patch.suggested_id}"',
                file=patch.file,
                line=patch.line,
                title=patch.title,
            )
        if not parsed.stories:
            log.info("No stories to sync", file=file_name)
            return _Counts()

        board = self._repository.fetch_board()
        plan = self._planner.plan(parsed.stories, board, policy)
        log.extend(plan.log)

        executor = MutationBatchExecutor(self.client, board.id, dry_run=dry_run)
        executed = executor.execute(plan.intents)
        log.extend(executed.log)

        log.info(
            f"Synced {len(parsed.stories)} stories",
            file=file_name,
            created=executed.created,
            updated=executed.updated,
            skipped=executed.skipped,
        )
        return _Counts(
            created=executed.created,
            updated=executed.updated,
            skipped=executed.skipped,
            aborted=executed.aborted,
        )
