"""Tests for BoardSyncEngine."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from mdboard.github.client import GitHubClientError
from mdboard.models.board import (
    Board,
    BoardColumn,
    BoardItem,
    StatusField,
    StatusOption,
)
from mdboard.models.config import MdboardConfig, SyncPolicy
from mdboard.models.log import LogLevel
from mdboard.repositories import FilesystemStore
from mdboard.sync.engine import BoardSyncEngine

EXAMPLE = "## Ready\n- Story: Title A\n  story id: X-1\n  description:\n    line a\n"


def make_board(*items: BoardItem) -> Board:
    return Board(
        id="PVT_1",
        name="Roadmap",
        columns=[
            BoardColumn(id="opt_ready", name="Ready", items=[i for i in items if i.status == "Ready"]),
            BoardColumn(id="opt_done", name="Done", items=[i for i in items if i.status == "Done"]),
        ],
        status_field=StatusField(
            id="F_status",
            options=[
                StatusOption(id="opt_backlog", name="Backlog"),
                StatusOption(id="opt_ready", name="Ready"),
                StatusOption(id="opt_done", name="Done"),
            ],
        ),
        story_id_field_id="F_story",
    )


def make_item(n: int, **kwargs) -> BoardItem:
    defaults = {"title": f"Item {n}", "story_id": f"S-{n}", "status": "Ready", "body": "body"}
    defaults.update(kwargs)
    return BoardItem(content_id=f"DI_{n}", board_item_id=f"PVTI_{n}", **defaults)


@pytest.fixture
def repository() -> MagicMock:
    repository = MagicMock()
    repository.fetch_board.return_value = make_board()
    return repository


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.execute.side_effect = [
        {"op0": {"projectItem": {"id": "PVTI_new"}}},
        {"op0": {"projectV2Item": {"id": "PVTI_new"}}, "op1": {"projectV2Item": {"id": "PVTI_new"}}},
    ]
    return client


@pytest.fixture
def engine(repository: MagicMock, client: MagicMock, tmp_path: Path) -> BoardSyncEngine:
    return BoardSyncEngine(repository, FilesystemStore(tmp_path), MdboardConfig(), client=client)


def messages(logs, level: LogLevel) -> list[str]:
    return [e.message for e in logs if e.level == level]


class TestSyncMarkdown:
    """Tests for syncing one document."""

    def test_creates_missing_story(self, engine: BoardSyncEngine, client: MagicMock):
        """A new story is created, then its status and id are set."""
        report = engine.sync_markdown(EXAMPLE, "stories.md")

        assert report.result.success
        assert report.result.created == 1
        assert report.result.updated == 2
        assert client.execute.call_count == 2
        assert any(m.startswith("Synced 1 stories") for m in messages(report.logs, LogLevel.INFO))

    def test_existing_story_skipped(
        self, engine: BoardSyncEngine, repository: MagicMock, client: MagicMock
    ):
        """A story already on the board is skipped under create-only."""
        repository.fetch_board.return_value = make_board(make_item(1, story_id="X-1"))
        report = engine.sync_markdown(EXAMPLE)

        assert report.result.skipped == 1
        assert report.result.created == 0
        client.execute.assert_not_called()

    def test_full_sync_updates(
        self, engine: BoardSyncEngine, repository: MagicMock, client: MagicMock
    ):
        """Full sync updates a matched story whose description changed."""
        repository.fetch_board.return_value = make_board(
            make_item(1, title="Title A", story_id="X-1", body="old")
        )
        client.execute.side_effect = [{"op0": {"draftIssue": {"id": "DI_1"}}}]
        report = engine.sync_markdown(EXAMPLE, policy=SyncPolicy.FULL_SYNC)

        assert report.result.updated == 1
        _, variables = client.execute.call_args.args
        assert variables["op0"]["body"] == "line a"

    def test_parse_errors_reported(self, engine: BoardSyncEngine, repository: MagicMock):
        """Stories without ids are errors and nothing is fetched."""
        report = engine.sync_markdown("- Story: No id\n")

        assert not report.result.success
        assert messages(report.logs, LogLevel.ERROR) == ["Missing ID"]
        repository.fetch_board.assert_not_called()

    def test_exceptions_become_errors(self, engine: BoardSyncEngine, repository: MagicMock):
        """Failures are logged, never raised."""
        repository.fetch_board.side_effect = GitHubClientError("offline")
        report = engine.sync_markdown(EXAMPLE)

        assert not report.result.success
        assert messages(report.logs, LogLevel.ERROR) == ["Sync failed: offline"]

    def test_dry_run(self, engine: BoardSyncEngine, client: MagicMock):
        """Dry runs send no mutations."""
        report = engine.sync_markdown(EXAMPLE, dry_run=True)

        client.execute.assert_not_called()
        assert report.result.dry_run
        assert report.result.created == 1

    def test_single_story_file(self, engine: BoardSyncEngine, client: MagicMock):
        """Single-story files are recognized and synced."""
        text = "## Story: Login\n\n### Story ID\n\nWEB-1\n\n### Status\n\nReady\n"
        report = engine.sync_markdown(text, "web-1-login.md")

        assert report.result.created == 1
        first_vars = client.execute.call_args_list[0].args[1]
        assert first_vars["op0"]["title"] == "Login"


class TestSyncDirectory:
    """Tests for directory sync."""

    def test_empty_directory_warns(self, engine: BoardSyncEngine, tmp_path: Path):
        """An empty directory is a warning, not an error."""
        (tmp_path / "stories").mkdir()
        report = engine.sync_directory(Path("stories"))

        assert report.result.success
        assert report.result.processed_files == 0
        assert messages(report.logs, LogLevel.WARN) == ["No markdown files found in stories"]

    def test_missing_directory_is_error(self, engine: BoardSyncEngine):
        """A directory that cannot be listed is an error."""
        report = engine.sync_directory(Path("nope"))
        assert not report.result.success

    def test_board_refetched_per_file(
        self, engine: BoardSyncEngine, repository: MagicMock, client: MagicMock, tmp_path: Path
    ):
        """Every file is planned against a fresh board snapshot."""
        stories = tmp_path / "stories"
        stories.mkdir()
        (stories / "a.md").write_text("## Done\n- Story: A\n  story id: A-1\n")
        (stories / "b.md").write_text("## Done\n- Story: B\n  story id: B-1\n")
        (stories / "notes.txt").write_text("ignored")

        repository.fetch_board.side_effect = [
            make_board(make_item(1, title="A", story_id="A-1", status="Done")),
            make_board(make_item(2, title="B", story_id="B-1", status="Done")),
        ]
        report = engine.sync_directory(Path("stories"))

        assert repository.fetch_board.call_count == 2
        assert report.result.processed_files == 2
        assert report.result.skipped == 2
        client.execute.assert_not_called()

    def test_transport_error_stops_run(
        self, engine: BoardSyncEngine, repository: MagicMock, tmp_path: Path
    ):
        """A transport failure stops the remaining files."""
        stories = tmp_path / "stories"
        stories.mkdir()
        (stories / "a.md").write_text(EXAMPLE)
        (stories / "b.md").write_text(EXAMPLE)
        repository.fetch_board.side_effect = GitHubClientError("offline")

        report = engine.sync_directory(Path("stories"))

        assert repository.fetch_board.call_count == 1
        assert not report.result.success
        assert messages(report.logs, LogLevel.ERROR)[0].startswith("Sync stopped: offline")


class TestExportBoard:
    """Tests for board export."""

    @pytest.fixture
    def board(self) -> Board:
        return make_board(
            make_item(1, title="Login", story_id="WEB-1", status="Ready"),
            make_item(2, title="Logout", story_id="WEB-2", status="Done"),
            make_item(3, title="", story_id="WEB-3", status="Done"),
        )

    def test_writes_one_file_per_item(
        self, engine: BoardSyncEngine, repository: MagicMock, board: Board, tmp_path: Path
    ):
        """Each titled item becomes a story file."""
        repository.fetch_board.return_value = board
        report = engine.export_board(Path("out"))

        assert report.result.success
        assert report.result.written == 2
        assert sorted(p.name for p in (tmp_path / "out").iterdir()) == [
            "web-1-login.md",
            "web-2-logout.md",
        ]

    def test_second_export_is_unchanged(
        self, engine: BoardSyncEngine, repository: MagicMock, board: Board
    ):
        """Re-exporting an unchanged board writes nothing."""
        repository.fetch_board.return_value = board
        engine.export_board(Path("out"))
        report = engine.export_board(Path("out"))

        assert report.result.written == 0
        assert report.result.unchanged == 2

    def test_story_id_filter(self, engine: BoardSyncEngine, repository: MagicMock, board: Board):
        """Only the requested story is exported, matched case-insensitively."""
        repository.fetch_board.return_value = board
        report = engine.export_board(Path("out"), story_id="web-2")
        assert [Path(f).name for f in report.result.files] == ["web-2-logout.md"]

    def test_unknown_story_id_warns(
        self, engine: BoardSyncEngine, repository: MagicMock, board: Board
    ):
        """A story id that is not on the board is reported."""
        repository.fetch_board.return_value = board
        report = engine.export_board(Path("out"), story_id="NOPE-1")
        assert messages(report.logs, LogLevel.WARN) == [
            'Story with ID "NOPE-1" was not found on the board'
        ]

    def test_status_filter(self, engine: BoardSyncEngine, repository: MagicMock, board: Board):
        """"todo" selects Ready items."""
        repository.fetch_board.return_value = board
        report = engine.export_board(Path("out"), statuses=["todo"])
        assert [Path(f).name for f in report.result.files] == ["web-1-login.md"]

    def test_dry_run_writes_nothing(
        self, engine: BoardSyncEngine, repository: MagicMock, board: Board, tmp_path: Path
    ):
        """Dry runs only log."""
        repository.fetch_board.return_value = board
        report = engine.export_board(Path("out"), dry_run=True)

        assert report.result.written == 2
        assert not (tmp_path / "out").exists()

    def test_fetch_failure_is_error(self, engine: BoardSyncEngine, repository: MagicMock):
        """Fetch failures are logged as errors."""
        repository.fetch_board.side_effect = GitHubClientError("offline")
        report = engine.export_board(Path("out"))
        assert messages(report.logs, LogLevel.ERROR) == ["Export failed: offline"]

    def test_board_document(
        self, engine: BoardSyncEngine, repository: MagicMock, board: Board, tmp_path: Path
    ):
        """The whole board can be written as one document, once."""
        repository.fetch_board.return_value = board
        first = engine.export_board_document(Path("board.md"))
        second = engine.export_board_document(Path("board.md"))

        assert first.result.written == 1
        assert second.result.unchanged == 1
        assert (tmp_path / "board.md").read_text().startswith("# Roadmap\n")


class TestStoryIds:
    """Tests for id suggestions and board id lookup."""

    def test_missing_id_logs_suggestion(self, engine: BoardSyncEngine):
        """A story without an id is an error with a suggested id alongside."""
        report = engine.sync_markdown("- Story: Login page\n", "stories.md")

        suggestions = [e for e in report.logs if e.message.startswith("Suggested ID")]
        assert [e.message for e in suggestions] == ['Suggested ID "login-page"']
        assert suggestions[0].payload["line"] == 1
        assert suggestions[0].payload["file"] == "stories.md"

    def test_known_story_ids(self, engine: BoardSyncEngine, repository: MagicMock):
        """Board ids include the field value and ids found in bodies."""
        repository.fetch_board.return_value = make_board(
            make_item(1),
            make_item(2, story_id=None, body="story id: BODY-2"),
            make_item(3, story_id=None, body="no id here"),
        )
        assert engine.known_story_ids() == {"S-1", "BODY-2"}
