"""Tests for GitHubProjectsRepository."""

from unittest.mock import MagicMock

import pytest

from mdboard.github.queries import GET_ORG_PROJECT, GET_PROJECT, GET_PROJECT_ITEMS, GET_USER_PROJECT
from mdboard.models.board import ContentType
from mdboard.models.config import MdboardConfig
from mdboard.models.story import ItemState
from mdboard.repositories.github_projects import GitHubProjectsRepository, ProjectNotFoundError

PROJECT_NODE = {
    "node": {
        "id": "PVT_1",
        "title": "Roadmap",
        "fields": {
            "nodes": [
                {"__typename": "ProjectV2Field", "id": "F_title", "name": "Title"},
                {
                    "__typename": "ProjectV2SingleSelectField",
                    "id": "F_status",
                    "name": "Status",
                    "options": [
                        {"id": "opt_todo", "name": "Todo"},
                        {"id": "opt_progress", "name": "In Progress"},
                        {"id": "opt_done", "name": "Done"},
                    ],
                },
                {"__typename": "ProjectV2Field", "id": "F_story", "name": "Story ID"},
            ]
        },
    }
}


def item_node(
    item_id: str,
    title: str,
    typename: str = "DraftIssue",
    status: str | None = None,
    story_id: str | None = None,
    **content,
) -> dict:
    values = []
    if status:
        values.append({"field": {"name": "Status"}, "name": status, "optionId": "x"})
    if story_id:
        values.append({"field": {"name": "Story ID"}, "text": story_id})
    return {
        "id": item_id,
        "fieldValues": {"nodes": values},
        "content": {"__typename": typename, "id": f"C_{item_id}", "title": title, **content},
    }


def items_page(nodes: list[dict], next_cursor: str | None = None) -> dict:
    return {
        "node": {
            "items": {
                "pageInfo": {"hasNextPage": next_cursor is not None, "endCursor": next_cursor},
                "nodes": nodes,
            }
        }
    }


def make_client(pages: list[dict]) -> MagicMock:
    """Client answering GET_PROJECT once and GET_PROJECT_ITEMS from pages."""
    client = MagicMock()
    remaining = list(pages)

    def execute(query, variables=None):
        if query == GET_PROJECT:
            return PROJECT_NODE
        if query == GET_PROJECT_ITEMS:
            return remaining.pop(0)
        raise AssertionError(f"Unexpected query: {query[:40]}")

    client.execute.side_effect = execute
    return client


def configured(**project) -> MdboardConfig:
    return MdboardConfig(project=project or {"project_id": "PVT_1"})


class TestResolveProjectId:
    """Tests for project id resolution."""

    def test_configured_id(self):
        """A configured project id is used without a request."""
        client = MagicMock()
        repo = GitHubProjectsRepository(client, configured(project_id="PVT_9"))
        assert repo.resolve_project_id() == "PVT_9"
        client.execute.assert_not_called()

    def test_user_url(self):
        """User project URLs are looked up by login and number, once."""
        client = MagicMock()
        client.execute.return_value = {"user": {"projectV2": {"id": "PVT_user"}}}
        repo = GitHubProjectsRepository(
            client, configured(project_url="https://github.com/users/octo/projects/3")
        )

        assert repo.resolve_project_id() == "PVT_user"
        assert repo.resolve_project_id() == "PVT_user"
        client.execute.assert_called_once_with(GET_USER_PROJECT, {"owner": "octo", "number": 3})

    def test_org_url(self):
        """Organization project URLs use the organization query."""
        client = MagicMock()
        client.execute.return_value = {"organization": {"projectV2": {"id": "PVT_org"}}}
        repo = GitHubProjectsRepository(
            client, configured(project_url="https://github.com/orgs/acme/projects/7")
        )

        assert repo.resolve_project_id() == "PVT_org"
        assert client.execute.call_args.args[0] == GET_ORG_PROJECT

    def test_url_not_found(self):
        """A URL that resolves to nothing raises ProjectNotFoundError."""
        client = MagicMock()
        client.execute.return_value = {"user": {"projectV2": None}}
        repo = GitHubProjectsRepository(
            client, configured(project_url="https://github.com/users/octo/projects/3")
        )
        with pytest.raises(ProjectNotFoundError):
            repo.resolve_project_id()

    def test_nothing_configured(self):
        """Without id or URL resolution fails."""
        repo = GitHubProjectsRepository(MagicMock(), MdboardConfig.default())
        with pytest.raises(ValueError):
            repo.resolve_project_id()


class TestFetchBoard:
    """Tests for board snapshots."""

    def test_fields_and_columns(self):
        """Status options become columns in declared order, empty ones included."""
        client = make_client([items_page([item_node("PVTI_1", "A", status="Done")])])
        board = GitHubProjectsRepository(client, configured()).fetch_board()

        assert board.name == "Roadmap"
        assert board.status_field is not None
        assert [o.id for o in board.status_field.options] == ["opt_todo", "opt_progress", "opt_done"]
        assert board.story_id_field_id == "F_story"
        assert [c.name for c in board.columns] == ["Todo", "In Progress", "Done"]
        assert [i.title for i in board.columns[2].items] == ["A"]

    def test_pagination(self):
        """Every page is fetched, following the end cursor."""
        client = make_client(
            [
                items_page([item_node("PVTI_1", "A")], next_cursor="c1"),
                items_page([item_node("PVTI_2", "B")]),
            ]
        )
        board = GitHubProjectsRepository(client, configured()).fetch_board()

        assert [i.title for i in board.items()] == ["A", "B"]
        cursors = [
            call.args[1]["cursor"]
            for call in client.execute.call_args_list
            if call.args[0] == GET_PROJECT_ITEMS
        ]
        assert cursors == [None, "c1"]

    def test_missing_status_uses_default(self):
        """Items without a Status value land in the default status column."""
        client = make_client([items_page([item_node("PVTI_1", "A")])])
        board = GitHubProjectsRepository(client, configured()).fetch_board()

        item = board.items()[0]
        assert item.status == "Backlog"
        assert board.columns[-1].name == "Backlog"
        assert board.columns[-1].id == "status:backlog"

    def test_item_mapping(self):
        """Content fields, ids and Story ID text are mapped."""
        node = item_node(
            "PVTI_1",
            "Fix bug",
            typename="PullRequest",
            status="In Progress",
            story_id=" WEB-7 ",
            body="Body",
            url="https://github.com/o/r/pull/1",
            state="MERGED",
        )
        client = make_client([items_page([node])])
        item = GitHubProjectsRepository(client, configured()).fetch_board().items()[0]

        assert item.content_id == "C_PVTI_1"
        assert item.board_item_id == "PVTI_1"
        assert item.content_type == ContentType.PULL_REQUEST
        assert item.story_id == "WEB-7"
        assert item.status == "In Progress"
        assert item.state == ItemState.CLOSED
        assert item.url == "https://github.com/o/r/pull/1"

    def test_inaccessible_content_skipped(self):
        """Items without content (no access) or of unknown type are skipped."""
        unknown = item_node("PVTI_2", "X", typename="Redacted")
        client = make_client([items_page([{"id": "PVTI_1", "content": None}, unknown])])
        board = GitHubProjectsRepository(client, configured()).fetch_board()
        assert board.items() == []

    def test_project_not_found(self):
        """A missing node raises ProjectNotFoundError."""
        client = MagicMock()
        client.execute.return_value = {"node": None}
        with pytest.raises(ProjectNotFoundError):
            GitHubProjectsRepository(client, configured()).fetch_board()

    def test_fresh_snapshot_per_fetch(self):
        """Each fetch issues new requests."""
        client = make_client([items_page([]), items_page([])])
        repo = GitHubProjectsRepository(client, configured())
        repo.fetch_board()
        repo.fetch_board()
        assert client.execute.call_count == 4
