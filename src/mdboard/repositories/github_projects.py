"""GitHub Projects repository: fetch board snapshots."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..github.queries import GET_ORG_PROJECT, GET_PROJECT, GET_PROJECT_ITEMS, GET_USER_PROJECT
from ..models.board import Board, BoardColumn, BoardItem, ContentType, StatusField, StatusOption
from ..models.config import MdboardConfig
from ..models.story import ItemState
from ..utils.status import normalize_status

if TYPE_CHECKING:
    from ..github.client import GitHubClient

logger = logging.getLogger(__name__)

STATUS_FIELD_NAME = "Status"


class ProjectNotFoundError(ValueError):
    """The configured project could not be found."""

    pass


class GitHubProjectsRepository:
    """Read boards from GitHub Projects (v2).

    Each fetch_board call returns a fresh snapshot; nothing is cached between
    calls except the resolved project id.
    """

    def __init__(self, client: GitHubClient, config: MdboardConfig | None = None) -> None:
        """Initialize the repository.

        Args:
            client: GraphQL transport
            config: Project and sync configuration
        """
        self._client = client
        self._config = config or MdboardConfig.default()
        self._project_id: str | None = self._config.project.project_id

    @property
    def client(self) -> GitHubClient:
        return self._client

    def resolve_project_id(self) -> str:
        """Project node id, looked up from the project URL if not configured.

        Raises:
            ValueError: If neither project_id nor project_url is configured
            ProjectNotFoundError: If the URL does not resolve to a project
        """
        if self._project_id:
            return self._project_id

        project = self._config.project
        if not project.project_url:
            raise ValueError("Either project_id or project_url must be configured")

        owner, owner_type, number = project.get_project_info()
        query = GET_USER_PROJECT if owner_type == "user" else GET_ORG_PROJECT
        result = self._client.execute(query, {"owner": owner, "number": number})

        project_data = (result.get(owner_type) or {}).get("projectV2")
        if not project_data:
            raise ProjectNotFoundError(f"Project not found: {owner}/projects/{number}")

        self._project_id = project_data["id"]
        logger.debug("Resolved %s to project %s", project.project_url, self._project_id)
        return self._project_id

    def fetch_board(self, project_id: str | None = None) -> Board:
        """Fetch the board: fields, then every item page.

        Args:
            project_id: Board node id; defaults to the configured project

        Returns:
            Board with columns in Status option order
        """
        project_id = project_id or self.resolve_project_id()

        result = self._client.execute(GET_PROJECT, {"projectId": project_id})
        project_data = result.get("node")
        if not project_data:
            raise ProjectNotFoundError(f"Project not found: {project_id}")

        status_field, story_id_field_id = self._extract_fields(project_data)
        items = self._fetch_items(project_id)

        board = Board(
            id=project_data.get("id", project_id),
            name=project_data.get("title", ""),
            columns=self._build_columns(items, status_field),
            status_field=status_field,
            story_id_field_id=story_id_field_id,
        )
        logger.info(
            "Fetched board %r: %d columns, %d items",
            board.name,
            len(board.columns),
            len(items),
        )
        return board

    def _extract_fields(self, project_data: dict[str, Any]) -> tuple[StatusField | None, str | None]:
        """Find the Status single-select field and the Story ID text field."""
        status_field = None
        story_id_field_id = None
        story_id_name = normalize_status(self._config.sync.story_id_field)

        for field in (project_data.get("fields") or {}).get("nodes", []):
            if not field:
                continue
            name = field.get("name", "")
            if name == STATUS_FIELD_NAME and "options" in field:
                status_field = StatusField(
                    id=field["id"],
                    options=[StatusOption(id=o["id"], name=o["name"]) for o in field["options"]],
                )
            elif normalize_status(name) == story_id_name and "options" not in field:
                story_id_field_id = field.get("id")

        if status_field is None:
            logger.warning("Project has no Status field; status changes will not be synced")
        return status_field, story_id_field_id

    def _fetch_items(self, project_id: str) -> list[BoardItem]:
        """Fetch all items, 100 per page."""
        items: list[BoardItem] = []
        cursor = None
        page_count = 0
        while True:
            page_count += 1
            result = self._client.execute(
                GET_PROJECT_ITEMS,
                {"projectId": project_id, "cursor": cursor},
            )
            items_data = (result.get("node") or {}).get("items") or {}
            nodes = items_data.get("nodes", [])
            logger.debug("Page %d: fetched %d items", page_count, len(nodes))

            for node in nodes:
                item = self._map_item(node)
                if item is not None:
                    items.append(item)

            page_info = items_data.get("pageInfo", {})
            if page_info.get("hasNextPage"):
                cursor = page_info.get("endCursor")
            else:
                break
        return items

    def _map_item(self, node: dict[str, Any]) -> BoardItem | None:
        """Map a project item node to a BoardItem."""
        content = node.get("content")
        if not content:
            logger.debug("Skipping item %s without accessible content", node.get("id"))
            return None

        try:
            content_type = ContentType(content.get("__typename", ContentType.DRAFT_ISSUE.value))
        except ValueError:
            logger.debug("Skipping item %s of type %s", node.get("id"), content.get("__typename"))
            return None

        status, story_id = self._extract_field_values(node)
        # MERGED pull requests count as closed
        state = ItemState.OPEN if content.get("state", "OPEN") == "OPEN" else ItemState.CLOSED

        return BoardItem(
            content_id=content.get("id", ""),
            board_item_id=node.get("id", ""),
            content_type=content_type,
            title=content.get("title") or "",
            url=content.get("url"),
            body=content.get("body") or "",
            state=state,
            story_id=story_id,
            status=status or self._config.sync.default_status,
        )

    def _extract_field_values(self, node: dict[str, Any]) -> tuple[str | None, str | None]:
        """Status option name and Story ID text of an item."""
        status = None
        story_id = None
        story_id_name = normalize_status(self._config.sync.story_id_field)
        for value in (node.get("fieldValues") or {}).get("nodes", []):
            if not value:
                continue
            field_name = (value.get("field") or {}).get("name", "")
            if field_name == STATUS_FIELD_NAME and "optionId" in value:
                status = value.get("name")
            elif normalize_status(field_name) == story_id_name and value.get("text"):
                story_id = value["text"].strip()
        return status, story_id

    def _build_columns(
        self, items: list[BoardItem], status_field: StatusField | None
    ) -> list[BoardColumn]:
        """Group items into columns.

        Status options come first in declared order (empty ones included),
        then one column per observed status that is not an option.
        """
        columns: dict[str, BoardColumn] = {}
        if status_field is not None:
            for option in status_field.options:
                columns[normalize_status(option.name)] = BoardColumn(id=option.id, name=option.name)

        for item in items:
            key = normalize_status(item.status)
            if key not in columns:
                columns[key] = BoardColumn(id=f"status:{key}", name=item.status)
            columns[key].items.append(item)
        return list(columns.values())
