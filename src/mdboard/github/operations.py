"""Typed GraphQL mutation operations and batch document rendering.

Each mutation intent becomes one Operation: a mutation field called under an
alias with its whole input passed as a single GraphQL variable. A batch of
operations renders to one document:

    mutation SyncBatch($op0: AddProjectV2DraftIssueInput!, ...) {
      op0: addProjectV2DraftIssue(input: $op0) { projectItem { id } }
      ...
    }

User text (titles, bodies) only ever travels in the variables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models.board import ContentType
from ..models.intents import (
    CreateItem,
    MutationIntent,
    Skip,
    UpdateItemContent,
    UpdateItemState,
    UpdateItemStatus,
    UpdateItemText,
)
from ..models.story import ItemState

BATCH_OPERATION_NAME = "SyncBatch"


@dataclass(frozen=True)
class Operation:
    """One aliased mutation call."""

    alias: str
    mutation: str  # Mutation field, e.g. "addProjectV2DraftIssue"
    input_type: str  # GraphQL input type, e.g. "AddProjectV2DraftIssueInput"
    input: dict[str, Any]
    selection: str  # Selection set of the payload, e.g. "projectItem { id }"

    def render(self) -> str:
        return f"{self.alias}: {self.mutation}(input: ${self.alias}) {{ {self.selection} }}"


def card_note(title: str, body: str) -> str:
    """Note text of a legacy project card."""
    return title + ("\n\n" + body if body else "")


def build_operation(
    intent: MutationIntent,
    alias: str,
    project_id: str,
    item_id: str | None = None,
) -> Operation:
    """Build the Operation for an intent.

    Args:
        intent: Any non-Skip intent
        alias: Alias for the call within its batch
        project_id: Board (ProjectV2) node id
        item_id: Resolved board item id, overriding a PendingItem target

    Raises:
        ValueError: For Skip, or a field update whose target is unresolved
    """
    if isinstance(intent, Skip):
        raise ValueError("Skip intents have no operation")

    if isinstance(intent, CreateItem):
        return Operation(
            alias,
            "addProjectV2DraftIssue",
            "AddProjectV2DraftIssueInput",
            {"projectId": project_id, "title": intent.title, "body": intent.body},
            "projectItem { id }",
        )

    if isinstance(intent, UpdateItemContent):
        return _content_operation(intent, alias)

    if isinstance(intent, UpdateItemState):
        return _state_operation(intent, alias)

    if isinstance(intent, UpdateItemStatus | UpdateItemText):
        target = item_id if item_id is not None else intent.target
        if not isinstance(target, str):
            raise ValueError(f"Unresolved item reference: {target}")
        if isinstance(intent, UpdateItemStatus):
            value: dict[str, Any] = {"singleSelectOptionId": intent.status_option_id}
        else:
            value = {"text": intent.text}
        return Operation(
            alias,
            "updateProjectV2ItemFieldValue",
            "UpdateProjectV2ItemFieldValueInput",
            {
                "projectId": project_id,
                "itemId": target,
                "fieldId": intent.field_id,
                "value": value,
            },
            "projectV2Item { id }",
        )

    raise TypeError(f"Unknown intent: {intent!r}")


def _content_operation(intent: UpdateItemContent, alias: str) -> Operation:
    content_type = intent.content_type
    if content_type == ContentType.DRAFT_ISSUE:
        return Operation(
            alias,
            "updateProjectV2DraftIssue",
            "UpdateProjectV2DraftIssueInput",
            {"draftIssueId": intent.target_id, "title": intent.title, "body": intent.body},
            "draftIssue { id }",
        )
    if content_type == ContentType.ISSUE:
        return Operation(
            alias,
            "updateIssue",
            "UpdateIssueInput",
            {"id": intent.target_id, "title": intent.title, "body": intent.body},
            "issue { id }",
        )
    if content_type == ContentType.PULL_REQUEST:
        return Operation(
            alias,
            "updatePullRequest",
            "UpdatePullRequestInput",
            {"pullRequestId": intent.target_id, "title": intent.title, "body": intent.body},
            "pullRequest { id }",
        )
    return Operation(
        alias,
        "updateProjectCard",
        "UpdateProjectCardInput",
        {
            "projectCardId": intent.target_id,
            "note": card_note(intent.title, intent.body),
            "isArchived": intent.state != ItemState.OPEN,
        },
        "projectCard { id }",
    )


def _state_operation(intent: UpdateItemState, alias: str) -> Operation:
    closing = intent.state == ItemState.CLOSED
    content_type = intent.content_type
    if content_type == ContentType.ISSUE:
        mutation = "closeIssue" if closing else "reopenIssue"
        input_type = "CloseIssueInput" if closing else "ReopenIssueInput"
        return Operation(alias, mutation, input_type, {"issueId": intent.target_id}, "issue { id }")
    if content_type == ContentType.PULL_REQUEST:
        mutation = "closePullRequest" if closing else "reopenPullRequest"
        input_type = "ClosePullRequestInput" if closing else "ReopenPullRequestInput"
        return Operation(
            alias, mutation, input_type, {"pullRequestId": intent.target_id}, "pullRequest { id }"
        )
    if content_type == ContentType.PROJECT_CARD:
        return Operation(
            alias,
            "updateProjectCard",
            "UpdateProjectCardInput",
            {"projectCardId": intent.target_id, "isArchived": closing},
            "projectCard { id }",
        )
    raise ValueError(f"{content_type.value} items have no open/closed state")


def render_document(operations: list[Operation]) -> tuple[str, dict[str, Any]]:
    """Render operations into one mutation document and its variables."""
    if not operations:
        raise ValueError("Cannot render an empty batch")
    params = ", ".join(f"${op.alias}: {op.input_type}!" for op in operations)
    calls = "\n".join(f"  {op.render()}" for op in operations)
    document = f"mutation {BATCH_OPERATION_NAME}({params}) {{\n{calls}\n}}"
    variables = {op.alias: op.input for op in operations}
    return document, variables


def created_item_id(response: dict[str, Any], alias: str) -> str | None:
    """Board item id produced by an aliased addProjectV2DraftIssue call."""
    payload = response.get(alias) or {}
    item = payload.get("projectItem") or {}
    return item.get("id")
