"""Two-round mutation batch executor.

Round 1 sends every intent whose target already exists, CreateItems included,
as one aliased GraphQL document. The ids of created items are read back from
the response and substituted into the intents that referenced them, which are
sent as round 2. Rounds are never rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..github.client import BatchProtocolError, GitHubClientError
from ..github.operations import Operation, build_operation, created_item_id, render_document
from ..models.intents import (
    CreateItem,
    MutationIntent,
    PendingItem,
    Skip,
    UpdateItemStatus,
    UpdateItemText,
    is_dependent,
)
from ..models.log import LogEntry, RunLog

if TYPE_CHECKING:
    from ..github.client import GitHubClient

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Outcome of executing one intent list."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    aborted: bool = False
    created_ids: dict[int, str] = field(default_factory=dict)  # intent index -> item id
    log: list[LogEntry] = field(default_factory=list)


def describe(intent: MutationIntent) -> str:
    """Short human description of an intent, for logs and dry runs."""
    if isinstance(intent, CreateItem):
        return f'create "{intent.title}"'
    if isinstance(intent, UpdateItemStatus):
        return f'set status "{intent.status_name or intent.status_option_id}"'
    if isinstance(intent, UpdateItemText):
        return f'set text "{intent.text}"'
    if isinstance(intent, Skip):
        return f"skip ({intent.reason})"
    return f"{type(intent).__name__} {intent.target_id}"


class MutationBatchExecutor:
    """Dispatch mutation intents in at most two batched rounds."""

    def __init__(self, client: GitHubClient, project_id: str, dry_run: bool = False) -> None:
        """Initialize the executor.

        Args:
            client: GraphQL transport
            project_id: Board (ProjectV2) node id
            dry_run: Log and count intents without sending anything
        """
        self._client = client
        self._project_id = project_id
        self._dry_run = dry_run

    def execute(self, intents: list[MutationIntent]) -> ExecutionResult:
        """Execute an intent list.

        Transport failures and malformed responses are logged as errors and
        abort the remaining rounds; they are not raised.
        """
        log = RunLog(__name__)
        result = ExecutionResult()

        first_round: list[tuple[int, MutationIntent]] = []
        second_round: list[tuple[int, MutationIntent]] = []
        for index, intent in enumerate(intents):
            if isinstance(intent, Skip):
                result.skipped += 1
                log.debug(f'Skipped "{intent.title}": {intent.reason}')
            elif is_dependent(intent):
                second_round.append((index, intent))
            else:
                first_round.append((index, intent))

        if self._dry_run:
            for _, intent in first_round + second_round:
                log.info(f"[dry run] Would {describe(intent)}")
                self._count(intent, result)
            result.log = log.entries
            return result

        if first_round:
            response = self._send(first_round, {}, log, round_number=1)
            if response is None:
                result.aborted = True
                result.log = log.entries
                return result
            for (index, intent), alias in zip(first_round, response[1], strict=True):
                self._count(intent, result)
                if isinstance(intent, CreateItem):
                    item_id = created_item_id(response[0], alias)
                    if item_id:
                        result.created_ids[index] = item_id
                        log.info(f'Created "{intent.title}"', item_id=item_id)
                    else:
                        log.warn(f'No item id returned for "{intent.title}"', alias=alias)

        resolvable: list[tuple[int, MutationIntent]] = []
        for index, intent in second_round:
            if not isinstance(intent, UpdateItemStatus | UpdateItemText):
                continue
            target = intent.target
            if isinstance(target, PendingItem) and target.intent_index not in result.created_ids:
                log.warn(
                    f"Dropped {describe(intent)}: created item id was not resolved",
                    intent_index=target.intent_index,
                )
                continue
            resolvable.append((index, intent))

        if resolvable:
            response = self._send(resolvable, result.created_ids, log, round_number=2)
            if response is None:
                result.aborted = True
                result.log = log.entries
                return result
            for _, intent in resolvable:
                self._count(intent, result)

        result.log = log.entries
        return result

    def _send(
        self,
        batch: list[tuple[int, MutationIntent]],
        created_ids: dict[int, str],
        log: RunLog,
        round_number: int,
    ) -> tuple[dict[str, Any], list[str]] | None:
        """Send one round; return (response data, aliases in order) or None on failure."""
        operations: list[Operation] = []
        for position, (_, intent) in enumerate(batch):
            item_id = None
            target = getattr(intent, "target", None)
            if isinstance(target, PendingItem):
                item_id = created_ids[target.intent_index]
            operations.append(
                build_operation(intent, f"op{position}", self._project_id, item_id=item_id)
            )

        document, variables = render_document(operations)
        aliases = [op.alias for op in operations]
        logger.debug("Round %d: sending %d operations", round_number, len(operations))

        try:
            data = self._client.execute(document, variables)
            self._check_response(data, aliases)
        except GitHubClientError as e:
            log.error(
                f"Mutation round {round_number} failed: {e}",
                operations=len(operations),
            )
            return None
        return data, aliases

    def _check_response(self, data: dict[str, Any], aliases: list[str]) -> None:
        missing = [alias for alias in aliases if alias not in data]
        if missing or len(data) != len(aliases):
            raise BatchProtocolError(len(aliases), len(data), missing)

    def _count(self, intent: MutationIntent, result: ExecutionResult) -> None:
        if isinstance(intent, CreateItem):
            result.created += 1
        else:
            result.updated += 1
