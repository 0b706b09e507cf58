"""Data models."""

from .board import Board, BoardColumn, BoardItem, ContentType, StatusField, StatusOption
from .config import MdboardConfig, ProjectConfig, StatusAlias, SyncConfig, SyncPolicy
from .intents import (
    CreateItem,
    ItemRef,
    MutationIntent,
    PendingItem,
    Skip,
    UpdateItemContent,
    UpdateItemState,
    UpdateItemStatus,
    UpdateItemText,
)
from .log import (
    ExportReport,
    ExportResult,
    LogEntry,
    LogLevel,
    RunLog,
    SyncReport,
    SyncResult,
)
from .story import ItemState, ParsedStory, SourceLocation, StoryStatus

__all__ = [
    "Board",
    "BoardColumn",
    "BoardItem",
    "ContentType",
    "CreateItem",
    "ExportReport",
    "ExportResult",
    "ItemRef",
    "ItemState",
    "LogEntry",
    "LogLevel",
    "MdboardConfig",
    "MutationIntent",
    "ParsedStory",
    "PendingItem",
    "ProjectConfig",
    "RunLog",
    "Skip",
    "SourceLocation",
    "StatusAlias",
    "StatusField",
    "StatusOption",
    "StoryStatus",
    "SyncConfig",
    "SyncPolicy",
    "SyncReport",
    "SyncResult",
    "UpdateItemContent",
    "UpdateItemState",
    "UpdateItemStatus",
    "UpdateItemText",
]
