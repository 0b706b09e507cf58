"""Markdown <-> board reconciliation package."""

from .engine import BoardSyncEngine
from .executor import ExecutionResult, MutationBatchExecutor
from .exporter import ExportedFile, MarkdownExporter
from .markdown import Block, BlockKind, LineBlockService, MarkdownService
from .matcher import ItemMatcher
from .parser import IdPatch, ParseResult, StoryParser
from .planner import PlanResult, SyncPlanner
from .story_file import is_story_file, parse_story_file

__all__ = [
    "Block",
    "BlockKind",
    "BoardSyncEngine",
    "ExecutionResult",
    "ExportedFile",
    "IdPatch",
    "ItemMatcher",
    "LineBlockService",
    "MarkdownExporter",
    "MarkdownService",
    "MutationBatchExecutor",
    "ParseResult",
    "PlanResult",
    "StoryParser",
    "SyncPlanner",
    "is_story_file",
    "parse_story_file",
]
