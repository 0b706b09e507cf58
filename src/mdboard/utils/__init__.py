"""Utility functions."""

from .slug import generate_filename, slugify
from .status import normalize_status, normalize_status_filter
from .story_id import (
    extract_story_id,
    find_story_id_in_body,
    normalize_key,
    suggest_story_id,
    validate_story_id,
)

__all__ = [
    "extract_story_id",
    "find_story_id_in_body",
    "generate_filename",
    "normalize_key",
    "normalize_status",
    "normalize_status_filter",
    "slugify",
    "suggest_story_id",
    "validate_story_id",
]
