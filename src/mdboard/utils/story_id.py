"""Story id helpers: key normalization, body scanning, and format validation."""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath

_KEY_SEPARATORS = re.compile(r"[\s\-_]+")
_BODY_STORY_ID = re.compile(r"(?:story-id|story id|story_id):[ \t]*(\S[^\n]*)", re.IGNORECASE)
_ALLOWED = re.compile(r"^[A-Za-z0-9._-]+$")
_SUGGESTION_SEPARATORS = re.compile(r"[^a-z0-9._-]+")

MIN_ID_LENGTH = 3
MAX_ID_LENGTH = 64


def normalize_key(key: str) -> str:
    """Normalize a field key so spaces, hyphens and underscores are equivalent.

    Example: "Story-ID" -> "storyid"
    """
    return _KEY_SEPARATORS.sub("", key).lower()


def find_story_id_in_body(body: str | None) -> str | None:
    """Find a "story id: X" declaration anywhere in a body of text."""
    if not body:
        return None
    match = _BODY_STORY_ID.search(body)
    if not match:
        return None
    return match.group(1).strip() or None


def extract_story_id(metadata: dict, file_path: str) -> str:
    """Get a story id from frontmatter metadata, falling back to the filename.

    Any key that normalizes to "storyid" is accepted (storyId, story_id,
    "Story ID", ...). Without one, the id is "mdsync-<file stem>".
    """
    for key, value in metadata.items():
        if normalize_key(str(key)) == "storyid" and value is not None:
            return str(value)
    return f"mdsync-{PurePath(file_path).stem}"


class IdIssueType(str, Enum):
    """Kinds of story id format problems."""

    MISSING = "missing"
    WHITESPACE = "whitespace"
    LENGTH = "length"
    CHARSET = "charset"
    DUPLICATE = "duplicate"


@dataclass
class IdIssue:
    """A single story id validation problem."""

    type: IdIssueType
    message: str
    suggestion: str = ""


@dataclass
class IdValidation:
    """Result of validating one story id."""

    issues: list[IdIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        """Whether the id has no issues."""
        return not self.issues


def validate_story_id(
    raw: str | None,
    existing: set[str] | None = None,
    min_len: int = MIN_ID_LENGTH,
    max_len: int = MAX_ID_LENGTH,
) -> IdValidation:
    """Validate a story id's format and uniqueness.

    Args:
        raw: The id as written
        existing: Ids already in use, for the duplicate check
        min_len: Minimum trimmed length
        max_len: Maximum trimmed length

    Returns:
        IdValidation listing every problem found
    """
    result = IdValidation()
    if raw is None or not raw.strip():
        result.issues.append(
            IdIssue(
                IdIssueType.MISSING,
                "Missing ID",
                "Provide a unique, non-empty story id for each story",
            )
        )
        return result

    if raw != raw.strip():
        result.issues.append(
            IdIssue(
                IdIssueType.WHITESPACE,
                "ID has leading or trailing whitespace",
                "Remove leading/trailing whitespace",
            )
        )

    trimmed = raw.strip()
    if not min_len <= len(trimmed) <= max_len:
        result.issues.append(
            IdIssue(
                IdIssueType.LENGTH,
                f"ID length should be between {min_len}-{max_len}",
                "Adjust the ID length to the allowed range",
            )
        )

    if not _ALLOWED.match(trimmed):
        result.issues.append(
            IdIssue(
                IdIssueType.CHARSET,
                "ID allows only letters, digits, dot, underscore, and hyphen",
                "Replace disallowed characters",
            )
        )

    if existing is not None and trimmed in existing:
        result.issues.append(
            IdIssue(IdIssueType.DUPLICATE, f"Duplicate ID: {trimmed}", "Use a unique ID")
        )

    return result


def suggest_story_id(title: str, existing: set[str] | None = None) -> str:
    """Deterministic story id for a title, unique against existing ids.

    The title is lowercased and every run of disallowed characters becomes a
    hyphen: "Login page (v2)" -> "login-page-v2". Taken ids get a numeric
    suffix ("login-page-2"); ids too short to validate are prefixed "story-".
    """
    base = _SUGGESTION_SEPARATORS.sub("-", title.lower()).strip("-")
    base = base[: MAX_ID_LENGTH - 4].rstrip("-")
    if len(base) < MIN_ID_LENGTH:
        base = f"story-{base}".rstrip("-")

    candidate = base
    counter = 2
    while _is_duplicate(candidate, existing):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


def _is_duplicate(story_id: str, existing: set[str] | None) -> bool:
    issues = validate_story_id(story_id, existing).issues
    return any(issue.type == IdIssueType.DUPLICATE for issue in issues)
