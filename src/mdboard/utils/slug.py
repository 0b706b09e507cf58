"""Utilities for generating filesystem-safe slugs."""

import re
import unicodedata


def slugify(text: str) -> str:
    """
    Convert text to a filesystem-safe slug.

    Letters outside ASCII (e.g. CJK titles) are kept; accents are folded.

    Example: "Fix Login Bug!" -> "fix-login-bug"
    """
    # Fold accented characters, keep other scripts intact
    text = "".join(
        c for c in unicodedata.normalize("NFKD", text) if not unicodedata.combining(c)
    )

    # Convert to lowercase
    text = text.lower()

    # Replace anything that isn't a letter or digit with hyphens
    text = re.sub(r"[\W_]+", "-", text)

    # Remove leading/trailing hyphens and collapse multiple hyphens
    text = re.sub(r"-+", "-", text).strip("-")

    return text


def generate_filename(title: str) -> str:
    """Generate a .md filename from a title."""
    slug = slugify(title)
    if not slug:
        slug = "untitled-story"
    return f"{slug}.md"
