"""Story domain model parsed from markdown."""

from enum import Enum

from pydantic import BaseModel, Field


class StoryStatus(str, Enum):
    """Canonical status buckets a section heading can map to."""

    BACKLOG = "Backlog"
    READY = "Ready"
    IN_PROGRESS = "In progress"
    IN_REVIEW = "In review"
    DONE = "Done"


class ItemState(str, Enum):
    """Open/closed state shared by stories and board items."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class SourceLocation(BaseModel):
    """Where a story was found (diagnostics only)."""

    file: str | None = None
    line: int = 0

    def __str__(self) -> str:
        return f"{self.file or '<memory>'}:{self.line}"


class ParsedStory(BaseModel):
    """A single work item extracted from a markdown document."""

    title: str = Field(..., min_length=1)
    id: str | None = None
    status: str = StoryStatus.BACKLOG.value  # Custom headings are kept verbatim
    description: str = ""
    state: ItemState = ItemState.OPEN  # CLOSED for checked task items
    url: str | None = None  # Linked issue/PR when the title is a markdown link
    source: SourceLocation = Field(default_factory=SourceLocation)

    def to_markdown(self) -> str:
        """Render the story back as a list item block.

        The output is accepted by StoryParser and yields the same title, id,
        and description. The status is carried by the enclosing section heading,
        so it is not part of the block.
        """
        check = "[x] " if self.state == ItemState.CLOSED else ""
        title = f"[{self.title}]({self.url})" if self.url else self.title
        lines = [f"- {check}Story: {title}"]
        if self.id:
            lines.append(f"  story id: {self.id}")
        if self.description:
            lines.append("  description:")
            for line in self.description.split("\n"):
                lines.append(f"    {line}" if line.strip() else "")
        return "\n".join(lines) + "\n"
