"""Tests for the line block service and heading escaping."""

from mdboard.sync.markdown import BlockKind, LineBlockService, escape_headings, unescape_headings


class TestLineBlockService:
    """Tests for LineBlockService.parse."""

    def test_kinds(self):
        """Headings, list items, text and blanks are classified."""
        blocks = LineBlockService().parse("## Ready\n\n- Story: A\ntext\n")
        assert [b.kind for b in blocks] == [
            BlockKind.HEADING,
            BlockKind.BLANK,
            BlockKind.LIST_ITEM,
            BlockKind.TEXT,
        ]
        assert blocks[0].depth == 2
        assert blocks[2].text == "Story: A"

    def test_fenced_hash_is_code(self):
        """"#" lines inside fences are not headings."""
        blocks = LineBlockService().parse("```\n# comment\n```\n")
        assert all(b.kind == BlockKind.CODE for b in blocks)

    def test_escaped_heading_is_text(self):
        """An escaped heading line is plain text."""
        blocks = LineBlockService().parse("\\### Notes\n")
        assert blocks[0].kind == BlockKind.TEXT


class TestEscapeHeadings:
    """Tests for escape_headings and unescape_headings."""

    def test_escapes_heading_lines(self):
        """Heading lines gain a leading backslash."""
        assert escape_headings("Intro\n\n### Notes\nfoo") == "Intro\n\n\\### Notes\nfoo"

    def test_leaves_other_lines(self):
        """Hashtags and indented code are not headings."""
        text = "#tag\n    # indented\nplain"
        assert escape_headings(text) == text

    def test_fenced_code_untouched(self):
        """Lines inside fenced code keep their hashes."""
        text = "```sh\n# comment\n```\n# Title"
        assert escape_headings(text) == "```sh\n# comment\n```\n\\# Title"

    def test_already_escaped_lines_survive(self):
        """Literal escaped headings in a body come back unchanged."""
        text = "\\## literal\n## real"
        escaped = escape_headings(text)

        assert escaped == "\\\\## literal\n\\## real"
        assert unescape_headings(escaped) == text
