"""Tests for the multi-story markdown parser."""

from mdboard.models.config import StatusAlias, SyncConfig
from mdboard.models.log import LogLevel
from mdboard.models.story import ItemState
from mdboard.sync.parser import StoryParser

EXAMPLE = "## Ready\n- Story: Title A\n  story id: X-1\n  description:\n    line a\n"


def parse(text: str, config: SyncConfig | None = None):
    return StoryParser(config).parse(text, "stories.md")


class TestStoryParsing:
    """Tests for basic story extraction."""

    def test_single_story(self):
        """A story under a section gets title, id, status and description."""
        result = parse(EXAMPLE)

        assert len(result.stories) == 1
        story = result.stories[0]
        assert story.title == "Title A"
        assert story.id == "X-1"
        assert story.status == "Ready"
        assert story.description == "line a"
        assert story.state == ItemState.OPEN
        assert result.errors == []
        assert result.warnings == []

    def test_source_location(self):
        """Stories remember the file and line they start on."""
        story = parse(EXAMPLE).stories[0]
        assert story.source.file == "stories.md"
        assert story.source.line == 2

    def test_sections_assign_status(self):
        """Each story takes the status of its nearest section heading."""
        text = (
            "# Sprint 4\n"
            "## In Progress\n"
            "- Story: A\n"
            "  story id: A-1\n"
            "## Done\n"
            "- Story: B\n"
            "  story id: B-1\n"
        )
        stories = parse(text).stories
        assert [(s.id, s.status) for s in stories] == [("A-1", "In progress"), ("B-1", "Done")]

    def test_story_before_any_section_uses_default_status(self):
        """Stories outside a section use default_status."""
        stories = parse("- Story: Loose\n  story id: L-1\n").stories
        assert stories[0].status == "Backlog"

    def test_todo_heading_is_ready(self):
        """A "To Do" section maps to Ready by default."""
        stories = parse("## To Do\n- Story: T\n  story id: T-1\n").stories
        assert stories[0].status == "Ready"

    def test_custom_heading_kept_verbatim(self):
        """Unrecognized headings become the status as written."""
        stories = parse("## Blocked on vendor\n- Story: V\n  story id: V-1\n").stories
        assert stories[0].status == "Blocked on vendor"

    def test_custom_heading_falls_back_when_disabled(self):
        """With keep_custom_status off, unknown headings use default_status."""
        config = SyncConfig(keep_custom_status=False, default_status="Ready")
        stories = parse("## Blocked\n- Story: V\n  story id: V-1\n", config).stories
        assert stories[0].status == "Ready"

    def test_configured_aliases(self):
        """status_aliases from config replace the defaults."""
        config = SyncConfig(status_aliases=[StatusAlias(match="doing", status="In progress")])
        stories = parse("## Doing now\n- Story: D\n  story id: D-1\n", config).stories
        assert stories[0].status == "In progress"

    def test_checked_story_is_closed(self):
        """A checked task item is a closed story."""
        stories = parse("## Done\n- [x] Story: Shipped\n  story id: S-1\n").stories
        assert stories[0].state == ItemState.CLOSED
        assert stories[0].title == "Shipped"

    def test_linked_title(self):
        """A link title gives both title and url."""
        text = "- [ ] Story: [Fix login](https://github.com/o/r/issues/3)\n  story id: F-1\n"
        story = parse(text).stories[0]
        assert story.title == "Fix login"
        assert story.url == "https://github.com/o/r/issues/3"

    def test_field_key_variants(self):
        """Field keys ignore case, spaces, hyphens, underscores and bullets."""
        text = "- Story: K\n  - Story-ID: K-1\n  DESCRIPTION: inline text\n"
        story = parse(text).stories[0]
        assert story.id == "K-1"
        assert story.description == "inline text"


class TestDescriptions:
    """Tests for description blocks."""

    def test_multiline_description_dedented(self):
        """Description lines lose their common indentation."""
        text = (
            "- Story: M\n"
            "  story id: M-1\n"
            "  description:\n"
            "    First line\n"
            "      indented more\n"
            "\n"
            "    Last line\n"
        )
        story = parse(text).stories[0]
        assert story.description == "First line\n  indented more\n\nLast line"

    def test_deeper_key_value_lines_are_content(self):
        """Lines like "Note: x" inside a description are text, not fields."""
        text = "- Story: N\n  story id: N-1\n  description:\n    Note: keep me\n"
        result = parse(text)
        assert result.stories[0].description == "Note: keep me"
        assert result.warnings == []

    def test_code_blocks_are_content(self):
        """Fenced code inside a description is kept as-is."""
        text = (
            "- Story: C\n"
            "  story id: C-1\n"
            "  description:\n"
            "    ```yaml\n"
            "    key: value\n"
            "    ## not a heading\n"
            "    ```\n"
        )
        story = parse(text).stories[0]
        assert story.description == "```yaml\nkey: value\n## not a heading\n```"

    def test_field_after_description_ends_it(self):
        """A field at the description's indent ends the description."""
        text = "- Story: E\n  description:\n    body\n  story id: E-1\n"
        story = parse(text).stories[0]
        assert story.description == "body"
        assert story.id == "E-1"

    def test_repeated_descriptions_concatenate(self):
        """Multiple description fields are joined with newlines."""
        text = "- Story: R\n  story id: R-1\n  description: one\n  description:\n    two\n"
        assert parse(text).stories[0].description == "one\ntwo"


class TestParseDiagnostics:
    """Tests for parse errors and warnings."""

    def test_missing_id_is_one_error(self):
        """A story without an id yields exactly one error and no story."""
        result = parse("## Ready\n- Story: No id\n  description:\n    text\n")

        assert result.stories == []
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.message == "Missing ID"
        assert error.payload["title"] == "No id"
        assert error.payload["line"] == 2
        assert error.payload["file"] == "stories.md"

    def test_missing_id_does_not_block_others(self):
        """Other stories in the document are still returned."""
        text = "- Story: A\n- Story: B\n  story id: B-1\n"
        result = parse(text)
        assert [s.id for s in result.stories] == ["B-1"]
        assert len(result.errors) == 1

    def test_duplicate_id_keeps_first(self):
        """Duplicate ids keep the first story and warn once."""
        text = "- Story: First\n  story id: D-1\n- Story: Second\n  story id: D-1\n"
        result = parse(text)

        assert [s.title for s in result.stories] == ["First"]
        assert len(result.warnings) == 1
        assert result.warnings[0].message == 'Duplicate ID "D-1"'

    def test_unknown_field_warns(self):
        """Unrecognized field keys produce a warning."""
        result = parse("- Story: U\n  story id: U-1\n  priority: high\n")
        assert [w.message for w in result.warnings] == ['Unknown field key "priority"']
        assert result.stories[0].id == "U-1"

    def test_id_validation_opt_in(self):
        """validate_ids adds format warnings without dropping the story."""
        result = parse("- Story: V\n  story id: a b\n", SyncConfig(validate_ids=True))
        assert len(result.stories) == 1
        assert any("only letters" in w.message for w in result.warnings)

    def test_log_contains_every_entry(self):
        """The log holds errors, warnings and debug entries in order."""
        result = parse("- Story: A\n- Story: B\n  story id: B-1\n  foo: bar\n")
        levels = [entry.level for entry in result.log]
        assert LogLevel.ERROR in levels
        assert LogLevel.WARN in levels
        assert levels.index(LogLevel.ERROR) < levels.index(LogLevel.WARN)


    def test_blank_title_is_error(self):
        """A story item with only whitespace after "Story:" is rejected."""
        result = parse("## Ready\n- Story:   \n  story id: X-1\n")

        assert result.stories == []
        assert [e.message for e in result.errors] == ["Missing story title"]
        assert result.errors[0].payload["line"] == 2

    def test_blank_title_fields_stay_with_it(self):
        """Fields under a blank-titled item do not leak into the story above."""
        text = "- Story: A\n  story id: A-1\n- Story:\n  story id: B-1\n"
        result = parse(text)

        assert [(s.title, s.id) for s in result.stories] == [("A", "A-1")]
        assert len(result.errors) == 1

    def test_blank_link_title_is_error(self):
        """A link with a blank label has no title either."""
        result = parse("- Story: [ ](https://example.com/1)\n  story id: L-1\n")
        assert result.stories == []
        assert result.errors[0].message == "Missing story title"


class TestIdPatches:
    """Tests for id suggestions on stories without an id."""

    def test_patch_per_missing_id(self):
        """Each story without an id gets a suggestion with file and line."""
        text = "## Ready\n- Story: Login page\n- Story: Other\n  story id: O-1\n"
        patches = parse(text).id_patches

        assert len(patches) == 1
        patch = patches[0]
        assert patch.title == "Login page"
        assert patch.suggested_id == "login-page"
        assert patch.file == "stories.md"
        assert patch.line == 2
        assert patch.field_line() == "  story id: login-page"

    def test_suggestions_avoid_ids_later_in_document(self):
        """Suggestions never collide with ids declared anywhere in the document."""
        text = "- Story: Fix bug\n- Story: Fix bug\n- Story: Other\n  story id: fix-bug\n"
        patches = parse(text).id_patches
        assert [p.suggested_id for p in patches] == ["fix-bug-2", "fix-bug-3"]

    def test_known_ids_avoided(self):
        """Ids known from elsewhere are not suggested."""
        result = StoryParser().parse("- Story: Fix bug\n", "a.md", known_ids={"fix-bug"})
        assert result.id_patches[0].suggested_id == "fix-bug-2"

    def test_no_patches_when_ids_present(self):
        """Documents where every story has an id need no suggestions."""
        assert parse(EXAMPLE).id_patches == []

class TestRoundTrip:
    """Tests for parse -> to_markdown -> parse."""

    def test_round_trip_preserves_story(self):
        """Re-serialized stories parse back to the same title, id and description."""
        text = (
            "## In Review\n"
            "- [x] Story: [Linked](https://example.com/1)\n"
            "  story id: RT-1\n"
            "  description:\n"
            "    para one\n"
            "\n"
            "    para two\n"
        )
        original = parse(text).stories[0]
        again = parse(f"## In Review\n{original.to_markdown()}").stories[0]

        assert again.title == original.title
        assert again.id == original.id
        assert again.status == original.status
        assert again.description == original.description
        assert again.state == original.state
        assert again.url == original.url
