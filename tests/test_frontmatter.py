"""Tests for frontmatter splitting, parsing and tag extraction."""

from tagpage.frontmatter import (
    dump_frontmatter,
    extract_tags,
    parse_frontmatter,
    split_frontmatter,
    strip_frontmatter,
)


class TestSplitFrontmatter:
    def test_split(self):
        assert split_frontmatter("---\na: 1\n---\nbody\n") == ("---\na: 1\n---\n", "body\n")

    def test_none(self):
        assert split_frontmatter("body\n---\n") == ("", "body\n---\n")

    def test_unterminated(self):
        text = "---\na: 1\nbody\n"
        assert split_frontmatter(text) == ("", text)

    def test_bom(self):
        block, body = split_frontmatter("\ufeff---\na: 1\n---\nbody")
        assert block == "\ufeff---\na: 1\n---\n"
        assert body == "body"

    def test_block_only(self):
        assert split_frontmatter("---\na: 1\n---") == ("---\na: 1\n---", "")

    def test_strip(self):
        assert strip_frontmatter("---\na: 1\n---\nbody") == "body"


class TestParseFrontmatter:
    def test_mapping(self):
        assert parse_frontmatter("---\ntags: [a, b]\ntitle: x\n---\n") == {"tags": ["a", "b"], "title": "x"}

    def test_invalid_yaml(self):
        assert parse_frontmatter("---\nkey: [unclosed\n---\nbody") == {}

    def test_not_a_mapping(self):
        assert parse_frontmatter("---\n- a\n- b\n---\n") == {}

    def test_empty_block(self):
        assert parse_frontmatter("---\n---\n") == {}

    def test_no_block(self):
        assert parse_frontmatter("just text") == {}


class TestDumpFrontmatter:
    def test_round_trip(self):
        block = dump_frontmatter({"tag-page-query": "#project/*"})
        assert block.startswith("---\n")
        assert block.endswith("\n---\n")
        assert parse_frontmatter(block) == {"tag-page-query": "#project/*"}

    def test_key_order_kept(self):
        block = dump_frontmatter({"b": 1, "a": 2})
        assert block == "---\nb: 1\na: 2\n---\n"


class TestExtractTags:
    def test_list(self):
        assert extract_tags({"tags": ["a", "#b", None]}) == {"a", "#b"}

    def test_string(self):
        assert extract_tags({"tags": "a, b c"}) == {"a", "b", "c"}

    def test_singular_key(self):
        assert extract_tags({"tag": "x"}) == {"x"}

    def test_scalar(self):
        assert extract_tags({"tags": 2024}) == {"2024"}

    def test_missing(self):
        assert extract_tags({"title": "x"}) == set()
