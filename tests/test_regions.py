"""Tests for locating the generated region of a tag page."""

from tagpage.regions import Marked, Unmarked, split_regions
from tagpage.types import REGION_CLOSE, REGION_OPEN


FM = "---\ntag-page-query: '#t'\n---\n"


class TestSplitRegions:
    def test_marked(self):
        text = f"{FM}before\n{REGION_OPEN}\nbody\nmore\n{REGION_CLOSE}\nafter"
        assert split_regions(text) == Marked(
            frontmatter_block=FM,
            before="before\n",
            body="body\nmore",
            after="after",
        )

    def test_marked_without_frontmatter(self):
        region = split_regions(f"{REGION_OPEN}\nx\n{REGION_CLOSE}\n")
        assert region == Marked(frontmatter_block="", before="", body="x", after="")

    def test_markers_with_trailing_whitespace(self):
        region = split_regions(f"{REGION_OPEN}  \nx\n{REGION_CLOSE}\t\n")
        assert isinstance(region, Marked)
        assert region.body == "x"

    def test_indented_marker_is_content(self):
        text = f"{REGION_OPEN}\n- a\n  {REGION_CLOSE}\n  - b\n{REGION_CLOSE}\nafter\n"
        region = split_regions(text)
        assert region.body == f"- a\n  {REGION_CLOSE}\n  - b"
        assert region.after == "after\n"

    def test_indented_open_marker_is_content(self):
        text = f"{REGION_OPEN}\n  {REGION_OPEN}\n{REGION_CLOSE}\n"
        assert split_regions(text).body == f"  {REGION_OPEN}"

    def test_after_keeps_blank_lines(self):
        region = split_regions(f"{REGION_OPEN}\nx\n{REGION_CLOSE}\n\n\nnotes\n")
        assert region.after == "\n\nnotes\n"

    def test_legacy_close_only(self):
        text = f"{FM}## old title\n- old\n{REGION_CLOSE}\nafter\n"
        region = split_regions(text)
        assert region == Marked(
            frontmatter_block=FM,
            before="",
            body="## old title\n- old",
            after="after\n",
            legacy=True,
        )

    def test_no_markers(self):
        assert split_regions(f"{FM}just text\n") == Unmarked()

    def test_unclosed(self):
        assert split_regions(f"{FM}{REGION_OPEN}\nnever closed\n") == Unmarked()

    def test_nested_open(self):
        text = f"{REGION_OPEN}\na\n{REGION_OPEN}\nb\n{REGION_CLOSE}\n"
        assert split_regions(text) == Unmarked()

    def test_marker_inside_text_line_ignored(self):
        text = f"mention of {REGION_OPEN} inline\n"
        assert split_regions(text) == Unmarked()

    def test_empty(self):
        assert split_regions("") == Unmarked()
