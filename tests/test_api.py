"""End-to-end tests for TagPages against a real vault directory."""

import pytest

from tagpage.api import TagPages, page_filename
from tagpage.config import CONFIG_FILENAME, TagPageSettings
from tagpage.frontmatter import parse_frontmatter, split_frontmatter
from tagpage.types import REGION_CLOSE, REGION_OPEN, parse_tag_query


NOTES = {
    "Shopping.md": "Buy milk #errand. Then go home.\n- Post letter #errand\n  - stamps\n",
    "journal/2024-01-01.md": "---\ntags: [errand]\n---\nNothing inline.\n",
    "projects/alpha.md": "- kickoff #project/alpha\n  - agenda\nOverall #project is fine.\n",
}


@pytest.fixture
def vault(make_vault):
    return make_vault(NOTES)


@pytest.fixture
def pages(vault):
    with TagPages(vault) as tp:
        yield tp


def _region_lines(text):
    _, rest = split_frontmatter(text)
    start = rest.index(REGION_OPEN) + len(REGION_OPEN) + 1
    return rest[start:rest.index(REGION_CLOSE) - 1].split("\n")


class TestPageFilename:
    def test_exact(self):
        assert page_filename(parse_tag_query("#errand")) == "errand_Tags.md"

    def test_nested_name(self):
        assert page_filename(parse_tag_query("#project/alpha")) == "project_alpha_Tags.md"

    def test_wildcard(self):
        assert page_filename(parse_tag_query("#project/*")) == "project_nested_Tags.md"


class TestQuery:
    def test_marker_added(self, pages):
        assert pages.query("errand").raw == "#errand"

    @pytest.mark.parametrize("tag", ["", "#", "  ", "#/*"])
    def test_empty(self, pages, tag):
        with pytest.raises(ValueError):
            pages.query(tag)


class TestScanAndRender:
    def test_scan(self, pages):
        group = pages.scan("errand")
        assert [u.text for u in group["#errand"]] == [
            "Buy milk #errand.", "- Post letter #errand\n  - stamps",
        ]
        assert group.tagged_notes == ["[[2024-01-01]]"]

    def test_render_does_not_write(self, pages, vault):
        text = pages.render("errand")
        assert REGION_OPEN in text
        assert not (vault / "Tags").exists()


class TestCreate:
    def test_create(self, pages, vault):
        path = pages.create("errand")
        assert path == pages.vault.root / "Tags" / "errand_Tags.md"

        text = path.read_text(encoding="utf-8")
        assert parse_frontmatter(text) == {"tag-page-query": "#errand"}
        assert _region_lines(text) == [
            "## Tag Content for #errand",
            "- Buy milk **errand**. [[Shopping]]",
            "- Post letter **errand** [[Shopping]]",
            "  - stamps",
            "## Files with #errand in frontmatter",
            "- [[2024-01-01]]",
        ]

    def test_create_again_is_stable(self, pages):
        path = pages.create("errand")
        first = path.read_text(encoding="utf-8")
        assert pages.create("#errand") == path
        assert path.read_text(encoding="utf-8") == first
        assert pages.refresh(path) is False

    def test_wildcard_page(self, pages):
        path = pages.create("#project/*")
        assert path.name == "project_nested_Tags.md"
        assert _region_lines(path.read_text(encoding="utf-8")) == [
            "## Tag Content for #project/*",
            "### #project",
            "- Overall **project** is fine. [[alpha]]",
            "### #project/alpha",
            "- kickoff **project/alpha** [[alpha]]",
            "  - agenda",
        ]

    def test_embeds_resolved_through_vault(self, make_vault):
        root = make_vault({
            "journal/day.md": "- photo ![[pic.png]] #img\n",
            "attachments/pic.png": "",
        })
        with TagPages(root) as tp:
            text = tp.create("img").read_text(encoding="utf-8")
        assert "- photo ![[attachments/pic.png]] **img** [[day]]" in text

    def test_ops_log_written(self, pages, tagpage_home):
        pages.create("errand")
        log = (tagpage_home / "tagpage-ops.log").read_text(encoding="utf-8")
        assert "Wrote tag page Tags/errand_Tags.md" in log


class TestRefresh:
    def test_user_text_preserved(self, pages, vault):
        path = pages.create("errand")
        block, rest = split_frontmatter(path.read_text(encoding="utf-8"))
        path.write_text(f"{block}My intro\n{rest}\nMy closing notes\n", encoding="utf-8")
        (vault / "Other.md").write_text("- call plumber #errand\n", encoding="utf-8")

        assert pages.refresh("Tags/errand_Tags.md") is True

        text = path.read_text(encoding="utf-8")
        assert text.startswith(f"{block}My intro\n{REGION_OPEN}\n")
        assert text.endswith(f"{REGION_CLOSE}\n\nMy closing notes\n")
        assert "- call plumber **errand** [[Other]]" in _region_lines(text)

    def test_missing_page(self, pages):
        with pytest.raises(FileNotFoundError):
            pages.refresh("Tags/nope_Tags.md")

    def test_page_without_query(self, pages):
        with pytest.raises(ValueError, match="tag-page-query"):
            pages.refresh("Shopping.md")

    def test_list_pages(self, pages):
        assert pages.list_pages() == []
        errand = pages.create("errand")
        project = pages.create("project/*")
        assert pages.list_pages() == [errand, project]

    def test_refresh_all(self, pages, vault):
        errand = pages.create("errand")
        pages.create("project/*")
        assert pages.refresh_all() == []

        (vault / "Shopping.md").write_text("Only this now #errand.\n", encoding="utf-8")
        assert pages.refresh_all() == [errand]
        assert "- Only this now **errand**. [[Shopping]]" in _region_lines(
            errand.read_text(encoding="utf-8")
        )


class TestSettings:
    def test_from_vault_config(self, vault):
        (vault / CONFIG_FILENAME).write_text(
            '[settings]\ntag_page_dir = "Index"\nlink_at_end = false\n', encoding="utf-8"
        )
        with TagPages(vault) as tp:
            path = tp.create("errand")
        assert path.parent.name == "Index"
        assert "- [[Shopping]] Buy milk **errand**." in path.read_text(encoding="utf-8")

    def test_explicit_settings(self, vault):
        settings = TagPageSettings(include_lines=False, title_template="{{tagname}} list")
        with TagPages(vault, settings=settings) as tp:
            lines = _region_lines(tp.render("errand"))
        assert lines[0] == "## errand list"
        assert "- Buy milk **errand**. [[Shopping]]" not in lines

    def test_vault_from_env(self, vault, monkeypatch):
        monkeypatch.setenv("TAGPAGE_VAULT", str(vault))
        with TagPages() as tp:
            assert tp.vault.root == vault.resolve()
