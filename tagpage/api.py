"""
Core API for tag pages.

- scan(): tag → grouped matches across the vault
- render(): tag → tag page text (nothing written)
- create() / refresh(): write or regenerate a tag page in the vault
"""

import logging
import re
from pathlib import Path
from typing import Optional

from .config import TagPageSettings, load_settings, resolve_vault_path, tagpage_home
from .grouping import scan_corpus
from .logging_config import configure_ops_log, remove_ops_log
from .synthesis import synthesize_document
from .types import TagGroup, TagQuery, normalize_tag, parse_tag_query
from .vault import Vault

logger = logging.getLogger(__name__)

__all__ = ["TagPages", "scan_corpus", "synthesize_document"]

PAGE_SUFFIX = "_Tags.md"
NESTED_PAGE_SUFFIX = "_nested_Tags.md"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w-]+")


def page_filename(query: TagQuery) -> str:
    """
    File name of the tag page for a query.

    ``#project/alpha`` → ``project_alpha_Tags.md``;
    ``#project/*`` → ``project_nested_Tags.md``.
    """
    name = _UNSAFE_FILENAME_CHARS.sub("_", query.name.strip("/"))
    suffix = NESTED_PAGE_SUFFIX if query.is_wildcard else PAGE_SUFFIX
    return f"{name}{suffix}"


class TagPages:
    """
    Tag pages for one vault.

    Example:
        with TagPages("~/notes") as pages:
            path = pages.create("#project/*")
            pages.refresh_all()
    """

    def __init__(
        self,
        vault_path: Optional[str | Path] = None,
        *,
        settings: Optional[TagPageSettings] = None,
    ) -> None:
        """
        Open a vault.

        Args:
            vault_path: Vault root. Uses TAGPAGE_VAULT or the current
                directory if not specified.
            settings: Settings to use instead of the vault's tagpage.toml.
        """
        self.vault = Vault(resolve_vault_path(Path(vault_path) if vault_path is not None else None))
        self.settings = settings if settings is not None else load_settings(self.vault.root)
        self._ops_log_handler = configure_ops_log(tagpage_home())
        logger.debug("Opened %r with %s", self.vault, self.settings)

    # -- Queries --

    def query(self, tag: str) -> TagQuery:
        """
        Parse a user-supplied tag (``project``, ``#project``, ``#project/*``).

        Raises:
            ValueError: If no tag characters are left
        """
        query = parse_tag_query(normalize_tag(tag))
        if query.is_empty:
            raise ValueError(f"Empty tag: {tag!r}")
        return query

    def scan(self, tag: str) -> TagGroup:
        """Grouped matches for a tag across the vault."""
        return scan_corpus(self.vault, self.query(tag), self.settings)

    def render(self, tag: str, previous_text: Optional[str] = None) -> str:
        """Tag page text for a tag, optionally merged into a previous page."""
        query = self.query(tag)
        return self._render(query, previous_text)

    def _render(self, query: TagQuery, previous_text: Optional[str]) -> str:
        group = scan_corpus(self.vault, query, self.settings)
        return synthesize_document(
            group, query, self.settings, previous_text,
            resolver=self.vault.resolve_embed_target,
        )

    # -- Pages --

    def page_path_for(self, tag: str) -> Path:
        """Where the tag page for a tag lives."""
        return self.vault.root / self.settings.tag_page_dir / page_filename(self.query(tag))

    def _resolve_page(self, page_path: str | Path) -> Path:
        path = Path(page_path).expanduser()
        if not path.is_absolute():
            path = self.vault.root / path
        return path

    def _write_if_changed(self, path: Path, text: str, previous_text: Optional[str]) -> bool:
        if text == previous_text:
            logger.debug("Unchanged: %s", path)
            return False
        self.vault.write_text(path, text)
        logger.info("Wrote tag page %s", self.vault.identity_for(path))
        return True

    def create(self, tag: str) -> Path:
        """
        Create the tag page for a tag, or refresh it if it already exists.

        Returns:
            Path of the tag page
        """
        query = self.query(tag)
        path = self.page_path_for(tag)
        previous_text = self.vault.read_text(self.vault.note_for(path)) if path.is_file() else None
        self._write_if_changed(path, self._render(query, previous_text), previous_text)
        return path

    def refresh(self, page_path: str | Path) -> bool:
        """
        Regenerate an existing tag page from the query in its frontmatter.

        Text outside the generated region is preserved.

        Returns:
            True if the page content changed

        Raises:
            FileNotFoundError: If the page does not exist
            ValueError: If the page records no tag query
        """
        path = self._resolve_page(page_path)
        if not path.is_file():
            raise FileNotFoundError(f"Tag page not found: {path}")

        note = self.vault.note_for(path)
        raw = self.vault.read_query(note, self.settings.frontmatter_query_key)
        if raw is None:
            raise ValueError(
                f"{note.identity} has no '{self.settings.frontmatter_query_key}' in its frontmatter"
            )

        previous_text = self.vault.read_text(note)
        text = self._render(self.query(raw), previous_text)
        return self._write_if_changed(path, text, previous_text)

    def list_pages(self) -> list[Path]:
        """All generated tag pages in the vault, in path order."""
        key = self.settings.frontmatter_query_key
        return [
            self.vault.path_of(note)
            for note in self.vault.list_notes()
            if self.vault.is_generated_tag_page(note, key)
        ]

    def refresh_all(self) -> list[Path]:
        """
        Regenerate every tag page in the vault.

        Returns:
            Pages whose content changed
        """
        changed = [path for path in self.list_pages() if self.refresh(path)]
        logger.info("Refreshed tag pages: %d changed", len(changed))
        return changed

    # -- Lifecycle --

    def close(self) -> None:
        """Detach the operations log."""
        remove_ops_log(self._ops_log_handler)
        self._ops_log_handler = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
