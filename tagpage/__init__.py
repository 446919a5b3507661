"""
Tag pages for markdown notes

Collects every occurrence of a tag across a vault of markdown notes onto
one generated page, grouped by tag variant, with a link back to each
source note.

Quick Start:
    from tagpage import TagPages

    pages = TagPages("~/notes")
    pages.create("#project/*")   # Tags/project_nested_Tags.md
    pages.refresh_all()

CLI Usage:
    tagpage create "#project/*"
    tagpage refresh Tags/project_nested_Tags.md
    tagpage scan errand --json

Environment Variables:
    TAGPAGE_VAULT    - Vault directory (default: current directory)
    TAGPAGE_HOME     - Directory for logs (default: ~/.tagpage)
    TAGPAGE_VERBOSE  - Set to 1 for debug logging in the CLI

Settings live in tagpage.toml at the vault root.
"""

from .api import TagPages
from .config import TagPageSettings
from .grouping import scan_corpus
from .protocol import NoteSource
from .synthesis import synthesize_document
from .types import MatchUnit, NoteRef, Tag, TagGroup, TagQuery, parse_tag_query
from .vault import Vault

__version__ = "0.1.0"
__all__ = [
    "TagPages",
    "TagPageSettings",
    "Vault",
    "NoteSource",
    "scan_corpus",
    "synthesize_document",
    "parse_tag_query",
    "Tag",
    "TagQuery",
    "TagGroup",
    "MatchUnit",
    "NoteRef",
]
