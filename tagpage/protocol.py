"""
Protocol definitions for the note corpus behind a tag page.

The scanning and synthesis code only talks to a NoteSource. It is
implemented by:
- Vault (markdown files under a directory)
- test doubles holding notes in memory

scan_corpus() fetches each note once through read_text() and takes the
frontmatter tags and the tag page check from that text.
"""

from typing import Optional, Protocol, runtime_checkable

from .types import NoteRef


@runtime_checkable
class NoteSource(Protocol):
    """Read-only access to a corpus of notes."""

    def list_notes(self) -> list[NoteRef]:
        """All notes, in a stable corpus order."""
        ...

    def read_text(self, note: NoteRef) -> str:
        """Full note content, UTF-8, ``\\n`` line endings."""
        ...

    def read_structured_tags(self, note: NoteRef) -> set[str]:
        """Tags from the note's frontmatter (not inline text)."""
        ...

    def resolve_embed_target(self, from_identity: str, raw_target: str) -> Optional[NoteRef]:
        """Resolve an embed target as seen from the given note, or None."""
        ...

    def is_generated_tag_page(self, note: NoteRef, key: str) -> bool:
        """True if the note records a tag page query under ``key``."""
        ...
