"""
Filesystem vault: markdown notes under a root directory.

Implements the NoteSource protocol. Note identities are vault-relative
POSIX paths such as ``projects/alpha.md``. Hidden directories
(``.obsidian``, ``.trash``, ``.git`` ...) are not part of the vault.
"""

import logging
import os
import posixpath
import tempfile
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import unquote

from .frontmatter import extract_tags, parse_frontmatter
from .types import NoteRef

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"


class Vault:
    """A directory of markdown notes."""

    def __init__(self, root: Path):
        self.root = Path(root).expanduser().resolve()

    def __repr__(self) -> str:
        return f"Vault({str(self.root)!r})"

    # -- Enumeration --

    def _iter_files(self) -> Iterator[Path]:
        """All regular files in the vault, sorted by relative path."""
        if not self.root.is_dir():
            return
        for path in sorted(self.root.rglob("*")):
            rel_parts = path.relative_to(self.root).parts
            if any(part.startswith(".") for part in rel_parts):
                continue
            if path.is_file():
                yield path

    def identity_for(self, path: Path) -> str:
        """
        Vault-relative POSIX identity of a path inside the vault.

        Raises:
            ValueError: If the path is outside the vault
        """
        path = Path(path)
        if not path.is_absolute():
            path = self.root / path
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.resolve().relative_to(self.root).as_posix()

    def note_for(self, path: Path) -> NoteRef:
        """NoteRef for a file path inside the vault."""
        identity = self.identity_for(path)
        path = self.root / identity
        try:
            mtime = path.stat().st_mtime
        except OSError:
            mtime = None
        return NoteRef(identity=identity, display_name=path.stem, mtime=mtime)

    def list_notes(self) -> list[NoteRef]:
        return [
            self.note_for(path)
            for path in self._iter_files()
            if path.suffix.lower() == NOTE_SUFFIX
        ]

    # -- Reading --

    def path_of(self, note: NoteRef) -> Path:
        return self.root / note.identity

    def read_text(self, note: NoteRef) -> str:
        text = self.path_of(note).read_text(encoding="utf-8", errors="replace")
        return text.replace("\r\n", "\n").replace("\r", "\n")

    def read_frontmatter(self, note: NoteRef) -> dict:
        return parse_frontmatter(self.read_text(note))

    def read_structured_tags(self, note: NoteRef) -> set[str]:
        return extract_tags(self.read_frontmatter(note))

    def read_query(self, note: NoteRef, key: str) -> Optional[str]:
        """The tag page query recorded under ``key``, if any."""
        value = self.read_frontmatter(note).get(key)
        if value is None or not str(value).strip():
            return None
        return str(value).strip()

    def is_generated_tag_page(self, note: NoteRef, key: str) -> bool:
        try:
            return self.read_query(note, key) is not None
        except OSError as e:
            logger.warning("Cannot read %s: %s", note.identity, e)
            return False

    # -- Embed resolution --

    def _existing(self, identity: str) -> Optional[NoteRef]:
        if identity == ".." or identity.startswith("../") or identity.startswith("/"):
            return None
        for candidate in (identity, identity + NOTE_SUFFIX):
            if (self.root / candidate).is_file():
                return self.note_for(self.root / candidate)
        return None

    def resolve_embed_target(self, from_identity: str, raw_target: str) -> Optional[NoteRef]:
        """
        Resolve an embed target the way Obsidian does, roughly.

        Tries, in order: relative to the embedding note, relative to the
        vault root, then the shortest path with a matching file name.
        Section (``#``) and alias (``|``) suffixes are ignored.
        """
        target = unquote(raw_target.split("|", 1)[0].split("#", 1)[0]).strip()
        if not target:
            return None

        source_dir = posixpath.dirname(from_identity)
        for identity in (
            posixpath.normpath(posixpath.join(source_dir, target)),
            posixpath.normpath(target),
        ):
            found = self._existing(identity)
            if found is not None:
                return found

        name = posixpath.basename(target).lower()
        candidates = [
            path for path in self._iter_files()
            if path.name.lower() in (name, name + NOTE_SUFFIX)
        ]
        if not candidates:
            return None
        best = min(candidates, key=lambda p: (len(p.relative_to(self.root).parts), p.as_posix()))
        return self.note_for(best)

    # -- Writing --

    def write_text(self, path: Path, text: str) -> None:
        """Atomically write a file inside the vault (temp file + rename)."""
        path = Path(path)
        if not path.is_absolute():
            path = self.root / path
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", delete=False, encoding="utf-8", dir=path.parent, prefix=".tagpage-", suffix=".tmp"
        ) as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = Path(tmp.name)
        os.replace(tmp_path, path)
        logger.debug("Wrote %s (%d chars)", path, len(text))
