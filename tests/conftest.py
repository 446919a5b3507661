"""
Shared pytest fixtures for tagpage tests.

Provides an in-memory note source so scanner and synthesis tests do not
touch the filesystem, and a builder for real vault directories.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path, PurePosixPath
from typing import Optional

import pytest

from tagpage.config import TagPageSettings
from tagpage.frontmatter import extract_tags, parse_frontmatter
from tagpage.types import NoteRef


class MemoryNotes:
    """
    In-memory NoteSource for testing.

    Notes are listed in insertion order. Identities in ``failing`` raise
    OSError on read, like an unreadable file.
    """

    def __init__(self, notes: Optional[dict[str, str]] = None):
        self.notes: dict[str, str] = dict(notes or {})
        self.mtimes: dict[str, float] = {}
        self.failing: set[str] = set()
        self.files: set[str] = set()

    def add(self, identity: str, text: str, mtime: Optional[float] = None) -> NoteRef:
        self.notes[identity] = text
        if mtime is not None:
            self.mtimes[identity] = mtime
        return self._ref(identity)

    def _ref(self, identity: str) -> NoteRef:
        return NoteRef(
            identity=identity,
            display_name=PurePosixPath(identity).stem,
            mtime=self.mtimes.get(identity),
        )

    def list_notes(self) -> list[NoteRef]:
        return [self._ref(identity) for identity in self.notes]

    def read_text(self, note: NoteRef) -> str:
        if note.identity in self.failing:
            raise OSError(f"cannot read {note.identity}")
        return self.notes[note.identity]

    def read_structured_tags(self, note: NoteRef) -> set[str]:
        return extract_tags(parse_frontmatter(self.read_text(note)))

    def resolve_embed_target(self, from_identity: str, raw_target: str) -> Optional[NoteRef]:
        for identity in (raw_target, raw_target + ".md"):
            if identity in self.files or identity in self.notes:
                return self._ref(identity)
        return None

    def is_generated_tag_page(self, note: NoteRef, key: str) -> bool:
        value = parse_frontmatter(self.notes[note.identity]).get(key)
        return value is not None and bool(str(value).strip())


@pytest.fixture(autouse=True)
def tagpage_home(tmp_path, monkeypatch):
    """Keep logs out of the real home directory and ignore the user's vault."""
    home = tmp_path / "tagpage-home"
    monkeypatch.setenv("TAGPAGE_HOME", str(home))
    monkeypatch.delenv("TAGPAGE_VAULT", raising=False)
    monkeypatch.delenv("TAGPAGE_VERBOSE", raising=False)
    yield home
    tagpage_logger = logging.getLogger("tagpage")
    for handler in list(tagpage_logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            tagpage_logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def notes():
    """Fresh in-memory note source."""
    return MemoryNotes()


@pytest.fixture
def settings():
    """Default settings."""
    return TagPageSettings()


@pytest.fixture
def make_vault(tmp_path):
    """
    Build a vault directory from {relative path: content}.

    Usage:
        vault = make_vault({"daily/2024-01-01.md": "- call Bob #errand"})
    """
    def _make(files: dict[str, str]) -> Path:
        root = tmp_path / "vault"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root
    return _make
