"""
Tag scanners for markdown note text.

Two ways of cutting an occurrence out of a note:

- find_smallest_units(): the sentence (or line) holding the tag
- find_bullet_trees(): a tagged bullet plus everything indented below it

Both return ``dict[Tag, list[str]]`` keyed by the concrete variant matched,
in first-seen order. Frontmatter is never scanned.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from .frontmatter import strip_frontmatter
from .types import Tag, TagQuery, is_bullet_line

logger = logging.getLogger(__name__)

# A sentence ends at . ! or ? followed by whitespace; lines always end a unit
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")


def _indentation(line: str) -> int:
    """Column of the first non-whitespace character (raw character count)."""
    return len(line) - len(line.lstrip())


def split_units(line: str) -> list[str]:
    """Split one line into stripped, non-empty sentence units."""
    return [unit.strip() for unit in _SENTENCE_BREAK.split(line) if unit.strip()]


def find_smallest_units(
    text: str,
    query: TagQuery,
    exclude_bullets: bool = False,
) -> dict[Tag, list[str]]:
    """
    Find the smallest sentence/line units containing the tag.

    Args:
        text: Note content
        query: Tag to look for (exact or wildcard)
        exclude_bullets: Skip units on bullet lines (bullet trees are
            scanned separately)

    Returns:
        Variant -> unit texts. A unit is listed once per variant even when
        the variant occurs in it several times, and a repeated identical
        unit within the same text is listed once.
    """
    units: dict[Tag, list[str]] = {}
    if query.is_empty:
        return units

    for line in strip_frontmatter(text).splitlines():
        if exclude_bullets and is_bullet_line(line):
            continue
        for unit in split_units(line):
            for tag in dict.fromkeys(query.find_variants(unit)):
                found = units.setdefault(tag, [])
                if unit not in found:
                    found.append(unit)
    return units


# -----------------------------------------------------------------------------
# Bullet subtrees
# -----------------------------------------------------------------------------

class ScanState(Enum):
    SCANNING = "scanning"                    # no subtree open
    CAPTURING_ROOT = "capturing_root"        # innermost subtree has only its root line
    CAPTURING_SUBTREE = "capturing_subtree"  # innermost subtree has descendants


def is_descendant(line_indent: int, root_indent: int) -> bool:
    """A line belongs to a subtree iff it is indented deeper than the root bullet."""
    return line_indent > root_indent


@dataclass
class _Subtree:
    root_indent: int
    position: int
    variants: list[Tag]
    lines: list[str] = field(default_factory=list)

    def append(self, line: str) -> None:
        # Descendants are deeper than the root, so these are whitespace
        self.lines.append(line[self.root_indent:])


class BulletTreeScanner:
    """
    Single-pass state machine collecting tagged bullet subtrees.

    Open subtrees form a stack of strictly increasing root indentation.
    Each line first closes the subtrees it is not a descendant of, is then
    appended to every subtree still open, and finally, if it is a tagged
    bullet, opens a subtree of its own for variants not already captured
    by an enclosing one.

    Usage:
        scanner = BulletTreeScanner(query)
        for line in text.splitlines():
            scanner.feed(line)
        trees = scanner.finish()
    """

    def __init__(self, query: TagQuery):
        self.query = query
        self.state = ScanState.SCANNING
        self._open: list[_Subtree] = []
        self._closed: list[_Subtree] = []
        self._position = 0

    def feed(self, line: str) -> None:
        """Consume one line. Blank lines are ignored and close nothing."""
        if not line.strip():
            return
        self.state = self.transition(line)
        self._position += 1

    def transition(self, line: str) -> ScanState:
        """Apply one non-blank line and return the resulting state."""
        indent = _indentation(line)

        while self._open and not is_descendant(indent, self._open[-1].root_indent):
            self._closed.append(self._open.pop())

        for subtree in self._open:
            subtree.append(line)

        if is_bullet_line(line):
            captured = {tag for subtree in self._open for tag in subtree.variants}
            new_variants = [
                tag for tag in dict.fromkeys(self.query.find_variants(line))
                if tag not in captured
            ]
            if new_variants:
                self._open.append(_Subtree(
                    root_indent=indent,
                    position=self._position,
                    variants=new_variants,
                    lines=[line[indent:]],
                ))

        if not self._open:
            return ScanState.SCANNING
        if len(self._open[-1].lines) == 1:
            return ScanState.CAPTURING_ROOT
        return ScanState.CAPTURING_SUBTREE

    def finish(self) -> dict[Tag, list[str]]:
        """Close everything still open (end of document) and return the trees."""
        while self._open:
            self._closed.append(self._open.pop())
        self.state = ScanState.SCANNING

        trees: dict[Tag, list[str]] = {}
        for subtree in sorted(self._closed, key=lambda s: s.position):
            text = "\n".join(subtree.lines)
            for tag in subtree.variants:
                trees.setdefault(tag, []).append(text)
        return trees


def find_bullet_trees(text: str, query: TagQuery) -> dict[Tag, list[str]]:
    """
    Find whole bullet subtrees whose root bullet contains the tag.

    Each subtree is returned as one string: the root line followed by its
    more-indented descendant lines, indentation relative to the root.

    Example:
        "- Buy milk #errand\\n  - also eggs\\n" with query ``#errand`` gives
        one tree for ``#errand``: "- Buy milk #errand\\n  - also eggs"
    """
    if query.is_empty:
        return {}
    scanner = BulletTreeScanner(query)
    for line in strip_frontmatter(text).splitlines():
        scanner.feed(line)
    return scanner.finish()
