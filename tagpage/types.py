"""
Data types for tag pages.

A tag page collects every occurrence of one tag (or a whole tag subtree,
for wildcard queries) from a vault of markdown notes.
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterator, Optional


# Leading marker of an inline tag
TAG_MARKER = "#"

# Query suffix meaning "this tag and every tag nested below it"
WILDCARD_SUFFIX = "/*"

# Generated region markers (Obsidian comments, invisible in reading view)
REGION_OPEN = "%% tag-page-md %%"
REGION_CLOSE = "%% tag-page-md end %%"

# A bullet list item: optional indentation, a dash, one space
BULLET_PATTERN = re.compile(r"^(\s*)- ")

# Tag characters follow Obsidian: letters, digits, underscore, hyphen, slash.
# A match must not be glued to a preceding tag or word character.
_TAG_START = r"(?<![\w/#-])"
_EXACT_END = r"(?![\w/-])"
_NESTED_CONTINUATION = r"(?:/[\w/-]*)?"
_WILDCARD_END = r"(?![\w-])"


def is_bullet_line(line: str) -> bool:
    """Check if a line is a bullet list item (``- `` after indentation)."""
    return BULLET_PATTERN.match(line) is not None


def normalize_tag(raw: str) -> str:
    """Trim a user-supplied tag and make sure it starts with the tag marker."""
    tag = raw.strip()
    if tag and not tag.startswith(TAG_MARKER):
        tag = TAG_MARKER + tag
    return tag


@dataclass(frozen=True)
class Tag:
    """
    A concrete tag variant, used as the grouping key for matches.

    Equality and hashing use ``key`` only (lower-cased, no trailing slash);
    ``display`` keeps the spelling of the first occurrence.
    Build instances with :meth:`from_match`.
    """
    key: str
    display: str = field(compare=False)

    def __post_init__(self):
        if not self.key or self.key != self.key.lower() or self.key.endswith("/"):
            raise ValueError(f"Tag key must be non-empty, lower-case, without trailing '/': {self.key!r}")

    @classmethod
    def from_match(cls, text: str) -> "Tag":
        """Create a Tag from the literal text a tag pattern matched."""
        text = text.rstrip("/")
        return cls(key=text.lower(), display=text)

    @property
    def name(self) -> str:
        """Display form without the leading tag marker."""
        return self.display.removeprefix(TAG_MARKER)

    def __str__(self) -> str:
        return self.display


@lru_cache(maxsize=128)
def _compile_pattern(cleaned_tag: str, is_wildcard: bool) -> re.Pattern:
    escaped = re.escape(cleaned_tag)
    if is_wildcard:
        return re.compile(_TAG_START + escaped + _NESTED_CONTINUATION + _WILDCARD_END, re.IGNORECASE)
    return re.compile(_TAG_START + escaped + _EXACT_END, re.IGNORECASE)


@dataclass(frozen=True)
class TagQuery:
    """
    A parsed tag-of-interest.

    Attributes:
        raw: The tag as requested, e.g. ``#project/*``
        is_wildcard: True iff ``raw`` ends with ``/*``
        cleaned_tag: ``raw`` without the wildcard suffix, e.g. ``#project``
    """
    raw: str
    is_wildcard: bool
    cleaned_tag: str

    @property
    def name(self) -> str:
        """Cleaned tag without its leading marker."""
        return self.cleaned_tag.removeprefix(TAG_MARKER)

    @property
    def is_empty(self) -> bool:
        """True when no tag characters are left (``""``, ``#``, ``/*``)."""
        return not self.name.strip().strip("/")

    @property
    def pattern(self) -> Optional[re.Pattern]:
        """Case-insensitive match pattern, or None for an empty query."""
        if self.is_empty:
            return None
        return _compile_pattern(self.cleaned_tag, self.is_wildcard)

    def search(self, text: str) -> bool:
        """Quick check whether the text contains any match at all."""
        pattern = self.pattern
        return pattern is not None and pattern.search(text) is not None

    def find_variants(self, text: str) -> Iterator[Tag]:
        """Yield the tag variant of every match in ``text``, in order."""
        pattern = self.pattern
        if pattern is None:
            return
        for match in pattern.finditer(text):
            if match.group(0).rstrip("/"):
                yield Tag.from_match(match.group(0))

    def matches_structured_tag(self, value: str) -> bool:
        """Check a frontmatter tag value (with or without marker) against the query."""
        if self.is_empty:
            return False
        candidate = str(value).strip().removeprefix(TAG_MARKER).lower()
        name = self.name.lower()
        if candidate == name:
            return True
        return self.is_wildcard and candidate.startswith(name + "/")


def parse_tag_query(raw: str) -> TagQuery:
    """
    Parse a raw tag string into a TagQuery.

    Only a literal ``/*`` suffix makes a wildcard; nothing else is stripped.

    Example:
        >>> parse_tag_query("#project/*")
        TagQuery(raw='#project/*', is_wildcard=True, cleaned_tag='#project')
    """
    is_wildcard = raw.endswith(WILDCARD_SUFFIX)
    cleaned = raw[:-len(WILDCARD_SUFFIX)] if is_wildcard else raw
    return TagQuery(raw=raw, is_wildcard=is_wildcard, cleaned_tag=cleaned)


@dataclass(frozen=True)
class NoteRef:
    """A note in the corpus. ``identity`` is the vault-relative POSIX path."""
    identity: str
    display_name: str
    mtime: Optional[float] = None


@dataclass(frozen=True)
class MatchUnit:
    """
    One extracted occurrence: a prose unit or a whole bullet subtree.

    Bullet subtrees keep indentation relative to their root bullet.
    """
    text: str
    source_link: str
    source_path: str = ""
    timestamp: Optional[float] = None

    @property
    def is_bullet(self) -> bool:
        return is_bullet_line(self.text)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "source_link": self.source_link,
            "source_path": self.source_path,
            "timestamp": self.timestamp,
        }


class TagGroup:
    """
    Matches grouped by tag variant, in insertion order.

    ``tagged_notes`` holds provenance links of notes whose frontmatter
    tags match the query.
    """

    def __init__(self):
        self._groups: dict[Tag, list[MatchUnit]] = {}
        self.tagged_notes: list[str] = []

    def add(self, tag: Tag, unit: MatchUnit) -> None:
        self._groups.setdefault(tag, []).append(unit)

    def extend(self, tag: Tag, units: list[MatchUnit]) -> None:
        self._groups.setdefault(tag, []).extend(units)

    def merge(self, other: "TagGroup") -> None:
        """Append another group's matches and tagged notes after our own."""
        for tag, units in other.items():
            self.extend(tag, units)
        self.tagged_notes.extend(other.tagged_notes)

    def items(self) -> Iterator[tuple[Tag, list[MatchUnit]]]:
        return iter(self._groups.items())

    def variants(self) -> list[Tag]:
        return list(self._groups)

    def variants_by_specificity(self) -> list[Tag]:
        """Variants ordered most general (least nested) first, then alphabetically."""
        return sorted(self._groups, key=lambda tag: (tag.key.count("/"), tag.key))

    def get(self, tag, default=None) -> Optional[list[MatchUnit]]:
        if isinstance(tag, str):
            tag = Tag.from_match(tag)
        return self._groups.get(tag, default)

    def __getitem__(self, tag) -> list[MatchUnit]:
        units = self.get(tag)
        if units is None:
            raise KeyError(tag)
        return units

    def __contains__(self, tag) -> bool:
        return self.get(tag) is not None

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def match_count(self) -> int:
        return sum(len(units) for units in self._groups.values())

    def sort_by_timestamp(self, order: str) -> "TagGroup":
        """
        Return a copy with each variant's matches stably sorted by timestamp.

        Args:
            order: "asc", "desc", or "none" (copy unchanged)

        Matches without a timestamp keep their relative order after the
        timestamped ones.
        """
        sorted_group = TagGroup()
        sorted_group.tagged_notes = list(self.tagged_notes)
        for tag, units in self._groups.items():
            if order in ("asc", "desc"):
                stamped = [u for u in units if u.timestamp is not None]
                unstamped = [u for u in units if u.timestamp is None]
                # sorted() is stable for reverse=True as well
                stamped = sorted(stamped, key=lambda u: u.timestamp, reverse=(order == "desc"))
                units = stamped + unstamped
            sorted_group.extend(tag, list(units))
        return sorted_group

    def to_dict(self) -> dict:
        return {
            "variants": {
                tag.display: [unit.to_dict() for unit in units]
                for tag, units in self._groups.items()
            },
            "tagged_notes": list(self.tagged_notes),
        }


@dataclass(frozen=True)
class GeneratedDocument:
    """
    A tag page split into its parts.

    Only ``generated_body`` is owned by the synthesizer; ``before`` and
    ``after`` are user text and pass through untouched.
    """
    frontmatter_block: str
    before: str
    generated_body: str
    after: str

    def render(self) -> str:
        return (
            f"{self.frontmatter_block}{self.before}"
            f"{REGION_OPEN}\n{self.generated_body}\n{REGION_CLOSE}\n"
            f"{self.after}"
        )
