"""
Group tag matches across a corpus of notes.

scan_note() applies the extraction policy to one note; scan_corpus()
runs it over every note concurrently and merges the results in corpus
order, so the output never depends on which scan finished first.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from .config import TagPageSettings
from .frontmatter import extract_tags, parse_frontmatter
from .protocol import NoteSource
from .scanner import find_bullet_trees, find_smallest_units
from .types import MatchUnit, NoteRef, TagGroup, TagQuery

logger = logging.getLogger(__name__)


def provenance_link(note: NoteRef, full_link_name: bool = False) -> str:
    """
    Wikilink back to the note a match came from.

    ``[[name]]`` by default; ``[[path/to/name|name]]`` with full_link_name.
    """
    if full_link_name:
        target = note.identity.removesuffix(".md")
        return f"[[{target}|{note.display_name}]]"
    return f"[[{note.display_name}]]"


def scan_note(
    text: str,
    query: TagQuery,
    settings: TagPageSettings,
    *,
    source_link: str,
    source_path: str = "",
    timestamp: Optional[float] = None,
) -> TagGroup:
    """
    Extract the matches of one note according to the settings.

    - lines and bullets: units off bullet lines, then bullet subtrees
    - bullets only: bullet subtrees
    - otherwise: units, bullet lines included
    """
    group = TagGroup()
    if not query.search(text):
        return group

    found = []
    if settings.include_lines and settings.bulleted_sub_items:
        found.append(find_smallest_units(text, query, exclude_bullets=True))
        found.append(find_bullet_trees(text, query))
    elif settings.bulleted_sub_items:
        found.append(find_bullet_trees(text, query))
    else:
        found.append(find_smallest_units(text, query))

    for matches in found:
        for tag, texts in matches.items():
            group.extend(tag, [
                MatchUnit(text=t, source_link=source_link, source_path=source_path, timestamp=timestamp)
                for t in texts
            ])
    return group


def _scan_one(
    source: NoteSource,
    note: NoteRef,
    query: TagQuery,
    settings: TagPageSettings,
) -> Optional[tuple[TagGroup, bool]]:
    """
    Scan one note from a single read of its content.

    Returns (matches, frontmatter tags match the query), or None when the
    note is a generated tag page.
    """
    try:
        text = source.read_text(note)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping %s: %s", note.identity, e)
        return TagGroup(), False

    frontmatter = parse_frontmatter(text)
    if _is_tag_page(frontmatter, settings.frontmatter_query_key):
        logger.debug("Skipping generated page %s", note.identity)
        return None

    group = scan_note(
        text, query, settings,
        source_link=provenance_link(note, settings.full_link_name),
        source_path=note.identity,
        timestamp=note.mtime,
    )
    tagged = any(query.matches_structured_tag(tag) for tag in extract_tags(frontmatter))
    return group, tagged


def _is_tag_page(frontmatter: dict, key: str) -> bool:
    value = frontmatter.get(key)
    return value is not None and bool(str(value).strip())


def scan_corpus(source: NoteSource, query: TagQuery, settings: TagPageSettings) -> TagGroup:
    """
    Build the TagGroup for a query over every note in the source.

    Generated tag pages are skipped so that a page never feeds on its own
    (or another page's) output. Matches are merged in corpus order, then
    sorted by timestamp if configured.
    """
    if query.is_empty:
        logger.debug("Empty tag query %r; nothing to scan", query.raw)
        return TagGroup()

    notes = source.list_notes()
    results: list[Optional[tuple[TagGroup, bool]]] = [None] * len(notes)
    with ThreadPoolExecutor(max_workers=max(1, settings.max_workers)) as executor:
        futures = {
            executor.submit(_scan_one, source, note, query, settings): index
            for index, note in enumerate(notes)
        }
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    merged = TagGroup()
    scanned = 0
    for note, result in zip(notes, results):
        if result is None:
            continue
        group, tagged = result
        scanned += 1
        merged.merge(group)
        if tagged:
            merged.tagged_notes.append(provenance_link(note, settings.full_link_name))

    logger.info(
        "Scanned %d notes for %s: %d variants, %d matches, %d tagged in frontmatter",
        scanned, query.raw, len(merged), merged.match_count(), len(merged.tagged_notes),
    )
    if settings.sort_by_date != "none":
        merged = merged.sort_by_timestamp(settings.sort_by_date)
    return merged
