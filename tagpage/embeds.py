"""
Re-anchor embeds when note content is copied onto a tag page.

Relative embed targets are written relative to the note they came from.
Once the text moves to the tag page they have to point at the same file.
"""

import logging
import posixpath
import re
from typing import Callable, Optional
from urllib.parse import unquote

from .types import NoteRef

logger = logging.getLogger(__name__)

# Obsidian embeds: ![[target]], ![[target#heading]], ![[target|alias]]
WIKI_EMBED_RE = re.compile(r"!\[\[(?P<target>[^\]|#^]+)(?P<rest>[^\]]*)\]\]")

# Markdown images: ![alt](target "title"), target optionally in <...>
MD_IMAGE_RE = re.compile(
    r'!\[(?P<alt>[^\]]*)\]\('
    r'\s*(?P<target><[^>]+>|[^)\s]+)'
    r'(?P<title>\s+"[^"]*")?'
    r'\s*\)'
)

# Any "scheme:" at the start of a target (http:, https:, data:, ...)
URL_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")

EmbedResolver = Callable[[str, str], Optional[NoteRef]]


def is_relative_target(target: str) -> bool:
    """True for targets that depend on the location of the embedding note."""
    target = target.strip()
    return bool(target) and not target.startswith("/") and not URL_SCHEME_RE.match(target)


def resolve_target(
    target: str,
    source_path: str,
    resolver: Optional[EmbedResolver] = None,
) -> str:
    """
    Resolve a relative target to a vault-relative path.

    Asks the resolver first; when it has no answer, falls back to joining
    the target onto the source note's directory.
    """
    if resolver is not None:
        note = resolver(source_path, target)
        if note is not None:
            return note.identity
    source_dir = posixpath.dirname(source_path)
    resolved = posixpath.normpath(posixpath.join(source_dir, target))
    logger.debug("Unresolved embed %r in %s; using %s", target, source_path, resolved)
    return resolved


def relocate_embeds(
    text: str,
    source_path: str,
    *,
    resolver: Optional[EmbedResolver] = None,
    page_dir: str = "",
) -> str:
    """
    Rewrite relative embed targets in ``text`` for display on a tag page.

    Args:
        text: Extracted note content
        source_path: Vault-relative path of the note it came from
        resolver: Optional lookup (from_identity, raw_target) -> NoteRef
        page_dir: Vault-relative directory of the tag page

    Wiki embeds get a vault-relative path; markdown images get a path
    relative to ``page_dir``. References are never dropped.
    """

    def _wiki(match: re.Match) -> str:
        target = match.group("target").strip()
        if not is_relative_target(target):
            return match.group(0)
        resolved = resolve_target(target, source_path, resolver)
        if resolved.endswith(".md") and not target.endswith(".md"):
            resolved = resolved[:-3]
        return f"![[{resolved}{match.group('rest')}]]"

    def _image(match: re.Match) -> str:
        raw = match.group("target")
        target = unquote(raw[1:-1] if raw.startswith("<") else raw)
        if not is_relative_target(target):
            return match.group(0)
        resolved = resolve_target(target, source_path, resolver)
        relative = posixpath.relpath(resolved, page_dir or ".")
        if " " in relative:
            relative = f"<{relative}>"
        title = match.group("title") or ""
        return f"![{match.group('alt')}]({relative}{title})"

    text = WIKI_EMBED_RE.sub(_wiki, text)
    return MD_IMAGE_RE.sub(_image, text)
