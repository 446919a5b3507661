"""
Render grouped tag matches into a tag page.

The generated body is::

    ## Tag Content for #project/*
    ### #project                      (only with more than one variant)
    - a sentence with **project** [[Note A]]
    ### #project/alpha
    - a bullet **project/alpha** [[Note B]]
      - its child
    ## Files with #project/* in frontmatter
    - [[Note C]]

It is placed between region markers so that regenerating a page replaces
only this part and leaves user text around it alone.
"""

import logging
import re
from typing import Optional

from .config import DEFAULT_TITLE_TEMPLATE, TagPageSettings
from .embeds import EmbedResolver, relocate_embeds
from .frontmatter import dump_frontmatter
from .regions import Marked, split_regions
from .types import BULLET_PATTERN, GeneratedDocument, MatchUnit, Tag, TagGroup, TagQuery

logger = logging.getLogger(__name__)

_MULTIPLE_SPACES = re.compile(r" {2,}")


def render_title(template: Optional[str], query: TagQuery) -> str:
    """
    Fill in the title template.

    Placeholders: ``{{tag}}`` (tag as queried), ``{{tagname}}`` (without
    the leading marker), ``{{lf}}`` (line feed). Runs of spaces left by
    empty substitutions are collapsed.
    """
    title = (template or DEFAULT_TITLE_TEMPLATE)
    title = title.replace("{{tagname}}", query.name).replace("{{tag}}", query.raw)
    title = _MULTIPLE_SPACES.sub(" ", title).strip(" ")
    return title.replace("{{lf}}", "\n")


def _place_link(line: str, link: str, at_end: bool) -> str:
    if at_end:
        return f"{line} {link}"
    match = BULLET_PATTERN.match(line)
    if match is None:
        return f"{link} {line}"
    return f"{line[:match.end()]}{link} {line[match.end():]}"


def highlight_first(text: str, variant: Tag) -> str:
    """
    Bold the first occurrence of the variant, without its marker.

    Only the first occurrence is rewritten; later ones stay as tags.
    """
    pattern = re.compile(
        r"(?<![\w/#-])" + re.escape(variant.display) + r"(?![\w/-])",
        re.IGNORECASE,
    )
    return pattern.sub(lambda m: f"**{m.group(0).removeprefix('#')}**", text, count=1)


def format_entry(
    unit: MatchUnit,
    variant: Tag,
    settings: TagPageSettings,
    resolver: Optional[EmbedResolver] = None,
) -> str:
    """
    Format one match as a bullet with its provenance link.

    Bullet subtrees get the link on their root line only; prose is
    wrapped in a new bullet first.
    """
    text = relocate_embeds(
        unit.text, unit.source_path,
        resolver=resolver, page_dir=settings.tag_page_dir,
    )
    if unit.is_bullet:
        first, _, rest = text.partition("\n")
        entry = _place_link(first, unit.source_link, settings.link_at_end)
        if rest:
            entry = f"{entry}\n{rest}"
    else:
        entry = _place_link(f"- {text}", unit.source_link, settings.link_at_end)
    return highlight_first(entry, variant)


def build_generated_body(
    group: TagGroup,
    query: TagQuery,
    settings: TagPageSettings,
    *,
    resolver: Optional[EmbedResolver] = None,
) -> str:
    """Render the markdown owned by the generator (no markers, no frontmatter)."""
    lines = [f"## {render_title(settings.title_template, query)}"]

    variants = group.variants_by_specificity()
    with_headings = len(variants) > 1
    for variant in variants:
        if with_headings:
            lines.append(f"### {variant.display}")
        for unit in group[variant]:
            lines.append(format_entry(unit, variant, settings, resolver))

    if group.tagged_notes:
        lines.append(f"## Files with {query.raw} in frontmatter")
        lines.extend(f"- {link}" for link in group.tagged_notes)

    return "\n".join(lines)


def compose_document(
    body: str,
    query: TagQuery,
    settings: TagPageSettings,
    previous_text: Optional[str] = None,
) -> GeneratedDocument:
    """
    Place a generated body into the previous page, or into a new one.

    User text around a recognised region is kept byte for byte. Without a
    usable region the whole previous text is replaced.
    """
    fresh_frontmatter = dump_frontmatter({settings.frontmatter_query_key: query.raw})

    region = split_regions(previous_text) if previous_text else None
    if isinstance(region, Marked):
        if region.legacy:
            logger.info("Upgrading legacy tag page layout for %s", query.raw)
        return GeneratedDocument(
            frontmatter_block=region.frontmatter_block or fresh_frontmatter,
            before=region.before,
            generated_body=body,
            after=region.after,
        )

    if previous_text:
        logger.info("No generated region found for %s; replacing the page", query.raw)
    return GeneratedDocument(
        frontmatter_block=fresh_frontmatter,
        before="",
        generated_body=body,
        after="",
    )


def synthesize_document(
    group: TagGroup,
    query: TagQuery,
    settings: TagPageSettings,
    previous_text: Optional[str] = None,
    *,
    resolver: Optional[EmbedResolver] = None,
) -> str:
    """
    Produce the final tag page text, ready to write.

    Args:
        group: Matches from scan_corpus()
        query: The tag the page is for
        settings: Layout settings
        previous_text: Current page content when refreshing
        resolver: Optional embed lookup (see embeds.relocate_embeds)
    """
    body = build_generated_body(group, query, settings, resolver=resolver)
    return compose_document(body, query, settings, previous_text).render()
