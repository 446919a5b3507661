"""
Locate the generated region of an existing tag page.

A tag page looks like::

    ---
    tag-page-query: '#errand'
    ---
    user text before
    %% tag-page-md %%
    ...generated...
    %% tag-page-md end %%
    user text after

Pages written before the opening marker existed only carry the closing
one; everything between the frontmatter and that marker is generated.
A marker line must start at column 0.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .frontmatter import split_frontmatter
from .types import REGION_CLOSE, REGION_OPEN

logger = logging.getLogger(__name__)


class RegionState(Enum):
    SCANNING_FOR_OPEN = "scanning_for_open"
    INSIDE_REGION = "inside_region"


@dataclass(frozen=True)
class Unmarked:
    """No usable generated region: the whole previous text is disposable."""


@dataclass(frozen=True)
class Marked:
    """A recognised generated region and the user text around it."""
    frontmatter_block: str
    before: str
    body: str
    after: str
    legacy: bool = False


Region = Union[Unmarked, Marked]


def _join_body(lines: list[str]) -> str:
    # The renderer adds exactly one newline before the closing marker
    body = "".join(lines)
    return body[:-1] if body.endswith("\n") else body


def split_regions(text: str) -> Region:
    """
    Split a previous tag page around its generated-region markers.

    Returns Marked with byte-exact ``before``/``after`` text, or Unmarked
    when no markers are present or they do not form a region (an opening
    marker without a closing one, or a second opening marker).
    """
    frontmatter_block, rest = split_frontmatter(text)
    lines = rest.splitlines(keepends=True)

    state = RegionState.SCANNING_FOR_OPEN
    before: list[str] = []
    body: list[str] = []

    for index, line in enumerate(lines):
        # Markers only count at column 0; captured subtree lines are always indented
        marker = line.rstrip()
        if state is RegionState.SCANNING_FOR_OPEN:
            if marker == REGION_OPEN:
                state = RegionState.INSIDE_REGION
            elif marker == REGION_CLOSE:
                return Marked(
                    frontmatter_block=frontmatter_block,
                    before="",
                    body=_join_body(before),
                    after="".join(lines[index + 1:]),
                    legacy=True,
                )
            else:
                before.append(line)
        else:
            if marker == REGION_CLOSE:
                return Marked(
                    frontmatter_block=frontmatter_block,
                    before="".join(before),
                    body=_join_body(body),
                    after="".join(lines[index + 1:]),
                )
            if marker == REGION_OPEN:
                logger.debug("Nested region marker; treating page as unmarked")
                return Unmarked()
            body.append(line)

    if state is RegionState.INSIDE_REGION:
        logger.debug("Region marker never closed; treating page as unmarked")
    return Unmarked()
