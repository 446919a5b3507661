"""
YAML frontmatter handling for markdown notes.

The block is kept verbatim (delimiters included) so that callers can
splice a document back together byte for byte.
"""

import logging

import yaml

logger = logging.getLogger(__name__)

FRONTMATTER_DELIM = "---"
_BOM = "\ufeff"


def split_frontmatter(text: str) -> tuple[str, str]:
    """
    Split text into (frontmatter_block, body).

    The block includes both ``---`` lines and the newline after the
    closing one. Text without a complete block returns ("", text).
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].lstrip(_BOM).rstrip("\r\n") != FRONTMATTER_DELIM:
        return "", text
    for index in range(1, len(lines)):
        if lines[index].rstrip() == FRONTMATTER_DELIM:
            return "".join(lines[:index + 1]), "".join(lines[index + 1:])
    # Unterminated block: treat as ordinary text
    return "", text


def strip_frontmatter(text: str) -> str:
    """Return the body of a note without its frontmatter block."""
    return split_frontmatter(text)[1]


def parse_frontmatter(text: str) -> dict:
    """
    Load the frontmatter of a note as a dict.

    Returns an empty dict when there is no block, the YAML is invalid,
    or it does not hold a mapping.
    """
    block, _ = split_frontmatter(text)
    if not block:
        return {}
    inner = block.splitlines()[1:-1]
    try:
        data = yaml.safe_load("\n".join(inner))
    except yaml.YAMLError as e:
        logger.debug("Ignoring malformed frontmatter: %s", e)
        return {}
    return data if isinstance(data, dict) else {}


def dump_frontmatter(data: dict) -> str:
    """Render a dict as a frontmatter block ending with a newline."""
    body = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"{FRONTMATTER_DELIM}\n{body}{FRONTMATTER_DELIM}\n"


def extract_tags(frontmatter: dict) -> set[str]:
    """
    Collect tag values from the ``tags`` / ``tag`` keys.

    Accepts a list or a comma/space separated string; values are returned
    as written (marker prefix kept if present).
    """
    tags: set[str] = set()
    for key in ("tags", "tag"):
        value = frontmatter.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            items = value.replace(",", " ").split()
        elif isinstance(value, (list, tuple, set)):
            items = [str(v).strip() for v in value if v is not None]
        else:
            items = [str(value)]
        tags.update(item for item in items if item)
    return tags
