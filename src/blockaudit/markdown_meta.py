"""Structural metadata for Markdown documents.

Stands in for an editor's metadata cache when documents come straight from
disk: heading spans, fenced code block spans, front-matter aliases, and the
set of block identifiers (``^key`` at end of line) defined outside code.

Detection is line-based and intentionally shallow; this is not a Markdown
parser.  Offsets are raw-text character offsets.
"""
from __future__ import annotations

import logging
import re
from typing import Any

import yaml

from blockaudit.document import StructuralMetadata
from blockaudit.ranges import IgnoreRange

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------

# A backtick fence's info string cannot contain a backtick.
FENCE_RE: re.Pattern[str] = re.compile(r"^ {0,3}(`{3,}(?=[^`]*$)|~{3,})")
HEADING_RE: re.Pattern[str] = re.compile(r"^ {0,3}#{1,6}(?:[ \t]|$)")
BLOCK_ID_RE: re.Pattern[str] = re.compile(r"\^([A-Za-z0-9-]+)\r?$")
FRONT_MATTER_DELIM_RE: re.Pattern[str] = re.compile(r"^---[ \t\r]*$")


def _iter_lines(text: str) -> list[tuple[int, str]]:
    """Return ``(start_offset, line_without_newline)`` for every line."""
    lines: list[tuple[int, str]] = []
    pos = 0
    for line in text.split("\n"):
        lines.append((pos, line))
        pos += len(line) + 1
    return lines


def front_matter_block(text: str) -> tuple[int, int, str] | None:
    """Locate YAML front matter closed by the first closing delimiter.

    Returns ``(start, end, yaml_body)`` where ``end`` is the offset just past
    the closing delimiter line, or None if the document has no front matter.
    """
    lines = _iter_lines(text)
    if not lines or not FRONT_MATTER_DELIM_RE.match(lines[0][1]):
        return None
    for start, line in lines[1:]:
        if FRONT_MATTER_DELIM_RE.match(line):
            return (0, start + len(line), text[lines[1][0]:start])
    return None


def parse_front_matter_aliases(yaml_body: str) -> tuple[str, ...]:
    """Read ``aliases``/``alias`` from a front-matter body.

    Accepts a list or a comma-separated string.  Malformed YAML yields no
    aliases.
    """
    try:
        data: Any = yaml.safe_load(yaml_body)
    except yaml.YAMLError as exc:
        log.debug("Ignoring malformed front matter: %s", exc)
        return ()
    if not isinstance(data, dict):
        return ()

    raw: Any = data.get("aliases", data.get("alias"))
    if raw is None:
        return ()
    if isinstance(raw, str):
        items = [part.strip() for part in raw.split(",")]
    elif isinstance(raw, list):
        items = [str(item).strip() for item in raw if item is not None]
    else:
        items = [str(raw).strip()]
    return tuple(item for item in items if item)


def build_structural_metadata(text: str) -> StructuralMetadata:
    """Scan *text* once and collect its structural metadata."""
    headings: list[IgnoreRange] = []
    code_blocks: list[IgnoreRange] = []
    block_ids: set[str] = set()
    aliases: tuple[str, ...] = ()

    front_matter = front_matter_block(text)
    body_start = 0
    if front_matter is not None:
        body_start = front_matter[1]
        aliases = parse_front_matter_aliases(front_matter[2])

    fence_char = ""
    fence_len = 0
    fence_start = 0
    for start, line in _iter_lines(text):
        if start < body_start:
            continue
        end = start + len(line)

        if fence_char:
            stripped = line.strip()
            if (
                stripped.startswith(fence_char * fence_len)
                and set(stripped) == {fence_char}
            ):
                code_blocks.append(IgnoreRange(fence_start, end))
                fence_char = ""
            continue

        fence = FENCE_RE.match(line)
        if fence:
            marker = fence.group(1)
            fence_char = marker[0]
            fence_len = len(marker)
            fence_start = start
            continue

        if HEADING_RE.match(line):
            headings.append(IgnoreRange(start, end))
            continue

        m = BLOCK_ID_RE.search(line)
        if m:
            block_ids.add(m.group(1))

    # An unterminated fence runs to end of document.
    if fence_char:
        code_blocks.append(IgnoreRange(fence_start, len(text)))

    return StructuralMetadata(
        headings=tuple(headings),
        code_blocks=tuple(code_blocks),
        aliases=aliases,
        block_ids=frozenset(block_ids),
    )
