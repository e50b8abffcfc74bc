"""Ignore-range detection and offset-preserving sanitization.

The extractor must not see anchors or links inside headings, code, front
matter, HTML or bare web links.  Instead of removing those regions (which
would shift every later offset) the sanitizer overwrites them with spaces,
so any match found in the sanitized text can be sliced from the raw text at
the same offsets.

Ignore ranges come from a fixed list of independent source functions.  Each
returns a list of ranges; the lists are concatenated and merged.  Overlap is
harmless because blanking is idempotent.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import TypeAlias

from blockaudit.config import ScanConfig
from blockaudit.document import Document, SanitizedDocument, StructuralMetadata
from blockaudit.markdown_meta import FRONT_MATTER_DELIM_RE
from blockaudit.ranges import IgnoreRange, RangeSet

RangeSource: TypeAlias = Callable[[str, StructuralMetadata, ScanConfig], list[IgnoreRange]]

BLANK = " "

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# Same marker (one or two backticks) on both ends, never crossing a newline.
INLINE_CODE_RE: re.Pattern[str] = re.compile(
    r"(?<!`)(`{1,2})(?!`)((?:(?!\1)[^\n])+)\1(?!`)",
)
HTML_COMMENT_RE: re.Pattern[str] = re.compile(r"<!--.*?-->", re.DOTALL)
HTML_TAG_RE: re.Pattern[str] = re.compile(
    r"</?[A-Za-z][A-Za-z0-9-]*(?:[ \t][^<>\n]*)?/?>",
)
BARE_URL_RE: re.Pattern[str] = re.compile(
    r"(?:\b[A-Za-z][A-Za-z0-9+.-]*://|\bwww\.)[^\s<>\[\]()|]+",
)
_NON_NEWLINE_RE: re.Pattern[str] = re.compile(r"[^\n]")


# ---------------------------------------------------------------------------
# Range sources
# ---------------------------------------------------------------------------


def structural_ranges(metadata: StructuralMetadata) -> list[IgnoreRange]:
    """Heading and fenced-code spans supplied by the host."""
    return [*metadata.headings, *metadata.code_blocks]


def front_matter_ranges(text: str, *, greedy: bool = True) -> list[IgnoreRange]:
    """Front matter opened by a ``---`` first line.

    Greedy mode spans to the end of the *last* ``---`` line in the document,
    so a later horizontal rule extends the front matter.  Strict mode stops at
    the first closing delimiter.
    """
    delimiters = list(_delimiter_lines(text))
    if len(delimiters) < 2 or delimiters[0][0] != 0:
        return []
    closing = delimiters[-1] if greedy else delimiters[1]
    return [IgnoreRange(0, closing[1])]


def _delimiter_lines(text: str) -> Iterable[tuple[int, int]]:
    pos = 0
    for line in text.split("\n"):
        if FRONT_MATTER_DELIM_RE.match(line):
            yield (pos, pos + len(line))
        pos += len(line) + 1


def inline_code_ranges(text: str) -> list[IgnoreRange]:
    """Single-line spans wrapped in one or two backticks."""
    return [IgnoreRange(m.start(), m.end()) for m in INLINE_CODE_RE.finditer(text)]


def html_tag_ranges(text: str) -> list[IgnoreRange]:
    """HTML comments and opening/closing/self-closing tags."""
    ranges = [IgnoreRange(m.start(), m.end()) for m in HTML_COMMENT_RE.finditer(text)]
    ranges.extend(IgnoreRange(m.start(), m.end()) for m in HTML_TAG_RE.finditer(text))
    return ranges


def bare_url_ranges(text: str) -> list[IgnoreRange]:
    """Scheme-prefixed (``https://``, ``obsidian://``) and ``www.`` tokens."""
    return [IgnoreRange(m.start(), m.end()) for m in BARE_URL_RE.finditer(text)]


def _structural_source(
    text: str, metadata: StructuralMetadata, config: ScanConfig,
) -> list[IgnoreRange]:
    return structural_ranges(metadata)


def _front_matter_source(
    text: str, metadata: StructuralMetadata, config: ScanConfig,
) -> list[IgnoreRange]:
    return front_matter_ranges(text, greedy=config.greedy_front_matter)


def _inline_code_source(
    text: str, metadata: StructuralMetadata, config: ScanConfig,
) -> list[IgnoreRange]:
    return inline_code_ranges(text) if config.ignore_inline_code else []


def _html_source(
    text: str, metadata: StructuralMetadata, config: ScanConfig,
) -> list[IgnoreRange]:
    return html_tag_ranges(text) if config.ignore_html else []


def _bare_url_source(
    text: str, metadata: StructuralMetadata, config: ScanConfig,
) -> list[IgnoreRange]:
    return bare_url_ranges(text) if config.ignore_bare_urls else []


DEFAULT_RANGE_SOURCES: tuple[RangeSource, ...] = (
    _structural_source,
    _front_matter_source,
    _inline_code_source,
    _html_source,
    _bare_url_source,
)


# ---------------------------------------------------------------------------
# Sanitization
# ---------------------------------------------------------------------------


def ignore_ranges_for(
    text: str,
    metadata: StructuralMetadata,
    config: ScanConfig,
    *,
    sources: tuple[RangeSource, ...] = DEFAULT_RANGE_SOURCES,
) -> RangeSet:
    """Union of every source's ranges, clipped to the text length."""
    collected: list[IgnoreRange] = []
    for source in sources:
        collected.extend(source(text, metadata, config))
    return RangeSet(collected).clip(len(text))


def sanitize(raw_text: str, ignore_ranges: Iterable[IgnoreRange]) -> str:
    """Blank every ignored character, keeping length and line breaks.

    Ranges may be unsorted, overlapping or extend past the end of the text.
    """
    ranges = RangeSet(ignore_ranges).clip(len(raw_text))
    if not ranges:
        return raw_text

    parts: list[str] = []
    pos = 0
    for r in ranges:
        parts.append(raw_text[pos:r.start])
        parts.append(_NON_NEWLINE_RE.sub(BLANK, raw_text[r.start:r.end]))
        pos = r.end
    parts.append(raw_text[pos:])
    return "".join(parts)


def sanitize_document(
    document: Document,
    metadata: StructuralMetadata,
    config: ScanConfig,
) -> SanitizedDocument:
    ranges = ignore_ranges_for(document.raw_text, metadata, config)
    return SanitizedDocument(
        document=document,
        sanitized_text=sanitize(document.raw_text, ranges),
        ignore_ranges=ranges,
    )
