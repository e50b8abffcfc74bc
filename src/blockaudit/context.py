"""Context windows around a defect, cut from the original text."""
from __future__ import annotations

from dataclasses import dataclass

from blockaudit.config import CONTEXT_WINDOW

ELLIPSIS = "..."


@dataclass(frozen=True, slots=True)
class ContextWindow:
    """A one-line snippet: text before, the match itself, text after."""

    before: str
    matched: str
    after: str

    def render(self) -> str:
        return f"{self.before}{self.matched}{self.after}"


def _one_line(text: str) -> str:
    return text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def build_context(
    raw_text: str,
    position_start: int,
    position_end: int,
    window_size: int = CONTEXT_WINDOW,
) -> ContextWindow:
    """Slice up to *window_size* characters on each side of a match.

    A side clipped short of the document boundary is marked with an
    ellipsis; newlines become single spaces.
    """
    if not 0 <= position_start <= position_end <= len(raw_text):
        raise ValueError(
            f"span [{position_start}, {position_end}) outside text of "
            f"length {len(raw_text)}",
        )

    before_start = max(0, position_start - window_size)
    after_end = min(len(raw_text), position_end + window_size)

    before = _one_line(raw_text[before_start:position_start])
    if before_start > 0:
        before = ELLIPSIS + before
    after = _one_line(raw_text[position_end:after_end])
    if after_end < len(raw_text):
        after = after + ELLIPSIS

    return ContextWindow(
        before=before,
        matched=_one_line(raw_text[position_start:position_end]),
        after=after,
    )
