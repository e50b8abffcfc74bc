"""Half-open offset ranges over a document's raw text.

An ``IgnoreRange`` marks a span that the sanitizer blanks before pattern
search.  Ranges come from several independent sources and routinely overlap;
``RangeSet`` normalizes them into a sorted, coalesced, immutable collection.
"""
from __future__ import annotations

import bisect
from collections.abc import Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class IgnoreRange:
    """A half-open ``[start, end)`` span in raw-text coordinates."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise ValueError(
                f"end must be >= start, got {self.end} < {self.start}",
            )

    @property
    def length(self) -> int:
        return self.end - self.start

    def is_empty(self) -> bool:
        return self.end == self.start


def merge_ranges(ranges: Iterable[IgnoreRange]) -> tuple[IgnoreRange, ...]:
    """Sort and coalesce overlapping or touching ranges.

    Empty ranges are dropped.  The result does not depend on input order.
    """
    ordered = sorted(r for r in ranges if not r.is_empty())
    merged: list[IgnoreRange] = []
    for r in ordered:
        if merged and r.start <= merged[-1].end:
            if r.end > merged[-1].end:
                merged[-1] = IgnoreRange(merged[-1].start, r.end)
        else:
            merged.append(r)
    return tuple(merged)


class RangeSet:
    """Immutable, sorted, non-overlapping set of ignore ranges."""

    __slots__ = ("_ranges", "_starts")

    def __init__(self, ranges: Iterable[IgnoreRange] = ()) -> None:
        self._ranges = merge_ranges(ranges)
        self._starts = [r.start for r in self._ranges]

    def __iter__(self) -> Iterator[IgnoreRange]:
        return iter(self._ranges)

    def __len__(self) -> int:
        return len(self._ranges)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RangeSet):
            return NotImplemented
        return self._ranges == other._ranges

    def __hash__(self) -> int:
        return hash(self._ranges)

    def __repr__(self) -> str:
        spans = ", ".join(f"[{r.start},{r.end})" for r in self._ranges)
        return f"RangeSet({spans})"

    @property
    def ranges(self) -> tuple[IgnoreRange, ...]:
        return self._ranges

    def union(self, other: Iterable[IgnoreRange]) -> RangeSet:
        return RangeSet((*self._ranges, *other))

    def contains(self, offset: int) -> bool:
        """True if *offset* falls inside any range."""
        idx = bisect.bisect_right(self._starts, offset) - 1
        return idx >= 0 and offset < self._ranges[idx].end

    def overlaps(self, start: int, end: int) -> bool:
        """True if ``[start, end)`` shares at least one offset with the set."""
        if end <= start:
            return False
        idx = bisect.bisect_left(self._starts, end) - 1
        return idx >= 0 and self._ranges[idx].end > start

    def clip(self, length: int) -> RangeSet:
        """Return a copy with every range trimmed to ``[0, length)``."""
        clipped: list[IgnoreRange] = []
        for r in self._ranges:
            if r.start >= length:
                break
            clipped.append(IgnoreRange(r.start, min(r.end, length)))
        return RangeSet(clipped)

    def covered_length(self) -> int:
        return sum(r.length for r in self._ranges)
