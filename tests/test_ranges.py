"""Tests for blockaudit.ranges module."""
import pytest

from blockaudit.ranges import IgnoreRange, RangeSet, merge_ranges


class TestIgnoreRange:
    def test_negative_start_raises(self) -> None:
        with pytest.raises(ValueError):
            IgnoreRange(-1, 3)

    def test_end_before_start_raises(self) -> None:
        with pytest.raises(ValueError):
            IgnoreRange(5, 4)

    def test_empty_range_allowed(self) -> None:
        r = IgnoreRange(3, 3)
        assert r.is_empty()
        assert r.length == 0

    def test_frozen(self) -> None:
        r = IgnoreRange(0, 2)
        with pytest.raises(AttributeError):
            r.start = 1  # type: ignore[misc]


class TestMergeRanges:
    def test_overlapping_and_touching_coalesce(self) -> None:
        merged = merge_ranges([
            IgnoreRange(5, 10),
            IgnoreRange(0, 3),
            IgnoreRange(2, 4),
            IgnoreRange(10, 12),
        ])
        assert merged == (IgnoreRange(0, 4), IgnoreRange(5, 12))

    def test_empty_ranges_dropped(self) -> None:
        assert merge_ranges([IgnoreRange(2, 2)]) == ()

    def test_contained_range_absorbed(self) -> None:
        merged = merge_ranges([IgnoreRange(0, 10), IgnoreRange(2, 5)])
        assert merged == (IgnoreRange(0, 10),)

    def test_order_independent(self) -> None:
        ranges = [IgnoreRange(7, 9), IgnoreRange(1, 4), IgnoreRange(3, 8)]
        assert merge_ranges(ranges) == merge_ranges(list(reversed(ranges)))


class TestRangeSet:
    def _set(self) -> RangeSet:
        return RangeSet([IgnoreRange(5, 12), IgnoreRange(0, 4)])

    def test_iteration_is_sorted(self) -> None:
        assert list(self._set()) == [IgnoreRange(0, 4), IgnoreRange(5, 12)]
        assert len(self._set()) == 2

    def test_contains_half_open(self) -> None:
        rs = self._set()
        assert rs.contains(0)
        assert rs.contains(3)
        assert not rs.contains(4)
        assert rs.contains(5)
        assert not rs.contains(12)
        assert not rs.contains(-1)

    def test_overlaps(self) -> None:
        rs = self._set()
        assert rs.overlaps(3, 5)
        assert rs.overlaps(11, 20)
        assert not rs.overlaps(4, 5)
        assert not rs.overlaps(12, 20)
        assert not rs.overlaps(6, 6)

    def test_clip(self) -> None:
        clipped = self._set().clip(8)
        assert list(clipped) == [IgnoreRange(0, 4), IgnoreRange(5, 8)]
        assert clipped.covered_length() == 7

    def test_clip_drops_ranges_past_end(self) -> None:
        assert list(self._set().clip(4)) == [IgnoreRange(0, 4)]

    def test_union(self) -> None:
        rs = self._set().union([IgnoreRange(4, 5)])
        assert list(rs) == [IgnoreRange(0, 12)]

    def test_equality_ignores_input_order(self) -> None:
        a = RangeSet([IgnoreRange(0, 2), IgnoreRange(4, 6)])
        b = RangeSet([IgnoreRange(4, 6), IgnoreRange(0, 2), IgnoreRange(1, 2)])
        assert a == b
        assert hash(a) == hash(b)
