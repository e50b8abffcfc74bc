"""Tests for blockaudit.context module."""
import pytest

from blockaudit.context import ELLIPSIS, ContextWindow, build_context


class TestBuildContext:
    def test_unclipped_window(self) -> None:
        ctx = build_context("hello world", 6, 11, 20)
        assert ctx == ContextWindow(before="hello ", matched="world", after="")

    def test_clipped_both_sides(self) -> None:
        text = "a" * 30 + "^key" + "b" * 30
        ctx = build_context(text, 30, 34, 20)
        assert ctx.before == ELLIPSIS + "a" * 20
        assert ctx.matched == "^key"
        assert ctx.after == "b" * 20 + ELLIPSIS

    def test_window_exactly_reaches_boundaries(self) -> None:
        text = "x" * 20 + "^k" + "y" * 20
        ctx = build_context(text, 20, 22, 20)
        assert not ctx.before.startswith(ELLIPSIS)
        assert not ctx.after.endswith(ELLIPSIS)

    def test_newlines_become_spaces(self) -> None:
        text = "line one\n^k\nline two"
        ctx = build_context(text, 9, 11, 20)
        assert ctx.before == "line one "
        assert ctx.matched == "^k"
        assert ctx.after == " line two"
        assert "\n" not in ctx.render()

    def test_zero_window(self) -> None:
        ctx = build_context("abc^kdef", 3, 5, 0)
        assert ctx == ContextWindow(before=ELLIPSIS, matched="^k", after=ELLIPSIS)

    def test_default_window_is_twenty(self) -> None:
        text = "a" * 25 + "^k"
        assert build_context(text, 25, 27).before == ELLIPSIS + "a" * 20

    def test_span_outside_text_raises(self) -> None:
        with pytest.raises(ValueError):
            build_context("abc", 2, 5)
