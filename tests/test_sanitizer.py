"""Tests for blockaudit.sanitizer module."""
from blockaudit.config import ScanConfig
from blockaudit.document import Document, StructuralMetadata
from blockaudit.markdown_meta import build_structural_metadata
from blockaudit.ranges import IgnoreRange
from blockaudit.sanitizer import (
    bare_url_ranges,
    front_matter_ranges,
    html_tag_ranges,
    ignore_ranges_for,
    inline_code_ranges,
    sanitize,
    sanitize_document,
)


class TestSanitize:
    def test_blanks_range(self) -> None:
        assert sanitize("abcdef", [IgnoreRange(1, 3)]) == "a  def"

    def test_no_ranges_returns_text(self) -> None:
        assert sanitize("abc", []) == "abc"

    def test_keeps_newlines(self) -> None:
        assert sanitize("ab\ncd", [IgnoreRange(0, 5)]) == "  \n  "

    def test_range_past_end_is_clipped(self) -> None:
        assert sanitize("abc", [IgnoreRange(1, 10)]) == "a  "

    def test_length_preserved(self) -> None:
        text = "line one\nline ^two\n`code`\n"
        ranges = [IgnoreRange(0, 4), IgnoreRange(2, 15), IgnoreRange(20, 40)]
        assert len(sanitize(text, ranges)) == len(text)

    def test_idempotent(self) -> None:
        text = "alpha [[B#^x]] beta\n^anchor"
        ranges = [IgnoreRange(6, 14), IgnoreRange(20, 27)]
        once = sanitize(text, ranges)
        assert sanitize(once, ranges) == once

    def test_order_and_overlap_independent(self) -> None:
        text = "0123456789abcdef"
        a = [IgnoreRange(2, 6), IgnoreRange(4, 9), IgnoreRange(12, 14)]
        b = [IgnoreRange(12, 14), IgnoreRange(4, 9), IgnoreRange(2, 6), IgnoreRange(5, 7)]
        assert sanitize(text, a) == sanitize(text, b)

    def test_unignored_offsets_match_raw(self) -> None:
        text = "keep `drop` keep"
        out = sanitize(text, inline_code_ranges(text))
        assert out[:5] == text[:5]
        assert out[-5:] == text[-5:]
        assert out[5:11] == " " * 6


class TestFrontMatterRanges:
    TEXT = "---\na: 1\n---\nbody ^x\n---\ntail ^y\n"

    def test_greedy_runs_to_last_delimiter(self) -> None:
        end = self.TEXT.rindex("---") + 3
        assert front_matter_ranges(self.TEXT, greedy=True) == [IgnoreRange(0, end)]

    def test_strict_stops_at_first_closing_delimiter(self) -> None:
        end = self.TEXT.index("---", 3) + 3
        assert front_matter_ranges(self.TEXT, greedy=False) == [IgnoreRange(0, end)]

    def test_requires_delimiter_on_first_line(self) -> None:
        assert front_matter_ranges("intro\n---\nx\n---\n") == []

    def test_unterminated(self) -> None:
        assert front_matter_ranges("---\ntitle: x\nno closing\n") == []


class TestInlineCodeRanges:
    def test_single_backticks(self) -> None:
        text = "use `[[B#^x]]` here"
        start = text.index("`")
        assert inline_code_ranges(text) == [IgnoreRange(start, start + 10)]

    def test_double_backticks(self) -> None:
        text = "a ``x ` y`` b"
        ranges = inline_code_ranges(text)
        assert len(ranges) == 1
        assert text[ranges[0].start:ranges[0].end] == "``x ` y``"

    def test_unterminated(self) -> None:
        assert inline_code_ranges("a `b c") == []

    def test_does_not_cross_lines(self) -> None:
        assert inline_code_ranges("a `b\nc` d") == []


class TestHtmlAndUrlRanges:
    def test_tags_and_comments(self) -> None:
        text = 'a <span class="x">b</span> <!-- c\nd --> e'
        out = sanitize(text, html_tag_ranges(text))
        assert "<" not in out and ">" not in out
        assert out.count("\n") == 1
        assert "b" in out and out.endswith(" e")

    def test_bare_urls(self) -> None:
        text = "see https://example.com/p#^abc and www.x.org/y ok"
        ranges = bare_url_ranges(text)
        spans = [text[r.start:r.end] for r in ranges]
        assert spans == ["https://example.com/p#^abc", "www.x.org/y"]

    def test_comparison_is_not_a_tag(self) -> None:
        assert html_tag_ranges("a < b and c > d") == []


class TestIgnoreRangesFor:
    def test_unions_structural_and_scanned_sources(self) -> None:
        text = "# Heading\nsee `code` and <b>x</b>\n"
        meta = StructuralMetadata(headings=(IgnoreRange(0, 9),))
        ranges = ignore_ranges_for(text, meta, ScanConfig())
        assert ranges.contains(0)
        assert ranges.contains(text.index("`code`"))
        assert ranges.contains(text.index("<b>"))

    def test_inline_code_toggle(self) -> None:
        text = "see `code`"
        ranges = ignore_ranges_for(
            text, StructuralMetadata(), ScanConfig(ignore_inline_code=False),
        )
        assert len(ranges) == 0

    def test_structural_range_beyond_text_is_clipped(self) -> None:
        meta = StructuralMetadata(code_blocks=(IgnoreRange(2, 50),))
        ranges = ignore_ranges_for("abcdef", meta, ScanConfig())
        assert list(ranges) == [IgnoreRange(2, 6)]


class TestSanitizeDocument:
    def test_fenced_code_blanked(self) -> None:
        text = "before ^a\n```\ninside ^b\n```\nafter ^c\n"
        doc = Document.from_path("A.md", text)
        sanitized = sanitize_document(doc, build_structural_metadata(text), ScanConfig())
        assert len(sanitized.sanitized_text) == len(text)
        assert "^b" not in sanitized.sanitized_text
        assert "^a" in sanitized.sanitized_text
        assert "^c" in sanitized.sanitized_text
        assert sanitized.doc_id == "A.md"

    def test_malformed_constructs_do_not_raise(self) -> None:
        text = "---\n`unterminated <div [[x#^\n```\nopen fence"
        doc = Document.from_path("A.md", text)
        sanitized = sanitize_document(doc, build_structural_metadata(text), ScanConfig())
        assert len(sanitized.sanitized_text) == len(text)
