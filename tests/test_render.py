"""Tests for the markdown render pipeline."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from spacecoast_reader.errors import RenderError
from spacecoast_reader.render import (
    INIT_ERROR_MESSAGE,
    MIN_CONTENT_WIDTH,
    RENDER_ERROR_MESSAGE,
    content_width,
    prepare_markdown,
    preserve_line_breaks,
    render_document,
)


class TestContentWidth:
    def test_subtracts_viewport_chrome(self):
        assert content_width(100) == 96

    @pytest.mark.parametrize("width", [0, 5, 23])
    def test_never_below_minimum(self, width):
        assert content_width(width) == MIN_CONTENT_WIDTH


class TestPreserveLineBreaks:
    def test_single_newline_becomes_hard_break(self):
        assert preserve_line_breaks("one\ntwo") == "one  \ntwo"

    def test_paragraph_breaks_untouched(self):
        assert preserve_line_breaks("one\n\ntwo") == "one\n\ntwo"

    def test_fenced_code_untouched(self):
        text = "```python\na = 1\nb = 2\n```"
        assert preserve_line_breaks(text) == text


class TestPrepareMarkdown:
    def test_footnote_reference_lines_are_escaped(self):
        prepared = prepare_markdown("See [Site](https://example.com).")
        assert "See Site [1]." in prepared
        assert "\\[1]: https://example.com" in prepared

    def test_strips_markup_before_linking(self):
        prepared = prepare_markdown('<Image src="x.png" />[a](https://a.dev)')
        assert "<Image" not in prepared
        assert prepared.startswith("a [1]")


class TestRenderDocument:
    def test_renders_text_at_width(self):
        rendered = render_document("# Title\n\nSome words here.", 40)
        assert rendered.error is None
        plain = "\n".join(rendered.plain_lines)
        assert "Title" in plain
        assert "Some words here." in plain
        assert all(len(line) <= 40 for line in rendered.plain_lines)

    def test_long_paragraph_wraps(self):
        body = " ".join(["word"] * 60)
        narrow = render_document(body, 30)
        wide = render_document(body, 120)
        assert len(narrow.lines) > len(wide.lines)

    def test_footnotes_survive_rendering(self):
        rendered = render_document("Go [here](https://example.com) now.", 80)
        plain = "\n".join(rendered.plain_lines)
        assert "here [1]" in plain
        assert "Footnotes" in plain
        assert "[1]: https://example.com" in plain

    def test_output_is_styled(self):
        rendered = render_document("**bold**", 40)
        assert any("\x1b[" in line for line in rendered.lines)

    def test_empty_body_renders_without_error(self):
        assert render_document(None, 40).error is None
        assert render_document("", 40).error is None

    def test_unknown_code_theme_is_init_failure(self):
        rendered = render_document("text", 40, code_theme="no-such-theme")
        assert rendered.lines == (INIT_ERROR_MESSAGE,)
        assert isinstance(rendered.error, RenderError)

    def test_non_positive_width_is_init_failure(self):
        rendered = render_document("text", 0)
        assert rendered.lines == (INIT_ERROR_MESSAGE,)

    def test_formatting_failure_falls_back_to_placeholder(self, caplog):
        with patch("spacecoast_reader.render.Markdown", side_effect=RuntimeError("boom")):
            rendered = render_document("text", 40)
        assert rendered.lines == (RENDER_ERROR_MESSAGE,)
        assert isinstance(rendered.error, RenderError)
        assert "boom" in str(rendered.error)
        assert "Markdown rendering failed" in caplog.text
