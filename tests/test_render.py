"""Tests for terminal Markdown rendering."""

from nestable.render import render_markdown


def test_render_plain_text():
    """Without colors the output has no escape codes."""
    text = render_markdown(b"# Title\n\nSome *emphasis* here.")

    assert "Title" in text
    assert "Some emphasis here." in text
    assert "\x1b[" not in text


def test_render_with_colors():
    """With colors the output is styled."""
    text = render_markdown("**bold**", colors=True)

    assert "bold" in text
    assert "\x1b[" in text


def test_render_invalid_utf8():
    """Undecodable bytes are replaced rather than failing."""
    text = render_markdown(b"ok \xff end")

    assert "ok" in text
    assert "end" in text
