"""Render note bodies as terminal-friendly text."""

import io

from rich.console import Console
from rich.markdown import Markdown


def render_markdown(body: bytes | str, width: int = 80, colors: bool = False) -> str:
    """
    Render Markdown to display text.

    With `colors` off the output is plain text (no ANSI escapes), which is what
    gets written when stdout is not a terminal.
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    buf = io.StringIO()
    console = Console(
        file=buf,
        width=width,
        force_terminal=colors,
        color_system="standard" if colors else None,
        highlight=False,
    )
    console.print(Markdown(text))
    return buf.getvalue()
