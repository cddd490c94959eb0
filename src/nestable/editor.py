"""Launch the configured external editor on a scratch copy of a note."""

import os
import shlex
import subprocess
import tempfile
from pathlib import Path

from .core.errors import EditorError

# Editors that return before the file is closed unless told to wait
EDITOR_OPTIONS: dict[str, list[str]] = {
    "mate": ["--wait"],
    "code": ["--wait"],
    "subl": ["--wait"],
}


def editor_command(editor: str, path: Path) -> list[str]:
    """Build the argv for `editor` opening `path`."""
    argv = shlex.split(editor)
    if not argv:
        raise EditorError("no editor configured; run: nst set-config --key editor --value vi")
    name = Path(argv[0]).name
    return argv + EDITOR_OPTIONS.get(name, []) + [str(path)]


def run_editor(editor: str, body: bytes = b"") -> bytes:
    """
    Write `body` to a temporary Markdown file, run the editor on it and return
    the edited bytes. The scratch file is removed in every case.
    """
    fd, name = tempfile.mkstemp(prefix="nestable-", suffix=".md")
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(body)

        argv = editor_command(editor, path)
        try:
            subprocess.run(argv, check=True)
        except FileNotFoundError as e:
            raise EditorError(f"editor {argv[0]!r} not found", {"editor": editor}) from e
        except subprocess.CalledProcessError as e:
            raise EditorError(
                f"editor {argv[0]!r} exited with status {e.returncode}",
                {"editor": editor},
            ) from e

        return path.read_bytes()
    finally:
        path.unlink(missing_ok=True)
