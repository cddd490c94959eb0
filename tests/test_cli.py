"""Tests for the nst command line."""

import json
import subprocess
import sys
import tempfile
from pathlib import Path

import pytest


def run_cli(*args, nest=None, input=None, cwd=None):
    cmd = [sys.executable, "-m", "nestable"]
    if nest is not None:
        cmd += ["--nest", str(nest)]
    return subprocess.run(
        cmd + list(args),
        capture_output=True,
        text=True,
        input=input,
        cwd=cwd,
    )


@pytest.fixture
def nest():
    """An initialised nest in a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "cli.nest"
        result = run_cli("init", "--path", str(path), cwd=tmpdir)
        assert result.returncode == 0, result.stderr
        yield path


def test_init_creates_nest():
    """init creates the file and reports the schema version."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "sub" / "new.nest"
        result = run_cli("init", "--path", str(path), cwd=tmpdir)

        assert result.returncode == 0
        assert path.exists()
        assert "Initialized nest" in result.stdout


def test_missing_nest_is_an_error():
    """Commands against a missing nest fail with a hint."""
    with tempfile.TemporaryDirectory() as tmpdir:
        result = run_cli("ls", nest=Path(tmpdir) / "absent.nest", cwd=tmpdir)

    assert result.returncode == 1
    assert "nst init" in result.stderr


def test_new_edit_view(nest):
    """Notes created and edited with -m show up in view and history."""
    result = run_cli("new", "-m", "# Hello\n\nfirst body", nest=nest)
    assert result.returncode == 0, result.stderr
    note_id = result.stdout.split("\t")[0]

    result = run_cli("edit", "--id", note_id, "-m", "# Hello\n\nsecond body", nest=nest)
    assert result.returncode == 0, result.stderr

    result = run_cli("view", "--id", note_id, "--raw", nest=nest)
    assert result.stdout == "# Hello\n\nsecond body"

    result = run_cli("view", "--id", note_id, nest=nest)
    assert "second body" in result.stdout

    result = run_cli("--json", "history", "--id", note_id, nest=nest)
    assert len(json.loads(result.stdout)) == 2


def test_empty_note_is_rejected(nest):
    """Blank content is not saved."""
    result = run_cli("n", "-m", "   ", nest=nest)

    assert result.returncode == 1
    assert run_cli("ls", nest=nest).stdout == ""


def test_ls_and_search(nest):
    """ls lists current heads; search finds only current bodies."""
    run_cli("new", "-m", "note about cats", nest=nest)
    run_cli("edit", "--id", "1", "-m", "note about dogs", nest=nest)

    result = run_cli("ls", nest=nest)
    assert "note about dogs" in result.stdout
    assert "cats" not in result.stdout

    result = run_cli("--json", "search", "cats", nest=nest)
    assert json.loads(result.stdout) == []

    result = run_cli("--json", "search", "dogs", nest=nest)
    assert [r["id"] for r in json.loads(result.stdout)] == [1]


def test_search_invalid_query(nest):
    """Malformed queries fail cleanly."""
    result = run_cli("search", '"broken', nest=nest)

    assert result.returncode == 1
    assert result.stderr.startswith("Error:")


def test_view_by_search_picker(nest):
    """-s offers matching notes and reads the choice from stdin."""
    run_cli("new", "-m", "alpha note", nest=nest)
    run_cli("new", "-m", "beta note", nest=nest)

    result = run_cli("v", "-s", "beta", "--raw", nest=nest, input="1\n")

    assert result.returncode == 0, result.stderr
    assert result.stdout.endswith("beta note")


def test_config_commands(nest):
    """get-config and set-config read and write nest settings."""
    assert run_cli("gc", "--key", "editor", nest=nest).stdout.strip() == "vi"

    result = run_cli("sc", "--key", "editor", "--value", "nano", nest=nest)
    assert result.returncode == 0

    assert run_cli("get-config", "--key", "editor", nest=nest).stdout.strip() == "nano"
    assert "editor: nano" in run_cli("get-config", "--all", nest=nest).stdout

    result = run_cli("set-config", "--key", "bogus", "--value", "x", nest=nest)
    assert result.returncode == 1


def test_export(nest):
    """export writes a Markdown document."""
    run_cli("new", "-m", "Exported title\nbody", nest=nest)
    out = nest.parent / "out" / "notes.md"

    result = run_cli("ex", "--out", str(out), nest=nest)

    assert result.returncode == 0, result.stderr
    assert "[1] Exported title" in out.read_text()


def test_word_cloud(nest):
    """word-cloud reports term counts and the notes holding a term."""
    for body in ("a aa aaa", "a b c", "a b bc"):
        run_cli("new", "-m", body, nest=nest)

    terms = json.loads(run_cli("--json", "wc", nest=nest).stdout)
    assert terms[0] == {"term": "a", "note_count": 3, "instance_count": 3}

    notes = json.loads(run_cli("--json", "wc", "--term", "b", nest=nest).stdout)
    assert sorted(n["id"] for n in notes) == [2, 3]


def test_edit_with_editor(nest):
    """Without -m the configured editor produces the new revision."""
    with tempfile.TemporaryDirectory() as tmpdir:
        script = Path(tmpdir) / "editor.py"
        script.write_text(
            "import sys\n"
            "with open(sys.argv[-1], 'ab') as f:\n"
            "    f.write(b' appended')\n"
        )
        run_cli("sc", "--key", "editor", "--value", f'"{sys.executable}" "{script}"', nest=nest)
        run_cli("new", "-m", "start", nest=nest)

        result = run_cli("edit", "--id", "1", nest=nest)
        assert result.returncode == 0, result.stderr

    assert run_cli("view", "--id", "1", "--raw", nest=nest).stdout == "start appended"


def test_malformed_config_file():
    """A broken nestable.toml is reported without a traceback."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config = Path(tmpdir) / "nestable.toml"
        config.write_text("[nest\npath = ")

        result = run_cli("--config", str(config), "ls", cwd=tmpdir)

    assert result.returncode == 1
    assert result.stderr.startswith("Error:")
    assert "Traceback" not in result.stderr
