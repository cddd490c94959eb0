"""Tests for the interactive pickers."""

import io

import pytest
from rich.console import Console

from nestable.core.errors import NotFoundError
from nestable.pickers import (
    select_config_key,
    select_revision,
    select_search_result,
    select_term,
)


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120, color_system=None)


def test_select_revision(repo, console):
    """Rows are numbered in listing order, newest first."""
    older = repo.new_note(b"older note")
    newer = repo.new_note(b"newer note")

    assert select_revision(console, repo, stream=io.StringIO("1\n")) == newer
    assert select_revision(console, repo, stream=io.StringIO("2\n")) == older

    shown = console.file.getvalue()
    assert "older note" in shown
    assert "newer note" in shown


def test_select_revision_retries_bad_choice(repo, console):
    """Out-of-range input is asked again."""
    rev = repo.new_note(b"only note")

    assert select_revision(console, repo, stream=io.StringIO("7\n1\n")) == rev


def test_select_revision_empty(repo, console):
    """There is nothing to pick from an empty nest."""
    with pytest.raises(NotFoundError):
        select_revision(console, repo, stream=io.StringIO("1\n"))


def test_select_search_result(repo, console):
    """A picked hit resolves to its revision."""
    rev = repo.new_note(b"needle in a haystack")
    repo.new_note(b"just hay")
    results = repo.search("needle")

    assert select_search_result(console, repo, results, stream=io.StringIO("1\n")) == rev


def test_select_term(repo, console):
    """Terms are listed in word cloud order."""
    repo.new_note(b"a a b")

    term = select_term(console, repo.word_cloud_terms(), stream=io.StringIO("1\n"))

    assert term.term == "a"


def test_select_config_key(repo, console):
    """Keys are offered sorted."""
    key = select_config_key(console, list(repo.config_keys()), stream=io.StringIO("2\n"))

    assert key == "version"
