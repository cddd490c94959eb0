"""Tests for the key/value settings stored in the nest."""

import pytest

from nestable.core.errors import NotFoundError
from nestable.runtime import open_repository


def test_default_keys(repo):
    """A fresh nest carries the default settings."""
    assert repo.config_keys() == {"editor", "version"}
    assert repo.get_config("editor") == "vi"
    assert repo.get_config("version") == "1"


def test_set_config(repo):
    """Setting an existing key changes its value."""
    repo.set_config("editor", "nano")

    assert repo.get_config("editor") == "nano"
    assert repo.config_items() == {"editor": "nano", "version": "1"}


def test_set_config_persists(nest_path):
    """Settings survive reopening the nest."""
    with open_repository(nest_path, create=True) as repo:
        repo.set_config("editor", "code")

    with open_repository(nest_path) as repo:
        assert repo.get_config("editor") == "code"


def test_unknown_key(repo):
    """Unknown keys can be neither read nor created."""
    with pytest.raises(NotFoundError):
        repo.get_config("colour")
    with pytest.raises(NotFoundError):
        repo.set_config("colour", "blue")

    assert "colour" not in repo.config_keys()


def test_entries_sorted_by_key(repo):
    """Entries come back as ConfigEntry values ordered by key."""
    entries = repo.config.entries()

    assert [e.key for e in entries] == ["editor", "version"]
    assert entries[0].value == "vi"
