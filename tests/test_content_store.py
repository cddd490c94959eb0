"""Tests for the content-addressed blob store."""

import hashlib

import pytest

from nestable.adapters.sqlite_blobs import hash_content
from nestable.core.errors import NotFoundError


def test_put_blob_returns_sha256(repo):
    """The address of a blob is the SHA-256 of its bytes."""
    sha = repo.blobs.put_blob(b"hello")

    assert sha == hashlib.sha256(b"hello").hexdigest()
    assert sha == hash_content(b"hello")


def test_put_blob_is_idempotent(repo):
    """Storing the same bytes twice keeps a single row."""
    first = repo.blobs.put_blob(b"same body")
    second = repo.blobs.put_blob(b"same body")

    assert first == second
    count = repo.uow.conn.execute("SELECT COUNT(*) FROM blob").fetchone()[0]
    assert count == 1


def test_get_blob_round_trips_exact_bytes(repo):
    """Bodies come back byte for byte, including invalid UTF-8."""
    content = b"line one\r\nline two\n\xff\xfe trailing"
    sha = repo.blobs.put_blob(content)

    assert repo.blobs.get_blob(sha) == content


def test_empty_blob(repo):
    """An empty body is a valid blob."""
    sha = repo.blobs.put_blob(b"")

    assert sha == hashlib.sha256(b"").hexdigest()
    assert repo.blobs.get_blob(sha) == b""


def test_get_unknown_blob(repo):
    """Unknown hashes raise NotFoundError."""
    with pytest.raises(NotFoundError):
        repo.blobs.get_blob("0" * 64)


def test_get_blob_prefix(repo):
    """Prefixes are measured in bytes and never longer than the body."""
    sha = repo.blobs.put_blob(b"abcdef")

    assert repo.blobs.get_blob_prefix(sha, 3) == b"abc"
    assert repo.blobs.get_blob_prefix(sha, 100) == b"abcdef"

    with pytest.raises(NotFoundError):
        repo.blobs.get_blob_prefix("0" * 64, 3)
