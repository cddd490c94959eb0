from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Protocol

from .model import BlobHash, ConfigEntry, NoteId, NoteRevision, SearchResult, TermStat


class Clock(Protocol):
    """
    Source of revision timestamps; read exactly once per write.
    """

    def now(self) -> datetime:
        pass


class UnitOfWork(Protocol):
    """
    The single connection/transaction boundary. Nested transactions join the
    outermost one; only the outermost commits or rolls back.
    """

    def transaction(self) -> AbstractContextManager[Any]:
        pass

    def close(self) -> None:
        pass


class ContentStore(Protocol):
    """
    Content-addressed blobs: the key is always the SHA-256 of the bytes.
    """

    def put_blob(self, content: bytes) -> BlobHash:
        pass

    def get_blob(self, sha256: BlobHash) -> bytes:
        pass

    def get_blob_prefix(self, sha256: BlobHash, max_len: int) -> bytes:
        pass


class RevisionLedger(Protocol):
    """
    Append-only history per note. "Current" is derived, never stored.
    """

    def create_note(self, content: bytes) -> NoteRevision:
        pass

    def append_revision(self, note_id: NoteId, content: bytes) -> NoteRevision:
        pass

    def current_revision(self, note_id: NoteId) -> NoteRevision:
        pass

    def history(self, note_id: NoteId) -> list[NoteRevision]:
        pass

    def list_current_revisions(self) -> list[NoteRevision]:
        pass

    def revision_by_sequence(self, sequence: int) -> NoteRevision:
        pass


class SearchIndex(Protocol):
    """
    Derived full-text index holding exactly the current revision of each note.
    """

    def search(self, term: str, limit: int | None = None) -> list[SearchResult]:
        pass

    def word_cloud_terms(self) -> list[TermStat]:
        pass

    def term_instances(self, term: str) -> list[NoteRevision]:
        pass


class ConfigStore(Protocol):
    def get(self, key: str) -> str:
        pass

    def set(self, key: str, value: str) -> None:
        pass

    def list_keys(self) -> set[str]:
        pass

    def entries(self) -> list[ConfigEntry]:
        pass
