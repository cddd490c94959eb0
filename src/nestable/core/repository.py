"""Single entry point to a nest: notes, revisions, search and config."""

from __future__ import annotations

from types import TracebackType

from .model import BlobHash, NoteId, NoteRevision, SearchResult, TermStat
from .ports import ConfigStore, ContentStore, RevisionLedger, SearchIndex, UnitOfWork

HEAD_LENGTH = 80


def _as_bytes(content: bytes | str) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else content


class Repository:
    """
    Facade over the content store, revision ledger, search index and config
    store. Every public method is one unit of work on the shared connection.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        blobs: ContentStore,
        ledger: RevisionLedger,
        index: SearchIndex,
        config: ConfigStore,
        schema_version: int = 0,
    ):
        self.uow = uow
        self.blobs = blobs
        self.ledger = ledger
        self.index = index
        self.config = config
        self.schema_version = schema_version

    # Lifecycle

    def close(self) -> None:
        self.uow.close()

    def __enter__(self) -> Repository:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # Writes

    def new_note(self, content: bytes | str) -> NoteRevision:
        with self.uow.transaction():
            return self.ledger.create_note(_as_bytes(content))

    def update_note(self, note_id: NoteId, content: bytes | str) -> NoteRevision:
        with self.uow.transaction():
            return self.ledger.append_revision(note_id, _as_bytes(content))

    # Revision views

    def current_revision(self, note_id: NoteId) -> NoteRevision:
        return self.ledger.current_revision(note_id)

    def history(self, note_id: NoteId) -> list[NoteRevision]:
        return self.ledger.history(note_id)

    def list_notes(self) -> list[NoteRevision]:
        return self.ledger.list_current_revisions()

    def body(self, rev: NoteRevision | BlobHash) -> bytes:
        sha = rev.sha256 if isinstance(rev, NoteRevision) else rev
        return self.blobs.get_blob(sha)

    def head(self, rev: NoteRevision | BlobHash, length: int = HEAD_LENGTH) -> str:
        """First line of a body, cut to at most `length` bytes."""
        sha = rev.sha256 if isinstance(rev, NoteRevision) else rev
        prefix = self.blobs.get_blob_prefix(sha, length)
        first = prefix.splitlines()[0] if prefix else b""
        return first.decode("utf-8", errors="replace")

    # Search

    def search(self, term: str, limit: int | None = None) -> list[SearchResult]:
        return self.index.search(term, limit=limit)

    def resolve(self, result: SearchResult) -> NoteRevision:
        return self.ledger.revision_by_sequence(result.sequence)

    def word_cloud_terms(self) -> list[TermStat]:
        return self.index.word_cloud_terms()

    def term_instances(self, term: str) -> list[NoteRevision]:
        return self.index.term_instances(term)

    # Config

    def get_config(self, key: str) -> str:
        return self.config.get(key)

    def set_config(self, key: str, value: str) -> None:
        self.config.set(key, value)

    def config_keys(self) -> set[str]:
        return self.config.list_keys()

    def config_items(self) -> dict[str, str]:
        return {e.key: e.value for e in self.config.entries()}
