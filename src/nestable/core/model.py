from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime

NoteId = int
BlobHash = str  # hex-encoded SHA-256 of the exact body bytes


@dataclass(frozen=True)
class Note:
    id: NoteId


@dataclass(frozen=True)
class Blob:
    sha256: BlobHash


@dataclass(frozen=True)
class NoteRevision:
    """
    One entry in a note's append-only history.

    `sequence` is the ledger row number; it orders revisions that share a
    timestamp and is how search results find their way back to a revision.
    """

    note_id: NoteId
    sha256: BlobHash
    timestamp: datetime
    sequence: int

    @property
    def note(self) -> Note:
        return Note(self.note_id)

    @property
    def blob(self) -> Blob:
        return Blob(self.sha256)


@dataclass(frozen=True)
class SearchResult:
    sequence: int  # note_rev row the match came from
    sha256: BlobHash
    score: float  # bm25, lower is more relevant
    snippet: str


@dataclass(frozen=True)
class TermStat:
    term: str
    note_count: int
    instance_count: int


@dataclass(frozen=True)
class ConfigEntry:
    key: str
    value: str
