"""Append-only revision ledger on top of the note and note_rev tables."""

import logging
from typing import Any

from ..core.errors import NotFoundError
from ..core.model import NoteId, NoteRevision
from ..core.ports import Clock, ContentStore, RevisionLedger
from .sqlite_db import Database, from_micros, to_micros, translate_errors

logger = logging.getLogger(__name__)

_COLUMNS = "note_id, blob_sha256, timestamp, sequence"


def row_to_revision(row: Any) -> NoteRevision:
    note_id, sha, ts, sequence = row
    return NoteRevision(
        note_id=note_id,
        sha256=sha,
        timestamp=from_micros(ts),
        sequence=sequence,
    )


class SQLiteRevisionLedger(RevisionLedger):
    def __init__(self, db: Database, blobs: ContentStore, clock: Clock):
        self.db = db
        self.blobs = blobs
        self.clock = clock

    def _link(self, conn: Any, note_id: NoteId, sha: str) -> NoteRevision:
        timestamp = self.clock.now()
        cur = conn.execute(
            "INSERT INTO note_rev (note_id, blob_sha256, timestamp) VALUES (?, ?, ?)",
            (note_id, sha, to_micros(timestamp)),
        )
        return NoteRevision(
            note_id=note_id,
            sha256=sha,
            timestamp=from_micros(to_micros(timestamp)),
            sequence=cur.lastrowid,
        )

    def create_note(self, content: bytes) -> NoteRevision:
        with translate_errors("creating note"):
            with self.db.transaction() as conn:
                sha = self.blobs.put_blob(content)
                note_id = conn.execute("INSERT INTO note DEFAULT VALUES").lastrowid
                rev = self._link(conn, note_id, sha)
        logger.debug("created note %d at revision %d (%s)", rev.note_id, rev.sequence, rev.sha256)
        return rev

    def append_revision(self, note_id: NoteId, content: bytes) -> NoteRevision:
        with translate_errors("appending revision", note_id=note_id):
            with self.db.transaction() as conn:
                exists = conn.execute(
                    "SELECT 1 FROM note WHERE id = ?", (note_id,)
                ).fetchone()
                if not exists:
                    raise NotFoundError(f"note {note_id} not found", {"note_id": note_id})
                sha = self.blobs.put_blob(content)
                rev = self._link(conn, note_id, sha)
        logger.debug("appended revision %d to note %d (%s)", rev.sequence, note_id, rev.sha256)
        return rev

    def current_revision(self, note_id: NoteId) -> NoteRevision:
        with translate_errors("fetching current revision", note_id=note_id):
            row = self.db.conn.execute(f"""
                SELECT {_COLUMNS} FROM note_rev
                WHERE note_id = ?
                ORDER BY timestamp DESC, sequence DESC
                LIMIT 1
            """, (note_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"note {note_id} not found", {"note_id": note_id})
        return row_to_revision(row)

    def history(self, note_id: NoteId) -> list[NoteRevision]:
        """All revisions of a note, oldest first."""
        with translate_errors("fetching history", note_id=note_id):
            rows = self.db.conn.execute(f"""
                SELECT {_COLUMNS} FROM note_rev
                WHERE note_id = ?
                ORDER BY timestamp, sequence
            """, (note_id,)).fetchall()
        if not rows:
            raise NotFoundError(f"note {note_id} not found", {"note_id": note_id})
        return [row_to_revision(row) for row in rows]

    def list_current_revisions(self) -> list[NoteRevision]:
        """One revision per note, most recently touched first."""
        with translate_errors("listing notes"):
            rows = self.db.conn.execute(f"""
                SELECT {_COLUMNS} FROM note_current
                ORDER BY timestamp DESC, sequence DESC
            """).fetchall()
        return [row_to_revision(row) for row in rows]

    def revision_by_sequence(self, sequence: int) -> NoteRevision:
        with translate_errors("fetching revision", sequence=sequence):
            row = self.db.conn.execute(
                f"SELECT {_COLUMNS} FROM note_rev WHERE sequence = ?", (sequence,)
            ).fetchone()
        if row is None:
            raise NotFoundError(f"revision {sequence} not found", {"sequence": sequence})
        return row_to_revision(row)
