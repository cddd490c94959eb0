"""Forward-only schema migrations for the nest file."""

import logging
import sqlite3

from ..core.errors import NestableError, SchemaMigrationError, StoreIOError
from .sqlite_db import Database

logger = logging.getLogger(__name__)

# Each migration is (version, description, statements). Versions are applied in
# order, each inside its own transaction, and recorded in meta.schema_version.
MIGRATIONS: list[tuple[int, str, tuple[str, ...]]] = [
    (
        1,
        "notes, blobs, revisions and config",
        (
            """
            CREATE TABLE note (
                id INTEGER PRIMARY KEY AUTOINCREMENT
            )
            """,
            """
            CREATE TABLE blob (
                sha256 TEXT NOT NULL UNIQUE,
                body BLOB NOT NULL
            )
            """,
            """
            CREATE TABLE note_rev (
                sequence INTEGER PRIMARY KEY AUTOINCREMENT,
                note_id INTEGER NOT NULL REFERENCES note(id),
                blob_sha256 TEXT NOT NULL REFERENCES blob(sha256),
                timestamp INTEGER NOT NULL
            )
            """,
            "CREATE INDEX note_rev_note_idx ON note_rev(note_id, timestamp, sequence)",
            """
            CREATE TABLE config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """,
            "INSERT INTO config(key, value) VALUES ('editor', 'vi'), ('version', '1')",
        ),
    ),
    (
        2,
        "full-text index over current revisions",
        (
            # The latest revision per note: max timestamp, ties go to the later row.
            """
            CREATE VIEW note_current AS
            SELECT r.sequence, r.note_id, r.blob_sha256, r.timestamp
            FROM note_rev r
            WHERE r.sequence = (
                SELECT r2.sequence FROM note_rev r2
                WHERE r2.note_id = r.note_id
                ORDER BY r2.timestamp DESC, r2.sequence DESC
                LIMIT 1
            )
            """,
            # rowid of every FTS row is the note_rev.sequence it was built from
            """
            CREATE VIRTUAL TABLE note_fts USING fts5(
                note_id UNINDEXED,
                blob_sha256 UNINDEXED,
                body,
                tokenize = "unicode61 remove_diacritics 2"
            )
            """,
            "CREATE VIRTUAL TABLE note_fts_vocab_cols USING fts5vocab(note_fts, 'col')",
            "CREATE VIRTUAL TABLE note_fts_vocab_instances USING fts5vocab(note_fts, 'instance')",
            """
            CREATE TRIGGER note_rev_fts_sync AFTER INSERT ON note_rev
            BEGIN
                DELETE FROM note_fts WHERE note_id = NEW.note_id;
                INSERT INTO note_fts(rowid, note_id, blob_sha256, body)
                SELECT c.sequence, c.note_id, c.blob_sha256, CAST(b.body AS TEXT)
                FROM note_current c
                JOIN blob b ON b.sha256 = c.blob_sha256
                WHERE c.note_id = NEW.note_id;
            END
            """,
            # Backfill from revisions written before the index existed
            """
            INSERT INTO note_fts(rowid, note_id, blob_sha256, body)
            SELECT c.sequence, c.note_id, c.blob_sha256, CAST(b.body AS TEXT)
            FROM note_current c
            JOIN blob b ON b.sha256 = c.blob_sha256
            """,
        ),
    ),
]

LATEST_VERSION = MIGRATIONS[-1][0]


def current_version(db: Database) -> int:
    """Return the applied schema version, 0 for a fresh file."""
    conn = db.conn
    try:
        has_meta = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'meta'"
        ).fetchone()
        if not has_meta:
            return 0
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.Error as e:
        raise StoreIOError(f"reading schema version: {e}", {"path": str(db.path)}) from e

    if row is None:
        return 0
    try:
        return int(row[0])
    except ValueError as e:
        raise SchemaMigrationError(
            f"unreadable schema version {row[0]!r}", {"path": str(db.path)}
        ) from e


def migrate_up(db: Database) -> int:
    """
    Apply every pending migration.

    Already-applied migrations are skipped, so calling this on an up-to-date
    nest is a successful no-op. Returns the number of migrations applied.
    """
    version = current_version(db)
    if version > LATEST_VERSION:
        raise SchemaMigrationError(
            f"nest schema version {version} is newer than supported version {LATEST_VERSION}",
            {"path": str(db.path), "version": version},
        )

    applied = 0
    for target, description, statements in MIGRATIONS:
        if target <= version:
            continue
        try:
            with db.transaction() as conn:
                conn.execute(
                    "CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
                )
                for statement in statements:
                    conn.execute(statement)
                conn.execute("""
                    INSERT INTO meta(key, value) VALUES('schema_version', ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """, (str(target),))
        except (sqlite3.Error, NestableError) as e:
            raise SchemaMigrationError(
                f"applying migration {target} ({description}): {e}",
                {"path": str(db.path), "version": target},
            ) from e
        logger.debug("applied migration %d: %s", target, description)
        applied += 1

    return applied
