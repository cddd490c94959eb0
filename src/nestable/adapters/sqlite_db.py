"""SQLite connection handling: pragmas, transactions and error translation."""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from ..core.errors import IntegrityViolation, NestableError, StoreIOError

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_micros(ts: datetime) -> int:
    """Convert a timestamp to integer microseconds since the UNIX epoch."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - EPOCH) // timedelta(microseconds=1)


def _decode_text(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def from_micros(value: int) -> datetime:
    return EPOCH + timedelta(microseconds=value)


@contextmanager
def translate_errors(operation: str, **context: Any) -> Iterator[None]:
    """
    Re-raise SQLite failures as nestable errors carrying operation context.

    Errors that are already NestableError pass through untouched.
    """
    try:
        yield
    except NestableError:
        raise
    except sqlite3.IntegrityError as e:
        raise IntegrityViolation(f"{operation}: {e}", context) from e
    except sqlite3.Error as e:
        raise StoreIOError(f"{operation}: {e}", context) from e


class Database:
    """
    Owns the one connection to a nest file.

    The connection runs in autocommit mode and transactions are issued
    explicitly, so nested `transaction()` blocks can join the outermost one.
    """

    def __init__(self, path: Path):
        self.path = path
        self._depth = 0
        with translate_errors("opening nest", path=str(path)):
            self._conn: sqlite3.Connection | None = sqlite3.connect(
                str(path), isolation_level=None, check_same_thread=False
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
            self._conn.execute("PRAGMA temp_store=MEMORY")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=3000")
            # Indexed bodies are arbitrary bytes cast to TEXT
            self._conn.text_factory = _decode_text

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreIOError("nest is closed", {"path": str(self.path)})
        return self._conn

    @property
    def closed(self) -> bool:
        return self._conn is None

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a unit of work; any exception rolls the whole unit back."""
        conn = self.conn
        if self._depth:
            self._depth += 1
            try:
                yield conn
            finally:
                self._depth -= 1
            return

        with translate_errors("beginning transaction"):
            conn.execute("BEGIN IMMEDIATE")
        self._depth = 1
        try:
            yield conn
        except BaseException:
            self._depth = 0
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.debug("transaction rolled back")
            raise
        self._depth = 0
        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StoreIOError(f"committing transaction: {e}") from e

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
