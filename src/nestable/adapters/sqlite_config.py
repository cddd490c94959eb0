from __future__ import annotations

from ..core.errors import NotFoundError
from ..core.model import ConfigEntry
from ..core.ports import ConfigStore
from .sqlite_db import Database, translate_errors


class SQLiteConfigStore(ConfigStore):
    """
    Flat key/value settings stored in the nest itself.

    Keys are created with their defaults by the schema migrations; `set` only
    updates keys that already exist.
    """

    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> str:
        with translate_errors("getting config", key=key):
            row = self.db.conn.execute(
                "SELECT value FROM config WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            raise NotFoundError(f"config key {key!r} not found", {"key": key})
        return row[0]

    def set(self, key: str, value: str) -> None:
        with translate_errors("setting config", key=key):
            with self.db.transaction() as conn:
                cur = conn.execute(
                    "UPDATE config SET value = ? WHERE key = ?", (value, key)
                )
                if cur.rowcount == 0:
                    raise NotFoundError(f"config key {key!r} not found", {"key": key})

    def list_keys(self) -> set[str]:
        with translate_errors("listing config keys"):
            rows = self.db.conn.execute("SELECT key FROM config").fetchall()
        return {row[0] for row in rows}

    def entries(self) -> list[ConfigEntry]:
        with translate_errors("listing config"):
            rows = self.db.conn.execute(
                "SELECT key, value FROM config ORDER BY key"
            ).fetchall()
        return [ConfigEntry(key=key, value=value) for key, value in rows]
