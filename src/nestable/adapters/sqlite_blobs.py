import hashlib

from ..core.errors import NotFoundError
from ..core.model import BlobHash
from ..core.ports import ContentStore
from .sqlite_db import Database, translate_errors


def hash_content(content: bytes) -> BlobHash:
    """Compute the content address of a body."""
    return hashlib.sha256(content).hexdigest()


class SQLiteContentStore(ContentStore):
    def __init__(self, db: Database):
        self.db = db

    def put_blob(self, content: bytes) -> BlobHash:
        sha = hash_content(content)
        with translate_errors("storing blob", sha256=sha):
            with self.db.transaction() as conn:
                conn.execute(
                    "INSERT OR IGNORE INTO blob (sha256, body) VALUES (?, ?)",
                    (sha, content),
                )
        return sha

    def get_blob(self, sha256: BlobHash) -> bytes:
        with translate_errors("fetching blob", sha256=sha256):
            row = self.db.conn.execute(
                "SELECT body FROM blob WHERE sha256 = ?", (sha256,)
            ).fetchone()
        if row is None:
            raise NotFoundError(f"blob {sha256} not found", {"sha256": sha256})
        return bytes(row[0])

    def get_blob_prefix(self, sha256: BlobHash, max_len: int) -> bytes:
        # substr() on a BLOB counts bytes and runs inside SQLite
        with translate_errors("fetching blob head", sha256=sha256):
            row = self.db.conn.execute(
                "SELECT substr(body, 1, ?) FROM blob WHERE sha256 = ?",
                (max_len, sha256),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"blob {sha256} not found", {"sha256": sha256})
        return bytes(row[0])
