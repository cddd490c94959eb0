"""FTS5 search over the current revision of every note."""

import sqlite3
import unicodedata
from collections.abc import Iterable

from ..core.errors import InvalidQueryError
from ..core.model import NoteRevision, SearchResult, TermStat
from ..core.ports import SearchIndex
from .sqlite_db import Database, translate_errors
from .sqlite_ledger import row_to_revision

MARK_OPEN = "👉 "
MARK_CLOSE = " 👈"
ELLIPSIS = "..."

# note_fts columns: note_id, blob_sha256, body. Only body is weighted.
_BM25 = "bm25(note_fts, 0.0, 0.0, 1.0)"


def fold_term(term: str) -> str:
    """Normalise a term the way the unicode61 tokenizer stores it."""
    decomposed = unicodedata.normalize("NFD", term.lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _is_query_error(e: sqlite3.OperationalError) -> bool:
    msg = str(e)
    return "fts5" in msg or "no such column" in msg or "unterminated string" in msg


class SQLiteSearchIndex(SearchIndex):
    """
    Read side of the note_fts table.

    Writes never go through this class: triggers on note_rev keep note_fts
    holding exactly the current revision of each note.
    """

    def __init__(
        self,
        db: Database,
        stop_words: Iterable[str] = (),
        snippet_tokens: int = 20,
    ):
        self.db = db
        self.stop_words = frozenset(fold_term(w) for w in stop_words)
        self.snippet_tokens = snippet_tokens

    def search(self, term: str, limit: int | None = None) -> list[SearchResult]:
        """Ranked matches, most relevant first."""
        sql = f"""
            SELECT
                rowid,
                blob_sha256,
                {_BM25},
                snippet(note_fts, 2, ?, ?, ?, ?)
            FROM note_fts
            WHERE note_fts MATCH ?
            ORDER BY {_BM25}, rowid
        """
        params: list = [MARK_OPEN, MARK_CLOSE, ELLIPSIS, self.snippet_tokens, term]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with translate_errors("searching notes", term=term):
            try:
                rows = self.db.conn.execute(sql, params).fetchall()
            except sqlite3.OperationalError as e:
                if _is_query_error(e):
                    raise InvalidQueryError(
                        f"invalid search query {term!r}: {e}", {"term": term}
                    ) from e
                raise

        return [
            SearchResult(sequence=seq, sha256=sha, score=score, snippet=snippet)
            for seq, sha, score, snippet in rows
        ]

    def word_cloud_terms(self) -> list[TermStat]:
        """Vocabulary of the current revisions, most frequent first."""
        with translate_errors("querying word cloud terms"):
            rows = self.db.conn.execute("""
                SELECT term, doc, cnt
                FROM note_fts_vocab_cols
                WHERE col = 'body'
                ORDER BY cnt DESC, term
            """).fetchall()
        return [
            TermStat(term=term, note_count=doc, instance_count=cnt)
            for term, doc, cnt in rows
            if term not in self.stop_words
        ]

    def term_instances(self, term: str) -> list[NoteRevision]:
        """Current revisions containing `term`, one per note."""
        with translate_errors("querying term instances", term=term):
            rows = self.db.conn.execute(f"""
                SELECT DISTINCT r.note_id, r.blob_sha256, r.timestamp, r.sequence
                FROM note_fts_vocab_instances v
                JOIN note_rev r ON r.sequence = v.doc
                WHERE v.term = ? AND v.col = 'body'
                ORDER BY r.timestamp DESC, r.sequence DESC
            """, (fold_term(term),)).fetchall()
        return [row_to_revision(row) for row in rows]
