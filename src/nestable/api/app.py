"""FastAPI application serving a read-only JSON view of a nest."""

import secrets
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .. import __version__
from ..core.errors import InvalidQueryError, NotFoundError
from ..core.model import NoteRevision


def _revision_json(rev: NoteRevision) -> dict[str, Any]:
    return {
        "id": rev.note_id,
        "sha256": rev.sha256,
        "timestamp": rev.timestamp.isoformat(),
        "sequence": rev.sequence,
    }


def create_app(runtime: Any, token: str | None = None, enable_cors: bool = False) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime instance exposing `repo` and `config`
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Nestable",
        description="Read-only JSON view of a nestable notebook",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or credentials.credentials != token:
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    head_length = runtime.config.ui.head_length

    @app.get("/health")
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "schema_version": runtime.repo.schema_version}

    @app.get("/notes")
    async def list_notes(
        filter: str | None = Query(None, description="Case-insensitive header filter"),
        auth: None = Depends(verify_token),
    ) -> list[dict[str, Any]]:
        """Current revision of every note, most recently updated first."""
        repo = runtime.repo
        output = []
        for rev in repo.list_notes():
            header = repo.head(rev, head_length)
            if filter and filter.lower() not in header.lower():
                continue
            item = _revision_json(rev)
            item["header"] = header
            output.append(item)
        return output

    @app.get("/notes/{note_id}")
    async def get_note(note_id: int, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Current revision and body of a note."""
        repo = runtime.repo
        try:
            rev = repo.current_revision(note_id)
        except NotFoundError:
            raise HTTPException(status_code=404, detail=f"Note {note_id} not found")
        item = _revision_json(rev)
        item["body"] = repo.body(rev).decode("utf-8", errors="replace")
        return item

    @app.get("/notes/{note_id}/history")
    async def get_history(note_id: int, auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        """Every revision of a note, oldest first."""
        try:
            revs = runtime.repo.history(note_id)
        except NotFoundError:
            raise HTTPException(status_code=404, detail=f"Note {note_id} not found")
        return [_revision_json(rev) for rev in revs]

    @app.get("/search")
    async def search(
        q: str = Query(..., description="Full-text query"),
        limit: int = Query(50, description="Maximum results", ge=1, le=100),
        auth: None = Depends(verify_token),
    ) -> list[dict[str, Any]]:
        """Full-text search over current revisions."""
        repo = runtime.repo
        try:
            results = repo.search(q, limit=limit)
        except InvalidQueryError as e:
            raise HTTPException(status_code=400, detail=e.message)

        output = []
        for result in results:
            item = _revision_json(repo.resolve(result))
            item["score"] = result.score
            item["snippet"] = result.snippet
            output.append(item)
        return output

    @app.get("/word-cloud")
    async def word_cloud(
        limit: int = Query(100, description="Maximum terms", ge=1),
        auth: None = Depends(verify_token),
    ) -> list[dict[str, Any]]:
        """Most frequent terms across current revisions."""
        return [
            {"term": t.term, "note_count": t.note_count, "instance_count": t.instance_count}
            for t in runtime.repo.word_cloud_terms()[:limit]
        ]

    @app.get("/terms/{term}")
    async def term_notes(term: str, auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        """Notes whose current revision contains a term."""
        repo = runtime.repo
        output = []
        for rev in repo.term_instances(term):
            item = _revision_json(rev)
            item["header"] = repo.head(rev, head_length)
            output.append(item)
        return output

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
