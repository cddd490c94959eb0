"""Runtime wiring helper for CLI and web applications."""

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .adapters.clock import SystemClock
from .adapters.migrations import current_version, migrate_up
from .adapters.sqlite_blobs import SQLiteContentStore
from .adapters.sqlite_config import SQLiteConfigStore
from .adapters.sqlite_db import Database
from .adapters.sqlite_ledger import SQLiteRevisionLedger
from .adapters.sqlite_search import SQLiteSearchIndex
from .config import NestableConfig, load_config
from .core.errors import NestableError, NotFoundError
from .core.ports import Clock
from .core.repository import Repository


def open_repository(
    path: Path,
    clock: Clock | None = None,
    create: bool = False,
    stop_words: Iterable[str] = (),
    snippet_tokens: int = 20,
) -> Repository:
    """
    Open (or with `create`, initialise) a nest and bring its schema up to date.

    Raises NotFoundError when the file is missing and `create` is false.
    """
    path = Path(path)
    if not create and not path.exists():
        raise NotFoundError(
            f"nest {path} does not exist; run: nst init --path {path}",
            {"path": str(path)},
        )
    if create:
        path.parent.mkdir(parents=True, exist_ok=True)

    db = Database(path)
    try:
        migrate_up(db)
        version = current_version(db)
    except NestableError:
        db.close()
        raise

    blobs = SQLiteContentStore(db)
    return Repository(
        uow=db,
        blobs=blobs,
        ledger=SQLiteRevisionLedger(db, blobs, clock or SystemClock()),
        index=SQLiteSearchIndex(db, stop_words=stop_words, snippet_tokens=snippet_tokens),
        config=SQLiteConfigStore(db),
        schema_version=version,
    )


@dataclass
class Runtime:
    """Container for the loaded config and the lazily opened repository."""
    config: NestableConfig
    nest_path: Path
    _repo: Repository | None = None

    @property
    def repo(self) -> Repository:
        if self._repo is None:
            self._repo = open_repository(
                self.nest_path,
                stop_words=self.config.search.stop_words,
                snippet_tokens=self.config.search.snippet_tokens,
            )
        return self._repo

    def close(self) -> None:
        if self._repo is not None:
            self._repo.close()
            self._repo = None


def build_runtime(
    nest_path: Path | None = None,
    config_path: Path | None = None,
) -> Runtime:
    """Load configuration and resolve which nest to use."""
    config = load_config(config_path=config_path)

    # Use config value if CLI arg not provided
    if nest_path is None:
        nest_path = config.nest.path

    return Runtime(config=config, nest_path=nest_path)
