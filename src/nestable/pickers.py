"""Interactive pickers built on rich tables and prompts."""

from collections.abc import Sequence
from typing import IO, TypeVar

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from .core.errors import NotFoundError
from .core.model import NoteRevision, SearchResult, TermStat
from .core.repository import Repository

T = TypeVar("T")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(rev: NoteRevision) -> str:
    return rev.timestamp.astimezone().strftime(TIMESTAMP_FORMAT)


def revision_table(
    repo: Repository, revs: Sequence[NoteRevision], title: str = "Notes", head_length: int = 80
) -> Table:
    """One row per revision: timestamp, note id, first line."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Updated", no_wrap=True)
    table.add_column("ID", justify="right")
    table.add_column("Note")
    for i, rev in enumerate(revs, 1):
        table.add_row(str(i), format_timestamp(rev), str(rev.note_id), escape(repo.head(rev, head_length)))
    return table


def _choose(
    console: Console,
    items: Sequence[T],
    table: Table,
    what: str,
    stream: IO[str] | None = None,
) -> T:
    if not items:
        raise NotFoundError(f"no {what} to choose from")
    console.print(table)
    choice = Prompt.ask(
        f"Select {what}",
        console=console,
        choices=[str(i) for i in range(1, len(items) + 1)],
        show_choices=False,
        stream=stream,
    )
    return items[int(choice) - 1]


def select_revision(
    console: Console,
    repo: Repository,
    revs: Sequence[NoteRevision] | None = None,
    header: str = "Notes",
    head_length: int = 80,
    stream: IO[str] | None = None,
) -> NoteRevision:
    """Pick one revision, by default from the current note listing."""
    if revs is None:
        revs = repo.list_notes()
    table = revision_table(repo, revs, title=header, head_length=head_length)
    return _choose(console, revs, table, "a note", stream)


def select_search_result(
    console: Console,
    repo: Repository,
    results: Sequence[SearchResult],
    header: str = "Search results",
    stream: IO[str] | None = None,
) -> NoteRevision:
    """Pick a search hit and resolve it to its revision."""
    revs = [repo.resolve(r) for r in results]
    table = Table(title=header, show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", justify="right")
    table.add_column("Match")
    for i, (rev, result) in enumerate(zip(revs, results), 1):
        table.add_row(str(i), str(rev.note_id), escape(result.snippet))
    return _choose(console, revs, table, "a result", stream)


def term_table(terms: Sequence[TermStat], title: str = "Word cloud") -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Term")
    table.add_column("Appears", justify="right")
    table.add_column("Notes", justify="right")
    for i, t in enumerate(terms, 1):
        table.add_row(str(i), escape(t.term), str(t.instance_count), str(t.note_count))
    return table


def select_term(
    console: Console, terms: Sequence[TermStat], stream: IO[str] | None = None
) -> TermStat:
    return _choose(console, terms, term_table(terms), "a term", stream)


def select_config_key(
    console: Console, keys: Sequence[str], stream: IO[str] | None = None
) -> str:
    keys = sorted(keys)
    table = Table(title="Config keys", show_header=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Key")
    for i, k in enumerate(keys, 1):
        table.add_row(str(i), escape(k))
    return _choose(console, keys, table, "a key", stream)
