"""CLI for nestable - a notebook that never forgets a revision."""

import argparse
import json
import logging
import platform
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.prompt import Prompt

from . import __version__
from .core.errors import NotFoundError
from .core.model import NoteRevision
from .editor import run_editor
from .export.markdown import MarkdownExporter
from .pickers import (
    format_timestamp,
    revision_table,
    select_config_key,
    select_revision,
    select_search_result,
    select_term,
    term_table,
)
from .render import render_markdown
from .runtime import build_runtime, open_repository


def _console(rt: Any) -> Console:
    return Console(no_color=not rt.config.ui.colors, highlight=False)


def _rev_json(rev: NoteRevision) -> dict[str, Any]:
    return {
        "id": rev.note_id,
        "sha256": rev.sha256,
        "timestamp": rev.timestamp.isoformat(),
        "sequence": rev.sequence,
    }


def _show(rt: Any, rev: NoteRevision, raw: bool = False) -> None:
    """Print a revision's body, rendered unless `raw`."""
    body = rt.repo.body(rev)
    if raw:
        sys.stdout.write(body.decode("utf-8", errors="replace"))
        return
    colors = rt.config.ui.colors and sys.stdout.isatty()
    sys.stdout.write(render_markdown(body, colors=colors))


def _pick(args: argparse.Namespace, rt: Any, header: str) -> NoteRevision:
    """Resolve --id, then --search, then fall back to the interactive list."""
    repo = rt.repo
    if getattr(args, "id", None):
        return repo.current_revision(args.id)

    console = _console(rt)
    if getattr(args, "search", None):
        results = repo.search(args.search, limit=rt.config.search.limit)
        if not results:
            raise NotFoundError(f"no notes match {args.search!r}")
        return select_search_result(console, repo, results, header=header)

    return select_revision(console, repo, header=header, head_length=rt.config.ui.head_length)


def cmd_init(args: argparse.Namespace, rt: Any) -> int:
    """Initialize a new nest."""
    path = Path(args.path) if args.path else rt.nest_path
    with open_repository(path, create=True) as repo:
        version = repo.schema_version
    if not args.quiet:
        print(f"Initialized nest at {path} (schema version {version})")
    return 0


def cmd_new(args: argparse.Namespace, rt: Any) -> int:
    """Create a new note from -m or the configured editor."""
    repo = rt.repo
    if args.message is not None:
        content = args.message.encode("utf-8")
    else:
        content = run_editor(repo.get_config("editor"))

    if not content.strip():
        print("Empty note, nothing saved", file=sys.stderr)
        return 1

    rev = repo.new_note(content)
    if args.json:
        print(json.dumps(_rev_json(rev)))
    elif not args.quiet:
        print(f"{rev.note_id}\t{rev.sha256}")
    return 0


def cmd_edit(args: argparse.Namespace, rt: Any) -> int:
    """Edit a note, appending the result as a new revision."""
    rev = _pick(args, rt, "Select a note to edit")
    repo = rt.repo

    if args.message is not None:
        content = args.message.encode("utf-8")
    else:
        content = run_editor(repo.get_config("editor"), repo.body(rev))

    new_rev = repo.update_note(rev.note_id, content)
    if args.json:
        print(json.dumps(_rev_json(new_rev)))
    elif not args.quiet:
        print(f"{new_rev.note_id}\t{new_rev.sha256}")
    return 0


def cmd_view(args: argparse.Namespace, rt: Any) -> int:
    """Render a note to stdout."""
    rev = _pick(args, rt, "Select a note to view")
    _show(rt, rev, raw=args.raw)
    return 0


def cmd_browse(args: argparse.Namespace, rt: Any) -> int:
    """Browse notes in a list and open them one at a time."""
    repo = rt.repo
    console = _console(rt)
    while True:
        revs = repo.list_notes()
        if not revs:
            print("No notes yet. Create one with: nst new")
            return 0
        console.print(revision_table(repo, revs, head_length=rt.config.ui.head_length))
        choice = Prompt.ask("Open note # (enter to quit)", console=console, default="", show_default=False)
        if not choice.strip():
            return 0
        if not choice.strip().isdigit() or not 1 <= int(choice) <= len(revs):
            console.print(f"Not a row number: {choice}")
            continue
        _show(rt, revs[int(choice) - 1])


def cmd_ls(args: argparse.Namespace, rt: Any) -> int:
    """List current notes, most recently updated first."""
    repo = rt.repo
    revs = repo.list_notes()
    head_length = rt.config.ui.head_length

    if args.json:
        result = []
        for rev in revs:
            item = _rev_json(rev)
            item["header"] = repo.head(rev, head_length)
            result.append(item)
        print(json.dumps(result, indent=2))
    else:
        for rev in revs:
            print(f"{format_timestamp(rev)}\t{rev.note_id}\t{repo.head(rev, head_length)}")
    return 0


def cmd_history(args: argparse.Namespace, rt: Any) -> int:
    """Show every revision of a note, oldest first."""
    revs = rt.repo.history(args.id)
    if args.json:
        print(json.dumps([_rev_json(rev) for rev in revs], indent=2))
    else:
        for rev in revs:
            print(f"{rev.sequence}\t{format_timestamp(rev)}\t{rev.sha256}")
    return 0


def cmd_search(args: argparse.Namespace, rt: Any) -> int:
    """Full-text search over current revisions."""
    repo = rt.repo
    limit = args.limit or rt.config.search.limit
    results = repo.search(args.query, limit=limit)

    if args.json:
        output = []
        for result in results:
            item = _rev_json(repo.resolve(result))
            item["score"] = result.score
            item["snippet"] = result.snippet
            output.append(item)
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        for result in results:
            rev = repo.resolve(result)
            snippet = " ".join(result.snippet.split())
            print(f"{rev.note_id}\t{snippet}")
    return 0


def cmd_get_config(args: argparse.Namespace, rt: Any) -> int:
    """Print config values."""
    repo = rt.repo

    if args.all:
        import yaml

        print(yaml.safe_dump(repo.config_items(), sort_keys=True, allow_unicode=True), end="")
        return 0

    key = args.key
    if not key:
        key = select_config_key(_console(rt), list(repo.config_keys()))

    value = repo.get_config(key)
    if args.json:
        print(json.dumps({key: value}))
    else:
        print(value)
    return 0


def cmd_set_config(args: argparse.Namespace, rt: Any) -> int:
    """Change an existing config value."""
    rt.repo.set_config(args.key, args.value)
    if not args.quiet:
        print(f"{args.key}={args.value}")
    return 0


def cmd_export(args: argparse.Namespace, rt: Any) -> int:
    """Export every note into one Markdown document."""
    exporter = MarkdownExporter(rt.repo, head_length=rt.config.ui.head_length)

    out_path = Path(args.out) if args.out else rt.config.export.out
    if out_path is None:
        exporter.export(sys.stdout)
        return 0

    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        count = exporter.export(f)
    if not args.quiet:
        print(f"Exported {count} notes to {out_path}")
    return 0


def cmd_serve_web(args: argparse.Namespace, rt: Any) -> int:
    """Start the local web viewer."""
    try:
        import uvicorn

        from .api.app import create_app, generate_token
    except ImportError as e:
        print("Error: web dependencies not installed.", file=sys.stderr)
        print(f"Details: {e}", file=sys.stderr)
        return 1

    # Fail early if the nest is missing
    _ = rt.repo

    token_arg = args.token
    token = None
    if token_arg == "auto":
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == "none":
        print("Warning: Running without authentication. Only use in trusted environments.")
    else:
        token = token_arg

    app = create_app(rt, token=token, enable_cors=args.cors)

    host = args.host or rt.config.web.host
    port = args.port or rt.config.web.port
    print(f"Starting server on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
    return 0


def cmd_word_cloud(args: argparse.Namespace, rt: Any) -> int:
    """Show the most frequent terms and the notes they appear in."""
    repo = rt.repo

    if args.term:
        revs = repo.term_instances(args.term)
        if args.json:
            print(json.dumps([_rev_json(rev) for rev in revs], indent=2))
        else:
            for rev in revs:
                print(f"{rev.note_id}\t{repo.head(rev, rt.config.ui.head_length)}")
        return 0

    terms = repo.word_cloud_terms()
    if args.limit:
        terms = terms[: args.limit]

    if args.json:
        print(json.dumps([
            {"term": t.term, "note_count": t.note_count, "instance_count": t.instance_count}
            for t in terms
        ], indent=2, ensure_ascii=False))
        return 0

    console = _console(rt)
    if not args.pick:
        console.print(term_table(terms))
        return 0

    selected = select_term(console, terms)
    instances = repo.term_instances(selected.term)
    rev = select_revision(
        console,
        repo,
        instances,
        header=f"Notes containing {selected.term!r}",
        head_length=rt.config.ui.head_length,
    )
    _show(rt, rev)
    return 0


def version_string() -> str:
    return (
        f"nestable {__version__} "
        f"(python {platform.python_version()}, platform {platform.system().lower()})"
    )


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="nst", description="Nestable notebook CLI"
    )
    parser.add_argument(
        "--version", action="version", version=version_string()
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/nestable.toml, ~/.nestable.toml)",
    )
    parser.add_argument(
        "--nest",
        type=Path,
        default=None,
        help="Path to nest file (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # init command
    parser_init = subparsers.add_parser("init", aliases=["i"], help="Initialize a new nest")
    parser_init.add_argument("--path", default=None, help="Where to create the nest file")

    # new command
    parser_new = subparsers.add_parser("new", aliases=["n"], help="Create a new note")
    parser_new.add_argument(
        "-m", "--message", default=None,
        help="Note text; skips the external editor",
    )

    # edit command
    parser_edit = subparsers.add_parser("edit", aliases=["e"], help="Edit a note")
    parser_edit.add_argument("--id", type=int, default=None, help="Note ID to edit")
    parser_edit.add_argument("-s", "--search", default=None, help="Full-text search to pick from")
    parser_edit.add_argument(
        "-m", "--message", default=None,
        help="Replacement text; skips the external editor",
    )

    # view command
    parser_view = subparsers.add_parser("view", aliases=["v"], help="Render a note")
    parser_view.add_argument("--id", type=int, default=None, help="Note ID to view")
    parser_view.add_argument("-s", "--search", default=None, help="Full-text search to pick from")
    parser_view.add_argument("--raw", action="store_true", help="Print the body without rendering")

    # browse command
    subparsers.add_parser("browse", aliases=["b"], help="Browse notes interactively")

    # ls command
    subparsers.add_parser("ls", help="List notes")

    # history command
    parser_history = subparsers.add_parser("history", help="Show a note's revisions")
    parser_history.add_argument("--id", type=int, required=True, help="Note ID")

    # search command
    parser_search = subparsers.add_parser("search", help="Full-text search")
    parser_search.add_argument("query", help="FTS5 query")
    parser_search.add_argument("--limit", type=int, default=None, help="Maximum results")

    # get-config command
    parser_get_config = subparsers.add_parser("get-config", aliases=["gc"], help="Get a config value")
    parser_get_config.add_argument("--key", default=None, help="Config key to get")
    parser_get_config.add_argument("--all", action="store_true", help="Print every key as YAML")

    # set-config command
    parser_set_config = subparsers.add_parser("set-config", aliases=["sc"], help="Set a config value")
    parser_set_config.add_argument("--key", required=True, help="Config key to change")
    parser_set_config.add_argument("--value", required=True, help="New value")

    # export command
    parser_export = subparsers.add_parser("export", aliases=["ex"], help="Export notes to Markdown")
    parser_export.add_argument("--out", default=None, help="Output file (default: stdout)")

    # serve-web command
    parser_serve = subparsers.add_parser("serve-web", aliases=["w"], help="Start the web viewer")
    parser_serve.add_argument("--host", default=None, help="Host to bind to (default: config or 127.0.0.1)")
    parser_serve.add_argument("--port", type=int, default=None, help="Port to bind to (default: config or 3000)")
    parser_serve.add_argument(
        "--token", default="none",
        help="Bearer token (auto|<string>|none, default: none)"
    )
    parser_serve.add_argument("--cors", action="store_true", help="Enable CORS (default: false)")

    # word-cloud command
    parser_wc = subparsers.add_parser("word-cloud", aliases=["wc"], help="Explore frequent terms")
    parser_wc.add_argument("--limit", type=int, default=None, help="Show at most this many terms")
    parser_wc.add_argument("--term", default=None, help="List notes containing this term")
    parser_wc.add_argument("--pick", action="store_true", help="Pick a term, then a note to view")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s")

    handlers = {
        "init": cmd_init,
        "new": cmd_new,
        "edit": cmd_edit,
        "view": cmd_view,
        "browse": cmd_browse,
        "ls": cmd_ls,
        "history": cmd_history,
        "search": cmd_search,
        "get-config": cmd_get_config,
        "set-config": cmd_set_config,
        "export": cmd_export,
        "serve-web": cmd_serve_web,
        "word-cloud": cmd_word_cloud,
    }
    aliases = {
        "i": "init",
        "n": "new",
        "e": "edit",
        "v": "view",
        "b": "browse",
        "gc": "get-config",
        "sc": "set-config",
        "ex": "export",
        "w": "serve-web",
        "wc": "word-cloud",
    }

    handler = handlers.get(aliases.get(args.cmd, args.cmd))
    if handler is None:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)

    rt = None
    try:
        rt = build_runtime(nest_path=args.nest, config_path=args.config)
        exit_code = handler(args, rt)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 1
    finally:
        if rt is not None:
            rt.close()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
