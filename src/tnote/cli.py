"""
CLI for tnote.

Minimal CLI using stdlib; heavier modules (prompt_toolkit, the store)
are imported lazily inside the commands that need them.

Usage:
    tnote add <title> <body>        # Add a note
    tnote list                      # List notes
    tnote view <id>                 # Show one note
    tnote tui                       # Interactive browser
    tnote --help                    # Show help
"""

import sys
from typing import Any, Callable

from tnote.errors import InvalidArgumentError, TnoteError


def print_help() -> None:
    """Print help message."""
    print("""tnote - small offline terminal notes

Usage:
    tnote [--db <path>] <command> [args]

Commands:
    tnote add <title> <body>      Add a note
    tnote list                    List notes (id, date, title)
    tnote view <id>               Show a note
    tnote tui                     Browse, add, edit and complete notes
    tnote done <id>               Toggle a note's completed flag
    tnote rm <id>                 Delete a note
    tnote find <query>            Search titles and bodies
    tnote health                  Show storage status

Options:
    --db <path>                   Notes database (default: ~/.local/share/tnote/notes.db)
    tnote --help, -h              Show this help
    tnote --version, -v           Show version

Examples:
    tnote add "Buy milk" "2% milk, 1 gal"
    tnote list
    tnote view 1
    tnote --db ~/work-notes.db tui""")


def print_version() -> None:
    """Print version."""
    from tnote import __version__
    print(f"tnote {__version__}")


def parse_global_options(args: list[str]) -> tuple[str | None, list[str]]:
    """
    Pull --db out of the argument list.

    Accepts `--db PATH` and `--db=PATH` anywhere before a `--`.
    Returns (db_override, remaining_args).
    """
    db_path = None
    remaining = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--":
            remaining.extend(args[i + 1:])
            break
        if arg == "--db":
            if i + 1 >= len(args):
                raise InvalidArgumentError("--db requires a path")
            db_path = args[i + 1]
            i += 2
            continue
        if arg.startswith("--db="):
            db_path = arg[len("--db="):]
            if not db_path:
                raise InvalidArgumentError("--db requires a path")
            i += 1
            continue
        remaining.append(arg)
        i += 1
    return db_path, remaining


def _expect_args(name: str, args: list[str], count: int, usage: str) -> None:
    if len(args) != count:
        raise InvalidArgumentError(
            f"{name} takes {count} argument{'s' if count != 1 else ''}, got {len(args)}\n"
            f"Usage: tnote {usage}"
        )


# Argument parsers. They run before the store is opened, so a bad
# argument never touches the database.

def parse_add(name: str, args: list[str]) -> tuple[Any, ...]:
    _expect_args("add", args, 2, "add <title> <body>")
    return args[0], args[1]


def parse_none(name: str, args: list[str]) -> tuple[Any, ...]:
    if args:
        raise InvalidArgumentError(f"{name} takes no arguments, got: {' '.join(args)}")
    return ()


def parse_id(name: str, args: list[str]) -> tuple[Any, ...]:
    from tnote.models import parse_note_id

    _expect_args(name, args, 1, f"{name} <id>")
    return (parse_note_id(args[0]),)


def parse_query(name: str, args: list[str]) -> tuple[Any, ...]:
    query = " ".join(args).strip()
    if not query:
        raise InvalidArgumentError("Usage: tnote find <query>")
    return (query,)


# Commands. Each gets the open store explicitly.

def cmd_add(store, config: dict[str, Any], title: str, body: str) -> int:
    """Add a note."""
    note = store.add(title, body)
    print(f"Added note {note.id}: {note.title}")
    return 0


def cmd_list(store, config: dict[str, Any]) -> int:
    """List notes, ascending by ID."""
    from tnote.surfacing import get_notes_formatted

    output = get_notes_formatted(store)
    if output:
        print(output)
    return 0


def cmd_view(store, config: dict[str, Any], note_id: int) -> int:
    """Show a note."""
    from tnote.surfacing import format_note

    print(format_note(store.get(note_id)))
    return 0


def cmd_done(store, config: dict[str, Any], note_id: int) -> int:
    """Toggle a note's completed flag."""
    note = store.get(note_id)
    note = note.model_copy(update={"completed": not note.completed})
    store.update(note)
    print(f"{'Completed' if note.completed else 'Reopened'}: {note.id}")
    return 0


def cmd_rm(store, config: dict[str, Any], note_id: int) -> int:
    """Delete a note."""
    store.get(note_id)
    store.delete(note_id)
    print(f"Deleted note {note_id}")
    return 0


def cmd_find(store, config: dict[str, Any], query: str) -> int:
    """Search notes by title and body."""
    from tnote.surfacing import search_notes_formatted

    print(search_notes_formatted(store, query))
    return 0


def cmd_tui(store, config: dict[str, Any]) -> int:
    """Run the interactive browser."""
    from tnote.browser import Browser
    from tnote.tui import run_browser

    run_browser(Browser(store, soft_break=config["tui"]["soft_break"]))
    return 0


COMMANDS: dict[str, tuple[Callable[[str, list[str]], tuple], Callable[..., int]]] = {
    "add": (parse_add, cmd_add),
    "list": (parse_none, cmd_list),
    "view": (parse_id, cmd_view),
    "tui": (parse_none, cmd_tui),
    "done": (parse_id, cmd_done),
    "rm": (parse_id, cmd_rm),
    "find": (parse_query, cmd_find),
}


def cmd_health(db_override: str | None) -> int:
    """Show storage status. Works even when the database can't be opened."""
    from tnote.config import get_db_path, load_config
    from tnote.health import format_health_report, run_health_check

    try:
        config = load_config()
    except TnoteError:
        config = {}
    print(format_health_report(run_health_check(get_db_path(db_override, config), config)))
    return 0


def run_command(name: str, args: list[str], db_override: str | None) -> int:
    """Validate arguments, open the store, run the command, close the store."""
    from tnote.config import get_db_path, get_log_path, load_config, setup_logging

    parse, command = COMMANDS[name]
    parsed = parse(name, args)

    config = load_config()
    setup_logging(config, log_file=get_log_path() if name == "tui" else None)

    from tnote.store import Store

    lock_timeout = config["storage"]["lock_timeout"]
    with Store(get_db_path(db_override, config), lock_timeout=lock_timeout) as store:
        return command(store, config, *parsed)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Returns the process exit code: 0 on success, 1 on any error (message
    on stderr).
    """
    args = list(sys.argv[1:] if argv is None else argv)

    if not args or args[0] in ("--help", "-h", "help"):
        print_help()
        return 0

    if args[0] in ("--version", "-v", "version"):
        print_version()
        return 0

    try:
        db_override, args = parse_global_options(args)
        if not args:
            raise InvalidArgumentError("missing command (see tnote --help)")

        name = args[0]
        if name == "health":
            return cmd_health(db_override)
        if name not in COMMANDS:
            raise InvalidArgumentError(f"unknown command: {name} (see tnote --help)")

        return run_command(name, args[1:], db_override)
    except TnoteError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
