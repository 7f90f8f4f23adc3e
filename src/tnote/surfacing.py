"""
Surfacing module for tnote.

Plain-text output for the non-interactive commands. `list` and `view`
print stable, script-friendly formats; `find` is for humans and uses color.
"""

import os
import sys
from datetime import datetime

from tnote.models import Note
from tnote.store import Store


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    GREEN = "\033[32m"
    BLUE = "\033[34m"

    @classmethod
    def enabled(cls) -> bool:
        """Check if colors should be enabled."""
        # Disable if NO_COLOR is set or not a tty
        if os.environ.get("NO_COLOR"):
            return False
        return sys.stdout.isatty()


def c(text: str, *codes: str) -> str:
    """Apply color codes to text if colors are enabled."""
    if not Colors.enabled():
        return text
    return "".join(codes) + text + Colors.RESET


def format_date(created_at: datetime) -> str:
    """Date column for `list` (YYYY-MM-DD, UTC)."""
    return created_at.strftime("%Y-%m-%d")


def format_rfc3339(created_at: datetime) -> str:
    """Full UTC timestamp for `view`, e.g. 2026-10-18T05:49:00Z."""
    return created_at.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_list_row(note: Note) -> str:
    return f"{note.id}\t{format_date(note.created_at)}\t{note.title}"


def get_notes_formatted(store: Store) -> str:
    """All notes, one `id<TAB>date<TAB>title` row each, ascending by ID."""
    notes = sorted(store.list(), key=lambda n: n.id)
    return "\n".join(format_list_row(note) for note in notes)


def format_note(note: Note) -> str:
    """Full record for `view`."""
    return (
        f"ID: {note.id}\n"
        f"Title: {note.title}\n"
        f"Date: {format_rfc3339(note.created_at)}\n"
        f"\n"
        f"{note.body}"
    )


def find_notes(store: Store, query: str) -> list[Note]:
    """Linear scan for notes whose title or body contains query (case-insensitive)."""
    needle = query.lower()
    matches = [
        note for note in store.list()
        if needle in note.title.lower() or needle in note.body.lower()
    ]
    return sorted(matches, key=lambda n: n.id)


def search_notes_formatted(store: Store, query: str) -> str:
    """Search notes and return formatted string with colors."""
    notes = find_notes(store, query)

    if not notes:
        return c(f"No notes matching '{query}'.", Colors.DIM)

    lines = []

    # Header
    lines.append(c(f"━━━ SEARCH: {query} ━━━", Colors.BOLD, Colors.BLUE))
    lines.append("")

    # Column header
    lines.append(c(f"{'ID':>6}  {'DATE':10}  TITLE", Colors.DIM))
    lines.append(c("─" * 70, Colors.DIM))

    for note in notes:
        title = note.display_title[:50]
        extra = c(" [done]", Colors.GREEN) if note.completed else ""

        id_str = c(f"{note.id:>6}", Colors.BOLD)
        date_str = c(format_date(note.created_at), Colors.DIM)

        lines.append(f"{id_str}  {date_str}  {title}{extra}")

    return "\n".join(lines)
