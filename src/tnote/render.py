"""
Rendering for the interactive browser.

Every function returns prompt_toolkit formatted text: a list of
(style, text) fragments. Style names refer to classes in STYLE.
"""

from datetime import datetime

from tnote.browser import AddMode, Browser, EditMode, ListMode, Stage, ViewMode, list_state
from tnote.layout import Viewport, page_window, soft_break, truncate, wrap
from tnote.models import Note

Fragments = list[tuple[str, str]]

DONE_MARK = "✅"
OPEN_MARK = "❌"

STYLE = {
    "frame.border": "#7b68ee",
    "title": "#7b68ee bold",
    "body": "#dcdcdc",
    "timestamp": "#888888 italic",
    "completed": "#32cd32",
    "selected": "bg:#3a3a5a #ffffff bold",
    "description": "#888888",
    "selected-description": "bg:#3a3a5a #bbbbbb",
    "status": "#888888",
    "help": "#888888",
    "stage": "bold",
    "banner": "#ff5f5f bold",
    "filter": "#ffd75f",
    "input": "",
}

LIST_HELP = "(a) add • (enter) view • (c) toggle complete • / filter • (q) quit"
FILTER_HELP = "(enter) apply filter • (esc) clear"
VIEW_HELP = "(e) edit • (d) delete • (c) toggle complete • (esc) back"
ADD_TITLE_HELP = "(enter) go to body • (esc) cancel"
ADD_BODY_HELP = "(ctrl+s) save • (esc) back to title"
EDIT_HELP = "(ctrl+s) save • (esc) cancel"


def format_timestamp(created_at: datetime) -> str:
    """Short local timestamp for list rows, e.g. '18 Oct 05:49'."""
    return created_at.astimezone().strftime("%d %b %H:%M")


def note_heading(note: Note, width: int) -> Fragments:
    """'<title> <mark> <timestamp>' for a note, cut to width."""
    mark = DONE_MARK if note.completed else OPEN_MARK
    stamp = format_timestamp(note.created_at)
    # Marks are double-width in most terminals
    room = max(width - len(stamp) - 4, 1)
    title = truncate(note.display_title, room)
    return [
        ("class:completed" if note.completed else "", title),
        ("", f" {mark} "),
        ("class:timestamp", stamp),
    ]


def render_row(note: Note, selected: bool, width: int) -> Fragments:
    """Two lines: heading and the first line of the body."""
    prefix = "│ " if selected else "  "
    heading = note_heading(note, width - len(prefix))
    if selected:
        heading = [("class:selected " + style, text) for style, text in heading]
    description = truncate(note.first_line, width - len(prefix))
    return [
        ("class:selected" if selected else "", prefix),
        *heading,
        ("", "\n"),
        ("class:selected" if selected else "", prefix),
        ("class:selected-description" if selected else "class:description", description),
        ("", "\n"),
    ]


def render_pager(cursor: int, total: int, rows: int) -> str:
    """Paginator dots: one per page, the current page filled."""
    rows = max(rows, 1)
    pages = max((total + rows - 1) // rows, 1)
    if pages == 1:
        return ""
    current = min(cursor // rows, pages - 1)
    return "".join("•" if page == current else "-" for page in range(pages))


def render_list(browser: Browser) -> Fragments:
    """Note list with filter line, pager and status line."""
    state = list_state(browser.mode)
    viewport = browser.viewport
    rows = browser.rows
    out: Fragments = [("class:title", "Notes"), ("", "\n\n")]

    if state.filter_text and not state.filtering:
        out += [("class:filter", f"Filter: {state.filter_text}"), ("", "\n\n")]

    if not rows:
        out.append(("class:status", "No notes." if not state.filter_text else "No matching notes."))
        out.append(("", "\n"))
    for index in page_window(state.cursor, len(rows), viewport.visible_rows):
        out += render_row(rows[index], index == state.cursor, viewport.list_width)
        out.append(("", "\n"))

    pager = render_pager(state.cursor, len(rows), viewport.visible_rows)
    if pager:
        out += [("class:status", pager), ("", "\n")]
    return out


def render_status(browser: Browser) -> Fragments:
    """Key hints and note count under the list."""
    state = list_state(browser.mode)
    shown = len(browser.rows)
    count = f" {shown} notes " if shown == len(browser.notes) else f" {shown}/{len(browser.notes)} notes "
    return [
        ("class:status", f"(↑/k up • ↓/j down • / filter) •{count}"),
        ("", "\n"),
        ("class:help", FILTER_HELP if state.filtering else LIST_HELP),
    ]


def render_view(note: Note, viewport: Viewport, soft_break_len: int) -> Fragments:
    """Detail view: full title, then the body, both wrapped to the content width."""
    width = viewport.content_width
    title_style = "class:title class:completed" if note.completed else "class:title"
    mark = DONE_MARK if note.completed else OPEN_MARK
    stamp = format_timestamp(note.created_at)

    out: Fragments = []
    title_lines = wrap(soft_break(note.display_title, soft_break_len), width - 2) or [""]
    for line in title_lines[:-1]:
        out += [(title_style, " " + line), ("", "\n")]
    last = title_lines[-1]
    out.append((title_style, " " + last))
    # Marks are double-width in most terminals
    if len(last) + len(stamp) + 5 > width:
        out.append(("", "\n"))
    out += [("", f" {mark} "), ("class:title class:timestamp", stamp), ("", "\n\n")]

    for line in wrap(soft_break(note.body, soft_break_len), width - 4):
        out += [("class:body", "  " + line), ("", "\n")]
    return out


def render_stage(mode: AddMode | EditMode) -> Fragments:
    if isinstance(mode, EditMode):
        return [("class:stage", "Edit Note — Body (Ctrl+S to save)")]
    if mode.stage is Stage.TITLE:
        return [("class:stage", "Add Note — Title")]
    return [
        ("class:stage", "Add Note — Body (Ctrl+S to save)"),
        ("", "\n"),
        ("class:help", f"Title: {mode.title}" if mode.title else "Title: (first line of body)"),
    ]


def render_main(browser: Browser) -> Fragments:
    """Everything above the input widgets for the current mode."""
    mode = browser.mode
    if isinstance(mode, ViewMode):
        return render_view(mode.note, browser.viewport, browser.soft_break)
    if isinstance(mode, (AddMode, EditMode)):
        return render_stage(mode)
    return render_list(browser)


def render_footer(browser: Browser) -> Fragments:
    """Help line for the current mode, preceded by any error banner."""
    mode = browser.mode
    out: Fragments = []
    if browser.banner:
        out += [("class:banner", browser.banner), ("", "\n")]

    if isinstance(mode, ListMode):
        out += render_status(browser)
    elif isinstance(mode, ViewMode):
        out.append(("class:help", VIEW_HELP))
    elif isinstance(mode, EditMode):
        out.append(("class:help", EDIT_HELP))
    elif mode.stage is Stage.TITLE:
        out.append(("class:help", ADD_TITLE_HELP))
    else:
        out.append(("class:help", ADD_BODY_HELP))
    return out


def fragments_text(fragments: Fragments) -> str:
    """Plain text of a fragment list."""
    return "".join(text for _, text in fragments)
