"""
Text layout for the browser.

Soft breaks for long unbroken tokens, greedy word wrapping, and viewport
sizing that never collapses below a usable minimum.
"""

import re
from dataclasses import dataclass

ZERO_WIDTH_SPACE = "\u200b"
DEFAULT_SOFT_BREAK = 30

DEFAULT_WIDTH = 70
DEFAULT_HEIGHT = 22

MIN_LIST_WIDTH = 10
MIN_LIST_HEIGHT = 3
MIN_CONTENT_WIDTH = 10

# Each list row is a title line, a description line and a gap
LINES_PER_ROW = 3

_BREAK_RE = re.compile("(\\s+|\u200b)")


def soft_break(text: str, max_token_len: int = DEFAULT_SOFT_BREAK) -> str:
    """
    Insert a zero-width space after every run of max_token_len
    non-whitespace characters, so long URLs can wrap.

    The visible text is unchanged; strip_soft_breaks() undoes it.
    """
    if max_token_len <= 1:
        return text

    out = []
    run = 0
    for ch in text:
        out.append(ch)
        if ch in " \n\t\r":
            run = 0
            continue
        run += 1
        if run >= max_token_len:
            out.append(ZERO_WIDTH_SPACE)
            run = 0
    return "".join(out)


def strip_soft_breaks(text: str) -> str:
    return text.replace(ZERO_WIDTH_SPACE, "")


def wrap(text: str, width: int) -> list[str]:
    """
    Wrap text to lines no wider than width.

    Breaks at whitespace and zero-width spaces; chunks still wider than
    width are hard-split. Newlines in the text always start a new line.
    """
    width = max(width, 1)
    lines: list[str] = []

    for paragraph in text.split("\n"):
        current = ""
        for piece in _BREAK_RE.split(paragraph):
            if not piece or piece == ZERO_WIDTH_SPACE:
                continue
            if piece.isspace():
                # Keep interior spacing, drop it at line starts
                if current and len(current) + 1 <= width:
                    current += " "
                continue
            while len(piece) > width:
                if current.strip():
                    lines.append(current.rstrip())
                    current = ""
                lines.append(piece[:width])
                piece = piece[width:]
            if len(current) + len(piece) > width:
                lines.append(current.rstrip())
                current = ""
            current += piece
        lines.append(current.rstrip())

    return lines


def truncate(text: str, width: int, ellipsis: str = "…") -> str:
    """Cut a single line to width, marking the cut."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width <= len(ellipsis):
        return text[:width]
    return text[: width - len(ellipsis)] + ellipsis


@dataclass(frozen=True)
class Viewport:
    """Terminal dimensions and the sizes derived from them."""

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT

    @property
    def list_width(self) -> int:
        return max(self.width - 6, MIN_LIST_WIDTH)

    @property
    def list_height(self) -> int:
        return max(self.height - 8, MIN_LIST_HEIGHT)

    @property
    def content_width(self) -> int:
        """Width available for the note body in the detail view."""
        return max(self.width - 8, MIN_CONTENT_WIDTH)

    @property
    def input_width(self) -> int:
        return max(self.list_width - 6, MIN_CONTENT_WIDTH)

    @property
    def visible_rows(self) -> int:
        """How many notes fit in the list at once."""
        return max(self.list_height // LINES_PER_ROW, 1)


def page_window(cursor: int, total: int, rows: int) -> range:
    """
    Indexes of the rows to draw so the cursor stays on screen.

    Pages are fixed blocks of `rows` entries, like a paginated list.
    """
    rows = max(rows, 1)
    if total <= 0:
        return range(0)
    cursor = min(max(cursor, 0), total - 1)
    start = (cursor // rows) * rows
    return range(start, min(start + rows, total))
