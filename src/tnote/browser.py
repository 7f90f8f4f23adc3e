"""
Interactive browser state machine.

The browser is always in exactly one mode:

    ListMode  --Select-->  ViewMode  --Edit-->  EditMode
       |                     |
       +--New--> AddMode (TITLE --Confirm--> BODY)

Modes are immutable values carrying only what that mode needs. step()
maps (mode, event) to a new mode plus storage effects and never touches
the store itself; Browser.dispatch() runs the effects and then re-reads
every note from the store, so the screen always shows storage truth.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, NamedTuple, Sequence, Union

from tnote.errors import TnoteError
from tnote.layout import DEFAULT_SOFT_BREAK, Viewport
from tnote.models import Note
from tnote.store import Store

logger = logging.getLogger(__name__)


class Stage(Enum):
    """Which half of a new note is being typed."""
    TITLE = "title"
    BODY = "body"


# Modes

@dataclass(frozen=True)
class ListMode:
    cursor: int = 0
    filter_text: str = ""
    filtering: bool = False  # filter input has focus


@dataclass(frozen=True)
class ViewMode:
    note: Note
    origin: ListMode = field(default_factory=ListMode)


@dataclass(frozen=True)
class AddMode:
    stage: Stage = Stage.TITLE
    title: str = ""
    body: str = ""
    origin: ListMode = field(default_factory=ListMode)

    @property
    def input_text(self) -> str:
        """Text the active input should hold when this mode is entered."""
        return self.title if self.stage is Stage.TITLE else self.body


@dataclass(frozen=True)
class EditMode:
    view: ViewMode
    body: str = ""

    @property
    def input_text(self) -> str:
        return self.body


Mode = Union[ListMode, ViewMode, AddMode, EditMode]


# Events

@dataclass(frozen=True)
class MoveUp:
    pass


@dataclass(frozen=True)
class MoveDown:
    pass


@dataclass(frozen=True)
class Select:
    pass


@dataclass(frozen=True)
class New:
    pass


@dataclass(frozen=True)
class Edit:
    pass


@dataclass(frozen=True)
class Delete:
    pass


@dataclass(frozen=True)
class ToggleComplete:
    pass


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class StartFilter:
    pass


@dataclass(frozen=True)
class ClearFilter:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Confirm:
    """Enter on a single-line input; text is the input's content."""
    text: str = ""


@dataclass(frozen=True)
class Save:
    text: str = ""


@dataclass(frozen=True)
class Cancel:
    text: str = ""


@dataclass(frozen=True)
class FilterChanged:
    text: str = ""


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


Event = Union[
    MoveUp, MoveDown, Select, New, Edit, Delete, ToggleComplete, Back,
    StartFilter, ClearFilter, Quit, Confirm, Save, Cancel, FilterChanged, Resize,
]


# Effects

@dataclass(frozen=True)
class AddNote:
    title: str
    body: str


@dataclass(frozen=True)
class UpdateNote:
    note: Note


@dataclass(frozen=True)
class DeleteNote:
    note_id: int


Effect = Union[AddNote, UpdateNote, DeleteNote]


class Transition(NamedTuple):
    mode: Mode
    effects: tuple[Effect, ...] = ()


# Transitions

def _toggled(note: Note) -> Note:
    return note.model_copy(update={"completed": not note.completed})


def _list_move_up(mode: ListMode, event: MoveUp, rows: Sequence[Note]) -> Transition:
    return Transition(replace(mode, cursor=max(mode.cursor - 1, 0)))


def _list_move_down(mode: ListMode, event: MoveDown, rows: Sequence[Note]) -> Transition:
    return Transition(replace(mode, cursor=max(min(mode.cursor + 1, len(rows) - 1), 0)))


def _list_select(mode: ListMode, event: Select, rows: Sequence[Note]) -> Transition:
    if not rows:
        return Transition(mode)
    return Transition(ViewMode(note=rows[mode.cursor], origin=mode))


def _list_new(mode: ListMode, event: New, rows: Sequence[Note]) -> Transition:
    return Transition(AddMode(origin=mode))


def _list_toggle(mode: ListMode, event: ToggleComplete, rows: Sequence[Note]) -> Transition:
    if not rows:
        return Transition(mode)
    return Transition(mode, (UpdateNote(_toggled(rows[mode.cursor])),))


def _list_start_filter(mode: ListMode, event: StartFilter, rows: Sequence[Note]) -> Transition:
    return Transition(replace(mode, filtering=True))


def _list_filter_changed(mode: ListMode, event: FilterChanged, rows: Sequence[Note]) -> Transition:
    return Transition(replace(mode, filter_text=event.text, cursor=0))


def _list_confirm_filter(mode: ListMode, event: Confirm, rows: Sequence[Note]) -> Transition:
    if not mode.filtering:
        return Transition(mode)
    return Transition(replace(mode, filter_text=event.text, filtering=False))


def _list_clear_filter(mode: ListMode, event: Union[ClearFilter, Cancel], rows: Sequence[Note]) -> Transition:
    return Transition(ListMode())


def _view_back(mode: ViewMode, event: Back, rows: Sequence[Note]) -> Transition:
    return Transition(mode.origin)


def _view_edit(mode: ViewMode, event: Edit, rows: Sequence[Note]) -> Transition:
    return Transition(EditMode(view=mode, body=mode.note.body))


def _view_delete(mode: ViewMode, event: Delete, rows: Sequence[Note]) -> Transition:
    return Transition(mode.origin, (DeleteNote(mode.note.id),))


def _view_toggle(mode: ViewMode, event: ToggleComplete, rows: Sequence[Note]) -> Transition:
    note = _toggled(mode.note)
    return Transition(replace(mode, note=note), (UpdateNote(note),))


def _add_confirm(mode: AddMode, event: Confirm, rows: Sequence[Note]) -> Transition:
    if mode.stage is not Stage.TITLE:
        return Transition(mode)
    return Transition(replace(mode, stage=Stage.BODY, title=event.text, body=""))


def _add_save(mode: AddMode, event: Save, rows: Sequence[Note]) -> Transition:
    if mode.stage is not Stage.BODY:
        return Transition(mode)
    body = event.text
    title = mode.title or body.split("\n", 1)[0]
    # Newest notes sort first, so land the cursor on the new one
    done = replace(mode.origin, cursor=0)
    if not title and not body:
        return Transition(done)
    return Transition(done, (AddNote(title=title, body=body),))


def _add_cancel(mode: AddMode, event: Cancel, rows: Sequence[Note]) -> Transition:
    if mode.stage is Stage.BODY and not event.text:
        return Transition(replace(mode, stage=Stage.TITLE, body=""))
    return Transition(mode.origin)


def _edit_save(mode: EditMode, event: Save, rows: Sequence[Note]) -> Transition:
    changes = {"body": event.text}
    if not mode.view.note.title:
        changes["title"] = event.text.split("\n", 1)[0]
    note = mode.view.note.model_copy(update=changes)
    return Transition(replace(mode.view, note=note), (UpdateNote(note),))


def _edit_cancel(mode: EditMode, event: Cancel, rows: Sequence[Note]) -> Transition:
    return Transition(mode.view)


_HANDLERS: dict[tuple[type, type], Callable[..., Transition]] = {
    (ListMode, MoveUp): _list_move_up,
    (ListMode, MoveDown): _list_move_down,
    (ListMode, Select): _list_select,
    (ListMode, New): _list_new,
    (ListMode, ToggleComplete): _list_toggle,
    (ListMode, StartFilter): _list_start_filter,
    (ListMode, FilterChanged): _list_filter_changed,
    (ListMode, Confirm): _list_confirm_filter,
    (ListMode, ClearFilter): _list_clear_filter,
    (ListMode, Cancel): _list_clear_filter,
    (ViewMode, Back): _view_back,
    (ViewMode, Cancel): _view_back,
    (ViewMode, Edit): _view_edit,
    (ViewMode, Delete): _view_delete,
    (ViewMode, ToggleComplete): _view_toggle,
    (AddMode, Confirm): _add_confirm,
    (AddMode, Save): _add_save,
    (AddMode, Cancel): _add_cancel,
    (EditMode, Save): _edit_save,
    (EditMode, Cancel): _edit_cancel,
}


def step(mode: Mode, event: Event, rows: Sequence[Note] = ()) -> Transition:
    """
    Pure transition function.

    rows are the notes currently shown in the list (after filtering), used
    to resolve the highlighted note. Pairs with no handler leave the mode
    unchanged.
    """
    handler = _HANDLERS.get((type(mode), type(event)))
    if handler is None:
        return Transition(mode)
    return handler(mode, event, rows)


def list_state(mode: Mode) -> ListMode:
    """The list position a mode returns to."""
    if isinstance(mode, ListMode):
        return mode
    if isinstance(mode, EditMode):
        return mode.view.origin
    return mode.origin


def filter_notes(notes: Sequence[Note], text: str) -> list[Note]:
    """Notes whose title contains text, case-insensitively."""
    if not text:
        return list(notes)
    needle = text.lower()
    return [note for note in notes if needle in note.display_title.lower()]


def sort_for_browser(notes: Sequence[Note]) -> list[Note]:
    """Newest first."""
    return sorted(notes, key=lambda n: (n.created_at, n.id), reverse=True)


class Browser:
    """
    Browser controller.

    Holds the store handle, the current mode, the latest note list and the
    viewport. Input layers feed it events through dispatch().
    """

    def __init__(
        self,
        store: Store,
        viewport: Viewport | None = None,
        soft_break: int = DEFAULT_SOFT_BREAK,
    ):
        self.store = store
        self.viewport = viewport or Viewport()
        self.soft_break = soft_break
        self.mode: Mode = ListMode()
        self.notes: list[Note] = []
        self.banner: str | None = None
        self.done = False
        self.refresh()

    @property
    def rows(self) -> list[Note]:
        """Notes shown in the list for the current filter."""
        return filter_notes(self.notes, list_state(self.mode).filter_text)

    @property
    def highlighted(self) -> Note | None:
        rows = self.rows
        if not rows:
            return None
        return rows[min(list_state(self.mode).cursor, len(rows) - 1)]

    def dispatch(self, event: Event) -> Mode:
        """Apply one input event. Returns the new mode."""
        self.banner = None

        if isinstance(event, Resize):
            self.viewport = Viewport(width=event.width, height=event.height)
            return self.mode

        if isinstance(event, Quit):
            self.done = True
            return self.mode

        transition = step(self.mode, event, self.rows)
        for effect in transition.effects:
            self._apply(effect)
        self.mode = transition.mode

        if transition.effects:
            self.refresh()
        else:
            self.mode = self._clamped(self.mode)
        return self.mode

    def _apply(self, effect: Effect) -> None:
        """Run one storage effect. Failures become a banner, not a crash."""
        try:
            if isinstance(effect, AddNote):
                self.store.add(effect.title, effect.body)
            elif isinstance(effect, UpdateNote):
                self.store.update(effect.note)
            elif isinstance(effect, DeleteNote):
                self.store.delete(effect.note_id)
        except TnoteError as e:
            logger.warning("Failed to apply %s: %s", type(effect).__name__, e)
            self.banner = f"Error: {e}"

    def refresh(self) -> None:
        """Re-read every note from the store and reconcile the mode with it."""
        try:
            self.notes = sort_for_browser(self.store.list())
        except TnoteError as e:
            logger.warning("Failed to refresh notes: %s", e)
            self.banner = f"Error: {e}"

        if isinstance(self.mode, ViewMode):
            fresh = self._find(self.mode.note.id)
            if fresh is None:
                self.mode = self.mode.origin
            else:
                self.mode = replace(self.mode, note=fresh)
        self.mode = self._clamped(self.mode)

    def _find(self, note_id: int) -> Note | None:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    def _clamped(self, mode: Mode) -> Mode:
        """Keep the list cursor on an existing row."""
        if not isinstance(mode, ListMode):
            return mode
        count = len(filter_notes(self.notes, mode.filter_text))
        cursor = min(mode.cursor, max(count - 1, 0))
        if cursor == mode.cursor:
            return mode
        return replace(mode, cursor=cursor)
