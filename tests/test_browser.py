"""Tests for the interactive browser state machine."""

import pytest

from tnote.browser import (
    AddMode,
    AddNote,
    Back,
    Browser,
    Cancel,
    ClearFilter,
    Confirm,
    Delete,
    DeleteNote,
    Edit,
    EditMode,
    FilterChanged,
    ListMode,
    MoveDown,
    MoveUp,
    New,
    Quit,
    Resize,
    Save,
    Select,
    Stage,
    StartFilter,
    ToggleComplete,
    UpdateNote,
    ViewMode,
    step,
)
from tnote.models import Note


def make_notes(*titles):
    return [Note(id=i, title=t, body=f"{t} body") for i, t in enumerate(titles, start=1)]


@pytest.fixture
def browser(store):
    store.add("oldest", "first body")
    store.add("middle", "second body")
    store.add("newest", "third body")
    return Browser(store)


# Pure transitions

def test_step_unknown_pair_is_noop():
    mode = ViewMode(note=make_notes("a")[0])

    assert step(mode, MoveDown(), []) == (mode, ())


def test_step_list_cursor_is_clamped():
    rows = make_notes("a", "b")

    assert step(ListMode(cursor=0), MoveUp(), rows).mode.cursor == 0
    assert step(ListMode(cursor=1), MoveDown(), rows).mode.cursor == 1
    assert step(ListMode(cursor=0), MoveDown(), []).mode.cursor == 0


def test_step_select_on_empty_list_stays():
    assert step(ListMode(), Select(), []).mode == ListMode()


def test_step_list_toggle_targets_highlighted_row():
    rows = make_notes("a", "b")

    mode, effects = step(ListMode(cursor=1), ToggleComplete(), rows)

    assert mode == ListMode(cursor=1)
    assert effects == (UpdateNote(rows[1].model_copy(update={"completed": True})),)


def test_step_add_title_then_body():
    mode, effects = step(AddMode(), Confirm("Groceries"), [])

    assert mode.stage is Stage.BODY
    assert mode.title == "Groceries"
    assert mode.input_text == ""
    assert effects == ()


def test_step_add_save_derives_title_from_first_body_line():
    mode = AddMode(stage=Stage.BODY, title="")

    _, effects = step(mode, Save("first line\nsecond"), [])

    assert effects == (AddNote(title="first line", body="first line\nsecond"),)


def test_step_add_save_with_nothing_typed_discards():
    mode, effects = step(AddMode(stage=Stage.BODY), Save(""), [])

    assert isinstance(mode, ListMode)
    assert effects == ()


def test_step_add_body_cancel_with_empty_body_restores_title():
    mode, _ = step(AddMode(stage=Stage.BODY, title="Draft"), Cancel(""), [])

    assert mode.stage is Stage.TITLE
    assert mode.input_text == "Draft"


def test_step_add_body_cancel_with_text_discards():
    origin = ListMode(cursor=2)

    mode, effects = step(AddMode(stage=Stage.BODY, title="Draft", origin=origin), Cancel("typed"), [])

    assert mode == origin
    assert effects == ()


def test_step_view_delete_returns_to_origin():
    note = make_notes("a")[0]
    origin = ListMode(cursor=0, filter_text="a")

    mode, effects = step(ViewMode(note=note, origin=origin), Delete(), [note])

    assert mode == origin
    assert effects == (DeleteNote(note.id),)


def test_step_edit_save_merges_body_into_selected_note():
    note = make_notes("a")[0]
    view = ViewMode(note=note)

    mode, effects = step(EditMode(view=view, body=note.body), Save("rewritten"), [])

    assert isinstance(mode, ViewMode)
    assert mode.note.body == "rewritten"
    assert mode.note.title == "a"
    assert effects == (UpdateNote(mode.note),)


# Browser against a real store

def test_list_is_newest_first(browser):
    assert [n.title for n in browser.rows] == ["newest", "middle", "oldest"]
    assert browser.highlighted.title == "newest"


def test_select_and_back(browser):
    browser.dispatch(MoveDown())
    browser.dispatch(Select())

    assert isinstance(browser.mode, ViewMode)
    assert browser.mode.note.title == "middle"

    browser.dispatch(Back())

    assert browser.mode == ListMode(cursor=1)


def test_toggle_in_list_then_reopen_shows_completed(browser, store):
    browser.dispatch(ToggleComplete())
    browser.dispatch(Select())

    assert browser.mode.note.completed is True
    assert store.get(browser.mode.note.id).completed is True

    browser.dispatch(ToggleComplete())

    assert isinstance(browser.mode, ViewMode)
    assert browser.mode.note.completed is False
    assert store.get(browser.mode.note.id).completed is False


def test_add_with_title_and_multiline_body(browser, store):
    browser.dispatch(New())
    browser.dispatch(Confirm("Packing list"))
    browser.dispatch(Save("socks\nshirts\n\ncharger"))

    notes = store.list()
    assert len(notes) == 4
    added = max(notes, key=lambda n: n.id)
    assert added.title == "Packing list"
    assert added.body == "socks\nshirts\n\ncharger"
    assert isinstance(browser.mode, ListMode)
    assert browser.highlighted.id == added.id


def test_add_cancel_without_typing_creates_nothing(store):
    browser = Browser(store)

    browser.dispatch(New())
    browser.dispatch(Cancel(""))

    assert isinstance(browser.mode, ListMode)
    assert store.list() == []


def test_add_empty_title_and_body_is_discarded(store):
    browser = Browser(store)

    browser.dispatch(New())
    browser.dispatch(Confirm(""))
    browser.dispatch(Save(""))

    assert store.list() == []
    assert browser.banner is None


def test_add_back_to_title_keeps_typed_title(store):
    browser = Browser(store)

    browser.dispatch(New())
    browser.dispatch(Confirm("Typed"))
    browser.dispatch(Cancel(""))

    assert browser.mode == AddMode(stage=Stage.TITLE, title="Typed")

    browser.dispatch(Confirm("Typed again"))
    browser.dispatch(Save("body"))

    assert [n.title for n in store.list()] == ["Typed again"]


def test_edit_saves_body_and_keeps_identity(browser, store):
    browser.dispatch(Select())
    original = browser.mode.note

    browser.dispatch(Edit())
    assert browser.mode == EditMode(view=ViewMode(note=original), body="third body")

    browser.dispatch(Save("third body, revised"))

    assert isinstance(browser.mode, ViewMode)
    assert browser.mode.note.body == "third body, revised"
    stored = store.get(original.id)
    assert stored.body == "third body, revised"
    assert stored.created_at == original.created_at


def test_edit_cancel_returns_to_view_unchanged(browser, store):
    browser.dispatch(Select())
    note = browser.mode.note
    browser.dispatch(Edit())

    browser.dispatch(Cancel("scratch that"))

    assert browser.mode == ViewMode(note=note)
    assert store.get(note.id).body == note.body


def test_delete_from_view_refreshes_list(browser, store):
    browser.dispatch(MoveDown())
    browser.dispatch(MoveDown())
    browser.dispatch(Select())
    browser.dispatch(Delete())

    assert isinstance(browser.mode, ListMode)
    assert [n.title for n in browser.rows] == ["newest", "middle"]
    assert browser.mode.cursor == 1
    assert len(store.list()) == 2


def test_failed_mutation_shows_banner_and_still_refreshes(browser, store):
    stale = browser.highlighted
    store.delete(stale.id)

    browser.dispatch(ToggleComplete())

    assert browser.banner is not None
    assert "not found" in browser.banner
    assert stale.id not in [n.id for n in browser.rows]
    assert isinstance(browser.mode, ListMode)

    browser.dispatch(MoveDown())
    assert browser.banner is None


def test_view_falls_back_to_list_when_note_vanishes(browser, store):
    browser.dispatch(Select())
    store.delete(browser.mode.note.id)

    browser.dispatch(ToggleComplete())

    assert isinstance(browser.mode, ListMode)


def test_filter_narrows_rows(browser):
    browser.dispatch(StartFilter())
    browser.dispatch(FilterChanged("MID"))

    assert [n.title for n in browser.rows] == ["middle"]

    browser.dispatch(Confirm("MID"))
    assert browser.mode == ListMode(cursor=0, filter_text="MID", filtering=False)

    browser.dispatch(Select())
    assert browser.mode.note.title == "middle"

    browser.dispatch(Back())
    browser.dispatch(ClearFilter())
    assert len(browser.rows) == 3


def test_resize_recomputes_viewport(browser):
    browser.dispatch(Resize(width=120, height=40))
    assert browser.viewport.content_width == 112

    browser.dispatch(Resize(width=1, height=1))
    assert browser.viewport.visible_rows == 1
    assert browser.viewport.content_width == 10


def test_quit_sets_done(browser):
    browser.dispatch(Quit())

    assert browser.done is True
