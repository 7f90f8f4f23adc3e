"""
Interactive terminal browser for tnote.

prompt_toolkit front end over browser.Browser: key bindings translate
keys into browser events, input buffers hold the text being typed, and
the screen is redrawn from the browser's state after every event.
"""

import logging

from prompt_toolkit import Application
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout.containers import ConditionalContainer, HSplit, VSplit, Window
from prompt_toolkit.layout.controls import BufferControl, FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.layout.layout import Layout
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Frame

from tnote import browser as ev
from tnote.browser import AddMode, Browser, EditMode, ListMode, Stage, ViewMode
from tnote.render import STYLE, render_footer, render_main

logger = logging.getLogger(__name__)


class BrowserApp:
    """Full-screen application driving a Browser."""

    def __init__(self, browser: Browser):
        self.browser = browser
        self._synced_mode: object = None

        self.title_buffer = Buffer(multiline=False)
        self.body_buffer = Buffer(multiline=True)
        self.filter_buffer = Buffer(multiline=False, on_text_changed=self._filter_changed)

        self.kb = KeyBindings()
        self._setup_key_bindings()
        self.app = self._create_application()

    # Mode filters

    def _is_list(self) -> bool:
        mode = self.browser.mode
        return isinstance(mode, ListMode) and not mode.filtering

    def _is_filtering(self) -> bool:
        mode = self.browser.mode
        return isinstance(mode, ListMode) and mode.filtering

    def _is_view(self) -> bool:
        return isinstance(self.browser.mode, ViewMode)

    def _is_add_title(self) -> bool:
        mode = self.browser.mode
        return isinstance(mode, AddMode) and mode.stage is Stage.TITLE

    def _is_body_input(self) -> bool:
        mode = self.browser.mode
        return isinstance(mode, EditMode) or (isinstance(mode, AddMode) and mode.stage is Stage.BODY)

    def dispatch(self, event: ev.Event) -> None:
        """Send an event to the browser and bring the widgets in line."""
        logger.debug("Event %s in %s", event, type(self.browser.mode).__name__)
        self.browser.dispatch(event)
        self._sync_inputs()
        if self.browser.done and self.app.is_running:
            self.app.exit()

    def _sync_inputs(self) -> None:
        """
        Load input buffers and move focus when the mode changes.

        Entering Add/Edit fills the input with the mode's text (empty for a
        new note, the restored title when backing out of the body, the
        current body for edit).
        """
        mode = self.browser.mode
        key = (type(mode), getattr(mode, "stage", None), getattr(mode, "filtering", None))
        if key == self._synced_mode:
            return
        self._synced_mode = key

        if isinstance(mode, AddMode) and mode.stage is Stage.TITLE:
            _set_text(self.title_buffer, mode.input_text)
            self.app.layout.focus(self.title_window)
        elif isinstance(mode, (AddMode, EditMode)):
            _set_text(self.body_buffer, mode.input_text)
            self.app.layout.focus(self.body_window)
        elif isinstance(mode, ListMode) and mode.filtering:
            _set_text(self.filter_buffer, mode.filter_text)
            self.app.layout.focus(self.filter_window)
        else:
            self.app.layout.focus(self.main_window)

    def _filter_changed(self, buff: Buffer) -> None:
        if self._is_filtering():
            self.browser.dispatch(ev.FilterChanged(buff.text))

    def _title_width(self) -> Dimension:
        width = self.browser.viewport.input_width
        return Dimension(preferred=width, max=width)

    def _check_size(self, app: Application) -> None:
        """Feed terminal size changes to the browser before each redraw."""
        size = app.output.get_size()
        viewport = self.browser.viewport
        if (size.columns, size.rows) != (viewport.width, viewport.height):
            self.browser.dispatch(ev.Resize(width=size.columns, height=size.rows))

    def _setup_key_bindings(self) -> None:
        """Set up all key bindings for the application."""
        kb = self.kb
        is_list = Condition(self._is_list)
        is_filtering = Condition(self._is_filtering)
        is_view = Condition(self._is_view)
        is_add_title = Condition(self._is_add_title)
        is_body_input = Condition(self._is_body_input)

        @kb.add("c-c", eager=True)
        def quit_app(event):
            """Quit the application."""
            self.dispatch(ev.Quit())

        # List

        @kb.add("q", filter=is_list)
        def quit_from_list(event):
            self.dispatch(ev.Quit())

        @kb.add("up", filter=is_list)
        @kb.add("k", filter=is_list)
        def move_up(event):
            self.dispatch(ev.MoveUp())

        @kb.add("down", filter=is_list)
        @kb.add("j", filter=is_list)
        def move_down(event):
            self.dispatch(ev.MoveDown())

        @kb.add("enter", filter=is_list)
        def open_note(event):
            self.dispatch(ev.Select())

        @kb.add("a", filter=is_list)
        def add_note(event):
            self.dispatch(ev.New())

        @kb.add("c", filter=is_list | is_view)
        def toggle_complete(event):
            self.dispatch(ev.ToggleComplete())

        @kb.add("/", filter=is_list)
        def start_filter(event):
            self.dispatch(ev.StartFilter())

        @kb.add("escape", filter=is_list, eager=True)
        def clear_filter(event):
            self.dispatch(ev.ClearFilter())

        # Filter input

        @kb.add("enter", filter=is_filtering)
        def apply_filter(event):
            self.dispatch(ev.Confirm(self.filter_buffer.text))

        @kb.add("escape", filter=is_filtering, eager=True)
        def cancel_filter(event):
            self.dispatch(ev.Cancel(self.filter_buffer.text))

        # View

        @kb.add("e", filter=is_view)
        def edit_note(event):
            self.dispatch(ev.Edit())

        @kb.add("d", filter=is_view)
        def delete_note(event):
            self.dispatch(ev.Delete())

        @kb.add("escape", filter=is_view, eager=True)
        @kb.add("q", filter=is_view)
        def back_to_list(event):
            self.dispatch(ev.Back())

        # Add / edit

        @kb.add("enter", filter=is_add_title)
        def confirm_title(event):
            self.dispatch(ev.Confirm(self.title_buffer.text))

        @kb.add("escape", filter=is_add_title, eager=True)
        def cancel_add(event):
            self.dispatch(ev.Cancel(self.title_buffer.text))

        @kb.add("c-s", filter=is_body_input)
        def save_note(event):
            self.dispatch(ev.Save(self.body_buffer.text))

        @kb.add("escape", filter=is_body_input, eager=True)
        def cancel_body(event):
            self.dispatch(ev.Cancel(self.body_buffer.text))

    def _create_layout(self) -> Layout:
        """Create the application layout."""
        self.main_window = Window(
            content=FormattedTextControl(lambda: render_main(self.browser), focusable=True),
            wrap_lines=False,
        )
        self.filter_window = Window(
            content=BufferControl(buffer=self.filter_buffer),
            height=1,
            style="class:filter",
        )
        self.title_window = Window(
            content=BufferControl(buffer=self.title_buffer),
            height=1,
            width=self._title_width,
            style="class:input",
        )
        self.body_window = Window(
            content=BufferControl(buffer=self.body_buffer),
            wrap_lines=True,
            height=Dimension(min=3, weight=1),
            style="class:input",
        )
        footer = Window(
            content=FormattedTextControl(lambda: render_footer(self.browser)),
            height=Dimension(min=1, max=4),
        )

        body = HSplit([
            self.main_window,
            ConditionalContainer(
                VSplit([Window(FormattedTextControl("/ "), width=2), self.filter_window]),
                filter=Condition(self._is_filtering),
            ),
            ConditionalContainer(
                VSplit([self.title_window, Window()]),
                filter=Condition(self._is_add_title),
            ),
            ConditionalContainer(self.body_window, filter=Condition(self._is_body_input)),
            Window(height=1, char=" "),
            footer,
        ])
        return Layout(Frame(body, title="tnote"), focused_element=self.main_window)

    def _create_application(self) -> Application:
        app = Application(
            layout=self._create_layout(),
            key_bindings=self.kb,
            full_screen=True,
            style=Style.from_dict(STYLE),
            before_render=self._check_size,
        )
        # Escape is bound on its own; don't wait for a possible meta sequence
        app.ttimeoutlen = 0.05
        return app

    def run(self) -> None:
        """Run the main application loop."""
        self.app.run()


def _set_text(buffer: Buffer, text: str) -> None:
    buffer.set_document(Document(text, cursor_position=len(text)), bypass_readonly=True)


def run_browser(browser: Browser) -> None:
    """Run the interactive browser until the user quits."""
    BrowserApp(browser).run()
