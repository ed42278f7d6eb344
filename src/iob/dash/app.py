"""Dashboard host: ties the layout engine, renderer, and message log together.

``DashboardApp`` owns the input line, the selection, and command mode. It
turns keypresses, value changes, and resize signals into render calls, and
keeps the renderer's invalidation contract: every structural change (layout
recalculation, theme switch, mode toggle) marks the renderer for a full
redraw before the next frame.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable

from iob.dash.elements import Element, element_field, is_interactive
from iob.dash.keys import is_printable_text, parse_key
from iob.dash.layout import Layout, LayoutEngine
from iob.dash.messages import MessageLog
from iob.dash.renderer import DashboardRenderer, Selection
from iob.dash.settings import SettingsManager
from iob.dash.stdin_buffer import split_sequences
from iob.dash.theme import DEFAULT_THEME, available_schemes, get_theme

if TYPE_CHECKING:
    from iob.dash.terminal import Terminal

logger = logging.getLogger(__name__)


class DashboardApp:
    """Event-driven host loop around :class:`DashboardRenderer`."""

    def __init__(self, terminal: Terminal, settings: SettingsManager | None = None) -> None:
        self.terminal = terminal
        self.settings = settings or SettingsManager.in_memory()

        self.theme = get_theme(self.settings.theme_name()) or DEFAULT_THEME
        self.engine = LayoutEngine(
            self.settings,
            terminal_width=terminal.columns,
            terminal_height=terminal.rows,
        )
        self.renderer = DashboardRenderer(
            terminal,
            theme=self.theme,
            max_message_rows=self.settings.message_rows(),
        )
        self.messages = MessageLog(self.settings.max_messages())

        self.prompt = "> "
        self.input_text = ""
        self.command_mode = False
        self.selection: Selection | None = None
        self._selection_index = -1

        self.on_submit: Callable[[str], None] | None = None
        self.on_stop: Callable[[], None] | None = None

        self._render_requested = False
        self._resize_handle: asyncio.TimerHandle | None = None
        self._closed = False
        self._done: asyncio.Event | None = None

        self.engine.on_layout_changed = self._on_layout_changed
        self.settings.on_change = self._on_setting_changed

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def _on_layout_changed(self, layout: Layout) -> None:
        self.renderer.invalidate()
        self._validate_selection()

    def _on_setting_changed(self, key: str, value: Any) -> None:
        if key.startswith("layout."):
            self.engine.apply_settings()
            self.request_render()
        elif key == "theme.name":
            self.set_theme(str(value))

    def invalidate(self) -> None:
        self.renderer.invalidate()
        self.request_render()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_now(self) -> None:
        self.renderer.render(
            self.engine.get_layout(),
            prompt=self.prompt,
            input_text=self.input_text,
            messages=self.messages.messages,
            scroll_offset=self.messages.scroll_offset,
            selection=self.selection,
            command_mode=self.command_mode,
            theme=self.theme,
        )

    def request_render(self) -> None:
        """Schedule a render on the next event-loop tick.

        Multiple calls coalesce into a single render pass.
        """
        if self._render_requested:
            return
        self._render_requested = True
        try:
            loop = asyncio.get_running_loop()
            loop.call_soon(self._do_render_tick)
        except RuntimeError:
            # No running event loop -- render synchronously
            self._do_render_tick()

    def _do_render_tick(self) -> None:
        self._render_requested = False
        if self._closed:
            return
        self.render_now()

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def set_element_value(self, group_id: str, element_id: str, value: Any) -> bool:
        """Push a live value into an element; schedules a render when it changed."""
        element = self.engine.find_element(group_id, element_id)
        if element is None:
            return False
        if isinstance(element, Element):
            changed = element.update_value(value)
        elif isinstance(element, dict):
            changed = element.get("value") != value
            element["value"] = value
        else:
            changed = getattr(element, "value", None) != value
            element.value = value
        if changed:
            self.request_render()
        return True

    def set_theme(self, name: str) -> bool:
        theme = get_theme(name)
        if theme is None:
            self.messages.error(f"Unknown theme '{name}'. Available: {', '.join(available_schemes())}")
            self.request_render()
            return False
        self.theme = theme
        self.invalidate()
        return True

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def interactive_elements(self) -> list[tuple[str, Any]]:
        """``(group_id, element)`` pairs in on-screen order."""
        return [
            (group.id, element)
            for group in self.engine.get_layout().groups
            for element in group.elements
            if is_interactive(element)
        ]

    def _select_index(self, index: int) -> None:
        candidates = self.interactive_elements()
        if index < 0 or index >= len(candidates):
            self._selection_index = -1
            self.selection = None
        else:
            self._selection_index = index
            group_id, element = candidates[index]
            self.selection = Selection(group_id, element_field(element, "id"))
        self.request_render()

    def select_next(self) -> None:
        """Cycle none -> first -> ... -> last -> none."""
        count = len(self.interactive_elements())
        if count == 0:
            self._select_index(-1)
            return
        nxt = self._selection_index + 1
        self._select_index(nxt if nxt < count else -1)

    def select_previous(self) -> None:
        count = len(self.interactive_elements())
        if count == 0:
            self._select_index(-1)
            return
        if self._selection_index == -1:
            self._select_index(count - 1)
        else:
            self._select_index(self._selection_index - 1)

    def clear_selection(self) -> None:
        self._select_index(-1)

    def selected_element(self) -> Any:
        if self.selection is None:
            return None
        return self.engine.find_element(self.selection.group_id, self.selection.element_id)

    def _validate_selection(self) -> None:
        if self.selection is None:
            return
        candidates = self.interactive_elements()
        for index, (group_id, element) in enumerate(candidates):
            if group_id == self.selection.group_id and element_field(element, "id") == self.selection.element_id:
                self._selection_index = index
                return
        self._selection_index = -1
        self.selection = None

    def activate_selected(self) -> bool:
        """Toggle a selected switch or press a selected button."""
        element = self.selected_element()
        if element is None:
            return False
        caption = element_field(element, "caption")
        activated = False
        if isinstance(element, Element):
            if element.type == "switch":
                activated = element.toggle()
                if activated:
                    self.messages.success(f"{caption} switched {'ON' if element.value else 'OFF'}")
            elif element.type == "button":
                activated = element.trigger()
                if activated:
                    self.messages.success(f"{caption} pressed")
        if not activated:
            self.messages.warning(f"{caption} cannot be activated")
        self.request_render()
        return activated

    # ------------------------------------------------------------------
    # Command mode
    # ------------------------------------------------------------------

    def toggle_command_mode(self) -> None:
        self.command_mode = not self.command_mode
        logger.debug("Command mode %s", "on" if self.command_mode else "off")
        self.invalidate()

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        """Dispatch every key in *data*, one at a time and in order."""
        sequences, remainder = split_sequences(data)
        if remainder:
            sequences.append(remainder)
        for sequence in sequences:
            self._handle_key(sequence)
            if self._closed:
                break

    def _handle_key(self, data: str) -> None:  # noqa: C901
        key = parse_key(data)

        if key is None:
            if is_printable_text(data):
                self._insert_text(data)
            return

        match key:
            case "ctrl+c" | "ctrl+d":
                self.stop()
            case "enter":
                self._submit()
            case "escape":
                if self.selection is not None:
                    self.clear_selection()
                else:
                    self.toggle_command_mode()
            case "backspace":
                if self.input_text:
                    self.input_text = self.input_text[:-1]
                    self.request_render()
            case "tab":
                self.select_next()
            case "shift+tab":
                self.select_previous()
            case "up" | "shift+up":
                if self.messages.scroll_up():
                    self.request_render()
            case "down" | "shift+down":
                if self.messages.scroll_down():
                    self.request_render()
            case "pageUp" | "pageDown" | "left" | "right" | "home" | "end":
                element = self.selected_element()
                if isinstance(element, Element) and element.type == "slider":
                    if element.handle_key(key):
                        self.request_render()
            case "space":
                self._insert_text(" ")
            case _:
                if len(key) == 1:
                    self._insert_text(key)

    def _insert_text(self, text: str) -> None:
        self.input_text += text
        self.request_render()

    def _submit(self) -> None:
        text = self.input_text.strip()
        if not text:
            if self.selection is not None:
                self.activate_selected()
            return
        self.input_text = ""
        self.messages.info(f"> {text}")
        if self.on_submit is not None:
            self.on_submit(text)
        self.request_render()

    # ------------------------------------------------------------------
    # Resize
    # ------------------------------------------------------------------

    def handle_resize(self) -> None:
        """Debounce resize signals; the last one in a burst wins."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._apply_resize()
            return
        if self._resize_handle is not None:
            self._resize_handle.cancel()
        self._resize_handle = loop.call_later(self.settings.resize_debounce(), self._apply_resize)

    def _apply_resize(self) -> None:
        self._resize_handle = None
        self.engine.update_terminal_size(self.terminal.columns, self.terminal.rows)
        self.request_render()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._closed = False
        self.terminal.start(self.handle_input, self.handle_resize)
        self.engine.update_terminal_size(self.terminal.columns, self.terminal.rows)
        self.invalidate()

    def stop(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._resize_handle is not None:
            self._resize_handle.cancel()
            self._resize_handle = None
        self.terminal.stop()
        if self._done is not None:
            self._done.set()
        if self.on_stop is not None:
            self.on_stop()

    async def run(self) -> None:
        """Start the terminal and wait until :meth:`stop` is called."""
        self._done = asyncio.Event()
        self.start()
        try:
            await self._done.wait()
        finally:
            self.stop()
