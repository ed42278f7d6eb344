"""Incremental dashboard renderer.

The renderer has two states. While uninitialized, the next call clears the
screen and paints everything (groups, message region, input box). Once
initialized, a call repaints only the element cells whose value or
selection changed since they were last painted, then always redraws the
message region and the input line and finally parks the cursor at the
input caret.

The renderer cannot see structural edits (groups added or moved, theme
or mode switched). Whoever makes one calls :meth:`DashboardRenderer.invalidate`
before the next render.

All escape sequences produced by one call are collected in a buffer and
handed to ``terminal.write`` once.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import grapheme

from iob.dash.elements import SPARK_LENGTH, element_field, render_element
from iob.dash.layout import Group, Layout
from iob.dash.messages import Message
from iob.dash.terminal import CLEAR_SCREEN, CLEAR_TO_EOL, HIDE_CURSOR, SHOW_CURSOR, move_to
from iob.dash.theme import DEFAULT_THEME, RESET, Theme, colorize
from iob.dash.utils import strip_ansi, truncate_to_width, visible_width

if TYPE_CHECKING:
    from iob.dash.terminal import Terminal

logger = logging.getLogger(__name__)

HIGHLIGHT_TYPES = frozenset({"button", "switch"})

MORE_ABOVE = "▲ ••• more messages above ••• (↑ to scroll)"
MORE_BELOW = "▼ ••• more messages below ••• (↓ to scroll)"

_MESSAGE_PREFIXES: dict[str, tuple[str, str]] = {
    "success": ("[OK] ", "active"),
    "error": ("[ERROR] ", "error"),
    "info": ("[INFO] ", "neutral"),
    "warning": ("[WARN] ", "warning"),
}


# ---------------------------------------------------------------------------
# Frame snapshot types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Selection:
    group_id: str
    element_id: str


@dataclass
class FrameCell:
    """What was last painted into one element row."""

    value: Any
    selected: bool
    x: int
    y: int


@dataclass(frozen=True)
class FrameElement:
    id: Any
    type: Any
    caption: Any
    value: Any


@dataclass(frozen=True)
class FrameGroup:
    id: str
    title: str
    x: int
    y: int
    width: int
    height: int
    column: int
    elements: tuple[FrameElement, ...]


@dataclass(frozen=True)
class PreviousFrame:
    groups: tuple[FrameGroup, ...]
    columns: int
    total_height: int
    terminal_width: int
    terminal_height: int
    needs_scrolling: bool


def cell_value(element: Any) -> Any:
    """What a painted row depends on besides selection.

    A sparkline also shows its recent samples, and a repeated sample leaves
    ``value`` unchanged while the drawn line moves.
    """
    value = element_field(element, "value")
    if element_field(element, "type") == "sparkline":
        return value, tuple((element_field(element, "history") or ())[-SPARK_LENGTH:])
    return value


def snapshot_layout(layout: Layout) -> PreviousFrame:
    """Copy the scalar parts of *layout*; no live element is referenced."""
    return PreviousFrame(
        groups=tuple(
            FrameGroup(
                id=group.id,
                title=group.title,
                x=group.x,
                y=group.y,
                width=group.width,
                height=group.height,
                column=group.column,
                elements=tuple(
                    FrameElement(
                        id=element_field(element, "id"),
                        type=element_field(element, "type"),
                        caption=element_field(element, "caption"),
                        value=element_field(element, "value"),
                    )
                    for element in group.elements
                ),
            )
            for group in layout.groups
        ),
        columns=layout.columns,
        total_height=layout.total_height,
        terminal_width=layout.terminal_width,
        terminal_height=layout.terminal_height,
        needs_scrolling=layout.needs_scrolling,
    )


# ---------------------------------------------------------------------------
# Geometry and formatting helpers
# ---------------------------------------------------------------------------


def cell_geometry(group: Group, show_borders: bool) -> tuple[int, int]:
    """``(x, width)`` of the element cells inside *group*."""
    if show_borders:
        return group.x + 2, group.width - 4
    return group.x, group.width


def content_top(group: Group, show_borders: bool) -> int:
    """Row of the first element; the border or a bare title takes one row."""
    if show_borders or group.title:
        return group.y + 1
    return group.y


def format_cell(text: str, width: int, highlighted: bool, theme: Theme) -> str:
    """Fit rendered element *text* into exactly *width* columns.

    A highlighted cell drops the element's own colours and paints the text
    with the selection colours. Both variants end with a reset followed by
    plain spaces, so no background leaks past the text.
    """
    content = truncate_to_width(text, width)
    if highlighted:
        body = theme.selected_bg + theme.selected_text + strip_ansi(content)
    else:
        body = RESET + content
    return body + RESET + " " * max(0, width - visible_width(content))


def format_message(message: Message | str, width: int, theme: Theme) -> str:
    if width <= 0:
        return ""
    if isinstance(message, str):
        return truncate_to_width(message, width)
    prefix_spec = _MESSAGE_PREFIXES.get(message.type)
    if prefix_spec is None:
        return truncate_to_width(message.text, width)
    prefix, role = prefix_spec
    if len(prefix) >= width:
        return truncate_to_width(colorize(prefix, getattr(theme, role)), width)
    return colorize(prefix, getattr(theme, role)) + truncate_to_width(message.text, width - len(prefix))


def message_window(
    messages: Sequence[Any],
    rows: int,
    scroll_offset: int,
) -> tuple[list[Any], bool, bool]:
    """Pick the messages visible in *rows* rows.

    Returns ``(visible, more_above, more_below)``; each indicator takes one
    of the rows. ``scroll_offset`` counts messages hidden below the window.
    """
    total = len(messages)
    offset = max(0, min(scroll_offset, max(0, total - 1)))
    end = total - offset
    slots = rows
    more_below = offset > 0
    if more_below:
        slots -= 1
    start = max(0, end - max(0, slots))
    more_above = start > 0
    if more_above and slots > 0:
        start += 1
    return list(messages[start:end]), more_above, more_below


# ---------------------------------------------------------------------------
# DashboardRenderer
# ---------------------------------------------------------------------------


class DashboardRenderer:
    """Paints :class:`Layout` values onto a terminal, repainting only changes."""

    def __init__(
        self,
        terminal: Terminal,
        theme: Theme = DEFAULT_THEME,
        input_area_height: int = 3,
        max_message_rows: int = 8,
    ) -> None:
        self.terminal = terminal
        self.theme = theme
        self.input_area_height = input_area_height
        self.max_message_rows = max(3, max_message_rows)

        self.initialized: bool = False
        self.frame_cells: dict[str, FrameCell] = {}
        self.previous_frame: PreviousFrame | None = None
        self._message_top: int | None = None

        # Metrics
        self._full_redraw_count: int = 0
        self._cell_writes: int = 0
        self.cells_painted: int = 0

    @property
    def full_redraws(self) -> int:
        return self._full_redraw_count

    @property
    def cell_writes(self) -> int:
        return self._cell_writes

    def invalidate(self) -> None:
        """Force a full redraw on the next render call."""
        self.initialized = False
        self.frame_cells.clear()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def render(
        self,
        layout: Layout,
        *,
        prompt: str = "> ",
        input_text: str = "",
        messages: Sequence[Message | str] = (),
        scroll_offset: int = 0,
        selection: Selection | None = None,
        command_mode: bool = False,
        theme: Theme | None = None,
    ) -> None:
        if not self.initialized:
            self.initial_render(
                layout,
                prompt=prompt,
                input_text=input_text,
                messages=messages,
                scroll_offset=scroll_offset,
                selection=selection,
                command_mode=command_mode,
                theme=theme,
            )
        else:
            self.update_render(
                layout,
                prompt=prompt,
                input_text=input_text,
                messages=messages,
                scroll_offset=scroll_offset,
                selection=selection,
                command_mode=command_mode,
                theme=theme,
            )

    def initial_render(
        self,
        layout: Layout,
        *,
        prompt: str = "> ",
        input_text: str = "",
        messages: Sequence[Message | str] = (),
        scroll_offset: int = 0,
        selection: Selection | None = None,
        command_mode: bool = False,
        theme: Theme | None = None,
    ) -> None:
        """Clear the screen and paint the whole frame."""
        if theme is not None:
            self.theme = theme
        self.cells_painted = 0
        self._full_redraw_count += 1
        logger.debug(
            "Full redraw #%d at %dx%d (%d groups)",
            self._full_redraw_count,
            layout.terminal_width,
            layout.terminal_height,
            len(layout.groups),
        )

        out: list[str] = [CLEAR_SCREEN, HIDE_CURSOR]

        self.frame_cells.clear()
        if not command_mode:
            for group in layout.groups:
                self._draw_group(out, layout, group, selection)

        self._draw_message_area(out, layout, messages, scroll_offset, command_mode)
        self._draw_input_box(out, layout, prompt, input_text)

        self.previous_frame = snapshot_layout(layout)
        self.initialized = True

        out.append(self._caret(layout, prompt, input_text))
        out.append(SHOW_CURSOR)
        self.terminal.write("".join(out))

    def update_render(
        self,
        layout: Layout,
        *,
        prompt: str = "> ",
        input_text: str = "",
        messages: Sequence[Message | str] = (),
        scroll_offset: int = 0,
        selection: Selection | None = None,
        command_mode: bool = False,
        theme: Theme | None = None,
    ) -> None:
        """Repaint changed cells, the message region, and the input line."""
        kwargs: dict[str, Any] = dict(
            prompt=prompt,
            input_text=input_text,
            messages=messages,
            scroll_offset=scroll_offset,
            selection=selection,
            command_mode=command_mode,
            theme=theme,
        )
        if not self.initialized:
            self.initial_render(layout, **kwargs)
            return

        frame = self.previous_frame
        if frame is not None and (
            frame.terminal_width != layout.terminal_width or frame.terminal_height != layout.terminal_height
        ):
            logger.debug("Terminal size changed without invalidation; redrawing")
            self.invalidate()
            self.initial_render(layout, **kwargs)
            return

        new_top = self._message_area_top(layout, len(messages), command_mode)
        if self._message_top is not None and new_top > self._message_top:
            # Rows the message region gave up would keep stale content
            self.invalidate()
            self.initial_render(layout, **kwargs)
            return

        if theme is not None:
            self.theme = theme
        self.cells_painted = 0

        out: list[str] = [HIDE_CURSOR]

        if command_mode:
            self._clear_dashboard_area(out, layout, len(messages), command_mode)
        else:
            self._update_changed_cells(out, layout, selection)

        self._draw_message_area(out, layout, messages, scroll_offset, command_mode)
        self._draw_input_line(out, layout, prompt, input_text)

        self.previous_frame = snapshot_layout(layout)

        out.append(self._caret(layout, prompt, input_text))
        out.append(SHOW_CURSOR)
        self.terminal.write("".join(out))

    # ------------------------------------------------------------------
    # Groups and cells
    # ------------------------------------------------------------------

    def _draw_group(self, out: list[str], layout: Layout, group: Group, selection: Selection | None) -> None:
        height_limit = layout.terminal_height
        if group.y >= height_limit:
            return

        if layout.show_borders:
            self._draw_border(out, group.x, group.y, group.width, group.height, group.title, height_limit)
        elif group.title:
            out.append(move_to(group.x, group.y))
            out.append(truncate_to_width(colorize(group.title, self.theme.title), group.width))

        y = content_top(group, layout.show_borders)
        for element in group.elements:
            self._paint_cell(out, layout, group, element, y, self._is_selected(group, element, selection))
            y += 1

    def _update_changed_cells(self, out: list[str], layout: Layout, selection: Selection | None) -> None:
        for group in layout.groups:
            y = content_top(group, layout.show_borders)
            for element in group.elements:
                selected = self._is_selected(group, element, selection)
                cell = self.frame_cells.get(self._cell_key(group, element))
                if cell is None or cell.value != cell_value(element) or cell.selected != selected:
                    self._paint_cell(out, layout, group, element, y, selected)
                y += 1

    def _paint_cell(
        self,
        out: list[str],
        layout: Layout,
        group: Group,
        element: Any,
        y: int,
        selected: bool,
    ) -> None:
        x, width = cell_geometry(group, layout.show_borders)
        if width <= 0 or y >= layout.terminal_height:
            return

        text = render_element(element, width, self.theme, selected)
        highlighted = selected and element_field(element, "type") in HIGHLIGHT_TYPES

        out.append(move_to(x, y))
        out.append(format_cell(text, width, highlighted, self.theme))
        if layout.show_borders:
            out.append(move_to(group.x + group.width - 1, y))
            out.append(colorize(self.theme.border_style.vertical, self.theme.border))

        self.frame_cells[self._cell_key(group, element)] = FrameCell(
            value=cell_value(element),
            selected=selected,
            x=x,
            y=y,
        )
        self.cells_painted += 1
        self._cell_writes += 1

    @staticmethod
    def _cell_key(group: Group, element: Any) -> str:
        return f"{group.id}:{element_field(element, 'id')}"

    @staticmethod
    def _is_selected(group: Group, element: Any, selection: Selection | None) -> bool:
        return (
            selection is not None
            and selection.group_id == group.id
            and selection.element_id == element_field(element, "id")
        )

    def _draw_border(
        self,
        out: list[str],
        x: int,
        y: int,
        width: int,
        height: int,
        title: str,
        height_limit: int,
    ) -> None:
        if height < 2 or width < 2:
            return
        style = self.theme.border_style
        color = self.theme.border

        # Top border with integrated title
        max_title = width - 6
        if title and max_title > 0:
            title_part = f"{style.top_left}[{truncate_to_width(title, max_title)}]"
            dashes = max(0, width - visible_width(title_part) - 1)
            top = title_part + style.horizontal * dashes + style.top_right
        else:
            top = style.top_left + style.horizontal * (width - 2) + style.top_right
        out.append(move_to(x, y))
        out.append(colorize(top, color))

        # Side borders
        for row in range(y + 1, min(y + height - 1, height_limit)):
            out.append(move_to(x, row))
            out.append(colorize(style.vertical, color))
            out.append(move_to(x + width - 1, row))
            out.append(colorize(style.vertical, color))

        # Bottom border
        bottom_y = y + height - 1
        if bottom_y < height_limit:
            out.append(move_to(x, bottom_y))
            out.append(colorize(style.bottom_left + style.horizontal * (width - 2) + style.bottom_right, color))

    def _clear_dashboard_area(self, out: list[str], layout: Layout, message_count: int, command_mode: bool) -> None:
        for y in range(max(0, self._message_area_top(layout, message_count, command_mode))):
            out.append(move_to(0, y))
            out.append(CLEAR_TO_EOL)

    # ------------------------------------------------------------------
    # Message region
    # ------------------------------------------------------------------

    def message_area_height(self, layout: Layout, message_count: int, command_mode: bool) -> int:
        room = max(0, layout.terminal_height - self.input_area_height)
        if command_mode:
            return room
        return min(room, self.max_message_rows, max(3, message_count + 2))

    def _message_area_top(self, layout: Layout, message_count: int, command_mode: bool) -> int:
        height = self.message_area_height(layout, message_count, command_mode)
        return layout.terminal_height - self.input_area_height - height

    def _draw_message_area(
        self,
        out: list[str],
        layout: Layout,
        messages: Sequence[Message | str],
        scroll_offset: int,
        command_mode: bool,
    ) -> None:
        height = self.message_area_height(layout, len(messages), command_mode)
        top = layout.terminal_height - self.input_area_height - height
        self._message_top = top
        width = layout.terminal_width
        if height < 2 or width < 2:
            return

        style = self.theme.border_style
        color = self.theme.border
        rows = height - 2
        inner = width - 4

        title_part = f"{style.top_left}[Output]"
        if visible_width(title_part) + 1 <= width:
            top_line = title_part + style.horizontal * (width - visible_width(title_part) - 1) + style.top_right
        else:
            top_line = style.top_left + style.horizontal * (width - 2) + style.top_right
        out.append(move_to(0, top))
        out.append(CLEAR_TO_EOL)
        out.append(colorize(top_line, color))

        visible, more_above, more_below = message_window(messages, rows, scroll_offset)
        lines: list[str] = []
        if more_above:
            lines.append(colorize(truncate_to_width(MORE_ABOVE, max(0, inner)), self.theme.neutral))
        lines.extend(format_message(message, inner, self.theme) for message in visible)
        if more_below:
            lines = lines[: rows - 1]
            lines.append(colorize(truncate_to_width(MORE_BELOW, max(0, inner)), self.theme.neutral))
        lines = lines[:rows]

        for i in range(rows):
            content = lines[i] if i < len(lines) else ""
            padding = " " * max(0, inner - visible_width(content))
            out.append(move_to(0, top + 1 + i))
            out.append(CLEAR_TO_EOL)
            out.append(colorize(style.vertical + " ", color) + content + padding + colorize(" " + style.vertical, color))

        out.append(move_to(0, top + height - 1))
        out.append(CLEAR_TO_EOL)
        out.append(colorize(style.bottom_left + style.horizontal * (width - 2) + style.bottom_right, color))

    # ------------------------------------------------------------------
    # Input box
    # ------------------------------------------------------------------

    def _input_top(self, layout: Layout) -> int:
        return layout.terminal_height - self.input_area_height

    def _draw_input_box(self, out: list[str], layout: Layout, prompt: str, input_text: str) -> None:
        top = self._input_top(layout)
        width = layout.terminal_width
        if width < 2:
            return
        style = self.theme.border_style
        color = self.theme.border

        out.append(move_to(0, top))
        out.append(CLEAR_TO_EOL)
        out.append(colorize(style.top_left + style.horizontal * (width - 2) + style.top_right, color))

        self._draw_input_line(out, layout, prompt, input_text)

        out.append(move_to(0, top + 2))
        out.append(CLEAR_TO_EOL)
        out.append(colorize(style.bottom_left + style.horizontal * (width - 2) + style.bottom_right, color))

    def _draw_input_line(self, out: list[str], layout: Layout, prompt: str, input_text: str) -> None:
        width = layout.terminal_width
        if width < 2:
            return
        style = self.theme.border_style
        color = self.theme.border
        inner = max(0, width - 4)

        shown = self._visible_input(prompt, input_text, inner)
        content = truncate_to_width(
            colorize(prompt, self.theme.prompt) + colorize(shown, self.theme.input),
            inner,
        )
        padding = " " * max(0, inner - visible_width(content))

        out.append(move_to(0, self._input_top(layout) + 1))
        out.append(colorize(style.vertical + " ", color) + content + padding + colorize(" " + style.vertical, color))

    @staticmethod
    def _visible_input(prompt: str, input_text: str, inner: int) -> str:
        """Tail of *input_text* that fits next to *prompt* with room for the caret."""
        room = inner - visible_width(prompt) - 1
        if visible_width(input_text) <= room:
            return input_text
        if room <= 0:
            return ""
        return grapheme.slice(input_text, grapheme.length(input_text) - room)

    def _caret(self, layout: Layout, prompt: str, input_text: str) -> str:
        inner = max(0, layout.terminal_width - 4)
        shown = self._visible_input(prompt, input_text, inner)
        x = 2 + visible_width(prompt) + visible_width(shown)
        x = max(0, min(x, layout.terminal_width - 1))
        y = max(0, self._input_top(layout) + 1)
        return move_to(x, y)
