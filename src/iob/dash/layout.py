"""Masonry layout engine.

Groups are placed one by one, in their original order, into whichever
column is currently the shortest. The result is an immutable
:class:`Layout` value that the renderer consumes as-is.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Protocol

logger = logging.getLogger(__name__)

_group_ids = itertools.count(1)


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass
class Group:
    """A titled panel of elements. ``x``..``column`` are set by the engine."""

    id: str
    title: str = "Untitled Group"
    elements: list[Any] = field(default_factory=list)
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    column: int = 0


@dataclass(frozen=True)
class LayoutSettings:
    columns: int = 3
    padding: int = 1
    row_spacing: int = 1
    show_borders: bool = True
    min_group_width: int = 15


@dataclass(frozen=True)
class Layout:
    """Engine output: positioned groups plus the grid geometry."""

    groups: tuple[Group, ...]
    columns: int
    column_heights: tuple[int, ...]
    total_height: int
    available_height: int
    terminal_width: int
    terminal_height: int
    needs_scrolling: bool
    group_width: int
    show_borders: bool = True


class LayoutSettingsSource(Protocol):
    def layout_settings(self) -> LayoutSettings: ...

    def set(self, key: str, value: Any) -> None: ...


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def _raw_group_width(terminal_width: int, columns: int, padding: int) -> int:
    return (terminal_width - (columns - 1) * padding) // columns


def calculate_group_width(terminal_width: int, columns: int, padding: int) -> int:
    """Width of one column; never below 1."""
    return max(1, _raw_group_width(terminal_width, max(1, columns), padding))


def calculate_columns_count(
    requested_columns: int,
    terminal_width: int,
    padding: int,
    min_group_width: int,
) -> int:
    """Reduce *requested_columns* until each column is at least *min_group_width* wide.

    One column is always returned as the floor, even when that column ends
    up narrower than the minimum.
    """
    columns = max(1, int(requested_columns))
    while columns > 1 and _raw_group_width(terminal_width, columns, padding) < min_group_width:
        columns -= 1
    return columns


def calculate_group_height(group: Any, show_borders: bool) -> int:
    """Rows a group occupies: its elements, a title row, and two border rows.

    With borders the title sits inside the top border, and an empty bordered
    group is still three rows tall. The result is at least 1.
    """
    if isinstance(group, Mapping):
        elements = group.get("elements") or []
        title = group.get("title")
    else:
        elements = group.elements
        title = group.title

    height = len(elements)
    if title and not show_borders:
        height += 1
    if show_borders:
        height += 2
        if not elements:
            height = max(height, 3)
    return max(height, 1)


def _coerce_group(group: Group | Mapping[str, Any]) -> Group:
    if isinstance(group, Group):
        return group
    return Group(
        id=str(group.get("id") or f"group_{next(_group_ids)}"),
        title=group.get("title") or "Untitled Group",
        elements=list(group.get("elements") or []),
    )


def _element_id(element: Any) -> Any:
    if isinstance(element, Mapping):
        return element.get("id")
    return getattr(element, "id", None)


# ---------------------------------------------------------------------------
# LayoutEngine
# ---------------------------------------------------------------------------


class LayoutEngine:
    """Owns the ordered group list and computes :class:`Layout` values.

    *settings* is either a fixed :class:`LayoutSettings` or any object with a
    ``layout_settings()`` method (such as the settings manager), which is
    re-read on every calculation.
    """

    def __init__(
        self,
        settings: LayoutSettingsSource | LayoutSettings | None = None,
        terminal_width: int = 80,
        terminal_height: int = 24,
        reserved_input_height: int = 3,
    ) -> None:
        self._settings = settings if settings is not None else LayoutSettings()
        self.terminal_width = terminal_width
        self.terminal_height = terminal_height
        self.reserved_input_height = reserved_input_height
        self.groups: list[Group] = []
        self._layout: Layout | None = None

        self.on_layout_changed: Callable[[Layout], None] | None = None
        self.on_resize: Callable[[Layout], None] | None = None

    # -- settings -----------------------------------------------------------

    @property
    def settings(self) -> LayoutSettings:
        if isinstance(self._settings, LayoutSettings):
            return self._settings
        return self._settings.layout_settings()

    def _write_setting(self, key: str, attr: str, value: Any) -> None:
        if isinstance(self._settings, LayoutSettings):
            self._settings = replace(self._settings, **{attr: value})
        else:
            self._settings.set(key, value)

    def set_columns(self, columns: int) -> Layout:
        self._write_setting("layout.columns", "columns", columns)
        return self.calculate_layout()

    def set_padding(self, padding: int) -> Layout:
        self._write_setting("layout.padding", "padding", padding)
        return self.calculate_layout()

    def set_row_spacing(self, spacing: int) -> Layout:
        self._write_setting("layout.rowSpacing", "row_spacing", spacing)
        return self.calculate_layout()

    def apply_settings(self) -> Layout:
        return self.calculate_layout()

    # -- groups -------------------------------------------------------------

    def set_groups(self, groups: Iterable[Group | Mapping[str, Any]]) -> Layout:
        self.groups = [_coerce_group(g) for g in groups]
        return self.calculate_layout()

    def add_group(self, group: Group | Mapping[str, Any]) -> Group:
        added = _coerce_group(group)
        self.groups.append(added)
        self.calculate_layout()
        return added

    def remove_group(self, group_id: str) -> Group | None:
        for index, group in enumerate(self.groups):
            if group.id == group_id:
                removed = self.groups.pop(index)
                self.calculate_layout()
                return removed
        return None

    def move_group(self, group_id: str, new_index: int) -> bool:
        if not 0 <= new_index < len(self.groups):
            return False
        for index, group in enumerate(self.groups):
            if group.id == group_id:
                self.groups.insert(new_index, self.groups.pop(index))
                self.calculate_layout()
                return True
        return False

    def get_group(self, group_id: str) -> Group | None:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    # -- elements -----------------------------------------------------------

    def add_element_to_group(self, group_id: str, element: Any, insert_index: int | None = None) -> Any:
        group = self.get_group(group_id)
        if group is None:
            return None
        if insert_index is not None and 0 <= insert_index <= len(group.elements):
            group.elements.insert(insert_index, element)
        else:
            group.elements.append(element)
        self.calculate_layout()
        return element

    def remove_element_from_group(self, group_id: str, element_id: str) -> Any:
        group = self.get_group(group_id)
        if group is None:
            return None
        for index, element in enumerate(group.elements):
            if _element_id(element) == element_id:
                removed = group.elements.pop(index)
                self.calculate_layout()
                return removed
        return None

    def move_element(self, element_id: str, from_group_id: str, to_group_id: str, position: int = -1) -> bool:
        source = self.get_group(from_group_id)
        target = self.get_group(to_group_id)
        if source is None or target is None:
            return False
        for index, element in enumerate(source.elements):
            if _element_id(element) == element_id:
                moved = source.elements.pop(index)
                if position == -1 or position > len(target.elements):
                    target.elements.append(moved)
                else:
                    target.elements.insert(max(0, position), moved)
                self.calculate_layout()
                return True
        return False

    def find_element(self, group_id: str, element_id: str) -> Any:
        group = self.get_group(group_id)
        if group is None:
            return None
        for element in group.elements:
            if _element_id(element) == element_id:
                return element
        return None

    # -- layout -------------------------------------------------------------

    def calculate_layout(self) -> Layout:
        settings = self.settings
        padding = max(0, settings.padding)
        row_spacing = max(0, settings.row_spacing)
        min_width = max(1, settings.min_group_width)

        columns = calculate_columns_count(settings.columns, self.terminal_width, padding, min_width)
        if columns < settings.columns:
            logger.debug(
                "Reduced columns from %d to %d for width %d",
                settings.columns,
                columns,
                self.terminal_width,
            )
        group_width = calculate_group_width(self.terminal_width, columns, padding)

        column_heights = [0] * columns
        column_contents: list[list[Group]] = [[] for _ in range(columns)]

        for group in self.groups:
            height = calculate_group_height(group, settings.show_borders)
            shortest = column_heights.index(min(column_heights))
            placed = replace(
                group,
                x=shortest * (group_width + padding),
                y=column_heights[shortest],
                width=group_width,
                height=height,
                column=shortest,
            )
            column_contents[shortest].append(placed)
            column_heights[shortest] += height + row_spacing

        total_height = max(column_heights)
        available_height = self.terminal_height - self.reserved_input_height
        self._layout = Layout(
            groups=tuple(itertools.chain.from_iterable(column_contents)),
            columns=columns,
            column_heights=tuple(column_heights),
            total_height=total_height,
            available_height=available_height,
            terminal_width=self.terminal_width,
            terminal_height=self.terminal_height,
            needs_scrolling=total_height > available_height,
            group_width=group_width,
            show_borders=settings.show_borders,
        )

        if self.on_layout_changed is not None:
            self.on_layout_changed(self._layout)
        return self._layout

    def get_layout(self) -> Layout:
        if self._layout is None:
            return self.calculate_layout()
        return self._layout

    def update_terminal_size(self, width: int, height: int) -> Layout:
        logger.debug("Terminal resized to %dx%d", width, height)
        self.terminal_width = width
        self.terminal_height = height
        layout = self.calculate_layout()
        if self.on_resize is not None:
            self.on_resize(layout)
        return layout

    def describe(self) -> list[str]:
        """Human-readable dump of the current layout."""
        layout = self.get_layout()
        lines = [
            f"Terminal: {layout.terminal_width}x{layout.terminal_height}",
            f"Columns: {layout.columns} (width {layout.group_width})",
            f"Column heights: {list(layout.column_heights)}",
            f"Total height: {layout.total_height}",
            f"Needs scrolling: {layout.needs_scrolling}",
        ]
        for index, group in enumerate(layout.groups):
            lines.append(
                f'Group {index}: "{group.title}" at ({group.x}, {group.y}) '
                f"size {group.width}x{group.height} column {group.column}"
            )
        return lines
