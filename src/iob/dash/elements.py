"""Dashboard elements: typed labeled values rendered into one cell row.

Every element renders to a caption on the left and a value on the right,
aligned into the cell width. Rendering is a single ``match`` on the element
``type``; objects that are not :class:`Element` instances are rendered
through their own ``render(max_width)`` or the generic plain formatter.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from iob.dash.theme import (
    DEFAULT_THEME,
    Theme,
    colorize,
    colorize_gauge,
    colorize_indicator,
    colorize_power,
    colorize_switch,
    colorize_system_state,
)
from iob.dash.utils import align_text, visible_width

logger = logging.getLogger(__name__)

ElementType = Literal["gauge", "switch", "button", "indicator", "text", "sparkline", "slider"]

ELEMENT_TYPES: tuple[str, ...] = ("gauge", "switch", "button", "indicator", "text", "sparkline", "slider")
INTERACTIVE_TYPES: frozenset[str] = frozenset({"button", "switch", "slider"})

HISTORY_LIMIT = 32
SPARK_CHARS = "▁▂▃▄▅▆▇█"
SPARK_LENGTH = 8

SLIDER_FILL = "█"
SLIDER_EMPTY = "░"
SLIDER_MIN_BAR = 3
SLIDER_MAX_BAR = 20


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return f"{value:g}"


def content_width(max_width: int) -> int:
    """Width handed to :func:`align_text` for a cell of *max_width* columns."""
    return max(5, max_width - 2)


# ---------------------------------------------------------------------------
# Element
# ---------------------------------------------------------------------------


@dataclass
class Element:
    """A single labeled value inside a group."""

    id: str
    type: str = "text"
    caption: str = "Unnamed"
    value: Any = None
    unit: str = ""
    min: float | None = None
    max: float | None = None
    interactive: bool = True
    state_id: str | None = None
    history: list[float] = field(default_factory=list)
    on_activate: Callable[[Element], None] | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.type == "slider":
            if self.min is None:
                self.min = 0
            if self.max is None:
                self.max = 100

    # -- values -------------------------------------------------------------

    def update_value(self, value: Any) -> bool:
        """Store *value*; returns ``True`` when it differs from the old one."""
        changed = value != self.value or type(value) is not type(self.value)
        self.value = value
        if _is_number(value):
            self.history.append(float(value))
            if len(self.history) > HISTORY_LIMIT:
                del self.history[: len(self.history) - HISTORY_LIMIT]
        return changed

    def format_value(self) -> str:
        if self.value is None:
            return "N/A"
        match self.type:
            case "gauge":
                if _is_number(self.value):
                    return f"{self.value:.1f}{self.unit}"
                return f"{self.value}{self.unit}"
            case "switch" | "indicator":
                if isinstance(self.value, bool):
                    return "ON" if self.value else "OFF"
                return str(self.value)
            case "slider":
                if _is_number(self.value):
                    return f"{_format_number(self.clamped_value())}{self.unit}"
                return "N/A"
            case _:
                return str(self.value)

    # -- interaction --------------------------------------------------------

    def toggle(self) -> bool:
        if not self.interactive or self.type != "switch":
            return False
        self.update_value(not bool(self.value))
        if self.on_activate is not None:
            self.on_activate(self)
        return True

    def trigger(self) -> bool:
        if not self.interactive or self.type != "button":
            return False
        if self.on_activate is not None:
            self.on_activate(self)
        return True

    # -- slider -------------------------------------------------------------

    def _bounds(self) -> tuple[float, float]:
        low = 0 if self.min is None else self.min
        high = 100 if self.max is None else self.max
        return low, high

    def clamped_value(self) -> float:
        low, high = self._bounds()
        if not _is_number(self.value):
            return low
        return max(low, min(high, self.value))

    def percentage(self) -> float:
        low, high = self._bounds()
        span = high - low
        if span <= 0:
            return 0.0
        return (self.clamped_value() - low) / span * 100

    def _step(self, fraction: float) -> float:
        low, high = self._bounds()
        return (high - low) * fraction

    def _adjust(self, delta: float) -> bool:
        low, high = self._bounds()
        current = self.clamped_value()
        new_value = max(low, min(high, current + delta))
        changed = self.update_value(new_value)
        if changed and self.interactive and self.on_activate is not None:
            self.on_activate(self)
        return changed

    def increment(self, step: float | None = None) -> bool:
        return self._adjust(self._step(0.01) if step is None else step)

    def decrement(self, step: float | None = None) -> bool:
        return self._adjust(-(self._step(0.01) if step is None else step))

    def handle_key(self, key: str) -> bool:
        """Adjust a slider for a named key; returns ``True`` if handled."""
        if self.type != "slider":
            return False
        low, high = self._bounds()
        match key:
            case "right" | "up":
                self.increment()
            case "left" | "down":
                self.decrement()
            case "pageUp":
                self.increment(self._step(0.1))
            case "pageDown":
                self.decrement(self._step(0.1))
            case "home":
                self._adjust(low - self.clamped_value())
            case "end":
                self._adjust(high - self.clamped_value())
            case _:
                return False
        return True

    # -- rendering ----------------------------------------------------------

    def render(self, max_width: int, theme: Theme | None = None, selected: bool = False) -> str:
        """Render caption and value aligned into ``max(5, max_width - 2)`` columns."""
        theme = theme or DEFAULT_THEME
        width = content_width(max_width)
        left = colorize(self.caption, theme.caption)

        match self.type:
            case "gauge":
                right = self._render_gauge(theme)
            case "switch":
                state_color = theme.active if self.value else theme.inactive
                right = f"{colorize(self.format_value(), state_color)} {colorize_switch(bool(self.value), theme)}"
            case "button":
                right = colorize("[PRESS]", theme.active)
            case "indicator":
                right = f"{self._render_indicator(theme)} {colorize_indicator(bool(self.value), theme)}"
            case "text":
                right = colorize_system_state(self.format_value(), theme)
            case "sparkline":
                right = self._render_sparkline(theme)
            case "slider":
                if selected:
                    left = colorize(self.caption, theme.active)
                right = self._render_slider(theme, width)
            case _:
                right = colorize(self.format_value(), theme.value)

        return align_text(left, right, width)

    def _render_gauge(self, theme: Theme) -> str:
        if self.value is None:
            return colorize("N/A", theme.inactive)
        if self.unit == "W" or (self.state_id and "power" in self.state_id.lower()):
            return colorize_power(self.value, theme, self.unit or "W")
        if self.max is not None and _is_number(self.value):
            low = 0 if self.min is None else self.min
            return colorize_gauge(self.value, theme, low, self.max, text=self.format_value())
        return colorize(self.format_value(), theme.value)

    def _render_indicator(self, theme: Theme) -> str:
        if self.value is None:
            return colorize("N/A", theme.inactive)
        if isinstance(self.value, bool):
            return colorize("ON" if self.value else "OFF", theme.active if self.value else theme.inactive)
        return colorize_system_state(self.format_value(), theme)

    def _render_sparkline(self, theme: Theme) -> str:
        samples = self.history[-SPARK_LENGTH:]
        if not samples:
            return colorize("N/A", theme.inactive)
        low = min(samples)
        high = max(samples)
        span = high - low
        top = len(SPARK_CHARS) - 1
        chars = []
        for sample in samples:
            index = 0 if span == 0 else round((sample - low) / span * top)
            chars.append(SPARK_CHARS[index])
        return colorize("".join(chars), theme.value)

    def _render_slider(self, theme: Theme, width: int) -> str:
        if not _is_number(self.value):
            return colorize("N/A", theme.inactive)
        value_text = self.format_value()
        room = width - visible_width(self.caption) - len(value_text) - 3
        bar_len = max(SLIDER_MIN_BAR, min(SLIDER_MAX_BAR, room))
        filled = round(self.percentage() / 100 * bar_len)
        bar = colorize(SLIDER_FILL * filled, theme.active) + colorize(SLIDER_EMPTY * (bar_len - filled), theme.inactive)
        return f"{bar} {colorize(value_text, theme.value)}"

    def to_config(self) -> dict[str, Any]:
        config: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "caption": self.caption,
            "interactive": self.interactive,
        }
        if self.state_id is not None:
            config["stateId"] = self.state_id
        if self.unit:
            config["unit"] = self.unit
        if self.min is not None:
            config["min"] = self.min
        if self.max is not None:
            config["max"] = self.max
        return config


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def create_element(config: Mapping[str, Any]) -> Element:
    """Build an :class:`Element` from a config mapping (camelCase keys accepted)."""
    element_id = config.get("id") or f"element_{id(config):x}"
    return Element(
        id=str(element_id),
        type=config.get("type") or "text",
        caption=config.get("caption") or "Unnamed",
        value=config.get("value"),
        unit=config.get("unit") or "",
        min=config.get("min"),
        max=config.get("max"),
        interactive=config.get("interactive", True) is not False,
        state_id=config.get("stateId", config.get("state_id")),
    )


def create_elements(configs: Iterable[Mapping[str, Any]]) -> list[Element]:
    return [create_element(config) for config in configs]


# ---------------------------------------------------------------------------
# Rendering any element-like object
# ---------------------------------------------------------------------------


def element_field(element: Any, name: str, default: Any = None) -> Any:
    """Read *name* from an attribute or, for mappings, a key."""
    if isinstance(element, Mapping):
        return element.get(name, default)
    return getattr(element, name, default)


def is_interactive(element: Any) -> bool:
    return bool(element_field(element, "interactive", True)) and element_field(element, "type") in INTERACTIVE_TYPES


def render_plain_element(element: Any, max_width: int, theme: Theme | None = None) -> str:
    """Caption left, value right for objects without a ``render`` method."""
    theme = theme or DEFAULT_THEME
    caption = str(element_field(element, "caption") or element_field(element, "id") or "")
    value = element_field(element, "value")
    unit = element_field(element, "unit") or ""
    kind = element_field(element, "type")

    if kind == "button":
        right = colorize("[PRESS]", theme.active)
    elif value is None:
        right = colorize("N/A", theme.inactive)
    elif isinstance(value, bool):
        right = colorize("ON" if value else "OFF", theme.active if value else theme.inactive)
    elif kind == "gauge" and _is_number(value):
        right = colorize(f"{value:.1f}{unit}", theme.value)
    else:
        right = colorize(f"{value}{unit}", theme.value)

    return align_text(colorize(caption, theme.caption), right, content_width(max_width))


def render_element(element: Any, max_width: int, theme: Theme | None = None, selected: bool = False) -> str:
    theme = theme or DEFAULT_THEME
    if isinstance(element, Element):
        return element.render(max_width, theme, selected)

    render = None if isinstance(element, Mapping) else getattr(element, "render", None)
    if callable(render):
        try:
            return str(render(max_width))
        except Exception:
            logger.exception("Element %r failed to render", element_field(element, "id"))
            caption = str(element_field(element, "caption") or element_field(element, "id") or "")
            return align_text(colorize(caption, theme.caption), colorize("ERR", theme.error), content_width(max_width))

    return render_plain_element(element, max_width, theme)
