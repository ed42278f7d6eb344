"""Colour schemes and border glyphs for the dashboard.

A :class:`Theme` is an immutable mapping from semantic role (``caption``,
``value``, ``border``, ``selected_bg`` ...) to an ANSI SGR string, plus a
:class:`BorderStyle`. Renderers receive the theme with every frame, so
swapping the theme is a matter of passing a different value next time.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

# ---------------------------------------------------------------------------
# Raw SGR codes
# ---------------------------------------------------------------------------

COLORS: dict[str, str] = {
    "reset": "\x1b[0m",
    # Text colours
    "black": "\x1b[30m",
    "red": "\x1b[31m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "blue": "\x1b[34m",
    "magenta": "\x1b[35m",
    "cyan": "\x1b[36m",
    "white": "\x1b[37m",
    # Bright text colours
    "bright_black": "\x1b[90m",
    "bright_red": "\x1b[91m",
    "bright_green": "\x1b[92m",
    "bright_yellow": "\x1b[93m",
    "bright_blue": "\x1b[94m",
    "bright_magenta": "\x1b[95m",
    "bright_cyan": "\x1b[96m",
    "bright_white": "\x1b[97m",
    # Background colours
    "bg_black": "\x1b[40m",
    "bg_red": "\x1b[41m",
    "bg_green": "\x1b[42m",
    "bg_yellow": "\x1b[43m",
    "bg_blue": "\x1b[44m",
    "bg_magenta": "\x1b[45m",
    "bg_cyan": "\x1b[46m",
    "bg_white": "\x1b[47m",
    # Styles
    "bold": "\x1b[1m",
    "dim": "\x1b[2m",
    "italic": "\x1b[3m",
    "underline": "\x1b[4m",
    "reverse": "\x1b[7m",
}

RESET = COLORS["reset"]


def _fg(n: int) -> str:
    return f"\x1b[38;5;{n}m"


def _bg(n: int) -> str:
    return f"\x1b[48;5;{n}m"


# ---------------------------------------------------------------------------
# Border glyphs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BorderStyle:
    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    horizontal: str
    vertical: str


BORDER_STYLES: dict[str, BorderStyle] = {
    "rounded": BorderStyle("╭", "╮", "╰", "╯", "─", "│"),
    "square": BorderStyle("┌", "┐", "└", "┘", "─", "│"),
    "thick": BorderStyle("┏", "┓", "┗", "┛", "━", "┃"),
    "double": BorderStyle("╔", "╗", "╚", "╝", "═", "║"),
}


# ---------------------------------------------------------------------------
# Theme
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Theme:
    """Semantic colour roles used at paint time."""

    name: str
    active: str
    inactive: str
    warning: str
    error: str
    positive: str
    negative: str
    neutral: str
    charging: str
    discharging: str
    border: str
    title: str
    caption: str
    value: str
    unit: str
    prompt: str
    input: str
    selected_bg: str
    selected_text: str
    border_style: BorderStyle

    def with_overrides(self, **roles: Any) -> Theme:
        """Return a copy with some roles replaced."""
        return replace(self, **roles)


COLOR_SCHEMES: dict[str, Theme] = {
    "default": Theme(
        name="default",
        active=COLORS["bright_green"],
        inactive=COLORS["bright_black"],
        warning=COLORS["bright_yellow"],
        error=COLORS["bright_red"],
        positive=COLORS["green"],
        negative=COLORS["red"],
        neutral=COLORS["white"],
        charging=COLORS["bright_blue"],
        discharging=COLORS["bright_yellow"],
        border=COLORS["bright_blue"],
        title=COLORS["bright_cyan"],
        caption=COLORS["white"],
        value=COLORS["bright_white"],
        unit=COLORS["bright_black"],
        prompt=COLORS["bright_green"],
        input=COLORS["bright_white"],
        selected_bg=COLORS["bg_blue"],
        selected_text=COLORS["bright_white"],
        border_style=BORDER_STYLES["rounded"],
    ),
    "dark": Theme(
        name="dark",
        active=_fg(120),
        inactive=_fg(240),
        warning=_fg(228),
        error=_fg(196),
        positive=_fg(46),
        negative=_fg(203),
        neutral=_fg(255),
        charging=_fg(81),
        discharging=_fg(220),
        border=_fg(75),
        title=_fg(117),
        caption=_fg(253),
        value=_fg(255),
        unit=_fg(242),
        prompt=_fg(120),
        input=_fg(255),
        selected_bg=_bg(24),
        selected_text=_fg(255),
        border_style=BORDER_STYLES["rounded"],
    ),
    "light": Theme(
        name="light",
        active=_fg(22),
        inactive=_fg(247),
        warning=_fg(130),
        error=_fg(124),
        positive=_fg(28),
        negative=_fg(88),
        neutral=_fg(16),
        charging=_fg(25),
        discharging=_fg(94),
        border=_fg(25),
        title=_fg(24),
        caption=_fg(235),
        value=_fg(16),
        unit=_fg(240),
        prompt=_fg(22),
        input=_fg(16),
        selected_bg=_bg(152),
        selected_text=_fg(16),
        border_style=BORDER_STYLES["square"],
    ),
    "matrix": Theme(
        name="matrix",
        active=_fg(46),
        inactive=_fg(22),
        warning=_fg(226),
        error=_fg(196),
        positive=_fg(40),
        negative=_fg(196),
        neutral=_fg(46),
        charging=_fg(46),
        discharging=_fg(226),
        border=_fg(46),
        title=_fg(40),
        caption=_fg(46),
        value=_fg(46),
        unit=_fg(22),
        prompt=_fg(46),
        input=_fg(46),
        selected_bg=_bg(22),
        selected_text=_fg(46),
        border_style=BORDER_STYLES["thick"],
    ),
    "retro": Theme(
        name="retro",
        active=_fg(214),
        inactive=_fg(94),
        warning=_fg(226),
        error=_fg(196),
        positive=_fg(82),
        negative=_fg(196),
        neutral=_fg(215),
        charging=_fg(39),
        discharging=_fg(214),
        border=_fg(214),
        title=_fg(208),
        caption=_fg(215),
        value=_fg(230),
        unit=_fg(94),
        prompt=_fg(214),
        input=_fg(230),
        selected_bg=_bg(52),
        selected_text=_fg(214),
        border_style=BORDER_STYLES["double"],
    ),
    "ocean": Theme(
        name="ocean",
        active=_fg(51),
        inactive=_fg(240),
        warning=_fg(226),
        error=_fg(196),
        positive=_fg(82),
        negative=_fg(196),
        neutral=_fg(117),
        charging=_fg(27),
        discharging=_fg(226),
        border=_fg(39),
        title=_fg(51),
        caption=_fg(117),
        value=_fg(159),
        unit=_fg(240),
        prompt=_fg(51),
        input=_fg(159),
        selected_bg=_bg(17),
        selected_text=_fg(51),
        border_style=BORDER_STYLES["rounded"],
    ),
}

DEFAULT_THEME = COLOR_SCHEMES["default"]


def get_theme(name: str) -> Theme | None:
    """Return the built-in scheme called *name*, or ``None``."""
    return COLOR_SCHEMES.get(name)


def available_schemes() -> list[str]:
    return list(COLOR_SCHEMES)


# ---------------------------------------------------------------------------
# Colour helpers
# ---------------------------------------------------------------------------


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{RESET}"


def colorize_indicator(active: bool, theme: Theme) -> str:
    """``●`` in the active colour, ``○`` in the inactive colour."""
    if active:
        return colorize("●", theme.active)
    return colorize("○", theme.inactive)


def colorize_switch(active: bool, theme: Theme) -> str:
    """Block-glyph switch: ``░░█`` when on, ``█░░`` when off."""
    if active:
        return colorize("░░█", theme.active)
    return colorize("█░░", theme.inactive)


def colorize_gauge(
    value: Any,
    theme: Theme,
    min_value: float = 0,
    max_value: float = 100,
    warning_threshold: float = 0.8,
    error_threshold: float = 0.95,
    text: str | None = None,
) -> str:
    """Colour a gauge reading by how close it sits to *max_value*.

    *text* replaces the displayed string (e.g. a formatted value with unit).
    """
    shown = str(value) if text is None else text
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return colorize(shown, theme.neutral)
    span = max_value - min_value
    ratio = (value - min_value) / span if span else 0.0
    if ratio >= error_threshold:
        color = theme.error
    elif ratio >= warning_threshold:
        color = theme.warning
    else:
        color = theme.positive
    return colorize(shown, color)


def colorize_power(value: Any, theme: Theme, unit: str = "W") -> str:
    """Positive power is green, negative (charging/importing) is blue."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return colorize(f"{value}{unit}", theme.neutral)
    if value > 0:
        color = theme.positive
    elif value < 0:
        color = theme.charging
    else:
        color = theme.neutral
    return colorize(f"{value:.1f}", color) + colorize(unit, theme.unit)


def colorize_system_state(state: Any, theme: Theme) -> str:
    """Colour a free-text state by keyword (running/warn/error ...)."""
    text = str(state)
    lowered = text.lower()
    words = set(lowered.split())
    if "error" in lowered or "fail" in lowered or "off" in words:
        return colorize(text, theme.error)
    if "warn" in lowered:
        return colorize(text, theme.warning)
    if "inactive" in lowered or "stopped" in lowered:
        return colorize(text, theme.inactive)
    if "running" in lowered or "active" in lowered or "on" in words:
        return colorize(text, theme.active)
    return colorize(text, theme.neutral)
