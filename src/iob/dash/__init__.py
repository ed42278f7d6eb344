"""iob-dash: terminal dashboard core with masonry layout and incremental rendering."""

# Host application
from iob.dash.app import DashboardApp

# Elements
from iob.dash.elements import (
    ELEMENT_TYPES,
    Element,
    ElementType,
    create_element,
    create_elements,
    is_interactive,
    render_element,
    render_plain_element,
)

# Keyboard input handling
from iob.dash.keys import Key, KeyId, matches_key, parse_key

# Layout engine
from iob.dash.layout import (
    Group,
    Layout,
    LayoutEngine,
    LayoutSettings,
    calculate_columns_count,
    calculate_group_height,
)

# Message log
from iob.dash.messages import Message, MessageLog

# Renderer
from iob.dash.renderer import (
    DashboardRenderer,
    FrameCell,
    PreviousFrame,
    Selection,
    snapshot_layout,
)

# Settings
from iob.dash.settings import SettingsManager

# Stdin buffering
from iob.dash.stdin_buffer import StdinBuffer

# Terminal
from iob.dash.terminal import ProcessTerminal, Terminal

# Themes
from iob.dash.theme import (
    BORDER_STYLES,
    COLOR_SCHEMES,
    COLORS,
    DEFAULT_THEME,
    BorderStyle,
    Theme,
    available_schemes,
    colorize,
    get_theme,
)

# Utilities
from iob.dash.utils import align_text, pad_to_width, strip_ansi, truncate_to_width, visible_width

__all__ = [
    # Host application
    "DashboardApp",
    # Elements
    "ELEMENT_TYPES",
    "Element",
    "ElementType",
    "create_element",
    "create_elements",
    "is_interactive",
    "render_element",
    "render_plain_element",
    # Keys
    "Key",
    "KeyId",
    "matches_key",
    "parse_key",
    # Layout engine
    "Group",
    "Layout",
    "LayoutEngine",
    "LayoutSettings",
    "calculate_columns_count",
    "calculate_group_height",
    # Message log
    "Message",
    "MessageLog",
    # Renderer
    "DashboardRenderer",
    "FrameCell",
    "PreviousFrame",
    "Selection",
    "snapshot_layout",
    # Settings
    "SettingsManager",
    # Stdin buffering
    "StdinBuffer",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Themes
    "BORDER_STYLES",
    "COLOR_SCHEMES",
    "COLORS",
    "DEFAULT_THEME",
    "BorderStyle",
    "Theme",
    "available_schemes",
    "colorize",
    "get_theme",
    # Utilities
    "align_text",
    "pad_to_width",
    "strip_ansi",
    "truncate_to_width",
    "visible_width",
]
