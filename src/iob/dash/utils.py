"""Terminal text utilities: ANSI stripping, visible length, alignment.

Provides functions for measuring the visible length of strings that carry
SGR colour codes, truncating and padding them without breaking those codes,
and laying out a caption on the left and a value on the right of a cell.
"""

from __future__ import annotations

import re

import grapheme

# ---------------------------------------------------------------------------
# Regex patterns for ANSI sequences
# ---------------------------------------------------------------------------

# SGR colour/style sequences: ESC[ <params> m
_SGR_RE = re.compile(r"\x1b\[[0-9;]*m")

# SGR plus the cursor/erase finals a rendered row may carry
_STRIP_RE = re.compile(r"\x1b\[[0-9;]*[mGKHJ]")

RESET = "\x1b[0m"

ELLIPSIS = "..."

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# strip_ansi / visible_width
# ---------------------------------------------------------------------------


def strip_ansi(text: str) -> str:
    """Return *text* with every ANSI colour and cursor sequence removed."""
    if "\x1b" not in text:
        return text
    return _STRIP_RE.sub("", text)


def visible_width(text: str) -> int:
    """Calculate the visible length of *text*.

    * Strips ANSI escape sequences.
    * Uses a fast ASCII path when possible.
    * Counts grapheme clusters otherwise, so combining marks never add a
      column. Wide glyphs still count as one.
    """
    if not text:
        return 0

    stripped = strip_ansi(text)
    if not stripped:
        return 0

    if stripped.isascii():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    return _cache_width(stripped, grapheme.length(stripped))


# ---------------------------------------------------------------------------
# extract_ansi_code
# ---------------------------------------------------------------------------


def extract_ansi_code(text: str, pos: int) -> tuple[str, int] | None:
    """Extract a CSI escape sequence starting at *pos* in *text*.

    Returns ``(code, length)`` or ``None`` if there is no recognised
    sequence at *pos*.
    """
    if pos >= len(text) or text[pos] != "\x1b":
        return None
    if pos + 1 >= len(text) or text[pos + 1] != "[":
        return None

    i = pos + 2
    while i < len(text):
        ch = text[i]
        if ch in "mGKHJ":
            code = text[pos : i + 1]
            return (code, len(code))
        if ch.isdigit() or ch == ";":
            i += 1
            continue
        break
    return None


# ---------------------------------------------------------------------------
# truncate_to_width / pad_to_width
# ---------------------------------------------------------------------------


def _take_columns(text: str, max_cols: int) -> str:
    """Return a prefix of *text* holding at most *max_cols* visible columns.

    ANSI codes are preserved; the text is cut at grapheme boundaries.
    """
    result: list[str] = []
    cols = 0
    i = 0

    while i < len(text):
        extracted = extract_ansi_code(text, i)
        if extracted is not None:
            code, length = extracted
            result.append(code)
            i += length
            continue

        # Plain run up to the next escape
        end = text.find("\x1b", i + 1)
        if end == -1:
            end = len(text)
        for g in grapheme.graphemes(text[i:end]):
            if cols >= max_cols:
                return "".join(result)
            result.append(g)
            cols += 1
        i = end

    return "".join(result)


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = ELLIPSIS,
    pad: bool = False,
) -> str:
    """Truncate *text* to fit within *max_width* visible columns.

    If the text is wider than *max_width*, it is cut and *ellipsis* is
    appended (the ellipsis counts towards the width). A reset is inserted
    before the ellipsis when the cut leaves a colour open. If *pad* is
    ``True``, the result is right-padded with spaces to exactly *max_width*.
    """
    if max_width <= 0:
        return ""

    text_width = visible_width(text)
    if text_width <= max_width:
        if pad:
            return text + " " * (max_width - text_width)
        return text

    target_width = max_width - visible_width(ellipsis)
    if target_width <= 0:
        return _take_columns(ellipsis, max_width)

    result = _take_columns(text, target_width)
    if _SGR_RE.search(result) and not result.endswith(RESET):
        result += RESET
    result += ellipsis

    if pad:
        result_width = visible_width(result)
        if result_width < max_width:
            result += " " * (max_width - result_width)

    return result


def pad_to_width(text: str, width: int) -> str:
    """Right-pad *text* with plain spaces to *width* visible columns."""
    missing = width - visible_width(text)
    if missing <= 0:
        return text
    return text + " " * missing


# ---------------------------------------------------------------------------
# align_text
# ---------------------------------------------------------------------------


def align_text(left: str, right: str, max_width: int) -> str:
    """Lay out *left* flush left and *right* flush right in *max_width* columns.

    When both do not fit with a one-column gap, the visible part of *left*
    is cut to ``max_width - visible(right) - 1 - 3`` characters followed by
    ``"..."``; at least one visible character of *left* is kept. The colour
    codes of a cut *left* are dropped since its visible part is rebuilt.
    """
    right_len = visible_width(right)
    left_len = visible_width(left)

    if left_len + right_len + 1 > max_width:
        keep = max(1, max_width - right_len - 1 - len(ELLIPSIS))
        plain = strip_ansi(left)
        if visible_width(plain) > keep:
            left = _take_columns(plain, keep) + ELLIPSIS

    spaces = max(1, max_width - visible_width(left) - right_len)
    return left + " " * spaces + right
