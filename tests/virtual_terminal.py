"""Virtual terminal for testing -- implements the Terminal protocol in-memory.

This module provides a ``VirtualTerminal`` class that satisfies the
``iob.dash.terminal.Terminal`` protocol without performing any real I/O.
All output is captured in a buffer for assertions, and a small screen model
replays cursor moves so tests can read back what ended up on each row.
"""

from __future__ import annotations

import re
from typing import Callable

_CSI_RE = re.compile(r"\x1b\[([0-9;?]*)([A-Za-z])")


class VirtualTerminal:
    """In-memory terminal that records all writes for test inspection.

    Implements the ``Terminal`` protocol from ``iob.dash.terminal``.

    Parameters
    ----------
    rows:
        Number of terminal rows (height).
    columns:
        Number of terminal columns (width).
    """

    def __init__(self, rows: int = 24, columns: int = 80) -> None:
        self._rows = rows
        self._columns = columns
        self._buffer: list[str] = []
        self._started = False
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._cursor_visible = True

    # -- Terminal protocol: properties --------------------------------------

    @property
    def rows(self) -> int:
        return self._rows

    @rows.setter
    def rows(self, value: int) -> None:
        self._rows = value

    @property
    def columns(self) -> int:
        return self._columns

    @columns.setter
    def columns(self, value: int) -> None:
        self._columns = value

    @property
    def started(self) -> bool:
        return self._started

    # -- Terminal protocol: lifecycle ---------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        self._input_handler = on_input
        self._resize_handler = on_resize
        self._started = True

    def stop(self) -> None:
        self._started = False
        self._input_handler = None
        self._resize_handler = None

    # -- Terminal protocol: output ------------------------------------------

    def write(self, data: str) -> None:
        """Append *data* to the internal buffer."""
        self._buffer.append(data)

    # -- Terminal protocol: cursor/screen manipulation ----------------------

    def hide_cursor(self) -> None:
        self._cursor_visible = False
        self.write("\x1b[?25l")

    def show_cursor(self) -> None:
        self._cursor_visible = True
        self.write("\x1b[?25h")

    def clear_screen(self) -> None:
        self.write("\x1b[2J\x1b[H")

    # -- Test helpers -------------------------------------------------------

    @property
    def output(self) -> str:
        """Return everything written to the terminal as a single string."""
        return "".join(self._buffer)

    @property
    def last_write(self) -> str:
        return self._buffer[-1] if self._buffer else ""

    @property
    def write_count(self) -> int:
        """Return the number of individual ``write`` calls made."""
        return len(self._buffer)

    def clear_buffer(self) -> None:
        """Discard all recorded output."""
        self._buffer.clear()

    def screen(self) -> list[str]:
        """Replay the recorded output onto a blank grid of plain characters.

        Understands absolute positioning, clear screen, and clear to end of
        line; colour codes are dropped. Returns one string per row.
        """
        grid = [[" "] * self._columns for _ in range(self._rows)]
        row = col = 0
        data = self.output
        i = 0
        while i < len(data):
            if data[i] == "\x1b":
                match = _CSI_RE.match(data, i)
                if match is None:
                    i += 1
                    continue
                params, final = match.groups()
                if final == "H":
                    parts = [p for p in params.split(";") if p]
                    row = int(parts[0]) - 1 if parts else 0
                    col = int(parts[1]) - 1 if len(parts) > 1 else 0
                elif final == "J" and params == "2":
                    grid = [[" "] * self._columns for _ in range(self._rows)]
                elif final == "K" and 0 <= row < self._rows:
                    for c in range(max(0, col), self._columns):
                        grid[row][c] = " "
                i = match.end()
                continue
            if 0 <= row < self._rows and 0 <= col < self._columns:
                grid[row][col] = data[i]
            col += 1
            i += 1
        return ["".join(line) for line in grid]

    def cursor_position(self) -> tuple[int, int] | None:
        """``(x, y)`` of the last absolute cursor move, zero-based."""
        moves = re.findall(r"\x1b\[(\d+);(\d+)H", self.output)
        if not moves:
            return None
        y, x = moves[-1]
        return int(x) - 1, int(y) - 1

    def simulate_input(self, data: str) -> None:
        """Feed *data* into the registered input handler.

        Raises ``RuntimeError`` if no input handler has been registered
        (i.e. ``start`` was not called).
        """
        if self._input_handler is None:
            raise RuntimeError(
                "No input handler registered -- call start() first"
            )
        self._input_handler(data)

    def simulate_resize(self, rows: int | None = None, columns: int | None = None) -> None:
        """Change terminal dimensions and fire the resize callback.

        If *rows* or *columns* is ``None`` the corresponding dimension
        is left unchanged.
        """
        if rows is not None:
            self._rows = rows
        if columns is not None:
            self._columns = columns
        if self._resize_handler is not None:
            self._resize_handler()
