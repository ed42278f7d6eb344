"""Tests for terminal escape helpers and ProcessTerminal output."""

from __future__ import annotations

from pathlib import Path

import pytest

from iob.dash.terminal import CLEAR_SCREEN, CLEAR_TO_EOL, HIDE_CURSOR, SHOW_CURSOR, ProcessTerminal, move_to


class TestEscapes:
    def test_move_to_is_one_based(self) -> None:
        assert move_to(0, 0) == "\x1b[1;1H"
        assert move_to(4, 22) == "\x1b[23;5H"

    def test_constants(self) -> None:
        assert CLEAR_TO_EOL == "\x1b[K"
        assert CLEAR_SCREEN == "\x1b[2J\x1b[H"
        assert HIDE_CURSOR == "\x1b[?25l"
        assert SHOW_CURSOR == "\x1b[?25h"


class TestProcessTerminal:
    def test_write_goes_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        terminal = ProcessTerminal()
        terminal.write("hello")
        terminal.hide_cursor()
        assert capsys.readouterr().out == "hello" + HIDE_CURSOR

    def test_write_log(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        log = tmp_path / "writes.log"
        monkeypatch.setenv("IOB_DASH_WRITE_LOG", str(log))
        terminal = ProcessTerminal()
        terminal.write("a")
        terminal.write("b")
        assert log.read_text() == "ab"
        assert capsys.readouterr().out == "ab"

    def test_batched_read_delivered_one_key_at_a_time(self) -> None:
        terminal = ProcessTerminal()
        seen: list[str] = []
        terminal._input_handler = seen.append
        terminal._setup_stdin_buffer()
        assert terminal._stdin_buffer is not None
        terminal._stdin_buffer.process("\x1b[A\x1b[Aq\r")
        assert seen == ["\x1b[A", "\x1b[A", "q", "\r"]
