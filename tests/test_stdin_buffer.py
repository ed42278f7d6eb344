"""Tests for iob.dash.stdin_buffer -- splitting raw reads into single keys."""

from __future__ import annotations

import asyncio

import pytest

from iob.dash.stdin_buffer import ESC, StdinBuffer, sequence_status, split_sequences


def make_buffer(timeout: float = 0.01) -> tuple[StdinBuffer, list[str]]:
    buf = StdinBuffer(timeout=timeout)
    seen: list[str] = []
    buf.on_data(seen.append)
    return buf, seen


class TestSequenceStatus:
    def test_plain_text(self) -> None:
        assert sequence_status("a") == "not-escape"

    def test_lone_escape_is_incomplete(self) -> None:
        assert sequence_status(ESC) == "incomplete"

    def test_csi(self) -> None:
        assert sequence_status(f"{ESC}[") == "incomplete"
        assert sequence_status(f"{ESC}[5") == "incomplete"
        assert sequence_status(f"{ESC}[5~") == "complete"
        assert sequence_status(f"{ESC}[A") == "complete"
        assert sequence_status(f"{ESC}[Z") == "complete"

    def test_ss3(self) -> None:
        assert sequence_status(f"{ESC}O") == "incomplete"
        assert sequence_status(f"{ESC}OH") == "complete"

    def test_meta_key(self) -> None:
        assert sequence_status(f"{ESC}q") == "complete"


class TestSplitSequences:
    def test_plain_characters(self) -> None:
        assert split_sequences("ab\r") == (["a", "b", "\r"], "")

    def test_repeated_arrows(self) -> None:
        assert split_sequences(f"{ESC}[A{ESC}[A") == ([f"{ESC}[A", f"{ESC}[A"], "")

    def test_text_around_sequences(self) -> None:
        assert split_sequences(f"x{ESC}[Cy") == (["x", f"{ESC}[C", "y"], "")

    def test_unfinished_sequence_is_remainder(self) -> None:
        assert split_sequences(f"\t{ESC}[1") == (["\t"], f"{ESC}[1")

    def test_empty(self) -> None:
        assert split_sequences("") == ([], "")


class TestStdinBuffer:
    def test_emits_each_key(self) -> None:
        buf, seen = make_buffer()
        buf.process("\t\t")
        assert seen == ["\t", "\t"]

    @pytest.mark.asyncio
    async def test_sequence_split_across_reads(self) -> None:
        buf, seen = make_buffer()
        buf.process(f"{ESC}[")
        assert seen == []
        assert buf.get_buffer() == f"{ESC}["
        buf.process("A")
        assert seen == [f"{ESC}[A"]
        assert buf.get_buffer() == ""

    def test_without_loop_flushes_immediately(self) -> None:
        buf, seen = make_buffer()
        buf.process(ESC)
        assert seen == [ESC]

    def test_empty_read_emits_nothing(self) -> None:
        buf, seen = make_buffer()
        buf.process("")
        assert seen == []

    def test_flush_and_clear(self) -> None:
        buf, _ = make_buffer()
        buf._buffer = f"{ESC}["
        assert buf.flush() == [f"{ESC}["]
        assert buf.flush() == []
        buf._buffer = ESC
        buf.clear()
        assert buf.get_buffer() == ""

    @pytest.mark.asyncio
    async def test_lone_escape_emitted_after_timeout(self) -> None:
        buf, seen = make_buffer(timeout=0.01)
        buf.process(ESC)
        assert seen == []
        await asyncio.sleep(0.05)
        assert seen == [ESC]

    @pytest.mark.asyncio
    async def test_completed_sequence_cancels_timeout(self) -> None:
        buf, seen = make_buffer(timeout=0.01)
        buf.process(ESC)
        buf.process("[B")
        await asyncio.sleep(0.05)
        assert seen == [f"{ESC}[B"]
