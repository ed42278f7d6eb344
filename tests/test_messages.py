"""Tests for the bounded message log."""

from __future__ import annotations

from typing import get_args, get_type_hints

from iob.dash.messages import Message, MessageLog, MessageType


class TestMessageLog:
    def test_typed_helpers(self) -> None:
        log = MessageLog()
        log.success("a")
        log.error("b")
        log.info("c")
        log.warning("d")
        assert [m.type for m in log.messages] == ["success", "error", "info", "warning"]

    def test_add_returns_message(self) -> None:
        assert MessageLog().add("hello") == Message("hello", "info")

    def test_oldest_dropped_past_limit(self) -> None:
        log = MessageLog(max_messages=3)
        for i in range(5):
            log.info(str(i))
        assert [m.text for m in log.messages] == ["2", "3", "4"]
        assert len(log) == 3

    def test_limit_floor(self) -> None:
        assert MessageLog(max_messages=0).max_messages == 1

    def test_clear(self) -> None:
        log = MessageLog()
        log.info("x")
        log.scroll_up()
        log.clear()
        assert len(log) == 0
        assert log.scroll_offset == 0

    def test_messages_is_a_copy(self) -> None:
        log = MessageLog()
        log.info("x")
        snapshot = log.messages
        log.info("y")
        assert len(snapshot) == 1


class TestScrolling:
    def test_scroll_up_and_down(self) -> None:
        log = MessageLog()
        for i in range(5):
            log.info(str(i))
        assert log.scroll_up() is True
        assert log.scroll_offset == 1
        assert log.scroll_down() is True
        assert log.scroll_offset == 0

    def test_scroll_down_at_bottom(self) -> None:
        log = MessageLog()
        log.info("x")
        assert log.scroll_down() is False

    def test_scroll_up_clamped(self) -> None:
        log = MessageLog()
        for i in range(3):
            log.info(str(i))
        log.scroll_up(10)
        assert log.scroll_offset == 2
        assert log.scroll_up() is False

    def test_empty_log_does_not_scroll(self) -> None:
        assert MessageLog().scroll_up() is False

    def test_new_message_resets_offset(self) -> None:
        log = MessageLog()
        for i in range(5):
            log.info(str(i))
        log.scroll_up(2)
        log.info("new")
        assert log.scroll_offset == 0


class TestMessageType:
    def test_known_types(self) -> None:
        assert set(get_args(MessageType)) == {"success", "error", "info", "warning"}

    def test_message_and_add_use_message_type(self) -> None:
        assert get_type_hints(Message)["type"] == MessageType
        assert get_type_hints(MessageLog.add)["type"] == MessageType
