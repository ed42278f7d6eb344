"""Tests for dashboard elements: formatting, interaction, sliders, rendering."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from iob.dash.elements import (
    HISTORY_LIMIT,
    Element,
    create_element,
    create_elements,
    is_interactive,
    render_element,
    render_plain_element,
)
from iob.dash.theme import DEFAULT_THEME
from iob.dash.utils import strip_ansi, visible_width


class TestCreateElement:
    def test_defaults(self) -> None:
        element = create_element({"id": "a"})
        assert element.type == "text"
        assert element.caption == "Unnamed"
        assert element.value is None
        assert element.interactive is True

    def test_camel_case_state_id(self) -> None:
        element = create_element({"id": "p", "type": "gauge", "stateId": "hm.0.power"})
        assert element.state_id == "hm.0.power"

    def test_interactive_false(self) -> None:
        assert create_element({"id": "s", "type": "switch", "interactive": False}).interactive is False

    def test_missing_id_generated(self) -> None:
        assert create_element({"type": "text"}).id.startswith("element_")

    def test_create_elements(self) -> None:
        elements = create_elements([{"id": "a"}, {"id": "b"}])
        assert [e.id for e in elements] == ["a", "b"]

    def test_to_config_round_trip_keys(self) -> None:
        element = create_element({"id": "g", "type": "gauge", "caption": "G", "unit": "W", "stateId": "x.y"})
        config = element.to_config()
        assert config["stateId"] == "x.y"
        assert config["unit"] == "W"
        assert "min" not in config


class TestFormatValue:
    def test_none_is_na(self) -> None:
        assert Element("a", "gauge").format_value() == "N/A"

    def test_gauge_one_decimal_with_unit(self) -> None:
        assert Element("a", "gauge", value=21.44, unit="°C").format_value() == "21.4°C"

    def test_switch_bool(self) -> None:
        assert Element("a", "switch", value=True).format_value() == "ON"
        assert Element("a", "switch", value=False).format_value() == "OFF"

    def test_text(self) -> None:
        assert Element("a", "text", value="idle").format_value() == "idle"


class TestUpdateValue:
    def test_reports_change(self) -> None:
        element = Element("a", "gauge", value=1.0)
        assert element.update_value(2.0) is True
        assert element.update_value(2.0) is False

    def test_numeric_values_recorded_in_history(self) -> None:
        element = Element("a", "sparkline")
        element.update_value(1)
        element.update_value("text")
        element.update_value(3)
        assert element.history == [1.0, 3.0]

    def test_history_bounded(self) -> None:
        element = Element("a", "sparkline")
        for i in range(HISTORY_LIMIT + 8):
            element.update_value(i)
        assert len(element.history) == HISTORY_LIMIT
        assert element.history[-1] == float(HISTORY_LIMIT + 7)


class TestInteraction:
    def test_toggle_switch(self) -> None:
        element = Element("s", "switch", value=False)
        assert element.toggle() is True
        assert element.value is True

    def test_toggle_calls_on_activate(self) -> None:
        seen: list[str] = []
        element = Element("s", "switch", value=False, on_activate=lambda e: seen.append(e.id))
        element.toggle()
        assert seen == ["s"]

    def test_toggle_non_interactive(self) -> None:
        element = Element("s", "switch", value=False, interactive=False)
        assert element.toggle() is False
        assert element.value is False

    def test_toggle_wrong_type(self) -> None:
        assert Element("b", "button").toggle() is False

    def test_trigger_button(self) -> None:
        seen: list[str] = []
        element = Element("b", "button", on_activate=lambda e: seen.append(e.id))
        assert element.trigger() is True
        assert seen == ["b"]

    def test_trigger_switch_refused(self) -> None:
        assert Element("s", "switch").trigger() is False


class TestSlider:
    def test_default_range(self) -> None:
        element = Element("d", "slider")
        assert (element.min, element.max) == (0, 100)

    def test_increment_one_percent(self) -> None:
        element = Element("d", "slider", value=50)
        assert element.increment() is True
        assert element.value == 51

    def test_decrement_custom_step(self) -> None:
        element = Element("d", "slider", value=50)
        element.decrement(5)
        assert element.value == 45

    def test_clamped_at_bounds(self) -> None:
        element = Element("d", "slider", value=100)
        assert element.increment() is False
        assert element.value == 100

    def test_percentage_with_custom_range(self) -> None:
        element = Element("t", "slider", value=23, min=16, max=30)
        assert element.percentage() == pytest.approx(50.0)

    def test_out_of_range_value_is_clamped_for_display(self) -> None:
        element = Element("d", "slider", value=150, unit="%")
        assert element.clamped_value() == 100
        assert element.format_value() == "100%"

    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("right", 51),
            ("up", 51),
            ("left", 49),
            ("down", 49),
            ("pageUp", 60),
            ("pageDown", 40),
            ("home", 0),
            ("end", 100),
        ],
    )
    def test_handle_key(self, key: str, expected: float) -> None:
        element = Element("d", "slider", value=50)
        assert element.handle_key(key) is True
        assert element.value == pytest.approx(expected)

    def test_handle_unknown_key(self) -> None:
        assert Element("d", "slider", value=50).handle_key("tab") is False

    def test_handle_key_on_non_slider(self) -> None:
        assert Element("g", "gauge", value=50).handle_key("right") is False

    def test_adjust_calls_on_activate(self) -> None:
        seen: list[float] = []
        element = Element("d", "slider", value=50, on_activate=lambda e: seen.append(e.value))
        element.handle_key("end")
        assert seen == [100]

    def test_render_bar(self) -> None:
        element = Element("d", "slider", caption="Dim", value=50, unit="%")
        text = strip_ansi(element.render(30))
        assert "█" in text and "░" in text
        assert text.endswith("50%")
        assert visible_width(text) == 28

    def test_render_non_numeric(self) -> None:
        text = strip_ansi(Element("d", "slider", caption="Dim", value="?").render(30))
        assert text.endswith("N/A")
        assert "█" not in text

    def test_selected_caption_uses_active_colour(self) -> None:
        element = Element("d", "slider", caption="Dim", value=50)
        assert element.render(30, DEFAULT_THEME, selected=True).startswith(DEFAULT_THEME.active + "Dim")


class TestRender:
    def test_width_is_max_width_minus_two(self) -> None:
        element = Element("g", "gauge", caption="Temp", value=21.5, unit="°C")
        assert visible_width(element.render(30)) == 28

    def test_minimum_width_five(self) -> None:
        assert visible_width(Element("g", "text", caption="A", value="b").render(3)) == 5

    def test_long_caption_truncated(self) -> None:
        element = Element("s", "switch", caption="A very long switch caption", value=True)
        text = strip_ansi(element.render(20))
        assert visible_width(text) == 18
        assert "..." in text

    def test_power_gauge(self) -> None:
        text = strip_ansi(Element("p", "gauge", caption="Solar", value=1500, unit="W").render(30))
        assert text.endswith("1500.0W")

    def test_power_detected_from_state_id(self) -> None:
        element = Element("p", "gauge", caption="Grid", value=-20, unit="kW", state_id="meter.0.power")
        assert DEFAULT_THEME.charging in element.render(30)

    def test_gauge_with_max_uses_thresholds(self) -> None:
        element = Element("b", "gauge", caption="Disk", value=97, unit="%", max=100)
        assert DEFAULT_THEME.error in element.render(30)

    def test_gauge_none(self) -> None:
        assert strip_ansi(Element("g", "gauge", caption="X").render(20)).endswith("N/A")

    def test_switch(self) -> None:
        text = strip_ansi(Element("s", "switch", caption="Lamp", value=True).render(30))
        assert text.endswith("ON ░░█")

    def test_button(self) -> None:
        assert strip_ansi(Element("b", "button", caption="Go").render(20)).endswith("[PRESS]")

    def test_indicator(self) -> None:
        assert strip_ansi(Element("i", "indicator", caption="Online", value=False).render(20)).endswith("OFF ○")

    def test_text_state_colour(self) -> None:
        assert DEFAULT_THEME.active in Element("t", "text", caption="Adapter", value="running").render(30)

    def test_sparkline_without_history(self) -> None:
        assert strip_ansi(Element("h", "sparkline", caption="Hum").render(20)).endswith("N/A")

    def test_sparkline_bars(self) -> None:
        element = Element("h", "sparkline", caption="Hum")
        for value in range(1, 9):
            element.update_value(value)
        text = strip_ansi(element.render(30))
        assert text.endswith("▁▂▃▄▅▆▇█")

    def test_flat_sparkline(self) -> None:
        element = Element("h", "sparkline", caption="Hum")
        for _ in range(3):
            element.update_value(5)
        assert strip_ansi(element.render(30)).endswith("▁▁▁")


class TestRenderAnyElement:
    def test_is_interactive(self) -> None:
        assert is_interactive({"type": "switch"}) is True
        assert is_interactive({"type": "switch", "interactive": False}) is False
        assert is_interactive({"type": "gauge"}) is False
        assert is_interactive(Element("d", "slider")) is True

    def test_mapping_rendered_plainly(self) -> None:
        text = strip_ansi(render_element({"id": "a", "caption": "Pump", "value": True}, 20))
        assert text.startswith("Pump")
        assert text.endswith("ON")

    def test_plain_object_without_caption_uses_id(self) -> None:
        text = strip_ansi(render_plain_element(SimpleNamespace(id="pump", value=3, unit="W"), 20))
        assert text.startswith("pump")
        assert text.endswith("3W")

    def test_object_with_render_method(self) -> None:
        class Custom:
            id = "c"

            def render(self, max_width: int) -> str:
                return "custom" + "." * (max_width - 6)

        assert render_element(Custom(), 10) == "custom...."

    def test_render_failure_shows_err(self) -> None:
        class Broken:
            id = "b"
            caption = "Broken"

            def render(self, max_width: int) -> str:
                raise RuntimeError("boom")

        text = strip_ansi(render_element(Broken(), 20))
        assert text.startswith("Broken")
        assert text.endswith("ERR")
