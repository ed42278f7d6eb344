"""Entry point for the iob-dash CLI: a demo dashboard with simulated values."""

from __future__ import annotations

import argparse
import asyncio
import logging
import random

from iob.dash.app import DashboardApp
from iob.dash.elements import Element, create_elements
from iob.dash.layout import Group
from iob.dash.settings import SettingsManager
from iob.dash.theme import available_schemes

logger = logging.getLogger(__name__)


def build_demo_groups() -> list[Group]:
    """Four groups covering every element type."""
    return [
        Group(
            id="power",
            title="Power",
            elements=create_elements(
                [
                    {"id": "solar", "type": "gauge", "caption": "Solar", "unit": "W", "value": 1840.0},
                    {"id": "grid", "type": "gauge", "caption": "Grid", "unit": "W", "value": -320.0},
                    {"id": "battery", "type": "gauge", "caption": "Battery", "unit": "%", "max": 100, "value": 76.0},
                    {"id": "charging", "type": "indicator", "caption": "Charging", "value": True},
                ]
            ),
        ),
        Group(
            id="climate",
            title="Climate",
            elements=create_elements(
                [
                    {"id": "temp", "type": "gauge", "caption": "Living room", "unit": "°C", "value": 21.4},
                    {"id": "humidity", "type": "sparkline", "caption": "Humidity", "value": 48},
                    {
                        "id": "thermostat",
                        "type": "slider",
                        "caption": "Thermostat",
                        "unit": "°C",
                        "min": 16,
                        "max": 30,
                        "value": 21,
                    },
                ]
            ),
        ),
        Group(
            id="lights",
            title="Lights",
            elements=create_elements(
                [
                    {"id": "kitchen", "type": "switch", "caption": "Kitchen", "value": False},
                    {"id": "garden", "type": "switch", "caption": "Garden", "value": True},
                    {"id": "dimmer", "type": "slider", "caption": "Dimmer", "unit": "%", "value": 40},
                    {"id": "all_off", "type": "button", "caption": "All off"},
                ]
            ),
        ),
        Group(
            id="system",
            title="System",
            elements=create_elements(
                [
                    {"id": "adapter", "type": "text", "caption": "Adapter", "value": "running", "interactive": False},
                    {"id": "online", "type": "indicator", "caption": "Online", "value": True, "interactive": False},
                    {"id": "uptime", "type": "text", "caption": "Uptime", "value": "0 min", "interactive": False},
                ]
            ),
        ),
    ]


def _wire_demo_actions(app: DashboardApp) -> None:
    all_off = app.engine.find_element("lights", "all_off")
    if isinstance(all_off, Element):

        def _switch_all_off(_element: Element) -> None:
            for element_id in ("kitchen", "garden"):
                app.set_element_value("lights", element_id, False)

        all_off.on_activate = _switch_all_off


async def _simulate(app: DashboardApp, interval: float) -> None:
    """Random-walk the demo values until cancelled."""
    minutes = 0
    rng = random.Random()
    while True:
        await asyncio.sleep(interval)
        solar = app.engine.find_element("power", "solar")
        battery = app.engine.find_element("power", "battery")
        temp = app.engine.find_element("climate", "temp")
        humidity = app.engine.find_element("climate", "humidity")

        app.set_element_value("power", "solar", round(max(0.0, solar.value + rng.uniform(-150, 150)), 1))
        app.set_element_value("power", "grid", round(rng.uniform(-800, 800), 1))
        app.set_element_value("power", "battery", round(min(100.0, max(0.0, battery.value + rng.uniform(-1, 1))), 1))
        app.set_element_value("climate", "temp", round(temp.value + rng.uniform(-0.2, 0.2), 1))
        app.set_element_value("climate", "humidity", max(20, min(90, humidity.value + rng.randint(-3, 3))))

        minutes += 1
        app.set_element_value("system", "uptime", f"{minutes} min")


def main() -> None:
    parser = argparse.ArgumentParser(description="iob-dash: terminal dashboard demo")
    parser.add_argument("--settings", default=None, help="Settings file (default: ~/.iob-dash/settings.json)")
    parser.add_argument("--theme", default=None, choices=available_schemes(), help="Colour scheme")
    parser.add_argument("--columns", type=int, default=None, help="Requested column count")
    parser.add_argument("--no-borders", action="store_true", help="Draw groups without borders")
    parser.add_argument("--log-file", default=None, help="Write logs to this file")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    parser.add_argument("--demo-interval", type=float, default=1.0, help="Seconds between simulated updates")
    args = parser.parse_args()

    # The terminal is being painted, so logs only ever go to a file
    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=getattr(logging, args.log_level.upper()),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    else:
        logging.basicConfig(handlers=[logging.NullHandler()])

    settings = SettingsManager.create(args.settings)
    overrides: dict[str, object] = {}
    if args.theme:
        overrides["theme.name"] = args.theme
    if args.columns is not None:
        overrides["layout.columns"] = args.columns
    if args.no_borders:
        overrides["layout.showBorders"] = False
    try:
        settings.apply_overrides(overrides)
    except ValueError as e:
        parser.error(str(e))

    asyncio.run(_run(settings, args.demo_interval))


async def _run(settings: SettingsManager, interval: float) -> None:
    from iob.dash.terminal import ProcessTerminal

    app = DashboardApp(ProcessTerminal(), settings)
    app.engine.set_groups(build_demo_groups())
    _wire_demo_actions(app)
    app.messages.info("Tab selects, Enter activates, Esc toggles the output view, Ctrl+C quits")
    if settings.load_error is not None:
        app.messages.warning(f"Settings file could not be read: {settings.load_error}")

    def _on_submit(text: str) -> None:
        if text.lower() in ("quit", "exit"):
            app.stop()

    app.on_submit = _on_submit

    simulator = asyncio.create_task(_simulate(app, max(0.05, interval)))
    try:
        await app.run()
    finally:
        simulator.cancel()
        logger.info("Dashboard stopped")


if __name__ == "__main__":
    main()
