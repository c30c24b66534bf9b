#!/usr/bin/env python3
"""Live monitor for an ESP32 LED panel.

Connects a :class:`LightPanel`, loads presets, optionally arms the motion
automation or applies a preset, then prints every bus event until Ctrl+C
(or ``--duration`` seconds).

Configuration is read from ``LEDPANEL_*`` environment variables; command
line flags override them.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from ledpanel import (  # noqa: E402
    AutomationToggled,
    LevelChanged,
    LightPanel,
    PanelConfig,
    PanelError,
    PresetsChanged,
    SensorChanged,
)

_LOG = logging.getLogger("panel_monitor")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch and drive an ESP32 LED panel over MQTT.")
    parser.add_argument("--api-base-url", help="Preset/log backend base URL.")
    parser.add_argument("--broker-url", help="MQTT broker URL (mqtt://, ws://, ...).")
    parser.add_argument("--device-id", help="Device id used in topic names.")
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument("--automation", action="store_true", help="Arm the motion automation.")
    parser.add_argument("--apply", metavar="NAME", help="Apply the backend or built-in preset with this name after loading.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging.")
    return parser.parse_args()


def _print_level(event: LevelChanged) -> None:
    print(f"[level] ch{event.index} {event.previous} -> {event.level} ({event.source}) now={event.levels.as_list()}")


def _print_sensor(event: SensorChanged) -> None:
    print(f"[pir] {event.previous} -> {event.current}")


def _print_automation(event: AutomationToggled) -> None:
    print(f"[automation] {'on' if event.enabled else 'off'}")


def _print_presets(event: PresetsChanged) -> None:
    names = ", ".join(p.name for p in event.presets) or "(none)"
    suffix = " [degraded]" if event.degraded else ""
    print(f"[presets] {names}{suffix}")


async def _run(args: argparse.Namespace) -> int:
    overrides = {
        key: value
        for key, value in (
            ("api_base_url", args.api_base_url),
            ("broker_url", args.broker_url),
            ("device_id", args.device_id),
        )
        if value
    }
    try:
        config = PanelConfig.from_env(**overrides)
    except PanelError as exc:
        _LOG.error("Invalid configuration: %s", exc)
        return 2

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:  # pragma: no cover - windows
            pass

    async with LightPanel(config, on_alert=lambda msg: print(f"[alert] {msg}")) as panel:
        panel.bus.subscribe(LevelChanged, _print_level)
        panel.bus.subscribe(SensorChanged, _print_sensor)
        panel.bus.subscribe(AutomationToggled, _print_automation)
        panel.bus.subscribe(PresetsChanged, _print_presets)

        await panel.refresh_presets()
        if args.automation:
            panel.set_automation_enabled(True)
        if args.apply:
            try:
                panel.apply_preset(args.apply)
            except PanelError as exc:
                _LOG.error("%s (built-ins: %s)", exc, ", ".join(p.name for p in panel.builtin_presets))

        try:
            await asyncio.wait_for(stop.wait(), args.duration or None)
        except TimeoutError:
            pass
    return 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
