#!/usr/bin/env python3
"""Record a route from fixes published over MQTT.

The device (e.g. an OwnTracks client) publishes location JSON on a topic;
this script registers the background task on that topic, keeps the route
in a SQLite file and prints the polyline as JSON when interrupted.

Environment variables (``PYTRAIL_*``) are read first; flags override them.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pytrail import RouteRecorder, TrailConfig, TrailError  # noqa: E402

_LOG = logging.getLogger("record_mqtt")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--host", help="MQTT broker host (PYTRAIL_MQTT_HOST)")
    parser.add_argument("--port", type=int, help="MQTT broker port (PYTRAIL_MQTT_PORT)")
    parser.add_argument("--topic", help="Topic the device publishes fixes on (PYTRAIL_MQTT_TOPIC)")
    parser.add_argument("--tls", action="store_true", help="Connect with TLS")
    parser.add_argument("--db", default="trail.db", help="SQLite file holding the route (default: trail.db)")
    parser.add_argument("--upload-url", help="POST the final route here on stop")
    parser.add_argument("--poll", type=float, help="Seconds between snapshot refreshes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser


def _config_from_args(args: argparse.Namespace) -> TrailConfig:
    overrides: dict[str, object] = {"db_path": args.db}
    if args.host:
        overrides["mqtt_host"] = args.host
    if args.port:
        overrides["mqtt_port"] = args.port
    if args.topic:
        overrides["mqtt_topic"] = args.topic
    if args.tls:
        overrides["mqtt_tls"] = True
    if args.upload_url:
        overrides["upload_url"] = args.upload_url
    if args.poll:
        overrides["poll_interval"] = args.poll
    return TrailConfig.from_env(**overrides)


async def _run(config: TrailConfig) -> int:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    async with RouteRecorder(config) as recorder:
        recorder.holder.subscribe(lambda route: _LOG.info("Route now has %d location(s)", len(route)))
        await recorder.start()
        _LOG.info("Recording on topic %s; press Ctrl-C to stop", config.mqtt_topic)
        await stop_event.wait()
        route = await recorder.stop()

    coords = [coord.model_dump() for coord in recorder.polyline()]
    print(json.dumps({"count": len(route), "polyline": coords}, indent=2))
    return 0


def main() -> int:
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = _config_from_args(args)
    if not config.mqtt_host:
        _LOG.error("No MQTT broker configured (use --host or PYTRAIL_MQTT_HOST)")
        return 2
    try:
        return asyncio.run(_run(config))
    except TrailError as exc:
        _LOG.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
