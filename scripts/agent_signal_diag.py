"""Agent Signal diagnostics CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from agent_signal.config import AgentSignalSettings
from agent_signal.events import event_to_dict
from agent_signal.heuristics import HeuristicsLoadError, HeuristicSet, load_heuristics
from agent_signal.local import LocalActivitySource, default_window_source
from agent_signal.scheduler import MonitoringScheduler
from agent_signal.server import build_scheduler, configure_logging


def load_heuristics_or_exit(settings: AgentSignalSettings) -> HeuristicSet:
    try:
        return load_heuristics(settings.heuristics_path)
    except HeuristicsLoadError as exc:
        print(f"Heuristics unavailable: {exc}", file=sys.stderr)
        raise SystemExit(1)


def load_window_source(heuristics: HeuristicSet) -> LocalActivitySource:
    return default_window_source(heuristics)


def load_scheduler(settings: AgentSignalSettings, heuristics: HeuristicSet) -> MonitoringScheduler:
    return build_scheduler(settings, heuristics=heuristics, window_source=load_window_source(heuristics))


def cmd_windows(args: argparse.Namespace) -> None:
    settings = AgentSignalSettings()
    heuristics = load_heuristics_or_exit(settings)
    source = load_window_source(heuristics)
    payload = [
        {
            "title": window.title,
            "process_id": window.process_id,
            "indicator": heuristics.match_window_title(window.title),
            "task": heuristics.describe_task(window.title),
        }
        for window in source.list_editor_windows()
    ]
    if args.json:
        print(json.dumps(payload, indent=2))
    else:
        for item in payload:
            marker = item["indicator"] or "-"
            print(f"{item['process_id']} [{marker}] {item['title']}")
    print(
        f"elevated_access={source.is_elevated_access_granted()}",
        file=sys.stderr,
    )


async def _poll_once(scheduler: MonitoringScheduler) -> list[dict[str, object]]:
    scheduler.editor_tracker.start()
    scheduler.remote_tracker.start()
    try:
        events = await scheduler.run_cycle()
    finally:
        await scheduler.remote_tracker.aclose()
    return [event_to_dict(event) for event in events]


def cmd_poll(args: argparse.Namespace) -> None:
    settings = AgentSignalSettings()
    heuristics = load_heuristics_or_exit(settings)
    scheduler = load_scheduler(settings, heuristics)
    events = asyncio.run(_poll_once(scheduler))
    print(json.dumps({"events": events, "status": scheduler.status()}, indent=2))


async def _watch(scheduler: MonitoringScheduler, duration: float | None) -> None:
    await scheduler.start()
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        await scheduler.stop()
        await scheduler.remote_tracker.aclose()


def cmd_watch(args: argparse.Namespace) -> None:
    settings = AgentSignalSettings()
    configure_logging(settings.log_level)
    heuristics = load_heuristics_or_exit(settings)
    scheduler = load_scheduler(settings, heuristics)
    try:
        asyncio.run(_watch(scheduler, args.duration))
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Agent Signal diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_windows = sub.add_parser("windows", help="List detected editor windows")
    p_windows.add_argument("--json", action="store_true", help="Output JSON")
    p_windows.set_defaults(func=cmd_windows)

    p_poll = sub.add_parser("poll", help="Run one monitoring cycle and print its events")
    p_poll.set_defaults(func=cmd_poll)

    p_watch = sub.add_parser("watch", help="Run the monitoring loop in the foreground")
    p_watch.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until interrupted)",
    )
    p_watch.set_defaults(func=cmd_watch)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
