"""Application entry point for the logtail CLI."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

from logtail import settings
from logtail.adapters.console_sink import ConsoleSink
from logtail.adapters.jsonl_source import JsonLinesLogSource
from logtail.adapters.sqlite_source import SQLiteLogSource
from logtail.core.config import StackConfig
from logtail.core.errors import LogTailError, ParseError
from logtail.core.ports import LogSource
from logtail.core.since import parse_since
from logtail.core.tail import LogTailer, TailStats

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _build_log_handlers(config: dict, base_dir: str, level: int) -> list[logging.Handler]:
    # stdout carries the tailed entries, so diagnostics go to stderr or a file.
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers: list[logging.Handler] = []

    if config.get("console", True):
        handlers.append(logging.StreamHandler(sys.stderr))

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/logtail.log")
        if not os.path.isabs(path):
            path = os.path.join(base_dir, path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def _configure_logging(config: dict, base_dir: str) -> None:
    """Apply the "logging" config section; logging stays off unless enabled."""

    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    handlers = _build_log_handlers(config, base_dir, level)
    if handlers:
        logging.basicConfig(level=level, handlers=handlers)


def build_source(stack: StackConfig) -> LogSource:
    """Select the log source adapter for a stack."""

    if stack.source_type == "sqlite":
        return SQLiteLogSource(stack.path)
    return JsonLinesLogSource(stack.path)


def _run_until_interrupted(
    tailer: LogTailer,
    start_time: Optional[datetime],
    resource_filter: str,
    follow: bool,
) -> TailStats:
    """Run the tail loop on a worker thread; Ctrl-C cancels it.

    The main thread only joins, so KeyboardInterrupt lands here and the
    cancellation event is set outside any signal handler.
    """

    cancel = threading.Event()
    outcome: dict = {}

    def _target() -> None:
        try:
            outcome["stats"] = tailer.run(start_time, resource_filter, follow, cancel)
        except BaseException as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=_target, name="logtail-tail", daemon=True)
    try:
        worker.start()
        while worker.is_alive():
            worker.join(0.2)
    except KeyboardInterrupt:
        cancel.set()
        worker.join()

    if "error" in outcome:
        raise outcome["error"]
    return outcome["stats"]


def _run_logs(args: argparse.Namespace) -> None:
    logger = logging.getLogger(__name__)

    path = settings.config_path()
    config = settings.load_json_config(path)
    base_dir = os.path.dirname(os.path.abspath(path))
    _configure_logging(config.get("logging", {}), base_dir)
    tail_config = settings.build_tail_config(config)

    stack = settings.resolve_stack(config, args.stack, base_dir)
    source = build_source(stack)
    logger.info("Reading logs for stack %s from %s (%s)", stack.name, stack.path, stack.source_type)

    since = args.since if args.since is not None else tail_config.since
    try:
        start_time = parse_since(since, datetime.now().astimezone())
    except ParseError as exc:
        raise LogTailError(f"failed to parse argument to '--since' as duration or timestamp: {exc}") from exc

    tz = timezone.utc if tail_config.timezone == "utc" else None
    sink = ConsoleSink(tz=tz)
    sink.announce(start_time)

    tailer = LogTailer(
        source,
        sink,
        poll_interval=tail_config.poll_interval,
        retention_ms=tail_config.retention_ms,
    )
    stats = _run_until_interrupted(tailer, start_time, args.resource, args.follow)

    logger.info("Tail finished: polls=%s, emitted=%s, skipped=%s", stats.polls, stats.emitted, stats.skipped)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="logtail")
    subparsers = parser.add_subparsers(dest="command")

    logs = subparsers.add_parser("logs", help="Show aggregated logs for a stack")
    logs.add_argument(
        "-s",
        "--stack",
        default=None,
        help="Show logs for a different stack than the configured default",
    )
    logs.add_argument(
        "-f",
        "--follow",
        action="store_true",
        help="Follow the log stream in real time (like tail -f)",
    )
    logs.add_argument(
        "--since",
        default=None,
        help="Only return logs newer than a relative duration ('5s', '2m', '3h') or absolute "
        "timestamp. Defaults to returning the last 1 hour of logs.",
    )
    logs.add_argument(
        "-r",
        "--resource",
        default="",
        help="Only return logs for the requested resource ('name', 'type::name' or full id). "
        "Defaults to returning all logs.",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command != "logs":
        parser.print_help()
        return 2

    try:
        _run_logs(args)
    except LogTailError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
