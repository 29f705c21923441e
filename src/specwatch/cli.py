"""specwatch CLI.

Subcommands:
  check        -> run the monitor and write the result file for automation
  state        -> show how the persisted state slots load (absent/corrupt/present)
  fingerprint  -> print the fingerprint of the cached changelog

Exit codes: 0 when a run completes (whether or not anything changed), 1 on
any failure while loading configuration, fetching, or persisting the report.
"""

from __future__ import annotations

import argparse
import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from specwatch import digest
from specwatch.config import MonitorConfig, load_config
from specwatch.errors import MonitorError, classify_error
from specwatch.logging import configure_logging, get_logger
from specwatch.models import MonitorResult
from specwatch.monitor import ChangelogMonitor
from specwatch.report import write_report
from specwatch.state_store import StateStore

CONFIG_HELP = "Path to specwatch.config.yaml (defaults apply when omitted)"

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="specwatch", description="Detect changes to a vendor API specification and changelog"
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Only log errors (env: SPECWATCH_QUIET=1)",
    )
    p.add_argument("--json-logs", action="store_true", help="Emit one JSON object per log line")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    pc = sub.add_parser("check", help="Fetch, compare and write the change report")
    pc.add_argument("--config", help=CONFIG_HELP)
    pc.add_argument("--report", type=Path, help="Report path (default from config)")
    pc.add_argument("--no-report", action="store_true", help="Do not write the report file")
    pc.add_argument(
        "--concurrent", action="store_true", help="Fetch changelog and specification in parallel"
    )

    ps = sub.add_parser("state", help="Show load status of the persisted state")
    ps.add_argument("--config", help=CONFIG_HELP)
    ps.add_argument("--strict", action="store_true", help="Exit 1 when any state slot is corrupt")

    pf = sub.add_parser("fingerprint", help="Print the cached changelog fingerprint")
    pf.add_argument("--config", help=CONFIG_HELP)
    pf.add_argument("--cache", type=Path, help="Changelog cache path (default from config)")
    return p


def _log_outcome(result: MonitorResult) -> None:
    logger = get_logger()
    if result.version_changed:
        logger.info(
            f"API version update detected: {result.stored_version} -> {result.current_version}"
        )
    elif result.changelog_changed:
        logger.info("Changelog update detected")
    else:
        logger.info("No updates detected")


def _cmd_check(cfg: MonitorConfig, args: argparse.Namespace) -> int:
    if args.concurrent:
        cfg.concurrent_fetch = True
    result = ChangelogMonitor(cfg).run()
    _log_outcome(result)
    if not args.no_report:
        path = write_report(args.report or cfg.report_path, result)
        get_logger().info(f"Results saved to: {path}", report=str(path))
    return 0


def _cmd_state(cfg: MonitorConfig, args: argparse.Namespace) -> int:
    stored = StateStore(cfg.spec_path, cfg.cache_path).load_stored_state()
    payload = {
        "storedVersion": stored.stored_version,
        "spec": {"path": str(cfg.spec_path), **stored.spec_load.as_json()},
        "cache": {"path": str(cfg.cache_path), **stored.cache_load.as_json()},
    }
    print(json.dumps(payload, indent=2))
    if args.strict and (stored.spec_load.is_corrupt or stored.cache_load.is_corrupt):
        return 1
    return 0


def _cmd_fingerprint(cfg: MonitorConfig, args: argparse.Namespace) -> int:
    cache_path = args.cache or cfg.cache_path
    loaded = StateStore(cfg.spec_path, cache_path).load_cache()
    value = digest.fingerprint(loaded.value) if loaded.value is not None else None
    payload = {"path": str(cache_path), "status": loaded.status.value, "fingerprint": value}
    print(json.dumps(payload))
    return 0


def _build_handlers(
    args: argparse.Namespace, cfg: MonitorConfig
) -> dict[str, Callable[[], int]]:
    return {
        "check": lambda: _cmd_check(cfg, args),
        "state": lambda: _cmd_state(cfg, args),
        "fingerprint": lambda: _cmd_fingerprint(cfg, args),
    }


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.quiet and os.environ.get("SPECWATCH_QUIET") == "1":
        args.quiet = True
    level = "ERROR" if args.quiet else "INFO"
    logger = configure_logging(json_logging=args.json_logs, level=level)
    try:
        cfg = load_config(args.config)
        logger = configure_logging(
            json_logging=args.json_logs or cfg.logging_json_enabled,
            level="ERROR" if args.quiet else cfg.logging_level,
        )
        return _build_handlers(args, cfg)[args.cmd]()
    except (MonitorError, OSError) as exc:
        info = classify_error(exc)
        logger.log_error(
            f"{args.cmd} failed",
            error=info.message,
            category=info.category,
            transient=info.transient,
        )
        return 1
    except Exception as exc:  # noqa: BLE001
        info = classify_error(exc)
        logger.log_error(
            f"{args.cmd} failed unexpectedly",
            error=info.message,
            category=info.category,
            error_type=info.original_type,
        )
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
