"""
Proxy Network Syncer daemon.

Usage:
    python -m pns [OPTIONS]
    pns [OPTIONS]  (after pip install)

Environment variables are documented in pns/settings.py; command-line
arguments override them.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace

from . import db
from .alerts import notify_terminated
from .api import serve_in_background
from .docker_ops import DockerRuntime
from .errors import FailureBudgetExceeded, ProxyLookupError, SyncError
from .reconciler import Reconciler
from .runtime import RuntimeState
from .settings import Settings, parse_event_actions, settings
from .syncer import Syncer

logger = logging.getLogger("pns")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="pns",
        description="Keep a reverse-proxy container attached to the Docker networks it should serve.",
    )
    p.add_argument("--proxy-container", default=None, help="Proxy container name (PNS_PROXY_CONTAINER)")
    p.add_argument("--event-actions", default=None, help="Comma separated network actions (PNS_EVENT_ACTIONS)")
    p.add_argument(
        "--max-failures",
        type=int,
        default=None,
        help="Consecutive failures tolerated before exiting (PNS_MAX_CONSECUTIVE_FAILURES)",
    )
    p.add_argument("--db-path", default=None, help="SQLite event journal (PNS_DB_PATH)")
    p.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (PNS_LOG_LEVEL)",
    )
    p.add_argument("--no-api", action="store_true", help="Do not serve the status API")

    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--once", action="store_true", help="Reconcile once and exit")
    mode.add_argument("--dry-run", action="store_true", help="Print the plan as JSON without applying it")
    return p.parse_args(argv)


def build_settings(args: argparse.Namespace, base: Settings = settings) -> Settings:
    overrides = {}
    if args.proxy_container:
        overrides["proxy_container"] = args.proxy_container
    if args.event_actions:
        overrides["event_actions"] = args.event_actions
    if args.max_failures is not None:
        overrides["max_consecutive_failures"] = args.max_failures
    if args.db_path:
        overrides["db_path"] = args.db_path
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.no_api or args.once or args.dry_run:
        overrides["api_enabled"] = False
    return replace(base, **overrides)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    cfg = build_settings(args)

    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        actions = parse_event_actions(cfg.event_actions)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    db.DB_PATH = cfg.db_path
    db.init_db()

    try:
        runtime = DockerRuntime.from_env()
        proxy = runtime.find_container(cfg.proxy_container)
    except (SyncError, ProxyLookupError) as e:
        logger.error("Startup failed: %s", e)
        return 1

    logger.info("Syncing proxy container %s (%s)", proxy.name, proxy.id[:12])
    reconciler = Reconciler(runtime, proxy)

    if args.dry_run:
        try:
            plan = reconciler.plan()
        except SyncError as e:
            logger.error("Unable to compute plan: %s", e)
            return 1
        print(json.dumps(plan.as_dict(), indent=2))
        return 0

    state = RuntimeState()
    state.configure(proxy, actions, cfg.max_consecutive_failures)
    syncer = Syncer(
        runtime,
        reconciler,
        event_actions=actions,
        max_consecutive_failures=cfg.max_consecutive_failures,
        resubscribe_delay_s=cfg.resubscribe_delay_s,
        state=state,
    )

    if args.once:
        try:
            return 0 if syncer.run_once() is not None else 1
        except FailureBudgetExceeded as e:
            logger.critical("Giving up: %s (last error: %s)", e, e.__cause__)
            notify_terminated(proxy, e)
            return 1

    if cfg.api_enabled:
        serve_in_background(state, cfg)

    try:
        syncer.run_forever()
    except FailureBudgetExceeded as e:
        logger.critical("Giving up: %s (last error: %s)", e, e.__cause__)
        notify_terminated(proxy, e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    return 1


if __name__ == "__main__":
    sys.exit(main())
