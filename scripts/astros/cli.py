"""CLI entry point: sync, scheduler, status, roster, init-db."""

from __future__ import annotations

import argparse
import logging
import os
from typing import Optional, Sequence

from scripts.astros.blob_store import build_blob_store
from scripts.astros.config import AstrosConfig, load_config
from scripts.astros.db import Database
from scripts.astros.enricher import ImageEnricher
from scripts.astros.errors import ConfigError, FetchError
from scripts.astros.feed_client import FeedClient
from scripts.astros.logging_config import configure_logging
from scripts.astros.pipeline import RosterSync
from scripts.astros.roster_store import PostgresRosterStore

logger = logging.getLogger("astros.cli")


def build_sync(config: AstrosConfig, db: Database) -> RosterSync:
    """Wire the production collaborators for one run."""
    return RosterSync(
        feed=FeedClient(config.feed),
        store=PostgresRosterStore(db),
        enricher=ImageEnricher(config.require_image_search(), build_blob_store(config.blob_store)),
        delay_seconds=config.enrich_delay_seconds,
    )


def cmd_sync(args: argparse.Namespace) -> int:
    """Run one sync. Exit 1 only when the feed is unusable."""
    config = load_config()
    db = Database(config.database)
    try:
        summary = build_sync(config, db).run_with_tracking(db)
    except FetchError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        db.close()

    logger.info("Command completed successfully! %s", summary.as_dict())
    return 0


def cmd_scheduler(args: argparse.Namespace) -> int:
    from scripts.astros.scheduler import start_scheduler

    config = load_config()
    config.require_image_search()
    db = Database(config.database)
    try:
        start_scheduler(config, db)
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
    finally:
        db.close()
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show recent sync runs."""
    config = load_config()
    db = Database(config.database)
    try:
        runs = db.get_recent_runs(limit=args.limit)
    finally:
        db.close()

    if not runs:
        print("No sync runs found.")
        return 0

    fmt = "{:<36}  {:<8}  {:<20}  {:<20}  {:>7}  {:>5}  {:>7}  {}"
    print(fmt.format("RUN ID", "STATUS", "STARTED", "FINISHED", "REMOVED", "ADDED", "UPDATED", "ERROR"))
    print("-" * 130)
    for r in runs:
        started = str(r["started_at"])[:19] if r["started_at"] else ""
        finished = str(r["finished_at"])[:19] if r["finished_at"] else ""
        print(fmt.format(
            str(r["id"])[:36],
            r["status"],
            started,
            finished,
            r.get("removed", 0),
            r.get("added", 0),
            r.get("updated", 0),
            (r.get("error_message") or "")[:40],
        ))
    return 0


def cmd_roster(args: argparse.Namespace) -> int:
    """Print the stored roster, or one record when --name and --craft are given."""
    config = load_config()
    db = Database(config.database)
    try:
        store = PostgresRosterStore(db)
        if args.name and args.craft:
            record = store.find_by_name_and_craft(args.name, args.craft)
            if record is None:
                print(f"No record for {args.name} ({args.craft})")
                return 1
            records = [record]
        else:
            records = store.all()
    finally:
        db.close()

    fmt = "{:<32}  {:<12}  {}"
    print(fmt.format("NAME", "CRAFT", "IMAGE"))
    for rec in records:
        print(fmt.format(rec.name, rec.craft, rec.image_ref or "-"))
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    config = load_config()
    db = Database(config.database)
    try:
        db.ensure_schema()
    finally:
        db.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="astros",
        description="Keep a local roster of people in space, with photos",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Run one roster sync")
    sync_parser.set_defaults(func=cmd_sync)

    sched_parser = subparsers.add_parser("scheduler", help="Start scheduled sync loop")
    sched_parser.set_defaults(func=cmd_scheduler)

    status_parser = subparsers.add_parser("status", help="Show recent sync runs")
    status_parser.add_argument(
        "--limit", "-l",
        type=int,
        default=10,
        help="Number of runs to show (default: 10)",
    )
    status_parser.set_defaults(func=cmd_status)

    roster_parser = subparsers.add_parser("roster", help="Show the stored roster")
    roster_parser.add_argument("--name", help="Look up a single person by name")
    roster_parser.add_argument("--craft", help="Craft of the person to look up")
    roster_parser.set_defaults(func=cmd_roster)

    init_parser = subparsers.add_parser("init-db", help="Create tables if missing")
    init_parser.set_defaults(func=cmd_init_db)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
