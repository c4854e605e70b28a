#!/usr/bin/env python3
"""CLI tool for running a single expiry sweep against the configured database.

Deletes unread notes older than the retention window, the same pass the
server runs hourly. Useful from cron when the server is not running.
"""

from __future__ import annotations

import argparse
import os
import sys

# Allow running from repo root: add backend/ to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

import app.models  # noqa: F401

from app.config import get_settings
from app.db import create_db_and_tables, engine
from app.services.expiry import ExpirySweeper
from app.services.note_store import NoteStore


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Delete unread notes older than the retention window."
    )
    parser.add_argument(
        "--days",
        "-d",
        type=int,
        default=settings.note_retention_days,
        help=f"Retention window in days (default: {settings.note_retention_days})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report how many notes would be deleted",
    )
    args = parser.parse_args()

    if args.days <= 0:
        print("Error: --days must be positive", file=sys.stderr)
        return 1

    create_db_and_tables()
    store = NoteStore(engine)
    sweeper = ExpirySweeper(store, retention_days=args.days)

    if args.dry_run:
        count = store.count_unread_before(sweeper.cutoff())
        print(f"{count} unread note(s) older than {args.days} days would be deleted")
        return 0

    deleted = sweeper.run_once()
    print(f"Deleted {deleted} unread note(s) older than {args.days} days")
    return 0


if __name__ == "__main__":
    sys.exit(main())
