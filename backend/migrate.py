"""
Migrate UEs, comments and (optionally) users from the old etu.utt.fr database.

Reads OLD_DATABASE_URL and DATABASE_URL from the environment (or a .env file).

Usage:
    python backend/migrate.py
    python backend/migrate.py --drop-all
    python backend/migrate.py --with-users --report migration_audit.xlsx
"""

from __future__ import annotations

import argparse
import os
import sys

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy.exc import SQLAlchemyError

from audit_report import write_audit_report
from config import MigrationError, load_settings
from legacy_source import open_legacy_source
from phases import run_migration
from target_store import open_target_store


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="etu-migrate",
        description="Migrate legacy UEs, comments and users into the new database.",
    )
    parser.add_argument(
        "--drop-all",
        action="store_true",
        help="Delete every row of the target database first (staging/test only)",
    )
    parser.add_argument("--with-users", action="store_true", help="Also migrate users and UE subscriptions")
    parser.add_argument("--workers", type=int, default=None, help="Concurrent writes per batch")
    parser.add_argument("--report", default=None, help="Write an xlsx audit report to this path")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
        workers = args.workers if args.workers is not None else settings.workers
        with open_legacy_source(settings.legacy_url) as source:
            with open_target_store(settings.target_url) as store:
                tracker = run_migration(
                    source,
                    store,
                    workers=max(1, workers),
                    first_year=settings.first_year,
                    last_year=settings.last_year,
                    drop_all=args.drop_all,
                    with_users=args.with_users,
                )
    except MigrationError as exc:
        print(f"[FATAL] {exc}", file=sys.stderr)
        return 1
    except SQLAlchemyError as exc:
        detail = getattr(exc, "orig", None) or exc
        print(f"[FATAL] Database write failed: {exc.__class__.__name__}: {detail}", file=sys.stderr)
        return 1

    print("\n[DONE] Migration finished")
    for row in tracker.summary_rows():
        print(
            f"  {row['kind']:<16} created={row['created']} updated={row['updated']} "
            f"unchanged={row['unchanged']} linked={row['linked']} skipped={row['skipped']}"
        )

    if args.report:
        try:
            path = write_audit_report(args.report, tracker)
        except OSError as exc:
            print(f"[WARN] Could not write audit report to {args.report}: {exc}")
        else:
            print(f"[INFO] Audit report written to {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
