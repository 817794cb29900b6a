#!/usr/bin/env python3
"""
Backfill Daily Stats

Caches raw per-player stats for past dates (daily_stats/{date}) for trend
charts. Existing snapshots are kept unless --overwrite is given.

Usage:
    python scripts/backfill_stats.py --start 2025-10-07 --end 2025-10-31
    python scripts/backfill_stats.py --start 2025-11-19 --dry-run
"""

import argparse

from hockeypool.errors import StatsSourceError
from hockeypool.http_utils import get_client, get_store
from hockeypool.logging_config import setup_logging
from hockeypool.pipeline import backfill_daily_stats
from hockeypool.utils import date_range


def main():
    parser = argparse.ArgumentParser(description="Backfill raw daily NHL stats")
    parser.add_argument("--start", "-s", required=True, help="First date (YYYY-MM-DD)")
    parser.add_argument("--end", "-e", help="Last date, inclusive (default: --start)")
    parser.add_argument("--overwrite", action="store_true", help="Replace cached snapshots")
    parser.add_argument("--dry-run", action="store_true", help="Fetch and report without saving")
    parser.add_argument("--log-file", help="Also write detailed logs to this file")
    args = parser.parse_args()

    setup_logging(log_file=args.log_file)
    client = get_client()
    store = None if args.dry_run else get_store()

    for date in date_range(args.start, args.end or args.start):
        try:
            snapshot = backfill_daily_stats(client, date, store=store, overwrite=args.overwrite)
        except StatsSourceError as e:
            print(f"{date}: FAILED ({e})")
            continue
        print(f"{date}: {len(snapshot.players)} players from {snapshot.games_processed} games")


if __name__ == '__main__':
    main()
