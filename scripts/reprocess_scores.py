#!/usr/bin/env python3
"""
Reprocess Scores

Runs the daily scoring pipeline for every date in a range. Dates that are
already processed are skipped, so the script is safe to re-run; use
clear_scores.py first to re-derive points after a rule change.

Usage:
    python scripts/reprocess_scores.py --league my-league --start 2025-10-07 --end 2025-11-20
    python scripts/reprocess_scores.py --league my-league --start 2025-11-19
"""

import argparse
import logging
import sys

from hockeypool.http_utils import get_client, get_store
from hockeypool.logging_config import setup_logging
from hockeypool.pipeline import STATUS_FETCH_FAILED, score_date_range


def main():
    parser = argparse.ArgumentParser(description="Score a range of dates for one league")
    parser.add_argument("--league", "-l", required=True, help="League id")
    parser.add_argument("--start", "-s", required=True, help="First date (YYYY-MM-DD)")
    parser.add_argument("--end", "-e", help="Last date, inclusive (default: --start)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", help="Also write detailed logs to this file")
    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    summaries = score_date_range(get_store(), get_client(), args.league, args.start, args.end or args.start)

    print(f"{'Date':<12} {'Status':<18} {'Games':>5} {'Players':>7}")
    print("-" * 46)
    for summary in summaries:
        print(
            f"{summary.date:<12} {summary.status:<18} "
            f"{summary.games_processed:>5} {summary.player_performances:>7}"
        )

    failed = [s.date for s in summaries if s.status == STATUS_FETCH_FAILED]
    if failed:
        print(f"\nFetch failed for: {', '.join(failed)} (re-run to retry)")
        sys.exit(1)


if __name__ == '__main__':
    main()
