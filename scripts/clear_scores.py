#!/usr/bin/env python3
"""
Clear Scores

Resets a league's team totals and deletes its daily player scores and
processed-date markers so scoring can be re-derived from scratch.

Usage:
    python scripts/clear_scores.py --league my-league --yes
"""

import argparse
import sys

from hockeypool.http_utils import get_store
from hockeypool.logging_config import setup_logging
from hockeypool.pipeline import clear_scores


def main():
    parser = argparse.ArgumentParser(description="Reset all scoring data for a league")
    parser.add_argument("--league", "-l", required=True, help="League id")
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args()

    setup_logging()

    if not args.yes:
        answer = input(f"Delete all scores for {args.league}? [y/N] ")
        if answer.strip().lower() != 'y':
            print("Aborted")
            sys.exit(1)

    summary = clear_scores(get_store(), args.league)
    print(f"Teams reset:             {summary.teams_reset}")
    print(f"Player scores deleted:   {summary.player_scores_deleted}")
    print(f"Processed dates deleted: {summary.processed_dates_deleted}")


if __name__ == '__main__':
    main()
