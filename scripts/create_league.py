#!/usr/bin/env python3
"""
Create League

Creates a pending league with the default scoring rules and roster
settings, and optionally starts its draft.

Usage:
    python scripts/create_league.py --id my-league --name "Office Pool" \
        --teams "Ice Holes" "Puck Dynasty" "Zamboni Drivers" --rounds 15
    python scripts/create_league.py --id my-league --name "Office Pool" --teams A B --start-draft
"""

import argparse

from hockeypool.draft import create_league, start_draft
from hockeypool.http_utils import get_store
from hockeypool.logging_config import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Create a hockey pool league")
    parser.add_argument("--id", required=True, help="League id")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--teams", nargs="+", required=True, help="Team names in draft order")
    parser.add_argument("--rounds", type=int, help="Draft rounds (default from config)")
    parser.add_argument("--admin", help="Admin user id")
    parser.add_argument("--start-draft", action="store_true", help="Open the draft immediately")
    args = parser.parse_args()

    setup_logging()
    store = get_store()

    league = create_league(
        store, args.id, args.name, args.teams, admin=args.admin, draft_rounds=args.rounds
    )
    print(f"Created {league.league_name} ({league.league_id}) with {len(league.teams)} teams")

    if args.start_draft:
        state = start_draft(store, args.id)
        print(f"Draft started: {state.total_picks} picks, {state.draft_order[0].team} on the clock")


if __name__ == '__main__':
    main()
