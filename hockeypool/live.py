"""Best-effort live stats for same-day display. Never touches team totals."""

import logging
import time
from datetime import datetime
from typing import Any, Optional

from .config import get_config, get_timezone
from .constants import LEAGUE_LIVE, NOT_STARTED_GAME_STATES
from .draft import get_league, league_players
from .errors import StatsSourceError
from .models import LivePollSummary
from .pipeline import fetch_game_stat_lines
from .schemas import Game, LiveStat
from .scoring import score_stat_line
from .stats_client import NHLStatsClient
from .store import LEAGUES, DocumentStore, live_stat_path, live_stats_collection
from .utils import local_today, utc_now_iso

logger = logging.getLogger('hockeypool.live')


def process_live_stats(
    store: DocumentStore,
    client: NHLStatsClient,
    league_id: str,
    date: str,
    games: Optional[list[Game]] = None,
    delay: float = 0.0,
) -> LivePollSummary:
    """
    Snapshot in-progress and finished games for one league.

    Every drafted player (active or reserve) who appears in a started game
    gets a LiveStat overwritten at ``live_stats/{date}_{player}``. A game
    that cannot be fetched is logged and counted, and the rest continue.

    Args:
        store: Document store
        client: Stats source
        league_id: League to update
        date: Today's date in the league timezone
        games: The day's games, if already fetched
        delay: Seconds to wait between boxscore requests

    Raises:
        StatsSourceError: If the day's game list cannot be fetched
    """
    summary = LivePollSummary(league_id=league_id, date=date)
    league = get_league(store, league_id)
    players = {p.player_id: p for p in league_players(store, league_id)}
    if not players:
        return summary

    if games is None:
        games = client.get_games_for_date(date)
    started = [g for g in games if g.game_state not in NOT_STARTED_GAME_STATES]

    for index, game in enumerate(started):
        if delay and index:
            time.sleep(delay)
        try:
            lines = fetch_game_stat_lines(client, game.game_id, set(players))
        except (StatsSourceError, ValueError) as e:
            logger.error(f'{league_id}: live stats for game {game.game_id} failed: {e}')
            summary.games_failed.append(game.game_id)
            continue

        now = utc_now_iso()
        for line in lines:
            owner = players[line.player_id]
            line = line.model_copy(update={'position': owner.position})
            points, _ = score_stat_line(line, league.scoring_rules)
            store.set(
                live_stat_path(league_id, date, line.player_id),
                LiveStat(
                    player_id=line.player_id,
                    player_name=owner.name,
                    team_name=owner.drafted_by_team,
                    nhl_team=line.nhl_team,
                    date=date,
                    game_id=game.game_id,
                    game_state=game.game_state,
                    away_score=game.away_score,
                    home_score=game.home_score,
                    goals=line.goals,
                    assists=line.assists,
                    shots=line.shots,
                    hits=line.hits,
                    blocked_shots=line.blocked_shots,
                    wins=line.wins,
                    saves=line.saves,
                    shutouts=line.shutouts,
                    fantasy_points=round(points, 4),
                    last_updated=now,
                ),
            )
            summary.players_updated += 1
        summary.games_processed += 1

    logger.info(
        f'{league_id} live {date}: {summary.games_processed} games, '
        f'{summary.players_updated} players updated'
    )
    return summary


def poll_live_stats(
    store: DocumentStore,
    client: NHLStatsClient,
    now: Optional[datetime] = None,
    delay: Optional[float] = None,
) -> dict[str, Any]:
    """
    Update live stats for every live league.

    The day's game list is fetched once. A failure in one league is logged
    and reported in ``errors``; the other leagues still run.

    Returns:
        JSON-friendly summary with leagues_processed, games_processed,
        players_updated and errors
    """
    date = local_today(get_timezone(), now)
    if delay is None:
        delay = get_config().live_request_delay_seconds
    result: dict[str, Any] = {
        'date': date,
        'leagues_processed': 0,
        'games_processed': 0,
        'players_updated': 0,
        'errors': [],
        'leagues': [],
    }

    try:
        games = client.get_games_for_date(date)
    except StatsSourceError as e:
        logger.error(f'Could not fetch games for {date}: {e}')
        result['errors'].append({'league_id': None, 'error': str(e)})
        return result

    if all(g.game_state in NOT_STARTED_GAME_STATES for g in games):
        logger.info(f'No started games on {date}')
        return result

    for document_id, data in store.list_documents(LEAGUES):
        if data.get('status') != LEAGUE_LIVE:
            continue
        # Document ids are path-encoded; the stored id is the real one
        league_id = data.get('league_id') or document_id
        try:
            summary = process_live_stats(store, client, league_id, date, games=games, delay=delay)
        except Exception as e:
            logger.exception(f'Live stats failed for league {league_id}')
            result['errors'].append({'league_id': league_id, 'error': str(e)})
            continue
        result['leagues_processed'] += 1
        result['games_processed'] += summary.games_processed
        result['players_updated'] += summary.players_updated
        result['leagues'].append(summary.to_dict())

    return result


def live_stats_summary(store: DocumentStore, league_id: str, date: str) -> dict[str, Any]:
    """Live points per fantasy team for a date, players sorted by points."""
    teams: dict[str, dict[str, Any]] = {}
    for _, data in store.query(live_stats_collection(league_id), date=date):
        stat = LiveStat.model_validate(data)
        team = teams.setdefault(stat.team_name, {'total_points': 0.0, 'players': []})
        team['total_points'] = round(team['total_points'] + stat.fantasy_points, 4)
        team['players'].append(stat.model_dump())

    for team in teams.values():
        team['players'].sort(key=lambda p: -p['fantasy_points'])
    return teams
