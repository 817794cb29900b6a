"""Daily scoring pipeline: boxscores to player points to team totals, once per date."""

import logging
import math
from datetime import datetime, tzinfo
from typing import Iterable, Optional

from .config import get_default_scoring_rules, get_timezone
from .constants import ACTIVE, LEAGUE_LIVE
from .draft import get_league, league_players
from .errors import StatsSourceError
from .models import ClearSummary, DailyComputation, ScoringRunSummary
from .schemas import (
    DailyPlayerLine,
    DailyStatSnapshot,
    DraftedPlayer,
    PlayerDailyScore,
    PlayerStatLine,
    ProcessedDate,
    ScoringRules,
    TeamScore,
)
from .scoring import counting_stats, score_stat_line
from .stats_client import NHLStatsClient, count_fights, count_overtime_goals, players_from_boxscore
from .store import (
    DocumentStore,
    Transaction,
    daily_stats_path,
    player_daily_score_path,
    player_daily_scores_collection,
    processed_date_path,
    processed_dates_collection,
    team_score_path,
    team_scores_collection,
)
from .utils import date_range, local_yesterday, utc_now_iso
from .validators import validate_daily_scores

logger = logging.getLogger('hockeypool.pipeline')

# Counting stats summed when a player appears in more than one game line
SUMMED_FIELDS = (
    'goals', 'assists', 'shots', 'hits', 'blocked_shots', 'pim', 'power_play_goals',
    'short_handed_goals', 'overtime_goals', 'fights', 'wins', 'saves', 'goals_against',
    'shutouts', 'games_played',
)

STATUS_PROCESSED = 'processed'
STATUS_ALREADY_PROCESSED = 'already_processed'
STATUS_LEAGUE_NOT_LIVE = 'league_not_live'
STATUS_FETCH_FAILED = 'fetch_failed'


def target_date(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> str:
    """Default scoring date: yesterday in the league timezone."""
    return local_yesterday(tz or get_timezone(), now)


def merge_stat_lines(first: PlayerStatLine, second: PlayerStatLine) -> PlayerStatLine:
    return first.model_copy(
        update={name: getattr(first, name) + getattr(second, name) for name in SUMMED_FIELDS}
    )


def fetch_game_stat_lines(
    client: NHLStatsClient,
    game_id: int,
    player_ids: Optional[set[int]] = None,
    warnings: Optional[list[str]] = None,
) -> list[PlayerStatLine]:
    """
    Stat lines for one game, with fights and overtime goals from play-by-play.

    Args:
        client: Stats source
        game_id: Game to fetch
        player_ids: Only keep these players (None keeps everyone)
        warnings: Collects a note when play-by-play is unavailable

    Raises:
        StatsSourceError: If the boxscore cannot be fetched
    """
    lines = players_from_boxscore(client.get_boxscore(game_id))
    if player_ids is not None:
        lines = [line for line in lines if line.player_id in player_ids]
    if not lines:
        return []

    try:
        play_by_play = client.get_play_by_play(game_id)
    except StatsSourceError as e:
        # Boxscore stats still count; only fights and OT goals are lost
        message = f'Play-by-play unavailable for game {game_id}: {e}'
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
        return lines

    fights = count_fights(play_by_play)
    overtime = count_overtime_goals(play_by_play)
    return [
        line.model_copy(
            update={
                'fights': fights.get(line.player_id, 0),
                'overtime_goals': overtime.get(line.player_id, 0),
            }
        )
        for line in lines
    ]


def compute_daily_scores(
    client: NHLStatsClient,
    game_ids: Iterable[int],
    roster: dict[int, DraftedPlayer],
    rules: ScoringRules,
    date: str,
) -> DailyComputation:
    """
    Score every roster player who appeared in the given games.

    Nothing is written. A game whose boxscore cannot be fetched is recorded
    in ``failed_games`` and its players are skipped.

    Args:
        client: Stats source
        game_ids: Completed games for the date
        roster: Scoring players keyed by player id
        rules: League scoring weights
        date: Date being scored (YYYY-MM-DD)

    Returns:
        DailyComputation with one PlayerDailyScore per scoring player
    """
    computation = DailyComputation(date=date)
    merged: dict[int, PlayerStatLine] = {}

    for game_id in game_ids:
        computation.game_ids.append(game_id)
        try:
            lines = fetch_game_stat_lines(client, game_id, set(roster), computation.warnings)
        except (StatsSourceError, ValueError) as e:
            logger.error(f'Skipping game {game_id} on {date}: {e}')
            computation.failed_games.append(game_id)
            computation.warnings.append(f'Game {game_id} skipped: {e}')
            continue

        for line in lines:
            if line.player_id in merged:
                merged[line.player_id] = merge_stat_lines(merged[line.player_id], line)
            else:
                merged[line.player_id] = line

    for player_id, line in merged.items():
        owner = roster[player_id]
        # The drafted position decides skater/defense/goalie scoring
        line = line.model_copy(update={'position': owner.position})
        points, breakdown = score_stat_line(line, rules)
        computation.player_scores[player_id] = PlayerDailyScore(
            player_id=player_id,
            player_name=owner.name,
            team_name=owner.drafted_by_team,
            nhl_team=line.nhl_team,
            date=date,
            points=round(points, 4),
            stats=counting_stats(line),
            breakdown={key: round(value, 4) for key, value in breakdown.items()},
        )

    return computation


def _commit_scores(
    txn: Transaction,
    league_id: str,
    date: str,
    scores: list[PlayerDailyScore],
    games_processed: int,
    games_failed: list[int],
) -> Optional[dict[str, float]]:
    """Write scores, team increments and the marker; None if already processed."""
    marker_path = processed_date_path(league_id, date)
    if txn.get(marker_path) is not None:
        return None

    now = utc_now_iso()
    team_points: dict[str, float] = {}
    for score in scores:
        txn.set(player_daily_score_path(league_id, score.player_id, date), score)
        team_points[score.team_name] = team_points.get(score.team_name, 0.0) + score.points

    for team_name, points in team_points.items():
        path = team_score_path(league_id, team_name)
        team_score = txn.get_model(path, TeamScore) or TeamScore(team_name=team_name)
        team_score.total_points = round(team_score.total_points + points, 4)
        team_score.last_updated = now
        txn.set(path, team_score)

    txn.set(
        marker_path,
        ProcessedDate(
            date=date,
            processed_at=now,
            games_processed=games_processed,
            games_failed=games_failed,
            teams_updated=len(team_points),
            player_performances=len(scores),
        ),
    )
    return team_points


def process_daily_scores(
    store: DocumentStore,
    client: NHLStatsClient,
    league_id: str,
    date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ScoringRunSummary:
    """
    Apply one date's fantasy points to a league, at most once.

    Only ``active`` players score. Re-running for a processed date changes
    nothing. If the day's game list cannot be fetched the date is left
    unmarked so a later run retries. Player scores, team increments and the
    processed marker are committed in one transaction that re-checks the
    marker, so concurrent runs for the same date cannot both apply.

    Args:
        store: Document store
        client: Stats source
        league_id: League to score
        date: Date to score (default: yesterday in the league timezone)
        now: Reference instant for the default date

    Returns:
        ScoringRunSummary with status processed, already_processed,
        league_not_live or fetch_failed
    """
    date = date or target_date(now)
    summary = ScoringRunSummary(league_id=league_id, date=date, status=STATUS_PROCESSED)

    league = get_league(store, league_id)
    if league.status != LEAGUE_LIVE:
        logger.info(f'{league_id} is {league.status}; not scoring {date}')
        summary.status = STATUS_LEAGUE_NOT_LIVE
        return summary

    if store.exists(processed_date_path(league_id, date)):
        logger.info(f'{league_id} already processed {date}')
        summary.status = STATUS_ALREADY_PROCESSED
        return summary

    try:
        games = client.get_completed_games(date)
    except StatsSourceError as e:
        logger.error(f'Could not fetch games for {date}: {e}')
        summary.status = STATUS_FETCH_FAILED
        summary.error = str(e)
        return summary

    roster = {p.player_id: p for p in league_players(store, league_id, roster_slot=ACTIVE)}
    computation = compute_daily_scores(
        client, [g.game_id for g in games], roster, league.scoring_rules, date
    )

    scores = list(computation.player_scores.values())
    errors, warnings = validate_daily_scores(scores)
    for warning in warnings:
        logger.warning(warning)
    if errors:
        for error in errors:
            logger.error(error)
        scores = [s for s in scores if math.isfinite(s.points)]

    games_processed = len(computation.game_ids) - len(computation.failed_games)
    team_points = store.run_transaction(
        lambda txn: _commit_scores(
            txn, league_id, date, scores, games_processed, computation.failed_games
        )
    )

    if team_points is None:
        logger.info(f'{league_id} {date} was processed by a concurrent run')
        summary.status = STATUS_ALREADY_PROCESSED
        return summary

    summary.games_processed = games_processed
    summary.games_failed = computation.failed_games
    summary.teams_updated = len(team_points)
    summary.player_performances = len(scores)
    summary.team_points = {team: round(points, 4) for team, points in team_points.items()}
    logger.info(
        f'{league_id} {date}: {games_processed} games, {len(scores)} performances, '
        f'{len(team_points)} teams updated'
    )
    return summary


def clear_scores(store: DocumentStore, league_id: str) -> ClearSummary:
    """
    Reset a league's scoring so every date can be re-derived.

    Team totals are zeroed and daily scores and processed markers deleted
    in one transaction. Every document is read through the transaction, so
    a scoring run that commits in between forces a retry instead of leaving
    points behind without their marker.
    """

    def txn_fn(txn: Transaction) -> ClearSummary:
        summary = ClearSummary()
        now = utc_now_iso()

        teams = team_scores_collection(league_id)
        for document_id, _ in txn.query(teams):
            path = f'{teams}/{document_id}'
            team_score = txn.get_model(path, TeamScore)
            if team_score is None:
                continue
            txn.set(path, TeamScore(team_name=team_score.team_name, last_updated=now))
            summary.teams_reset += 1

        summary.player_scores_deleted = _delete_all(txn, player_daily_scores_collection(league_id))
        summary.processed_dates_deleted = _delete_all(txn, processed_dates_collection(league_id))
        return summary

    summary = store.run_transaction(txn_fn)
    logger.info(
        f'Cleared {league_id}: {summary.teams_reset} teams reset, '
        f'{summary.player_scores_deleted} player scores and '
        f'{summary.processed_dates_deleted} processed dates deleted'
    )
    return summary


def _delete_all(txn: Transaction, collection: str) -> int:
    count = 0
    for document_id, _ in txn.query(collection):
        path = f'{collection}/{document_id}'
        if txn.get(path) is not None:
            txn.delete(path)
            count += 1
    return count


def backfill_daily_stats(
    client: NHLStatsClient,
    date: str,
    store: Optional[DocumentStore] = None,
    overwrite: bool = False,
) -> DailyStatSnapshot:
    """
    Build the raw stat snapshot for a date, for historical trend data.

    Every player in the day's completed games is included, with fantasy
    points under the default weights. Without a store the snapshot is only
    returned. With a store it is written to ``daily_stats/{date}`` unless one
    already exists and ``overwrite`` is False, in which case the stored
    snapshot is returned.

    Raises:
        StatsSourceError: If the day's game list cannot be fetched
    """
    path = daily_stats_path(date)
    if store is not None and not overwrite:
        existing = store.get_model(path, DailyStatSnapshot)
        if existing is not None:
            logger.info(f'Daily stats for {date} already cached')
            return existing

    rules = get_default_scoring_rules()
    games = client.get_completed_games(date)
    merged: dict[int, PlayerStatLine] = {}
    games_processed = 0

    for game in games:
        try:
            lines = fetch_game_stat_lines(client, game.game_id)
        except (StatsSourceError, ValueError) as e:
            logger.error(f'Skipping game {game.game_id} on {date}: {e}')
            continue
        games_processed += 1
        for line in lines:
            if line.player_id in merged:
                merged[line.player_id] = merge_stat_lines(merged[line.player_id], line)
            else:
                merged[line.player_id] = line

    players = {}
    for player_id, line in merged.items():
        points, _ = score_stat_line(line, rules)
        players[str(player_id)] = DailyPlayerLine(**line.model_dump(), fantasy_points=round(points, 4))

    snapshot = DailyStatSnapshot(
        date=date, players=players, games_processed=games_processed, updated_at=utc_now_iso()
    )

    if store is not None:
        store.set(path, snapshot)
        logger.info(f'Saved daily stats for {date}: {len(players)} players from {games_processed} games')
    return snapshot


def score_date_range(
    store: DocumentStore,
    client: NHLStatsClient,
    league_id: str,
    start: str,
    end: str,
) -> list[ScoringRunSummary]:
    """Run the pipeline for every date in an inclusive range; processed dates are skipped."""
    summaries = []
    for date in date_range(start, end):
        summaries.append(process_daily_scores(store, client, league_id, date=date))
    return summaries


def standings(store: DocumentStore, league_id: str) -> list[TeamScore]:
    """TeamScores, highest total first."""
    rows = [
        TeamScore.model_validate(data)
        for _, data in store.list_documents(team_scores_collection(league_id))
    ]
    return sorted(rows, key=lambda row: (-row.total_points, row.team_name))
