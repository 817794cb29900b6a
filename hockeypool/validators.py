"""Validation functions for rosters, leagues, and scoring results."""

import math

from .constants import DEFENSE, FORWARDS, GOALIES, POSITION_CLASS_NAMES
from .models import RosterCounts
from .schemas import League, PlayerDailyScore, RosterSettings


def class_capacity(settings: RosterSettings) -> dict[str, int]:
    """Active slot capacity per position class."""
    return {
        FORWARDS: settings.forwards,
        DEFENSE: settings.defensemen,
        GOALIES: settings.goalies,
    }


def validate_roster_counts(team_name: str, counts: RosterCounts, settings: RosterSettings) -> list[str]:
    """
    Validate that a fantasy team's roster occupancy is within capacity.

    Checks:
    - Active players per class (F, D, G) within the league's limits
    - Reserve bench within its limit

    Args:
        team_name: Fantasy team name, used in messages
        counts: Current roster occupancy
        settings: League roster capacity

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    for cls, limit in class_capacity(settings).items():
        count = counts.active.get(cls, 0)
        if count > limit:
            errors.append(
                f'{team_name} has {count} active {POSITION_CLASS_NAMES[cls]} players (max {limit})'
            )

    if counts.reserve > settings.reserves:
        errors.append(f'{team_name} has {counts.reserve} reserves (max {settings.reserves})')

    return errors


def validate_league(league: League) -> list[str]:
    """
    Check that a league can run a draft.

    Checks:
    - At least two teams
    - Enough roster space for every round of the draft

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if len(league.teams) < 2:
        errors.append(f'{league.league_id} has {len(league.teams)} team(s) (need at least 2)')

    settings = league.roster_settings
    capacity = settings.forwards + settings.defensemen + settings.goalies + settings.reserves
    if league.draft_rounds > capacity:
        errors.append(
            f'{league.league_id} drafts {league.draft_rounds} rounds but rosters hold {capacity}'
        )

    return errors


def validate_player_score(score: PlayerDailyScore) -> list[str]:
    """
    Check that a player's daily score is reasonable and internally consistent.

    Sanity checks:
    - No NaN or infinity values
    - Points in a reasonable range (-10 to 60)
    - Breakdown totals match the points (within rounding)

    Args:
        score: PlayerDailyScore to validate

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    if not math.isfinite(score.points):
        warnings.append(f'{score.player_name} has non-finite score: {score.points}')
        return warnings

    if score.points > 60:
        warnings.append(
            f'{score.player_name} scored {score.points:.2f} pts on {score.date} (unusually high - check for scoring bug)'
        )
    elif score.points < -10:
        warnings.append(
            f'{score.player_name} scored {score.points:.2f} pts on {score.date} (unusually low - check for scoring bug)'
        )

    if score.breakdown:
        breakdown_sum = sum(score.breakdown.values())
        diff = abs(breakdown_sum - score.points)
        if diff > 0.01:
            warnings.append(
                f'{score.player_name} breakdown sum ({breakdown_sum:.2f}) != total ({score.points:.2f}) - difference: {diff:.2f}'
            )

    return warnings


def validate_team_points(team_name: str, points: float, num_players: int) -> list[str]:
    """
    Check that a team's points for one day are reasonable.

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    if not math.isfinite(points):
        warnings.append(f'{team_name} has non-finite daily total: {points}')
        return warnings

    if num_players > 0 and points / num_players > 20:
        warnings.append(
            f'{team_name} averaged {points / num_players:.2f} pts/player (unusually high - check for scoring bug)'
        )
    elif points < 0:
        warnings.append(f'{team_name} scored {points:.2f} pts (negative total - check for scoring bug)')

    return warnings


def validate_daily_scores(
    player_scores: list[PlayerDailyScore],
) -> tuple[list[str], list[str]]:
    """
    Validate all player scores for one date.

    Returns:
        Tuple of (errors, warnings)
        - errors: Non-finite points that must not be applied
        - warnings: Issues to review but not block scoring
    """
    errors: list[str] = []
    warnings: list[str] = []
    by_team: dict[str, list[PlayerDailyScore]] = {}

    for score in player_scores:
        if not math.isfinite(score.points):
            errors.append(f'{score.player_name} has non-finite score: {score.points}')
            continue
        warnings.extend(validate_player_score(score))
        by_team.setdefault(score.team_name, []).append(score)

    for team_name, scores in by_team.items():
        warnings.extend(
            validate_team_points(team_name, sum(s.points for s in scores), len(scores))
        )

    return errors, warnings
