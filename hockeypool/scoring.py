"""Fantasy point formulas for skaters and goalies."""

from typing import Dict, Tuple

from .constants import DEFENSE_POSITION, GOALIE_POSITION
from .schemas import PlayerStatLine, ScoringRules


def _add(breakdown: Dict[str, float], key: str, count: int, weight: float) -> float:
    pts = (count or 0) * weight
    if pts:
        breakdown[key] = pts
    return pts


def score_skater(
    stats: PlayerStatLine, rules: ScoringRules, is_defenseman: bool = False
) -> Tuple[float, Dict[str, float]]:
    """
    Score a forward or defenseman.

    Scoring (weights from the league's rules):
        - Goals, assists
        - Short-handed goals and overtime goals (bonus on top of the goal)
        - Fights (fighting majors from play-by-play)
        - Blocked shots and hits, defensemen only

    Args:
        stats: Player stat line for the game or day
        rules: League scoring weights
        is_defenseman: Whether blocks and hits count

    Returns:
        (points, breakdown) where breakdown sums to points
    """
    points = 0.0
    breakdown: Dict[str, float] = {}

    points += _add(breakdown, 'goals', stats.goals, rules.goal)
    points += _add(breakdown, 'assists', stats.assists, rules.assist)
    points += _add(breakdown, 'short_handed_goals', stats.short_handed_goals, rules.short_handed_goal)
    points += _add(breakdown, 'overtime_goals', stats.overtime_goals, rules.overtime_goal)
    points += _add(breakdown, 'fights', stats.fights, rules.fight)

    if is_defenseman:
        points += _add(breakdown, 'blocked_shots', stats.blocked_shots, rules.blocked_shot)
        points += _add(breakdown, 'hits', stats.hits, rules.hit)

    return points, breakdown


def score_goalie(stats: PlayerStatLine, rules: ScoringRules) -> Tuple[float, Dict[str, float]]:
    """
    Score a goalie.

    Scoring (weights from the league's rules):
        - Wins, shutouts, saves
        - Goalie assists and goalie goals
        - Goalie fights
    """
    points = 0.0
    breakdown: Dict[str, float] = {}

    points += _add(breakdown, 'wins', stats.wins, rules.win)
    points += _add(breakdown, 'shutouts', stats.shutouts, rules.shutout)
    points += _add(breakdown, 'saves', stats.saves, rules.save)
    points += _add(breakdown, 'goalie_assists', stats.assists, rules.goalie_assist)
    points += _add(breakdown, 'goalie_goals', stats.goals, rules.goalie_goal)
    points += _add(breakdown, 'goalie_fights', stats.fights, rules.goalie_fight)

    return points, breakdown


def score_stat_line(stats: PlayerStatLine, rules: ScoringRules) -> Tuple[float, Dict[str, float]]:
    """Score any player, dispatching on position."""
    if stats.position == GOALIE_POSITION:
        return score_goalie(stats, rules)
    return score_skater(stats, rules, is_defenseman=stats.position == DEFENSE_POSITION)


def counting_stats(stats: PlayerStatLine) -> Dict[str, int]:
    """Non-zero counting stats relevant to the player's position, for storage."""
    if stats.position == GOALIE_POSITION:
        keys = ('wins', 'saves', 'shutouts', 'goals_against', 'goals', 'assists', 'fights')
    else:
        keys = (
            'goals', 'assists', 'shots', 'hits', 'blocked_shots', 'pim',
            'power_play_goals', 'short_handed_goals', 'overtime_goals', 'fights',
        )
    return {key: getattr(stats, key) for key in keys if getattr(stats, key)}
