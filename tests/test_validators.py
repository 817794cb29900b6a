"""Unit tests for validation functions."""

import pytest

from hockeypool.models import RosterCounts
from hockeypool.schemas import League, LeagueTeam, PlayerDailyScore, RosterSettings
from hockeypool.validators import (
    class_capacity,
    validate_daily_scores,
    validate_league,
    validate_player_score,
    validate_roster_counts,
    validate_team_points,
)


def make_score(points, breakdown=None, name='Connor McDavid', team='Ice Holes'):
    return PlayerDailyScore(
        player_id=8478402,
        player_name=name,
        team_name=team,
        date='2025-11-19',
        points=points,
        breakdown=breakdown if breakdown is not None else {'goals': points},
    )


class TestRosterValidation:
    """Tests for roster occupancy checks."""

    def test_valid_roster(self):
        """A full default roster passes."""
        counts = RosterCounts(active={'F': 9, 'D': 6, 'G': 2}, reserve=5)
        assert validate_roster_counts('Ice Holes', counts, RosterSettings()) == []

    def test_too_many_forwards(self):
        counts = RosterCounts(active={'F': 10, 'D': 0, 'G': 0})
        errors = validate_roster_counts('Ice Holes', counts, RosterSettings())
        assert len(errors) == 1
        assert 'Ice Holes has 10 active Forward players (max 9)' in errors[0]

    def test_too_many_reserves(self):
        counts = RosterCounts(reserve=3)
        errors = validate_roster_counts('Ice Holes', counts, RosterSettings(reserves=2))
        assert errors == ['Ice Holes has 3 reserves (max 2)']

    def test_class_capacity(self):
        settings = RosterSettings(forwards=4, defensemen=3, goalies=1)
        assert class_capacity(settings) == {'F': 4, 'D': 3, 'G': 1}


class TestLeagueValidation:
    """Tests for league setup checks."""

    def make_league(self, teams=('A', 'B'), rounds=15, settings=None):
        return League(
            league_id='lg',
            league_name='League',
            teams=[LeagueTeam(team_name=t) for t in teams],
            draft_rounds=rounds,
            roster_settings=settings or RosterSettings(),
        )

    def test_valid_league(self):
        assert validate_league(self.make_league()) == []

    def test_single_team(self):
        errors = validate_league(self.make_league(teams=('Solo',)))
        assert len(errors) == 1
        assert 'need at least 2' in errors[0]

    def test_more_rounds_than_roster_space(self):
        settings = RosterSettings(forwards=2, defensemen=1, goalies=1, reserves=1)
        errors = validate_league(self.make_league(rounds=6, settings=settings))
        assert errors == ['lg drafts 6 rounds but rosters hold 5']

    def test_duplicate_team_names_rejected(self):
        with pytest.raises(ValueError, match='Duplicate team names'):
            self.make_league(teams=('A', 'A'))


class TestPlayerScoreValidation:
    """Tests for per-player sanity checks."""

    def test_normal_score(self):
        assert validate_player_score(make_score(2.5, {'goals': 2.0, 'hits': 0.5})) == []

    def test_unusually_high(self):
        warnings = validate_player_score(make_score(75.0))
        assert len(warnings) == 1
        assert 'unusually high' in warnings[0]

    def test_unusually_low(self):
        warnings = validate_player_score(make_score(-12.0))
        assert 'unusually low' in warnings[0]

    def test_breakdown_mismatch(self):
        warnings = validate_player_score(make_score(3.0, {'goals': 2.0}))
        assert len(warnings) == 1
        assert 'breakdown sum' in warnings[0]

    def test_rounding_tolerated(self):
        assert validate_player_score(make_score(0.45, {'blocked_shots': 0.45000001})) == []

    def test_nan(self):
        warnings = validate_player_score(make_score(float('nan'), {}))
        assert 'non-finite' in warnings[0]


class TestTeamPointsValidation:
    def test_normal(self):
        assert validate_team_points('Ice Holes', 12.3, 10) == []

    def test_high_average(self):
        assert 'unusually high' in validate_team_points('Ice Holes', 90.0, 3)[0]

    def test_negative_total(self):
        assert 'negative total' in validate_team_points('Ice Holes', -1.0, 3)[0]

    def test_infinite(self):
        assert 'non-finite' in validate_team_points('Ice Holes', float('inf'), 3)[0]


class TestDailyScoresValidation:
    def test_clean_day(self):
        scores = [make_score(2.0), make_score(1.0, name='Matthews', team='Puck Dynasty')]
        assert validate_daily_scores(scores) == ([], [])

    def test_non_finite_is_error(self):
        scores = [make_score(float('inf'), {}), make_score(1.0, name='Matthews')]
        errors, warnings = validate_daily_scores(scores)
        assert len(errors) == 1
        assert 'Connor McDavid' in errors[0]
        assert warnings == []

    def test_warnings_do_not_block(self):
        errors, warnings = validate_daily_scores([make_score(65.0)])
        assert errors == []
        assert any('unusually high' in w for w in warnings)
