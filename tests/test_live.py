"""Tests for the live stats poller."""

from datetime import datetime, timezone

import pytest

from hockeypool.constants import RESERVE
from hockeypool.draft import add_player, create_league, start_draft
from hockeypool.live import live_stats_summary, poll_live_stats, process_live_stats
from hockeypool.schemas import LiveStat
from hockeypool.store import (
    league_path,
    live_stat_path,
    live_stats_collection,
    team_scores_collection,
)

from helpers import goalie, make_boxscore, make_player, skater

TODAY = '2025-11-19'
# 20:30 Eastern on TODAY
NOW = datetime(2025, 11, 20, 1, 30, tzinfo=timezone.utc)


@pytest.fixture
def live_games(client):
    client.add_game(
        TODAY,
        1,
        make_boxscore(
            'EDM',
            'TOR',
            away_players=[skater(10, 'Forward', 'C', goals=1, assists=1)],
            home_players=[goalie(20, 'Netminder', saves=15, goals_against=1)],
        ),
        state='LIVE',
        away_score=1,
    )
    client.add_game(
        TODAY,
        2,
        make_boxscore('COL', 'VGK', away_players=[skater(30, 'Bench Guy', 'D', hits=5)]),
        state='FINAL',
    )
    client.add_game(TODAY, 3, make_boxscore('BOS', 'NYR', away_players=[skater(40, 'Later', 'C')]), state='FUT')
    client.add_game(TODAY, 4, state='PRE')
    return client


@pytest.fixture
def league_with_players(store, live_league):
    add_player(store, live_league, 'Ice Holes', make_player(10, 'C', 'Forward'))
    add_player(store, live_league, 'Ice Holes', make_player(30, 'D', 'Bench Guy'), roster_slot=RESERVE)
    add_player(store, live_league, 'Puck Dynasty', make_player(20, 'G', 'Netminder'))
    add_player(store, live_league, 'Puck Dynasty', make_player(40, 'C', 'Later'))
    return live_league


class TestProcessLiveStats:
    def test_started_games_only(self, store, client, league_with_players, live_games):
        summary = process_live_stats(store, client, league_with_players, TODAY)

        assert summary.games_processed == 2
        assert summary.players_updated == 3
        assert ('boxscore', 3) not in client.calls
        assert ('boxscore', 4) not in client.calls
        assert store.get(live_stat_path(league_with_players, TODAY, 40)) is None

    def test_live_stat_contents(self, store, client, league_with_players, live_games):
        process_live_stats(store, client, league_with_players, TODAY)

        stat = store.get_model(live_stat_path(league_with_players, TODAY, 10), LiveStat)
        assert stat.team_name == 'Ice Holes'
        assert stat.game_state == 'LIVE'
        assert stat.away_score == 1
        assert stat.goals == 1
        assert stat.fantasy_points == 2.0

    def test_reserve_players_included(self, store, client, league_with_players, live_games):
        process_live_stats(store, client, league_with_players, TODAY)
        stat = store.get_model(live_stat_path(league_with_players, TODAY, 30), LiveStat)
        assert stat.fantasy_points == pytest.approx(0.5)

    def test_overwritten_not_duplicated(self, store, client, league_with_players, live_games):
        process_live_stats(store, client, league_with_players, TODAY)
        client.boxscores[1] = make_boxscore(
            away_players=[skater(10, 'Forward', 'C', goals=3, assists=1)]
        )
        process_live_stats(store, client, league_with_players, TODAY)

        docs = store.query(live_stats_collection(league_with_players), player_id=10)
        assert len(docs) == 1
        assert docs[0][1]['goals'] == 3

    def test_team_totals_untouched(self, store, client, league_with_players, live_games):
        process_live_stats(store, client, league_with_players, TODAY)
        assert store.list_documents(team_scores_collection(league_with_players)) == []

    def test_game_failure_isolated(self, store, client, league_with_players, live_games):
        client.fail_games.add(1)
        summary = process_live_stats(store, client, league_with_players, TODAY)

        assert summary.games_failed == [1]
        assert summary.games_processed == 1
        assert store.get(live_stat_path(league_with_players, TODAY, 30)) is not None

    def test_no_players_no_requests(self, store, client, live_league, live_games):
        summary = process_live_stats(store, client, live_league, TODAY)
        assert summary.players_updated == 0
        assert client.calls == []


class TestPollLiveStats:
    def test_polls_live_leagues(self, store, client, league_with_players, live_games):
        create_league(store, 'pending', 'Pending', ['A', 'B'])

        result = poll_live_stats(store, client, now=NOW, delay=0)

        assert result['date'] == TODAY
        assert result['leagues_processed'] == 1
        assert result['games_processed'] == 2
        assert result['players_updated'] == 3
        assert result['errors'] == []

    def test_game_list_fetched_once(self, store, client, league_with_players, live_games):
        create_league(store, 'second', 'Second', ['A', 'B'])
        start_draft(store, 'second')
        add_player(store, 'second', 'A', make_player(10, 'C', 'Forward'))

        result = poll_live_stats(store, client, now=NOW, delay=0)

        assert result['leagues_processed'] == 2
        assert client.calls.count(('games', TODAY)) == 1

    def test_broken_league_isolated(self, store, client, league_with_players, live_games):
        """A malformed league is reported and the others still run."""
        store.set(league_path('broken'), {'league_id': 'broken', 'status': 'live'})

        result = poll_live_stats(store, client, now=NOW, delay=0)

        assert result['leagues_processed'] == 1
        assert [e['league_id'] for e in result['errors']] == ['broken']
        assert result['players_updated'] == 3

    def test_league_id_needing_encoding(self, store, client, league_with_players, live_games):
        """League ids with spaces or slashes are polled under their real id."""
        create_league(store, 'my league/2025', 'My League', ['A', 'B'])
        start_draft(store, 'my league/2025')
        add_player(store, 'my league/2025', 'A', make_player(10, 'C', 'Forward'))

        result = poll_live_stats(store, client, now=NOW, delay=0)

        assert result['errors'] == []
        assert result['leagues_processed'] == 2
        assert {s['league_id'] for s in result['leagues']} == {'my league/2025', league_with_players}
        stat = store.get_model(live_stat_path('my league/2025', TODAY, 10), LiveStat)
        assert stat.team_name == 'A'

    def test_game_list_failure(self, store, client, league_with_players):
        client.fail_dates.add(TODAY)
        result = poll_live_stats(store, client, now=NOW, delay=0)
        assert result['leagues_processed'] == 0
        assert len(result['errors']) == 1

    def test_nothing_started(self, store, client, league_with_players):
        client.add_game(TODAY, 3, state='FUT')
        result = poll_live_stats(store, client, now=NOW, delay=0)
        assert result['leagues_processed'] == 0
        assert ('boxscore', 3) not in client.calls


class TestLiveStatsSummary:
    def test_grouped_by_team(self, store, client, league_with_players, live_games):
        process_live_stats(store, client, league_with_players, TODAY)
        summary = live_stats_summary(store, league_with_players, TODAY)

        assert set(summary) == {'Ice Holes', 'Puck Dynasty'}
        ice_holes = summary['Ice Holes']
        assert ice_holes['total_points'] == pytest.approx(2.5)
        assert [p['player_id'] for p in ice_holes['players']] == [10, 30]
        assert summary['Puck Dynasty']['total_points'] == pytest.approx(0.6)

    def test_other_dates_excluded(self, store, client, league_with_players, live_games):
        process_live_stats(store, client, league_with_players, TODAY)
        assert live_stats_summary(store, league_with_players, '2025-11-18') == {}
