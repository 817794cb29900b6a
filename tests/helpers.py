"""Builders and fakes shared by the test modules."""

from hockeypool.constants import COMPLETED_GAME_STATES
from hockeypool.errors import StatsSourceError, TransactionConflict
from hockeypool.schemas import DraftablePlayer, Game
from hockeypool.store import MemoryStore


def make_player(player_id, position='C', name=None, nhl_team='EDM'):
    return DraftablePlayer(
        player_id=player_id,
        name=name or f'Player {player_id}',
        position=position,
        nhl_team=nhl_team,
    )


def skater(player_id, name='Skater', position='C', **stats):
    """Raw boxscore entry for a forward or defenseman."""
    raw = {
        'playerId': player_id,
        'name': {'default': name},
        'position': position,
        'goals': 0,
        'assists': 0,
        'sog': 0,
        'hits': 0,
        'blockedShots': 0,
        'pim': 0,
        'powerPlayGoals': 0,
        'toi': '15:00',
    }
    raw.update(stats)
    return raw


def goalie(player_id, name='Goalie', decision=None, saves=0, goals_against=0, toi='60:00', **stats):
    raw = {
        'playerId': player_id,
        'name': {'default': name},
        'position': 'G',
        'saves': saves,
        'goalsAgainst': goals_against,
        'toi': toi,
    }
    if decision:
        raw['decision'] = decision
    raw.update(stats)
    return raw


def make_boxscore(away='EDM', home='TOR', away_players=(), home_players=()):
    """Boxscore with players sorted into forwards/defense/goalies by position."""

    def side(players):
        return {
            'forwards': [p for p in players if p['position'] in ('C', 'L', 'R')],
            'defense': [p for p in players if p['position'] == 'D'],
            'goalies': [p for p in players if p['position'] == 'G'],
        }

    return {
        'awayTeam': {'abbrev': away},
        'homeTeam': {'abbrev': home},
        'playerByGameStats': {'awayTeam': side(away_players), 'homeTeam': side(home_players)},
    }


def fight(player_id):
    return {
        'typeDescKey': 'penalty',
        'periodDescriptor': {'periodType': 'REG'},
        'details': {'descKey': 'fighting', 'committedByPlayerId': player_id},
    }


def ot_goal(player_id):
    return {
        'typeDescKey': 'goal',
        'periodDescriptor': {'periodType': 'OT'},
        'details': {'scoringPlayerId': player_id},
    }


class FakeStatsClient:
    """In-memory stand-in for NHLStatsClient."""

    def __init__(self):
        self.games = {}
        self.boxscores = {}
        self.play_by_play = {}
        self.schedule = {}
        self.fail_dates = set()
        self.fail_games = set()
        self.fail_play_by_play = set()
        self.calls = []

    def add_game(self, date, game_id, boxscore=None, state='OFF', plays=None,
                 away='EDM', home='TOR', away_score=0, home_score=0):
        self.games.setdefault(date, []).append(
            Game(
                game_id=game_id,
                game_date=date,
                away_team=away,
                home_team=home,
                away_score=away_score,
                home_score=home_score,
                game_state=state,
            )
        )
        if boxscore is not None:
            self.boxscores[game_id] = boxscore
        self.play_by_play[game_id] = {'plays': list(plays or [])}

    def get_games_for_date(self, date):
        self.calls.append(('games', date))
        if date in self.fail_dates:
            raise StatsSourceError(f'score feed down for {date}')
        return list(self.games.get(date, []))

    def get_completed_games(self, date):
        return [g for g in self.get_games_for_date(date) if g.game_state in COMPLETED_GAME_STATES]

    def get_boxscore(self, game_id):
        self.calls.append(('boxscore', game_id))
        if game_id in self.fail_games or game_id not in self.boxscores:
            raise StatsSourceError(f'boxscore {game_id} unavailable')
        return self.boxscores[game_id]

    def get_play_by_play(self, game_id):
        self.calls.append(('play_by_play', game_id))
        if game_id in self.fail_play_by_play:
            raise StatsSourceError(f'play-by-play {game_id} unavailable')
        return self.play_by_play.get(game_id, {'plays': []})

    def get_today_schedule(self, today):
        self.calls.append(('schedule', today))
        if today in self.fail_dates:
            raise StatsSourceError(f'schedule down for {today}')
        return list(self.schedule.get(today, []))


class RacingStore(MemoryStore):
    """
    MemoryStore that runs ``interleave`` just before its next commit.

    Used to model a competing request that commits between another
    transaction's reads and its commit.
    """

    def __init__(self, max_attempts=5):
        super().__init__(max_attempts)
        self.interleave = None
        self.conflicts = 0

    def _commit(self, reads, writes):
        if self.interleave is not None:
            action, self.interleave = self.interleave, None
            action()
        try:
            super()._commit(reads, writes)
        except TransactionConflict:
            self.conflicts += 1
            raise
