"""NHL stats API client and boxscore parsers."""

import logging
from typing import Any, Dict, List, Optional

import requests

from .constants import (
    COMPLETED_GAME_STATES,
    DEFENSE_POSITION,
    GOALIE_POSITION,
    UNKNOWN_TEAM,
)
from .errors import StatsSourceError
from .schemas import Game, PlayerStatLine

logger = logging.getLogger('hockeypool.stats_client')

USER_AGENT = 'hockeypool-stats/1.0'


class NHLStatsClient:
    """Thin client for the public NHL web API (read-only, polled)."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. https://api-web.nhle.com/v1
            timeout: Per-request timeout in seconds
            session: Optional session (connection pooling, test injection)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault('User-Agent', USER_AGENT)

    def _get_json(self, path: str) -> Dict[str, Any]:
        url = f'{self.base_url}/{path.lstrip("/")}'
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f'Stats request failed for {url}: {e}')
            raise StatsSourceError(f'Stats request failed for {url}: {e}') from e
        except ValueError as e:
            logger.error(f'Stats response from {url} is not JSON: {e}')
            raise StatsSourceError(f'Invalid JSON from {url}') from e

    def get_games_for_date(self, date: str) -> List[Game]:
        """All games on a date (YYYY-MM-DD), in any state."""
        data = self._get_json(f'score/{date}')
        games = [parse_game(raw, default_date=date) for raw in data.get('games') or []]
        logger.info(f'Found {len(games)} games for {date}')
        return games

    def get_completed_games(self, date: str) -> List[Game]:
        """Games on a date that have reached a final state."""
        return [g for g in self.get_games_for_date(date) if g.game_state in COMPLETED_GAME_STATES]

    def get_boxscore(self, game_id: int) -> Dict[str, Any]:
        return self._get_json(f'gamecenter/{game_id}/boxscore')

    def get_play_by_play(self, game_id: int) -> Dict[str, Any]:
        return self._get_json(f'gamecenter/{game_id}/play-by-play')

    def get_today_schedule(self, today: str) -> List[Game]:
        """Today's games for matchup display, from the weekly schedule feed."""
        data = self._get_json(f'schedule/{today}')
        for day in data.get('gameWeek') or []:
            if day.get('date') == today:
                return [parse_game(raw, default_date=today) for raw in day.get('games') or []]
        return []


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def parse_game(raw: Dict[str, Any], default_date: Optional[str] = None) -> Game:
    """Convert a score/schedule feed entry to a Game."""
    away = raw.get('awayTeam') or {}
    home = raw.get('homeTeam') or {}
    return Game(
        game_id=_int(raw.get('id')),
        game_date=raw.get('gameDate') or default_date,
        away_team=away.get('abbrev') or UNKNOWN_TEAM,
        home_team=home.get('abbrev') or UNKNOWN_TEAM,
        away_score=_int(away.get('score')),
        home_score=_int(home.get('score')),
        game_state=raw.get('gameState') or 'FUT',
        start_time_utc=raw.get('startTimeUTC'),
    )


def _player_name(raw: Dict[str, Any]) -> str:
    name = raw.get('name')
    if isinstance(name, dict):
        return name.get('default', '')
    return name or ''


def _goalie_saves(raw: Dict[str, Any]) -> int:
    if raw.get('saves') is not None:
        return _int(raw.get('saves'))
    # Older feeds only carry "saves/shots"
    save_shots = str(raw.get('saveShotsAgainst') or '')
    if '/' in save_shots:
        return _int(save_shots.split('/', 1)[0])
    return 0


def _played(raw: Dict[str, Any]) -> bool:
    return (raw.get('toi') or '00:00') not in ('00:00', '0:00')


def _skater_line(raw: Dict[str, Any], team: str, position: str) -> PlayerStatLine:
    return PlayerStatLine(
        player_id=_int(raw.get('playerId')),
        name=_player_name(raw),
        position=raw.get('position') if raw.get('position') in ('C', 'L', 'R', 'D') else position,
        nhl_team=team,
        goals=_int(raw.get('goals')),
        assists=_int(raw.get('assists')),
        shots=_int(raw.get('sog', raw.get('shots'))),
        hits=_int(raw.get('hits')),
        blocked_shots=_int(raw.get('blockedShots')),
        pim=_int(raw.get('pim')),
        power_play_goals=_int(raw.get('powerPlayGoals')),
        short_handed_goals=_int(raw.get('shortHandedGoals', raw.get('shorthandedGoals'))),
    )


def _goalie_line(raw: Dict[str, Any], team: str) -> PlayerStatLine:
    saves = _goalie_saves(raw)
    goals_against = _int(raw.get('goalsAgainst'))
    shutout = goals_against == 0 and saves > 0 and _played(raw)
    return PlayerStatLine(
        player_id=_int(raw.get('playerId')),
        name=_player_name(raw),
        position=GOALIE_POSITION,
        nhl_team=team,
        goals=_int(raw.get('goals')),
        assists=_int(raw.get('assists')),
        pim=_int(raw.get('pim')),
        wins=1 if raw.get('decision') == 'W' else 0,
        saves=saves,
        goals_against=goals_against,
        shutouts=1 if shutout else 0,
    )


def players_from_boxscore(boxscore: Dict[str, Any]) -> List[PlayerStatLine]:
    """
    Flatten a boxscore into one stat line per player.

    Both sides' forwards, defense and goalies are included and tagged with
    their NHL team abbreviation. Goalie wins come from the decision, and a
    shutout needs zero goals against, at least one save and time on ice.
    """
    players: List[PlayerStatLine] = []
    by_game = boxscore.get('playerByGameStats') or {}

    for side in ('awayTeam', 'homeTeam'):
        team_stats = by_game.get(side)
        if not team_stats:
            continue
        team = (boxscore.get(side) or {}).get('abbrev') or UNKNOWN_TEAM
        for raw in team_stats.get('forwards') or []:
            players.append(_skater_line(raw, team, 'C'))
        for raw in team_stats.get('defense') or []:
            players.append(_skater_line(raw, team, DEFENSE_POSITION))
        for raw in team_stats.get('goalies') or []:
            players.append(_goalie_line(raw, team))

    return players


def count_fights(play_by_play: Dict[str, Any]) -> Dict[int, int]:
    """Fighting majors per player id, from penalty events."""
    fights: Dict[int, int] = {}
    for play in play_by_play.get('plays') or []:
        if play.get('typeDescKey') != 'penalty':
            continue
        details = play.get('details') or {}
        player_id = details.get('committedByPlayerId')
        if details.get('descKey') == 'fighting' and player_id:
            fights[player_id] = fights.get(player_id, 0) + 1
    return fights


def count_overtime_goals(play_by_play: Dict[str, Any]) -> Dict[int, int]:
    """Goals scored in an overtime period, per scorer id."""
    goals: Dict[int, int] = {}
    for play in play_by_play.get('plays') or []:
        if play.get('typeDescKey') != 'goal':
            continue
        if (play.get('periodDescriptor') or {}).get('periodType') != 'OT':
            continue
        scorer = (play.get('details') or {}).get('scoringPlayerId')
        if scorer:
            goals[scorer] = goals.get(scorer, 0) + 1
    return goals
