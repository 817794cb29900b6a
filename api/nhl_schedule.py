"""Serverless Function: today's NHL games for matchup display."""

from datetime import datetime
from typing import Optional

from hockeypool.config import get_timezone
from hockeypool.errors import StatsSourceError
from hockeypool.http_utils import JsonHandler, get_client
from hockeypool.stats_client import NHLStatsClient
from hockeypool.utils import local_today


def handle_schedule(client: NHLStatsClient, now: Optional[datetime] = None) -> tuple[int, dict]:
    today = local_today(get_timezone(), now)
    try:
        games = client.get_today_schedule(today)
    except StatsSourceError as e:
        return 502, {'error': str(e)}
    return 200, {'date': today, 'games': [g.model_dump() for g in games]}


class handler(JsonHandler):
    def do_GET(self):
        """Return today's schedule."""
        try:
            status, result = handle_schedule(get_client())
            return self._send_json(status, result)
        except Exception as e:
            return self._send_json(500, {'error': str(e)})
