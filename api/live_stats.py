"""Serverless Function: live stats poll for every live league (cron, game hours)."""

from datetime import datetime
from typing import Optional

from hockeypool.http_utils import JsonHandler, get_client, get_store
from hockeypool.live import poll_live_stats
from hockeypool.logging_config import get_logger, setup_logging
from hockeypool.stats_client import NHLStatsClient
from hockeypool.store import DocumentStore

logger = get_logger('api.live_stats')


def handle_live_stats(
    store: DocumentStore,
    client: NHLStatsClient,
    now: Optional[datetime] = None,
    delay: Optional[float] = None,
) -> tuple[int, dict]:
    result = poll_live_stats(store, client, now=now, delay=delay)
    return 200, {'success': not result['errors'], **result}


class handler(JsonHandler):
    def do_GET(self):
        """Poll live stats."""
        setup_logging()
        if not self._authorized():
            return self._send_json(401, {'error': 'Unauthorized'})
        try:
            status, result = handle_live_stats(get_store(), get_client())
            return self._send_json(status, result)
        except Exception as e:
            logger.exception('Live stats poll failed')
            return self._send_json(500, {'error': str(e)})

    def do_POST(self):
        self.do_GET()
