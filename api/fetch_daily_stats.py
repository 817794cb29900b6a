"""Serverless Function: build (and optionally cache) the raw stat snapshot for a date."""

from datetime import datetime
from typing import Optional

from hockeypool.errors import StatsSourceError
from hockeypool.http_utils import JsonHandler, get_client, get_store, is_truthy
from hockeypool.logging_config import get_logger, setup_logging
from hockeypool.pipeline import backfill_daily_stats, target_date
from hockeypool.stats_client import NHLStatsClient
from hockeypool.store import DocumentStore
from hockeypool.utils import parse_date

logger = get_logger('api.fetch_daily_stats')


def handle_fetch_daily_stats(
    params: dict,
    client: NHLStatsClient,
    store: Optional[DocumentStore] = None,
    now: Optional[datetime] = None,
) -> tuple[int, dict]:
    """
    Backfill one date's raw stats.

    With ``return_only`` the snapshot is only returned; otherwise it is
    written to the store (``overwrite`` replaces an existing snapshot).
    """
    date = params.get('date') or target_date(now)
    try:
        date = parse_date(date).isoformat()
    except ValueError:
        return 400, {'error': f'Invalid date: {date} (expected YYYY-MM-DD)'}

    return_only = is_truthy(params.get('return_only', False))
    if not return_only and store is None:
        return 500, {'error': 'No store configured'}

    try:
        snapshot = backfill_daily_stats(
            client,
            date,
            store=None if return_only else store,
            overwrite=is_truthy(params.get('overwrite', False)),
        )
    except StatsSourceError as e:
        return 502, {'error': str(e)}

    return 200, {
        'success': True,
        'date': date,
        'saved': not return_only,
        'players': len(snapshot.players),
        'games_processed': snapshot.games_processed,
        'stats': snapshot.model_dump() if return_only else None,
    }


class handler(JsonHandler):
    def do_GET(self):
        """Fetch daily stats; persisting requires the cron token."""
        setup_logging()
        params = self._query()
        return_only = is_truthy(params.get('return_only', False))
        if not return_only and not self._authorized():
            return self._send_json(401, {'error': 'Unauthorized'})
        try:
            store = None if return_only else get_store()
            status, result = handle_fetch_daily_stats(params, get_client(), store)
            return self._send_json(status, result)
        except Exception as e:
            logger.exception('Daily stats fetch failed')
            return self._send_json(500, {'error': str(e)})
