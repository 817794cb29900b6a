"""Serverless Function: daily scoring trigger (cron), with the weekly swap cutover."""

from datetime import datetime
from typing import Optional

from hockeypool.draft import get_league
from hockeypool.errors import DataIntegrityError, TransactionConflict
from hockeypool.http_utils import JsonHandler, default_league_id, get_client, get_store
from hockeypool.logging_config import get_logger, setup_logging
from hockeypool.pipeline import STATUS_FETCH_FAILED, process_daily_scores
from hockeypool.stats_client import NHLStatsClient
from hockeypool.store import DocumentStore
from hockeypool.swaps import apply_pending_swaps
from hockeypool.utils import parse_date

logger = get_logger('api.calculate_scores')


def handle_calculate_scores(
    params: dict,
    store: DocumentStore,
    client: NHLStatsClient,
    now: Optional[datetime] = None,
) -> tuple[int, dict]:
    """Apply due roster swaps, then score one date for one league."""
    league_id = params.get('league_id') or default_league_id()
    if not league_id:
        return 400, {'error': 'Missing league_id'}

    date = params.get('date')
    if date:
        try:
            date = parse_date(date).isoformat()
        except ValueError:
            return 400, {'error': f'Invalid date: {date} (expected YYYY-MM-DD)'}

    try:
        get_league(store, league_id)
        swaps = apply_pending_swaps(store, now=now, league_id=league_id)
        summary = process_daily_scores(store, client, league_id, date=date, now=now)
    except DataIntegrityError as e:
        return 404, {'error': str(e)}
    except TransactionConflict as e:
        return 503, {'error': str(e)}

    status = 502 if summary.status == STATUS_FETCH_FAILED else 200
    return status, {
        'success': status == 200,
        'scoring': summary.to_dict(),
        'swaps': swaps.to_dict(),
    }


class handler(JsonHandler):
    def do_GET(self):
        """Run scoring (cron entry point)."""
        self._run(self._query())

    def do_POST(self):
        """Run scoring with parameters in the body (manual trigger)."""
        try:
            params = {**self._query(), **self._read_json()}
        except ValueError:
            return self._send_json(400, {'error': 'Invalid JSON'})
        self._run(params)

    def _run(self, params: dict):
        setup_logging()
        if not self._authorized():
            return self._send_json(401, {'error': 'Unauthorized'})
        try:
            status, result = handle_calculate_scores(params, get_store(), get_client())
            return self._send_json(status, result)
        except Exception as e:
            logger.exception('Scoring run failed')
            return self._send_json(500, {'error': str(e)})
