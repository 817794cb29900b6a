"""Serverless Function: queue, cancel and apply active/reserve roster swaps."""

from datetime import datetime
from typing import Optional

from hockeypool.errors import SwapRejection, TransactionConflict
from hockeypool.http_utils import JsonHandler, get_store, is_truthy, rejection_body
from hockeypool.logging_config import get_logger, setup_logging
from hockeypool.store import DocumentStore
from hockeypool.swaps import apply_pending_swaps, cancel_swap, next_cutover, request_swap

logger = get_logger('api.roster_swap')


def _player_id(data: dict, key: str) -> int:
    """
    Raises:
        ValueError: If the id is missing or not an integer
    """
    value = data.get(key)
    if value is None:
        raise ValueError(f'Missing {key}')
    return int(value)


def handle_roster_swap(
    data: dict,
    store: DocumentStore,
    is_admin: bool = False,
    now: Optional[datetime] = None,
) -> tuple[int, dict]:
    """Dispatch a swap action: request, cancel or apply (admin)."""
    action = data.get('action')
    league_id = data.get('league_id')
    if not league_id and action != 'apply':
        return 400, {'error': 'Missing league_id'}

    try:
        if action == 'request':
            a, b = request_swap(
                store, league_id, _player_id(data, 'player_a'), _player_id(data, 'player_b')
            )
            return 200, {
                'success': True,
                'players': [p.model_dump() for p in (a, b)],
                'effective_at': next_cutover(now).isoformat(),
            }

        elif action == 'cancel':
            cleared = cancel_swap(store, league_id, _player_id(data, 'player_id'))
            return 200, {'success': True, 'cleared': cleared}

        elif action == 'apply':
            if not is_admin:
                return 403, {'error': 'apply requires admin access'}
            summary = apply_pending_swaps(
                store, now=now, league_id=league_id, force=is_truthy(data.get('force', False))
            )
            return 200, {'success': True, **summary.to_dict()}

        else:
            return 400, {'error': f'Unknown action: {action}'}

    except ValueError as e:
        return 400, {'error': str(e)}
    except SwapRejection as e:
        return 409, rejection_body(e)
    except TransactionConflict as e:
        return 503, {'error': str(e)}


class handler(JsonHandler):
    def do_GET(self):
        """Next cutover instant."""
        self._send_json(200, {'next_cutover': next_cutover().isoformat()})

    def do_POST(self):
        """Handle swap actions."""
        setup_logging()
        try:
            data = self._read_json()
        except ValueError:
            return self._send_json(400, {'error': 'Invalid JSON'})
        try:
            status, result = handle_roster_swap(
                data, get_store(), is_admin=self._authorized('ADMIN_SECRET')
            )
            return self._send_json(status, result)
        except Exception as e:
            logger.exception('Roster swap action failed')
            return self._send_json(500, {'error': str(e)})
