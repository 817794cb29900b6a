"""Serverless Function: draft picks and admin draft actions."""

import random
from typing import Optional

from pydantic import ValidationError

from hockeypool.draft import (
    auto_complete_draft,
    current_pick,
    get_draft_state,
    make_pick,
    next_pick,
    start_draft,
)
from hockeypool.errors import DataIntegrityError, DraftRejection, TransactionConflict
from hockeypool.http_utils import JsonHandler, get_store, rejection_body
from hockeypool.logging_config import get_logger, setup_logging
from hockeypool.schemas import DraftablePlayer
from hockeypool.store import DocumentStore

logger = get_logger('api.draft')

ADMIN_ACTIONS = ('start', 'auto_complete')


def handle_draft_status(league_id: Optional[str], store: DocumentStore) -> tuple[int, dict]:
    """Who is on the clock and who is on deck."""
    if not league_id:
        return 400, {'error': 'Missing league_id'}
    try:
        state = get_draft_state(store, league_id)
        if state is None:
            return 404, {'error': f'No draft for league {league_id}'}
        on_clock = current_pick(state)
    except DataIntegrityError as e:
        return 500, {'error': str(e)}

    on_deck = next_pick(state)
    return 200, {
        'league_id': league_id,
        'current_pick_number': state.current_pick_number,
        'total_picks': state.total_picks,
        'is_complete': state.is_complete,
        'on_the_clock': on_clock.model_dump() if on_clock else None,
        'on_deck': on_deck.model_dump() if on_deck else None,
        'last_pick': state.last_pick.model_dump() if state.last_pick else None,
    }


def handle_draft(
    data: dict,
    store: DocumentStore,
    is_admin: bool = False,
    rng: Optional[random.Random] = None,
) -> tuple[int, dict]:
    """Dispatch a draft action: pick, start (admin) or auto_complete (admin)."""
    action = data.get('action')
    league_id = data.get('league_id')
    if not league_id:
        return 400, {'error': 'Missing league_id'}
    if action in ADMIN_ACTIONS and not is_admin:
        return 403, {'error': f'{action} requires admin access'}

    try:
        if action == 'pick':
            team = data.get('team')
            if not team or not data.get('player'):
                return 400, {'error': 'Missing team or player'}
            player = DraftablePlayer.model_validate(data['player'])
            result = make_pick(
                store, league_id, team, player, force_reserve=bool(data.get('force_reserve'))
            )
            return 200, {'success': True, **result.to_dict()}

        elif action == 'start':
            state = start_draft(store, league_id)
            return 200, {'success': True, 'total_picks': state.total_picks}

        elif action == 'auto_complete':
            pool = [DraftablePlayer.model_validate(p) for p in data.get('player_pool') or []]
            if not pool:
                return 400, {'error': 'Missing player_pool'}
            summary = auto_complete_draft(store, league_id, pool, rng=rng)
            return 200, {'success': True, **summary.to_dict()}

        else:
            return 400, {'error': f'Unknown action: {action}'}

    except ValidationError as e:
        return 400, {'error': f'Invalid player: {e}'}
    except DraftRejection as e:
        return 409, rejection_body(e)
    except TransactionConflict as e:
        return 503, {'error': str(e)}
    except DataIntegrityError as e:
        logger.error(f'Draft data problem in {league_id}: {e}')
        return 500, {'error': str(e)}


class handler(JsonHandler):
    def do_GET(self):
        """Draft status for ?league_id=..."""
        try:
            status, result = handle_draft_status(self._query().get('league_id'), get_store())
            return self._send_json(status, result)
        except Exception as e:
            return self._send_json(500, {'error': str(e)})

    def do_POST(self):
        """Handle draft actions."""
        setup_logging()
        try:
            data = self._read_json()
        except ValueError:
            return self._send_json(400, {'error': 'Invalid JSON'})
        try:
            status, result = handle_draft(data, get_store(), is_admin=self._authorized('ADMIN_SECRET'))
            return self._send_json(status, result)
        except Exception as e:
            logger.exception('Draft action failed')
            return self._send_json(500, {'error': str(e)})
