"""Active/reserve roster swaps, queued by owners and applied at the weekly cutover."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from . import errors
from .config import get_swap_cutover, get_timezone
from .constants import POSITION_CLASS_NAMES, position_class
from .errors import SwapRejection
from .models import SwapRunSummary
from .schemas import DraftedPlayer
from .store import DRAFTED_PLAYERS, DocumentStore, Transaction, drafted_player_path
from .utils import local_now

logger = logging.getLogger('hockeypool.swaps')

WEEKDAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']


def _load_player(txn: Transaction, league_id: str, player_id: int) -> DraftedPlayer:
    player = txn.get_model(drafted_player_path(league_id, player_id), DraftedPlayer)
    if player is None:
        raise SwapRejection(
            errors.PLAYER_NOT_FOUND, f'Player {player_id} is not drafted in {league_id}'
        )
    return player


def _release_partner(txn: Transaction, league_id: str, player: DraftedPlayer, keep: int) -> None:
    """Clear the other half of an older pending swap, unless it is ``keep``."""
    partner_id = player.pending_swap_with
    if partner_id is None or partner_id == keep:
        return
    path = drafted_player_path(league_id, partner_id)
    partner = txn.get(path)
    if partner is not None and partner.get('pending_swap_with') == player.player_id:
        txn.update(path, {'pending_slot': None, 'pending_swap_with': None})


def request_swap(
    store: DocumentStore, league_id: str, player_a_id: int, player_b_id: int
) -> tuple[DraftedPlayer, DraftedPlayer]:
    """
    Queue an active/reserve swap between two players of the same team.

    Both players must share a position class (forwards C/L/R are
    interchangeable) and sit in different slots. Each is stamped with the
    other's slot as ``pending_slot``; roster counts do not change until the
    cutover. A new request replaces any older pending swap of either player.

    Raises:
        SwapRejection: player_not_found, same_player, different_teams,
            position_mismatch or same_slot
    """
    if player_a_id == player_b_id:
        raise SwapRejection(errors.SAME_PLAYER, 'A player cannot be swapped with itself')

    def txn_fn(txn: Transaction) -> tuple[DraftedPlayer, DraftedPlayer]:
        a = _load_player(txn, league_id, player_a_id)
        b = _load_player(txn, league_id, player_b_id)

        if a.drafted_by_team != b.drafted_by_team:
            raise SwapRejection(
                errors.DIFFERENT_TEAMS,
                f'{a.name} ({a.drafted_by_team}) and {b.name} ({b.drafted_by_team}) are on different teams',
            )
        cls_a, cls_b = position_class(a.position), position_class(b.position)
        if cls_a != cls_b:
            raise SwapRejection(
                errors.POSITION_MISMATCH,
                f'{a.name} is a {POSITION_CLASS_NAMES[cls_a]} and {b.name} is a {POSITION_CLASS_NAMES[cls_b]}',
            )
        if a.roster_slot == b.roster_slot:
            raise SwapRejection(
                errors.SAME_SLOT, f'{a.name} and {b.name} are both {a.roster_slot}'
            )

        _release_partner(txn, league_id, a, keep=b.player_id)
        _release_partner(txn, league_id, b, keep=a.player_id)

        a = a.model_copy(update={'pending_slot': b.roster_slot, 'pending_swap_with': b.player_id})
        b = b.model_copy(update={'pending_slot': a.roster_slot, 'pending_swap_with': a.player_id})
        txn.set(drafted_player_path(league_id, a.player_id), a)
        txn.set(drafted_player_path(league_id, b.player_id), b)
        return a, b

    a, b = store.run_transaction(txn_fn)
    logger.info(f'{league_id}: swap queued for {a.drafted_by_team}: {a.name} <-> {b.name}')
    return a, b


def cancel_swap(store: DocumentStore, league_id: str, player_id: int) -> list[int]:
    """
    Withdraw a pending swap, clearing both partners.

    Returns:
        Ids of the players whose marker was cleared

    Raises:
        SwapRejection: player_not_found or no_pending_swap
    """

    def txn_fn(txn: Transaction) -> list[int]:
        player = _load_player(txn, league_id, player_id)
        if player.pending_slot is None:
            raise SwapRejection(errors.NO_PENDING_SWAP, f'{player.name} has no pending swap')

        cleared = [player.player_id]
        txn.update(
            drafted_player_path(league_id, player_id), {'pending_slot': None, 'pending_swap_with': None}
        )
        if player.pending_swap_with is not None:
            path = drafted_player_path(league_id, player.pending_swap_with)
            partner = txn.get(path)
            if partner is not None and partner.get('pending_swap_with') == player_id:
                txn.update(path, {'pending_slot': None, 'pending_swap_with': None})
                cleared.append(player.pending_swap_with)
        return cleared

    cleared = store.run_transaction(txn_fn)
    logger.info(f'{league_id}: cancelled pending swap for players {cleared}')
    return cleared


def in_cutover_window(now: Optional[datetime] = None) -> bool:
    """True from the cutover hour until midnight on the cutover weekday (league timezone)."""
    weekday, hour = get_swap_cutover()
    local = local_now(get_timezone(), now)
    return local.weekday() == weekday and local.hour >= hour


def next_cutover(now: Optional[datetime] = None) -> datetime:
    """The next cutover instant strictly after ``now``, in the league timezone."""
    weekday, hour = get_swap_cutover()
    local = local_now(get_timezone(), now)
    candidate = local.replace(hour=hour, minute=0, second=0, microsecond=0) + timedelta(
        days=(weekday - local.weekday()) % 7
    )
    if candidate <= local:
        candidate += timedelta(days=7)
    return candidate


def _apply_one(txn: Transaction, path: str, swap_date: str) -> Optional[DraftedPlayer]:
    player = txn.get_model(path, DraftedPlayer)
    if player is None or player.pending_slot is None:
        return None
    player = player.model_copy(
        update={
            'roster_slot': player.pending_slot,
            'pending_slot': None,
            'pending_swap_with': None,
            'last_swap_date': swap_date,
        }
    )
    txn.set(path, player)
    return player


def apply_pending_swaps(
    store: DocumentStore,
    now: Optional[datetime] = None,
    league_id: Optional[str] = None,
    force: bool = False,
) -> SwapRunSummary:
    """
    Move every player with a pending slot into it.

    Outside the weekly window nothing happens unless ``force`` is set
    (admin run). Each player is updated on its own, so an interrupted run
    can simply be repeated; players without a pending slot are untouched.

    Args:
        store: Document store
        now: Reference instant (default: current time)
        league_id: Limit to one league (default: all leagues)
        force: Apply outside the cutover window
    """
    if not force and not in_cutover_window(now):
        weekday, hour = get_swap_cutover()
        message = f'Roster swaps only apply on {WEEKDAY_NAMES[weekday]} from {hour:02d}:00'
        logger.info(message)
        return SwapRunSummary(applied=False, message=message)

    swap_date = local_now(get_timezone(), now).date().isoformat()
    filters = {'league_id': league_id} if league_id else {}
    pending = [
        (document_id, data)
        for document_id, data in store.query(DRAFTED_PLAYERS, **filters)
        if data.get('pending_slot')
    ]

    summary = SwapRunSummary(applied=True)
    for document_id, _ in pending:
        path = f'{DRAFTED_PLAYERS}/{document_id}'
        player = store.run_transaction(lambda txn, path=path: _apply_one(txn, path, swap_date))
        if player is None:
            continue
        summary.swaps_applied += 1
        summary.players.append(
            {
                'league_id': player.league_id,
                'player_id': player.player_id,
                'name': player.name,
                'team': player.drafted_by_team,
                'roster_slot': player.roster_slot,
            }
        )
        logger.info(f'Applied swap: {player.name} -> {player.roster_slot}')

    summary.message = f'Applied {summary.swaps_applied} pending swaps'
    logger.info(summary.message)
    return summary
