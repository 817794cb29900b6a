"""Draft orchestration: snake order, atomic picks, roster slots and auto-complete."""

import logging
import random
from typing import Iterable, Optional, Union

from . import errors
from .config import get_config, get_default_roster_settings, get_default_scoring_rules
from .constants import (
    ACTIVE,
    LEAGUE_LIVE,
    LEAGUE_PENDING,
    POSITION_CLASS_NAMES,
    RESERVE,
    position_class,
)
from .errors import DataIntegrityError, DocumentNotFound, DraftRejection
from .models import AutoDraftSummary, PickResult, RosterCounts
from .schemas import (
    DraftablePlayer,
    DraftedPlayer,
    DraftPick,
    DraftState,
    LastPick,
    League,
    LeagueTeam,
    RosterSettings,
    ScoringRules,
)
from .store import (
    DRAFTED_PLAYERS,
    DocumentStore,
    Transaction,
    draft_path,
    drafted_player_path,
    league_path,
)
from .utils import utc_now_iso
from .validators import class_capacity, validate_league

logger = logging.getLogger('hockeypool.draft')


# =============================================================================
# Turn order
# =============================================================================


def generate_snake_order(teams: list[str], rounds: int) -> list[DraftPick]:
    """
    Build the full pick sequence for a snake draft.

    Odd rounds list teams in their original order, even rounds in reverse.

    Example:
        generate_snake_order(['A', 'B', 'C'], 2)
        # A B C | C B A  (picks 1-6)
    """
    if not teams:
        raise ValueError('A draft needs at least one team')
    if rounds < 1:
        raise ValueError(f'A draft needs at least one round, got {rounds}')

    order = []
    pick_number = 1
    for rnd in range(1, rounds + 1):
        round_teams = teams if rnd % 2 == 1 else list(reversed(teams))
        for team in round_teams:
            order.append(DraftPick(pick=pick_number, round=rnd, team=team))
            pick_number += 1
    return order


def create_draft_state(league_id: str, teams: list[str], rounds: int) -> DraftState:
    order = generate_snake_order(teams, rounds)
    return DraftState(
        league_id=league_id,
        total_picks=len(order),
        current_pick_number=1,
        draft_order=order,
        is_complete=False,
    )


def current_pick(state: DraftState) -> Optional[DraftPick]:
    """
    The pick entry on the clock, or None once the draft is complete.

    Raises:
        DataIntegrityError: If the cursor does not point at its order entry
    """
    if state.is_complete or state.current_pick_number > state.total_picks:
        return None
    index = state.current_pick_number - 1
    if index >= len(state.draft_order) or state.draft_order[index].pick != state.current_pick_number:
        raise DataIntegrityError(
            f'Draft {state.league_id} cursor {state.current_pick_number} is out of range '
            f'of its {len(state.draft_order)}-pick order'
        )
    return state.draft_order[index]


def next_pick(state: DraftState) -> Optional[DraftPick]:
    """The entry after the one on the clock (for "on deck" display)."""
    index = state.current_pick_number
    if state.is_complete or index >= len(state.draft_order):
        return None
    return state.draft_order[index]


def is_teams_turn(state: DraftState, team_name: str) -> bool:
    pick = current_pick(state)
    return pick is not None and pick.team == team_name


def _advance(state: DraftState) -> tuple[int, bool]:
    next_number = state.current_pick_number + 1
    return next_number, next_number > state.total_picks


# =============================================================================
# Roster slots
# =============================================================================


def count_roster(players: Iterable[DraftedPlayer]) -> RosterCounts:
    """Active players per position class plus the reserve count."""
    counts = RosterCounts()
    for player in players:
        if player.roster_slot == RESERVE:
            counts.reserve += 1
        else:
            cls = position_class(player.position)
            counts.active[cls] = counts.active.get(cls, 0) + 1
    return counts


def choose_roster_slot(
    position: str,
    counts: RosterCounts,
    settings: RosterSettings,
    force_reserve: bool = False,
) -> str:
    """
    Pick the slot for a new player.

    Active if the position class has room (unless reserve is forced), else
    reserve if the bench has room. A team is only refused when both are full.

    Raises:
        DraftRejection: reserve_full or roster_full
    """
    cls = position_class(position)
    active_room = counts.active.get(cls, 0) < class_capacity(settings)[cls]
    reserve_room = counts.reserve < settings.reserves

    if force_reserve:
        if reserve_room:
            return RESERVE
        raise DraftRejection(
            errors.RESERVE_FULL,
            f'Reserve is full ({counts.reserve}/{settings.reserves})',
        )

    if active_room:
        return ACTIVE
    if reserve_room:
        return RESERVE
    raise DraftRejection(
        errors.ROSTER_FULL,
        f'No {POSITION_CLASS_NAMES[cls]} or reserve slots left; choose a different player',
        {'position_class': cls, 'reserve': counts.reserve},
    )


# =============================================================================
# Store access
# =============================================================================


def get_league(store: Union[DocumentStore, Transaction], league_id: str) -> League:
    """
    Load a league.

    Raises:
        DataIntegrityError: If the league document is missing or malformed
    """
    league = store.get_model(league_path(league_id), League)
    if league is None:
        raise DataIntegrityError(f'League {league_id} not found')
    return league


def get_draft_state(store: Union[DocumentStore, Transaction], league_id: str) -> Optional[DraftState]:
    return store.get_model(draft_path(league_id), DraftState)


def league_players(
    store: Union[DocumentStore, Transaction], league_id: str, **equals
) -> list[DraftedPlayer]:
    """Drafted players of a league, optionally filtered by field values."""
    return [
        DraftedPlayer.model_validate(data)
        for _, data in store.query(DRAFTED_PLAYERS, league_id=league_id, **equals)
    ]


def team_roster(store: DocumentStore, league_id: str, team_name: str) -> list[DraftedPlayer]:
    """A fantasy team's players in draft order (admin acquisitions first)."""
    players = league_players(store, league_id, drafted_by_team=team_name)
    return sorted(players, key=lambda p: (p.pick_number, p.name))


# =============================================================================
# League lifecycle
# =============================================================================


def create_league(
    store: DocumentStore,
    league_id: str,
    league_name: str,
    teams: list[Union[str, dict, LeagueTeam]],
    admin: Optional[str] = None,
    draft_rounds: Optional[int] = None,
    scoring_rules: Optional[ScoringRules] = None,
    roster_settings: Optional[RosterSettings] = None,
) -> League:
    """
    Create a pending league with default rules.

    Raises:
        ValueError: If the league already exists or cannot hold a draft
    """
    now = utc_now_iso()
    league = League(
        league_id=league_id,
        league_name=league_name,
        admin=admin,
        status=LEAGUE_PENDING,
        teams=[LeagueTeam(team_name=t) if isinstance(t, str) else t for t in teams],
        draft_rounds=draft_rounds or get_config().default_draft_rounds,
        scoring_rules=scoring_rules or get_default_scoring_rules(),
        roster_settings=roster_settings or get_default_roster_settings(),
        created_at=now,
        updated_at=now,
    )

    problems = validate_league(league)
    if problems:
        raise ValueError('; '.join(problems))

    def txn_fn(txn: Transaction) -> League:
        if txn.get(league_path(league_id)) is not None:
            raise ValueError(f'League {league_id} already exists')
        txn.set(league_path(league_id), league)
        return league

    store.run_transaction(txn_fn)
    logger.info(f'Created league {league_id} with {len(league.teams)} teams')
    return league


def start_draft(store: DocumentStore, league_id: str) -> DraftState:
    """
    Compute the snake order and open the draft (admin).

    The Draft document and the league's switch to ``live`` are written
    together.

    Raises:
        DraftRejection: draft_already_started
        DataIntegrityError: If the league is missing
    """

    def txn_fn(txn: Transaction) -> DraftState:
        league = get_league(txn, league_id)
        if league.status != LEAGUE_PENDING or txn.get(draft_path(league_id)) is not None:
            raise DraftRejection(
                errors.DRAFT_ALREADY_STARTED, f'Draft for {league_id} has already started'
            )
        state = create_draft_state(league_id, league.team_names, league.draft_rounds)
        txn.set(draft_path(league_id), state)
        txn.update(league_path(league_id), {'status': LEAGUE_LIVE, 'updated_at': utc_now_iso()})
        return state

    state = store.run_transaction(txn_fn)
    logger.info(f'Started draft for {league_id}: {state.total_picks} picks')
    return state


# =============================================================================
# Picks
# =============================================================================


def _pick_in_transaction(
    txn: Transaction,
    league_id: str,
    team_name: str,
    player: DraftablePlayer,
    force_reserve: bool,
) -> PickResult:
    league = get_league(txn, league_id)
    if league.status == LEAGUE_PENDING:
        raise DraftRejection(errors.DRAFT_NOT_STARTED, 'The draft has not started')

    state = get_draft_state(txn, league_id)
    if state is None:
        raise DataIntegrityError(f'League {league_id} is {league.status} but has no draft document')

    pick = current_pick(state)
    if pick is None:
        raise DraftRejection(errors.DRAFT_COMPLETE, 'The draft is complete')

    if pick.team != team_name:
        raise DraftRejection(
            errors.NOT_YOUR_TURN,
            f"It is {pick.team}'s turn (pick {pick.pick})",
            {'current_team': pick.team, 'pick': pick.pick},
        )

    player_path = drafted_player_path(league_id, player.player_id)
    existing = txn.get(player_path)
    if existing is not None:
        raise DraftRejection(
            errors.ALREADY_DRAFTED,
            f'{player.name} has already been drafted by {existing.get("drafted_by_team")}',
        )

    counts = count_roster(league_players(txn, league_id, drafted_by_team=team_name))
    slot = choose_roster_slot(player.position, counts, league.roster_settings, force_reserve)

    now = utc_now_iso()
    txn.set(
        player_path,
        DraftedPlayer(
            league_id=league_id,
            player_id=player.player_id,
            name=player.name,
            position=player.position,
            nhl_team=player.nhl_team,
            jersey_number=player.jersey_number,
            drafted_by_team=team_name,
            pick_number=pick.pick,
            round=pick.round,
            roster_slot=slot,
            drafted_at=now,
        ),
    )

    next_number, complete = _advance(state)
    txn.update(
        draft_path(league_id),
        {
            'current_pick_number': next_number,
            'is_complete': complete,
            'last_pick': LastPick(
                player_name=player.name, team=team_name, pick_number=pick.pick, timestamp=now
            ).model_dump(),
        },
    )

    return PickResult(
        pick=pick,
        player_id=player.player_id,
        player_name=player.name,
        roster_slot=slot,
        next_pick_number=next_number,
        draft_complete=complete,
    )


def make_pick(
    store: DocumentStore,
    league_id: str,
    team_name: str,
    player: DraftablePlayer,
    force_reserve: bool = False,
) -> PickResult:
    """
    Draft a player for the team on the clock.

    The drafted-player record and the cursor advance commit together or not
    at all. The turn and uniqueness checks are re-read inside the
    transaction, so a racing pick that committed first makes this one fail
    with not_your_turn.

    Args:
        store: Document store
        league_id: League identifier
        team_name: Acting fantasy team
        player: Player being drafted
        force_reserve: Put the player on the reserve bench

    Returns:
        PickResult describing the assignment

    Raises:
        DraftRejection: draft_not_started, draft_complete, not_your_turn,
            already_drafted, reserve_full or roster_full
        DataIntegrityError: If the league or draft document is missing or
            the cursor is out of range
    """
    result = store.run_transaction(
        lambda txn: _pick_in_transaction(txn, league_id, team_name, player, force_reserve)
    )
    logger.info(
        f'{league_id} pick {result.pick.pick}: {team_name} drafted {player.name} '
        f'({player.position}, {result.roster_slot})'
    )
    if result.draft_complete:
        logger.info(f'{league_id} draft complete')
    return result


def _skip_pick(store: DocumentStore, league_id: str, pick_number: int) -> bool:
    """Advance past a pick nobody can use; False if the cursor already moved."""

    def txn_fn(txn: Transaction) -> bool:
        state = get_draft_state(txn, league_id)
        if state is None:
            raise DataIntegrityError(f'Draft for {league_id} not found')
        if state.is_complete or state.current_pick_number != pick_number:
            return False
        next_number, complete = _advance(state)
        txn.update(
            draft_path(league_id),
            {'current_pick_number': next_number, 'is_complete': complete},
        )
        return True

    return store.run_transaction(txn_fn)


def auto_complete_draft(
    store: DocumentStore,
    league_id: str,
    player_pool: list[DraftablePlayer],
    rng: Optional[random.Random] = None,
) -> AutoDraftSummary:
    """
    Fill every remaining pick with a random eligible player (admin).

    For the team on the clock, candidates are undrafted players in position
    classes that still have active room; with no such needs, any undrafted
    player goes to reserve. When neither applies the pick is skipped and the
    cursor still advances.

    Raises:
        DraftRejection: draft_not_started
    """
    rng = rng or random.Random()
    summary = AutoDraftSummary()

    league = get_league(store, league_id)
    if league.status == LEAGUE_PENDING:
        raise DraftRejection(errors.DRAFT_NOT_STARTED, 'The draft has not started')
    capacity = class_capacity(league.roster_settings)

    while True:
        state = get_draft_state(store, league_id)
        if state is None:
            raise DataIntegrityError(f'Draft for {league_id} not found')
        pick = current_pick(state)
        if pick is None:
            break

        drafted = league_players(store, league_id)
        taken = {p.player_id for p in drafted}
        available = [p for p in player_pool if p.player_id not in taken]
        counts = count_roster(p for p in drafted if p.drafted_by_team == pick.team)

        needs = {cls for cls, limit in capacity.items() if counts.active.get(cls, 0) < limit}
        candidates = [p for p in available if position_class(p.position) in needs]
        if not candidates and counts.reserve < league.roster_settings.reserves:
            candidates = available

        if not candidates:
            if _skip_pick(store, league_id, pick.pick):
                summary.picks_skipped += 1
                summary.assignments.append({'pick': pick.pick, 'team': pick.team, 'skipped': True})
                logger.warning(f'{league_id} pick {pick.pick} skipped: no legal player for {pick.team}')
            continue

        player = rng.choice(candidates)
        try:
            result = make_pick(store, league_id, pick.team, player)
        except DraftRejection as e:
            # Lost a race with a manual pick; re-read and carry on
            if e.code in (errors.NOT_YOUR_TURN, errors.ALREADY_DRAFTED):
                logger.info(f'{league_id} auto pick {pick.pick} retried: {e}')
                continue
            raise

        summary.picks_made += 1
        summary.assignments.append(
            {
                'pick': result.pick.pick,
                'team': pick.team,
                'player_id': player.player_id,
                'player_name': player.name,
                'position': player.position,
                'roster_slot': result.roster_slot,
            }
        )

    summary.draft_complete = True
    logger.info(
        f'{league_id} auto-complete: {summary.picks_made} picks, {summary.picks_skipped} skipped'
    )
    return summary


# =============================================================================
# Admin roster changes
# =============================================================================


def add_player(
    store: DocumentStore,
    league_id: str,
    team_name: str,
    player: DraftablePlayer,
    roster_slot: str = ACTIVE,
) -> DraftedPlayer:
    """
    Assign a player outside the draft (admin acquisition, pick/round 0/0).

    Raises:
        DraftRejection: unknown_team, already_drafted, roster_full or reserve_full
    """

    def txn_fn(txn: Transaction) -> DraftedPlayer:
        league = get_league(txn, league_id)
        if team_name not in league.team_names:
            raise DraftRejection(errors.UNKNOWN_TEAM, f'{team_name} is not in league {league_id}')

        player_path = drafted_player_path(league_id, player.player_id)
        existing = txn.get(player_path)
        if existing is not None:
            raise DraftRejection(
                errors.ALREADY_DRAFTED,
                f'{player.name} already belongs to {existing.get("drafted_by_team")}',
            )

        counts = count_roster(league_players(txn, league_id, drafted_by_team=team_name))
        settings = league.roster_settings
        if roster_slot == RESERVE:
            choose_roster_slot(player.position, counts, settings, force_reserve=True)
        else:
            cls = position_class(player.position)
            if counts.active.get(cls, 0) >= class_capacity(settings)[cls]:
                raise DraftRejection(
                    errors.ROSTER_FULL,
                    f'{team_name} has no active {POSITION_CLASS_NAMES[cls]} slots left',
                )

        drafted = DraftedPlayer(
            league_id=league_id,
            player_id=player.player_id,
            name=player.name,
            position=player.position,
            nhl_team=player.nhl_team,
            jersey_number=player.jersey_number,
            drafted_by_team=team_name,
            pick_number=0,
            round=0,
            roster_slot=roster_slot,
            drafted_at=utc_now_iso(),
        )
        txn.set(player_path, drafted)
        return drafted

    drafted = store.run_transaction(txn_fn)
    logger.info(f'{league_id}: added {player.name} to {team_name} ({roster_slot})')
    return drafted


def remove_player(store: DocumentStore, league_id: str, player_id: int) -> DraftedPlayer:
    """
    Delete a drafted player (admin). A pending swap partner is released.

    Raises:
        DocumentNotFound: If the player is not drafted in this league
    """

    def txn_fn(txn: Transaction) -> DraftedPlayer:
        path = drafted_player_path(league_id, player_id)
        player = txn.get_model(path, DraftedPlayer)
        if player is None:
            raise DocumentNotFound(path)
        if player.pending_swap_with is not None:
            partner_path = drafted_player_path(league_id, player.pending_swap_with)
            if txn.get(partner_path) is not None:
                txn.update(partner_path, {'pending_slot': None, 'pending_swap_with': None})
        txn.delete(path)
        return player

    player = store.run_transaction(txn_fn)
    logger.info(f'{league_id}: removed {player.name} from {player.drafted_by_team}')
    return player
