"""Tests for queued roster swaps and the weekly cutover."""

from datetime import datetime, timezone

import pytest

from hockeypool import errors
from hockeypool.constants import ACTIVE, RESERVE
from hockeypool.draft import add_player, count_roster, team_roster
from hockeypool.errors import SwapRejection
from hockeypool.schemas import DraftedPlayer
from hockeypool.store import drafted_player_path
from hockeypool.swaps import (
    apply_pending_swaps,
    cancel_swap,
    in_cutover_window,
    next_cutover,
    request_swap,
)

from helpers import make_player

# Saturday 2025-11-22, 10:00 Eastern
SATURDAY_MORNING = datetime(2025, 11, 22, 15, 0, tzinfo=timezone.utc)
# Saturday 2025-11-22, 08:59 Eastern
SATURDAY_EARLY = datetime(2025, 11, 22, 13, 59, tzinfo=timezone.utc)
# Saturday 2025-11-22, 09:00 Eastern
SATURDAY_CUTOVER = datetime(2025, 11, 22, 14, 0, tzinfo=timezone.utc)
# Friday 2025-11-21, 12:00 Eastern
FRIDAY_NOON = datetime(2025, 11, 21, 17, 0, tzinfo=timezone.utc)


@pytest.fixture
def roster(store, live_league):
    add_player(store, live_league, 'Ice Holes', make_player(1, 'C', 'Centre'))
    add_player(store, live_league, 'Ice Holes', make_player(2, 'L', 'Winger'), roster_slot=RESERVE)
    add_player(store, live_league, 'Ice Holes', make_player(3, 'D', 'Active D'))
    add_player(store, live_league, 'Ice Holes', make_player(4, 'D', 'Spare D'), roster_slot=RESERVE)
    add_player(store, live_league, 'Ice Holes', make_player(6, 'G', 'Spare G'), roster_slot=RESERVE)
    add_player(store, live_league, 'Puck Dynasty', make_player(5, 'C', 'Rival'), roster_slot=RESERVE)
    return live_league


def load(store, league_id, player_id):
    return store.get_model(drafted_player_path(league_id, player_id), DraftedPlayer)


class TestRequestSwap:
    def test_marks_both_players(self, store, roster):
        request_swap(store, roster, 1, 2)

        centre, winger = load(store, roster, 1), load(store, roster, 2)
        assert centre.roster_slot == ACTIVE
        assert centre.pending_slot == RESERVE
        assert centre.pending_swap_with == 2
        assert winger.roster_slot == RESERVE
        assert winger.pending_slot == ACTIVE
        assert winger.pending_swap_with == 1

    def test_counts_unchanged_until_cutover(self, store, roster):
        before = count_roster(team_roster(store, roster, 'Ice Holes'))
        request_swap(store, roster, 1, 2)
        assert count_roster(team_roster(store, roster, 'Ice Holes')) == before

    def test_forwards_interchangeable(self, store, roster):
        a, b = request_swap(store, roster, 2, 1)
        assert a.pending_slot == ACTIVE
        assert b.pending_slot == RESERVE

    @pytest.mark.parametrize(
        'a, b, code',
        [
            (1, 1, errors.SAME_PLAYER),
            (1, 99, errors.PLAYER_NOT_FOUND),
            (1, 5, errors.DIFFERENT_TEAMS),
            (1, 4, errors.POSITION_MISMATCH),
            (3, 6, errors.POSITION_MISMATCH),
            (3, 1, errors.POSITION_MISMATCH),
        ],
    )
    def test_rejections(self, store, roster, a, b, code):
        with pytest.raises(SwapRejection) as exc_info:
            request_swap(store, roster, a, b)
        assert exc_info.value.code == code

    def test_same_slot_rejected(self, store, roster):
        add_player(store, roster, 'Ice Holes', make_player(7, 'R', 'Other Winger'))
        with pytest.raises(SwapRejection) as exc_info:
            request_swap(store, roster, 1, 7)
        assert exc_info.value.code == errors.SAME_SLOT
        assert load(store, roster, 1).pending_slot is None

    def test_new_request_releases_old_partner(self, store, roster):
        add_player(store, roster, 'Ice Holes', make_player(8, 'R', 'Spare Winger'), roster_slot=RESERVE)
        request_swap(store, roster, 1, 2)
        request_swap(store, roster, 1, 8)

        assert load(store, roster, 1).pending_swap_with == 8
        assert load(store, roster, 8).pending_slot == ACTIVE
        old = load(store, roster, 2)
        assert old.pending_slot is None
        assert old.pending_swap_with is None


class TestCancelSwap:
    def test_clears_both(self, store, roster):
        request_swap(store, roster, 3, 4)
        assert sorted(cancel_swap(store, roster, 4)) == [3, 4]
        for player_id in (3, 4):
            player = load(store, roster, player_id)
            assert player.pending_slot is None
            assert player.pending_swap_with is None

    def test_nothing_pending(self, store, roster):
        with pytest.raises(SwapRejection) as exc_info:
            cancel_swap(store, roster, 1)
        assert exc_info.value.code == errors.NO_PENDING_SWAP

    def test_unknown_player(self, store, roster):
        with pytest.raises(SwapRejection) as exc_info:
            cancel_swap(store, roster, 404)
        assert exc_info.value.code == errors.PLAYER_NOT_FOUND


class TestCutoverWindow:
    @pytest.mark.parametrize(
        'now, expected',
        [
            (SATURDAY_MORNING, True),
            (SATURDAY_CUTOVER, True),
            (SATURDAY_EARLY, False),
            (FRIDAY_NOON, False),
            # Saturday 23:30 Eastern is already Sunday in UTC
            (datetime(2025, 11, 23, 4, 30, tzinfo=timezone.utc), True),
        ],
    )
    def test_in_window(self, now, expected):
        assert in_cutover_window(now) is expected

    def test_next_cutover_from_friday(self):
        cutover = next_cutover(FRIDAY_NOON)
        assert cutover.date().isoformat() == '2025-11-22'
        assert (cutover.hour, cutover.minute) == (9, 0)

    def test_next_cutover_after_this_weeks(self):
        assert next_cutover(SATURDAY_MORNING).date().isoformat() == '2025-11-29'

    def test_next_cutover_is_strictly_later(self):
        assert next_cutover(SATURDAY_CUTOVER).date().isoformat() == '2025-11-29'
        assert next_cutover(SATURDAY_EARLY).date().isoformat() == '2025-11-22'


class TestApplyPendingSwaps:
    def test_outside_window_does_nothing(self, store, roster):
        request_swap(store, roster, 1, 2)

        summary = apply_pending_swaps(store, now=FRIDAY_NOON)

        assert summary.applied is False
        assert 'Saturday' in summary.message
        assert load(store, roster, 1).roster_slot == ACTIVE
        assert load(store, roster, 1).pending_slot == RESERVE

    def test_applies_in_window(self, store, roster):
        request_swap(store, roster, 1, 2)
        before = count_roster(team_roster(store, roster, 'Ice Holes'))

        summary = apply_pending_swaps(store, now=SATURDAY_MORNING)

        assert summary.applied is True
        assert summary.swaps_applied == 2
        centre, winger = load(store, roster, 1), load(store, roster, 2)
        assert centre.roster_slot == RESERVE
        assert winger.roster_slot == ACTIVE
        for player in (centre, winger):
            assert player.pending_slot is None
            assert player.pending_swap_with is None
            assert player.last_swap_date == '2025-11-22'
        assert count_roster(team_roster(store, roster, 'Ice Holes')) == before

    def test_second_run_is_noop(self, store, roster):
        request_swap(store, roster, 3, 4)
        apply_pending_swaps(store, now=SATURDAY_MORNING)

        summary = apply_pending_swaps(store, now=SATURDAY_MORNING)

        assert summary.swaps_applied == 0
        assert load(store, roster, 3).roster_slot == RESERVE

    def test_force_outside_window(self, store, roster):
        request_swap(store, roster, 3, 4)
        summary = apply_pending_swaps(store, now=FRIDAY_NOON, force=True)
        assert summary.swaps_applied == 2
        assert load(store, roster, 4).roster_slot == ACTIVE
        assert load(store, roster, 4).last_swap_date == '2025-11-21'

    def test_limited_to_league(self, store, roster):
        request_swap(store, roster, 1, 2)
        summary = apply_pending_swaps(store, now=SATURDAY_MORNING, league_id='other-league')
        assert summary.swaps_applied == 0
        assert load(store, roster, 1).pending_slot == RESERVE

    def test_players_untouched_without_pending(self, store, roster):
        request_swap(store, roster, 1, 2)
        apply_pending_swaps(store, now=SATURDAY_MORNING)
        assert load(store, roster, 3).last_swap_date is None
