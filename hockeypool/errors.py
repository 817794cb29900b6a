"""Exception types shared across the draft, scoring and swap flows."""

from dataclasses import dataclass
from typing import Any, Optional

# Draft rejection codes (stable API surface)
DRAFT_NOT_STARTED = 'draft_not_started'
DRAFT_COMPLETE = 'draft_complete'
DRAFT_ALREADY_STARTED = 'draft_already_started'
NOT_YOUR_TURN = 'not_your_turn'
ALREADY_DRAFTED = 'already_drafted'
RESERVE_FULL = 'reserve_full'
ROSTER_FULL = 'roster_full'
UNKNOWN_TEAM = 'unknown_team'

# Swap rejection codes
PLAYER_NOT_FOUND = 'player_not_found'
SAME_PLAYER = 'same_player'
DIFFERENT_TEAMS = 'different_teams'
POSITION_MISMATCH = 'position_mismatch'
SAME_SLOT = 'same_slot'
NO_PENDING_SWAP = 'no_pending_swap'


@dataclass(eq=False)
class DraftRejection(Exception):
    """A pick or draft action refused by validation.

    Nothing is written when this is raised. The HTTP layer maps it to a 4xx
    response and keeps ``code`` as the machine-readable reason.
    """

    code: str
    message: str
    details: Optional[Any] = None

    def __str__(self) -> str:
        return f'{self.code}: {self.message}'


@dataclass(eq=False)
class SwapRejection(Exception):
    """A roster swap request refused by validation."""

    code: str
    message: str
    details: Optional[Any] = None

    def __str__(self) -> str:
        return f'{self.code}: {self.message}'


class DataIntegrityError(RuntimeError):
    """Raised when a stored document is missing or malformed."""


class DocumentNotFound(KeyError):
    """Raised when updating a document that does not exist."""


class TransactionConflict(RuntimeError):
    """Raised when a transaction keeps losing races to concurrent writers."""


class StatsSourceError(RuntimeError):
    """Raised when the external stats source fails or returns an error status."""
