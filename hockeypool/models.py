"""Result containers returned by the draft, scoring, live and swap flows."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .constants import DEFENSE, FORWARDS, GOALIES
from .schemas import DraftPick, PlayerDailyScore


@dataclass
class RosterCounts:
    """Occupancy of a fantasy team's roster."""

    active: Dict[str, int] = field(
        default_factory=lambda: {FORWARDS: 0, DEFENSE: 0, GOALIES: 0}
    )
    reserve: int = 0

    @property
    def total(self) -> int:
        return sum(self.active.values()) + self.reserve


@dataclass
class PickResult:
    """Outcome of a successful pick."""

    pick: DraftPick
    player_id: int
    player_name: str
    roster_slot: str
    next_pick_number: int
    draft_complete: bool

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['pick'] = self.pick.model_dump()
        return data


@dataclass
class AutoDraftSummary:
    """Outcome of an auto-complete run."""

    picks_made: int = 0
    picks_skipped: int = 0
    draft_complete: bool = False
    assignments: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DailyComputation:
    """Fantasy points computed for one date before anything is written."""

    date: str
    game_ids: List[int] = field(default_factory=list)
    failed_games: List[int] = field(default_factory=list)
    player_scores: Dict[int, PlayerDailyScore] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def team_points(self) -> Dict[str, float]:
        totals: Dict[str, float] = {}
        for score in self.player_scores.values():
            totals[score.team_name] = totals.get(score.team_name, 0.0) + score.points
        return totals


@dataclass
class ScoringRunSummary:
    """JSON-friendly summary of one scoring pipeline invocation."""

    league_id: str
    date: str
    status: str  # processed | already_processed | league_not_live | fetch_failed
    games_processed: int = 0
    games_failed: List[int] = field(default_factory=list)
    teams_updated: int = 0
    player_performances: int = 0
    team_points: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ClearSummary:
    teams_reset: int = 0
    player_scores_deleted: int = 0
    processed_dates_deleted: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LivePollSummary:
    """Outcome of one live-stats pass for one league."""

    league_id: str
    date: str
    games_processed: int = 0
    games_failed: List[int] = field(default_factory=list)
    players_updated: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SwapRunSummary:
    """Outcome of a roster-swap cutover run."""

    applied: bool
    swaps_applied: int = 0
    message: str = ''
    players: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
