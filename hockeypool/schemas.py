"""Pydantic schemas for stored documents and service configuration."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .constants import MAX_RESERVES

POSITION_PATTERN = r'^(C|L|R|D|G)$'
SLOT_PATTERN = r'^(active|reserve)$'
DATE_PATTERN = r'^\d{4}-\d{2}-\d{2}$'


class ScoringRules(BaseModel):
    """Fantasy points awarded per counting stat."""

    # Skaters
    goal: float = 1.0
    assist: float = 1.0
    short_handed_goal: float = 1.0
    overtime_goal: float = 1.0
    fight: float = 2.0
    # Defensemen only
    blocked_shot: float = 0.15
    hit: float = 0.1
    # Goalies
    win: float = 1.0
    shutout: float = 2.0
    save: float = 0.04
    goalie_assist: float = 1.0
    goalie_goal: float = 20.0
    goalie_fight: float = 5.0

    class Config:
        extra = 'forbid'


class RosterSettings(BaseModel):
    """Active roster capacity per position class, plus the reserve bench."""

    forwards: int = Field(9, ge=0, le=30)
    defensemen: int = Field(6, ge=0, le=30)
    goalies: int = Field(2, ge=0, le=10)
    reserves: int = Field(MAX_RESERVES, ge=0, le=MAX_RESERVES)

    class Config:
        extra = 'forbid'


class LeagueTeam(BaseModel):
    """Fantasy team entry in a league."""

    team_name: str = Field(..., min_length=1)
    owner_uid: str = ''
    owner_email: Optional[str] = None

    class Config:
        extra = 'forbid'


class League(BaseModel):
    """League configuration root."""

    league_id: str = Field(..., min_length=1)
    league_name: str = Field(..., min_length=1)
    admin: Optional[str] = None
    status: str = Field('pending', pattern=r'^(pending|live|complete)$')
    teams: list[LeagueTeam] = Field(..., min_length=1)
    draft_rounds: int = Field(15, ge=1, le=40)
    scoring_rules: ScoringRules = Field(default_factory=ScoringRules)
    roster_settings: RosterSettings = Field(default_factory=RosterSettings)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator('teams')
    @classmethod
    def validate_unique_teams(cls, v):
        """Team names are used as identities and must be unique."""
        names = [t.team_name for t in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f'Duplicate team names: {", ".join(duplicates)}')
        return v

    @property
    def team_names(self) -> list[str]:
        return [t.team_name for t in self.teams]

    class Config:
        extra = 'forbid'


class DraftPick(BaseModel):
    """One entry of the fixed snake order."""

    pick: int = Field(..., ge=1)
    round: int = Field(..., ge=1)
    team: str = Field(..., min_length=1)

    class Config:
        extra = 'forbid'


class LastPick(BaseModel):
    player_name: str
    team: str
    pick_number: int
    timestamp: str

    class Config:
        extra = 'forbid'


class DraftState(BaseModel):
    """Single source of truth for whose turn it is."""

    league_id: str
    total_picks: int = Field(..., ge=0)
    current_pick_number: int = Field(..., ge=1)
    draft_order: list[DraftPick]
    is_complete: bool = False
    last_pick: Optional[LastPick] = None

    class Config:
        extra = 'forbid'


class DraftablePlayer(BaseModel):
    """A real player as offered by the stats source's roster listing."""

    player_id: int
    name: str = Field(..., min_length=1)
    position: str = Field(..., pattern=POSITION_PATTERN)
    nhl_team: str = 'UNK'
    jersey_number: Optional[int] = None

    class Config:
        extra = 'ignore'


class DraftedPlayer(BaseModel):
    """A player assigned to a fantasy team."""

    league_id: str
    player_id: int
    name: str
    position: str = Field(..., pattern=POSITION_PATTERN)
    nhl_team: str = 'UNK'
    jersey_number: Optional[int] = None
    drafted_by_team: str
    pick_number: int = Field(..., ge=0)
    round: int = Field(..., ge=0)
    roster_slot: str = Field('active', pattern=SLOT_PATTERN)
    pending_slot: Optional[str] = Field(None, pattern=SLOT_PATTERN)
    pending_swap_with: Optional[int] = None
    drafted_at: Optional[str] = None
    last_swap_date: Optional[str] = None

    class Config:
        extra = 'forbid'


class PlayerStatLine(BaseModel):
    """Raw counting stats for one player in one game (or one day)."""

    player_id: int
    name: str = ''
    position: str = Field(..., pattern=POSITION_PATTERN)
    nhl_team: str = 'UNK'
    goals: int = 0
    assists: int = 0
    shots: int = 0
    hits: int = 0
    blocked_shots: int = 0
    pim: int = 0
    power_play_goals: int = 0
    short_handed_goals: int = 0
    overtime_goals: int = 0
    fights: int = 0
    wins: int = 0
    saves: int = 0
    goals_against: int = 0
    shutouts: int = 0
    games_played: int = 1

    class Config:
        extra = 'forbid'


class DailyPlayerLine(PlayerStatLine):
    """Stat line cached in a daily snapshot, with points under default weights."""

    fantasy_points: float = 0.0


class DailyStatSnapshot(BaseModel):
    """Raw per-player stats observed on one calendar date."""

    date: str = Field(..., pattern=DATE_PATTERN)
    players: dict[str, DailyPlayerLine] = Field(default_factory=dict)
    games_processed: int = 0
    updated_at: Optional[str] = None

    class Config:
        extra = 'forbid'


class PlayerDailyScore(BaseModel):
    """Authoritative fantasy points for one (player, date)."""

    player_id: int
    player_name: str
    team_name: str
    nhl_team: str = 'UNK'
    date: str = Field(..., pattern=DATE_PATTERN)
    points: float
    stats: dict[str, int] = Field(default_factory=dict)
    breakdown: dict[str, float] = Field(default_factory=dict)

    class Config:
        extra = 'forbid'


class TeamScore(BaseModel):
    """Cumulative standings row for a fantasy team."""

    team_name: str
    total_points: float = 0.0
    wins: int = 0
    losses: int = 0
    last_updated: Optional[str] = None

    class Config:
        extra = 'forbid'


class ProcessedDate(BaseModel):
    """Marker that a date's points have been applied to a league."""

    date: str = Field(..., pattern=DATE_PATTERN)
    processed_at: str
    games_processed: int = 0
    games_failed: list[int] = Field(default_factory=list)
    teams_updated: int = 0
    player_performances: int = 0

    class Config:
        extra = 'forbid'


class LiveStat(BaseModel):
    """Best-effort in-progress stats for same-day display."""

    player_id: int
    player_name: str
    team_name: str
    nhl_team: str = 'UNK'
    date: str = Field(..., pattern=DATE_PATTERN)
    game_id: int
    game_state: str
    away_score: int = 0
    home_score: int = 0
    goals: int = 0
    assists: int = 0
    shots: int = 0
    hits: int = 0
    blocked_shots: int = 0
    wins: int = 0
    saves: int = 0
    shutouts: int = 0
    fantasy_points: float = 0.0
    last_updated: Optional[str] = None

    class Config:
        extra = 'forbid'


class Game(BaseModel):
    """One game from the stats source's score or schedule feed."""

    game_id: int
    game_date: Optional[str] = None
    away_team: str = 'UNK'
    home_team: str = 'UNK'
    away_score: int = 0
    home_score: int = 0
    game_state: str = 'FUT'
    start_time_utc: Optional[str] = None

    class Config:
        extra = 'forbid'


class LeagueConfig(BaseModel):
    """Service-wide settings."""

    timezone: str = 'America/New_York'
    stats_api_base_url: str = Field(..., min_length=1)
    request_timeout_seconds: float = Field(10.0, gt=0)
    live_request_delay_seconds: float = Field(0.5, ge=0)
    default_draft_rounds: int = Field(15, ge=1, le=40)
    default_scoring_rules: ScoringRules = Field(default_factory=ScoringRules)
    default_roster_settings: RosterSettings = Field(default_factory=RosterSettings)
    swap_cutover_weekday: int = Field(5, ge=0, le=6)
    swap_cutover_hour: int = Field(9, ge=0, le=23)
    transaction_max_attempts: int = Field(5, ge=1, le=50)

    class Config:
        extra = 'forbid'
