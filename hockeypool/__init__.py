from .schemas import (
    League,
    LeagueTeam,
    ScoringRules,
    RosterSettings,
    DraftState,
    DraftablePlayer,
    DraftedPlayer,
    PlayerStatLine,
    PlayerDailyScore,
    TeamScore,
    LiveStat,
    DailyStatSnapshot,
)
from .errors import (
    DraftRejection,
    SwapRejection,
    DataIntegrityError,
    StatsSourceError,
    TransactionConflict,
)
from .store import DocumentStore, MemoryStore, JsonFileStore
from .stats_client import NHLStatsClient
from .scoring import score_skater, score_goalie, score_stat_line
from .draft import (
    generate_snake_order,
    create_league,
    start_draft,
    make_pick,
    auto_complete_draft,
    add_player,
    remove_player,
    team_roster,
)
from .pipeline import (
    process_daily_scores,
    clear_scores,
    backfill_daily_stats,
    score_date_range,
    standings,
)
from .live import poll_live_stats, process_live_stats, live_stats_summary
from .swaps import request_swap, cancel_swap, apply_pending_swaps, next_cutover

__all__ = [
    # Schemas
    'League',
    'LeagueTeam',
    'ScoringRules',
    'RosterSettings',
    'DraftState',
    'DraftablePlayer',
    'DraftedPlayer',
    'PlayerStatLine',
    'PlayerDailyScore',
    'TeamScore',
    'LiveStat',
    'DailyStatSnapshot',
    # Errors
    'DraftRejection',
    'SwapRejection',
    'DataIntegrityError',
    'StatsSourceError',
    'TransactionConflict',
    # Store
    'DocumentStore',
    'MemoryStore',
    'JsonFileStore',
    # Stats source
    'NHLStatsClient',
    # Scoring
    'score_skater',
    'score_goalie',
    'score_stat_line',
    # Draft
    'generate_snake_order',
    'create_league',
    'start_draft',
    'make_pick',
    'auto_complete_draft',
    'add_player',
    'remove_player',
    'team_roster',
    # Daily pipeline
    'process_daily_scores',
    'clear_scores',
    'backfill_daily_stats',
    'score_date_range',
    'standings',
    # Live stats
    'poll_live_stats',
    'process_live_stats',
    'live_stats_summary',
    # Roster swaps
    'request_swap',
    'cancel_swap',
    'apply_pending_swaps',
    'next_cutover',
]
