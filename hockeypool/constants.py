"""Constants and mappings for the hockey pool."""

UNKNOWN_TEAM = 'UNK'

# Position codes as reported by the stats source
FORWARD_POSITIONS = ('C', 'L', 'R')
DEFENSE_POSITION = 'D'
GOALIE_POSITION = 'G'

# Position class keys used for roster capacity
FORWARDS = 'F'
DEFENSE = 'D'
GOALIES = 'G'

POSITION_CLASS_NAMES = {
    FORWARDS: 'Forward',
    DEFENSE: 'Defense',
    GOALIES: 'Goalie',
}

# Roster slots
ACTIVE = 'active'
RESERVE = 'reserve'
MAX_RESERVES = 5

# League lifecycle
LEAGUE_PENDING = 'pending'
LEAGUE_LIVE = 'live'

# Game states from the stats source
COMPLETED_GAME_STATES = ('OFF', 'FINAL')
NOT_STARTED_GAME_STATES = ('FUT', 'PRE')


def position_class(position: str) -> str:
    """Map a position code (C, L, R, D, G) to its roster class (F, D, G)."""
    if position in FORWARD_POSITIONS:
        return FORWARDS
    if position == DEFENSE_POSITION:
        return DEFENSE
    if position == GOALIE_POSITION:
        return GOALIES
    raise ValueError(f'Unknown position code: {position}')
