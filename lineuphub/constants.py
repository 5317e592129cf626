"""Constants and mapping tables for lineuphub."""

# Platform tag -> team id prefix
PLATFORM_PREFIXES = {
    'ESPN': 'espn',
    'Yahoo': 'yahoo',
    'Sleeper': 'sleeper',
    'CBS': 'cbs',
}

# Fallback for upstream positions with no canonical counterpart
UNMAPPED_POSITION = 'FLEX'

# Display order of starting slots
SLOT_DISPLAY_ORDER = [
    'QB', 'RB1', 'RB2', 'RB3',
    'WR1', 'WR2', 'WR3', 'WR4',
    'TE', 'FLEX', 'FLEX2',
    'K', 'DEF',
    'IDP1', 'IDP2', 'IDP3',
]

BENCH_SLOT = 'BENCH'

# Slot bases that always carry an index (RB1, RB2, ...)
NUMBERED_SLOT_BASES = {'RB', 'WR', 'IDP'}

# Aliases shared by every platform
POSITION_ALIASES = {
    'QB': 'QB',
    'RB': 'RB',
    'WR': 'WR',
    'TE': 'TE',
    'K': 'K',
    'PK': 'K',
    'DEF': 'DEF',
    'DST': 'DEF',
    'D/ST': 'DEF',
    'D': 'DEF',
    'FLEX': 'FLEX',
}

# ---------------------------------------------------------------------------
# Sleeper
# ---------------------------------------------------------------------------

SLEEPER_POSITION_MAP = {
    'QB': 'QB',
    'RB': 'RB',
    'WR': 'WR',
    'TE': 'TE',
    'K': 'K',
    'DEF': 'DEF',
}

SLEEPER_INJURY_MAP = {
    '': 'healthy',
    'questionable': 'questionable',
    'doubtful': 'doubtful',
    'out': 'out',
    'ir': 'out',
    'pup': 'out',
    'sus': 'out',
    'na': 'out',
}

# league.roster_positions entry -> slot base
SLEEPER_SLOT_MAP = {
    'QB': 'QB',
    'RB': 'RB',
    'WR': 'WR',
    'TE': 'TE',
    'K': 'K',
    'DEF': 'DEF',
    'FLEX': 'FLEX',
    'WRRB_FLEX': 'FLEX',
    'REC_FLEX': 'FLEX',
    'SUPER_FLEX': 'FLEX',
    'IDP_FLEX': 'IDP',
    'DL': 'IDP',
    'LB': 'IDP',
    'DB': 'IDP',
    'BN': 'BENCH',
    'IR': 'BENCH',
    'TAXI': 'BENCH',
}

# Used when a league does not report roster_positions
SLEEPER_DEFAULT_ROSTER_POSITIONS = ['QB', 'RB', 'RB', 'WR', 'WR', 'TE', 'FLEX', 'K', 'DEF']

# Sleeper uses '0' for an empty starting slot
SLEEPER_EMPTY_SLOT = '0'

# ---------------------------------------------------------------------------
# Yahoo
# ---------------------------------------------------------------------------

YAHOO_POSITION_MAP = {
    'QB': 'QB',
    'RB': 'RB',
    'WR': 'WR',
    'TE': 'TE',
    'K': 'K',
    'DEF': 'DEF',
}

YAHOO_INJURY_MAP = {
    '': 'healthy',
    'q': 'questionable',
    'd': 'doubtful',
    'o': 'out',
    'ir': 'out',
    'pup-r': 'out',
    'susp': 'out',
    'na': 'out',
}

# selected_position -> slot base
YAHOO_SLOT_MAP = {
    'QB': 'QB',
    'RB': 'RB',
    'WR': 'WR',
    'TE': 'TE',
    'K': 'K',
    'DEF': 'DEF',
    'W/R/T': 'FLEX',
    'W/R': 'FLEX',
    'W/T': 'FLEX',
    'Q/W/R/T': 'FLEX',
    'D': 'IDP',
    'DB': 'IDP',
    'DL': 'IDP',
    'LB': 'IDP',
    'BN': 'BENCH',
    'IR': 'BENCH',
}

# Canonical slot base -> Yahoo roster position (for roster PUTs)
YAHOO_SLOT_REVERSE_MAP = {
    'QB': 'QB',
    'RB': 'RB',
    'WR': 'WR',
    'TE': 'TE',
    'FLEX': 'W/R/T',
    'K': 'K',
    'DEF': 'DEF',
    'IDP': 'D',
    'BENCH': 'BN',
}

YAHOO_GAME_CODE = 'nfl'

# ---------------------------------------------------------------------------
# ESPN
# ---------------------------------------------------------------------------

# player.defaultPositionId
ESPN_POSITION_MAP = {
    1: 'QB',
    2: 'RB',
    3: 'WR',
    4: 'TE',
    5: 'K',
    16: 'DEF',
}

ESPN_INJURY_MAP = {
    '': 'healthy',
    'active': 'healthy',
    'normal': 'healthy',
    'questionable': 'questionable',
    'doubtful': 'doubtful',
    'out': 'out',
    'injury_reserve': 'out',
    'suspension': 'out',
}

# roster entry lineupSlotId -> slot base
ESPN_SLOT_MAP = {
    0: 'QB',
    1: 'QB',
    2: 'RB',
    3: 'FLEX',
    4: 'WR',
    5: 'FLEX',
    6: 'TE',
    7: 'FLEX',
    8: 'IDP',
    9: 'IDP',
    10: 'IDP',
    11: 'IDP',
    12: 'IDP',
    13: 'IDP',
    14: 'IDP',
    15: 'IDP',
    16: 'DEF',
    17: 'K',
    20: 'BENCH',
    21: 'BENCH',
    23: 'FLEX',
}

# Slot labels as rendered in the ESPN roster table
ESPN_SLOT_LABEL_MAP = {
    'QB': 'QB',
    'RB': 'RB',
    'WR': 'WR',
    'TE': 'TE',
    'FLEX': 'FLEX',
    'RB/WR/TE': 'FLEX',
    'OP': 'FLEX',
    'D/ST': 'DEF',
    'DST': 'DEF',
    'K': 'K',
    'DP': 'IDP',
    'BE': 'BENCH',
    'BENCH': 'BENCH',
    'IR': 'BENCH',
}

# player.proTeamId
ESPN_TEAM_MAP = {
    0: 'FA',
    1: 'ATL', 2: 'BUF', 3: 'CHI', 4: 'CIN', 5: 'CLE', 6: 'DAL', 7: 'DEN', 8: 'DET',
    9: 'GB', 10: 'TEN', 11: 'IND', 12: 'KC', 13: 'LV', 14: 'LAR', 15: 'MIA', 16: 'MIN',
    17: 'NE', 18: 'NO', 19: 'NYG', 20: 'NYJ', 21: 'PHI', 22: 'ARI', 23: 'PIT', 24: 'LAC',
    25: 'SF', 26: 'SEA', 27: 'TB', 28: 'WSH', 29: 'CAR', 30: 'JAX', 33: 'BAL', 34: 'HOU',
}

ESPN_UNKNOWN_TEAM = 'UNK'

# stats[].statSourceId
ESPN_STAT_SOURCE_ACTUAL = 0
ESPN_STAT_SOURCE_PROJECTED = 1

# Pro team abbreviations accepted when scanning scraped markup
NFL_TEAM_ABBREVIATIONS = frozenset(
    set(ESPN_TEAM_MAP.values()) - {'FA'} | {'WAS', 'JAC', 'LA', 'OAK', 'SD', 'STL'}
)

# Variable-assignment markers that precede embedded JSON state
ESPN_STATE_MARKERS = (
    'window.__INITIAL_STATE__',
    "window['__espnfitt__']",
    'window.__espnfitt__',
    '__NEXT_DATA__',
)

# State keys naming the team a page belongs to
ESPN_STATE_TEAM_ID_KEYS = ('currentTeamId', 'selectedTeamId', 'myTeamId', 'teamId')

# Substrings that identify a login page served instead of team data
LOGIN_PAGE_MARKERS = ('login', 'signin', 'sign-in')

# Leading cell text of rows the table parser never treats as players
TABLE_SKIP_MARKERS = ('slot', 'pos', 'player', 'total', 'totals')
TABLE_BENCH_MARKERS = ('bench', 'be', 'ir', 'injured reserve')

DEFAULT_ESPN_TEAM_NAME = 'ESPN Team'
DEFAULT_ESPN_RECORD = (0, 0, 0)

# Deterministic placeholder roster: (slot base, name, position, pro team, projected)
PLACEHOLDER_ROSTER = [
    ('QB', 'Placeholder QB', 'QB', 'FA', 0.0),
    ('RB', 'Placeholder RB 1', 'RB', 'FA', 0.0),
    ('RB', 'Placeholder RB 2', 'RB', 'FA', 0.0),
    ('WR', 'Placeholder WR 1', 'WR', 'FA', 0.0),
    ('WR', 'Placeholder WR 2', 'WR', 'FA', 0.0),
    ('TE', 'Placeholder TE', 'TE', 'FA', 0.0),
    ('FLEX', 'Placeholder FLEX', 'RB', 'FA', 0.0),
    ('K', 'Placeholder K', 'K', 'FA', 0.0),
    ('DEF', 'Placeholder D/ST', 'DEF', 'FA', 0.0),
]
