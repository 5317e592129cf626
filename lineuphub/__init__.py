from .models import (
    Position,
    InjuryStatus,
    Platform,
    DataSource,
    Player,
    Record,
    Lineup,
    FantasyTeam,
    TeamSnapshot,
    LeagueSnapshot,
    PlatformConnection,
    SyncResult,
    ConnectionResult,
)
from .errors import (
    LineupHubError,
    AuthError,
    NotAuthenticatedError,
    CredentialsError,
    FetchError,
    ParseError,
    NotFoundError,
    UnsupportedPlatformError,
)
from .normalize import (
    map_position,
    map_injury_status,
    map_slot,
    assemble_lineup,
    display_slots,
    SlotAllocator,
)
from .session import ESPNSessionManager, SessionStore
from .html_parsers import NameProbe, ParsedTeam, run_parse_chain, default_strategies
from .adapters import PlatformAdapter, ESPNAdapter, SleeperAdapter, YahooAdapter
from .dispatcher import UnifiedDispatcher

__all__ = [
    # Models
    'Position',
    'InjuryStatus',
    'Platform',
    'DataSource',
    'Player',
    'Record',
    'Lineup',
    'FantasyTeam',
    'TeamSnapshot',
    'LeagueSnapshot',
    'PlatformConnection',
    'SyncResult',
    'ConnectionResult',
    # Errors
    'LineupHubError',
    'AuthError',
    'NotAuthenticatedError',
    'CredentialsError',
    'FetchError',
    'ParseError',
    'NotFoundError',
    'UnsupportedPlatformError',
    # Normalization
    'map_position',
    'map_injury_status',
    'map_slot',
    'assemble_lineup',
    'display_slots',
    'SlotAllocator',
    # ESPN session and scraping
    'ESPNSessionManager',
    'SessionStore',
    'NameProbe',
    'ParsedTeam',
    'run_parse_chain',
    'default_strategies',
    # Adapters
    'PlatformAdapter',
    'ESPNAdapter',
    'SleeperAdapter',
    'YahooAdapter',
    # Dispatcher
    'UnifiedDispatcher',
]
