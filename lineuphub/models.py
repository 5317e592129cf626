"""Canonical data models shared by every platform adapter."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class Position(str, Enum):
    QB = 'QB'
    RB = 'RB'
    WR = 'WR'
    TE = 'TE'
    K = 'K'
    DEF = 'DEF'
    FLEX = 'FLEX'


class InjuryStatus(str, Enum):
    HEALTHY = 'healthy'
    QUESTIONABLE = 'questionable'
    DOUBTFUL = 'doubtful'
    OUT = 'out'


class Platform(str, Enum):
    ESPN = 'ESPN'
    YAHOO = 'Yahoo'
    SLEEPER = 'Sleeper'
    CBS = 'CBS'


class DataSource(str, Enum):
    """Whether a result came from upstream data or the placeholder strategy."""

    LIVE = 'live'
    PLACEHOLDER = 'placeholder'


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Player(BaseModel):
    """A player as produced by an adapter for one sync."""

    id: str
    name: str = Field(..., min_length=1)
    position: Position
    team: str = ''
    injury_status: InjuryStatus = InjuryStatus.HEALTHY
    injury_details: str | None = None
    projected_points: float | None = Field(default=None, ge=0)
    actual_points: float | None = Field(default=None, ge=0)

    class Config:
        frozen = True
        extra = 'forbid'


class Record(BaseModel):
    """Win/loss/tie record."""

    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    ties: int = Field(default=0, ge=0)

    def __str__(self) -> str:
        return f'{self.wins}-{self.losses}-{self.ties}'


class Lineup(BaseModel):
    """
    One team's lineup for one week.

    ``starters`` maps a slot name (``QB``, ``RB1``, ``FLEX``, ...) to the
    player in it; the populated slot set depends on the league. ``bench`` is
    kept apart so the point totals, which cover starters only, never see it.
    """

    id: str
    team_id: str
    week: int = Field(..., ge=1, le=18)
    season: int
    starters: dict[str, Player] = Field(default_factory=dict)
    bench: list[Player] = Field(default_factory=list)
    total_projected_points: float = 0.0
    total_actual_points: float = 0.0
    last_updated: datetime = Field(default_factory=utc_now)
    data_source: DataSource = DataSource.LIVE

    class Config:
        extra = 'forbid'

    @property
    def slots(self) -> list[str]:
        return list(self.starters)


class FantasyTeam(BaseModel):
    """A user's team on one platform, as handed to the caller."""

    id: str
    name: str
    platform: Platform
    league_id: str
    league_name: str
    owner_id: str
    record: Record = Field(default_factory=Record)
    season: int
    is_active: bool = True
    last_sync_date: datetime | None = None
    current_lineup: Lineup | None = None
    data_source: DataSource = DataSource.LIVE

    class Config:
        extra = 'forbid'


class TeamSnapshot(BaseModel):
    """A team as listed in a league fetch."""

    team_id: str
    name: str
    owners: list[str] = Field(default_factory=list)
    record: Record = Field(default_factory=Record)
    roster: list[Player] = Field(default_factory=list)


class LeagueSnapshot(BaseModel):
    """League metadata plus its teams."""

    league_id: str
    name: str
    season: int
    teams: list[TeamSnapshot] = Field(default_factory=list)
    data_source: DataSource = DataSource.LIVE

    def find_team(self, team_id: str) -> TeamSnapshot | None:
        for team in self.teams:
            if team.team_id == str(team_id):
                return team
        return None


class PlatformConnection(BaseModel):
    """Authentication/session state for one platform."""

    platform: Platform
    is_connected: bool = False
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None
    last_sync_date: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utc_now()) > self.expires_at


class SyncResult(BaseModel):
    """Outcome of one synchronization attempt, success or failure."""

    success: bool
    team_id: str
    platform: str
    message: str
    timestamp: datetime = Field(default_factory=utc_now)


class ConnectionResult(BaseModel):
    """Outcome of connecting a platform."""

    success: bool
    platform: str
    teams: list[FantasyTeam] = Field(default_factory=list)
    error: str | None = None
