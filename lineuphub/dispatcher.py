"""
Unified entry point over the platform adapters.

The dispatcher resolves a platform tag to its adapter, validates the
minimum credentials before any network call, and wraps adapter results into
canonical FantasyTeam records. It is the one place where the typed errors
of ``lineuphub.errors`` become ``ConnectionResult.error`` strings and
``SyncResult`` messages.
"""

import logging
from typing import Any, Mapping, Optional

from .adapters.base import PlatformAdapter
from .adapters.espn import ESPNAdapter
from .adapters.sleeper import SleeperAdapter
from .adapters.yahoo import YahooAdapter
from .config import get_config
from .errors import CredentialsError, LineupHubError, NotFoundError, UnsupportedPlatformError
from .html_parsers import ParsedTeam
from .models import (
    ConnectionResult,
    DataSource,
    FantasyTeam,
    Lineup,
    Platform,
    PlatformConnection,
    SyncResult,
    utc_now,
)
from .normalize import prefixed_team_id, resolve_platform, strip_team_prefix
from .schemas import AppConfig
from .validators import get_credential, validate_credentials

logger = logging.getLogger('lineuphub.dispatcher')


class UnifiedDispatcher:
    """
    Routes platform tags to adapters and keeps one connection per platform.

    Adapters may be injected (tests pass adapters built on a fake transport);
    missing ones are created on first use and closed by ``aclose``.
    """

    def __init__(
        self,
        adapters: Optional[Mapping[Platform, PlatformAdapter]] = None,
        config: Optional[AppConfig] = None,
    ):
        self.config = config or get_config()
        self._adapters: dict[Platform, PlatformAdapter] = dict(adapters or {})
        self.connections: dict[Platform, PlatformConnection] = {}

    def get_adapter(self, platform: str | Platform) -> PlatformAdapter:
        """
        Return the adapter for a platform tag.

        Raises:
            UnsupportedPlatformError: For unknown tags and for CBS
        """
        platform = resolve_platform(platform)
        if platform in self._adapters:
            return self._adapters[platform]

        if platform == Platform.SLEEPER:
            adapter: PlatformAdapter = SleeperAdapter(config=self.config)
        elif platform == Platform.YAHOO:
            adapter = YahooAdapter(config=self.config)
        elif platform == Platform.ESPN:
            adapter = ESPNAdapter(config=self.config)
        else:
            raise UnsupportedPlatformError(
                f'{platform.value} is not supported yet', platform.value
            )
        self._adapters[platform] = adapter
        return adapter

    def espn(self) -> ESPNAdapter:
        return self.get_adapter(Platform.ESPN)  # type: ignore[return-value]

    def yahoo(self) -> YahooAdapter:
        return self.get_adapter(Platform.YAHOO)  # type: ignore[return-value]

    def get_connection(self, platform: str | Platform) -> Optional[PlatformConnection]:
        """The active connection for a platform, dropping it once expired."""
        platform = resolve_platform(platform)
        connection = self.connections.get(platform)
        if connection is not None and connection.is_expired():
            logger.info(f'{platform.value} connection expired')
            del self.connections[platform]
            return None
        return connection

    # -- connecting --------------------------------------------------------

    async def connect_platform(self, platform_tag: str, credentials: Mapping[str, Any]) -> ConnectionResult:
        """
        Connect a platform and return the user's team.

        Credentials (camelCase or snake_case keys):
            ESPN: teamUrl, optionally username + password to log in first
            Sleeper: leagueId, teamId
            Yahoo: accessToken, leagueId, teamId

        Returns:
            ConnectionResult; never raises
        """
        tag = str(platform_tag)
        try:
            platform = resolve_platform(platform_tag)
            tag = platform.value
            errors = validate_credentials(platform, credentials)
            if errors:
                raise CredentialsError('; '.join(errors), platform.value)

            adapter = self.get_adapter(platform)
            if platform == Platform.ESPN:
                team = await self._connect_espn(adapter, credentials)  # type: ignore[arg-type]
            else:
                team = await self._connect_api(platform, adapter, credentials)
        except LineupHubError as e:
            logger.warning(f'Connecting {tag} failed: {e}')
            return ConnectionResult(success=False, platform=tag, error=e.message)
        except Exception as e:
            logger.exception(f'Unexpected error connecting {tag}')
            return ConnectionResult(success=False, platform=tag, error=str(e) or type(e).__name__)

        logger.info(f'Connected {tag}: {team.name} ({team.id})')
        return ConnectionResult(success=True, platform=tag, teams=[team])

    async def _connect_api(
        self,
        platform: Platform,
        adapter: PlatformAdapter,
        credentials: Mapping[str, Any],
    ) -> FantasyTeam:
        connection = await adapter.authenticate(credentials)
        league_id = str(get_credential(credentials, 'leagueId'))
        team_id = str(get_credential(credentials, 'teamId'))
        season = get_credential(credentials, 'season') or self.config.current_season
        week = get_credential(credentials, 'week') or self.config.current_week

        league = await adapter.get_league(league_id, int(season))
        snapshot = league.find_team(team_id)
        if snapshot is None:
            raise NotFoundError(f'Team {team_id} not found in league {league_id}', platform.value)
        lineup = await adapter.get_team_lineup(league_id, team_id, int(week), league.season)

        now = utc_now()
        self.connections[platform] = connection.model_copy(update={'last_sync_date': now})
        return FantasyTeam(
            id=prefixed_team_id(platform, team_id),
            name=snapshot.name,
            platform=platform,
            league_id=league_id,
            league_name=league.name,
            owner_id=self.config.owner_id,
            record=snapshot.record,
            season=league.season,
            last_sync_date=now,
            current_lineup=lineup,
            data_source=DataSource.LIVE,
        )

    async def _connect_espn(self, adapter: ESPNAdapter, credentials: Mapping[str, Any]) -> FantasyTeam:
        if get_credential(credentials, 'username') and get_credential(credentials, 'password'):
            await adapter.authenticate(credentials)
        week = get_credential(credentials, 'week')
        team = await adapter.get_team_from_url(
            get_credential(credentials, 'teamUrl'), week=int(week) if week else None
        )
        self.connections[Platform.ESPN] = adapter.session.to_connection().model_copy(
            update={'last_sync_date': team.last_sync_date}
        )
        return team

    async def disconnect(self, platform_tag: str) -> None:
        """Drop a platform connection; ESPN also clears its stored session."""
        platform = resolve_platform(platform_tag)
        self.connections.pop(platform, None)
        if platform == Platform.ESPN:
            self.espn().logout()
        elif platform == Platform.YAHOO and Platform.YAHOO in self._adapters:
            self.yahoo().access_token = None
        logger.info(f'Disconnected {platform.value}')

    # -- lineups -----------------------------------------------------------

    async def get_team_lineup(self, team: FantasyTeam, week: int) -> Lineup:
        """
        Fetch a team's lineup for a week, routed by ``team.platform``.

        Raises:
            LineupHubError: Typed adapter errors propagate to the caller
        """
        adapter = self.get_adapter(team.platform)
        team_id = strip_team_prefix(team.platform, team.id)
        return await adapter.get_team_lineup(team.league_id, team_id, week, team.season)

    async def update_team_lineup(self, team: FantasyTeam, week: int, partial_lineup: Mapping[str, Any]) -> bool:
        """Best-effort lineup write; False on any failure, never raises."""
        try:
            adapter = self.get_adapter(team.platform)
            team_id = strip_team_prefix(team.platform, team.id)
            return await adapter.update_lineup(team.league_id, team_id, week, partial_lineup)
        except LineupHubError as e:
            logger.warning(f'Lineup update for {team.id} failed: {e}')
            return False

    async def sync_team(self, team: FantasyTeam, week: int) -> tuple[SyncResult, Optional[Lineup]]:
        """
        Refresh a team's lineup and report the outcome.

        Returns:
            (SyncResult, Lineup or None on failure); never raises
        """
        platform = team.platform.value
        try:
            lineup = await self.get_team_lineup(team, week)
        except LineupHubError as e:
            logger.warning(f'Sync of {team.id} failed: {e}')
            return SyncResult(success=False, team_id=team.id, platform=platform, message=e.message), None
        except Exception as e:
            logger.exception(f'Unexpected error syncing {team.id}')
            message = str(e) or type(e).__name__
            return SyncResult(success=False, team_id=team.id, platform=platform, message=message), None

        connection = self.connections.get(team.platform)
        if connection is not None:
            self.connections[team.platform] = connection.model_copy(
                update={'last_sync_date': lineup.last_updated}
            )
        message = f'Synced {team.name} week {week}'
        if lineup.data_source == DataSource.PLACEHOLDER:
            message += ' (placeholder data)'
        return SyncResult(success=True, team_id=team.id, platform=platform, message=message), lineup

    # -- Yahoo OAuth -------------------------------------------------------

    def yahoo_auth_url(self, client_id: str, redirect_uri: str, state: Optional[str] = None) -> str:
        return self.yahoo().get_auth_url(client_id, redirect_uri, state)

    async def exchange_yahoo_code(
        self,
        *,
        client_id: str,
        client_secret: str,
        code: str,
        redirect_uri: str,
    ) -> Optional[PlatformConnection]:
        """Exchange a Yahoo authorization code; None (logged) on failure."""
        try:
            connection = await self.yahoo().exchange_code(
                client_id=client_id,
                client_secret=client_secret,
                code=code,
                redirect_uri=redirect_uri,
            )
        except LineupHubError as e:
            logger.warning(f'Yahoo code exchange failed: {e}')
            return None
        self.connections[Platform.YAHOO] = connection
        return connection

    # -- ESPN HTML tools ---------------------------------------------------

    def parse_espn_html(self, html: str, team_id: Optional[str] = None) -> ParsedTeam:
        """Run the ESPN parse chain over pasted HTML."""
        return self.espn().parse_team_html(html, team_id=team_id)

    def create_espn_team_from_html(
        self,
        html: str,
        league_id: str = 'manual',
        team_id: Optional[str] = None,
        week: Optional[int] = None,
    ) -> FantasyTeam:
        return self.espn().create_team_from_html(html, league_id=league_id, team_id=team_id, week=week)

    def check_espn_authentication(self) -> dict[str, Any]:
        """Session status summary for the ESPN login panel."""
        espn = self.espn()
        authenticated = espn.is_authenticated()
        return {
            'authenticated': authenticated,
            'username': espn.session.username if authenticated else None,
        }

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
