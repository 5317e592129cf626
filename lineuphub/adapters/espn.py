"""
ESPN adapter.

ESPN has no public read API for private leagues, so team and league pages
are fetched as HTML through the CORS relay chain with the session cookie and
scraped with the ordered strategies in ``html_parsers``.

Failure policy:
- No active session: NotAuthenticatedError before any request is made
- A login page comes back instead of team data: AuthError
- Every relay fails: placeholder team (``espn.placeholder_on_fetch_failure``),
  otherwise FetchError
- Nothing parses: placeholder team
"""

import logging
from typing import Any, Mapping, Optional
from urllib.parse import parse_qs, urlencode, urlparse

from ..constants import DEFAULT_ESPN_TEAM_NAME
from ..errors import AuthError, CredentialsError, FetchError
from ..html_parsers import (
    NameProbe,
    ParseContext,
    ParsedTeam,
    default_strategies,
    espn_team_name,
    espn_team_record,
    extract_state_blobs,
    find_league_name,
    find_league_teams,
    placeholder_team,
    run_parse_chain,
)
from ..models import (
    DataSource,
    FantasyTeam,
    LeagueSnapshot,
    Lineup,
    Platform,
    PlatformConnection,
    Record,
    TeamSnapshot,
    utc_now,
)
from ..normalize import assemble_lineup, prefixed_team_id
from ..scraping import (
    ProxyRelayChain,
    extract_form_token,
    looks_like_login_page,
    merge_cookies,
)
from ..session import ESPNSessionManager, SessionStore
from ..utils import to_int
from ..validators import get_credential, validate_team_url
from .base import PlatformAdapter

logger = logging.getLogger('lineuphub.adapters.espn')

LOGIN_SUCCESS_STATUSES = (200, 302)


def parse_team_url(team_url: str) -> tuple[str, str]:
    """
    Pull (league id, team id) out of an ESPN team URL.

    Raises:
        CredentialsError: If the URL is not an ESPN football team page
    """
    errors = validate_team_url(team_url)
    if errors:
        raise CredentialsError('; '.join(errors), Platform.ESPN.value)
    query = parse_qs(urlparse(team_url).query)
    return query['leagueId'][0], query['teamId'][0]


def team_url_period(team_url: str) -> tuple[Optional[int], Optional[int]]:
    """(season, week) from a team URL's ``seasonId``/``scoringPeriodId``, None where absent."""
    query = parse_qs(urlparse(team_url).query)
    season = to_int((query.get('seasonId') or [''])[0]) or None
    week = to_int((query.get('scoringPeriodId') or [''])[0]) or None
    return season, week


class ESPNAdapter(PlatformAdapter):
    """Adapter for ESPN fantasy football via authenticated page scraping."""

    platform = Platform.ESPN

    def __init__(
        self,
        client=None,
        config=None,
        session: Optional[ESPNSessionManager] = None,
        name_probe: Optional[NameProbe] = None,
    ):
        super().__init__(client=client, config=config)
        self.session = session or ESPNSessionManager(
            SessionStore(self.config.session_path), ttl_days=self.config.session_ttl_days
        )
        self.name_probe = name_probe or NameProbe(
            self.config.espn.probe_names, self.config.espn.probe_window
        )

    @property
    def relay_chain(self) -> ProxyRelayChain:
        return ProxyRelayChain(self.client, self.config.proxies, self.platform.value)

    # -- session -----------------------------------------------------------

    def is_authenticated(self) -> bool:
        return self.session.is_authenticated()

    def logout(self) -> None:
        self.session.logout()
        logger.info('Logged out of ESPN')

    async def authenticate(self, credentials: Mapping[str, Any]) -> PlatformConnection:
        """
        Log in with ``username``/``password``, or reuse the stored session.

        Raises:
            AuthError: If credentials are missing and no session is active,
                or if ESPN rejects the login
        """
        username = get_credential(credentials, 'username')
        password = get_credential(credentials, 'password')
        if username and password:
            return await self.login(username, password)
        if self.session.is_authenticated():
            return self.session.to_connection()
        raise AuthError('ESPN login requires username and password', self.platform.value)

    async def login(self, username: str, password: str) -> PlatformConnection:
        """
        Run the ESPN login flow.

        1. GET the login page through the relay chain
        2. Pull the anti-forgery token from its hidden input
        3. POST credentials and token through a header-forwarding relay,
           without following redirects
        4. On 200/302 store the response cookies as the session

        Raises:
            AuthError: If the login POST answers with any other status
            FetchError: If the relays cannot be reached
        """
        espn = self.config.espn
        page = await self.relay_chain.get(espn.login_url)

        form = {'username': username, 'password': password}
        token = extract_form_token(page.text, espn.token_input_names)
        if token is None:
            logger.warning('No anti-forgery token on the ESPN login page; submitting without one')
        else:
            form[token[0]] = token[1]

        headers = {'Cookie': page.cookies} if page.cookies else None
        response = await self.relay_chain.post(espn.login_url, data=form, headers=headers)
        if response.status_code not in LOGIN_SUCCESS_STATUSES:
            raise AuthError(
                f'ESPN login failed with HTTP {response.status_code}', self.platform.value
            )

        self.session.start(merge_cookies(page.cookies, response.cookies), username)
        return self.session.to_connection()

    # -- fetching ----------------------------------------------------------

    async def fetch_page(
        self,
        url: str,
        league_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> str:
        """
        Fetch an ESPN page with the session cookie.

        Raises:
            NotAuthenticatedError: If there is no active session (no request is made)
            AuthError: If the page returned is a login page
            FetchError: If every relay fails
        """
        record = self.session.require()
        response = await self.relay_chain.get(
            url, headers={'Cookie': record.cookie}, league_id=league_id, team_id=team_id
        )
        if looks_like_login_page(response.text):
            raise AuthError(
                f'ESPN served a login page instead of {url}; log in again', self.platform.value
            )
        return response.text

    async def _fetch_or_none(self, url: str, league_id: str, team_id: Optional[str] = None) -> Optional[str]:
        try:
            return await self.fetch_page(url, league_id=league_id, team_id=team_id)
        except FetchError as e:
            if not self.config.espn.placeholder_on_fetch_failure:
                raise
            logger.warning(f'ESPN fetch failed, falling back to placeholder data: {e}')
            return None

    def team_page_url(self, league_id: str, team_id: str, week: Optional[int] = None, season: Optional[int] = None) -> str:
        params = {'leagueId': league_id, 'teamId': team_id}
        if season:
            params['seasonId'] = season
        if week:
            params['scoringPeriodId'] = week
        return f'{self.config.espn.team_page_url}?{urlencode(params)}'

    # -- parsing -----------------------------------------------------------

    def parse_team_html(self, html: str, team_id: Optional[str] = None, week: Optional[int] = None) -> ParsedTeam:
        """Run the parse chain over a team page; always returns a team."""
        return run_parse_chain(
            html,
            default_strategies(self.name_probe),
            ParseContext(team_id=team_id, week=week),
        )

    def build_lineup(self, parsed: ParsedTeam, team_id: str, week: int, season: int) -> Lineup:
        return assemble_lineup(
            platform=self.platform,
            team_id=team_id,
            week=week,
            season=season,
            entries=parsed.entries(),
            data_source=parsed.data_source,
        )

    def build_team(
        self,
        parsed: ParsedTeam,
        league_id: str,
        team_id: str,
        week: int,
        season: int,
    ) -> FantasyTeam:
        return FantasyTeam(
            id=prefixed_team_id(self.platform, team_id),
            name=parsed.name or DEFAULT_ESPN_TEAM_NAME,
            platform=self.platform,
            league_id=str(league_id),
            league_name=f'ESPN League {league_id}',
            owner_id=self.config.owner_id,
            record=parsed.record or Record(),
            season=season,
            last_sync_date=utc_now(),
            current_lineup=self.build_lineup(parsed, team_id, week, season),
            data_source=parsed.data_source,
        )

    def create_team_from_html(
        self,
        html: str,
        league_id: str = 'manual',
        team_id: Optional[str] = None,
        week: Optional[int] = None,
        season: Optional[int] = None,
    ) -> FantasyTeam:
        """
        Build a team from pasted page HTML, without any network access.

        Without ``team_id`` the team embedded in the page is used, and its id
        when the page carries one.
        """
        week = week or self.config.current_week
        parsed = self.parse_team_html(html, team_id=team_id, week=week)
        team_id = team_id or parsed.team_id or '1'
        return self.build_team(parsed, league_id, team_id, week, self.season_or_default(season))

    # -- adapter operations ------------------------------------------------

    async def get_team_from_url(
        self,
        team_url: str,
        week: Optional[int] = None,
        season: Optional[int] = None,
    ) -> FantasyTeam:
        """
        Fetch and parse the team behind an ESPN team URL.

        Raises:
            NotAuthenticatedError: If there is no active session
            CredentialsError: If the URL is not an ESPN team page
            AuthError: If ESPN serves a login page
        """
        self.session.require()
        league_id, team_id = parse_team_url(team_url)
        url_season, url_week = team_url_period(team_url)
        week = week or url_week or self.config.current_week
        season = self.season_or_default(season or url_season)

        html = await self._fetch_or_none(team_url, league_id, team_id)
        parsed = placeholder_team() if html is None else self.parse_team_html(html, team_id, week)
        team = self.build_team(parsed, league_id, team_id, week, season)
        logger.info(f'Loaded ESPN team {team.name} ({team.data_source.value})')
        return team

    async def get_league(self, league_id: str, season: Optional[int] = None) -> LeagueSnapshot:
        season = self.season_or_default(season)
        url = f'{self.config.espn.league_page_url}?{urlencode({"leagueId": league_id, "seasonId": season})}'
        html = await self._fetch_or_none(url, league_id)

        if html is not None:
            for state in extract_state_blobs(html):
                teams = find_league_teams(state)
                if not teams:
                    continue
                return LeagueSnapshot(
                    league_id=str(league_id),
                    name=find_league_name(state) or f'ESPN League {league_id}',
                    season=season,
                    teams=[
                        TeamSnapshot(
                            team_id=str(team['id']),
                            name=espn_team_name(team) or f'Team {team["id"]}',
                            owners=[str(o) for o in team.get('owners') or []],
                            record=espn_team_record(team) or Record(),
                        )
                        for team in teams
                    ],
                )
            logger.warning(f'No teams found on ESPN league page {league_id}; using placeholder league')

        placeholder = placeholder_team()
        return LeagueSnapshot(
            league_id=str(league_id),
            name=f'ESPN League {league_id}',
            season=season,
            teams=[
                TeamSnapshot(
                    team_id='1',
                    name=placeholder.name,
                    record=placeholder.record,
                    roster=[p.to_player() for p in placeholder.players],
                )
            ],
            data_source=DataSource.PLACEHOLDER,
        )

    async def get_team_lineup(
        self,
        league_id: str,
        team_id: str,
        week: int,
        season: Optional[int] = None,
    ) -> Lineup:
        season = self.season_or_default(season)
        url = self.team_page_url(league_id, team_id, week, season)
        html = await self._fetch_or_none(url, league_id, team_id)
        parsed = placeholder_team() if html is None else self.parse_team_html(html, team_id, week)
        return self.build_lineup(parsed, str(team_id), week, season)

    async def update_lineup(
        self,
        league_id: str,
        team_id: str,
        week: int,
        partial_lineup: Mapping[str, Any],
    ) -> bool:
        """ESPN lineup writes are not supported; always False."""
        logger.info(f'Lineup updates are not supported for ESPN (league {league_id}, team {team_id})')
        return False
