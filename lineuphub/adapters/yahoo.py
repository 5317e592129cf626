"""
Yahoo Fantasy adapter.

Reads go through the Fantasy v2 API with ``format=json``; Yahoo's JSON is a
direct rendering of its XML, so every resource arrives as a list of
single-key fragments that ``merge_fragments`` folds back into one dict.
Lineup writes are the one real write path in lineuphub: a roster XML
document PUT to the team's roster resource.
"""

import base64
import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, Mapping, Optional
from urllib.parse import urlencode

from ..constants import YAHOO_GAME_CODE, YAHOO_SLOT_REVERSE_MAP
from ..errors import AuthError, FetchError, LineupHubError, NotAuthenticatedError, NotFoundError
from ..http_client import send_request
from ..models import (
    DataSource,
    LeagueSnapshot,
    Lineup,
    Platform,
    PlatformConnection,
    Player,
    Record,
    TeamSnapshot,
)
from ..normalize import assemble_lineup, map_injury_status, map_position, map_slot
from ..utils import to_int, to_points
from ..validators import get_credential
from .base import PlatformAdapter

logger = logging.getLogger('lineuphub.adapters.yahoo')


def _basic_auth_header(client_id: str, client_secret: str) -> str:
    raw = f'{client_id}:{client_secret}'.encode('utf-8')
    return f'Basic {base64.b64encode(raw).decode("utf-8")}'


def merge_fragments(value: Any) -> dict:
    """Fold a Yahoo fragment list (possibly nested) into one dict."""
    merged: dict = {}
    if isinstance(value, dict):
        merged.update(value)
    elif isinstance(value, list):
        for item in value:
            merged.update(merge_fragments(item))
    return merged


def indexed_items(container: Any, key: str) -> Iterator[Any]:
    """Yield ``container['0'][key]``, ``container['1'][key]``, ... skipping ``count``."""
    if not isinstance(container, dict):
        return
    for index in sorted((k for k in container if k.isdigit()), key=int):
        item = container[index]
        if isinstance(item, dict) and key in item:
            yield item[key]


def league_key(league_id: str) -> str:
    league_id = str(league_id)
    return league_id if '.l.' in league_id else f'{YAHOO_GAME_CODE}.l.{league_id}'


def team_key(league_id: str, team_id: str) -> str:
    team_id = str(team_id)
    return team_id if '.t.' in team_id else f'{league_key(league_id)}.t.{team_id}'


def player_key(player_id: str) -> str:
    player_id = str(player_id)
    if player_id.startswith('yahoo-'):
        player_id = player_id[len('yahoo-'):]
    return player_id if '.p.' in player_id else f'{YAHOO_GAME_CODE}.p.{player_id}'


class YahooAdapter(PlatformAdapter):
    """Adapter for the Yahoo Fantasy Sports API (OAuth bearer token)."""

    platform = Platform.YAHOO

    def __init__(self, client=None, config=None, access_token: Optional[str] = None):
        super().__init__(client=client, config=config)
        self.access_token = access_token

    @property
    def base_url(self) -> str:
        return self.config.yahoo.base_url.rstrip('/')

    def get_auth_url(self, client_id: str, redirect_uri: str, state: Optional[str] = None) -> str:
        """URL that starts the authorization-code flow in a browser."""
        params = {
            'client_id': client_id,
            'redirect_uri': redirect_uri,
            'response_type': 'code',
            'scope': self.config.yahoo.scope,
            'language': 'en-us',
        }
        if state:
            params['state'] = state
        return f'{self.config.yahoo.auth_url}?{urlencode(params)}'

    async def exchange_code(
        self,
        *,
        client_id: str,
        client_secret: str,
        code: str,
        redirect_uri: str,
    ) -> PlatformConnection:
        """
        Exchange an authorization code for a bearer token.

        Raises:
            AuthError: If Yahoo rejects the code
            FetchError: If the token endpoint cannot be reached
        """
        response = await send_request(
            self.client,
            'POST',
            self.config.yahoo.token_url,
            platform=self.platform.value,
            raise_for_status=False,
            headers={
                'Authorization': _basic_auth_header(client_id, client_secret),
                'Content-Type': 'application/x-www-form-urlencoded',
            },
            data={
                'grant_type': 'authorization_code',
                'code': code,
                'redirect_uri': redirect_uri,
            },
        )
        if response.is_error:
            raise AuthError(
                f'Yahoo token exchange failed with HTTP {response.status_code}', self.platform.value
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError('Yahoo token endpoint returned malformed JSON', self.platform.value) from e

        self.access_token = payload.get('access_token')
        if not self.access_token:
            raise AuthError('Yahoo token response has no access_token', self.platform.value)

        expires_in = to_int(payload.get('expires_in'), 3600)
        logger.info('Exchanged Yahoo authorization code for an access token')
        return PlatformConnection(
            platform=self.platform,
            is_connected=True,
            access_token=self.access_token,
            refresh_token=payload.get('refresh_token'),
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )

    async def authenticate(self, credentials: Mapping[str, Any]) -> PlatformConnection:
        """
        Accept a bearer token, or exchange an authorization code for one.

        Credentials:
            accessToken: Bearer token (used as-is)
            code, clientId, clientSecret, redirectUri: Authorization-code exchange
        """
        code = get_credential(credentials, 'code')
        if code:
            missing = [
                key for key in ('clientId', 'clientSecret', 'redirectUri')
                if get_credential(credentials, key) is None
            ]
            if missing:
                raise AuthError(
                    f'Yahoo code exchange requires {", ".join(missing)}', self.platform.value
                )
            return await self.exchange_code(
                client_id=get_credential(credentials, 'clientId'),
                client_secret=get_credential(credentials, 'clientSecret'),
                code=code,
                redirect_uri=get_credential(credentials, 'redirectUri'),
            )

        token = get_credential(credentials, 'accessToken')
        if not token:
            raise AuthError('Yahoo requires an access token (accessToken)', self.platform.value)
        self.access_token = token
        return PlatformConnection(
            platform=self.platform,
            is_connected=True,
            access_token=token,
            refresh_token=get_credential(credentials, 'refreshToken'),
        )

    def _auth_headers(self) -> dict[str, str]:
        if not self.access_token:
            raise NotAuthenticatedError('Not authenticated with Yahoo', self.platform.value)
        return {'Authorization': f'Bearer {self.access_token}'}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        league_id: Optional[str] = None,
        team_id: Optional[str] = None,
        **kwargs: Any,
    ):
        headers = {**self._auth_headers(), **kwargs.pop('headers', {})}
        try:
            return await send_request(
                self.client,
                method,
                f'{self.base_url}{path}',
                platform=self.platform.value,
                league_id=league_id,
                team_id=team_id,
                headers=headers,
                **kwargs,
            )
        except FetchError as e:
            if e.status_code == 401:
                raise AuthError('Yahoo rejected the access token', self.platform.value) from e
            raise

    async def _get_content(self, path: str, league_id: str, team_id: Optional[str] = None) -> dict:
        response = await self._request(
            'GET', path, league_id=league_id, team_id=team_id, params={'format': 'json'}
        )
        try:
            content = response.json().get('fantasy_content')
        except (ValueError, AttributeError) as e:
            raise FetchError(
                f'GET {path} returned malformed JSON',
                self.platform.value,
                league_id=league_id,
                team_id=team_id,
            ) from e
        if not isinstance(content, dict):
            raise NotFoundError(f'Yahoo returned no content for {path}', self.platform.value)
        return content

    async def get_league(self, league_id: str, season: Optional[int] = None) -> LeagueSnapshot:
        content = await self._get_content(f'/league/{league_key(league_id)}/standings', league_id)
        league_parts = content.get('league') or []
        meta = merge_fragments(league_parts[0] if league_parts else {})
        standings = merge_fragments(league_parts[1:]).get('standings') or []
        teams_container = merge_fragments(standings).get('teams') or {}

        teams = []
        for team in indexed_items(teams_container, 'team'):
            team_meta = merge_fragments(team[0] if team else [])
            extras = merge_fragments(team[1:])
            totals = (extras.get('team_standings') or {}).get('outcome_totals') or {}
            owners = [
                manager.get('manager', {}).get('nickname')
                for manager in team_meta.get('managers') or []
                if isinstance(manager, dict) and manager.get('manager', {}).get('nickname')
            ]
            teams.append(
                TeamSnapshot(
                    team_id=str(team_meta.get('team_id')),
                    name=team_meta.get('name') or f'Team {team_meta.get("team_id")}',
                    owners=owners,
                    record=Record(
                        wins=to_int(totals.get('wins')),
                        losses=to_int(totals.get('losses')),
                        ties=to_int(totals.get('ties')),
                    ),
                )
            )

        return LeagueSnapshot(
            league_id=str(league_id),
            name=meta.get('name') or f'Yahoo League {league_id}',
            season=to_int(meta.get('season'), self.season_or_default(season)),
            teams=teams,
        )

    async def get_team_lineup(
        self,
        league_id: str,
        team_id: str,
        week: int,
        season: Optional[int] = None,
    ) -> Lineup:
        key = team_key(league_id, team_id)
        content = await self._get_content(f'/team/{key}/roster;week={week}', league_id, team_id)
        team_parts = content.get('team') or []
        roster = merge_fragments(team_parts[1:]).get('roster') or {}
        players_container = merge_fragments(list(indexed_items(roster, 'players')))

        entries = []
        for raw_player in indexed_items(players_container, 'player'):
            player = self._player(raw_player)
            selected = merge_fragments(merge_fragments(raw_player[1:]).get('selected_position'))
            entries.append((map_slot(self.platform, selected.get('position', '')), player))

        return assemble_lineup(
            platform=self.platform,
            team_id=str(team_id),
            week=week,
            season=self.season_or_default(season),
            entries=entries,
            data_source=DataSource.LIVE,
        )

    def _player(self, raw_player: list) -> Player:
        info = merge_fragments(raw_player[0] if raw_player else [])
        extras = merge_fragments(raw_player[1:])
        name = (info.get('name') or {}).get('full') or f'Player {info.get("player_id")}'
        position = info.get('primary_position') or str(info.get('display_position') or '').split(',')[0]
        return Player(
            id=f'yahoo-{info.get("player_id")}',
            name=name,
            position=map_position(self.platform, position),
            team=str(info.get('editorial_team_abbr') or '').upper(),
            injury_status=map_injury_status(self.platform, info.get('status')),
            injury_details=info.get('injury_note') or None,
            projected_points=to_points((extras.get('player_projected_points') or {}).get('total')),
            actual_points=to_points((extras.get('player_points') or {}).get('total')),
        )

    async def update_lineup(
        self,
        league_id: str,
        team_id: str,
        week: int,
        partial_lineup: Mapping[str, Any],
    ) -> bool:
        """
        PUT the given slot assignments to the team's roster.

        Returns:
            True if Yahoo accepted the roster, False on any failure
        """
        try:
            body = build_roster_xml(week, partial_lineup)
            await self._request(
                'PUT',
                f'/team/{team_key(league_id, team_id)}/roster',
                league_id=league_id,
                team_id=team_id,
                content=body,
                headers={'Content-Type': 'application/xml'},
            )
        except (LineupHubError, ValueError) as e:
            logger.warning(f'Yahoo lineup update failed for team {team_id}: {e}')
            return False
        logger.info(f'Updated Yahoo lineup for team {team_id}, week {week}')
        return True


def _yahoo_position(slot: str) -> str:
    base = re.sub(r'\d+$', '', slot.upper())
    position = YAHOO_SLOT_REVERSE_MAP.get(base)
    if position is None:
        raise ValueError(f'No Yahoo roster position for slot {slot}')
    return position


def _player_id(value: Any) -> str:
    return value.id if isinstance(value, Player) else str(value)


def build_roster_xml(week: int, partial_lineup: Mapping[str, Any]) -> bytes:
    """
    Render a roster PUT document.

    ``partial_lineup`` maps slot names (``QB``, ``RB2``, ``FLEX``) to a player
    id or Player; ``BENCH`` maps to a list of them.
    """
    root = ET.Element('fantasy_content')
    roster = ET.SubElement(root, 'roster')
    ET.SubElement(roster, 'coverage_type').text = 'week'
    ET.SubElement(roster, 'week').text = str(week)
    players = ET.SubElement(roster, 'players')

    for slot, value in partial_lineup.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        position = _yahoo_position(slot)
        for item in values:
            player = ET.SubElement(players, 'player')
            ET.SubElement(player, 'player_key').text = player_key(_player_id(item))
            ET.SubElement(player, 'position').text = position

    return ET.tostring(root, encoding='utf-8', xml_declaration=True)
