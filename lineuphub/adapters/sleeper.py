"""
Sleeper adapter.

Sleeper has a public read-only REST API with no authentication. A lineup is
assembled from the league's ``roster_positions`` (slot order), the week's
matchup entry (starters and points) and the shared NFL player table.
"""

import logging
from typing import Any, Mapping, Optional

from ..constants import SLEEPER_DEFAULT_ROSTER_POSITIONS, SLEEPER_EMPTY_SLOT
from ..errors import NotFoundError
from ..http_client import fetch_json
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
from .base import PlatformAdapter

logger = logging.getLogger('lineuphub.adapters.sleeper')


class SleeperAdapter(PlatformAdapter):
    """Adapter for the Sleeper public API."""

    platform = Platform.SLEEPER

    def __init__(self, client=None, config=None):
        super().__init__(client=client, config=config)
        self._players: Optional[dict[str, dict]] = None

    @property
    def base_url(self) -> str:
        return self.config.sleeper.base_url.rstrip('/')

    async def _get(self, path: str, league_id: Optional[str] = None, team_id: Optional[str] = None) -> Any:
        return await fetch_json(
            self.client,
            f'{self.base_url}{path}',
            platform=self.platform.value,
            league_id=league_id,
            team_id=team_id,
        )

    async def authenticate(self, credentials: Mapping[str, Any]) -> PlatformConnection:
        """Sleeper needs no authentication; always connected."""
        return PlatformConnection(platform=self.platform, is_connected=True)

    async def get_players(self) -> dict[str, dict]:
        """The NFL player table, fetched once per adapter."""
        if self._players is None:
            players = await self._get('/players/nfl')
            self._players = players if isinstance(players, dict) else {}
            logger.debug(f'Loaded {len(self._players)} Sleeper players')
        return self._players

    async def get_user(self, username: str) -> dict:
        """Look up a Sleeper user by username or user id."""
        user = await self._get(f'/user/{username}')
        if not user:
            raise NotFoundError(f'Sleeper user {username} not found', self.platform.value)
        return user

    async def get_user_leagues(self, user_id: str, season: Optional[int] = None) -> list[LeagueSnapshot]:
        """List a user's NFL leagues for a season (teams not populated)."""
        season = self.season_or_default(season)
        leagues = await self._get(f'/user/{user_id}/leagues/nfl/{season}') or []
        return [
            LeagueSnapshot(
                league_id=str(league.get('league_id')),
                name=league.get('name') or f'Sleeper League {league.get("league_id")}',
                season=to_int(league.get('season'), season),
            )
            for league in leagues
            if isinstance(league, dict)
        ]

    async def get_league(self, league_id: str, season: Optional[int] = None) -> LeagueSnapshot:
        league = await self._get(f'/league/{league_id}', league_id=league_id)
        if not league:
            raise NotFoundError(f'Sleeper league {league_id} not found', self.platform.value)
        rosters = await self._get(f'/league/{league_id}/rosters', league_id=league_id) or []
        users = await self._get(f'/league/{league_id}/users', league_id=league_id) or []
        players = await self.get_players()

        users_by_id = {str(u.get('user_id')): u for u in users if isinstance(u, dict)}
        teams = [
            self._team_snapshot(roster, users_by_id.get(str(roster.get('owner_id'))), players)
            for roster in rosters
            if isinstance(roster, dict)
        ]
        return LeagueSnapshot(
            league_id=str(league_id),
            name=league.get('name') or f'Sleeper League {league_id}',
            season=to_int(league.get('season'), self.season_or_default(season)),
            teams=teams,
        )

    async def get_team_lineup(
        self,
        league_id: str,
        team_id: str,
        week: int,
        season: Optional[int] = None,
    ) -> Lineup:
        """
        Build a team's lineup for a week.

        Starters come from the week's matchup entry when there is one and
        from the roster otherwise. Sleeper publishes no projections, so
        ``projected_points`` stays None and the projected total is 0.
        """
        league = await self._get(f'/league/{league_id}', league_id=league_id, team_id=team_id)
        if not league:
            raise NotFoundError(f'Sleeper league {league_id} not found', self.platform.value)
        rosters = await self._get(f'/league/{league_id}/rosters', league_id=league_id, team_id=team_id) or []
        roster = self._find_roster(rosters, team_id)
        if roster is None:
            raise NotFoundError(
                f'Team {team_id} not found in Sleeper league {league_id}', self.platform.value
            )

        matchups = await self._get(
            f'/league/{league_id}/matchups/{week}', league_id=league_id, team_id=team_id
        ) or []
        matchup = self._find_roster(matchups, team_id)
        players = await self.get_players()

        source = matchup or roster
        starters = [str(pid) for pid in source.get('starters') or []]
        points = self._points_by_player(matchup, starters)
        roster_positions = league.get('roster_positions') or SLEEPER_DEFAULT_ROSTER_POSITIONS
        starting_slots = [p for p in roster_positions if map_slot(self.platform, p) != 'BENCH']

        entries = []
        for index, player_id in enumerate(starters):
            if player_id == SLEEPER_EMPTY_SLOT:
                continue
            raw_slot = starting_slots[index] if index < len(starting_slots) else None
            base = map_slot(self.platform, raw_slot) if raw_slot else None
            entries.append((base, self._player(player_id, players, points.get(player_id))))

        starter_set = set(starters)
        all_ids = [str(pid) for pid in (source.get('players') or roster.get('players') or [])]
        for player_id in all_ids:
            if player_id not in starter_set:
                entries.append(('BENCH', self._player(player_id, players, points.get(player_id))))

        season = to_int(league.get('season'), self.season_or_default(season))
        return assemble_lineup(
            platform=self.platform,
            team_id=str(team_id),
            week=week,
            season=season,
            entries=entries,
            data_source=DataSource.LIVE,
        )

    async def update_lineup(
        self,
        league_id: str,
        team_id: str,
        week: int,
        partial_lineup: Mapping[str, Any],
    ) -> bool:
        """Sleeper's API is read-only; lineup writes are not supported."""
        logger.info(f'Lineup updates are not supported for Sleeper (league {league_id}, team {team_id})')
        return False

    @staticmethod
    def _find_roster(items: list, team_id: str) -> Optional[dict]:
        for item in items:
            if isinstance(item, dict) and str(item.get('roster_id')) == str(team_id):
                return item
        return None

    @staticmethod
    def _points_by_player(matchup: Optional[dict], starters: list[str]) -> dict[str, Any]:
        if not matchup:
            return {}
        points = dict(matchup.get('players_points') or {})
        for player_id, value in zip(starters, matchup.get('starters_points') or []):
            points[player_id] = value
        return points

    def _player(self, player_id: str, players: dict[str, dict], points: Any = None) -> Player:
        info = players.get(player_id) or {}
        name = info.get('full_name') or f"{info.get('first_name', '')} {info.get('last_name', '')}".strip()
        return Player(
            id=f'sleeper-{player_id}',
            name=name or f'Player {player_id}',
            position=map_position(self.platform, info.get('position') or ''),
            team=info.get('team') or '',
            injury_status=map_injury_status(self.platform, info.get('injury_status')),
            injury_details=info.get('injury_body_part') or None,
            actual_points=to_points(points),
        )

    def _team_snapshot(self, roster: dict, user: Optional[dict], players: dict[str, dict]) -> TeamSnapshot:
        settings = roster.get('settings') or {}
        user = user or {}
        metadata = user.get('metadata') or {}
        owner = user.get('display_name') or user.get('username')
        name = metadata.get('team_name') or owner or f'Team {roster.get("roster_id")}'
        return TeamSnapshot(
            team_id=str(roster.get('roster_id')),
            name=name,
            owners=[owner] if owner else [],
            record=Record(
                wins=to_int(settings.get('wins')),
                losses=to_int(settings.get('losses')),
                ties=to_int(settings.get('ties')),
            ),
            roster=[self._player(str(pid), players) for pid in roster.get('players') or []],
        )
