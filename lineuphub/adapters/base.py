"""
Abstract base class for fantasy platform adapters.

Every platform (Sleeper, Yahoo, ESPN) exposes the same async operation set
and produces the canonical models in ``lineuphub.models``.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

import httpx

from ..config import get_config
from ..http_client import create_http_client
from ..models import Lineup, LeagueSnapshot, Platform, PlatformConnection
from ..schemas import AppConfig


class PlatformAdapter(ABC):
    """Abstract base class for fantasy platform adapters."""

    platform: Platform

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        config: Optional[AppConfig] = None,
    ):
        self.config = config or get_config()
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """The HTTP client, created on first use unless one was injected."""
        if self._client is None:
            self._client = create_http_client(self.config.request_timeout_seconds)
        return self._client

    def season_or_default(self, season: Optional[int]) -> int:
        return season or self.config.current_season

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    @abstractmethod
    async def authenticate(self, credentials: Mapping[str, Any]) -> PlatformConnection:
        """
        Establish platform access.

        Args:
            credentials: Open key/value credential map

        Returns:
            PlatformConnection describing the session

        Raises:
            AuthError: If the platform rejects the credentials
        """

    @abstractmethod
    async def get_league(self, league_id: str, season: Optional[int] = None) -> LeagueSnapshot:
        """
        Fetch league metadata and its teams.

        Raises:
            FetchError: If the upstream request fails
        """

    @abstractmethod
    async def get_team_lineup(
        self,
        league_id: str,
        team_id: str,
        week: int,
        season: Optional[int] = None,
    ) -> Lineup:
        """
        Fetch one team's lineup for one week.

        Raises:
            FetchError: If the upstream request fails
            NotFoundError: If the team is absent from the league
        """

    @abstractmethod
    async def update_lineup(
        self,
        league_id: str,
        team_id: str,
        week: int,
        partial_lineup: Mapping[str, Any],
    ) -> bool:
        """
        Best-effort lineup write. Returns False instead of raising.

        Args:
            partial_lineup: Slot name (or 'BENCH') -> player id or Player
                (a list of them for the bench)
        """
