"""Tests for the Sleeper adapter against a fake Sleeper API."""

import asyncio

import httpx
import pytest

from lineuphub.adapters import SleeperAdapter
from lineuphub.errors import FetchError, NotFoundError
from lineuphub.models import InjuryStatus, Position


@pytest.fixture
def adapter(app_config, make_client, sleeper_api):
    handler, _ = sleeper_api
    return SleeperAdapter(client=make_client(handler), config=app_config)


class TestSleeperLineup:
    """Tests for lineup assembly."""

    def test_starting_slots(self, adapter):
        """Test that starters fill the league's roster positions in order."""
        lineup = asyncio.run(adapter.get_team_lineup('123456789', '1', 3))

        assert lineup.id == 'sleeper-1-3'
        assert lineup.season == 2025
        assert list(lineup.starters) == ['QB', 'RB1', 'RB2', 'WR1', 'TE', 'FLEX', 'K', 'DEF']
        assert lineup.starters['QB'].name == 'Patrick Mahomes'
        assert lineup.starters['FLEX'].name == 'Garrett Wilson'
        assert lineup.starters['DEF'].name == 'Kansas City Chiefs'

    def test_points_and_totals(self, adapter):
        """Test matchup points and starter totals."""
        lineup = asyncio.run(adapter.get_team_lineup('123456789', '1', 3))

        assert lineup.starters['RB2'].actual_points == 12.25
        assert lineup.total_actual_points == pytest.approx(109.25)
        # Sleeper has no projections
        assert lineup.total_projected_points == 0.0
        assert all(p.projected_points is None for p in lineup.starters.values())

    def test_bench(self, adapter):
        """Test that bench players are the roster minus the starters."""
        lineup = asyncio.run(adapter.get_team_lineup('123456789', '1', 3))

        assert [p.id for p in lineup.bench] == ['sleeper-1234', 'sleeper-9999']
        assert lineup.bench[0].actual_points == 3.5
        # Unmapped upstream position
        assert lineup.bench[1].position == Position.FLEX

    def test_player_fields(self, adapter):
        """Test player id, pro team and injury mapping."""
        lineup = asyncio.run(adapter.get_team_lineup('123456789', '1', 3))

        cmc = lineup.starters['RB1']
        assert cmc.id == 'sleeper-4034'
        assert cmc.team == 'SF'
        assert cmc.injury_status == InjuryStatus.QUESTIONABLE
        assert cmc.injury_details == 'Achilles'
        assert lineup.starters['K'].injury_status == InjuryStatus.OUT

    def test_falls_back_to_roster_without_matchup(self, app_config, make_client, sleeper_api):
        """Test that starters come from the roster when the week has no matchup."""
        handler, _ = sleeper_api

        def no_matchups(request):
            if '/matchups/' in request.url.path:
                return httpx.Response(200, json=[])
            return handler(request)

        adapter = SleeperAdapter(client=make_client(no_matchups), config=app_config)
        lineup = asyncio.run(adapter.get_team_lineup('123456789', '1', 3))
        assert len(lineup.starters) == 8
        assert len(lineup.bench) == 2
        assert lineup.total_actual_points == 0.0

    def test_repeat_fetch_is_identical(self, adapter):
        """Test that fetching the same week twice gives the same lineup."""
        first = asyncio.run(adapter.get_team_lineup('123456789', '1', 3))
        second = asyncio.run(adapter.get_team_lineup('123456789', '1', 3))
        assert first.model_dump(exclude={'last_updated'}) == second.model_dump(exclude={'last_updated'})

    def test_players_fetched_once(self, app_config, make_client, sleeper_api):
        """Test that the player database is downloaded once per adapter."""
        handler, requests = sleeper_api
        adapter = SleeperAdapter(client=make_client(handler), config=app_config)

        asyncio.run(adapter.get_team_lineup('123456789', '1', 3))
        asyncio.run(adapter.get_league('123456789'))
        assert requests.count('/v1/players/nfl') == 1


class TestSleeperErrors:
    """Tests for error reporting."""

    def test_unknown_team(self, adapter):
        """Test that an unknown roster id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            asyncio.run(adapter.get_team_lineup('123456789', '7', 3))

    def test_server_error_carries_context(self, app_config, make_client):
        """Test that a 500 raises FetchError with league and team context."""
        adapter = SleeperAdapter(
            client=make_client(lambda request: httpx.Response(500)), config=app_config
        )
        with pytest.raises(FetchError) as exc_info:
            asyncio.run(adapter.get_team_lineup('123456789', '1', 3))

        error = exc_info.value
        assert error.status_code == 500
        assert error.platform == 'Sleeper'
        assert error.league_id == '123456789'
        assert error.team_id == '1'
        assert 'league 123456789, team 1' in str(error)

    def test_timeout(self, app_config, make_client):
        """Test that a timeout raises FetchError flagged as timed out."""
        def handler(request):
            raise httpx.ReadTimeout('slow', request=request)

        adapter = SleeperAdapter(client=make_client(handler), config=app_config)
        with pytest.raises(FetchError) as exc_info:
            asyncio.run(adapter.get_league('123456789'))
        assert exc_info.value.timed_out is True

    def test_malformed_json(self, app_config, make_client):
        """Test that a non-JSON body raises FetchError."""
        adapter = SleeperAdapter(
            client=make_client(lambda request: httpx.Response(200, text='<html>')),
            config=app_config,
        )
        with pytest.raises(FetchError, match='malformed JSON'):
            asyncio.run(adapter.get_league('123456789'))


class TestSleeperLeague:
    """Tests for league and user lookups."""

    def test_get_league(self, adapter):
        """Test league name, season and team snapshots."""
        league = asyncio.run(adapter.get_league('123456789'))

        assert league.name == 'Dynasty Bros'
        assert league.season == 2025
        assert [t.team_id for t in league.teams] == ['1', '2']

        alice = league.find_team('1')
        assert alice.name == 'Alice in Chains'
        assert alice.owners == ['alice']
        assert (alice.record.wins, alice.record.losses) == (5, 2)
        assert len(alice.roster) == 10

        # No custom team name: owner display name
        assert league.find_team('2').name == 'bob'

    def test_user_leagues(self, adapter):
        """Test looking up a user and their leagues."""
        user = asyncio.run(adapter.get_user('alice'))
        leagues = asyncio.run(adapter.get_user_leagues(user['user_id']))
        assert [(league.league_id, league.name) for league in leagues] == [('123456789', 'Dynasty Bros')]

    def test_authenticate_always_connects(self, adapter):
        """Test that Sleeper needs no credentials to connect."""
        connection = asyncio.run(adapter.authenticate({}))
        assert connection.is_connected

    def test_update_not_supported(self, adapter, sleeper_api):
        """Test that lineup updates return False without any request."""
        _, requests = sleeper_api
        assert asyncio.run(adapter.update_lineup('123456789', '1', 3, {'QB': '4046'})) is False
        assert requests == []
