"""Tests for the Yahoo adapter: OAuth, roster parsing and roster writes."""

import asyncio
import base64
import xml.etree.ElementTree as ET
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from lineuphub.adapters import YahooAdapter
from lineuphub.adapters.yahoo import build_roster_xml, league_key, merge_fragments, team_key
from lineuphub.errors import AuthError, NotAuthenticatedError
from lineuphub.models import InjuryStatus, Player, Position


def roster_player(player_id, name, position, team, slot, points=None, projected=None, **info):
    """One entry of a Yahoo roster ``players`` container."""
    meta = [
        {'player_key': f'nfl.p.{player_id}'},
        {'player_id': player_id},
        {'name': {'full': name}},
        {'editorial_team_abbr': team},
        {'display_position': position},
        {'primary_position': position},
    ] + [{key: value} for key, value in info.items()]
    extras = [{'selected_position': [{'coverage_type': 'week'}, {'position': slot}]}]
    if points is not None:
        extras.append({'player_points': {'coverage_type': 'week', 'total': points}})
    if projected is not None:
        extras.append({'player_projected_points': {'coverage_type': 'week', 'total': projected}})
    return {'player': [meta] + extras}


ROSTER_PLAYERS = [
    roster_player('30123', 'Patrick Mahomes', 'QB', 'kc', 'QB', '25.10', '22.40'),
    roster_player('32700', 'Bijan Robinson', 'RB', 'Atl', 'RB', '12.00', '15.00',
                  status='Q', injury_note='Hamstring'),
    roster_player('33500', 'Garrett Wilson', 'WR', 'NYJ', 'W/R/T', '11.00', '13.50'),
    roster_player('34000', 'Jaylen Warren', 'RB', 'PIT', 'BN', '3.00', '6.50'),
]

ROSTER_RESPONSE = {
    'fantasy_content': {
        'team': [
            [{'team_key': 'nfl.l.54321.t.2'}, {'team_id': '2'}, {'name': 'Yahoo Squad'}],
            {
                'roster': {
                    'coverage_type': 'week',
                    'week': '3',
                    '0': {
                        'players': {
                            **{str(i): p for i, p in enumerate(ROSTER_PLAYERS)},
                            'count': len(ROSTER_PLAYERS),
                        },
                    },
                },
            },
        ],
    },
}

STANDINGS_RESPONSE = {
    'fantasy_content': {
        'league': [
            {'league_key': 'nfl.l.54321', 'league_id': '54321', 'name': 'Work League', 'season': '2025'},
            {
                'standings': [
                    {
                        'teams': {
                            '0': {
                                'team': [
                                    [{'team_key': 'nfl.l.54321.t.1'}, {'team_id': '1'}, {'name': 'Alpha'},
                                     {'managers': [{'manager': {'nickname': 'ann'}}]}],
                                    {'team_standings': {'rank': 1, 'outcome_totals': {
                                        'wins': '5', 'losses': '2', 'ties': 0}}},
                                ],
                            },
                            '1': {
                                'team': [
                                    [{'team_key': 'nfl.l.54321.t.2'}, {'team_id': '2'}, {'name': 'Yahoo Squad'}],
                                    {'team_standings': {'rank': 2, 'outcome_totals': {
                                        'wins': '4', 'losses': '3', 'ties': '0'}}},
                                ],
                            },
                            'count': 2,
                        },
                    },
                ],
            },
        ],
    },
}


@pytest.fixture
def yahoo_api():
    """Fake Yahoo Fantasy API; returns (handler, requests)."""
    requests = []

    def handler(request):
        requests.append(request)
        if request.headers.get('authorization') != 'Bearer tok':
            return httpx.Response(401)
        if request.method == 'GET' and '/roster' in request.url.path:
            return httpx.Response(200, json=ROSTER_RESPONSE)
        if request.method == 'GET' and request.url.path.endswith('/standings'):
            return httpx.Response(200, json=STANDINGS_RESPONSE)
        if request.method == 'PUT':
            return httpx.Response(200, text='<fantasy_content/>')
        return httpx.Response(404)

    return handler, requests


@pytest.fixture
def adapter(app_config, make_client, yahoo_api):
    handler, _ = yahoo_api
    return YahooAdapter(client=make_client(handler), config=app_config, access_token='tok')


class TestKeys:
    """Tests for Yahoo resource keys."""

    def test_league_and_team_keys(self):
        """Test league and team key construction."""
        assert league_key('54321') == 'nfl.l.54321'
        assert league_key('449.l.54321') == '449.l.54321'
        assert team_key('54321', '2') == 'nfl.l.54321.t.2'

    def test_merge_fragments(self):
        """Test merging Yahoo's list-of-fragments objects."""
        assert merge_fragments([{'a': 1}, [{'b': 2}], 'junk']) == {'a': 1, 'b': 2}


class TestYahooAuth:
    """Tests for OAuth handling."""

    def test_auth_url(self, adapter):
        """Test the authorization URL parameters."""
        url = urlparse(adapter.get_auth_url('cid', 'https://app.test/callback', state='xyz'))
        params = parse_qs(url.query)
        assert url.netloc == 'api.login.yahoo.com'
        assert params['client_id'] == ['cid']
        assert params['redirect_uri'] == ['https://app.test/callback']
        assert params['response_type'] == ['code']
        assert params['state'] == ['xyz']
        assert params['scope'] == ['fspt-w']

    def test_missing_token_makes_no_request(self, app_config, make_client, yahoo_api):
        """Test that authenticating without a token fails before any request."""
        handler, requests = yahoo_api
        adapter = YahooAdapter(client=make_client(handler), config=app_config)
        with pytest.raises(AuthError):
            asyncio.run(adapter.authenticate({'leagueId': '54321', 'teamId': '2'}))
        assert requests == []

    def test_token_accepted(self, app_config, make_client, yahoo_api):
        """Test that a supplied access token connects."""
        handler, _ = yahoo_api
        adapter = YahooAdapter(client=make_client(handler), config=app_config)
        connection = asyncio.run(adapter.authenticate({'accessToken': 'tok'}))
        assert connection.is_connected
        assert adapter.access_token == 'tok'

    def test_code_exchange(self, app_config, make_client):
        """Test exchanging an authorization code with Basic client credentials."""
        seen = {}

        def handler(request):
            seen['authorization'] = request.headers['authorization']
            seen['form'] = parse_qs(request.content.decode())
            return httpx.Response(
                200, json={'access_token': 'fresh', 'refresh_token': 'ref', 'expires_in': 3600}
            )

        adapter = YahooAdapter(client=make_client(handler), config=app_config)
        connection = asyncio.run(adapter.authenticate({
            'code': 'abc',
            'clientId': 'cid',
            'clientSecret': 'secret',
            'redirectUri': 'https://app.test/callback',
        }))

        assert seen['authorization'] == 'Basic ' + base64.b64encode(b'cid:secret').decode()
        assert seen['form']['grant_type'] == ['authorization_code']
        assert seen['form']['code'] == ['abc']
        assert connection.access_token == 'fresh'
        assert connection.refresh_token == 'ref'
        assert connection.expires_at is not None
        assert adapter.access_token == 'fresh'

    def test_code_exchange_rejected(self, app_config, make_client):
        """Test that a rejected code raises AuthError."""
        adapter = YahooAdapter(
            client=make_client(lambda request: httpx.Response(400, json={'error': 'invalid_grant'})),
            config=app_config,
        )
        with pytest.raises(AuthError):
            asyncio.run(adapter.exchange_code(
                client_id='cid', client_secret='secret', code='bad', redirect_uri='oob'
            ))
        assert adapter.access_token is None

    def test_code_without_client_details(self, adapter):
        """Test that a code without client secret raises AuthError."""
        with pytest.raises(AuthError, match='clientSecret'):
            asyncio.run(adapter.authenticate({'code': 'abc', 'clientId': 'cid', 'redirectUri': 'oob'}))

    def test_rejected_token(self, app_config, make_client, yahoo_api):
        """Test that a 401 from the API raises AuthError."""
        handler, _ = yahoo_api
        adapter = YahooAdapter(client=make_client(handler), config=app_config, access_token='stale')
        with pytest.raises(AuthError):
            asyncio.run(adapter.get_team_lineup('54321', '2', 3))

    def test_reads_need_a_token(self, app_config, make_client, yahoo_api):
        """Test that reads without a token raise before any request."""
        handler, requests = yahoo_api
        adapter = YahooAdapter(client=make_client(handler), config=app_config)
        with pytest.raises(NotAuthenticatedError):
            asyncio.run(adapter.get_league('54321'))
        assert requests == []


class TestYahooReads:
    """Tests for roster and standings parsing."""

    def test_roster(self, adapter, yahoo_api):
        """Test starters, bench and request format for a week's roster."""
        _, requests = yahoo_api
        lineup = asyncio.run(adapter.get_team_lineup('54321', '2', 3))

        assert requests[0].url.params['format'] == 'json'
        assert lineup.id == 'yahoo-2-3'
        assert list(lineup.starters) == ['QB', 'RB1', 'FLEX']
        assert [p.name for p in lineup.bench] == ['Jaylen Warren']

        mahomes = lineup.starters['QB']
        assert mahomes.id == 'yahoo-30123'
        assert mahomes.team == 'KC'
        assert mahomes.actual_points == 25.1
        assert mahomes.projected_points == 22.4

        bijan = lineup.starters['RB1']
        assert bijan.injury_status == InjuryStatus.QUESTIONABLE
        assert bijan.injury_details == 'Hamstring'
        assert lineup.starters['FLEX'].position == Position.WR

    def test_roster_totals_exclude_bench(self, adapter):
        """Test that lineup totals count starters only."""
        lineup = asyncio.run(adapter.get_team_lineup('54321', '2', 3))
        assert lineup.total_actual_points == pytest.approx(48.1)
        assert lineup.total_projected_points == pytest.approx(50.9)

    def test_standings(self, adapter):
        """Test league standings as team snapshots."""
        league = asyncio.run(adapter.get_league('54321'))

        assert league.name == 'Work League'
        assert league.season == 2025
        alpha = league.find_team('1')
        assert alpha.name == 'Alpha'
        assert alpha.owners == ['ann']
        assert (alpha.record.wins, alpha.record.losses, alpha.record.ties) == (5, 2, 0)
        assert league.find_team('2').record.wins == 4


class TestYahooWrites:
    """Tests for roster PUTs."""

    def test_update_puts_roster_xml(self, adapter, yahoo_api):
        """Test that an update PUTs the roster as XML."""
        _, requests = yahoo_api
        lineup = {
            'QB': '30123',
            'FLEX': Player(id='yahoo-33500', name='Garrett Wilson', position=Position.WR),
            'BENCH': ['nfl.p.34000', 'yahoo-32700'],
        }
        assert asyncio.run(adapter.update_lineup('54321', '2', 3, lineup)) is True

        request = requests[-1]
        assert request.method == 'PUT'
        assert request.url.path.endswith('/team/nfl.l.54321.t.2/roster')
        assert request.headers['content-type'] == 'application/xml'

        root = ET.fromstring(request.content)
        assert root.find('roster/week').text == '3'
        assert [
            (p.find('player_key').text, p.find('position').text)
            for p in root.findall('roster/players/player')
        ] == [
            ('nfl.p.30123', 'QB'),
            ('nfl.p.33500', 'W/R/T'),
            ('nfl.p.34000', 'BN'),
            ('nfl.p.32700', 'BN'),
        ]

    def test_numbered_slots(self):
        """Test that numbered slots are sent as their base position."""
        root = ET.fromstring(build_roster_xml(5, {'RB2': '1', 'WR3': '2'}))
        assert [p.find('position').text for p in root.iter('player')] == ['RB', 'WR']

    def test_rejected_update_returns_false(self, app_config, make_client):
        """Test that a rejected PUT returns False."""
        adapter = YahooAdapter(
            client=make_client(lambda request: httpx.Response(400)),
            config=app_config,
            access_token='tok',
        )
        assert asyncio.run(adapter.update_lineup('54321', '2', 3, {'QB': '30123'})) is False

    def test_unknown_slot_returns_false(self, adapter, yahoo_api):
        """Test that an unknown slot returns False without a request."""
        _, requests = yahoo_api
        assert asyncio.run(adapter.update_lineup('54321', '2', 3, {'SUPERSTAR': '1'})) is False
        assert requests == []

    def test_unauthenticated_update_returns_false(self, app_config, make_client, yahoo_api):
        """Test that updating without a token returns False without a request."""
        handler, requests = yahoo_api
        adapter = YahooAdapter(client=make_client(handler), config=app_config)
        assert asyncio.run(adapter.update_lineup('54321', '2', 3, {'QB': '30123'})) is False
        assert requests == []
