"""Shared fixtures: test configuration, fake HTTP transports, Sleeper API data."""

import json

import httpx
import pytest

from lineuphub.schemas import AppConfig, ESPNSettings, ProxyRelay
from lineuphub.session import ESPNSessionManager, SessionStore


@pytest.fixture
def app_config(tmp_path):
    """Configuration with two test relays and a session file under tmp_path."""
    return AppConfig(
        current_season=2025,
        current_week=3,
        session_path=str(tmp_path / 'espn_session.json'),
        proxies=[
            ProxyRelay(
                name='forwarding',
                url_template='https://relay-a.test/?url={url}',
                forwards_headers=True,
            ),
            ProxyRelay(
                name='plain',
                url_template='https://relay-b.test/raw?url={url}',
                forwards_headers=False,
            ),
        ],
        espn=ESPNSettings(probe_names=['Patrick Mahomes', 'Travis Kelce']),
    )


@pytest.fixture
def make_client():
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def _make(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def espn_session(tmp_path):
    """Unauthenticated ESPN session backed by a temp file."""
    return ESPNSessionManager(SessionStore(tmp_path / 'session.json'), ttl_days=7)


SLEEPER_LEAGUE = {
    'league_id': '123456789',
    'name': 'Dynasty Bros',
    'season': '2025',
    'roster_positions': ['QB', 'RB', 'RB', 'WR', 'TE', 'FLEX', 'K', 'DEF', 'BN', 'BN'],
}

SLEEPER_PLAYERS = {
    '4046': {'full_name': 'Patrick Mahomes', 'position': 'QB', 'team': 'KC'},
    '4034': {
        'full_name': 'Christian McCaffrey',
        'position': 'RB',
        'team': 'SF',
        'injury_status': 'Questionable',
        'injury_body_part': 'Achilles',
    },
    '9509': {'full_name': 'Bijan Robinson', 'position': 'RB', 'team': 'ATL'},
    '6794': {'full_name': 'Justin Jefferson', 'position': 'WR', 'team': 'MIN'},
    '4881': {'full_name': 'Travis Kelce', 'position': 'TE', 'team': 'KC'},
    '8146': {'full_name': 'Garrett Wilson', 'position': 'WR', 'team': 'NYJ'},
    '17': {'full_name': 'Justin Tucker', 'position': 'K', 'team': 'BAL', 'injury_status': 'Out'},
    'KC': {'first_name': 'Kansas City', 'last_name': 'Chiefs', 'position': 'DEF', 'team': 'KC'},
    '1234': {'full_name': 'Tyjae Spears', 'position': 'RB', 'team': 'TEN'},
    '9999': {'full_name': 'Big Lineman', 'position': 'OL', 'team': 'DAL'},
}

SLEEPER_STARTERS = ['4046', '4034', '9509', '6794', '4881', '8146', '17', 'KC']
SLEEPER_STARTER_POINTS = [25.5, 18.0, 12.25, 20.0, 9.5, 11.0, 7.0, 6.0]

SLEEPER_ROSTERS = [
    {
        'roster_id': 1,
        'owner_id': 'u1',
        'players': SLEEPER_STARTERS + ['1234', '9999'],
        'starters': SLEEPER_STARTERS,
        'settings': {'wins': 5, 'losses': 2, 'ties': 0},
    },
    {
        'roster_id': 2,
        'owner_id': 'u2',
        'players': [],
        'starters': [],
        'settings': {'wins': 2, 'losses': 5, 'ties': 0},
    },
]

SLEEPER_USERS = [
    {'user_id': 'u1', 'display_name': 'alice', 'metadata': {'team_name': 'Alice in Chains'}},
    {'user_id': 'u2', 'display_name': 'bob', 'metadata': {}},
]

SLEEPER_MATCHUPS = [
    {
        'roster_id': 1,
        'matchup_id': 1,
        'starters': SLEEPER_STARTERS,
        'starters_points': SLEEPER_STARTER_POINTS,
        'players': SLEEPER_STARTERS + ['1234', '9999'],
        'players_points': {'1234': 3.5, '9999': 0.0},
    },
    {'roster_id': 2, 'matchup_id': 1, 'starters': [], 'starters_points': [], 'players': []},
]


@pytest.fixture
def sleeper_api():
    """
    A fake Sleeper API.

    Returns (handler, requests): ``requests`` records every request path.
    """
    requests = []
    routes = {
        '/v1/league/123456789': SLEEPER_LEAGUE,
        '/v1/league/123456789/rosters': SLEEPER_ROSTERS,
        '/v1/league/123456789/users': SLEEPER_USERS,
        '/v1/league/123456789/matchups/3': SLEEPER_MATCHUPS,
        '/v1/players/nfl': SLEEPER_PLAYERS,
        '/v1/user/alice': {'user_id': 'u1', 'username': 'alice'},
        '/v1/user/u1/leagues/nfl/2025': [SLEEPER_LEAGUE],
    }

    def handler(request):
        requests.append(request.url.path)
        if request.url.path in routes:
            return httpx.Response(200, json=routes[request.url.path])
        return httpx.Response(404, json=None)

    return handler, requests


ESPN_STATE = {
    'league': {
        'settings': {'name': 'Office League'},
        'teams': [
            {
                'id': 3,
                'name': 'Gridiron Gurus',
                'owners': ['{ABC-123}'],
                'record': {'overall': {'wins': 4, 'losses': 2, 'ties': 0}},
                'roster': {
                    'entries': [
                        {
                            'lineupSlotId': 0,
                            'playerPoolEntry': {
                                'player': {
                                    'id': 3139477,
                                    'fullName': 'Patrick Mahomes',
                                    'defaultPositionId': 1,
                                    'proTeamId': 12,
                                    'injuryStatus': 'ACTIVE',
                                    'stats': [
                                        {'statSourceId': 1, 'statSplitTypeId': 1,
                                         'scoringPeriodId': 3, 'appliedTotal': 22.4},
                                        {'statSourceId': 0, 'statSplitTypeId': 1,
                                         'scoringPeriodId': 3, 'appliedTotal': 25.1},
                                        {'statSourceId': 0, 'statSplitTypeId': 0,
                                         'scoringPeriodId': 0, 'appliedTotal': 310.0},
                                    ],
                                },
                            },
                        },
                        {
                            'lineupSlotId': 2,
                            'playerPoolEntry': {
                                'player': {
                                    'id': 4430807,
                                    'fullName': 'Bijan Robinson',
                                    'defaultPositionId': 2,
                                    'proTeamId': 1,
                                    'injured': True,
                                    'injuryStatus': 'QUESTIONABLE',
                                    'stats': [
                                        {'statSourceId': 1, 'statSplitTypeId': 1,
                                         'scoringPeriodId': 3, 'appliedTotal': 15.0},
                                    ],
                                },
                            },
                        },
                        {
                            'lineupSlotId': 20,
                            'playerPoolEntry': {
                                'player': {
                                    'id': 4569987,
                                    'fullName': 'Jaylen Warren',
                                    'defaultPositionId': 2,
                                    'proTeamId': 23,
                                    'stats': [
                                        {'statSourceId': 1, 'statSplitTypeId': 1,
                                         'scoringPeriodId': 3, 'appliedTotal': 6.5},
                                    ],
                                },
                            },
                        },
                    ],
                },
            },
            {
                'id': 4,
                'location': 'Monday',
                'nickname': 'Maniacs',
                'record': {'overall': {'wins': 2, 'losses': 4, 'ties': 0}},
                'roster': {
                    'entries': [
                        {
                            'lineupSlotId': 17,
                            'playerPoolEntry': {
                                'player': {'id': 15683, 'fullName': 'Justin Tucker',
                                           'defaultPositionId': 5, 'proTeamId': 33},
                            },
                        },
                    ],
                },
            },
        ],
    },
}

ESPN_TABLE_HTML = """
<html><body>
<span class="teamName">Bench Mob</span>
<span class="team-record">3-4</span>
<table>
  <tr><th>Slot</th><th>Player</th><th>Proj</th><th>Pts</th></tr>
  <tr><td>QB</td><td><a href="/player/3918298">Josh Allen</a> BUF QB</td><td>21.30</td><td>24.12</td></tr>
  <tr><td>RB</td><td><a href="/player/3929630">Saquon Barkley</a> PHI RB Q</td><td>17.5</td><td>9.8</td></tr>
  <tr><td>RB/WR/TE</td><td><a href="/player/4241389">CeeDee Lamb</a> DAL WR</td><td>16.0</td><td>--</td></tr>
  <tr><td>Bench</td></tr>
  <tr><td><a href="/player/4429615">Zay Flowers</a></td><td>BAL WR</td><td>10.25</td><td>0.0</td></tr>
  <tr><td>TOTAL</td><td></td><td>65.05</td><td>33.92</td></tr>
</table>
</body></html>
"""


def espn_state_html(state=None, title='Gridiron Gurus | ESPN Fantasy Football'):
    """A team page that embeds ``state`` as a window state assignment."""
    return (
        f'<html><head><title>{title}</title></head><body>'
        f'<script>window.__INITIAL_STATE__ = {json.dumps(state or ESPN_STATE)};</script>'
        '<div id="root"></div></body></html>'
    )


@pytest.fixture
def espn_state():
    """A fresh copy of the embedded ESPN league state."""
    return json.loads(json.dumps(ESPN_STATE))


@pytest.fixture
def espn_page():
    """Build an ESPN team page around a state dict (default: ESPN_STATE)."""
    return espn_state_html


@pytest.fixture
def espn_table_html():
    return ESPN_TABLE_HTML
