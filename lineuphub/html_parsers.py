"""Ordered parse strategies for scraped ESPN team pages.

Strategies run in priority order and the first one that yields players wins:

1. ``StructuredStateStrategy``: JSON state blobs embedded in the page
2. ``TableRowStrategy``: roster table rows
3. ``NameProbeStrategy``: known-name search in the raw markup (weakest)
4. ``PlaceholderStrategy``: deterministic placeholder team, tagged PLACEHOLDER

Each strategy logs and swallows its own decoding failures so the next one
gets a chance. A chain without the placeholder strategy raises ParseError
when nothing matches.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from bs4 import BeautifulSoup

from .constants import (
    BENCH_SLOT,
    DEFAULT_ESPN_RECORD,
    DEFAULT_ESPN_TEAM_NAME,
    ESPN_STAT_SOURCE_ACTUAL,
    ESPN_STAT_SOURCE_PROJECTED,
    ESPN_STATE_MARKERS,
    ESPN_STATE_TEAM_ID_KEYS,
    NFL_TEAM_ABBREVIATIONS,
    PLACEHOLDER_ROSTER,
    POSITION_ALIASES,
    TABLE_BENCH_MARKERS,
    TABLE_SKIP_MARKERS,
)
from .errors import ParseError
from .models import DataSource, InjuryStatus, Platform, Player, Position, Record
from .normalize import map_espn_team, map_injury_status, map_position, map_slot, map_slot_label
from .utils import to_int, to_points

logger = logging.getLogger('lineuphub.html_parsers')

# Short uppercase tokens such as QB, D/ST, KC
_TOKEN_RE = re.compile(r'(?<![A-Za-z])[A-Z][A-Z/]{0,3}(?![A-Za-z])')
_DECIMAL_RE = re.compile(r'-?\d+\.\d{1,2}')
_TAG_RE = re.compile(r'<[^>]+>')

# 'D' is left out: on a roster row it is an injury designation, not a defense
_POSITION_TOKENS = {k: v for k, v in POSITION_ALIASES.items() if k not in ('D', 'FLEX')}

_INJURY_TOKENS = {
    'Q': 'questionable',
    'D': 'doubtful',
    'O': 'out',
    'IR': 'out',
    'SSPD': 'out',
}

TEAM_NAME_SELECTORS = ('span.teamName', 'h1.teamName', '.team-name', '.TeamName')

TEAM_NAME_PATTERNS = (
    re.compile(r'"teamName"\s*:\s*"([^"]+)"'),
    re.compile(r'<title>\s*([^<|]+?)\s*[|-][^<]*ESPN[^<]*</title>', re.IGNORECASE),
)

RECORD_PATTERNS = (
    re.compile(r'"record"\s*:\s*"(\d+)-(\d+)(?:-(\d+))?"'),
    re.compile(r'class="[^"]*record[^"]*"[^>]*>\s*(\d+)-(\d+)(?:-(\d+))?', re.IGNORECASE),
    re.compile(r'\((\d+)-(\d+)(?:-(\d+))?\)'),
)


@dataclass
class ParsedPlayer:
    """A player recovered from markup, before canonical ids are assigned."""

    name: str
    position: Position
    team: str = ''
    slot: Optional[str] = None
    player_id: Optional[str] = None
    injury_status: InjuryStatus = InjuryStatus.HEALTHY
    injury_details: Optional[str] = None
    projected_points: Optional[float] = None
    actual_points: Optional[float] = None

    def to_player(self) -> Player:
        if self.player_id:
            player_id = f'espn-{self.player_id}'
        else:
            player_id = 'espn-' + re.sub(r'[^a-z0-9]+', '-', self.name.lower()).strip('-')
        return Player(
            id=player_id,
            name=self.name,
            position=self.position,
            team=self.team,
            injury_status=self.injury_status,
            injury_details=self.injury_details,
            projected_points=self.projected_points,
            actual_points=self.actual_points,
        )


@dataclass
class ParsedTeam:
    """Result of a parse chain run."""

    players: list[ParsedPlayer]
    strategy: str
    name: Optional[str] = None
    record: Optional[Record] = None
    data_source: DataSource = DataSource.LIVE
    team_id: Optional[str] = None

    def entries(self) -> list[tuple[Optional[str], Player]]:
        """(slot base, Player) pairs for ``assemble_lineup``."""
        return [(p.slot, p.to_player()) for p in self.players]


@dataclass
class ParseContext:
    team_id: Optional[str] = None
    week: Optional[int] = None


def _row_tokens(text: str) -> tuple[Position, str, InjuryStatus]:
    """Position, pro team and injury status from the short uppercase tokens in ``text``."""
    position = None
    team = ''
    injury = InjuryStatus.HEALTHY
    for token in _TOKEN_RE.findall(text):
        if position is None and token in _POSITION_TOKENS:
            position = Position(_POSITION_TOKENS[token])
        elif not team and token in NFL_TEAM_ABBREVIATIONS:
            team = token
        elif token in _INJURY_TOKENS:
            injury = InjuryStatus(_INJURY_TOKENS[token])
    return position or Position.FLEX, team, injury


def _decimal_points(text: str) -> tuple[Optional[float], Optional[float]]:
    numbers = _DECIMAL_RE.findall(text)
    projected = to_points(numbers[0]) if len(numbers) > 0 else None
    actual = to_points(numbers[1]) if len(numbers) > 1 else None
    return projected, actual


# ---------------------------------------------------------------------------
# Structured state blobs
# ---------------------------------------------------------------------------


def extract_state_blobs(html: str) -> Iterator[Any]:
    """
    Yield every JSON value that follows a known state-assignment marker.

    The value is decoded with ``raw_decode`` so trailing script text after
    the object does not matter. Undecodable blobs are logged and skipped.
    """
    decoder = json.JSONDecoder()
    for marker in ESPN_STATE_MARKERS:
        start = html.find(marker)
        while start != -1:
            brace = html.find('{', start + len(marker))
            if brace == -1:
                break
            try:
                value, _ = decoder.raw_decode(html, brace)
            except json.JSONDecodeError as e:
                logger.warning(f'Could not decode state after {marker}: {e}')
            else:
                yield value
            start = html.find(marker, start + len(marker))


def find_espn_teams(state: Any) -> list[dict]:
    """Depth-first search for team objects that carry ``roster.entries``."""
    found = []
    stack = [state]
    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            roster = node.get('roster')
            if isinstance(roster, dict) and isinstance(roster.get('entries'), list):
                found.append(node)
                continue
            stack.extend(reversed(list(node.values())))
        elif isinstance(node, list):
            stack.extend(reversed(node))
    return found


def find_league_teams(state: Any) -> list[dict]:
    """The first ``teams`` list whose items carry an ``id``, rosters or not."""
    stack = [state]
    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            teams = node.get('teams')
            if isinstance(teams, list) and teams and all(
                isinstance(t, dict) and 'id' in t for t in teams
            ):
                return teams
            stack.extend(reversed(list(node.values())))
        elif isinstance(node, list):
            stack.extend(reversed(node))
    return []


def find_state_team_id(state: Any) -> Optional[str]:
    """
    The team id the page itself points at (``currentTeamId``, ``teamId``, ...).

    Team lists and rosters are not searched, so ids inside other teams'
    objects are never picked up.
    """
    stack = [state]
    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            if isinstance(node.get('roster'), dict):
                continue
            for key in ESPN_STATE_TEAM_ID_KEYS:
                value = node.get(key)
                if isinstance(value, (int, str)) and not isinstance(value, bool) and str(value):
                    return str(value)
            stack.extend(reversed([v for k, v in node.items() if k != 'teams']))
        elif isinstance(node, list):
            stack.extend(reversed(node))
    return None


def find_league_name(state: Any) -> Optional[str]:
    """League name from ``settings.name`` anywhere in the state."""
    stack = [state]
    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            settings = node.get('settings')
            if isinstance(settings, dict) and isinstance(settings.get('name'), str):
                return settings['name']
            stack.extend(reversed(list(node.values())))
        elif isinstance(node, list):
            stack.extend(reversed(node))
    return None


def _stat_total(stats: list, source_id: int, week: Optional[int]) -> Optional[float]:
    fallback = None
    for stat in stats or []:
        if not isinstance(stat, dict) or stat.get('statSourceId') != source_id:
            continue
        if stat.get('statSplitTypeId', 1) != 1:
            continue
        if week is None or stat.get('scoringPeriodId') == week:
            return to_points(stat.get('appliedTotal'))
        if fallback is None:
            fallback = to_points(stat.get('appliedTotal'))
    return fallback


def parse_espn_entry(entry: dict, week: Optional[int] = None) -> Optional[ParsedPlayer]:
    """Map one ``roster.entries[]`` item to a ParsedPlayer (None if it has no player)."""
    pool = entry.get('playerPoolEntry') or {}
    player = pool.get('player') or entry.get('player') or {}
    name = player.get('fullName') or player.get('name')
    if not name:
        return None

    injury_raw = player.get('injuryStatus') or ''
    return ParsedPlayer(
        name=name,
        position=map_position(Platform.ESPN, player.get('defaultPositionId')),
        team=map_espn_team(player.get('proTeamId')),
        slot=map_slot(Platform.ESPN, entry.get('lineupSlotId')),
        player_id=str(player.get('id') or entry.get('playerId') or '') or None,
        injury_status=map_injury_status(Platform.ESPN, injury_raw),
        injury_details=injury_raw if player.get('injured') else None,
        projected_points=_stat_total(player.get('stats'), ESPN_STAT_SOURCE_PROJECTED, week),
        actual_points=_stat_total(player.get('stats'), ESPN_STAT_SOURCE_ACTUAL, week),
    )


def espn_team_name(team: dict) -> Optional[str]:
    if team.get('name'):
        return team['name']
    name = f"{team.get('location', '')} {team.get('nickname', '')}".strip()
    return name or None


def espn_team_record(team: dict) -> Optional[Record]:
    overall = (team.get('record') or {}).get('overall')
    if not isinstance(overall, dict):
        return None
    return Record(
        wins=to_int(overall.get('wins')),
        losses=to_int(overall.get('losses')),
        ties=to_int(overall.get('ties')),
    )


class ParseStrategy(ABC):
    """One way of turning a team page into players."""

    name = 'strategy'

    @abstractmethod
    def parse(self, html: str, context: ParseContext) -> Optional[ParsedTeam]:
        """Return a ParsedTeam, or None/empty players to fall through."""


class StructuredStateStrategy(ParseStrategy):
    name = 'structured'

    def parse(self, html: str, context: ParseContext) -> Optional[ParsedTeam]:
        for state in extract_state_blobs(html):
            teams = find_espn_teams(state)
            team = self._select_team(teams, context.team_id, find_state_team_id(state))
            if team is None:
                continue
            players = [
                parsed
                for entry in team['roster']['entries']
                if isinstance(entry, dict)
                for parsed in [parse_espn_entry(entry, context.week)]
                if parsed is not None
            ]
            if players:
                return ParsedTeam(
                    players=players,
                    strategy=self.name,
                    name=espn_team_name(team),
                    record=espn_team_record(team),
                    team_id=str(team['id']) if team.get('id') is not None else None,
                )
        return None

    @staticmethod
    def _select_team(
        teams: list[dict],
        team_id: Optional[str],
        state_team_id: Optional[str] = None,
    ) -> Optional[dict]:
        """
        Pick the page's team out of the roster-bearing teams in a state blob.

        An explicit ``team_id`` must match, otherwise nothing is selected:
        another team's roster is never returned in its place. Without one,
        the team the state points at wins, then a lone team, then the first
        team with a roster.
        """
        if not teams:
            return None
        by_id = {str(team.get('id')): team for team in teams}
        if team_id is not None:
            if str(team_id) in by_id:
                return by_id[str(team_id)]
            logger.warning(f'State holds {len(teams)} teams, none matching team {team_id}')
            return None
        if state_team_id in by_id:
            return by_id[state_team_id]
        team = next((t for t in teams if t['roster']['entries']), teams[0])
        if len(teams) > 1:
            logger.warning(
                f'State holds {len(teams)} teams and names none of them; using team {team.get("id")}'
            )
        return team


# ---------------------------------------------------------------------------
# Table rows
# ---------------------------------------------------------------------------


class TableRowStrategy(ParseStrategy):
    """
    Walk ``<tr>`` rows of the roster table.

    Header and total rows are skipped. A row whose first cell is a bench/IR
    marker and has no player link switches the rest of the table to the
    bench. Player rows need an anchor (the name); short uppercase tokens
    give position and pro team, and the first two decimals are the
    projected and actual points.
    """

    name = 'table'

    def parse(self, html: str, context: ParseContext) -> Optional[ParsedTeam]:
        soup = BeautifulSoup(html, 'html.parser')
        players = []
        in_bench = False

        for row in soup.find_all('tr'):
            cells = [cell.get_text(' ', strip=True) for cell in row.find_all(['td', 'th'])]
            if not cells or not row.find('td'):
                continue

            first = cells[0].lower()
            anchor = row.find('a')
            if anchor is None:
                if first in TABLE_BENCH_MARKERS:
                    in_bench = True
                continue
            if first in TABLE_SKIP_MARKERS:
                continue

            name = anchor.get_text(' ', strip=True)
            if not name:
                continue

            slot = map_slot_label(cells[0])
            token_cells = cells[1:] if slot else cells
            text = ' '.join(token_cells).replace(name, ' ')
            position, team, injury = _row_tokens(text)
            projected, actual = _decimal_points(text)

            if slot is None and in_bench:
                slot = BENCH_SLOT
            players.append(
                ParsedPlayer(
                    name=name,
                    position=position,
                    team=team,
                    slot=slot,
                    injury_status=injury,
                    projected_points=projected,
                    actual_points=actual,
                )
            )

        return ParsedTeam(players=players, strategy=self.name) if players else None


# ---------------------------------------------------------------------------
# Name probe
# ---------------------------------------------------------------------------


class NameProbe:
    """
    Finds known player names in raw markup.

    This only ever recognizes the configured candidates; a league whose
    players are not on the list yields nothing. Around each match a window
    of ``window`` characters is stripped of tags and scanned for position,
    team and point tokens.
    """

    def __init__(self, names: list[str], window: int = 600):
        self.names = [n for n in names if n]
        self.window = window

    def find(self, html: str) -> list[ParsedPlayer]:
        players = []
        half = self.window // 2
        for name in self.names:
            index = html.find(name)
            if index == -1:
                continue
            snippet = html[max(0, index - half):index + len(name) + half]
            text = _TAG_RE.sub(' ', snippet).replace(name, ' ')
            position, team, injury = _row_tokens(text)
            projected, actual = _decimal_points(text)
            players.append(
                ParsedPlayer(
                    name=name,
                    position=position,
                    team=team,
                    injury_status=injury,
                    projected_points=projected,
                    actual_points=actual,
                )
            )
        return players


class NameProbeStrategy(ParseStrategy):
    name = 'name_probe'

    def __init__(self, probe: NameProbe):
        self.probe = probe

    def parse(self, html: str, context: ParseContext) -> Optional[ParsedTeam]:
        players = self.probe.find(html)
        return ParsedTeam(players=players, strategy=self.name) if players else None


# ---------------------------------------------------------------------------
# Placeholder
# ---------------------------------------------------------------------------


def placeholder_team() -> ParsedTeam:
    """The deterministic placeholder roster, tagged as placeholder data."""
    players = [
        ParsedPlayer(
            name=name,
            position=Position(position),
            team=team,
            slot=slot,
            player_id=f'placeholder-{index}',
            projected_points=projected,
        )
        for index, (slot, name, position, team, projected) in enumerate(PLACEHOLDER_ROSTER, 1)
    ]
    return ParsedTeam(
        players=players,
        strategy=PlaceholderStrategy.name,
        name=DEFAULT_ESPN_TEAM_NAME,
        record=Record(
            wins=DEFAULT_ESPN_RECORD[0],
            losses=DEFAULT_ESPN_RECORD[1],
            ties=DEFAULT_ESPN_RECORD[2],
        ),
        data_source=DataSource.PLACEHOLDER,
    )


class PlaceholderStrategy(ParseStrategy):
    """Terminal strategy: always answers with the placeholder team."""

    name = 'placeholder'

    def parse(self, html: str, context: ParseContext) -> Optional[ParsedTeam]:
        logger.warning('No parse strategy found players; using placeholder team')
        return placeholder_team()


# ---------------------------------------------------------------------------
# Team metadata
# ---------------------------------------------------------------------------


def extract_team_name(html: str, default: str = DEFAULT_ESPN_TEAM_NAME) -> str:
    soup = BeautifulSoup(html, 'html.parser')
    for selector in TEAM_NAME_SELECTORS:
        tag = soup.select_one(selector)
        if tag is not None and tag.get_text(strip=True):
            return tag.get_text(' ', strip=True)
    for pattern in TEAM_NAME_PATTERNS:
        match = pattern.search(html)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return default


def extract_record(html: str) -> Record:
    for pattern in RECORD_PATTERNS:
        match = pattern.search(html)
        if match:
            wins, losses, ties = match.groups()
            return Record(wins=int(wins), losses=int(losses), ties=int(ties or 0))
    wins, losses, ties = DEFAULT_ESPN_RECORD
    return Record(wins=wins, losses=losses, ties=ties)


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------


def default_strategies(probe: Optional[NameProbe] = None, placeholder: bool = True) -> list[ParseStrategy]:
    strategies: list[ParseStrategy] = [StructuredStateStrategy(), TableRowStrategy()]
    if probe is not None:
        strategies.append(NameProbeStrategy(probe))
    if placeholder:
        strategies.append(PlaceholderStrategy())
    return strategies


def run_parse_chain(
    html: str,
    strategies: list[ParseStrategy],
    context: Optional[ParseContext] = None,
) -> ParsedTeam:
    """
    Run strategies in order and return the first non-empty result.

    Team name and record missing from the winning result are filled from the
    metadata patterns.

    Raises:
        ParseError: If no strategy produced players
    """
    context = context or ParseContext()
    for strategy in strategies:
        try:
            result = strategy.parse(html, context)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f'Parse strategy {strategy.name} failed: {e}')
            continue
        if result is None or not result.players:
            logger.debug(f'Parse strategy {strategy.name} found no players')
            continue

        if result.data_source == DataSource.LIVE:
            if not result.name:
                result.name = extract_team_name(html)
            if result.record is None:
                result.record = extract_record(html)
        logger.info(f'Parsed {len(result.players)} players with {strategy.name} strategy')
        return result

    raise ParseError('No parse strategy produced players', Platform.ESPN.value)
