"""Canonical mapping for positions, injury statuses, and lineup slots.

Pure functions shared by every adapter. Each platform contributes lookup
tables in ``constants``; the functions here make those lookups total so no
unmapped upstream value reaches a canonical field.
"""

from datetime import datetime
from typing import Any, Iterable, Optional

from .constants import (
    BENCH_SLOT,
    ESPN_INJURY_MAP,
    ESPN_POSITION_MAP,
    ESPN_SLOT_LABEL_MAP,
    ESPN_SLOT_MAP,
    ESPN_TEAM_MAP,
    ESPN_UNKNOWN_TEAM,
    NUMBERED_SLOT_BASES,
    PLATFORM_PREFIXES,
    POSITION_ALIASES,
    SLEEPER_INJURY_MAP,
    SLEEPER_POSITION_MAP,
    SLEEPER_SLOT_MAP,
    SLOT_DISPLAY_ORDER,
    UNMAPPED_POSITION,
    YAHOO_INJURY_MAP,
    YAHOO_POSITION_MAP,
    YAHOO_SLOT_MAP,
)
from .errors import UnsupportedPlatformError
from .models import DataSource, InjuryStatus, Lineup, Platform, Player, Position

POSITION_TABLES: dict[Platform, dict[Any, str]] = {
    Platform.SLEEPER: SLEEPER_POSITION_MAP,
    Platform.YAHOO: YAHOO_POSITION_MAP,
    Platform.ESPN: ESPN_POSITION_MAP,
}

INJURY_TABLES: dict[Platform, dict[str, str]] = {
    Platform.SLEEPER: SLEEPER_INJURY_MAP,
    Platform.YAHOO: YAHOO_INJURY_MAP,
    Platform.ESPN: ESPN_INJURY_MAP,
}

SLOT_TABLES: dict[Platform, dict[Any, str]] = {
    Platform.SLEEPER: SLEEPER_SLOT_MAP,
    Platform.YAHOO: YAHOO_SLOT_MAP,
    Platform.ESPN: ESPN_SLOT_MAP,
}

_INJURY_VALUES = {status.value for status in InjuryStatus}


def resolve_platform(tag: str | Platform) -> Platform:
    """Resolve a platform tag case-insensitively ('espn', 'YAHOO', ...)."""
    if isinstance(tag, Platform):
        return tag
    wanted = str(tag or '').strip().lower()
    for platform in Platform:
        if platform.value.lower() == wanted:
            return platform
    raise UnsupportedPlatformError(f'Unsupported platform: {tag}', str(tag))


def _lookup_key(raw: Any, table: dict[Any, str]) -> Any:
    """Normalise ``raw`` to the key type the table uses (ints for ESPN ids)."""
    if isinstance(raw, str):
        key = raw.strip()
        if key.lstrip('-').isdigit() and any(isinstance(k, int) for k in table):
            return int(key)
        return key.upper()
    return raw


def map_position(platform: str | Platform, raw: Any) -> Position:
    """
    Map an upstream position value to a canonical Position.

    Lookup order: the platform's own table, then the shared alias table.
    Anything still unknown becomes FLEX.

    Args:
        platform: Platform the value came from
        raw: Upstream value (string code or ESPN numeric id)

    Returns:
        Canonical Position
    """
    table = POSITION_TABLES.get(resolve_platform(platform), {})
    key = _lookup_key(raw, table)
    mapped = table.get(key)
    if mapped is None and isinstance(key, str):
        mapped = POSITION_ALIASES.get(key)
    return Position(mapped or UNMAPPED_POSITION)


def map_injury_status(platform: str | Platform, raw: Any) -> InjuryStatus:
    """Map an upstream injury value; empty, None and unknown values are healthy."""
    table = INJURY_TABLES.get(resolve_platform(platform), {})
    key = str(raw or '').strip().lower()
    mapped = table.get(key)
    if mapped is None and key in _INJURY_VALUES:
        mapped = key
    return InjuryStatus(mapped or InjuryStatus.HEALTHY.value)


def map_slot(platform: str | Platform, raw: Any) -> Optional[str]:
    """
    Map an upstream lineup slot to a canonical slot base.

    Returns:
        A base such as 'QB', 'RB', 'FLEX', 'IDP', or 'BENCH'; None if the
        slot is unknown and the caller should fall back to the position.
    """
    table = SLOT_TABLES.get(resolve_platform(platform), {})
    return table.get(_lookup_key(raw, table))


def map_slot_label(label: str) -> Optional[str]:
    """Map a slot label scraped from an ESPN roster table."""
    return ESPN_SLOT_LABEL_MAP.get(str(label or '').strip().upper())


def map_espn_team(pro_team_id: Any) -> str:
    """Map an ESPN proTeamId to a team abbreviation."""
    table_key = _lookup_key(pro_team_id, ESPN_TEAM_MAP)
    return ESPN_TEAM_MAP.get(table_key, ESPN_UNKNOWN_TEAM)


def slot_base_for_position(position: Position) -> str:
    return position.value


class SlotAllocator:
    """
    Hands out unique slot names for one lineup.

    Numbered bases always carry an index (RB1, RB2, WR1, IDP1); other bases
    take the bare name first and an index from 2 after that (FLEX, FLEX2).
    """

    def __init__(self):
        self._taken: set[str] = set()

    def allocate(self, base: str) -> str:
        if base in NUMBERED_SLOT_BASES:
            index = 1
            slot = f'{base}{index}'
            while slot in self._taken:
                index += 1
                slot = f'{base}{index}'
        else:
            index = 2
            slot = base
            while slot in self._taken:
                slot = f'{base}{index}'
                index += 1
        self._taken.add(slot)
        return slot


def starter_totals(starters: dict[str, Player]) -> tuple[float, float]:
    """Projected and actual totals over starting slots; missing points count as zero."""
    projected = sum(p.projected_points or 0.0 for p in starters.values())
    actual = sum(p.actual_points or 0.0 for p in starters.values())
    return round(projected, 2), round(actual, 2)


def team_prefix(platform: str | Platform) -> str:
    return PLATFORM_PREFIXES[resolve_platform(platform).value]


def prefixed_team_id(platform: str | Platform, team_id: str) -> str:
    """Globally unique team id, e.g. ``espn-3``."""
    return f'{team_prefix(platform)}-{team_id}'


def strip_team_prefix(platform: str | Platform, team_id: str) -> str:
    prefix = f'{team_prefix(platform)}-'
    return team_id[len(prefix):] if team_id.startswith(prefix) else team_id


def lineup_id(platform: str | Platform, team_id: str, week: int) -> str:
    return f'{prefixed_team_id(platform, team_id)}-{week}'


def assemble_lineup(
    *,
    platform: str | Platform,
    team_id: str,
    week: int,
    season: int,
    entries: Iterable[tuple[Optional[str], Player]],
    data_source: DataSource = DataSource.LIVE,
    last_updated: Optional[datetime] = None,
) -> Lineup:
    """
    Build a Lineup from (slot base, Player) pairs.

    A base of None falls back to the player's position. BENCH entries go to
    the bench list in arrival order; everything else gets a unique starting
    slot from a SlotAllocator. Totals cover starters only.

    Args:
        platform: Platform the lineup came from (used for the lineup id)
        team_id: Un-prefixed team id
        week: Week number (1-18)
        season: Season year
        entries: (slot base or None, Player) in upstream order
        data_source: LIVE or PLACEHOLDER
        last_updated: Timestamp override (default: now)

    Returns:
        Lineup with starters, bench, and totals populated
    """
    allocator = SlotAllocator()
    starters: dict[str, Player] = {}
    bench: list[Player] = []

    for base, player in entries:
        if base is None:
            base = slot_base_for_position(player.position)
        if base == BENCH_SLOT:
            bench.append(player)
            continue
        starters[allocator.allocate(base)] = player

    projected, actual = starter_totals(starters)
    extra = {'last_updated': last_updated} if last_updated else {}
    return Lineup(
        id=lineup_id(platform, team_id, week),
        team_id=str(team_id),
        week=week,
        season=season,
        starters=starters,
        bench=bench,
        total_projected_points=projected,
        total_actual_points=actual,
        data_source=data_source,
        **extra,
    )


def display_slots(lineups: Iterable[Optional[Lineup]]) -> list[str]:
    """
    Slots to show for a set of lineups, in canonical display order.

    Only slots populated by at least one lineup are returned; slots outside
    the display order (and the bench) are left out.
    """
    populated: set[str] = set()
    for lineup in lineups:
        if lineup is not None:
            populated.update(lineup.starters)
    return [slot for slot in SLOT_DISPLAY_ORDER if slot in populated]
