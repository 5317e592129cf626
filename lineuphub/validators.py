"""Validation functions for credentials, team URLs, and lineups."""

from typing import Any, Mapping
from urllib.parse import parse_qs, urlparse

from .models import Lineup, Platform

# Minimum credential keys per platform (camelCase, as callers send them)
REQUIRED_CREDENTIALS: dict[Platform, tuple[str, ...]] = {
    Platform.ESPN: ('teamUrl',),
    Platform.SLEEPER: ('leagueId', 'teamId'),
    Platform.YAHOO: ('accessToken', 'leagueId', 'teamId'),
}

CREDENTIAL_LABELS = {
    'teamUrl': 'team URL',
    'leagueId': 'league ID',
    'teamId': 'team ID',
    'accessToken': 'access token',
}


def _snake_case(key: str) -> str:
    return ''.join(f'_{c.lower()}' if c.isupper() else c for c in key)


def get_credential(credentials: Mapping[str, Any], key: str) -> Any:
    """
    Read a credential by its camelCase key, accepting the snake_case spelling too.

    Blank strings are treated as missing.
    """
    for candidate in (key, _snake_case(key)):
        value = credentials.get(candidate)
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        return value
    return None


def validate_credentials(platform: Platform, credentials: Mapping[str, Any]) -> list[str]:
    """
    Check that the minimum credential fields for a platform are present.

    Args:
        platform: Target platform
        credentials: Open key/value credential map

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    for key in REQUIRED_CREDENTIALS.get(platform, ()):
        if get_credential(credentials, key) is None:
            label = CREDENTIAL_LABELS.get(key, key)
            errors.append(f'{platform.value} requires {label} ({key})')
    return errors


def validate_team_url(url: str) -> list[str]:
    """
    Validate an ESPN fantasy football team URL.

    Expected shape:
        https://fantasy.espn.com/football/team?leagueId=123456&teamId=1

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    parsed = urlparse(url or '')
    if parsed.scheme not in ('http', 'https'):
        errors.append(f'Team URL must be http(s): {url}')
    if 'espn.com' not in (parsed.hostname or ''):
        errors.append(f'Team URL is not an espn.com address: {url}')
    if '/football/team' not in parsed.path:
        errors.append(f'Team URL is not a football team page: {url}')

    query = parse_qs(parsed.query)
    for param in ('leagueId', 'teamId'):
        if not query.get(param):
            errors.append(f'Team URL is missing {param}')
    return errors


def validate_lineup(lineup: Lineup) -> list[str]:
    """
    Check a lineup's internal consistency.

    Checks:
    - No player appears twice (across starters and bench)
    - Declared totals match the sum over starting slots (within 0.01)

    Args:
        lineup: Lineup to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    seen = set()
    duplicates = set()
    for player in [*lineup.starters.values(), *lineup.bench]:
        if player.id in seen:
            duplicates.add(player.name)
        seen.add(player.id)
    if duplicates:
        errors.append(
            f'{lineup.id} has duplicate players: {", ".join(sorted(duplicates))}'
        )

    projected = sum(p.projected_points or 0.0 for p in lineup.starters.values())
    if abs(projected - lineup.total_projected_points) > 0.01:
        errors.append(
            f'{lineup.id} projected total ({lineup.total_projected_points:.2f}) != '
            f'sum of starters ({projected:.2f})'
        )

    actual = sum(p.actual_points or 0.0 for p in lineup.starters.values())
    if abs(actual - lineup.total_actual_points) > 0.01:
        errors.append(
            f'{lineup.id} actual total ({lineup.total_actual_points:.2f}) != '
            f'sum of starters ({actual:.2f})'
        )

    return errors
