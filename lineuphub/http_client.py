"""Async HTTP plumbing shared by the adapters.

Every upstream failure leaves this module as a ``FetchError`` carrying the
platform and the league/team being fetched; timeouts are flagged with
``timed_out`` so callers can tell them apart from refusals.
"""

import logging
from typing import Any, Optional

import httpx

from .config import get_request_timeout
from .errors import FetchError

logger = logging.getLogger('lineuphub.http_client')

USER_AGENT = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

DEFAULT_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'application/json, text/html;q=0.9, */*;q=0.8',
}


def create_http_client(
    timeout: Optional[float] = None,
    headers: Optional[dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Build the AsyncClient used by an adapter (fixed timeout, no retries)."""
    merged = dict(DEFAULT_HEADERS)
    if headers:
        merged.update(headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout if timeout is not None else get_request_timeout()),
        headers=merged,
        transport=transport,
    )


async def send_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    platform: str,
    league_id: Optional[str] = None,
    team_id: Optional[str] = None,
    raise_for_status: bool = True,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send one request and translate transport failures into FetchError.

    Args:
        client: AsyncClient to send with
        method: HTTP method
        url: Absolute URL
        platform: Platform tag recorded on any error
        league_id: League being fetched (for error context)
        team_id: Team being fetched (for error context)
        raise_for_status: Treat non-2xx responses as FetchError (default: True)
        **kwargs: Passed through to ``client.request``

    Returns:
        The httpx Response

    Raises:
        FetchError: On timeout, connection failure, or (optionally) non-2xx status
    """
    logger.debug(f'{method} {url}')
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        raise FetchError(
            f'{method} {url} timed out',
            platform,
            league_id=league_id,
            team_id=team_id,
            timed_out=True,
        ) from e
    except httpx.HTTPError as e:
        raise FetchError(
            f'{method} {url} failed: {e}',
            platform,
            league_id=league_id,
            team_id=team_id,
        ) from e

    if raise_for_status and response.is_error:
        raise FetchError(
            f'{method} {url} returned HTTP {response.status_code}',
            platform,
            league_id=league_id,
            team_id=team_id,
            status_code=response.status_code,
        )
    return response


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    platform: str,
    league_id: Optional[str] = None,
    team_id: Optional[str] = None,
    **kwargs: Any,
) -> Any:
    """GET a URL and decode its JSON body."""
    response = await send_request(
        client, 'GET', url, platform=platform, league_id=league_id, team_id=team_id, **kwargs
    )
    try:
        return response.json()
    except ValueError as e:
        raise FetchError(
            f'GET {url} returned malformed JSON',
            platform,
            league_id=league_id,
            team_id=team_id,
            status_code=response.status_code,
        ) from e
