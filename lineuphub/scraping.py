"""CORS relay fetching and login helpers for the scraped platform.

Requests never go to the upstream host directly. Each target URL is
URL-encoded into a relay template and the relays are tried in configured
order; the first transport-level success wins. A success is not proof of
data: a relay that drops the session cookie gets the login page back, which
``looks_like_login_page`` catches.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup

from .constants import LOGIN_PAGE_MARKERS
from .errors import FetchError
from .http_client import send_request
from .schemas import ProxyRelay

logger = logging.getLogger('lineuphub.scraping')

# <input type="hidden" name="csrf_token" value="..."> with attributes in either order
_HIDDEN_INPUT_RE = re.compile(r'<input\b[^>]*>', re.IGNORECASE)
_ATTR_RE = re.compile(r'(\w[\w-]*)\s*=\s*["\']([^"\']*)["\']')


@dataclass(frozen=True)
class RelayResponse:
    """A response obtained through one relay."""

    relay: str
    status_code: int
    text: str
    cookies: str = ''


def build_relay_url(relay: ProxyRelay, target_url: str) -> str:
    return relay.url_template.format(url=quote(target_url, safe=''))


def extract_cookies(response: httpx.Response) -> str:
    """Collapse Set-Cookie headers into a ``name=value; name=value`` string."""
    pairs = []
    for header in response.headers.get_list('set-cookie'):
        pair = header.split(';', 1)[0].strip()
        if '=' in pair:
            pairs.append(pair)
    return '; '.join(pairs)


def merge_cookies(*cookie_strings: str) -> str:
    """Merge cookie strings; later values win for the same name."""
    merged: dict[str, str] = {}
    for cookie_string in cookie_strings:
        for part in (cookie_string or '').split(';'):
            name, sep, value = part.strip().partition('=')
            if sep and name:
                merged[name] = value
    return '; '.join(f'{name}={value}' for name, value in merged.items())


def looks_like_login_page(html: str) -> bool:
    """True if the body carries login/signin markers instead of team data."""
    lowered = (html or '').lower()
    return any(marker in lowered for marker in LOGIN_PAGE_MARKERS)


def extract_form_token(html: str, input_names: Iterable[str]) -> Optional[tuple[str, str]]:
    """
    Find the anti-forgery token in a login page.

    Looks for a hidden input whose name is one of ``input_names``; the
    BeautifulSoup pass handles well-formed markup and a regex pass picks up
    inputs inside script-built fragments.

    Returns:
        (input name, token value), or None if no named hidden input is present
    """
    names = list(input_names)
    soup = BeautifulSoup(html or '', 'html.parser')
    for name in names:
        tag = soup.find('input', attrs={'type': 'hidden', 'name': name})
        if tag is not None and tag.get('value'):
            return name, str(tag['value'])

    for match in _HIDDEN_INPUT_RE.finditer(html or ''):
        attrs = {k.lower(): v for k, v in _ATTR_RE.findall(match.group(0))}
        if attrs.get('type', '').lower() == 'hidden' and attrs.get('name') in names:
            if attrs.get('value'):
                return attrs['name'], attrs['value']
    return None


class ProxyRelayChain:
    """
    Ordered list of relay strategies with early exit.

    Header-forwarding relays receive the caller's headers (session cookie
    included); the others are sent without them.
    """

    def __init__(self, client: httpx.AsyncClient, relays: list[ProxyRelay], platform: str = 'ESPN'):
        self.client = client
        self.relays = list(relays)
        self.platform = platform

    async def get(
        self,
        target_url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        league_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> RelayResponse:
        """
        GET ``target_url`` through the first relay that answers with 2xx.

        Raises:
            FetchError: If every relay fails; the message lists each failure
        """
        failures: list[tuple[str, FetchError]] = []
        for relay in self.relays:
            try:
                response = await send_request(
                    self.client,
                    'GET',
                    build_relay_url(relay, target_url),
                    platform=self.platform,
                    league_id=league_id,
                    team_id=team_id,
                    headers=headers if relay.forwards_headers else None,
                )
            except FetchError as e:
                logger.warning(f'Relay {relay.name} failed for {target_url}: {e.message}')
                failures.append((relay.name, e))
                continue

            logger.debug(f'Relay {relay.name} answered {response.status_code} for {target_url}')
            return RelayResponse(
                relay=relay.name,
                status_code=response.status_code,
                text=response.text,
                cookies=extract_cookies(response),
            )

        raise self._chain_failure(target_url, failures, league_id, team_id)

    async def post(
        self,
        target_url: str,
        *,
        data: dict[str, str],
        headers: Optional[dict[str, str]] = None,
    ) -> RelayResponse:
        """
        POST a form through the header-forwarding relays without following redirects.

        The status is returned as-is (a 302 is a normal login answer); only
        transport failures move on to the next relay.
        """
        failures: list[tuple[str, FetchError]] = []
        for relay in self.relays:
            if not relay.forwards_headers:
                continue
            try:
                response = await send_request(
                    self.client,
                    'POST',
                    build_relay_url(relay, target_url),
                    platform=self.platform,
                    raise_for_status=False,
                    data=data,
                    headers=headers,
                    follow_redirects=False,
                )
            except FetchError as e:
                logger.warning(f'Relay {relay.name} failed posting to {target_url}: {e.message}')
                failures.append((relay.name, e))
                continue
            return RelayResponse(
                relay=relay.name,
                status_code=response.status_code,
                text=response.text,
                cookies=extract_cookies(response),
            )

        if not failures:
            raise FetchError('No header-forwarding proxy relay is configured', self.platform)
        raise self._chain_failure(target_url, failures)

    def _chain_failure(
        self,
        target_url: str,
        failures: list[tuple[str, FetchError]],
        league_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> FetchError:
        if not failures:
            return FetchError(f'No proxy relays configured for {target_url}', self.platform)
        summary = '; '.join(f'{name}: {error.message}' for name, error in failures)
        return FetchError(
            f'All proxy relays failed for {target_url} ({summary})',
            self.platform,
            league_id=league_id,
            team_id=team_id,
            status_code=failures[-1][1].status_code,
            timed_out=all(error.timed_out for _, error in failures),
        )
