"""ESPN authentication session: in-memory state, durable store, expiry clock."""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .config import get_config, get_session_path
from .errors import NotAuthenticatedError
from .models import Platform, PlatformConnection
from .schemas import SessionRecord
from .utils import load_json_safe, save_json

logger = logging.getLogger('lineuphub.session')

# Owner read/write only; the record holds the session cookie
SESSION_FILE_MODE = 0o600


class SessionStore:
    """Persists one SessionRecord as a JSON file."""

    def __init__(self, path: Optional[Path | str] = None):
        self.path = Path(path).expanduser() if path else get_session_path()

    def load(self) -> Optional[SessionRecord]:
        return load_json_safe(self.path, schema=SessionRecord)

    def save(self, record: SessionRecord) -> None:
        save_json(self.path, record, mode=SESSION_FILE_MODE)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class ESPNSessionManager:
    """
    Holds the ESPN session and enforces its expiry.

    The persisted record is read once at construction. A session is valid
    until ``clock() > expires_at``; the first check past that point drops the
    session and clears the store, later checks find nothing to clear.

    Overlapping ``start`` calls are not serialized: the last one wins.
    Callers must not run concurrent logins.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        ttl_days: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store or SessionStore()
        self.ttl_seconds = (ttl_days if ttl_days is not None else get_config().session_ttl_days) * 86400
        self._clock = clock
        self._session: Optional[SessionRecord] = self.store.load()
        if self._session:
            logger.debug(f'Loaded ESPN session for {self._session.username}')

    @property
    def username(self) -> Optional[str]:
        return self._session.username if self._session else None

    def is_authenticated(self) -> bool:
        if self._session is None:
            return False
        if self._clock() > self._session.expires_at:
            logger.info(f'ESPN session for {self._session.username} expired')
            self._session = None
            self.store.clear()
            return False
        return True

    def start(self, cookie: str, username: str) -> SessionRecord:
        """Record a fresh session and persist it."""
        record = SessionRecord(
            cookie=cookie,
            username=username,
            expires_at=self._clock() + self.ttl_seconds,
        )
        self._session = record
        self.store.save(record)
        logger.info(f'ESPN session started for {username}')
        return record

    def require(self) -> SessionRecord:
        """Return the active session or raise NotAuthenticatedError."""
        if not self.is_authenticated():
            raise NotAuthenticatedError(
                'Not authenticated with ESPN. Log in before fetching team pages.',
                Platform.ESPN.value,
            )
        return self._session  # type: ignore[return-value]

    def logout(self) -> None:
        self._session = None
        self.store.clear()

    def to_connection(self) -> PlatformConnection:
        if not self.is_authenticated():
            return PlatformConnection(platform=Platform.ESPN, is_connected=False)
        record = self._session
        return PlatformConnection(
            platform=Platform.ESPN,
            is_connected=True,
            access_token=record.cookie,
            expires_at=datetime.fromtimestamp(record.expires_at, tz=timezone.utc),
        )
