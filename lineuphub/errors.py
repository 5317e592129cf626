"""Error taxonomy for platform adapters and the dispatcher."""


class LineupHubError(Exception):
    """Base exception for lineuphub errors."""

    def __init__(self, message: str, platform: str | None = None):
        super().__init__(message)
        self.message = message
        self.platform = platform


class AuthError(LineupHubError):
    """Bad credentials, an expired session, or a login page served instead of data."""


class NotAuthenticatedError(AuthError):
    """Raised when an operation needs a session and none is active."""


class CredentialsError(LineupHubError):
    """Raised when required credential fields are missing."""


class FetchError(LineupHubError):
    """Network failure, timeout, non-2xx status, or proxy relay failure."""

    def __init__(
        self,
        message: str,
        platform: str | None = None,
        *,
        league_id: str | None = None,
        team_id: str | None = None,
        status_code: int | None = None,
        timed_out: bool = False,
    ):
        super().__init__(message, platform)
        self.league_id = league_id
        self.team_id = team_id
        self.status_code = status_code
        self.timed_out = timed_out

    def __str__(self) -> str:
        text = self.message
        if self.league_id and self.team_id:
            text += f' (league {self.league_id}, team {self.team_id})'
        elif self.league_id:
            text += f' (league {self.league_id})'
        return f'[{self.platform}] {text}' if self.platform else text


class ParseError(LineupHubError):
    """No parse strategy produced usable data."""


class NotFoundError(LineupHubError):
    """Requested team or league is absent from an otherwise successful fetch."""


class UnsupportedPlatformError(LineupHubError):
    """Unknown or unsupported platform tag."""
