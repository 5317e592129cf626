"""Pydantic schemas for configuration and persisted state."""

from pydantic import BaseModel, Field, field_validator


class ProxyRelay(BaseModel):
    """A CORS relay endpoint; ``{url}`` in the template receives the encoded target."""

    name: str = Field(..., min_length=1)
    url_template: str
    forwards_headers: bool = False

    @field_validator('url_template')
    @classmethod
    def validate_template(cls, v):
        """Ensure the template has a slot for the target URL."""
        if '{url}' not in v:
            raise ValueError(f'Proxy url_template must contain {{url}}: {v}')
        return v

    class Config:
        extra = 'forbid'


class ESPNSettings(BaseModel):
    """ESPN scraping settings."""

    login_url: str = 'https://www.espn.com/login'
    team_page_url: str = 'https://fantasy.espn.com/football/team'
    league_page_url: str = 'https://fantasy.espn.com/football/league'
    token_input_names: list[str] = Field(
        default_factory=lambda: ['csrf_token', '_csrf', 'csrfToken', 'authenticity_token']
    )
    placeholder_on_fetch_failure: bool = True
    probe_names: list[str] = Field(default_factory=list)
    probe_window: int = Field(default=600, ge=50, le=5000)

    class Config:
        extra = 'forbid'


class SleeperSettings(BaseModel):
    """Sleeper API settings."""

    base_url: str = 'https://api.sleeper.app/v1'

    class Config:
        extra = 'forbid'


class YahooSettings(BaseModel):
    """Yahoo API and OAuth settings."""

    base_url: str = 'https://fantasysports.yahooapis.com/fantasy/v2'
    auth_url: str = 'https://api.login.yahoo.com/oauth2/request_auth'
    token_url: str = 'https://api.login.yahoo.com/oauth2/get_token'
    scope: str = 'fspt-w'

    class Config:
        extra = 'forbid'


class AppConfig(BaseModel):
    """Top-level configuration."""

    current_season: int = Field(..., ge=2000, le=2100)
    request_timeout_seconds: float = Field(default=8.0, gt=0, lt=10)
    session_ttl_days: int = Field(default=7, ge=1, le=90)
    session_path: str = '~/.lineuphub/espn_session.json'
    current_week: int = Field(default=1, ge=1, le=18)
    owner_id: str = 'user-1'
    proxies: list[ProxyRelay] = Field(default_factory=list)
    espn: ESPNSettings = Field(default_factory=ESPNSettings)
    sleeper: SleeperSettings = Field(default_factory=SleeperSettings)
    yahoo: YahooSettings = Field(default_factory=YahooSettings)

    @field_validator('proxies')
    @classmethod
    def validate_proxy_names(cls, v):
        """Ensure relay names are unique."""
        names = [p.name for p in v]
        if len(names) != len(set(names)):
            raise ValueError(f'Duplicate proxy names: {names}')
        return v

    class Config:
        extra = 'forbid'


class SessionRecord(BaseModel):
    """Persisted ESPN session: cookie string, username, expiry (epoch seconds)."""

    cookie: str
    username: str
    expires_at: float

    class Config:
        extra = 'forbid'
