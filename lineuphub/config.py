"""Platform configuration management."""

import os
from functools import lru_cache
from pathlib import Path

from .schemas import AppConfig
from .utils import load_json

CONFIG_ENV_VAR = 'LINEUPHUB_CONFIG'
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'data' / 'platform_config.json'


def get_config_path() -> Path:
    """Path of the active config file (``LINEUPHUB_CONFIG`` wins over the default)."""
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """
    Load platform configuration from data/platform_config.json.

    Configuration is cached after first load for performance.

    Returns:
        AppConfig object with validated settings

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If config file has invalid structure

    Example:
        from lineuphub.config import get_config
        config = get_config()
        print(f"Current season: {config.current_season}")
    """
    return load_json(get_config_path(), schema=AppConfig)


def get_request_timeout() -> float:
    """Get the per-request timeout in seconds."""
    return get_config().request_timeout_seconds


def get_session_path() -> Path:
    """Get the path of the persisted ESPN session record."""
    return Path(get_config().session_path).expanduser()


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the config file (or LINEUPHUB_CONFIG) changes during runtime
    and you need to reload it.
    """
    get_config.cache_clear()
