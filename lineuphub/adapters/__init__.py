from .base import PlatformAdapter
from .espn import ESPNAdapter
from .sleeper import SleeperAdapter
from .yahoo import YahooAdapter

__all__ = [
    'PlatformAdapter',
    'ESPNAdapter',
    'SleeperAdapter',
    'YahooAdapter',
]
