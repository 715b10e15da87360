"""tokscope: scrape public TikTok account metrics with a headless browser."""

from tokscope.config import Config
from tokscope.errors import ErrorKind, ScrapeError, ScrapeExhausted
from tokscope.models import AccountSnapshot
from tokscope.proxy import ProxyPool
from tokscope.scraper import TikTokScraper, scrape_account

__version__ = "0.1.0"

__all__ = [
    "AccountSnapshot",
    "Config",
    "ErrorKind",
    "ProxyPool",
    "ScrapeError",
    "ScrapeExhausted",
    "TikTokScraper",
    "scrape_account",
]
