"""Configuration management for tokscope."""

from __future__ import annotations

import os
from dataclasses import dataclass

from tokscope.proxy import parse_proxy_list

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Scraper configuration."""

    debug: bool = False
    proxies: tuple[str, ...] = ()
    max_retries: int = 3
    retry_delay: float = 2.0
    navigation_timeout: float = 45.0
    settle_delay: float = 3.0
    extraction_retries: int = 5
    extraction_delay: float = 2.0
    scroll_delay: float = 1.5
    debug_dir: str = "."

    @property
    def headless(self) -> bool:
        return not self.debug

    @classmethod
    def from_env(cls) -> Config:
        return cls(
            debug=os.getenv("DEBUG_SCRAPER", "").strip().lower() in _TRUTHY,
            proxies=parse_proxy_list(os.getenv("PROXY_LIST", "")),
            max_retries=max(int(os.getenv("TOKSCOPE_MAX_RETRIES", "3")), 1),
            retry_delay=float(os.getenv("TOKSCOPE_RETRY_DELAY", "2")),
            navigation_timeout=float(os.getenv("TOKSCOPE_NAV_TIMEOUT", "45")),
            debug_dir=os.getenv("TOKSCOPE_DEBUG_DIR", "."),
        )
