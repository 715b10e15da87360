"""Proxy pool and browser proxy settings."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


def parse_proxy_list(raw: str) -> tuple[str, ...]:
    """Split a comma-separated proxy list, dropping blanks."""
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class ProxyPool:
    """Read-only set of proxy addresses; an empty pool means direct connection."""

    addresses: tuple[str, ...] = ()

    @classmethod
    def from_string(cls, raw: str) -> ProxyPool:
        return cls(parse_proxy_list(raw))

    def __len__(self) -> int:
        return len(self.addresses)

    def pick(self, rng: random.Random | None = None) -> str | None:
        """Return a random address, or ``None`` when the pool is empty."""
        if not self.addresses:
            logger.debug(
                "No proxies configured. Scraping without proxy (may be blocked by TikTok)"
            )
            return None
        proxy = (rng or random).choice(self.addresses)
        logger.debug("Using proxy: %s", redact(proxy))
        return proxy


def proxy_settings(address: str) -> dict[str, str]:
    """Translate a proxy address into Playwright's ``proxy`` launch option.

    ``user:pass@host:port`` credentials are split out because Chromium does
    not accept them inline in the server URL.
    """
    parts = urlsplit(address if "://" in address else f"http://{address}")
    server = f"{parts.scheme}://{parts.hostname}"
    if parts.port:
        server += f":{parts.port}"
    settings = {"server": server}
    if parts.username:
        settings["username"] = parts.username
    if parts.password:
        settings["password"] = parts.password
    return settings


def redact(address: str) -> str:
    """Hide proxy credentials for logs and error messages."""
    if "@" not in address:
        return address
    scheme, sep, rest = address.rpartition("://")
    host = rest.rsplit("@", 1)[1]
    return f"{scheme}{sep}***@{host}"
