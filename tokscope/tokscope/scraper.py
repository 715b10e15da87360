"""TikTok profile scraper: retries, proxy rotation and the attempt pipeline."""

from __future__ import annotations

import asyncio
import logging
import random
import re
from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any

from tokscope.browser import BrowserSession, dump_debug_artifacts, open_session
from tokscope.config import Config
from tokscope.errors import BotDetectionSuspected, ScrapeError, ScrapeExhausted
from tokscope.extract import Sleep, StateExtractor, extract_state, read_dom
from tokscope.models import AccountSnapshot
from tokscope.navigator import PageLoad, navigate, profile_url
from tokscope.normalize import normalize
from tokscope.proxy import ProxyPool, redact

logger = logging.getLogger(__name__)

SessionFactory = Callable[[Config, str | None], AbstractAsyncContextManager[BrowserSession]]

_BOT_WALL_RE = re.compile(
    r"captcha|verify to continue|security check|are you a robot|not a robot",
    re.IGNORECASE,
)


def clean_username(username: str) -> str:
    name = username.strip().removeprefix("@").strip()
    if not name:
        raise ValueError("username must not be empty")
    return name


def looks_like_bot_wall(load: PageLoad) -> bool:
    """Heuristic for CAPTCHA / verification interstitials."""
    return bool(_BOT_WALL_RE.search(load.title) or _BOT_WALL_RE.search(load.text))


class TikTokScraper:
    """Scrape public TikTok profiles into ``AccountSnapshot`` records.

    Every attempt opens its own browser session and picks its own proxy;
    nothing is shared between calls except the read-only proxy pool.
    """

    def __init__(
        self,
        config: Config | None = None,
        proxy_pool: ProxyPool | None = None,
        *,
        session_factory: SessionFactory = open_session,
        extractors: Sequence[StateExtractor] | None = None,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or Config.from_env()
        self.proxy_pool = proxy_pool if proxy_pool is not None else ProxyPool(self.config.proxies)
        self._session_factory = session_factory
        self._extractors = extractors
        self._sleep = sleep
        self._rng = rng

        if not self.proxy_pool:
            logger.info("No proxies configured; connecting directly (TikTok may block requests)")

    async def scrape(self, username: str) -> AccountSnapshot:
        """Scrape *username*, retrying transient failures.

        Raises the terminal ``ScrapeError`` subclasses immediately and
        ``ScrapeExhausted`` once every attempt has failed.
        """
        username = clean_username(username)
        attempts = max(self.config.max_retries, 1)
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            proxy = self.proxy_pool.pick(self._rng)
            logger.info(
                "Scrape attempt %d/%d for @%s (proxy: %s)",
                attempt, attempts, username, redact(proxy) if proxy else "none",
            )
            try:
                return await self._attempt(username, proxy)
            except ScrapeError as exc:
                if not exc.retryable:
                    logger.info("Not retrying @%s: %s", username, exc)
                    raise
                last_error = exc
            except Exception as exc:  # noqa: BLE001
                last_error = exc

            logger.warning(
                "Scrape attempt %d/%d for @%s failed: %s",
                attempt, attempts, username, last_error,
            )
            if attempt < attempts:
                logger.debug("Retrying in %.1fs...", self.config.retry_delay)
                await self._sleep(self.config.retry_delay)

        logger.warning("All scraping attempts failed for @%s", username)
        raise ScrapeExhausted(username, attempts, last_error) from last_error

    async def _attempt(self, username: str, proxy: str | None) -> AccountSnapshot:
        config = self.config
        async with self._session_factory(config, proxy) as session:
            load = await navigate(
                session, profile_url(username), config, username=username, sleep=self._sleep,
            )

            state = await extract_state(
                session.page,
                load.content,
                extractors=self._extractors,
                retries=config.extraction_retries,
                delay=config.extraction_delay,
                scroll_delay=config.scroll_delay,
                sleep=self._sleep,
            )
            if state is not None:
                return normalize(state, username)

            logger.debug("Embedded state not found for @%s; falling back to DOM", username)
            snapshot = normalize(None, username, await read_dom(session.page))
            # A verification page still has headings the DOM reader picks up as a name.
            if not snapshot.has_metrics() and looks_like_bot_wall(load):
                if config.debug:
                    await _dump(session.page, username, load.content, config.debug_dir)
                raise BotDetectionSuspected(
                    f"TikTok served a verification page for @{username}",
                    username=username,
                )
            if snapshot.is_blank():
                if config.debug:
                    await _dump(session.page, username, load.content, config.debug_dir)
                logger.warning("Returning minimal data for @%s", username)
            return snapshot


async def _dump(page: Any, username: str, html: str, directory: str) -> None:
    try:
        await dump_debug_artifacts(page, username, html, directory)
    except OSError as exc:
        logger.debug("Could not save debug artifacts: %s", exc)


async def scrape_account(username: str, config: Config | None = None) -> AccountSnapshot:
    """Scrape one profile with configuration taken from the environment."""
    return await TikTokScraper(config).scrape(username)
