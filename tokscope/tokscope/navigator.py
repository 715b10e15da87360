"""Drive a session to a profile page and classify what went wrong."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from tokscope.browser import BrowserSession
from tokscope.config import Config
from tokscope.errors import (
    ConnectionRefused,
    ConnectionTimedOut,
    GenericNetworkError,
    NavigationTimeout,
    ProfileNotFound,
    ProfilePrivate,
    ProxyConnectionFailed,
    ScrapeError,
    TunnelConnectionFailed,
)
from tokscope.extract import Sleep
from tokscope.proxy import redact

logger = logging.getLogger(__name__)

PROFILE_URL = "https://www.tiktok.com/@{username}"

_NET_ERROR_RE = re.compile(r"net::ERR_(\w+)")

_NOT_FOUND_TITLE_MARKERS = ("404", "Not Found")
_NOT_FOUND_TEXT_MARKERS = ("couldn't find this account", "couldn’t find this account")
_PRIVATE_TEXT_MARKERS = ("this account is private",)


@dataclass(frozen=True)
class PageLoad:
    """A successfully loaded page, ready for extraction."""

    url: str
    title: str
    content: str
    text: str = ""


def profile_url(username: str) -> str:
    return PROFILE_URL.format(username=username)


def classify_navigation_error(
    message: str, proxy: str | None = None, *, username: str | None = None,
) -> ScrapeError | None:
    """Translate a browser navigation error message into the taxonomy.

    Returns ``None`` when the message matches no known category.
    """
    shown = redact(proxy) if proxy else None

    if m := _NET_ERROR_RE.search(message):
        code = m.group(1)
        logger.debug("Network error code: %s", code)

        if code == "PROXY_CONNECTION_FAILED":
            return ProxyConnectionFailed(
                f"Proxy connection failed: {shown}. Try a different proxy or disable proxy.",
                username=username,
            )
        if code == "TUNNEL_CONNECTION_FAILED":
            return TunnelConnectionFailed(
                f"Proxy tunnel connection failed: {shown}. Try a different proxy or disable proxy.",
                username=username,
            )
        if code in ("TIMED_OUT", "CONNECTION_TIMED_OUT"):
            hint = "Try a different proxy." if proxy else "Consider using a proxy."
            return ConnectionTimedOut(
                f"Connection timed out. TikTok may be blocking requests. {hint}",
                username=username,
            )
        if code == "CONNECTION_REFUSED":
            hint = "Proxy may be down or blocked." if proxy else "Check your internet connection."
            return ConnectionRefused(f"Connection refused. {hint}", username=username)

        hint = (
            f"Proxy {shown} may be blocked or invalid."
            if proxy
            else "Check your internet connection or try using a proxy."
        )
        return GenericNetworkError(
            f"Network error ({code}): Unable to reach TikTok. {hint}",
            code=code,
            username=username,
        )

    if "Timeout" in message or "Navigation timeout" in message:
        hint = "Proxy may be slow." if proxy else "Try using a proxy or check your connection."
        return NavigationTimeout(
            f"Navigation timeout: TikTok took too long to respond. {hint}",
            username=username,
        )

    return None


def _title_says_not_found(title: str, username: str) -> bool:
    # Profile titles read "<nickname> (@<username>) | TikTok"; the nickname is free text.
    if re.search(rf"\(@{re.escape(username)}\)", title, flags=re.IGNORECASE):
        return False
    # Usernames such as "user404" must not read as a 404 title.
    bare_title = re.sub(re.escape(username), "", title, flags=re.IGNORECASE)
    return any(marker in bare_title for marker in _NOT_FOUND_TITLE_MARKERS)


def check_page(title: str, text: str, username: str) -> None:
    """Raise the terminal errors a loaded page can signal.

    Only the title and the visible text are inspected: the raw HTML carries
    localisation bundles that mention these phrases on every profile.
    """
    lowered = text.lower()
    if _title_says_not_found(title, username) or any(
        marker in lowered for marker in _NOT_FOUND_TEXT_MARKERS
    ):
        raise ProfileNotFound(
            f"Profile not found: @{username} does not exist", username=username,
        )
    if any(marker in lowered for marker in _PRIVATE_TEXT_MARKERS):
        raise ProfilePrivate(f"Profile @{username} is private", username=username)


async def visible_text(page: Page) -> str:
    try:
        return await page.inner_text("body")
    except PlaywrightError as exc:
        logger.debug("Could not read visible text: %s", exc)
        return ""


async def navigate(
    session: BrowserSession,
    url: str,
    config: Config,
    *,
    username: str | None = None,
    sleep: Sleep = asyncio.sleep,
) -> PageLoad:
    """Load *url*, let client-side rendering settle, and vet the result."""
    page = session.page
    logger.debug("Navigating to: %s", url)
    try:
        await page.goto(
            url,
            wait_until="networkidle",
            timeout=config.navigation_timeout * 1000,
        )
    except PlaywrightError as exc:
        logger.debug("Navigation error: %s", exc)
        classified = classify_navigation_error(str(exc), session.proxy, username=username)
        if classified is None:
            if isinstance(exc, PlaywrightTimeoutError):
                classified = NavigationTimeout(str(exc), username=username)
            else:
                raise
        raise classified from exc

    logger.debug("Navigation completed; waiting %.1fs for rendering", config.settle_delay)
    await sleep(config.settle_delay)

    title = await page.title()
    content = await page.content()
    text = await visible_text(page)
    logger.debug("Page title %r, content length %d", title, len(content))

    check_page(title, text, username or url)
    return PageLoad(url=url, title=title, content=content, text=text)
