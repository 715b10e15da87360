"""Hardened Playwright browser sessions."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from playwright.async_api import Page, Request, Response, async_playwright

from tokscope.config import Config
from tokscope.proxy import proxy_settings, redact

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/125.0.0.0 Safari/537.36"
)

VIEWPORT = {"width": 1920, "height": 1080}

LAUNCH_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
    "--disable-features=IsolateOrigins,site-per-process",
    "--disable-web-security",
    "--window-size=1920,1080",
]

_EXTRA_HEADERS: dict[str, str] = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://www.tiktok.com/",
    "Origin": "https://www.tiktok.com",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Upgrade-Insecure-Requests": "1",
}

# Runs before any page script.
STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
"""


@dataclass
class BrowserSession:
    """One isolated browser page, valid only inside ``open_session``."""

    page: Page
    proxy: str | None = None


def launch_options(config: Config, proxy: str | None = None) -> dict[str, Any]:
    """Chromium launch kwargs for the given config and proxy."""
    options: dict[str, Any] = {
        "headless": config.headless,
        "args": list(LAUNCH_ARGS),
    }
    if proxy:
        options["proxy"] = proxy_settings(proxy)
    return options


def _attach_network_logging(page: Page) -> None:
    def on_request(request: Request) -> None:
        logger.debug("Request: %s %s", request.method, request.url)

    def on_response(response: Response) -> None:
        logger.debug("Response: %s %s", response.status, response.url)

    def on_request_failed(request: Request) -> None:
        logger.debug("Request failed: %s - %s", request.url, request.failure)

    page.on("request", on_request)
    page.on("response", on_response)
    page.on("requestfailed", on_request_failed)


@asynccontextmanager
async def open_session(
    config: Config, proxy: str | None = None,
) -> AsyncIterator[BrowserSession]:
    """Launch a browser, yield a ready page, and always close the browser."""
    if proxy:
        logger.debug("Launching browser with proxy: %s", redact(proxy))
    else:
        logger.debug("Launching browser without proxy")

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(**launch_options(config, proxy))
        try:
            context = await browser.new_context(
                viewport=VIEWPORT,
                user_agent=USER_AGENT,
                locale="en-US",
                extra_http_headers=_EXTRA_HEADERS,
            )
            await context.add_init_script(STEALTH_SCRIPT)
            page = await context.new_page()
            if config.debug:
                _attach_network_logging(page)
            yield BrowserSession(page=page, proxy=proxy)
        finally:
            await browser.close()
            logger.debug("Browser closed")


async def dump_debug_artifacts(
    page: Any, username: str, html: str, directory: str,
) -> list[Path]:
    """Save a full-page screenshot and the page HTML for later inspection."""
    out = Path(directory)
    out.mkdir(parents=True, exist_ok=True)
    stem = f"debug-{username}-{int(time.time() * 1000)}"
    written: list[Path] = []

    html_path = out / f"{stem}.html"
    html_path.write_text(html, encoding="utf-8")
    written.append(html_path)

    screenshot_path = out / f"{stem}.png"
    try:
        await page.screenshot(path=str(screenshot_path), full_page=True)
        written.append(screenshot_path)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Could not save screenshot: %s", exc)

    logger.debug("Debug artifacts saved: %s", ", ".join(map(str, written)))
    return written
