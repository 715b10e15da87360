"""Ordered extraction strategies for the embedded page state."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from tokscope.extract.base import StateExtractor
from tokscope.extract.dom import read_dom
from tokscope.extract.html import (
    InlineAssignmentExtractor,
    ScriptScanExtractor,
    ScriptTagExtractor,
)
from tokscope.extract.live import LivePageExtractor
from tokscope.models import RawPageState

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

_SCROLL_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"
_SCROLL_TOP_JS = "() => window.scrollTo(0, 0)"


def default_extractors() -> list[StateExtractor]:
    """Strategies in priority order; the live page read is last."""
    return [
        ScriptTagExtractor(),
        InlineAssignmentExtractor(),
        ScriptScanExtractor(),
        LivePageExtractor(),
    ]


async def run_chain(
    extractors: Sequence[StateExtractor], page: Any, content: str,
) -> RawPageState | None:
    """Run each strategy in turn; the first non-``None`` result wins."""
    for extractor in extractors:
        try:
            state = await extractor.extract(page, content)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Extractor %s failed: %s", extractor.name, exc)
            continue
        if state is not None:
            logger.debug("State recovered by %s", extractor.name)
            return state
    return None


async def _scroll(page: Any, sleep: Sleep, delay: float) -> None:
    """Scroll to the bottom and back to trigger lazy-loaded content."""
    try:
        await page.evaluate(_SCROLL_BOTTOM_JS)
        await sleep(delay)
        await page.evaluate(_SCROLL_TOP_JS)
        await sleep(delay)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Error scrolling page: %s", exc)


async def extract_state(
    page: Any,
    content: str,
    *,
    extractors: Sequence[StateExtractor] | None = None,
    retries: int = 5,
    delay: float = 2.0,
    scroll_delay: float = 1.5,
    sleep: Sleep = asyncio.sleep,
) -> RawPageState | None:
    """Recover the embedded state from *content* and the live *page*.

    Never raises. When the first pass finds nothing, up to *retries* further
    rounds scroll the page, wait *delay* seconds, re-read the HTML and run
    the chain again.
    """
    chain = list(extractors) if extractors is not None else default_extractors()

    state = await run_chain(chain, page, content)
    for attempt in range(1, retries + 1):
        if state is not None:
            break
        logger.debug("State extraction retry %d/%d", attempt, retries)
        await _scroll(page, sleep, scroll_delay)
        await sleep(delay)
        try:
            content = await page.content()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Could not re-read page content: %s", exc)
            continue
        state = await run_chain(chain, page, content)

    if state is None:
        logger.debug("Embedded state not found in page")
    return state


__all__: list[str] = [
    "InlineAssignmentExtractor",
    "LivePageExtractor",
    "ScriptScanExtractor",
    "ScriptTagExtractor",
    "Sleep",
    "StateExtractor",
    "default_extractors",
    "extract_state",
    "read_dom",
    "run_chain",
]
