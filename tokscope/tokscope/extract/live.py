"""Extractor that reads state straight from the running page."""

from __future__ import annotations

from typing import Any

from tokscope.extract.base import StateExtractor
from tokscope.models import RawPageState
from tokscope.shapes import resolve_state

# JSON round-trip drops functions and cycles the page may hang on these objects.
_READ_GLOBALS_JS = """
() => {
    const pick = (value) => {
        if (!value) return null;
        try { return JSON.parse(JSON.stringify(value)); } catch (e) { return null; }
    };
    return pick(window.__UNIVERSAL_DATA_FOR_REHYDRATION__) || pick(window.SIGI_STATE);
}
"""


class LivePageExtractor(StateExtractor):
    """Evaluate inside the page and read the bootstrap globals.

    The most reliable source, but it needs a live session, so it runs last.
    """

    name = "live-page"

    async def extract(self, page: Any, content: str) -> RawPageState | None:
        if page is None:
            return None
        data = await page.evaluate(_READ_GLOBALS_JS)
        return resolve_state(data)
