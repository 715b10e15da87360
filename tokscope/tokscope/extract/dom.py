"""Visible-DOM reader used when no structured state could be recovered."""

from __future__ import annotations

import logging
from typing import Any

from tokscope.models import DomSnapshot

logger = logging.getLogger(__name__)

NAME_SELECTORS: tuple[str, ...] = (
    '[data-e2e="user-title"]',
    '[data-e2e="user-name"]',
    "h1",
    '[class*="username"]',
)

POST_ITEM_SELECTOR = '[data-e2e="user-post-item"]'

_READ_DOM_JS = """
([nameSelectors, postSelector]) => {
    let displayName = null;
    for (const selector of nameSelectors) {
        const el = document.querySelector(selector);
        if (el && el.textContent && el.textContent.trim()) {
            displayName = el.textContent.trim();
            break;
        }
    }
    return {
        display_name: displayName,
        text: (document.body && document.body.innerText) || "",
        post_count: document.querySelectorAll(postSelector).length,
    };
}
"""


async def read_dom(page: Any) -> DomSnapshot | None:
    """Read display name, visible text and post count; ``None`` on failure."""
    try:
        raw = await page.evaluate(_READ_DOM_JS, [list(NAME_SELECTORS), POST_ITEM_SELECTOR])
        return DomSnapshot.model_validate(raw)
    except Exception as exc:  # noqa: BLE001
        logger.debug("DOM extraction failed: %s", exc)
        return None
