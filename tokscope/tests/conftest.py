"""Shared fakes: an in-memory page and a session factory that counts sessions."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import pytest

from tokscope.browser import BrowserSession
from tokscope.config import Config


def universal_html(data: Any) -> str:
    """Profile HTML with *data* in the rehydration script tag."""
    return (
        "<html><head>"
        '<script id="__UNIVERSAL_DATA_FOR_REHYDRATION__" type="application/json">'
        f"{json.dumps(data)}"
        "</script></head><body></body></html>"
    )


def user_detail_state(
    unique_id: str = "alice",
    nickname: str = "Alice",
    stats: dict[str, Any] | None = None,
    items: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    detail: dict[str, Any] = {
        "userInfo": {
            "user": {"uniqueId": unique_id, "nickname": nickname},
            "stats": stats or {"followerCount": 10, "heartCount": 20, "videoCount": 3},
        },
    }
    if items is not None:
        detail["itemList"] = items
    return {"__DEFAULT_SCOPE__": {"webapp.user-detail": detail}}


class FakePage:
    """Enough of a Playwright page for navigation and extraction."""

    def __init__(
        self,
        *,
        content: str | list[str] = "<html></html>",
        title: str = "TikTok",
        text: str = "",
        goto_error: Exception | None = None,
        live_state: Any = None,
        dom: dict[str, Any] | None = None,
    ) -> None:
        self._contents = [content] if isinstance(content, str) else list(content)
        self._title = title
        self._text = text
        self.goto_error = goto_error
        self.live_state = live_state
        self.dom = dom
        self.visited: list[str] = []
        self.scrolls = 0
        self.screenshots: list[str] = []

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.visited.append(url)
        if self.goto_error is not None:
            raise self.goto_error

    async def title(self) -> str:
        return self._title

    async def content(self) -> str:
        if len(self._contents) > 1:
            return self._contents.pop(0)
        return self._contents[0]

    async def inner_text(self, selector: str) -> str:
        return self._text

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if "scrollTo" in script:
            self.scrolls += 1
            return None
        if "nameSelectors" in script:
            if self.dom is None:
                raise RuntimeError("no DOM")
            return self.dom
        if "__UNIVERSAL_DATA_FOR_REHYDRATION__" in script:
            return self.live_state
        return None

    async def screenshot(self, path: str, full_page: bool = False) -> bytes:
        Path(path).write_bytes(b"png")
        self.screenshots.append(path)
        return b"png"


class FakeSessions:
    """Session factory handing out pages in order, counting opens and closes."""

    def __init__(self, *pages: FakePage) -> None:
        self.pages = list(pages)
        self.opened = 0
        self.closed = 0
        self.proxies: list[str | None] = []

    @asynccontextmanager
    async def __call__(self, config: Config, proxy: str | None = None):
        page = self.pages[min(self.opened, len(self.pages) - 1)]
        self.opened += 1
        self.proxies.append(proxy)
        try:
            yield BrowserSession(page=page, proxy=proxy)
        finally:
            self.closed += 1


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(
        max_retries=3,
        retry_delay=2.0,
        settle_delay=0.0,
        extraction_retries=2,
        extraction_delay=0.0,
        scroll_delay=0.0,
        debug_dir=str(tmp_path),
    )
