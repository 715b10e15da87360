"""Tests for browser launch options and debug artifacts."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakePage
from tokscope.browser import LAUNCH_ARGS, dump_debug_artifacts, launch_options
from tokscope.config import Config


class TestLaunchOptions:
    def test_headless_by_default(self) -> None:
        options = launch_options(Config())
        assert options["headless"] is True
        assert "proxy" not in options
        assert "--disable-blink-features=AutomationControlled" in options["args"]
        assert "--window-size=1920,1080" in options["args"]

    def test_debug_is_headed(self) -> None:
        assert launch_options(Config(debug=True))["headless"] is False

    def test_proxy_settings(self) -> None:
        options = launch_options(Config(), "http://u:p@1.2.3.4:8000")
        assert options["proxy"] == {"server": "http://1.2.3.4:8000", "username": "u", "password": "p"}

    def test_args_are_a_copy(self) -> None:
        launch_options(Config())["args"].append("--extra")
        assert "--extra" not in LAUNCH_ARGS


class TestDumpDebugArtifacts:
    @pytest.mark.asyncio
    async def test_writes_html_and_screenshot(self, tmp_path: Path) -> None:
        page = FakePage()
        out = tmp_path / "dumps"

        written = await dump_debug_artifacts(page, "erin", "<html/>", str(out))

        assert [p.suffix for p in written] == [".html", ".png"]
        assert written[0].read_text(encoding="utf-8") == "<html/>"
        assert written[0].name.startswith("debug-erin-")
        assert page.screenshots == [str(written[1])]

    @pytest.mark.asyncio
    async def test_screenshot_failure_keeps_html(self, tmp_path: Path) -> None:
        class NoScreenshot(FakePage):
            async def screenshot(self, path: str, full_page: bool = False) -> bytes:
                raise RuntimeError("closed")

        written = await dump_debug_artifacts(NoScreenshot(), "erin", "<html/>", str(tmp_path))

        assert [p.suffix for p in written] == [".html"]
