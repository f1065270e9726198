"""Tests for browser launch and context helpers."""

from unittest.mock import AsyncMock, Mock

import pytest

from layoutguard.errors import BrowserLaunchError
from layoutguard.utils.browser import create_isolated_context, launch_browser


def _make_playwright():
    pw = Mock()
    for name in ("chromium", "firefox", "webkit"):
        engine = Mock()
        engine.launch = AsyncMock(return_value=f"{name}-browser")
        setattr(pw, name, engine)
    return pw


class TestLaunchBrowser:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["chromium", "firefox", "webkit"])
    async def test_selects_engine(self, name):
        pw = _make_playwright()
        browser = await launch_browser(pw, name)
        assert browser == f"{name}-browser"
        getattr(pw, name).launch.assert_awaited_once_with(headless=True)

    @pytest.mark.asyncio
    async def test_unsupported_browser(self):
        with pytest.raises(BrowserLaunchError, match="Unsupported"):
            await launch_browser(_make_playwright(), "opera")

    @pytest.mark.asyncio
    async def test_launch_failure_wrapped(self):
        pw = _make_playwright()
        pw.chromium.launch = AsyncMock(side_effect=RuntimeError("executable missing"))
        with pytest.raises(BrowserLaunchError, match="executable missing"):
            await launch_browser(pw, "chromium")


class TestCreateIsolatedContext:
    @pytest.mark.asyncio
    async def test_new_context_per_call(self):
        browser = AsyncMock()
        browser.new_context = AsyncMock(side_effect=["ctx1", "ctx2"])
        assert await create_isolated_context(browser) == "ctx1"
        assert await create_isolated_context(browser) == "ctx2"
        browser.new_context.assert_awaited_with()

    @pytest.mark.asyncio
    async def test_viewport_forwarded(self):
        browser = AsyncMock()
        await create_isolated_context(browser, viewport={"width": 800, "height": 600})
        assert browser.new_context.call_args.kwargs == {
            "viewport": {"width": 800, "height": 600}
        }
