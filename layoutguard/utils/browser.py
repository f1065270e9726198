"""Browser helpers — engine selection and isolated per-test contexts."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright

from layoutguard.errors import BrowserLaunchError

logger = logging.getLogger(__name__)

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


async def launch_browser(
    playwright: Playwright, browser_name: str = "chromium", headless: bool = True,
) -> Browser:
    """Launch the configured Playwright engine."""
    if browser_name not in SUPPORTED_BROWSERS:
        raise BrowserLaunchError(f"Unsupported browser: {browser_name}")
    engine = getattr(playwright, browser_name)
    try:
        return await engine.launch(headless=headless)
    except Exception as e:
        raise BrowserLaunchError(f"Failed to launch {browser_name}: {e}") from e


async def create_isolated_context(
    browser: Browser, viewport: Optional[dict] = None,
) -> BrowserContext:
    """Create a fresh context with its own cookies and storage."""
    context_kwargs: dict = {}
    if viewport:
        context_kwargs["viewport"] = viewport
    return await browser.new_context(**context_kwargs)
