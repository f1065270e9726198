"""Navigation wrapper that resolves root-relative URLs against the base URL."""

from __future__ import annotations

from typing import Any

from playwright.async_api import Page


def resolve_url(base_url: str, url: str) -> str:
    """Prefix root-relative paths with ``base_url``; leave other URLs alone."""
    if url.startswith("/"):
        base = base_url[:-1] if base_url.endswith("/") else base_url
        return base + url
    return url


class BaseUrlPage:
    """Delegating proxy around a Playwright page.

    Only ``goto`` is intercepted; every other attribute resolves on the
    wrapped page, which is never modified. The wrapper is not a ``Page``
    instance, so ``expect()`` page assertions take ``.page`` instead.
    """

    def __init__(self, page: Page, base_url: str):
        self._page = page
        self._base_url = base_url

    @property
    def page(self) -> Page:
        return self._page

    async def goto(self, url: str, **kwargs: Any):
        return await self._page.goto(resolve_url(self._base_url, url), **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._page, name)
