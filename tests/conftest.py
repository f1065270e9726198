"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from layoutguard.models.config import LayoutGuardConfig
from layoutguard.store.artifact_store import ArtifactStore


# ============================================================================
# Image helpers
# ============================================================================


def make_image(
    size: tuple[int, int] = (10, 10),
    color: tuple[int, int, int] = (255, 255, 255),
    changed: int = 0,
    changed_color: tuple[int, int, int] = (0, 0, 0),
) -> Image.Image:
    """Solid image with the first ``changed`` pixels (row-major) recoloured."""
    img = Image.new("RGBA", size, color + (255,))
    width = size[0]
    for n in range(changed):
        img.putpixel((n % width, n // width), changed_color + (255,))
    return img


def make_png(**kwargs) -> bytes:
    buf = io.BytesIO()
    make_image(**kwargs).save(buf, format="PNG")
    return buf.getvalue()


# ============================================================================
# Playwright fakes
# ============================================================================


def make_mock_page(image: bytes | None = None):
    """AsyncMock page whose screenshots return ``image``."""
    image = image if image is not None else make_png()
    page = AsyncMock()
    page.url = "about:blank"
    page.screenshot = AsyncMock(return_value=image)
    locator = Mock()
    locator.screenshot = AsyncMock(return_value=image)
    page.locator = Mock(return_value=locator)
    return page


def make_mock_browser(page=None):
    """AsyncMock browser handing out one context that returns ``page``."""
    context = AsyncMock()
    context.new_page = AsyncMock(return_value=page or make_mock_page())
    browser = AsyncMock()
    browser.new_context = AsyncMock(return_value=context)
    return browser, context


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def config() -> LayoutGuardConfig:
    return LayoutGuardConfig(
        testMatch=["**/*.spec.py"],
        baseUrl="http://localhost:3000",
        diffThreshold=0.01,
        pixelThreshold=0.01,
    )


@pytest.fixture
def store(tmp_path: Path) -> ArtifactStore:
    s = ArtifactStore(tmp_path)
    s.ensure_directories()
    return s


def write_spec(root: Path, relpath: str, name: str, selector: str | None = None) -> Path:
    """Write a minimal spec file defining a test called ``name``."""
    path = root / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [f"name = {name!r}", ""]
    if selector is not None:
        lines += [f"selector = {selector!r}", ""]
    lines += ["async def scenario(page):", "    await page.goto('/')", ""]
    path.write_text("\n".join(lines))
    return path
