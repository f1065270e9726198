"""Test runner — drives one isolated browser session per layout test."""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any, Callable, Optional

from playwright.async_api import Browser, BrowserContext, Page

from layoutguard.comparator.comparator import Comparator
from layoutguard.errors import LayoutGuardError
from layoutguard.models.config import LayoutGuardConfig
from layoutguard.models.layout_test import LayoutTest
from layoutguard.models.test_result import RunMode, TestResult
from layoutguard.store.artifact_store import ArtifactStore
from layoutguard.utils.browser import create_isolated_context
from layoutguard.viewer import DiffViewer, show_diff

from .navigation import BaseUrlPage

logger = logging.getLogger(__name__)


def exceeds_threshold(mismatch_ratio: float, diff_threshold: float) -> bool:
    """A test fails only when the ratio is strictly above the threshold."""
    return mismatch_ratio > diff_threshold


async def run_scenario(scenario: Callable[..., Any], page: Any) -> None:
    """Run an async scenario; a plain function would leave page calls un-awaited."""
    outcome = scenario(page)
    if not inspect.isawaitable(outcome):
        raise TypeError("scenario must be an 'async def' function")
    await outcome


async def capture_image(page: Page, selector: Optional[str] = None) -> bytes:
    """Screenshot the selector's element, or the full scrollable page."""
    if selector:
        return await page.locator(selector).screenshot()
    return await page.screenshot(full_page=True)


class TestRunner:
    """Runs layout tests one at a time against a shared browser.

    Per test: open context -> run scenario -> capture -> compare (check) or
    promote (approve) -> close context. Anything that goes wrong inside a
    test is turned into that test's outcome.
    """

    __test__ = False

    def __init__(
        self,
        browser: Browser,
        store: ArtifactStore,
        config: LayoutGuardConfig,
        viewer: DiffViewer | None = None,
        show_diff: bool = False,
    ):
        self.browser = browser
        self.store = store
        self.config = config
        self.comparator = Comparator(store)
        self.viewer = viewer
        self.show_diff = show_diff

    async def run(self, test: LayoutTest, mode: RunMode) -> TestResult:
        start = time.time()
        slug = test.slug
        logger.debug("  Test %s -> slug '%s' (%s)", test.name, slug, mode.value)

        context: BrowserContext | None = None
        try:
            context = await create_isolated_context(self.browser)
            page = await context.new_page()
            logger.debug("  Session open for %s", test.name)

            try:
                await run_scenario(test.scenario, BaseUrlPage(page, self.config.base_url))
            except Exception as e:
                logger.error("Error running test '%s': %s", test.name, e)
                return self._result(test, mode, "error", f"Scenario failed: {e}", start)

            image = await capture_image(page, test.selector)
            logger.debug("  Captured %d bytes for %s", len(image), test.name)

            if mode == RunMode.APPROVE:
                return self._approve(test, image, start)
            return self._check(test, image, start)

        except LayoutGuardError as e:
            logger.error("Test '%s' could not be compared: %s", test.name, e)
            return self._result(test, mode, "error", str(e), start)
        except Exception as e:
            logger.error("Test '%s' crashed: %s", test.name, e)
            return self._result(test, mode, "error", str(e), start)
        finally:
            if context is not None:
                await self._close(context, test)

    def _check(self, test: LayoutTest, image: bytes, start: float) -> TestResult:
        slug = test.slug
        self.store.write_capture(slug, image)

        if not self.store.baseline_exists(slug):
            logger.warning("No baseline found for '%s' (first run). "
                           "Run: layoutguard approve \"%s\"", test.name, test.name)
            return self._result(
                test, RunMode.CHECK, "fail",
                f"No baseline for '{test.name}'. Run: layoutguard approve \"{test.name}\"",
                start,
            )

        self.store.snapshot_original_into_bundle(slug)
        comparison = self.comparator.compare(slug, self.config.pixel_threshold)
        ratio = comparison.mismatch_ratio
        detail = f"mismatch: {ratio:.4f} (threshold: {self.config.diff_threshold})"

        if exceeds_threshold(ratio, self.config.diff_threshold):
            logger.info("[FAIL] '%s' %s", test.name, detail)
            if self.show_diff and comparison.diff_path is not None:
                show_diff(self.viewer, comparison.diff_path)
            status = "fail"
        else:
            logger.info("[PASS] '%s' %s", test.name, detail)
            self.store.clear_bundle(slug)
            status = "pass"

        result = self._result(test, RunMode.CHECK, status, detail, start)
        result.mismatch_count = comparison.mismatch_count
        result.total_pixels = comparison.total_pixels
        result.mismatch_ratio = ratio
        if status == "fail":
            result.diff_path = str(comparison.diff_path)
        return result

    def _approve(self, test: LayoutTest, image: bytes, start: float) -> TestResult:
        dest = self.store.write_baseline_directly(test.slug, image)
        self.store.clear_legacy_bundle(test.slug)
        logger.info("Test '%s' approved, baseline saved to %s", test.name, dest)
        result = self._result(test, RunMode.APPROVE, "pass", "approved", start)
        result.baseline_path = str(dest)
        return result

    async def _close(self, context: BrowserContext, test: LayoutTest) -> None:
        try:
            await context.close()
            logger.debug("  Session closed for %s", test.name)
        except Exception as e:
            logger.warning("Failed to close browser session for '%s': %s", test.name, e)

    @staticmethod
    def _result(
        test: LayoutTest, mode: RunMode, status: str, message: str, start: float,
    ) -> TestResult:
        return TestResult(
            test_name=test.name,
            slug=test.slug,
            mode=mode,
            result=status,
            message=message,
            file_path=str(test.file_path) if test.file_path else None,
            duration_seconds=round(time.time() - start, 2),
        )
