"""Orchestrator — resolves which tests to run and drives the check/approve workflows."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from pathlib import Path

from playwright.async_api import async_playwright

from layoutguard.discovery.discovery import discover_tests
from layoutguard.discovery.loader import load_test
from layoutguard.errors import InvalidTestDefinition, MissingCapture, TestResolutionError
from layoutguard.executor.runner import TestRunner
from layoutguard.models.config import LayoutGuardConfig
from layoutguard.models.layout_test import LayoutTest
from layoutguard.models.test_result import RunMode, RunSummary, TestResult
from layoutguard.store.artifact_store import ArtifactStore
from layoutguard.utils.browser import launch_browser
from layoutguard.viewer import DiffViewer

logger = logging.getLogger(__name__)

_PATH_LIKE_RE = re.compile(r"[\\/]|\.py$")


def looks_like_path(arg: str) -> bool:
    """True if a CLI test argument names a file rather than a test."""
    return bool(_PATH_LIKE_RE.search(arg))


class Orchestrator:
    """Coordinates discovery, the browser lifecycle and per-test runs."""

    def __init__(
        self,
        config: LayoutGuardConfig,
        root: Path | None = None,
        viewer: DiffViewer | None = None,
    ):
        self.config = config
        self.root = Path(root or Path.cwd()).resolve()
        self.store = ArtifactStore(self.root)
        self.viewer = viewer
        self.load_errors: list[InvalidTestDefinition] = []

    # --- resolution ---

    def load_all(self) -> list[LayoutTest]:
        """Load every discovered test, skipping (and recording) broken files."""
        files = discover_tests(self.config.test_match, self.root)
        logger.info("Discovered %d test file(s)", len(files))

        tests: list[LayoutTest] = []
        by_slug: dict[str, LayoutTest] = {}
        self.load_errors = []
        for path in files:
            try:
                test = load_test(path)
            except InvalidTestDefinition as e:
                logger.error("Error loading test from %s: %s", e.path, e.reason)
                self.load_errors.append(e)
                continue

            other = by_slug.get(test.slug)
            if other is not None:
                err = InvalidTestDefinition(
                    path,
                    f"name '{test.name}' maps to artifact key '{test.slug}', "
                    f"already used by '{other.name}' in {other.file_path}",
                    field="name",
                )
                logger.error("Error loading test from %s: %s", err.path, err.reason)
                self.load_errors.append(err)
                continue

            by_slug[test.slug] = test
            tests.append(test)
        return tests

    def resolve_tests(self, selector: str | None = None) -> list[LayoutTest]:
        """Pick the tests for this invocation: all, one file, or one name."""
        if selector is None:
            tests = self.load_all()
        elif looks_like_path(selector):
            path = Path(selector)
            if not path.is_absolute():
                path = self.root / path
            if not path.exists():
                raise TestResolutionError(f"Test file not found: {path}")
            try:
                tests = [load_test(path)]
            except InvalidTestDefinition as e:
                raise TestResolutionError(f"Error loading test from {e.path}: {e.reason}") from e
        else:
            matches = [t for t in self.load_all() if t.name == selector]
            if not matches:
                raise TestResolutionError(f"Test '{selector}' not found.")
            tests = matches[:1]

        if not tests:
            raise TestResolutionError(
                f"No tests found for patterns {self.config.test_match} in {self.root}"
            )
        logger.info("Running %d test(s)", len(tests))
        return tests

    # --- workflows ---

    def run_check(self, selector: str | None = None, show_diff: bool = False) -> RunSummary:
        """Compare fresh captures against baselines."""
        tests = self.resolve_tests(selector)
        return asyncio.run(self._run(tests, RunMode.CHECK, show_diff=show_diff))

    def run_approve(self, selector: str | None = None) -> RunSummary:
        """Re-run scenarios and store the captures as the new baselines."""
        tests = self.resolve_tests(selector)
        return asyncio.run(self._run(tests, RunMode.APPROVE))

    def run_promote(self, selector: str | None = None) -> RunSummary:
        """Approve using the captures left behind by the last failed check."""
        tests = self.resolve_tests(selector)
        self.store.ensure_directories()
        summary = RunSummary(mode=RunMode.APPROVE)
        start = time.time()
        for test in tests:
            try:
                dest = self.store.promote_to_baseline(test.slug)
            except MissingCapture as e:
                logger.error("Cannot promote '%s': %s", test.name, e)
                summary.record(TestResult(
                    test_name=test.name, slug=test.slug, mode=RunMode.APPROVE,
                    result="error", message=f"{e}. Run 'layoutguard check' first.",
                    file_path=str(test.file_path) if test.file_path else None,
                ))
                continue
            logger.info("Test '%s' approved from last capture", test.name)
            summary.record(TestResult(
                test_name=test.name, slug=test.slug, mode=RunMode.APPROVE,
                result="pass", message="promoted", baseline_path=str(dest),
                file_path=str(test.file_path) if test.file_path else None,
            ))
        summary.duration_seconds = round(time.time() - start, 2)
        return summary

    async def _run(
        self, tests: list[LayoutTest], mode: RunMode, show_diff: bool = False,
    ) -> RunSummary:
        start = time.time()
        self.store.ensure_directories()
        summary = RunSummary(mode=mode)

        async with async_playwright() as p:
            logger.info("Launching %s browser...", self.config.browser_name)
            browser = await launch_browser(p, self.config.browser_name)
            try:
                runner = TestRunner(
                    browser, self.store, self.config,
                    viewer=self.viewer, show_diff=show_diff,
                )
                for index, test in enumerate(tests):
                    logger.info("Running test [%d/%d]: %s", index + 1, len(tests), test.name)
                    result = await runner.run(test, mode)
                    summary.record(result)
            finally:
                await browser.close()

        summary.duration_seconds = round(time.time() - start, 2)
        logger.info(
            "%s complete: %d passed, %d failed, %d errors (%.1fs)",
            mode.value.capitalize(), summary.passed, summary.failed,
            summary.errors, summary.duration_seconds,
        )
        return summary
