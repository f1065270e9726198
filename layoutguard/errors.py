"""Exception hierarchy for layoutguard."""

from __future__ import annotations

from pathlib import Path


class LayoutGuardError(Exception):
    """Base class for all layoutguard errors."""


class ConfigError(LayoutGuardError):
    """The configuration file is missing or cannot be parsed."""


class InvalidTestDefinition(LayoutGuardError):
    """A discovered test file does not define a usable test."""

    def __init__(self, path: str | Path, reason: str, field: str | None = None):
        self.path = Path(path)
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid test in {self.path}: {reason}")


class TestResolutionError(LayoutGuardError):
    """The requested test (by name or path) could not be resolved."""

    __test__ = False


class BrowserLaunchError(LayoutGuardError):
    """The browser engine could not be started."""


class MissingBaseline(LayoutGuardError):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"No baseline image for '{slug}'")


class MissingCapture(LayoutGuardError):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"No captured image for '{slug}'")


class DimensionMismatch(LayoutGuardError):
    """Baseline and capture differ in size, so a pixel comparison is impossible."""

    def __init__(self, baseline_size: tuple[int, int], captured_size: tuple[int, int]):
        self.baseline_size = baseline_size
        self.captured_size = captured_size
        super().__init__(
            "Image dimensions differ: baseline %dx%d, captured %dx%d"
            % (*baseline_size, *captured_size)
        )
