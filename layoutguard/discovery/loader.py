"""Test loader — imports a spec file and validates its test definition."""

from __future__ import annotations

import hashlib
import importlib.util
import inspect
import logging
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from layoutguard.errors import InvalidTestDefinition
from layoutguard.models.layout_test import LayoutTest
from layoutguard.slug import slugify

logger = logging.getLogger(__name__)

_MISSING = object()


def _import_module(path: Path):
    """Execute ``path`` as a module with its own directory importable."""
    digest = hashlib.md5(str(path).encode()).hexdigest()[:12]
    module_name = f"layoutguard_spec_{digest}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise InvalidTestDefinition(path, "not an importable Python file")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module

    test_dir = str(path.parent)
    sys.path.insert(0, test_dir)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise InvalidTestDefinition(path, f"import failed: {e}") from e
    finally:
        if test_dir in sys.path:
            sys.path.remove(test_dir)
    return module


def _field(source: Any, name: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, _MISSING)
    return getattr(source, name, _MISSING)


def _is_async_callable(obj: Any) -> bool:
    return inspect.iscoroutinefunction(obj) or inspect.iscoroutinefunction(
        getattr(obj, "__call__", None)
    )


def load_test(path: str | Path) -> LayoutTest:
    """Load the test defined in ``path``.

    The module either exposes a ``test`` object (mapping or attributes) or
    defines ``name``, ``scenario`` and optionally ``selector`` at top level.
    """
    path = Path(path).resolve()
    if not path.is_file():
        raise InvalidTestDefinition(path, "file not found")

    module = _import_module(path)
    source = getattr(module, "test", module)

    name = _field(source, "name")
    if name is _MISSING or not isinstance(name, str) or not name:
        raise InvalidTestDefinition(path, "missing a valid 'name' string", field="name")
    if not slugify(name):
        raise InvalidTestDefinition(
            path, f"name '{name}' has no letters or digits to build a slug from", field="name",
        )

    scenario = _field(source, "scenario")
    if scenario is _MISSING or not callable(scenario):
        raise InvalidTestDefinition(
            path, f"test '{name}' is missing a valid 'scenario' function", field="scenario",
        )
    if not _is_async_callable(scenario):
        raise InvalidTestDefinition(
            path, f"test '{name}' has a plain 'scenario'; define it with 'async def' "
            "and await page calls",
            field="scenario",
        )

    selector = _field(source, "selector")
    if selector is _MISSING or selector == "":
        selector = None
    if selector is not None and not isinstance(selector, str):
        raise InvalidTestDefinition(
            path, f"test '{name}' has a non-string 'selector'", field="selector",
        )

    logger.debug("Loaded test '%s' from %s", name, path)
    return LayoutTest(name=name, scenario=scenario, selector=selector, file_path=path)
