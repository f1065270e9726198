"""Test discovery — resolves testMatch glob patterns to spec files."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Never descend into these while globbing
_IGNORED_DIRS = {".git", ".layoutguard", "node_modules", "__pycache__", ".venv", "venv"}


def _is_ignored(path: Path, root: Path) -> bool:
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        return False
    return any(part in _IGNORED_DIRS for part in parts[:-1])


def discover_tests(patterns: list[str], root: Path) -> list[Path]:
    """Return absolute paths of files matching any pattern, sorted and deduplicated.

    Lexicographic order keeps name resolution deterministic when two files
    declare the same test name.
    """
    root = Path(root).resolve()
    found: set[Path] = set()
    for pattern in patterns:
        pattern_path = Path(pattern)
        if pattern_path.is_absolute():
            anchor = Path(pattern_path.anchor)
            matches = anchor.glob(str(pattern_path.relative_to(anchor)))
        else:
            matches = root.glob(pattern)
        for match in matches:
            if match.is_file() and not _is_ignored(match, root):
                found.add(match.resolve())
    files = sorted(found)
    logger.debug("Discovered %d test file(s) for patterns %s", len(files), patterns)
    return files
