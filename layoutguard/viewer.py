"""Optional diff viewer capability used by ``check --show-diff``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import click

logger = logging.getLogger(__name__)

DiffViewer = Callable[[Path], None]


def open_in_system_viewer(path: Path) -> None:
    """Open an image with the platform's default application."""
    status = click.launch(str(path))
    if status != 0:
        raise OSError(f"Viewer exited with status {status}")


def show_diff(viewer: DiffViewer | None, path: Path) -> bool:
    """Hand ``path`` to ``viewer``; failures are logged, never raised."""
    if viewer is None:
        return False
    try:
        viewer(path)
    except Exception as e:
        logger.warning("Failed to open diff image %s: %s", path, e)
        return False
    logger.info("Opened diff image: %s", path)
    return True
