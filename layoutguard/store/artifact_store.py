"""Artifact store — owns the on-disk layout of baselines and failure bundles.

Layout under the project root::

    .layoutguard/snapshots/<slug>.png          accepted baseline
    .layoutguard/failures/<slug>/new.png       latest capture
    .layoutguard/failures/<slug>/original.png  baseline copy at compare time
    .layoutguard/failures/<slug>/diff.png      pixel-diff visualization

No other module builds these paths.
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Union

from PIL import Image

from layoutguard.errors import MissingBaseline, MissingCapture

logger = logging.getLogger(__name__)

STATE_DIRNAME = ".layoutguard"

ImageData = Union[bytes, Image.Image]


def _to_png_bytes(image: ImageData) -> bytes:
    if isinstance(image, bytes):
        return image
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def _atomic_write(dest: Path, data: bytes) -> None:
    """Write ``data`` to a sibling temp file, then rename it over ``dest``."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.stem}.", suffix=".tmp", dir=dest.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, dest)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ArtifactStore:
    """Manages baseline images and per-test failure bundles."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.state_dir = self.root / STATE_DIRNAME
        self.snapshots_dir = self.state_dir / "snapshots"
        self.failures_dir = self.state_dir / "failures"

    # --- paths ---

    def baseline_path(self, slug: str) -> Path:
        return self.snapshots_dir / f"{slug}.png"

    def bundle_dir(self, slug: str) -> Path:
        return self.failures_dir / slug

    def capture_path(self, slug: str) -> Path:
        return self.bundle_dir(slug) / "new.png"

    def original_path(self, slug: str) -> Path:
        return self.bundle_dir(slug) / "original.png"

    def diff_path(self, slug: str) -> Path:
        return self.bundle_dir(slug) / "diff.png"

    # --- state transitions ---

    def ensure_directories(self) -> None:
        """Create the snapshot and failure roots (idempotent)."""
        self.snapshots_dir.mkdir(parents=True, exist_ok=True)
        self.failures_dir.mkdir(parents=True, exist_ok=True)

    def baseline_exists(self, slug: str) -> bool:
        return self.baseline_path(slug).is_file()

    def bundle_exists(self, slug: str) -> bool:
        return self.bundle_dir(slug).exists()

    def write_baseline(self, slug: str, image: ImageData) -> Path:
        """Create or overwrite the baseline for ``slug`` atomically."""
        dest = self.baseline_path(slug)
        _atomic_write(dest, _to_png_bytes(image))
        logger.debug("Wrote baseline %s", dest)
        return dest

    def write_capture(self, slug: str, image: ImageData) -> Path:
        dest = self.capture_path(slug)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(_to_png_bytes(image))
        logger.debug("Wrote capture %s", dest)
        return dest

    def snapshot_original_into_bundle(self, slug: str) -> Path:
        """Copy the current baseline into the bundle as ``original.png``."""
        src = self.baseline_path(slug)
        if not src.is_file():
            raise MissingBaseline(slug)
        dest = self.original_path(slug)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, dest)
        return dest

    def write_diff(self, slug: str, image: ImageData) -> Path:
        dest = self.diff_path(slug)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(_to_png_bytes(image))
        logger.debug("Wrote diff %s", dest)
        return dest

    def promote_to_baseline(self, slug: str) -> Path:
        """Make the bundle's ``new.png`` the baseline, then drop the bundle."""
        capture = self.capture_path(slug)
        if not capture.is_file():
            raise MissingCapture(slug)
        dest = self.write_baseline(slug, capture.read_bytes())
        self.clear_bundle(slug)
        logger.info("Promoted capture to baseline for %s", slug)
        return dest

    def write_baseline_directly(self, slug: str, image: ImageData) -> Path:
        """Approve path that skips the failure bundle entirely."""
        return self.write_baseline(slug, image)

    def clear_bundle(self, slug: str) -> None:
        bundle = self.bundle_dir(slug)
        if bundle.exists():
            shutil.rmtree(bundle)
            logger.debug("Removed failure bundle %s", bundle)

    def clear_legacy_bundle(self, slug: str) -> None:
        """Drop a bundle left over from an earlier check of the same test."""
        if self.bundle_exists(slug):
            logger.info("Clearing stale failure artifacts for %s", slug)
        self.clear_bundle(slug)

    # --- reads ---

    def read_baseline(self, slug: str) -> Image.Image:
        path = self.baseline_path(slug)
        if not path.is_file():
            raise MissingBaseline(slug)
        return _open_image(path)

    def read_capture(self, slug: str) -> Image.Image:
        path = self.capture_path(slug)
        if not path.is_file():
            raise MissingCapture(slug)
        return _open_image(path)


def _open_image(path: Path) -> Image.Image:
    with Image.open(path) as img:
        img.load()
        return img.copy()
