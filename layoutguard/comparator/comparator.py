"""Comparator — compares a capture against its baseline and records the diff."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from layoutguard.errors import DimensionMismatch
from layoutguard.store.artifact_store import ArtifactStore

from .pixel_diff import diff_images

logger = logging.getLogger(__name__)


@dataclass
class ComparisonResult:
    mismatch_count: int
    total_pixels: int
    diff_image: Image.Image
    diff_path: Path | None = None

    @property
    def mismatch_ratio(self) -> float:
        if self.total_pixels == 0:
            return 0.0
        return self.mismatch_count / self.total_pixels


def compare_images(
    baseline: Image.Image, captured: Image.Image, per_pixel_threshold: float
) -> ComparisonResult:
    """Pixel-compare two decoded images of the same test."""
    if baseline.size != captured.size:
        raise DimensionMismatch(baseline.size, captured.size)
    mismatches, diff = diff_images(baseline, captured, per_pixel_threshold)
    width, height = baseline.size
    return ComparisonResult(
        mismatch_count=mismatches, total_pixels=width * height, diff_image=diff,
    )


class Comparator:
    """Reads baseline and capture from the store and writes the diff back."""

    def __init__(self, store: ArtifactStore):
        self.store = store

    def compare(self, slug: str, per_pixel_threshold: float) -> ComparisonResult:
        baseline = self.store.read_baseline(slug)
        captured = self.store.read_capture(slug)
        result = compare_images(baseline, captured, per_pixel_threshold)
        result.diff_path = self.store.write_diff(slug, result.diff_image)
        logger.debug("Compared %s: %d/%d pixels differ",
                     slug, result.mismatch_count, result.total_pixels)
        return result
