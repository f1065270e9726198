"""Slug encoder — maps a test name to a filesystem-safe artifact key."""

from __future__ import annotations

import re

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', strip outer hyphens.

    Every baseline on disk is keyed by this value, so changing it orphans
    existing snapshots.
    """
    return _NON_ALNUM_RE.sub("-", name.lower()).strip("-")
