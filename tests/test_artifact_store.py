"""Tests for the artifact store — baseline and failure bundle transitions."""

from pathlib import Path

import pytest
from PIL import Image

from conftest import make_image, make_png
from layoutguard.errors import MissingBaseline, MissingCapture
from layoutguard.store.artifact_store import ArtifactStore


class TestLayout:
    def test_paths(self, tmp_path):
        store = ArtifactStore(tmp_path)
        root = tmp_path / ".layoutguard"
        assert store.baseline_path("home") == root / "snapshots" / "home.png"
        assert store.capture_path("home") == root / "failures" / "home" / "new.png"
        assert store.original_path("home") == root / "failures" / "home" / "original.png"
        assert store.diff_path("home") == root / "failures" / "home" / "diff.png"

    def test_ensure_directories_is_idempotent(self, tmp_path):
        store = ArtifactStore(tmp_path)
        store.ensure_directories()
        store.ensure_directories()
        assert store.snapshots_dir.is_dir()
        assert store.failures_dir.is_dir()


class TestBaseline:
    def test_write_and_exists(self, store):
        assert not store.baseline_exists("home")
        store.write_baseline("home", make_png())
        assert store.baseline_exists("home")

    def test_overwrite(self, store):
        store.write_baseline("home", make_png(color=(255, 0, 0)))
        store.write_baseline("home", make_png(color=(0, 0, 255)))
        assert store.read_baseline("home").getpixel((0, 0))[:3] == (0, 0, 255)

    def test_accepts_pillow_image(self, store):
        store.write_baseline("home", make_image(size=(3, 2)))
        assert store.read_baseline("home").size == (3, 2)

    def test_atomic_write_leaves_no_temp_files(self, store):
        store.write_baseline("home", make_png())
        assert [p.name for p in store.snapshots_dir.iterdir()] == ["home.png"]

    def test_write_directly_skips_bundle(self, store):
        store.write_baseline_directly("home", make_png())
        assert store.baseline_exists("home")
        assert not store.bundle_exists("home")

    def test_read_missing_raises(self, store):
        with pytest.raises(MissingBaseline):
            store.read_baseline("home")


class TestBundle:
    def test_write_capture_creates_bundle(self, store):
        path = store.write_capture("home", make_png())
        assert path.is_file()
        assert store.bundle_exists("home")

    def test_snapshot_original(self, store):
        data = make_png(color=(10, 20, 30))
        store.write_baseline("home", data)
        dest = store.snapshot_original_into_bundle("home")
        assert dest.read_bytes() == data

    def test_snapshot_original_without_baseline(self, store):
        with pytest.raises(MissingBaseline):
            store.snapshot_original_into_bundle("home")

    def test_write_diff_creates_parents(self, tmp_path):
        store = ArtifactStore(tmp_path)  # directories deliberately not created
        path = store.write_diff("home", make_image())
        assert path.is_file()
        assert Image.open(path).size == (10, 10)

    def test_clear_bundle(self, store):
        store.write_capture("home", make_png())
        store.write_diff("home", make_png())
        store.clear_bundle("home")
        assert not store.bundle_exists("home")

    def test_clear_absent_bundle_is_noop(self, store):
        store.clear_bundle("nothing-here")
        store.clear_legacy_bundle("nothing-here")
        assert not store.bundle_exists("nothing-here")

    def test_clear_only_touches_own_slug(self, store):
        store.write_capture("home", make_png())
        store.write_capture("about", make_png())
        store.clear_bundle("home")
        assert store.bundle_exists("about")


class TestPromote:
    def test_promote_moves_capture_to_baseline(self, store):
        data = make_png(color=(1, 2, 3))
        store.write_capture("home", data)
        store.write_diff("home", make_png())
        dest = store.promote_to_baseline("home")
        assert dest == store.baseline_path("home")
        assert dest.read_bytes() == data
        assert not store.bundle_exists("home")

    def test_promote_without_capture(self, store):
        with pytest.raises(MissingCapture):
            store.promote_to_baseline("home")
        assert not store.baseline_exists("home")
