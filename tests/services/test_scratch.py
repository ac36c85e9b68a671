import os
import sys

import pytest

from assetsync.infrastructure.error_handler import CleanupError, ScratchPreparationError
from assetsync.services import ScratchSpaceManager


def _locked_tree(root):
    """A leftover clone with read-only files and directories."""
    pack = root / ".git" / "objects" / "pack"
    pack.mkdir(parents=True)
    idx = pack / "pack-1.idx"
    idx.write_text("idx")
    idx.chmod(0o444)
    pack.chmod(0o555)


def test_prepare_creates_canonical_directory(tmp_path):
    manager = ScratchSpaceManager()
    path = manager.prepare(tmp_path)

    assert path == tmp_path / "AssetSyncTemp"
    assert path.is_dir()
    assert list(path.iterdir()) == []


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_prepare_destroys_leftover(tmp_path):
    manager = ScratchSpaceManager()
    _locked_tree(tmp_path / "AssetSyncTemp")

    path = manager.prepare(tmp_path)

    assert path == tmp_path / "AssetSyncTemp"
    assert list(path.iterdir()) == []


def test_prepare_falls_back_to_alternate_path(tmp_path, monkeypatch):
    manager = ScratchSpaceManager()
    (tmp_path / "AssetSyncTemp").mkdir()

    def stuck(path):
        raise CleanupError(path)

    monkeypatch.setattr(manager, "destroy", stuck)
    path = manager.prepare(tmp_path)

    assert path != tmp_path / "AssetSyncTemp"
    assert path.name.startswith("AssetSyncTemp_")
    assert path.is_dir()


def test_prepare_raises_when_nothing_can_be_created(tmp_path):
    base = tmp_path / "not-a-directory"
    base.write_text("file")

    with pytest.raises(ScratchPreparationError):
        ScratchSpaceManager().prepare(base)


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_destroy_removes_read_only_tree(tmp_path):
    root = tmp_path / "scratch"
    _locked_tree(root)

    ScratchSpaceManager().destroy(root)

    assert not root.exists()


def test_destroy_is_idempotent(tmp_path):
    manager = ScratchSpaceManager()
    root = tmp_path / "scratch"
    root.mkdir()

    manager.destroy(root)
    manager.destroy(root)
    manager.destroy(tmp_path / "never-existed")

    assert not root.exists()


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
def test_destroy_does_not_follow_symlink(tmp_path):
    target = tmp_path / "real"
    target.mkdir()
    (target / "keep.txt").write_text("keep")
    link = tmp_path / "scratch"
    os.symlink(target, link)

    ScratchSpaceManager().destroy(link)

    assert not os.path.lexists(link)
    assert (target / "keep.txt").exists()


@pytest.mark.skipif(sys.platform == "win32", reason="command line delete runs first")
def test_destroy_raises_when_directory_survives(tmp_path, monkeypatch):
    manager = ScratchSpaceManager()
    root = tmp_path / "scratch"
    root.mkdir()
    monkeypatch.setattr(manager, "_library_delete", lambda path: None)

    with pytest.raises(CleanupError) as exc_info:
        manager.destroy(root)

    assert exc_info.value.path == root
    assert root.exists()
