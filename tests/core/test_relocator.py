import os
import sys

import pytest

from assetsync.core.relocator import Relocator
from assetsync.models import DEFAULT_RELOCATION_MAP, RelocationEntry


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


@pytest.fixture
def checkout(tmp_path):
    root = tmp_path / "scratch"
    _write(root / "3dModel" / "Backdrop.fbx", "mesh")
    _write(root / "Scripts" / "Foo.cs", "new foo")
    _write(root / "Scripts" / "Menu" / "Navigation.cs", "nav")
    _write(root / "Resources" / "Config.json", "{}")
    _write(root / "README.md", "not relocated")
    return root


def _files(root):
    return sorted(
        str(p.relative_to(root)).replace(os.sep, "/")
        for p in root.rglob("*") if p.is_file()
    )


def test_missing_categories_are_skipped(tmp_path, checkout):
    dest = tmp_path / "project"
    report = Relocator(dest).relocate(checkout, DEFAULT_RELOCATION_MAP)

    assert report.skipped == ["Plugins", "Materials", "UI"]
    assert [w.category for w in report.warnings] == ["Plugins", "Materials", "UI"]
    assert report.total_files_copied == 4
    assert _files(dest) == [
        "3dModel/Backdrop.fbx",
        "Resources/Config.json",
        "Scripts/Foo.cs",
        "Scripts/Menu/Navigation.cs",
    ]


def test_every_destination_directory_is_created(tmp_path, checkout):
    dest = tmp_path / "project"
    Relocator(dest).relocate(checkout, DEFAULT_RELOCATION_MAP)
    for entry in DEFAULT_RELOCATION_MAP:
        assert (dest / entry.destination).is_dir()


def test_existing_files_are_overwritten_and_others_kept(tmp_path, checkout):
    dest = tmp_path / "project"
    _write(dest / "Scripts" / "Foo.cs", "old foo")
    _write(dest / "Scripts" / "Bar.cs", "bar")

    Relocator(dest).relocate(checkout, DEFAULT_RELOCATION_MAP)

    assert (dest / "Scripts" / "Foo.cs").read_text() == "new foo"
    assert (dest / "Scripts" / "Bar.cs").read_text() == "bar"
    assert (dest / "Scripts" / "Menu" / "Navigation.cs").read_text() == "nav"


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_read_only_destination_file_is_replaced(tmp_path, checkout):
    dest = tmp_path / "project"
    locked = dest / "Scripts" / "Foo.cs"
    _write(locked, "old foo")
    locked.chmod(0o444)

    Relocator(dest).relocate(checkout, DEFAULT_RELOCATION_MAP)

    assert locked.read_text() == "new foo"


def test_custom_mapping_changes_destination(tmp_path, checkout):
    dest = tmp_path / "project"
    mapping = (RelocationEntry("Scripts", "Assets/Code"),)
    report = Relocator(dest).relocate(checkout, mapping)

    assert report.get("Scripts").files_copied == 2
    assert (dest / "Assets" / "Code" / "Menu" / "Navigation.cs").exists()
    assert not (dest / "Scripts").exists()


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
def test_symlinked_directory_is_followed(tmp_path, checkout):
    shared = tmp_path / "shared"
    _write(shared / "Common.cs", "common")
    os.symlink(shared, checkout / "Scripts" / "Shared")

    dest = tmp_path / "project"
    Relocator(dest).relocate(checkout, DEFAULT_RELOCATION_MAP)

    copied = dest / "Scripts" / "Shared" / "Common.cs"
    assert copied.read_text() == "common"
    assert not (dest / "Scripts" / "Shared").is_symlink()


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
def test_symlink_cycle_terminates(tmp_path, checkout):
    os.symlink(checkout / "Scripts", checkout / "Scripts" / "Menu" / "Loop")

    dest = tmp_path / "project"
    report = Relocator(dest).relocate(checkout, DEFAULT_RELOCATION_MAP)

    assert report.get("Scripts").error is None
    assert (dest / "Scripts" / "Menu" / "Navigation.cs").exists()


def test_error_in_one_category_does_not_stop_others(tmp_path, checkout, monkeypatch):
    relocator = Relocator(tmp_path / "project")
    original = relocator._copy_file

    def flaky_copy(source, destination):
        if source.name == "Backdrop.fbx":
            raise OSError("disk full")
        original(source, destination)

    monkeypatch.setattr(relocator, "_copy_file", flaky_copy)
    report = relocator.relocate(checkout, DEFAULT_RELOCATION_MAP)

    model = report.get("3dModel")
    assert model.found
    assert "disk full" in model.error
    assert report.get("Scripts").files_copied == 2
    assert report.get("Resources").files_copied == 1
    assert any(w.category == "3dModel" for w in report.warnings)


def test_directory_at_file_destination_is_an_error(tmp_path, checkout):
    dest = tmp_path / "project"
    blocker = dest / "Scripts" / "Foo.cs"
    blocker.mkdir(parents=True)
    _write(blocker / "keep.txt", "keep")

    report = Relocator(dest).relocate(checkout, DEFAULT_RELOCATION_MAP)

    scripts = report.get("Scripts")
    assert scripts.error is not None
    assert not (blocker / "Foo.cs").exists()
    assert (blocker / "keep.txt").read_text() == "keep"
    assert report.get("Resources").files_copied == 1


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
def test_symlink_at_destination_is_replaced_not_followed(tmp_path, checkout):
    outside = tmp_path / "outside.cs"
    outside.write_text("outside")
    dest = tmp_path / "project"
    (dest / "Scripts").mkdir(parents=True)
    os.symlink(outside, dest / "Scripts" / "Foo.cs")

    report = Relocator(dest).relocate(checkout, DEFAULT_RELOCATION_MAP)

    copied = dest / "Scripts" / "Foo.cs"
    assert report.get("Scripts").error is None
    assert not copied.is_symlink()
    assert copied.read_text() == "new foo"
    assert outside.read_text() == "outside"
