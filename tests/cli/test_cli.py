"""
Tests for the assetsync command line interface.
"""

import pytest
from click.testing import CliRunner

from assetsync.interfaces.cli import main
from assetsync.infrastructure.error_handler import FetchError
from assetsync.services import DirectFileFetcher, GitToolService


@pytest.fixture
def runner(monkeypatch):
    for name in ("ASSETSYNC_TOKEN", "ASSETSYNC_USERNAME", "ASSETSYNC_PASSWORD", "ASSETSYNC_GIT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("FAKE_GIT_MODE", raising=False)
    return CliRunner()


def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


@pytest.mark.parametrize("progress_flag", [[], ["--no-progress"]])
def test_sync_success(runner, fake_git, full_layout, monkeypatch, tmp_path, progress_flag):
    monkeypatch.setenv("FAKE_GIT_LAYOUT", full_layout)
    dest = tmp_path / "project"

    result = runner.invoke(main, [
        "--git-executable", str(fake_git),
        "sync", "studio/assets", str(dest), *progress_flag
    ])

    assert result.exit_code == 0, result.output
    assert "Download and installation complete!" in result.output
    assert (dest / "Scripts" / "Menu" / "Navigation.cs").exists()


def test_sync_prints_skipped_categories(runner, fake_git, monkeypatch, tmp_path):
    monkeypatch.setenv("FAKE_GIT_LAYOUT", "Scripts/Foo.cs")

    result = runner.invoke(main, [
        "--git-executable", str(fake_git),
        "sync", "studio/assets", str(tmp_path / "project"), "--no-progress"
    ])

    assert result.exit_code == 0, result.output
    assert "UI: folder not found in downloaded repository" in result.output
    assert "skipped" in result.output


def test_sync_failure_exits_non_zero(runner, fake_git, monkeypatch, tmp_path):
    monkeypatch.setenv("FAKE_GIT_MODE", "auth_fail")

    result = runner.invoke(main, [
        "--git-executable", str(fake_git),
        "sync", "https://github.com/studio/assets.git", str(tmp_path / "project"),
        "--private", "--token", "abc123", "--no-progress"
    ])

    assert result.exit_code == 1
    assert "Sync failed" in result.output
    assert "abc123" not in result.output


def test_sync_private_without_credentials(runner, fake_git, tmp_path):
    result = runner.invoke(main, [
        "--git-executable", str(fake_git),
        "sync", "studio/assets", str(tmp_path / "project"), "--private", "--no-progress"
    ])

    assert result.exit_code == 1
    assert "Authentication required" in result.output


def test_sync_rejects_bad_repo(runner, tmp_path):
    result = runner.invoke(main, ["sync", "not-a-repo", str(tmp_path)])
    assert result.exit_code == 2


def test_fetch_success(runner, monkeypatch, tmp_path):
    calls = []

    def fake_fetch(self, source, credentials, remote_file_name, dest_path):
        calls.append((source.display_name, source.host, source.branch, credentials, remote_file_name))
        dest_path.write_text("mesh")
        return dest_path

    monkeypatch.setattr(DirectFileFetcher, "fetch_file", fake_fetch)
    dest = tmp_path / "Backdrop.fbx"

    result = runner.invoke(main, [
        "fetch", "studio/assets", "Models/Backdrop.fbx", str(dest), "--label", "Backdrop"
    ])

    assert result.exit_code == 0, result.output
    assert "Backdrop downloaded" in result.output
    assert calls == [("studio/assets", "github.com", "main", None, "Models/Backdrop.fbx")]
    assert dest.read_text() == "mesh"


def test_fetch_failure(runner, monkeypatch, tmp_path):
    def failing_fetch(self, source, credentials, remote_file_name, dest_path):
        raise FetchError(404, "Not Found")

    monkeypatch.setattr(DirectFileFetcher, "fetch_file", failing_fetch)

    result = runner.invoke(main, [
        "fetch", "studio/assets", "Backdrop.fbx", str(tmp_path / "b.fbx"), "--label", "Backdrop"
    ])

    assert result.exit_code == 1
    assert "Failed to download Backdrop" in result.output
    assert "HTTP 404 - Not Found" in result.output


def test_update(runner, fake_git, tmp_path):
    result = runner.invoke(main, ["--git-executable", str(fake_git), "update", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "Updating: Already up to date." in result.output
    assert "Repository updated successfully!" in result.output


def test_detect_found(runner, fake_git):
    result = runner.invoke(main, ["--git-executable", str(fake_git), "detect"])
    assert result.exit_code == 0
    assert "Git found at:" in result.output


def test_detect_missing(runner, monkeypatch):
    monkeypatch.setattr(GitToolService, "detect", lambda self: None)
    result = runner.invoke(main, ["detect"])
    assert result.exit_code == 1
    assert "Git not found on system PATH" in result.output


def test_fetch_honours_host_and_branch(runner, monkeypatch, tmp_path):
    sources = []

    def fake_fetch(self, source, credentials, remote_file_name, dest_path):
        sources.append(source)
        return dest_path

    monkeypatch.setattr(DirectFileFetcher, "fetch_file", fake_fetch)

    result = runner.invoke(main, [
        "fetch", "studio/assets", "Backdrop.fbx", str(tmp_path / "b.fbx"),
        "--host", "git.example.com", "--branch", "dev"
    ])

    assert result.exit_code == 0, result.output
    assert sources[0].host == "git.example.com"
    assert sources[0].branch == "dev"
