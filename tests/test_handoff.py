"""Tests for markdown_viewer.handoff module."""

import subprocess
import webbrowser
from unittest.mock import MagicMock

import pytest

from markdown_viewer import handoff
from markdown_viewer.handoff import SystemLauncher


@pytest.fixture
def linux(monkeypatch):
    monkeypatch.setattr(handoff.sys, "platform", "linux")


@pytest.fixture
def run(monkeypatch):
    mock = MagicMock(return_value=MagicMock(returncode=0))
    monkeypatch.setattr(handoff.subprocess, "run", mock)
    return mock


@pytest.fixture
def popen(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(handoff.subprocess, "Popen", mock)
    return mock


class TestOpenPath:
    def test_uses_xdg_open(self, linux, run):
        assert SystemLauncher().open_path("/d/a.png") is True
        assert run.call_args[0][0] == ["xdg-open", "/d/a.png"]

    def test_nonzero_exit_is_failure(self, linux, run):
        run.return_value = MagicMock(returncode=4)
        assert SystemLauncher().open_path("/d/a.png") is False

    def test_missing_opener_is_failure(self, linux, run):
        run.side_effect = FileNotFoundError("xdg-open")
        assert SystemLauncher().open_path("/d/a.png") is False

    def test_timeout_is_failure(self, linux, run):
        run.side_effect = subprocess.TimeoutExpired("xdg-open", 10)
        assert SystemLauncher().open_path("/d/a.png") is False


class TestOpenInEditor:
    def test_spawns_editor_on_path(self, linux, popen, run, monkeypatch):
        monkeypatch.setattr(handoff.shutil, "which", lambda name: "/usr/bin/vim")
        assert SystemLauncher().open_in_editor("vim", "/d/a.md") is True
        assert popen.call_args[0][0] == ["vim", "/d/a.md"]
        run.assert_not_called()

    def test_unknown_editor_falls_back_to_default_app(self, linux, popen, run, monkeypatch):
        monkeypatch.setattr(handoff.shutil, "which", lambda name: None)
        assert SystemLauncher().open_in_editor("/nowhere/editor", "/d/a.md") is True
        popen.assert_not_called()
        assert run.call_args[0][0] == ["xdg-open", "/d/a.md"]

    def test_spawn_failure_falls_back(self, linux, popen, run, monkeypatch):
        monkeypatch.setattr(handoff.shutil, "which", lambda name: "/usr/bin/vim")
        popen.side_effect = PermissionError("denied")
        assert SystemLauncher().open_in_editor("vim", "/d/a.md") is True
        assert run.call_args[0][0] == ["xdg-open", "/d/a.md"]

    def test_macos_uses_open_a(self, popen, run, monkeypatch):
        monkeypatch.setattr(handoff.sys, "platform", "darwin")
        assert SystemLauncher().open_in_editor("/Applications/TextEdit.app", "/d/a.md") is True
        assert run.call_args[0][0] == ["open", "-a", "/Applications/TextEdit.app", "/d/a.md"]


class TestOpenExternal:
    def test_browser(self, monkeypatch):
        opened = []
        monkeypatch.setattr(handoff.webbrowser, "open", lambda url: opened.append(url) or True)
        assert SystemLauncher().open_external("https://example.com") is True
        assert opened == ["https://example.com"]

    def test_browser_error(self, monkeypatch):
        def fail(url):
            raise webbrowser.Error("no browser")

        monkeypatch.setattr(handoff.webbrowser, "open", fail)
        assert SystemLauncher().open_external("https://example.com") is False
