"""Shared fixtures: fake watchers, a recording launcher and a wired engine."""

from pathlib import Path
from typing import Callable, List, Optional

import pytest

from markdown_viewer.engine import ViewerEngine
from markdown_viewer.handoff import SystemLauncher


class FakeWatcher:
    """Stands in for a filesystem watch; tests call fire() to simulate a change."""

    def __init__(
        self,
        path: str,
        on_change: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        self.path = path
        self.on_change = on_change
        self.on_error = on_error
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def close(self) -> None:
        self.close_count += 1

    def fire(self) -> None:
        self.on_change()

    def fail(self, error: Exception) -> None:
        self.on_error(error)


class FakeWatcherFactory:
    def __init__(self) -> None:
        self.watchers: List[FakeWatcher] = []
        self.fail_with: Optional[Exception] = None

    def __call__(
        self,
        path: str,
        on_change: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> FakeWatcher:
        if self.fail_with is not None:
            raise self.fail_with
        watcher = FakeWatcher(path, on_change, on_error)
        self.watchers.append(watcher)
        return watcher

    @property
    def open_watchers(self) -> List[FakeWatcher]:
        return [w for w in self.watchers if not w.closed]

    def latest(self, path: str) -> FakeWatcher:
        return [w for w in self.watchers if w.path == path][-1]


class RecordingLauncher(SystemLauncher):
    """Records OS hand-offs instead of spawning anything."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.calls: list = []

    def open_path(self, path: str) -> bool:
        self.calls.append(("open_path", path))
        return self.result

    def open_in_editor(self, editor: str, path: str) -> bool:
        self.calls.append(("open_in_editor", editor, path))
        return self.result

    def open_external(self, url: str) -> bool:
        self.calls.append(("open_external", url))
        return self.result


@pytest.fixture
def watchers():
    return FakeWatcherFactory()


@pytest.fixture
def launcher():
    return RecordingLauncher()


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path / "config"


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    """A directory with two markdown files and a text file."""
    root = tmp_path / "docs"
    root.mkdir()
    (root / "a.md").write_text("# Alpha\n\nFirst document.\n", encoding="utf-8")
    (root / "b.md").write_text("# Beta\n", encoding="utf-8")
    (root / "notes.txt").write_text("plain text\n", encoding="utf-8")
    return root


@pytest.fixture
def engine(config_dir, watchers, launcher):
    return ViewerEngine(
        config_dir=config_dir,
        watcher_factory=watchers,
        launcher=launcher,
        startup_grace_ms=20,
    )


@pytest.fixture
def events(engine):
    """Every event the engine emits, in order."""
    captured = []
    engine.on_any(captured.append)
    return captured
