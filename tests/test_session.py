"""Tests for markdown_viewer.session module."""

import os

import pytest

from markdown_viewer.config import ViewerConfig
from markdown_viewer.session import Session, SessionRegistry
from markdown_viewer.state import AppStateStore
from markdown_viewer.types import DEFAULT_FRAME, WINDOW_OFFSET, WindowFrame
from markdown_viewer.watcher import WatchEngine


@pytest.fixture
def state_store(tmp_path):
    return AppStateStore(tmp_path / "cfg")


@pytest.fixture
def changes():
    return []


@pytest.fixture
def registry(watchers, state_store, changes):
    watch = WatchEngine(on_update=lambda *a: None, watcher_factory=watchers)
    return SessionRegistry(watch, state_store, on_change=lambda: changes.append(1))


class TestCreate:
    def test_first_session_uses_default_frame(self, registry):
        session = registry.create()
        assert session.frame == DEFAULT_FRAME
        assert session.is_blank
        assert registry.active is session

    def test_first_session_uses_persisted_frame(self, registry, state_store):
        state_store.state.last_window_frame = WindowFrame(10, 20, 640, 480)
        assert registry.create().frame == WindowFrame(10, 20, 640, 480)

    def test_next_session_is_cascaded(self, registry):
        first = registry.create()
        second = registry.create()
        assert second.frame == first.frame.offset(WINDOW_OFFSET)
        assert second.frame.width == first.frame.width

    def test_ids_are_unique(self, registry):
        ids = {registry.create().session_id for _ in range(5)}
        assert len(ids) == 5

    def test_path_is_canonical_and_watched(self, registry, watchers, docs):
        link = docs / "link.md"
        link.symlink_to(docs / "a.md")
        session = registry.create(str(link))
        assert session.file_path == os.path.realpath(docs / "a.md")
        assert watchers.latest(session.file_path).closed is False

    def test_config_is_copied(self, registry):
        config = ViewerConfig(zoom_percent=150)
        session = registry.create(config=config)
        config.zoom_percent = 50
        assert session.config.zoom_percent == 150

    def test_signals_change(self, registry, changes):
        registry.create()
        assert changes == [1]


class TestLookup:
    def test_find_by_canonical_path(self, registry, docs):
        session = registry.create(str(docs / "a.md"))
        spelled = str(docs / "." / "a.md")
        assert registry.find_by_canonical_path(spelled) is session
        assert registry.find_by_canonical_path(str(docs / "b.md")) is None

    def test_find_blank_prefers_requester(self, registry, docs):
        first_blank = registry.create()
        registry.create(str(docs / "a.md"))
        second_blank = registry.create()
        assert registry.find_blank() is first_blank
        assert registry.find_blank(prefer=second_blank) is second_blank

    def test_find_blank_ignores_non_blank_preference(self, registry, docs):
        blank = registry.create()
        bound = registry.create(str(docs / "a.md"))
        assert registry.find_blank(prefer=bound) is blank

    def test_menu_target_falls_back_to_any(self, registry):
        assert registry.menu_target() is None
        session = registry.create()
        assert registry.menu_target() is session

    def test_contains_is_identity(self, registry):
        session = registry.create()
        impostor = Session(session_id=session.session_id)
        assert session in registry
        assert impostor not in registry


class TestRemove:
    def test_remove_detaches_and_closes(self, registry, watchers, docs):
        session = registry.create(str(docs / "a.md"))
        handle = session.watch_handle
        registry.remove(session)
        assert session.closed
        assert handle.close_count == 1
        assert len(registry) == 0
        assert registry.active is None

    def test_active_falls_back(self, registry):
        first = registry.create()
        second = registry.create()
        registry.remove(second)
        assert registry.active is first
        assert registry.active_id == first.session_id

    def test_remove_twice_is_noop(self, registry, changes, docs):
        session = registry.create(str(docs / "a.md"))
        registry.remove(session)
        registry.remove(session)
        assert session.watch_handle is None
        assert changes == [1, 1]

    def test_set_active_ignores_removed(self, registry):
        first = registry.create()
        second = registry.create()
        registry.remove(first)
        registry.set_active(first)
        assert registry.active is second

    def test_iteration_tolerates_removal(self, registry):
        for _ in range(3):
            registry.create()
        for session in registry:
            registry.remove(session)
        assert len(registry) == 0

    def test_watchers_never_exceed_bound_sessions(self, registry, watchers, docs):
        a = registry.create(str(docs / "a.md"))
        registry.create(str(docs / "b.md"))
        registry.create()
        registry.remove(a)
        bound = [s for s in registry if s.file_path]
        assert len(watchers.open_watchers) == len(bound) == 1
