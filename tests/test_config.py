"""Tests for markdown_viewer.config module."""

import json

import pytest

from markdown_viewer.config import (
    DEFAULT_EDITOR_PATH,
    ConfigStore,
    ConfigStoreError,
    ViewerConfig,
    default_config_dir,
    sanitize_config,
)


class TestSanitizeConfig:
    """Tests for sanitize_config()."""

    def test_empty_dict_gives_defaults(self):
        """Missing keys fall back silently."""
        config, warning = sanitize_config({})
        assert config == ViewerConfig()
        assert warning is None

    def test_default_values(self):
        config = ViewerConfig()
        assert config.refresh_debounce_ms == 220
        assert config.zoom_percent == 100
        assert config.open_external_links_in_browser is True
        assert config.open_local_links_in_app is True
        assert config.show_outline_by_default is True
        assert config.external_editor_path == DEFAULT_EDITOR_PATH

    def test_out_of_range_and_wrong_type(self):
        """Both bad keys are reset and named in the warning."""
        config, warning = sanitize_config({"zoomPercent": 9999, "refreshDebounceMs": "x"})
        assert config.zoom_percent == 200
        assert config.refresh_debounce_ms == 220
        assert "zoomPercent" in warning
        assert "refreshDebounceMs" in warning

    def test_clamps_low_values(self):
        config, warning = sanitize_config({"refreshDebounceMs": 1, "zoomPercent": 10})
        assert config.refresh_debounce_ms == 50
        assert config.zoom_percent == 50
        assert warning is not None

    def test_rounds_floats(self):
        config, warning = sanitize_config({"refreshDebounceMs": 300.6})
        assert config.refresh_debounce_ms == 301
        assert warning is None

    def test_bool_is_not_a_number(self):
        config, warning = sanitize_config({"zoomPercent": True})
        assert config.zoom_percent == 100
        assert "zoomPercent" in warning

    def test_nan_rejected(self):
        config, warning = sanitize_config({"zoomPercent": float("nan")})
        assert config.zoom_percent == 100
        assert "zoomPercent" in warning

    def test_boolean_fields(self):
        config, warning = sanitize_config({
            "openExternalLinksInBrowser": False,
            "openLocalLinksInApp": "yes",
            "showOutlineByDefault": False,
        })
        assert config.open_external_links_in_browser is False
        assert config.open_local_links_in_app is True
        assert config.show_outline_by_default is False
        assert warning == "Invalid config keys reset to defaults: openLocalLinksInApp"

    def test_editor_path_trimmed(self):
        config, _ = sanitize_config({"externalEditorPath": "  /usr/bin/vim  "})
        assert config.external_editor_path == "/usr/bin/vim"

    def test_blank_editor_path_falls_back(self):
        config, warning = sanitize_config({"externalEditorPath": "   "})
        assert config.external_editor_path == DEFAULT_EDITOR_PATH
        assert "externalEditorPath" in warning

    def test_legacy_editor_key(self):
        config, warning = sanitize_config({"editorAppPath": "/Applications/Zed.app"})
        assert config.external_editor_path == "/Applications/Zed.app"
        assert warning is None

    def test_non_mapping_is_empty(self):
        config, warning = sanitize_config(["not", "a", "dict"])
        assert config == ViewerConfig()
        assert warning is None

    def test_unknown_keys_ignored(self):
        config, warning = sanitize_config({"theme": "dark"})
        assert config == ViewerConfig()
        assert warning is None


class TestViewerConfigDict:
    """Tests for to_dict()/from_dict()/copy()."""

    def test_to_dict_keys(self):
        assert set(ViewerConfig().to_dict()) == {
            "refreshDebounceMs",
            "openExternalLinksInBrowser",
            "openLocalLinksInApp",
            "zoomPercent",
            "externalEditorPath",
            "showOutlineByDefault",
        }

    def test_from_dict_sanitizes(self):
        config = ViewerConfig.from_dict({"zoomPercent": 500})
        assert config.zoom_percent == 200

    def test_copy_is_independent(self):
        original = ViewerConfig()
        copied = original.copy()
        copied.zoom_percent = 150
        assert original.zoom_percent == 100


class TestConfigStore:
    """Tests for ConfigStore load/save."""

    def test_load_missing_writes_defaults(self, tmp_path):
        store = ConfigStore(tmp_path / "cfg")
        config, warning = store.load()
        assert config == ViewerConfig()
        assert warning is None
        assert store.path.exists()
        assert json.loads(store.path.read_text())["refreshDebounceMs"] == 220

    def test_load_malformed_json(self, tmp_path):
        store = ConfigStore(tmp_path)
        store.path.write_text("{not json", encoding="utf-8")
        config, warning = store.load()
        assert config == ViewerConfig()
        assert warning.startswith("Config load failed, using defaults:")

    def test_load_non_object(self, tmp_path):
        store = ConfigStore(tmp_path)
        store.path.write_text("[1, 2, 3]", encoding="utf-8")
        config, warning = store.load()
        assert config == ViewerConfig()
        assert "expected a JSON object" in warning

    def test_load_sanitizes_fields(self, tmp_path):
        store = ConfigStore(tmp_path)
        store.path.write_text(json.dumps({"zoomPercent": 9999, "showOutlineByDefault": False}))
        config, warning = store.load()
        assert config.zoom_percent == 200
        assert config.show_outline_by_default is False
        assert "zoomPercent" in warning

    def test_save_and_reload(self, tmp_path):
        store = ConfigStore(tmp_path / "nested" / "dir")
        saved = store.save(ViewerConfig(zoom_percent=150, refresh_debounce_ms=500))
        assert saved.zoom_percent == 150

        config, warning = ConfigStore(tmp_path / "nested" / "dir").load()
        assert config.zoom_percent == 150
        assert config.refresh_debounce_ms == 500
        assert warning is None

    def test_save_raw_mapping_is_sanitized(self, tmp_path):
        store = ConfigStore(tmp_path)
        saved = store.save({"zoomPercent": 1})
        assert saved.zoom_percent == 50
        assert json.loads(store.path.read_text())["zoomPercent"] == 50

    def test_save_failure_is_reported(self, tmp_path):
        """Persisting into a path blocked by a file must raise."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = ConfigStore(blocker / "cfg")
        with pytest.raises(ConfigStoreError):
            store.save(ViewerConfig())


class TestDefaultConfigDir:
    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MDVIEW_CONFIG_DIR", str(tmp_path))
        assert default_config_dir() == tmp_path

    def test_home_default(self, monkeypatch):
        monkeypatch.delenv("MDVIEW_CONFIG_DIR", raising=False)
        assert default_config_dir().parts[-2:] == (".config", "markdown-viewer")
