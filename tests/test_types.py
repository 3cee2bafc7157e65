"""Tests for markdown_viewer.types module."""

from markdown_viewer.types import DEFAULT_FRAME, FileUpdate, WindowFrame


class TestWindowFrame:
    def test_offset_both_axes(self):
        assert WindowFrame(10, 20, 300, 200).offset(28) == WindowFrame(38, 48, 300, 200)

    def test_offset_separate_axes(self):
        assert WindowFrame(0, 0, 1, 1).offset(5, -5) == WindowFrame(5, -5, 1, 1)

    def test_copy_is_independent(self):
        copied = DEFAULT_FRAME.copy()
        copied.x = 0
        assert DEFAULT_FRAME.x == 120

    def test_from_dict_valid(self):
        assert WindowFrame.from_dict({"x": 1, "y": 2.5, "width": 3, "height": 4}) == WindowFrame(1, 2.5, 3, 4)

    def test_from_dict_rejects_bad_values(self):
        assert WindowFrame.from_dict(None) is None
        assert WindowFrame.from_dict({"x": 1, "y": 2, "width": 3}) is None
        assert WindowFrame.from_dict({"x": True, "y": 2, "width": 3, "height": 4}) is None


class TestFileUpdate:
    def test_timestamp_in_milliseconds(self):
        update = FileUpdate(file_path="/a.md", content="")
        assert update.updated_at > 1_000_000_000_000
        assert update.warning is None
