"""Tests for persisted Settings."""

import json

from trimmark.config import Settings
from trimmark.model.project import Anchor


class TestSettingsPersistence:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert Settings.load(tmp_path / "settings.json") == Settings()

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        settings = Settings(watermark_text="ACME", quality=23, ffmpeg_path="/opt/ffmpeg")
        settings.save(path)
        assert Settings.load(path) == settings

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"quality": 20, "removed_option": True}))
        loaded = Settings.load(path)
        assert loaded.quality == 20

    def test_corrupt_file_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        assert Settings.load(path) == Settings()


class TestDerivedValues:
    def test_anchor(self):
        assert Settings(watermark_anchor="topLeft").anchor is Anchor.TOP_LEFT

    def test_invalid_anchor_falls_back(self):
        assert Settings(watermark_anchor="middle").anchor is Anchor.BOTTOM_RIGHT

    def test_binary_override(self):
        settings = Settings(ffmpeg_path="/a", ffprobe_path="/b", ytdlp_path="/c")
        assert settings.binary_override("ffmpeg") == "/a"
        assert settings.binary_override("ffprobe") == "/b"
        assert settings.binary_override("yt-dlp") == "/c"
        assert settings.binary_override("other") == ""

    def test_default_watermark(self):
        wm = Settings(watermark_text="Hi", watermark_offset_x=5).default_watermark()
        assert wm.text == "Hi"
        assert wm.offset_x == 5
        assert wm.offset_y == 24
        assert wm.anchor is Anchor.BOTTOM_RIGHT

    def test_default_export(self):
        export = Settings(quality=30, use_hardware_accel=True).default_export()
        assert export.quality == 30
        assert export.use_hardware_accel is True
        assert export.output_path is None
