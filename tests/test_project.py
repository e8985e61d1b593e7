"""Tests for project and settings persistence."""

import json
import tempfile
from pathlib import Path

from takecut.core.cutlist import CutListModel
from takecut.core.models import (
    Cut,
    CutKind,
    ExportFormat,
    ExportSettings,
    FrameRate,
    Resolution,
    Segment,
    TrimWindow,
)
from takecut.core.project import Project
from takecut.core.settings import Settings


class TestProject:
    """Proje kaydet/yükle testleri."""

    def test_round_trip(self):
        model = CutListModel.create(
            20.0,
            cuts=[
                Cut(1.0, 2.0, CutKind.FILLER, "um", True, "filler-1.000"),
                Cut(5.0, 7.5, CutKind.SILENCE, "Silence (2.5s)", False, "silence-5.000"),
            ],
        ).add_manual_cut(10, 11).set_trim(0.5, 18.0)

        project = Project(
            name="demo",
            media_path=Path("/videos/demo.webm"),
            model=model,
            export_settings=ExportSettings(ExportFormat.GIF, Resolution.SD_480, FrameRate.FPS_15),
        )

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "demo.takecut"
            project.save(path)
            saved = json.loads(path.read_text())
            loaded = Project.load(path)

        assert "segments" not in saved
        assert loaded.id == project.id
        assert loaded.media_path == Path("/videos/demo.webm")
        assert loaded.model == model
        assert loaded.model.compute_keep_segments() == model.compute_keep_segments()
        assert loaded.export_settings == project.export_settings
        assert loaded.created_at

    def test_project_without_media(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "empty.takecut"
            Project(name="empty").save(path)
            loaded = Project.load(path)

        assert loaded.model is None
        assert loaded.media_path is None
        assert loaded.export_settings == ExportSettings()

    def test_null_cuts_and_settings(self):
        """Elle düzenlenmiş dosyada null alanlar boş kabul edilir."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "null.takecut"
            path.write_text(json.dumps({
                "media_path": "/videos/take.webm",
                "duration": 12.0,
                "trim": None,
                "cuts": None,
                "export_settings": None,
            }))
            loaded = Project.load(path)

        assert loaded.model.cuts == ()
        assert loaded.model.compute_keep_segments() == [Segment(0, 12.0)]
        assert loaded.export_settings == ExportSettings()

    def test_min_trim_gap_applied(self):
        """Yüklenen model ayarlardaki minimum trim aralığını kullanır."""
        model = CutListModel.create(20.0).set_trim(2.0, 10.0)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "gap.takecut"
            Project(name="gap", media_path=Path("/v.webm"), model=model).save(path)
            loaded = Project.load(path, min_trim_gap=1.5)

        assert loaded.model.min_trim_gap == 1.5
        assert loaded.model.trim == TrimWindow(2.0, 10.0)
        assert loaded.model.set_trim_start(9.9).trim.start == 8.5


class TestSettings:
    """Ayar dosyası testleri."""

    def test_round_trip(self):
        settings = Settings(mp4_crf=19, default_export_format="gif", default_frame_rate=15)
        settings.add_recent_project("/a.takecut")

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "settings.json"
            settings.save(path)
            loaded = Settings.load(path)

        assert loaded.mp4_crf == 19
        assert loaded.recent_projects == ["/a.takecut"]
        export = loaded.default_export_settings()
        assert export.format is ExportFormat.GIF
        assert export.frame_rate is FrameRate.FPS_15

    def test_missing_file_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            loaded = Settings.load(Path(tmpdir) / "nope.json")
        assert loaded == Settings()

    def test_corrupt_file_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "settings.json"
            path.write_text("{broken")
            assert Settings.load(path) == Settings()

    def test_unknown_keys_ignored(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "settings.json"
            path.write_text(json.dumps({"language": "tr", "mp4_preset": "slow"}))
            assert Settings.load(path).mp4_preset == "slow"

    def test_invalid_export_defaults(self):
        settings = Settings(default_resolution="4k")
        assert settings.default_export_settings() == ExportSettings()

    def test_recent_projects_limit(self):
        settings = Settings(max_recent_projects=2)
        for name in ("a", "b", "c", "b"):
            settings.add_recent_project(name)
        assert settings.recent_projects == ["b", "c"]

    def test_remember_export_settings(self):
        settings = Settings()
        settings.remember_export_settings(
            ExportSettings(ExportFormat.GIF, Resolution.FHD_1080, FrameRate.FPS_24)
        )
        assert settings.default_export_format == "gif"
        assert settings.default_resolution == "1080p"
        assert settings.default_frame_rate == 24
