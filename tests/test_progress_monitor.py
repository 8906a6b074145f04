"""
CLI rendering and configuration tests.
"""

import io

from cli.progress_monitor import ProgressMonitor, format_job
from core.config import Config, VertexConfig
from services.batch import JobStatus, VideoJob
from services.video_generation.models import SourceImage, VideoAsset


def job(**changes) -> VideoJob:
    base = VideoJob(image=SourceImage(data=b"x", mime_type="image/png", name="beach.png"))
    return VideoJob(**{**base.__dict__, **changes})


class TestFormatJob:
    def test_failed_job_shows_error(self):
        line = format_job(job(status=JobStatus.FAILED, error="Stopped by user"))
        assert "FAILED" in line
        assert "Stopped by user" in line

    def test_completed_job_shows_size(self):
        asset = VideoAsset(data=b"\0" * 1024 * 1024)
        line = format_job(job(status=JobStatus.COMPLETED, progress="Done", result=asset))
        assert "Done (1.0 MB)" in line
        assert "beach.png" in line


class TestProgressMonitor:
    def test_duplicate_lines_are_skipped(self):
        out = io.StringIO()
        monitor = ProgressMonitor(stream=out)
        processing = job(status=JobStatus.PROCESSING, progress="Encoding image...")

        monitor.handle_job(processing)
        monitor.handle_job(processing)

        assert out.getvalue().count("Encoding image...") == 1

    def test_summary_counts(self):
        out = io.StringIO()
        ProgressMonitor(stream=out).print_summary(
            [job(status=JobStatus.COMPLETED), job(status=JobStatus.FAILED)]
        )
        assert "2 total" in out.getvalue()


class TestConfigValidation:
    def test_no_credentials(self, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        config = Config(vertex=VertexConfig(project_id="", location="us-central1", access_token=""))
        assert any("No credentials" in issue for issue in config.validate())

    def test_partial_vertex_settings_are_reported(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "key")
        config = Config(vertex=VertexConfig(project_id="proj", location="us-central1", access_token=""))
        assert any("incomplete" in issue for issue in config.validate())

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("VEO_MODEL", raising=False)
        config = Config()
        assert config.api.model == "veo-3.1-fast-generate-preview"
        assert config.retry.submit_max_retries == 50
        assert config.retry.max_not_found_polls == 120
