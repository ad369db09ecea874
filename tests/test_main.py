"""Tests for the command line front end that need no network."""

from unittest.mock import AsyncMock

import pytest

from live_thumbs import main as live_main
from live_thumbs.collaborators import PublishResult
from live_thumbs.main import build_parser, main


class TestParser:

    def test_start_arguments(self):
        args = build_parser().parse_args(["start", "abc123", "overlays.yaml", "--interval", "30", "--retry"])

        assert args.video_id == "abc123"
        assert args.config == "overlays.yaml"
        assert args.interval == 30.0
        assert args.retry

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:

    def test_logout_when_not_logged_in(self, tmp_path, capsys):
        code = main(["--credentials", str(tmp_path / "creds.json"), "logout"])

        assert code == 1
        assert "Not logged in" in capsys.readouterr().out

    def test_logout_clears_credentials(self, tmp_path, capsys):
        creds = tmp_path / "creds.json"
        creds.write_text('{"access_token": "tok"}')

        code = main(["--credentials", str(creds), "logout"])

        assert code == 0
        assert not creds.exists()

    def test_interval_validated_before_any_request(self, tmp_path, capsys):
        code = main(["--credentials", str(tmp_path / "creds.json"), "start", "abc123", "--interval", "4"])

        assert code == 1
        assert "5 seconds" in capsys.readouterr().err

    def test_bad_config_file(self, tmp_path, capsys):
        config = tmp_path / "overlays.yaml"
        config.write_text("overlays: {}\n")

        code = main(["--credentials", str(tmp_path / "creds.json"), "preview", "abc123", str(config)])

        assert code == 1
        assert "must be a list" in capsys.readouterr().err

    def test_preview_reports_failed_write(self, tmp_path, capsys, monkeypatch):
        manager = AsyncMock()
        manager.last_result = PublishResult(False, "Could not write out/abc123.jpg")
        monkeypatch.setattr(live_main, "build_manager", lambda *args, **kwargs: manager)

        code = main(["--credentials", str(tmp_path / "creds.json"), "preview", "abc123"])

        assert code == 1
        out = capsys.readouterr().out
        assert "Thumbnail not written" in out
        assert "Thumbnail written to" not in out
        manager.update.assert_awaited_once()

    def test_preview_reports_written_path(self, tmp_path, capsys, monkeypatch):
        manager = AsyncMock()
        manager.last_result = PublishResult(True, str(tmp_path / "abc123.jpg"))
        monkeypatch.setattr(live_main, "build_manager", lambda *args, **kwargs: manager)

        code = main(["--credentials", str(tmp_path / "creds.json"), "preview", "abc123"])

        assert code == 0
        assert f"Thumbnail written to {tmp_path / 'abc123.jpg'}" in capsys.readouterr().out
