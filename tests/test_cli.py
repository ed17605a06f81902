"""Tests for the command line entry point."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from kannelstatus import main

from conftest import STATUS_XML

CONFIG = """instances:
  - name: Kannel 1
    base_url: http://kannel.example.com:13000
    status_password: foobar
  - name: Kannel 2
    base_url: http://kannel.example.com:23000
"""


def _fake_get(url: str, **kwargs) -> MagicMock:
    if ":13000/" not in url:
        raise requests.ConnectionError("connection refused")
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.text = STATUS_XML
    return response


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG)
    return path


class TestRenderCommand:
    """Tests for the render subcommand."""

    @patch("kannelstatus.fetcher.requests.get", side_effect=_fake_get)
    def test_writes_page_to_file(self, mock_get: MagicMock, config_file: Path, tmp_path: Path, monkeypatch) -> None:
        output = tmp_path / "status.html"
        monkeypatch.setattr(
            "sys.argv",
            ["kannelstatus", "render", "-c", str(config_file), "-o", str(output), "--refresh", "30", "--details"],
        )

        main()

        html = output.read_text(encoding="utf-8")
        assert '<meta http-equiv="refresh" content="30; URL=/?refresh=30&amp;details=1">' in html
        assert "<h4>SMSC connection details</h4>" in html
        assert mock_get.call_count == 2

    @patch("kannelstatus.fetcher.requests.get", side_effect=_fake_get)
    def test_writes_page_to_stdout(self, mock_get: MagicMock, config_file: Path, monkeypatch, capsys) -> None:
        monkeypatch.setattr("sys.argv", ["kannelstatus", "render", "-c", str(config_file)])

        main()

        out = capsys.readouterr().out
        assert out.startswith("<!DOCTYPE html>")
        assert 'content="60; URL=/?refresh=60"' in out

    def test_invalid_refresh(self, config_file: Path, monkeypatch) -> None:
        monkeypatch.setattr("sys.argv", ["kannelstatus", "render", "-c", str(config_file), "--refresh", "0"])

        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1

    def test_missing_config(self, tmp_path: Path, monkeypatch, capsys) -> None:
        monkeypatch.setattr("sys.argv", ["kannelstatus", "render", "-c", str(tmp_path / "nope.yaml")])

        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        assert "not found" in capsys.readouterr().err


class TestCheckCommand:
    """Tests for the check subcommand."""

    @patch("kannelstatus.fetcher.requests.get", side_effect=_fake_get)
    def test_reports_each_instance(self, mock_get: MagicMock, config_file: Path, monkeypatch, capsys) -> None:
        monkeypatch.setattr("sys.argv", ["kannelstatus", "check", "-c", str(config_file)])

        with pytest.raises(SystemExit) as exc_info:
            main()

        out = capsys.readouterr().out
        assert exc_info.value.code == 1
        assert "✓ (0) Kannel 1: running, 2/4 links online, 2 box(es), queued 12 MO / 95 MT" in out
        assert "✗ (1) Kannel 2: Connection failed:" in out
        assert "Total: 1.234.567 received (12,50 msgs/s), 2.500 sent (3,25 msgs/s)" in out
        assert "Result: 1/2 instances reachable" in out

    @patch("kannelstatus.fetcher.requests.get", side_effect=_fake_get)
    def test_all_reachable_exits_cleanly(self, mock_get: MagicMock, tmp_path: Path, monkeypatch, capsys) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("instances:\n  - name: k\n    base_url: http://kannel.example.com:13000\n")
        monkeypatch.setattr("sys.argv", ["kannelstatus", "check", "-c", str(path)])

        main()

        assert "Result: 1/1 instances reachable" in capsys.readouterr().out
