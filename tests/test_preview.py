"""Tests for the fzf picker and chafa renderer wrappers."""

import io
import subprocess
from unittest.mock import MagicMock

import pytest
import requests

from img_cli import preview
from img_cli.config import ScanConfig

from .conftest import PNG_BYTES, make_response


@pytest.fixture
def preview_config():
    return ScanConfig(timeout=2.0, user_agent="ua/1", preview_width=60, preview_height=30)


class TestMissingTools:
    def test_reports_absent_commands(self, monkeypatch):
        monkeypatch.setattr(preview.shutil, "which", lambda name: None if name == "chafa" else "/usr/bin/fzf")
        assert preview.missing_tools() == ["chafa"]

    def test_all_present(self, monkeypatch):
        monkeypatch.setattr(preview.shutil, "which", lambda name: f"/usr/bin/{name}")
        assert preview.missing_tools() == []


class TestFetchImageBytes:
    def test_png_is_returned(self, preview_config):
        session = MagicMock()
        session.get.return_value = make_response(body=PNG_BYTES)
        assert preview.fetch_image_bytes("https://s.test/a", preview_config, session) == PNG_BYTES
        session.get.assert_called_once_with(
            "https://s.test/a", timeout=2.0, headers={"User-Agent": "ua/1"}
        )

    def test_svg_trusted_by_content_type(self, preview_config):
        session = MagicMock()
        session.get.return_value = make_response(
            body=b"<svg xmlns='http://www.w3.org/2000/svg'/>",
            headers={"Content-Type": "image/svg+xml"},
        )
        assert preview.fetch_image_bytes("https://s.test/a.svg", preview_config, session)

    def test_html_is_rejected(self, preview_config):
        session = MagicMock()
        session.get.return_value = make_response(
            body=b"<html></html>", headers={"Content-Type": "text/html"}
        )
        assert preview.fetch_image_bytes("https://s.test/a.png", preview_config, session) is None

    def test_network_error(self, preview_config):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("slow")
        assert preview.fetch_image_bytes("https://s.test/a.png", preview_config, session) is None


class TestRenderImage:
    def test_pipes_bytes_to_chafa(self, preview_config, monkeypatch):
        session = MagicMock()
        session.get.return_value = make_response(body=PNG_BYTES)
        run = MagicMock(return_value=subprocess.CompletedProcess([], 0))
        monkeypatch.setattr(preview.subprocess, "run", run)
        assert preview.render_image("https://s.test/a.png", preview_config, session) is True
        run.assert_called_once_with(["chafa", "--size", "60x30", "-"], input=PNG_BYTES, check=False)

    def test_chafa_failure(self, preview_config, monkeypatch):
        session = MagicMock()
        session.get.return_value = make_response(body=PNG_BYTES)
        monkeypatch.setattr(
            preview.subprocess, "run", MagicMock(return_value=subprocess.CompletedProcess([], 1))
        )
        assert preview.render_image("https://s.test/a.png", preview_config, session) is False


class TestPicker:
    def test_preview_command_targets_module(self, preview_config):
        command = preview.build_preview_command(preview_config)
        assert "-m img_cli.preview --size 60x30 --timeout 2.0" in command
        assert command.endswith(" {}")

    def test_selected_url(self, preview_config, monkeypatch):
        run = MagicMock(return_value=subprocess.CompletedProcess([], 0, stdout="https://s.test/b.png\n"))
        monkeypatch.setattr(preview.subprocess, "run", run)
        urls = ["https://s.test/a.png", "https://s.test/b.png"]
        assert preview.pick_url(urls, preview_config) == "https://s.test/b.png"
        args, kwargs = run.call_args
        assert args[0][0] == "fzf"
        assert "--preview-window=right:70%:wrap" in args[0]
        assert kwargs["input"] == "https://s.test/a.png\nhttps://s.test/b.png\n"
        assert kwargs["env"]["IMG_CLI_USER_AGENT"] == "ua/1"

    @pytest.mark.parametrize("returncode,stdout", [(130, ""), (1, ""), (0, "\n")])
    def test_nothing_selected(self, preview_config, monkeypatch, returncode, stdout):
        monkeypatch.setattr(
            preview.subprocess,
            "run",
            MagicMock(return_value=subprocess.CompletedProcess([], returncode, stdout=stdout)),
        )
        assert preview.pick_url(["https://s.test/a.png"], preview_config) is None


class TestRunPreview:
    def test_no_selection_is_not_an_error(self, preview_config, monkeypatch):
        monkeypatch.setattr(preview, "pick_url", lambda urls, config: None)
        monkeypatch.setattr(preview, "render_image", pytest.fail)
        out = io.StringIO()
        assert preview.run_preview(["https://s.test/a.png"], preview_config, stdout=out) is None
        assert out.getvalue() == ""

    def test_selection_is_echoed_and_rendered(self, preview_config, monkeypatch):
        monkeypatch.setattr(preview, "pick_url", lambda urls, config: urls[0])
        rendered = []
        monkeypatch.setattr(
            preview, "render_image", lambda url, config: rendered.append(url) or True
        )
        out = io.StringIO()
        assert preview.run_preview(["https://s.test/a.png"], preview_config, stdout=out) == "https://s.test/a.png"
        assert out.getvalue() == "https://s.test/a.png\n"
        assert rendered == ["https://s.test/a.png"]


def test_pane_entry_point(monkeypatch, capsys):
    captured = {}

    def _render(url, config):
        captured["url"] = url
        captured["config"] = config
        return True

    monkeypatch.setattr(preview, "render_image", _render)
    monkeypatch.setenv("IMG_CLI_USER_AGENT", "pane-agent")
    assert preview.main(["--size", "30x15", "--timeout", "4", "https://s.test/a.png"]) == 0
    assert capsys.readouterr().out.startswith("URL: https://s.test/a.png\nLoading image preview...\n")
    assert captured["config"].preview_size == "30x15"
    assert captured["config"].timeout == 4.0
    assert captured["config"].user_agent == "pane-agent"
