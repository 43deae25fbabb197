import json
import subprocess
from pathlib import Path

import pytest

from freeshot import capture
from freeshot.config import Config
from freeshot.errors import CaptureError
from freeshot.raster import Raster

OUTPUTS = {"outputs": [{"name": "DP-1"}, {"name": "HDMI-A-1"}]}


class FakeRun:
    """Stands in for subprocess.run, recording every command."""

    def __init__(self, list_stdout=json.dumps(OUTPUTS), capture_returncode=0, capture_stderr=""):
        self.list_stdout = list_stdout
        self.capture_returncode = capture_returncode
        self.capture_stderr = capture_stderr
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        if "--list" in cmd:
            return subprocess.CompletedProcess(cmd, 0, stdout=self.list_stdout, stderr="")
        Path(cmd[cmd.index("--output-file") + 1]).write_bytes(b"png")
        return subprocess.CompletedProcess(
            cmd, self.capture_returncode, stdout="", stderr=self.capture_stderr
        )

    def output_file(self) -> Path:
        cmd = self.calls[-1]
        return Path(cmd[cmd.index("--output-file") + 1])


@pytest.fixture
def config():
    return Config(wayland_capture="wayland-capture-test")


@pytest.fixture
def fake_run(monkeypatch):
    run = FakeRun()
    monkeypatch.setattr(capture.subprocess, "run", run)
    monkeypatch.setattr(capture, "_load_png", lambda path: Raster.blank(4, 3))
    return run


def test_list_outputs(fake_run, config):
    assert [o["name"] for o in capture.list_outputs(config)] == ["DP-1", "HDMI-A-1"]
    assert fake_run.calls[0] == ["wayland-capture-test", "--list", "--json"]


def test_list_outputs_tolerates_bad_json(fake_run, config):
    fake_run.list_stdout = "not json"
    assert capture.list_outputs(config) == []


def test_resolve_output_by_index(fake_run, config):
    assert capture.resolve_output(1, config) == "HDMI-A-1"
    assert capture.resolve_output("0", config) == "DP-1"
    assert capture.resolve_output(None, config) == "DP-1"


def test_resolve_output_by_name_skips_listing(fake_run, config):
    assert capture.resolve_output("eDP-1", config) == "eDP-1"
    assert fake_run.calls == []


def test_resolve_output_out_of_range(fake_run, config):
    with pytest.raises(CaptureError, match="Monitor 5 not found"):
        capture.resolve_output(5, config)


def test_resolve_output_without_monitors(fake_run, config):
    fake_run.list_stdout = json.dumps({"outputs": []})
    with pytest.raises(CaptureError, match="No monitors found"):
        capture.resolve_output(0, config)


def test_capture_monitor(fake_run, config):
    raster = capture.capture_monitor(1, config=config)
    assert raster.size == (4, 3)
    assert fake_run.calls[-1][:3] == ["wayland-capture-test", "--output", "HDMI-A-1"]
    assert not fake_run.output_file().exists()


def test_capture_monitor_defaults_to_config_monitor(fake_run):
    config = Config(monitor="DP-7")
    capture.capture_monitor(config=config)
    assert fake_run.calls[-1][2] == "DP-7"


def test_capture_failure_raises_and_cleans_up(fake_run, config):
    fake_run.capture_returncode = 1
    fake_run.capture_stderr = "compositor refused\n"
    with pytest.raises(CaptureError, match="Screen capture failed: compositor refused"):
        capture.capture_monitor(0, config=config)
    assert not fake_run.output_file().exists()


def test_missing_binary(monkeypatch, config):
    def missing(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(capture.subprocess, "run", missing)
    with pytest.raises(CaptureError, match="wayland-capture not found"):
        capture.capture_monitor("DP-1", config=config)


def test_timeout(monkeypatch, config):
    def slow(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr(capture.subprocess, "run", slow)
    with pytest.raises(CaptureError, match="timed out"):
        capture.capture_monitor("DP-1", config=config)
