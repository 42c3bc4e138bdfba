"""Tests for the rfcast command line."""
import json
import logging
import runpy
import sys

import pytest

from rfcast.cli import main

NOW_MS = 1_700_000_000_000


def _write(tmp_path, name, payload):
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def _close_file_handlers():
    for name, logger in list(logging.root.manager.loggerDict.items()):
        if name.startswith("rfcast") and isinstance(logger, logging.Logger):
            for handler in [h for h in logger.handlers if isinstance(h, logging.FileHandler)]:
                logger.removeHandler(handler)
                handler.close()


def _run(capsys, *argv):
    main(list(argv))
    return json.loads(capsys.readouterr().out)


@pytest.fixture
def survey(tmp_path):
    return _write(tmp_path, "survey.json", {
        "bounds": {"min_x": 0, "min_y": 0, "max_x": 10, "max_y": 10},
        "samples": [{"id": "desk", "x": 0.5, "y": 0.5, "rssi": {"ap1": -95}}],
    })


@pytest.fixture
def history(tmp_path):
    return _write(tmp_path, "history.json", {
        "bssid": "ap1",
        "ssid": "office",
        "observations": [
            {"ts": NOW_MS - (29 - i) * 60_000, "rssi": -80 + i} for i in range(30)
        ],
        "connections": [{"ts": NOW_MS - 1000, "connected": True}],
    })


@pytest.fixture
def network(tmp_path):
    observations = [{"ts": NOW_MS - (99 - i) * 30_000, "rssi": -55} for i in range(100)]
    return _write(tmp_path, "network.json", {
        "ssid": "office",
        "aps": [
            {"bssid": "ap1", "ssid": "office", "observations": observations},
            {"bssid": "ap2", "ssid": "office", "observations": observations},
        ],
    })


def test_heatmap(capsys, survey):
    """Test heatmap output shape and enum rendering."""
    out = _run(capsys, "heatmap", survey, "--resolution", "5", "--method", "nearest")
    assert out["width"] == 3
    assert out["height"] == 3
    assert out["values"] == [[-95] * 3] * 3
    assert out["method"] == "nearest"
    assert out["average_signal"] == -95


def test_coverage(capsys, survey):
    """Test coverage summary without the grid."""
    out = _run(capsys, "coverage", survey, "--resolution", "5")
    assert "heatmap" not in out
    assert out["total_cells"] == 9
    assert out["no_coverage_cells"] == 9
    assert out["overall_quality"] == "Poor"


def test_deadzones(capsys, survey):
    """Test dead-zone listing with severity."""
    out = _run(capsys, "deadzones", survey)
    assert len(out) == 1
    assert out[0]["cell_count"] == 121
    assert out[0]["severity"] == "High"

    assert _run(capsys, "deadzones", survey, "--threshold", "-100") == []


def test_forecast(capsys, history):
    """Test a per-AP signal forecast at a fixed reference time."""
    out = _run(capsys, "forecast", history, "--horizon-min", "10", "--now", str(NOW_MS))
    assert out["predicted_rssi"] == -41
    assert out["target_time_ms"] == NOW_MS + 600_000
    assert out["confidence"] == "Low"


def test_issues(capsys, history):
    """Test connection-issue output with its nested forecast."""
    out = _run(capsys, "issues", history, "--horizon-min", "10", "--now", str(NOW_MS))
    assert out["risk_level"] == "Minimal"
    assert out["signal_prediction"]["predicted_rssi"] == -41
    assert out["likely_issues"] == ["Unstable connection"]


def test_timing(capsys, history):
    """Test connection-time recommendation."""
    out = _run(capsys, "timing", history, "--hours", "2", "--now", str(NOW_MS))
    assert out["recommendation"] == "Wait for Better Signal"


def test_health_and_coverage_forecast(capsys, network):
    """Test network-level forecasts."""
    out = _run(capsys, "health", network, "--horizon-min", "60", "--now", str(NOW_MS))
    assert out["current_health"] == "Good"
    assert out["trend"] == "Stable"
    assert out["summary"] == "Good -> Good"

    out = _run(capsys, "coverage-forecast", network, "--horizon-min", "60", "--now", str(NOW_MS))
    assert out["predicted_ap_count"] == 2
    assert out["quality"] == "Excellent"


def test_invalid_document_exits_with_error(capsys, tmp_path):
    """Test that schema errors exit with status 2 and print nothing."""
    path = _write(tmp_path, "bad.json", {"bssid": "ap1", "ssid": "office", "observations": []})
    with pytest.raises(SystemExit) as exc:
        main(["forecast", path, "--horizon-min", "10"])
    assert exc.value.code == 2
    assert capsys.readouterr().out == ""


def test_missing_file_exits_with_error(tmp_path):
    """Test that an unreadable input exits with status 2."""
    with pytest.raises(SystemExit) as exc:
        main(["heatmap", str(tmp_path / "missing.json")])
    assert exc.value.code == 2


def test_horizon_too_long_exits_with_error(history):
    """Test that engine argument errors exit with status 2."""
    with pytest.raises(SystemExit) as exc:
        main(["forecast", history, "--horizon-min", str(25 * 60), "--now", str(NOW_MS)])
    assert exc.value.code == 2


def test_version(capsys):
    """Test the version command."""
    main(["version"])
    assert capsys.readouterr().out.startswith("rfcast ")


def test_log_file(tmp_path, capsys):
    """Test that --log-file writes JSON log lines."""
    log_path = tmp_path / "rfcast.log"
    try:
        main(["--log-file", str(log_path), "version"])
    finally:
        _close_file_handlers()

    records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert records[0]["logger"] == "rfcast.cli"
    assert records[0]["level"] == "INFO"


@pytest.mark.filterwarnings("ignore::RuntimeWarning")
def test_log_file_when_run_as_module(tmp_path, capsys, monkeypatch):
    """Test that `python -m rfcast.cli` logs under the rfcast.cli logger."""
    log_path = tmp_path / "rfcast.log"
    monkeypatch.setattr(sys, "argv", ["rfcast", "--log-file", str(log_path), "version"])
    try:
        namespace = runpy.run_module("rfcast.cli", run_name="__main__")
    finally:
        _close_file_handlers()

    assert namespace["logger"].name == "rfcast.cli"
    assert capsys.readouterr().out.startswith("rfcast ")
    records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert records
    assert {r["logger"] for r in records} == {"rfcast.cli"}
