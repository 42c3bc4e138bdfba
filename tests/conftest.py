"""Shared builders for survey samples and signal histories."""

import pytest

from rfcast.analysis.history import ApHistory, ConnectionEvent, NetworkTrend
from rfcast.analysis.types import SurveyCoord, SurveySample

NOW_MS = 1_700_000_000_000
MINUTE_MS = 60_000


@pytest.fixture
def now_ms():
    return NOW_MS


@pytest.fixture
def make_sample():
    """Build a located (or unlocated, when x is None) single-AP survey sample."""
    counter = iter(range(1_000_000))

    def build(rssi, x=None, y=None, bssid="aa:bb:cc:dd:ee:01"):
        location = SurveyCoord(x, y) if x is not None else None
        return SurveySample(f"s{next(counter)}", {bssid: rssi}, location)

    return build


@pytest.fixture
def make_history():
    """
    Build an AP history ending at NOW_MS from RSSI values, oldest first.

    Readings are `step_ms` apart; the last one is taken at `end_ms`.
    """
    def build(
        values,
        step_ms=MINUTE_MS,
        end_ms=NOW_MS,
        bssid="aa:bb:cc:dd:ee:01",
        ssid="office",
        connects=0,
        disconnects=0,
    ):
        n = len(values)
        readings = [(end_ms - (n - 1 - i) * step_ms, rssi) for i, rssi in enumerate(values)]
        start = readings[0][0]
        events = [ConnectionEvent(bssid, start + i + 1, True) for i in range(connects)]
        events += [
            ConnectionEvent(bssid, start + connects + i + 1, False) for i in range(disconnects)
        ]
        return ApHistory.from_readings(bssid, ssid, readings, events)

    return build


@pytest.fixture
def make_trend():
    def build(*histories, ssid="office"):
        return NetworkTrend(ssid, tuple(histories))

    return build
