# rfcast/analysis/history.py

"""
Per-AP and per-network signal histories.

These records are the forecasting input. They are built by the scan/topology
layer; here they only validate, order and summarize what they are given.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence, Tuple

from rfcast.analysis.tiers import (
    NetworkHealth,
    NetworkTrendDirection,
    SignalStability,
    SignalTrend,
)
from rfcast.analysis.types import check_rssi

VISIBILITY_THRESHOLD_MS = 60_000


def _check_bssid_and_ts(bssid: str, timestamp_ms: int) -> None:
    if not bssid.strip():
        raise ValueError("BSSID must not be blank")
    if timestamp_ms <= 0:
        raise ValueError(f"Timestamp must be positive, got {timestamp_ms}")


@dataclass(frozen=True)
class SignalObservation:
    """
    One RSSI reading of an AP.

    Parameters
    ----------
    bssid : str
        MAC address of the access point.
    timestamp_ms : int
        When the reading was taken (epoch millis, > 0).
    rssi : int
        Signal strength in dBm, [-120, 0].
    """
    bssid: str
    timestamp_ms: int
    rssi: int

    def __post_init__(self) -> None:
        _check_bssid_and_ts(self.bssid, self.timestamp_ms)
        check_rssi(self.rssi)


@dataclass(frozen=True)
class ConnectionEvent:
    """
    A connection to, or disconnection from, an AP.

    Parameters
    ----------
    bssid : str
        MAC address of the access point.
    timestamp_ms : int
        When the event happened (epoch millis, > 0).
    is_connection : bool
        True for a connection, False for a disconnection.
    duration_ms : int, optional
        How long the session lasted, when known.
    """
    bssid: str
    timestamp_ms: int
    is_connection: bool
    duration_ms: Optional[int] = None

    def __post_init__(self) -> None:
        _check_bssid_and_ts(self.bssid, self.timestamp_ms)
        if self.duration_ms is not None and self.duration_ms < 0:
            raise ValueError(f"Duration must be non-negative, got {self.duration_ms}")

    @property
    def is_disconnection(self) -> bool:
        return not self.is_connection


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _index_slope(values: Sequence[float]) -> float:
    """OLS slope of `values` against their index (units per observation)."""
    n = len(values)
    if n < 2:
        return 0.0
    x_mean = (n - 1) / 2
    y_mean = _mean(values)
    num = sum((i - x_mean) * (v - y_mean) for i, v in enumerate(values))
    den = sum((i - x_mean) ** 2 for i in range(n))
    return num / den if den else 0.0


@dataclass(frozen=True)
class ApHistory:
    """
    Time-ordered RSSI history of a single access point.

    Observations are sorted by timestamp on construction. Whole-history
    statistics (mean, standard deviation, extremes) use every observation;
    the `recent_*` helpers look at a trailing window ending at `now_ms`.

    Parameters
    ----------
    bssid : str
        MAC address of the access point.
    ssid : str
        Network the AP belongs to.
    observations : sequence of SignalObservation
        Non-empty; every entry must carry `bssid`.
    connection_events : sequence of ConnectionEvent
        Connection history, possibly empty.
    """
    bssid: str
    ssid: str
    observations: Tuple[SignalObservation, ...]
    connection_events: Tuple[ConnectionEvent, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.bssid.strip():
            raise ValueError("BSSID must not be blank")
        if not self.ssid.strip():
            raise ValueError("SSID must not be blank")
        if not self.observations:
            raise ValueError("Observations must not be empty")
        for obs in self.observations:
            if obs.bssid != self.bssid:
                raise ValueError(
                    f"Observation BSSID {obs.bssid} does not match history BSSID {self.bssid}"
                )
        object.__setattr__(
            self, "observations", tuple(sorted(self.observations, key=lambda o: o.timestamp_ms))
        )
        object.__setattr__(
            self, "connection_events",
            tuple(sorted(self.connection_events, key=lambda e: e.timestamp_ms)),
        )

    @classmethod
    def from_readings(
        cls,
        bssid: str,
        ssid: str,
        readings: Sequence[Tuple[int, int]],
        connection_events: Sequence[ConnectionEvent] = (),
    ) -> ApHistory:
        """Build a history from (timestamp_ms, rssi) pairs."""
        return cls(
            bssid=bssid,
            ssid=ssid,
            observations=tuple(SignalObservation(bssid, ts, rssi) for ts, rssi in readings),
            connection_events=tuple(connection_events),
        )

    # --- whole-history statistics ---------------------------------------------

    @property
    def first_seen_ms(self) -> int:
        return self.observations[0].timestamp_ms

    @property
    def last_seen_ms(self) -> int:
        return self.observations[-1].timestamp_ms

    @property
    def observation_count(self) -> int:
        return len(self.observations)

    @property
    def average_rssi(self) -> float:
        return _mean([o.rssi for o in self.observations])

    @property
    def peak_rssi(self) -> int:
        return max(o.rssi for o in self.observations)

    @property
    def min_rssi(self) -> int:
        return min(o.rssi for o in self.observations)

    @property
    def rssi_std_dev(self) -> float:
        """Population standard deviation of RSSI."""
        mean = self.average_rssi
        variance = _mean([(o.rssi - mean) ** 2 for o in self.observations])
        return math.sqrt(variance)

    @property
    def signal_stability(self) -> SignalStability:
        return SignalStability.from_std_dev(self.rssi_std_dev)

    @property
    def connection_count(self) -> int:
        return sum(1 for e in self.connection_events if e.is_connection)

    @property
    def disconnection_count(self) -> int:
        return sum(1 for e in self.connection_events if e.is_disconnection)

    @property
    def connection_success_rate(self) -> float:
        if not self.connection_events:
            return 0.0
        return self.connection_count / len(self.connection_events)

    # --- windowed views -------------------------------------------------------

    def recent_observations(self, window_ms: int, now_ms: int) -> list[SignalObservation]:
        cutoff = now_ms - window_ms
        return [o for o in self.observations if o.timestamp_ms >= cutoff]

    def recent_average_rssi(self, window_ms: int, now_ms: int) -> Optional[float]:
        recent = self.recent_observations(window_ms, now_ms)
        if not recent:
            return None
        return _mean([o.rssi for o in recent])

    def is_visible(self, now_ms: int, threshold_ms: int = VISIBILITY_THRESHOLD_MS) -> bool:
        return now_ms - self.last_seen_ms < threshold_ms

    def signal_trend(self, window_ms: int, now_ms: int) -> SignalTrend:
        recent = self.recent_observations(window_ms, now_ms)
        if len(recent) < 3:
            return SignalTrend.INSUFFICIENT_DATA
        return SignalTrend.from_slope(_index_slope([o.rssi for o in recent]))

    def estimate_rssi_at(self, timestamp_ms: int) -> Optional[int]:
        """
        Linearly interpolate RSSI between the observations around `timestamp_ms`.

        Returns None outside the observed time span.
        """
        if not self.first_seen_ms <= timestamp_ms <= self.last_seen_ms:
            return None
        before = after = None
        for obs in self.observations:
            if obs.timestamp_ms <= timestamp_ms:
                before = obs
            if obs.timestamp_ms >= timestamp_ms:
                after = obs
                break
        if before.timestamp_ms == after.timestamp_ms:
            return before.rssi
        ratio = (timestamp_ms - before.timestamp_ms) / (after.timestamp_ms - before.timestamp_ms)
        return round(before.rssi + (after.rssi - before.rssi) * ratio)

    # --- copies ---------------------------------------------------------------

    def with_observation(self, observation: SignalObservation) -> ApHistory:
        if observation.bssid != self.bssid:
            raise ValueError(
                f"Observation BSSID {observation.bssid} does not match history BSSID {self.bssid}"
            )
        return replace(self, observations=self.observations + (observation,))

    def with_connection_event(self, event: ConnectionEvent) -> ApHistory:
        if event.bssid != self.bssid:
            raise ValueError(
                f"Connection event BSSID {event.bssid} does not match history BSSID {self.bssid}"
            )
        return replace(self, connection_events=self.connection_events + (event,))

    @property
    def summary(self) -> str:
        text = (
            f"{self.bssid} ({self.ssid}): {self.observation_count} observations, "
            f"avg {round(self.average_rssi)}dBm, {self.signal_stability.display_name}"
        )
        if self.connection_count:
            text += f", {self.connection_count} connections"
        return text


# Roaming history belongs to the topology layer; its share of the health
# score is held at the neutral midpoint.
_NEUTRAL_ROAMING_SCORE = 10.0

_STABILITY_SCORE = {
    SignalStability.VERY_STABLE: 30.0,
    SignalStability.STABLE: 25.0,
    SignalStability.MODERATE: 15.0,
    SignalStability.UNSTABLE: 8.0,
    SignalStability.VERY_UNSTABLE: 2.0,
}


def _signal_score(avg_rssi: float) -> float:
    if avg_rssi >= -50:
        return 40.0
    if avg_rssi >= -60:
        return 35.0
    if avg_rssi >= -70:
        return 25.0
    if avg_rssi >= -80:
        return 15.0
    return 5.0


@dataclass(frozen=True)
class NetworkTrend:
    """
    Histories of every AP broadcasting one SSID.

    Parameters
    ----------
    ssid : str
        Network name shared by every history.
    ap_histories : sequence of ApHistory
        Non-empty.
    """
    ssid: str
    ap_histories: Tuple[ApHistory, ...]

    def __post_init__(self) -> None:
        if not self.ssid.strip():
            raise ValueError("SSID must not be blank")
        if not self.ap_histories:
            raise ValueError("AP histories must not be empty")
        for history in self.ap_histories:
            if history.ssid != self.ssid:
                raise ValueError(f"All AP histories must belong to SSID {self.ssid}")
        object.__setattr__(self, "ap_histories", tuple(self.ap_histories))

    @property
    def ap_count(self) -> int:
        return len(self.ap_histories)

    @property
    def total_observation_count(self) -> int:
        return sum(h.observation_count for h in self.ap_histories)

    @property
    def average_network_rssi(self) -> float:
        return _mean([h.average_rssi for h in self.ap_histories])

    @property
    def network_stability(self) -> SignalStability:
        return SignalStability.from_std_dev(_mean([h.rssi_std_dev for h in self.ap_histories]))

    @property
    def connection_success_rate(self) -> float:
        total_events = sum(len(h.connection_events) for h in self.ap_histories)
        if not total_events:
            return 0.0
        return sum(h.connection_count for h in self.ap_histories) / total_events

    @property
    def health_score(self) -> int:
        """
        0-100 score: signal (40), stability (30), roaming (20), connection success (10).
        """
        score = (
            _signal_score(self.average_network_rssi)
            + _STABILITY_SCORE[self.network_stability]
            + _NEUTRAL_ROAMING_SCORE
            + self.connection_success_rate * 10.0
        )
        return max(0, min(100, int(score)))

    @property
    def health(self) -> NetworkHealth:
        return NetworkHealth.from_score(self.health_score)

    def visible_aps(
        self, now_ms: int, threshold_ms: int = VISIBILITY_THRESHOLD_MS
    ) -> list[ApHistory]:
        return [h for h in self.ap_histories if h.is_visible(now_ms, threshold_ms)]

    def recently_disappeared_aps(self, now_ms: int, window_ms: int) -> list[ApHistory]:
        """APs last seen inside the window but no longer visible."""
        cutoff = now_ms - window_ms
        gone_before = now_ms - VISIBILITY_THRESHOLD_MS
        return [h for h in self.ap_histories if cutoff <= h.last_seen_ms < gone_before]

    def recent_direction(self, now_ms: int, window_ms: int = 300_000) -> NetworkTrendDirection:
        """Compare the recent per-AP averages with the all-time per-AP averages."""
        recent = [
            avg for avg in (h.recent_average_rssi(window_ms, now_ms) for h in self.ap_histories)
            if avg is not None
        ]
        if not recent:
            return NetworkTrendDirection.INSUFFICIENT_DATA
        overall = [h.average_rssi for h in self.ap_histories]
        return NetworkTrendDirection.from_difference(_mean(recent) - _mean(overall))
