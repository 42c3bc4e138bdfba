"""
Forecast AP signal and network health from time-ordered histories.

Every forecast is built on one ordinary-least-squares fit of RSSI against
time over the trailing window, projected forward to `now + horizon`.
"""

from __future__ import annotations

import math
import time
from typing import Optional, Sequence, Tuple

from rfcast.analysis.config import HOUR_MS, PredictorConfig
from rfcast.analysis.history import ApHistory, NetworkTrend
from rfcast.analysis.tiers import (
    ConnectionTiming,
    CoverageQuality,
    NetworkHealth,
    PredictionConfidence,
    RiskLevel,
    SignalStability,
)
from rfcast.analysis.types import (
    ConnectionTimeRecommendation,
    CoveragePrediction,
    IssuesPrediction,
    NetworkHealthPrediction,
    SignalPrediction,
)
from rfcast.utils.geo import clamp_rssi
from rfcast.utils.log import get_logger

logger = get_logger(__name__)

CURRENT_SIGNAL_WINDOW_MS = 60_000
FALLBACK_AVG_SIGNAL = -70.0


def linear_regression(points: Sequence[Tuple[int, float]]) -> Tuple[float, float]:
    """
    Fit value = intercept + slope * (t - t0) by ordinary least squares.

    Timestamps are taken relative to the first point, t0, so large epoch
    values do not cost precision. When every point shares one instant the
    slope is 0 and the intercept is the mean value.

    Parameters
    ----------
    points
        (timestamp_ms, value) pairs in ascending time order; not empty.

    Returns
    -------
    (slope, intercept)
        Slope in value units per millisecond; intercept at t0.
    """
    if not points:
        raise ValueError("Regression needs at least one point")
    t0 = points[0][0]
    xs = [float(t - t0) for t, _ in points]
    ys = [float(v) for _, v in points]
    n = len(points)
    x_mean = sum(xs) / n
    y_mean = sum(ys) / n

    num = sum((x - x_mean) * (y - y_mean) for x, y in zip(xs, ys))
    den = sum((x - x_mean) ** 2 for x in xs)
    slope = num / den if den != 0.0 else 0.0
    return slope, y_mean - slope * x_mean


def _now_ms() -> int:
    return int(time.time() * 1000)


class TrendPredictor:
    """
    Regression-based forecaster for AP signal, network health and coverage.

    Stateless apart from its read-only configuration.
    """
    def __init__(self, cfg: Optional[PredictorConfig] = None) -> None:
        self.cfg = cfg or PredictorConfig()

    def predict_ap_signal_strength(
        self,
        history: ApHistory,
        horizon_ms: int,
        now_ms: Optional[int] = None,
    ) -> SignalPrediction:
        """
        Forecast the RSSI of one AP `horizon_ms` after `now_ms`.

        With too few samples in the trailing window the forecast falls back to
        the all-time average, bounded by the weakest and strongest readings
        ever seen, at LOW confidence.
        """
        self._check_horizon(horizon_ms)
        now_ms = _now_ms() if now_ms is None else now_ms
        target = now_ms + horizon_ms
        baseline = round(history.average_rssi)
        recent = history.recent_observations(self.cfg.recent_window_ms, now_ms)

        if len(recent) < self.cfg.min_historical_points:
            logger.debug(
                "%s: %d recent samples < %d, forecasting all-time average",
                history.bssid, len(recent), self.cfg.min_historical_points,
            )
            return SignalPrediction(
                bssid=history.bssid,
                target_time_ms=target,
                predicted_rssi=baseline,
                lower_bound_rssi=history.min_rssi,
                upper_bound_rssi=history.peak_rssi,
                confidence=PredictionConfidence.LOW,
                baseline_rssi=baseline,
            )

        slope, intercept = linear_regression([(o.timestamp_ms, o.rssi) for o in recent])
        predicted = clamp_rssi(intercept + slope * (target - recent[0].timestamp_ms))

        std_dev = history.rssi_std_dev
        margin = round(self.cfg.z_score * std_dev)
        return SignalPrediction(
            bssid=history.bssid,
            target_time_ms=target,
            predicted_rssi=predicted,
            lower_bound_rssi=clamp_rssi(predicted - margin),
            upper_bound_rssi=clamp_rssi(predicted + margin),
            confidence=PredictionConfidence.for_signal(len(recent), std_dev),
            baseline_rssi=baseline,
        )

    def predict_network_health(
        self,
        trend: NetworkTrend,
        horizon_ms: int,
        now_ms: Optional[int] = None,
    ) -> NetworkHealthPrediction:
        """
        Project the network health score along its recent direction.

        Confidence depends only on how many observations back the trend.
        """
        self._check_horizon(horizon_ms)
        now_ms = _now_ms() if now_ms is None else now_ms
        current = trend.health_score
        direction = trend.recent_direction(now_ms)

        change = direction.health_delta_per_hour * (horizon_ms / HOUR_MS)
        predicted = max(0, min(100, current + int(change)))
        return NetworkHealthPrediction(
            ssid=trend.ssid,
            target_time_ms=now_ms + horizon_ms,
            current_score=current,
            predicted_score=predicted,
            current_health=trend.health,
            predicted_health=NetworkHealth.from_score(predicted),
            confidence=PredictionConfidence.for_observation_count(trend.total_observation_count),
            trend=direction,
        )

    def predict_coverage_quality(
        self,
        trend: NetworkTrend,
        horizon_ms: int,
        now_ms: Optional[int] = None,
    ) -> CoveragePrediction:
        """
        Forecast how many APs stay visible and how strong they will be.

        AP loss is the recent disappearance rate extrapolated linearly over
        the horizon, never leaving fewer than one AP.
        """
        self._check_horizon(horizon_ms)
        now_ms = _now_ms() if now_ms is None else now_ms
        window = self.cfg.recent_window_ms

        visible = trend.visible_aps(now_ms)
        current_count = len(visible)
        disappeared = len(trend.recently_disappeared_aps(now_ms, window))
        expected_losses = int(disappeared / window * horizon_ms)
        predicted_count = max(1, current_count - expected_losses)

        forecasts = [self.predict_ap_signal_strength(h, horizon_ms, now_ms) for h in visible]
        avg_signal = (
            sum(f.predicted_rssi for f in forecasts) / len(forecasts) if forecasts else math.nan
        )
        if not math.isfinite(avg_signal):
            avg_signal = FALLBACK_AVG_SIGNAL

        confidence = (
            PredictionConfidence.MEDIUM
            if all(f.confidence.is_acceptable for f in forecasts)
            else PredictionConfidence.LOW
        )
        logger.debug(
            "%s: %d visible APs, %d disappeared in window, %d expected lost",
            trend.ssid, current_count, disappeared, expected_losses,
        )
        return CoveragePrediction(
            ssid=trend.ssid,
            target_time_ms=now_ms + horizon_ms,
            current_ap_count=current_count,
            predicted_ap_count=predicted_count,
            current_avg_signal=round(trend.average_network_rssi),
            predicted_avg_signal=round(avg_signal),
            quality=CoverageQuality.from_forecast(avg_signal, predicted_count, current_count),
            confidence=confidence,
        )

    def recommend_optimal_connection_time(
        self,
        history: ApHistory,
        look_ahead_hours: int = 4,
        now_ms: Optional[int] = None,
    ) -> ConnectionTimeRecommendation:
        """
        Compare hourly forecasts with the current signal and pick a timing.

        In priority order: wait if some hour is at least 10 dB better; connect
        now if the signal is already -60 dBm or better; connect now if some
        hour is at least 10 dB worse; otherwise timing is flexible.
        """
        if look_ahead_hours <= 0:
            raise ValueError(f"Look ahead hours must be positive, got {look_ahead_hours}")
        now_ms = _now_ms() if now_ms is None else now_ms

        hourly = [
            (hour, self.predict_ap_signal_strength(history, hour * HOUR_MS, now_ms).predicted_rssi)
            for hour in range(1, look_ahead_hours + 1)
        ]
        best_hour, best = max(hourly, key=lambda hp: hp[1])
        worst_hour, worst = min(hourly, key=lambda hp: hp[1])

        recent_avg = history.recent_average_rssi(CURRENT_SIGNAL_WINDOW_MS, now_ms)
        current = round(recent_avg if recent_avg is not None else history.average_rssi)

        if best - current >= 10:
            timing = ConnectionTiming.WAIT_FOR_IMPROVEMENT
        elif current >= -60:
            timing = ConnectionTiming.IMMEDIATE
        elif worst - current <= -10:
            # a closing window is better taken now
            timing = ConnectionTiming.IMMEDIATE
        else:
            timing = ConnectionTiming.FLEXIBLE

        return ConnectionTimeRecommendation(
            bssid=history.bssid,
            current_signal=current,
            best_hours_ahead=best_hour,
            best_predicted_signal=best,
            worst_hours_ahead=worst_hour,
            worst_predicted_signal=worst,
            recommendation=timing,
        )

    def predict_connection_issues(
        self,
        history: ApHistory,
        horizon_ms: int,
        now_ms: Optional[int] = None,
    ) -> IssuesPrediction:
        """
        Score the risk of connection problems from three additive factors.

        - forecast signal: < -85 dBm +0.4, < -75 +0.2, < -65 +0.1
        - historical stability: very unstable +0.3, unstable +0.2, moderate +0.1
        - disconnections / connections x 0.3

        The sum is capped at 1.0.
        """
        now_ms = _now_ms() if now_ms is None else now_ms
        forecast = self.predict_ap_signal_strength(history, horizon_ms, now_ms)
        rssi = forecast.predicted_rssi
        stability = history.signal_stability

        probability = 0.0
        if rssi < -85:
            probability += 0.4
        elif rssi < -75:
            probability += 0.2
        elif rssi < -65:
            probability += 0.1
        probability += stability.issue_risk
        if history.connection_count > 0:
            probability += history.disconnection_count / history.connection_count * 0.3
        probability = min(probability, 1.0)

        reasons = []
        if rssi < -80:
            reasons.append(f"Weak signal ({rssi}dBm)")
        if stability not in (SignalStability.VERY_STABLE, SignalStability.STABLE):
            reasons.append("Unstable connection")
        if history.disconnection_count >= 3:
            reasons.append("Frequent disconnections")

        return IssuesPrediction(
            bssid=history.bssid,
            target_time_ms=now_ms + horizon_ms,
            issue_probability=probability,
            risk_level=RiskLevel.from_probability(probability),
            likely_issues=tuple(reasons),
            signal_prediction=forecast,
        )

    # -------------------------------------------------------------------------

    def _check_horizon(self, horizon_ms: int) -> None:
        if horizon_ms <= 0:
            raise ValueError(f"Horizon must be positive, got {horizon_ms}")
        if horizon_ms > self.cfg.max_horizon_ms:
            raise ValueError(f"Horizon {horizon_ms} exceeds maximum {self.cfg.max_horizon_ms}")
