# rfcast/analysis/tiers.py

"""
Closed quality, severity and confidence taxonomies.

Every tier is an Enum whose value is its display name. Members are declared
best-first, so `rank` (0 = best) gives a total ordering across a taxonomy.
Classification from the underlying numeric score lives on each Enum as a
`from_*` classmethod.
"""

from __future__ import annotations

from enum import Enum


class _Tier(Enum):
    """Base for ordered tiers: declaration order is best-first."""

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def is_better_than(self, other: "_Tier") -> bool:
        if type(other) is not type(self):
            raise TypeError(f"cannot compare {type(self).__name__} with {type(other).__name__}")
        return self.rank < other.rank


class InterpolationMethod(Enum):
    """Interpolation used to estimate RSSI between survey samples."""
    NEAREST_NEIGHBOR = "nearest"
    INVERSE_DISTANCE_WEIGHTED = "idw"
    # no structured sample grid is assumed, so bilinear is served by IDW
    BILINEAR = "bilinear"

    @classmethod
    def parse(cls, name: str) -> "InterpolationMethod":
        """Look a method up by value ('idw') or member name ('BILINEAR')."""
        key = name.strip()
        for member in cls:
            if key.lower() == member.value or key.upper() == member.name:
                return member
        raise ValueError(f"Unknown interpolation method: {name!r}")


class SignalQuality(_Tier):
    """Per-cell signal quality."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    NONE = "None"

    @classmethod
    def from_rssi(cls, rssi: int) -> "SignalQuality":
        if rssi >= -50:
            return cls.EXCELLENT
        if rssi >= -60:
            return cls.GOOD
        if rssi >= -70:
            return cls.FAIR
        if rssi >= -85:
            return cls.POOR
        return cls.NONE

    @property
    def is_usable(self) -> bool:
        """Better than Poor; counts towards coverage percentage."""
        return self in (SignalQuality.EXCELLENT, SignalQuality.GOOD, SignalQuality.FAIR)


class CoverageQuality(_Tier):
    """Overall quality of an area, or of a forecast coverage state."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"

    @classmethod
    def from_percentages(
        cls,
        excellent_pct: float,
        good_or_better_pct: float,
        coverage_pct: float,
    ) -> "CoverageQuality":
        if excellent_pct >= 80:
            return cls.EXCELLENT
        if good_or_better_pct >= 70:
            return cls.GOOD
        if coverage_pct >= 60:
            return cls.FAIR
        return cls.POOR

    @classmethod
    def from_forecast(
        cls,
        avg_signal: float,
        predicted_aps: int,
        current_aps: int,
    ) -> "CoverageQuality":
        if avg_signal >= -60 and predicted_aps >= current_aps:
            return cls.EXCELLENT
        if avg_signal >= -70 and predicted_aps >= current_aps * 0.8:
            return cls.GOOD
        if avg_signal >= -80:
            return cls.FAIR
        return cls.POOR


class DeadZoneSeverity(_Tier):
    """How bad a dead zone is, by worst signal and physical size."""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def classify(cls, worst_rssi: int, area: float) -> "DeadZoneSeverity":
        if worst_rssi < -95 and area > 10:
            return cls.CRITICAL
        if worst_rssi < -90 or area > 20:
            return cls.HIGH
        if area > 5:
            return cls.MEDIUM
        return cls.LOW


class PredictionConfidence(_Tier):
    """Discrete certainty attached to a forecast."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def for_signal(cls, sample_count: int, std_dev: float) -> "PredictionConfidence":
        if sample_count >= 100 and std_dev < 3.0:
            return cls.HIGH
        if sample_count >= 50 and std_dev < 7.0:
            return cls.MEDIUM
        return cls.LOW

    @classmethod
    def for_observation_count(cls, count: int) -> "PredictionConfidence":
        if count >= 500:
            return cls.HIGH
        if count >= 100:
            return cls.MEDIUM
        return cls.LOW

    @property
    def is_acceptable(self) -> bool:
        return self is not PredictionConfidence.LOW


class RiskLevel(Enum):
    """Risk of connection issues."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    MINIMAL = "Minimal"

    @property
    def display_name(self) -> str:
        return self.value

    @classmethod
    def from_probability(cls, probability: float) -> "RiskLevel":
        if probability >= 0.7:
            return cls.HIGH
        if probability >= 0.4:
            return cls.MEDIUM
        if probability >= 0.2:
            return cls.LOW
        return cls.MINIMAL


class ConnectionTiming(Enum):
    """Recommended moment to connect or roam."""
    IMMEDIATE = "Connect Now"
    WAIT_FOR_IMPROVEMENT = "Wait for Better Signal"
    FLEXIBLE = "Flexible Timing"

    @property
    def display_name(self) -> str:
        return self.value


class SignalStability(_Tier):
    """Stability of an AP's signal, from the standard deviation of its RSSI."""
    VERY_STABLE = "Very Stable"
    STABLE = "Stable"
    MODERATE = "Moderate"
    UNSTABLE = "Unstable"
    VERY_UNSTABLE = "Very Unstable"

    @classmethod
    def from_std_dev(cls, std_dev: float) -> "SignalStability":
        if std_dev < 2.0:
            return cls.VERY_STABLE
        if std_dev < 5.0:
            return cls.STABLE
        if std_dev < 10.0:
            return cls.MODERATE
        if std_dev < 15.0:
            return cls.UNSTABLE
        return cls.VERY_UNSTABLE

    @property
    def is_acceptable(self) -> bool:
        return self.rank <= SignalStability.MODERATE.rank

    @property
    def issue_risk(self) -> float:
        """Additive contribution to connection-issue probability."""
        return {
            SignalStability.VERY_UNSTABLE: 0.3,
            SignalStability.UNSTABLE: 0.2,
            SignalStability.MODERATE: 0.1,
        }.get(self, 0.0)


class SignalTrend(Enum):
    """Per-AP slope classification (dB per observation)."""
    RAPIDLY_IMPROVING = "Rapidly Improving"
    IMPROVING = "Improving"
    STABLE = "Stable"
    DEGRADING = "Degrading"
    RAPIDLY_DEGRADING = "Rapidly Degrading"
    INSUFFICIENT_DATA = "Insufficient Data"

    @classmethod
    def from_slope(cls, slope: float) -> "SignalTrend":
        if slope > 0.5:
            return cls.RAPIDLY_IMPROVING
        if slope > 0.1:
            return cls.IMPROVING
        if slope > -0.1:
            return cls.STABLE
        if slope > -0.5:
            return cls.DEGRADING
        return cls.RAPIDLY_DEGRADING

    @property
    def display_name(self) -> str:
        return self.value


class NetworkTrendDirection(Enum):
    """Recent network-wide signal direction."""
    STRONGLY_IMPROVING = "Strongly Improving"
    IMPROVING = "Improving"
    STABLE = "Stable"
    DEGRADING = "Degrading"
    STRONGLY_DEGRADING = "Strongly Degrading"
    INSUFFICIENT_DATA = "Insufficient Data"

    @classmethod
    def from_difference(cls, difference_db: float) -> "NetworkTrendDirection":
        if difference_db > 5.0:
            return cls.STRONGLY_IMPROVING
        if difference_db > 2.0:
            return cls.IMPROVING
        if difference_db > -2.0:
            return cls.STABLE
        if difference_db > -5.0:
            return cls.DEGRADING
        return cls.STRONGLY_DEGRADING

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def health_delta_per_hour(self) -> float:
        return {
            NetworkTrendDirection.STRONGLY_IMPROVING: 5.0,
            NetworkTrendDirection.IMPROVING: 2.0,
            NetworkTrendDirection.DEGRADING: -2.0,
            NetworkTrendDirection.STRONGLY_DEGRADING: -5.0,
        }.get(self, 0.0)

    @property
    def is_positive(self) -> bool:
        return self in (NetworkTrendDirection.STRONGLY_IMPROVING, NetworkTrendDirection.IMPROVING)

    @property
    def indicates_problem(self) -> bool:
        return self in (NetworkTrendDirection.DEGRADING, NetworkTrendDirection.STRONGLY_DEGRADING)


class NetworkHealth(_Tier):
    """Health category for a 0-100 score."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    CRITICAL = "Critical"

    @classmethod
    def from_score(cls, score: int) -> "NetworkHealth":
        for health in cls:
            if score >= health.min_score:
                return health
        return cls.CRITICAL

    @property
    def min_score(self) -> int:
        return {
            NetworkHealth.EXCELLENT: 85,
            NetworkHealth.GOOD: 70,
            NetworkHealth.FAIR: 50,
            NetworkHealth.POOR: 30,
            NetworkHealth.CRITICAL: 0,
        }[self]

    @property
    def is_acceptable(self) -> bool:
        return self.rank <= NetworkHealth.FAIR.rank
