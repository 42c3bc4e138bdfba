# rfcast/analysis/types.py

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from rfcast.analysis.tiers import (
    ConnectionTiming,
    CoverageQuality,
    DeadZoneSeverity,
    InterpolationMethod,
    NetworkHealth,
    NetworkTrendDirection,
    PredictionConfidence,
    RiskLevel,
    SignalQuality,
)
from rfcast.utils.geo import euclidean

RSSI_MIN = -120
RSSI_MAX = 0
RSSI_SENTINEL = -100


def check_rssi(rssi: int, what: str = "RSSI") -> None:
    if not RSSI_MIN <= rssi <= RSSI_MAX:
        raise ValueError(f"{what} must be in range [{RSSI_MIN}, {RSSI_MAX}] dBm, got {rssi}")


# -----------------------------------------------------------------------------
# Spatial survey records

@dataclass(frozen=True)
class SurveyCoord:
    """
    Location of a survey sample on the normalized floor plan.

    Parameters
    ----------
    x : float
        Horizontal position in [0, 1].
    y : float
        Vertical position in [0, 1].
    floor_level : int
        Floor the sample was taken on. Carried for callers; mapping is planar.
    label : str, optional
        Human-readable reference ("kitchen", "desk 4").
    """
    x: float
    y: float
    floor_level: int = 0
    label: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.x <= 1.0:
            raise ValueError(f"X coordinate must be in range [0, 1], got {self.x}")
        if not 0.0 <= self.y <= 1.0:
            raise ValueError(f"Y coordinate must be in range [0, 1], got {self.y}")

    def distance_to(self, other: SurveyCoord) -> float:
        """Planar distance in normalized units."""
        return euclidean((self.x, self.y), (other.x, other.y))


@dataclass(frozen=True)
class SurveySample:
    """
    Signal strengths of every AP visible at one surveyed location.

    Parameters
    ----------
    sample_id : str
        Identifier of the measurement.
    rssi_by_bssid : Mapping[str, int]
        BSSID -> RSSI (dBm) for every visible AP; at least one entry.
    location : SurveyCoord, optional
        Where the sample was taken. Unlocated samples are ignored by the mapper.
    timestamp_ms : int, optional
        When the sample was taken (epoch millis).
    """
    sample_id: str
    rssi_by_bssid: Mapping[str, int]
    location: Optional[SurveyCoord] = None
    timestamp_ms: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.sample_id.strip():
            raise ValueError("Sample ID must not be blank")
        if not self.rssi_by_bssid:
            raise ValueError("Must have at least one visible BSSID")
        for bssid, rssi in self.rssi_by_bssid.items():
            check_rssi(rssi, f"RSSI for {bssid}")
        object.__setattr__(self, "rssi_by_bssid", MappingProxyType(dict(self.rssi_by_bssid)))

    @property
    def strongest_rssi(self) -> int:
        return max(self.rssi_by_bssid.values())

    @property
    def visible_ap_count(self) -> int:
        return len(self.rssi_by_bssid)


@dataclass(frozen=True)
class AreaBounds:
    """Rectangle covered by a heatmap, in the caller's units (usually metres)."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def __post_init__(self) -> None:
        if not self.max_x > self.min_x:
            raise ValueError(f"max_x must be greater than min_x, got {self.min_x}..{self.max_x}")
        if not self.max_y > self.min_y:
            raise ValueError(f"max_y must be greater than min_y, got {self.min_y}..{self.max_y}")

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class Grid:
    """Cell layout derived from bounds and resolution."""
    width: int
    height: int
    origin_x: float
    origin_y: float
    resolution: float

    @classmethod
    def for_bounds(cls, bounds: AreaBounds, resolution: float) -> Grid:
        return cls(
            width=int(bounds.width / resolution) + 1,
            height=int(bounds.height / resolution) + 1,
            origin_x=bounds.min_x,
            origin_y=bounds.min_y,
            resolution=resolution,
        )

    @property
    def extent_x(self) -> float:
        return (self.width - 1) * self.resolution

    @property
    def extent_y(self) -> float:
        return (self.height - 1) * self.resolution

    @property
    def cell_count(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class Heatmap:
    """
    Interpolated RSSI grid.

    `values[y][x]` is the estimate for cell (x, y), in dBm.
    """
    bounds: AreaBounds
    resolution: float
    width: int
    height: int
    values: Tuple[Tuple[int, ...], ...]
    method: InterpolationMethod
    sample_count: int

    def signal_at(self, x: int, y: int) -> Optional[int]:
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.values[y][x]
        return None

    def cells(self):
        """Yield (x, y, rssi) for every cell, row by row."""
        for y, row in enumerate(self.values):
            for x, rssi in enumerate(row):
                yield x, y, rssi

    @property
    def average_signal(self) -> float:
        total = sum(sum(row) for row in self.values)
        return total / (self.width * self.height)

    @property
    def min_signal(self) -> int:
        return min(min(row) for row in self.values)

    @property
    def max_signal(self) -> int:
        return max(max(row) for row in self.values)


@dataclass(frozen=True)
class CoverageMap:
    """Per-tier cell counts over a heatmap."""
    heatmap: Heatmap
    excellent_cells: int
    good_cells: int
    fair_cells: int
    poor_cells: int
    no_coverage_cells: int
    total_cells: int
    coverage_percentage: float

    @property
    def excellent_percentage(self) -> float:
        return self.excellent_cells / self.total_cells * 100.0

    @property
    def good_or_better_percentage(self) -> float:
        return (self.excellent_cells + self.good_cells) / self.total_cells * 100.0

    @property
    def overall_quality(self) -> CoverageQuality:
        return CoverageQuality.from_percentages(
            self.excellent_percentage,
            self.good_or_better_percentage,
            self.coverage_percentage,
        )

    def cells_for(self, quality: SignalQuality) -> int:
        return {
            SignalQuality.EXCELLENT: self.excellent_cells,
            SignalQuality.GOOD: self.good_cells,
            SignalQuality.FAIR: self.fair_cells,
            SignalQuality.POOR: self.poor_cells,
            SignalQuality.NONE: self.no_coverage_cells,
        }[quality]


@dataclass(frozen=True)
class DeadZoneRegion:
    """
    Contiguous group of grid cells below the dead-zone threshold.

    Parameters
    ----------
    cells : tuple of (x, y)
        Member cells, in discovery (breadth-first) order.
    average_rssi : int
        Mean RSSI over the member cells, rounded.
    worst_rssi : int
        Weakest member cell.
    area : float
        cell count x resolution^2, in square units of the bounds.
    """
    cells: Tuple[Tuple[int, int], ...]
    average_rssi: int
    worst_rssi: int
    area: float

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    @property
    def severity(self) -> DeadZoneSeverity:
        return DeadZoneSeverity.classify(self.worst_rssi, self.area)


# -----------------------------------------------------------------------------
# Forecast records

def _signed(value: int) -> str:
    return f"+{value}" if value > 0 else str(value)


@dataclass(frozen=True)
class SignalPrediction:
    """
    Forecast RSSI of one AP at a future instant.

    Parameters
    ----------
    bssid : str
        Access point the forecast is for.
    target_time_ms : int
        Instant the forecast refers to (epoch millis).
    predicted_rssi, lower_bound_rssi, upper_bound_rssi : int
        Point estimate and confidence bounds, dBm in [-120, 0].
    confidence : PredictionConfidence
        Certainty tier.
    baseline_rssi : int
        All-time average RSSI, for comparing change.
    """
    bssid: str
    target_time_ms: int
    predicted_rssi: int
    lower_bound_rssi: int
    upper_bound_rssi: int
    confidence: PredictionConfidence
    baseline_rssi: int

    @property
    def expected_change(self) -> int:
        return self.predicted_rssi - self.baseline_rssi

    @property
    def expects_improvement(self) -> bool:
        return self.expected_change > 0

    @property
    def expects_degradation(self) -> bool:
        return self.expected_change < 0

    @property
    def predicted_quality(self) -> SignalQuality:
        return SignalQuality.from_rssi(self.predicted_rssi)

    @property
    def summary(self) -> str:
        text = f"{self.predicted_rssi}dBm"
        if self.expected_change:
            text += f" ({_signed(self.expected_change)}dB)"
        return text + f" [{self.confidence.display_name}]"


@dataclass(frozen=True)
class NetworkHealthPrediction:
    """Forecast health score of a network (SSID)."""
    ssid: str
    target_time_ms: int
    current_score: int
    predicted_score: int
    current_health: NetworkHealth
    predicted_health: NetworkHealth
    confidence: PredictionConfidence
    trend: NetworkTrendDirection

    @property
    def expected_change(self) -> int:
        return self.predicted_score - self.current_score

    @property
    def expects_improvement(self) -> bool:
        return self.predicted_health.min_score > self.current_health.min_score

    @property
    def expects_degradation(self) -> bool:
        return self.predicted_health.min_score < self.current_health.min_score

    @property
    def summary(self) -> str:
        text = f"{self.current_health.display_name} -> {self.predicted_health.display_name}"
        if self.expected_change:
            text += f" ({_signed(self.expected_change)})"
        return text


@dataclass(frozen=True)
class CoveragePrediction:
    """Forecast visible-AP count and average signal of a network."""
    ssid: str
    target_time_ms: int
    current_ap_count: int
    predicted_ap_count: int
    current_avg_signal: int
    predicted_avg_signal: int
    quality: CoverageQuality
    confidence: PredictionConfidence

    @property
    def expects_improvement(self) -> bool:
        return (
            self.predicted_ap_count > self.current_ap_count
            or self.predicted_avg_signal > self.current_avg_signal
        )

    @property
    def expects_degradation(self) -> bool:
        return (
            self.predicted_ap_count < self.current_ap_count
            or self.predicted_avg_signal < self.current_avg_signal
        )


@dataclass(frozen=True)
class ConnectionTimeRecommendation:
    """When to connect to an AP over the next few hours."""
    bssid: str
    current_signal: int
    best_hours_ahead: int
    best_predicted_signal: int
    worst_hours_ahead: int
    worst_predicted_signal: int
    recommendation: ConnectionTiming


@dataclass(frozen=True)
class IssuesPrediction:
    """Estimated risk of connection problems with an AP."""
    bssid: str
    target_time_ms: int
    issue_probability: float
    risk_level: RiskLevel
    likely_issues: Tuple[str, ...] = field(default_factory=tuple)
    signal_prediction: Optional[SignalPrediction] = None

    @property
    def summary(self) -> str:
        return f"{self.risk_level.display_name} risk ({int(self.issue_probability * 100)}%)"
