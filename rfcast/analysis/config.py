# rfcast/analysis/config.py

from dataclasses import dataclass
from statistics import NormalDist

from rfcast.analysis.tiers import InterpolationMethod

HOUR_MS = 3_600_000


@dataclass(frozen=True)
class MapperConfig:
    """
    Configuration for the coverage mapper.

    Attributes
    ----------
    grid_resolution
        Cell size, in the units of the area bounds (m).
    interpolation_method
        How cells are estimated from survey samples.
    idw_power
        Distance exponent for inverse-distance weighting.
    coincident_distance
        Normalized distance under which a sample's value is returned as-is.
    dead_zone_threshold
        Cells strictly below this RSSI (dBm) are dead-zone candidates.
    min_dead_zone_cells
        Smaller connected regions are discarded as noise.
    """
    grid_resolution:      float               = 1.0
    interpolation_method: InterpolationMethod = InterpolationMethod.INVERSE_DISTANCE_WEIGHTED
    idw_power:            float               = 2.0
    coincident_distance:  float               = 0.01
    dead_zone_threshold:  int                 = -85
    min_dead_zone_cells:  int                 = 4

    def __post_init__(self) -> None:
        if self.grid_resolution <= 0:
            raise ValueError(f"Grid resolution must be positive, got {self.grid_resolution}")
        if self.idw_power <= 0:
            raise ValueError(f"IDW power must be positive, got {self.idw_power}")
        if self.coincident_distance <= 0:
            raise ValueError(
                f"Coincident distance must be positive, got {self.coincident_distance}"
            )
        if self.min_dead_zone_cells < 1:
            raise ValueError(f"Minimum dead-zone size must be >= 1, got {self.min_dead_zone_cells}")

    @classmethod
    def room(cls):
        """Preset for a single room or small flat (0.5 m cells)."""
        return cls(grid_resolution=0.5)

    @classmethod
    def building(cls):
        """Preset for a whole floor or building (2 m cells)."""
        return cls(grid_resolution=2.0)


@dataclass(frozen=True)
class PredictorConfig:
    """
    Configuration for the trend predictor.

    Attributes
    ----------
    min_historical_points
        Recent samples needed before a regression is attempted (>= 3).
    max_horizon_ms
        Longest forecast horizon accepted.
    confidence_interval
        Nominal two-sided interval for the forecast bounds, in (0, 1).
    recent_window_ms
        Trailing window the regression is fitted over.
    """
    min_historical_points: int   = 20
    max_horizon_ms:        int   = 24 * HOUR_MS
    confidence_interval:   float = 0.95
    recent_window_ms:      int   = HOUR_MS

    def __post_init__(self) -> None:
        if self.min_historical_points < 3:
            raise ValueError(
                f"Minimum historical data points must be >= 3, got {self.min_historical_points}"
            )
        if self.max_horizon_ms <= 0:
            raise ValueError(f"Max prediction horizon must be positive, got {self.max_horizon_ms}")
        if not 0.0 < self.confidence_interval < 1.0:
            raise ValueError(
                f"Confidence interval must be in (0, 1), got {self.confidence_interval}"
            )
        if self.recent_window_ms <= 0:
            raise ValueError(f"Recent window must be positive, got {self.recent_window_ms}")

    @property
    def z_score(self) -> float:
        """Two-sided normal quantile for the interval, to two decimals (1.96 at 95%)."""
        return round(NormalDist().inv_cdf(0.5 + self.confidence_interval / 2), 2)

    @classmethod
    def standard(cls):
        """Preset for day-scale forecasting (default thresholds)."""
        return cls()

    @classmethod
    def short_term(cls):
        """Preset for quick, sparse histories (next hour only)."""
        return cls(
            min_historical_points=10,
            max_horizon_ms=HOUR_MS,
        )
