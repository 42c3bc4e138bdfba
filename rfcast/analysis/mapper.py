"""
Estimate coverage over an area from point survey samples.

- Pass 1: grid construction from bounds + resolution
- Pass 2: per-cell interpolation (nearest neighbour, IDW, bilinear-as-IDW)
- Pass 3A: quality classification and coverage percentages
- Pass 3B: dead-zone extraction by 4-connected breadth-first flood fill
"""

from __future__ import annotations

from collections import deque
from typing import Optional, Sequence

from rfcast.analysis.config import MapperConfig
from rfcast.analysis.tiers import InterpolationMethod, SignalQuality
from rfcast.analysis.types import (
    RSSI_SENTINEL,
    AreaBounds,
    CoverageMap,
    DeadZoneRegion,
    Grid,
    Heatmap,
    SurveyCoord,
    SurveySample,
)
from rfcast.utils.geo import normalize_offset
from rfcast.utils.log import get_logger

logger = get_logger(__name__)

_NEIGHBOURS = ((-1, 0), (1, 0), (0, -1), (0, 1))


class CoverageMapper:
    """
    Grid-based RSSI interpolation, coverage classification and dead-zone search.

    Holds only its configuration; every method is a pure function of its
    arguments and safe to call from several threads at once. Callers bound
    the grid size: `bounds` and `resolution` decide how many cells are built.
    """
    def __init__(self, cfg: Optional[MapperConfig] = None) -> None:
        self.cfg = cfg or MapperConfig()

    def generate_heatmap(
        self,
        samples: Sequence[SurveySample],
        bounds: AreaBounds,
        resolution: Optional[float] = None,
        method: Optional[InterpolationMethod] = None,
    ) -> Heatmap:
        """
        Interpolate RSSI for every cell of the grid covering `bounds`.

        Cell (x, y) is mapped onto the normalized survey plane by dividing its
        offset by the grid extent on each axis, so the grid corners land on the
        corners of the unit square whatever the bounds are.

        Parameters
        ----------
        samples
            Survey samples; must not be empty.
        bounds
            Area to cover.
        resolution
            Cell size; defaults to the configured grid resolution.
        method
            Interpolation method; defaults to the configured one.

        Returns
        -------
        Heatmap
        """
        self._require_samples(samples)
        resolution = self.cfg.grid_resolution if resolution is None else resolution
        if resolution <= 0:
            raise ValueError(f"Grid resolution must be positive, got {resolution}")
        method = method or self.cfg.interpolation_method

        grid = Grid.for_bounds(bounds, resolution)
        values = self._interpolate_grid(samples, grid, method)
        logger.debug(
            "Heatmap %dx%d (%d cells) from %d samples via %s",
            grid.width, grid.height, grid.cell_count, len(samples), method.value,
        )
        return Heatmap(
            bounds=bounds,
            resolution=resolution,
            width=grid.width,
            height=grid.height,
            values=values,
            method=method,
            sample_count=len(samples),
        )

    def predict_signal_strength(
        self,
        samples: Sequence[SurveySample],
        point: SurveyCoord,
        method: Optional[InterpolationMethod] = None,
    ) -> int:
        """
        Estimate RSSI (dBm) at a point of the normalized survey plane.

        Samples without a location are ignored; when none is located the
        sentinel -100 dBm is returned.
        """
        self._require_samples(samples)
        method = method or self.cfg.interpolation_method
        if method is InterpolationMethod.NEAREST_NEIGHBOR:
            return self._nearest_neighbour(samples, point)
        return self._idw(samples, point)

    def generate_coverage_map(
        self,
        samples: Sequence[SurveySample],
        bounds: AreaBounds,
        resolution: Optional[float] = None,
        method: Optional[InterpolationMethod] = None,
    ) -> CoverageMap:
        """
        Classify every heatmap cell into a SignalQuality tier and count them.

        Coverage percentage is the share of cells better than Poor.
        """
        heatmap = self.generate_heatmap(samples, bounds, resolution, method)
        counts = {quality: 0 for quality in SignalQuality}
        for _, _, rssi in heatmap.cells():
            counts[SignalQuality.from_rssi(rssi)] += 1

        total = heatmap.width * heatmap.height
        usable = sum(n for quality, n in counts.items() if quality.is_usable)
        coverage = usable / total * 100.0
        logger.debug("Coverage %.1f%% over %d cells", coverage, total)
        return CoverageMap(
            heatmap=heatmap,
            excellent_cells=counts[SignalQuality.EXCELLENT],
            good_cells=counts[SignalQuality.GOOD],
            fair_cells=counts[SignalQuality.FAIR],
            poor_cells=counts[SignalQuality.POOR],
            no_coverage_cells=counts[SignalQuality.NONE],
            total_cells=total,
            coverage_percentage=coverage,
        )

    def identify_dead_zones(
        self,
        samples: Sequence[SurveySample],
        bounds: AreaBounds,
        threshold: Optional[int] = None,
        resolution: Optional[float] = None,
    ) -> list[DeadZoneRegion]:
        """
        Find connected regions of cells strictly below `threshold`.

        Regions smaller than the configured minimum size are dropped. The
        result is ordered largest region first.
        """
        threshold = self.cfg.dead_zone_threshold if threshold is None else threshold
        heatmap = self.generate_heatmap(samples, bounds, resolution)

        visited = [[False] * heatmap.width for _ in range(heatmap.height)]
        regions: list[DeadZoneRegion] = []
        discarded = 0
        for y in range(heatmap.height):
            for x in range(heatmap.width):
                if visited[y][x] or heatmap.values[y][x] >= threshold:
                    continue
                region = self._flood_fill(heatmap, x, y, threshold, visited)
                if region.cell_count >= self.cfg.min_dead_zone_cells:
                    regions.append(region)
                else:
                    discarded += 1

        regions.sort(key=lambda r: r.cell_count, reverse=True)
        logger.debug(
            "Found %d dead zones below %d dBm (%d undersized regions dropped)",
            len(regions), threshold, discarded,
        )
        return regions

    # -------------------------------------------------------------------------

    @staticmethod
    def _require_samples(samples: Sequence[SurveySample]) -> None:
        if not samples:
            raise ValueError("Samples list cannot be empty")

    def _interpolate_grid(
        self,
        samples: Sequence[SurveySample],
        grid: Grid,
        method: InterpolationMethod,
    ) -> tuple[tuple[int, ...], ...]:
        rows = []
        for y in range(grid.height):
            ny = normalize_offset(y * grid.resolution, grid.extent_y)
            row = []
            for x in range(grid.width):
                nx = normalize_offset(x * grid.resolution, grid.extent_x)
                row.append(self.predict_signal_strength(samples, SurveyCoord(nx, ny), method))
            rows.append(tuple(row))
        return tuple(rows)

    @staticmethod
    def _nearest_neighbour(samples: Sequence[SurveySample], target: SurveyCoord) -> int:
        located = [s for s in samples if s.location is not None]
        if not located:
            return RSSI_SENTINEL
        nearest = min(located, key=lambda s: s.location.distance_to(target))
        return nearest.strongest_rssi

    def _idw(self, samples: Sequence[SurveySample], target: SurveyCoord) -> int:
        weighted_sum = 0.0
        weight_sum = 0.0
        for sample in samples:
            if sample.location is None:
                continue
            d = sample.location.distance_to(target)
            if d < self.cfg.coincident_distance:
                return sample.strongest_rssi
            w = 1.0 / d ** self.cfg.idw_power
            weighted_sum += w * sample.strongest_rssi
            weight_sum += w

        if weight_sum <= 0:
            return RSSI_SENTINEL
        return round(weighted_sum / weight_sum)

    @staticmethod
    def _flood_fill(
        heatmap: Heatmap,
        start_x: int,
        start_y: int,
        threshold: int,
        visited: list[list[bool]],
    ) -> DeadZoneRegion:
        cells: list[tuple[int, int]] = []
        queue: deque[tuple[int, int]] = deque([(start_x, start_y)])
        visited[start_y][start_x] = True

        while queue:
            x, y = queue.popleft()
            cells.append((x, y))
            for dx, dy in _NEIGHBOURS:
                nx, ny = x + dx, y + dy
                if not (0 <= nx < heatmap.width and 0 <= ny < heatmap.height):
                    continue
                if visited[ny][nx] or heatmap.values[ny][nx] >= threshold:
                    continue
                visited[ny][nx] = True
                queue.append((nx, ny))

        rssi_values = [heatmap.values[y][x] for x, y in cells]
        return DeadZoneRegion(
            cells=tuple(cells),
            average_rssi=round(sum(rssi_values) / len(rssi_values)),
            worst_rssi=min(rssi_values),
            area=len(cells) * heatmap.resolution * heatmap.resolution,
        )
