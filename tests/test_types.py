"""Tests for survey, grid and forecast records."""
import pytest

from rfcast.analysis.tiers import (
    DeadZoneSeverity,
    InterpolationMethod,
    NetworkHealth,
    NetworkTrendDirection,
    PredictionConfidence,
    RiskLevel,
    SignalQuality,
)
from rfcast.analysis.types import (
    AreaBounds,
    CoverageMap,
    DeadZoneRegion,
    Grid,
    Heatmap,
    IssuesPrediction,
    NetworkHealthPrediction,
    SignalPrediction,
    SurveyCoord,
    SurveySample,
)
from rfcast.utils.geo import clamp_rssi, normalize_offset


def test_survey_coord_range():
    """Test that coordinates outside the unit square are rejected."""
    SurveyCoord(0.0, 1.0)
    with pytest.raises(ValueError):
        SurveyCoord(1.1, 0.5)
    with pytest.raises(ValueError):
        SurveyCoord(0.5, -0.1)


def test_survey_coord_distance_is_planar():
    """Test that floor level does not affect distance."""
    a = SurveyCoord(0.0, 0.0, floor_level=0)
    b = SurveyCoord(0.3, 0.4, floor_level=3)
    assert a.distance_to(b) == pytest.approx(0.5)


def test_survey_sample_validation():
    """Test BSSID map, RSSI range and id checks."""
    with pytest.raises(ValueError):
        SurveySample("s1", {})
    with pytest.raises(ValueError):
        SurveySample("s1", {"ap": -121})
    with pytest.raises(ValueError):
        SurveySample("  ", {"ap": -50})


def test_survey_sample_is_immutable():
    """Test that the RSSI map is a read-only copy of the input."""
    readings = {"ap1": -70, "ap2": -45}
    sample = SurveySample("s1", readings)
    readings["ap3"] = -20
    assert sample.visible_ap_count == 2
    assert sample.strongest_rssi == -45
    with pytest.raises(TypeError):
        sample.rssi_by_bssid["ap1"] = -10


def test_area_bounds():
    """Test bounds validation and derived size."""
    bounds = AreaBounds(2, 3, 12, 8)
    assert bounds.width == 10
    assert bounds.height == 5
    assert bounds.area == 50
    with pytest.raises(ValueError):
        AreaBounds(0, 0, 0, 10)
    with pytest.raises(ValueError):
        AreaBounds(0, 5, 10, 1)


def test_grid_dimensions():
    """Test cell counts include both edges of the bounds."""
    grid = Grid.for_bounds(AreaBounds(0, 0, 10, 10), 5.0)
    assert (grid.width, grid.height) == (3, 3)
    assert grid.extent_x == 10.0

    grid = Grid.for_bounds(AreaBounds(0, 0, 1, 1), 0.1)
    assert (grid.width, grid.height) == (11, 11)

    grid = Grid.for_bounds(AreaBounds(0, 0, 1, 1), 5.0)
    assert grid.cell_count == 1
    assert grid.extent_x == 0.0


def _heatmap(values):
    return Heatmap(
        bounds=AreaBounds(0, 0, len(values[0]) - 1, len(values) - 1),
        resolution=1.0,
        width=len(values[0]),
        height=len(values),
        values=values,
        method=InterpolationMethod.INVERSE_DISTANCE_WEIGHTED,
        sample_count=1,
    )


def test_heatmap_accessors():
    """Test cell lookup and aggregate statistics."""
    heatmap = _heatmap(((-40, -60), (-80, -100)))
    assert heatmap.signal_at(1, 0) == -60
    assert heatmap.signal_at(0, 1) == -80
    assert heatmap.signal_at(2, 0) is None
    assert heatmap.average_signal == -70.0
    assert heatmap.min_signal == -100
    assert heatmap.max_signal == -40
    assert list(heatmap.cells())[1] == (1, 0, -60)


def test_coverage_map_percentages():
    """Test derived percentages and overall quality."""
    coverage = CoverageMap(
        heatmap=_heatmap(((-40, -40), (-40, -40))),
        excellent_cells=4,
        good_cells=3,
        fair_cells=1,
        poor_cells=1,
        no_coverage_cells=1,
        total_cells=10,
        coverage_percentage=80.0,
    )
    assert coverage.excellent_percentage == pytest.approx(40.0)
    assert coverage.good_or_better_percentage == pytest.approx(70.0)
    assert coverage.overall_quality.display_name == "Good"
    assert coverage.cells_for(SignalQuality.NONE) == 1


def test_dead_zone_region():
    """Test region size and severity."""
    region = DeadZoneRegion(
        cells=((0, 0), (1, 0), (0, 1)), average_rssi=-92, worst_rssi=-97, area=12.0
    )
    assert region.cell_count == 3
    assert region.severity is DeadZoneSeverity.CRITICAL


def test_signal_prediction_summary():
    """Test change and summary text."""
    prediction = SignalPrediction(
        bssid="ap",
        target_time_ms=1,
        predicted_rssi=-50,
        lower_bound_rssi=-55,
        upper_bound_rssi=-45,
        confidence=PredictionConfidence.HIGH,
        baseline_rssi=-60,
    )
    assert prediction.expected_change == 10
    assert prediction.expects_improvement
    assert not prediction.expects_degradation
    assert prediction.predicted_quality is SignalQuality.EXCELLENT
    assert prediction.summary == "-50dBm (+10dB) [High]"


def test_signal_prediction_summary_without_change():
    """Test that a zero change is left out of the summary."""
    prediction = SignalPrediction("ap", 1, -70, -70, -70, PredictionConfidence.LOW, -70)
    assert prediction.summary == "-70dBm [Low]"


def test_network_health_prediction_summary():
    """Test health transition text."""
    prediction = NetworkHealthPrediction(
        ssid="office",
        target_time_ms=1,
        current_score=55,
        predicted_score=75,
        current_health=NetworkHealth.FAIR,
        predicted_health=NetworkHealth.GOOD,
        confidence=PredictionConfidence.MEDIUM,
        trend=NetworkTrendDirection.STRONGLY_IMPROVING,
    )
    assert prediction.expected_change == 20
    assert prediction.expects_improvement
    assert prediction.summary == "Fair -> Good (+20)"


def test_issues_prediction_summary():
    """Test risk summary text."""
    prediction = IssuesPrediction("ap", 1, 0.25, RiskLevel.LOW)
    assert prediction.summary == "Low risk (25%)"
    assert prediction.likely_issues == ()


def test_geo_helpers():
    """Test offset normalization and RSSI clamping."""
    assert normalize_offset(5.0, 10.0) == 0.5
    assert normalize_offset(12.0, 10.0) == 1.0
    assert normalize_offset(3.0, 0.0) == 0.5
    assert clamp_rssi(5.4) == 0
    assert clamp_rssi(-130) == -120
    assert clamp_rssi(-50.6) == -51
