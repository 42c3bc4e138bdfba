"""Tests for mapper and predictor configuration."""
import pytest

from rfcast.analysis.config import HOUR_MS, MapperConfig, PredictorConfig
from rfcast.analysis.tiers import InterpolationMethod


def test_mapper_defaults():
    """Test the default mapper settings."""
    cfg = MapperConfig()
    assert cfg.grid_resolution == 1.0
    assert cfg.interpolation_method is InterpolationMethod.INVERSE_DISTANCE_WEIGHTED
    assert cfg.idw_power == 2.0
    assert cfg.dead_zone_threshold == -85
    assert cfg.min_dead_zone_cells == 4


@pytest.mark.parametrize(
    "kwargs",
    [
        {"grid_resolution": 0},
        {"idw_power": -1},
        {"coincident_distance": 0},
        {"min_dead_zone_cells": 0},
    ],
)
def test_mapper_rejects_invalid(kwargs):
    """Test that non-positive settings are rejected."""
    with pytest.raises(ValueError):
        MapperConfig(**kwargs)


def test_mapper_presets():
    """Test room and building presets."""
    assert MapperConfig.room().grid_resolution == 0.5
    assert MapperConfig.building().grid_resolution == 2.0


def test_predictor_defaults():
    """Test the default predictor settings."""
    cfg = PredictorConfig()
    assert cfg.min_historical_points == 20
    assert cfg.max_horizon_ms == 24 * HOUR_MS
    assert cfg.recent_window_ms == HOUR_MS
    assert cfg.z_score == 1.96


def test_predictor_z_score_follows_interval():
    """Test the normal quantile for other intervals."""
    assert PredictorConfig(confidence_interval=0.90).z_score == 1.64
    assert PredictorConfig(confidence_interval=0.99).z_score == 2.58


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_historical_points": 2},
        {"max_horizon_ms": 0},
        {"confidence_interval": 0.0},
        {"confidence_interval": 1.0},
        {"recent_window_ms": -1},
    ],
)
def test_predictor_rejects_invalid(kwargs):
    """Test predictor validation."""
    with pytest.raises(ValueError):
        PredictorConfig(**kwargs)


def test_predictor_presets():
    """Test standard and short-term presets."""
    assert PredictorConfig.standard() == PredictorConfig()
    short = PredictorConfig.short_term()
    assert short.min_historical_points == 10
    assert short.max_horizon_ms == HOUR_MS
