"""Tests for analysis configuration."""

import logging

import pytest
from pydantic import ValidationError

from video_screener.config import FingerprintConfig, ReportThresholds, ScoreWeights


def test_default_config():
    """Test default values."""
    config = FingerprintConfig()

    assert config.frame_size == 256
    assert config.frame_count == 5
    assert config.grid_stride == 16
    assert config.max_workers == 1
    assert config.weights == ScoreWeights(grid=0.30, dots=0.25, cross=0.25, checker=0.20)
    assert config.report_thresholds == ReportThresholds(grid=0.5, dots=0.5, cross=0.5, checker=0.4)


def test_defaults_are_not_shared():
    """Test that nested defaults are created per instance."""
    first = FingerprintConfig()
    second = FingerprintConfig()

    assert first.weights is not second.weights


@pytest.mark.parametrize("frame_size", [3, 100, 384])
def test_frame_size_must_be_power_of_two(frame_size):
    """Test rejection of non power-of-two frame sizes."""
    with pytest.raises(ValidationError, match="power of 2"):
        FingerprintConfig(frame_size=frame_size)


@pytest.mark.parametrize(
    "field, value",
    [
        ("frame_size", 1),
        ("frame_size", 8192),
        ("frame_count", 0),
        ("max_workers", 0),
        ("grid_stride", 0),
        ("bright_threshold", 300),
        ("smooth_threshold", -1),
    ],
)
def test_out_of_range_values(field, value):
    """Test field bounds."""
    with pytest.raises(ValidationError):
        FingerprintConfig(**{field: value})


def test_validation_error_is_value_error():
    """Test that configuration errors can be caught as ValueError."""
    with pytest.raises(ValueError):
        FingerprintConfig(frame_count=-1)


def test_negative_weight_rejected():
    """Test weight bounds."""
    with pytest.raises(ValidationError):
        ScoreWeights(grid=-0.1)


def test_report_threshold_bounds():
    """Test report threshold bounds."""
    with pytest.raises(ValidationError):
        ReportThresholds(checker=1.5)


def test_grid_stride_warning(caplog):
    """Test that a stride beyond the frame logs a warning."""
    with caplog.at_level(logging.WARNING, logger="video_screener.config"):
        FingerprintConfig(frame_size=16, grid_stride=16)

    assert "grid_stride" in caplog.text


def test_custom_weights():
    """Test nested configuration."""
    config = FingerprintConfig(weights=ScoreWeights(grid=1.0, dots=0.0, cross=0.0, checker=0.0))

    assert config.weights.grid == 1.0
