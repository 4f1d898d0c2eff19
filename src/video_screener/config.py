"""Analysis configuration: sampling, pattern thresholds and decision weights.

The threshold and weight defaults are hand-tuned heuristics, not values
calibrated against labelled data.
"""

import logging

from pydantic import Field, field_validator
from pydantic.dataclasses import dataclass

from video_screener.transform import is_power_of_two

logger = logging.getLogger(__name__)

__all__ = ['FingerprintConfig', 'ScoreWeights', 'ReportThresholds']

# Sampling defaults
DEFAULT_FRAME_SIZE = 256  # Transform window side length (power of 2)
DEFAULT_FRAME_COUNT = 5  # Frames sampled per analysis

# Pattern thresholds on the 8-bit normalized spectrum
DEFAULT_GRID_STRIDE = 16
DEFAULT_GRID_THRESHOLD = 200
DEFAULT_BRIGHT_THRESHOLD = 240
DEFAULT_CROSS_THRESHOLD = 180
DEFAULT_CHECKER_THRESHOLD = 100
DEFAULT_SMOOTH_THRESHOLD = 30


@dataclass
class ScoreWeights:
    """Weights of the artifact scores in the AI score."""

    grid: float = Field(default=0.30, ge=0.0)
    dots: float = Field(default=0.25, ge=0.0)
    cross: float = Field(default=0.25, ge=0.0)
    checker: float = Field(default=0.20, ge=0.0)


@dataclass
class ReportThresholds:
    """Minimum aggregate score for a pattern to be listed as a finding."""

    grid: float = Field(default=0.5, ge=0.0, le=1.0)
    dots: float = Field(default=0.5, ge=0.0, le=1.0)
    cross: float = Field(default=0.5, ge=0.0, le=1.0)
    checker: float = Field(default=0.4, ge=0.0, le=1.0)


@dataclass
class FingerprintConfig:
    """Complete configuration of a fingerprint analysis run."""

    frame_size: int = Field(default=DEFAULT_FRAME_SIZE, ge=2, le=4096)
    frame_count: int = Field(default=DEFAULT_FRAME_COUNT, ge=1)
    grid_stride: int = Field(default=DEFAULT_GRID_STRIDE, ge=1)
    grid_threshold: float = Field(default=DEFAULT_GRID_THRESHOLD, ge=0, le=255)
    bright_threshold: float = Field(default=DEFAULT_BRIGHT_THRESHOLD, ge=0, le=255)
    cross_threshold: float = Field(default=DEFAULT_CROSS_THRESHOLD, ge=0, le=255)
    checker_threshold: float = Field(default=DEFAULT_CHECKER_THRESHOLD, ge=0, le=255)
    smooth_threshold: float = Field(default=DEFAULT_SMOOTH_THRESHOLD, ge=0, le=255)
    weights: ScoreWeights = Field(default_factory=ScoreWeights)
    report_thresholds: ReportThresholds = Field(default_factory=ReportThresholds)
    max_workers: int = Field(default=1, ge=1)

    @field_validator("frame_size")
    @classmethod
    def validate_frame_size(cls, v: int) -> int:
        """Frames feed a radix-2 transform, so the side must be a power of 2."""
        if not is_power_of_two(v):
            raise ValueError(f"frame_size must be a power of 2, got {v}")
        return v

    def __post_init__(self):
        if self.grid_stride >= self.frame_size:
            logger.warning(
                f"grid_stride {self.grid_stride} >= frame_size {self.frame_size}, "
                f"grid pattern score will always be 0"
            )
