"""Heuristic pattern scoring of normalized frequency spectra.

Generative upsampling tends to leave periodic structure in the spectrum:
peaks on a regular grid, isolated bright dots, a bright cross along the
axes, and sharp pixel-to-pixel jumps. Natural footage produces a smooth,
structureless spectrum. Each score below counts one of these signatures.
"""

import logging
from typing import NamedTuple, Sequence, Tuple

import numpy as np
from pydantic import Field
from pydantic.dataclasses import dataclass

from video_screener.config import (
    DEFAULT_BRIGHT_THRESHOLD,
    DEFAULT_CHECKER_THRESHOLD,
    DEFAULT_CROSS_THRESHOLD,
    DEFAULT_GRID_STRIDE,
    DEFAULT_GRID_THRESHOLD,
    DEFAULT_SMOOTH_THRESHOLD,
    FingerprintConfig,
)

logger = logging.getLogger(__name__)

__all__ = ['PatternClassifier', 'PatternScores', 'average_scores', 'get_center_coords']

GRID_COUNT_NORMALIZER = 100  # Grid hits needed for a full grid score
BRIGHT_COUNT_NORMALIZER = 500  # Bright points needed for a full dots score


def get_center_coords(shape: Tuple[int, int]) -> Tuple[int, int]:
    """
    Get center coordinates (DC position after the quadrant shift).

    Args:
        shape: (H, W) spectrum shape

    Returns:
        (center_y, center_x) tuple
    """
    return shape[0] // 2, shape[1] // 2


class PatternScores(NamedTuple):
    """Pattern scores of one spectrum, or their mean over frames. Each in [0, 1]."""

    grid_pattern: float  # Bright points on a regular lattice
    bright_dots: float  # Isolated high-intensity points
    cross_shape: float  # Bright horizontal/vertical axes through DC
    checkerboard: float  # Sharp jumps between adjacent frequencies
    smooth_gradient: float  # Locally flat regions (natural footage)


def average_scores(scores: Sequence[PatternScores]) -> PatternScores:
    """
    Arithmetic mean of each score across frames.

    Raises:
        ValueError: If scores is empty
    """
    if not scores:
        raise ValueError("Cannot average an empty set of pattern scores")

    means = np.mean(np.array(scores, dtype=np.float64), axis=0)
    return PatternScores(*(float(m) for m in means))


@dataclass
class PatternClassifier:
    """Scores a normalized spectrum for generative-model artifacts."""

    grid_stride: int = Field(default=DEFAULT_GRID_STRIDE, ge=1)
    grid_threshold: float = Field(default=DEFAULT_GRID_THRESHOLD, ge=0, le=255)
    bright_threshold: float = Field(default=DEFAULT_BRIGHT_THRESHOLD, ge=0, le=255)
    cross_threshold: float = Field(default=DEFAULT_CROSS_THRESHOLD, ge=0, le=255)
    checker_threshold: float = Field(default=DEFAULT_CHECKER_THRESHOLD, ge=0, le=255)
    smooth_threshold: float = Field(default=DEFAULT_SMOOTH_THRESHOLD, ge=0, le=255)

    @classmethod
    def from_config(cls, config: FingerprintConfig) -> "PatternClassifier":
        """Build a classifier from the thresholds of a run configuration."""
        return cls(
            grid_stride=config.grid_stride,
            grid_threshold=config.grid_threshold,
            bright_threshold=config.bright_threshold,
            cross_threshold=config.cross_threshold,
            checker_threshold=config.checker_threshold,
            smooth_threshold=config.smooth_threshold,
        )

    def compute_grid_pattern(self, spectrum: np.ndarray) -> float:
        """
        Count bright points on the stride lattice.

        Lattice points are multiples of grid_stride on both axes, excluding
        index 0 (the top and left border).
        """
        s = self.grid_stride
        lattice = spectrum[s::s, s::s]
        count = int(np.count_nonzero(lattice > self.grid_threshold))
        return min(count / GRID_COUNT_NORMALIZER, 1.0)

    def compute_bright_dots(self, spectrum: np.ndarray) -> float:
        """Count all points brighter than bright_threshold."""
        count = int(np.count_nonzero(spectrum > self.bright_threshold))
        return min(count / BRIGHT_COUNT_NORMALIZER, 1.0)

    def compute_cross_shape(self, spectrum: np.ndarray) -> float:
        """Count bright points on the center row and the center column."""
        h, w = spectrum.shape
        center_y, center_x = get_center_coords(spectrum.shape)

        count = int(np.count_nonzero(spectrum[center_y, :] > self.cross_threshold))
        count += int(np.count_nonzero(spectrum[:, center_x] > self.cross_threshold))
        return min(count / (2 * w), 1.0)

    def compute_checkerboard(self, spectrum: np.ndarray) -> float:
        """
        Count points with a sharp jump to their right or lower neighbor.

        Only points that have both neighbors (all but the last row and
        column) are considered; the count is normalized by the full area.
        """
        h, w = spectrum.shape
        current = spectrum[:-1, :-1]
        right = spectrum[:-1, 1:]
        down = spectrum[1:, :-1]

        jumps = (np.abs(current - right) > self.checker_threshold) | (
            np.abs(current - down) > self.checker_threshold
        )
        count = int(np.count_nonzero(jumps))
        return min(count / (w * h), 1.0)

    def compute_smooth_gradient(self, spectrum: np.ndarray) -> float:
        """
        Count interior points that are locally flat.

        A point is flat when the mean absolute difference to its four
        neighbors is below smooth_threshold. Border points never count, so
        even a perfectly uniform spectrum scores (w-2)(h-2)/(w*h).
        """
        h, w = spectrum.shape
        if h < 3 or w < 3:
            return 0.0

        center = spectrum[1:-1, 1:-1]
        avg_diff = (
            np.abs(center - spectrum[:-2, 1:-1])
            + np.abs(center - spectrum[2:, 1:-1])
            + np.abs(center - spectrum[1:-1, :-2])
            + np.abs(center - spectrum[1:-1, 2:])
        ) / 4.0
        count = int(np.count_nonzero(avg_diff < self.smooth_threshold))
        return count / (w * h)

    def classify(self, normalized: np.ndarray) -> PatternScores:
        """
        Compute all five pattern scores for one spectrum.

        Args:
            normalized: Quadrant-shifted spectrum scaled to [0, 255]

        Returns:
            PatternScores for the spectrum

        Raises:
            ValueError: If the spectrum is empty or not 2D
        """
        spectrum = np.asarray(normalized)
        if spectrum.size == 0:
            raise ValueError("Spectrum array is empty")
        if spectrum.ndim != 2:
            raise ValueError(
                f"Expected 2D spectrum, got {spectrum.ndim}D array with shape {spectrum.shape}"
            )

        # Signed float copy: uint8 differences would wrap around
        spectrum = spectrum.astype(np.float64)

        scores = PatternScores(
            grid_pattern=self.compute_grid_pattern(spectrum),
            bright_dots=self.compute_bright_dots(spectrum),
            cross_shape=self.compute_cross_shape(spectrum),
            checkerboard=self.compute_checkerboard(spectrum),
            smooth_gradient=self.compute_smooth_gradient(spectrum),
        )

        logger.debug(
            f"Pattern scores: grid={scores.grid_pattern:.4f}, dots={scores.bright_dots:.4f}, "
            f"cross={scores.cross_shape:.4f}, checker={scores.checkerboard:.4f}, "
            f"smooth={scores.smooth_gradient:.4f}"
        )

        return scores
