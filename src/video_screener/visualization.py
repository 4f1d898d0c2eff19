"""Visualization of analysis results: spectrum heatmaps and text reports."""

import logging
from pathlib import Path
from typing import List, Optional, Union

import matplotlib
import matplotlib.pyplot as plt
import numpy as np

from video_screener.patterns import PatternScores
from video_screener.pipeline import AnalysisResult
from video_screener.spectrum import normalize

logger = logging.getLogger(__name__)

__all__ = ['render_spectrum', 'save_spectrum_plot', 'format_pattern_report']

SPECTRUM_COLORMAP = "inferno"

PATTERN_NAMES = {
    "grid_pattern": "Grid Pattern",
    "bright_dots": "Bright Dots",
    "cross_shape": "Cross Shape",
    "checkerboard": "Checkerboard",
    "smooth_gradient": "Smooth Gradient",
}


def render_spectrum(spectrum: np.ndarray, colormap: str = SPECTRUM_COLORMAP) -> np.ndarray:
    """
    Map a spectrum to an RGB heatmap.

    Args:
        spectrum: Log-magnitude spectrum (H, W)
        colormap: Name of a matplotlib colormap

    Returns:
        RGB image (H, W, 3), uint8
    """
    spectrum = np.asarray(spectrum)
    if spectrum.ndim != 2:
        raise ValueError(f"Expected 2D spectrum, got {spectrum.ndim}D array with shape {spectrum.shape}")

    cmap = matplotlib.colormaps[colormap]
    rgba = cmap(normalize(spectrum) / 255.0)
    return (rgba[..., :3] * 255).round().astype(np.uint8)


def format_pattern_report(patterns: PatternScores) -> List[str]:
    """
    Render pattern scores as text bars, one block per 10%.

    Example line: "Grid Pattern: ███ 34%"
    """
    lines = []
    for key, value in patterns._asdict().items():
        percentage = round(value * 100)
        bar = "█" * (percentage // 10)
        lines.append(f"{PATTERN_NAMES[key]}: {bar} {percentage}%")
    return lines


def save_spectrum_plot(
    result: AnalysisResult,
    output_path: Union[str, Path],
    title: Optional[str] = None,
) -> Path:
    """
    Save the representative spectrum of an analysis as an annotated figure.

    The heatmap is marked with a crosshair at the DC component and labeled
    with the low/high frequency regions; the verdict goes in the title.

    Args:
        result: AnalysisResult from FingerprintPipeline.analyze
        output_path: Image path (.png, .jpg, .pdf, .svg)
        title: Optional first title line (e.g. the video name)

    Returns:
        Path the figure was written to
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    h, w = result.spectrum.shape
    center_x, center_y = w / 2, h / 2

    fig, ax = plt.subplots(figsize=(8, 8))
    try:
        ax.imshow(render_spectrum(result.spectrum), interpolation="bilinear")

        # Crosshair at the DC component
        cross = max(w, h) * 0.08
        ax.plot([center_x - cross, center_x + cross], [center_y, center_y], color="white", alpha=0.5, linewidth=1)
        ax.plot([center_x, center_x], [center_y - cross, center_y + cross], color="white", alpha=0.5, linewidth=1)
        ax.scatter([center_x], [center_y], s=12, color="white", alpha=0.7)

        ax.text(center_x, center_y - cross * 1.5, "Low Freq", color="white", alpha=0.6, ha="center", fontsize=10)
        ax.text(w * 0.04, h * 0.06, "High Freq", color="white", alpha=0.6, ha="left", fontsize=10)
        ax.axis("off")

        verdict = "AI Generated" if result.is_ai_generated else "Real Video"
        lines = [title] if title else []
        lines.append(f"{verdict} | Confidence: {result.confidence:.0f}%")
        lines.append(
            f"AI score: {result.ai_score:.3f} | Natural score: {result.real_score:.3f}"
        )
        ax.set_title("\n".join(lines), fontsize=13, fontweight="bold")

        fig.savefig(output_path, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)

    logger.info(f"Saved spectrum plot to {output_path}")
    return output_path
