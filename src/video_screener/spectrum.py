"""Frame preprocessing and spectrum post-processing for frequency analysis."""

import logging

import numpy as np
from pydantic import Field, field_validator
from pydantic.dataclasses import dataclass
from scipy import signal

from video_screener.transform import fft_2d, is_power_of_two

logger = logging.getLogger(__name__)

__all__ = [
    'SpectrumProcessor',
    'grayscale',
    'high_pass',
    'magnitude',
    'log_scale',
    'fft_shift',
    'normalize',
    'to_uint8',
]

# ITU-R BT.601 luma coefficients
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114

# 3x3 Laplacian-style high-pass kernel: isolates texture, removes DC
HIGH_PASS_KERNEL = np.array(
    [
        [-1, -1, -1],
        [-1, 8, -1],
        [-1, -1, -1],
    ],
    dtype=np.float64,
)

LOG_EPSILON = 1e-10  # Keeps log10 finite for exact zeros (maps 0 to -200 dB)


def grayscale(frame: np.ndarray) -> np.ndarray:
    """
    Convert an RGB or RGBA frame to luminance.

    Args:
        frame: Pixel buffer (H, W, 3) or (H, W, 4); alpha is ignored

    Returns:
        Luminance field (H, W), float64

    Raises:
        ValueError: If the frame does not have 3 or 4 channels
    """
    frame = np.asarray(frame)
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W, 3) or (H, W, 4) frame, got shape {frame.shape}")

    rgb = frame[..., :3].astype(np.float64)
    return LUMA_R * rgb[..., 0] + LUMA_G * rgb[..., 1] + LUMA_B * rgb[..., 2]


def high_pass(field: np.ndarray) -> np.ndarray:
    """
    Apply the fixed 3x3 high-pass kernel to interior pixels.

    Border rows and columns are not convolved and stay at 0.
    """
    field = np.asarray(field, dtype=np.float64)
    if field.ndim != 2:
        raise ValueError(f"Expected 2D array, got {field.ndim}D array with shape {field.shape}")
    filtered = np.zeros_like(field)

    h, w = field.shape
    if h < 3 or w < 3:
        return filtered

    # Kernel is symmetric, so convolution equals correlation here
    filtered[1:-1, 1:-1] = signal.convolve2d(field, HIGH_PASS_KERNEL, mode="valid")
    return filtered


def magnitude(real: np.ndarray, imag: np.ndarray) -> np.ndarray:
    """Elementwise complex magnitude sqrt(re^2 + im^2)."""
    real = np.asarray(real, dtype=np.float64)
    imag = np.asarray(imag, dtype=np.float64)
    return np.sqrt(real * real + imag * imag)


def log_scale(mag: np.ndarray) -> np.ndarray:
    """Convert linear magnitude to decibels: 20 * log10(x + 1e-10)."""
    return 20.0 * np.log10(np.asarray(mag, dtype=np.float64) + LOG_EPSILON)


def fft_shift(field: np.ndarray) -> np.ndarray:
    """
    Swap quadrants so the zero-frequency component sits at the center.

    Index (x, y) moves to ((x + w/2) mod w, (y + h/2) mod h). Applying the
    shift twice restores the input when both sides are even.
    """
    field = np.asarray(field)
    h, w = field.shape
    return np.roll(field, shift=(h // 2, w // 2), axis=(0, 1))


def normalize(data: np.ndarray) -> np.ndarray:
    """
    Linearly rescale values to [0, 255].

    A constant input (max == min) maps to all zeros rather than dividing
    by zero.
    """
    data = np.asarray(data, dtype=np.float64)
    if data.size == 0:
        return data.copy()

    lo = data.min()
    hi = data.max()
    value_range = hi - lo

    if not value_range > 0:
        logger.debug("Degenerate spectrum (constant values), normalizing to zeros")
        return np.zeros_like(data)

    return (data - lo) / value_range * 255.0


def to_uint8(normalized: np.ndarray) -> np.ndarray:
    """Round half to even and clamp to 8-bit, like writing into a byte buffer."""
    return np.clip(np.rint(normalized), 0, 255).astype(np.uint8)


@dataclass
class SpectrumProcessor:
    """Turns sampled frames into centered log-magnitude spectra."""

    frame_size: int = Field(default=256, ge=2, le=4096)
    max_workers: int = Field(default=1, ge=1)

    @field_validator("frame_size")
    @classmethod
    def validate_frame_size(cls, v: int) -> int:
        """Ensure frame size is a power of 2 for the radix-2 transform."""
        if not is_power_of_two(v):
            raise ValueError(f"frame_size must be a power of 2, got {v}")
        return v

    def validate_frame(self, frame: np.ndarray) -> np.ndarray:
        """
        Check that a frame matches the configured window.

        Args:
            frame: Pixel buffer (frame_size, frame_size, 3 or 4)

        Returns:
            The frame as a numpy array

        Raises:
            ValueError: If the frame is empty or has the wrong shape
        """
        frame = np.asarray(frame)
        if frame.size == 0:
            raise ValueError("Frame array is empty")
        if frame.ndim != 3 or frame.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3) or (H, W, 4) frame, got shape {frame.shape}")
        if frame.shape[:2] != (self.frame_size, self.frame_size):
            raise ValueError(
                f"Expected {self.frame_size}x{self.frame_size} frame, "
                f"got {frame.shape[1]}x{frame.shape[0]}"
            )
        return frame

    def preprocess(self, frame: np.ndarray) -> np.ndarray:
        """Grayscale conversion followed by high-pass filtering."""
        frame = self.validate_frame(frame)
        filtered = high_pass(grayscale(frame))
        logger.debug("Converted frame to grayscale and applied high-pass filter")
        return filtered

    def compute_spectrum(self, frame: np.ndarray) -> np.ndarray:
        """
        Complete spectrum pipeline for one frame.

        grayscale -> high-pass -> 2D FFT -> magnitude -> dB -> quadrant shift

        Args:
            frame: Pixel buffer (frame_size, frame_size, 3 or 4)

        Returns:
            Centered log-magnitude spectrum (frame_size, frame_size)
        """
        filtered = self.preprocess(frame)
        transformed = fft_2d(filtered, max_workers=self.max_workers)
        log_magnitude = log_scale(magnitude(transformed.real, transformed.imag))
        spectrum = fft_shift(log_magnitude)

        logger.debug(
            f"Spectrum range: [{spectrum.min():.2f}, {spectrum.max():.2f}] dB"
        )
        return spectrum
