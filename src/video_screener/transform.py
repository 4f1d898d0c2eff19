"""Radix-2 Fast Fourier Transform engine.

Implements the iterative Cooley-Tukey decimation-in-time algorithm from
scratch: a bit-reversal permutation followed by log2(n) butterfly stages.
Stages are vectorized across blocks (and across rows for batched input), so
a 256x256 frame transforms in a few milliseconds without a compiled FFT.

All transforms are forward and unnormalized (no 1/n factor). No function
mutates the arrays it is given; every stage returns newly allocated buffers.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple

import numpy as np

from video_screener.exceptions import InvalidLengthError

logger = logging.getLogger(__name__)

__all__ = ['ComplexField', 'fft_1d', 'ifft_1d', 'fft_rows', 'fft_2d', 'is_power_of_two']


class ComplexField(NamedTuple):
    """Complex-valued field stored as parallel real and imaginary arrays."""

    real: np.ndarray
    imag: np.ndarray


def is_power_of_two(n: int) -> bool:
    """Return True for 1, 2, 4, 8, ...; False for 0 and negatives."""
    return n > 0 and (n & (n - 1)) == 0


def _check_length(n: int) -> None:
    if not is_power_of_two(n):
        raise InvalidLengthError(n)


def bit_reversal_permutation(n: int) -> np.ndarray:
    """
    Compute the bit-reversed index order for a length-n transform.

    Uses the ripple-carry update of the reversed counter, so each index pair
    (i, j) with i < j is swapped exactly once.

    Args:
        n: Transform length (power of 2)

    Returns:
        Integer array where entry i holds the bit-reversed value of i
    """
    _check_length(n)
    order = np.arange(n)
    j = 0
    for i in range(n - 1):
        if i < j:
            order[i], order[j] = order[j], order[i]
        k = n >> 1
        while k <= j:
            j -= k
            k >>= 1
        j += k
    return order


def _radix2(data: np.ndarray) -> np.ndarray:
    """Transform complex data along its last axis, returning a new array."""
    n = data.shape[-1]
    out = np.ascontiguousarray(data[..., bit_reversal_permutation(n)], dtype=np.complex128)

    length = 2
    while length <= n:
        half = length >> 1
        twiddles = np.exp(-2j * np.pi * np.arange(half) / length)

        # View as (..., n // length, length): every block of this stage at once
        blocks = out.reshape(out.shape[:-1] + (n // length, length))
        even = blocks[..., :half]
        odd = blocks[..., half:] * twiddles

        blocks[..., half:] = even - odd
        blocks[..., :half] += odd

        length <<= 1

    return out


def _as_complex(real: np.ndarray, imag: np.ndarray) -> np.ndarray:
    real = np.asarray(real, dtype=np.float64)
    imag = np.asarray(imag, dtype=np.float64)
    if real.shape != imag.shape:
        raise ValueError(
            f"Real and imaginary parts must have the same shape, got {real.shape} and {imag.shape}"
        )
    return real + 1j * imag


def _to_field(data: np.ndarray) -> ComplexField:
    return ComplexField(real=data.real.copy(), imag=data.imag.copy())


def fft_1d(real: np.ndarray, imag: np.ndarray) -> ComplexField:
    """
    Forward radix-2 DFT of a single complex sequence.

    Args:
        real: Real parts, length n (power of 2)
        imag: Imaginary parts, same length as real

    Returns:
        ComplexField with the transformed sequence

    Raises:
        InvalidLengthError: If n is 0 or not a power of 2
        ValueError: If the input is not 1D or the parts differ in shape
    """
    data = _as_complex(real, imag)
    if data.ndim != 1:
        raise ValueError(f"Expected 1D sequence, got {data.ndim}D array with shape {data.shape}")
    _check_length(data.shape[0])

    return _to_field(_radix2(data))


def ifft_1d(real: np.ndarray, imag: np.ndarray) -> ComplexField:
    """Inverse DFT: conjugate, forward transform, conjugate, scale by 1/n."""
    forward = fft_1d(real, -np.asarray(imag, dtype=np.float64))
    n = forward.real.shape[0]
    return ComplexField(real=forward.real / n, imag=-forward.imag / n)


def fft_rows(real: np.ndarray, imag: np.ndarray) -> ComplexField:
    """
    Forward radix-2 DFT of every row of a 2D complex field.

    Rows are independent; the butterfly stages run on all of them at once.

    Raises:
        InvalidLengthError: If the row length is 0 or not a power of 2
        ValueError: If the input is not 2D
    """
    data = _as_complex(real, imag)
    if data.ndim != 2:
        raise ValueError(f"Expected 2D array, got {data.ndim}D array with shape {data.shape}")
    _check_length(data.shape[1])

    return _to_field(_radix2(data))


def _transform_blocks(data: np.ndarray, max_workers: int) -> np.ndarray:
    """Transform rows of data, optionally splitting them across worker threads."""
    if max_workers <= 1 or data.shape[0] < 2:
        return _radix2(data)

    # Each worker owns a private copy of its block and returns a new buffer
    blocks = [block.copy() for block in np.array_split(data, min(max_workers, data.shape[0]))]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(_radix2, block) for block in blocks]
        # Reassemble in block order, not completion order
        results = [future.result() for future in futures]

    return np.concatenate(results, axis=0)


def fft_2d(field: np.ndarray, max_workers: int = 1) -> ComplexField:
    """
    Compute the 2D DFT of a real field by row-column decomposition.

    Every row is transformed first; the column pass only starts once all
    rows are done.

    Args:
        field: Real-valued 2D field (H, W), both sides powers of 2
        max_workers: Threads per pass; 1 runs each pass in one batch

    Returns:
        ComplexField of shape (H, W)

    Raises:
        ValueError: If the field is empty or not 2D
        InvalidLengthError: If a side is not a power of 2
    """
    field = np.asarray(field, dtype=np.float64)
    if field.size == 0:
        raise ValueError("Field array is empty")
    if field.ndim != 2:
        raise ValueError(f"Expected 2D array, got {field.ndim}D array with shape {field.shape}")

    h, w = field.shape
    _check_length(w)
    _check_length(h)

    logger.debug(f"Computing 2D FFT for field shape {field.shape} with {max_workers} worker(s)")

    rows_done = _transform_blocks(field.astype(np.complex128), max_workers)
    cols_done = _transform_blocks(rows_done.T, max_workers).T

    return ComplexField(
        real=np.ascontiguousarray(cols_done.real),
        imag=np.ascontiguousarray(cols_done.imag),
    )
