"""Tests for the radix-2 FFT engine."""

import numpy as np
import pytest

from video_screener.exceptions import InvalidLengthError
from video_screener.transform import (
    ComplexField,
    bit_reversal_permutation,
    fft_1d,
    fft_2d,
    fft_rows,
    ifft_1d,
    is_power_of_two,
)


def test_is_power_of_two():
    """Test power-of-two detection."""
    assert is_power_of_two(1)
    assert is_power_of_two(256)
    assert not is_power_of_two(0)
    assert not is_power_of_two(6)
    assert not is_power_of_two(-4)


def test_bit_reversal_permutation():
    """Test bit-reversed ordering for n=8."""
    order = bit_reversal_permutation(8)
    assert order.tolist() == [0, 4, 2, 6, 1, 5, 3, 7]


@pytest.mark.parametrize("n", [1, 2, 4, 8, 256])
def test_fft_1d_zero_sequence(n):
    """Test that an all-zero sequence transforms to all zeros."""
    result = fft_1d(np.zeros(n), np.zeros(n))

    assert isinstance(result, ComplexField)
    assert np.all(result.real == 0.0)
    assert np.all(result.imag == 0.0)


@pytest.mark.parametrize("n", [2, 4, 8, 256])
def test_fft_1d_inverse_round_trip(n):
    """Test forward then inverse transform reconstructs the input."""
    rng = np.random.default_rng(n)
    real = rng.normal(size=n)
    imag = rng.normal(size=n)

    forward = fft_1d(real, imag)
    restored = ifft_1d(forward.real, forward.imag)

    assert np.allclose(restored.real, real, atol=1e-4)
    assert np.allclose(restored.imag, imag, atol=1e-4)


@pytest.mark.parametrize("n", [8, 256])
def test_fft_1d_impulse_is_flat(n):
    """Test that an impulse has unit magnitude at every frequency."""
    real = np.zeros(n)
    real[0] = 1.0

    result = fft_1d(real, np.zeros(n))
    magnitude = np.sqrt(result.real**2 + result.imag**2)

    assert np.allclose(magnitude, 1.0)


def test_fft_1d_matches_direct_dft():
    """Test agreement with a direct O(n^2) DFT."""
    n = 64
    rng = np.random.default_rng(0)
    x = rng.normal(size=n) + 1j * rng.normal(size=n)

    k = np.arange(n)
    dft_matrix = np.exp(-2j * np.pi * np.outer(k, k) / n)
    expected = dft_matrix @ x

    result = fft_1d(x.real, x.imag)
    actual = result.real + 1j * result.imag

    assert np.allclose(np.abs(actual), np.abs(expected), rtol=1e-3)
    assert np.allclose(actual, expected, atol=1e-8)


def test_fft_1d_does_not_mutate_input():
    """Test that the caller's buffers are left untouched."""
    real = np.arange(8, dtype=np.float64)
    imag = np.zeros(8)
    real_before = real.copy()

    fft_1d(real, imag)

    assert np.array_equal(real, real_before)
    assert np.all(imag == 0.0)


@pytest.mark.parametrize("n", [0, 3, 6, 100])
def test_fft_1d_invalid_length(n):
    """Test rejection of zero and non power-of-two lengths."""
    with pytest.raises(InvalidLengthError, match="power of 2"):
        fft_1d(np.zeros(n), np.zeros(n))


def test_invalid_length_is_value_error():
    """Test that InvalidLengthError can be caught as ValueError."""
    with pytest.raises(ValueError):
        fft_1d(np.zeros(12), np.zeros(12))


def test_fft_1d_input_validation():
    """Test input validation for fft_1d."""
    with pytest.raises(ValueError, match="same shape"):
        fft_1d(np.zeros(8), np.zeros(4))

    with pytest.raises(ValueError, match="Expected 1D"):
        fft_1d(np.zeros((4, 4)), np.zeros((4, 4)))


def test_fft_rows():
    """Test that every row is transformed independently."""
    rng = np.random.default_rng(1)
    data = rng.normal(size=(8, 16))

    result = fft_rows(data, np.zeros_like(data))

    expected = np.fft.fft(data, axis=1)
    assert np.allclose(result.real, expected.real)
    assert np.allclose(result.imag, expected.imag)


def test_fft_2d_matches_reference():
    """Test 2D transform against numpy's FFT."""
    rng = np.random.default_rng(2)
    field = rng.random((32, 64))

    result = fft_2d(field)

    expected = np.fft.fft2(field)
    assert result.real.shape == (32, 64)
    assert np.allclose(result.real, expected.real)
    assert np.allclose(result.imag, expected.imag)


def test_fft_2d_transpose_invariance():
    """Test transform(transpose(X)) == transpose(transform(X))."""
    rng = np.random.default_rng(3)
    field = rng.random((16, 32))

    direct = fft_2d(field)
    transposed = fft_2d(field.T)

    assert np.allclose(transposed.real, direct.real.T)
    assert np.allclose(transposed.imag, direct.imag.T)


def test_fft_2d_parallel_matches_sequential():
    """Test that threaded row/column passes give the same result."""
    rng = np.random.default_rng(4)
    field = rng.random((64, 64))

    sequential = fft_2d(field, max_workers=1)
    parallel = fft_2d(field, max_workers=4)

    assert np.allclose(parallel.real, sequential.real)
    assert np.allclose(parallel.imag, sequential.imag)


def test_fft_2d_input_validation():
    """Test input validation for fft_2d."""
    with pytest.raises(ValueError, match="Field array is empty"):
        fft_2d(np.array([]))

    with pytest.raises(ValueError, match="Expected 2D"):
        fft_2d(np.zeros(8))

    with pytest.raises(InvalidLengthError):
        fft_2d(np.zeros((6, 8)))

    with pytest.raises(InvalidLengthError):
        fft_2d(np.zeros((8, 12)))
