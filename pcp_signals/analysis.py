"""
Analysis Module - Pitch/Frequency Strength Curves

Frames a sample buffer into overlapping windowed blocks, runs each block
through one of the analysis algorithms and averages the results into a
half-window-length curve.

ALGORITHMS:
    0  Spectrum                   power spectrum, averaged, in dB
    1  Autocorrelation            FFT(sqrt(|FFT(x)|^2)), real part
    2  Cuberoot Autocorrelation   FFT(cbrt(|FFT(x)|^2)), real part
    3  Enhanced Autocorrelation   as 2, then clipped and peak-pruned

The autocorrelation family computes autocorrelation from the power
spectrum (Wiener-Khinchin) with a compressed magnitude, as proposed by
Tolonen and Karjalainen (2000). Enhanced autocorrelation subtracts a
time-doubled copy of the clipped curve to suppress peaks at multiples of
the fundamental period.

INVALID PARAMETERS:
Out-of-range window size, algorithm, window function or sample count do
not raise. analyze() returns 0 and analyze_frequencies() returns an
AnalysisResult whose curve is empty.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional

import numpy as np

from . import framing
from .kernel import BitReversalCache, fft, power_spectrum, is_power_of_two
from .kernel_params import KernelConfig, DEFAULT_CONFIG, validate_config
from .windows import is_valid_window_func, window_func as apply_window, window_func_name


logger = logging.getLogger(__name__)


class Algorithm(IntEnum):
    SPECTRUM = 0
    AUTOCORRELATION = 1
    CUBE_ROOT_AUTOCORRELATION = 2
    ENHANCED_AUTOCORRELATION = 3


ALGORITHM_NAMES: Dict[int, str] = {
    Algorithm.SPECTRUM: 'Spectrum',
    Algorithm.AUTOCORRELATION: 'Autocorrelation',
    Algorithm.CUBE_ROOT_AUTOCORRELATION: 'Cuberoot Autocorrelation',
    Algorithm.ENHANCED_AUTOCORRELATION: 'Enhanced Autocorrelation',
}


def num_algorithms() -> int:
    return len(ALGORITHM_NAMES)


def is_valid_algorithm(which) -> bool:
    """True if which is an integer id of a known algorithm."""
    if isinstance(which, bool) or not isinstance(which, (int, np.integer)):
        return False
    return 0 <= int(which) < num_algorithms()


def algorithm_name(which) -> str:
    """Display name of an algorithm, e.g. 'Enhanced Autocorrelation'."""
    if not is_valid_algorithm(which):
        raise ValueError(f"Unknown algorithm: {which}")
    return ALGORITHM_NAMES[int(which)]


@dataclass(frozen=True)
class AnalysisResult:
    """
    Output of analyze_frequencies.

    Attributes:
        curve: (window_size // 2,) float32 curve, or empty if rejected
        n_blocks: Number of blocks averaged into the curve
        window_size: Analysis window size
        algorithm: Algorithm id
        window_func: Window function id
    """
    curve: np.ndarray
    n_blocks: int
    window_size: int
    algorithm: int
    window_func: int

    @property
    def is_empty(self) -> bool:
        return self.curve.size == 0


# =============================================================================
# VALIDATION
# =============================================================================

def _rejection_reason(
    algorithm,
    window_func,
    window_size,
    available: int,
    sample_count,
    config: KernelConfig
) -> Optional[str]:
    """Why a request cannot be analyzed, or None if it can."""
    params = config.analysis

    if not is_power_of_two(window_size):
        return f"window size {window_size} is not a power of two"
    if not (params.min_window_size <= window_size <= params.max_window_size):
        return (
            f"window size {window_size} outside "
            f"[{params.min_window_size}, {params.max_window_size}]"
        )
    if not is_valid_algorithm(algorithm):
        return f"unknown algorithm {algorithm}"
    if not is_valid_window_func(window_func):
        return f"unknown window function {window_func}"
    if sample_count > available:
        return f"sample count {sample_count} exceeds buffer length {available}"
    if sample_count < window_size:
        return f"sample count {sample_count} is shorter than window size {window_size}"
    return None


# =============================================================================
# NORMALIZATION
# =============================================================================

def prune_harmonic_peaks(curve: np.ndarray) -> np.ndarray:
    """
    Peak pruning for enhanced autocorrelation.

    CONTRACT:
    - Input: curve (1D float array)
    - Output: same length, float32, all values >= 0

    Steps:
        c = max(curve, 0)
        stretched[i] = c[i/2] for even i, (c[i//2] + c[i//2 + 1]) / 2 for odd i
        result = max(c - stretched, 0)

    Parameters:
        curve: Averaged autocorrelation curve

    Returns:
        Pruned curve
    """
    clipped = np.maximum(np.asarray(curve, dtype=np.float32), np.float32(0.0))
    n = clipped.shape[0]
    if n == 0:
        return clipped

    i = np.arange(n)
    lo = i // 2
    hi = np.minimum(lo + 1, n - 1)
    stretched = np.where(i % 2 == 0, clipped[lo], (clipped[lo] + clipped[hi]) / 2)

    pruned = clipped - stretched.astype(np.float32)
    return np.maximum(pruned, np.float32(0.0))


def normalize_curve(
    algorithm,
    accumulated: np.ndarray,
    window_size: int,
    n_blocks: int,
    min_power: float = DEFAULT_CONFIG.analysis.min_power
) -> np.ndarray:
    """
    Turn a per-block sum into the final curve.

    - Spectrum: mean power per sample in dB, 10*log10(max(p, min_power))
    - Autocorrelation / Cuberoot: mean over blocks
    - Enhanced: mean over blocks, then prune_harmonic_peaks

    Parameters:
        algorithm: Algorithm id
        accumulated: Sum of per-block curves
        window_size: Analysis window size
        n_blocks: Number of blocks summed (> 0)
        min_power: Power floor applied before taking the logarithm

    Returns:
        Normalized float32 curve
    """
    algorithm = Algorithm(int(algorithm))
    if n_blocks <= 0:
        raise ValueError(f"n_blocks must be positive, got {n_blocks}")

    if algorithm == Algorithm.SPECTRUM:
        mean_power = accumulated / np.float32(window_size) / np.float32(n_blocks)
        mean_power = np.maximum(mean_power, np.float32(min_power))
        return (10.0 * np.log10(mean_power)).astype(np.float32)

    curve = (accumulated / np.float32(n_blocks)).astype(np.float32)
    if algorithm == Algorithm.ENHANCED_AUTOCORRELATION:
        curve = prune_harmonic_peaks(curve)
    return curve


# =============================================================================
# PIPELINE
# =============================================================================

def analyze_frequencies(
    algorithm,
    window_func,
    window_size: int,
    samples: np.ndarray,
    sample_count: Optional[int] = None,
    config: KernelConfig = DEFAULT_CONFIG,
    cache: Optional[BitReversalCache] = None
) -> AnalysisResult:
    """
    Compute a spectrum or periodicity curve over overlapping blocks.

    CONTRACT:
    - Input: samples (1D, mono), sample_count <= len(samples)
      (None = whole buffer)
    - Output: AnalysisResult with a (window_size // 2,) float32 curve
    - Invalid parameters -> empty curve, n_blocks == 0 (no exception)
    - Enhanced autocorrelation curve is always >= 0
    - Deterministic: same input -> same output

    PER BLOCK:
    1. Copy window_size samples, apply the window function
    2. Spectrum: power_spectrum, bins 0..N/2-1
       Autocorrelation family: power of fft(block), sqrt (1) or cube
       root (2, 3), fft again, real part of bins 0..N/2-1
    3. Add into the accumulator

    Parameters:
        algorithm: Algorithm id (0..3)
        window_func: Window function id (0..3)
        window_size: Block length, power of two in [32, 65536] by default
        samples: Mono sample buffer
        sample_count: Number of leading samples to analyze
        config: Kernel configuration
        cache: Bit-reversal cache (default: shared cache)

    Returns:
        AnalysisResult

    Raises:
        ValueError: If samples is not one-dimensional or config is invalid
    """
    validate_config(config)

    samples = np.asarray(samples, dtype=np.float32)
    if samples.ndim != 1:
        raise ValueError(f"samples must be one-dimensional, got shape {samples.shape}")
    if sample_count is None:
        sample_count = samples.shape[0]

    reason = _rejection_reason(
        algorithm, window_func, window_size, samples.shape[0], sample_count, config
    )
    if reason is not None:
        logger.debug("Nothing to analyze: %s", reason)
        return AnalysisResult(
            curve=np.zeros(0, dtype=np.float32),
            n_blocks=0,
            window_size=window_size,
            algorithm=algorithm,
            window_func=window_func
        )

    algorithm = Algorithm(int(algorithm))
    window_func = int(window_func)
    window_size = int(window_size)
    half = window_size // 2
    twiddle_mode = config.fft.twiddle_mode
    hop_size = framing.compute_hop_size(window_size, config.analysis.hop_divisor)

    accumulated = np.zeros(half, dtype=np.float32)
    spectrum = np.zeros(half + 1, dtype=np.float32)
    real = np.zeros(window_size, dtype=np.float32)
    imag = np.zeros(window_size, dtype=np.float32)
    n_blocks = 0

    for block in framing.iter_blocks(samples, sample_count, window_size, hop_size):
        apply_window(window_func, window_size, block)

        if algorithm == Algorithm.SPECTRUM:
            power_spectrum(window_size, block, spectrum,
                           twiddle_mode=twiddle_mode, cache=cache)
            accumulated += spectrum[:half]
        else:
            fft(window_size, False, block, None, real, imag,
                twiddle_mode=twiddle_mode, cache=cache)
            power = real * real + imag * imag

            if algorithm == Algorithm.AUTOCORRELATION:
                compressed = np.sqrt(power)
            else:
                # Tolonen and Karjalainen: cube root instead of square root
                compressed = np.cbrt(power)

            fft(window_size, False, compressed, None, real, imag,
                twiddle_mode=twiddle_mode, cache=cache)
            accumulated += real[:half]

        n_blocks += 1

    curve = normalize_curve(
        algorithm, accumulated, window_size, n_blocks, config.analysis.min_power
    )

    logger.debug(
        "%s (%s window): %d blocks of %d samples, hop %d",
        ALGORITHM_NAMES[algorithm], window_func_name(window_func), n_blocks, window_size, hop_size
    )

    return AnalysisResult(
        curve=curve,
        n_blocks=n_blocks,
        window_size=window_size,
        algorithm=int(algorithm),
        window_func=window_func
    )


def analyze(
    algorithm,
    window_func,
    window_size: int,
    samples: np.ndarray,
    sample_count: Optional[int],
    out: np.ndarray,
    config: KernelConfig = DEFAULT_CONFIG,
    cache: Optional[BitReversalCache] = None
) -> int:
    """
    Procedural form of analyze_frequencies writing into a caller buffer.

    Parameters:
        algorithm: Algorithm id (0..3)
        window_func: Window function id (0..3)
        window_size: Block length
        samples: Mono sample buffer
        sample_count: Number of leading samples to analyze (None = all)
        out: Output buffer, at least window_size // 2 values

    Returns:
        Curve length (window_size // 2), or 0 if parameters were rejected
        (out is left untouched)

    Raises:
        ValueError: If out is too short for an accepted request
    """
    result = analyze_frequencies(
        algorithm, window_func, window_size, samples, sample_count,
        config=config, cache=cache
    )
    if result.is_empty:
        return 0

    length = result.curve.shape[0]
    if not isinstance(out, np.ndarray) or out.ndim != 1 or out.shape[0] < length:
        raise ValueError(f"out must be a 1-D numpy array of at least {length} values")

    out[:length] = result.curve
    return length


def curve_axis(algorithm, window_size: int, sample_rate: float) -> np.ndarray:
    """
    Physical axis for each curve bin.

    Parameters:
        algorithm: Algorithm id
        window_size: Analysis window size
        sample_rate: Sample rate in Hz

    Returns:
        (window_size // 2,) float32 array: bin frequency in Hz for Spectrum,
        lag in seconds for the autocorrelation family
    """
    if not is_valid_algorithm(algorithm):
        raise ValueError(f"Unknown algorithm: {algorithm}")
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    bins = np.arange(window_size // 2, dtype=np.float64)
    if int(algorithm) == Algorithm.SPECTRUM:
        return (bins * sample_rate / window_size).astype(np.float32)
    return (bins / sample_rate).astype(np.float32)
