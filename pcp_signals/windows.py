"""
Window Function Module

Stateless weighting functions applied in place to a sample block before
transformation. Functions are selected by integer id:

    0  Rectangular  (identity)
    1  Bartlett     (triangular)
    2  Hamming      0.54 - 0.46 * cos(2*pi*i / (N-1))
    3  Hanning      0.50 - 0.50 * cos(2*pi*i / (N-1))

Weights are evaluated in float64 and applied to float32 blocks.
"""

from enum import IntEnum
from typing import Dict

import numpy as np


class WindowFunction(IntEnum):
    RECTANGULAR = 0
    BARTLETT = 1
    HAMMING = 2
    HANNING = 3


WINDOW_FUNC_NAMES: Dict[int, str] = {
    WindowFunction.RECTANGULAR: 'Rectangular',
    WindowFunction.BARTLETT: 'Bartlett',
    WindowFunction.HAMMING: 'Hamming',
    WindowFunction.HANNING: 'Hanning',
}


def num_window_funcs() -> int:
    """Number of available window functions."""
    return len(WINDOW_FUNC_NAMES)


def is_valid_window_func(which) -> bool:
    """True if which is an integer id of a known window function."""
    if isinstance(which, bool) or not isinstance(which, (int, np.integer)):
        return False
    return 0 <= int(which) < num_window_funcs()


def _check_window_func(which) -> int:
    if not is_valid_window_func(which):
        raise ValueError(f"Unknown window function: {which}")
    return int(which)


def window_func_name(which) -> str:
    """Display name of a window function, e.g. 'Hamming'."""
    return WINDOW_FUNC_NAMES[_check_window_func(which)]


def window_weights(which, num_samples: int) -> np.ndarray:
    """
    Weight vector of a window function.

    CONTRACT:
    - Input: which (window id 0..3), num_samples (>= 0)
    - Output: (num_samples,) float32 array
    - Rectangular: all ones
    - Bartlett: weight i / (N/2) on the first half, 1 - i / (N/2) at
      index i + N/2; 0 at the first sample and 1 at the midpoint
    - Hamming/Hanning: symmetric cosine windows over N-1 intervals

    Parameters:
        which: Window function id
        num_samples: Window length

    Returns:
        Window weights

    Raises:
        ValueError: If which is not a known window function
    """
    which = _check_window_func(which)
    if num_samples < 0:
        raise ValueError(f"num_samples must be non-negative, got {num_samples}")

    weights = np.ones(num_samples, dtype=np.float64)

    if which == WindowFunction.BARTLETT:
        half = num_samples // 2
        if half > 0:
            ramp = np.arange(half, dtype=np.float64) / half
            weights[:half] = ramp
            weights[half:2 * half] = 1.0 - ramp

    elif which in (WindowFunction.HAMMING, WindowFunction.HANNING) and num_samples > 1:
        if which == WindowFunction.HAMMING:
            a0, a1 = 0.54, 0.46
        else:
            a0, a1 = 0.50, 0.50
        i = np.arange(num_samples, dtype=np.float64)
        weights = a0 - a1 * np.cos(2.0 * np.pi * i / (num_samples - 1))

    return weights.astype(np.float32)


def window_func(which, num_samples: int, data: np.ndarray) -> np.ndarray:
    """
    Apply a window function in place to the first num_samples values.

    Rectangular leaves data untouched.

    Parameters:
        which: Window function id (0..3)
        num_samples: Window length
        data: 1D numpy array with at least num_samples values

    Returns:
        data (the same array, modified in place)

    Raises:
        ValueError: If which is unknown or data is too short
    """
    which = _check_window_func(which)
    if not isinstance(data, np.ndarray) or data.ndim != 1 or data.shape[0] < num_samples:
        raise ValueError(
            f"data must be a 1-D numpy array of at least {num_samples} samples"
        )

    if which == WindowFunction.RECTANGULAR:
        return data

    data[:num_samples] *= window_weights(which, num_samples)
    return data
