"""
Framing Module - Block Layout Utilities

Deterministic block count and block offset computation for overlapping
analysis windows.

DESIGN CONSTRAINTS:
- A block is only used if it fits entirely inside the input
- Block i starts at i * hop_size
- Deterministic: same inputs -> same outputs

BLOCK LAYOUT:
- Hop size: hop = window_size // hop_divisor (default divisor 2 = 50% overlap)
- Block count: n = 1 + (sample_count - window_size) // hop, or 0 if
  sample_count < window_size
- Last block end: (n - 1) * hop + window_size <= sample_count
"""

from typing import Iterator

import numpy as np


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_HOP_DIVISOR: int = 2


# =============================================================================
# CORE FUNCTIONS
# =============================================================================

def compute_hop_size(window_size: int, hop_divisor: int = DEFAULT_HOP_DIVISOR) -> int:
    """
    Hop size in samples for a window size.

    Returns:
        window_size // hop_divisor, at least 1
    """
    if hop_divisor <= 0:
        raise ValueError(f"hop_divisor must be positive, got {hop_divisor}")
    return max(1, window_size // hop_divisor)


def compute_block_count(sample_count: int, window_size: int, hop_size: int) -> int:
    """
    Number of complete blocks that fit in sample_count samples.

    CONTRACT:
    - Output: non-negative int
    - Guarantee: (n - 1) * hop_size + window_size <= sample_count
    - Returns 0 if a single block does not fit or inputs are not positive
    - Non-decreasing in sample_count

    Parameters:
        sample_count: Number of usable input samples
        window_size: Block length in samples
        hop_size: Distance between consecutive block starts

    Returns:
        Number of blocks
    """
    if window_size <= 0 or hop_size <= 0:
        return 0
    if sample_count < window_size:
        return 0
    return 1 + (sample_count - window_size) // hop_size


def block_starts(sample_count: int, window_size: int, hop_size: int) -> np.ndarray:
    """
    Start offset of every block.

    Returns:
        Array of start offsets (n_blocks,), dtype int64
    """
    n_blocks = compute_block_count(sample_count, window_size, hop_size)
    return np.arange(n_blocks, dtype=np.int64) * hop_size


def iter_blocks(
    samples: np.ndarray,
    sample_count: int,
    window_size: int,
    hop_size: int
) -> Iterator[np.ndarray]:
    """
    Yield each block as a fresh float32 copy.

    Copies can be windowed in place without touching the caller's samples.

    Parameters:
        samples: 1D sample buffer (at least sample_count values)
        sample_count: Number of samples to frame
        window_size: Block length in samples
        hop_size: Distance between consecutive block starts

    Yields:
        (window_size,) float32 arrays
    """
    for start in block_starts(sample_count, window_size, hop_size):
        yield np.array(samples[start:start + window_size], dtype=np.float32)
