"""
FFT Kernel Module - Core Transform Functions

This module contains the deterministic transform kernel used by the
pitch/periodicity analysis pipeline: a radix-2 complex FFT, a half-size
real-input FFT and a fused power spectrum.

DESIGN CONSTRAINTS:
- No I/O operations (no file reading/writing)
- No plotting or visualization
- Explicit state management: the bit-reversal cache is the only persistent
  state, and callers may own their own instance
- No config module imports - all parameters are explicit
- Only numpy dependency

NUMERIC CONTRACT:
- All buffers are float32 (single precision)
- Angles and twiddle seeds are computed in float64
- Forward transform uses exp(-2*pi*i*n*k/N), inverse uses exp(+2*pi*i*n*k/N)
  and divides by N (same convention as numpy.fft)

TRANSFORM SIZES:
- Complex FFT: power of two >= 2
- Real FFT / power spectrum: power of two >= 4 (packed into a half-size FFT)
- Anything else raises InvalidTransformSize
"""

import logging
import math
import threading
from typing import List, Optional, Tuple

import numpy as np


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Bit widths with a cached reversal table (tables for 1..16 bits)
MAX_FAST_BITS: int = 16

# Twiddle factor generation
TWIDDLE_RECURRENCE: str = 'recurrence'
TWIDDLE_DIRECT: str = 'direct'
TWIDDLE_MODES: Tuple[str, ...] = (TWIDDLE_RECURRENCE, TWIDDLE_DIRECT)
DEFAULT_TWIDDLE_MODE: str = TWIDDLE_RECURRENCE


# =============================================================================
# ERRORS
# =============================================================================

class InvalidTransformSize(ValueError):
    """
    Raised when a transform is requested for an unsupported length.

    Attributes:
        size: The rejected transform size
        minimum: Smallest power of two the transform accepts
    """

    def __init__(self, size, minimum: int = 2) -> None:
        self.size = size
        self.minimum = minimum
        super().__init__(
            f"Transform size must be a power of two >= {minimum}, got {size}"
        )


# =============================================================================
# SIZE HELPERS
# =============================================================================

def is_power_of_two(x) -> bool:
    """Return True if x is an integer power of two >= 2."""
    if isinstance(x, bool) or not isinstance(x, (int, np.integer)):
        return False
    x = int(x)
    if x < 2:
        return False
    return (x & (x - 1)) == 0


def number_of_bits_needed(power_of_two: int) -> int:
    """
    Number of index bits for a power-of-two transform size.

    Raises:
        InvalidTransformSize: If power_of_two is not a power of two >= 2
    """
    if not is_power_of_two(power_of_two):
        raise InvalidTransformSize(power_of_two)
    return int(power_of_two).bit_length() - 1


def _check_transform_size(num_samples, minimum: int = 2) -> int:
    if not is_power_of_two(num_samples) or int(num_samples) < minimum:
        raise InvalidTransformSize(num_samples, minimum)
    return int(num_samples)


def _as_input(buf, num_samples: int, name: str) -> np.ndarray:
    arr = np.asarray(buf, dtype=np.float32)
    if arr.ndim != 1 or arr.shape[0] < num_samples:
        raise ValueError(
            f"{name} must be a 1-D buffer of at least {num_samples} samples, "
            f"got shape {arr.shape}"
        )
    return arr[:num_samples]


def _output_buffer(buf: Optional[np.ndarray], length: int, name: str) -> np.ndarray:
    if buf is None:
        return np.zeros(length, dtype=np.float32)
    if not isinstance(buf, np.ndarray) or buf.ndim != 1 or buf.shape[0] < length:
        raise ValueError(
            f"{name} must be a 1-D numpy array of at least {length} values"
        )
    return buf


# =============================================================================
# BIT-REVERSAL CACHE
# =============================================================================

def reverse_bits(index: int, num_bits: int) -> int:
    """
    Reverse the lowest num_bits bits of index.

    Example: reverse_bits(1, 3) == 4 (001 -> 100)
    """
    rev = 0
    for _ in range(num_bits):
        rev = (rev << 1) | (index & 1)
        index >>= 1
    return rev


def _reverse_bits_array(num_bits: int) -> np.ndarray:
    """Bit reversal of every index in [0, 2**num_bits)."""
    index = np.arange(1 << num_bits, dtype=np.int64)
    rev = np.zeros_like(index)
    for _ in range(num_bits):
        rev = (rev << 1) | (index & 1)
        index >>= 1
    return rev


class BitReversalCache:
    """
    Lookup tables mapping (bit width, index) -> reversed index.

    Tables for widths 1..MAX_FAST_BITS are built together, once, on first
    use (or eagerly via build()). Construction is guarded by a lock so
    concurrent first use builds the tables exactly once. Tables are
    read-only numpy arrays and are never invalidated.

    Widths above MAX_FAST_BITS are computed on every call and not stored.

    Usage:
        cache = BitReversalCache().build()   # eager, before spawning threads
        fft(1024, False, x, cache=cache)
    """

    def __init__(self) -> None:
        self._tables: Optional[List[np.ndarray]] = None
        self._lock = threading.Lock()

    @property
    def is_built(self) -> bool:
        return self._tables is not None

    def build(self) -> 'BitReversalCache':
        """Build all cached tables if not built yet. Returns self."""
        if self._tables is None:
            with self._lock:
                if self._tables is None:
                    tables = []
                    for num_bits in range(1, MAX_FAST_BITS + 1):
                        table = _reverse_bits_array(num_bits).astype(np.int32)
                        table.flags.writeable = False
                        tables.append(table)
                    self._tables = tables
                    logger.debug(
                        "Built bit-reversal tables for widths 1..%d", MAX_FAST_BITS
                    )
        return self

    def table(self, num_bits: int) -> np.ndarray:
        """
        Reversal table for num_bits, length 2**num_bits.

        Cached (read-only) for num_bits <= MAX_FAST_BITS, computed fresh
        above that.
        """
        if num_bits < 1:
            raise ValueError(f"num_bits must be >= 1, got {num_bits}")
        if num_bits > MAX_FAST_BITS:
            return _reverse_bits_array(num_bits)
        self.build()
        return self._tables[num_bits - 1]

    def lookup(self, index: int, num_bits: int) -> int:
        """Reversed index, via the table when num_bits is small enough."""
        if 1 <= num_bits <= MAX_FAST_BITS:
            return int(self.table(num_bits)[index])
        return reverse_bits(index, num_bits)


# Shared instance used when a caller does not supply its own cache
DEFAULT_CACHE = BitReversalCache()


def fast_reverse_bits(index: int, num_bits: int, cache: Optional[BitReversalCache] = None) -> int:
    """Table-backed reverse_bits for num_bits <= MAX_FAST_BITS."""
    if cache is None:
        cache = DEFAULT_CACHE
    return cache.lookup(index, num_bits)


# =============================================================================
# TWIDDLE FACTORS
# =============================================================================

def _butterfly_twiddles(
    block_size: int,
    inverse: bool,
    mode: str = DEFAULT_TWIDDLE_MODE
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Twiddle factors (cos, sin) for the block_size/2 butterflies of one pass.

    Recurrence mode seeds cos/sin at -2 and -1 steps and advances with
        a[n] = 2*cos(step) * a[n-1] - a[n-2]
    so no trig call is made per butterfly. Direct mode evaluates every angle.
    The recurrence runs in float64; the table is stored as float32.
    """
    half = block_size // 2
    angle_numerator = 2.0 * math.pi if inverse else -2.0 * math.pi
    delta_angle = angle_numerator / block_size

    if mode == TWIDDLE_DIRECT:
        angles = delta_angle * np.arange(half, dtype=np.float64)
        return np.cos(angles).astype(np.float32), np.sin(angles).astype(np.float32)

    if mode != TWIDDLE_RECURRENCE:
        raise ValueError(f"Unknown twiddle mode: {mode}")

    ar = np.empty(half, dtype=np.float32)
    ai = np.empty(half, dtype=np.float32)

    w = 2.0 * math.cos(delta_angle)
    ar2 = math.cos(-2.0 * delta_angle)
    ar1 = math.cos(-delta_angle)
    ai2 = math.sin(-2.0 * delta_angle)
    ai1 = math.sin(-delta_angle)

    for n in range(half):
        ar0 = w * ar1 - ar2
        ar2 = ar1
        ar1 = ar0

        ai0 = w * ai1 - ai2
        ai2 = ai1
        ai1 = ai0

        ar[n] = ar0
        ai[n] = ai0

    return ar, ai


def _real_split_twiddles(half: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Twiddles exp(-i*pi*k/half) for k = 1..half/2-1, used to unpack a
    packed real FFT. Advanced multiplicatively from sin(theta) and
    sin(theta/2) to avoid cancellation in 1 - cos(theta).
    """
    count = max(half // 2 - 1, 0)
    wr_table = np.empty(count, dtype=np.float32)
    wi_table = np.empty(count, dtype=np.float32)

    theta = -math.pi / half
    wtemp = math.sin(0.5 * theta)
    wpr = -2.0 * wtemp * wtemp
    wpi = math.sin(theta)
    wr = 1.0 + wpr
    wi = wpi

    for k in range(count):
        wr_table[k] = wr
        wi_table[k] = wi
        wtemp = wr
        wr = wr * wpr - wi * wpi + wr
        wi = wi * wpr + wtemp * wpi + wi

    return wr_table, wi_table


# =============================================================================
# COMPLEX FFT
# =============================================================================

def fft(
    num_samples: int,
    inverse: bool,
    real_in: np.ndarray,
    imag_in: Optional[np.ndarray] = None,
    real_out: Optional[np.ndarray] = None,
    imag_out: Optional[np.ndarray] = None,
    twiddle_mode: str = DEFAULT_TWIDDLE_MODE,
    cache: Optional[BitReversalCache] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Radix-2 decimation-in-time complex FFT.

    CONTRACT:
    - Input: num_samples (power of two >= 2)
    - Input: real_in, imag_in (1D, at least num_samples values; imag_in may
      be None for all-zero imaginary input)
    - Output: (real_out, imag_out) float32, first num_samples values written
    - inverse=True divides every output sample by num_samples
    - Deterministic: same input -> same output

    ALGORITHM:
    1. Scatter the input into the outputs at bit-reversed positions
    2. Butterfly passes for block sizes 2, 4, ..., N. Each pass applies the
       same twiddle table to every block of that size.
    3. Scale by 1/N for the inverse transform

    Parameters:
        num_samples: Transform length
        inverse: False for the forward transform, True for the inverse
        real_in: Real part of the input
        imag_in: Imaginary part of the input, or None
        real_out: Optional preallocated output buffer (written in place)
        imag_out: Optional preallocated output buffer (written in place)
        twiddle_mode: 'recurrence' or 'direct'
        cache: Bit-reversal cache (default: DEFAULT_CACHE)

    Returns:
        Tuple of (real_out, imag_out)

    Raises:
        InvalidTransformSize: If num_samples is not a power of two >= 2
    """
    n = _check_transform_size(num_samples)
    num_bits = number_of_bits_needed(n)
    if cache is None:
        cache = DEFAULT_CACHE

    xr = _as_input(real_in, n, 'real_in')
    xi = None if imag_in is None else _as_input(imag_in, n, 'imag_in')
    real_out = _output_buffer(real_out, n, 'real_out')
    imag_out = _output_buffer(imag_out, n, 'imag_out')

    # Step 1: bit-reversed copy into contiguous work buffers
    rev = cache.table(num_bits)
    re = np.empty(n, dtype=np.float32)
    im = np.zeros(n, dtype=np.float32)
    re[rev] = xr
    if xi is not None:
        im[rev] = xi

    # Step 2: butterflies
    block_end = 1
    block_size = 2
    while block_size <= n:
        ar, ai = _butterfly_twiddles(block_size, inverse, twiddle_mode)

        re_blocks = re.reshape(-1, block_size)
        im_blocks = im.reshape(-1, block_size)
        re_j = re_blocks[:, :block_end]
        im_j = im_blocks[:, :block_end]
        re_k = re_blocks[:, block_end:]
        im_k = im_blocks[:, block_end:]

        tr = ar * re_k - ai * im_k
        ti = ar * im_k + ai * re_k

        re_k[...] = re_j - tr
        im_k[...] = im_j - ti
        re_j += tr
        im_j += ti

        block_end = block_size
        block_size <<= 1

    # Step 3: normalize inverse transform
    if inverse:
        denom = np.float32(n)
        re /= denom
        im /= denom

    real_out[:n] = re
    imag_out[:n] = im
    return real_out, imag_out


# =============================================================================
# REAL-INPUT FFT AND POWER SPECTRUM
# =============================================================================

def _packed_half_fft(
    num_samples: int,
    data: np.ndarray,
    cache: Optional[BitReversalCache],
    twiddle_mode: str = DEFAULT_TWIDDLE_MODE
) -> Tuple[int, np.ndarray, np.ndarray]:
    """Run a half-size FFT with even samples as real and odd as imaginary."""
    n = _check_transform_size(num_samples, minimum=4)
    x = _as_input(data, n, 'real_in')
    half = n // 2

    tmp_real = np.ascontiguousarray(x[0::2])
    tmp_imag = np.ascontiguousarray(x[1::2])
    zr, zi = fft(half, False, tmp_real, tmp_imag, twiddle_mode=twiddle_mode, cache=cache)
    return half, zr, zi


def _split_terms(
    half: int,
    zr: np.ndarray,
    zi: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Half-sum/half-difference terms pairing bin i with bin half-i."""
    i = np.arange(1, half // 2)
    i3 = half - i

    h1r = 0.5 * (zr[i] + zr[i3])
    h1i = 0.5 * (zi[i] - zi[i3])
    h2r = 0.5 * (zi[i] + zi[i3])
    h2i = -0.5 * (zr[i] - zr[i3])

    return i, i3, h1r, h1i, h2r, h2i


def real_fft(
    num_samples: int,
    real_in: np.ndarray,
    real_out: Optional[np.ndarray] = None,
    imag_out: Optional[np.ndarray] = None,
    twiddle_mode: str = DEFAULT_TWIDDLE_MODE,
    cache: Optional[BitReversalCache] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    FFT of real input using a complex FFT of half the length.

    CONTRACT:
    - Input: num_samples (power of two >= 4), real_in (1D)
    - Output: (real_out, imag_out) float32, bins 0..N/2 inclusive
      (N/2 + 1 values); remaining bins follow from conjugate symmetry
    - Bins 0 and N/2 are purely real
    - Matches the first N/2 + 1 bins of fft(N, False, real_in)

    UNPACKING:
    With Z the FFT of z[n] = x[2n] + i*x[2n+1] (length H = N/2):
        E[k] = (Z[k] + conj(Z[H-k])) / 2
        O[k] = (Z[k] - conj(Z[H-k])) / 2i
        X[k] = E[k] + exp(-i*pi*k/H) * O[k]
        X[H-k] = conj(E[k] - exp(-i*pi*k/H) * O[k])

    Parameters:
        num_samples: Transform length N
        real_in: Real input samples
        real_out: Optional output buffer (>= N/2 + 1 values)
        imag_out: Optional output buffer (>= N/2 + 1 values)
        twiddle_mode: Twiddle generation for the half-size FFT
        cache: Bit-reversal cache (default: DEFAULT_CACHE)

    Returns:
        Tuple of (real_out, imag_out)
    """
    half, zr, zi = _packed_half_fft(num_samples, real_in, cache, twiddle_mode)
    real_out = _output_buffer(real_out, half + 1, 'real_out')
    imag_out = _output_buffer(imag_out, half + 1, 'imag_out')

    wr, wi = _real_split_twiddles(half)
    i, i3, h1r, h1i, h2r, h2i = _split_terms(half, zr, zi)

    re = np.empty(half + 1, dtype=np.float32)
    im = np.empty(half + 1, dtype=np.float32)

    re[i] = h1r + wr * h2r - wi * h2i
    im[i] = h1i + wr * h2i + wi * h2r
    re[i3] = h1r - wr * h2r + wi * h2i
    im[i3] = -h1i + wr * h2i + wi * h2r

    # DC and Nyquist come from bin 0 of the packed transform
    re[0] = zr[0] + zi[0]
    im[0] = 0.0
    re[half] = zr[0] - zi[0]
    im[half] = 0.0

    # Middle bin pairs with itself
    re[half // 2] = zr[half // 2]
    im[half // 2] = -zi[half // 2]

    real_out[:half + 1] = re
    imag_out[:half + 1] = im
    return real_out, imag_out


def power_spectrum(
    num_samples: int,
    data: np.ndarray,
    out: Optional[np.ndarray] = None,
    twiddle_mode: str = DEFAULT_TWIDDLE_MODE,
    cache: Optional[BitReversalCache] = None
) -> np.ndarray:
    """
    Squared magnitude of the real FFT, without reconstructing phase.

    CONTRACT:
    - Input: num_samples (power of two >= 4), data (1D real)
    - Output: float32, N/2 + 1 values (bins 0..N/2 inclusive), all >= 0
    - out[k] == re[k]**2 + im[k]**2 for (re, im) = real_fft(N, data),
      up to float32 rounding

    Same packing and unpacking as real_fft; the squared magnitude is taken
    directly from the recombined terms.

    Parameters:
        num_samples: Transform length N
        data: Real input samples
        out: Optional output buffer (>= N/2 + 1 values)
        twiddle_mode: Twiddle generation for the half-size FFT
        cache: Bit-reversal cache (default: DEFAULT_CACHE)

    Returns:
        Power spectrum array
    """
    half, zr, zi = _packed_half_fft(num_samples, data, cache, twiddle_mode)
    out = _output_buffer(out, half + 1, 'out')

    wr, wi = _real_split_twiddles(half)
    i, i3, h1r, h1i, h2r, h2i = _split_terms(half, zr, zi)

    power = np.empty(half + 1, dtype=np.float32)

    rt = h1r + wr * h2r - wi * h2i
    it = h1i + wr * h2i + wi * h2r
    power[i] = rt * rt + it * it

    rt = h1r - wr * h2r + wi * h2i
    it = -h1i + wr * h2i + wi * h2r
    power[i3] = rt * rt + it * it

    dc = zr[0] + zi[0]
    nyquist = zr[0] - zi[0]
    # Nyquist power is only in power[half], not folded into bin 0
    power[0] = dc * dc
    power[half] = nyquist * nyquist

    rt = zr[half // 2]
    it = zi[half // 2]
    power[half // 2] = rt * rt + it * it

    out[:half + 1] = power
    return out
