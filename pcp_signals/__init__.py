"""
pcp-signals - Source Modules

This package contains the core modules for pitch/periodicity analysis of
audio sample blocks:
- kernel: Bit-reversal cache, complex FFT, real FFT and power spectrum
- windows: Window functions applied in place before transformation
- framing: Overlapping block layout
- kernel_params: Tunable parameters and validation
- analysis: Spectrum and autocorrelation curves over overlapping blocks
"""

import logging

from .kernel import (
    BitReversalCache,
    DEFAULT_CACHE,
    InvalidTransformSize,
    fast_reverse_bits,
    fft,
    power_spectrum,
    real_fft,
    reverse_bits,
)
from .windows import WindowFunction, num_window_funcs, window_func, window_func_name
from .analysis import (
    Algorithm,
    AnalysisResult,
    algorithm_name,
    analyze,
    analyze_frequencies,
    num_algorithms,
)
from .kernel_params import KernelConfig, DEFAULT_CONFIG, validate_config

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"
