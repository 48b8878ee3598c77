"""
Kernel Parameters Module - All Tunable Constants

These parameters control transform and analysis behavior.

USAGE:
    from pcp_signals.kernel_params import KernelConfig, DEFAULT_CONFIG

    # Use default config
    config = DEFAULT_CONFIG

    # Create custom config
    custom = KernelConfig(
        fft=FFTParams(twiddle_mode='direct'),
        analysis=AnalysisParams(min_power=1e-12)
    )
"""

from dataclasses import dataclass, field
from typing import Dict

from .kernel import TWIDDLE_MODES, DEFAULT_TWIDDLE_MODE, is_power_of_two


@dataclass(frozen=True)
class FFTParams:
    """
    Transform parameters.

    Attributes:
        twiddle_mode: 'recurrence' (default) generates twiddle factors with a
            trigonometric recurrence, 'direct' evaluates cos/sin per factor
    """
    twiddle_mode: str = DEFAULT_TWIDDLE_MODE


@dataclass(frozen=True)
class AnalysisParams:
    """
    Pitch/frequency analysis parameters.

    Attributes:
        min_window_size: Smallest accepted analysis window (default 32)
        max_window_size: Largest accepted analysis window (default 65536)
        hop_divisor: hop = window_size // hop_divisor (default 2 = 50% overlap)
        min_power: Power floor before dB conversion (default 1e-20 = -200 dB)
    """
    min_window_size: int = 32
    max_window_size: int = 65536
    hop_divisor: int = 2
    min_power: float = 1e-20


@dataclass
class KernelConfig:
    """
    Complete kernel configuration aggregating all parameter groups.

    Example usage:
        config = KernelConfig()  # All defaults
        config = KernelConfig(fft=FFTParams(twiddle_mode='direct'))
    """
    fft: FFTParams = field(default_factory=FFTParams)
    analysis: AnalysisParams = field(default_factory=AnalysisParams)

    def to_dict(self) -> Dict:
        """
        Export all parameters as a flat dictionary for JSON serialization.

        Returns:
            Dictionary with all parameter values
        """
        return {
            # FFT params
            'twiddle_mode': self.fft.twiddle_mode,

            # Analysis params
            'min_window_size': self.analysis.min_window_size,
            'max_window_size': self.analysis.max_window_size,
            'hop_divisor': self.analysis.hop_divisor,
            'min_power': self.analysis.min_power,
        }


# Default configuration instance
DEFAULT_CONFIG = KernelConfig()


def validate_config(config: KernelConfig) -> bool:
    """
    Validate configuration parameters for consistency.

    Parameters:
        config: KernelConfig instance to validate

    Returns:
        True if config is valid

    Raises:
        ValueError: If configuration is invalid
    """
    if config.fft.twiddle_mode not in TWIDDLE_MODES:
        raise ValueError(
            f"twiddle_mode must be one of {TWIDDLE_MODES}, got {config.fft.twiddle_mode!r}"
        )

    analysis = config.analysis

    # Window bounds must be transformable sizes
    if not is_power_of_two(analysis.min_window_size):
        raise ValueError(f"min_window_size must be a power of two, got {analysis.min_window_size}")
    if not is_power_of_two(analysis.max_window_size):
        raise ValueError(f"max_window_size must be a power of two, got {analysis.max_window_size}")
    if analysis.min_window_size < 4:
        raise ValueError("min_window_size must be >= 4")
    if analysis.min_window_size > analysis.max_window_size:
        raise ValueError("min_window_size must not exceed max_window_size")

    # Hop must split every accepted window evenly
    if not (analysis.hop_divisor == 1 or is_power_of_two(analysis.hop_divisor)):
        raise ValueError(f"hop_divisor must be a power of two, got {analysis.hop_divisor}")
    if analysis.hop_divisor > analysis.min_window_size:
        raise ValueError("hop_divisor must not exceed min_window_size")

    if not analysis.min_power > 0.0:
        raise ValueError("min_power must be positive")

    return True


# Validate default config on import
validate_config(DEFAULT_CONFIG)
