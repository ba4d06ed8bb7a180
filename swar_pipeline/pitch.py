"""
Pitch estimation module: single-f0 YIN estimator for monophonic frames.

Provides:
- PitchEstimate: Frequency plus validity flag
- estimate_pitch: Main entry point (RMS gate -> YIN -> range check)
- compute_rms, difference_function, cumulative_mean_normalized_difference:
  the individual stages, exposed for testing and diagnostics
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union
import math

import numpy as np
from scipy import signal


DEFAULT_SILENCE_RMS = 0.01
DEFAULT_YIN_THRESHOLD = 0.15
DEFAULT_MIN_FREQ = 200.0
DEFAULT_MAX_FREQ = 2200.0
SCAN_START_LAG = 2
# relative allowance at the range edges for the bias of parabolic refinement
RANGE_TOLERANCE = 0.0025


@dataclass(frozen=True)
class PitchEstimate:
    """Result of one pitch estimation."""

    frequency_hz: float = 0.0
    valid: bool = False
    # normalized difference at the chosen lag (lower = more periodic)
    aperiodicity: float = 1.0

    @classmethod
    def no_pitch(cls) -> "PitchEstimate":
        return cls()


# =============================================================================
# YIN STAGES
# =============================================================================

def compute_rms(x: np.ndarray) -> float:
    """Root-mean-square energy; 0 for an empty buffer."""
    if len(x) == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(x))))


def difference_function(x: np.ndarray, max_lag: int) -> np.ndarray:
    """
    YIN difference d(tau) for tau = 0..max_lag.

    All lags are compared over the same window of W = len(x) - max_lag
    samples, expanded as d(tau) = e(0) + e(tau) - 2 r(tau) where e is the
    window energy starting at tau and r the cross term.
    """
    n = len(x)
    window = n - max_lag
    if window <= 0 or max_lag < 1:
        return np.zeros(0)

    sq_cumsum = np.concatenate(([0.0], np.cumsum(np.square(x))))
    energy = sq_cumsum[window:window + max_lag + 1] - sq_cumsum[:max_lag + 1]
    cross = signal.correlate(x[:window + max_lag], x[:window], mode="valid")

    diff = energy[0] + energy - 2.0 * cross
    # rounding in the expanded form can go slightly negative
    return np.maximum(diff, 0.0)


def cumulative_mean_normalized_difference(diff: np.ndarray) -> np.ndarray:
    """d'(tau) = d(tau) * tau / sum_{k=1..tau} d(k), with d'(0) = 1."""
    cmnd = np.ones_like(diff)
    if len(diff) < 2:
        return cmnd
    running = np.cumsum(diff[1:])
    taus = np.arange(1, len(diff), dtype=float)
    np.divide(diff[1:] * taus, running, out=cmnd[1:], where=running > 0)
    return cmnd


def _first_qualifying_dip(cmnd: np.ndarray, lo: int, hi: int, threshold: float) -> Optional[int]:
    """Lowest lag in [lo, hi] below threshold that is a strict local minimum."""
    taus = np.arange(lo, hi + 1)
    vals = cmnd[taus]
    mask = (vals < threshold) & (vals < cmnd[taus - 1]) & (vals < cmnd[taus + 1])
    hits = np.flatnonzero(mask)
    if len(hits) == 0:
        return None
    return int(taus[hits[0]])


def _parabolic_offset(s0: float, s1: float, s2: float) -> float:
    denom = 2.0 * (2.0 * s1 - s0 - s2)
    if denom == 0 or not math.isfinite(denom):
        return 0.0
    # a true minimum never moves by more than one lag
    return float(np.clip((s2 - s0) / denom, -1.0, 1.0))


# =============================================================================
# ENTRY POINT
# =============================================================================

def estimate_pitch(
    samples: Union[Sequence[float], np.ndarray],
    sample_rate: float,
    silence_rms: float = DEFAULT_SILENCE_RMS,
    threshold: float = DEFAULT_YIN_THRESHOLD,
    min_freq: float = DEFAULT_MIN_FREQ,
    max_freq: float = DEFAULT_MAX_FREQ,
) -> PitchEstimate:
    """
    Estimate the fundamental frequency of a monophonic frame.

    The lag search takes the *first* dip of the normalized difference that
    falls below the threshold, which locks onto the fundamental period instead
    of a sub-harmonic. The scan starts at the smallest usable lag (2) rather
    than at sample_rate / max_freq, so a tone above the accepted range is
    found at its own period and rejected by the range check instead of being
    reported one octave down. If no dip qualifies, the global minimum is used
    provided it is a true local minimum. The chosen lag is refined by
    parabolic interpolation.

    Args:
        samples: Time-domain samples, roughly in [-1, 1]
        sample_rate: Sample rate in Hz
        silence_rms: Frames quieter than this are reported as no pitch
        threshold: Absolute threshold for the dip search
        min_freq, max_freq: Accepted frequency range (Hz)

    Returns:
        PitchEstimate; valid=False for silence, degenerate input, or
        out-of-range periodicity. Never raises on numeric input.
    """
    x = np.asarray(samples, dtype=float).ravel()
    n = len(x)

    if n == 0 or not math.isfinite(sample_rate) or sample_rate <= 0:
        return PitchEstimate.no_pitch()
    if not np.all(np.isfinite(x)):
        return PitchEstimate.no_pitch()

    # 1. silence gate
    if compute_rms(x) < silence_rms:
        return PitchEstimate.no_pitch()

    # 2. lag range; short buffers clamp the upper bound to n/2
    min_lag = max(SCAN_START_LAG, int(math.floor(sample_rate / max_freq)))
    max_lag = min(int(math.ceil(sample_rate / min_freq)), n // 2 - 1)
    if max_lag < min_lag:
        return PitchEstimate.no_pitch()

    # one extra lag so the upper end of the range can be checked as a minimum
    diff = difference_function(x, max_lag + 1)
    if len(diff) == 0:
        return PitchEstimate.no_pitch()
    # constant (DC) frames have no periodicity; diff is rounding noise only
    if np.max(diff) <= 1e-9 * float(np.sum(np.square(x))):
        return PitchEstimate.no_pitch()
    cmnd = cumulative_mean_normalized_difference(diff)

    # 3. first qualifying dip
    tau = _first_qualifying_dip(cmnd, SCAN_START_LAG, max_lag, threshold)
    if tau is None:
        # 4. global minimum; a slope running off the end of the range is no period
        tau = SCAN_START_LAG + int(np.argmin(cmnd[SCAN_START_LAG:max_lag + 1]))
        if not (cmnd[tau] < cmnd[tau - 1] and cmnd[tau] < cmnd[tau + 1]):
            return PitchEstimate.no_pitch()

    # 5. sub-sample refinement
    refined = tau + _parabolic_offset(cmnd[tau - 1], cmnd[tau], cmnd[tau + 1])
    if refined <= 0:
        return PitchEstimate.no_pitch()

    # 6. range check
    freq = float(sample_rate / refined)
    if not min_freq * (1.0 - RANGE_TOLERANCE) <= freq <= max_freq * (1.0 + RANGE_TOLERANCE):
        return PitchEstimate.no_pitch()

    return PitchEstimate(frequency_hz=freq, valid=True, aperiodicity=float(cmnd[tau]))
