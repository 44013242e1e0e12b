"""
Binning and causal smoothing of aligned spike trains.

Steps (same for every trial):

  1. Bin edges: ``window[0] + k * bin_width`` for k = 0..n, with
     ``n = floor((end - start) / bin_width)`` (a trailing partial bin is
     dropped). Counts come from the injected SpikeToolbox.
  2. Kernel: Gaussian with sigma = ``smooth_width`` seconds, sampled at
     ``1 / bin_width`` Hz, odd length ``2h + 1`` with ``h = ceil(3 sigma)`` bins.
     Taps before the centre index are zeroed and the rest renormalised to sum 1.
     With ``numpy.convolve(..., mode="same")`` the tap at index ``h + j``
     multiplies bin ``n - j``, so bin ``n`` only receives contributions from
     bins ``n - h .. n`` (present and past).
  3. Boundary rule: bins outside the window are treated as zero counts
     (zero padding), then the first ``round(2 * smooth_width / bin_width)``
     bins (half-up rounding) are set to NaN because their history is
     incomplete.
  4. Counts per bin are divided by ``bin_width`` to give spikes/second.

Missing trials stay NaN throughout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from easyplots.config import validate_bin_width, validate_smooth_width, validate_window
from easyplots.core.alignment import STEP_TOLERANCE, AlignedSpikes
from easyplots.toolbox import DEFAULT_TOOLBOX, SpikeToolbox
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)

# Kernel half-width in standard deviations.
KERNEL_HALF_WIDTH_SD = 3.0


@dataclass
class SmoothedPSTH:
    """Per-trial smoothed firing rate.

    Attributes:
        bins: (n_bins,) bin centres relative to the event.
        rates: (n_trials, n_bins) spikes/second; NaN for missing trials and trimmed bins.
        counts: (n_trials, n_bins) raw spike counts before smoothing.
        n_trimmed: Number of leading bins set to NaN.
    """
    bins: np.ndarray
    rates: np.ndarray
    counts: np.ndarray
    n_trimmed: int


def bin_edges(window: tuple[float, float], bin_width: float) -> np.ndarray:
    """Edges of the whole bins that fit in ``window``; a trailing partial bin is dropped."""
    start, end = validate_window(window)
    bin_width = validate_bin_width(bin_width)
    n_bins = int(np.floor((end - start) / bin_width + STEP_TOLERANCE))
    return start + np.arange(n_bins + 1) * bin_width


def causal_gaussian_kernel(smooth_width: float, bin_width: float) -> np.ndarray:
    """Half-Gaussian kernel over present and past bins, normalised to unit sum.

    A zero ``smooth_width`` gives the identity kernel ``[1.0]``.
    """
    smooth_width = validate_smooth_width(smooth_width)
    bin_width = validate_bin_width(bin_width)
    sigma = smooth_width / bin_width
    if sigma == 0:
        return np.ones(1)
    half = int(np.ceil(KERNEL_HALF_WIDTH_SD * sigma))
    lags = np.arange(-half, half + 1)
    kernel = np.exp(-0.5 * (lags / sigma) ** 2)
    kernel[:half] = 0.0
    return kernel / kernel.sum()


def n_trim_bins(smooth_width: float, bin_width: float) -> int:
    """Leading bins whose smoothed value is undefined: round(2 * smooth_width / bin_width), half up."""
    return int(np.floor(2.0 * smooth_width / bin_width + 0.5))


def smooth_counts(counts: np.ndarray, smooth_width: float, bin_width: float) -> tuple[np.ndarray, int]:
    """Causally smooth a (n_trials, n_bins) count matrix and convert to rate.

    Returns:
        (rates, n_trimmed)
    """
    kernel = causal_gaussian_kernel(smooth_width, bin_width)
    counts = np.atleast_2d(np.asarray(counts, dtype=float))
    n_bins = counts.shape[1]
    smoothed = np.empty_like(counts)
    for i, row in enumerate(counts):
        if np.isnan(row).any():
            smoothed[i, :] = np.nan
            continue
        full = np.convolve(row, kernel, mode="full")
        # centred slice of the full convolution ("same" length), zero padded at both ends
        offset = (len(kernel) - 1) // 2
        smoothed[i, :] = full[offset:offset + n_bins]
    rates = smoothed / bin_width

    n_trimmed = min(n_trim_bins(smooth_width, bin_width), n_bins)
    rates[:, :n_trimmed] = np.nan
    return rates, n_trimmed


def bin_and_smooth(
    aligned: AlignedSpikes,
    bin_width: float,
    smooth_width: float,
    *,
    window: Optional[tuple[float, float]] = None,
    toolbox: SpikeToolbox = DEFAULT_TOOLBOX,
) -> SmoothedPSTH:
    """Bin aligned spike trains and smooth them with a causal half-Gaussian.

    Args:
        aligned: Output of align_spikes.
        bin_width: Bin width in seconds (> 0).
        smooth_width: Gaussian sigma in seconds (>= 0).
        window: Binning window; defaults to the alignment window.
        toolbox: Spike histogram provider.

    Returns:
        SmoothedPSTH with bin centres, smoothed rates and raw counts.

    Raises:
        InvalidBinWidth: bin_width <= 0.
        InvalidSmoothWidth: smooth_width < 0.
    """
    bin_width = validate_bin_width(bin_width)
    smooth_width = validate_smooth_width(smooth_width)
    edges = bin_edges(window or aligned.window, bin_width)
    centres = edges[:-1] + bin_width / 2

    counts = toolbox.bin_counts(aligned.trials, edges)
    rates, n_trimmed = smooth_counts(counts, smooth_width, bin_width)
    logger.debug(
        f"bin_and_smooth: {counts.shape[0]} trials x {counts.shape[1]} bins, "
        f"bin_width={bin_width}, smooth_width={smooth_width}, trimmed={n_trimmed}"
    )
    return SmoothedPSTH(bins=centres, rates=rates, counts=counts, n_trimmed=n_trimmed)
