"""
Windowed alignment of signals to event times.

Two signal kinds are supported:

  1. Sparse (spike times): each event yields the spike times that fall inside
     ``[event + start, event + end]`` (inclusive), re-expressed relative to the
     event. Trials whose event time is missing (NaN) are returned as ``None``
     and flagged in ``AlignedSpikes.missing``; they are never dropped.
  2. Dense (sampled values): each event yields the signal linearly interpolated
     at ``event + bins``, where ``bins`` runs from start to end in steps of the
     median sampling interval. Query times outside the sampled range and
     missing events give NaN.

Pure numpy; nothing here draws.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from easyplots.config import validate_window
from easyplots.errors import EmptySignal, InvalidSignal
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)

# Tolerance (in units of one step) when counting how many steps fit in a window.
STEP_TOLERANCE = 1e-9


@dataclass
class AlignedSpikes:
    """Spike times of every trial relative to its event.

    Attributes:
        trials: One array per event; ``None`` where the event time is missing.
        missing: Boolean mask, True where the event time is missing.
        window: The (start, end) window used.
    """
    trials: list[Optional[np.ndarray]]
    missing: np.ndarray
    window: tuple[float, float]

    def __len__(self) -> int:
        return len(self.trials)


@dataclass
class AlignedSignal:
    """Dense signal resampled around every event.

    Attributes:
        values: (n_trials, n_bins) interpolated values; NaN outside support.
        bins: (n_bins,) event-relative query times.
        missing: Boolean mask, True where the event time is missing.
    """
    values: np.ndarray
    bins: np.ndarray
    missing: np.ndarray


def as_event_times(events: Sequence[Optional[float]]) -> np.ndarray:
    """Convert event times to a float array; ``None`` becomes NaN."""
    return np.array([np.nan if e is None else float(e) for e in events], dtype=float)


def check_spike_times(spike_times: Sequence[float]) -> np.ndarray:
    """Validate a sparse signal and return it as a 1-D float array."""
    st = np.asarray(spike_times, dtype=float)
    if st.ndim != 1:
        raise InvalidSignal(f"spike_times must be 1-D, got shape {st.shape}")
    if st.size == 0:
        raise EmptySignal("spike_times has zero samples")
    if not np.all(np.isfinite(st)):
        raise InvalidSignal("spike_times contains non-finite values")
    if np.any(np.diff(st) < 0):
        raise InvalidSignal("spike_times must be sorted in increasing order")
    return st


def check_dense_signal(values: Sequence[float], timestamps: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
    """Validate a dense signal and return (values, timestamps) as 1-D float arrays."""
    x = np.asarray(values, dtype=float)
    t = np.asarray(timestamps, dtype=float)
    if x.ndim != 1 or t.ndim != 1:
        raise InvalidSignal(f"values and timestamps must be 1-D, got shapes {x.shape} and {t.shape}")
    if t.size == 0:
        raise EmptySignal("timestamps has zero samples")
    if x.size != t.size:
        raise InvalidSignal(f"values ({x.size}) and timestamps ({t.size}) differ in length")
    if not np.all(np.isfinite(t)):
        raise InvalidSignal("timestamps contains non-finite values")
    if t.size > 1 and np.any(np.diff(t) <= 0):
        raise InvalidSignal("timestamps must be strictly increasing")
    return x, t


def sampling_step(timestamps: np.ndarray) -> float:
    """Median sampling interval of a dense signal."""
    if timestamps.size < 2:
        raise InvalidSignal("at least two timestamps are needed to derive a sampling interval")
    return float(np.median(np.diff(timestamps)))


def window_bins(window: tuple[float, float], step: float) -> np.ndarray:
    """Evenly spaced times from window start to end (inclusive when end is a whole number of steps)."""
    start, end = window
    n_steps = int(np.floor((end - start) / step + STEP_TOLERANCE))
    return start + np.arange(n_steps + 1) * step


def align_spikes(
    spike_times: Sequence[float],
    events: Sequence[Optional[float]],
    window: tuple[float, float],
) -> AlignedSpikes:
    """Extract event-relative spike times within ``window`` for every event.

    Args:
        spike_times: Sorted spike times (seconds).
        events: One time per trial; NaN/None marks a missing event.
        window: (start, end) relative to each event, start < end.

    Returns:
        AlignedSpikes with one entry per event, in event order.

    Raises:
        InvalidWindow: start >= end.
        EmptySignal: no spikes.
        InvalidSignal: spikes not 1-D, not finite or not sorted.
    """
    window = validate_window(window)
    st = check_spike_times(spike_times)
    ev = as_event_times(events)
    start, end = window

    missing = ~np.isfinite(ev)
    lo = np.searchsorted(st, np.where(missing, 0.0, ev + start), side="left")
    hi = np.searchsorted(st, np.where(missing, 0.0, ev + end), side="right")

    trials: list[Optional[np.ndarray]] = []
    for i, e in enumerate(ev):
        if missing[i]:
            trials.append(None)
            continue
        rel = st[lo[i]:hi[i]] - e
        # absolute-time slicing can disagree with relative bounds by one ulp
        trials.append(rel[(rel >= start) & (rel <= end)])

    if missing.any():
        logger.warning(f"{int(missing.sum())} of {ev.size} event times are missing; those trials are undefined")
    logger.debug(f"align_spikes: {ev.size} events, window={window}")
    return AlignedSpikes(trials=trials, missing=missing, window=window)


def align_signal(
    values: Sequence[float],
    timestamps: Sequence[float],
    events: Sequence[Optional[float]],
    window: tuple[float, float],
    *,
    step: Optional[float] = None,
) -> AlignedSignal:
    """Interpolate a dense signal around every event.

    Args:
        values: Signal samples.
        timestamps: Strictly increasing sample times.
        events: One time per trial; NaN/None marks a missing event.
        window: (start, end) relative to each event, start < end.
        step: Query spacing; defaults to the median sampling interval.

    Returns:
        AlignedSignal with a (n_events, n_bins) value matrix.
    """
    window = validate_window(window)
    x, t = check_dense_signal(values, timestamps)
    ev = as_event_times(events)
    if step is None:
        step = sampling_step(t)
    bins = window_bins(window, step)

    missing = ~np.isfinite(ev)
    query = ev[:, None] + bins[None, :]
    out = np.interp(np.where(missing[:, None], t[0], query), t, x, left=np.nan, right=np.nan)
    out[missing, :] = np.nan
    return AlignedSignal(values=out, bins=bins, missing=missing)


def baseline_subtract(values: np.ndarray, bins: np.ndarray, baseline: tuple[float, float]) -> np.ndarray:
    """Subtract, per trial, the mean over bins inside the inclusive ``baseline`` range."""
    baseline = validate_window(baseline, name="baseline")
    idx = (baseline[0] <= bins) & (bins <= baseline[1])
    if not idx.any():
        raise InvalidSignal(f"baseline window {baseline} contains no samples")
    return values - values[:, idx].mean(axis=1, keepdims=True)
