"""
Time-warped alignment of a dense signal between sequential events.

Each trial has k boundary events (e.g. stimulus, go cue, response). Together
with a fixed pre-pad before the first and a post-pad after the last they define
k + 1 epochs. Every epoch is resampled to the same number of points in every
trial, so trials of different durations can be averaged point by point.

Sample allocation: the mean duration of each epoch (over trials with defined
boundaries) is apportioned to the total budget by largest remainder, so the
per-epoch counts always sum to exactly ``n_samples``.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from easyplots.core.alignment import as_event_times, check_dense_signal
from easyplots.errors import MismatchedEpochLength, NonMonotonicEpochs
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_N_SAMPLES = 400


@dataclass
class WarpResult:
    """Warped trials and their epoch layout.

    Attributes:
        values: (n_trials, n_samples) baseline-corrected warped signal.
        samples_per_epoch: (k + 1,) samples allotted to each epoch.
        boundaries: (k,) sample index where each boundary event sits (cumulative epoch sizes).
        epoch_times: (n_trials, k + 2) real epoch edge times per trial.
    """
    values: np.ndarray
    samples_per_epoch: np.ndarray
    boundaries: np.ndarray
    epoch_times: np.ndarray

    @property
    def n_samples(self) -> int:
        return int(self.samples_per_epoch.sum())


def epoch_edges(epoch_events: Sequence[Sequence[float]], pre_pad: float, post_pad: float) -> np.ndarray:
    """Stack boundary events into a (n_trials, k + 2) edge matrix including the pads.

    A zero pad gives a zero-length outer epoch, which is allotted no samples.

    Raises:
        MismatchedEpochLength: event sets differ in trial count.
        NonMonotonicEpochs: a fully defined trial has non-increasing boundary times.
    """
    sets = [as_event_times(ev) for ev in epoch_events]
    if not sets:
        raise MismatchedEpochLength("at least one epoch boundary event set is required")
    n_trials = sets[0].size
    lengths = [s.size for s in sets]
    if any(n != n_trials for n in lengths):
        raise MismatchedEpochLength(f"epoch event sets differ in length: {lengths}")

    if pre_pad < 0 or post_pad < 0:
        raise NonMonotonicEpochs(f"pre/post pads must be non-negative, got {pre_pad}, {post_pad}")
    bounds = np.column_stack(sets)
    edges = np.column_stack([bounds[:, 0] - pre_pad, bounds, bounds[:, -1] + post_pad])

    defined = np.all(np.isfinite(bounds), axis=1)
    bad = defined & np.any(np.diff(bounds, axis=1) <= 0, axis=1)
    if bad.any():
        trial = int(np.flatnonzero(bad)[0])
        raise NonMonotonicEpochs(f"epoch boundary times are not strictly increasing for trial {trial}: {bounds[trial]}")
    return edges


def allocate_samples(durations: np.ndarray, n_samples: int) -> np.ndarray:
    """Split ``n_samples`` across epochs in proportion to ``durations`` (largest remainder)."""
    durations = np.asarray(durations, dtype=float)
    share = durations / durations.sum() * n_samples
    counts = np.floor(share).astype(int)
    remainder = n_samples - counts.sum()
    if remainder > 0:
        order = np.argsort(-(share - counts), kind="stable")
        counts[order[:remainder]] += 1
    return counts


def warp(
    values: Sequence[float],
    timestamps: Sequence[float],
    epoch_events: Sequence[Sequence[float]],
    pre_pad: float,
    post_pad: float,
    *,
    n_samples: int = DEFAULT_N_SAMPLES,
) -> WarpResult:
    """Resample a dense signal onto a common epoch-relative axis.

    Args:
        values: Signal samples.
        timestamps: Strictly increasing sample times.
        epoch_events: k event-time sequences (one per boundary), each with one entry per trial.
        pre_pad: Duration of the epoch before the first boundary.
        post_pad: Duration of the epoch after the last boundary.
        n_samples: Total samples per warped trial.

    Returns:
        WarpResult; every trial has exactly ``n_samples`` values, baseline-corrected
        by the NaN-ignoring mean of its pre-epoch segment (no correction when
        ``pre_pad`` is 0). Trials with a missing boundary are NaN.
    """
    x, t = check_dense_signal(values, timestamps)
    edges = epoch_edges(epoch_events, pre_pad, post_pad)
    n_trials, n_edges = edges.shape

    defined = np.all(np.isfinite(edges), axis=1)
    if not defined.any():
        raise NonMonotonicEpochs("no trial has a complete set of epoch boundary times")
    durations = np.diff(edges[defined], axis=1).mean(axis=0)
    if durations.sum() <= 0:
        raise NonMonotonicEpochs("epochs have zero total duration")
    per_epoch = allocate_samples(durations, int(n_samples))

    warped = np.full((n_trials, int(n_samples)), np.nan)
    for tr in np.flatnonzero(defined):
        query = np.concatenate([
            np.linspace(edges[tr, e], edges[tr, e + 1], per_epoch[e]) for e in range(n_edges - 1)
        ])
        warped[tr, :] = np.interp(query, t, x, left=np.nan, right=np.nan)

    if per_epoch[0] > 0:
        # all-NaN pre-epochs (e.g. before the signal starts) leave the trial undefined
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", category=RuntimeWarning)
            base = np.nanmean(warped[:, :per_epoch[0]], axis=1, keepdims=True)
        warped = warped - base

    logger.debug(f"warp: {n_trials} trials, samples per epoch={per_epoch.tolist()}")
    return WarpResult(
        values=warped,
        samples_per_epoch=per_epoch,
        boundaries=np.cumsum(per_epoch)[:-1],
        epoch_times=edges,
    )
