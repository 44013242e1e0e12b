"""
Depth-resolved population activity.

  1. Template positions: each template is unwhitened (``template @ winv``); its
     per-channel amplitude is the peak-to-peak value over time; channels under
     30% of the template's largest amplitude are ignored; the template depth is
     the amplitude-weighted mean of the channel y-coordinates.
  2. Spike depth/amplitude: a spike inherits its template's depth; its
     amplitude is the template amplitude times the spike's scaling amplitude.
  3. PSTH by depth: depth edges run from the shallowest to the deepest spike in
     ``depth_bin_size`` steps; spikes in ``(edge_b, edge_b+1]`` (the first bin
     also includes its lower edge) are aligned to the events, binned, averaged
     over trials and converted to rate, then z-scored against the baseline
     window of the same depth bin.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from easyplots.core.alignment import align_spikes, as_event_times, check_spike_times
from easyplots.core.smoothing import bin_edges
from easyplots.ephys import EphysData
from easyplots.errors import InvalidSignal
from easyplots.toolbox import DEFAULT_TOOLBOX, SpikeToolbox
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)

CHANNEL_AMP_THRESHOLD = 0.3


@dataclass
class TemplatePositions:
    """Per-spike and per-template position/amplitude summary."""
    spike_amps: np.ndarray
    spike_depths: np.ndarray
    template_depths: np.ndarray
    template_amps: np.ndarray


@dataclass
class DepthPSTH:
    """Baseline-normalised PSTH for each depth bin.

    Attributes:
        time_bins: (n_time,) bin centres relative to the event.
        depth_edges: (n_depth + 1,) depth bin edges.
        zscores: (n_depth, n_time) baseline z-scored rate; NaN where the baseline is flat.
        baseline_mean: (n_depth,) baseline rate mean.
        baseline_std: (n_depth,) baseline rate standard deviation.
    """
    time_bins: np.ndarray
    depth_edges: np.ndarray
    zscores: np.ndarray
    baseline_mean: np.ndarray
    baseline_std: np.ndarray


def template_positions(ephys: EphysData) -> TemplatePositions:
    unwhitened = np.einsum("tsc,cd->tsd", ephys.templates, ephys.winv)
    chan_amps = unwhitened.max(axis=1) - unwhitened.min(axis=1)
    template_amps = chan_amps.max(axis=1)
    chan_amps = np.where(chan_amps < template_amps[:, None] * CHANNEL_AMP_THRESHOLD, 0.0, chan_amps)
    with np.errstate(invalid="ignore", divide="ignore"):
        template_depths = (chan_amps @ ephys.ycoords) / chan_amps.sum(axis=1)

    idx = np.asarray(ephys.spike_templates, dtype=int)
    return TemplatePositions(
        spike_amps=template_amps[idx] * ephys.temp_scaling_amps,
        spike_depths=template_depths[idx],
        template_depths=template_depths,
        template_amps=template_amps,
    )


def depth_bin_edges(spike_depths: np.ndarray, depth_bin_size: float) -> np.ndarray:
    depths = spike_depths[np.isfinite(spike_depths)]
    if depths.size == 0:
        raise InvalidSignal("no spike has a defined depth")
    lo, hi = depths.min(), depths.max()
    n = max(int(np.floor((hi - lo) / depth_bin_size + 1e-9)), 1)
    return lo + np.arange(n + 1) * depth_bin_size


def psth_by_depth(
    spike_times: Sequence[float],
    spike_depths: Sequence[float],
    events: Sequence[Optional[float]],
    window: tuple[float, float],
    depth_bin_size: float,
    bin_width: float,
    baseline: tuple[float, float],
    *,
    toolbox: SpikeToolbox = DEFAULT_TOOLBOX,
) -> DepthPSTH:
    """Z-scored PSTH per depth bin (see module docstring)."""
    st = check_spike_times(spike_times)
    depths = np.asarray(spike_depths, dtype=float)
    if depths.size != st.size:
        raise InvalidSignal(f"spike_depths ({depths.size}) and spike_times ({st.size}) differ in length")
    ev = as_event_times(events)
    ev = ev[np.isfinite(ev)]

    t_edges = bin_edges(window, bin_width)
    time_bins = t_edges[:-1] + bin_width / 2
    d_edges = depth_bin_edges(depths, depth_bin_size)
    in_base = (baseline[0] <= time_bins) & (time_bins <= baseline[1])

    n_depth = len(d_edges) - 1
    rates = np.zeros((n_depth, len(time_bins)))
    for b in range(n_depth):
        sel = (depths > d_edges[b]) & (depths <= d_edges[b + 1])
        if b == 0:
            sel |= depths == d_edges[0]
        if not sel.any() or ev.size == 0:
            continue
        aligned = align_spikes(st[sel], ev, window)
        counts = toolbox.bin_counts(aligned.trials, t_edges)
        rates[b] = counts.mean(axis=0) / bin_width

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        mu = rates[:, in_base].mean(axis=1)
        sd = rates[:, in_base].std(axis=1)
    with np.errstate(invalid="ignore", divide="ignore"):
        z = np.where(sd[:, None] > 0, (rates - mu[:, None]) / sd[:, None], np.nan)

    logger.debug(f"psth_by_depth: {n_depth} depth bins x {len(time_bins)} time bins, {ev.size} events")
    return DepthPSTH(time_bins=time_bins, depth_edges=d_edges, zscores=z, baseline_mean=mu, baseline_std=sd)
