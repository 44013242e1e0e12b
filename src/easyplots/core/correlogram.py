"""Spike-train autocorrelogram."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from easyplots.core.alignment import check_spike_times
from easyplots.toolbox import DEFAULT_TOOLBOX, SpikeToolbox

# Lags start just above zero so a spike is never paired with itself.
ACG_FIRST_LAG = 0.0001
ACG_MAX_LAG = 0.05
ACG_BIN_WIDTH = 0.0005
REFRACTORY_PERIOD = 0.002


@dataclass
class Autocorrelogram:
    """Rate of spikes at positive lags after each spike.

    Attributes:
        edges: (n_bins + 1,) lag bin edges in seconds.
        rate: (n_bins,) counts per bin divided by the bin width.
    """
    edges: np.ndarray
    rate: np.ndarray


def autocorrelogram(
    spike_times: Sequence[float],
    *,
    first_lag: float = ACG_FIRST_LAG,
    max_lag: float = ACG_MAX_LAG,
    bin_width: float = ACG_BIN_WIDTH,
    toolbox: SpikeToolbox = DEFAULT_TOOLBOX,
) -> Autocorrelogram:
    st = check_spike_times(spike_times)
    n_bins = int(np.floor((max_lag - first_lag) / bin_width + 1e-9))
    edges = first_lag + np.arange(n_bins + 1) * bin_width
    counts = toolbox.cross_histogram(st, st, edges)
    return Autocorrelogram(edges=edges, rate=counts / bin_width)
