"""Spike-train analysis primitives used by the plotting core.

The core never calls these functions directly from module scope; it receives a
``SpikeToolbox`` instance (``toolbox=`` keyword on every spike-based operation)
and defaults to ``NumpySpikeToolbox``. Swap in another implementation to route
binning through a different analysis package.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

import numpy as np


class SpikeToolbox(Protocol):
    """Histogram primitives over spike-time arrays."""

    def bin_counts(self, aligned_trials: Sequence[Optional[np.ndarray]], edges: np.ndarray) -> np.ndarray:
        """Return a (n_trials, len(edges) - 1) count matrix. Missing trials (None) are NaN rows."""
        ...

    def cross_histogram(self, a: np.ndarray, b: np.ndarray, edges: np.ndarray) -> np.ndarray:
        """Count pairs with ``edges[k] <= b - a < edges[k + 1]``; returns len(edges) - 1 counts."""
        ...


class NumpySpikeToolbox:
    """Default SpikeToolbox built on numpy histogramming and searchsorted."""

    def bin_counts(self, aligned_trials: Sequence[Optional[np.ndarray]], edges: np.ndarray) -> np.ndarray:
        edges = np.asarray(edges, dtype=float)
        counts = np.zeros((len(aligned_trials), len(edges) - 1), dtype=float)
        for i, trial in enumerate(aligned_trials):
            if trial is None:
                counts[i, :] = np.nan
                continue
            counts[i, :], _ = np.histogram(trial, bins=edges)
        return counts

    def cross_histogram(self, a: np.ndarray, b: np.ndarray, edges: np.ndarray) -> np.ndarray:
        a = np.asarray(a, dtype=float)
        b = np.sort(np.asarray(b, dtype=float))
        edges = np.asarray(edges, dtype=float)
        if a.size == 0 or b.size == 0:
            return np.zeros(len(edges) - 1, dtype=float)
        # positions of every (a + edge) in b; per-bin counts are differences between consecutive edges
        pos = np.searchsorted(b, a[:, None] + edges[None, :], side="left")
        return np.diff(pos, axis=1).sum(axis=0).astype(float)


DEFAULT_TOOLBOX: SpikeToolbox = NumpySpikeToolbox()
