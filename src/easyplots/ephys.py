"""Sorted electrophysiology data consumed by the depth and batch plots.

``EphysData`` mirrors the fields a Kilosort output directory provides. The
plotting code only reads it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np

from easyplots.errors import InvalidSignal
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SAMPLE_RATE = 30000.0


@dataclass(frozen=True)
class EphysData:
    """Spike sorting output.

    Attributes:
        spike_times: (n_spikes,) seconds.
        spike_clusters: (n_spikes,) cluster id of each spike.
        spike_templates: (n_spikes,) template id (0-based) of each spike.
        templates: (n_templates, n_samples, n_channels) whitened templates.
        winv: (n_channels, n_channels) inverse whitening matrix.
        ycoords: (n_channels,) channel depth along the probe (0 = tip).
        temp_scaling_amps: (n_spikes,) per-spike template scaling amplitude.
    """
    spike_times: np.ndarray
    spike_clusters: np.ndarray
    spike_templates: np.ndarray
    templates: np.ndarray
    winv: np.ndarray
    ycoords: np.ndarray
    temp_scaling_amps: np.ndarray

    def __post_init__(self) -> None:
        n = len(self.spike_times)
        for name in ("spike_clusters", "spike_templates", "temp_scaling_amps"):
            if len(getattr(self, name)) != n:
                raise InvalidSignal(f"{name} has {len(getattr(self, name))} entries but there are {n} spikes")
        if self.templates.ndim != 3:
            raise InvalidSignal(f"templates must be (n_templates, n_samples, n_channels), got {self.templates.shape}")
        if self.templates.shape[2] != len(self.ycoords):
            raise InvalidSignal(
                f"templates have {self.templates.shape[2]} channels but ycoords has {len(self.ycoords)}"
            )

    @property
    def cluster_ids(self) -> np.ndarray:
        """Sorted unique cluster ids."""
        return np.unique(self.spike_clusters)

    def cluster_spike_times(self, cluster_id: int) -> np.ndarray:
        return self.spike_times[self.spike_clusters == cluster_id]

    def cluster_template(self, cluster_id: int) -> Optional[np.ndarray]:
        """(n_channels, n_samples) template of a cluster, or None when the id has no template."""
        if 0 <= cluster_id < self.templates.shape[0]:
            return self.templates[cluster_id].T
        return None

    @classmethod
    def from_kilosort_dir(
        cls,
        path: Union[str, Path],
        sample_rate: float = DEFAULT_SAMPLE_RATE,
    ) -> "EphysData":
        """Load a Kilosort output directory (spike times converted from samples to seconds)."""
        d = Path(path)

        def _load(name: str) -> np.ndarray:
            return np.load(d / name)

        spike_templates = _load("spike_templates.npy").ravel()
        clusters_file = d / "spike_clusters.npy"
        spike_clusters = np.load(clusters_file).ravel() if clusters_file.exists() else spike_templates.copy()
        data = cls(
            spike_times=_load("spike_times.npy").ravel().astype(float) / sample_rate,
            spike_clusters=spike_clusters,
            spike_templates=spike_templates,
            templates=_load("templates.npy"),
            winv=_load("whitening_mat_inv.npy"),
            ycoords=_load("channel_positions.npy")[:, 1],
            temp_scaling_amps=_load("amplitudes.npy").ravel(),
        )
        logger.info(f"Loaded {len(data.spike_times)} spikes, {len(data.cluster_ids)} clusters from {d}")
        return data
