# tests/plots/conftest.py
"""Fixtures for plot builder tests (no plotting library needed)."""
from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from easyplots.ephys import EphysData
from easyplots.simulate import simulate_event_responsive_neuron


class FakeRenderer:
    """Renderer stand-in that records what it was asked to do."""

    def __init__(self) -> None:
        self.checked: list[Path] = []
        self.rendered: list = []
        self.saved: list[Path] = []

    def check_export(self, path) -> None:
        self.checked.append(Path(path))

    def render(self, spec):
        self.rendered.append(spec)
        return {"n_facets": len(spec.facets)}

    def save(self, fig, path) -> Path:
        self.saved.append(Path(path))
        return Path(path)


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def neuron():
    """Seeded 2 Hz / 10 Hz neuron with 100 events."""
    return simulate_event_responsive_neuron(duration=340.0, n_events=100, rng=np.random.default_rng(7))


@pytest.fixture
def signal() -> tuple[np.ndarray, np.ndarray]:
    """Dense signal at 8 Hz: a bump of height 1 lasting 0.5 s after every 10 s mark."""
    t = np.arange(0, 120, 0.125)
    values = ((t % 10.0) < 0.5).astype(float)
    return values, t


@pytest.fixture
def layered_ephys() -> EphysData:
    """Two templates at depths 0 and 50 um; shallow one fires before and after each 10 s event."""
    templates = np.zeros((2, 5, 4))
    spike = np.array([0.0, 1.0, -1.0, 0.0, 0.0])
    templates[0, :, 0] = spike
    templates[1, :, 2] = spike
    templates[1, :, 3] = spike

    rows = []
    for e in np.arange(1, 11) * 10.0:
        rows += [(e - 0.45, 0), (e + 0.25, 0), (e + 0.25, 1), (e + 0.35, 1)]
    rows.sort(key=lambda r: r[0])
    times = np.array([r[0] for r in rows])
    tmpl = np.array([r[1] for r in rows])
    return EphysData(
        spike_times=times,
        spike_clusters=tmpl.copy(),
        spike_templates=tmpl,
        templates=templates,
        winv=np.eye(4),
        ycoords=np.array([0.0, 20.0, 40.0, 60.0]),
        temp_scaling_amps=np.ones(times.size),
    )
