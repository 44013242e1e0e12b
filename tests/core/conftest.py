# tests/core/conftest.py
"""Fixtures for core computation tests."""
from __future__ import annotations

import numpy as np
import pytest


@pytest.fixture
def spike_times() -> np.ndarray:
    """Small sorted spike train (seconds)."""
    return np.array([0.5, 1.0, 1.2, 2.0, 3.5, 4.1, 4.15, 6.0])


@pytest.fixture
def dense_signal() -> tuple[np.ndarray, np.ndarray]:
    """Linear ramp sampled at an exactly representable interval: (values, timestamps)."""
    timestamps = np.arange(80) * 0.125
    return 2.0 * timestamps, timestamps


@pytest.fixture
def simulated():
    """Seeded 2 Hz baseline / 10 Hz event-response neuron."""
    from easyplots.simulate import simulate_event_responsive_neuron

    return simulate_event_responsive_neuron(
        baseline_rate=2.0,
        event_rate=10.0,
        event_duration=0.5,
        duration=1000.0,
        n_events=300,
        rng=np.random.default_rng(0),
    )


def _templates() -> np.ndarray:
    templates = np.zeros((2, 5, 4))
    spike = np.array([0.0, 1.0, -1.0, 0.0, 0.0])
    templates[0, :, 0] = spike
    templates[0, :, 1] = 0.2 * spike
    templates[1, :, 2] = spike
    templates[1, :, 3] = spike
    return templates


@pytest.fixture
def ephys_factory():
    """Build a small EphysData (2 templates, 4 channels 20 um apart); keyword arguments override fields."""
    from easyplots.ephys import EphysData

    def _make(**overrides):
        fields = dict(
            spike_times=np.array([1.0, 2.0, 3.0]),
            spike_clusters=np.array([0, 1, 1]),
            spike_templates=np.array([0, 1, 1]),
            templates=_templates(),
            winv=np.eye(4),
            ycoords=np.array([0.0, 20.0, 40.0, 60.0]),
            temp_scaling_amps=np.array([1.0, 2.0, 3.0]),
        )
        fields.update(overrides)
        return EphysData(**fields)

    return _make


@pytest.fixture
def ephys(ephys_factory):
    return ephys_factory()
