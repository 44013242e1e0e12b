"""Simulated spike trains with a known event response.

Used by the example script and by tests that check the PSTH recovers the
simulated rates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from easyplots.errors import ConfigurationError


@dataclass
class SimulatedNeuron:
    """Simulation output.

    Attributes:
        spike_times: Sorted spike times (seconds).
        event_times: Event times the response is locked to.
    """
    spike_times: np.ndarray
    event_times: np.ndarray


def simulate_event_responsive_neuron(
    baseline_rate: float = 2.0,
    event_rate: float = 10.0,
    event_duration: float = 0.5,
    duration: float = 10000.0,
    n_events: int = 300,
    *,
    dt: float = 0.001,
    refractory_period: float = 0.002,
    rng: Optional[np.random.Generator] = None,
) -> SimulatedNeuron:
    """Inhomogeneous Bernoulli spiking: ``event_rate`` for ``event_duration`` after each event.

    Events are evenly spaced from 1 s to ``duration - 2`` s. A spike is kept
    only if it follows the previous kept spike by more than ``refractory_period``.
    """
    if dt >= refractory_period:
        raise ConfigurationError(f"dt ({dt}) must be smaller than the refractory period ({refractory_period})")
    rng = rng if rng is not None else np.random.default_rng()

    time = np.arange(int(round(duration / dt)) + 1) * dt
    event_times = np.linspace(1.0, duration - 2.0, n_events)

    p = np.full(time.size, baseline_rate * dt)
    start = np.searchsorted(time, event_times, side="left")
    stop = np.searchsorted(time, event_times + event_duration, side="right")
    for a, b in zip(start, stop):
        p[a:b] = event_rate * dt

    candidates = time[rng.random(time.size) < p]
    kept = []
    last = -np.inf
    for t in candidates:
        if t - last > refractory_period:
            kept.append(t)
            last = t
    return SimulatedNeuron(spike_times=np.asarray(kept, dtype=float), event_times=event_times)
