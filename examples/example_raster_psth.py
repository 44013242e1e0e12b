"""Raster and PSTH of a simulated neuron.

A neuron fires at a 2 Hz baseline and at 10 Hz for 0.5 s after each of 300
events. The raster/PSTH should show the step in rate starting at time 0.

Run from the repo root:
    python examples/example_raster_psth.py
"""

import numpy as np

from easyplots import RasterPSTHConfig, configure_logging, raster_psth, simulate_event_responsive_neuron

configure_logging(level="INFO")

baseline_rate = 2.0  # Hz
event_rate = 10.0  # Hz, after each event
event_duration = 0.5  # s

neuron = simulate_event_responsive_neuron(
    baseline_rate=baseline_rate,
    event_rate=event_rate,
    event_duration=event_duration,
    duration=10000.0,
    n_events=300,
    rng=np.random.default_rng(0),
)

events = {"event time": neuron.event_times}
title = (
    f"Neuron simulated with {baseline_rate:.2f}Hz baseline firing rate<br>"
    f"and {event_rate:.2f}Hz firing rate to event lasting {event_duration:.2f}sec"
)

# default parameters
fig, spec = raster_psth(neuron.spike_times, events, RasterPSTHConfig(title=title, save_path="raster_psth.html"))
fig.show()

# narrower smoothing
fig, _ = raster_psth(neuron.spike_times, events, RasterPSTHConfig(title=title, psth_smooth_width=0.010))
fig.show()

print(spec.summary_table().head())
