"""Unit tests for windowed alignment of spike times and dense signals."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from easyplots.core.alignment import (
    align_signal,
    align_spikes,
    as_event_times,
    baseline_subtract,
    check_dense_signal,
    window_bins,
)
from easyplots.errors import EmptySignal, InvalidSignal, InvalidWindow


def test_align_spikes_relative_times_inclusive_bounds(spike_times):
    """Spikes exactly on either window edge are kept, re-expressed relative to the event."""
    aligned = align_spikes(spike_times, [1.0, 3.0], (-0.5, 0.5))
    assert len(aligned) == 2
    assert_allclose(aligned.trials[0], [-0.5, 0.0, 0.2])
    assert_allclose(aligned.trials[1], [0.5])
    assert aligned.window == (-0.5, 0.5)
    assert not aligned.missing.any()


def test_align_spikes_empty_trial_is_empty_array(spike_times):
    aligned = align_spikes(spike_times, [8.0], (-0.5, 0.5))
    assert aligned.trials[0] is not None
    assert aligned.trials[0].size == 0


def test_align_spikes_missing_events_are_none_not_dropped(spike_times, caplog):
    """NaN/None events yield None trials in place; trial count equals event count."""
    with caplog.at_level("WARNING", logger="easyplots"):
        aligned = align_spikes(spike_times, [1.0, np.nan, None, 4.0], (-0.2, 0.2))
    assert len(aligned) == 4
    assert aligned.trials[1] is None
    assert aligned.trials[2] is None
    assert aligned.missing.tolist() == [False, True, True, False]
    assert_allclose(aligned.trials[3], [0.1, 0.15])
    assert "2 of 4 event times are missing" in caplog.text


@pytest.mark.parametrize("window", [(0.5, -0.5), (0.0, 0.0), (1.0,)])
def test_align_spikes_invalid_window_raises(spike_times, window):
    with pytest.raises(InvalidWindow):
        align_spikes(spike_times, [1.0], window)


def test_align_spikes_empty_signal_raises():
    with pytest.raises(EmptySignal):
        align_spikes([], [1.0], (-1.0, 1.0))


def test_align_spikes_unsorted_raises():
    with pytest.raises(InvalidSignal):
        align_spikes([2.0, 1.0, 3.0], [1.0], (-1.0, 1.0))


def test_align_spikes_non_finite_raises():
    with pytest.raises(InvalidSignal):
        align_spikes([1.0, np.inf], [1.0], (-1.0, 1.0))


def test_as_event_times_none_becomes_nan():
    ev = as_event_times([1.0, None, 2])
    assert ev.dtype == float
    assert np.isnan(ev[1])
    assert ev[2] == 2.0


def test_window_bins_includes_end_when_whole_steps():
    bins = window_bins((-0.5, 0.5), 0.125)
    assert bins.size == 9
    assert bins[0] == -0.5
    assert bins[-1] == 0.5


def test_align_signal_interpolates_on_median_step(dense_signal):
    values, timestamps = dense_signal
    aligned = align_signal(values, timestamps, [5.0, 6.0], (-0.5, 0.5))
    assert aligned.values.shape == (2, 9)
    assert_allclose(aligned.bins, np.arange(9) * 0.125 - 0.5)
    assert_allclose(aligned.values[0], 2.0 * (5.0 + aligned.bins))
    assert_allclose(aligned.values[1], 2.0 * (6.0 + aligned.bins))


def test_align_signal_outside_support_is_nan(dense_signal):
    """Query times before the first sample or after the last give NaN, never extrapolated values."""
    values, timestamps = dense_signal
    aligned = align_signal(values, timestamps, [0.25, timestamps[-1] - 0.25], (-0.5, 0.5))
    assert np.isnan(aligned.values[0, :2]).all()
    assert np.isfinite(aligned.values[0, 2:]).all()
    assert np.isnan(aligned.values[1, -2:]).all()
    assert np.isfinite(aligned.values[1, :-2]).all()


def test_align_signal_missing_event_row_is_nan(dense_signal):
    values, timestamps = dense_signal
    aligned = align_signal(values, timestamps, [5.0, None], (-0.5, 0.5))
    assert aligned.missing.tolist() == [False, True]
    assert np.isnan(aligned.values[1]).all()
    assert np.isfinite(aligned.values[0]).all()


def test_check_dense_signal_rejects_non_increasing_timestamps():
    with pytest.raises(InvalidSignal):
        check_dense_signal([1.0, 2.0, 3.0], [0.0, 1.0, 1.0])


def test_check_dense_signal_rejects_length_mismatch():
    with pytest.raises(InvalidSignal):
        check_dense_signal([1.0, 2.0], [0.0, 1.0, 2.0])


def test_check_dense_signal_rejects_empty():
    with pytest.raises(EmptySignal):
        check_dense_signal([], [])


def test_baseline_subtract_removes_per_trial_mean():
    bins = np.array([-0.2, -0.1, 0.0, 0.1])
    values = np.array([[1.0, 3.0, 10.0, 10.0], [0.0, 0.0, 5.0, 6.0]])
    out = baseline_subtract(values, bins, (-0.2, -0.1))
    assert_allclose(out[0], [-1.0, 1.0, 8.0, 8.0])
    assert_allclose(out[1], [0.0, 0.0, 5.0, 6.0])


def test_baseline_subtract_empty_baseline_raises():
    bins = np.array([0.0, 0.1])
    with pytest.raises(InvalidSignal):
        baseline_subtract(np.ones((1, 2)), bins, (-1.0, -0.5))
