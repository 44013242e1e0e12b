"""Unit tests for trial sorting, splitting and colour resolution."""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose

from easyplots.core.grouping import (
    DEFAULT_COLORS,
    UNDEFINED_GROUP,
    group_labels,
    partition,
    partition_indices,
    relative_sort_keys,
    reorder,
    resolve_colors,
    sort_order,
    to_plotly_color,
)
from easyplots.errors import ColorCountMismatch, ConfigurationError, MismatchedTrialCount


def test_undefined_group_constant():
    """UNDEFINED_GROUP is the sentinel string."""
    assert UNDEFINED_GROUP == "(undefined)"


def test_relative_sort_keys_subtracts_event_times():
    keys = relative_sort_keys([1.3, 5.2, 9.0], [1.0, 5.0, 8.5])
    assert_allclose(keys, [0.3, 0.2, 0.5])


def test_relative_sort_keys_length_mismatch_raises():
    with pytest.raises(MismatchedTrialCount):
        relative_sort_keys([1.0, 2.0], [1.0, 2.0, 3.0])


def test_sort_order_stable_nan_last():
    assert sort_order([0.3, np.nan, 0.1, 0.1]).tolist() == [2, 3, 0, 1]


def test_reorder_returns_sorted_trials_and_keys():
    trials = ["t0", "t1", "t2", "t3"]
    out, keys = reorder(trials, [0.3, np.nan, 0.1, 0.1])
    assert out == ["t2", "t3", "t0", "t1"]
    assert_allclose(keys[:3], [0.1, 0.1, 0.3])
    assert np.isnan(keys[3])


def test_reorder_is_a_permutation():
    trials = list(range(20))
    keys = np.random.default_rng(1).normal(size=20)
    out, sorted_keys = reorder(trials, keys)
    assert sorted(out) == trials
    assert np.all(np.diff(sorted_keys) >= 0)


def test_reorder_length_mismatch_raises():
    with pytest.raises(MismatchedTrialCount):
        reorder([1, 2, 3], [0.1, 0.2])


def test_group_labels_sorted_undefined_last():
    assert group_labels(["b", None, "a", "b"]) == ["a", "b", UNDEFINED_GROUP]
    assert group_labels([3, 1, np.nan, 2]) == [1, 2, 3, UNDEFINED_GROUP]


def test_partition_undefined_labels_form_own_group():
    groups = partition(["t0", "t1", "t2", "t3"], ["b", "a", None, "a"])
    assert list(groups) == ["a", "b", UNDEFINED_GROUP]
    assert groups["a"] == ["t1", "t3"]
    assert groups["b"] == ["t0"]
    assert groups[UNDEFINED_GROUP] == ["t2"]


def test_partition_pandas_missing_labels_are_undefined():
    labels = pd.Series(["a", pd.NA, "b"], dtype="string")
    groups = partition([10, 11, 12], labels)
    assert groups == {"a": [10], "b": [12], UNDEFINED_GROUP: [11]}
    assert group_labels([pd.NaT, "x"]) == ["x", UNDEFINED_GROUP]


def test_partition_sizes_sum_to_trial_count():
    labels = [1, 2, 1, np.nan, 2, 2]
    idx = partition_indices(labels)
    assert sum(len(v) for v in idx.values()) == len(labels)
    assert idx[2].tolist() == [1, 4, 5]


def test_partition_length_mismatch_raises():
    with pytest.raises(MismatchedTrialCount):
        partition([1, 2, 3], ["a", "b"])


def test_resolve_colors_pairs_sorted_labels_with_colours():
    cmap = resolve_colors("choice", ["right", "left", "left"], ["blue", (1.0, 0.0, 0.0)])
    assert cmap == {"left": "blue", "right": "rgb(255,0,0)"}


def test_resolve_colors_defaults_when_not_given():
    cmap = resolve_colors("choice", ["x", "y"])
    assert cmap == {"x": DEFAULT_COLORS[0], "y": DEFAULT_COLORS[1]}


def test_resolve_colors_count_mismatch_raises():
    """Two colours for three splitting conditions is a configuration error."""
    with pytest.raises(ColorCountMismatch) as exc_info:
        resolve_colors("contrast", [0.0, 0.5, 1.0, 0.5], ["red", "blue"])
    err = exc_info.value
    assert err.split_label == "contrast"
    assert err.n_colors == 2
    assert err.n_groups == 3
    assert str(err) == "contrast: 2 colours specified but 3 splitting conditions"


def test_resolve_colors_undefined_group_counts_toward_colours():
    with pytest.raises(ColorCountMismatch):
        resolve_colors("choice", ["a", None, "b"], ["red", "blue"])


@pytest.mark.parametrize(
    "color, expected",
    [
        ("#ff0000", "#ff0000"),
        ((0.0, 0.5, 1.0), "rgb(0,128,255)"),
        ([0, 128, 255], "rgb(0,128,255)"),
    ],
)
def test_to_plotly_color(color, expected):
    assert to_plotly_color(color) == expected


def test_to_plotly_color_rejects_bad_triple():
    with pytest.raises(ConfigurationError):
        to_plotly_color((1.0, 0.0))
