"""Tests for the time-warped average figure builder."""

import numpy as np
import pytest

from easyplots.config import SplitSpec, TimeWarpConfig
from easyplots.errors import ColorCountMismatch, MismatchedEpochLength
from easyplots.plot_spec import LayerKind
from easyplots.plots import build_event_aligned_average_time_warped, event_aligned_average_time_warped


@pytest.fixture
def epochs():
    starts = np.array([10.0, 30.0, 50.0, 70.0])
    return {
        "cue": starts,
        "go": starts + np.array([0.5, 1.0, 1.5, 1.0]),
        "reward": starts + np.array([2.0, 2.5, 3.0, 2.5]),
    }


def test_unsplit_single_facet_with_400_samples(signal, epochs):
    values, t = signal
    spec = build_event_aligned_average_time_warped(values, t, epochs, TimeWarpConfig(label="dF/F"))
    assert len(spec.facets) == 1
    facet = spec.facets[0]
    assert facet.ylabel == "dF/F"
    assert facet.hide_x
    layer = facet.layers[0]
    assert layer.kind is LayerKind.SUMMARY
    assert layer.x.size == 400
    assert layer.groups[0].center.size == 400
    assert layer.groups[0].n_trials == 4


def test_epoch_boundaries_marked_and_labelled(signal, epochs):
    values, t = signal
    spec = build_event_aligned_average_time_warped(values, t, epochs, TimeWarpConfig(pre_post=(1.0, 2.0)))
    labels = [v.label for v in spec.facets[0].vlines]
    assert labels == ["cue", "go", "reward", "cue -1", "reward +2"]
    xs = [v.x for v in spec.facets[0].vlines]
    assert xs[:3] == sorted(xs[:3])
    assert xs[3] == 1.0
    assert xs[4] == 400.0
    assert all(v.dash == "dot" for v in spec.facets[0].vlines)


def test_one_facet_per_split(signal, epochs):
    values, t = signal
    config = TimeWarpConfig(
        split_by=[SplitSpec("block", ["a", "a", "b", "b"]), SplitSpec("side", ["L", "R", "L", "R"])],
        split_colors={"side": ["green", "purple"]},
    )
    spec = build_event_aligned_average_time_warped(values, t, epochs, config)
    assert [(f.row, f.col, f.title) for f in spec.facets] == [(1, 1, "block"), (2, 1, "side")]
    assert spec.link_y == [["warp:block", "warp:side"]]
    side = spec.facet("warp:side").layers[0].groups
    assert [(g.label, g.color) for g in side] == [("L", "green"), ("R", "purple")]


def test_split_colour_mismatch_raises(signal, epochs):
    values, t = signal
    config = TimeWarpConfig(
        split_by=[SplitSpec("side", ["L", "R", "C", "R"])],
        split_colors={"side": ["green", "purple"]},
    )
    with pytest.raises(ColorCountMismatch):
        build_event_aligned_average_time_warped(values, t, epochs, config)


def test_epoch_length_mismatch_raises(signal, epochs):
    values, t = signal
    epochs["reward"] = epochs["reward"][:3]
    with pytest.raises(MismatchedEpochLength):
        build_event_aligned_average_time_warped(values, t, epochs)


def test_renders_through_injected_renderer(signal, epochs, renderer):
    values, t = signal
    fig, spec = event_aligned_average_time_warped(values, t, epochs, renderer=renderer)
    assert renderer.rendered == [spec]
    assert renderer.saved == []
    assert fig == {"n_facets": 1}
