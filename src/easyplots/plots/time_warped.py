"""Time-warped event-aligned average.

Trials are warped so that every boundary event lands on the same sample (see
easyplots.core.time_warp); the x axis is therefore in samples, not seconds.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import numpy as np

from easyplots.config import SummaryStat, TimeWarpConfig
from easyplots.core.stats import summarize_groups
from easyplots.core.time_warp import WarpResult, warp
from easyplots.plot_spec import FacetSpec, FigureSpec, LayerKind, LayerSpec, VLine
from easyplots.plots._base import check_events, color_map, draw, paint, prepare_renderer, split_labels
from easyplots.render import Renderer
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)


def _epoch_vlines(result: WarpResult, names: list[str], pre: float, post: float) -> list[VLine]:
    lines = [VLine(float(b), dash="dot", label=name) for b, name in zip(result.boundaries, names)]
    lines.append(VLine(1.0, dash="dot", label=f"{names[0]} -{pre:g}"))
    lines.append(VLine(float(result.n_samples), dash="dot", label=f"{names[-1]} +{post:g}"))
    return lines


def build_event_aligned_average_time_warped(
    values: Sequence[float],
    timestamps: Sequence[float],
    events: Mapping[str, Sequence[float]],
    config: Optional[TimeWarpConfig] = None,
) -> FigureSpec:
    """Warp trials between the boundary events and summarise them (mean +/- SEM).

    Args:
        values: Signal samples.
        timestamps: Strictly increasing sample times.
        events: Boundary name -> event times, in the order the events occur within a trial.
        config: Plot options; one facet row per entry of ``config.split_by`` (a single
            unsplit facet when empty).
    """
    config = config or TimeWarpConfig()
    config.validate()
    check_events(events)
    names = list(events)
    pre, post = config.pre_post
    result = warp(values, timestamps, list(events.values()), pre, post, n_samples=config.n_samples)
    x = np.arange(1, result.n_samples + 1, dtype=float)
    n_trials = result.values.shape[0]
    logger.info(f"Building time-warped average: {n_trials} trials, epochs={result.samples_per_epoch.tolist()}")

    splits = list(config.split_by) or [None]
    facets = []
    for r, split in enumerate(splits):
        labels = split_labels(split, n_trials)
        cmap = color_map(split, labels, config.split_colors.get(split.name) if split is not None else None)
        groups = paint(summarize_groups(result.values, SummaryStat.SEM, labels), cmap)
        facets.append(FacetSpec(
            row=r + 1, col=1, key=f"warp:{split.name if split is not None else 'all'}",
            title=split.name if split is not None else "",
            ylabel=config.label,
            hide_x=True,
            vlines=_epoch_vlines(result, names, pre, post),
            layers=[LayerSpec(kind=LayerKind.SUMMARY, x=x, groups=groups)],
        ))

    return FigureSpec(
        facets=facets,
        title=config.title,
        link_y=[[f.key for f in facets]] if len(facets) > 1 else [],
        params=config.to_dict(),
    )


def event_aligned_average_time_warped(
    values: Sequence[float],
    timestamps: Sequence[float],
    events: Mapping[str, Sequence[float]],
    config: Optional[TimeWarpConfig] = None,
    *,
    renderer: Optional[Renderer] = None,
) -> tuple[Any, FigureSpec]:
    """Draw the time-warped average, saving it when ``config.save_path`` is set.

    Returns:
        (figure, spec)
    """
    config = config or TimeWarpConfig()
    config.validate()
    renderer = prepare_renderer(renderer, config.save_path)
    spec = build_event_aligned_average_time_warped(values, timestamps, events, config)
    return draw(spec, renderer, config.save_path), spec
