"""Event-aligned average of a dense signal (e.g. photometry, pupil, running speed)."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import numpy as np

from easyplots.config import EventAverageConfig
from easyplots.core.alignment import align_signal, baseline_subtract
from easyplots.core.stats import summarize_groups
from easyplots.plot_spec import FacetSpec, FigureSpec, LayerKind, LayerSpec, VLine
from easyplots.plots._base import check_events, color_map, draw, facet_title, paint, prepare_renderer, split_labels
from easyplots.render import Renderer
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)


def build_event_aligned_average(
    values: Sequence[float],
    timestamps: Sequence[float],
    events: Mapping[str, Sequence[float]],
    config: Optional[EventAverageConfig] = None,
) -> FigureSpec:
    """One summary facet per alignment; y ranges are linked across facets."""
    config = config or EventAverageConfig()
    config.validate()
    check_events(events)
    logger.info(f"Building event-aligned average: alignments={list(events)}, mode={config.mode.value}")

    facets = []
    for i, (label, event_times) in enumerate(events.items()):
        aligned = align_signal(values, timestamps, event_times, config.window)
        trials = aligned.values
        if config.baseline is not None:
            trials = baseline_subtract(trials, aligned.bins, config.baseline)

        split = config.split_by.get(label)
        labels = split_labels(split, trials.shape[0])
        cmap = color_map(split, labels, config.split_colors.get(label))
        groups = paint(summarize_groups(trials, config.mode, labels), cmap)

        facets.append(FacetSpec(
            row=1, col=i + 1, key=f"avg:{label}",
            title=facet_title(label, split),
            xlabel=label,
            ylabel=f"{config.label} [{config.mode.value}]" if i == 0 else "",
            xlim=config.window,
            ylim=config.ylim,
            vlines=[VLine(0.0)],
            layers=[LayerSpec(kind=LayerKind.SUMMARY, x=aligned.bins, groups=groups)],
        ))
        logger.debug(f"{label}: {trials.shape[0]} trials x {aligned.bins.size} bins")

    return FigureSpec(
        facets=facets,
        title=config.title,
        link_y=[[f.key for f in facets]] if len(facets) > 1 else [],
        params=config.to_dict(),
    )


def event_aligned_average(
    values: Sequence[float],
    timestamps: Sequence[float],
    events: Mapping[str, Sequence[float]],
    config: Optional[EventAverageConfig] = None,
    *,
    renderer: Optional[Renderer] = None,
) -> tuple[Any, FigureSpec]:
    """Draw the event-aligned average, saving it when ``config.save_path`` is set.

    Args:
        values: Signal samples.
        timestamps: Strictly increasing sample times (seconds).
        events: Alignment label -> event times.
        config: Plot options; defaults to EventAverageConfig().
        renderer: Rendering backend; PlotlyRenderer when None.

    Returns:
        (figure, spec)
    """
    config = config or EventAverageConfig()
    config.validate()
    renderer = prepare_renderer(renderer, config.save_path)
    spec = build_event_aligned_average(np.asarray(values, dtype=float), timestamps, events, config)
    return draw(spec, renderer, config.save_path), spec
