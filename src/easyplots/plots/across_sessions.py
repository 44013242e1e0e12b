"""Event-aligned averages across sessions and subjects.

One facet row per subject (each line a session average, summarised per
condition) and, with more than one subject, a grand-average row where each
subject contributes one trace per condition.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from easyplots.config import SessionsConfig, SplitSpec, SummaryStat
from easyplots.core.grouping import group_labels, resolve_colors
from easyplots.core.sessions import ALL_TRIALS, SessionAverages, SessionData, average_across_sessions
from easyplots.core.stats import GroupSummary, summarize_groups
from easyplots.errors import InputError
from easyplots.plot_spec import FacetSpec, FigureSpec, LayerKind, LayerSpec, VLine
from easyplots.plots._base import DEFAULT_COLOR, draw, facet_title, paint, prepare_renderer
from easyplots.render import Renderer
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)


def _split_name(sessions: Sequence[SessionData], alignment: str) -> Optional[str]:
    for s in sessions:
        split = (s.split_by or {}).get(alignment)
        if split is not None:
            return split[0]
    return None


def _colors(avg: SessionAverages, split_name: Optional[str], colors: Optional[Sequence[Any]]) -> dict[Any, str]:
    # colours pair with every label seen in any session, including dropped ones
    labels = group_labels(avg.conditions + avg.dropped)
    if split_name is None:
        return {ALL_TRIALS: DEFAULT_COLOR}
    return resolve_colors(split_name, labels, colors)


def _groups(matrix: np.ndarray, conditions: list[Any], split_name: Optional[str],
            cmap: dict[Any, str]) -> list[GroupSummary]:
    if matrix.size == 0:
        return []
    labels = conditions if split_name is not None else None
    groups = summarize_groups(matrix, SummaryStat.SEM, labels)
    if labels is None:
        for g in groups:
            g.color = DEFAULT_COLOR
        return groups
    return paint(groups, cmap)


def build_event_aligned_average_across_sessions(
    sessions: Sequence[SessionData],
    config: Optional[SessionsConfig] = None,
) -> FigureSpec:
    """Columns are alignments (taken from the first session); rows are subjects, then the grand average."""
    config = config or SessionsConfig()
    config.validate()
    if not sessions:
        raise InputError("at least one session is required")
    alignments = list(sessions[0].events)
    subjects = sorted({s.subject for s in sessions})
    grand = len(subjects) > 1
    logger.info(f"Building across-session average: {len(sessions)} sessions, {len(subjects)} subjects")

    facets = []
    for c, alignment in enumerate(alignments):
        avg = average_across_sessions(sessions, alignment, config.window, baseline=config.baseline)
        split_name = _split_name(sessions, alignment)
        cmap = _colors(avg, split_name, config.split_colors.get(alignment))
        split = SplitSpec(split_name, []) if split_name is not None else None

        rows: list[tuple[str, Any]] = [(subj, avg.session_matrix(subj)) for subj in subjects]
        if grand:
            rows.append(("Grand avg.", avg.subject_matrix()))
        for r, (row_name, (matrix, conditions)) in enumerate(rows):
            title = facet_title(alignment, split) if r == 0 else ""
            facets.append(FacetSpec(
                row=r + 1, col=c + 1, key=f"{alignment}:{row_name}",
                title=f"{title}<br>{row_name}" if title else row_name,
                xlabel=alignment if r == len(rows) - 1 else "",
                ylabel=config.label if c == 0 else "",
                xlim=config.window,
                ylim=config.ylim,
                vlines=[VLine(0.0)],
                layers=[LayerSpec(kind=LayerKind.SUMMARY, x=avg.bins,
                                  groups=_groups(matrix, conditions, split_name, cmap))],
            ))

    return FigureSpec(
        facets=facets,
        title=config.title,
        link_y=[[f.key for f in facets]] if len(facets) > 1 else [],
        params=config.to_dict(),
    )


def event_aligned_average_across_sessions(
    sessions: Sequence[SessionData],
    config: Optional[SessionsConfig] = None,
    *,
    renderer: Optional[Renderer] = None,
) -> tuple[Any, FigureSpec]:
    """Draw the across-session figure, saving it when ``config.save_path`` is set.

    Returns:
        (figure, spec)
    """
    config = config or SessionsConfig()
    config.validate()
    renderer = prepare_renderer(renderer, config.save_path)
    spec = build_event_aligned_average_across_sessions(sessions, config)
    return draw(spec, renderer, config.save_path), spec
