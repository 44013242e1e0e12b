"""Helpers shared by the plotting functions."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from easyplots.config import SplitSpec
from easyplots.core.grouping import normalize_labels, resolve_colors
from easyplots.core.stats import GroupSummary
from easyplots.errors import InputError, MismatchedTrialCount
from easyplots.plot_spec import FigureSpec
from easyplots.render import Renderer, get_renderer
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_COLOR = "black"


def check_events(events: Mapping[str, Sequence[float]]) -> None:
    """``events`` must be a non-empty mapping of alignment label -> event times."""
    if not isinstance(events, Mapping) or len(events) == 0:
        raise InputError("events must be a non-empty mapping of alignment label -> event times")


def prepare_renderer(renderer: Optional[Renderer], save_path: Optional[Union[str, Path]]) -> Renderer:
    """Resolve the renderer and check the export target before any computation."""
    renderer = get_renderer(renderer)
    if save_path is not None:
        renderer.check_export(save_path)
    return renderer


def draw(spec: FigureSpec, renderer: Renderer, save_path: Optional[Union[str, Path]]) -> Any:
    fig = renderer.render(spec)
    if save_path is not None:
        renderer.save(fig, save_path)
    return fig


def split_labels(split: Optional[SplitSpec], n_trials: int) -> Optional[list[Any]]:
    if split is None:
        return None
    labels = list(split.labels)
    if len(labels) != n_trials:
        raise MismatchedTrialCount(f"split {split.name!r} has {len(labels)} labels but there are {n_trials} events")
    return labels


def color_map(split: Optional[SplitSpec], labels: Optional[Sequence[Any]],
              colors: Optional[Sequence[Any]]) -> dict[Any, str]:
    if split is None or labels is None:
        return {}
    return resolve_colors(split.name, labels, colors)


def trial_colors(labels: Optional[Sequence[Any]], cmap: Mapping[Any, str], n_trials: int) -> list[str]:
    if labels is None:
        return [DEFAULT_COLOR] * n_trials
    return [cmap.get(lab, DEFAULT_COLOR) for lab in normalize_labels(labels)]


def paint(groups: list[GroupSummary], cmap: Mapping[Any, str]) -> list[GroupSummary]:
    for g in groups:
        g.color = cmap.get(g.label, DEFAULT_COLOR)
    return groups


def facet_title(label: str, split: Optional[SplitSpec] = None, sort_name: Optional[str] = None) -> str:
    parts = [label]
    if split is not None:
        parts.append(f"split by {split.name}")
    if sort_name is not None:
        parts.append(f"sorted by {sort_name}")
    return "<br>".join(parts)
