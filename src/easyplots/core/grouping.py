"""
Sorting and splitting of aligned trials.

- ``reorder`` sorts trials by a per-trial time made relative to the alignment
  event (``sort_time - event_time``), ascending, stable. NaN keys go last.
- ``partition`` groups trial indices by categorical label. Trials whose label
  is undefined (None or NaN) form their own group keyed ``UNDEFINED_GROUP``, so
  group sizes always sum to the number of trials.
- ``resolve_colors`` pairs each group label (sorted order) with one supplied
  colour and fails on a count mismatch.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, TypeVar

import numpy as np
import pandas as pd

from easyplots.errors import ColorCountMismatch, ConfigurationError, MismatchedTrialCount

T = TypeVar("T")

# Group key for trials without a label.
UNDEFINED_GROUP = "(undefined)"

# Default colours, cycled when a split has no explicit colours (plotly qualitative palette).
DEFAULT_COLORS = [
    "#636EFA", "#EF553B", "#00CC96", "#AB63FA", "#FFA15A",
    "#19D3F3", "#FF6692", "#B6E880", "#FF97FF", "#FECB52",
]


def _check_length(keys: Sequence[Any], n_trials: int, what: str) -> None:
    if len(keys) != n_trials:
        raise MismatchedTrialCount(f"{what} has {len(keys)} entries but there are {n_trials} trials")


def relative_sort_keys(sort_times: Sequence[float], event_times: Sequence[float]) -> np.ndarray:
    """Sort times expressed relative to their trial's event time."""
    sort_times = np.asarray(sort_times, dtype=float)
    event_times = np.asarray(event_times, dtype=float)
    _check_length(sort_times, event_times.size, "sort times")
    return sort_times - event_times


def sort_order(keys: Sequence[float]) -> np.ndarray:
    """Stable ascending order of ``keys``; NaN keys go last in original order."""
    return np.argsort(np.asarray(keys, dtype=float), kind="stable")


def reorder(trials: Sequence[T], sort_keys: Sequence[float]) -> tuple[list[T], np.ndarray]:
    """Sort trials by ascending key; ties keep their original order.

    Returns:
        (sorted_trials, sorted_keys)
    """
    _check_length(sort_keys, len(trials), "sort keys")
    order = sort_order(sort_keys)
    keys = np.asarray(sort_keys, dtype=float)[order]
    return [trials[i] for i in order], keys


def normalize_labels(labels: Sequence[Any]) -> list[Any]:
    """Replace missing labels (None, NaN, pd.NA, NaT) with UNDEFINED_GROUP."""
    out = []
    for lab in labels:
        if lab is None or (pd.api.types.is_scalar(lab) and pd.isna(lab)):
            out.append(UNDEFINED_GROUP)
        else:
            out.append(lab.item() if isinstance(lab, np.generic) else lab)
    return out


def group_labels(labels: Sequence[Any]) -> list[Any]:
    """Distinct labels in sorted order, UNDEFINED_GROUP (if present) last."""
    norm = normalize_labels(labels)
    defined = sorted({lab for lab in norm if lab != UNDEFINED_GROUP}, key=_label_sort_key)
    if UNDEFINED_GROUP in norm:
        defined.append(UNDEFINED_GROUP)
    return defined


def _label_sort_key(label: Any) -> tuple[int, Any]:
    # numbers before strings; mixed types must still sort deterministically
    if isinstance(label, (int, float, np.number)) and not isinstance(label, bool):
        return (0, float(label))
    return (1, str(label))


def partition_indices(labels: Sequence[Any]) -> dict[Any, np.ndarray]:
    """Map each group label to the indices of its trials, in original order."""
    norm = normalize_labels(labels)
    s = pd.Series(range(len(norm)))
    key = pd.Series(norm, dtype=object)
    grouped = {lab: idx.to_numpy() for lab, idx in s.groupby(key, sort=False)}
    return {lab: grouped[lab] for lab in group_labels(labels)}


def partition(trials: Sequence[T], labels: Sequence[Any]) -> dict[Any, list[T]]:
    """Group trials by categorical label (insertion order kept within each group)."""
    _check_length(labels, len(trials), "split labels")
    return {lab: [trials[i] for i in idx] for lab, idx in partition_indices(labels).items()}


def to_plotly_color(color: Any) -> str:
    """Convert an RGB triple (0-1 or 0-255) or a CSS colour string to a plotly colour string."""
    if isinstance(color, str):
        return color
    rgb = np.asarray(color, dtype=float).ravel()
    if rgb.size != 3:
        raise ConfigurationError(f"colour must be a CSS string or an RGB triple, got {color!r}")
    if rgb.max() <= 1.0:
        rgb = rgb * 255
    r, g, b = (int(round(v)) for v in rgb)
    return f"rgb({r},{g},{b})"


def resolve_colors(
    split_name: str,
    labels: Sequence[Any],
    colors: Optional[Sequence[Any]] = None,
) -> dict[Any, str]:
    """Map each distinct group label to a colour.

    Args:
        split_name: Name of the split, used in error messages.
        labels: Per-trial labels.
        colors: One colour per distinct label (sorted label order), or None for defaults.

    Raises:
        ColorCountMismatch: ``colors`` given but its length differs from the number of groups.
    """
    groups = group_labels(labels)
    if colors is None or len(colors) == 0:
        return {lab: DEFAULT_COLORS[i % len(DEFAULT_COLORS)] for i, lab in enumerate(groups)}
    if len(colors) != len(groups):
        raise ColorCountMismatch(split_name, len(colors), len(groups))
    return {lab: to_plotly_color(c) for lab, c in zip(groups, colors)}
