"""Summary statistics for stat-summary panels (centre line + band per group).

All statistics ignore NaN entries per time bin. A bin with no defined trial is
NaN; the spread of a bin with a single defined trial is NaN for ci/sem/std.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats as sps

from easyplots.config import SummaryStat
from easyplots.core.grouping import partition_indices


@dataclass
class GroupSummary:
    """Centre and band of one group of trials.

    Attributes:
        label: Group label (None for an unsplit panel).
        center: (n_bins,) mean or median.
        lower: (n_bins,) lower band edge.
        upper: (n_bins,) upper band edge.
        n_trials: Number of trials in the group.
        color: Plotly colour string, filled in by the plot builder.
    """
    label: Any
    center: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    n_trials: int
    color: Optional[str] = None


def summarize(values: np.ndarray, stat: SummaryStat | str) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Compute (center, lower, upper) across rows of a (n_trials, n_bins) matrix."""
    stat = SummaryStat.parse(stat)
    values = np.atleast_2d(np.asarray(values, dtype=float))
    with warnings.catch_warnings():
        # all-NaN bins (trimmed edges, missing trials) legitimately give NaN
        warnings.simplefilter("ignore", category=RuntimeWarning)
        n = np.sum(np.isfinite(values), axis=0)
        if stat in (SummaryStat.QUARTILE, SummaryStat.PERCENTILE_95):
            lo_q, hi_q = (25, 75) if stat is SummaryStat.QUARTILE else (2.5, 97.5)
            center = np.nanmedian(values, axis=0)
            lower, upper = np.nanpercentile(values, [lo_q, hi_q], axis=0)
            return center, lower, upper

        center = np.nanmean(values, axis=0)
        std = np.where(n > 1, np.nanstd(values, axis=0, ddof=1), np.nan)
        if stat is SummaryStat.STD:
            spread = std
        else:
            spread = std / np.sqrt(np.maximum(n, 1))
            if stat is SummaryStat.CI:
                spread = spread * sps.t.ppf(0.975, np.maximum(n - 1, 1))
    return center, center - spread, center + spread


def summarize_groups(
    values: np.ndarray,
    stat: SummaryStat | str,
    labels: Optional[Sequence[Any]] = None,
) -> list[GroupSummary]:
    """One GroupSummary per split group (or a single unlabelled one)."""
    values = np.atleast_2d(np.asarray(values, dtype=float))
    if labels is None:
        center, lower, upper = summarize(values, stat)
        return [GroupSummary(label=None, center=center, lower=lower, upper=upper, n_trials=values.shape[0])]
    out = []
    for label, idx in partition_indices(labels).items():
        center, lower, upper = summarize(values[idx], stat)
        out.append(GroupSummary(label=label, center=center, lower=lower, upper=upper, n_trials=len(idx)))
    return out


def summary_table(bins: np.ndarray, groups: Sequence[GroupSummary]) -> pd.DataFrame:
    """Long-format table: one row per (group, bin) with center/lower/upper columns."""
    frames = []
    for g in groups:
        frames.append(pd.DataFrame({
            "group": [g.label] * len(bins),
            "time": bins,
            "center": g.center,
            "lower": g.lower,
            "upper": g.upper,
            "n_trials": g.n_trials,
        }))
    if not frames:
        return pd.DataFrame(columns=["group", "time", "center", "lower", "upper", "n_trials"])
    return pd.concat(frames, ignore_index=True)
