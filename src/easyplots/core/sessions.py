"""
Hierarchical averaging of event-aligned signals across sessions and subjects.

  1. Per session and alignment: align the dense signal (shared step = median
     sampling interval over all sessions), optionally baseline-subtract, then
     average trials within each split group (NaN-aware).
  2. Conditions present in only one session have no repeats; they are logged
     and excluded.
  3. Per subject: average the session means of each condition.

Results are kept in long tables (pandas) so grouping by subject/condition is a
plain groupby.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from easyplots.config import validate_window
from easyplots.core.alignment import align_signal, baseline_subtract, check_dense_signal, window_bins
from easyplots.core.grouping import group_labels, partition_indices
from easyplots.errors import InputError, MismatchedTrialCount
from easyplots.utils.logging import get_logger

logger = get_logger(__name__)

# Condition label used when an alignment is not split.
ALL_TRIALS = "all"


@dataclass
class SessionData:
    """One recording session.

    Attributes:
        subject: Subject (e.g. mouse) name.
        values: Dense signal samples.
        timestamps: Sample times.
        events: Alignment label -> event times.
        split_by: Alignment label -> (split name, per-trial labels).
    """
    subject: str
    values: Sequence[float]
    timestamps: Sequence[float]
    events: Mapping[str, Sequence[float]]
    split_by: Optional[Mapping[str, tuple[str, Sequence[Any]]]] = None


@dataclass
class SessionAverages:
    """Trial-averaged traces at two levels for one alignment.

    Attributes:
        bins: (n_bins,) event-relative times.
        per_session: rows = (session, subject, condition); ``trace`` column holds arrays.
        per_subject: rows = (subject, condition); ``trace`` column holds arrays.
        conditions: Conditions kept, in sorted order.
        dropped: Conditions excluded for lack of repeats.
    """
    bins: np.ndarray
    per_session: pd.DataFrame
    per_subject: pd.DataFrame
    conditions: list[Any]
    dropped: list[Any]

    def session_matrix(self, subject: str) -> tuple[np.ndarray, list[Any]]:
        rows = self.per_session[self.per_session["subject"] == subject]
        return _stack(rows["trace"]), rows["condition"].tolist()

    def subject_matrix(self) -> tuple[np.ndarray, list[Any]]:
        return _stack(self.per_subject["trace"]), self.per_subject["condition"].tolist()


def _stack(traces: pd.Series) -> np.ndarray:
    if traces.empty:
        return np.empty((0, 0))
    return np.vstack(traces.to_list())


def _nanmean_rows(values: np.ndarray) -> np.ndarray:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        return np.nanmean(values, axis=0)


def shared_step(sessions: Sequence[SessionData]) -> float:
    """Median sampling interval over the concatenated timestamps of all sessions."""
    diffs = [np.diff(check_dense_signal(s.values, s.timestamps)[1]) for s in sessions]
    return float(np.median(np.concatenate(diffs)))


def average_across_sessions(
    sessions: Sequence[SessionData],
    alignment: str,
    window: tuple[float, float],
    *,
    baseline: Optional[tuple[float, float]] = None,
) -> SessionAverages:
    """Session and subject averages for one alignment label."""
    if not sessions:
        raise InputError("at least one session is required")
    window = validate_window(window)
    step = shared_step(sessions)
    bins = window_bins(window, step)

    rows = []
    for i, sess in enumerate(sessions):
        if alignment not in sess.events:
            raise InputError(f"session {i} ({sess.subject}) has no events for alignment {alignment!r}")
        aligned = align_signal(sess.values, sess.timestamps, sess.events[alignment], window, step=step)
        values = aligned.values
        if baseline is not None:
            values = baseline_subtract(values, bins, baseline)

        split = (sess.split_by or {}).get(alignment)
        if split is None:
            rows.append({"session": i, "subject": sess.subject, "condition": ALL_TRIALS,
                         "trace": _nanmean_rows(values)})
            continue
        labels = split[1]
        if len(labels) != values.shape[0]:
            raise MismatchedTrialCount(
                f"session {i}: split {split[0]!r} has {len(labels)} labels but {values.shape[0]} events"
            )
        for cond, idx in partition_indices(labels).items():
            rows.append({"session": i, "subject": sess.subject, "condition": cond,
                         "trace": _nanmean_rows(values[idx])})

    per_session = pd.DataFrame(rows, columns=["session", "subject", "condition", "trace"])

    repeats = per_session.groupby("condition", sort=False)["session"].nunique()
    dropped = [c for c, n in repeats.items() if n == 1 and len(sessions) > 1]
    for cond in dropped:
        logger.warning(f"For alignment {alignment}, condition {cond!r} has no repeats across sessions. Will not plot")
    if dropped:
        per_session = per_session[~per_session["condition"].isin(dropped)].reset_index(drop=True)

    subject_rows = []
    for (subject, cond), grp in per_session.groupby(["subject", "condition"], sort=False):
        subject_rows.append({"subject": subject, "condition": cond, "trace": _nanmean_rows(_stack(grp["trace"]))})
    per_subject = pd.DataFrame(subject_rows, columns=["subject", "condition", "trace"])

    conditions = group_labels(per_session["condition"].tolist())
    return SessionAverages(bins=bins, per_session=per_session, per_subject=per_subject,
                           conditions=conditions, dropped=dropped)
