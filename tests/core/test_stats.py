"""Unit tests for summary statistics (centre line + band)."""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy import stats as sps

from easyplots.config import SummaryStat
from easyplots.core.stats import summarize, summarize_groups, summary_table
from easyplots.errors import ConfigurationError


@pytest.fixture
def trials() -> np.ndarray:
    return np.array([
        [1.0, 2.0, np.nan],
        [3.0, 4.0, np.nan],
        [5.0, 9.0, 7.0],
    ])


def test_summarize_sem(trials):
    center, lower, upper = summarize(trials, "sem")
    assert_allclose(center, [3.0, 5.0, 7.0])
    sem0 = np.std([1.0, 3.0, 5.0], ddof=1) / np.sqrt(3)
    assert upper[0] - center[0] == pytest.approx(sem0)
    assert center[0] - lower[0] == pytest.approx(sem0)


def test_summarize_ci_uses_t_quantile(trials):
    center, lower, upper = summarize(trials, SummaryStat.CI)
    sem0 = np.std([1.0, 3.0, 5.0], ddof=1) / np.sqrt(3)
    assert upper[0] - center[0] == pytest.approx(sem0 * sps.t.ppf(0.975, 2))


def test_summarize_std(trials):
    center, lower, upper = summarize(trials, "std")
    assert upper[1] - center[1] == pytest.approx(np.std([2.0, 4.0, 9.0], ddof=1))


def test_summarize_single_defined_trial_has_nan_spread(trials):
    center, lower, upper = summarize(trials, "sem")
    assert center[2] == 7.0
    assert np.isnan(lower[2]) and np.isnan(upper[2])


def test_summarize_quartile_uses_median(trials):
    center, lower, upper = summarize(trials, "quartile")
    assert center[0] == 3.0
    assert lower[0] == 2.0
    assert upper[0] == 4.0


def test_summarize_95percentile(trials):
    center, lower, upper = summarize(trials, "95percentile")
    assert center[1] == 4.0
    assert lower[1] == pytest.approx(np.percentile([2.0, 4.0, 9.0], 2.5))
    assert upper[1] == pytest.approx(np.percentile([2.0, 4.0, 9.0], 97.5))


def test_summarize_all_nan_bin_is_nan():
    center, lower, upper = summarize(np.full((3, 2), np.nan), "ci")
    assert np.isnan(center).all()
    assert np.isnan(lower).all()


def test_summarize_unknown_stat_raises(trials):
    with pytest.raises(ConfigurationError):
        summarize(trials, "median")


def test_summarize_groups_one_per_label(trials):
    groups = summarize_groups(trials, "sem", ["b", "a", "b"])
    assert [g.label for g in groups] == ["a", "b"]
    assert [g.n_trials for g in groups] == [1, 2]
    assert_allclose(groups[1].center[:2], [3.0, 5.5])


def test_summarize_groups_unsplit(trials):
    groups = summarize_groups(trials, "sem")
    assert len(groups) == 1
    assert groups[0].label is None
    assert groups[0].n_trials == 3


def test_summary_table_long_format(trials):
    groups = summarize_groups(trials, "sem", ["b", "a", "b"])
    df = summary_table(np.array([0.0, 0.1, 0.2]), groups)
    assert list(df.columns) == ["group", "time", "center", "lower", "upper", "n_trials"]
    assert len(df) == 6
    assert df.loc[df["group"] == "a", "n_trials"].tolist() == [1, 1, 1]
