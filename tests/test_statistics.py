from __future__ import annotations

import math

import numpy as np
import pytest
from scipy import stats

from fask_engine.errors import NumericalError
from fask_engine.residuals import Residualizer
from fask_engine.statistics import leftright, ratio_sample, welch_test


def test_leftright_favors_true_direction(skewed_ds):
    x, y = (skewed_ds.column(v) for v in skewed_ds.variables)
    assert leftright(x, y) > 0
    assert leftright(y, x) < 0


def test_leftright_directions_are_independent(skewed_ds):
    x, y = (skewed_ds.column(v) for v in skewed_ds.variables)
    assert leftright(x, y) != pytest.approx(-leftright(y, x))


def test_leftright_zero_column_is_singular(rng):
    with pytest.raises(NumericalError):
        leftright(np.zeros(100), rng.standard_normal(100))


def test_leftright_empty_tail_is_nan():
    # x is never negative: E(-1) has no rows.
    x = np.array([0.5, 1.0, 1.5, 2.0])
    y = np.array([1.0, 1.9, 3.2, 3.9])
    assert math.isnan(leftright(x, y))


def test_ratio_sample_rejects_overlap(skewed_ds):
    x, y = skewed_ds.variables
    with pytest.raises(ValueError):
        ratio_sample(Residualizer(skewed_ds), x, y, [x])


def test_ratio_sample_truncated_rows(skewed_ds):
    x, y = skewed_ds.variables
    full = ratio_sample(Residualizer(skewed_ds), x, y, [])
    truncated = ratio_sample(Residualizer(skewed_ds), x, y, [], condition=x)
    assert full.shape == (skewed_ds.n_samples,)
    assert truncated.shape == (int((skewed_ds.column(x) > 0).sum()),)


def test_welch_matches_scipy(rng):
    a = rng.normal(0.0, 1.0, 200)
    b = rng.normal(1.0, 2.0, 150)
    res = welch_test(a, b)
    ref = stats.ttest_ind(a, b, equal_var=False)
    assert res.t == pytest.approx(ref.statistic)
    assert res.p_value == pytest.approx(ref.pvalue)
    va, vb = a.var(ddof=1) / a.size, b.var(ddof=1) / b.size
    satterthwaite = (va + vb) ** 2 / (va ** 2 / (a.size - 1) + vb ** 2 / (b.size - 1))
    assert res.df == pytest.approx(satterthwaite)
    assert res.df == pytest.approx(ref.df)
    assert res.rejects(0.05)


def test_welch_undefined_cases():
    assert math.isnan(welch_test([1.0], [1.0, 2.0, 3.0]).p_value)
    same = welch_test([2.0, 2.0, 2.0], [2.0, 2.0])
    assert math.isnan(same.p_value)
    assert not same.rejects(0.05)
