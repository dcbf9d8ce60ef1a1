# FILE: fask_engine/statistics.py
# ======================================================================================
# Skew-based asymmetry statistic and the two-sample primitives of the two-cycle test
# --------------------------------------------------------------------------------------
# leftright(x, y, Z)
#   ry = residuals of y on [x] + Z,  a = cov(x, y) / var(x)
#   E(dir) = mean of x_k * ry_k over rows with sign(x_k) = dir and
#            sign(|a| x_k + ry_k) = -dir
#   leftright = E(+1) - E(-1);  x --> y is favored when the value is > 0.
#   An empty tail for either sign (or var(x) == 0) gives nan, which never
#   compares > 0.
#
# ratio_sample(...) / welch_test(...)
#   Per-row samples rx * ry / mean(rx^2) over all rows or over the rows where the
#   condition variable is positive, and Welch's unequal-variance t-test between them.
# ======================================================================================

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from scipy import stats

from .data import Variable
from .errors import NumericalError
from .residuals import Residualizer, RowFilter, residualize


def _tail_mean(a: float, x: np.ndarray, ry: np.ndarray, direction: int) -> float:
    y_hat = abs(a) * x + ry
    mask = (x * direction > 0) & (y_hat * direction < 0)
    n = int(mask.sum())
    if n == 0:
        return math.nan
    return float(np.dot(x[mask], ry[mask]) / n)


def leftright(x: np.ndarray, y: np.ndarray, Z: Optional[np.ndarray] = None) -> float:
    """
    Signed left-right statistic for x --> y given conditioning columns Z [N, k].

    Raises NumericalError when [x, Z] is a singular design.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if Z is None or np.size(Z) == 0:
        cond = x[:, None]
    else:
        Z = np.asarray(Z, dtype=float)
        cond = np.column_stack([x, Z])
    ry = residualize(y, cond)

    xc = x - x.mean()
    var_x = float(np.dot(xc, xc))
    if var_x <= 0.0:
        return math.nan
    a = float(np.dot(xc, y - y.mean())) / var_x

    return _tail_mean(a, x, ry, +1) - _tail_mean(a, x, ry, -1)


def ratio_sample(
    residualizer: Residualizer,
    x: Variable,
    y: Variable,
    Z: Sequence[Variable],
    condition: Optional[Variable] = None,
) -> np.ndarray:
    """
    rx * ry / mean(rx^2), with rx, ry the residuals of x and y on Z.

    Rows are all rows when `condition` is None, otherwise the rows where the
    condition variable's (centered) value is positive.
    """
    if x in Z or y in Z:
        raise ValueError("Z should not contain x or y.")
    row_filter = None if condition is None else RowFilter.positive(condition)
    rx = residualizer.residuals(x, Z, row_filter)
    ry = residualizer.residuals(y, Z, row_filter)
    erxx = float(np.mean(rx * rx))
    if erxx <= 0.0:
        raise NumericalError(f"Residual variance of {x} is zero.")
    return rx * ry / erxx


@dataclass(frozen=True)
class WelchResult:
    t: float
    df: float
    p_value: float

    def rejects(self, alpha: float) -> bool:
        # nan compares False, so a degenerate test never rejects.
        return bool(self.p_value < alpha)


_UNDEFINED = WelchResult(math.nan, math.nan, math.nan)


def welch_test(a: np.ndarray, b: np.ndarray) -> WelchResult:
    """
    Two-sided Welch t-test for a difference in means (unequal variances).

    Fewer than two values in either sample, or zero variance in both, is undefined.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    na, nb = a.size, b.size
    if na < 2 or nb < 2:
        return _UNDEFINED
    if np.var(a, ddof=1) + np.var(b, ddof=1) <= 0.0:
        return _UNDEFINED

    with np.errstate(divide="ignore", invalid="ignore"):
        res = stats.ttest_ind(a, b, equal_var=False)
    return WelchResult(float(res.statistic), float(res.df), float(res.pvalue))
