# FILE: fask_engine/residuals.py
# ======================================================================================
# Residualizer: OLS residuals restricted to a row selection
# --------------------------------------------------------------------------------------
# Regress a target column on a conditioning set over the selected rows only and
# return the residuals aligned with those rows. No intercept: the data are centered,
# and an empty conditioning set returns the selected target values unchanged.
#
# A rank-deficient design raises NumericalError. Callers treat that as
# "this conditioning set is inconclusive", never as a fatal error.
# ======================================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .data import DataSet, Variable
from .errors import NumericalError


@dataclass(frozen=True)
class RowFilter:
    """Select rows k with direction * (values[k, column] - threshold) > 0."""
    column: int
    threshold: float = 0.0
    direction: int = +1

    def __post_init__(self) -> None:
        if self.direction not in (-1, 1):
            raise ValueError("direction must be +1 or -1.")

    @classmethod
    def positive(cls, v: Variable) -> "RowFilter":
        return cls(v.index, 0.0, +1)

    def rows(self, values: np.ndarray) -> np.ndarray:
        return np.flatnonzero(self.direction * (values[:, self.column] - self.threshold) > 0)


def residualize(y: np.ndarray, Z: np.ndarray) -> np.ndarray:
    """
    Residuals of regressing y on the columns of Z (no intercept).

    Shapes:
      y : [N]
      Z : [N, k]; k == 0 returns a copy of y.
    """
    y = np.asarray(y, dtype=float)
    Z = np.asarray(Z, dtype=float)
    if Z.ndim == 1:
        Z = Z[:, None]
    n, k = Z.shape
    if k == 0:
        return y.copy()
    if n == 0:
        raise NumericalError("No rows selected for regression.")
    if n < k:
        raise NumericalError(f"{k} regressors but only {n} rows.")
    if not (np.all(np.isfinite(Z)) and np.all(np.isfinite(y))):
        raise NumericalError(f"Non-finite values in regression ({k} regressors, {n} rows).")
    # Rank from the SVD of Z, not from Z'Z.
    try:
        beta, _, rank, _ = np.linalg.lstsq(Z, y, rcond=None)
    except np.linalg.LinAlgError as e:
        raise NumericalError(str(e)) from e
    if rank < k:
        raise NumericalError(f"Singular design matrix ({k} regressors, {n} rows, rank {rank}).")
    return y - Z @ beta


class Residualizer:
    """
    Residuals of one variable on a conditioning set, over all rows or a filtered subset.

    Parameters
    ----------
    dataset : DataSet
        Centered observation matrix; never modified.
    """

    def __init__(self, dataset: DataSet):
        self.dataset = dataset

    def rows(self, row_filter: Optional[RowFilter] = None) -> np.ndarray:
        if row_filter is None:
            return np.arange(self.dataset.n_samples)
        return row_filter.rows(self.dataset.values)

    def residuals(
        self,
        target: Variable,
        conditioning: Sequence[Variable],
        row_filter: Optional[RowFilter] = None,
    ) -> np.ndarray:
        if target in conditioning:
            raise ValueError(f"Conditioning set must not contain the target {target}.")
        rows = self.rows(row_filter)
        if rows.size == 0:
            raise NumericalError(f"Row filter selects no rows for {target}.")
        values = self.dataset.values
        y = values[rows, target.index]
        cols = np.asarray([v.index for v in conditioning], dtype=int)
        Z = values[np.ix_(rows, cols)]
        return residualize(y, Z)
