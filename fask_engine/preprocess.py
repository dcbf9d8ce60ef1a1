"""
Column-wise preprocessing for observation matrices.

The orientation engine assumes centered columns; these helpers produce them.
`nonparanormal` is opt-in (data.nonparanormal in the config).
"""
from __future__ import annotations

import numpy as np
from scipy import stats


def center(X: np.ndarray) -> np.ndarray:
    """Subtract column means. Returns a new float array."""
    X = np.asarray(X, dtype=float)
    return X - X.mean(axis=0, keepdims=True)


def nonparanormal(X: np.ndarray) -> np.ndarray:
    """
    Replace each column by its normal scores, scaled back to the column's standard deviation.

    Ties share the average rank. Constant columns are left at zero.
    """
    X = np.asarray(X, dtype=float)
    n = X.shape[0]
    out = np.empty_like(X)
    for j in range(X.shape[1]):
        col = X[:, j]
        scores = stats.norm.ppf(stats.rankdata(col) / (n + 1))
        sd_scores = scores.std(ddof=1) if n > 1 else 0.0
        sd_col = col.std(ddof=1) if n > 1 else 0.0
        if sd_scores < 1e-12 or sd_col < 1e-12:
            out[:, j] = 0.0
        else:
            out[:, j] = scores * (sd_col / sd_scores)
    return out


def skewness(X: np.ndarray) -> np.ndarray:
    """Per-column sample skewness."""
    return np.atleast_1d(stats.skew(np.asarray(X, dtype=float), axis=0))
