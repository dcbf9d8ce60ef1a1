# FILE: fask_engine/data.py
# ======================================================================================
# Observation matrix and variable identities
# --------------------------------------------------------------------------------------
#   Variable  : frozen (name, column index) pair; identity-equality only
#   DataSet   : read-only [N, D] float matrix + ordered variables
#
# Construct from NumPy, a pandas DataFrame, or a CSV file. Constructors center the
# columns by default; the nonparanormal transform is opt-in.
# ======================================================================================

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .preprocess import center as _center
from .preprocess import nonparanormal as _nonparanormal


@dataclass(frozen=True)
class Variable:
    name: str
    index: int

    def __str__(self) -> str:
        return self.name


class DataSet:
    """
    Read-only observation matrix.

    Parameters
    ----------
    values : np.ndarray [N, D]
        Samples in rows, variables in columns. Assumed centered.
    variables : list[Variable]
        One variable per column, `variables[j].index == j`.
    """

    def __init__(self, values: np.ndarray, variables: Sequence[Variable]):
        values = np.array(values, dtype=float)
        if values.ndim != 2:
            raise ValueError("values must be 2D [N, D].")
        if len(variables) != values.shape[1]:
            raise ValueError("variables length must equal number of columns.")
        for j, v in enumerate(variables):
            if v.index != j:
                raise ValueError(f"Variable {v.name} has index {v.index}, expected {j}.")
        values.flags.writeable = False
        self._values = values
        self._variables: List[Variable] = list(variables)
        self._by_name: Dict[str, Variable] = {v.name: v for v in self._variables}
        if len(self._by_name) != len(self._variables):
            raise ValueError("Variable names must be unique.")

    # ---- constructors ----

    @classmethod
    def from_array(
        cls,
        X: np.ndarray,
        names: Optional[Sequence[str]] = None,
        center: bool = True,
        nonparanormal: bool = False,
    ) -> "DataSet":
        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ValueError("X must be 2D [N, D].")
        names = list(names) if names is not None else [f"X{i}" for i in range(X.shape[1])]
        if len(names) != X.shape[1]:
            raise ValueError("names length must equal number of columns in X.")
        if nonparanormal:
            X = _nonparanormal(X)
        if center:
            X = _center(X)
        return cls(X, [Variable(str(n), i) for i, n in enumerate(names)])

    @classmethod
    def from_frame(cls, df: pd.DataFrame, center: bool = True, nonparanormal: bool = False) -> "DataSet":
        numeric = df.select_dtypes(include=[np.number])
        dropped = [c for c in df.columns if c not in numeric.columns]
        if dropped:
            raise ValueError(f"Non-numeric columns are not supported: {dropped}")
        return cls.from_array(numeric.to_numpy(dtype=float), names=[str(c) for c in numeric.columns],
                              center=center, nonparanormal=nonparanormal)

    @classmethod
    def from_csv(cls, path: str | Path, center: bool = True, nonparanormal: bool = False, **read_kwargs) -> "DataSet":
        df = pd.read_csv(path, **read_kwargs)
        return cls.from_frame(df, center=center, nonparanormal=nonparanormal)

    # ---- accessors ----

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def variables(self) -> List[Variable]:
        return list(self._variables)

    @property
    def names(self) -> List[str]:
        return [v.name for v in self._variables]

    @property
    def n_samples(self) -> int:
        return self._values.shape[0]

    @property
    def n_variables(self) -> int:
        return self._values.shape[1]

    def variable(self, name: str) -> Variable:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Unknown variable name: {name}") from None

    def column(self, v: Variable) -> np.ndarray:
        return self._values[:, v.index]

    def columns(self, vs: Iterable[Variable]) -> np.ndarray:
        """[N, k] matrix of the given variables' columns (k may be 0)."""
        idx = [v.index for v in vs]
        return self._values[:, idx]

    def __repr__(self) -> str:
        return f"DataSet(n_samples={self.n_samples}, variables={self.names})"
