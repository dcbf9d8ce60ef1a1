"""
FASK engine: skew-based cyclic causal orientation

Given continuous observational data, the search runs four stages in order:
1) bootstrap    → undirected skeleton (SEM-BIC or Fisher-Z search, or a caller graph)
2) knowledge    → forbidden pairs removed, settled pairs pre-oriented
3) orientation  → skew-based left-right statistic iterated to a fixpoint
4) two-cycles   → still-undirected pairs promoted to feedback loops (Welch tests)

Design goals
------------
- Library-first: `FaskSearch(dataset, config).search()` returns a Graph.
- Config-driven: the CLI reads YAML from /configs with JSON overrides.
- Logged: every stage logs to `fask.<module>`; the host configures handlers.

License: MIT
"""
from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__version__ = "0.1.0"

from .config import SearchConfig
from .data import DataSet, Variable
from .errors import ConfigurationError, FaskError, InvalidGraphError, NumericalError
from .graph import Edge, EdgeKind, Graph
from .knowledge import Knowledge
from .search import FaskSearch, SearchReport


def get_version() -> str:
    try:
        return version("fask-engine")
    except PackageNotFoundError:
        return __version__


__all__ = [
    "ConfigurationError",
    "DataSet",
    "Edge",
    "EdgeKind",
    "FaskError",
    "FaskSearch",
    "Graph",
    "InvalidGraphError",
    "Knowledge",
    "NumericalError",
    "SearchConfig",
    "SearchReport",
    "Variable",
    "get_version",
]
