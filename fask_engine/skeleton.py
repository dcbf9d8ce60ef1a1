# FILE: fask_engine/skeleton.py
# ======================================================================================
# Skeleton bootstrap: adjacencies the orientation engine starts from
# --------------------------------------------------------------------------------------
# A skeleton collaborator is any callable (DataSet, SkeletonConfig) -> Graph. Only its
# adjacencies are used: bootstrap_graph() makes every edge undirected, rebinds the
# nodes to the dataset's variables by name and then applies knowledge.
#
# Built-in collaborators
# ----------------------
# score_skeleton (method "sem_bic", default)
#   Greedy forward/backward search over undirected adjacencies using node-wise
#   Gaussian BIC local scores (lower is better):
#       score(i | P) = n * log(sigma^2(i | P)) + penalty_discount * |P| * log(n)
#   The gain of the edge i --- j on node i is score(i | P_i) - score(i | P_i + j).
#   Forward: add the best edge with positive gain until none is left.
#   Backward: remove the edge whose presence helps least while removal improves.
#
# adjacency_skeleton (method "fisher_z")
#   PC-style level-wise adjacency search: remove i --- j when some subset S of the
#   current neighbors of i (|S| = l, l = 0..depth) makes the Fisher-Z partial
#   correlation test accept independence at `alpha`.
#
# Both skip pairs that knowledge forbids in both directions.
# ======================================================================================

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

import numpy as np
from scipy.stats import norm

from .data import DataSet, Variable
from .errors import ConfigurationError, InvalidGraphError, NumericalError
from .graph import Graph
from .knowledge import Knowledge, forbidden, orients
from .residuals import residualize
from .utils.logging_utils import get_logger

log = get_logger("fask.skeleton")


@dataclass
class SkeletonConfig:
    penalty_discount: float = 1.0
    max_degree: int = -1
    faithfulness_assumed: bool = True
    symmetric_first_step: bool = False
    alpha: float = 0.01
    depth: int = 1000
    knowledge: Knowledge = field(default_factory=Knowledge)


SkeletonSearch = Callable[[DataSet, SkeletonConfig], Graph]


def _allowed_pairs(dataset: DataSet, knowledge: Knowledge) -> List[Tuple[Variable, Variable]]:
    return [(a, b) for a, b in itertools.combinations(dataset.variables, 2)
            if not forbidden(knowledge, a, b)]


# --------------------------------------------------------------------------------------
# Score-based search (SEM-BIC)
# --------------------------------------------------------------------------------------

class _LocalScore:
    """Cached node-wise Gaussian BIC, keyed by (node index, parent index set)."""

    def __init__(self, dataset: DataSet, penalty_discount: float):
        self.X = dataset.values
        self.n = dataset.n_samples
        self.penalty = float(penalty_discount)
        self._cache: Dict[Tuple[int, FrozenSet[int]], float] = {}

    def __call__(self, i: int, parents: FrozenSet[int]) -> float:
        key = (i, parents)
        if key not in self._cache:
            self._cache[key] = self._compute(i, parents)
        return self._cache[key]

    def _compute(self, i: int, parents: FrozenSet[int]) -> float:
        cols = sorted(parents)
        try:
            r = residualize(self.X[:, i], self.X[:, cols])
        except NumericalError:
            return math.inf
        sigma2 = max(float(np.mean(r * r)), 1e-300)
        return self.n * math.log(sigma2) + self.penalty * len(cols) * math.log(self.n)


def score_skeleton(dataset: DataSet, cfg: SkeletonConfig) -> Graph:
    """
    Greedy SEM-BIC adjacency search.

    Parameters
    ----------
    dataset : DataSet
        Centered data.
    cfg : SkeletonConfig
        penalty_discount, max_degree (-1 = unbounded), faithfulness_assumed,
        symmetric_first_step and knowledge are used.

    Returns
    -------
    Graph
        Undirected graph over the dataset's variables.
    """
    if cfg.penalty_discount <= 0:
        raise ConfigurationError(f"penalty_discount must be > 0, got {cfg.penalty_discount}")
    score = _LocalScore(dataset, cfg.penalty_discount)
    adj: Dict[int, Set[int]] = {v.index: set() for v in dataset.variables}

    def node_gain(i: int, j: int) -> float:
        without = frozenset(adj[i] - {j})
        return score(i, without) - score(i, without | {j})

    def edge_gain(i: int, j: int) -> float:
        gi, gj = node_gain(i, j), node_gain(j, i)
        if cfg.symmetric_first_step:
            return 0.5 * (gi + gj)
        return max(gi, gj)

    def has_room(i: int) -> bool:
        return cfg.max_degree < 0 or len(adj[i]) < cfg.max_degree

    candidates = _allowed_pairs(dataset, cfg.knowledge)
    if cfg.faithfulness_assumed:
        candidates = [(a, b) for a, b in candidates if edge_gain(a.index, b.index) > 0]

    g = Graph(dataset.variables)

    # Forward phase
    while True:
        best: Optional[Tuple[Variable, Variable]] = None
        best_gain = 0.0
        for a, b in candidates:
            i, j = a.index, b.index
            if j in adj[i] or not (has_room(i) and has_room(j)):
                continue
            gain = edge_gain(i, j)
            if gain > best_gain:
                best, best_gain = (a, b), gain
        if best is None:
            break
        a, b = best
        adj[a.index].add(b.index)
        adj[b.index].add(a.index)
        g.add_undirected(a, b)
        log.debug("Insert %s --- %s (gain %.4g)", a, b, best_gain)

    # Backward phase
    while True:
        worst = None
        worst_gain = 0.0
        for e in g.edges():
            gain = edge_gain(e.u.index, e.v.index)
            if gain < worst_gain:
                worst, worst_gain = e, gain
        if worst is None:
            break
        adj[worst.u.index].discard(worst.v.index)
        adj[worst.v.index].discard(worst.u.index)
        g.remove_edge(worst.u, worst.v)
        log.debug("Delete %s --- %s (gain %.4g)", worst.u, worst.v, worst_gain)

    log.info("SEM-BIC skeleton: %d adjacencies over %d variables", len(g), dataset.n_variables)
    return g


# --------------------------------------------------------------------------------------
# Constraint-based search (Fisher-Z)
# --------------------------------------------------------------------------------------

def _standardize(X: np.ndarray) -> np.ndarray:
    mu = X.mean(axis=0, keepdims=True)
    sd = X.std(axis=0, ddof=1, keepdims=True)
    sd = np.where(sd < 1e-12, 1.0, sd)
    return (X - mu) / sd


def fisher_z_pvalue(Xz: np.ndarray, i: int, j: int, cond: Sequence[int]) -> float:
    """Two-sided Fisher-Z p-value of the partial correlation of columns i, j given cond."""
    n = Xz.shape[0]
    try:
        ri = residualize(Xz[:, i], Xz[:, list(cond)])
        rj = residualize(Xz[:, j], Xz[:, list(cond)])
    except NumericalError:
        # Undecidable: keep the adjacency.
        return 0.0
    denom = float(np.linalg.norm(ri) * np.linalg.norm(rj))
    r = 0.0 if denom < 1e-12 else float(np.clip(ri.dot(rj) / denom, -0.999999, 0.999999))
    dof = max(1, n - len(cond) - 3)
    z = 0.5 * math.log((1 + r) / (1 - r)) * math.sqrt(dof)
    return float(2.0 * norm.sf(abs(z)))


def adjacency_skeleton(dataset: DataSet, cfg: SkeletonConfig) -> Graph:
    """PC adjacency phase with Fisher-Z tests; returns an undirected graph."""
    if not (0.0 < cfg.alpha < 1.0):
        raise ConfigurationError(f"alpha must be in (0, 1), got {cfg.alpha}")
    Xz = _standardize(np.asarray(dataset.values))

    g = Graph(dataset.variables)
    for a, b in _allowed_pairs(dataset, cfg.knowledge):
        g.add_undirected(a, b)

    level = 0
    while level <= cfg.depth:
        testable = False
        adj = {v: g.neighbors(v) for v in dataset.variables}
        for a in dataset.variables:
            for b in adj[a]:
                if b.index <= a.index or not g.has_edge(a, b):
                    continue
                cand = [c.index for c in adj[a] if c != b]
                if len(cand) < level:
                    continue
                testable = True
                for S in itertools.combinations(cand, level):
                    p = fisher_z_pvalue(Xz, a.index, b.index, S)
                    if p >= cfg.alpha:
                        log.debug("sep(%s, %s) with S=%s (p=%.3g, l=%d)",
                                  a, b, [dataset.variables[k].name for k in S], p, level)
                        g.remove_edge(a, b)
                        break
        if not testable:
            break
        level += 1

    log.info("Fisher-Z skeleton: %d adjacencies over %d variables", len(g), dataset.n_variables)
    return g


SKELETONS: Dict[str, SkeletonSearch] = {
    "sem_bic": score_skeleton,
    "fisher_z": adjacency_skeleton,
}


# --------------------------------------------------------------------------------------
# Bootstrap
# --------------------------------------------------------------------------------------

def bootstrap_graph(
    dataset: DataSet,
    knowledge: Optional[Knowledge] = None,
    skeleton: Optional[SkeletonSearch] = None,
    initial_graph: Optional[Graph] = None,
    cfg: Optional[SkeletonConfig] = None,
) -> Graph:
    """
    Undirected starting graph over the dataset's variables, with knowledge applied.

    `initial_graph`, when given, is used instead of running a skeleton search.
    Pairs forbidden in both directions are removed; pairs that knowledge orients
    come back directed.
    """
    knowledge = knowledge or Knowledge()
    if cfg is None:
        cfg = SkeletonConfig(knowledge=knowledge)

    if initial_graph is not None:
        g0 = initial_graph
        log.info("Using caller-supplied initial graph (%d edges)", len(g0))
    else:
        search = skeleton or score_skeleton
        g0 = search(dataset, cfg)
    if g0 is None:
        raise InvalidGraphError("Skeleton search returned no graph.")
    if not isinstance(g0, Graph):
        raise InvalidGraphError(f"Expected a Graph, got {type(g0).__name__}.")

    g = g0.undirected_copy().replace_nodes(dataset.variables)

    for e in g.edges():
        x, y = e.u, e.v
        if forbidden(knowledge, x, y):
            g.remove_edge(x, y)
        elif orients(knowledge, x, y):
            g.add_directed(x, y)
        elif orients(knowledge, y, x):
            g.add_directed(y, x)
    return g
