# FILE: fask_engine/two_cycle.py
# ======================================================================================
# Two-cycle detector
# --------------------------------------------------------------------------------------
# Runs once, after orientation, over edges that are still undirected and that
# knowledge neither forbids nor orients. For a pair (X, Y):
#
#   adj = (neighbors of X not joined to X by a two-cycle or undirected edge)
#       ∪ (same for Y)  − tier-1 members − {X, Y}
#
# Every subset Z of adj up to `depth` (empty set included) is tested. For each Z
# both orderings must reject in a Welch test at `alpha`:
#
#   ordering 1: ratio_sample(X, Y | Z, all rows)  vs  ratio_sample(X, Y | Z, rows X > 0)
#   ordering 2: ratio_sample(Y, X | Z, all rows)  vs  ratio_sample(Y, X | Z, rows Y > 0)
#
# The first subset that does not confirm ends the pair: it is not a two-cycle.
# Confirmed pairs are replaced by a TWO_CYCLE edge (X --> Y and Y --> X).
# ======================================================================================

from __future__ import annotations

import itertools
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from .data import DataSet, Variable
from .errors import ConfigurationError, NumericalError
from .graph import Graph
from .knowledge import Knowledge, drop_protected, forbidden, orients
from .residuals import Residualizer
from .statistics import ratio_sample, welch_test
from .utils.logging_utils import get_logger

log = get_logger("fask.two_cycle")

PairTester = Callable[[Variable, Variable, Sequence[Variable]], bool]


def depth_choices(n: int, depth: int) -> Iterator[Tuple[int, ...]]:
    """
    Index combinations of range(n) with sizes 0..min(depth, n), smallest first.

    Each call returns a fresh generator, so an enumeration can be restarted.
    """
    if n < 0 or depth < 0:
        raise ValueError("n and depth must be >= 0.")
    for size in range(min(depth, n) + 1):
        yield from itertools.combinations(range(n), size)


def candidate_adjacents(graph: Graph, knowledge: Knowledge, x: Variable, y: Variable) -> List[Variable]:
    """Conditioning candidates for the pair (x, y), ordered by column index."""
    def _usable(node: Variable) -> List[Variable]:
        adj = drop_protected(knowledge, graph.neighbors(node))
        return [a for a in adj
                if graph.edges_between(a, node) != 2 and not graph.is_undirected(a, node)]

    adj = set(_usable(x)) | set(_usable(y))
    adj.discard(x)
    adj.discard(y)
    return sorted(adj, key=lambda v: v.index)


class TwoCycleDetector:
    """
    Conjunctive two-cycle test over depth-bounded conditioning subsets.

    Parameters
    ----------
    dataset : DataSet
        Centered observation matrix.
    alpha : float
        Welch test significance level, 0 < alpha < 1.
    depth : int
        Largest conditioning subset size (>= 0).
    knowledge : Knowledge, optional
        Background knowledge; empty by default.
    tester : callable, optional
        Replacement for `pair_rejects` with signature (X, Y, Z) -> bool.
    """

    def __init__(
        self,
        dataset: DataSet,
        alpha: float = 0.05,
        depth: int = 1000,
        knowledge: Optional[Knowledge] = None,
        tester: Optional[PairTester] = None,
    ):
        if not (0.0 < alpha < 1.0):
            raise ConfigurationError(f"Significance out of range: {alpha}")
        if depth < 0:
            raise ConfigurationError(f"depth must be >= 0, got {depth}")
        self.dataset = dataset
        self.alpha = float(alpha)
        self.depth = int(depth)
        self.knowledge = knowledge or Knowledge()
        self._residualizer = Residualizer(dataset)
        self._tester: PairTester = tester or self.pair_rejects

    # ------------------------------ Tests -------------------------------------------

    def _ordering_rejects(self, x: Variable, y: Variable, Z: Sequence[Variable]) -> bool:
        try:
            full = ratio_sample(self._residualizer, x, y, Z)
            truncated = ratio_sample(self._residualizer, x, y, Z, condition=x)
        except NumericalError as e:
            log.debug("Inconclusive %s, %s | %s: %s", x, y, [z.name for z in Z], e)
            return False
        res = welch_test(truncated, full)
        log.debug("Welch %s, %s | %s: t=%.4g df=%.4g p=%.4g",
                  x, y, [z.name for z in Z], res.t, res.df, res.p_value, extra={"pair": [x.name, y.name]})
        return res.rejects(self.alpha)

    def pair_rejects(self, x: Variable, y: Variable, Z: Sequence[Variable]) -> bool:
        """True when both orderings reject equality of the full and truncated means."""
        return self._ordering_rejects(x, y, Z) and self._ordering_rejects(y, x, Z)

    def is_two_cycle(self, graph: Graph, x: Variable, y: Variable) -> bool:
        adj = candidate_adjacents(graph, self.knowledge, x, y)
        for choice in depth_choices(len(adj), self.depth):
            Z = [adj[i] for i in choice]
            if not self._tester(x, y, Z):
                return False
        return True

    # ------------------------------ Graph pass --------------------------------------

    def apply(self, graph: Graph) -> List[Tuple[Variable, Variable]]:
        """Promote confirmed undirected pairs to two-cycles; returns the promoted pairs."""
        k = self.knowledge
        promoted: List[Tuple[Variable, Variable]] = []
        for edge in graph.edges():
            x, y = edge.u, edge.v
            if forbidden(k, x, y):
                continue
            if not graph.is_undirected(x, y) or orients(k, x, y) or orients(k, y, x):
                continue
            if self.is_two_cycle(graph, x, y):
                log.info("2-cycle or confounder: %s <=> %s", x, y, extra={"pair": [x.name, y.name]})
                graph.add_two_cycle(x, y)
                promoted.append((x, y))
        return promoted
