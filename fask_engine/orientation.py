# FILE: fask_engine/orientation.py
# ======================================================================================
# Orientation engine: worklist fixpoint over skew-based edge decisions
# --------------------------------------------------------------------------------------
# Per pair {X, Y}:
#   1. both directions forbidden           → skip
#   2. knowledge orients X --> Y (or back)  → set it, mark the head, no statistics
#   3. cxy = leftright(x, y | Zy) > 0,  cyx = leftright(y, x | Zx) > 0
#      with Zx / Zy the current parents of X / Y (minus the other endpoint and
#      tier-1 members)
#   4. first rule that changes the edge wins:
#        cxy and not cyx              → X --> Y      (Y changed)
#        cyx and not cxy              → Y --> X      (X changed)
#        neither, edge not <->        → X <-> Y      (both changed)
#        neither, edge not ---        → X --- Y      (both changed)
#      cxy and cyx together leave the edge as it is.
#
# run(): one pass over every edge with empty conditioning sets, then up to
# max_iterations rounds. Every variable is on the worklist for the first round, so
# each edge is revisited once with the parent sets as conditioning sets. A round
# reads the previous round's changed set and fills a fresh one; undirected and
# bidirected edges are revisited when either endpoint changed, directed edges only
# when their head changed. An empty changed set ends the loop. A knowledge-forced
# head is marked on every visit, so required edges keep their head on the worklist
# until the iteration bound.
# ======================================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

import numpy as np

from .data import DataSet, Variable
from .errors import ConfigurationError, NumericalError
from .graph import EdgeKind, Graph
from .knowledge import Knowledge, drop_protected, forbidden, orients
from .statistics import leftright
from .utils.logging_utils import get_logger

log = get_logger("fask.orientation")


@dataclass
class OrientationReport:
    """Changed-set size after the initial pass and after each round."""
    changed_sizes: List[int] = field(default_factory=list)
    rounds: int = 0
    converged: bool = False
    numerical_failures: int = 0


class OrientationEngine:
    """
    Assigns edge directions in place.

    Parameters
    ----------
    dataset : DataSet
        Centered observation matrix.
    knowledge : Knowledge, optional
        Background knowledge; empty by default.
    max_iterations : int
        Upper bound on fixpoint rounds after the initial pass.
    verbose : bool
        Log each decision at INFO instead of DEBUG.
    """

    def __init__(
        self,
        dataset: DataSet,
        knowledge: Optional[Knowledge] = None,
        max_iterations: int = 15,
        verbose: bool = False,
    ):
        if max_iterations < 0:
            raise ConfigurationError(f"max_iterations must be >= 0, got {max_iterations}")
        self.dataset = dataset
        self.knowledge = knowledge or Knowledge()
        self.max_iterations = int(max_iterations)
        self._level = logging.INFO if verbose else logging.DEBUG
        self._failures = 0

    # ------------------------------ Public API ----------------------------------------

    def run(self, graph: Graph) -> OrientationReport:
        report = OrientationReport()
        self._failures = 0

        changed: Set[Variable] = set()
        for edge in graph.edges():
            self.orient_pair(graph, edge.u, edge.v, [], [], changed)
        report.changed_sizes.append(len(changed))
        changed.update(graph.nodes)

        for _ in range(self.max_iterations):
            if not changed:
                break
            current, changed = changed, set()
            report.rounds += 1

            for edge in graph.edges():
                if edge.kind is EdgeKind.DIRECTED:
                    x, y = edge.tail, edge.head
                    if y not in current:
                        continue
                elif edge.kind in (EdgeKind.UNDIRECTED, EdgeKind.BIDIRECTED):
                    x, y = edge.u, edge.v
                    if x not in current and y not in current:
                        continue
                else:
                    continue
                self.orient_pair(graph, x, y, graph.parents(x), graph.parents(y), changed)

            report.changed_sizes.append(len(changed))

        report.converged = not changed
        report.numerical_failures = self._failures
        log.info("Orientation finished after %d round(s); changed-set sizes %s%s",
                 report.rounds, report.changed_sizes, "" if report.converged else " (iteration bound hit)")
        return report

    def orient_pair(
        self,
        graph: Graph,
        x: Variable,
        y: Variable,
        Zx: Sequence[Variable],
        Zy: Sequence[Variable],
        changed: Set[Variable],
    ) -> bool:
        """Apply one transition to the pair (x, y). Returns True if the edge changed."""
        k = self.knowledge
        if forbidden(k, x, y):
            return False
        if orients(k, x, y):
            return self._force_directed(graph, x, y, changed)
        if orients(k, y, x):
            return self._force_directed(graph, y, x, changed)

        Zx = drop_protected(k, [z for z in Zx if z != y and z != x])
        Zy = drop_protected(k, [z for z in Zy if z != x and z != y])

        try:
            cxy = self.statistic(x, y, Zy) > 0
            cyx = self.statistic(y, x, Zx) > 0
        except NumericalError as e:
            self._failures += 1
            log.warning("Singular regression orienting %s, %s (Zx=%s, Zy=%s): %s; edge left as is",
                        x, y, [z.name for z in Zx], [z.name for z in Zy], e,
                        extra={"pair": [x.name, y.name]})
            return False

        log.log(self._level, "%s, %s | Zx=%s Zy=%s: cxy=%s cyx=%s",
                x, y, [z.name for z in Zx], [z.name for z in Zy], cxy, cyx,
                extra={"pair": [x.name, y.name]})

        if cxy and not cyx:
            return self._set_directed(graph, x, y, changed)
        if cyx and not cxy:
            return self._set_directed(graph, y, x, changed)
        if not cxy and not cyx:
            if not graph.is_bidirected(x, y):
                graph.add_bidirected(x, y)
                changed.update((x, y))
                return True
            graph.add_undirected(x, y)
            changed.update((x, y))
            return True
        return False

    def statistic(self, x: Variable, y: Variable, Z: Sequence[Variable]) -> float:
        """leftright(x, y | Z) on the dataset columns."""
        d = self.dataset
        Zm = d.columns(Z) if Z else np.empty((d.n_samples, 0))
        return leftright(d.column(x), d.column(y), Zm)

    # ------------------------------ Helpers -------------------------------------------

    @staticmethod
    def _force_directed(graph: Graph, tail: Variable, head: Variable, changed: Set[Variable]) -> bool:
        changed.add(head)
        if graph.is_directed(tail, head):
            return False
        graph.add_directed(tail, head)
        return True

    @staticmethod
    def _set_directed(graph: Graph, tail: Variable, head: Variable, changed: Set[Variable]) -> bool:
        if graph.is_directed(tail, head):
            return False
        graph.add_directed(tail, head)
        changed.add(head)
        return True
