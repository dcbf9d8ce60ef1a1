# FILE: fask_engine/search.py
# ======================================================================================
# FaskSearch: end-to-end orientation search
# --------------------------------------------------------------------------------------
# Stages, strictly in order, each handing the same Graph to the next:
#   1) bootstrap      skeleton (or caller graph) → undirected, nodes rebound by name
#   2) knowledge      drop doubly forbidden pairs, pre-orient settled pairs
#   3) orientation    skew-based fixpoint (OrientationEngine)
#   4) two-cycles     promote confirmed undirected pairs (TwoCycleDetector)
#
# Typical usage
# -------------
#   ds = DataSet.from_csv("data.csv")
#   fask = FaskSearch(ds, SearchConfig(two_cycle_alpha=0.01))
#   g = fask.search()
#   print(g)
#   print(fask.last_report.orientation.rounds)
# ======================================================================================

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import SearchConfig
from .data import DataSet, Variable
from .graph import Graph
from .knowledge import Knowledge
from .orientation import OrientationEngine, OrientationReport
from .preprocess import skewness
from .skeleton import SKELETONS, SkeletonSearch, bootstrap_graph
from .two_cycle import TwoCycleDetector
from .utils.logging_utils import get_logger

log = get_logger("fask.search")


@dataclass
class SearchReport:
    orientation: OrientationReport
    two_cycles: List[Tuple[Variable, Variable]] = field(default_factory=list)
    elapsed_seconds: float = 0.0


class FaskSearch:
    """
    Skew-based orientation search with two-cycle detection.

    Parameters
    ----------
    dataset : DataSet
        Centered continuous data.
    config : SearchConfig, optional
        Search parameters; defaults apply when omitted.
    knowledge : Knowledge, optional
        Background knowledge.
    skeleton : callable, optional
        Skeleton collaborator (DataSet, SkeletonConfig) -> Graph. Defaults to the
        method named by `config.skeleton_method`.
    initial_graph : Graph, optional
        Adjacencies to start from instead of running a skeleton search.
    """

    def __init__(
        self,
        dataset: DataSet,
        config: Optional[SearchConfig] = None,
        knowledge: Optional[Knowledge] = None,
        skeleton: Optional[SkeletonSearch] = None,
        initial_graph: Optional[Graph] = None,
    ):
        self.dataset = dataset
        self.config = config or SearchConfig()
        self.knowledge = knowledge or Knowledge()
        self.skeleton = skeleton or SKELETONS[self.config.skeleton_method]
        self.initial_graph = initial_graph
        self.last_report: Optional[SearchReport] = None

    def search(self) -> Graph:
        cfg = self.config
        t0 = time.time()
        log.info("FASK search over %d variables, %d samples", self.dataset.n_variables, self.dataset.n_samples)

        if cfg.verbose:
            for name, s in zip(self.dataset.names, skewness(self.dataset.values)):
                log.info("Skewness of %s = %.4f", name, s)

        graph = bootstrap_graph(
            self.dataset,
            self.knowledge,
            skeleton=self.skeleton,
            initial_graph=self.initial_graph,
            cfg=cfg.skeleton_config(self.knowledge),
        )
        log.info("Initial graph: %d adjacencies", len(graph))

        engine = OrientationEngine(self.dataset, self.knowledge, cfg.max_iterations, verbose=cfg.verbose)
        orientation = engine.run(graph)

        detector = TwoCycleDetector(self.dataset, cfg.two_cycle_alpha, cfg.depth, self.knowledge)
        promoted = detector.apply(graph)

        elapsed = time.time() - t0
        self.last_report = SearchReport(orientation, promoted, elapsed)
        log.info("FASK done in %.2fs: %d edges, %d two-cycle(s)", elapsed, len(graph), len(promoted))
        return graph
