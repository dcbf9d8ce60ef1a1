from __future__ import annotations

import pytest

from fask_engine.data import Variable
from fask_engine.errors import InvalidGraphError
from fask_engine.graph import Graph
from fask_engine.knowledge import Knowledge
from fask_engine.skeleton import (
    SkeletonConfig,
    adjacency_skeleton,
    bootstrap_graph,
    score_skeleton,
)


def _adjacencies(g: Graph):
    return {frozenset((e.u.name, e.v.name)) for e in g.edges()}


CHAIN = {frozenset(("X", "Y")), frozenset(("Y", "Z"))}


@pytest.mark.parametrize("faithful", [True, False])
def test_score_skeleton_recovers_chain(gaussian_chain_ds, faithful):
    g = score_skeleton(gaussian_chain_ds, SkeletonConfig(faithfulness_assumed=faithful))
    assert _adjacencies(g) == CHAIN
    assert all(g.is_undirected(e.u, e.v) for e in g.edges())


def test_score_skeleton_symmetric_first_step(gaussian_chain_ds):
    g = score_skeleton(gaussian_chain_ds, SkeletonConfig(symmetric_first_step=True))
    assert _adjacencies(g) == CHAIN


def test_score_skeleton_respects_forbidden(gaussian_chain_ds):
    k = Knowledge.from_dict({"forbid": [["X", "Y"], ["Y", "X"]]})
    g = score_skeleton(gaussian_chain_ds, SkeletonConfig(knowledge=k))
    assert frozenset(("X", "Y")) not in _adjacencies(g)


@pytest.mark.parametrize("max_degree", [0, 1])
def test_score_skeleton_max_degree(gaussian_chain_ds, max_degree):
    g = score_skeleton(gaussian_chain_ds, SkeletonConfig(max_degree=max_degree))
    for v in gaussian_chain_ds.variables:
        assert len(g.neighbors(v)) <= max_degree


def test_score_skeleton_independent_pair(independent_ds):
    assert len(score_skeleton(independent_ds, SkeletonConfig())) == 0


def test_fisher_z_recovers_chain(gaussian_chain_ds):
    g = adjacency_skeleton(gaussian_chain_ds, SkeletonConfig(alpha=0.001))
    assert _adjacencies(g) == CHAIN


def test_fisher_z_depth_zero_keeps_marginal_dependence(gaussian_chain_ds):
    g = adjacency_skeleton(gaussian_chain_ds, SkeletonConfig(alpha=0.001, depth=0))
    assert len(g) == 3


def test_bootstrap_uses_initial_graph_undirected(skewed_ds):
    g0 = Graph([Variable("X", 5), Variable("Y", 9)])
    g0.add_directed(g0.node("Y"), g0.node("X"))
    g = bootstrap_graph(skewed_ds, initial_graph=g0)
    X, Y = skewed_ds.variables
    assert g.is_undirected(X, Y)
    assert g.nodes == skewed_ds.variables


def test_bootstrap_unknown_node(skewed_ds):
    g0 = Graph([Variable("X", 0), Variable("Q", 1)])
    with pytest.raises(InvalidGraphError):
        bootstrap_graph(skewed_ds, initial_graph=g0)


def test_bootstrap_skeleton_returning_none(skewed_ds):
    with pytest.raises(InvalidGraphError):
        bootstrap_graph(skewed_ds, skeleton=lambda ds, cfg: None)


def test_bootstrap_applies_knowledge(gaussian_chain_ds):
    X, Y, Z = gaussian_chain_ds.variables
    g0 = Graph(gaussian_chain_ds.variables)
    g0.add_undirected(X, Y)
    g0.add_undirected(Y, Z)
    g0.add_undirected(X, Z)
    k = Knowledge.from_dict({"require": [["Z", "Y"]], "forbid": [["X", "Z"], ["Z", "X"]]})
    g = bootstrap_graph(gaussian_chain_ds, k, initial_graph=g0)
    assert g.is_directed(Z, Y)
    assert g.is_undirected(X, Y)
    assert not g.has_edge(X, Z)


def test_bootstrap_calls_skeleton_with_config(skewed_ds):
    seen = {}

    def fake(ds, cfg):
        seen["cfg"] = cfg
        g = Graph(ds.variables)
        g.add_undirected(*ds.variables)
        return g

    cfg = SkeletonConfig(penalty_discount=3.0)
    g = bootstrap_graph(skewed_ds, skeleton=fake, cfg=cfg)
    assert seen["cfg"] is cfg
    assert len(g) == 1
