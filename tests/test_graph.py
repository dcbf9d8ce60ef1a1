from __future__ import annotations

import pytest

from fask_engine.data import Variable
from fask_engine.errors import InvalidGraphError
from fask_engine.graph import EdgeKind, Graph

X, Y, W = Variable("X", 0), Variable("Y", 1), Variable("W", 2)


def _graph() -> Graph:
    return Graph([X, Y, W])


def test_one_edge_per_pair():
    g = _graph()
    g.add_undirected(X, Y)
    g.add_directed(Y, X)
    assert len(g) == 1
    assert g.is_directed(Y, X)
    assert not g.is_directed(X, Y)
    assert not g.is_undirected(X, Y)

    g.add_bidirected(X, Y)
    assert g.kind(Y, X) is EdgeKind.BIDIRECTED
    assert g.edges_between(X, Y) == 1


def test_two_cycle_counts_as_two_edges():
    g = _graph()
    g.add_two_cycle(X, Y)
    assert g.edges_between(X, Y) == 2
    assert not g.is_directed(X, Y)
    assert g.parents(X) == [Y]
    assert g.parents(Y) == [X]
    assert g.children(X) == [Y]


def test_get_edge_orientation():
    g = _graph()
    g.add_directed(W, X)
    e = g.get_edge(X, W)
    assert (e.tail, e.head) == (W, X)
    assert e.points_towards(X)
    g.add_undirected(X, Y)
    assert g.get_edge(Y, X).u == Y


def test_parents_and_neighbors():
    g = _graph()
    g.add_directed(W, Y)
    g.add_undirected(X, Y)
    assert g.neighbors(Y) == [X, W]
    assert g.parents(Y) == [W]
    assert g.children(W) == [Y]


def test_self_loop_and_unknown_node_rejected():
    g = _graph()
    with pytest.raises(ValueError):
        g.add_directed(X, X)
    with pytest.raises(KeyError):
        g.add_undirected(X, Variable("Q", 7))


def test_json_round_trip():
    g = _graph()
    g.add_directed(X, Y)
    g.add_two_cycle(Y, W)
    g.add_bidirected(X, W)
    obj = g.to_json()
    assert {"from": "X", "to": "Y", "type": "-->"} in obj["edges"]
    h = Graph.from_json(obj)
    assert h.to_json() == obj


def test_from_json_rejects_unknown_type():
    with pytest.raises(InvalidGraphError):
        Graph.from_json({"nodes": ["X", "Y"], "edges": [{"from": "X", "to": "Y", "type": "o->"}]})


def test_undirected_copy_and_replace_nodes():
    g = _graph()
    g.add_directed(X, Y)
    u = g.undirected_copy()
    assert u.is_undirected(X, Y)
    assert g.is_directed(X, Y)

    renamed = [Variable("Y", 0), Variable("X", 1), Variable("W", 2)]
    r = u.replace_nodes(renamed)
    assert r.is_undirected(renamed[0], renamed[1])

    with pytest.raises(InvalidGraphError):
        u.replace_nodes([Variable("X", 0)])


def test_dot_export():
    g = _graph()
    g.add_directed(X, Y)
    g.add_two_cycle(Y, W)
    dot = g.to_dot()
    assert dot.startswith("digraph")
    assert "0 -> 1;" in dot
    assert "2 -> 1" in dot


def test_copy_is_independent():
    g = _graph()
    g.add_undirected(X, Y)
    h = g.copy()
    h.add_directed(X, Y)
    h.add_undirected(Y, W)
    assert g.is_undirected(X, Y)
    assert len(g) == 1 and len(h) == 2
