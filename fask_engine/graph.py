# FILE: fask_engine/graph.py
# ======================================================================================
# Mixed graph with at most one classified edge per unordered pair
# --------------------------------------------------------------------------------------
# Edge kinds
# ----------
#   UNDIRECTED   A --- B   adjacency, direction unresolved
#   DIRECTED     A --> B   tail at A, arrowhead at B
#   BIDIRECTED   A <-> B   neither direction favored (confounder marker)
#   TWO_CYCLE    A <=> B   A --> B and B --> A coexisting (feedback loop)
#
# Edges are stored in a dict keyed by the ordered (lower index, higher index) pair,
# so adding any edge for a pair replaces whatever the pair held before. get_edge(a, b)
# returns symmetric kinds oriented from a; directed edges always come back tail first.
#
# Export: JSON (round-trips through from_json) and Graphviz DOT.
# ======================================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .data import Variable
from .errors import InvalidGraphError


class EdgeKind(str, Enum):
    UNDIRECTED = "---"
    DIRECTED = "-->"
    BIDIRECTED = "<->"
    TWO_CYCLE = "<=>"


@dataclass(frozen=True)
class Edge:
    """
    Edge between u and v. DIRECTED edges always carry the tail in u and the head
    in v; the other kinds are symmetric.
    """
    u: Variable
    v: Variable
    kind: EdgeKind

    def reversed(self) -> "Edge":
        if self.kind is EdgeKind.DIRECTED:
            return self
        return Edge(self.v, self.u, self.kind)

    @property
    def tail(self) -> Optional[Variable]:
        return self.u if self.kind is EdgeKind.DIRECTED else None

    @property
    def head(self) -> Optional[Variable]:
        return self.v if self.kind is EdgeKind.DIRECTED else None

    def points_towards(self, node: Variable) -> bool:
        return self.kind is EdgeKind.DIRECTED and self.v == node

    def as_tuple(self) -> Tuple[str, str, str]:
        return (self.u.name, self.v.name, self.kind.value)

    def __str__(self) -> str:
        return f"{self.u.name} {self.kind.value} {self.v.name}"


def _key(a: Variable, b: Variable) -> Tuple[int, int]:
    return (a.index, b.index) if a.index < b.index else (b.index, a.index)


class Graph:
    """
    Mutable graph over Variable nodes.
    Internally stores edges in a dict with ordered (lo, hi) index keys.
    """

    def __init__(self, nodes: Iterable[Variable] = ()):
        self._nodes: Dict[int, Variable] = {}
        self._edges: Dict[Tuple[int, int], Edge] = {}
        for n in nodes:
            self.add_node(n)

    # ---- nodes ----

    def add_node(self, node: Variable) -> None:
        existing = self._nodes.get(node.index)
        if existing is not None and existing != node:
            raise ValueError(f"Index {node.index} already bound to {existing.name}.")
        self._nodes[node.index] = node

    @property
    def nodes(self) -> List[Variable]:
        return [self._nodes[i] for i in sorted(self._nodes)]

    def node(self, name: str) -> Variable:
        for n in self._nodes.values():
            if n.name == name:
                return n
        raise KeyError(f"Unknown node: {name}")

    def _require(self, *nodes: Variable) -> None:
        for n in nodes:
            if self._nodes.get(n.index) != n:
                raise KeyError(f"Node not in graph: {n}")

    # ---- edges ----

    def has_edge(self, a: Variable, b: Variable) -> bool:
        return _key(a, b) in self._edges

    def get_edge(self, a: Variable, b: Variable) -> Optional[Edge]:
        e = self._edges.get(_key(a, b))
        if e is None:
            return None
        return e if e.u == a else e.reversed()

    def _put(self, a: Variable, b: Variable, kind: EdgeKind) -> None:
        if a == b:
            raise ValueError(f"Self-loop on {a} is not allowed.")
        self._require(a, b)
        self._edges[_key(a, b)] = Edge(a, b, kind)

    def add_undirected(self, a: Variable, b: Variable) -> None:
        self._put(a, b, EdgeKind.UNDIRECTED)

    def add_directed(self, a: Variable, b: Variable) -> None:
        """Set a --> b, replacing any edge between a and b."""
        self._put(a, b, EdgeKind.DIRECTED)

    def add_bidirected(self, a: Variable, b: Variable) -> None:
        self._put(a, b, EdgeKind.BIDIRECTED)

    def add_two_cycle(self, a: Variable, b: Variable) -> None:
        """Set a --> b and b --> a together, replacing any edge between a and b."""
        self._put(a, b, EdgeKind.TWO_CYCLE)

    def remove_edge(self, a: Variable, b: Variable) -> None:
        self._edges.pop(_key(a, b), None)

    def edges(self) -> List[Edge]:
        """Snapshot of the current edges (safe to iterate while mutating)."""
        return list(self._edges.values())

    def edges_between(self, a: Variable, b: Variable) -> int:
        """Number of directed-or-plain edges on the pair: 2 for a two-cycle, else 0 or 1."""
        e = self._edges.get(_key(a, b))
        if e is None:
            return 0
        return 2 if e.kind is EdgeKind.TWO_CYCLE else 1

    def kind(self, a: Variable, b: Variable) -> Optional[EdgeKind]:
        e = self._edges.get(_key(a, b))
        return None if e is None else e.kind

    # ---- classification queries ----

    def is_directed(self, a: Variable, b: Variable) -> bool:
        """True if the pair holds exactly a --> b (two-cycles excluded)."""
        e = self.get_edge(a, b)
        return e is not None and e.points_towards(b)

    def is_undirected(self, a: Variable, b: Variable) -> bool:
        return self.kind(a, b) is EdgeKind.UNDIRECTED

    def is_bidirected(self, a: Variable, b: Variable) -> bool:
        return self.kind(a, b) is EdgeKind.BIDIRECTED

    def is_two_cycle(self, a: Variable, b: Variable) -> bool:
        return self.kind(a, b) is EdgeKind.TWO_CYCLE

    def neighbors(self, a: Variable) -> List[Variable]:
        out = []
        for (i, j) in self._edges:
            if i == a.index:
                out.append(self._nodes[j])
            elif j == a.index:
                out.append(self._nodes[i])
        return sorted(out, key=lambda n: n.index)

    def parents(self, a: Variable) -> List[Variable]:
        """Nodes p with p --> a, counting both ends of a two-cycle."""
        return [n for n in self.neighbors(a) if self.is_directed(n, a) or self.is_two_cycle(n, a)]

    def children(self, a: Variable) -> List[Variable]:
        return [n for n in self.neighbors(a) if self.is_directed(a, n) or self.is_two_cycle(a, n)]

    # ---- copies ----

    def copy(self) -> "Graph":
        g = Graph(self.nodes)
        g._edges = dict(self._edges)
        return g

    def undirected_copy(self) -> "Graph":
        """Same adjacencies, every edge undirected."""
        g = Graph(self.nodes)
        for e in self._edges.values():
            g.add_undirected(e.u, e.v)
        return g

    def replace_nodes(self, variables: Sequence[Variable]) -> "Graph":
        """
        Rebind every node (by name) to the given variables and return the new graph.
        Raises InvalidGraphError when a node name has no counterpart.
        """
        by_name = {v.name: v for v in variables}
        missing = [n.name for n in self.nodes if n.name not in by_name]
        if missing:
            raise InvalidGraphError(f"Initial graph has nodes not in the data: {missing}")
        g = Graph(variables)
        for e in self._edges.values():
            g._put(by_name[e.u.name], by_name[e.v.name], e.kind)
        return g

    # ---- pretty / export ----

    def __len__(self) -> int:
        return len(self._edges)

    def __str__(self) -> str:
        return "\n".join(str(e) for e in sorted(self.edges(), key=lambda e: (e.u.index, e.v.index)))

    def to_json(self) -> Dict[str, object]:
        """
        Serialize nodes and edges to a JSON-serializable dict.
        Directed edges are written tail first.
        """
        edges = []
        for e in sorted(self.edges(), key=lambda e: (e.u.index, e.v.index)):
            a, b, kind = e.as_tuple()
            edges.append({"from": a, "to": b, "type": kind})
        return {"nodes": [n.name for n in self.nodes], "edges": edges}

    @classmethod
    def from_json(cls, obj: Dict[str, object]) -> "Graph":
        names = list(obj.get("nodes", []))  # type: ignore[arg-type]
        g = cls(Variable(str(n), i) for i, n in enumerate(names))
        puts = {
            EdgeKind.UNDIRECTED.value: g.add_undirected,
            EdgeKind.DIRECTED.value: g.add_directed,
            EdgeKind.BIDIRECTED.value: g.add_bidirected,
            EdgeKind.TWO_CYCLE.value: g.add_two_cycle,
        }
        for item in obj.get("edges", []):  # type: ignore[union-attr]
            kind = item.get("type", EdgeKind.UNDIRECTED.value)
            if kind not in puts:
                raise InvalidGraphError(f"Unknown edge type: {kind}")
            puts[kind](g.node(item["from"]), g.node(item["to"]))
        return g

    def to_dot(self) -> str:
        """Export to Graphviz DOT. Two-cycles render as a pair of arcs."""
        lines = ["digraph FASK {", '  graph [rankdir=LR];', '  node [shape=ellipse];']
        for n in self.nodes:
            lines.append(f'  {n.index} [label="{n.name}"];')
        for e in sorted(self.edges(), key=lambda e: (e.u.index, e.v.index)):
            a, b = e.u.index, e.v.index
            if e.kind is EdgeKind.DIRECTED:
                t, h = e.tail.index, e.head.index  # type: ignore[union-attr]
                lines.append(f"  {t} -> {h};")
            elif e.kind is EdgeKind.UNDIRECTED:
                lines.append(f"  {a} -> {b} [dir=none];")
            elif e.kind is EdgeKind.BIDIRECTED:
                lines.append(f"  {a} -> {b} [dir=both];")
            else:
                lines.append(f'  {a} -> {b} [color="#aa3333"];')
                lines.append(f'  {b} -> {a} [color="#aa3333"];')
        lines.append("}")
        return "\n".join(lines)
