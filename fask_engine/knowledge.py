# FILE: fask_engine/knowledge.py
# ======================================================================================
# Background knowledge and the knowledge filter
# --------------------------------------------------------------------------------------
# Knowledge answers, by variable name:
#   is_forbidden(A, B)   A --> B may not appear
#   is_required(A, B)    A --> B must appear
# plus a tier ordering. An edge may never point from a later tier into an earlier
# one, and a tier can be marked "forbidden within" (no edges among its members).
#
# The filter functions below are what the search consumes:
#   orients(k, A, B)        → B --> A forbidden or A --> B required
#   forbidden(k, A, B)      → both directions forbidden
#   drop_protected(k, Z)    → Z without members of tier index 1 (when >1 tier)
#
# YAML / dict form (config key "knowledge"):
#   {
#     "forbid":  [["A","B"], ...],     # forbid A --> B
#     "require": [["A","B"], ...],     # require A --> B
#     "tiers":   [["A","B"], ["C"]],   # tier 0, tier 1, ...
#     "forbid_within_tiers": [0],
#   }
# ======================================================================================

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .data import Variable
from .errors import ConfigurationError


class Knowledge:
    """Forbidden/required directed edges and tiers, keyed by variable name."""

    def __init__(self) -> None:
        self._forbidden: Set[Tuple[str, str]] = set()
        self._required: Set[Tuple[str, str]] = set()
        self._tiers: List[Set[str]] = []
        self._forbid_within: Set[int] = set()

    # ---- edits ----

    def set_forbidden(self, a: str, b: str) -> None:
        if (a, b) in self._required:
            raise ConfigurationError(f"Edge {a} --> {b} cannot be both required and forbidden.")
        self._forbidden.add((a, b))

    def set_required(self, a: str, b: str) -> None:
        if (a, b) in self._forbidden:
            raise ConfigurationError(f"Edge {a} --> {b} cannot be both required and forbidden.")
        self._required.add((a, b))

    def add_to_tier(self, tier: int, name: str) -> None:
        if tier < 0:
            raise ConfigurationError(f"Tier index must be >= 0, got {tier}.")
        for t in self._tiers:
            t.discard(name)
        while len(self._tiers) <= tier:
            self._tiers.append(set())
        self._tiers[tier].add(name)

    def set_tier_forbidden_within(self, tier: int, forbidden: bool = True) -> None:
        if forbidden:
            self._forbid_within.add(tier)
        else:
            self._forbid_within.discard(tier)

    # ---- queries ----

    @property
    def num_tiers(self) -> int:
        return len(self._tiers)

    def tier(self, i: int) -> Set[str]:
        return set(self._tiers[i]) if 0 <= i < len(self._tiers) else set()

    def tier_of(self, name: str) -> Optional[int]:
        for i, t in enumerate(self._tiers):
            if name in t:
                return i
        return None

    def is_forbidden(self, a: str, b: str) -> bool:
        if (a, b) in self._forbidden:
            return True
        ta, tb = self.tier_of(a), self.tier_of(b)
        if ta is None or tb is None:
            return False
        if ta > tb:
            return True
        return ta == tb and ta in self._forbid_within

    def is_required(self, a: str, b: str) -> bool:
        return (a, b) in self._required

    def is_empty(self) -> bool:
        return not (self._forbidden or self._required or self._tiers)

    # ---- (de)serialization ----

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "Knowledge":
        k = cls()
        if not d:
            return k
        unknown = set(d) - {"forbid", "require", "tiers", "forbid_within_tiers"}
        if unknown:
            raise ConfigurationError(f"Unknown knowledge keys: {sorted(unknown)}")
        for i, members in enumerate(d.get("tiers", []) or []):
            for name in members:
                k.add_to_tier(i, str(name))
        for i in d.get("forbid_within_tiers", []) or []:
            k.set_tier_forbidden_within(int(i))
        for a, b in _pairs(d.get("forbid"), "forbid"):
            k.set_forbidden(a, b)
        for a, b in _pairs(d.get("require"), "require"):
            k.set_required(a, b)
        return k

    def to_dict(self) -> Dict[str, Any]:
        return {
            "forbid": [list(p) for p in sorted(self._forbidden)],
            "require": [list(p) for p in sorted(self._required)],
            "tiers": [sorted(t) for t in self._tiers],
            "forbid_within_tiers": sorted(self._forbid_within),
        }

    def __repr__(self) -> str:
        return (f"Knowledge(forbidden={len(self._forbidden)}, required={len(self._required)}, "
                f"tiers={self.num_tiers})")


def _pairs(items: Optional[Iterable[Sequence[Any]]], key: str) -> List[Tuple[str, str]]:
    out = []
    for p in items or []:
        if len(p) != 2:
            raise ConfigurationError(f"knowledge.{key} entries must be [from, to] pairs, got {p!r}")
        out.append((str(p[0]), str(p[1])))
    return out


# --------------------------------------------------------------------------------------
# Knowledge filter
# --------------------------------------------------------------------------------------

def orients(k: Knowledge, a: Variable, b: Variable) -> bool:
    """True if knowledge settles the pair as a --> b."""
    return k.is_forbidden(b.name, a.name) or k.is_required(a.name, b.name)


def forbidden(k: Knowledge, a: Variable, b: Variable) -> bool:
    """True if no edge is allowed between a and b in either direction."""
    return k.is_forbidden(b.name, a.name) and k.is_forbidden(a.name, b.name)


def drop_protected(k: Knowledge, Z: Iterable[Variable]) -> List[Variable]:
    """Remove tier-1 members from a conditioning set (only when more than one tier exists)."""
    if k.num_tiers <= 1:
        return list(Z)
    protected = k.tier(1)
    return [z for z in Z if z.name not in protected]
