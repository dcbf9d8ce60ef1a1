from __future__ import annotations

import pytest

from fask_engine.data import Variable
from fask_engine.errors import ConfigurationError
from fask_engine.knowledge import Knowledge, drop_protected, forbidden, orients

A, B, C = Variable("A", 0), Variable("B", 1), Variable("C", 2)


def test_orients_from_required_or_reverse_forbidden():
    k = Knowledge()
    k.set_required("A", "B")
    assert orients(k, A, B)
    assert not orients(k, B, A)

    k2 = Knowledge()
    k2.set_forbidden("C", "A")
    assert orients(k2, A, C)
    assert not forbidden(k2, A, C)


def test_forbidden_needs_both_directions():
    k = Knowledge()
    k.set_forbidden("A", "B")
    assert not forbidden(k, A, B)
    k.set_forbidden("B", "A")
    assert forbidden(k, A, B)
    assert forbidden(k, B, A)


def test_required_and_forbidden_conflict():
    k = Knowledge()
    k.set_required("A", "B")
    with pytest.raises(ConfigurationError):
        k.set_forbidden("A", "B")


def test_tiers():
    k = Knowledge.from_dict({"tiers": [["A"], ["B", "C"]], "forbid_within_tiers": [1]})
    assert k.num_tiers == 2
    assert k.tier_of("C") == 1
    assert k.is_forbidden("B", "A")
    assert not k.is_forbidden("A", "B")
    assert k.is_forbidden("B", "C") and k.is_forbidden("C", "B")
    assert orients(k, A, B)
    assert forbidden(k, B, C)


def test_drop_protected_only_with_several_tiers():
    one = Knowledge.from_dict({"tiers": [["A", "B"]]})
    assert drop_protected(one, [A, B, C]) == [A, B, C]
    two = Knowledge.from_dict({"tiers": [["A"], ["B"], ["C"]]})
    assert drop_protected(two, [A, B, C]) == [A, C]


def test_from_dict_validation():
    with pytest.raises(ConfigurationError):
        Knowledge.from_dict({"orient": [["A", "B"]]})
    with pytest.raises(ConfigurationError):
        Knowledge.from_dict({"forbid": [["A", "B", "C"]]})
    assert Knowledge.from_dict(None).is_empty()


def test_dict_round_trip():
    d = {"forbid": [["A", "B"]], "require": [["B", "C"]], "tiers": [["A"], ["B", "C"]],
         "forbid_within_tiers": []}
    assert Knowledge.from_dict(d).to_dict() == d
