"""Tests du tri topologique des modules de syllabus."""

from __future__ import annotations

from app.ml.sequencing import topological_sequence


def test_modules_without_prerequisites_keep_their_order():
    result = topological_sequence(["a", "b", "c"], {})

    assert result.order == ["a", "b", "c"]
    assert not result.has_cycle


def test_prerequisite_chain_is_reversed():
    result = topological_sequence(["a", "b", "c"], {"a": ["b"], "b": ["c"]})

    assert result.order == ["c", "b", "a"]


def test_every_prerequisite_precedes_its_dependant():
    prerequisites = {
        "nav": ["basics"],
        "ifr": ["nav", "instruments"],
        "instruments": ["basics"],
        "checkride": ["ifr", "nav"],
    }
    modules = ["checkride", "ifr", "nav", "instruments", "basics", "radio"]

    order = topological_sequence(modules, prerequisites).order

    assert sorted(order) == sorted(modules)
    for module, required in prerequisites.items():
        for prerequisite in required:
            assert order.index(prerequisite) < order.index(module)


def test_cycle_is_broken_without_error():
    result = topological_sequence(["a", "b", "c"], {"a": ["b"], "b": ["a"], "c": ["a"]})

    assert sorted(result.order) == ["a", "b", "c"]
    assert result.has_cycle
    assert len(result.ignored_edges) == 1
    assert result.order.index("a") < result.order.index("c")


def test_unknown_prerequisites_are_reported_and_ignored():
    result = topological_sequence(["a", "b"], {"b": ["ghost"]})

    assert result.order == ["a", "b"]
    assert result.unknown_prerequisites == [("b", "ghost")]
