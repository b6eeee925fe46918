"""Tests for the expand/collapse state machine."""

import logging
import math
import random

import pytest

from tree_graphs.disclosure import DisclosureController, descendant_ids
from tree_graphs.errors import UnknownNodeError
from tree_graphs.graph_state import DisclosureState
from tree_graphs.ingest import ingest
from tree_graphs.presets import EngineConfig


class _FakeLayout:
    def __init__(self):
        self.reseeds = 0

    def reseed(self):
        self.reseeds += 1


@pytest.fixture
def controller(graph, rng):
    return DisclosureController(graph, _FakeLayout(), EngineConfig(cluster_threshold=3), rng=rng)


def test_expand_collapsed_node_materialises_children(graph, controller):
    graph.node("A").position = (50.0, -20.0)
    n0, l0 = len(graph.nodes), len(graph.links)

    added = controller.expand("A")

    assert added == ["A1", "A2", "A3", "A4", "A5"]
    assert len(graph.nodes) == n0 + 5
    assert len(graph.links) == l0 + 5
    assert graph.node("A").disclosure_state is DisclosureState.EXPANDED
    assert graph.node("A").visible_children == added
    assert graph.node("root").visible_children == ["A", "B", "C"]

    for cid in added:
        child = graph.node(cid)
        assert child.depth == 2
        dx = child.position[0] - 50.0
        dy = child.position[1] + 20.0
        assert 90.0 - 1e-9 <= math.hypot(dx, dy) <= 110.0 + 1e-9

    assert controller.layout.reseeds == 1
    assert graph.check_invariants() == []


def test_expand_places_children_around_the_ring(graph, rng):
    ctl = DisclosureController(graph, None, EngineConfig(expand_jitter=0.0), rng=rng)
    graph.node("A").position = (0.0, 0.0)
    ctl.expand("A")
    first = graph.node("A1").position
    assert first == pytest.approx((100.0, 0.0))
    third = graph.node("A3").position
    angle = 2 * (2 * math.pi / 5)
    assert third == pytest.approx((100.0 * math.cos(angle), 100.0 * math.sin(angle)))


def test_expanded_children_get_their_own_state():
    data = {
        "id": "r",
        "children": [
            {"id": f"c{i}", "children": [{"id": f"c{i}-{j}"} for j in range(i)]}
            for i in range(5)
        ],
    }
    g = ingest(data, cluster_threshold=3)
    ctl = DisclosureController(g, config=EngineConfig(cluster_threshold=3))
    ctl.expand("r")
    assert g.node("c3").disclosure_state is DisclosureState.EXPANDED
    assert g.node("c4").disclosure_state is DisclosureState.COLLAPSED
    # an expanded child shows its own children, as after ingestion
    assert g.node("c3").visible_children == ["c3-0", "c3-1", "c3-2"]
    assert g.node("c3-1").depth == 2
    # a collapsed child keeps them behind its badge
    assert "c4-0" not in g
    assert g.check_invariants() == []


def test_collapse_removes_descendants(graph, controller):
    removed = controller.collapse("C")

    assert sorted(removed) == ["C1", "C2"]
    assert "C1" not in graph and "C2" not in graph
    assert len(graph.nodes) == 4
    assert len(graph.links) == 3
    c = graph.node("C")
    assert c.disclosure_state is DisclosureState.COLLAPSED
    assert c.visible_children == []
    assert c.child_count == 2
    assert graph.check_invariants() == []


def test_collapse_removes_nested_descendants(graph, controller):
    controller.expand("A")
    controller.collapse("root")
    assert list(graph.nodes) == ["root"]
    assert graph.links == []
    assert graph.node("root").collapsed


def test_round_trip_restores_counts(graph, controller):
    n0, l0 = len(graph.nodes), len(graph.links)
    added = controller.expand("B")
    removed = controller.collapse("B")
    assert sorted(added) == sorted(removed)
    assert (len(graph.nodes), len(graph.links)) == (n0, l0)
    assert graph.node("B").visible_children == []


def test_reexpand_creates_fresh_instances(graph, controller):
    controller.expand("A")
    first = graph.node("A1")
    controller.collapse("A")
    controller.expand("A")
    assert graph.node("A1") is not first
    assert graph.node("A1").id == first.id


def test_idempotent_noops(graph, controller):
    assert controller.expand("C") == []
    assert controller.collapse("A") == []
    assert controller.collapse("C1") == []
    assert controller.layout.reseeds == 0


def test_expand_without_children_warns(caplog, rng):
    g = ingest({"id": "r", "children": [{"id": "a"}]}, cluster_threshold=3)
    node = g.node("a")
    node.disclosure_state = DisclosureState.COLLAPSED
    ctl = DisclosureController(g, _FakeLayout(), rng=rng)
    with caplog.at_level(logging.WARNING, logger="tree_graphs.disclosure"):
        assert ctl.expand("a") == []
    assert "no children" in caplog.text
    assert ctl.layout.reseeds == 0
    assert len(g) == 2


def test_toggle(graph, controller):
    controller.toggle("A")
    assert not graph.node("A").collapsed
    controller.toggle("A")
    assert graph.node("A").collapsed
    assert controller.toggle("C1") == []


def test_unknown_node(controller):
    with pytest.raises(UnknownNodeError):
        controller.toggle("nope")


def test_expand_generates_ids_for_anonymous_children(rng):
    g = ingest({"id": "r", "children": [{"id": "x", "children": [{}, {}]}]}, cluster_threshold=1)
    ctl = DisclosureController(g, config=EngineConfig(cluster_threshold=1), rng=rng)
    assert ctl.expand("x") == ["node-2", "node-3"]


def test_generated_ids_are_stable_across_sibling_clusters(rng):
    """Anonymous children keep their ids and never hand them to another cluster."""
    data = {
        "id": "r",
        "children": [
            {"id": "x", "children": [{"tag": f"x-{i}"} for i in range(3)]},
            {"id": "y", "children": [{"tag": f"y-{i}"} for i in range(3)]},
        ],
    }
    g = ingest(data, cluster_threshold=2)
    ctl = DisclosureController(g, config=EngineConfig(cluster_threshold=2), rng=rng)

    def tags(node_id):
        return {cid: g.node(cid).source_subtree.payload["tag"]
                for cid in g.node(node_id).visible_children}

    ctl.expand("x")
    first = tags("x")
    ctl.collapse("x")
    ctl.expand("y")
    ctl.expand("x")
    again = tags("x")

    assert first == again == {"node-2": "x-0", "node-3": "x-1", "node-4": "x-2"}
    assert tags("y") == {"node-6": "y-0", "node-7": "y-1", "node-8": "y-2"}
    assert g.check_invariants() == []


def test_descendant_ids_depth_first(graph, controller):
    controller.expand("A")
    controller.expand("B")
    assert descendant_ids(graph, graph.node("root")) == [
        "A", "A1", "A2", "A3", "A4", "A5",
        "B", "B1", "B2", "B3", "B4",
        "C", "C1", "C2",
    ]


def test_random_toggle_sequences_keep_invariants(sample_data):
    for seed in range(5):
        g = ingest(sample_data, cluster_threshold=3)
        ctl = DisclosureController(g, config=EngineConfig(cluster_threshold=3))
        chooser = random.Random(seed)
        for _ in range(60):
            ctl.toggle(chooser.choice(list(g.nodes)))
            assert g.check_invariants() == []
            for l in g.links:
                assert l.source_id in g and l.target_id in g
