"""Tests for the force simulation and layout engine."""

import numpy as np
import pytest

from tree_graphs.disclosure import DisclosureController
from tree_graphs.layout.engine import LayoutEngine
from tree_graphs.layout.forces import ForceSimulation
from tree_graphs.presets import ForceConfig


@pytest.fixture
def engine(graph, rng):
    return LayoutEngine(graph, ForceConfig(), rng=rng)


def test_reseed_assigns_initial_positions(graph, engine):
    assert engine.sim.n == len(graph)
    assert all(n.position is not None for n in graph)
    assert engine.alpha == pytest.approx(1.0)


def test_run_settles(graph, engine):
    ticks = engine.run()
    # (1 - 0.0228) ** n < 0.001 after roughly 300 ticks
    assert 280 <= ticks <= 320
    assert engine.is_settled
    assert engine.step() is False

    pos = np.array([n.position for n in graph])
    assert np.isfinite(pos).all()
    assert len({n.position for n in graph}) == len(graph)


def test_layout_is_centred(graph, engine):
    engine.run()
    pos = np.array([n.position for n in graph])
    cx, cy = ForceConfig().center
    assert pos.mean(axis=0) == pytest.approx([cx, cy], abs=5.0)


def test_repulsion_separates_nodes(graph, engine):
    engine.run()
    pos = np.array([n.position for n in graph])
    d = np.sqrt(((pos[:, None, :] - pos[None, :, :]) ** 2).sum(axis=2))
    d[np.eye(len(pos), dtype=bool)] = np.inf
    assert d.min() > 20.0


def test_on_tick_called_once_per_step(engine):
    calls = []
    unsubscribe = engine.on_tick(lambda: calls.append(engine.ticks))
    engine.run(max_ticks=5)
    assert calls == [1, 2, 3, 4, 5]
    unsubscribe()
    engine.step()
    assert len(calls) == 5


def test_failing_callback_does_not_stop_loop(engine):
    seen = []

    def boom():
        raise RuntimeError("render failed")

    engine.on_tick(boom)
    engine.on_tick(lambda: seen.append(1))
    assert engine.run(max_ticks=3) == 3
    assert seen == [1, 1, 1]


def test_pinned_node_never_moves(graph, engine):
    engine.set_pinned("C", (10.0, 10.0))
    engine.run(max_ticks=50)
    assert graph.node("C").position == (10.0, 10.0)

    engine.set_pinned("C", None)
    assert graph.node("C").pinned is None
    engine.boost_energy(0.3)
    engine.run(max_ticks=5)
    assert graph.node("C").position != (10.0, 10.0)


def test_boost_energy_keeps_simulation_live(engine):
    engine.run()
    assert engine.is_settled
    engine.boost_energy(0.3)
    assert engine.alpha == pytest.approx(0.3)
    assert engine.run(max_ticks=500) == 500
    assert engine.alpha == pytest.approx(0.3, rel=1e-3)

    engine.boost_energy(0.0)
    assert engine.run(max_ticks=1000) < 1000
    assert engine.is_settled


def test_uncapped_run_returns_while_energy_is_held(engine):
    engine.run()
    engine.boost_energy(0.3)
    assert engine.run() == 0
    assert engine.run(max_ticks=4) == 4

    engine.boost_energy(0.0)
    assert engine.run() > 0
    assert engine.is_settled


def test_reseed_after_structural_edit(graph, engine, rng):
    ctl = DisclosureController(graph, engine, rng=rng)
    engine.run()
    a_pos = graph.node("A").position

    ctl.expand("A")
    assert engine.sim.n == len(graph) == 11
    assert engine.alpha == pytest.approx(1.0)
    # fresh children start on the ring around A, not on the spiral
    for i in range(1, 6):
        p = graph.node(f"A{i}").position
        assert 90.0 <= np.hypot(p[0] - a_pos[0], p[1] - a_pos[1]) <= 110.0

    ctl.collapse("A")
    assert engine.sim.n == len(graph) == 6
    engine.run()
    assert engine.is_settled


def test_linked_nodes_attract(rng):
    sim = ForceSimulation(ForceConfig(charge_strength=0.0, collide_strength=0.0), rng=rng)
    sim.set_nodes([(0.0, 0.0), (400.0, 0.0)])
    sim.set_links([(0, 1)])
    start = np.hypot(*(sim.pos[1] - sim.pos[0]))
    for _ in range(50):
        sim.tick()
    end = np.hypot(*(sim.pos[1] - sim.pos[0]))
    assert end < start


def test_charge_ignores_pairs_beyond_distance_max(rng):
    sim = ForceSimulation(ForceConfig(collide_strength=0.0), rng=rng)
    sim.set_nodes([(0.0, 0.0), (1000.0, 0.0)])
    sim.set_links([])
    sim._force_many_body(1.0)
    assert np.allclose(sim.vel, 0.0)


def test_collide_pushes_overlapping_nodes_apart(rng):
    sim = ForceSimulation(ForceConfig(), rng=rng)
    sim.set_nodes([(0.0, 0.0), (10.0, 0.0)])
    sim._force_collide()
    assert sim.vel[0, 0] < 0.0 < sim.vel[1, 0]


def test_coincident_nodes_are_separated(rng):
    sim = ForceSimulation(ForceConfig(), rng=rng)
    sim.set_nodes([(5.0, 5.0), (5.0, 5.0)])
    for _ in range(20):
        sim.tick()
    assert np.isfinite(sim.pos).all()
    assert not np.allclose(sim.pos[0], sim.pos[1])


def test_alpha_decays_geometrically(rng):
    sim = ForceSimulation(ForceConfig(), rng=rng)
    sim.set_nodes([(0.0, 0.0)])
    sim.tick()
    assert sim.alpha == pytest.approx(1.0 - 0.0228)
