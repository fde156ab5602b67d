import logging

import pytest

from conftest import RecordingSolver, fact
from tripletviz.config_models import LayoutSettings
from tripletviz.core.orchestrator import GraphHooks, LayoutOrchestrator, LayoutPhase

CYCLE = [
    LayoutPhase.SUSPENDED,
    LayoutPhase.MUTATING,
    LayoutPhase.REPROJECTING,
    LayoutPhase.RESTARTING,
    LayoutPhase.IDLE,
]


@pytest.mark.asyncio
async def test_add_triplet_walks_full_cycle(graph):
    await graph.add_triplet(fact("a", "likes", "b"))
    assert list(graph.orchestrator.history) == CYCLE


@pytest.mark.asyncio
async def test_hook_order(graph, events):
    await graph.add_triplet(fact("a", "likes", "b"))
    assert events == [
        ("color", "black", "arrow-black"),
        "structural_change",
        "stop",
        ("reprojected", 1),
        "start",
        "route",
        ("layout_end", 1),
    ]


@pytest.mark.asyncio
async def test_solver_receives_consistent_collections(graph, solver):
    await graph.add_triplet(fact("a", "likes", "b"))
    await graph.add_triplet(fact("b", "likes", "c"))
    nodes, links, groups = solver.starts[-1]
    hashes = {n.hash for n in nodes}
    assert len(links) == 2
    assert all(l.source.hash in hashes and l.target.hash in hashes for l in links)
    assert groups == []


@pytest.mark.asyncio
async def test_marker_requested_once_per_color(solver, events):
    from tripletviz.core.graph import TripletGraph

    hooks = GraphHooks(on_new_edge_color=lambda c, m: events.append(m))
    graph = TripletGraph(
        solver=solver,
        hooks=hooks,
        edge_color=lambda p: p.get("color", "black"),
    )
    await graph.add_triplet(fact("a", "p", "b", color="red"))
    await graph.add_triplet(fact("a", "q", "b", color="red"))
    await graph.add_triplet(fact("a", "r", "b"))
    assert [e for e in events if isinstance(e, str) and e.startswith("arrow-")] == [
        "arrow-red",
        "arrow-black",
    ]


@pytest.mark.asyncio
async def test_no_routing_when_disabled(solver, events):
    from tripletviz.core.graph import TripletGraph

    graph = TripletGraph(solver=solver, settings=LayoutSettings(enable_edge_routing=False))
    await graph.add_triplet(fact("a", "likes", "b"))
    assert "route" not in events


@pytest.mark.asyncio
async def test_no_routing_without_links(graph, events):
    await graph.add_node({"hash": "a"})
    assert "start" in events
    assert "route" not in events


def test_illegal_transition():
    orch = LayoutOrchestrator(RecordingSolver(), LayoutSettings())
    with pytest.raises(RuntimeError, match="Illegal layout transition"):
        orch.mutating()


def test_suspend_is_idempotent():
    solver = RecordingSolver()
    orch = LayoutOrchestrator(solver, LayoutSettings())
    orch.suspend()
    orch.suspend()
    assert solver.events == ["stop"]
    assert orch.busy


def test_restart_returns_to_idle_on_solver_failure():
    class Exploding(RecordingSolver):
        def start(self, nodes, links, groups):
            raise ValueError("boom")

    orch = LayoutOrchestrator(Exploding(), LayoutSettings())
    orch.suspend()
    with pytest.raises(ValueError):
        orch.restart([], [], [])
    assert orch.phase is LayoutPhase.IDLE


def test_ensure_suspended_outside_cycle(caplog):
    solver = RecordingSolver()
    orch = LayoutOrchestrator(solver, LayoutSettings())
    with caplog.at_level(logging.WARNING):
        orch.ensure_suspended()
    assert orch.phase is LayoutPhase.SUSPENDED
    assert "outside a cycle" in caplog.text


@pytest.mark.asyncio
async def test_flow_controls_reconfigure_solver(graph, solver):
    await graph.add_node({"hash": "a"})
    await graph.flow_right()
    assert solver.settings.flow_direction == "x"
    assert solver.settings.layout_type == "flow_layout"
    await graph.flow_down()
    assert solver.settings.flow_direction == "y"
    await graph.set_edge_length(80)
    assert solver.settings.edge_length == 80
    assert graph.phase is LayoutPhase.IDLE


class RaisesOnce:
    def __init__(self):
        self.calls = 0

    def __call__(self, *args):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("renderer failed")


@pytest.mark.asyncio
async def test_failing_reprojected_hook_does_not_wedge_layout(solver):
    from tripletviz.core.graph import TripletGraph

    graph = TripletGraph(solver=solver, hooks=GraphHooks(on_reprojected=RaisesOnce()))
    with pytest.raises(RuntimeError, match="renderer failed"):
        await graph.add_triplet(fact("a", "p", "b"))
    assert graph.phase is LayoutPhase.IDLE

    result = await graph.add_triplet(fact("c", "p", "d"))
    assert result
    assert graph.has_node("c") and graph.has_node("d")
    assert len(graph.links) == 2
    assert len(await graph.store.get({})) == 2
    assert graph.phase is LayoutPhase.IDLE


@pytest.mark.asyncio
async def test_failing_structural_change_hook_aborts_cycle(solver, caplog):
    from tripletviz.core.graph import TripletGraph

    graph = TripletGraph(solver=solver, hooks=GraphHooks(on_structural_change=RaisesOnce()))
    with caplog.at_level(logging.ERROR):
        with pytest.raises(RuntimeError):
            await graph.add_node({"hash": "a"})
    assert graph.phase is LayoutPhase.IDLE
    assert "aborted in phase suspended" in caplog.text

    assert await graph.add_node({"hash": "a"})
    assert graph.has_node("a")
    assert graph.phase is LayoutPhase.IDLE


def test_cycle_aborts_on_exception():
    orch = LayoutOrchestrator(RecordingSolver(), LayoutSettings())
    with pytest.raises(KeyError):
        with orch.cycle():
            orch.mutating()
            raise KeyError("x")
    assert orch.phase is LayoutPhase.IDLE
    assert list(orch.history) == [LayoutPhase.SUSPENDED, LayoutPhase.MUTATING, LayoutPhase.IDLE]
