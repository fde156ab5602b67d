import asyncio

import pytest

pytest.importorskip("hypothesis")

from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import RecordingSolver, fact
from tripletviz.core.graph import TripletGraph
from tripletviz.core.groups import Partition
from tripletviz.store.memory import MemoryTripletStore

HASHES = st.sampled_from(["a", "b", "c", "d", "e"])
PREDICATES = st.sampled_from(["likes", "knows"])

add_op = st.tuples(st.just("add"), HASHES, PREDICATES, HASHES)
edge_op = st.tuples(st.just("edge"), HASHES, PREDICATES, HASHES)
remove_op = st.tuples(st.just("remove"), HASHES)
merge_op = st.tuples(st.just("merge"), HASHES, HASHES)
OPS = st.lists(st.one_of(add_op, edge_op, remove_op, merge_op), max_size=25)


async def _apply(ops):
    store = MemoryTripletStore()
    graph = TripletGraph(store, solver=RecordingSolver())
    for op in ops:
        if op[0] == "add":
            await graph.add_triplet(fact(op[1], op[2], op[3]))
        elif op[0] == "edge":
            await graph.add_edge(fact(op[1], op[2], op[3]))
        elif op[0] == "remove":
            await graph.remove_node(op[1])
            assert not graph.has_node(op[1])
            assert not await store.get({"subject": op[1]})
            assert not await store.get({"object": op[1]})
        else:
            await graph.merge_into_group(op[1], op[2])
    return graph, await store.get({})


@given(OPS)
@settings(max_examples=100, deadline=None)
def test_invariants_hold_after_any_sequence(ops):
    graph, facts = asyncio.run(_apply(ops))

    keys = [f.key for f in facts]
    assert len(keys) == len(set(keys))

    for f in facts:
        assert graph.has_node(f.subject) and graph.has_node(f.object)

    projected = sorted((l.source.hash, l.edge_data["type"], l.target.hash) for l in graph.links)
    assert projected == sorted(keys)

    members = [h for g in graph.groups for h in g.hashes]
    assert len(members) == len(set(members))
    for g in graph.groups:
        assert [graph.nodes[i].hash for i in g.leaves] == list(g.hashes)

    assert [n.index for n in graph.nodes] == list(range(len(graph.nodes)))


@given(st.lists(st.tuples(HASHES, HASHES), max_size=30))
def test_partition_cells_stay_disjoint(merges):
    part = Partition()
    for anchor, member in merges:
        part.merge(anchor, member)
        assert part.cell_of(anchor) is not None
        assert member in part.cell_of(anchor)
    flat = [h for cell in part.cells for h in cell]
    assert len(flat) == len(set(flat))
    assert all(part.cells)


@given(st.lists(st.tuples(HASHES, PREDICATES, HASHES), max_size=15))
@settings(deadline=None)
def test_duplicate_rejection_is_idempotent(triples):
    async def run():
        store = MemoryTripletStore()
        graph = TripletGraph(store, solver=RecordingSolver())
        for s, p, o in triples:
            await graph.add_triplet(fact(s, p, o))
        before = [f.key for f in await store.get({})]
        for s, p, o in triples:
            result = await graph.add_triplet(fact(s, p, o))
            assert not result
        assert [f.key for f in await store.get({})] == before
        assert len(before) == len(set(triples))

    asyncio.run(run())
