import pytest

from tripletviz.config_models import StoreSettings
from tripletviz.core.triplet import StoredFact
from tripletviz.store import MemoryTripletStore, create_store

FACTS = [
    StoredFact("b", "likes", "c", {"type": "likes"}),
    StoredFact("a", "likes", "b", {"type": "likes"}),
    StoredFact("a", "knows", "c", {"type": "knows"}),
]


@pytest.mark.asyncio
async def test_pattern_queries():
    store = MemoryTripletStore()
    await store.put(FACTS)
    assert [f.key for f in await store.get({})] == [
        ("a", "knows", "c"),
        ("a", "likes", "b"),
        ("b", "likes", "c"),
    ]
    assert len(await store.get({"subject": "a"})) == 2
    assert len(await store.get({"predicate": "likes"})) == 2
    assert len(await store.get({"object": "c", "subject": None})) == 2
    assert await store.get({"subject": "a", "predicate": "likes", "object": "b"}) == [FACTS[1]]
    assert await store.exists(("b", "likes", "c"))
    assert not await store.exists(("c", "likes", "b"))


@pytest.mark.asyncio
async def test_put_replaces_and_delete_ignores_unknown():
    store = MemoryTripletStore()
    await store.put(FACTS[0])
    await store.put(StoredFact("b", "likes", "c", {"type": "likes", "w": 1}))
    assert len(store) == 1
    assert (await store.get({}))[0].edge_data["w"] == 1
    await store.delete([FACTS[0], FACTS[1]])
    assert len(store) == 0


@pytest.mark.asyncio
async def test_unknown_pattern_field():
    store = MemoryTripletStore()
    with pytest.raises(ValueError):
        await store.get({"color": "red"})


def test_create_store():
    store = create_store(StoreSettings(backend="memory", database_name="x"))
    assert isinstance(store, MemoryTripletStore)
    assert store.name == "x"
    with pytest.raises(ValueError):
        create_store(StoreSettings(backend="sqlite"))
