import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from conftest import fact
from tripletviz.api import create_app


@pytest.fixture
def client(graph):
    return TestClient(create_app(graph))


def test_triplet_lifecycle(client, graph):
    res = client.post("/triplets", json=fact("a", "likes", "b", color="red"))
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
    assert client.get("/nodes/a").json() == {"hash": "a", "exists": True}
    assert client.get("/nodes/zzz").json()["exists"] is False

    view = client.get("/graph/view").json()
    assert view["phase"] == "idle"
    assert [n["hash"] for n in view["nodes"]] == ["a", "b"]
    assert view["links"][0]["key"] == "a-likes-b"
    assert view["links"][0]["edge_data"] == {"type": "likes", "color": "red"}

    saved = client.get("/graph").json()
    assert saved["triplets"] == [{"subject": "a", "predicate": "likes", "object": "b"}]

    assert client.delete("/nodes/a").status_code == 200
    assert not graph.has_node("a")
    assert client.get("/graph/view").json()["links"] == []


def test_status_codes(client):
    assert client.post("/triplets", json=fact("a", "likes", "b")).status_code == 200
    dup = client.post("/triplets", json=fact("a", "likes", "b"))
    assert dup.status_code == 409
    assert "already exists" in dup.json()["detail"]
    assert client.post("/edges", json=fact("a", "likes", "ghost")).status_code == 404
    assert client.delete("/nodes/ghost").status_code == 404
    assert client.post("/groups", json={"anchor": "a", "member": "ghost"}).status_code == 404
    bad = {"subject": {"hash": "a"}, "predicate": {"type": ""}, "object": {"hash": "b"}}
    assert client.post("/triplets", json=bad).status_code == 422


def test_nodes_and_groups(client):
    res = client.post("/nodes", json=[{"hash": "a", "x": 1, "y": 2}, {"hash": "b"}, {"hash": 3}])
    assert res.status_code == 200
    assert client.post("/nodes", json={"hash": "c", "shortname": "C"}).status_code == 200
    assert client.post("/groups", json={"anchor": "a", "member": "c"}).status_code == 200
    view = client.get("/graph/view").json()
    assert [n["hash"] for n in view["nodes"]] == ["a", "b", "3", "c"]
    assert view["nodes"][3]["label"] == "C"
    assert view["groups"] == [{"leaves": [0, 3], "hashes": ["a", "c"]}]


def test_store_failure_maps_to_503(flaky_graph, flaky_store):
    client = TestClient(create_app(flaky_graph))
    flaky_store.fail.add("put")
    assert client.post("/triplets", json=fact("a", "likes", "b")).status_code == 503
    flaky_store.fail.add("get")
    assert client.get("/graph").status_code == 503
