import os
import sys

# Ensure the repository root is importable so test modules can resolve the
# local ``tripletviz`` package without relying on ``PYTHONPATH`` tweaks.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest
from prometheus_client import REGISTRY

from tripletviz.config_models import LayoutSettings
from tripletviz.core.graph import TripletGraph
from tripletviz.core.orchestrator import GraphHooks
from tripletviz.errors import StoreError
from tripletviz.store.memory import MemoryTripletStore


class RecordingSolver:
    """Layout solver double that records the collections it is handed."""

    def __init__(self, events=None):
        self.running = False
        self.events = events if events is not None else []
        self.starts = []
        self.settings = None

    def configure(self, settings):
        self.settings = settings
        self.events.append("configure")

    def stop(self):
        self.running = False
        self.events.append("stop")

    def start(self, nodes, links, groups):
        self.events.append("start")
        self.starts.append((list(nodes), list(links), list(groups)))
        self.running = True

    def route_edges(self):
        self.events.append("route")
        return {link.key: [] for link in self.starts[-1][1]}


class FlakyStore(MemoryTripletStore):
    """Memory store whose operations can be made to fail on demand.

    ``"scan"`` fails only unfiltered reads, so duplicate checks still succeed.
    """

    def __init__(self):
        super().__init__(name="flaky")
        self.fail = set()

    async def get(self, pattern=None):
        if "get" in self.fail or ("scan" in self.fail and not pattern):
            raise StoreError("get failed: offline", "get")
        return await super().get(pattern)

    async def put(self, facts):
        if "put" in self.fail:
            raise StoreError("put failed: offline", "put")
        await super().put(facts)

    async def delete(self, facts):
        if "delete" in self.fail:
            raise StoreError("delete failed: offline", "delete")
        await super().delete(facts)


def fact(s, p, o, **data):
    return {"subject": {"hash": s}, "predicate": {"type": p, **data}, "object": {"hash": o}}


def sample(name, labels=None):
    """Return the current value of a Prometheus sample (0.0 when unset)."""
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


@pytest.fixture
def events():
    return []


@pytest.fixture
def solver(events):
    return RecordingSolver(events)


@pytest.fixture
def hooks(events):
    return GraphHooks(
        on_structural_change=lambda: events.append("structural_change"),
        on_reprojected=lambda links: events.append(("reprojected", len(links))),
        on_new_edge_color=lambda color, marker: events.append(("color", color, marker)),
        on_layout_end=lambda routes: events.append(("layout_end", len(routes))),
    )


@pytest.fixture
def store():
    return MemoryTripletStore()


@pytest.fixture
def graph(store, solver, hooks):
    return TripletGraph(store, settings=LayoutSettings(seed=1), solver=solver, hooks=hooks)


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture
def flaky_graph(flaky_store, solver, hooks):
    return TripletGraph(flaky_store, settings=LayoutSettings(seed=1), solver=solver, hooks=hooks)
