"""HTTP interface over a :class:`~tripletviz.core.graph.TripletGraph`.

The application is a thin translation layer: payloads are validated with
pydantic, forwarded to the graph, and a failed :class:`MutationResult` is
turned into the matching HTTP status.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException

from .core.graph import TripletGraph
from .errors import (
    DuplicateFactError,
    MutationResult,
    NodeReferenceError,
    StoreError,
    ValidationError,
)
from .schemas import (
    GraphView,
    GroupOut,
    LinkOut,
    MergeIn,
    NodeExists,
    NodeIn,
    NodeOut,
    TripletIn,
)

logger = logging.getLogger(__name__)

_STATUS = (
    (ValidationError, 422),
    (DuplicateFactError, 409),
    (NodeReferenceError, 404),
    (StoreError, 503),
)


def _check(result: MutationResult) -> Dict[str, str]:
    if result:
        return {"status": "ok"}
    for cls, status in _STATUS:
        if isinstance(result.error, cls):
            raise HTTPException(status_code=status, detail=str(result.error))
    raise HTTPException(status_code=400, detail=str(result.error))


def create_app(graph: TripletGraph, close_on_shutdown: bool = False) -> FastAPI:
    """Return a FastAPI app exposing ``graph``.

    Parameters
    ----------
    graph:
        Graph instance owned by the application for its whole lifetime.
    close_on_shutdown:
        Close the graph's store when the application shuts down.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if close_on_shutdown:
            await graph.close()

    app = FastAPI(title="tripletviz", lifespan=lifespan)
    app.state.graph = graph

    @app.post("/nodes")
    async def add_nodes(payload: Union[NodeIn, List[NodeIn]]) -> Dict[str, str]:
        """Register one node or a list of nodes."""

        if isinstance(payload, list):
            value: Any = [node.model_dump(exclude_none=True) for node in payload]
        else:
            value = payload.model_dump(exclude_none=True)
        return _check(await graph.add_node(value))

    @app.post("/triplets")
    async def add_triplet(payload: TripletIn) -> Dict[str, str]:
        return _check(await graph.add_triplet(payload.model_dump()))

    @app.post("/edges")
    async def add_edge(payload: TripletIn) -> Dict[str, str]:
        """Add a fact between two registered nodes."""

        return _check(await graph.add_edge(payload.model_dump()))

    @app.delete("/nodes/{node_hash}")
    async def remove_node(node_hash: str) -> Dict[str, str]:
        return _check(await graph.remove_node(node_hash))

    @app.post("/groups")
    async def merge_into_group(payload: MergeIn) -> Dict[str, str]:
        return _check(await graph.merge_into_group(payload.anchor, payload.member))

    @app.get("/nodes/{node_hash}", response_model=NodeExists)
    def has_node(node_hash: str) -> NodeExists:
        return NodeExists(hash=node_hash, exists=graph.has_node(node_hash))

    @app.get("/graph")
    async def save_graph() -> Dict[str, Any]:
        """Return the serialized graph as produced by ``save_graph``."""

        saved = await graph.save_graph()
        if saved is None:
            raise HTTPException(status_code=503, detail="triplet store unavailable")
        return json.loads(saved)

    @app.get("/graph/view", response_model=GraphView)
    def view() -> GraphView:
        return GraphView(
            phase=graph.phase.value,
            needs_resync=graph.needs_resync,
            nodes=[
                NodeOut(hash=n.hash, label=n.label, x=n.x, y=n.y, index=n.index)
                for n in graph.nodes
            ],
            links=[
                LinkOut(
                    key=link.key,
                    source=link.source.hash if link.source else None,
                    target=link.target.hash if link.target else None,
                    predicate=link.edge_data.get("type"),
                    edge_data=link.edge_data,
                )
                for link in graph.links
            ],
            groups=[GroupOut(leaves=list(g.leaves), hashes=list(g.hashes)) for g in graph.groups],
        )

    return app


def build_app(config_path: Optional[str] = None) -> FastAPI:
    """Application factory used by ``tripletviz serve``."""

    from .utils.config import load_config

    config = load_config(config_path)
    graph = TripletGraph.from_config(config)
    logger.info("Serving graph backed by %s", type(graph.store).__name__)
    return create_app(graph, close_on_shutdown=True)
