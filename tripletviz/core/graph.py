"""Public graph surface keeping store, visual collections and layout in sync.

The triplet store is the durable truth. Nodes, links and groups are a cache
derived from it and owned by :class:`TripletGraph`; collaborators only read
them once a cycle has completed. Every mutating coroutine runs under one
single-writer lock so a duplicate check and the write that follows it can
never interleave with another mutation.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import networkx as nx

from .. import monitoring
from ..config_models import LayoutSettings
from ..errors import (
    DuplicateFactError,
    GraphSyncError,
    MutationResult,
    NodeReferenceError,
    StoreError,
    ValidationError,
)
from ..store.base import TripletStore
from ..store.memory import MemoryTripletStore
from .colors import EdgeColor, EdgeColorRegistry
from .groups import Group, GroupMergeEngine
from .links import Link, LinkProjector
from .nodes import Node, NodeRegistry
from .orchestrator import GraphHooks, LayoutOrchestrator, LayoutPhase
from .triplet import StoredFact, Triplet, check_triplet, coerce_hash, get_field

logger = logging.getLogger(__name__)


class TripletGraph:
    """Project a triplet store into nodes, links and groups for a layout solver.

    Parameters
    ----------
    store:
        Backend holding the facts. Defaults to a :class:`MemoryTripletStore`.
    settings:
        Layout options; the canvas centre is used for nodes without a position.
    solver:
        Object implementing :class:`~tripletviz.layout.solver.LayoutSolver`.
        Defaults to :class:`~tripletviz.layout.solver.SpringLayoutSolver`.
    hooks:
        Rendering callbacks, see :class:`GraphHooks`.
    edge_color:
        Color string or ``predicate -> color`` callable. Overrides
        ``settings.edge_color``.
    """

    def __init__(
        self,
        store: TripletStore | None = None,
        *,
        settings: LayoutSettings | None = None,
        solver=None,
        hooks: GraphHooks | None = None,
        edge_color: EdgeColor | None = None,
    ) -> None:
        self.settings = settings or LayoutSettings()
        self.store = store if store is not None else MemoryTripletStore()
        self.hooks = hooks or GraphHooks()
        if solver is None:
            from ..layout.solver import SpringLayoutSolver

            solver = SpringLayoutSolver(self.settings)
        self.solver = solver
        self.orchestrator = LayoutOrchestrator(solver, self.settings, self.hooks)
        self.registry = NodeRegistry(
            before_mutation=self.orchestrator.ensure_suspended,
            default_position=self.settings.center,
        )
        self.projector = LinkProjector(self.store, self.registry)
        self.grouping = GroupMergeEngine(self.registry)
        self.colors = EdgeColorRegistry(
            edge_color if edge_color is not None else self.settings.edge_color,
            on_new_color=self.hooks.on_new_edge_color,
        )
        self.needs_resync = False
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: Dict[str, Any], **kwargs) -> "TripletGraph":
        """Build a graph with layout and store settings taken from ``config``."""

        from ..store import create_store
        from ..utils.config import get_layout_settings, get_store_settings

        settings = get_layout_settings(config)
        store = kwargs.pop("store", None) or create_store(get_store_settings(config))
        return cls(store, settings=settings, **kwargs)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> List[Node]:
        return self.registry.nodes

    @property
    def links(self) -> List[Link]:
        return self.projector.links

    @property
    def groups(self) -> List[Group]:
        return self.grouping.groups

    @property
    def phase(self) -> LayoutPhase:
        return self.orchestrator.phase

    def has_node(self, node_hash: Any) -> bool:
        return self.registry.has(node_hash)

    # ------------------------------------------------------------------
    # Cycle helpers
    # ------------------------------------------------------------------

    def _reject(self, error: GraphSyncError, *, quiet: bool = False) -> MutationResult:
        if isinstance(error, ValidationError):
            monitoring.validation_failures_total.inc()
        elif isinstance(error, DuplicateFactError):
            monitoring.duplicate_facts_total.inc()
        elif isinstance(error, StoreError):
            monitoring.store_errors_total.labels(operation=error.operation).inc()
        if quiet:
            logger.debug("%s", error)
        else:
            logger.error("%s", error)
        return MutationResult.failure(error)

    def _restart(self, *, reprojected: bool) -> None:
        self.orchestrator.restart(
            self.registry.nodes,
            self.projector.links,
            self.grouping.groups,
            reprojected=reprojected,
        )
        monitoring.update_metric("tripletviz_graph_nodes", len(self.registry))
        monitoring.update_metric("tripletviz_graph_groups", len(self.grouping.groups))

    async def _reproject_and_restart(self) -> None:
        self.orchestrator.reprojecting()
        await self.projector.reproject()
        self.needs_resync = False
        self._restart(reprojected=True)

    async def _recover(self, error: StoreError) -> MutationResult:
        """Resynchronize after a store failure in the middle of a cycle.

        Completed steps are not rolled back. The link projection is rebuilt
        from whatever the store now holds; if that also fails the solver is
        restarted on the last projection and :attr:`needs_resync` stays set.
        """

        result = self._reject(error)
        reprojected = False
        try:
            self.orchestrator.reprojecting()
            await self.projector.reproject()
            self.needs_resync = False
            reprojected = True
        except StoreError as exc:
            self.needs_resync = True
            logger.error("Resynchronization after %s failed: %s", error.operation, exc)
            monitoring.store_errors_total.labels(operation=exc.operation).inc()
        self._restart(reprojected=reprojected)
        return result

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    async def add_node(self, value: Any) -> MutationResult:
        """Register a node record or a sequence of them.

        Known hashes are skipped. Entries without a hash are reported and
        skipped; the result then carries the first such error even though the
        valid entries were added.
        """

        nodes, errors = self.registry.prepare(value)
        if errors:
            monitoring.validation_failures_total.inc(len(errors))
        first_error = errors[0] if errors else None

        async with self._lock:
            fresh = [node for node in nodes if not self.registry.has(node.hash)]
            if fresh:
                with self.orchestrator.cycle():
                    self.orchestrator.mutating()
                    self.registry.add(fresh)
                    self._restart(reprojected=False)
                logger.debug("Added %d nodes", len(fresh))
        return MutationResult(first_error is None, first_error)

    async def remove_node(
        self, node_hash: Any, callback: Optional[Callable[[], Any]] = None
    ) -> MutationResult:
        """Delete every fact touching ``node_hash``, then the node itself.

        ``callback`` (a function or coroutine function) runs only after the
        node is gone and links have been reprojected.
        """

        key = coerce_hash(node_hash)
        async with self._lock:
            if key is None or not self.registry.has(key):
                return self._reject(NodeReferenceError(str(node_hash), "There is no node"))
            try:
                as_subject = await self.store.get({"subject": key})
                as_object = await self.store.get({"object": key})
            except StoreError as exc:
                return self._reject(exc)

            facts = list({fact.key: fact for fact in [*as_subject, *as_object]}.values())
            with self.orchestrator.cycle():
                try:
                    if facts:
                        await self.store.delete(facts)
                    self.orchestrator.mutating()
                    self.registry.remove(key)
                    self.grouping.forget(key)
                    self.grouping.rebuild()
                    await self._reproject_and_restart()
                except StoreError as exc:
                    return await self._recover(exc)
            logger.debug("Removed node %s and %d facts", key, len(facts))

        if callback is not None:
            outcome = callback()
            if inspect.isawaitable(outcome):
                await outcome
        return MutationResult.success()

    # ------------------------------------------------------------------
    # Facts
    # ------------------------------------------------------------------

    async def _ingest(self, raw_facts: Sequence[Any], *, register_nodes: bool) -> MutationResult:
        first_error: GraphSyncError | None = None
        candidates = []
        for raw in raw_facts:
            try:
                check_triplet(raw)
            except ValidationError as exc:
                self._reject(exc)
                first_error = first_error or exc
                continue
            candidates.append((raw, StoredFact.from_triplet(raw)))
        if not candidates:
            return MutationResult(first_error is None, first_error)

        async with self._lock:
            accepted = []
            seen = set()
            try:
                for raw, fact in candidates:
                    if not register_nodes and not (
                        self.registry.has(fact.subject) and self.registry.has(fact.object)
                    ):
                        missing = fact.object if self.registry.has(fact.subject) else fact.subject
                        error = NodeReferenceError(
                            missing, f"Cannot add edge between nodes that don't exist: {missing}"
                        )
                        self._reject(error, quiet=True)
                        first_error = first_error or error
                        continue
                    if fact.key in seen or await self.store.exists(fact.key):
                        error = DuplicateFactError(fact.key)
                        self._reject(error)
                        first_error = first_error or error
                        continue
                    seen.add(fact.key)
                    accepted.append((raw, fact))
            except StoreError as exc:
                return self._reject(exc)
            if not accepted:
                return MutationResult(False, first_error)

            for _, fact in accepted:
                self.colors.ensure(fact.edge_data)

            with self.orchestrator.cycle():
                try:
                    await self.store.put([fact for _, fact in accepted])
                    monitoring.facts_persisted_total.inc(len(accepted))
                    self.orchestrator.mutating()
                    if register_nodes:
                        for raw, _ in accepted:
                            self.registry.ensure(get_field(raw, "subject"))
                            self.registry.ensure(get_field(raw, "object"))
                    await self._reproject_and_restart()
                except StoreError as exc:
                    return await self._recover(exc)
        return MutationResult(first_error is None, first_error)

    async def add_triplet(self, fact: Any) -> MutationResult:
        """Persist ``fact`` and register its subject and object if needed."""

        return await self._ingest([fact], register_nodes=True)

    async def add_triplets(self, facts: Iterable[Any]) -> MutationResult:
        """Persist a batch of facts with one reprojection and one layout restart."""

        return await self._ingest(list(facts), register_nodes=True)

    async def add_edge(self, fact: Any) -> MutationResult:
        """Persist ``fact`` only if both endpoints are already registered."""

        return await self._ingest([fact], register_nodes=False)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    async def merge_into_group(self, anchor_hash: Any, member_hash: Any) -> MutationResult:
        """Move ``member_hash`` into the group of ``anchor_hash``."""

        async with self._lock:
            try:
                groups = self.grouping.merge(anchor_hash, member_hash)
            except NodeReferenceError as exc:
                return self._reject(exc)
            with self.orchestrator.cycle():
                self.orchestrator.mutating()
                self.grouping.install(groups)
                self._restart(reprojected=False)
        return MutationResult.success()

    # ------------------------------------------------------------------
    # Layout controls
    # ------------------------------------------------------------------

    async def _relayout(self) -> None:
        async with self._lock:
            with self.orchestrator.cycle():
                self.orchestrator.reconfigure(self.settings)
                self._restart(reprojected=False)

    async def flow_down(self) -> None:
        self.settings.flow_direction = "y"
        self.settings.layout_type = "flow_layout"
        await self._relayout()

    async def flow_right(self) -> None:
        self.settings.flow_direction = "x"
        self.settings.layout_type = "flow_layout"
        await self._relayout()

    async def set_edge_length(self, value: float | Callable[[Link], float]) -> None:
        self.settings.edge_length = value
        await self._relayout()

    # ------------------------------------------------------------------
    # Synchronization and persistence
    # ------------------------------------------------------------------

    async def reproject_links(self) -> List[Link]:
        """Rebuild the links from a full store scan without restarting layout."""

        async with self._lock:
            return await self.projector.reproject()

    async def resync(self) -> MutationResult:
        """Rebuild links from the store and restart the layout."""

        async with self._lock:
            with self.orchestrator.cycle():
                try:
                    await self._reproject_and_restart()
                except StoreError as exc:
                    self.needs_resync = True
                    self._restart(reprojected=False)
                    return self._reject(exc)
        return MutationResult.success()

    async def save_graph(self) -> Optional[str]:
        """Serialize facts (hashes and predicate types) and node positions."""

        async with self._lock:
            try:
                facts = await self.store.get({})
            except StoreError as exc:
                self._reject(exc)
                return None
            payload = {
                "triplets": [
                    {"subject": f.subject, "predicate": f.predicate, "object": f.object}
                    for f in facts
                ],
                "nodes": [{"hash": n.hash, "x": n.x, "y": n.y} for n in self.registry],
            }
        return json.dumps(payload)

    async def load_graph(self, serialized: str | bytes | Mapping[str, Any]) -> MutationResult:
        """Rebuild nodes and facts from :meth:`save_graph` output."""

        if isinstance(serialized, (str, bytes)):
            try:
                data = json.loads(serialized)
            except json.JSONDecodeError as exc:
                return self._reject(ValidationError(f"Saved graph is not valid JSON: {exc}"))
        else:
            data = serialized
        if not isinstance(data, Mapping):
            return self._reject(ValidationError("Saved graph must be an object"))

        node_result = await self.add_node(list(data.get("nodes") or []))
        facts = [
            Triplet(
                subject={"hash": get_field(t, "subject")},
                predicate={"type": get_field(t, "predicate")},
                object={"hash": get_field(t, "object")},
            )
            for t in data.get("triplets") or []
        ]
        fact_result = await self.add_triplets(facts) if facts else node_result
        if not node_result:
            return node_result
        return fact_result

    def to_networkx(self) -> nx.MultiDiGraph:
        """Return the current projection as a :class:`networkx.MultiDiGraph`."""

        graph = nx.MultiDiGraph()
        for node in self.registry:
            attrs = dict(node.data)
            attrs.update(label=node.label, x=node.x, y=node.y, index=node.index)
            graph.add_node(node.hash, **attrs)
        for link in self.projector.links:
            if link.is_dangling:
                continue
            predicate = link.edge_data.get("type")
            attrs = {k: v for k, v in link.edge_data.items() if k not in ("type", "key")}
            attrs["predicate"] = predicate
            graph.add_edge(link.source.hash, link.target.hash, key=predicate, **attrs)
        return graph

    async def close(self) -> None:
        await self.store.close()
