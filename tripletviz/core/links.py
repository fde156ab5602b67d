"""Projection of stored facts onto visual links."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .. import monitoring
from ..store.base import TripletStore
from .nodes import Node, NodeRegistry
from .triplet import StoredFact

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Link:
    """Visual edge between two registered nodes.

    ``source`` or ``target`` is ``None`` only when the fact set references a
    hash missing from the registry, which is a consistency bug upstream.
    """

    source: Optional[Node]
    target: Optional[Node]
    edge_data: Dict[str, Any] = field(default_factory=dict)
    fact: Optional[StoredFact] = field(default=None, repr=False)

    @property
    def is_dangling(self) -> bool:
        return self.source is None or self.target is None

    @property
    def key(self) -> str:
        """Identity used by renderers to join links across redraws."""

        if self.fact is not None:
            return "-".join(self.fact.key)
        src = self.source.index if self.source else "?"
        dst = self.target.index if self.target else "?"
        return f"{src}-{dst}"


def project(facts: Iterable[StoredFact], registry: NodeRegistry) -> List[Link]:
    """Return one :class:`Link` per fact, resolving endpoints through ``registry``."""

    return [
        Link(
            source=registry.get(fact.subject),
            target=registry.get(fact.object),
            edge_data=dict(fact.edge_data),
            fact=fact,
        )
        for fact in facts
    ]


class LinkProjector:
    """Rebuild the visual link list from a full scan of the triplet store."""

    def __init__(self, store: TripletStore, registry: NodeRegistry) -> None:
        self.store = store
        self.registry = registry
        self.links: List[Link] = []

    async def reproject(self) -> List[Link]:
        """Replace :attr:`links` with the projection of the current fact set.

        The list is swapped in one assignment once the scan has completed, so
        readers never observe a partially rebuilt projection. A failed scan
        leaves the previous projection in place and propagates
        :class:`~tripletviz.errors.StoreError`.
        """

        facts = await self.store.get({})
        links = project(facts, self.registry)
        dangling = [link for link in links if link.is_dangling]
        for link in dangling:
            logger.error(
                "Fact %s references an unregistered node; projection is inconsistent",
                link.fact.key if link.fact else link.key,
            )
        self.links = links
        monitoring.reprojections_total.inc()
        monitoring.update_metric("tripletviz_graph_links", len(links))
        monitoring.update_metric("tripletviz_dangling_links", len(dangling))
        logger.debug("Reprojected %d links from the store", len(links))
        return links
