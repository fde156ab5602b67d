"""Layout solver contract and a networkx-backed default solver."""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Protocol, Sequence, Tuple

import networkx as nx

from ..config_models import LayoutSettings
from ..core.groups import Group
from ..core.links import Link
from ..core.nodes import Node

logger = logging.getLogger(__name__)

Route = List[Tuple[float, float]]


class LayoutSolver(Protocol):
    """What the orchestrator needs from a layout engine."""

    running: bool

    def configure(self, settings: LayoutSettings) -> None: ...

    def stop(self) -> None: ...

    def start(
        self, nodes: Sequence[Node], links: Sequence[Link], groups: Sequence[Group]
    ) -> None: ...

    def route_edges(self) -> Dict[str, Route]: ...


def check_edge_length(settings: LayoutSettings) -> bool:
    """Log and return ``False`` when ``edge_length`` does not suit the layout type."""

    value = settings.edge_length
    numeric = isinstance(value, (int, float)) and not isinstance(value, bool)
    if settings.layout_type == "jaccard_link_lengths" and not numeric:
        logger.error(
            "'edge_length' needs to be set to a number for jaccard_link_lengths to work properly"
        )
        return False
    if settings.layout_type == "flow_layout" and not (numeric or callable(value)):
        logger.error(
            "'edge_length' needs to be set to a number or function for flow_layout to work properly"
        )
        return False
    return True


class SpringLayoutSolver:
    """Force-directed placement using :func:`networkx.spring_layout`.

    Link lengths follow ``layout_type``: a constant or per-link callable for
    ``link_distance``, neighbourhood-scaled lengths for
    ``jaccard_link_lengths``, and for ``flow_layout`` an extra pass pushing
    every link target past its source along ``flow_direction``. Links with an
    unregistered endpoint are ignored.
    """

    def __init__(self, settings: LayoutSettings | None = None) -> None:
        self.settings = settings or LayoutSettings()
        self.running = False
        self.ticks = 0
        self.starts = 0
        self.stops = 0
        self._nodes: List[Node] = []
        self._links: List[Link] = []
        self._groups: List[Group] = []
        self.configure(self.settings)

    def configure(self, settings: LayoutSettings) -> None:
        self.settings = settings
        check_edge_length(settings)
        logger.info(
            "Layout configured: %s (flow %s)", settings.layout_type, settings.flow_direction
        )

    def stop(self) -> None:
        if self.running:
            logger.debug("Stopping layout after %d ticks", self.ticks)
        self.running = False
        self.stops += 1

    def _base_length(self, link: Link) -> float:
        value = self.settings.edge_length
        if callable(value):
            return float(value(link))
        try:
            return float(value)
        except (TypeError, ValueError):
            return 150.0

    def link_lengths(self, links: Sequence[Link]) -> Dict[Tuple[int, int], float]:
        """Return the ideal length of every non-dangling link, keyed by endpoints."""

        live = [link for link in links if not link.is_dangling]
        neighbours: Dict[int, set] = {}
        for link in live:
            s, t = link.source.index, link.target.index
            if s != t:
                neighbours.setdefault(s, set()).add(t)
                neighbours.setdefault(t, set()).add(s)

        lengths: Dict[Tuple[int, int], float] = {}
        for link in live:
            s, t = link.source.index, link.target.index
            length = self._base_length(link)
            if self.settings.layout_type == "jaccard_link_lengths":
                nu, nv = neighbours.get(s, set()), neighbours.get(t, set())
                union = len(nu | nv)
                jaccard = len(nu & nv) / union if union else 0.0
                length *= 1 + self.settings.jaccard_modifier * (1 - jaccard)
            key = (s, t)
            lengths[key] = min(length, lengths.get(key, length))
        return lengths

    def start(
        self, nodes: Sequence[Node], links: Sequence[Link], groups: Sequence[Group]
    ) -> None:
        self._nodes, self._links, self._groups = list(nodes), list(links), list(groups)
        self.running = True
        self.starts += 1
        if not self._nodes:
            self.running = False
            return

        lengths = self.link_lengths(self._links)
        graph = nx.Graph()
        graph.add_nodes_from(node.index for node in self._nodes)
        for (s, t), length in lengths.items():
            if s != t:
                graph.add_edge(s, t, weight=1.0 / max(length, 1e-6))

        cx, cy = self.settings.center
        scale = max(min(self.settings.width, self.settings.height) / 2 - self.settings.margin, 1.0)
        # coincident starting points get no repulsion, so spread them apart
        rng = random.Random(self.settings.seed)
        initial: Dict[int, Tuple[float, float]] = {}
        taken = set()
        for node in self._nodes:
            px = ((node.x if node.x is not None else cx) - cx) / scale
            py = ((node.y if node.y is not None else cy) - cy) / scale
            while (px, py) in taken:
                px += rng.uniform(-0.1, 0.1)
                py += rng.uniform(-0.1, 0.1)
            taken.add((px, py))
            initial[node.index] = (px, py)
        iterations = sum(self.settings.initial_iterations)
        positions = nx.spring_layout(
            graph,
            pos=initial or None,
            iterations=iterations,
            weight="weight",
            seed=self.settings.seed,
        )
        placed = {
            idx: [float(cx + px * scale), float(cy + py * scale)]
            for idx, (px, py) in positions.items()
        }
        if self.settings.layout_type == "flow_layout":
            self._flow(placed, lengths)

        for node in self._nodes:
            node.x, node.y = placed[node.index]
        self.ticks += iterations
        self.running = False

    def _flow(self, placed: Dict[int, List[float]], lengths: Dict[Tuple[int, int], float]) -> None:
        axis = 1 if self.settings.flow_direction == "y" else 0
        for _ in range(len(placed)):
            moved = False
            for (s, t), gap in lengths.items():
                if s == t:
                    continue
                if placed[t][axis] < placed[s][axis] + gap:
                    placed[t][axis] = placed[s][axis] + gap
                    moved = True
            if not moved:
                break

    def route_edges(self) -> Dict[str, Route]:
        """Straight segments between the centres of every non-dangling link."""

        return {
            link.key: [(link.source.x, link.source.y), (link.target.x, link.target.y)]
            for link in self._links
            if not link.is_dangling
        }
