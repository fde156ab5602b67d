"""Sequencing of mutation, reprojection and layout restarts.

Each mutation cycle walks ``IDLE -> SUSPENDED -> MUTATING -> REPROJECTING ->
RESTARTING -> IDLE``. The solver is stopped on entry to ``SUSPENDED`` so it
never iterates over a collection that is being spliced, and it only receives
the node, link and group collections again once they are consistent.
"""

from __future__ import annotations

import logging
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, Iterator, List, Optional, Sequence

from .. import monitoring
from ..config_models import LayoutSettings
from .groups import Group
from .links import Link
from .nodes import Node

logger = logging.getLogger(__name__)


class LayoutPhase(str, Enum):
    IDLE = "idle"
    SUSPENDED = "suspended"
    MUTATING = "mutating"
    REPROJECTING = "reprojecting"
    RESTARTING = "restarting"


_TRANSITIONS = {
    LayoutPhase.IDLE: {LayoutPhase.SUSPENDED},
    LayoutPhase.SUSPENDED: {
        LayoutPhase.MUTATING,
        LayoutPhase.REPROJECTING,
        LayoutPhase.RESTARTING,
    },
    LayoutPhase.MUTATING: {LayoutPhase.REPROJECTING, LayoutPhase.RESTARTING},
    LayoutPhase.REPROJECTING: {LayoutPhase.RESTARTING},
    LayoutPhase.RESTARTING: {LayoutPhase.IDLE},
}


@dataclass
class GraphHooks:
    """Callbacks for rendering collaborators. All are optional."""

    # halt any in-flight iteration before collections are mutated
    on_structural_change: Optional[Callable[[], None]] = None
    on_reprojected: Optional[Callable[[List[Link]], None]] = None
    # (color, marker id)
    on_new_edge_color: Optional[Callable[[str, str], None]] = None
    # link key -> polyline, fired once per converged layout
    on_layout_end: Optional[Callable[[Dict[str, list]], None]] = None


class LayoutOrchestrator:
    """Own the phase of the current mutation cycle and drive the solver."""

    def __init__(self, solver, settings: LayoutSettings, hooks: GraphHooks | None = None):
        self.solver = solver
        self.settings = settings
        self.hooks = hooks or GraphHooks()
        self.phase = LayoutPhase.IDLE
        self.history: Deque[LayoutPhase] = deque(maxlen=64)

    def _enter(self, phase: LayoutPhase) -> None:
        if phase not in _TRANSITIONS[self.phase]:
            raise RuntimeError(f"Illegal layout transition {self.phase.value} -> {phase.value}")
        logger.debug("Layout phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase
        self.history.append(phase)

    @property
    def busy(self) -> bool:
        return self.phase is not LayoutPhase.IDLE

    def suspend(self) -> None:
        """Stop the solver before shared collections are touched."""

        if self.phase is not LayoutPhase.IDLE:
            return
        self._enter(LayoutPhase.SUSPENDED)
        try:
            if self.hooks.on_structural_change is not None:
                self.hooks.on_structural_change()
            self.solver.stop()
        except BaseException:
            self.abort()
            raise

    def abort(self) -> None:
        """Drop a cycle that failed part-way and return to ``IDLE``.

        The solver is left stopped; the next cycle restarts it.
        """

        if self.phase is LayoutPhase.IDLE:
            return
        logger.error("Layout cycle aborted in phase %s", self.phase.value)
        self.phase = LayoutPhase.IDLE
        self.history.append(LayoutPhase.IDLE)

    @contextmanager
    def cycle(self) -> Iterator["LayoutOrchestrator"]:
        """Suspend for one mutation cycle; any exception aborts it."""

        try:
            self.suspend()
            yield self
        except BaseException:
            self.abort()
            raise

    def ensure_suspended(self) -> None:
        """Guard used by the registry: collections only change while suspended."""

        if self.phase is LayoutPhase.IDLE:
            logger.warning("Collection mutated outside a cycle; suspending layout")
            self.suspend()
        elif self.phase is LayoutPhase.RESTARTING:
            raise RuntimeError("Collections cannot change while the layout restarts")

    def mutating(self) -> None:
        if self.phase is not LayoutPhase.MUTATING:
            self._enter(LayoutPhase.MUTATING)

    def reprojecting(self) -> None:
        if self.phase is not LayoutPhase.REPROJECTING:
            self._enter(LayoutPhase.REPROJECTING)

    def reconfigure(self, settings: LayoutSettings) -> None:
        self.settings = settings
        self.solver.configure(settings)

    def restart(
        self,
        nodes: Sequence[Node],
        links: Sequence[Link],
        groups: Sequence[Group],
        *,
        reprojected: bool = False,
    ) -> None:
        """Hand consistent collections to the solver and run it to convergence."""

        try:
            if reprojected and self.hooks.on_reprojected is not None:
                self.hooks.on_reprojected(list(links))
            self._enter(LayoutPhase.RESTARTING)
            self.solver.start(nodes, links, groups)
            monitoring.layout_restarts_total.inc()
            if self.settings.enable_edge_routing and links:
                routes = self.solver.route_edges()
                if self.hooks.on_layout_end is not None:
                    self.hooks.on_layout_end(routes)
        finally:
            if self.phase is LayoutPhase.RESTARTING:
                self._enter(LayoutPhase.IDLE)
            else:
                self.abort()
