"""Visual containment groups built from a partition of node hashes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..errors import NodeReferenceError
from .nodes import NodeRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Group:
    """Group as handed to the layout solver: current positions of its members."""

    leaves: Tuple[int, ...]
    hashes: Tuple[str, ...] = field(default=(), compare=False)


class Partition:
    """Disjoint cells of node hashes.

    Merging is a single-linkage scan over the cells, which is fine for the
    handful of user-driven merges a diagram sees. Cells keep insertion order
    so the emitted groups are deterministic.
    """

    def __init__(self) -> None:
        self._cells: List[Dict[str, None]] = []

    def __len__(self) -> int:
        return len(self._cells)

    @property
    def cells(self) -> List[Tuple[str, ...]]:
        return [tuple(cell) for cell in self._cells]

    def cell_of(self, node_hash: str) -> Optional[Tuple[str, ...]]:
        for cell in self._cells:
            if node_hash in cell:
                return tuple(cell)
        return None

    def merge(self, anchor: str, member: str) -> None:
        """Move ``member`` into the cell of ``anchor``, creating it if needed."""

        found = False
        for cell in self._cells:
            if anchor in cell:
                found = True
                cell[member] = None
            elif member in cell:
                del cell[member]
        if not found:
            cell = {anchor: None}
            cell[member] = None
            self._cells.append(cell)
        self._cells = [cell for cell in self._cells if cell]

    def discard(self, node_hash: str) -> bool:
        """Remove ``node_hash`` from its cell; return ``True`` if it had one."""

        removed = False
        for cell in self._cells:
            if node_hash in cell:
                del cell[node_hash]
                removed = True
        if removed:
            self._cells = [cell for cell in self._cells if cell]
        return removed

    def clear(self) -> None:
        self._cells.clear()


class GroupMergeEngine:
    """Maintain :class:`Partition` cells and derive index-based groups."""

    def __init__(self, registry: NodeRegistry, partition: Partition | None = None):
        self.registry = registry
        self.partition = partition or Partition()
        self.groups: List[Group] = []

    def merge(self, anchor_hash: str, member_hash: str) -> List[Group]:
        """Merge ``member_hash`` into the group of ``anchor_hash``.

        Returns the new group list; the caller installs it with
        :meth:`install` once the layout has been suspended.

        Raises
        ------
        NodeReferenceError
            If either hash is not registered. The partition is left untouched.
        """

        if not self.registry.has(anchor_hash):
            raise NodeReferenceError(
                str(anchor_hash),
                "You're trying to merge with a node that doesn't exist: "
                f"{anchor_hash}",
            )
        if not self.registry.has(member_hash):
            raise NodeReferenceError(
                str(member_hash),
                f"The node you are trying to merge doesn't exist: {member_hash}",
            )
        self.partition.merge(str(anchor_hash), str(member_hash))
        return self.build()

    def forget(self, node_hash: str) -> bool:
        """Detach a removed node from the partition."""

        return self.partition.discard(node_hash)

    def build(self) -> List[Group]:
        """Map every cell onto the current registry positions."""

        groups = []
        for cell in self.partition.cells:
            members = [h for h in cell if self.registry.has(h)]
            if len(members) != len(cell):
                logger.error("Group cell %s references unregistered nodes", cell)
            groups.append(
                Group(
                    leaves=tuple(self.registry.index_of(h) for h in members),
                    hashes=tuple(members),
                )
            )
        return groups

    def install(self, groups: List[Group]) -> None:
        self.groups = groups

    def rebuild(self) -> List[Group]:
        self.install(self.build())
        return self.groups
