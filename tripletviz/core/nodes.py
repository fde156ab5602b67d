"""Hash-keyed registry of visual node records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..errors import NodeReferenceError, ValidationError
from .triplet import coerce_hash, get_field

logger = logging.getLogger(__name__)

_NODE_FIELDS = ("hash", "shortname", "x", "y", "width", "height", "index")


@dataclass(eq=False)
class Node:
    """Visual node record.

    ``hash`` is the identity and never changes once registered. ``index`` is
    the node's current position in the registry and is rewritten whenever an
    earlier node is removed. ``width``/``height`` are owned by the renderer.
    """

    hash: str
    shortname: str | List[str] | None = None
    x: float | None = None
    y: float | None = None
    width: float = 0.0
    height: float = 0.0
    index: int = -1
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        if isinstance(self.shortname, (list, tuple)):
            return " ".join(str(part) for part in self.shortname)
        return self.shortname or self.hash

    @classmethod
    def from_value(cls, value: Any) -> "Node":
        """Build a fresh :class:`Node` from a mapping, an object or another node.

        Raises
        ------
        ValidationError
            If ``value`` carries no usable ``hash``.
        """

        node_hash = coerce_hash(get_field(value, "hash"))
        if node_hash is None:
            raise ValidationError("Node requires a hash field.")
        if isinstance(value, Node):
            # index and position belong to the registry holding the copy
            return replace(value, hash=node_hash, index=-1, data=dict(value.data))
        if isinstance(value, Mapping):
            extra = {k: v for k, v in value.items() if k not in _NODE_FIELDS}
        else:
            extra = {
                k: v
                for k, v in vars(value).items()
                if k not in _NODE_FIELDS and not k.startswith("_")
            }
        return cls(
            hash=node_hash,
            shortname=get_field(value, "shortname"),
            x=get_field(value, "x"),
            y=get_field(value, "y"),
            width=get_field(value, "width") or 0.0,
            height=get_field(value, "height") or 0.0,
            data=extra,
        )


class NodeRegistry:
    """Deduplicated, ordered collection of :class:`Node` records.

    ``before_mutation`` is invoked before the collection is spliced so that a
    running layout solver can be halted first.
    """

    def __init__(
        self,
        before_mutation: Optional[Callable[[], None]] = None,
        default_position: Tuple[float, float] = (0.0, 0.0),
    ) -> None:
        self._nodes: List[Node] = []
        self._by_hash: Dict[str, Node] = {}
        self._before_mutation = before_mutation
        self.default_position = default_position

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __contains__(self, node_hash: object) -> bool:
        return self.has(node_hash)

    @property
    def nodes(self) -> List[Node]:
        return self._nodes

    def has(self, node_hash: Any) -> bool:
        key = coerce_hash(node_hash)
        return key is not None and key in self._by_hash

    def get(self, node_hash: Any) -> Optional[Node]:
        key = coerce_hash(node_hash)
        return self._by_hash.get(key) if key is not None else None

    def index_of(self, node_hash: Any) -> int:
        node = self.get(node_hash)
        if node is None:
            raise NodeReferenceError(str(node_hash))
        return node.index

    def _notify(self) -> None:
        if self._before_mutation is not None:
            self._before_mutation()

    def _append(self, node: Node) -> None:
        if node.x is None:
            node.x = self.default_position[0]
        if node.y is None:
            node.y = self.default_position[1]
        node.index = len(self._nodes)
        self._nodes.append(node)
        self._by_hash[node.hash] = node

    def prepare(self, value: Any) -> Tuple[List[Node], List[ValidationError]]:
        """Turn one node or a sequence of nodes into records not yet registered.

        Entries whose hash is already registered, or repeated within the
        batch, are skipped silently. Invalid entries are reported and skipped
        without aborting the rest of a sequence. Nothing is mutated.
        """

        if value is None or isinstance(value, (str, bytes, int, float)):
            error = ValidationError("Parameter must be either an object or an array")
            logger.error("%s", error)
            return [], [error]

        items: Sequence[Any] = value if isinstance(value, (list, tuple)) else [value]
        fresh: Dict[str, Node] = {}
        errors: List[ValidationError] = []
        for item in items:
            try:
                node = Node.from_value(item)
            except ValidationError as exc:
                logger.error("Cannot add node %r: %s", item, exc)
                errors.append(exc)
                continue
            if node.hash not in self._by_hash and node.hash not in fresh:
                fresh[node.hash] = node
        return list(fresh.values()), errors

    def extend(self, nodes: Sequence[Node]) -> None:
        """Append records produced by :meth:`prepare`, skipping known hashes."""

        fresh = [node for node in nodes if node.hash not in self._by_hash]
        if not fresh:
            return
        self._notify()
        for node in fresh:
            self._append(node)

    def add(self, value: Any) -> Tuple[List[Node], List[ValidationError]]:
        """Register one node or a sequence of nodes; see :meth:`prepare`."""

        nodes, errors = self.prepare(value)
        self.extend(nodes)
        return nodes, errors

    def ensure(self, value: Any) -> Node:
        """Register ``value`` if its hash is unknown and return the stored node."""

        node = Node.from_value(value)
        existing = self._by_hash.get(node.hash)
        if existing is not None:
            return existing
        self._notify()
        self._append(node)
        return node

    def remove(self, node_hash: Any) -> Node:
        """Remove ``node_hash`` and shift the index of every later node down.

        The caller must have removed every fact referencing the node first.

        Raises
        ------
        NodeReferenceError
            If the hash is not registered.
        """

        node = self.get(node_hash)
        if node is None:
            raise NodeReferenceError(str(node_hash), "There is no node")
        self._notify()
        position = node.index
        del self._nodes[position]
        del self._by_hash[node.hash]
        for later in self._nodes[position:]:
            later.index -= 1
        node.index = -1
        return node

    def clear(self) -> None:
        if self._nodes:
            self._notify()
        self._nodes.clear()
        self._by_hash.clear()
