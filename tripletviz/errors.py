"""Error taxonomy shared by the graph synchronizer.

All errors derive from :class:`GraphSyncError`. Public graph operations catch
them at their boundary and report them through :class:`MutationResult`, so a
malformed input or a failed store call only degrades the call that caused it.
"""

from __future__ import annotations

from dataclasses import dataclass


class GraphSyncError(Exception):
    """Base class for recoverable graph synchronization failures."""


class ValidationError(GraphSyncError):
    """Malformed fact or node input; nothing was mutated."""


class DuplicateFactError(GraphSyncError):
    """A fact with the same subject, predicate type and object already exists."""

    def __init__(self, key: tuple[str, str, str]):
        self.key = key
        super().__init__(
            "That edge already exists. Hashes and predicate type need to be unique: "
            f"{key[0]} -[{key[1]}]-> {key[2]}"
        )


class NodeReferenceError(GraphSyncError):
    """An operation referenced a hash that is not registered."""

    def __init__(self, node_hash: str, message: str | None = None):
        self.node_hash = node_hash
        super().__init__(message or f"No such node: {node_hash}")


class StoreError(GraphSyncError):
    """The underlying triplet store failed to complete an operation."""

    def __init__(self, message: str, operation: str = "unknown"):
        self.operation = operation
        super().__init__(message)


@dataclass
class MutationResult:
    """Outcome of a public mutating operation."""

    ok: bool
    error: GraphSyncError | None = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> "MutationResult":
        return cls(True)

    @classmethod
    def failure(cls, error: GraphSyncError) -> "MutationResult":
        return cls(False, error)
