"""tripletviz application."""

__version__ = "0.1.0"

# Keep ``import tripletviz`` cheap; the facade and its collaborators are
# resolved on first access.

__all__: list[str] = [
    "__version__",
    "TripletGraph",
    "GraphHooks",
    "LayoutPhase",
    "Triplet",
    "MutationResult",
    "GraphSyncError",
    "ValidationError",
    "DuplicateFactError",
    "NodeReferenceError",
    "StoreError",
]

_ERRORS = {
    "MutationResult",
    "GraphSyncError",
    "ValidationError",
    "DuplicateFactError",
    "NodeReferenceError",
    "StoreError",
}


def __getattr__(name: str):
    if name in _ERRORS:
        from . import errors

        return getattr(errors, name)
    if name in __all__:
        from . import core

        return getattr(core, name)
    raise AttributeError(name)
