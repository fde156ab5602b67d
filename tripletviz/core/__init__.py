"""Core components for tripletviz.

Objects are loaded lazily via ``__getattr__`` so importing a single
submodule (for example the store backends, which depend on
:mod:`tripletviz.core.triplet`) does not pull in the whole graph facade.
"""

_EXPORTS = {
    "TripletGraph": ".graph",
    "GraphHooks": ".orchestrator",
    "LayoutOrchestrator": ".orchestrator",
    "LayoutPhase": ".orchestrator",
    "Node": ".nodes",
    "NodeRegistry": ".nodes",
    "Link": ".links",
    "LinkProjector": ".links",
    "Group": ".groups",
    "GroupMergeEngine": ".groups",
    "Partition": ".groups",
    "EdgeColorRegistry": ".colors",
    "Triplet": ".triplet",
    "StoredFact": ".triplet",
    "validate_triplet": ".triplet",
}

__all__ = list(_EXPORTS)


def __getattr__(name: str):
    module = _EXPORTS.get(name)
    if module is None:
        raise AttributeError(name)
    from importlib import import_module

    return getattr(import_module(module, __name__), name)
