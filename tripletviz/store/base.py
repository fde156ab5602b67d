"""Triplet store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from ..core.triplet import FactKey, StoredFact

Pattern = Mapping[str, Any]
FactOrFacts = Union[StoredFact, Sequence[StoredFact]]

PATTERN_FIELDS = ("subject", "predicate", "object")


def normalize_pattern(pattern: Optional[Pattern]) -> dict[str, str]:
    """Drop unset fields from ``pattern`` and coerce the rest to strings.

    Raises
    ------
    ValueError
        If ``pattern`` names a field other than subject, predicate or object.
    """

    pattern = pattern or {}
    unknown = set(pattern) - set(PATTERN_FIELDS)
    if unknown:
        raise ValueError(f"Unknown pattern fields: {sorted(unknown)}")
    return {k: str(v) for k, v in pattern.items() if v is not None}


def matches(fact: StoredFact, pattern: Mapping[str, str]) -> bool:
    return all(getattr(fact, name) == value for name, value in pattern.items())


def as_list(facts: FactOrFacts) -> List[StoredFact]:
    if isinstance(facts, StoredFact):
        return [facts]
    return list(facts)


def sort_facts(facts: Iterable[StoredFact]) -> List[StoredFact]:
    return sorted(facts, key=lambda f: f.key)


class TripletStore(ABC):
    """Asynchronous pattern-matched storage of :class:`StoredFact` records.

    A pattern may omit any of ``subject``, ``predicate`` and ``object`` to
    mean "any". Implementations return facts ordered by their key and raise
    :class:`~tripletviz.errors.StoreError` when the backend fails.
    """

    @abstractmethod
    async def get(self, pattern: Optional[Pattern] = None) -> List[StoredFact]:
        """Return every fact matching ``pattern``."""

    @abstractmethod
    async def put(self, facts: FactOrFacts) -> None:
        """Persist one fact or a batch of facts, replacing equal keys."""

    @abstractmethod
    async def delete(self, facts: FactOrFacts) -> None:
        """Delete one fact or a batch of facts; unknown keys are ignored."""

    async def exists(self, key: FactKey) -> bool:
        subject, predicate, obj = key
        found = await self.get({"subject": subject, "predicate": predicate, "object": obj})
        return bool(found)

    async def close(self) -> None:
        """Release backend resources."""
