"""In-process triplet store."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

from ..core.triplet import FactKey, StoredFact
from .base import FactOrFacts, Pattern, TripletStore, as_list, matches, normalize_pattern, sort_facts


class MemoryTripletStore(TripletStore):
    """Keep facts in a dictionary keyed by ``(subject, predicate, object)``.

    Every call yields to the event loop once so callers observe the same
    interleaving hazards they would with a remote backend.
    """

    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self._facts: Dict[FactKey, StoredFact] = {}

    def __len__(self) -> int:
        return len(self._facts)

    async def get(self, pattern: Optional[Pattern] = None) -> List[StoredFact]:
        query = normalize_pattern(pattern)
        await asyncio.sleep(0)
        if len(query) == 3:
            fact = self._facts.get((query["subject"], query["predicate"], query["object"]))
            return [fact] if fact is not None else []
        return sort_facts(f for f in self._facts.values() if matches(f, query))

    async def put(self, facts: FactOrFacts) -> None:
        batch = as_list(facts)
        await asyncio.sleep(0)
        for fact in batch:
            self._facts[fact.key] = fact

    async def delete(self, facts: FactOrFacts) -> None:
        batch = as_list(facts)
        await asyncio.sleep(0)
        for fact in batch:
            self._facts.pop(fact.key, None)
