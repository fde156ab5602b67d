"""Redis-backed triplet store.

Facts live in one hash keyed by the JSON encoding of their
``[subject, predicate, object]`` key. Three families of sets index the field
names by subject, predicate and object so partial patterns resolve with a
single ``SINTER``.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional

import redis
import redis.asyncio as aioredis

from ..core.triplet import StoredFact
from ..errors import StoreError
from .base import FactOrFacts, Pattern, TripletStore, as_list, normalize_pattern, sort_facts

logger = logging.getLogger(__name__)


def _member(key) -> str:
    return json.dumps(list(key), separators=(",", ":"))


class RedisTripletStore(TripletStore):
    """Persist facts in Redis under ``tripletviz:<database_name>``."""

    def __init__(
        self,
        client: aioredis.Redis | None = None,
        *,
        database_name: str = "default",
        host: str = "localhost",
        port: int = 6379,
    ) -> None:
        self.client = client or aioredis.Redis(host=host, port=port, decode_responses=True)
        self.prefix = f"tripletviz:{database_name}"

    @property
    def facts_key(self) -> str:
        return f"{self.prefix}:facts"

    def _index_key(self, field: str, value: str) -> str:
        return f"{self.prefix}:{field}:{value}"

    def _index_keys(self, fact: StoredFact) -> List[str]:
        return [
            self._index_key("subject", fact.subject),
            self._index_key("predicate", fact.predicate),
            self._index_key("object", fact.object),
        ]

    @staticmethod
    def _decode(raw) -> StoredFact:
        if isinstance(raw, bytes):
            raw = raw.decode()
        return StoredFact.from_dict(json.loads(raw))

    async def get(self, pattern: Optional[Pattern] = None) -> List[StoredFact]:
        query = normalize_pattern(pattern)
        try:
            if not query:
                raw = await self.client.hvals(self.facts_key)
            elif len(query) == 3:
                member = _member((query["subject"], query["predicate"], query["object"]))
                value = await self.client.hget(self.facts_key, member)
                raw = [value] if value is not None else []
            else:
                keys = [self._index_key(name, value) for name, value in query.items()]
                members = await self.client.sinter(keys)
                raw = await self.client.hmget(self.facts_key, list(members)) if members else []
        except redis.RedisError as exc:
            logger.error("Redis get %s failed: %s", query, exc)
            raise StoreError(f"get failed: {exc}", "get") from exc
        return sort_facts(self._decode(item) for item in raw if item is not None)

    async def put(self, facts: FactOrFacts) -> None:
        batch = as_list(facts)
        if not batch:
            return
        try:
            payloads = [(_member(fact.key), json.dumps(fact.to_dict()), fact) for fact in batch]
        except (TypeError, ValueError) as exc:
            logger.error("Cannot encode %d facts for Redis: %s", len(batch), exc)
            raise StoreError(f"put failed: {exc}", "put") from exc
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                for member, payload, fact in payloads:
                    pipe.hset(self.facts_key, member, payload)
                    for key in self._index_keys(fact):
                        pipe.sadd(key, member)
                await pipe.execute()
        except redis.RedisError as exc:
            logger.error("Redis put of %d facts failed: %s", len(batch), exc)
            raise StoreError(f"put failed: {exc}", "put") from exc

    async def delete(self, facts: FactOrFacts) -> None:
        batch = as_list(facts)
        if not batch:
            return
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                for fact in batch:
                    member = _member(fact.key)
                    pipe.hdel(self.facts_key, member)
                    for key in self._index_keys(fact):
                        pipe.srem(key, member)
                await pipe.execute()
        except redis.RedisError as exc:
            logger.error("Redis delete of %d facts failed: %s", len(batch), exc)
            raise StoreError(f"delete failed: {exc}", "delete") from exc

    async def close(self) -> None:
        await self.client.aclose()
