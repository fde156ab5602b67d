"""Triplet data model and structural validation.

A triplet is ``{subject, predicate, object}`` where ``subject`` and ``object``
are node references (anything carrying a ``hash``) and ``predicate`` carries a
string ``type`` plus arbitrary edge data. Inputs may be plain mappings or
objects exposing the same attributes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from ..errors import ValidationError

logger = logging.getLogger(__name__)

FactKey = Tuple[str, str, str]


def get_field(obj: Any, name: str, default: Any = None) -> Any:
    """Return ``name`` from a mapping key or an attribute of ``obj``."""

    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def coerce_hash(value: Any) -> Optional[str]:
    """Return ``value`` as a registry key or ``None`` when it is missing."""

    if value is None or isinstance(value, bool):
        return None
    key = str(value)
    return key or None


def as_edge_data(predicate: Any) -> Dict[str, Any]:
    """Copy a predicate into a plain dictionary of edge data."""

    if isinstance(predicate, Mapping):
        return dict(predicate)
    data = {k: v for k, v in vars(predicate).items() if not k.startswith("_")}
    data.setdefault("type", get_field(predicate, "type"))
    return data


@dataclass
class Triplet:
    """Convenience container for a subject-predicate-object fact."""

    subject: Any
    predicate: Any
    object: Any


def check_triplet(fact: Any) -> None:
    """Raise :class:`ValidationError` if ``fact`` is not a well-formed triplet."""

    if fact is None:
        raise ValidationError("TripletObject undefined")

    subject = get_field(fact, "subject")
    predicate = get_field(fact, "predicate")
    obj = get_field(fact, "object")
    if subject is None or predicate is None or obj is None:
        raise ValidationError("Triplets added need to include all three fields.")

    if coerce_hash(get_field(subject, "hash")) is None or (
        coerce_hash(get_field(obj, "hash")) is None
    ):
        raise ValidationError("Subject and Object require a hash field.")

    ptype = get_field(predicate, "type")
    if ptype is None or ptype == "":
        raise ValidationError("Predicate requires type field.")
    if not isinstance(ptype, str):
        raise ValidationError("Predicate type field must be a string")


def validate_triplet(fact: Any) -> bool:
    """Return ``True`` when ``fact`` is well formed, logging the reason otherwise."""

    try:
        check_triplet(fact)
    except ValidationError as exc:
        logger.error("Invalid triplet: %s", exc)
        return False
    return True


@dataclass(frozen=True)
class StoredFact:
    """Fact as persisted in a triplet store.

    Equality and hashing only consider the ``(subject, predicate, object)``
    key so the uniqueness invariant can be checked with plain set logic.
    """

    subject: str
    predicate: str
    object: str
    edge_data: Dict[str, Any] = field(
        default_factory=dict, compare=False, hash=False
    )

    @property
    def key(self) -> FactKey:
        return (self.subject, self.predicate, self.object)

    def references(self, node_hash: str) -> bool:
        return node_hash in (self.subject, self.object)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "predicate": self.predicate,
            "object": self.object,
            "edge_data": dict(self.edge_data),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StoredFact":
        return cls(
            subject=str(data["subject"]),
            predicate=str(data["predicate"]),
            object=str(data["object"]),
            edge_data=dict(data.get("edge_data") or {"type": data["predicate"]}),
        )

    @classmethod
    def from_triplet(cls, fact: Any) -> "StoredFact":
        """Build a stored fact from a triplet that passed :func:`check_triplet`."""

        predicate = get_field(fact, "predicate")
        return cls(
            subject=coerce_hash(get_field(get_field(fact, "subject"), "hash")),
            predicate=get_field(predicate, "type"),
            object=coerce_hash(get_field(get_field(fact, "object"), "hash")),
            edge_data=as_edge_data(predicate),
        )
