"""Pydantic payloads for the HTTP interface."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class NodeIn(BaseModel):
    """Node record as accepted by ``POST /nodes``. Extra fields are kept."""

    model_config = ConfigDict(extra="allow")

    hash: Union[str, int]
    shortname: Optional[Union[str, List[str]]] = None
    x: Optional[float] = None
    y: Optional[float] = None


class NodeRef(BaseModel):
    model_config = ConfigDict(extra="allow")

    hash: Union[str, int]


class PredicateIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = Field(min_length=1)


class TripletIn(BaseModel):
    subject: NodeRef
    predicate: PredicateIn
    object: NodeRef


class MergeIn(BaseModel):
    anchor: Union[str, int]
    member: Union[str, int]


class NodeOut(BaseModel):
    hash: str
    label: str
    x: Optional[float] = None
    y: Optional[float] = None
    index: int


class LinkOut(BaseModel):
    key: str
    source: Optional[str] = None
    target: Optional[str] = None
    predicate: Optional[str] = None
    edge_data: Dict[str, Any] = Field(default_factory=dict)


class GroupOut(BaseModel):
    leaves: List[int]
    hashes: List[str]


class GraphView(BaseModel):
    """Snapshot of the projected collections after the last completed cycle."""

    phase: str
    needs_resync: bool = False
    nodes: List[NodeOut]
    links: List[LinkOut]
    groups: List[GroupOut]


class NodeExists(BaseModel):
    hash: str
    exists: bool
