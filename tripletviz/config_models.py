from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import BaseModel, Field

LAYOUT_TYPES = ("flow_layout", "jaccard_link_lengths", "link_distance")


@dataclass
class LayoutSettings:
    """Options for the layout solver and the visual defaults of the diagram."""

    # flow_layout|jaccard_link_lengths|link_distance
    layout_type: str = "flow_layout"
    jaccard_modifier: float = 0.7
    avoid_overlaps: bool = True
    handle_disconnected: bool = False
    # y flows top to bottom, x flows left to right
    flow_direction: str = "y"
    enable_edge_routing: bool = True
    node_shape: str = "rect"
    width: float = 900
    height: float = 600
    pad: float = 5
    margin: float = 10
    allow_drag: bool = True
    edge_length: Any = 150
    edge_color: Any = "black"
    edge_stroke: float = 2
    node_color: str = "white"
    node_stroke_width: float = 2
    node_stroke_color: str = "black"
    initial_iterations: Tuple[int, int, int] = field(default=(10, 15, 20))
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayoutSettings":
        """Create ``LayoutSettings`` from a raw dictionary."""
        defaults = cls()
        values = {k: data.get(k, getattr(defaults, k)) for k in cls.__dataclass_fields__}
        values["initial_iterations"] = tuple(values["initial_iterations"])
        return cls(**values)

    def update(self, overrides: Dict[str, Any]) -> None:
        """Update fields from a dictionary of overrides."""
        for key, value in overrides.items():
            if hasattr(self, key) and value is not None:
                setattr(self, key, value)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.width / 2, self.height / 2)


class LayoutSettingsModel(BaseModel):
    """Pydantic model for validating layout settings."""

    layout_type: Literal["flow_layout", "jaccard_link_lengths", "link_distance"] = (
        "flow_layout"
    )
    jaccard_modifier: float = Field(0.7, ge=0.0)
    avoid_overlaps: bool = True
    handle_disconnected: bool = False
    flow_direction: Literal["x", "y"] = "y"
    enable_edge_routing: bool = True
    node_shape: Literal["rect", "circle"] = "rect"
    width: float = Field(900, gt=0)
    height: float = Field(600, gt=0)
    pad: float = Field(5, ge=0)
    margin: float = Field(10, ge=0)
    allow_drag: bool = True
    edge_length: float = Field(150, gt=0)
    edge_color: str = "black"
    edge_stroke: float = 2
    node_color: str = "white"
    node_stroke_width: float = 2
    node_stroke_color: str = "black"
    initial_iterations: Tuple[int, int, int] = (10, 15, 20)
    seed: Optional[int] = None

    def to_settings(self) -> LayoutSettings:
        """Convert to :class:`LayoutSettings`."""
        return LayoutSettings.from_dict(self.model_dump())


@dataclass
class StoreSettings:
    """Which triplet store backs a graph and where it lives."""

    # memory|redis
    backend: str = "memory"
    database_name: Optional[str] = None
    host: str = "localhost"
    port: int = 6379

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoreSettings":
        defaults = cls()
        return cls(**{k: data.get(k, getattr(defaults, k)) for k in cls.__dataclass_fields__})


class StoreSettingsModel(BaseModel):
    backend: Literal["memory", "redis"] = "memory"
    database_name: Optional[str] = None
    host: str = "localhost"
    port: int = Field(6379, gt=0, lt=65536)

    def to_settings(self) -> StoreSettings:
        return StoreSettings.from_dict(self.model_dump())
