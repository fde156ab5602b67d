"""Predicate colors and the once-per-color arrow marker registry."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Union

logger = logging.getLogger(__name__)

EdgeColor = Union[str, Callable[[Dict[str, Any]], str]]


def marker_id(color: str) -> str:
    """Return the identifier renderers use for the arrow head of ``color``."""

    return f"arrow-{color}"


class EdgeColorRegistry:
    """Resolve predicate colors and request one marker asset per distinct color."""

    def __init__(
        self,
        edge_color: EdgeColor = "black",
        on_new_color: Optional[Callable[[str, str], None]] = None,
    ) -> None:
        self.edge_color = edge_color
        self.on_new_color = on_new_color
        self._seen: Dict[str, bool] = {}

    def __contains__(self, color: object) -> bool:
        return color in self._seen

    @property
    def colors(self) -> list[str]:
        return list(self._seen)

    def resolve(self, predicate: Dict[str, Any]) -> str:
        if callable(self.edge_color):
            return str(self.edge_color(predicate))
        return str(self.edge_color)

    def ensure(self, predicate: Dict[str, Any]) -> str:
        """Return the color of ``predicate``, creating its marker on first sight."""

        color = self.resolve(predicate)
        if color not in self._seen:
            self._seen[color] = True
            logger.debug("New edge color %s", color)
            if self.on_new_color is not None:
                self.on_new_color(color, marker_id(color))
        return color
