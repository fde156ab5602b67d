"""Prometheus monitoring utilities."""

from __future__ import annotations

import logging

from prometheus_client import REGISTRY, Counter, Gauge, start_http_server

logger = logging.getLogger(__name__)


def _metric(cls, name: str, desc: str, **kwargs):
    """Return a metric, reusing existing collectors when present."""
    existing = getattr(REGISTRY, "_names_to_collectors", {}).get(name)
    if existing:
        return existing
    return cls(name, desc, **kwargs)


facts_persisted_total = _metric(
    Counter, "tripletviz_facts_persisted_total", "Facts written to the triplet store"
)
duplicate_facts_total = _metric(
    Counter, "tripletviz_duplicate_facts_total", "Facts rejected as duplicates"
)
validation_failures_total = _metric(
    Counter,
    "tripletviz_validation_failures_total",
    "Malformed facts or nodes rejected before mutation",
)
store_errors_total = _metric(
    Counter,
    "tripletviz_store_errors_total",
    "Triplet store operations that failed",
    labelnames=["operation"],
)
reprojections_total = _metric(
    Counter, "tripletviz_reprojections_total", "Full link reprojections"
)
layout_restarts_total = _metric(
    Counter, "tripletviz_layout_restarts_total", "Layout solver restarts"
)
graph_nodes = _metric(Gauge, "tripletviz_graph_nodes", "Registered nodes")
graph_links = _metric(Gauge, "tripletviz_graph_links", "Projected links")
graph_groups = _metric(Gauge, "tripletviz_graph_groups", "Visual groups")
dangling_links = _metric(
    Gauge, "tripletviz_dangling_links", "Projected links with an unregistered endpoint"
)

_METRICS = {
    "tripletviz_graph_nodes": graph_nodes,
    "tripletviz_graph_links": graph_links,
    "tripletviz_graph_groups": graph_groups,
    "tripletviz_dangling_links": dangling_links,
}


def update_metric(name: str, value: float) -> None:
    """Set one of the graph gauges; unknown names are ignored."""

    g = _METRICS.get(name)
    if g is not None:
        g.set(value)


def start_metrics_server(port: int = 9108) -> None:
    """Start an HTTP server exposing the Prometheus metrics."""
    logger.info("Serving metrics on port %d", port)
    start_http_server(port)
