import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import networkx as nx
import typer
import uvicorn

from tripletviz.core.graph import TripletGraph
from tripletviz.store.memory import MemoryTripletStore
from tripletviz.utils.config import CONFIG_PATH_ENV, get_layout_settings, load_config

app_cli = typer.Typer(help="Command line utilities for the tripletviz graph synchronizer")

logger = logging.getLogger(__name__)


@app_cli.callback()
def main(log_level: str = typer.Option("INFO", "--log-level", help="Logging level")):
    """Configure logging for every command."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _load(file: Path, config: Optional[Path]) -> TripletGraph:
    settings = get_layout_settings(load_config(str(config) if config else None))
    graph = TripletGraph(MemoryTripletStore(name=file.stem), settings=settings)
    result = await graph.load_graph(file.read_text())
    if not result:
        logger.error("Loaded %s with errors: %s", file, result.error)
    return graph


@app_cli.command()
def serve(
    host: str = "127.0.0.1",
    port: int = 8000,
    config: Optional[Path] = typer.Option(None, help="YAML configuration file"),
    metrics: bool = typer.Option(False, help="Expose Prometheus metrics"),
):
    """Run the REST API server."""
    cfg = load_config(str(config) if config else None)
    if metrics:
        from tripletviz.monitoring import start_metrics_server

        start_metrics_server(cfg.get("monitor", {}).get("port", 9108))
    if config:
        os.environ[CONFIG_PATH_ENV] = str(config)
    uvicorn.run("tripletviz.api:build_app", factory=True, host=host, port=port)


@app_cli.command()
def inspect(
    file: Path = typer.Argument(..., exists=True, help="Saved graph (JSON)"),
    config: Optional[Path] = typer.Option(None, help="YAML configuration file"),
):
    """Load a saved graph and print its size."""
    graph = asyncio.run(_load(file, config))
    typer.echo(f"nodes: {len(graph.nodes)}")
    typer.echo(f"links: {len(graph.links)}")
    typer.echo(f"groups: {len(graph.groups)}")
    if graph.needs_resync:
        typer.echo("needs resync")


@app_cli.command()
def export(
    file: Path = typer.Argument(..., exists=True, help="Saved graph (JSON)"),
    out: Path = typer.Argument(..., help="Destination GraphML file"),
    config: Optional[Path] = typer.Option(None, help="YAML configuration file"),
):
    """Convert a saved graph to GraphML."""
    graph = asyncio.run(_load(file, config))
    nx.write_graphml(graph.to_networkx(), str(out))
    typer.echo(f"Wrote {out}")


if __name__ == "__main__":
    app_cli()
