"""Command line interface for HangulFinder."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.table import Table

from hangulfinder.config import AppConfig
from hangulfinder.index.engine import HangulSearchEngine
from hangulfinder.ingestion.markdown_loader import MarkdownVaultProvider
from hangulfinder.models import SearchHit
from hangulfinder.watcher import VaultWatcher

console = Console()
app = typer.Typer(help="HangulFinder - Hangul-aware fuzzy search for markdown vaults")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_config(vault: Path | None, threshold: float, limit: int, content: bool) -> AppConfig:
    if not 0 <= threshold <= 1:
        raise typer.BadParameter(f"Threshold must be between 0 and 1, got {threshold}")
    return AppConfig(
        vault_path=vault if vault is not None else AppConfig().vault_path,
        threshold=threshold,
        max_results=limit,
        index_content=content,
    )


def _make_engine(config: AppConfig) -> HangulSearchEngine:
    vault_path = config.resolve_vault_path(Path.cwd())
    if not vault_path.is_dir():
        raise typer.BadParameter(f"Vault not found: {vault_path}")
    provider = MarkdownVaultProvider(vault_path, extensions=config.extensions)
    return HangulSearchEngine(provider, config)


def _render_hits(hits: List[SearchHit]) -> None:
    if not hits:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Strategy")
    table.add_column("Modified")
    table.add_column("Preview")

    for hit in hits:
        modified = datetime.fromtimestamp(hit.mtime).strftime("%Y-%m-%d")
        table.add_row(f"{hit.score:.3f}", hit.path, hit.strategy, modified, hit.content[:80])

    console.print(table)


async def _search_once(engine: HangulSearchEngine, query: str) -> List[SearchHit]:
    await engine.build()
    engine.search(query)
    # Second pass picks up the content boosts of the freshly hydrated hits.
    await engine.wait_for_hydration()
    return engine.search(query)


@app.command()
def index(
    vault: Path = typer.Argument(None, help="Vault directory with markdown files."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index a vault and report what was found."""
    _setup_logging(verbose)
    config = AppConfig(vault_path=vault if vault is not None else AppConfig().vault_path)
    engine = _make_engine(config)

    console.print(f"Indexing [bold]{config.resolve_vault_path(Path.cwd())}[/bold]...")
    count = asyncio.run(engine.build())
    if not count:
        console.print("[yellow]No markdown documents found.[/yellow]")
        return
    console.print(f"Indexed: {count} documents")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text, Hangul jamo allowed"),
    vault: Path = typer.Option(None, "--vault", help="Vault directory"),
    threshold: float = typer.Option(AppConfig().threshold, help="Match threshold between 0 and 1"),
    limit: int = typer.Option(10, help="Number of results to display"),
    content: bool = typer.Option(True, "--content/--no-content", help="Index content previews"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the document names of a vault."""
    _setup_logging(verbose)
    if not query.strip():
        raise typer.BadParameter("Empty query")

    engine = _make_engine(_build_config(vault, threshold, limit, content))
    hits = asyncio.run(_search_once(engine, query))
    _render_hits(hits)


@app.command()
def watch(
    vault: Path = typer.Option(None, "--vault", help="Vault directory"),
    threshold: float = typer.Option(AppConfig().threshold, help="Match threshold between 0 and 1"),
    limit: int = typer.Option(10, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Keep the index live while answering queries typed at the prompt."""
    _setup_logging(verbose)
    engine = _make_engine(_build_config(vault, threshold, limit, True))
    asyncio.run(engine.build())
    console.print(f"Indexed {engine.count()} documents. Empty query quits.")

    watcher = VaultWatcher(engine.provider)
    watcher.start()
    try:
        while True:
            query = typer.prompt("search", default="", show_default=False)
            if not query.strip():
                break
            watcher.drain(engine)
            hits = engine.search(query)
            asyncio.run(engine.hydrate_pending())
            _render_hits(engine.search(query) if hits else hits)
    finally:
        watcher.stop()


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    vault: Path = typer.Option(None, "--vault", help="Vault directory"),
) -> None:
    """Start the web interface."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - optional extra
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from hangulfinder.web.app import create_app

    config = AppConfig(vault_path=vault if vault is not None else AppConfig().vault_path)
    engine = _make_engine(config)

    console.print(f"Starting web interface on http://{host}:{port} (vault: {engine.provider.root})")
    uvicorn.run(
        create_app(engine),
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
