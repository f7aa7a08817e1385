"""Command line interface for the SciX documentation search."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from scixdocs.config import AppConfig
from scixdocs.index.service import DocsIndex
from scixdocs.ingestion.corpus_loader import CorpusLoadError


console = Console()
app = typer.Typer(help="scixdocs - fuzzy search over the SciX help documentation")

USAGE = (
    "Usage: scixdocs search <query>\n"
    "Example: scixdocs search author search"
)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _make_index(corpus: Path | None) -> DocsIndex:
    config = AppConfig(corpus_path=corpus if corpus is not None else AppConfig().corpus_path)
    return DocsIndex(config)


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except CorpusLoadError as exc:
        console.print(str(exc), style="red", markup=False, highlight=False)
        raise typer.Exit(code=1) from exc


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command()
def search(
    query: Optional[List[str]] = typer.Argument(None, help="Free-text query"),
    limit: int = typer.Option(AppConfig().default_limit, "--limit", "-n", help="Maximum hits"),
    table: bool = typer.Option(False, "--table", help="Render a table instead of JSON"),
    corpus: Path = typer.Option(None, "--corpus", help="Chunked documentation JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the documentation and print the ranked hits."""
    _setup_logging(verbose)
    text = " ".join(query or []).strip()
    if not text:
        typer.echo(USAGE)
        raise typer.Exit(code=1)

    hits = _run(_make_index(corpus).search_docs(text, limit))

    if not table:
        _echo_json([hit.to_dict() for hit in hits])
        return

    if not hits:
        console.print("[yellow]No matches found.[/yellow]")
        return

    results = Table(show_header=True, header_style="bold magenta")
    results.add_column("Score")
    results.add_column("Title")
    results.add_column("Category")
    results.add_column("Snippet")
    for hit in hits:
        results.add_row(f"{hit.score:.4f}", hit.title, hit.category, hit.snippet[:180])
    console.print(results)


@app.command()
def category(
    name: str = typer.Argument(..., help="Category, e.g. search_docs"),
    query: Optional[List[str]] = typer.Argument(None, help="Optional query within the category"),
    limit: int = typer.Option(AppConfig().category_limit, "--limit", "-n", help="Maximum hits"),
    corpus: Path = typer.Option(None, "--corpus", help="Chunked documentation JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List or search the chunks of one category."""
    _setup_logging(verbose)
    text = " ".join(query or [])
    hits = _run(_make_index(corpus).search_by_category(name, text, limit))
    _echo_json([hit.to_dict() for hit in hits])


@app.command()
def show(
    doc_id: str = typer.Argument(..., help="Chunk id"),
    corpus: Path = typer.Option(None, "--corpus", help="Chunked documentation JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Print one documentation chunk."""
    _setup_logging(verbose)
    doc = _run(_make_index(corpus).get_doc_by_id(doc_id))
    if doc is None:
        console.print(f"[yellow]No document with id {doc_id}.[/yellow]")
        raise typer.Exit(code=1)
    _echo_json(doc.to_dict())


@app.command()
def stats(
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
    corpus: Path = typer.Option(None, "--corpus", help="Chunked documentation JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Summarize the indexed corpus."""
    _setup_logging(verbose)
    summary = _run(_make_index(corpus).get_stats())
    if as_json:
        _echo_json(summary.to_dict())
        return

    console.print(
        f"Documents: [bold]{summary.total_docs}[/bold], "
        f"average length: {summary.avg_content_length} chars"
    )
    for title, counts in (("Category", summary.by_category), ("Doc type", summary.by_doc_type)):
        breakdown = Table(show_header=True, header_style="bold magenta")
        breakdown.add_column(title)
        breakdown.add_column("Chunks", justify="right")
        for key, count in sorted(counts.items()):
            breakdown.add_row(key, str(count))
        console.print(breakdown)
