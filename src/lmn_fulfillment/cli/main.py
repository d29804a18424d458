"""CLI for lmn-fulfillment: generate / search / ingest commands."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from lmn_fulfillment.core.config import AppSettings, LLMConfig, SearchConfig
from lmn_fulfillment.exceptions import GenerationError, ValidationError
from lmn_fulfillment.search import KnowledgeSearchClient, SearchFailure, create_knowledge_index
from lmn_fulfillment.search.ingest import ingest_records, load_reference_records
from lmn_fulfillment.services.fulfillment_service import create_fulfillment_service

app = typer.Typer(name="lmn-fulfillment", help="Letter of Medical Necessity fulfillment pipeline")
console = Console()


def _build_settings(
    model: Optional[str] = None,
    api_key: Optional[str] = None,
    search_backend: Optional[str] = None,
) -> AppSettings:
    """Build settings, overriding env defaults with CLI flags."""
    overrides: dict = {}
    llm: dict = {}
    if model:
        llm["model"] = model
    if api_key:
        llm["api_key"] = api_key
    if llm:
        overrides["llm"] = LLMConfig(**llm)
    if search_backend:
        overrides["search"] = SearchConfig(backend=search_backend)
    return AppSettings(**overrides)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)


@app.command()
def generate(
    intake_file: Path = typer.Argument(..., help="JSON file with the patient intake"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="PDF output path"),
    email: str = typer.Option("", help="Patient email shown on the letter record"),
    model: Optional[str] = typer.Option(None, "--model", help="LLM model name"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="LLM API key"),
    search_backend: Optional[str] = typer.Option(None, "--search-backend", help="pinecone or memory"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Generate and assemble a letter; write the PDF without dispatching."""
    _configure_logging(verbose)
    settings = _build_settings(model, api_key, search_backend)
    service = create_fulfillment_service(settings)

    raw = json.loads(intake_file.read_text(encoding="utf-8"))
    console.print(f"[bold]Generating letter from {intake_file}[/bold]")

    try:
        draft = asyncio.run(service.draft(raw, patient_email=email))
    except ValidationError as e:
        console.print(f"[red]Invalid intake:[/red] {e}")
        raise typer.Exit(code=2)
    except GenerationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    path = output or Path(draft.file_name)
    path.write_bytes(draft.document.content)
    console.print(
        f"[green]Letter saved to {path}[/green] "
        f"({draft.document.page_count} pages, stage={draft.document.stage}, "
        f"form={'yes' if draft.document.form_included else 'no'})"
    )


@app.command()
def search(
    query: str = typer.Argument(..., help="Condition or symptom to look up"),
    top_k: int = typer.Option(5, "--top-k", help="Number of results"),
    search_backend: Optional[str] = typer.Option(None, "--search-backend", help="pinecone or memory"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Query the coded reference index."""
    _configure_logging(verbose)
    settings = _build_settings(search_backend=search_backend)
    client = KnowledgeSearchClient(create_knowledge_index(settings.search))

    outcome = asyncio.run(client.search(query, top_k))
    if isinstance(outcome, SearchFailure):
        console.print(f"[red]Search failed:[/red] {outcome.error}")
        raise typer.Exit(code=1)

    table = Table(title=f"Results for {query!r}")
    table.add_column("ICD-10", style="cyan")
    table.add_column("Condition", style="green")
    table.add_column("Description", max_width=60)
    table.add_column("Score", justify="right")
    for result in outcome.results:
        table.add_row(
            result.icd_code, result.condition, result.description, f"{result.relevance_score:.3f}"
        )
    console.print(table)


@app.command()
def ingest(
    reference_file: Path = typer.Argument(..., help='JSON file with {"icd10_codes": [...]}'),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", help="Records per upsert"),
    search_backend: Optional[str] = typer.Option(None, "--search-backend", help="pinecone or memory"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Upsert coded reference records into the knowledge index."""
    _configure_logging(verbose)
    settings = _build_settings(search_backend=search_backend)
    index = create_knowledge_index(settings.search)

    records = load_reference_records(reference_file)
    console.print(f"Loaded {len(records)} records from {reference_file}")

    size = batch_size or settings.search.upsert_batch_size
    total = asyncio.run(ingest_records(index, records, batch_size=size))
    console.print(f"[green]Upserted {total} records[/green]")


if __name__ == "__main__":
    app()
