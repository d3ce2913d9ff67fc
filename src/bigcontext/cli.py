"""Command line interface for bigcontext."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import NoReturn, Optional, Sequence

import typer
from rich.console import Console
from rich.table import Table

from bigcontext.config import AppConfig, DEFAULT_CHUNK_TOKENS, DEFAULT_ENCODING, DEFAULT_MODEL, resolve_api_key
from bigcontext.exceptions import BigContextError
from bigcontext.models import Chunk
from bigcontext.pipeline.processor import clear_cache, process
from bigcontext.tokenization.counter import TokenCounter
from bigcontext.tokenization.estimation import TokenEstimation, estimate_tokens
from bigcontext.utils.files import read_document
from bigcontext.utils.text import split_into_token_chunks


console = Console()
app = typer.Typer(help="bigcontext - apply a prompt to text files of any size, chunk by chunk")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _fail(exc: BigContextError) -> NoReturn:
    console.print(f"[red]Error:[/red] {exc}")
    raise typer.Exit(code=1)


def _cost_table(estimation: TokenEstimation) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Model")
    table.add_column("Estimated input cost (USD)", justify="right")
    for model, cost in sorted(estimation.costs.items()):
        table.add_row(model, f"${cost:.4f}")
    return table


def _print_progress(completed: int, total: int, index: int, cached: bool) -> None:
    source = "cached" if cached else "generated"
    percent = completed / total * 100 if total else 100.0
    console.print(f"Progress: {completed}/{total} chunks completed ({percent:.1f}%) - chunk {index} {source}")


def _confirm(chunks: Sequence[Chunk], estimation: TokenEstimation) -> bool:
    console.print(f"Text size: {estimation.bytes_count} bytes")
    console.print(f"Token count: {estimation.tokens_count} tokens")
    console.print(f"Split into [bold]{len(chunks)}[/bold] chunks")
    console.print(_cost_table(estimation))
    return typer.confirm("Do you want to proceed with processing?", default=False)


@app.command()
def run(
    prompt: str = typer.Argument(..., help="Instruction applied to every chunk."),
    document: Path = typer.Argument(..., help="Text file to process."),
    model: str = typer.Option(DEFAULT_MODEL, help="OpenAI chat model"),
    chunk_tokens: int = typer.Option(DEFAULT_CHUNK_TOKENS, help="Maximum tokens per chunk"),
    encoding: str = typer.Option(DEFAULT_ENCODING, help="tiktoken encoding used to size chunks"),
    max_concurrency: Optional[int] = typer.Option(
        None, help="Maximum simultaneous requests (unbounded by default)"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Split DOCUMENT, apply PROMPT to each chunk and write the combined results."""
    _setup_logging(verbose)
    try:
        api_key = resolve_api_key()
        config = AppConfig(
            model_name=model,
            chunk_tokens=chunk_tokens,
            encoding_name=encoding,
            max_concurrency=max_concurrency,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except BigContextError as exc:
        _fail(exc)

    try:
        report = asyncio.run(
            process(
                prompt,
                document,
                config=config,
                api_key=api_key,
                confirm=None if yes else _confirm,
                on_progress=_print_progress,
            )
        )
    except BigContextError as exc:
        _fail(exc)

    if not report.completed:
        console.print("[yellow]Processing cancelled by user.[/yellow]")
        return

    console.print(
        f"[green]All {report.chunk_count} chunks processed[/green] "
        f"(cached: {report.cached_count}, generated: {report.generated_count}, "
        f"input tokens: {report.total_tokens})"
    )
    if report.cache_write_failures:
        console.print(
            f"[yellow]Results for chunks {report.cache_write_failures} could not be cached.[/yellow]"
        )
    console.print(f"Combined results written to: [bold]{report.output_path}[/bold]")


@app.command()
def estimate(
    document: Path = typer.Argument(..., help="Text file to inspect."),
    chunk_tokens: int = typer.Option(DEFAULT_CHUNK_TOKENS, help="Maximum tokens per chunk"),
    encoding: str = typer.Option(DEFAULT_ENCODING, help="tiktoken encoding used to size chunks"),
) -> None:
    """Show token count, chunk count and input cost without calling the API."""
    try:
        config = AppConfig(chunk_tokens=chunk_tokens, encoding_name=encoding)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        text = read_document(document)
        counter = TokenCounter(config.encoding_name)
        estimation = estimate_tokens(text, counter, config.model_costs)
        chunks = split_into_token_chunks(text, config.chunk_tokens, counter)
    except BigContextError as exc:
        _fail(exc)

    console.print(f"Text size: {estimation.bytes_count} bytes")
    console.print(f"Token count: {estimation.tokens_count} tokens")
    console.print(f"Chunks at {config.chunk_tokens} tokens: {len(chunks)}")
    console.print(_cost_table(estimation))


@app.command()
def clean(
    document: Path = typer.Argument(..., help="Text file whose cached chunks should be removed."),
) -> None:
    """Remove the cached chunk and result files of DOCUMENT."""
    try:
        removed = clear_cache(document)
    except BigContextError as exc:
        _fail(exc)

    if removed:
        console.print(f"Removed cache directory for [bold]{document}[/bold]")
    else:
        console.print("[yellow]No cache directory found, nothing to remove.[/yellow]")


if __name__ == "__main__":
    app()
