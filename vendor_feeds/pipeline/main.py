"""CLI entry point for the vendor feed importer.

This module provides the command-line interface for fetching vendor feeds,
running imports and driving CSV imports batch by batch, with rich console
output and a JSON result file.
"""

import json
import sys
from contextlib import nullcontext
from pathlib import Path
from typing import Callable, Optional

import click
from rich.console import Console
from rich.table import Table

from vendor_feeds import __version__
from vendor_feeds.fetcher.http_client import FeedHTTPClient
from vendor_feeds.models.config import ConfigManager, ImporterConfig
from vendor_feeds.models.data_models import BatchResult, FetchResult, ImportResult
from vendor_feeds.models.errors import FeedImportError
from vendor_feeds.pipeline.orchestrator import ImportOrchestrator
from vendor_feeds.pipeline.output import JSONOutputFormatter
from vendor_feeds.sink.assets import LocalAssetStore
from vendor_feeds.sink.memory import InMemorySink


console = Console()


class CLIState:
    """Options shared by every command."""

    def __init__(self, config: ImporterConfig, store: Optional[Path], no_progress: bool):
        self.config = config
        self.no_progress = no_progress
        store_path = store or (Path(config.store_path) if config.store_path else None)
        self.store_path = store_path
        self.sink = InMemorySink.load(str(store_path)) if store_path else InMemorySink()

    def save_store(self) -> None:
        if self.store_path:
            self.sink.save(str(self.store_path))


def _run(func: Callable[[], None]) -> None:
    """Run a command body with uniform error handling and exit codes."""
    try:
        func()
    except KeyboardInterrupt:
        console.print("\n[yellow]Import interrupted by user[/yellow]")
        sys.exit(130)  # Standard exit code for SIGINT
    except FeedImportError as e:
        console.print(f"\n[red]Error:[/red] {e.message}", style="bold red")
        sys.exit(1)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default="config/vendors.yaml",
    help="Path to vendor configuration YAML file",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides config)",
)
@click.option(
    "--store",
    "-s",
    type=click.Path(path_type=Path),
    help="JSON snapshot of the record store (overrides config)",
)
@click.option(
    "--asset-root",
    type=click.Path(path_type=Path),
    help="Root directory of stored image assets (overrides config)",
)
@click.option(
    "--no-progress",
    is_flag=True,
    help="Disable progress bars and tables (useful for cron jobs)",
)
@click.version_option(version=__version__, prog_name="vendor-feeds")
@click.pass_context
def main(
    ctx: click.Context,
    config: Path,
    log_level: Optional[str],
    store: Optional[Path],
    asset_root: Optional[Path],
    no_progress: bool,
) -> None:
    """
    Vendor Feed Importer - Declarative product feed normalization.

    Fetches vendor product feeds (paginated JSON APIs, JSON data files and
    CSV files), maps them onto a uniform product schema with per-vendor
    configuration, and upserts them by vendor identity.

    Examples:

        # Fetch a vendor API into a JSON data file
        $ vendor-feeds fetch acme

        # Import the first 100 records
        $ vendor-feeds import acme --offset 0 --limit 100

        # Drive a CSV import batch by batch until it is done
        $ vendor-feeds import-csv acme products.csv --batch-size 25 --all
    """
    cli_overrides = {}
    if log_level is not None:
        cli_overrides["log_level"] = log_level.upper()
    if asset_root is not None:
        cli_overrides["asset_root"] = str(asset_root)

    try:
        importer_config = ConfigManager(config).load_config(cli_overrides)
    except FeedImportError as e:
        console.print(f"[red]Error:[/red] {e.message}", style="bold red")
        sys.exit(1)

    ctx.obj = CLIState(importer_config, store, no_progress)


def _orchestrator(state: CLIState, http_client: FeedHTTPClient) -> ImportOrchestrator:
    return ImportOrchestrator(
        state.config,
        state.sink,
        asset_store=LocalAssetStore(state.config.asset_root, http_client),
    )


def _asset_client(config: ImporterConfig) -> FeedHTTPClient:
    return FeedHTTPClient(connect_timeout=config.connect_timeout, read_timeout=config.read_timeout)


@main.command("vendors")
@click.pass_obj
def list_vendors(state: CLIState) -> None:
    """List configured vendors."""
    table = Table(title="Configured Vendors")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Source")
    table.add_column("Pagination", style="magenta")
    table.add_column("Identity", style="green")

    for key, vendor in state.config.vendors.items():
        table.add_row(key, vendor.name, vendor.source, vendor.pagination.strategy.value, vendor.identity_field)
    console.print(table)


@main.command()
@click.argument("vendor")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Data file to write (default: data/<vendor>-products.json)")
@click.pass_obj
def fetch(state: CLIState, vendor: str, output: Optional[Path]) -> None:
    """Fetch a vendor API feed and save it as a JSON data file."""

    def body() -> None:
        orchestrator = ImportOrchestrator(state.config, state.sink)
        status = nullcontext() if state.no_progress else console.status(f"[cyan]Fetching {vendor}...", spinner="dots")
        with status:
            result, path = orchestrator.save_feed(vendor, str(output) if output else None)
        _display_fetch(result, path, state.no_progress)

    _run(body)


@main.command("import")
@click.argument("vendor")
@click.option("--offset", type=int, default=0, show_default=True, help="Records to skip")
@click.option("--limit", type=int, default=100, show_default=True, help="Maximum records to import")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Result JSON file (overrides config)")
@click.pass_obj
def run_import(state: CLIState, vendor: str, offset: int, limit: int, output: Optional[Path]) -> None:
    """Import a window of a vendor's records into the record store."""

    def body() -> None:
        with _asset_client(state.config) as http_client:
            result = _orchestrator(state, http_client).run_import(vendor, offset, limit)
        state.save_store()
        output_path = output or state.config.output_path
        JSONOutputFormatter().save(result, str(output_path))
        _display_import(result, output_path, state.no_progress)

    _run(body)


@main.command("import-csv")
@click.argument("vendor")
@click.argument("file", required=False, type=click.Path(path_type=Path))
@click.option("--offset", type=int, default=0, show_default=True, help="Data rows to skip")
@click.option("--batch-size", type=int, default=10, show_default=True, help="Rows per batch")
@click.option("--all", "run_all", is_flag=True, help="Keep requesting batches until the file is done")
@click.pass_obj
def import_csv(
    state: CLIState,
    vendor: str,
    file: Optional[Path],
    offset: int,
    batch_size: int,
    run_all: bool,
) -> None:
    """Import CSV rows in resumable batches (FILE defaults to the vendor source)."""

    def body() -> None:
        totals = BatchResult()
        with _asset_client(state.config) as http_client:
            orchestrator = _orchestrator(state, http_client)
            current = offset
            while True:
                batch = orchestrator.process_csv_batch(vendor, str(file) if file else None, current, batch_size)
                totals.processed += batch.processed
                totals.created += batch.created
                totals.updated += batch.updated
                totals.errors.extend(batch.errors)
                totals.missing_images += batch.missing_images
                totals.continue_ = batch.continue_
                # Saved after every batch so an interrupted run resumes from the next offset
                state.save_store()
                if not state.no_progress:
                    console.print(f"[cyan]Rows {current + 1}-{current + batch.processed}[/cyan] processed")
                current += batch.processed
                if not (run_all and batch.continue_):
                    break
        _display_batch(totals, current, state.no_progress)

    _run(body)


@main.command("test-product")
@click.argument("vendor")
@click.argument("identity")
@click.option("--dry-run", is_flag=True, help="Map the record without writing it")
@click.pass_obj
def test_product(state: CLIState, vendor: str, identity: str, dry_run: bool) -> None:
    """Trace a single product through mapping and upsert."""

    def body() -> None:
        with _asset_client(state.config) as http_client:
            result = _orchestrator(state, http_client).test_single_product(vendor, identity, dry_run=dry_run)
        if not dry_run:
            state.save_store()
        console.print_json(json.dumps(JSONOutputFormatter().format(result), default=str))
        if result.raw is None:
            sys.exit(1)

    _run(body)


@main.command("serve-mock")
@click.option("--port", type=int, default=8001, show_default=True)
@click.option("--pages", type=int, default=3, show_default=True)
@click.option("--page-size", type=int, default=20, show_default=True)
def serve_mock(port: int, pages: int, page_size: int) -> None:
    """Serve a mock vendor feed for local testing."""
    import uvicorn

    from vendor_feeds.mock_servers import create_mock_feed

    uvicorn.run(create_mock_feed(name="mock", pages=pages, page_size=page_size), host="127.0.0.1", port=port)


def _display_fetch(result: FetchResult, path: Optional[Path], no_progress: bool) -> None:
    status = "complete" if result.complete else f"truncated after {len(result.errors)} failed page(s)"
    console.print(f"✓ Fetched {len(result.records)} records from {result.pages_fetched} page(s), {status}")
    if path:
        console.print(f"✓ Saved to: {path}")
    else:
        console.print("[yellow]No products fetched![/yellow]")
    if not no_progress:
        for error in result.errors:
            console.print(f"  [yellow]page {error.page}[/yellow]: {error.error}")


def _display_import(result: ImportResult, output_path: Path, no_progress: bool) -> None:
    """Display final results summary."""
    if no_progress:
        # Simple output for cron jobs
        console.print(
            f"✓ Import complete: {result.created} created, {result.updated} updated, {result.errors} errors"
        )
        if result.missing_images:
            console.print(f"[yellow]{result.missing_images} image references could not be resolved[/yellow]")
        console.print(f"✓ Output saved to: {output_path}")
        return

    console.print("\n[bold green]Import Complete![/bold green]\n")

    summary_table = Table(title=f"Import Summary - {result.vendor}", show_header=False)
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Value", style="green")
    summary_table.add_row("Created", str(result.created))
    summary_table.add_row("Updated", str(result.updated))
    summary_table.add_row("Errors", str(result.errors))
    summary_table.add_row("Failed Pages", str(len(result.fetch_errors)))
    summary_table.add_row("Missing Images", str(result.missing_images))
    console.print(summary_table)
    console.print()

    console.print(f"[bold]Output saved to:[/bold] {output_path}")
    console.print()


def _display_batch(result: BatchResult, next_offset: int, no_progress: bool) -> None:
    console.print(
        f"✓ {result.processed} rows: {result.created} created, {result.updated} updated, {len(result.errors)} errors"
    )
    if not no_progress:
        for error in result.errors:
            console.print(f"  [yellow]{error}[/yellow]")
    if result.missing_images:
        console.print(f"[yellow]{result.missing_images} image references could not be resolved[/yellow]")
    if result.continue_:
        console.print(f"More rows remain; continue with --offset {next_offset}")


if __name__ == "__main__":
    main()
