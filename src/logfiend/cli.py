"""
LogFiend CLI.

Command-line interface for inventorying SIEM data sources.

Usage:
    logfiend collect --config config.yml --output datasource_inventory.json
    logfiend collect --config examples/splunk.yml --dry-run
    logfiend validate --config config.yml
    logfiend providers
"""

import asyncio
import uuid
from datetime import timedelta
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from logfiend import __version__
from logfiend.config import load_config, settings
from logfiend.exceptions import LogfiendError
from logfiend.logging_config import LogConfig, LogEventType, configure_logging, get_logger, set_run_id
from logfiend.models.config import AppConfig, ProviderConfig
from logfiend.models.datasource import DataSource
from logfiend.providers.registry import ProviderRegistry, create_default_registry
from logfiend.services.collector import InventoryCollector
from logfiend.services.inventory import (
    redact_endpoint,
    render_inventory,
    summarize_by_type,
    timestamped_path,
    validate_output_path,
    write_inventory,
)
from logfiend.services.sanitizer import sanitize_config, validate_config

app = typer.Typer(
    name="logfiend",
    help="Vendor-agnostic SIEM data source inventory.",
    no_args_is_help=True,
)
console = Console()
logger = get_logger(__name__)


def version_callback(value: bool):
    if value:
        console.print(f"LogFiend v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
):
    """LogFiend - Inventory data sources across SIEM platforms."""
    pass


def _fail(error: Exception) -> typer.Exit:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    return typer.Exit(1)


def _prepare(config_path: str, provider_override: str | None, debug: bool) -> AppConfig:
    """Load the document, set up logging and run the sanitization gate."""
    app_config = load_config(config_path)
    configure_logging(
        LogConfig.from_document(app_config.logging.level, app_config.logging.format, debug)
    )
    logger.event(LogEventType.CONFIG_LOAD, f"Loaded configuration from {config_path}")

    provider_config = app_config.provider
    if provider_override:
        logger.info(f"Overriding provider: {provider_config.type} -> {provider_override}")
        provider_config = provider_config.model_copy(update={"type": provider_override})

    validate_config(provider_config)
    logger.event(LogEventType.CONFIG_VALIDATE, "Configuration validated")
    provider_config = sanitize_config(provider_config)
    logger.event(LogEventType.CONFIG_SANITIZE, "Configuration sanitized")

    return app_config.model_copy(update={"provider": provider_config})


async def _describe(registry: ProviderRegistry, config: ProviderConfig):
    """Construct a provider without network I/O to read its name and capabilities."""
    provider = registry.create(config)
    try:
        return provider.name, provider.get_capabilities()
    finally:
        await provider.aclose()


# =============================================================================
# Inventory Commands
# =============================================================================


@app.command()
def collect(
    config: Annotated[
        str,
        typer.Option("--config", "-c", help="Path to configuration file"),
    ] = settings.config_path,
    output: Annotated[
        str,
        typer.Option("--output", "-o", help="Path to save data source inventory"),
    ] = settings.output_path,
    provider: Annotated[
        Optional[str],
        typer.Option("--provider", "-p", help="Override provider from config"),
    ] = None,
    timeout: Annotated[
        float,
        typer.Option("--timeout", "-t", help="Deadline for the whole run in seconds"),
    ] = settings.timeout.total_seconds(),
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be done without making network calls"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging"),
    ] = False,
    airgap: Annotated[
        bool,
        typer.Option("--airgap", help="Make no network calls and write an empty inventory"),
    ] = False,
):
    """Collect the data source inventory from the configured provider."""
    set_run_id(uuid.uuid4().hex)

    if verbose:
        console.print("LogFiend - Vendor-agnostic SIEM data source inventory")
        console.print(f"  Config file: {escape(config)}")
        console.print(f"  Output file: {escape(output)}")
    if airgap:
        console.print("[yellow]Airgap mode: no network calls will be made[/yellow]")

    registry = create_default_registry()

    try:
        app_config = _prepare(config, provider, debug)
        logger.event(LogEventType.APP_START, f"LogFiend v{__version__} collect run started")
        output_path = validate_output_path(output, settings.output_dir)
        if app_config.output.timestamp:
            output_path = timestamped_path(output_path)

        provider_config = app_config.provider
        name, capabilities = asyncio.run(_describe(registry, provider_config))

        if verbose:
            console.print(f"Fetching data sources from [bold]{name}[/bold] provider...")
            if capabilities.requires_authentication:
                console.print("  Provider requires authentication")

        if dry_run:
            console.print("[bold]DRY RUN[/bold] - no network calls will be made")
            console.print(f"  Would connect to: {escape(redact_endpoint(provider_config.endpoint))}")
            console.print(f"  Would use provider: {name}")
            console.print(f"  Would save results to: {escape(str(output_path))}")
            if not airgap:
                console.print("  Would validate connection")
            return

        collector = InventoryCollector(registry, timeout=timedelta(seconds=timeout))
        inventory = asyncio.run(
            collector.collect(
                provider_config,
                validate_connection=not airgap,
                airgap=airgap,
            )
        )

        data = render_inventory(inventory, app_config.output.format, app_config.output.pretty)
        write_inventory(output_path, data)
        logger.event(
            LogEventType.INVENTORY_WRITE,
            f"Inventory written to {output_path}",
            provider=inventory.metadata.provider,
            source_count=inventory.metadata.source_count,
        )
        logger.event(LogEventType.APP_STOP, "Collect run finished")
    except LogfiendError as e:
        logger.debug(f"Run failed: {type(e).__name__}: {e}")
        raise _fail(e) from e

    console.print(
        f"[green]✓[/green] {inventory.metadata.provider} data source inventory saved to "
        f"[bold]{escape(str(output_path))}[/bold] ({inventory.metadata.source_count} sources)"
    )

    if verbose and inventory.data_sources:
        _print_summary(inventory.data_sources)


@app.command()
def validate(
    config: Annotated[
        str,
        typer.Option("--config", "-c", help="Path to configuration file"),
    ] = settings.config_path,
):
    """Validate and sanitize a configuration file without contacting the provider."""
    try:
        app_config = _prepare(config, None, debug=False)
    except LogfiendError as e:
        raise _fail(e) from e

    provider_config = app_config.provider
    auth = provider_config.auth

    console.print("[green]✓[/green] Configuration is valid")
    console.print(f"  Provider: {provider_config.type}")
    console.print(f"  Endpoint: {escape(redact_endpoint(provider_config.endpoint))}")
    console.print(f"  Auth: {auth.type if auth else 'none'}")
    if auth and auth.username:
        console.print(f"  Username: {escape(auth.username)}")
    console.print(f"  TLS verification: {'on' if provider_config.verify_tls else 'off'}")
    console.print(f"  Timeout: {provider_config.timeout.total_seconds():g}s")
    console.print(f"  Retries: {provider_config.retries}")


@app.command("providers")
def list_providers():
    """List registered providers and their capabilities."""
    registry = create_default_registry()

    table = Table(title="Providers")
    table.add_column("Type", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Data Types")
    table.add_column("Real-time")
    table.add_column("Historical")
    table.add_column("Auth Required")

    for provider_type in registry.available():
        name, capabilities = asyncio.run(
            _describe(
                registry,
                ProviderConfig(type=provider_type, endpoint="https://localhost"),
            )
        )
        table.add_row(
            provider_type,
            name,
            ", ".join(capabilities.supported_data_types),
            "yes" if capabilities.supports_real_time_queries else "no",
            "yes" if capabilities.supports_historical_data else "no",
            "yes" if capabilities.requires_authentication else "no",
        )

    console.print(table)


# =============================================================================
# Helper Functions
# =============================================================================


def _print_summary(data_sources: list[DataSource]):
    """Print data source counts per type."""
    table = Table(title="Summary by type")
    table.add_column("Type", style="cyan")
    table.add_column("Count", justify="right")

    for source_type, count in summarize_by_type(data_sources).items():
        table.add_row(source_type, str(count))

    console.print()
    console.print(table)


if __name__ == "__main__":
    app()
