"""CLI entry point for partner feed imports.

Runs imports against the in-memory catalog backend, persisted as a JSON
snapshot between runs, and writes one statistics report per partner.
"""

import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from partner_import import __version__
from partner_import.models.config import ConfigManager, ImportConfig
from partner_import.models.data_models import ImportStatistics, Partner
from partner_import.pipeline.orchestrator import ImportOrchestrator
from partner_import.pipeline.output import JSONOutputFormatter
from partner_import.storage import InMemoryCatalog


console = Console()


def _load_config(
    config: Path,
    log_level: Optional[str],
    workers: Optional[int] = None,
    timeout: Optional[float] = None
) -> ImportConfig:
    cli_overrides: Dict = {}
    if log_level is not None:
        cli_overrides["log_level"] = log_level.upper()
    if workers is not None:
        cli_overrides["worker_pool_size"] = workers
    if timeout is not None:
        cli_overrides["total_timeout"] = timeout
    return ConfigManager(config).load_config(cli_overrides)


def _select_partners(config: ImportConfig, partner_ids: Tuple[str, ...]) -> List[Partner]:
    if partner_ids:
        return [config.get_partner(pid).to_partner() for pid in partner_ids]
    return [p.to_partner() for p in config.partners if p.published]


@click.group()
@click.version_option(version=__version__, prog_name="partner-import")
def cli() -> None:
    """
    Partner Import - reconcile partner stock feeds with the shop catalog.

    Examples:

        # Import every published partner from config/config.yaml
        $ partner-import run

        # Import one partner into a specific catalog snapshot
        $ partner-import run --partner acme --catalog data/catalog.json

        # Take a partner off the shop
        $ partner-import disable --partner acme --reason "Contract ended"
    """


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default="config/config.yaml",
    help="Path to configuration YAML file",
)
@click.option("--partner", "-p", "partner_ids", multiple=True, help="Partner id to import (repeatable)")
@click.option(
    "--catalog",
    type=click.Path(path_type=Path),
    help="Catalog snapshot JSON file (overrides config)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Directory for statistics reports (overrides config)",
)
@click.option("--workers", "-w", type=int, help="Regions reconciled concurrently (overrides config)")
@click.option("--timeout", "-t", type=float, help="Per-partner import timeout in seconds (overrides config)")
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides config)",
)
def run(
    config: Path,
    partner_ids: Tuple[str, ...],
    catalog: Optional[Path],
    output: Optional[Path],
    workers: Optional[int],
    timeout: Optional[float],
    log_level: Optional[str],
) -> None:
    """Import partner feeds into the catalog."""
    try:
        import_config = _load_config(config, log_level, workers, timeout)
        catalog_path = catalog or Path(import_config.catalog_path)
        output_dir = output or import_config.output_path
        partners = _select_partners(import_config, partner_ids)

        if not partners:
            console.print("[yellow]No partners to import[/yellow]")
            sys.exit(0)

        backend = InMemoryCatalog.load(catalog_path)
        orchestrator = ImportOrchestrator.from_backend(import_config, backend)

        results = asyncio.run(_run_imports(orchestrator, partners))

        formatter = JSONOutputFormatter()
        for partner, statistics in results:
            formatter.save(partner, statistics, output_dir)
        backend.dump(catalog_path)

        _display_results(results, output_dir)
        sys.exit(0)

    except KeyboardInterrupt:
        console.print("\n[yellow]Import interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}", style="bold red")
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default="config/config.yaml",
    help="Path to configuration YAML file",
)
@click.option("--partner", "-p", "partner_id", required=True, help="Partner id to disable")
@click.option("--reason", "-r", default="", help="Reason recorded in the partner statistics")
@click.option(
    "--catalog",
    type=click.Path(path_type=Path),
    help="Catalog snapshot JSON file (overrides config)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Directory for statistics reports (overrides config)",
)
def disable(
    config: Path,
    partner_id: str,
    reason: str,
    catalog: Optional[Path],
    output: Optional[Path],
) -> None:
    """Unpublish all products of a partner and clean up open carts."""
    try:
        import_config = _load_config(config, None)
        catalog_path = catalog or Path(import_config.catalog_path)
        output_dir = output or import_config.output_path
        partner = import_config.get_partner(partner_id).to_partner()

        backend = InMemoryCatalog.load(catalog_path)
        orchestrator = ImportOrchestrator.from_backend(import_config, backend)
        statistics = orchestrator.disable(partner, reason)

        JSONOutputFormatter().save(partner, statistics, output_dir)
        backend.dump(catalog_path)

        console.print(
            f"✓ Partner {partner.name} disabled: {statistics.deleted} products unpublished"
        )
        sys.exit(0)

    except KeyError as e:
        console.print(f"\n[red]Error:[/red] {e.args[0]}", style="bold red")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}", style="bold red")
        sys.exit(1)


async def _run_imports(
    orchestrator: ImportOrchestrator,
    partners: List[Partner],
) -> List[Tuple[Partner, ImportStatistics]]:
    """Import partners one after another; they never share stores."""
    results = []
    for partner in partners:
        console.print(f"[cyan]Importing {partner.name}...[/cyan]")
        results.append((partner, await orchestrator.run(partner)))
    return results


def _display_results(
    results: List[Tuple[Partner, ImportStatistics]],
    output_dir: Path,
) -> None:
    """Display final results summary."""
    console.print("\n[bold green]Import Complete![/bold green]\n")

    table = Table(title="Import Statistics")
    table.add_column("Partner", style="cyan")
    table.add_column("Regions", justify="right", style="green")
    table.add_column("Products", justify="right", style="green")
    table.add_column("Created", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Deleted", justify="right")
    table.add_column("Errors", justify="right", style="yellow")
    table.add_column("Duration", justify="right", style="magenta")

    for partner, statistics in results:
        table.add_row(
            partner.name,
            str(statistics.regions_count),
            str(statistics.count),
            str(statistics.created),
            str(statistics.updated),
            str(statistics.deleted),
            str(len(statistics.errors)),
            f"{statistics.duration}s",
        )

    console.print(table)
    console.print()
    console.print(f"[bold]Reports saved to:[/bold] {output_dir}")
    console.print()


if __name__ == "__main__":
    cli()
