"""Main CLI entry point using Typer."""

import logging
import sys
from datetime import datetime, timezone
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..aws.provider import AWSProvider, ProviderError
from ..models.deletion_record import DeletionStatus
from ..models.reap_operation import ReapOperation
from ..models.resource import LOAD_BALANCER_TYPE
from ..reaper.lister import ResourceLister
from ..reaper.reaper import FAMILIES, Reaper
from ..reaper.tagger import ResourceTagger
from ..utils.logging import setup_logging
from .config import Config

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="ttlreaper",
    help="AWS TTL Reaper - delete tagged AWS resources once their TTL has elapsed",
    add_completion=False,
)

# Create Rich console for output
console = Console()

# Global config
config: Optional[Config] = None

STATUS_STYLES = {
    DeletionStatus.SUCCEEDED: "green",
    DeletionStatus.FAILED: "red",
    DeletionStatus.SKIPPED: "yellow",
    DeletionStatus.DRY_RUN: "cyan",
}


@app.callback()
def main(
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="AWS profile name"),
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path (default: ~/.ttl-reaper/config.yaml or $TTL_REAPER_CONFIG)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress output except errors"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
):
    """AWS TTL Reaper - delete tagged AWS resources once their TTL has elapsed."""
    global config

    # Load configuration
    try:
        config = Config.load(config_file)
    except ValueError as e:
        console.print(f"✗ {e}", style="bold red")
        raise typer.Exit(code=1)

    # Override with CLI options
    if profile:
        config.aws_profile = profile

    # Setup logging
    log_level = "ERROR" if quiet else ("DEBUG" if verbose else config.log_level)
    setup_logging(level=log_level, verbose=verbose)

    # Disable colors if requested
    if no_color:
        console.no_color = True


@app.command()
def version():
    """Show version information."""
    import boto3

    from .. import __version__

    console.print(f"aws-ttl-reaper version {__version__}")
    console.print(f"Python {sys.version.split()[0]}")
    console.print(f"boto3 {boto3.__version__}")


def build_provider(region: str) -> AWSProvider:
    """Create the AWS provider for a region from the loaded configuration."""
    return AWSProvider(
        region=region,
        aws_profile=config.aws_profile,
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
    )


def render_operation(operation: ReapOperation) -> None:
    """Print the outcome of a reaper pass."""
    title = f"{operation.family} in {operation.region} ({operation.mode.value})"

    if operation.error_code is not None:
        console.print(f"✗ {title}: AWS error: {operation.error_message}", style="bold red")
        return

    for vpc_id, categories in operation.unresolved.items():
        names = ", ".join(category.resource_type for category in categories)
        console.print(f"⚠ {title}: could not list {names} of {vpc_id}", style="yellow")

    if not operation.records:
        console.print(
            f"✓ {title}: {operation.discovered_count} tagged, nothing expired",
            style="green",
        )
        return

    table = Table(title=title, show_lines=False)
    table.add_column("Tier", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Resource")
    table.add_column("Parent")
    table.add_column("Status")
    table.add_column("Error", style="dim")

    for record in operation.records:
        style = STATUS_STYLES.get(record.status, "white")
        table.add_row(
            str(record.deletion_tier or ""),
            record.resource_type,
            record.resource_id,
            record.parent_id or "",
            f"[{style}]{record.status.value}[/{style}]",
            record.error_message or record.skip_reason or "",
        )

    console.print(table)
    console.print(
        f"  Tagged: {operation.discovered_count}  Expired: {operation.expired_count}  "
        f"Deleted: {operation.succeeded_count}  Failed: {operation.failed_count}  "
        f"Skipped: {operation.skipped_count}  Planned: {operation.planned_count}  "
        f"Status: {operation.status.value}\n"
    )


@app.command()
def run(
    regions: Optional[List[str]] = typer.Option(
        None, "--region", "-r", help="Region to reap (repeatable, default: configured regions)"
    ),
    families: Optional[List[str]] = typer.Option(
        None, "--family", "-f", help=f"Resource family to reap (repeatable): {', '.join(FAMILIES)}"
    ),
    tag_name: Optional[str] = typer.Option(None, "--tag-name", "-t", help="Marker tag key"),
    execute: bool = typer.Option(False, "--execute", help="Actually delete expired resources"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only report what would be deleted"),
):
    """Run one reaper pass over the selected regions and resource families.

    Runs in dry-run mode unless --execute is given (or dry_run is disabled
    in the config file).

    Examples:
        # Report expired VPCs and load balancers
        ttlreaper run --region us-east-1

        # Delete expired load balancers in two regions
        ttlreaper run -r us-east-1 -r eu-west-1 --family load-balancer --execute
    """
    if execute and dry_run:
        console.print("✗ Error: --execute and --dry-run are mutually exclusive", style="bold red")
        raise typer.Exit(code=1)

    for family in families or []:
        if family not in FAMILIES:
            console.print(f"✗ Invalid family: {family}. Must be one of: {', '.join(FAMILIES)}", style="bold red")
            raise typer.Exit(code=1)

    is_dry_run = not execute and (dry_run or config.dry_run)
    region_list = regions or config.regions

    if is_dry_run:
        console.print("[bold yellow]Dry-run mode: nothing will be deleted[/bold yellow]\n")

    failed = False
    for region in region_list:
        try:
            reaper = Reaper(
                provider=build_provider(region),
                tag_name=tag_name or config.tag_name,
                dry_run=is_dry_run,
                max_workers=config.max_workers,
            )
            for operation in reaper.run(families or None):
                render_operation(operation)
                if operation.error_code is not None:
                    failed = True

        except ProviderError as e:
            console.print(f"✗ AWS error in {region}: {e.message}", style="bold red")
            logger.debug(f"Provider error during reaper pass in {region}", exc_info=True)
            failed = True
        except Exception as e:
            console.print(f"✗ Error during reaper pass in {region}: {e}", style="bold red")
            logger.exception("Error in run command")
            failed = True

    if failed:
        raise typer.Exit(code=2)


# Tag commands group
tag_app = typer.Typer(help="Tag resources so the reaper manages them")
app.add_typer(tag_app, name="tag")


def parse_created_at(value: Optional[str]) -> datetime:
    """Parse an ISO 8601 creation time, defaulting to now (UTC)."""
    if not value:
        return datetime.now(timezone.utc)
    try:
        created_at = datetime.fromisoformat(value)
    except ValueError:
        console.print(f"✗ Invalid --created-at: {value}. Use ISO 8601 (2025-01-31T12:00:00)", style="bold red")
        raise typer.Exit(code=1)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at


@tag_app.command("vpc")
def tag_vpc(
    cluster_name: str = typer.Option(..., "--cluster-name", help="Value of the ClusterName tag on the VPCs"),
    ttl: int = typer.Option(..., "--ttl", min=0, help="TTL in seconds"),
    created_at: Optional[str] = typer.Option(None, "--created-at", help="Cluster creation time (default: now)"),
    region: Optional[str] = typer.Option(None, "--region", "-r", help="AWS region (default: first configured)"),
    tag_name: Optional[str] = typer.Option(None, "--tag-name", "-t", help="Marker tag key"),
):
    """Tag a cluster's VPCs and their sub-resources with a TTL."""
    creation_time = parse_created_at(created_at)

    try:
        tagger = ResourceTagger(build_provider(region or config.regions[0]), tag_name=tag_name or config.tag_name)
        tagged = tagger.tag_vpcs_for_deletion(cluster_name, creation_time, ttl)
    except ProviderError as e:
        console.print(f"✗ AWS error: {e.message}", style="bold red")
        raise typer.Exit(code=2)

    if not tagged:
        console.print(f"No VPC found for cluster [cyan]{cluster_name}[/cyan]", style="yellow")
        return
    console.print(f"✓ Tagged {len(tagged)} resource(s) of cluster [cyan]{cluster_name}[/cyan] with ttl={ttl}")


@tag_app.command("lb")
def tag_lb(
    contains: str = typer.Option(..., "--contains", help="Tag the load balancers having a tag key or value containing this"),
    region: Optional[str] = typer.Option(None, "--region", "-r", help="AWS region (default: first configured)"),
    tag_name: Optional[str] = typer.Option(None, "--tag-name", "-t", help="Marker tag key"),
):
    """Mark load balancers for deletion by one of their tags."""
    try:
        provider = build_provider(region or config.regions[0])
        tagger = ResourceTagger(provider, tag_name=tag_name or config.tag_name)
        load_balancers = ResourceLister(provider).list_with_key_contains(LOAD_BALANCER_TYPE, contains)
        tagger.tag_load_balancers_for_deletion(load_balancers)
    except ProviderError as e:
        console.print(f"✗ AWS error: {e.message}", style="bold red")
        raise typer.Exit(code=2)

    if not load_balancers:
        console.print(f"No load balancer with a tag containing [cyan]{contains}[/cyan]", style="yellow")
        return
    for load_balancer in load_balancers:
        console.print(f"  • {load_balancer.name}")
    console.print(f"✓ Tagged {len(load_balancers)} load balancer(s) for deletion")


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    cli_main()
