"""
Azure Resource Scanner CLI Interface
Command-line interface for scanning Azure resources against best-practice rules
"""

import sys
import logging
from typing import Dict, List, Optional

import click
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .core.cancellation import CancellationToken
from .core.config import AzureCredentials, ScanConfig, DEFAULT_MAX_WORKERS, DEFAULT_TIMEOUT
from .core.engine import ScanEngine
from .core.framework import RunStatus, Subscription
from .core.output import OutputEngine
from .core.provider import AzureProvider
from .core.registry import ScannerRegistry


console = Console(stderr=True)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, verbose):
    """Azure Resource Scanner"""
    ctx.ensure_object(dict)

    # Configure logging
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Reduce noise from the Azure SDK
    logging.getLogger('azure').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


@cli.command()
@click.option('--tenant-id', envvar='AZURE_TENANT_ID', help='Azure tenant ID')
@click.option('--client-id', envvar='AZURE_CLIENT_ID', help='Service principal client ID')
@click.option('--client-secret', envvar='AZURE_CLIENT_SECRET', help='Service principal client secret')
@click.option('--subscription-id', '-s', 'subscriptions', multiple=True, envvar='AZURE_SUBSCRIPTION_ID',
              help='Subscription to scan (repeatable, defaults to all enabled subscriptions)')
@click.option('--resource-group', '-g', 'resource_groups', multiple=True,
              help='Resource group to scan (repeatable, requires a single subscription)')
@click.option('--services', multiple=True, help='Services to scan (see `services`)')
@click.option('--excluded-services', multiple=True, help='Services to exclude')
@click.option('--output', '-o', type=click.Path(), help='Output file path')
@click.option('--max-workers', type=int, default=DEFAULT_MAX_WORKERS, help='Maximum parallel scans')
@click.option('--timeout', type=int, default=DEFAULT_TIMEOUT, help='Timeout in seconds')
@click.option('--quiet', '-q', is_flag=True, help='Quiet mode - JSON output only')
@click.option('--pretty', is_flag=True, help='Pretty print JSON output')
def scan(tenant_id, client_id, client_secret, subscriptions, resource_groups, services,
         excluded_services, output, max_workers, timeout, quiet, pretty):
    """Scan Azure resources against best-practice rules"""

    registry = ScannerRegistry()
    config = ScanConfig(
        credentials=AzureCredentials(tenant_id=tenant_id, client_id=client_id, client_secret=client_secret),
        subscriptions=list(subscriptions),
        resource_groups=list(resource_groups),
        services=list(services) if services else None,
        excluded_services=list(excluded_services),
        max_workers=max_workers,
        timeout=timeout,
        output=output,
        pretty=pretty,
    )

    errors = config.validate(list(registry.list_services()))
    if errors:
        for error in errors:
            console.print(f"[red]❌ {error}[/red]")
        sys.exit(1)

    if not quiet:
        console.print("[bold blue]🛡️ Azure Resource Scanner[/bold blue]")

    try:
        run, report = _execute_scan(config, registry, quiet)
    except Exception as e:
        logging.debug("Scan failed", exc_info=True)
        console.print(f"[red]❌ Scan failed: {e}[/red]")
        sys.exit(1)

    if config.output:
        OutputEngine.save_report(report, config.output)
        if not quiet:
            console.print(f"[green]✅ Results written to {config.output}[/green]")
    else:
        click.echo(OutputEngine.to_json(report, pretty=config.pretty))

    if not quiet:
        _display_summary(report)

    if run.status != RunStatus.COMPLETED:
        sys.exit(1)


def _execute_scan(config: ScanConfig, registry: ScannerRegistry, quiet: bool):
    """Execute the scan and return the run and its report"""
    scanners = registry.select(config.services, config.excluded_services)
    provider = AzureProvider(
        tenant_id=config.credentials.tenant_id,
        client_id=config.credentials.client_id,
        client_secret=config.credentials.client_secret,
        diagnostics_resource_types=[scanner.azure_type for scanner in scanners],
    )

    subscriptions = _resolve_subscriptions(provider, config.subscriptions)
    # Without -g the engine lists each subscription's groups itself
    resource_groups: Optional[Dict[str, List[str]]] = None
    if config.resource_groups:
        resource_groups = {subscription.id: list(config.resource_groups) for subscription in subscriptions}

    engine = ScanEngine(provider, registry)
    cancellation = CancellationToken(timeout=config.timeout)

    if not quiet:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Scanning Azure resources...", total=None)
            run = engine.run_scan(subscriptions, resource_groups, scanners,
                                  max_workers=config.max_workers, cancellation=cancellation)
            progress.update(task, description="Scan completed!")
    else:
        run = engine.run_scan(subscriptions, resource_groups, scanners,
                              max_workers=config.max_workers, cancellation=cancellation)

    report = OutputEngine.format_json(
        run,
        registry.rule_metadata(),
        metadata={
            "subscriptions": [subscription.id for subscription in subscriptions],
            "services": [scanner.service_key for scanner in scanners],
        },
    )
    return run, report


def _resolve_subscriptions(provider: AzureProvider, requested: List[str]) -> List[Subscription]:
    """Requested subscriptions with their display names, or every visible one"""
    if not requested:
        return provider.list_subscriptions()

    try:
        visible = {subscription.id: subscription for subscription in provider.list_subscriptions()}
    except Exception as e:
        logging.warning(f"Could not look up subscription names: {str(e)}")
        visible = {}
    return [visible.get(subscription_id, Subscription(id=subscription_id)) for subscription_id in requested]


def _display_summary(report: dict):
    """Display scan summary in rich format"""
    summary = report['summary']

    table = Table(title="📊 Scan Summary", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan", width=20)
    table.add_column("Value", style="green", width=15)

    table.add_row("Status", summary['status'])
    table.add_row("Resources", str(summary['total_resources']))
    table.add_row("Triggered Rules", str(summary['triggered_rules']))
    table.add_row("Failures", str(summary['total_failures']))

    console.print(table)

    if summary['by_impact']:
        impact_table = Table(title="🎯 Triggered Rules by Impact", show_header=True, header_style="bold red")
        impact_table.add_column("Impact", style="cyan")
        impact_table.add_column("Count", style="magenta")
        for impact in ("High", "Medium", "Low"):
            if impact in summary['by_impact']:
                impact_table.add_row(impact, str(summary['by_impact'][impact]))
        console.print(impact_table)

    if report['failures']:
        failure_table = Table(title="⚠️ Not Evaluated", show_header=True, header_style="bold yellow")
        failure_table.add_column("Subscription")
        failure_table.add_column("Resource Group")
        failure_table.add_column("Scanner")
        failure_table.add_column("Error", style="dim")
        for failure in report['failures']:
            failure_table.add_row(failure['subscription_id'], failure['resource_group'] or "*",
                                  failure['scanner'] or "*", failure['error'])
        console.print(failure_table)


@cli.command()
@click.option('--service', help='Only show rules for this service')
@click.option('--markdown', is_flag=True, help='Print a markdown table')
def rules(service, markdown):
    """List the rule catalog"""
    registry = ScannerRegistry()
    if service and service not in registry.list_services():
        console.print(f"[red]❌ Unknown service: {service}[/red]")
        sys.exit(1)

    metadata = registry.rule_metadata(service)

    if markdown:
        click.echo("| Id | Service | Category | Impact | Recommendation | Learn |")
        click.echo("|---|---|---|---|---|---|")
        for rule in metadata:
            click.echo(f"| {rule['id']} | {rule['service']} | {rule['category']} | {rule['impact']} "
                       f"| {rule['recommendation']} | [Learn]({rule['url']}) |")
        return

    table = Table(title="Rules", show_header=True, header_style="bold magenta")
    table.add_column("Id", style="cyan")
    table.add_column("Service")
    table.add_column("Category")
    table.add_column("Impact")
    table.add_column("Recommendation", style="dim")
    for rule in metadata:
        table.add_row(rule['id'], rule['service'], rule['category'], rule['impact'], rule['recommendation'])
    Console().print(table)


@cli.command()
def services():
    """List all supported Azure services"""
    registry = ScannerRegistry()

    click.echo("Supported Azure services:")
    for key, name in registry.list_services().items():
        click.echo(f"  {key}: {name}")


def main():
    """Main CLI entry point"""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️ Scan interrupted by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]❌ Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
