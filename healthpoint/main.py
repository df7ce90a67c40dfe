"""Entry point for healthpoint — `healthpoint` console script."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from healthpoint.config import settings
from healthpoint.demo import build_demo_registry
from healthpoint.health.enums import Status
from healthpoint.health.errors import HealthCheckError
from healthpoint.health.loader import register_from_file
from healthpoint.health.registry import HealthCheckRegistry, RegistryReport

console = Console()

STATUS_STYLES = {
    Status.HEALTHY: "green",
    Status.UNHEALTHY: "red",
    Status.UNKNOWN: "yellow",
}


def run_server() -> None:
    """Start the demo FastAPI server."""
    console.print(
        Panel.fit(
            f"[bold]healthpoint[/bold]\n"
            f"Bind:   {settings.api_host}:{settings.api_port}\n"
            f"Prefix: {settings.health_prefix}\n"
            f"Checks: {settings.checks_file or 'demo only'}",
            border_style="green",
        )
    )
    uvicorn.run(
        "healthpoint.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


async def _evaluate(checks_file: Path | None) -> RegistryReport:
    async with httpx.AsyncClient(follow_redirects=True) as client:
        if checks_file is not None:
            registry = HealthCheckRegistry()
            register_from_file(registry, checks_file, client=client)
        else:
            registry = build_demo_registry(client=client)
        return await registry.report()


def render_report(report: RegistryReport) -> Table:
    """Tabulate a registry report for the terminal."""
    table = Table(title=f"Overall: {report.overall_status.value} ({report.overall_status_code})")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Code", justify="right")
    table.add_column("Time (s)", justify="right")
    table.add_column("Description")

    for name, result in report.results.items():
        style = STATUS_STYLES[result.status]
        table.add_row(
            name,
            f"[{style}]{result.status.value}[/{style}]",
            str(result.status_code),
            f"{result.process_time:.3f}",
            result.description or "",
        )
    return table


def run_check(checks_file: Path | None) -> int:
    """Evaluate every check once; exit code 0 only when overall healthy."""
    with console.status("[bold green]Running health checks..."):
        report = asyncio.run(_evaluate(checks_file))
    console.print(render_report(report))
    return 0 if report.overall_status is Status.HEALTHY else 1


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    parser = argparse.ArgumentParser(description="healthpoint health check endpoints")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server")

    check_parser = sub.add_parser("check", help="Run all checks once and print the results")
    check_parser.add_argument(
        "--file", type=Path, default=None,
        help="YAML check definitions (default: the demo checks)",
    )

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "check":
        try:
            sys.exit(run_check(args.file))
        except HealthCheckError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            sys.exit(2)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
