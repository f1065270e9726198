"""CLI entry point for layoutguard."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from layoutguard.errors import LayoutGuardError
from layoutguard.models.config import CONFIG_FILENAME, LayoutGuardConfig
from layoutguard.models.test_result import RunMode, RunSummary
from layoutguard.orchestrator import Orchestrator
from layoutguard.store.artifact_store import ArtifactStore
from layoutguard.viewer import open_in_system_viewer

console = Console()

EXAMPLE_TEST = '''\
"""Example layoutguard test."""

from playwright.async_api import expect

name = "Example Test"

# Optional: capture only this element instead of the full page
selector = "body"


# Scenarios must be async; await every page call.
async def scenario(page):
    # Root-relative URLs are resolved against baseUrl
    await page.goto("/")
    # page wraps the Playwright Page; pass page.page to expect() for
    # page-level assertions. Locators work with expect() as-is.
    await expect(page.page).not_to_have_url("about:blank")
    # Add your test steps here
'''


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _run_workflow(config: str, action: Callable[[Orchestrator], RunSummary]) -> RunSummary:
    """Load config, build the orchestrator and run ``action``; exit 1 on fatal errors."""
    try:
        cfg = LayoutGuardConfig.load(config)
        orchestrator = Orchestrator(cfg, root=Path.cwd(), viewer=open_in_system_viewer)
        return action(orchestrator)
    except LayoutGuardError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)


def _print_summary(summary: RunSummary) -> None:
    title = "Check Summary" if summary.mode == RunMode.CHECK else "Approve Summary"
    table = Table(title=title)
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Passed" if summary.mode == RunMode.CHECK else "Approved",
                  f"[green]{summary.passed}[/green]")
    if summary.mode == RunMode.CHECK:
        table.add_row("Failed", f"[red]{summary.failed}[/red]")
    table.add_row("Errors", f"[red]{summary.errors}[/red]")
    table.add_row("Total", str(summary.total))
    table.add_row("Duration", f"{summary.duration_seconds}s")
    console.print(table)

    if summary.failed_tests:
        console.print("\n[bold]Failed tests:[/bold]")
        for result in summary.test_results:
            if result.result != "pass":
                console.print(f"  [red]✗[/red] {escape(result.test_name)}: {escape(result.message)}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression testing for web layouts."""
    setup_logging(verbose)


@cli.command()
@click.argument("test", required=False)
@click.option("--show-diff", is_flag=True, help="Open the diff image if a test fails")
@click.option("--config", "-c", default=CONFIG_FILENAME, help="Config file path")
def check(test: str | None, show_diff: bool, config: str) -> None:
    """Compare screenshots against approved baselines.

    TEST is a test name or a path to a test file; omit it to run everything.
    """
    summary = _run_workflow(config, lambda o: o.run_check(test, show_diff=show_diff))
    _print_summary(summary)
    sys.exit(summary.exit_code())


@cli.command()
@click.argument("test", required=False)
@click.option("--promote", is_flag=True,
              help="Approve the image captured by the last failed check instead of re-running")
@click.option("--config", "-c", default=CONFIG_FILENAME, help="Config file path")
def approve(test: str | None, promote: bool, config: str) -> None:
    """Capture screenshots and store them as the new baselines."""
    if promote:
        summary = _run_workflow(config, lambda o: o.run_promote(test))
    else:
        summary = _run_workflow(config, lambda o: o.run_approve(test))
    _print_summary(summary)
    sys.exit(summary.exit_code())


@cli.command()
def init() -> None:
    """Create the state directory, a default config and an example test."""
    root = Path.cwd()
    ArtifactStore(root).ensure_directories()
    console.print("[green]Created .layoutguard/snapshots and .layoutguard/failures[/green]")

    config_path = root / CONFIG_FILENAME
    if config_path.exists():
        console.print(f"[yellow]{CONFIG_FILENAME} already exists, leaving it alone[/yellow]")
    else:
        LayoutGuardConfig(test_match=["examples/**/*.spec.py"]).save(config_path)
        console.print(f"[green]Created {CONFIG_FILENAME}[/green]")

    example_path = root / "examples" / "example.spec.py"
    if not example_path.exists():
        example_path.parent.mkdir(parents=True, exist_ok=True)
        example_path.write_text(EXAMPLE_TEST)
        console.print(f"[green]Created {example_path.relative_to(root)}[/green]")

    console.print("\nInstall a browser engine before the first run:")
    console.print("  [blue]playwright install chromium[/blue]")
    console.print("\nThen record baselines and check against them:")
    console.print("  [blue]layoutguard approve[/blue]")
    console.print("  [blue]layoutguard check[/blue]")


if __name__ == "__main__":
    cli()
