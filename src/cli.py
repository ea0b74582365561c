"""CLI entry point for the visual regression engine."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.errors import VisualRegressionError
from src.models.config import EngineConfig
from src.orchestrator import Orchestrator
from src.visual.comparison import load_prototype_map

console = Console()

DEFAULT_CONFIG = "visual-config.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_config(path: str) -> EngineConfig:
    """Config file (when present) overlaid with environment variables."""
    try:
        base = EngineConfig.load(path) if Path(path).exists() else None
        return EngineConfig.from_env(base=base)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(2)


def _fmt_pct(value: float | None) -> str:
    return "N/A" if value is None else f"{value:.2f}%"


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression engine: compare screens with prototypes and aggregate compliance."""
    setup_logging(verbose)


@cli.command()
@click.argument("actual", type=click.Path(dir_okay=False))
@click.argument("prototype")
@click.option("--name", "-n", default=None, help="Output name for diff artifacts")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def compare(actual: str, prototype: str, name: str | None, config: str) -> None:
    """Compare one screenshot with a prototype file from the prototypes directory."""
    cfg = load_config(config)
    orchestrator = Orchestrator(cfg)
    output_name = name or Path(actual).stem
    try:
        result = orchestrator.compare_one(Path(actual), prototype, output_name)
    except VisualRegressionError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    colour = "green" if result.passed else "red"
    console.print(f"[{colour}]{'PASSED' if result.passed else 'FAILED'}[/{colour}] "
                  f"{result.match:.2f}% match, {result.diff_pixel_count} of {result.total_pixel_count} pixels differ")
    if result.comparison_image_path:
        console.print(f"  Comparison image: [blue]{result.comparison_image_path}[/blue]")


@cli.command()
@click.option("--screens", "-s", required=True, type=click.Path(file_okay=False), help="Directory of <screen>-actual images")
@click.option("--prototypes-map", "-m", default=None, type=click.Path(dir_okay=False), help="JSON map of screen -> prototype file")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def run(screens: str, prototypes_map: str | None, config: str) -> None:
    """Compare all captured screens of one device run and write its reports."""
    cfg = load_config(config)
    prototype_map = None
    if prototypes_map:
        try:
            prototype_map = load_prototype_map(prototypes_map)
        except (OSError, ValueError) as e:
            console.print(f"[red]Cannot read prototype map {prototypes_map}: {e}[/red]")
            sys.exit(1)

    orchestrator = Orchestrator(cfg)
    try:
        report, paths = orchestrator.run_device(Path(screens), prototype_map)
    except VisualRegressionError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    table = Table(title=f"Visual Regression: {cfg.configuration_id}")
    table.add_column("Screen", style="bold")
    table.add_column("Status")
    table.add_column("Match", justify="right")
    for entry in report.screens:
        colour = "green" if entry.passed else "red"
        table.add_row(entry.name, f"[{colour}]{entry.status.value}[/{colour}]", f"{entry.match:.2f}%")
    console.print(table)
    console.print(f"Average match: {_fmt_pct(report.average_match)}")
    for fmt, path in paths.items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")


@cli.command()
@click.argument("results_root", type=click.Path())
@click.option("--config-id", "configurations", multiple=True, help="Configuration directory to include (repeatable)")
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False), help="Dashboard JSON output path")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def aggregate(results_root: str, configurations: tuple[str, ...], output: str | None, config: str) -> None:
    """Aggregate every configuration's run report into dashboard data."""
    cfg = load_config(config)
    if configurations:
        cfg.configurations = list(configurations)
    root = Path(results_root)
    if not root.is_dir():
        console.print(f"[red]Results directory not found: {root}[/red]")
        sys.exit(1)

    orchestrator = Orchestrator(cfg)
    try:
        outcome = orchestrator.aggregate(root, Path(output) if output else None)
    except VisualRegressionError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    metrics = outcome["dashboard"]["metrics"]
    summary = outcome["summary"]
    table = Table(title="Session Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Screens", str(metrics["totalTests"]))
    table.add_row("Pass rate", metrics["passRate"])
    table.add_row("Avg duration", metrics["avgDuration"])
    table.add_row("API coverage", metrics["apiCoverage"])
    table.add_row("Visual compliance", _fmt_pct(summary.overall_compliance))
    console.print(table)
    for configuration in summary.missing_configurations:
        console.print(f"[yellow]No results found for {configuration}[/yellow]")
    console.print(f"  Dashboard: [blue]{outcome['dashboard_path']}[/blue]")


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def history(config: str, as_json: bool) -> None:
    """Show the rolling compliance history."""
    cfg = load_config(config)
    store = Orchestrator(cfg).history
    entries = store.load()
    if as_json:
        click.echo(json.dumps([e.model_dump(by_alias=True) for e in entries], indent=2))
        return
    if not entries:
        console.print("[yellow]No history recorded yet[/yellow]")
        return
    table = Table(title=f"Compliance History (last {store.capacity})")
    table.add_column("Timestamp")
    table.add_column("Duration", justify="right")
    table.add_column("Pass rate", justify="right")
    table.add_column("Compliance", justify="right")
    for e in entries:
        table.add_row(e.timestamp, f"{e.duration:.0f}s", f"{e.pass_rate:.0f}%", _fmt_pct(e.visual_compliance))
    console.print(table)


@cli.command()
@click.option("--output-dir", default="./visual-results", help="Results root directory")
@click.option("--prototypes-dir", default="./prototypes", help="Prototype images directory")
def init(output_dir: str, prototypes_dir: str) -> None:
    """Create a default configuration file."""
    config_path = Path(DEFAULT_CONFIG)
    if config_path.exists():
        if not click.confirm(f"{DEFAULT_CONFIG} already exists. Overwrite?"):
            return

    cfg = EngineConfig(output_dir=output_dir, prototypes_dir=prototypes_dir)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nCompare a device run with:")
    console.print("  [blue]visual-regression run --screens ./screenshots[/blue]")


if __name__ == "__main__":
    cli()
