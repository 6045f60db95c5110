"""ArchLens CLI - static architecture analysis for C# and Java codebases.

Usage:
    archlens analyze <path> [options]
    archlens analyze . -k Epic -k Financial
    archlens analyze --config apps.json --app patient-portal
    archlens applications --config apps.json
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .analyzer import analyze_codebase
from .config import AnalysisConfig, list_applications, load_app_config, load_app_info
from .errors import AnalysisTimeout, ArchLensError
from .logging_config import setup_logging
from .models import AnalysisReport, Confidence, LAYER_ORDER, Severity

console = Console()

CONFIDENCE_STYLES = {
    Confidence.HIGH: "bold green",
    Confidence.MEDIUM: "yellow",
    Confidence.LOW: "dim yellow",
    Confidence.NOT_DETECTED: "dim",
}

SEVERITY_STYLES = {
    Severity.HIGH: "bold red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "dim",
}


def _build_config(
    target: str,
    config_path: str | None,
    app: str | None,
    keywords: tuple[str, ...],
    timeout_ms: int | None,
    workers: int | None,
    hourly_rate: str | None,
) -> AnalysisConfig:
    """Resolve the run configuration from files and command-line overrides."""
    root = str(Path(target).resolve())
    if app:
        if not config_path:
            raise click.UsageError("--app requires --config pointing at an applications registry")
        config = load_app_config(config_path, app)
    elif config_path:
        config = AnalysisConfig.from_file(config_path, default_root=root)
    else:
        config = AnalysisConfig(root_path=root)

    overrides = {}
    if keywords:
        overrides["integration_keywords"] = list(dict.fromkeys([*config.integration_keywords, *keywords]))
    if timeout_ms is not None:
        overrides["analysis_timeout_ms"] = timeout_ms
    if workers is not None:
        overrides["max_workers"] = workers
    if hourly_rate is not None:
        overrides["hourly_rate"] = hourly_rate
    return config.with_overrides(**overrides) if overrides else config


@click.group()
@click.version_option(version=__version__)
def cli():
    """ArchLens - static architecture analysis for object-oriented codebases.

    Classifies classes into layers, detects design patterns, maps
    dependencies and cross-layer data flow, and estimates technical debt.
    """
    pass


@cli.command()
@click.argument("target", default=".")
@click.option("--config", "-c", "config_path", default=None, type=click.Path(dir_okay=False), help="JSON analysis config, or an applications registry with --app")
@click.option("--app", "-a", default=None, help="Application name in the registry")
@click.option("--integration-keyword", "-k", "keywords", multiple=True, help="Name fragment marking an integration service (repeatable)")
@click.option("--timeout-ms", type=click.IntRange(min=1), default=None, help="Abort if parsing takes longer than this")
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Parser threads (default: CPU count)")
@click.option("--hourly-rate", default=None, help="Rate used to value technical debt")
@click.option("--json-only", is_flag=True, help="Output raw JSON to stdout (for piping)")
@click.option("--output", "-O", default=None, type=click.Path(dir_okay=False), help="Also write the JSON report to this file")
@click.option("--log-file", default=None, type=click.Path(dir_okay=False), help="Write logs to this file")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr")
def analyze(
    target: str,
    config_path: str | None,
    app: str | None,
    keywords: tuple[str, ...],
    timeout_ms: int | None,
    workers: int | None,
    hourly_rate: str | None,
    json_only: bool,
    output: str | None,
    log_file: str | None,
    verbose: bool,
):
    """Analyze the architecture of a source tree.

    TARGET is the root directory to scan (ignored with --app).

    Examples:

        archlens analyze ./src

        archlens analyze . -k Epic -k Financial --json-only

        archlens analyze --config apps.json --app patient-portal
    """
    setup_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        log_file=Path(log_file) if log_file else None,
    )

    try:
        config = _build_config(target, config_path, app, keywords, timeout_ms, workers, hourly_rate)

        if not json_only:
            console.print()
            console.print(Panel.fit(
                f"[bold cyan]ArchLens v{__version__}[/] - Architecture Analysis",
                border_style="cyan",
            ))
            if app:
                console.print(f"  Application: {app}", style="dim")
            console.print(f"  Root: {config.root_path}", style="dim")

        report = analyze_codebase(config)
        if app:
            report = replace(report, application=load_app_info(config_path, app))
    except AnalysisTimeout as e:
        msg = str(e)
        if e.warnings:
            msg += f" ({len(e.warnings)} files had already failed to parse)"
        raise click.ClickException(msg)
    except ArchLensError as e:
        raise click.ClickException(str(e))

    payload = json.dumps(report.to_dict(), indent=2)
    if output:
        out_path = Path(output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload + "\n", encoding="utf-8")

    if json_only:
        click.echo(payload)
        return

    _print_report(report)
    if output:
        console.print(f"\n[green]Report written to {output}[/]")


@cli.command()
@click.option("--config", "-c", "config_path", required=True, type=click.Path(dir_okay=False), help="Applications registry (apps.json)")
def applications(config_path: str):
    """List applications declared in a registry."""
    try:
        apps = list_applications(config_path)
    except ArchLensError as e:
        raise click.ClickException(str(e))

    table = Table(title="Applications", show_header=True)
    table.add_column("Name", style="bold")
    table.add_column("Display Name")
    table.add_column("Type")
    table.add_column("Framework")
    table.add_column("Path", style="dim")
    table.add_column("Analyzable", justify="center")

    for a in apps:
        table.add_row(
            a["name"],
            a["display_name"],
            a["type"],
            a["framework"],
            a["path"],
            "[green]yes[/]" if a["can_analyze"] else "[dim]no[/]",
        )
    console.print(table)


@cli.command()
def version():
    """Show version information."""
    console.print(f"archlens-cli v{__version__}")
    console.print("Static architecture analysis for C# and Java codebases")


def _print_report(report: AnalysisReport) -> None:
    _print_summary(report)
    _print_layers(report)
    if report.patterns:
        _print_patterns(report)
    if report.data_flow:
        _print_data_flow(report)
    _print_debt(report)
    if report.warnings:
        console.print()
        console.print(f"[bold yellow]Skipped {len(report.warnings)} files:[/]")
        for w in report.warnings:
            console.print(f"  [yellow]{w.file}[/]: {w.reason}")


def _print_summary(report: AnalysisReport) -> None:
    m = report.metrics
    table = Table(title="Summary", show_header=False, border_style="dim")
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Files", f"{report.total_files:,}")
    table.add_row("Classes / Methods", f"{m.total_classes:,} / {m.total_methods:,}")
    table.add_row("Avg complexity", f"{m.average_complexity:.2f}")
    table.add_row("Avg methods / class", f"{m.average_methods_per_class:.2f}")
    table.add_row("Lines of code (methods)", f"{m.total_lines_of_code:,}")
    table.add_row("Maintainability", f"{m.maintainability_score:.2f} ({m.rating.value})")
    if report.dependencies:
        table.add_row("Dependencies", f"{len(report.dependencies):,} edges")

    console.print()
    console.print(table)


def _print_layers(report: AnalysisReport) -> None:
    table = Table(title="Layers", show_header=True)
    table.add_column("Layer", style="bold")
    table.add_column("Classes", justify="right")
    table.add_column("Examples")

    for layer in LAYER_ORDER:
        entries = report.layers.get(layer, ())
        names = ", ".join(e.name for e in entries[:5])
        if len(entries) > 5:
            names += f", ... (+{len(entries) - 5})"
        table.add_row(layer.value.capitalize(), str(len(entries)), names)

    console.print()
    console.print(table)


def _print_patterns(report: AnalysisReport) -> None:
    table = Table(title="Design Patterns", show_header=True)
    table.add_column("Pattern", style="bold")
    table.add_column("Confidence", justify="center")
    table.add_column("Evidence")

    for p in report.patterns:
        style = CONFIDENCE_STYLES[p.confidence]
        label = p.confidence.value.replace("_", " ")
        table.add_row(p.name, f"[{style}]{label}[/]", "; ".join(p.evidence))

    console.print()
    console.print(table)


def _print_data_flow(report: AnalysisReport) -> None:
    tree = Tree("[bold]Data Flow[/] [dim](inferred from constructor and field types)[/]")
    branches: dict[str, Tree] = {}
    for e in report.data_flow:
        branch = branches.get(e.source)
        if branch is None:
            branch = branches[e.source] = tree.add(f"[cyan]{e.source}[/]")
        suffix = f" [magenta]({e.external_system})[/]" if e.external_system else ""
        branch.add(f"{e.target} [dim]{e.kind.value}[/]{suffix}")

    console.print()
    console.print(tree)


def _print_debt(report: AnalysisReport) -> None:
    debt = report.technical_debt
    console.print()
    if not debt.items:
        console.print("[green]No technical debt items found[/]")
        return

    table = Table(title="Technical Debt", show_header=True)
    table.add_column("Type", style="bold")
    table.add_column("Location")
    table.add_column("Severity", justify="center")
    table.add_column("Hours", justify="right")

    for item in debt.items:
        style = SEVERITY_STYLES[item.severity]
        table.add_row(item.kind.value, item.location, f"[{style}]{item.severity.value}[/]", str(item.estimated_hours))

    console.print(table)
    s = debt.summary
    shown = f" (showing top {len(debt.items)})" if len(debt.items) < s.total_items else ""
    console.print(
        f"  {s.total_items} items{shown}, {s.estimated_hours} hours, estimated {s.estimated_value}",
        style="bold",
    )


if __name__ == "__main__":
    cli()
