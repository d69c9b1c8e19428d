"""Typer CLI entry point for nichefinder."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nichefinder import __version__
from nichefinder.analysis import IntegrationAnalyzer
from nichefinder.config import Settings, format_validation_error
from nichefinder.exceptions import NicheFinderError
from nichefinder.logging import configure_logging, generate_run_id
from nichefinder.models import AnalysisResult
from nichefinder.reporting import ReportFormat, render_report, write_report

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="nichefinder",
    help="Find underserved Home Assistant integration opportunities.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings(
    config_path: Path | None = None,
    **overrides: Any,
) -> Settings:
    """Load settings with error handling and user-friendly messages."""
    from pydantic import ValidationError

    try:
        return Settings.load(config_path=config_path, **overrides)
    except ValidationError as exc:
        err_console.print(
            Panel(
                format_validation_error(exc),
                title="Configuration Error",
                border_style="red",
            )
        )
        raise typer.Exit(code=1) from exc


def _display_summary(result: AnalysisResult) -> None:
    """Display ranked opportunities as a Rich table."""
    table = Table(
        title=(
            f"Opportunities ({result.metadata.qualified_candidates} of "
            f"{result.metadata.total_candidates} candidates)"
        ),
        show_lines=False,
    )
    table.add_column("#", style="cyan", justify="right", width=4)
    table.add_column("Integration", style="white")
    table.add_column("Category", style="dim")
    table.add_column("Score", justify="right", style="bold")
    table.add_column("Demand", justify="right")
    table.add_column("Feasibility", justify="right")
    table.add_column("Competition", justify="right")
    table.add_column("Trend", justify="right")

    for idx, opp in enumerate(result.opportunities, start=1):
        details = opp.scoring_details
        table.add_row(
            str(idx),
            opp.name,
            opp.category,
            f"{opp.score:.1f}",
            f"{details.demand:.1f}",
            f"{details.feasibility:.1f}",
            f"{details.competition:.1f}",
            f"{details.trend:.1f}",
        )

    console.print(table)


# ---------------------------------------------------------------------------
# Version callback
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]nichefinder[/bold] {__version__}")
        raise typer.Exit


@app.callback()
def common(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """nichefinder global options."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def analyze(
    hacs_data: Annotated[
        Path | None,
        typer.Option("--hacs-data", help="Path to the HACS integration index."),
    ] = None,
    github_data: Annotated[
        Path | None,
        typer.Option("--github-data", help="Path to a GitHub search response."),
    ] = None,
    youtube_data: Annotated[
        Path | None,
        typer.Option("--youtube-data", help="Path to a YouTube search response."),
    ] = None,
    min_score: Annotated[
        float | None,
        typer.Option("--min-score", help="Minimum composite score (0-100)."),
    ] = None,
    max_results: Annotated[
        int | None,
        typer.Option("--max-results", help="Maximum number of opportunities."),
    ] = None,
    fmt: Annotated[
        ReportFormat | None,
        typer.Option("--format", "-f", help="Report format."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Directory to write the report into."),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config YAML file."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Score integration candidates and report the top opportunities."""
    overrides: dict[str, Any] = {}

    analysis: dict[str, Any] = {}
    if min_score is not None:
        analysis["min_score"] = min_score
    if max_results is not None:
        analysis["max_results"] = max_results
    if analysis:
        overrides["analysis"] = analysis

    data: dict[str, Any] = {}
    if hacs_data is not None:
        data["hacs_path"] = hacs_data
    if github_data is not None:
        data["github_path"] = github_data
    if youtube_data is not None:
        data["youtube_path"] = youtube_data
    if data:
        overrides["data"] = data

    report: dict[str, Any] = {}
    if fmt is not None:
        report["format"] = fmt
    if output is not None:
        report["output_dir"] = output
    if report:
        overrides["report"] = report

    if verbose:
        overrides["logging"] = {"level": "DEBUG"}

    settings = _load_settings(config, **overrides)
    configure_logging(
        level=settings.logging.level,
        fmt=settings.logging.format,
        log_file=settings.logging.file,
        run_id=generate_run_id(),
    )

    # HACS is the anchor set and is always loaded.
    enabled = set(settings.analysis.enabled_sources)
    github_path = settings.data.github_path if "github" in enabled else None
    youtube_path = settings.data.youtube_path if "youtube" in enabled else None

    logger.info(
        "analysis_requested",
        hacs_path=str(settings.data.hacs_path),
        github_path=str(github_path) if github_path else None,
        youtube_path=str(youtube_path) if youtube_path else None,
        min_score=settings.analysis.min_score,
        max_results=settings.analysis.max_results,
    )

    analyzer = IntegrationAnalyzer(config=settings.analysis)
    try:
        result = analyzer.analyze_from_files(
            settings.data.hacs_path, github_path, youtube_path
        )
        if settings.report.output_dir is not None:
            path = write_report(
                result, settings.report.output_dir, settings.report.format
            )
            _display_summary(result)
            console.print(f"[green]Report written:[/green] {path}")
        else:
            typer.echo(render_report(result, settings.report.format), nl=False)
    except NicheFinderError as exc:
        err_console.print(
            Panel(str(exc), title="Analysis Failed", border_style="red")
        )
        raise typer.Exit(code=1) from exc


@app.command(name="config")
def show_config(
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config YAML file."),
    ] = None,
) -> None:
    """Print the fully-resolved configuration as JSON."""
    settings = _load_settings(config)
    typer.echo(settings.model_dump_json(indent=2))


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
