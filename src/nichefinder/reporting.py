"""Report rendering and file output for analysis results.

Renders an :class:`~nichefinder.models.AnalysisResult` as JSON, Markdown,
or plain text, and writes reports to disk with timestamped filenames.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from nichefinder.exceptions import ReportingError

if TYPE_CHECKING:
    from nichefinder.models import AnalysisResult, NicheOpportunity

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class ReportFormat(StrEnum):
    """Supported report output formats."""

    JSON = "json"
    MARKDOWN = "markdown"
    TEXT = "text"


_EXTENSIONS: dict[ReportFormat, str] = {
    ReportFormat.JSON: "json",
    ReportFormat.MARKDOWN: "md",
    ReportFormat.TEXT: "txt",
}

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------


def render_json(result: AnalysisResult) -> str:
    """Serialize the full result, including config and metadata."""
    return result.model_dump_json(indent=2)


def _opportunity_details(opportunity: NicheOpportunity) -> list[str]:
    meta = opportunity.metadata
    lines: list[str] = []
    if meta.get("github_url"):
        lines.append(f"**GitHub:** {meta['github_url']}")
    for key, label in (
        ("stars", "Stars"),
        ("forks", "Forks"),
        ("open_issues", "Open Issues"),
    ):
        if key in meta:
            lines.append(f"**{label}:** {meta[key]}")
    if "in_hacs" in meta:
        lines.append(f"**In HACS:** {'Yes' if meta['in_hacs'] else 'No'}")
    if "youtube_mentions" in meta:
        lines.append(f"**YouTube Mentions:** {meta['youtube_mentions']}")
    return lines


def render_markdown(result: AnalysisResult) -> str:
    """Render a human-readable Markdown report."""
    lines: list[str] = [
        "# NicheFinder Analysis Report",
        "",
        f"**Analysis Date:** {result.analyzed_at.astimezone(UTC).strftime(_DATE_FORMAT)}",
        f"**Total Candidates:** {result.metadata.total_candidates}",
        f"**Qualified Opportunities:** {result.metadata.qualified_candidates}",
        f"**Analysis Duration:** {result.metadata.duration_secs:.2f}s",
        "",
        "## Top Opportunities",
        "",
    ]

    if not result.opportunities:
        lines.extend(["- No opportunities met the minimum score.", ""])

    for idx, opp in enumerate(result.opportunities, start=1):
        details = opp.scoring_details
        lines.extend(
            [
                f"### {idx}. {opp.name} (Score: {opp.score:.1f}/100)",
                "",
                f"**Category:** {opp.category}",
                "",
                "**Scoring Breakdown:**",
                f"- Demand: {details.demand:.1f}/100",
                f"- Feasibility: {details.feasibility:.1f}/100",
                f"- Competition: {details.competition:.1f}/100",
                f"- Trend: {details.trend:.1f}/100",
                "",
            ]
        )
        extra = _opportunity_details(opp)
        if extra:
            lines.extend([*extra, ""])

        lines.append(f"**Data Sources:** {len(opp.data_sources)} sources")
        lines.extend(
            f"- {source.name} ({source.data_points} data points)"
            for source in opp.data_sources
        )
        lines.extend(["", "---", ""])

    return "\n".join(lines).strip() + "\n"


def render_text(result: AnalysisResult) -> str:
    """Render a compact plain-text report."""
    lines: list[str] = [
        "NICHEFINDER ANALYSIS REPORT",
        "===========================",
        "",
        f"Analysis Date: {result.analyzed_at.astimezone(UTC).strftime(_DATE_FORMAT)}",
        f"Total Candidates: {result.metadata.total_candidates}",
        f"Qualified Opportunities: {result.metadata.qualified_candidates}",
        f"Analysis Duration: {result.metadata.duration_secs:.2f}s",
        "",
        "TOP OPPORTUNITIES",
        "-----------------",
        "",
    ]

    for idx, opp in enumerate(result.opportunities, start=1):
        details = opp.scoring_details
        lines.extend(
            [
                f"{idx}. {opp.name} (Score: {opp.score:.1f})",
                f"   Category: {opp.category}",
                (
                    f"   Demand: {details.demand:.1f} | "
                    f"Feasibility: {details.feasibility:.1f} | "
                    f"Competition: {details.competition:.1f} | "
                    f"Trend: {details.trend:.1f}"
                ),
                f"   Sources: {', '.join(s.name for s in opp.data_sources)}",
                "",
            ]
        )

    return "\n".join(lines).strip() + "\n"


def render_report(result: AnalysisResult, fmt: ReportFormat | str) -> str:
    """Render ``result`` in the requested format.

    Raises:
        ReportingError: If ``fmt`` is not a supported format.
    """
    try:
        report_format = ReportFormat(fmt)
    except ValueError as exc:
        supported = ", ".join(f.value for f in ReportFormat)
        msg = f"Unknown report format: {fmt!r}. Must be one of: {supported}"
        raise ReportingError(msg) from exc

    if report_format is ReportFormat.JSON:
        return render_json(result)
    if report_format is ReportFormat.MARKDOWN:
        return render_markdown(result)
    return render_text(result)


# ---------------------------------------------------------------------------
# Report writing
# ---------------------------------------------------------------------------


def generate_report_filename(
    fmt: ReportFormat | str, timestamp: datetime | None = None
) -> str:
    """Build ``nichefinder_{timestamp}.{ext}`` for a report format."""
    ts = timestamp or datetime.now(tz=UTC)
    return f"nichefinder_{ts.strftime('%Y%m%d_%H%M%S')}.{_EXTENSIONS[ReportFormat(fmt)]}"


def write_report(
    result: AnalysisResult,
    output_dir: Path | str,
    fmt: ReportFormat | str = ReportFormat.MARKDOWN,
) -> Path:
    """Render ``result`` and write it into ``output_dir``.

    Creates the output directory if it doesn't exist.

    Returns:
        The path to the written report file.

    Raises:
        ReportingError: If the format is unsupported or the file cannot
            be written.
    """
    content = render_report(result, fmt)

    out_dir = Path(output_dir)
    report_path = out_dir / generate_report_filename(fmt, result.analyzed_at)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        report_path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ReportingError(f"Failed to write report to {report_path}: {exc}") from exc

    logger.info(
        "report_written",
        path=str(report_path),
        format=str(fmt),
        opportunities=len(result.opportunities),
    )
    return report_path
