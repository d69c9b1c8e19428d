"""Analysis orchestrator: load, normalize, score, rank.

Runs the pipeline over a single input snapshot and packages the ranked
opportunities with provenance and run metadata. Ranking is a stable sort
on the composite score, so ties keep HACS payload order.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from nichefinder.exceptions import ScoringError
from nichefinder.logging import log_provenance, stage_logging_context
from nichefinder.models import (
    AnalysisConfig,
    AnalysisMetadata,
    AnalysisResult,
    DataSource,
    DataSourceType,
    IntegrationScore,
    NicheOpportunity,
)
from nichefinder.normalize import NormalizedIntegration, normalize_integrations
from nichefinder.scoring import DefaultScorer, OpportunityScorer
from nichefinder.signals import extract_scoring_data
from nichefinder.sources.loaders import SourceBundle

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_GENERAL_VIDEO_NOTE = (
    "General Home Assistant market data collected, "
    "no integration-specific match"
)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class IntegrationAnalyzer:
    """Identify and rank integration opportunities.

    Args:
        config: Run parameters; defaults to ``AnalysisConfig()``.
        scorer: Scoring strategy; defaults to a :class:`DefaultScorer`
            using ``config.weights``.
        clock: Returns the current time; used for staleness and for
            result timestamps.
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        scorer: OpportunityScorer | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self.scorer = scorer or DefaultScorer(self.config.weights)
        self._clock = clock or _utc_now

    # -- entry points --------------------------------------------------------

    def analyze_from_files(
        self,
        hacs_path: Path | str,
        github_path: Path | str | None = None,
        youtube_path: Path | str | None = None,
    ) -> AnalysisResult:
        """Load the three source files and analyze them."""
        start = time.perf_counter()
        with stage_logging_context("load", 0, hacs_path=str(hacs_path)):
            sources = SourceBundle.from_files(hacs_path, github_path, youtube_path)
        return self._run(sources, start)

    def analyze(self, sources: SourceBundle) -> AnalysisResult:
        """Analyze already-loaded source records."""
        return self._run(sources, time.perf_counter())

    # -- pipeline ------------------------------------------------------------

    def _run(self, sources: SourceBundle, start: float) -> AnalysisResult:
        with stage_logging_context("normalize", 1):
            integrations = normalize_integrations(
                sources.hacs, sources.github, sources.youtube
            )
        total_candidates = len(integrations)

        now = self._clock()
        with stage_logging_context("score", 2) as log:
            scored = [
                (integration, self._score(integration, now))
                for integration in integrations
            ]
            qualified = [
                pair for pair in scored if pair[1].composite >= self.config.min_score
            ]
            log.info(
                "candidates_scored",
                total=total_candidates,
                above_threshold=len(qualified),
                min_score=self.config.min_score,
            )

        with stage_logging_context("rank", 3):
            qualified.sort(key=lambda pair: pair[1].composite, reverse=True)
            top = qualified[: self.config.max_results]
            opportunities = [
                self.create_opportunity(integration, score, now)
                for integration, score in top
            ]

        metadata = AnalysisMetadata(
            total_candidates=total_candidates,
            qualified_candidates=len(opportunities),
            duration_secs=time.perf_counter() - start,
            sources_used=list(self.config.enabled_sources),
        )
        logger.info(
            "analysis_complete",
            total_candidates=metadata.total_candidates,
            qualified_candidates=metadata.qualified_candidates,
            duration_secs=round(metadata.duration_secs, 4),
        )
        return AnalysisResult(
            opportunities=opportunities,
            analyzed_at=now,
            config=self.config,
            metadata=metadata,
        )

    def _score(
        self, integration: NormalizedIntegration, now: datetime
    ) -> IntegrationScore:
        data = extract_scoring_data(integration, now)
        try:
            return self.scorer.score(data)
        except ScoringError:
            logger.error(
                "candidate_scoring_failed",
                name=integration.name,
                hacs_id=integration.sources.hacs_id,
            )
            raise

    # -- result assembly -----------------------------------------------------

    def create_opportunity(
        self,
        integration: NormalizedIntegration,
        score: IntegrationScore,
        discovered_at: datetime | None = None,
    ) -> NicheOpportunity:
        """Wrap a scored integration as a :class:`NicheOpportunity`."""
        now = discovered_at or self._clock()
        return NicheOpportunity(
            name=integration.name,
            category=integration.domain or "unknown",
            score=score.composite,
            scoring_details=score,
            data_sources=self.create_data_sources(integration, now),
            discovered_at=now,
            metadata={
                "github_url": integration.github_url,
                "stars": integration.stars,
                "forks": integration.forks,
                "open_issues": integration.open_issues,
                "topics": list(integration.topics),
                "in_hacs": integration.in_hacs,
                "youtube_mentions": integration.youtube_mentions,
            },
        )

    def create_data_sources(
        self,
        integration: NormalizedIntegration,
        collected_at: datetime | None = None,
    ) -> list[DataSource]:
        """Build the provenance list for an integration.

        A YouTube entry is always present: either an exact match with the
        matched video ids, or a "general" entry with zero data points.
        """
        now = collected_at or self._clock()
        refs = integration.sources
        sources: list[DataSource] = []

        if refs.hacs_id is not None:
            sources.append(
                DataSource(
                    name="HACS",
                    source_type=DataSourceType.HACS,
                    collected_at=now,
                    data_points=1,
                    metadata={"hacs_id": refs.hacs_id, "domain": integration.domain},
                )
            )

        if refs.github_full_name is not None:
            sources.append(
                DataSource(
                    name="GitHub",
                    source_type=DataSourceType.GITHUB,
                    collected_at=now,
                    data_points=1,
                    metadata={
                        "full_name": refs.github_full_name,
                        "stars": integration.stars,
                        "forks": integration.forks,
                        "open_issues": integration.open_issues,
                    },
                )
            )

        if refs.youtube_video_ids:
            sources.append(
                DataSource(
                    name="YouTube",
                    source_type=DataSourceType.YOUTUBE,
                    collected_at=now,
                    data_points=len(refs.youtube_video_ids),
                    metadata={
                        "video_ids": list(refs.youtube_video_ids),
                        "mention_count": integration.youtube_mentions,
                        "match_type": "exact",
                    },
                )
            )
        else:
            sources.append(
                DataSource(
                    name="YouTube (general)",
                    source_type=DataSourceType.YOUTUBE,
                    collected_at=now,
                    data_points=0,
                    metadata={"match_type": "general", "note": _GENERAL_VIDEO_NOTE},
                )
            )

        for source in sources:
            log_provenance(source, integration.name)
        return sources


def analyze(
    sources: SourceBundle,
    config: AnalysisConfig | None = None,
    scorer: OpportunityScorer | None = None,
) -> AnalysisResult:
    """Run the full pipeline over ``sources`` with ``config``."""
    return IntegrationAnalyzer(config=config, scorer=scorer).analyze(sources)
