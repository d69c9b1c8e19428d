"""Unit tests for nichefinder.analysis - orchestration, ranking, provenance."""

from __future__ import annotations

import math
import uuid
from typing import TYPE_CHECKING, Any

import pytest

from nichefinder.analysis import IntegrationAnalyzer, analyze
from nichefinder.exceptions import ParseError, ScoringError
from nichefinder.models import (
    AnalysisConfig,
    DataSourceType,
    IntegrationScore,
    ScoreWeights,
)
from nichefinder.scoring import DefaultScorer
from nichefinder.sources import SourceBundle

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from pathlib import Path

    from nichefinder.signals import ScoringData


@pytest.fixture()
def bundle(
    hacs_payload: dict[str, Any],
    github_payload: dict[str, Any],
    youtube_payload: dict[str, Any],
) -> SourceBundle:
    return SourceBundle.from_payloads(hacs_payload, github_payload, youtube_payload)


def _analyzer(
    clock: Callable[[], datetime], **config: Any
) -> IntegrationAnalyzer:
    return IntegrationAnalyzer(config=AnalysisConfig(**config), clock=clock)


def _expected_composite(
    stars: int, mentions: int, days: int, weights: ScoreWeights | None = None
) -> float:
    w = weights or ScoreWeights()
    recency = 100.0 if days == 0 else min(100.0, 100.0 / (1 + days / 30.0))
    demand = min(0.7 * min(stars + 10 * mentions, 100) + 0.3 * recency, 100.0)
    growth = stars / 365.0
    trend = max(0.0, min(100.0, 20 * math.log(growth))) if growth > 0 else 0.0
    return demand * w.demand + 80.0 * w.feasibility + 70.0 * w.competition + trend * w.trend


# ---------------------------------------------------------------------------
# Ranking and thresholds
# ---------------------------------------------------------------------------


class TestRanking:
    """Threshold, sort, and truncation policy."""

    def test_default_threshold_keeps_two(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock).analyze(bundle)
        assert [o.category for o in result.opportunities] == ["tesla_custom", "frigate"]
        assert result.metadata.total_candidates == 3
        assert result.metadata.qualified_candidates == 2

    def test_composite_values(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock, min_score=0.0).analyze(bundle)
        scores = {o.category: o.score for o in result.opportunities}
        assert scores["tesla_custom"] == pytest.approx(_expected_composite(900, 1, 10))
        assert scores["frigate"] == pytest.approx(_expected_composite(600, 2, 365))
        assert scores["hacs_only"] == pytest.approx(_expected_composite(7, 0, 365))

    def test_sorted_descending(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock, min_score=0.0).analyze(bundle)
        scores = [o.score for o in result.opportunities]
        assert scores == sorted(scores, reverse=True)
        assert [o.category for o in result.opportunities] == [
            "tesla_custom",
            "frigate",
            "hacs_only",
        ]

    def test_threshold_law(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        for min_score in (0.0, 40.0, 41.0, 68.0, 77.0, 100.0):
            result = _analyzer(fixed_clock, min_score=min_score).analyze(bundle)
            assert all(o.score >= min_score for o in result.opportunities)

    def test_max_results_truncates_after_sorting(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock, min_score=0.0, max_results=1).analyze(bundle)
        assert [o.category for o in result.opportunities] == ["tesla_custom"]
        assert result.metadata.total_candidates == 3
        assert result.metadata.qualified_candidates == 1

    def test_max_results_zero(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock, min_score=0.0, max_results=0).analyze(bundle)
        assert result.opportunities == []
        assert result.metadata.qualified_candidates == 0

    def test_ties_keep_store_order(self, fixed_clock: Callable[[], datetime]) -> None:
        hacs = {
            store_id: {"domain": domain, "full_name": f"o/{domain}"}
            for store_id, domain in [("9", "zeta"), ("1", "alpha"), ("5", "mid")]
        }
        result = _analyzer(fixed_clock, min_score=0.0).analyze(
            SourceBundle.from_payloads(hacs)
        )
        assert [o.category for o in result.opportunities] == ["zeta", "alpha", "mid"]
        assert len({o.score for o in result.opportunities}) == 1

    def test_idempotent_across_runs(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        analyzer = _analyzer(fixed_clock, min_score=0.0)
        first = analyzer.analyze(bundle)
        second = analyzer.analyze(bundle)
        assert [(o.name, o.scoring_details) for o in first.opportunities] == [
            (o.name, o.scoring_details) for o in second.opportunities
        ]

    def test_scores_within_bounds(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock, min_score=0.0).analyze(bundle)
        for opp in result.opportunities:
            details = opp.scoring_details
            for value in (
                details.demand,
                details.feasibility,
                details.competition,
                details.trend,
                details.composite,
            ):
                assert 0.0 <= value <= 100.0


# ---------------------------------------------------------------------------
# Store-only example
# ---------------------------------------------------------------------------


class TestStoreOnlyCandidate:
    """A store entry with no repository and no videos."""

    def test_tesla_without_enrichment(
        self, fixed_clock: Callable[[], datetime]
    ) -> None:
        bundle = SourceBundle.from_payloads(
            {"1": {"domain": "tesla", "full_name": "o/tesla"}}
        )
        result = _analyzer(fixed_clock, min_score=0.0).analyze(bundle)
        (opp,) = result.opportunities

        assert opp.metadata["stars"] == 0
        assert opp.metadata["forks"] == 0
        assert opp.metadata["youtube_mentions"] == 0
        details = opp.scoring_details
        assert details.demand == pytest.approx(0.3 * 100.0 / (1 + 365 / 30.0))
        assert details.feasibility == 80.0
        assert details.competition == 70.0
        assert details.trend == 0.0

    def test_out_of_range_timestamp_is_treated_as_stale(
        self, fixed_clock: Callable[[], datetime]
    ) -> None:
        bundle = SourceBundle.from_payloads(
            {
                "1": {
                    "domain": "x",
                    "full_name": "a/x",
                    "last_updated": "9999-12-31T23:59:59-01:00",
                }
            }
        )
        result = _analyzer(fixed_clock, min_score=0.0).analyze(bundle)
        (opp,) = result.opportunities
        assert opp.scoring_details.demand == pytest.approx(
            0.3 * 100.0 / (1 + 365 / 30.0)
        )


# ---------------------------------------------------------------------------
# Opportunity assembly and provenance
# ---------------------------------------------------------------------------


class TestOpportunities:
    """Opportunity fields and data-source provenance."""

    def test_opportunity_fields(
        self,
        bundle: SourceBundle,
        fixed_clock: Callable[[], datetime],
        fixed_now: datetime,
    ) -> None:
        result = _analyzer(fixed_clock).analyze(bundle)
        tesla = result.opportunities[0]

        assert isinstance(tesla.id, uuid.UUID)
        assert tesla.name == "Tesla Custom"
        assert tesla.category == "tesla_custom"
        assert tesla.score == tesla.scoring_details.composite
        assert tesla.discovered_at == fixed_now
        assert tesla.metadata == {
            "github_url": "https://github.com/alandtse/tesla",
            "stars": 900,
            "forks": 80,
            "open_issues": 30,
            "topics": ["tesla", "ev"],
            "in_hacs": True,
            "youtube_mentions": 1,
        }

    def test_ids_are_unique(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock, min_score=0.0).analyze(bundle)
        ids = {o.id for o in result.opportunities}
        assert len(ids) == len(result.opportunities)

    def test_exact_video_match_provenance(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock).analyze(bundle)
        frigate = result.opportunities[1]
        names = [s.name for s in frigate.data_sources]
        assert names == ["HACS", "GitHub", "YouTube"]

        hacs, github, youtube = frigate.data_sources
        assert hacs.source_type is DataSourceType.HACS
        assert hacs.metadata == {"hacs_id": "303", "domain": "frigate"}
        assert github.metadata["full_name"] == "blakeblackshear/frigate-hass-integration"
        assert github.data_points == 1
        assert youtube.source_type is DataSourceType.YOUTUBE
        assert youtube.data_points == 2
        assert youtube.metadata["video_ids"] == ["vid2", "vid3"]
        assert youtube.metadata["mention_count"] == 2
        assert youtube.metadata["match_type"] == "exact"

    def test_general_video_entry_when_no_match(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock, min_score=0.0).analyze(bundle)
        hacs_only = result.opportunities[2]
        names = [s.name for s in hacs_only.data_sources]
        # No repository matched, so no GitHub entry; the video entry is always there.
        assert names == ["HACS", "YouTube (general)"]
        general = hacs_only.data_sources[-1]
        assert general.data_points == 0
        assert general.metadata["match_type"] == "general"

    def test_every_opportunity_has_exactly_one_video_entry(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock, min_score=0.0).analyze(bundle)
        for opp in result.opportunities:
            video_entries = [
                s for s in opp.data_sources if s.source_type is DataSourceType.YOUTUBE
            ]
            assert len(video_entries) == 1


# ---------------------------------------------------------------------------
# Result metadata
# ---------------------------------------------------------------------------


class TestResultMetadata:
    """Run metadata and config echo."""

    def test_metadata_and_config_echo(
        self,
        bundle: SourceBundle,
        fixed_clock: Callable[[], datetime],
        fixed_now: datetime,
    ) -> None:
        config = AnalysisConfig(min_score=10.0, enabled_sources=["hacs", "github"])
        result = IntegrationAnalyzer(config=config, clock=fixed_clock).analyze(bundle)
        assert result.config == config
        assert result.analyzed_at == fixed_now
        assert result.metadata.sources_used == ["hacs", "github"]
        assert result.metadata.duration_secs >= 0.0

    def test_result_serializes_to_json(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        result = _analyzer(fixed_clock).analyze(bundle)
        dumped = result.model_dump(mode="json")
        assert set(dumped) == {"opportunities", "analyzed_at", "config", "metadata"}
        assert dumped["opportunities"][0]["data_sources"][0]["source_type"] == "hacs"


# ---------------------------------------------------------------------------
# Strategy injection and errors
# ---------------------------------------------------------------------------


class _FlatScorer:
    """Scores every candidate identically."""

    def __init__(self, value: float) -> None:
        self.value = value
        self.calls: list[ScoringData] = []

    def score(self, data: ScoringData) -> IntegrationScore:
        self.calls.append(data)
        return IntegrationScore(
            demand=self.value,
            feasibility=self.value,
            competition=self.value,
            trend=self.value,
            composite=self.value,
        )


class _FailingScorer:
    def score(self, data: ScoringData) -> IntegrationScore:
        raise ScoringError("model backend unavailable")


class TestStrategies:
    """Scorers are injectable and their failures abort the run."""

    def test_default_scorer_uses_config_weights(self) -> None:
        weights = ScoreWeights(demand=1.0, feasibility=0.0, competition=0.0, trend=0.0)
        analyzer = IntegrationAnalyzer(config=AnalysisConfig(weights=weights))
        assert isinstance(analyzer.scorer, DefaultScorer)
        assert analyzer.scorer.weights == weights

    def test_custom_scorer_is_used(
        self, bundle: SourceBundle, fixed_clock: Callable[[], datetime]
    ) -> None:
        scorer = _FlatScorer(55.0)
        analyzer = IntegrationAnalyzer(scorer=scorer, clock=fixed_clock)
        result = analyzer.analyze(bundle)
        assert len(scorer.calls) == 3
        assert [o.score for o in result.opportunities] == [55.0, 55.0, 55.0]
        assert [o.category for o in result.opportunities] == [
            "tesla_custom",
            "hacs_only",
            "frigate",
        ]

    def test_scoring_error_aborts_run(self, bundle: SourceBundle) -> None:
        analyzer = IntegrationAnalyzer(scorer=_FailingScorer())
        with pytest.raises(ScoringError, match="model backend unavailable"):
            analyzer.analyze(bundle)

    def test_module_level_analyze(self, bundle: SourceBundle) -> None:
        result = analyze(bundle, AnalysisConfig(min_score=0.0), _FlatScorer(1.0))
        assert result.metadata.qualified_candidates == 3


# ---------------------------------------------------------------------------
# File entry point
# ---------------------------------------------------------------------------


class TestAnalyzeFromFiles:
    """analyze_from_files loads and runs the full pipeline."""

    def test_runs_from_files(
        self,
        source_files: tuple[Path, Path, Path],
        fixed_clock: Callable[[], datetime],
    ) -> None:
        result = _analyzer(fixed_clock).analyze_from_files(*source_files)
        assert result.metadata.total_candidates == 3
        assert result.opportunities[0].category == "tesla_custom"

    def test_store_only_files(
        self,
        source_files: tuple[Path, Path, Path],
        fixed_clock: Callable[[], datetime],
    ) -> None:
        result = _analyzer(fixed_clock, min_score=0.0).analyze_from_files(
            source_files[0]
        )
        assert result.metadata.total_candidates == 3
        for opp in result.opportunities:
            assert [s.name for s in opp.data_sources] == ["HACS", "YouTube (general)"]

    def test_bad_payload_aborts_whole_run(
        self, source_files: tuple[Path, Path, Path], tmp_path: Path
    ) -> None:
        broken = tmp_path / "youtube-broken.json"
        broken.write_text('{"items": [', encoding="utf-8")
        with pytest.raises(ParseError) as exc_info:
            IntegrationAnalyzer().analyze_from_files(
                source_files[0], source_files[1], broken
            )
        assert exc_info.value.source == "youtube"
        assert exc_info.value.origin == str(broken)
