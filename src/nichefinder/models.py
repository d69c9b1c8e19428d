"""Pydantic models for analysis configuration and scored opportunities."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class ScoreWeights(BaseModel):
    """Weights applied to the four sub-scores of the composite.

    The weights are not required to sum to 1.0; a different total simply
    scales the composite before it is clamped to [0, 100].
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    demand: float = 0.4
    feasibility: float = 0.3
    competition: float = 0.2
    trend: float = 0.1


class IntegrationScore(BaseModel):
    """Detailed scoring breakdown for an integration opportunity."""

    model_config = ConfigDict(frozen=True)

    demand: float = Field(ge=0.0, le=100.0)
    feasibility: float = Field(ge=0.0, le=100.0)
    competition: float = Field(
        ge=0.0, le=100.0, description="Inverse of market saturation."
    )
    trend: float = Field(ge=0.0, le=100.0)
    composite: float = Field(ge=0.0, le=100.0, description="Weighted composite.")
    weights: ScoreWeights = Field(default_factory=ScoreWeights)


# ---------------------------------------------------------------------------
# Provenance
# ---------------------------------------------------------------------------


class DataSourceType(StrEnum):
    """Kind of external system a data source entry refers to."""

    HACS = "hacs"
    GITHUB = "github"
    YOUTUBE = "youtube"
    OTHER = "other"


class DataSource(BaseModel):
    """One contributing source in an opportunity's provenance list."""

    model_config = ConfigDict(frozen=True)

    name: str
    source_type: DataSourceType
    collected_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    data_points: int = Field(default=0, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------


class NicheOpportunity(BaseModel):
    """A scored integration opportunity."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    category: str = "unknown"
    score: float = Field(ge=0.0, le=100.0)
    scoring_details: IntegrationScore
    data_sources: list[DataSource] = Field(default_factory=list)
    discovered_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    metadata: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Run configuration and result
# ---------------------------------------------------------------------------


def _default_sources() -> list[str]:
    return ["hacs", "github", "youtube"]


class AnalysisConfig(BaseModel):
    """Parameters for one analysis run."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    min_score: float = Field(
        default=50.0, description="Minimum composite score to qualify."
    )
    max_results: int = Field(
        default=20, ge=0, description="Maximum number of opportunities returned."
    )
    weights: ScoreWeights = Field(default_factory=ScoreWeights)
    enabled_sources: list[str] = Field(default_factory=_default_sources)
    time_range_days: int = Field(
        default=90, ge=0, description="Analysis window in days (informational)."
    )


class AnalysisMetadata(BaseModel):
    """Metadata about an analysis run."""

    model_config = ConfigDict(frozen=True)

    total_candidates: int = Field(ge=0)
    qualified_candidates: int = Field(ge=0)
    duration_secs: float = Field(ge=0.0)
    sources_used: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Ranked opportunities plus the config and metadata of the run."""

    model_config = ConfigDict(frozen=True)

    opportunities: list[NicheOpportunity] = Field(default_factory=list)
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    config: AnalysisConfig = Field(default_factory=AnalysisConfig)
    metadata: AnalysisMetadata
