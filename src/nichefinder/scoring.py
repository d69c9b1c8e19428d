"""Scoring strategies for integration opportunities.

Scores four dimensions on a 0-100 scale:
    - Demand (request volume blended with recency)
    - Feasibility (API availability and documentation quality)
    - Competition (inverse of how many integrations already exist)
    - Trend (logarithm of the growth rate)

and combines them into a weighted composite. The analyzer only depends
on the :class:`OpportunityScorer` protocol, so alternate strategies can
be injected without touching it.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

from nichefinder.models import IntegrationScore, ScoreWeights

if TYPE_CHECKING:
    from nichefinder.signals import ScoringData


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp *value* to [lo, hi]."""
    return max(lo, min(hi, value))


@runtime_checkable
class OpportunityScorer(Protocol):
    """Strategy that turns scoring inputs into an :class:`IntegrationScore`.

    Implementations may raise :class:`~nichefinder.exceptions.ScoringError`
    when a candidate cannot be scored.
    """

    def score(self, data: ScoringData) -> IntegrationScore: ...


# ---------------------------------------------------------------------------
# Default heuristic
# ---------------------------------------------------------------------------


class DefaultScorer:
    """Deterministic heuristic scorer.

    Attributes:
        weights: Composite weights; defaults to ``ScoreWeights()``.
    """

    VOLUME_CAP: ClassVar[float] = 100.0
    VOLUME_SHARE: ClassVar[float] = 0.7
    RECENCY_SHARE: ClassVar[float] = 0.3
    RECENCY_HALF_LIFE_DAYS: ClassVar[float] = 30.0

    NO_API_FEASIBILITY: ClassVar[float] = 20.0
    DOCUMENTED_API_THRESHOLD: ClassVar[float] = 80.0

    # Competition score by number of existing integrations; more is saturated.
    COMPETITION_STEPS: ClassVar[dict[int, float]] = {
        0: 100.0,
        1: 70.0,
        2: 50.0,
        3: 30.0,
    }
    SATURATED_COMPETITION: ClassVar[float] = 10.0

    TREND_LOG_SCALE: ClassVar[float] = 20.0

    def __init__(self, weights: ScoreWeights | None = None) -> None:
        self.weights = weights or ScoreWeights()

    def score(self, data: ScoringData) -> IntegrationScore:
        """Score a candidate.

        Args:
            data: Scoring inputs derived from a normalized integration.

        Returns:
            The four sub-scores, the composite, and the weights used.
        """
        demand = self.calculate_demand(data)
        feasibility = self.calculate_feasibility(data)
        competition = self.calculate_competition(data)
        trend = self.calculate_trend(data)

        return IntegrationScore(
            demand=demand,
            feasibility=feasibility,
            competition=competition,
            trend=trend,
            composite=self.calculate_composite(
                demand, feasibility, competition, trend
            ),
            weights=self.weights,
        )

    def calculate_demand(self, data: ScoringData) -> float:
        volume = min(float(data.request_count), self.VOLUME_CAP)
        days = max(data.days_since_last_request, 0)
        if days == 0:
            recency = 100.0
        else:
            recency = min(100.0, 100.0 / (1.0 + days / self.RECENCY_HALF_LIFE_DAYS))
        return min(volume * self.VOLUME_SHARE + recency * self.RECENCY_SHARE, 100.0)

    def calculate_feasibility(self, data: ScoringData) -> float:
        """Score API availability.

        Without an API the score is a flat 20. A raw score above 80 jumps
        straight to 100.
        """
        if not data.has_api:
            return self.NO_API_FEASIBILITY

        api_score = data.api_quality * 100.0
        if api_score > self.DOCUMENTED_API_THRESHOLD:
            return 100.0
        return _clamp(api_score)

    def calculate_competition(self, data: ScoringData) -> float:
        return self.COMPETITION_STEPS.get(
            data.existing_integrations, self.SATURATED_COMPETITION
        )

    def calculate_trend(self, data: ScoringData) -> float:
        """Score growth on a log scale.

        Growth rates below one per day give a negative logarithm, which
        the clamp floors to zero.
        """
        if data.growth_rate <= 0.0:
            return 0.0
        return _clamp(math.log(data.growth_rate) * self.TREND_LOG_SCALE)

    def calculate_composite(
        self,
        demand: float,
        feasibility: float,
        competition: float,
        trend: float,
    ) -> float:
        composite = (
            demand * self.weights.demand
            + feasibility * self.weights.feasibility
            + competition * self.weights.competition
            + trend * self.weights.trend
        )
        return _clamp(composite)
