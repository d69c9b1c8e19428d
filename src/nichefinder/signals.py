"""Derive scoring inputs from a normalized integration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nichefinder.normalize import NormalizedIntegration

# Days reported when an integration has no usable update timestamp.
STALE_DAYS = 365

# Each video mention counts as ten stars of demand.
VIDEO_MENTION_WEIGHT = 10

_HACS_API_QUALITY = 0.8
_DEFAULT_API_QUALITY = 0.5


@dataclass(frozen=True, slots=True)
class ScoringData:
    """Comparable numeric signals for one candidate."""

    request_count: int
    growth_rate: float
    has_api: bool
    api_quality: float
    existing_integrations: int
    days_since_last_request: int


def days_since(timestamp: datetime | None, now: datetime | None = None) -> int:
    """Whole days elapsed since ``timestamp``, or :data:`STALE_DAYS` if unknown.

    Timestamps in the future count as zero days old.
    """
    if timestamp is None:
        return STALE_DAYS
    current = now or datetime.now(tz=UTC)
    return max((current - timestamp).days, 0)


def extract_scoring_data(
    integration: NormalizedIntegration, now: datetime | None = None
) -> ScoringData:
    """Compute :class:`ScoringData` for a normalized integration.

    Store presence stands in for API availability and for an existing
    integration; stars per year approximate growth.
    """
    stars = integration.stars
    in_hacs = integration.in_hacs

    return ScoringData(
        request_count=stars + VIDEO_MENTION_WEIGHT * integration.youtube_mentions,
        growth_rate=stars / 365.0 if stars > 0 else 0.0,
        has_api=in_hacs,
        api_quality=_HACS_API_QUALITY if in_hacs else _DEFAULT_API_QUALITY,
        existing_integrations=1 if in_hacs else 0,
        days_since_last_request=days_since(integration.last_updated, now),
    )
