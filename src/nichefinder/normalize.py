"""Join per-source records into one canonical record per integration.

HACS entries are the anchor set: every store entry yields exactly one
:class:`NormalizedIntegration`, enriched by at most one GitHub repository
(exact ``full_name`` match) and any number of YouTube videos (case-folded
domain substring match on title or description). Repositories and videos
that match no store entry are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from nichefinder.sources.models import GitHubRepo, HacsIntegration, YouTubeVideo

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_GITHUB_URL = "https://github.com/{full_name}"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IntegrationSources:
    """Identifiers of the source records a normalized integration came from."""

    hacs_id: str | None = None
    github_full_name: str | None = None
    youtube_video_ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NormalizedIntegration:
    """Canonical view of one integration candidate across all sources."""

    name: str
    domain: str | None = None
    description: str | None = None
    github_url: str | None = None
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    topics: tuple[str, ...] = ()
    last_updated: datetime | None = None
    in_hacs: bool = False
    sources: IntegrationSources = field(default_factory=IntegrationSources)

    @property
    def youtube_mentions(self) -> int:
        return len(self.sources.youtube_video_ids)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Returns ``None`` for missing values, malformed strings, and values
    without a UTC offset (including bare dates). Offsets that push the
    instant outside the representable range also give ``None``.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            return None
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError):
        return None


def _dedupe(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def _matching_video_ids(
    domain: str, videos: list[tuple[str, str, str]]
) -> tuple[str, ...]:
    needle = domain.casefold()
    return tuple(
        video_id
        for video_id, title, description in videos
        if needle in title or needle in description
    )


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_integration(
    hacs_id: str,
    entry: HacsIntegration,
    repo: GitHubRepo | None,
    video_ids: tuple[str, ...] = (),
) -> NormalizedIntegration:
    """Merge one store entry with its matched repository and videos.

    Conflicts resolve in a fixed order: description prefers the store,
    counts prefer the repository, forks only ever come from the
    repository, and topics prefer the store.
    """
    description = entry.description
    if description is None and repo is not None:
        description = repo.description

    if repo is not None:
        stars = repo.stargazers_count
        forks = repo.forks_count
        open_issues = repo.open_issues_count
    else:
        stars = entry.stargazers_count or 0
        forks = 0
        open_issues = entry.open_issues or 0

    if entry.topics is not None:
        topics = _dedupe(entry.topics)
    elif repo is not None:
        topics = _dedupe(repo.topics)
    else:
        topics = ()

    return NormalizedIntegration(
        name=entry.manifest_name or entry.domain,
        domain=entry.domain,
        description=description,
        github_url=_GITHUB_URL.format(full_name=entry.full_name),
        stars=stars,
        forks=forks,
        open_issues=open_issues,
        topics=topics,
        last_updated=parse_timestamp(entry.last_updated),
        in_hacs=True,
        sources=IntegrationSources(
            hacs_id=hacs_id,
            github_full_name=repo.full_name if repo is not None else None,
            youtube_video_ids=video_ids,
        ),
    )


def normalize_integrations(
    hacs: dict[str, HacsIntegration],
    github: list[GitHubRepo],
    youtube: list[YouTubeVideo],
) -> list[NormalizedIntegration]:
    """Build one normalized integration per HACS entry, in HACS order.

    Repositories sharing a ``full_name`` collapse to the last one seen.
    Channel results (items without a video id) never match.
    """
    repos_by_name: dict[str, GitHubRepo] = {}
    for repo in github:
        if repo.full_name in repos_by_name:
            logger.debug("duplicate_repo_replaced", full_name=repo.full_name)
        repos_by_name[repo.full_name] = repo

    videos = [
        (
            video.id.video_id,
            video.snippet.title.casefold(),
            video.snippet.description.casefold(),
        )
        for video in youtube
        if video.id.video_id is not None
    ]

    integrations = [
        normalize_integration(
            hacs_id,
            entry,
            repos_by_name.get(entry.full_name),
            _matching_video_ids(entry.domain, videos),
        )
        for hacs_id, entry in hacs.items()
    ]

    logger.info(
        "integrations_normalized",
        candidates=len(integrations),
        repo_matches=sum(1 for i in integrations if i.sources.github_full_name),
        video_matches=sum(1 for i in integrations if i.youtube_mentions),
        skipped_channel_results=len(youtube) - len(videos),
    )
    return integrations
