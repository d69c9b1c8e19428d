"""Source payload records and loaders for HACS, GitHub, and YouTube."""

from __future__ import annotations

from nichefinder.sources.loaders import (
    SourceBundle,
    load_github_data,
    load_hacs_data,
    load_youtube_data,
    parse_github_payload,
    parse_hacs_payload,
    parse_youtube_payload,
)
from nichefinder.sources.models import (
    GitHubRepo,
    HacsIntegration,
    YouTubeSnippet,
    YouTubeVideo,
    YouTubeVideoId,
)

__all__ = [
    "GitHubRepo",
    "HacsIntegration",
    "SourceBundle",
    "YouTubeSnippet",
    "YouTubeVideo",
    "YouTubeVideoId",
    "load_github_data",
    "load_hacs_data",
    "load_youtube_data",
    "parse_github_payload",
    "parse_hacs_payload",
    "parse_youtube_payload",
]
