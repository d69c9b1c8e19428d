"""Typed records for the raw payloads of each external data source.

Field names mirror the upstream JSON byte-for-byte. Unknown fields are
ignored so upstream additions do not break loading.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# HACS (community store)
# ---------------------------------------------------------------------------


class HacsIntegration(BaseModel):
    """One entry of the HACS integration index, keyed by store id."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    domain: str
    full_name: str = Field(description="Backing repository as ``owner/repo``.")
    description: str | None = None
    stargazers_count: int | None = Field(default=None, ge=0)
    open_issues: int | None = Field(default=None, ge=0)
    last_updated: str | None = None
    manifest_name: str | None = None
    topics: list[str] | None = None


# ---------------------------------------------------------------------------
# GitHub repository search
# ---------------------------------------------------------------------------


class GitHubRepo(BaseModel):
    """A repository item from the GitHub search API."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    full_name: str
    name: str = ""
    description: str | None = None
    stargazers_count: int = Field(ge=0)
    forks_count: int = Field(ge=0)
    open_issues_count: int = Field(ge=0)
    topics: list[str] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None
    html_url: str | None = None


class GitHubSearchResponse(BaseModel):
    """Envelope of a GitHub repository search response."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    total_count: int | None = None
    incomplete_results: bool | None = None
    items: list[GitHubRepo]


# ---------------------------------------------------------------------------
# YouTube search
# ---------------------------------------------------------------------------


class YouTubeVideoId(BaseModel):
    """Resource id of a search hit; ``video_id`` is absent for channels."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    video_id: str | None = Field(default=None, alias="videoId")
    channel_id: str | None = Field(default=None, alias="channelId")


class YouTubeSnippet(BaseModel):
    """Display metadata of a search hit."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    title: str
    description: str
    channel_title: str = Field(alias="channelTitle")
    published_at: str = Field(alias="publishedAt")


class YouTubeVideo(BaseModel):
    """A search hit from the YouTube Data API."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: YouTubeVideoId
    snippet: YouTubeSnippet

    @property
    def is_video(self) -> bool:
        return self.id.video_id is not None


class YouTubeSearchResponse(BaseModel):
    """Envelope of a YouTube search response."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    items: list[YouTubeVideo]
