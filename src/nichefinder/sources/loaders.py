"""Loaders that turn raw source payloads into typed records.

Each ``parse_*`` function accepts an already-decoded JSON value and each
``load_*`` function reads and decodes a file first. Every failure is
reported as a :class:`~nichefinder.exceptions.ParseError` naming the
source and where the payload came from.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from nichefinder.exceptions import ParseError
from nichefinder.sources.models import (
    GitHubRepo,
    GitHubSearchResponse,
    HacsIntegration,
    YouTubeSearchResponse,
    YouTubeVideo,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

HACS = "hacs"
GITHUB = "github"
YOUTUBE = "youtube"

_IN_MEMORY = "<memory>"

_HACS_ADAPTER: TypeAdapter[dict[str, HacsIntegration]] = TypeAdapter(
    dict[str, HacsIntegration]
)


# ---------------------------------------------------------------------------
# Payload parsers
# ---------------------------------------------------------------------------


def parse_hacs_payload(
    payload: Any, origin: str = _IN_MEMORY
) -> dict[str, HacsIntegration]:
    """Parse the HACS index, a mapping of store id to integration entry.

    Key order of the payload is preserved in the returned mapping.
    """
    try:
        entries = _HACS_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise ParseError(HACS, origin, exc) from exc

    logger.debug("hacs_payload_parsed", origin=origin, entries=len(entries))
    return entries


def parse_github_payload(payload: Any, origin: str = _IN_MEMORY) -> list[GitHubRepo]:
    """Parse a GitHub repository search response and return its ``items``."""
    try:
        response = GitHubSearchResponse.model_validate(payload)
    except ValidationError as exc:
        raise ParseError(GITHUB, origin, exc) from exc

    logger.debug("github_payload_parsed", origin=origin, items=len(response.items))
    return list(response.items)


def parse_youtube_payload(
    payload: Any, origin: str = _IN_MEMORY
) -> list[YouTubeVideo]:
    """Parse a YouTube search response and return its ``items``.

    Channel results are kept here; the normalizer is responsible for
    skipping items without a video id.
    """
    try:
        response = YouTubeSearchResponse.model_validate(payload)
    except ValidationError as exc:
        raise ParseError(YOUTUBE, origin, exc) from exc

    logger.debug("youtube_payload_parsed", origin=origin, items=len(response.items))
    return list(response.items)


# ---------------------------------------------------------------------------
# File loaders
# ---------------------------------------------------------------------------


def _read_json(source: str, path: Path | str) -> Any:
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(source, str(path), exc) from exc

    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise ParseError(source, str(path), exc) from exc


def load_hacs_data(path: Path | str) -> dict[str, HacsIntegration]:
    """Load and parse the HACS integration index from a JSON file."""
    return parse_hacs_payload(_read_json(HACS, path), origin=str(path))


def load_github_data(path: Path | str) -> list[GitHubRepo]:
    """Load and parse a GitHub repository search response from a JSON file."""
    return parse_github_payload(_read_json(GITHUB, path), origin=str(path))


def load_youtube_data(path: Path | str) -> list[YouTubeVideo]:
    """Load and parse a YouTube search response from a JSON file."""
    return parse_youtube_payload(_read_json(YOUTUBE, path), origin=str(path))


# ---------------------------------------------------------------------------
# Source bundle
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceBundle:
    """Typed records of all three sources for one analysis run.

    HACS entries form the anchor set. GitHub and YouTube records only
    enrich them, so either may be empty.
    """

    hacs: dict[str, HacsIntegration]
    github: list[GitHubRepo] = field(default_factory=list)
    youtube: list[YouTubeVideo] = field(default_factory=list)

    @classmethod
    def from_files(
        cls,
        hacs_path: Path | str,
        github_path: Path | str | None = None,
        youtube_path: Path | str | None = None,
    ) -> SourceBundle:
        """Load a bundle from disk.

        A ``None`` path marks the source as absent. A path that is given
        but cannot be loaded raises :class:`ParseError`.
        """
        hacs = load_hacs_data(hacs_path)
        github = load_github_data(github_path) if github_path is not None else []
        youtube = load_youtube_data(youtube_path) if youtube_path is not None else []

        logger.info(
            "sources_loaded",
            hacs_entries=len(hacs),
            github_repos=len(github),
            youtube_items=len(youtube),
        )
        return cls(hacs=hacs, github=github, youtube=youtube)

    @classmethod
    def from_payloads(
        cls,
        hacs: Any,
        github: Any | None = None,
        youtube: Any | None = None,
    ) -> SourceBundle:
        """Build a bundle from already-decoded JSON payloads."""
        return cls(
            hacs=parse_hacs_payload(hacs),
            github=parse_github_payload(github) if github is not None else [],
            youtube=parse_youtube_payload(youtube) if youtube is not None else [],
        )
