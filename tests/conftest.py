"""Shared pytest fixtures for the nichefinder test suite."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest
import structlog

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Reset structlog and root logger state between tests."""
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

FIXED_NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def fixed_now() -> datetime:
    """Return the reference "now" used by deterministic tests."""
    return FIXED_NOW


@pytest.fixture()
def fixed_clock() -> Callable[[], datetime]:
    """Return a clock callable that always reports ``FIXED_NOW``."""
    return lambda: FIXED_NOW


# ---------------------------------------------------------------------------
# Source payloads
# ---------------------------------------------------------------------------


@pytest.fixture()
def hacs_payload() -> dict[str, Any]:
    """Return a HACS index with a repo-backed, a store-only and a stale entry."""
    return {
        "101": {
            "domain": "tesla_custom",
            "full_name": "alandtse/tesla",
            "description": "Tesla custom integration",
            "stargazers_count": 500,
            "open_issues": 12,
            "last_updated": "2026-10-08T12:00:00Z",
            "manifest_name": "Tesla Custom",
            "topics": ["tesla", "ev", "tesla"],
            "downloads": 1234,
        },
        "202": {
            "domain": "hacs_only",
            "full_name": "someone/hacs-only",
            "stargazers_count": 7,
            "open_issues": 2,
            "last_updated": "not-a-date",
        },
        "303": {
            "domain": "frigate",
            "full_name": "blakeblackshear/frigate-hass-integration",
            "description": None,
            "last_updated": None,
            "manifest_name": "Frigate",
        },
    }


@pytest.fixture()
def github_payload() -> dict[str, Any]:
    """Return a GitHub search response with two matching repos and an orphan."""
    return {
        "total_count": 3,
        "incomplete_results": False,
        "items": [
            {
                "name": "tesla",
                "full_name": "alandtse/tesla",
                "description": "Repository description",
                "stargazers_count": 900,
                "forks_count": 80,
                "open_issues_count": 30,
                "topics": ["tesla", "homeassistant"],
                "created_at": "2020-01-01T00:00:00Z",
                "updated_at": "2026-10-01T00:00:00Z",
                "html_url": "https://github.com/alandtse/tesla",
            },
            {
                "name": "frigate-hass-integration",
                "full_name": "blakeblackshear/frigate-hass-integration",
                "description": "Frigate NVR integration",
                "stargazers_count": 600,
                "forks_count": 100,
                "open_issues_count": 20,
                "topics": ["frigate", "nvr", "frigate"],
                "created_at": "2021-01-01T00:00:00Z",
                "updated_at": "2026-09-01T00:00:00Z",
                "html_url": "https://github.com/blakeblackshear/frigate-hass-integration",
            },
            {
                "name": "orphan",
                "full_name": "nobody/orphan",
                "description": "Not in HACS",
                "stargazers_count": 5000,
                "forks_count": 1,
                "open_issues_count": 0,
                "topics": [],
                "created_at": "2022-01-01T00:00:00Z",
                "updated_at": "2026-01-01T00:00:00Z",
                "html_url": "https://github.com/nobody/orphan",
            },
        ],
    }


@pytest.fixture()
def youtube_payload() -> dict[str, Any]:
    """Return a YouTube search response including a channel-only result."""
    return {
        "kind": "youtube#searchListResponse",
        "items": [
            {
                "id": {"kind": "youtube#video", "videoId": "vid1"},
                "snippet": {
                    "title": "TESLA_CUSTOM setup guide",
                    "description": "Step by step",
                    "channelTitle": "HA Tips",
                    "publishedAt": "2026-09-01T00:00:00Z",
                },
            },
            {
                "id": {"kind": "youtube#video", "videoId": "vid2"},
                "snippet": {
                    "title": "My NVR build",
                    "description": "Using Frigate with Home Assistant",
                    "channelTitle": "Cams",
                    "publishedAt": "2026-08-01T00:00:00Z",
                },
            },
            {
                "id": {"kind": "youtube#channel", "channelId": "chan1"},
                "snippet": {
                    "title": "frigate fans",
                    "description": "all about tesla_custom and frigate",
                    "channelTitle": "frigate fans",
                    "publishedAt": "2020-01-01T00:00:00Z",
                },
            },
            {
                "id": {"kind": "youtube#video", "videoId": "vid3"},
                "snippet": {
                    "title": "frigate 0.14 review",
                    "description": "",
                    "channelTitle": "Reviews",
                    "publishedAt": "2026-07-01T00:00:00Z",
                },
            },
        ],
    }


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def source_files(
    tmp_path: Path,
    hacs_payload: dict[str, Any],
    github_payload: dict[str, Any],
    youtube_payload: dict[str, Any],
) -> tuple[Path, Path, Path]:
    """Write the three sample payloads to disk and return their paths."""
    raw_dir = tmp_path / "raw"
    raw_dir.mkdir()
    paths = (
        raw_dir / "hacs.json",
        raw_dir / "github.json",
        raw_dir / "youtube.json",
    )
    for path, payload in zip(
        paths, (hacs_payload, github_payload, youtube_payload), strict=True
    ):
        path.write_text(json.dumps(payload), encoding="utf-8")
    return paths
