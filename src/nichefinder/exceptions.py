"""Centralized exception hierarchy for the nichefinder package.

All domain-specific exceptions inherit from ``NicheFinderError`` so
callers can catch the entire family with a single ``except`` clause.
"""

from __future__ import annotations


class NicheFinderError(Exception):
    """Base exception for all nichefinder errors."""


# ---------------------------------------------------------------------------
# Source loading errors
# ---------------------------------------------------------------------------


class ParseError(NicheFinderError):
    """Raised when a source payload cannot be read, decoded, or validated.

    Attributes:
        source: Source name (``"hacs"``, ``"github"`` or ``"youtube"``).
        origin: File path the payload came from, or ``"<memory>"``.
        cause: The underlying exception.
    """

    def __init__(self, source: str, origin: str, cause: BaseException) -> None:
        self.source = source
        self.origin = origin
        self.cause = cause
        super().__init__(
            f"Failed to load {source} data from {origin}: "
            f"{type(cause).__name__}: {cause}"
        )


# ---------------------------------------------------------------------------
# Scoring errors
# ---------------------------------------------------------------------------


class ScoringError(NicheFinderError):
    """Raised when a scoring strategy cannot score a candidate."""


# ---------------------------------------------------------------------------
# Reporting errors
# ---------------------------------------------------------------------------


class ReportingError(NicheFinderError):
    """Raised when an analysis report cannot be rendered or written."""
