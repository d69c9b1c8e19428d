"""structlog setup and pipeline logging helpers.

``configure_logging`` routes structlog through the stdlib root logger so
stderr and an optional log file share one formatter. Pipeline stages run
inside :func:`stage_logging_context`, which times them and reports how
they ended, and every provenance entry attached to an opportunity is
recorded with :func:`log_provenance`.
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Literal

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from nichefinder.models import DataSource

LogFormat = Literal["console", "json"]

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_STAGE_LOGGER = "nichefinder.pipeline"
_PROVENANCE_LOGGER = "nichefinder.provenance"


def generate_run_id() -> str:
    """Return a UUID4 string identifying one analysis run."""
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def configure_logging(
    level: str = "INFO",
    fmt: LogFormat = "console",
    log_file: Path | str | None = None,
    run_id: str | None = None,
) -> None:
    """Configure structlog for a run.

    Output goes to stderr, leaving stdout for rendered reports. Calling
    this again replaces the previous handlers.

    Args:
        level: Log level name, case-insensitive.
        fmt: ``"console"`` for humans or ``"json"`` for one object per line.
        log_file: Also write log lines to this file.
        run_id: Bound to every entry of the run when given.

    Raises:
        ValueError: If ``level`` is not a recognized log level.
    """
    level_name = level.upper()
    if level_name not in _VALID_LEVELS:
        msg = f"Invalid log level: {level!r}. Must be one of {list(_VALID_LEVELS)}"
        raise ValueError(msg)

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer()
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level_name)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    if run_id:
        structlog.contextvars.bind_contextvars(run_id=run_id)


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000.0, 3)


@contextmanager
def stage_logging_context(
    stage: str, index: int, **context: Any
) -> Iterator[structlog.stdlib.BoundLogger]:
    """Time one pipeline stage and log how it ended.

    ``stage`` and ``index`` (plus any ``context``) are bound to every
    entry logged inside the block. ``stage_end`` always closes the stage
    with ``outcome`` (``"ok"`` or ``"error"``) and ``duration_ms``. A
    failing stage also logs ``stage_error`` with the exception type before
    the exception propagates unchanged.

    Example::

        with stage_logging_context("normalize", 1) as log:
            log.info("candidates_built", count=len(candidates))
    """
    structlog.contextvars.bind_contextvars(stage=stage, stage_index=index, **context)
    log: structlog.stdlib.BoundLogger = structlog.get_logger(_STAGE_LOGGER)
    log.info("stage_start")

    start = time.monotonic()
    outcome = "ok"
    try:
        yield log
    except Exception as exc:
        outcome = "error"
        log.error(
            "stage_error",
            error_type=type(exc).__name__,
            error=str(exc),
            duration_ms=_elapsed_ms(start),
        )
        raise
    finally:
        log.info("stage_end", outcome=outcome, duration_ms=_elapsed_ms(start))
        structlog.contextvars.unbind_contextvars("stage", "stage_index", *context)


# ---------------------------------------------------------------------------
# Provenance
# ---------------------------------------------------------------------------


def log_provenance(source: DataSource, candidate: str) -> None:
    """Record that ``source`` contributed to the opportunity ``candidate``.

    Logged at debug level; the same facts are kept on the opportunity's
    ``data_sources`` list.
    """
    structlog.get_logger(_PROVENANCE_LOGGER).debug(
        "provenance_entry",
        candidate=candidate,
        source=source.name,
        source_type=str(source.source_type),
        data_points=source.data_points,
        match_type=source.metadata.get("match_type"),
    )
