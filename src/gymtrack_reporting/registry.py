import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, Literal

import psycopg

from .config import Config
from .metrics import record_report_invocation
from .timebuckets import parse_timestamp

logger = logging.getLogger(__name__)

ReportScope = Literal["gym", "member"]

# Report signature: async def report(conn, subject_id, now, config) -> dict
ReportFn = Callable[
    [psycopg.AsyncConnection[Any], str | None, datetime, Config],
    Awaitable[dict[str, Any]],
]

_reports: dict[str, ReportFn] = {}

# Declared at registration time: scope, description, handler
_report_metadata: dict[str, dict[str, Any]] = {}


def report(
    name: str,
    *,
    scope: ReportScope,
    description: str = "",
) -> Callable[[ReportFn], ReportFn]:
    """Register an async report builder under ``name``.

    Usage:
        @report("checkin_trends", scope="gym", description="Check-ins per day")
        async def checkin_trends_report(conn, gym_id, now, config):
            ...
    """

    def decorator(fn: ReportFn) -> ReportFn:
        if name in _reports:
            raise ValueError(f"Duplicate report name={name!r}")
        if scope not in ("gym", "member"):
            raise ValueError(f"Unknown report scope={scope!r} for {name!r}")
        _reports[name] = fn
        _report_metadata[name] = {
            "scope": scope,
            "description": description,
            "handler": fn.__name__,
        }
        logger.debug("Registered report %s (%s)", name, scope)
        return fn

    return decorator


def get_report(name: str) -> ReportFn:
    try:
        return _reports[name]
    except KeyError:
        raise KeyError(f"Unknown report: {name!r}") from None


def registered_reports() -> list[str]:
    return list(_reports.keys())


def get_report_metadata() -> dict[str, dict[str, Any]]:
    return {name: dict(meta) for name, meta in _report_metadata.items()}


async def run_report(
    name: str,
    conn: psycopg.AsyncConnection[Any],
    subject_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    """Dispatch a registered report, timing it into the metrics.

    A naive ``now`` is taken as UTC, like every record timestamp.
    """
    fn = get_report(name)
    now = parse_timestamp(now)
    start = time.monotonic()
    success = False
    try:
        result = await fn(conn, subject_id, now, config)
        success = True
        return result
    finally:
        duration_ms = (time.monotonic() - start) * 1000
        record_report_invocation(name, duration_ms, success)
        logger.info(
            "Report %s %s in %.1fms",
            name,
            "completed" if success else "failed",
            duration_ms,
            extra={
                "gymtrack_report_name": name,
                "gymtrack_subject_id": subject_id,
                "gymtrack_duration_ms": round(duration_ms, 1),
            },
        )
