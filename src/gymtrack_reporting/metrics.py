"""In-memory report metrics.

One process runs reports sequentially on a single event loop, so plain dicts
need no locking.
"""

import time

_start_time = time.monotonic()

_totals: dict[str, int] = {"reports_run": 0, "reports_failed": 0}
_per_report: dict[str, dict] = {}


def _new_stats() -> dict:
    return {
        "invocations": 0,
        "successes": 0,
        "failures": 0,
        "total_duration_ms": 0.0,
        "max_duration_ms": 0.0,
    }


def record_report_invocation(report_name: str, duration_ms: float, success: bool) -> None:
    """Count one run of ``report_name`` and its wall time."""
    stats = _per_report.setdefault(report_name, _new_stats())
    stats["invocations"] += 1
    stats["total_duration_ms"] += duration_ms
    stats["max_duration_ms"] = max(stats["max_duration_ms"], duration_ms)
    outcome = "successes" if success else "failures"
    stats[outcome] += 1
    _totals["reports_run" if success else "reports_failed"] += 1


def _with_average(stats: dict) -> dict:
    snapshot = dict(stats)
    snapshot["avg_duration_ms"] = (
        round(stats["total_duration_ms"] / stats["invocations"], 1) if stats["invocations"] else 0.0
    )
    return snapshot


def get_metrics() -> dict:
    """Snapshot of totals and per-report timings; safe to mutate."""
    return {
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        **_totals,
        "reports": {name: _with_average(stats) for name, stats in _per_report.items()},
    }


def reset_metrics() -> None:
    for key in _totals:
        _totals[key] = 0
    _per_report.clear()
