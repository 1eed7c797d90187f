"""CSV data reports over a date range.

Two report types, matching the admin "request data" form:
``check_in_details`` (one row per check-in) and ``members_joined`` (one row
per member who joined in the range). Dates are whole UTC days, both ends
included.
"""

import csv
import io
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Literal

import psycopg
from pydantic import BaseModel, field_validator, model_validator

from . import repository
from .timebuckets import InvalidTimestamp, parse_timestamp

logger = logging.getLogger(__name__)

ExportType = Literal["check_in_details", "members_joined"]

EXPORT_HEADERS: dict[str, tuple[str, ...]] = {
    "check_in_details": ("member_name", "member_id", "check_in_time", "check_out_time"),
    "members_joined": ("member_name", "member_id", "join_date", "plan_name", "plan_price"),
}

MISSING = "N/A"


class NoExportData(Exception):
    """The requested range holds no rows."""

    def __init__(self) -> None:
        super().__init__("No data found for the selected criteria.")


class ExportRequest(BaseModel):
    report_type: ExportType
    gym_id: str
    date_from: date
    date_to: date

    @field_validator("gym_id", mode="before")
    @classmethod
    def gym_id_not_empty(cls, v: Any) -> str:
        value = str(v).strip() if v is not None else ""
        if not value:
            raise ValueError("gym id must not be empty")
        return value

    @model_validator(mode="after")
    def range_ordered(self) -> "ExportRequest":
        if self.date_from > self.date_to:
            raise ValueError("Start date cannot be after end date.")
        return self

    @property
    def bounds(self) -> tuple[datetime, datetime]:
        """First and last instant of the range in UTC."""
        return (
            datetime.combine(self.date_from, time.min, tzinfo=timezone.utc),
            datetime.combine(self.date_to, time.max, tzinfo=timezone.utc),
        )


def _format(value: Any, fmt: str) -> str:
    if value is None:
        return MISSING
    try:
        return parse_timestamp(value).strftime(fmt)
    except InvalidTimestamp:
        logger.warning("Unreadable timestamp %r in export row", value)
        return MISSING


def check_in_detail_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "member_name": r.get("member_name") or MISSING,
            "member_id": r.get("member_code") or MISSING,
            "check_in_time": _format(r.get("check_in_time"), "%Y-%m-%d %H:%M:%S"),
            "check_out_time": _format(r.get("check_out_time"), "%Y-%m-%d %H:%M:%S"),
        }
        for r in rows
    ]


def members_joined_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "member_name": r.get("member_name") or MISSING,
            "member_id": r.get("member_code") or MISSING,
            "join_date": _format(r.get("join_date"), "%Y-%m-%d"),
            "plan_name": r.get("plan_name") or MISSING,
            "plan_price": r["plan_price"] if r.get("plan_price") is not None else 0,
        }
        for r in rows
    ]


async def build_export(
    conn: psycopg.AsyncConnection[Any],
    request: ExportRequest,
) -> list[dict[str, Any]]:
    """Fetch and format the rows of ``request``, newest first.

    Raises NoExportData when the range is empty.
    """
    start, end = request.bounds
    if request.report_type == "check_in_details":
        rows = check_in_detail_rows(
            await repository.fetch_check_in_details(conn, request.gym_id, start, end)
        )
    else:
        rows = members_joined_rows(
            await repository.fetch_members_joined(conn, request.gym_id, start, end)
        )

    if not rows:
        raise NoExportData()
    logger.info(
        "Exported %d %s rows",
        len(rows),
        request.report_type,
        extra={"gymtrack_report_name": request.report_type, "gymtrack_subject_id": request.gym_id},
    )
    return rows


def render_csv(report_type: ExportType, rows: list[dict[str, Any]]) -> str:
    """Header line plus one line per row; fields quoted only where needed."""
    buf = io.StringIO()
    writer = csv.DictWriter(
        buf,
        fieldnames=EXPORT_HEADERS[report_type],
        extrasaction="ignore",
        lineterminator="\n",
    )
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue()
