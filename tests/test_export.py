"""Tests for the CSV data reports."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from gymtrack_reporting import repository
from gymtrack_reporting.export import (
    ExportRequest,
    NoExportData,
    build_export,
    check_in_detail_rows,
    members_joined_rows,
    render_csv,
)

UTC = timezone.utc


def _request(report_type="check_in_details", date_from=date(2026, 2, 1), date_to=date(2026, 2, 7)):
    return ExportRequest(report_type=report_type, gym_id="gym-1", date_from=date_from, date_to=date_to)


class TestExportRequest:
    def test_bounds_cover_whole_utc_days(self):
        start, end = _request().bounds
        assert start == datetime(2026, 2, 1, tzinfo=UTC)
        assert end == datetime(2026, 2, 7, 23, 59, 59, 999999, tzinfo=UTC)

    def test_single_day(self):
        start, end = _request(date_to=date(2026, 2, 1)).bounds
        assert start.date() == end.date() == date(2026, 2, 1)

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError, match="Start date cannot be after end date."):
            _request(date_from=date(2026, 2, 8))

    def test_unknown_report_type_rejected(self):
        with pytest.raises(ValidationError):
            _request(report_type="revenue")

    @pytest.mark.parametrize("gym_id", [None, "", "   "])
    def test_gym_id_required(self, gym_id):
        with pytest.raises(ValidationError, match="gym id must not be empty"):
            ExportRequest(
                report_type="members_joined",
                gym_id=gym_id,
                date_from=date(2026, 2, 1),
                date_to=date(2026, 2, 1),
            )


class TestRowFormatting:
    def test_check_in_details(self):
        rows = check_in_detail_rows([
            {
                "member_name": "Ada",
                "member_code": "GYM-1",
                "check_in_time": datetime(2026, 2, 7, 18, 5, 9, tzinfo=UTC),
                "check_out_time": None,
            },
        ])
        assert rows == [{
            "member_name": "Ada",
            "member_id": "GYM-1",
            "check_in_time": "2026-02-07 18:05:09",
            "check_out_time": "N/A",
        }]

    def test_check_in_for_deleted_member(self):
        rows = check_in_detail_rows([
            {"member_name": None, "member_code": None, "check_in_time": "2026-02-07T18:00:00Z",
             "check_out_time": "2026-02-07T20:00:00Z"},
        ])
        assert rows[0]["member_name"] == rows[0]["member_id"] == "N/A"
        assert rows[0]["check_out_time"] == "2026-02-07 20:00:00"

    def test_members_joined(self):
        rows = members_joined_rows([
            {"member_name": "Ada", "member_code": "GYM-1", "join_date": date(2026, 2, 3),
             "plan_name": "Premium", "plan_price": Decimal("49.99")},
            {"member_name": "Bob", "member_code": "GYM-2", "join_date": None,
             "plan_name": None, "plan_price": None},
        ])
        assert rows[0] == {
            "member_name": "Ada",
            "member_id": "GYM-1",
            "join_date": "2026-02-03",
            "plan_name": "Premium",
            "plan_price": Decimal("49.99"),
        }
        assert (rows[1]["join_date"], rows[1]["plan_name"], rows[1]["plan_price"]) == ("N/A", "N/A", 0)

    def test_unreadable_timestamp_becomes_missing(self):
        rows = check_in_detail_rows([
            {"member_name": "Ada", "member_code": "GYM-1", "check_in_time": "soon", "check_out_time": None},
        ])
        assert rows[0]["check_in_time"] == "N/A"


class TestBuildExport:
    @pytest.mark.asyncio
    async def test_check_in_details_uses_range_bounds(self, monkeypatch):
        seen = []

        async def _fetch(conn, gym_id, start, end):
            seen.append((gym_id, start, end))
            return [{"member_name": "Ada", "member_code": "GYM-1",
                     "check_in_time": datetime(2026, 2, 7, 18, 0, tzinfo=UTC), "check_out_time": None}]

        monkeypatch.setattr(repository, "fetch_check_in_details", _fetch)
        rows = await build_export(None, _request())

        assert rows[0]["check_in_time"] == "2026-02-07 18:00:00"
        assert seen == [(
            "gym-1",
            datetime(2026, 2, 1, tzinfo=UTC),
            datetime(2026, 2, 7, 23, 59, 59, 999999, tzinfo=UTC),
        )]

    @pytest.mark.asyncio
    async def test_members_joined(self, monkeypatch):
        async def _fetch(conn, gym_id, start, end):
            return [{"member_name": "Ada", "member_code": "GYM-1", "join_date": date(2026, 2, 3),
                     "plan_name": "Basic", "plan_price": 20}]

        monkeypatch.setattr(repository, "fetch_members_joined", _fetch)
        rows = await build_export(None, _request("members_joined"))
        assert rows[0]["plan_price"] == 20

    @pytest.mark.asyncio
    async def test_empty_range_raises(self, monkeypatch):
        async def _fetch(conn, gym_id, start, end):
            return []

        monkeypatch.setattr(repository, "fetch_check_in_details", _fetch)
        with pytest.raises(NoExportData, match="No data found for the selected criteria."):
            await build_export(None, _request())


class TestRenderCsv:
    def test_header_and_rows(self):
        text = render_csv("check_in_details", [
            {"member_name": "Ada", "member_id": "GYM-1",
             "check_in_time": "2026-02-07 18:00:00", "check_out_time": "N/A"},
        ])
        assert text == (
            "member_name,member_id,check_in_time,check_out_time\n"
            "Ada,GYM-1,2026-02-07 18:00:00,N/A\n"
        )

    def test_fields_with_commas_and_quotes_are_quoted(self):
        text = render_csv("members_joined", [
            {"member_name": 'Lovelace, Ada "Countess"', "member_id": "GYM-1",
             "join_date": "2026-02-03", "plan_name": "Premium", "plan_price": Decimal("49.99")},
        ])
        assert text.splitlines()[1] == '"Lovelace, Ada ""Countess""",GYM-1,2026-02-03,Premium,49.99'
