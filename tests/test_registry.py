"""Tests for report registration, lookup and dispatch."""

from datetime import datetime, timezone

import pytest

import gymtrack_reporting.reports  # noqa: F401
from gymtrack_reporting.config import Config
from gymtrack_reporting.metrics import get_metrics, reset_metrics
from gymtrack_reporting.registry import (
    _report_metadata,
    _reports,
    get_report,
    get_report_metadata,
    registered_reports,
    report,
    run_report,
)

NOW = datetime(2026, 2, 8, 15, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _clean_registry():
    """Remove test-registered reports/metadata after each test."""
    snapshot_reports = dict(_reports)
    snapshot_meta = dict(_report_metadata)
    reset_metrics()
    yield
    _reports.clear()
    _reports.update(snapshot_reports)
    _report_metadata.clear()
    _report_metadata.update(snapshot_meta)
    reset_metrics()


class TestRegistration:
    def test_builtin_reports_registered(self):
        assert set(registered_reports()) >= {
            "checkin_trends",
            "occupancy",
            "new_members_yearly",
            "membership_distribution",
            "member_checkin_history",
            "member_checkin_frequency",
            "attendance_summary",
            "personal_records",
            "workout_overview",
            "membership_status",
            "session_status",
        }

    def test_stores_metadata(self):
        @report("test_report", scope="gym", description="A test report")
        async def _handler(conn, subject_id, now, config):
            return {}

        meta = get_report_metadata()["test_report"]
        assert meta == {"scope": "gym", "description": "A test report", "handler": "_handler"}

    def test_scopes_of_builtin_reports(self):
        meta = get_report_metadata()
        assert meta["occupancy"]["scope"] == "gym"
        assert meta["personal_records"]["scope"] == "member"

    def test_duplicate_name_raises(self):
        @report("dup_test", scope="gym")
        async def _handler1(conn, subject_id, now, config):
            return {}

        with pytest.raises(ValueError, match="Duplicate report name='dup_test'"):
            @report("dup_test", scope="member")
            async def _handler2(conn, subject_id, now, config):
                return {}

    def test_unknown_scope_raises(self):
        with pytest.raises(ValueError, match="Unknown report scope"):
            @report("bad_scope", scope="planet")
            async def _handler(conn, subject_id, now, config):
                return {}

    def test_metadata_is_a_copy(self):
        get_report_metadata()["occupancy"]["scope"] = "member"
        assert get_report_metadata()["occupancy"]["scope"] == "gym"


class TestGetReport:
    def test_known(self):
        @report("lookup_test", scope="member")
        async def _handler(conn, subject_id, now, config):
            return {}

        assert get_report("lookup_test") is _handler

    def test_unknown(self):
        with pytest.raises(KeyError, match="Unknown report: 'nope'"):
            get_report("nope")


class TestRunReport:
    @pytest.mark.asyncio
    async def test_dispatch_records_success(self):
        @report("echo_test", scope="gym")
        async def _handler(conn, subject_id, now, config):
            return {"subject": subject_id, "as_of": now.isoformat()}

        result = await run_report("echo_test", None, "gym-1", NOW, Config())
        assert result == {"subject": "gym-1", "as_of": NOW.isoformat()}

        stats = get_metrics()["reports"]["echo_test"]
        assert stats["successes"] == 1
        assert stats["failures"] == 0

    @pytest.mark.asyncio
    async def test_failure_propagates_and_is_counted(self):
        @report("failing_test", scope="gym")
        async def _handler(conn, subject_id, now, config):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await run_report("failing_test", None, "gym-1", NOW, Config())

        metrics = get_metrics()
        assert metrics["reports_failed"] == 1
        assert metrics["reports"]["failing_test"]["failures"] == 1

    @pytest.mark.asyncio
    async def test_unknown_report(self):
        with pytest.raises(KeyError):
            await run_report("missing", None, "gym-1", NOW, Config())
