"""CLI interface for GymTrack reports."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import click
import psycopg
from pydantic import ValidationError

from .config import Config
from .export import EXPORT_HEADERS, ExportRequest, NoExportData, build_export, render_csv
from .logging import setup_logging
from .metrics import get_metrics
from .registry import get_report_metadata, run_report
from .summary import load_export, summarize_export
from .timebuckets import InvalidTimestamp, parse_timestamp

# Import reports to register them
from . import reports  # noqa: F401

logger = logging.getLogger(__name__)


def _resolve_now(value: str | None) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    try:
        return parse_timestamp(value)
    except InvalidTimestamp as exc:
        raise click.BadParameter(str(exc), param_hint="--now") from exc


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


@click.group()
@click.option("--log-format", type=click.Choice(["json", "text"]), help="Override GYMTRACK_LOG_FORMAT.")
@click.pass_context
def main(ctx: click.Context, log_format: str | None):
    """GymTrack check-in, workout and membership reports."""
    config = Config.from_env()
    try:
        setup_logging(log_format or config.log_format, config.log_level)
    except ValueError as exc:
        raise click.UsageError(f"GYMTRACK_LOG_LEVEL: {exc}") from exc
    ctx.obj = config


@main.command("list")
def list_reports():
    """List registered reports."""
    for name, meta in sorted(get_report_metadata().items()):
        click.echo(f"{name} [{meta['scope']}]")
        if meta["description"]:
            click.echo(f"  {meta['description']}")


async def _run(config: Config, name: str, subject: str | None, now: datetime) -> dict[str, Any]:
    async with await psycopg.AsyncConnection.connect(
        config.require_database_url(), autocommit=True
    ) as conn:
        return await run_report(name, conn, subject, now, config)


@main.command()
@click.argument("report_name")
@click.option("--subject", "subject", type=str, help="Gym id or member id, depending on report scope.")
@click.option("--now", "now_value", type=str, help="Reference instant (ISO 8601). Defaults to current UTC time.")
@click.option("--stats", is_flag=True, help="Print report timing metrics to stderr afterwards.")
@click.pass_obj
def run(config: Config, report_name: str, subject: str | None, now_value: str | None, stats: bool):
    """Run REPORT_NAME against the database at DATABASE_URL."""
    if report_name not in get_report_metadata():
        click.echo(f"Error: Unknown report {report_name!r}. See 'gymtrack-reports list'.", err=True)
        sys.exit(1)

    now = _resolve_now(now_value)
    try:
        result = asyncio.run(_run(config, report_name, subject, now))
    except RuntimeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except psycopg.Error as exc:
        logger.error("Report %s failed: %s", report_name, exc)
        click.echo(f"Database error: {exc}", err=True)
        sys.exit(1)

    _echo_json(result)
    if stats:
        click.echo(json.dumps(get_metrics(), indent=2), err=True)


@main.command()
@click.argument("export_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--now", "now_value", type=str, help="Reference instant (ISO 8601). Defaults to current UTC time.")
@click.pass_obj
def summarize(config: Config, export_file: Path, now_value: str | None):
    """Summarize a JSON export of GymTrack tables without a database."""
    now = _resolve_now(now_value)
    try:
        export = load_export(export_file)
        result = summarize_export(export, now, config)
    except (json.JSONDecodeError, ValueError) as exc:
        click.echo(f"Error: invalid export file: {exc}", err=True)
        sys.exit(1)

    _echo_json(result)


async def _export(config: Config, request: ExportRequest) -> list[dict[str, Any]]:
    async with await psycopg.AsyncConnection.connect(
        config.require_database_url(), autocommit=True
    ) as conn:
        return await build_export(conn, request)


_DAY = click.DateTime(formats=["%Y-%m-%d"])


@main.command("export")
@click.argument("report_type", type=click.Choice(sorted(EXPORT_HEADERS)))
@click.option("--subject", "subject", required=True, help="Gym id.")
@click.option("--from", "date_from", required=True, type=_DAY, help="First day (UTC).")
@click.option("--to", "date_to", required=True, type=_DAY, help="Last day (UTC), included.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Write the CSV here instead of stdout.",
)
@click.pass_obj
def export_csv(
    config: Config,
    report_type: str,
    subject: str,
    date_from: datetime,
    date_to: datetime,
    output: Path | None,
):
    """Export REPORT_TYPE rows between two dates as CSV."""
    try:
        request = ExportRequest(
            report_type=report_type,
            gym_id=subject,
            date_from=date_from.date(),
            date_to=date_to.date(),
        )
    except ValidationError as exc:
        raise click.BadParameter(exc.errors()[0]["msg"], param_hint="--from/--to/--subject") from exc

    try:
        rows = asyncio.run(_export(config, request))
    except (NoExportData, RuntimeError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except psycopg.Error as exc:
        logger.error("Export %s failed: %s", report_type, exc)
        click.echo(f"Database error: {exc}", err=True)
        sys.exit(1)

    text = render_csv(request.report_type, rows)
    if output is None:
        click.echo(text, nl=False)
    else:
        output.write_text(text, encoding="utf-8")
        click.echo(f"Wrote {len(rows)} rows to {output}", err=True)
