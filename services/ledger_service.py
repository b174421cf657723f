"""Per-user forecasts over the finance ledger stored in MySQL.

The service reads the ``transactions`` table and records an entry in
``activity_logs`` for every forecast viewed. Connection settings come from
environment variables:

* ``FINANCE_DB_HOST`` (defaults to ``"localhost"``)
* ``FINANCE_DB_PORT`` (defaults to ``3306``)
* ``FINANCE_DB_NAME`` (defaults to ``"finance"``)
* ``FINANCE_DB_USER`` (defaults to ``"finance"``)
* ``FINANCE_DB_PASSWORD`` (defaults to empty)
* ``FINANCE_FORECAST_LOOKBACK_DAYS`` (defaults to ``180``), the window used
  when no start date is given.

All statements are parameterized with ``%(name)s`` placeholders.
"""
from __future__ import annotations

import json
import os
from datetime import date, timedelta
from typing import Any

import mysql.connector
from fastmcp import FastMCP

from forecast_utils import DEFAULT_HORIZON_DAYS, MAX_HORIZON_DAYS, ForecastError
from mcp_framework import log_failure
from services.forecast_service import HorizonDays, forecast_report

DB_HOST = os.getenv("FINANCE_DB_HOST", "localhost")
DB_PORT = int(os.getenv("FINANCE_DB_PORT", "3306"))
DB_NAME = os.getenv("FINANCE_DB_NAME", "finance")
DB_USER = os.getenv("FINANCE_DB_USER", "finance")
DB_PASSWORD = os.getenv("FINANCE_DB_PASSWORD", "")
LOOKBACK_DAYS = int(os.getenv("FINANCE_FORECAST_LOOKBACK_DAYS", "180"))

SELECT_TRANSACTIONS = """
    SELECT transaction_id, amount, transaction_type, transaction_date, currency
    FROM transactions
    WHERE user_id = %(user_id)s
      AND transaction_date BETWEEN %(start_date)s AND %(end_date)s
    ORDER BY transaction_date ASC
"""

INSERT_ACTIVITY = """
    INSERT INTO activity_logs (user_id, action, entity_type, entity_name, details)
    VALUES (%(user_id)s, %(action)s, %(entity_type)s, %(entity_name)s, %(details)s)
"""


def _get_connection():
    """Open a connection with explicit transaction control."""

    conn = mysql.connector.connect(
        host=DB_HOST,
        port=DB_PORT,
        user=DB_USER,
        password=DB_PASSWORD,
        database=DB_NAME,
        autocommit=False,
    )
    conn.autocommit = False
    return conn


def resolve_window(
    start_date: date | None, end_date: date | None, *, today: date | None = None
) -> tuple[date, date]:
    """Default to the last ``LOOKBACK_DAYS`` days ending today."""

    end = end_date or today or date.today()
    start = start_date or end - timedelta(days=LOOKBACK_DAYS)
    if start > end:
        raise ValueError(f"start_date {start} is after end_date {end}")
    return start, end


def fetch_transactions(user_id: int, start_date: date, end_date: date) -> list[dict[str, Any]]:
    params = {"user_id": user_id, "start_date": start_date, "end_date": end_date}
    with _get_connection() as conn:
        with conn.cursor(dictionary=True) as cursor:
            cursor.execute(SELECT_TRANSACTIONS, params)
            return cursor.fetchall()


def record_activity(
    user_id: int,
    action: str,
    entity_type: str,
    entity_name: str | None = None,
    details: dict[str, Any] | None = None,
) -> bool:
    """Insert an ``activity_logs`` row; failures are logged, not raised."""

    params = {
        "user_id": user_id,
        "action": action,
        "entity_type": entity_type,
        "entity_name": entity_name,
        "details": json.dumps(details, default=str) if details else None,
    }
    try:
        with _get_connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(INSERT_ACTIVITY, params)
            conn.commit()
    except mysql.connector.Error as exc:
        log_failure("record_activity", {"user_id": user_id, "action": action}, exc)
        return False
    return True


def forecast_for_user(
    user_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> dict[str, Any]:
    """Read a user's transactions in the window and build their forecast report."""

    start, end = resolve_window(start_date, end_date)
    input_payload = {"user_id": user_id, "start_date": start, "end_date": end}

    if not 0 <= horizon_days <= MAX_HORIZON_DAYS:
        exc = ForecastError(
            f"horizon_days must be between 0 and {MAX_HORIZON_DAYS}, got {horizon_days}"
        )
        log_failure("forecast_for_user", {**input_payload, "horizon_days": horizon_days}, exc)
        raise exc

    try:
        transactions = fetch_transactions(user_id, start, end)
    except mysql.connector.Error as exc:
        log_failure("forecast_for_user", input_payload, exc)
        raise

    report = forecast_report(transactions, horizon_days, action="forecast_for_user")
    record_activity(
        user_id,
        "VIEW_FORECAST",
        "REPORT",
        details={
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "transaction_count": len(transactions),
        },
    )
    return report


def register_ledger_service(mcp: FastMCP) -> None:
    """Register ledger-backed forecast tools."""

    @mcp.tool()
    def ledger_forecast(
        user_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
        horizon_days: HorizonDays = DEFAULT_HORIZON_DAYS,
    ) -> dict[str, Any]:
        """
        Income and expense statistics, daily totals and forecasts for one user.

        Without dates the last 180 days (configurable) ending today are used.
        """
        return forecast_for_user(user_id, start_date, end_date, horizon_days)
