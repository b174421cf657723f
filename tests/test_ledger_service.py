"""
Tests for ledger-backed forecasts with a mocked MySQL connection.
"""
import json
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import mysql.connector
import pytest

from forecast_utils import ForecastError
from services import ledger_service
from services.ledger_service import (
    INSERT_ACTIVITY,
    SELECT_TRANSACTIONS,
    forecast_for_user,
    record_activity,
    resolve_window,
)


def _connection(rows=None):
    """Build a connection double whose cursor returns ``rows``."""
    cursor = MagicMock()
    cursor.fetchall.return_value = rows or []
    cursor.__enter__.return_value = cursor

    conn = MagicMock()
    conn.__enter__.return_value = conn
    conn.cursor.return_value = cursor
    return conn, cursor


@pytest.fixture
def ledger_rows():
    start = date(2024, 3, 1)
    rows = [
        {
            "transaction_id": offset + 1,
            "amount": Decimal("250.00"),
            "transaction_type": "income",
            "transaction_date": start + timedelta(days=offset),
            "currency": "RON",
        }
        for offset in range(5)
    ]
    rows.append(
        {
            "transaction_id": 99,
            "amount": Decimal("80.50"),
            "transaction_type": "expense",
            "transaction_date": date(2024, 3, 3),
            "currency": "RON",
        }
    )
    return rows


class TestResolveWindow:
    def test_defaults_to_lookback(self):
        start, end = resolve_window(None, None, today=date(2024, 7, 1))
        assert end == date(2024, 7, 1)
        assert start == date(2024, 7, 1) - timedelta(days=ledger_service.LOOKBACK_DAYS)

    def test_explicit_dates(self):
        assert resolve_window(date(2024, 1, 1), date(2024, 2, 1)) == (date(2024, 1, 1), date(2024, 2, 1))

    def test_start_after_end(self):
        with pytest.raises(ValueError):
            resolve_window(date(2024, 2, 2), date(2024, 2, 1))


class TestForecastForUser:
    def test_reads_transactions_and_records_activity(self, ledger_rows):
        read_conn, read_cursor = _connection(ledger_rows)
        write_conn, write_cursor = _connection()

        with patch.object(ledger_service, "_get_connection", side_effect=[read_conn, write_conn]):
            report = forecast_for_user(7, date(2024, 3, 1), date(2024, 3, 31), horizon_days=2)

        read_cursor.execute.assert_called_once_with(
            SELECT_TRANSACTIONS,
            {"user_id": 7, "start_date": date(2024, 3, 1), "end_date": date(2024, 3, 31)},
        )
        assert report["statistics"]["income"]["total"] == 1250.0
        assert report["statistics"]["expenses"]["total"] == 80.5
        assert report["chart"]["forecast"]["income"] == [
            {"day": "2024-03-06", "projected_amount": 250.0},
            {"day": "2024-03-07", "projected_amount": 250.0},
        ]

        sql, params = write_cursor.execute.call_args.args
        assert sql == INSERT_ACTIVITY
        assert params["user_id"] == 7
        assert params["action"] == "VIEW_FORECAST"
        assert params["entity_type"] == "REPORT"
        assert json.loads(params["details"]) == {
            "start_date": "2024-03-01",
            "end_date": "2024-03-31",
            "transaction_count": 6,
        }
        write_conn.commit.assert_called_once()

    def test_activity_failure_does_not_fail_forecast(self, ledger_rows, interactions):
        read_conn, _ = _connection(ledger_rows)
        failure = mysql.connector.Error("activity_logs unavailable")

        with patch.object(ledger_service, "_get_connection", side_effect=[read_conn, failure]):
            report = forecast_for_user(7, date(2024, 3, 1), date(2024, 3, 31))

        assert report["statistics"]["income"]["count"] == 5
        actions = [record["action"] for record in interactions()]
        assert "record_activity_error" in actions

    def test_read_failure_is_logged_and_raised(self, interactions):
        with patch.object(
            ledger_service, "_get_connection", side_effect=mysql.connector.Error("connection refused")
        ):
            with pytest.raises(mysql.connector.Error):
                forecast_for_user(7, date(2024, 3, 1), date(2024, 3, 31))

        record = interactions()[-1]
        assert record["action"] == "forecast_for_user_error"
        assert record["input"]["start_date"] == "2024-03-01"


class TestHorizonBounds:
    @pytest.mark.parametrize("horizon_days", [-1, 366])
    def test_out_of_range_is_rejected_before_reading(self, horizon_days, interactions):
        with patch.object(ledger_service, "fetch_transactions") as fetch:
            with pytest.raises(ForecastError):
                forecast_for_user(7, date(2024, 3, 1), date(2024, 3, 31), horizon_days=horizon_days)

        fetch.assert_not_called()
        record = interactions()[-1]
        assert record["action"] == "forecast_for_user_error"
        assert record["input"]["horizon_days"] == horizon_days
        assert record["output"]["type"] == "ForecastError"


class TestRecordActivity:
    def test_details_optional(self):
        conn, cursor = _connection()
        with patch.object(ledger_service, "_get_connection", return_value=conn):
            assert record_activity(1, "VIEW_FORECAST", "REPORT") is True

        _, params = cursor.execute.call_args.args
        assert params["details"] is None
        assert params["entity_name"] is None
