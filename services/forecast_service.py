"""Income/expense statistics and forecast tools for MCP."""
from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Iterable, Literal

from fastmcp import FastMCP
from pydantic import BaseModel, Field

from forecast_utils import (
    DEFAULT_HORIZON_DAYS,
    MAX_HORIZON_DAYS,
    build_forecast_report,
    descriptive_stats,
)
from mcp_framework import log_failure, log_interaction

HorizonDays = Annotated[int, Field(ge=0, le=MAX_HORIZON_DAYS)]


class TransactionRecord(BaseModel):
    transaction_date: date
    amount: float
    transaction_type: Literal["income", "expense"]


def summarize_amounts(amounts: list[float]) -> dict[str, float | int]:
    result = descriptive_stats(amounts).to_dict()
    log_interaction("forecast_statistics", {"count": len(amounts)}, result)
    return result


def forecast_report(
    transactions: Iterable[TransactionRecord | dict[str, Any]],
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    *,
    action: str = "forecast_transactions",
) -> dict[str, Any]:
    """Build the statistics/chart/forecast report and log a summary of it."""

    records = [
        record.model_dump() if isinstance(record, BaseModel) else record
        for record in transactions
    ]
    input_payload = {"transaction_count": len(records), "horizon_days": horizon_days}

    try:
        report = build_forecast_report(records, horizon_days)
    except ValueError as exc:
        log_failure(action, input_payload, exc)
        raise

    log_interaction(
        action,
        input_payload,
        {
            "income_days": len(report["chart"]["income"]),
            "expense_days": len(report["chart"]["expenses"]),
            "income_forecast_points": len(report["chart"]["forecast"]["income"]),
            "expense_forecast_points": len(report["chart"]["forecast"]["expenses"]),
        },
    )
    return report


def register_forecast_service(mcp: FastMCP) -> None:
    """Register statistics and forecast tools over caller-supplied transactions."""

    @mcp.tool()
    def forecast_statistics(amounts: list[float]) -> dict[str, float | int]:
        """Average, median, mode, total and count of the amounts (all 0 when empty)."""
        return summarize_amounts(amounts)

    @mcp.tool()
    def forecast_transactions(
        transactions: list[TransactionRecord],
        horizon_days: HorizonDays = DEFAULT_HORIZON_DAYS,
    ) -> dict[str, Any]:
        """
        Split transactions into income and expenses, total them per day and
        project each series ``horizon_days`` days ahead with a linear trend.

        At least five distinct days are needed for a forecast; otherwise the
        forecast list is empty.
        """
        return forecast_report(transactions, horizon_days)
