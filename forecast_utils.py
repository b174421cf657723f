# forecast_utils.py
"""Descriptive statistics and short-horizon linear forecasts over daily totals."""
from __future__ import annotations

import statistics
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping, Sequence

MIN_FORECAST_POINTS = 5
REGRESSION_WINDOW = 30
DEFAULT_HORIZON_DAYS = 30
MAX_HORIZON_DAYS = 365

INCOME = "income"
EXPENSE = "expense"


class ForecastError(ValueError):
    """Raised when forecast inputs break a caller precondition."""


@dataclass(frozen=True)
class DailyTotal:
    day: str
    amount: float


@dataclass(frozen=True)
class ForecastPoint:
    day: str
    projected_amount: float


@dataclass(frozen=True)
class Statistics:
    average: float
    median: float
    mode: float
    total: float
    count: int

    def to_dict(self) -> dict[str, float | int]:
        return asdict(self)


def to_day(value: date | datetime | str) -> str:
    """Normalize a date, datetime or ISO string to its ``YYYY-MM-DD`` day key."""

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(str(value).strip()[:10]).isoformat()
    except ValueError as exc:
        raise ForecastError(f"Unrecognized transaction date: {value!r}") from exc


def aggregate_by_day(transactions: Iterable[tuple[Any, Any]]) -> list[DailyTotal]:
    """
    Sum ``(date, amount)`` samples per calendar day, ascending by day.

    Only observed days are returned; gaps are not filled with zeros.
    """

    totals: dict[str, float] = {}
    for when, amount in transactions:
        day = to_day(when)
        totals[day] = totals.get(day, 0.0) + float(amount)

    return [DailyTotal(day, totals[day]) for day in sorted(totals)]


def descriptive_stats(amounts: Sequence[float]) -> Statistics:
    values = [float(amount) for amount in amounts]
    if not values:
        return Statistics(average=0, median=0, mode=0, total=0, count=0)

    total = sum(values)
    # most_common keeps first-encountered order among equal counts
    mode, _ = Counter(values).most_common(1)[0]

    return Statistics(
        average=total / len(values),
        median=statistics.median(values),
        mode=mode,
        total=total,
        count=len(values),
    )


def linear_forecast(series: Sequence[DailyTotal], horizon_days: int = DEFAULT_HORIZON_DAYS) -> list[ForecastPoint]:
    """
    Project ``horizon_days`` days past the last observed day.

    Ordinary least squares is fitted on ``(index, amount)`` over the last
    ``REGRESSION_WINDOW`` points. Fewer than ``MIN_FORECAST_POINTS`` points
    give no forecast. Projections are floored at zero and stop at
    ``date.max``.
    """

    if horizon_days < 0:
        raise ForecastError(f"horizon_days must not be negative, got {horizon_days}")
    if len(series) < MIN_FORECAST_POINTS:
        return []

    window = series[-REGRESSION_WINDOW:]
    n = len(window)

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for index, point in enumerate(window):
        sum_x += index
        sum_y += point.amount
        sum_xy += index * point.amount
        sum_x2 += index * index

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    last_day = date.fromisoformat(series[-1].day)
    horizon_days = min(horizon_days, (date.max - last_day).days)
    forecast = []
    for offset in range(1, horizon_days + 1):
        projected = intercept + slope * (n + offset - 1)
        forecast.append(
            ForecastPoint(
                day=(last_day + timedelta(days=offset)).isoformat(),
                projected_amount=max(0.0, projected),
            )
        )
    return forecast


def split_by_type(
    transactions: Iterable[Mapping[str, Any]],
) -> tuple[list[tuple[Any, float]], list[tuple[Any, float]]]:
    """Separate income and expense records into ``(date, amount)`` samples.

    Records carry ``transaction_date`` (or ``date``), ``amount`` and
    ``transaction_type``; any other type is ignored.
    """

    income: list[tuple[Any, float]] = []
    expenses: list[tuple[Any, float]] = []
    for record in transactions:
        kind = record.get("transaction_type")
        if kind not in (INCOME, EXPENSE):
            continue
        when = record.get("transaction_date", record.get("date"))
        sample = (when, float(record["amount"]))
        (income if kind == INCOME else expenses).append(sample)
    return income, expenses


def build_forecast_report(
    transactions: Iterable[Mapping[str, Any]],
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> dict[str, Any]:
    """Statistics, daily chart series and forecasts for income and expenses."""

    income, expenses = split_by_type(transactions)
    daily_income = aggregate_by_day(income)
    daily_expenses = aggregate_by_day(expenses)

    return {
        "statistics": {
            "income": descriptive_stats([amount for _, amount in income]).to_dict(),
            "expenses": descriptive_stats([amount for _, amount in expenses]).to_dict(),
        },
        "chart": {
            "income": [asdict(point) for point in daily_income],
            "expenses": [asdict(point) for point in daily_expenses],
            "forecast": {
                "income": [asdict(point) for point in linear_forecast(daily_income, horizon_days)],
                "expenses": [asdict(point) for point in linear_forecast(daily_expenses, horizon_days)],
            },
        },
    }
