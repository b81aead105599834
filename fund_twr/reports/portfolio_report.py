"""
Portfolio report

Formats TWR snapshots and the weighted aggregate into a table.
Unavailable values render as N/A. Read-only, no I/O.
"""

import csv
import io
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from fund_twr.domain.models import PortfolioAggregate, PortfolioLine
from fund_twr.domain.numbers import parse_optional_number, round_percentage
from fund_twr.domain.periods import format_period
from fund_twr.domain.services.portfolio_aggregator import (
    EXPOSURE_FIELDS,
    exposure_percentage,
    parse_allocation,
)

NOT_AVAILABLE = "N/A"

COLUMNS = (
    ("fund", "Fund"),
    ("classification", "Classification"),
    ("allocation", "Amount"),
    ("twr", "TWR"),
    ("year_to_date_yield", "YTD Yield"),
    ("trailing_3yr_yield", "3Y Avg Yield"),
    ("trailing_5yr_yield", "5Y Avg Yield"),
    ("equity_exposure", "Equity Exposure"),
    ("foreign_currency_exposure", "FX Exposure"),
    ("foreign_exposure", "Foreign Exposure"),
    ("period", "Period"),
)


def format_percentage(value) -> str:
    number = parse_optional_number(value)
    if number is None:
        return NOT_AVAILABLE
    return f"{round_percentage(number)}%"


def format_amount(value: Decimal) -> str:
    return f"{value:,.2f}"


def _period_label(earliest: Optional[str], end: str) -> str:
    if not earliest or earliest == end:
        return format_period(end)
    return f"{format_period(earliest)}-{format_period(end)}"


def _report_rows(lines: Sequence[PortfolioLine]) -> List[Dict[str, str]]:
    rows: List[Dict[str, str]] = []
    for line in lines:
        snapshot = line.snapshot
        row = {
            "fund": snapshot.fund_id_name or snapshot.fund_id,
            "classification": snapshot.classification or NOT_AVAILABLE,
            "allocation": format_amount(parse_allocation(line.allocation)),
            "twr": format_percentage(snapshot.twr),
            "year_to_date_yield": format_percentage(snapshot.year_to_date_yield),
            "trailing_3yr_yield": format_percentage(snapshot.trailing_3yr_yield),
            "trailing_5yr_yield": format_percentage(snapshot.trailing_5yr_yield),
            "period": _period_label(snapshot.earliest_period, snapshot.report_period),
        }
        for name in EXPOSURE_FIELDS:
            row[name] = format_percentage(
                exposure_percentage(getattr(snapshot, name), snapshot.total_assets)
            )
        rows.append(row)
    return rows


def _totals_row(aggregate: PortfolioAggregate) -> Dict[str, str]:
    totals = {
        "fund": "Total",
        "classification": "",
        "allocation": format_amount(aggregate.total_allocation),
        "period": "",
    }
    for name, value in aggregate.weighted.items():
        totals[name] = format_percentage(value)
    return totals


def build_portfolio_report(
    lines: Sequence[PortfolioLine],
    aggregate: PortfolioAggregate,
    title: str = "Portfolio TWR Report",
    comparison: Optional[Tuple[Sequence[PortfolioLine], PortfolioAggregate]] = None,
    comparison_title: str = "Comparison Portfolio",
) -> Dict:
    """
    Build a display-ready report

    Args:
        lines: Main portfolio holdings with their snapshots
        aggregate: Weighted totals of the main portfolio
        title: Report title
        comparison: Optional (lines, aggregate) of a second portfolio,
            rendered below the main one with its own totals
        comparison_title: Heading of the comparison section

    Returns:
        dict with title, columns, rows and totals (all cells strings),
        plus a "comparison" section when one was given
    """
    report = {
        "title": title,
        "columns": [{"key": key, "label": label} for key, label in COLUMNS],
        "rows": _report_rows(lines),
        "totals": _totals_row(aggregate),
    }
    if comparison is not None:
        comparison_lines, comparison_aggregate = comparison
        report["comparison"] = {
            "title": comparison_title,
            "rows": _report_rows(comparison_lines),
            "totals": _totals_row(comparison_aggregate),
        }
    return report


def render_csv(report: Dict) -> str:
    """CSV text of a report built by build_portfolio_report"""
    keys = [column["key"] for column in report["columns"]]
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([column["label"] for column in report["columns"]])
    for row in report["rows"]:
        writer.writerow([row.get(key, "") for key in keys])
    writer.writerow([report["totals"].get(key, "") for key in keys])

    comparison = report.get("comparison")
    if comparison:
        writer.writerow([])
        writer.writerow([comparison["title"]])
        for row in comparison["rows"]:
            writer.writerow([row.get(key, "") for key in keys])
        writer.writerow([comparison["totals"].get(key, "") for key in keys])
    return buffer.getvalue()
