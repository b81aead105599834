"""
Portfolio API Routes
Weighted aggregation and report export
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from fund_twr.api.dependencies import get_portfolio_aggregator, get_twr_engine
from fund_twr.api.routes.funds import raise_http
from fund_twr.api.schemas import AggregateRequest, AggregateResponse, PortfolioReportRequest
from fund_twr.domain.errors import FundDataError, InvalidRequest
from fund_twr.domain.models import FundSnapshot, PortfolioLine
from fund_twr.domain.periods import date_to_period
from fund_twr.domain.services.portfolio_aggregator import PortfolioAggregator
from fund_twr.domain.services.twr_engine import TWREngine
from fund_twr.reports.portfolio_report import build_portfolio_report, render_csv

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/aggregate", response_model=AggregateResponse)
async def aggregate(
    request: AggregateRequest,
    aggregator: PortfolioAggregator = Depends(get_portfolio_aggregator),
):
    """Allocation-weighted metrics for snapshots the client already holds"""
    lines = [PortfolioLine(line.snapshot.to_domain(), line.allocation) for line in request.lines]
    try:
        result = aggregator.aggregate(lines)
    except FundDataError as exc:
        raise_http(exc)
    return AggregateResponse.from_domain(result)


@router.post("/report")
async def portfolio_report(
    request: PortfolioReportRequest,
    output: str = Query("json", alias="format", pattern="^(json|csv)$"),
    engine: TWREngine = Depends(get_twr_engine),
    aggregator: PortfolioAggregator = Depends(get_portfolio_aggregator),
):
    """
    Compute TWR for the holdings and export the weighted report.
    Unknown funds stay in the report with N/A cells.
    """
    try:
        if not request.holdings:
            raise InvalidRequest("Invalid fund IDs")
        if not request.start_date or not request.end_date:
            raise InvalidRequest("Invalid date range")

        end_period = date_to_period(request.end_date)
        comparison_holdings = request.comparison_holdings or []
        fund_ids = [str(h.fund_id) for h in list(request.holdings) + list(comparison_holdings)]
        snapshots = await engine.compute_twr(
            fund_ids,
            date_to_period(request.start_date),
            end_period,
            include_missing=True,
        )
        by_id = {s.fund_id: s for s in snapshots}

        def to_lines(holdings):
            return [
                PortfolioLine(
                    by_id.get(str(h.fund_id)) or FundSnapshot(fund_id=str(h.fund_id), report_period=end_period),
                    h.allocation,
                )
                for h in holdings
            ]

        lines = to_lines(request.holdings)
        comparison = None
        if comparison_holdings:
            comparison_lines = to_lines(comparison_holdings)
            comparison = (comparison_lines, aggregator.aggregate(comparison_lines))

        report = build_portfolio_report(
            lines,
            aggregator.aggregate(lines),
            title=request.title,
            comparison=comparison,
            comparison_title=request.comparison_title,
        )
    except FundDataError as exc:
        raise_http(exc)

    if output == "csv":
        return Response(
            content=render_csv(report),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": 'attachment; filename="portfolio_report.csv"'},
        )
    return report
