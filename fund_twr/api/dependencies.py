"""
FastAPI dependencies
Services are built per request around the store created at startup.
"""

from fastapi import HTTPException, Request

from fund_twr.domain.services.portfolio_aggregator import PortfolioAggregator
from fund_twr.domain.services.twr_engine import TWREngine
from fund_twr.infrastructure.db.repositories.fund_repository import FundRepository


def get_fund_store(request: Request) -> FundRepository:
    store = getattr(request.app.state, "fund_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Fund store not initialized")
    return store


def get_twr_engine(request: Request) -> TWREngine:
    return TWREngine(get_fund_store(request))


def get_portfolio_aggregator() -> PortfolioAggregator:
    return PortfolioAggregator()
