"""
Fund API Routes
Search, latest data and TWR calculation
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from fund_twr.api.dependencies import get_fund_store, get_twr_engine
from fund_twr.api.schemas import (
    CalculateTWRRequest,
    FundRecordResponse,
    FundSnapshotModel,
    LatestFundDataRequest,
    TrailingTWRRequest,
)
from fund_twr.domain.errors import FundDataError, InvalidRequest, NotFound, UpstreamFailure
from fund_twr.domain.models import FUND_TYPES
from fund_twr.domain.periods import date_to_period
from fund_twr.domain.services.twr_engine import TWREngine
from fund_twr.services.fund_data_service import FundDataService

logger = logging.getLogger(__name__)
router = APIRouter()


def raise_http(exc: FundDataError):
    """Map domain errors onto HTTP status codes"""
    if isinstance(exc, InvalidRequest):
        raise HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFound):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, UpstreamFailure):
        raise HTTPException(status_code=502, detail="Fund data unavailable")
    raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/fund-types", response_model=List[str])
async def fund_types():
    """Known fund classifications, in display order"""
    return list(FUND_TYPES)


@router.get("/search", response_model=FundRecordResponse)
async def search(
    fund_classification: Optional[str] = Query(None, alias="fundClassification"),
    classification: Optional[str] = Query(None),
    fund_id: Optional[str] = Query(None, alias="fundId"),
    store=Depends(get_fund_store),
):
    """Latest record for a (classification, fund id) pair"""
    try:
        record = await FundDataService(store).find_latest(fund_classification or classification, fund_id)
    except FundDataError as exc:
        raise_http(exc)
    return FundRecordResponse.from_domain(record)


@router.get("/search-programs", response_model=List[FundRecordResponse])
async def search_programs(
    query: Optional[str] = Query(None),
    fund_type: Optional[str] = Query(None, alias="fundType"),
    store=Depends(get_fund_store),
):
    """Up to 15 records matching name or id within a classification, newest first"""
    logger.info(f"Received search request: query={query!r} fund_type={fund_type!r}")
    try:
        records = await FundDataService(store).search_programs(query, fund_type)
    except FundDataError as exc:
        raise_http(exc)
    return [FundRecordResponse.from_domain(r) for r in records]


@router.post("/calculate-twr", response_model=List[FundSnapshotModel])
async def calculate_twr(
    request: CalculateTWRRequest,
    engine: TWREngine = Depends(get_twr_engine),
):
    """TWR snapshots for the requested funds over [startDate, endDate]"""
    try:
        if not request.fund_ids:
            raise InvalidRequest("Invalid fund IDs")
        if not request.start_date or not request.end_date:
            raise InvalidRequest("Invalid date range")

        snapshots = await engine.compute_twr(
            [str(fund_id) for fund_id in request.fund_ids],
            date_to_period(request.start_date),
            date_to_period(request.end_date),
            include_missing=request.include_missing,
        )
    except FundDataError as exc:
        if isinstance(exc, UpstreamFailure):
            logger.error(f"Error fetching data for TWR calculation: {exc}")
        raise_http(exc)

    return [FundSnapshotModel.from_domain(s) for s in snapshots]


@router.post("/get-latest-fund-data", response_model=List[FundRecordResponse])
async def get_latest_fund_data(
    request: LatestFundDataRequest,
    store=Depends(get_fund_store),
):
    """Most recent record per fund id across all groups"""
    try:
        records = await FundDataService(store).latest_fund_data(
            [str(fund_id) for fund_id in request.fund_ids or []]
        )
    except FundDataError as exc:
        if isinstance(exc, UpstreamFailure):
            logger.error(f"Error fetching latest fund data: {exc}")
        raise_http(exc)

    return [FundRecordResponse.from_domain(r) for r in records]


@router.post("/calculate-trailing-twr", response_model=List[FundSnapshotModel])
async def calculate_trailing_twr(
    request: TrailingTWRRequest,
    engine: TWREngine = Depends(get_twr_engine),
):
    """TWR over the `months` periods ending at each fund's latest report"""
    try:
        snapshots = await engine.compute_trailing_twr(
            [str(fund_id) for fund_id in request.fund_ids or []],
            months=request.months,
        )
    except FundDataError as exc:
        if isinstance(exc, UpstreamFailure):
            logger.error(f"Error fetching data for trailing TWR: {exc}")
        raise_http(exc)

    return [FundSnapshotModel.from_domain(s) for s in snapshots]
