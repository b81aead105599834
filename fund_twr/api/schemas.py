"""
API request / response models
"""

from decimal import Decimal
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from fund_twr.domain.models import FundRecord, FundSnapshot, PortfolioAggregate


def _float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _decimal(value: Optional[float]) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


# ---------------------------------------------------------------
# Requests
# ---------------------------------------------------------------

class CalculateTWRRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fund_ids: Optional[List[Union[str, int]]] = Field(default=None, alias="fundIds")
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    include_missing: bool = Field(default=False, alias="includeMissing")


class LatestFundDataRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fund_ids: Optional[List[Union[str, int]]] = Field(default=None, alias="fundIds")


class TrailingTWRRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fund_ids: Optional[List[Union[str, int]]] = Field(default=None, alias="fundIds")
    months: int = 12


class Holding(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fund_id: Union[str, int] = Field(alias="fundId")
    allocation: Optional[Union[float, str]] = None


class PortfolioReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    holdings: List[Holding]
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    title: str = "Portfolio TWR Report"
    comparison_holdings: Optional[List[Holding]] = Field(default=None, alias="comparisonHoldings")
    comparison_title: str = Field(default="Comparison Portfolio", alias="comparisonTitle")


# ---------------------------------------------------------------
# Responses
# ---------------------------------------------------------------

class FundRecordResponse(BaseModel):
    fund_id: str
    category: str
    report_period: str
    classification: Optional[str] = None
    fund_name: Optional[str] = None
    fund_id_name: Optional[str] = None
    track_name: Optional[str] = None
    year_to_date_yield: Optional[float] = None
    trailing_3yr_yield: Optional[float] = None
    trailing_5yr_yield: Optional[float] = None
    equity_exposure: Optional[float] = None
    foreign_currency_exposure: Optional[float] = None
    foreign_exposure: Optional[float] = None
    total_assets: Optional[float] = None
    monthly_yield: Optional[float] = None

    @classmethod
    def from_domain(cls, record: FundRecord) -> "FundRecordResponse":
        return cls(
            fund_id=record.fund_id,
            category=record.category.value,
            report_period=record.report_period,
            classification=record.classification,
            fund_name=record.fund_name,
            fund_id_name=record.fund_id_name,
            track_name=record.track_name,
            year_to_date_yield=_float(record.year_to_date_yield),
            trailing_3yr_yield=_float(record.trailing_3yr_yield),
            trailing_5yr_yield=_float(record.trailing_5yr_yield),
            equity_exposure=_float(record.equity_exposure),
            foreign_currency_exposure=_float(record.foreign_currency_exposure),
            foreign_exposure=_float(record.foreign_exposure),
            total_assets=_float(record.total_assets),
            monthly_yield=_float(record.monthly_yield),
        )


class FundSnapshotModel(BaseModel):
    """Snapshot as returned by /calculate-twr and accepted by /portfolio/aggregate"""
    fund_id: str
    report_period: str
    twr: Optional[float] = None
    fund_id_name: Optional[str] = None
    classification: Optional[str] = None
    year_to_date_yield: Optional[float] = None
    trailing_3yr_yield: Optional[float] = None
    trailing_5yr_yield: Optional[float] = None
    equity_exposure: Optional[float] = None
    foreign_currency_exposure: Optional[float] = None
    foreign_exposure: Optional[float] = None
    total_assets: Optional[float] = None
    earliest_period: Optional[str] = None

    @classmethod
    def from_domain(cls, snapshot: FundSnapshot) -> "FundSnapshotModel":
        return cls(
            fund_id=snapshot.fund_id,
            report_period=snapshot.report_period,
            twr=_float(snapshot.twr),
            fund_id_name=snapshot.fund_id_name,
            classification=snapshot.classification,
            year_to_date_yield=_float(snapshot.year_to_date_yield),
            trailing_3yr_yield=_float(snapshot.trailing_3yr_yield),
            trailing_5yr_yield=_float(snapshot.trailing_5yr_yield),
            equity_exposure=_float(snapshot.equity_exposure),
            foreign_currency_exposure=_float(snapshot.foreign_currency_exposure),
            foreign_exposure=_float(snapshot.foreign_exposure),
            total_assets=_float(snapshot.total_assets),
            earliest_period=snapshot.earliest_period,
        )

    def to_domain(self) -> FundSnapshot:
        return FundSnapshot(
            fund_id=self.fund_id,
            report_period=self.report_period,
            twr=_decimal(self.twr),
            fund_id_name=self.fund_id_name,
            classification=self.classification,
            year_to_date_yield=_decimal(self.year_to_date_yield),
            trailing_3yr_yield=_decimal(self.trailing_3yr_yield),
            trailing_5yr_yield=_decimal(self.trailing_5yr_yield),
            equity_exposure=_decimal(self.equity_exposure),
            foreign_currency_exposure=_decimal(self.foreign_currency_exposure),
            foreign_exposure=_decimal(self.foreign_exposure),
            total_assets=_decimal(self.total_assets),
            earliest_period=self.earliest_period,
        )


class PortfolioLineModel(BaseModel):
    snapshot: FundSnapshotModel
    allocation: Optional[Union[float, str]] = None


class AggregateRequest(BaseModel):
    lines: List[PortfolioLineModel]


class AggregateResponse(BaseModel):
    total_allocation: float
    weighted: Dict[str, Optional[float]]

    @classmethod
    def from_domain(cls, aggregate: PortfolioAggregate) -> "AggregateResponse":
        return cls(
            total_allocation=float(aggregate.total_allocation),
            weighted={name: _float(value) for name, value in aggregate.weighted.items()},
        )
