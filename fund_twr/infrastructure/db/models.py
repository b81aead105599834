"""
Database Models (SQLAlchemy ORM)
One table per category group, identical columns.
Primary key (FUND_ID, REPORT_PERIOD).
"""

from sqlalchemy import Column, DateTime, Float, Index, String, Text
from sqlalchemy.orm import declared_attr

from fund_twr.domain.models import CategoryGroup
from fund_twr.infrastructure.db.database import Base
from fund_twr.utils.time import now_il_naive


class FundRecordColumns:
    """Columns shared by every category table (upstream field names)"""

    # key= makes table.c, Core inserts and indexes use the attribute names
    fund_id = Column("FUND_ID", String(32), primary_key=True, key="fund_id")
    report_period = Column("REPORT_PERIOD", String(6), primary_key=True, key="report_period")

    fund_classification = Column("FUND_CLASSIFICATION", Text, nullable=True, key="fund_classification")
    fund_name = Column("FUND_NAME", Text, nullable=True, key="fund_name")
    fund_id_name = Column("FUND_ID_NAME", Text, nullable=True, key="fund_id_name")
    fund_track_name = Column("FUND_TRACK_NAME", Text, nullable=True, key="fund_track_name")

    year_to_date_yield = Column("YEAR_TO_DATE_YIELD", Float, nullable=True, key="year_to_date_yield")
    avg_annual_yield_trailing_3yrs = Column("AVG_ANNUAL_YIELD_TRAILING_3YRS", Float, nullable=True, key="avg_annual_yield_trailing_3yrs")
    avg_annual_yield_trailing_5yrs = Column("AVG_ANNUAL_YIELD_TRAILING_5YRS", Float, nullable=True, key="avg_annual_yield_trailing_5yrs")

    stock_market_exposure = Column("STOCK_MARKET_EXPOSURE", Float, nullable=True, key="stock_market_exposure")
    foreign_currency_exposure = Column("FOREIGN_CURRENCY_EXPOSURE", Float, nullable=True, key="foreign_currency_exposure")
    foreign_exposure = Column("FOREIGN_EXPOSURE", Float, nullable=True, key="foreign_exposure")

    total_assets = Column("TOTAL_ASSETS", Float, nullable=True, key="total_assets")
    monthly_yield = Column("MONTHLY_YIELD", Float, nullable=True, key="monthly_yield")

    ingested_at = Column(DateTime, nullable=False, default=now_il_naive, onupdate=now_il_naive)

    @declared_attr.directive
    def __table_args__(cls):
        return (
            Index(f"ix_{cls.__tablename__}_classification", "fund_classification"),
            Index(f"ix_{cls.__tablename__}_period", "report_period"),
        )


class GemelFundModel(FundRecordColumns, Base):
    """General provident funds"""
    __tablename__ = "gemel"


class PolicyFundModel(FundRecordColumns, Base):
    """Insurance policies"""
    __tablename__ = "policies"


class PensionFundModel(FundRecordColumns, Base):
    """Pension funds"""
    __tablename__ = "pension"


MODEL_BY_GROUP = {
    CategoryGroup.GEMEL: GemelFundModel,
    CategoryGroup.POLICIES: PolicyFundModel,
    CategoryGroup.PENSION: PensionFundModel,
}
