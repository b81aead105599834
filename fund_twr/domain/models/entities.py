"""
DOMAIN ENTITIES
Fund records, computed snapshots and portfolio aggregates.
Immutable dataclasses. No database access.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional


class CategoryGroup(str, Enum):
    """
    Fund category group. Each group is a separate upstream dataset
    and a separate table.
    """
    GEMEL = "gemel"
    POLICIES = "policies"
    PENSION = "pension"

    @classmethod
    def lookup_order(cls) -> tuple["CategoryGroup", ...]:
        """Priority used when an identifier has to be resolved to a group"""
        return (cls.GEMEL, cls.POLICIES, cls.PENSION)


# Classification labels published upstream for each non-default group
PENSION_CLASSIFICATIONS = frozenset({
    "קרנות חדשות",
    "קרנות כלליות",
})

POLICY_CLASSIFICATIONS = frozenset({
    "פוליסות שהונפקו החל משנת 2004",
    "פוליסות שהונפקו בשנים 1990-1991",
    "פוליסות שהונפקו בשנים 1992-2003",
})

FUND_TYPES = (
    "תגמולים ואישית לפיצויים",
    "קרנות השתלמות",
    "מרכזית לפיצויים",
    "מטרה אחרת",
    "קופת גמל להשקעה",
    "קופת גמל להשקעה חיסכון לכל ילד",
    "קרנות חדשות",
    "קרנות כלליות",
    "פוליסות שהונפקו החל משנת 2004",
    "פוליסות שהונפקו בשנים 1990-1991",
    "פוליסות שהונפקו בשנים 1992-2003",
)


def category_for_classification(classification: str) -> CategoryGroup:
    """Map a fund classification label to the group that publishes it"""
    if classification in PENSION_CLASSIFICATIONS:
        return CategoryGroup.PENSION
    if classification in POLICY_CLASSIFICATIONS:
        return CategoryGroup.POLICIES
    return CategoryGroup.GEMEL


@dataclass(frozen=True)
class FundRecord:
    """One fund in one report period"""
    fund_id: str
    category: CategoryGroup
    report_period: str
    classification: Optional[str] = None
    fund_name: Optional[str] = None
    fund_id_name: Optional[str] = None
    track_name: Optional[str] = None
    year_to_date_yield: Optional[Decimal] = None
    trailing_3yr_yield: Optional[Decimal] = None
    trailing_5yr_yield: Optional[Decimal] = None
    equity_exposure: Optional[Decimal] = None
    foreign_currency_exposure: Optional[Decimal] = None
    foreign_exposure: Optional[Decimal] = None
    total_assets: Optional[Decimal] = None
    monthly_yield: Optional[Decimal] = None


@dataclass(frozen=True)
class FundSnapshot:
    """
    Windowed view of a fund, built per TWR request.

    `twr` is None when the fund had no records in the window.
    Static metrics are None unless a record exists at `report_period`.
    """
    fund_id: str
    report_period: str
    twr: Optional[Decimal] = None
    fund_id_name: Optional[str] = None
    classification: Optional[str] = None
    year_to_date_yield: Optional[Decimal] = None
    trailing_3yr_yield: Optional[Decimal] = None
    trailing_5yr_yield: Optional[Decimal] = None
    equity_exposure: Optional[Decimal] = None
    foreign_currency_exposure: Optional[Decimal] = None
    foreign_exposure: Optional[Decimal] = None
    total_assets: Optional[Decimal] = None
    earliest_period: Optional[str] = None


@dataclass(frozen=True)
class PortfolioLine:
    """A snapshot plus the amount the user allocated to it"""
    snapshot: FundSnapshot
    allocation: object = None


@dataclass(frozen=True)
class PortfolioAggregate:
    """Allocation-weighted portfolio metrics"""
    total_allocation: Decimal
    weighted: Dict[str, Optional[Decimal]] = field(default_factory=dict)
