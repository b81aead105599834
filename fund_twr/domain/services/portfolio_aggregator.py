"""
PORTFOLIO AGGREGATOR
Allocation-weighted metrics for a portfolio of fund snapshots

RULES:
- Unset / non-numeric allocation counts as 0; negative is rejected
- Yield fields are weighted as-is
- Exposure fields are first normalized per line: raw / total assets x 100
- A line without a defined metric is left out of that field entirely
- Zero total allocation -> every weighted field unavailable
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from fund_twr.domain.errors import InvalidRequest
from fund_twr.domain.models import FundSnapshot, PortfolioAggregate, PortfolioLine
from fund_twr.domain.numbers import parse_optional_number, round_percentage

ZERO = Decimal("0")
HUNDRED = Decimal("100")

YIELD_FIELDS = (
    "twr",
    "year_to_date_yield",
    "trailing_3yr_yield",
    "trailing_5yr_yield",
)

EXPOSURE_FIELDS = (
    "equity_exposure",
    "foreign_currency_exposure",
    "foreign_exposure",
)

WEIGHTED_FIELDS = YIELD_FIELDS + EXPOSURE_FIELDS


def parse_allocation(value) -> Decimal:
    """User-entered amount; blanks and garbage are 0, "1,000" is 1000"""
    amount = parse_optional_number(value, strip_thousands=True)
    if amount is None:
        return ZERO
    if amount < ZERO:
        raise InvalidRequest(f"Allocation must be non-negative, got {value!r}")
    return amount


def exposure_percentage(raw, total_assets) -> Optional[Decimal]:
    """
    Exposure as a percentage of the fund's total assets.
    None when either side is missing or assets are zero.
    """
    value = parse_optional_number(raw)
    assets = parse_optional_number(total_assets)
    if value is None or assets is None or assets == ZERO:
        return None
    return value / assets * HUNDRED


def line_metric(snapshot: FundSnapshot, field_name: str) -> Optional[Decimal]:
    if field_name in EXPOSURE_FIELDS:
        return exposure_percentage(getattr(snapshot, field_name), snapshot.total_assets)
    return parse_optional_number(getattr(snapshot, field_name))


class PortfolioAggregator:
    """Pure function of its inputs"""

    def aggregate(self, lines: Iterable[PortfolioLine]) -> PortfolioAggregate:
        """
        Weight every metric by allocation amount

        Args:
            lines: Snapshots with their allocations

        Returns:
            PortfolioAggregate with total allocation and weighted percentages
        """
        parsed = [(line.snapshot, parse_allocation(line.allocation)) for line in lines]
        total_allocation = sum((amount for _, amount in parsed), ZERO)

        if total_allocation == ZERO:
            return PortfolioAggregate(
                total_allocation=total_allocation,
                weighted={name: None for name in WEIGHTED_FIELDS},
            )

        weighted: Dict[str, Optional[Decimal]] = {
            name: self._weighted_field(parsed, name) for name in WEIGHTED_FIELDS
        }
        return PortfolioAggregate(total_allocation=total_allocation, weighted=weighted)

    @staticmethod
    def _weighted_field(parsed: List[tuple], field_name: str) -> Optional[Decimal]:
        numerator = ZERO
        denominator = ZERO
        for snapshot, amount in parsed:
            metric = line_metric(snapshot, field_name)
            if metric is None:
                continue
            numerator += amount * metric
            denominator += amount

        if denominator == ZERO:
            return None
        return round_percentage(numerator / denominator)
