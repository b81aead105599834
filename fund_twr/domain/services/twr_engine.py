"""
TWR ENGINE
Time-weighted return over a window of report periods

RESPONSIBILITIES:
- Resolve each fund to its category group
- Fetch monthly records in [start, end], one query per group
- Compound monthly yields into a single return
- Build a snapshot with point-in-time metrics at the end period

RULES:
- Missing monthly yield compounds as 0% (factor 1)
- No records in the window -> TWR unavailable, never 0%
- Static metrics come only from the record AT the end period
- Any failed group query fails the whole request
- Trailing windows end at each fund's own latest period
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from fund_twr.domain.errors import InvalidRequest
from fund_twr.domain.models import CategoryGroup, FundRecord, FundSnapshot
from fund_twr.domain.numbers import parse_optional_number, round_percentage
from fund_twr.domain.periods import trailing_window, validate_window, validate_window_length
from fund_twr.domain.services.fund_locator import FundLocator, gather_or_fail

logger = logging.getLogger(__name__)

ONE = Decimal("1")
HUNDRED = Decimal("100")

# Fields copied from the end-period record onto the snapshot
STATIC_FIELDS = (
    "fund_id_name",
    "classification",
    "year_to_date_yield",
    "trailing_3yr_yield",
    "trailing_5yr_yield",
    "equity_exposure",
    "foreign_currency_exposure",
    "foreign_exposure",
    "total_assets",
)


def compound_monthly_yields(monthly_yields: Iterable) -> Optional[Decimal]:
    """
    Chain monthly percentage yields into one percentage return

    Args:
        monthly_yields: Yields in chronological order; None or
            unparseable entries count as 0%

    Returns:
        Compounded return rounded to 2 decimals, or None when
        there are no yields at all
    """
    accumulator = ONE
    count = 0
    for raw in monthly_yields:
        count += 1
        monthly = parse_optional_number(raw)
        if monthly is None:
            continue
        accumulator *= ONE + monthly / HUNDRED

    if count == 0:
        return None
    return round_percentage((accumulator - ONE) * HUNDRED)


class TWREngine:
    """
    Time-weighted return engine.
    Store is injected; the engine holds no other state.
    """

    def __init__(self, store, locator: Optional[FundLocator] = None):
        self.store = store
        self.locator = locator or FundLocator(store)

    async def compute_twr(
        self,
        fund_ids: Sequence[str],
        start_period: str,
        end_period: str,
        include_missing: bool = False,
    ) -> List[FundSnapshot]:
        """
        Compute TWR snapshots for a set of funds

        Args:
            fund_ids: Requested fund identifiers
            start_period: First period of the window (YYYYMM, inclusive)
            end_period: Last period of the window (YYYYMM, inclusive)
            include_missing: Also return an all-unavailable snapshot for
                funds that exist but have no records in the window

        Returns:
            One snapshot per fund with data in the window. Unknown ids are
            dropped; callers compare counts against the request.

        Raises:
            InvalidRequest: empty ids or malformed window
            UpstreamFailure: a store query failed
        """
        requested = self._validate_fund_ids(fund_ids)
        validate_window(start_period, end_period)

        located = await self.locator.locate(requested)
        if not located:
            logger.info("No requested fund could be located")
            return []

        snapshots = await self._snapshots_for_window(
            requested, located, start_period, end_period, include_missing
        )
        logger.info(
            f"TWR {start_period}-{end_period}: requested={len(requested)} "
            f"located={len(located)} returned={len(snapshots)}"
        )
        return snapshots

    async def compute_trailing_twr(self, fund_ids: Sequence[str], months: int = 12) -> List[FundSnapshot]:
        """
        TWR over the trailing window ending at each fund's latest period

        Each fund gets its own window: the `months` periods up to and
        including the most recent period it reported.

        Returns:
            One snapshot per located fund, in request order

        Raises:
            InvalidRequest: empty ids or months < 1
            UpstreamFailure: a store query failed
        """
        requested = self._validate_fund_ids(fund_ids)
        validate_window_length(months)

        located = await self.locator.locate(requested)
        if not located:
            logger.info("No requested fund could be located")
            return []

        by_group = FundLocator.partition(located)
        groups = list(by_group)
        latest = await gather_or_fail(
            [self.store.latest_records(group, by_group[group]) for group in groups],
            what="latest period query",
        )

        # funds sharing a latest period share a window
        ids_by_end: Dict[str, List[str]] = {}
        for records in latest:
            for record in records:
                ids_by_end.setdefault(record.report_period, []).append(record.fund_id)

        windows = [(trailing_window(end, months), ids) for end, ids in sorted(ids_by_end.items())]
        results = await gather_or_fail(
            [
                self._snapshots_for_window(
                    ids, {fund_id: located[fund_id] for fund_id in ids}, start, end, False
                )
                for (start, end), ids in windows
            ],
            what="trailing TWR query",
        )

        by_id = {s.fund_id: s for snapshots in results for s in snapshots}
        snapshots = [by_id[fund_id] for fund_id in requested if fund_id in by_id]
        logger.info(
            f"Trailing {months}m TWR: requested={len(requested)} "
            f"located={len(located)} returned={len(snapshots)}"
        )
        return snapshots

    async def _snapshots_for_window(
        self,
        requested: List[str],
        located: Dict[str, CategoryGroup],
        start_period: str,
        end_period: str,
        include_missing: bool,
    ) -> List[FundSnapshot]:
        by_group = FundLocator.partition(located)
        groups = list(by_group)
        fetched = await gather_or_fail(
            [
                self.store.records_in_range(group, by_group[group], start_period, end_period)
                for group in groups
            ],
            what="TWR range query",
        )

        records_by_fund: Dict[str, List[FundRecord]] = {}
        for records in fetched:
            for record in records:
                if not start_period <= record.report_period <= end_period:
                    continue
                records_by_fund.setdefault(record.fund_id, []).append(record)

        snapshots = []
        for fund_id in requested:
            records = records_by_fund.get(fund_id)
            if records:
                snapshots.append(self._build_snapshot(fund_id, records, end_period))
            elif include_missing and fund_id in located:
                snapshots.append(FundSnapshot(fund_id=fund_id, report_period=end_period))
        return snapshots

    @staticmethod
    def _validate_fund_ids(fund_ids) -> List[str]:
        if not fund_ids or isinstance(fund_ids, (str, bytes)):
            raise InvalidRequest("Invalid fund IDs")

        requested: List[str] = []
        for fund_id in fund_ids:
            if fund_id is None or not str(fund_id).strip():
                raise InvalidRequest("Invalid fund IDs")
            fund_id = str(fund_id).strip()
            if fund_id not in requested:
                requested.append(fund_id)
        return requested

    @staticmethod
    def _build_snapshot(
        fund_id: str,
        records: List[FundRecord],
        end_period: str,
    ) -> FundSnapshot:
        ordered = sorted(records, key=lambda r: r.report_period)
        twr = compound_monthly_yields(r.monthly_yield for r in ordered)

        at_end = next((r for r in ordered if r.report_period == end_period), None)
        static = {name: getattr(at_end, name) for name in STATIC_FIELDS} if at_end else {}

        return FundSnapshot(
            fund_id=fund_id,
            report_period=end_period,
            twr=twr,
            earliest_period=ordered[0].report_period,
            **static,
        )
