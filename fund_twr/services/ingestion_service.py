"""
INGESTION SERVICE

Pulls the upstream open datasets and upserts them into the
category tables, one transaction per category group.
Readers never observe a half-refreshed group. Periods a refresh
does not mention are kept.
"""

import logging
from typing import Dict, List, Optional

from fund_twr.domain.errors import UpstreamFailure
from fund_twr.domain.models import CategoryGroup
from fund_twr.domain.numbers import parse_optional_number
from fund_twr.domain.periods import is_valid_period
from fund_twr.infrastructure.open_data.data_gov_client import RESOURCE_IDS, DataGovClient
from fund_twr.utils.time import now_il_naive

logger = logging.getLogger(__name__)

# upstream field -> model attribute
NUMERIC_FIELDS = {
    "YEAR_TO_DATE_YIELD": "year_to_date_yield",
    "AVG_ANNUAL_YIELD_TRAILING_3YRS": "avg_annual_yield_trailing_3yrs",
    "AVG_ANNUAL_YIELD_TRAILING_5YRS": "avg_annual_yield_trailing_5yrs",
    "STOCK_MARKET_EXPOSURE": "stock_market_exposure",
    "FOREIGN_CURRENCY_EXPOSURE": "foreign_currency_exposure",
    "FOREIGN_EXPOSURE": "foreign_exposure",
    "TOTAL_ASSETS": "total_assets",
}


def _as_float(value) -> Optional[float]:
    number = parse_optional_number(value)
    return float(number) if number is not None else None


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def map_upstream_record(record: dict) -> Optional[Dict]:
    """
    Map one datastore record to a table row.

    Returns None for records without a fund id or a valid report period.
    """
    fund_id = _as_text(record.get("FUND_ID"))
    period = _as_text(record.get("REPORT_PERIOD"))
    if not fund_id or not is_valid_period(period):
        return None

    fund_name = _as_text(record.get("FUND_NAME"))
    row = {
        "fund_id": fund_id,
        "report_period": period,
        "fund_classification": _as_text(record.get("FUND_CLASSIFICATION")),
        "fund_name": fund_name,
        "fund_id_name": f"{fund_id} - {fund_name}",
        "fund_track_name": _as_text(record.get("FUND_TRACK_NAME")),
        "monthly_yield": _as_float(record.get("MONTHLY_YIELD")) or 0.0,
        "ingested_at": now_il_naive(),
    }
    for upstream, attribute in NUMERIC_FIELDS.items():
        row[attribute] = _as_float(record.get(upstream))
    return row


class IngestionService:
    """Refresh the fund store from data.gov.il"""

    def __init__(self, store, client: DataGovClient, resource_ids: Optional[Dict] = None):
        self.store = store
        self.client = client
        self.resource_ids = resource_ids or RESOURCE_IDS

    async def refresh_group(self, group: CategoryGroup) -> int:
        """
        Fetch every resource of a group, then upsert them together

        Raises:
            UpstreamFailure: any resource failed; nothing is written
        """
        rows_by_key: Dict[tuple, Dict] = {}
        skipped = 0
        for resource_id in self.resource_ids.get(group, ()):
            for record in await self.client.fetch_resource(resource_id):
                row = map_upstream_record(record)
                if row is None:
                    skipped += 1
                    continue
                rows_by_key[(row["fund_id"], row["report_period"])] = row

        if skipped:
            logger.warning(f"Skipped {skipped} {group.value} records without fund id or period")

        rows: List[Dict] = list(rows_by_key.values())
        return await self.store.upsert_group(group, rows)

    async def refresh_all(self) -> Dict[CategoryGroup, int]:
        """
        Refresh every group. A failing group is logged and does not
        block the others; the last failure is re-raised at the end.
        """
        logger.info("🔄 Refreshing fund data from data.gov.il")
        written: Dict[CategoryGroup, int] = {}
        failure: Optional[UpstreamFailure] = None

        for group in CategoryGroup.lookup_order():
            try:
                written[group] = await self.refresh_group(group)
            except UpstreamFailure as exc:
                logger.error(f"❌ Refresh of {group.value} failed: {exc}")
                failure = exc

        logger.info(
            "✅ Data load complete: "
            + ", ".join(f"{g.value}={n}" for g, n in written.items())
        )
        if failure is not None:
            raise failure
        return written

    async def refresh_if_empty(self) -> bool:
        """Initial load when the store has no data. Returns True if a load ran."""
        if not await self.store.is_empty():
            logger.info("Fund data already present, skipping initial load")
            return False

        logger.info("Database is empty. Loading initial data...")
        await self.refresh_all()
        return True
