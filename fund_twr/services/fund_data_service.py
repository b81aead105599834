"""
Fund data lookups used by the search and portfolio endpoints
"""

import logging
from typing import List, Optional, Sequence

from fund_twr.config import settings
from fund_twr.domain.errors import FundDataError, InvalidRequest, NotFound, UpstreamFailure
from fund_twr.domain.models import FundRecord
from fund_twr.domain.services.fund_locator import FundLocator, gather_or_fail

logger = logging.getLogger(__name__)


class FundDataService:
    def __init__(self, store, locator: Optional[FundLocator] = None):
        self.store = store
        self.locator = locator or FundLocator(store)

    async def find_latest(self, classification: Optional[str], fund_id: Optional[str]) -> FundRecord:
        """
        Latest record for a classification + fund id

        Raises:
            InvalidRequest: either parameter missing
            NotFound: no record
            UpstreamFailure: the store read failed
        """
        if not classification or not fund_id:
            raise InvalidRequest("Both fund classification and fund id are required")

        record = await _read_store(self.store.find_latest(classification, fund_id), "latest record lookup")
        if record is None:
            logger.info(f"No data found for classification={classification} fund_id={fund_id}")
            raise NotFound("No data found")
        return record

    async def search_programs(self, query: Optional[str], fund_type: Optional[str]) -> List[FundRecord]:
        if not query or not fund_type:
            return []
        return await _read_store(
            self.store.search_programs(query, fund_type, limit=settings.SEARCH_RESULT_LIMIT),
            "program search",
        )

    async def latest_fund_data(self, fund_ids: Sequence[str]) -> List[FundRecord]:
        """
        Most recent record per fund id, across all groups

        Raises:
            InvalidRequest: no fund ids
            UpstreamFailure: a group query failed
        """
        if not fund_ids:
            raise InvalidRequest("Invalid fund IDs")

        located = await self.locator.locate(fund_ids)
        by_group = FundLocator.partition(located)
        groups = list(by_group)
        results = await gather_or_fail(
            [self.store.latest_records(group, by_group[group]) for group in groups],
            what="latest fund data query",
        )
        return [record for records in results for record in records]


async def _read_store(coro, what: str):
    """Await a single store read; store errors surface as UpstreamFailure"""
    try:
        return await coro
    except FundDataError:
        raise
    except Exception as exc:
        logger.error(f"{what} failed: {exc}")
        raise UpstreamFailure(f"{what} failed: {exc}") from exc
