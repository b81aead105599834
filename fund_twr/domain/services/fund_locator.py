"""
FUND LOCATOR
Resolve fund identifiers to the category group that publishes them.

A fund id belongs to exactly one group. Ids that no group knows
are left out of the result; the caller treats them as not found.
"""

import asyncio
import logging
from typing import Dict, Iterable

from fund_twr.domain.errors import UpstreamFailure
from fund_twr.domain.models import CategoryGroup

logger = logging.getLogger(__name__)


class FundLocator:
    """Read-only lookup of fund id -> CategoryGroup"""

    def __init__(self, store):
        """
        Args:
            store: Fund store exposing `fund_ids_in_group(group, fund_ids)`
        """
        self.store = store

    async def locate(self, fund_ids: Iterable[str]) -> Dict[str, CategoryGroup]:
        """
        Find the category group of each fund id

        Args:
            fund_ids: Fund identifiers to resolve

        Returns:
            Mapping of fund id -> group, only for ids found in some group
        """
        requested = {str(fund_id) for fund_id in fund_ids if fund_id is not None}
        if not requested:
            return {}

        groups = CategoryGroup.lookup_order()
        found = await gather_or_fail(
            [self.store.fund_ids_in_group(group, requested) for group in groups],
            what="fund group lookup",
        )

        located: Dict[str, CategoryGroup] = {}
        for group, ids_in_group in zip(groups, found):
            for fund_id in ids_in_group:
                located.setdefault(fund_id, group)

        missing = requested - located.keys()
        if missing:
            logger.info(f"Funds not found in any group: {sorted(missing)}")

        return located

    @staticmethod
    def partition(located: Dict[str, CategoryGroup]) -> Dict[CategoryGroup, list]:
        """Invert a locate() result into group -> sorted fund ids"""
        by_group: Dict[CategoryGroup, list] = {}
        for fund_id, group in located.items():
            by_group.setdefault(group, []).append(fund_id)
        for ids in by_group.values():
            ids.sort()
        return by_group


async def gather_or_fail(coros, what: str) -> list:
    """
    Run store reads concurrently and wait for all of them.

    The first failure cancels the remaining reads and is raised as
    UpstreamFailure; no partial results are returned.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except UpstreamFailure:
        _cancel_pending(tasks)
        raise
    except Exception as exc:
        _cancel_pending(tasks)
        logger.error(f"{what} failed: {exc}")
        raise UpstreamFailure(f"{what} failed: {exc}") from exc


def _cancel_pending(tasks) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()
