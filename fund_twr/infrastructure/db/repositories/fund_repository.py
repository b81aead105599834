"""
Fund Repository
Read and upsert operations over the three category tables
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fund_twr.domain.models import CategoryGroup, FundRecord, category_for_classification
from fund_twr.infrastructure.db.models import MODEL_BY_GROUP

logger = logging.getLogger(__name__)

UPSERT_CHUNK_SIZE = 500


class FundRepository:
    """
    Fund store over the category tables.

    Each read opens its own short-lived session so that reads against
    different groups can run concurrently.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize with session factory"""
        self.session_factory = session_factory

    async def fund_ids_in_group(self, group: CategoryGroup, fund_ids: Iterable[str]) -> Set[str]:
        """
        Which of the given fund ids exist in a group

        Args:
            group: Category group to search
            fund_ids: Candidate fund ids

        Returns:
            Subset of fund_ids present in the group
        """
        ids = list(fund_ids)
        if not ids:
            return set()

        model = MODEL_BY_GROUP[group]
        async with self.session_factory() as session:
            result = await session.execute(
                select(model.fund_id).where(model.fund_id.in_(ids)).distinct()
            )
            return set(result.scalars().all())

    async def records_in_range(
        self,
        group: CategoryGroup,
        fund_ids: Iterable[str],
        start_period: str,
        end_period: str,
    ) -> List[FundRecord]:
        """
        All records of the given funds with start <= period <= end

        Returns:
            Records ordered by fund id, then period
        """
        ids = list(fund_ids)
        if not ids:
            return []

        model = MODEL_BY_GROUP[group]
        async with self.session_factory() as session:
            result = await session.execute(
                select(model)
                .where(
                    model.fund_id.in_(ids),
                    model.report_period.between(start_period, end_period),
                )
                .order_by(model.fund_id, model.report_period)
            )
            return [self._to_domain(row, group) for row in result.scalars().all()]

    async def latest_records(self, group: CategoryGroup, fund_ids: Iterable[str]) -> List[FundRecord]:
        """
        Most recent record per fund id within one group
        """
        ids = list(fund_ids)
        if not ids:
            return []

        model = MODEL_BY_GROUP[group]
        latest = (
            select(model.fund_id.label("fund_id"), func.max(model.report_period).label("max_period"))
            .where(model.fund_id.in_(ids))
            .group_by(model.fund_id)
            .subquery()
        )
        async with self.session_factory() as session:
            result = await session.execute(
                select(model)
                .join(
                    latest,
                    (model.fund_id == latest.c.fund_id)
                    & (model.report_period == latest.c.max_period),
                )
                .order_by(model.fund_id)
            )
            return [self._to_domain(row, group) for row in result.scalars().all()]

    async def find_latest(self, classification: str, fund_id: str) -> Optional[FundRecord]:
        """
        Latest record for a (classification, fund id) pair

        Returns:
            FundRecord or None
        """
        group = category_for_classification(classification)
        model = MODEL_BY_GROUP[group]
        async with self.session_factory() as session:
            result = await session.execute(
                select(model)
                .where(
                    model.fund_classification == classification,
                    model.fund_id == fund_id,
                )
                .order_by(model.report_period.desc())
                .limit(1)
            )
            row = result.scalars().first()
            return self._to_domain(row, group) if row else None

    async def search_programs(self, query: str, classification: str, limit: int = 15) -> List[FundRecord]:
        """
        Substring search on "<id> - <name>" or id within one classification

        Returns:
            Up to `limit` records, most recent period first
        """
        group = category_for_classification(classification)
        model = MODEL_BY_GROUP[group]
        async with self.session_factory() as session:
            result = await session.execute(
                select(model)
                .where(
                    model.fund_classification == classification,
                    or_(
                        model.fund_id_name.contains(query, autoescape=True),
                        model.fund_id.contains(query, autoescape=True),
                    ),
                )
                .order_by(model.report_period.desc(), model.fund_id)
                .limit(limit)
            )
            return [self._to_domain(row, group) for row in result.scalars().all()]

    async def count(self, group: CategoryGroup) -> int:
        model = MODEL_BY_GROUP[group]
        async with self.session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return int(result.scalar_one())

    async def is_empty(self) -> bool:
        for group in CategoryGroup.lookup_order():
            if await self.count(group) > 0:
                return False
        return True

    async def upsert_group(self, group: CategoryGroup, rows: List[Dict]) -> int:
        """
        Insert or replace rows of one group in a single transaction

        Args:
            group: Target category group
            rows: Dicts keyed by model attribute (fund_id, report_period, ...)

        Returns:
            Number of rows written
        """
        if not rows:
            return 0

        table = MODEL_BY_GROUP[group].__table__
        async with self.session_factory() as session:
            async with session.begin():
                insert = _insert_for(session.bind.dialect.name)
                for start in range(0, len(rows), UPSERT_CHUNK_SIZE):
                    stmt = insert(table).values(rows[start:start + UPSERT_CHUNK_SIZE])
                    stmt = stmt.on_conflict_do_update(
                        index_elements=list(table.primary_key.columns),
                        set_={
                            c: stmt.excluded[c.key]
                            for c in table.columns
                            if not c.primary_key
                        },
                    )
                    await session.execute(stmt)

        logger.info(f"Upserted {len(rows)} rows into {group.value}")
        return len(rows)

    @staticmethod
    def _to_domain(model, group: CategoryGroup) -> FundRecord:
        """Convert database model to domain entity"""
        return FundRecord(
            fund_id=model.fund_id,
            category=group,
            report_period=model.report_period,
            classification=model.fund_classification,
            fund_name=model.fund_name,
            fund_id_name=model.fund_id_name,
            track_name=model.fund_track_name,
            year_to_date_yield=_to_decimal(model.year_to_date_yield),
            trailing_3yr_yield=_to_decimal(model.avg_annual_yield_trailing_3yrs),
            trailing_5yr_yield=_to_decimal(model.avg_annual_yield_trailing_5yrs),
            equity_exposure=_to_decimal(model.stock_market_exposure),
            foreign_currency_exposure=_to_decimal(model.foreign_currency_exposure),
            foreign_exposure=_to_decimal(model.foreign_exposure),
            total_assets=_to_decimal(model.total_assets),
            monthly_yield=_to_decimal(model.monthly_yield),
        )


def _to_decimal(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


def _insert_for(dialect_name: str):
    if dialect_name == "postgresql":
        return postgresql.insert
    return sqlite.insert
