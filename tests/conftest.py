from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine

from fund_twr.domain.models import CategoryGroup, FundRecord
from fund_twr.infrastructure.db.database import Base, create_session_factory
from fund_twr.infrastructure.db.repositories.fund_repository import FundRepository
from fund_twr.main import create_app
from fund_twr.utils.time import now_il_naive


# ---------------------------------------------------------------
# In-memory store for domain tests
# ---------------------------------------------------------------

class MockFundStore:
    """Mock fund store keyed by group"""

    def __init__(self, records: Optional[List[FundRecord]] = None):
        self.records: Dict[CategoryGroup, List[FundRecord]] = {g: [] for g in CategoryGroup}
        self.failing_groups = set()
        self.range_calls = []
        for record in records or []:
            self.add(record)

    def add(self, record: FundRecord):
        self.records[record.category].append(record)

    def fail_on(self, group: CategoryGroup):
        self.failing_groups.add(group)

    async def fund_ids_in_group(self, group, fund_ids):
        ids = set(fund_ids)
        return {r.fund_id for r in self.records[group] if r.fund_id in ids}

    async def records_in_range(self, group, fund_ids, start_period, end_period):
        self.range_calls.append((group, list(fund_ids)))
        if group in self.failing_groups:
            raise RuntimeError(f"{group.value} unavailable")
        ids = set(fund_ids)
        return [
            r for r in self.records[group]
            if r.fund_id in ids and start_period <= r.report_period <= end_period
        ]

    async def latest_records(self, group, fund_ids):
        latest = {}
        for r in self.records[group]:
            if r.fund_id in set(fund_ids):
                if r.fund_id not in latest or r.report_period > latest[r.fund_id].report_period:
                    latest[r.fund_id] = r
        return list(latest.values())


def fund_record(fund_id, period, group=CategoryGroup.GEMEL, monthly_yield=None, **fields) -> FundRecord:
    def dec(value):
        return Decimal(str(value)) if value is not None else None

    numeric = {k: dec(v) for k, v in fields.items() if k not in ("classification", "fund_name", "fund_id_name", "track_name")}
    text = {k: v for k, v in fields.items() if k in ("classification", "fund_name", "fund_id_name", "track_name")}
    return FundRecord(
        fund_id=fund_id,
        category=group,
        report_period=period,
        monthly_yield=dec(monthly_yield),
        **text,
        **numeric,
    )


@pytest.fixture()
def make_record():
    return fund_record


@pytest.fixture()
def mock_store():
    return MockFundStore()


# ---------------------------------------------------------------
# Database
# ---------------------------------------------------------------

@pytest.fixture()
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        from fund_twr.infrastructure.db import models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def fund_store(db_engine) -> FundRepository:
    return FundRepository(create_session_factory(db_engine))


def db_row(fund_id, period, classification="קרנות השתלמות", name="Fund", **values) -> Dict:
    row = {
        "fund_id": fund_id,
        "report_period": period,
        "fund_classification": classification,
        "fund_name": name,
        "fund_id_name": f"{fund_id} - {name}",
        "fund_track_name": None,
        "year_to_date_yield": None,
        "avg_annual_yield_trailing_3yrs": None,
        "avg_annual_yield_trailing_5yrs": None,
        "stock_market_exposure": None,
        "foreign_currency_exposure": None,
        "foreign_exposure": None,
        "total_assets": None,
        "monthly_yield": 0.0,
        "ingested_at": now_il_naive(),
    }
    row.update(values)
    return row


@pytest.fixture()
def make_db_row():
    return db_row


@pytest.fixture()
async def seeded_store(fund_store) -> FundRepository:
    """
    gemel:   123 (202301-202303), 200 (202212-202303)
    pension: 777 (202302-202303)
    policies: 555 (202303)
    """
    await fund_store.upsert_group(CategoryGroup.GEMEL, [
        db_row("123", "202301", monthly_yield=1.0),
        db_row("123", "202302", monthly_yield=2.0),
        db_row("123", "202303", monthly_yield=-0.5, year_to_date_yield=2.5,
               stock_market_exposure=40.0, total_assets=100.0),
        db_row("200", "202212", name="Other", monthly_yield=3.0),
        db_row("200", "202301", name="Other", monthly_yield=1.0),
        db_row("200", "202303", name="Other", monthly_yield=1.0, total_assets=50.0),
    ])
    await fund_store.upsert_group(CategoryGroup.PENSION, [
        db_row("777", "202302", classification="קרנות חדשות", name="Pension", monthly_yield=0.5),
        db_row("777", "202303", classification="קרנות חדשות", name="Pension", monthly_yield=0.5,
               total_assets=1000.0, foreign_exposure=250.0),
    ])
    await fund_store.upsert_group(CategoryGroup.POLICIES, [
        db_row("555", "202303", classification="פוליסות שהונפקו החל משנת 2004", name="Policy",
               monthly_yield=None),
    ])
    return fund_store


# ---------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------

@pytest.fixture()
async def app(seeded_store) -> FastAPI:
    app = create_app(use_lifespan=False)
    app.state.fund_store = seeded_store
    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
