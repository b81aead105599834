import pytest


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_twr(client):
    resp = await client.post(
        "/api/calculate-twr",
        json={"fundIds": ["123", "777", "unknown"], "startDate": "2023-01-01", "endDate": "2023-03-01"},
    )
    assert resp.status_code == 200
    data = {row["fund_id"]: row for row in resp.json()}

    assert set(data) == {"123", "777"}
    assert data["123"]["twr"] == 2.5
    assert data["123"]["report_period"] == "202303"
    assert data["123"]["earliest_period"] == "202301"
    assert data["123"]["fund_id_name"] == "123 - Fund"
    assert data["777"]["earliest_period"] == "202302"
    assert data["777"]["foreign_exposure"] == 250.0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_twr_accepts_numeric_ids(client):
    resp = await client.post(
        "/api/calculate-twr",
        json={"fundIds": [123], "startDate": "2023-01-01", "endDate": "2023-02-28"},
    )
    assert resp.status_code == 200
    row = resp.json()[0]
    assert row["twr"] == 3.02
    assert row["fund_id_name"] == "123 - Fund"
    assert row["total_assets"] is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_twr_without_end_period_record(client):
    resp = await client.post(
        "/api/calculate-twr",
        json={"fundIds": ["123"], "startDate": "2023-01-01", "endDate": "2023-04-01"},
    )
    assert resp.status_code == 200
    row = resp.json()[0]
    assert row["twr"] == 2.5
    # no record at the end period -> point-in-time metrics unavailable
    assert row["fund_id_name"] is None
    assert row["equity_exposure"] is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_twr_include_missing(client):
    resp = await client.post(
        "/api/calculate-twr",
        json={"fundIds": ["555"], "startDate": "2022-01-01", "endDate": "2022-06-01", "includeMissing": True},
    )
    assert resp.status_code == 200
    assert resp.json() == [
        {
            "fund_id": "555",
            "report_period": "202206",
            "twr": None,
            "fund_id_name": None,
            "classification": None,
            "year_to_date_yield": None,
            "trailing_3yr_yield": None,
            "trailing_5yr_yield": None,
            "equity_exposure": None,
            "foreign_currency_exposure": None,
            "foreign_exposure": None,
            "total_assets": None,
            "earliest_period": None,
        }
    ]


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "body",
    [
        {"fundIds": [], "startDate": "2023-01-01", "endDate": "2023-03-01"},
        {"startDate": "2023-01-01", "endDate": "2023-03-01"},
        {"fundIds": ["123"], "startDate": "2023-01-01"},
        {"fundIds": ["123"], "startDate": "2023-04-01", "endDate": "2023-03-01"},
        {"fundIds": ["123"], "startDate": "bad", "endDate": "2023-03-01"},
    ],
)
async def test_calculate_twr_rejects_invalid_requests(client, body):
    resp = await client.post("/api/calculate-twr", json=body)
    assert resp.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_twr_store_failure_is_502(client, seeded_store, monkeypatch):
    async def broken(group, fund_ids, start_period, end_period):
        raise RuntimeError("disk I/O error")

    monkeypatch.setattr(seeded_store, "records_in_range", broken)

    resp = await client.post(
        "/api/calculate-twr",
        json={"fundIds": ["123"], "startDate": "2023-01-01", "endDate": "2023-03-01"},
    )
    assert resp.status_code == 502


@pytest.mark.asyncio
@pytest.mark.integration
async def test_search(client):
    resp = await client.get("/api/search", params={"fundClassification": "קרנות השתלמות", "fundId": "123"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["report_period"] == "202303"
    assert data["category"] == "gemel"

    missing = await client.get("/api/search", params={"fundClassification": "קרנות השתלמות", "fundId": "777"})
    assert missing.status_code == 404

    incomplete = await client.get("/api/search", params={"fundId": "123"})
    assert incomplete.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_search_programs(client):
    resp = await client.get("/api/search-programs", params={"query": "Pension", "fundType": "קרנות חדשות"})
    assert resp.status_code == 200
    periods = [row["report_period"] for row in resp.json()]
    assert periods == ["202303", "202302"]

    empty = await client.get("/api/search-programs", params={"query": "", "fundType": "קרנות חדשות"})
    assert empty.json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_latest_fund_data(client):
    resp = await client.post("/api/get-latest-fund-data", json={"fundIds": ["123", "777", "555", "x"]})
    assert resp.status_code == 200
    latest = {row["fund_id"]: row["report_period"] for row in resp.json()}
    assert latest == {"123": "202303", "777": "202303", "555": "202303"}

    bad = await client.post("/api/get-latest-fund-data", json={"fundIds": []})
    assert bad.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_fund_types_and_health(client):
    types = await client.get("/api/fund-types")
    assert "קרנות חדשות" in types.json()

    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["services"]["scheduler"] == "disabled"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_trailing_twr(client):
    resp = await client.post("/api/calculate-trailing-twr", json={"fundIds": ["123", 777, "555", "x"]})
    assert resp.status_code == 200
    data = {row["fund_id"]: row for row in resp.json()}

    assert set(data) == {"123", "777", "555"}
    assert data["123"]["twr"] == 2.5
    assert data["123"]["report_period"] == "202303"
    # 1.005 * 1.005
    assert data["777"]["twr"] == 1.0
    assert data["555"]["twr"] == 0.0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_trailing_twr_custom_months(client):
    resp = await client.post("/api/calculate-trailing-twr", json={"fundIds": ["123"], "months": 1})
    assert resp.status_code == 200
    assert resp.json()[0]["twr"] == -0.5
    assert resp.json()[0]["earliest_period"] == "202303"


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("body", [{"fundIds": []}, {"fundIds": ["123"], "months": 0}])
async def test_calculate_trailing_twr_rejects_invalid_requests(client, body):
    resp = await client.post("/api/calculate-trailing-twr", json=body)
    assert resp.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_single_lookups_map_store_failure_to_502(client, seeded_store, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(seeded_store, "search_programs", broken)
    monkeypatch.setattr(seeded_store, "find_latest", broken)

    programs = await client.get("/api/search-programs", params={"query": "Pension", "fundType": "קרנות חדשות"})
    assert programs.status_code == 502

    latest = await client.get("/api/search", params={"fundClassification": "קרנות השתלמות", "fundId": "123"})
    assert latest.status_code == 502
