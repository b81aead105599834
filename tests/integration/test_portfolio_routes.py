import pytest


def _snapshot(fund_id, **values):
    snapshot = {"fund_id": fund_id, "report_period": "202303"}
    snapshot.update(values)
    return snapshot


@pytest.mark.asyncio
@pytest.mark.integration
async def test_aggregate_equal_weights(client):
    resp = await client.post(
        "/api/portfolio/aggregate",
        json={
            "lines": [
                {"snapshot": _snapshot("1", twr=5.0, equity_exposure=40, total_assets=100), "allocation": 1000},
                {"snapshot": _snapshot("2", twr=15.0), "allocation": "1,000"},
            ]
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_allocation"] == 2000.0
    assert data["weighted"]["twr"] == 10.0
    assert data["weighted"]["equity_exposure"] == 40.0
    assert data["weighted"]["foreign_exposure"] is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_aggregate_without_allocation_is_unavailable(client):
    resp = await client.post(
        "/api/portfolio/aggregate",
        json={"lines": [{"snapshot": _snapshot("1", twr=5.0)}]},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_allocation"] == 0.0
    assert set(data["weighted"].values()) == {None}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_aggregate_negative_allocation_is_400(client):
    resp = await client.post(
        "/api/portfolio/aggregate",
        json={"lines": [{"snapshot": _snapshot("1", twr=5.0), "allocation": -5}]},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_portfolio_report_json(client):
    resp = await client.post(
        "/api/portfolio/report",
        json={
            "startDate": "2023-01-01",
            "endDate": "2023-03-01",
            "holdings": [
                {"fundId": "123", "allocation": 1000},
                {"fundId": "777", "allocation": "3,000"},
                {"fundId": "unknown", "allocation": 500},
            ],
        },
    )
    assert resp.status_code == 200
    report = resp.json()
    rows = {row["fund"]: row for row in report["rows"]}

    assert rows["123 - Fund"]["twr"] == "2.50%"
    assert rows["777 - Pension"]["foreign_exposure"] == "25.00%"
    assert rows["unknown"]["twr"] == "N/A"
    assert report["totals"]["allocation"] == "4,500.00"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_portfolio_report_csv(client):
    resp = await client.post(
        "/api/portfolio/report?format=csv",
        json={
            "startDate": "2023-01-01",
            "endDate": "2023-03-01",
            "holdings": [{"fundId": "123", "allocation": 1000}],
        },
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0].startswith("Fund,")
    assert lines[-1].startswith("Total,")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_portfolio_report_requires_dates(client):
    resp = await client.post("/api/portfolio/report", json={"holdings": [{"fundId": "123"}]})
    assert resp.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_portfolio_report_with_comparison(client):
    resp = await client.post(
        "/api/portfolio/report",
        json={
            "startDate": "2023-01-01",
            "endDate": "2023-03-01",
            "holdings": [{"fundId": "123", "allocation": 1000}],
            "comparisonHoldings": [{"fundId": "777", "allocation": "2,000"}],
            "comparisonTitle": "Pension only",
        },
    )
    assert resp.status_code == 200
    report = resp.json()

    assert [row["fund"] for row in report["rows"]] == ["123 - Fund"]
    assert report["totals"]["allocation"] == "1,000.00"

    comparison = report["comparison"]
    assert comparison["title"] == "Pension only"
    assert [row["fund"] for row in comparison["rows"]] == ["777 - Pension"]
    assert comparison["rows"][0]["twr"] == "1.00%"
    assert comparison["totals"]["allocation"] == "2,000.00"
    assert comparison["totals"]["foreign_exposure"] == "25.00%"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_portfolio_report_csv_with_comparison(client):
    resp = await client.post(
        "/api/portfolio/report?format=csv",
        json={
            "startDate": "2023-01-01",
            "endDate": "2023-03-01",
            "holdings": [{"fundId": "123", "allocation": 1000}],
            "comparisonHoldings": [{"fundId": "777", "allocation": 1000}],
        },
    )
    assert resp.status_code == 200
    lines = resp.text.strip().splitlines()
    assert "Comparison Portfolio" in lines
    assert lines[-2].startswith("777 - Pension,")
    assert lines[-1].startswith("Total,")
