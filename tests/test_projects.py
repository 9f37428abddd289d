"""Tests for /api/projects."""
import pytest
from httpx import AsyncClient


def _payload(**overrides):
    data = {
        "title": "Smart Campus",
        "reference": "PID2021-1234",
        "funding_agency": "Ministerio de Ciencia",
        "principal_investigator": "J. Fontecha",
        "start_date": "2021-09-01",
        "end_date": "2024-08-31",
        "budget": 120000,
        "description": "Sensing infrastructure for the campus",
        "url": "https://example.org/smart-campus",
    }
    data.update(overrides)
    return data


async def _create_project(client: AsyncClient, headers, **overrides) -> dict:
    resp = await client.post("/api/projects", json=_payload(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_round_trip(client: AsyncClient, user_headers):
    created = await _create_project(client, user_headers)
    resp = await client.get(f"/api/projects/{created['id']}")
    data = resp.json()["data"]
    assert data["title"] == "Smart Campus"
    assert data["start_date"] == "2021-09-01"
    assert data["budget"] == 120000


@pytest.mark.asyncio
async def test_end_before_start_rejected(client: AsyncClient, user_headers):
    resp = await client.post(
        "/api/projects",
        json=_payload(start_date="2022-01-01", end_date="2021-01-01"),
        headers=user_headers,
    )
    assert resp.status_code == 400
    assert "end_date" in resp.json()["errors"][0]["message"]


@pytest.mark.asyncio
async def test_partial_update_checks_merged_dates(client: AsyncClient, user_headers):
    created = await _create_project(client, user_headers)

    resp = await client.put(
        f"/api/projects/{created['id']}", json={"end_date": "2020-01-01"}, headers=user_headers
    )
    assert resp.status_code == 400
    assert resp.json()["errors"] == [
        {"field": "end_date", "message": "end_date must be on or after start_date"}
    ]

    resp = await client.put(
        f"/api/projects/{created['id']}", json={"budget": 5000}, headers=user_headers
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["budget"] == 5000
    assert data["end_date"] == "2024-08-31"


@pytest.mark.asyncio
async def test_year_filter_matches_start_or_end(client: AsyncClient, user_headers):
    await _create_project(client, user_headers, title="Starts 2019", start_date="2019-03-01", end_date="2020-03-01")
    await _create_project(client, user_headers, title="Ends 2019", start_date="2017-01-01", end_date="2019-12-31")
    await _create_project(client, user_headers, title="Spans 2019", start_date="2018-01-01", end_date="2020-12-31")

    resp = await client.get("/api/projects", params={"year": "2019"})
    titles = {p["title"] for p in resp.json()["data"]}
    assert titles == {"Starts 2019", "Ends 2019"}

    # year and search are combined
    resp = await client.get("/api/projects", params={"year": "2019", "search": "ends"})
    assert [p["title"] for p in resp.json()["data"]] == ["Ends 2019"]


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, user_headers):
    await _create_project(client, user_headers, start_date="2021-01-01", budget=1000)
    await _create_project(client, user_headers, start_date="2021-06-01", budget=500.5)
    await _create_project(client, user_headers, start_date="2019-01-01", budget=None)

    data = (await client.get("/api/projects/stats")).json()["data"]
    assert data["totalProjects"] == 3
    assert data["totalBudget"] == 1500.5
    assert data["yearStats"] == [{"_id": 2021, "count": 2}, {"_id": 2019, "count": 1}]


@pytest.mark.asyncio
async def test_stats_empty(client: AsyncClient):
    data = (await client.get("/api/projects/stats")).json()["data"]
    assert data == {"yearStats": [], "totalProjects": 0, "totalBudget": 0}
