"""Tests for /api/final-works."""
import pytest
from httpx import AsyncClient


def _payload(**overrides):
    data = {
        "title": "Indoor positioning with BLE",
        "author": "Ana García",
        "type": "tfg",
        "degree": "Grado en Ingeniería Informática",
        "defense_date": "2023-07-10",
        "grade": "Sobresaliente",
    }
    data.update(overrides)
    return data


async def _create_work(client: AsyncClient, headers, **overrides) -> dict:
    resp = await client.post("/api/final-works", json=_payload(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_type_is_required(client: AsyncClient, user_headers):
    payload = _payload()
    payload.pop("type")
    resp = await client.post("/api/final-works", json=payload, headers=user_headers)
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "type"


@pytest.mark.asyncio
async def test_put_clears_degree_and_grade(client: AsyncClient, user_headers):
    created = await _create_work(client, user_headers)
    replacement = {k: v for k, v in _payload().items() if k not in ("degree", "grade")}

    resp = await client.put(f"/api/final-works/{created['id']}", json=replacement, headers=user_headers)
    data = resp.json()["data"]
    assert data["degree"] is None
    assert data["grade"] is None


@pytest.mark.asyncio
async def test_type_filter_and_search(client: AsyncClient, user_headers):
    await _create_work(client, user_headers, title="Thesis on sensing", type="thesis")
    await _create_work(client, user_headers, author="Luis Pérez", type="tfm")

    resp = await client.get("/api/final-works", params={"type": "thesis"})
    assert [w["title"] for w in resp.json()["data"]] == ["Thesis on sensing"]

    resp = await client.get("/api/final-works", params={"search": "pérez"})
    assert resp.json()["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, user_headers):
    await _create_work(client, user_headers, defense_date="2022-07-01")
    await _create_work(client, user_headers, defense_date="2023-07-01")
    await _create_work(client, user_headers, defense_date="2023-09-01", type="tfm")

    data = (await client.get("/api/final-works/stats")).json()["data"]
    assert data["totalWorks"] == 3
    assert data["yearStats"] == [{"_id": 2023, "count": 2}, {"_id": 2022, "count": 1}]
    assert data["typeStats"] == [{"_id": "tfg", "count": 2}, {"_id": "tfm", "count": 1}]
