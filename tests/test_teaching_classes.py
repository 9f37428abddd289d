"""Tests for /api/teaching-classes."""
import pytest
from httpx import AsyncClient


def _payload(**overrides):
    data = {
        "academic_year": "2023-2024",
        "subject": "Sistemas Distribuidos",
        "course": "3",
        "type": "theory",
        "degree": "Grado en Ingeniería Informática",
        "semester": "1",
        "category": "titular",
        "teaching_language": "castellano",
    }
    data.update(overrides)
    return data


async def _create_class(client: AsyncClient, headers, **overrides) -> dict:
    resp = await client.post("/api/teaching-classes", json=_payload(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_normalises_academic_year(client: AsyncClient, user_headers):
    created = await _create_class(client, user_headers, academic_year="2022/2023", description="  ")
    assert created["academic_year"] == "2022-2023"
    assert created["description"] is None
    assert created["full_description"] == (
        "Sistemas Distribuidos - Grado en Ingeniería Informática (Curso 3, theory)"
    )


@pytest.mark.asyncio
async def test_defaults(client: AsyncClient, user_headers):
    payload = _payload()
    for key in ("course", "type", "semester", "category", "teaching_language"):
        payload.pop(key)
    resp = await client.post("/api/teaching-classes", json=payload, headers=user_headers)
    data = resp.json()["data"]
    assert data["course"] == "1"
    assert data["type"] == "theory"
    assert data["semester"] == ""
    assert data["category"] == "titular"
    assert data["teaching_language"] == "castellano"


@pytest.mark.asyncio
async def test_invalid_academic_year(client: AsyncClient, user_headers):
    resp = await client.post(
        "/api/teaching-classes", json=_payload(academic_year="2023"), headers=user_headers
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "academic_year"


@pytest.mark.asyncio
async def test_filters(client: AsyncClient, user_headers):
    await _create_class(client, user_headers, subject="Redes", teaching_language="ingles")
    await _create_class(client, user_headers, subject="Bases de Datos", course="2", category="catedratico")
    await _create_class(client, user_headers, subject="TFM seminar", academic_year="2021-2022", course="posgrado")

    resp = await client.get("/api/teaching-classes", params={"teaching_language": "ingles"})
    assert [c["subject"] for c in resp.json()["data"]] == ["Redes"]

    resp = await client.get("/api/teaching-classes", params={"category": "catedratico"})
    assert [c["subject"] for c in resp.json()["data"]] == ["Bases de Datos"]

    resp = await client.get("/api/teaching-classes", params={"academic_year": "2021/2022"})
    assert [c["subject"] for c in resp.json()["data"]] == ["TFM seminar"]

    resp = await client.get("/api/teaching-classes", params={"search": "datos"})
    assert resp.json()["pagination"]["total"] == 1

    resp = await client.get("/api/teaching-classes")
    # default sort: academic year, newest first
    assert resp.json()["data"][-1]["academic_year"] == "2021-2022"


@pytest.mark.asyncio
async def test_partial_update(client: AsyncClient, user_headers):
    created = await _create_class(client, user_headers, description="Original")
    resp = await client.put(
        f"/api/teaching-classes/{created['id']}",
        json={"course": "4", "description": ""},
        headers=user_headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["course"] == "4"
    assert data["description"] is None
    assert data["subject"] == created["subject"]


@pytest.mark.asyncio
async def test_delete_then_404(client: AsyncClient, user_headers, admin_headers):
    created = await _create_class(client, user_headers)
    resp = await client.delete(f"/api/teaching-classes/{created['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Class deleted successfully"}

    resp = await client.get(f"/api/teaching-classes/{created['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, user_headers):
    await _create_class(client, user_headers, course="1")
    await _create_class(client, user_headers, course="1", teaching_language="ingles")
    await _create_class(client, user_headers, course="2", academic_year="2022-2023", type="practice")

    data = (await client.get("/api/teaching-classes/stats")).json()["data"]
    assert data["totalClasses"] == 3
    assert data["yearStats"] == [
        {"_id": "2023-2024", "count": 2},
        {"_id": "2022-2023", "count": 1},
    ]
    assert data["courseStats"] == [{"_id": "1", "count": 2}, {"_id": "2", "count": 1}]
    assert {"_id": "practice", "count": 1} in data["typeStats"]
    assert {"_id": "ingles", "count": 1} in data["languageStats"]
