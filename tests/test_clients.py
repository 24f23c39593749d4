"""Client and platform API tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_list_clients_empty(client: AsyncClient):
    resp = await client.get("/api/clients/")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_create_and_get_client(client: AsyncClient):
    resp = await client.post("/api/clients/", json={"name": "Acme Corp", "email": "ops@acme.test"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Acme Corp"
    assert data["is_active"] is True

    resp = await client.get(f"/api/clients/{data['id']}")
    assert resp.status_code == 200
    assert resp.json()["email"] == "ops@acme.test"

    resp = await client.get("/api/clients/999")
    assert resp.status_code == 404
    assert resp.json()["category"] == "not_found"


@pytest.mark.asyncio
async def test_create_client_requires_name(client: AsyncClient):
    resp = await client.post("/api/clients/", json={"name": ""})
    assert resp.status_code == 422
    body = resp.json()
    assert body["status"] == "error"
    assert body["category"] == "validation_error"
    assert body["errors"][0]["loc"] == ["body", "name"]


@pytest.mark.asyncio
async def test_platforms_by_category(client: AsyncClient, seeded):
    resp = await client.get("/api/platforms/", params={"category_id": seeded["Social"]})
    assert [p["name"] for p in resp.json()] == ["Twitter"]

    resp = await client.get("/api/platforms/")
    assert [p["name"] for p in resp.json()] == ["AWS", "Twitter"]


@pytest.mark.asyncio
async def test_duplicate_platform(client: AsyncClient, seeded):
    resp = await client.post("/api/platforms/", json={"name": "AWS"})
    assert resp.status_code == 409
    assert resp.json() == {
        "status": "error",
        "category": "conflict",
        "message": "Platform already exists",
    }


@pytest.mark.asyncio
async def test_platform_with_unknown_category(client: AsyncClient):
    resp = await client.post("/api/platforms/", json={"name": "GitHub", "category_id": 77})
    assert resp.status_code == 422
    assert resp.json()["category"] == "reference_error"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.json() == {"status": "ok", "service": "securevault"}


@pytest.mark.asyncio
async def test_unknown_route_is_structured(client: AsyncClient):
    resp = await client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "category": "not_found", "message": "Not Found"}

    resp = await client.put("/health")
    assert resp.status_code == 405
    assert resp.json()["category"] == "method_not_allowed"
