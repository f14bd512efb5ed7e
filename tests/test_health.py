"""Root and health endpoints."""


async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["health"] == "/health"


async def test_health_reports_each_component(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["database"] == "healthy"
    assert body["notificationService"] == "healthy"
    # No Redis on the test port
    assert body["redis"].startswith("unhealthy")
    assert body["status"] == "degraded"


async def test_malformed_json_is_400(client):
    response = await client.post(
        "/reservations", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["success"] is False
