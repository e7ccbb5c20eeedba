from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.main import DynamicCORSMiddleware

PATTERN = r"^https://([a-z0-9-]+\.)?microburbs\.com\.au$"


def build_client(production):
    app = FastAPI()
    app.add_middleware(DynamicCORSMiddleware, origin_pattern=PATTERN, production=production)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    return TestClient(app)


def test_production_allows_matching_subdomains():
    response = build_client(True).get("/ping", headers={"Origin": "https://www.microburbs.com.au"})
    assert response.headers["access-control-allow-origin"] == "https://www.microburbs.com.au"
    assert response.headers["access-control-allow-credentials"] == "true"


def test_production_rejects_other_origins():
    response = build_client(True).get("/ping", headers={"Origin": "https://evil.example"})
    assert "access-control-allow-origin" not in response.headers


def test_development_allows_any_origin():
    response = build_client(False).options("/ping", headers={"Origin": "http://localhost:3000"})
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
