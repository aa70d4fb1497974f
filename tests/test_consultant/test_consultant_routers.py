"""Integration tests for the Consultant service routers.

A standalone FastAPI app is wired with an in-memory catalog holding the
shared sample records, so every test starts from the same four entries.
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.consultant.services.conversation import SessionRegistry
from src.shared.constants import CONSULTANT_SERVICE_NAME, VERSION
from src.shared.errors import register_exception_handlers
from src.shared.logging import TraceIDMiddleware

ECOMMERCE_TEXT = "an e-commerce platform for millions of users on a tight budget with a small team"


def _build_app(seeded_service, max_alternatives: int = 3) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app):
        app.state.start_time = time.time()
        app.state.blob_store = seeded_service.repository.blob_store
        app.state.repository = seeded_service.repository
        app.state.sessions = SessionRegistry(max_alternatives=max_alternatives)
        app.state.max_alternatives = max_alternatives
        app.state.response_delay_ms = 0
        yield

    test_app = FastAPI(title="Consultant Service", version=VERSION, lifespan=lifespan)
    test_app.add_middleware(TraceIDMiddleware)
    register_exception_handlers(test_app)

    from src.consultant.routers.health import router as health_router
    from src.consultant.routers.consultant import router as consultant_router
    from src.consultant.routers.schema import router as schema_router

    test_app.include_router(health_router)
    test_app.include_router(consultant_router)
    test_app.include_router(schema_router)
    return test_app


@pytest.fixture
def client(seeded_service):
    with TestClient(_build_app(seeded_service)) as c:
        yield c


@pytest.fixture
def session_id(client: TestClient) -> str:
    resp = client.post("/api/consultant/sessions")
    assert resp.status_code == 201
    return resp.json()["id"]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    def test_health(self, client: TestClient, session_id: str):
        data = client.get("/api/health").json()
        assert data["status"] == "healthy"
        assert data["service_name"] == CONSULTANT_SERVICE_NAME
        assert data["details"]["backend"] == "InMemoryBlobStore"
        assert data["details"]["active_sessions"] == 1


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class TestSessionEndpoints:
    def test_create(self, client: TestClient):
        data = client.post("/api/consultant/sessions").json()
        assert len(data["messages"]) == 1
        assert data["messages"][0]["role"] == "assistant"
        assert data["requirements"]["project_type"] is None
        assert data["recommendations"] is None

    def test_get(self, client: TestClient, session_id: str):
        assert client.get(f"/api/consultant/sessions/{session_id}").json()["id"] == session_id

    def test_get_missing(self, client: TestClient):
        resp = client.get("/api/consultant/sessions/nope")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Session nope not found"}

    def test_delete(self, client: TestClient, session_id: str):
        assert client.delete(f"/api/consultant/sessions/{session_id}").status_code == 204
        assert client.get(f"/api/consultant/sessions/{session_id}").status_code == 404

    def test_follow_up_message(self, client: TestClient, session_id: str):
        resp = client.post(
            f"/api/consultant/sessions/{session_id}/messages", json={"content": "a website"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["requirements"]["project_type"] == "web application"
        assert data["recommendations"] is None
        assert data["message"]["role"] == "assistant"

    def test_recommendation_message(self, client: TestClient, session_id: str):
        data = client.post(
            f"/api/consultant/sessions/{session_id}/messages", json={"content": ECOMMERCE_TEXT}
        ).json()
        assert data["recommendations"]["primary"]["database"]["slug"] == "postgresql"
        assert data["message"]["content"].startswith("🎯")

        state = client.get(f"/api/consultant/sessions/{session_id}").json()
        assert len(state["messages"]) == 3
        assert state["recommendations"]["primary"]["score"] == 90

    def test_empty_message_rejected(self, client: TestClient, session_id: str):
        resp = client.post(f"/api/consultant/sessions/{session_id}/messages", json={"content": ""})
        assert resp.status_code == 422

    def test_message_to_missing_session(self, client: TestClient):
        resp = client.post("/api/consultant/sessions/nope/messages", json={"content": "hi"})
        assert resp.status_code == 404

    def test_reset(self, client: TestClient, session_id: str):
        client.post(f"/api/consultant/sessions/{session_id}/messages", json={"content": ECOMMERCE_TEXT})
        data = client.post(f"/api/consultant/sessions/{session_id}/reset").json()
        assert len(data["messages"]) == 1
        assert data["recommendations"] is None


class TestReportAndDiagram:
    def test_report_before_recommendation(self, client: TestClient, session_id: str):
        assert client.get(f"/api/consultant/sessions/{session_id}/report").status_code == 404
        assert client.get(f"/api/consultant/sessions/{session_id}/diagram").status_code == 404

    def test_report(self, client: TestClient, session_id: str):
        client.post(f"/api/consultant/sessions/{session_id}/messages", json={"content": ECOMMERCE_TEXT})
        resp = client.get(f"/api/consultant/sessions/{session_id}/report")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/markdown")
        assert "database-recommendation.md" in resp.headers["content-disposition"]
        assert resp.text.startswith("# Database Recommendation Report")
        assert "## Primary Recommendation: PostgreSQL" in resp.text

    def test_diagram(self, client: TestClient, session_id: str):
        client.post(f"/api/consultant/sessions/{session_id}/messages", json={"content": ECOMMERCE_TEXT})
        data = client.get(f"/api/consultant/sessions/{session_id}/diagram").json()
        assert "loadbalancer" in [n["id"] for n in data["nodes"]]
        assert data["mermaid"].startswith("flowchart TD")


# ---------------------------------------------------------------------------
# Stateless helpers
# ---------------------------------------------------------------------------


class TestStatelessEndpoints:
    def test_extract(self, client: TestClient):
        data = client.post("/api/consultant/extract", json={"text": ECOMMERCE_TEXT}).json()
        assert data == {
            "project_type": "e-commerce platform",
            "expected_load": "high",
            "budget": "limited",
            "team": "small",
            "performance": [],
        }

    def test_recommend(self, client: TestClient):
        resp = client.post("/api/consultant/recommend", json={
            "project_type": "e-commerce platform",
            "expected_load": "high",
            "budget": "limited",
            "team": "small",
        })
        data = resp.json()
        assert data["primary"]["database"]["slug"] == "postgresql"
        assert [a["database"]["slug"] for a in data["alternatives"]] == [
            "mongodb", "amazon-dynamodb", "redis",
        ]

    def test_recommend_invalid_value(self, client: TestClient):
        resp = client.post("/api/consultant/recommend", json={"budget": "infinite"})
        assert resp.status_code == 422

    def test_recommend_max_alternatives(self, seeded_service):
        with TestClient(_build_app(seeded_service, max_alternatives=1)) as c:
            data = c.post("/api/consultant/recommend", json={
                "project_type": "e-commerce platform", "expected_load": "high",
            }).json()
        assert len(data["alternatives"]) == 1


# ---------------------------------------------------------------------------
# Schema design
# ---------------------------------------------------------------------------


class TestSchemaEndpoints:
    def test_generate_default_target(self, client: TestClient):
        data = client.post("/api/schema/generate", json={"use_case": "online shop"}).json()
        assert data["pattern"] == "e-commerce"
        assert data["target"] == {"name": "PostgreSQL", "type": "SQL"}
        assert data["sql"].startswith("-- Database Schema for online_shop_db")
        assert data["document_schema"] is None

    def test_generate_from_catalog_slug(self, client: TestClient):
        data = client.post("/api/schema/generate", json={
            "use_case": "online shop", "database_slug": "mongodb",
        }).json()
        assert data["target"] == {"name": "MongoDB", "type": "NoSQL"}
        assert data["sql"] == ""
        assert "users" in data["document_schema"]

    def test_generate_unknown_slug(self, client: TestClient):
        resp = client.post("/api/schema/generate", json={
            "use_case": "online shop", "database_slug": "nope",
        })
        assert resp.status_code == 404

    def test_sql_download(self, client: TestClient):
        resp = client.post("/api/schema/sql", json={"use_case": "online shop"})
        assert resp.status_code == 200
        assert 'filename="online_shop_db.sql"' in resp.headers["content-disposition"]
        assert "CREATE TABLE users (" in resp.text

    def test_sql_rejects_document_target(self, client: TestClient):
        resp = client.post("/api/schema/sql", json={
            "use_case": "online shop", "target": {"name": "MongoDB", "type": "NoSQL"},
        })
        assert resp.status_code == 422

    def test_analyze(self, client: TestClient):
        data = client.post("/api/schema/analyze", json={
            "use_case": "a global marketplace",
            "requirements": {"expected_load": "high"},
        }).json()
        assert data["scaling_considerations"] == [
            "Multi-region deployment",
            "Horizontal scaling required",
            "Database sharding consideration",
        ]

    def test_empty_use_case(self, client: TestClient):
        assert client.post("/api/schema/generate", json={"use_case": ""}).status_code == 422
