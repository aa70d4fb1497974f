"""Tests for structured JSON logging and the trace id middleware."""
from __future__ import annotations

import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.shared.logging import (
    TRACE_HEADER,
    JSONFormatter,
    TraceIDMiddleware,
    setup_logging,
    trace_id_var,
)


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("catalog.repository", logging.INFO, __file__, 1, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        entry = json.loads(JSONFormatter("catalog").format(_record("hello")))
        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["service_name"] == "catalog"
        assert entry["logger"] == "catalog.repository"

    def test_context_fields_copied(self):
        entry = json.loads(JSONFormatter("catalog").format(_record("saved", slug="redis")))
        assert entry["slug"] == "redis"
        assert "session_id" not in entry

    def test_trace_id_included(self):
        token = trace_id_var.set("abc-123")
        try:
            entry = json.loads(JSONFormatter("catalog").format(_record("x")))
        finally:
            trace_id_var.reset(token)
        assert entry["trace_id"] == "abc-123"


class TestSetupLogging:
    def test_single_handler(self):
        setup_logging("test-service", "debug")
        logger = setup_logging("test-service", "debug")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)


class TestTraceIDMiddleware:
    def _client(self) -> TestClient:
        app = FastAPI()
        app.add_middleware(TraceIDMiddleware)

        @app.get("/ping")
        async def ping():
            return {"trace_id": trace_id_var.get()}

        return TestClient(app)

    def test_generates_trace_id(self):
        resp = self._client().get("/ping")
        assert resp.headers[TRACE_HEADER]
        assert resp.json()["trace_id"] == resp.headers[TRACE_HEADER]

    def test_reuses_incoming_trace_id(self):
        resp = self._client().get("/ping", headers={TRACE_HEADER: "given-id"})
        assert resp.headers[TRACE_HEADER] == "given-id"
        assert resp.json()["trace_id"] == "given-id"

    def test_access_log_entry(self, caplog):
        caplog.set_level(logging.DEBUG, logger="shared.access")
        self._client().get("/ping")
        records = [r for r in caplog.records if r.name == "shared.access"]
        assert len(records) == 1
        assert records[0].getMessage() == "GET /ping -> 200"
        assert records[0].status_code == 200
        assert records[0].duration_ms >= 0

    def test_access_fields_in_json(self):
        record = _record("GET /ping -> 200", method="GET", path="/ping", status_code=200, duration_ms=1.5)
        entry = json.loads(JSONFormatter("consultant").format(record))
        assert entry["method"] == "GET"
        assert entry["path"] == "/ping"
        assert entry["status_code"] == 200
        assert entry["duration_ms"] == 1.5
