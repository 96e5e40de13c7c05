"""
Unit tests for observability features.

Tests cover:
- Structured logging with JSON format
- Request correlation ID generation and propagation
- Prometheus metrics collection
- Database query tracking
"""

import json
import logging
import re
import sys

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from app.core.observability import (
    DBMetricsWrapper,
    Metrics,
    ObservabilityMiddleware,
    StructuredFormatter,
    generate_request_id,
    get_request_id,
    metrics,
    record_operation,
    set_correlation_id,
    set_locale,
)


def _record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="app.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestId:
    def test_generate_request_id_is_uuid(self):
        assert re.fullmatch(
            r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
            generate_request_id(),
        )

    def test_set_and_get(self):
        set_correlation_id("req-42")
        assert get_request_id() == "req-42"


class TestStructuredFormatter:
    def test_formats_json_with_context_and_extra(self):
        set_correlation_id("req-1")
        set_locale("en-US")

        entry = json.loads(StructuredFormatter().format(_record(person_id=7)))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "app.test"
        assert entry["message"] == "hello"
        assert entry["request_id"] == "req-1"
        assert entry["locale"] == "en-US"
        assert entry["extra"] == {"person_id": 7}
        assert "trace_id" not in entry

    def test_includes_exception_summary(self):
        try:
            raise ValueError("bad input")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["exception"] == {"type": "ValueError", "message": "bad input"}


class TestObservabilityMiddleware:
    @pytest.fixture
    def client(self) -> TestClient:
        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware, metrics_instance=metrics)

        @app.get("/api/items/{item_id}")
        async def read_item(item_id: int):
            return {"id": item_id, "request_id": get_request_id()}

        return TestClient(app)

    def test_generates_request_id_header(self, client):
        response = client.get("/api/items/1")

        request_id = response.headers["X-Request-ID"]
        assert request_id
        assert response.json()["request_id"] == request_id

    def test_propagates_incoming_request_id(self, client):
        response = client.get("/api/items/1", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
        assert response.json()["request_id"] == "abc-123"

    def test_records_request_metrics(self):
        local = Metrics(CollectorRegistry())
        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware, metrics_instance=local)

        @app.get("/api/ping")
        async def ping():
            return {"ok": True}

        TestClient(app).get("/api/ping")

        samples = [
            sample
            for metric in local.registry.collect()
            if metric.name == "http_requests"
            for sample in metric.samples
            if sample.name == "http_requests_total"
        ]
        assert [(s.labels["method"], s.labels["status_code"], s.value) for s in samples] == [
            ("GET", "200", 1.0)
        ]


class TestMetrics:
    def test_record_operation(self):
        counter = metrics.person_operations_total.labels(operation="create", outcome="success")
        before = counter._value.get()

        record_operation("create", "success")

        assert counter._value.get() == before + 1

    def test_db_track_counts_success_and_error(self):
        local = Metrics(CollectorRegistry())
        wrapper = DBMetricsWrapper(local)

        with wrapper.track("person_get"):
            pass
        with pytest.raises(RuntimeError):
            with wrapper.track("person_get"):
                raise RuntimeError("boom")

        registry = local.registry
        assert registry.get_sample_value(
            "db_queries_total", {"operation": "person_get", "status": "success"}
        ) == 1
        assert registry.get_sample_value(
            "db_queries_total", {"operation": "person_get", "status": "error"}
        ) == 1
        assert registry.get_sample_value(
            "db_query_duration_seconds_count", {"operation": "person_get"}
        ) == 2
