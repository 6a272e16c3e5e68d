import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from shared.core import HealthStatus, SecurityFilter, ServiceHealth, get_logger, set_request_context
from shared.core.logging_config import PerformanceFilter, StructuredFormatter


def _record(message="hello", **attrs):
    record = logging.LogRecord("boozebuddies.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


def _client(health: ServiceHealth) -> TestClient:
    app = FastAPI()
    app.include_router(health.create_health_router())
    return TestClient(app)


class TestLogging:
    def test_security_filter_masks_sensitive_fields(self):
        record = _record(extra_fields={
            "delivery_id": 3,
            "id_number": "D1234567",
            "token": "abc",
            "nested": {"password": "hunter2"},
        })

        assert SecurityFilter().filter(record) is True
        assert record.extra_fields == {
            "delivery_id": 3,
            "id_number": "***4567",
            "token": "***",
            "nested": {"password": "***"},
        }

    def test_performance_filter_flags_slow_requests(self):
        slow = _record(extra_fields={"duration_ms": 1500.1234})
        fast = _record(extra_fields={"duration_ms": 12.0})
        PerformanceFilter().filter(slow)
        PerformanceFilter().filter(fast)
        assert slow.extra_fields == {"duration_ms": 1500.12, "slow": True}
        assert fast.extra_fields["slow"] is False

    def test_formatter_emits_one_json_object(self):
        record = _record("Order created", request_id="req-1", extra_fields={"order_id": 9})
        entry = json.loads(StructuredFormatter("order-delivery-service", "2.0.0").format(record))

        assert entry["message"] == "Order created"
        assert entry["service"]["name"] == "order-delivery-service"
        assert entry["service"]["version"] == "2.0.0"
        assert entry["context"] == {"request_id": "req-1"}
        assert entry["fields"] == {"order_id": 9}
        assert "error" not in entry

    def test_adapter_copies_request_context(self):
        set_request_context(request_id="req-7", actor_id="driver-2")
        try:
            _, kwargs = get_logger("x").process("msg", {"extra": {"extra_fields": {}}})
        finally:
            set_request_context()
        assert kwargs["extra"]["request_id"] == "req-7"
        assert kwargs["extra"]["actor_id"] == "driver-2"
        assert "correlation_id" not in kwargs["extra"]


class TestHealth:
    def test_startup_without_database(self):
        response = _client(ServiceHealth("svc", required_env=())).get("/health/startup")
        assert response.status_code == 200
        assert response.json()["checks"]["config:environment"]["status"] == "pass"

    def test_startup_reports_missing_env(self, monkeypatch):
        monkeypatch.delenv("BOOZEBUDDIES_UNSET_VAR", raising=False)
        response = _client(ServiceHealth("svc", required_env=("BOOZEBUDDIES_UNSET_VAR",))).get("/health/startup")
        assert response.status_code == 503
        assert "BOOZEBUDDIES_UNSET_VAR" in response.json()["checks"]["config:environment"]["output"]

    def test_readiness_fails_without_tables(self):
        health = ServiceHealth("svc", database_url="sqlite://", required_env=())
        response = _client(health).get("/health/ready")

        checks = response.json()["checks"]
        assert response.status_code == 503
        assert checks["database:connectivity"]["status"] == "pass"
        assert checks["database:schema"]["status"] == "fail"
        assert "orders" in checks["database:schema"]["output"]
        assert health.checks_performed == 1

    def test_liveness_and_metrics(self):
        client = _client(ServiceHealth("svc", "3.1.0"))
        assert client.get("/health/live").json() == {"status": "alive"}
        metrics = client.get("/metrics").json()
        assert metrics["version"] == "3.1.0"
        assert metrics["process"]["memory_rss_bytes"] > 0

    def test_overall_status_takes_the_worst(self):
        worst = ServiceHealth.calculate_overall_status
        assert worst({}) == HealthStatus.PASS
        assert worst({"a": {"status": HealthStatus.PASS}, "b": {"status": HealthStatus.WARN}}) == HealthStatus.WARN
        assert worst({"a": {"status": HealthStatus.FAIL}, "b": {"status": HealthStatus.WARN}}) == HealthStatus.FAIL
