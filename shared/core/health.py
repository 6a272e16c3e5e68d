"""
Health probes for the order & delivery service.

``/health/live`` only proves the process answers. ``/health/ready`` checks the
database, the tables the service needs, and host resources. ``/health/startup``
checks migrations and configuration. Check entries use the
``componentType``/``observedValue`` vocabulary of the IETF health-check draft.
"""

import os
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import psutil
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_REQUIRED_ENV = (
    "POSTGRES_HOST",
    "POSTGRES_DB",
    "POSTGRES_USER",
    "POSTGRES_PASSWORD",
)
DEFAULT_REQUIRED_TABLES = ("orders", "order_items", "deliveries", "payments")

# (fail below, warn below)
DISK_FREE_GB_LIMITS = (1.0, 5.0)
MEMORY_FREE_MB_LIMITS = (100.0, 500.0)

Check = Dict[str, Any]


class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _component(component_type: str, state: HealthStatus, **details: Any) -> Check:
    return {"status": state, "componentType": component_type, "time": _now(), **details}


def _grade(value: float, limits: Tuple[float, float]) -> HealthStatus:
    fail_below, warn_below = limits
    if value < fail_below:
        return HealthStatus.FAIL
    if value < warn_below:
        return HealthStatus.WARN
    return HealthStatus.PASS


class ServiceHealth:
    """
    Health router factory plus probe bookkeeping for one service.

    The engine used by the database probes is created on first use.
    """

    def __init__(
        self,
        service_name: str,
        version: str = "1.0.0",
        database_url: Optional[str] = None,
        required_env: Iterable[str] = DEFAULT_REQUIRED_ENV,
        required_tables: Iterable[str] = DEFAULT_REQUIRED_TABLES,
    ):
        self.service_name = service_name
        self.version = version
        self.database_url = database_url
        self.required_env = tuple(required_env)
        self.required_tables = tuple(required_tables)
        self.start_time = time.time()
        self.checks_performed = 0
        self._engine: Optional[Engine] = None

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health")
        async def health() -> Dict[str, Any]:
            return {
                "status": HealthStatus.PASS,
                "serviceId": self.service_name,
                "version": self.version,
                "uptime_seconds": round(time.time() - self.start_time, 1),
                "timestamp": _now(),
            }

        @router.get("/health/live")
        async def live() -> Dict[str, str]:
            return {"status": "alive"}

        @router.get("/health/ready")
        async def ready() -> JSONResponse:
            return self._report(self.perform_readiness_checks())

        @router.get("/health/startup")
        async def startup() -> JSONResponse:
            return self._report(self.perform_startup_checks())

        @router.get("/metrics")
        async def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            with process.oneshot():
                memory = process.memory_info()
                return {
                    "service": self.service_name,
                    "version": self.version,
                    "uptime_seconds": time.time() - self.start_time,
                    "checks_performed": self.checks_performed,
                    "process": {
                        "memory_rss_bytes": memory.rss,
                        "cpu_percent": process.cpu_percent(),
                        "num_threads": process.num_threads(),
                        "open_files": len(process.open_files()),
                    },
                }

        return router

    def _report(self, checks: Dict[str, Check]) -> JSONResponse:
        overall = self.calculate_overall_status(checks)
        code = status.HTTP_503_SERVICE_UNAVAILABLE if overall == HealthStatus.FAIL else status.HTTP_200_OK
        return JSONResponse(status_code=code, content={
            "status": overall,
            "serviceId": self.service_name,
            "version": self.version,
            "checks": checks,
            "timestamp": _now(),
        })

    def _run(self, probes: Iterable[Tuple[str, Callable[[], Check]]]) -> Dict[str, Check]:
        self.checks_performed += 1
        return {name: probe() for name, probe in probes}

    def perform_readiness_checks(self) -> Dict[str, Check]:
        probes = [
            ("storage:disk_space", self._check_disk_space),
            ("system:memory", self._check_memory),
        ]
        if self.database_url:
            probes[:0] = [
                ("database:connectivity", self._check_database),
                ("database:schema", self._check_tables),
            ]
        return self._run(probes)

    def perform_startup_checks(self) -> Dict[str, Check]:
        probes = [("config:environment", self._check_environment)]
        if self.database_url:
            probes.insert(0, ("database:migrations", self._check_migrations))
        return self._run(probes)

    def _get_engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(self.database_url, pool_pre_ping=True)
        return self._engine

    def _table_names(self) -> set:
        with self._get_engine().connect() as conn:
            return set(inspect(conn).get_table_names())

    def _check_database(self) -> Check:
        started = time.perf_counter()
        try:
            with self._get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Database probe failed", extra={'extra_fields': {'error': str(e)}})
            return _component("datastore", HealthStatus.FAIL, output=str(e))
        elapsed_ms = (time.perf_counter() - started) * 1000
        return _component("datastore", HealthStatus.PASS, observedValue=round(elapsed_ms, 2), observedUnit="ms")

    def _check_tables(self) -> Check:
        try:
            missing = sorted(set(self.required_tables) - self._table_names())
        except SQLAlchemyError as e:
            return _component("datastore", HealthStatus.FAIL, output=str(e))
        if missing:
            return _component("datastore", HealthStatus.FAIL, output=f"Missing tables: {', '.join(missing)}")
        return _component("datastore", HealthStatus.PASS)

    def _check_migrations(self) -> Check:
        try:
            migrated = "alembic_version" in self._table_names()
        except SQLAlchemyError as e:
            return _component("datastore", HealthStatus.FAIL, output=str(e))
        if not migrated:
            return _component("datastore", HealthStatus.WARN, output="alembic_version table not found")
        return _component("datastore", HealthStatus.PASS)

    def _check_disk_space(self) -> Check:
        free_gb = psutil.disk_usage("/").free / 1024 ** 3
        return _component("system", _grade(free_gb, DISK_FREE_GB_LIMITS),
                          observedValue=round(free_gb, 2), observedUnit="GB")

    def _check_memory(self) -> Check:
        free_mb = psutil.virtual_memory().available / 1024 ** 2
        return _component("system", _grade(free_mb, MEMORY_FREE_MB_LIMITS),
                          observedValue=round(free_mb, 2), observedUnit="MB")

    def _check_environment(self) -> Check:
        missing = [name for name in self.required_env if not os.getenv(name)]
        if missing:
            return _component("configuration", HealthStatus.FAIL,
                              output=f"Missing environment variables: {', '.join(missing)}")
        return _component("configuration", HealthStatus.PASS)

    @staticmethod
    def calculate_overall_status(checks: Dict[str, Check]) -> HealthStatus:
        states = {check["status"] for check in checks.values()}
        for state in (HealthStatus.FAIL, HealthStatus.WARN):
            if state in states:
                return state
        return HealthStatus.PASS
