import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from estateflow.health import (
    HealthMonitor,
    ServiceStatusTracker,
    check_service_health,
    collect_service_status,
    summarize_system_health,
)
from estateflow.models import HealthState, ServiceRecord, ServiceStatus

BASE = "http://estateflow.test"


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _status_by_path(codes):
    def handler(request):
        return httpx.Response(codes.get(request.url.path, 200))

    return handler


@pytest.mark.asyncio
async def test_check_service_health_ok_and_error_status():
    async with _client(_status_by_path({"/down": 503})) as client:
        assert await check_service_health(client, f"{BASE}/up") is True
        assert await check_service_health(client, f"{BASE}/down") is False


@pytest.mark.asyncio
async def test_check_service_health_never_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        assert await check_service_health(client, f"{BASE}/x") is False


@pytest.mark.asyncio
async def test_check_service_health_uses_head():
    methods = []

    def handler(request):
        methods.append(request.method)
        return httpx.Response(200)

    async with _client(handler) as client:
        await check_service_health(client, f"{BASE}/x")
    assert methods == ["HEAD"]


@pytest.mark.asyncio
async def test_tracker_records_timeout_as_unhealthy():
    async def handler(request):
        await asyncio.sleep(2)
        return httpx.Response(200)

    tracker = ServiceStatusTracker()
    async with _client(handler) as client:
        record = await tracker.check_service(client, "slow", f"{BASE}/slow", timeout=0.2)

    assert record.is_healthy is False
    assert record.response_time >= 180
    assert tracker.get_service_status("slow") is record
    assert tracker.get_unhealthy_services() == ["slow"]


@pytest.mark.asyncio
async def test_tracker_last_write_wins():
    healthy = {"value": False}

    def handler(request):
        return httpx.Response(200 if healthy["value"] else 500)

    tracker = ServiceStatusTracker()
    async with _client(handler) as client:
        await tracker.check_service(client, "api", f"{BASE}/api")
        assert tracker.get_unhealthy_services() == ["api"]
        healthy["value"] = True
        await tracker.check_service(client, "api", f"{BASE}/api")

    assert tracker.get_healthy_services() == ["api"]
    assert tracker.get_unhealthy_services() == []
    assert list(tracker.get_all_statuses()) == ["api"]
    assert tracker.get_service_status("missing") is None


def test_summarize_system_health_thresholds():
    assert summarize_system_health([True] * 5).overall == "healthy"

    degraded = summarize_system_health([True, True, True, False, False])
    assert degraded.overall == "degraded"
    assert degraded.uptime == "60.0%"

    assert summarize_system_health([True, False]).overall == "unhealthy"
    assert summarize_system_health([False] * 3).overall == "unhealthy"


def test_summarize_system_health_empty():
    health = summarize_system_health([])
    assert health.overall == "unhealthy"
    assert health.total_count == 0
    assert health.uptime == "0.0%"


def test_summarize_accepts_statuses_and_records():
    now = datetime.now(timezone.utc)
    health = summarize_system_health(
        [
            ServiceStatus(name="a", status=HealthState.HEALTHY),
            ServiceStatus(name="b", status=HealthState.CHECKING),
            ServiceRecord(is_healthy=True, last_checked=now),
        ]
    )
    assert health.healthy_count == 2
    assert health.overall == "degraded"
    assert health.to_dict() == {
        "overall": "degraded",
        "healthyCount": 2,
        "totalCount": 3,
        "uptime": "66.7%",
    }


@pytest.mark.asyncio
async def test_collect_service_status_aggregates():
    def handler(request):
        if request.url.path == "/api/health/ai":
            return httpx.Response(503)
        if request.url.path == "/api/health/scraping":
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200)

    async with _client(handler) as client:
        report = await collect_service_status(client, BASE + "/")

    assert report["system"]["overall"] == "degraded"
    assert report["system"]["healthyCount"] == 3
    assert report["system"]["totalCount"] == 5

    by_name = {s["name"]: s for s in report["services"]}
    assert by_name["primary-api"]["status"] == "healthy"
    assert by_name["primary-api"]["statusCode"] == 200
    assert by_name["ai-api"]["status"] == "unhealthy"
    assert by_name["ai-api"]["statusCode"] == 503
    assert by_name["scraping-api"]["status"] == "error"
    assert "refused" in by_name["scraping-api"]["error"]

    assert report["metrics"]["slowServices"] == 0
    assert "timestamp" in report


@pytest.mark.asyncio
async def test_monitor_poll_once_updates_statuses():
    async with _client(_status_by_path({"/b": 500})) as client:
        monitor = HealthMonitor(client, {"a": f"{BASE}/a", "b": f"{BASE}/b"})
        assert monitor.statuses["a"].status is HealthState.CHECKING

        health = await monitor.poll_once()

    assert monitor.statuses["a"].status is HealthState.HEALTHY
    assert monitor.statuses["b"].status is HealthState.UNHEALTHY
    assert monitor.statuses["a"].last_checked is not None
    assert monitor.last_updated is not None
    assert health.overall == "unhealthy"


@pytest.mark.asyncio
async def test_monitor_stop_cancels_polling():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200)

    async with _client(handler) as client:
        async with HealthMonitor(client, {"a": f"{BASE}/a"}, interval=0.01) as monitor:
            assert monitor.is_running
            await asyncio.sleep(0.05)

        assert not monitor.is_running
        polled = len(calls)
        assert polled >= 1
        await asyncio.sleep(0.05)
        assert len(calls) == polled
