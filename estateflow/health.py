"""Service health probes, status tracking and periodic monitoring"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx
from loguru import logger

from .config import (
    HEALTH_CHECK_TIMEOUT,
    HEALTH_POLL_INTERVAL,
    MONITORED_SERVICES,
    SLOW_SERVICE_MS,
)
from .models import HealthState, ServiceRecord, ServiceStatus, SystemHealth


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 1)


async def check_service_health(
    client: httpx.AsyncClient,
    endpoint: str,
    timeout: float = HEALTH_CHECK_TIMEOUT,
    method: str = "HEAD",
) -> bool:
    """
    Probe an endpoint; True only for a successful status.

    Never raises: timeouts, transport errors and error statuses all yield False.
    """
    try:
        response = await asyncio.wait_for(client.request(method, endpoint), timeout=timeout)
        return response.is_success
    except Exception as e:
        logger.warning(f"Health check failed for {endpoint}: {type(e).__name__} {e}")
        return False


class ServiceStatusTracker:
    """Last-known health per service name (last write wins)"""

    def __init__(self):
        self._status: Dict[str, ServiceRecord] = {}

    async def check_service(
        self,
        client: httpx.AsyncClient,
        name: str,
        endpoint: str,
        timeout: float = HEALTH_CHECK_TIMEOUT,
    ) -> ServiceRecord:
        start = time.monotonic()
        is_healthy = await check_service_health(client, endpoint, timeout)
        record = ServiceRecord(
            is_healthy=is_healthy,
            last_checked=_now(),
            response_time=_elapsed_ms(start),
        )
        self._status[name] = record

        logger.info(
            f"Service {name}: {'HEALTHY' if is_healthy else 'UNHEALTHY'} "
            f"({record.response_time:.0f}ms)"
        )
        return record

    def get_service_status(self, name: str) -> Optional[ServiceRecord]:
        return self._status.get(name)

    def get_all_statuses(self) -> Dict[str, ServiceRecord]:
        return dict(self._status)

    def get_healthy_services(self) -> List[str]:
        return [name for name, record in self._status.items() if record.is_healthy]

    def get_unhealthy_services(self) -> List[str]:
        return [name for name, record in self._status.items() if not record.is_healthy]


def summarize_system_health(statuses: Iterable[Any]) -> SystemHealth:
    """
    Classify overall health from per-service results.

    Accepts ServiceStatus, ServiceRecord or plain booleans. All healthy is
    "healthy", more than half is "degraded", anything else "unhealthy".
    """
    flags = []
    for status in statuses:
        if isinstance(status, ServiceStatus):
            flags.append(status.status == HealthState.HEALTHY)
        elif isinstance(status, ServiceRecord):
            flags.append(status.is_healthy)
        else:
            flags.append(bool(status))

    total = len(flags)
    healthy = sum(flags)
    if total and healthy == total:
        overall = "healthy"
    elif healthy > total / 2:
        overall = "degraded"
    else:
        overall = "unhealthy"

    return SystemHealth(
        overall=overall,
        healthy_count=healthy,
        total_count=total,
        uptime_ratio=healthy / total if total else 0.0,
    )


async def _probe(
    client: httpx.AsyncClient,
    base_url: str,
    service: Dict[str, str],
    timeout: float,
) -> ServiceStatus:
    start = time.monotonic()
    status = ServiceStatus(name=service["name"], description=service.get("description", ""))
    try:
        response = await asyncio.wait_for(
            client.request(service.get("method", "HEAD"), f"{base_url}{service['endpoint']}"),
            timeout=timeout,
        )
        status.status = HealthState.HEALTHY if response.is_success else HealthState.UNHEALTHY
        status.status_code = response.status_code
    except Exception as e:
        status.status = HealthState.ERROR
        status.error = str(e) or type(e).__name__
    status.response_time = _elapsed_ms(start)
    status.last_checked = _now()
    return status


async def collect_service_status(
    client: httpx.AsyncClient,
    base_url: str,
    services: Sequence[Dict[str, str]] = MONITORED_SERVICES,
    timeout: float = HEALTH_CHECK_TIMEOUT,
) -> Dict[str, Any]:
    """Probe all services concurrently and aggregate the results"""
    base_url = base_url.rstrip("/")
    results = await asyncio.gather(
        *[_probe(client, base_url, service, timeout) for service in services],
        return_exceptions=True,
    )

    statuses: List[ServiceStatus] = []
    for service, result in zip(services, results):
        if isinstance(result, BaseException):
            logger.error(f"Health check for {service['name']} crashed: {result}")
            result = ServiceStatus(
                name=service["name"],
                status=HealthState.ERROR,
                response_time=0.0,
                last_checked=_now(),
                description=service.get("description", ""),
                error="Health check failed",
            )
        statuses.append(result)

    response_times = [s.response_time or 0.0 for s in statuses]
    total_time = sum(response_times)
    return {
        "system": summarize_system_health(statuses).to_dict(),
        "services": [s.to_dict() for s in statuses],
        "metrics": {
            "averageResponseTime": round(total_time / len(statuses)) if statuses else 0,
            "slowServices": sum(1 for t in response_times if t > SLOW_SERVICE_MS),
            "totalResponseTime": total_time,
        },
        "timestamp": _now().isoformat(),
    }


class HealthMonitor:
    """
    Periodic poller for a fixed set of endpoints.

    The polling task is cancelled by stop(); use as an async context
    manager so polling never outlives its owner.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoints: Dict[str, str],
        interval: float = HEALTH_POLL_INTERVAL,
        timeout: float = HEALTH_CHECK_TIMEOUT,
    ):
        self.client = client
        self.endpoints = dict(endpoints)
        self.interval = interval
        self.timeout = timeout
        self.tracker = ServiceStatusTracker()
        self.statuses: Dict[str, ServiceStatus] = {
            name: ServiceStatus(name=name) for name in self.endpoints
        }
        self.last_updated: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None

        logger.debug(
            f"Health monitor initialized: {len(self.endpoints)} services, "
            f"interval={interval}s"
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _check(self, name: str, endpoint: str) -> None:
        status = self.statuses[name]
        status.status = HealthState.CHECKING
        record = await self.tracker.check_service(self.client, name, endpoint, self.timeout)
        status.status = HealthState.HEALTHY if record.is_healthy else HealthState.UNHEALTHY
        status.response_time = record.response_time
        status.last_checked = record.last_checked

    async def poll_once(self) -> SystemHealth:
        await asyncio.gather(
            *[self._check(name, endpoint) for name, endpoint in self.endpoints.items()]
        )
        self.last_updated = _now()
        health = self.system_health()
        logger.info(
            f"System health: {health.overall} "
            f"({health.healthy_count}/{health.total_count}, uptime {health.uptime})"
        )
        return health

    def system_health(self) -> SystemHealth:
        return summarize_system_health(self.statuses.values())

    async def _run(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())
        logger.debug("Health monitor started")

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Health monitor stopped")

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
