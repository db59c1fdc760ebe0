import httpx
import pytest

from opsdash.clients.health_client import HealthProbeClient
from opsdash.config.settings import EnvironmentTarget
from opsdash.services.health_service import HealthService


def handler(request: httpx.Request) -> httpx.Response:
    host = request.url.host
    if host == "down.example.com":
        raise httpx.ConnectError("connection refused", request=request)
    if host == "api-aqua.example.com":
        return httpx.Response(503, text="degraded")
    return httpx.Response(200, text="ok")


@pytest.mark.asyncio
async def test_environments_are_probed_frontend_and_backend():
    probe = HealthProbeClient({"timeout_seconds": 5}, transport=httpx.MockTransport(handler))
    await probe.connect()
    environments = [
        EnvironmentTarget(name="Aqua", url="https://aqua.example.com", backend_url="https://api-aqua.example.com/health"),
        {"name": "Terra", "url": "https://down.example.com", "backend_url": None},
    ]

    report = await HealthService(probe, environments).check_all()

    aqua, terra = report.environments
    assert (aqua.status, aqua.backend_status) == ("healthy", "unhealthy")
    assert aqua.response_time is not None and aqua.response_time >= 0
    assert aqua.backend_response_time is not None
    assert (terra.status, terra.response_time) == ("unhealthy", None)
    assert terra.backend_status is None
    assert report.to_response()["environments"][0]["backendResponseTime"] == aqua.backend_response_time
    await probe.disconnect()


@pytest.mark.asyncio
async def test_no_environments_configured():
    probe = HealthProbeClient({}, transport=httpx.MockTransport(handler))
    await probe.connect()
    report = await HealthService(probe, []).check_all()
    assert report.environments == []
    assert report.timestamp
    await probe.disconnect()


@pytest.mark.asyncio
async def test_malformed_environment_url_is_reported_unhealthy():
    probe = HealthProbeClient({"timeout_seconds": 5}, transport=httpx.MockTransport(handler))
    await probe.connect()
    environments = [
        {"name": "Good", "url": "https://good.example.com"},
        {"name": "Bad", "url": "https://bad.example.com:notaport", "backend_url": "https://bad.example.com:notaport/api"},
    ]

    report = await HealthService(probe, environments).check_all()

    assert [(e.name, e.status) for e in report.environments] == [("Good", "healthy"), ("Bad", "unhealthy")]
    bad = report.environments[1]
    assert (bad.response_time, bad.backend_status, bad.backend_response_time) == (None, "unhealthy", None)
    await probe.disconnect()
