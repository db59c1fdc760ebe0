import httpx
from fastapi.testclient import TestClient

from opsdash.api import dependencies
from opsdash.clients.devops_client import DevOpsClient
from opsdash.clients.jira_client import JiraClient
from opsdash.core.exceptions import UpstreamFetchException
from opsdash.models.cost_models import CostRow
from opsdash.models.security_models import SecurityScan, SecurityScore
from opsdash.services.base import BaseService
from opsdash.services.cost_service import CostService
from opsdash.services.pipeline_service import PipelineService

from conftest import FakeCostClient, FakeResourceClient


def cost_service(answer, resource_groups=None) -> CostService:
    return CostService(FakeCostClient(answer), FakeResourceClient(resource_groups), {})


class TestCostEndpoints:
    def test_missing_subscription_is_reported_not_raised(self, app):
        response = TestClient(app).get("/api/azure/cost")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Configuration missing",
            "details": "AZURE_SUBSCRIPTION_ID environment variable is not set",
        }

    def test_cost_summary_is_cached(self, app):
        service = cost_service(lambda **_: [CostRow(cost=10.0)])
        app.dependency_overrides[dependencies.get_cost_service] = lambda: service
        client = TestClient(app)

        first = client.get("/api/azure/cost")
        second = client.get("/api/azure/cost")

        assert first.status_code == 200
        assert first.headers["X-Cache"] == "MISS"
        assert second.headers["X-Cache"] == "HIT"
        assert first.content == second.content
        assert set(first.json()) == {"actualCost", "forecastCost", "lastMonthCost", "currency"}
        assert len(service.cost_client.calls) == 2  # month-to-date and last month, once

    def test_breakdown_response(self, app):
        current_month = BaseService.today().replace(day=1)

        def answer(start, **_):
            if start == current_month:
                return []
            return [CostRow(dimension_value="rg1", cost=100.0), CostRow(dimension_value="rg2", cost=50.0)]

        service = cost_service(answer, [{"name": "RG1", "tags": {"project": "Saral"}}, {"name": "RG2"}])
        app.dependency_overrides[dependencies.get_cost_service] = lambda: service

        body = TestClient(app).get("/api/azure/cost-by-rg").json()

        assert [(e["name"], e["actual"]) for e in body["breakdown"]] == [("Saral", 100.0), ("Other", 50.0)]
        assert body["totalActual"] == 150.0

    def test_variance_with_one_month_is_empty(self, app):
        service = cost_service(lambda **_: [CostRow(dimension_value="svc", cost=500.0, period_key="2020-01")])
        app.dependency_overrides[dependencies.get_cost_service] = lambda: service

        assert TestClient(app).get("/api/azure/cost-variance").json() == {"changes": []}

    def test_upstream_failure_is_not_cached(self, app):
        calls = []

        def answer(**_):
            calls.append(1)
            raise UpstreamFetchException("Azure Cost Management", "Scope not found")

        app.dependency_overrides[dependencies.get_cost_service] = lambda: cost_service(answer)
        client = TestClient(app)

        response = client.get("/api/azure/cost-history")
        client.get("/api/azure/cost-history")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch Azure Cost Management", "details": "Scope not found"}
        assert len(calls) == 2


class FakeSecurityClient:
    def __init__(self, error=None):
        self.error = error

    async def get_security_score(self):
        if self.error:
            raise self.error
        return SecurityScore(score_percentage=67, healthy=2, unhealthy=1, total_assessments=3)


class SecurityRegistry:
    def __init__(self, client):
        self.client = client

    async def security_client(self):
        return self.client

    async def close(self):
        pass


def test_security_score(app):
    app.dependency_overrides[dependencies.get_registry] = lambda: SecurityRegistry(FakeSecurityClient())
    body = TestClient(app).get("/api/azure/security-score").json()
    assert (body["enabled"], body["scorePercentage"], body["notApplicable"]) == (True, 67, 0)


def test_security_score_failure_reports_disabled(app):
    error = UpstreamFetchException("Azure Security Center", "Defender not enabled", 403)
    app.dependency_overrides[dependencies.get_registry] = lambda: SecurityRegistry(FakeSecurityClient(error))

    response = TestClient(app).get("/api/azure/security-score")

    assert response.status_code == 500
    assert response.json() == {
        "enabled": False,
        "error": "Failed to fetch security score",
        "details": "Defender not enabled",
        "scorePercentage": None,
    }


def test_security_score_without_subscription_reports_disabled(app):
    response = TestClient(app).get("/api/azure/security-score")

    assert response.status_code == 500
    assert response.json() == {
        "enabled": False,
        "error": "Failed to fetch security score",
        "details": "AZURE_SUBSCRIPTION_ID environment variable is not set",
        "scorePercentage": None,
    }
    assert app.state.cache.get_entry("security-score") is None


def test_security_scan_marks_cached_responses(app):
    class FakeScanService:
        calls = 0

        async def scan(self):
            FakeScanService.calls += 1
            return SecurityScan(timestamp="2025-06-15T00:00:00+00:00")

    app.dependency_overrides[dependencies.get_security_scan_service] = lambda: FakeScanService()
    client = TestClient(app)

    first = client.get("/api/azure/security-scan").json()
    second = client.get("/api/azure/security-scan").json()

    assert (first["cached"], second["cached"]) == (False, True)
    assert FakeScanService.calls == 1


def test_pipeline_runs_query_parameters(app):
    def handler(request):
        project = request.url.path.split("/")[2]
        return httpx.Response(200, json={"value": [{"id": 5 if project == "Saral" else 6, "project": {"name": project}, "startTime": "2025-06-0%sT00:00:00Z" % (5 if project == "Saral" else 6)}]})

    async def override():
        client = DevOpsClient({"org": "acme", "pat": "pat"}, transport=httpx.MockTransport(handler))
        await client.connect()
        return PipelineService(client, {})

    app.dependency_overrides[dependencies.get_pipeline_service] = override

    body = TestClient(app).get("/api/azure/pipeline-runs", params={"projects": "Saral, Ops"}).json()

    assert body["count"] == 2
    assert [(r["id"], r["projectName"]) for r in body["runs"]] == [(6, "Ops"), (5, "Saral")]


def test_devops_credentials_required(app):
    response = TestClient(app).get("/api/azure/projects")
    assert response.status_code == 500
    assert "AZURE_DEVOPS_ORG" in response.json()["details"]


def test_jira_upstream_status_is_passed_through(app):
    async def override():
        client = JiraClient(
            {"domain": "acme.atlassian.net", "email": "a@b.c", "api_token": "t", "project_key": "OPS"},
            transport=httpx.MockTransport(lambda r: httpx.Response(403, text="Forbidden")),
        )
        await client.connect()
        return client

    app.dependency_overrides[dependencies.get_jira_client] = override

    response = TestClient(app).get("/api/jira/tasks")

    assert response.status_code == 403
    assert response.json() == {"error": "Failed to fetch Jira", "details": "Forbidden"}


def test_jira_configuration_required(app):
    response = TestClient(app).get("/api/jira/tasks")
    assert response.status_code == 500
    assert response.json()["details"] == "JIRA_EMAIL environment variable is not set"


def test_livez(app):
    assert TestClient(app).get("/livez").json() == {"status": "alive"}


def test_health_without_environments(app):
    body = TestClient(app).get("/api/health").json()
    assert body["environments"] == []
    assert "timestamp" in body
