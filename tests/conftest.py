"""Shared fixtures and fakes for the test suite."""

from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest

from opsdash.api.app import create_app
from opsdash.config.settings import (
    AzureSettings,
    DevOpsSettings,
    HealthSettings,
    JiraSettings,
    Settings,
    TechStackSettings,
)
from opsdash.models.cost_models import CostRow


def query_result(columns: List[str], rows: List[list]) -> SimpleNamespace:
    """Cost Management ``QueryResult`` lookalike."""
    return SimpleNamespace(columns=[SimpleNamespace(name=name, type="String") for name in columns], rows=rows)


class FakeCostOperations:
    """Stands in for ``CostManagementClient.query`` / ``.forecast``."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls = []

    def usage(self, scope, definition):
        self.calls.append((scope, definition))
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class FakeCostManagementClient:
    def __init__(self, responses: Optional[List[Any]] = None, forecasts: Optional[List[Any]] = None):
        self.query = FakeCostOperations(responses or [])
        self.forecast = FakeCostOperations(forecasts or [])
        self.closed = False

    def close(self):
        self.closed = True


class FakeCostClient:
    """Answers ``query_costs`` from a callable so each window can return different rows."""

    def __init__(self, answer: Callable[..., List[CostRow]]):
        self.answer = answer
        self.calls: List[Dict[str, Any]] = []

    async def query_costs(self, start, end, granularity=None, group_by=None, kind=None):
        self.calls.append({"start": start, "end": end, "granularity": granularity, "group_by": group_by})
        return self.answer(start=start, end=end, granularity=granularity, group_by=group_by)


class FakeResourceClient:
    def __init__(self, resource_groups: Optional[List[Dict[str, Any]]] = None):
        self.resource_groups = resource_groups or []

    async def list_resource_groups(self):
        return self.resource_groups


@pytest.fixture
def settings() -> Settings:
    """Settings with every upstream credential explicitly unset."""
    return Settings(
        azure=AzureSettings(subscription_id=None, tenant_id=None, client_id=None, client_secret=None),
        devops=DevOpsSettings(org=None, pat=None),
        tech_stack=TechStackSettings(project=None, repos=[]),
        jira=JiraSettings(email=None, api_token=None, domain=None, project_key=None),
        health=HealthSettings(environments=[]),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)
