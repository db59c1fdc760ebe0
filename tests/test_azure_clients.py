from types import SimpleNamespace

import pytest
from azure.core.exceptions import HttpResponseError

from opsdash.clients.azure.client_factory import AzureClientFactory
from opsdash.clients.azure.resource_client import ResourceClient
from opsdash.clients.azure.security_client import SecurityClient
from opsdash.core.exceptions import ConfigurationException, UpstreamFetchException


def resource(resource_id, name, resource_type, tags=None):
    return SimpleNamespace(id=resource_id, name=name, type=resource_type, location="westeurope", tags=tags)


class FakeResourceSdk:
    def __init__(self, groups=None, resources=None, error=None):
        self.resource_groups = SimpleNamespace(list=lambda: self._answer(groups))
        self.resources = SimpleNamespace(list=lambda: self._answer(resources))
        self.error = error

    def _answer(self, items):
        if self.error:
            raise self.error
        return iter(items or [])

    def close(self):
        pass


@pytest.mark.asyncio
async def test_resources_sorted_by_type_then_name():
    sdk = FakeResourceSdk(resources=[
        resource("/subscriptions/s/resourceGroups/rg-web/providers/Microsoft.Web/sites/zeta", "zeta", "Microsoft.Web/sites"),
        resource("/subscriptions/s/resourceGroups/rg-web/providers/Microsoft.Web/sites/alpha", "alpha", "Microsoft.Web/sites", {"project": "Saral"}),
        resource("/subscriptions/s/resourceGroups/rg-data/providers/Microsoft.Storage/storageAccounts/logs", "logs", "Microsoft.Storage/storageAccounts"),
        resource(None, "orphan", "Microsoft.Network/dnszones"),
    ])
    client = ResourceClient(None, "s", {}, sdk_client=sdk)
    await client.connect()

    resources = await client.list_resources()

    assert [(r.type, r.name) for r in resources] == [
        ("dnszones", "orphan"), ("sites", "alpha"), ("sites", "zeta"), ("storageAccounts", "logs"),
    ]
    assert resources[1].resource_group == "rg-web"
    assert resources[1].to_response()["fullType"] == "Microsoft.Web/sites"
    assert resources[0].resource_group == "Unknown"


@pytest.mark.asyncio
async def test_resource_groups_carry_tags():
    sdk = FakeResourceSdk(groups=[SimpleNamespace(name="RG1", location="westeurope", tags={"project": "Saral"}, properties=None)])
    client = ResourceClient(None, "s", {}, sdk_client=sdk)
    await client.connect()

    groups = await client.list_resource_groups()

    assert groups[0]["name"] == "RG1"
    assert groups[0]["tags"] == {"project": "Saral"}


@pytest.mark.asyncio
async def test_resource_listing_error_is_wrapped():
    error = HttpResponseError(message="Forbidden")
    error.status_code = 403
    client = ResourceClient(None, "s", {}, sdk_client=FakeResourceSdk(error=error))
    await client.connect()

    with pytest.raises(UpstreamFetchException) as excinfo:
        await client.list_resources()
    assert excinfo.value.status_code == 403


def assessment(code, name):
    return SimpleNamespace(display_name=name, status=SimpleNamespace(code=code, description=None))


@pytest.mark.asyncio
async def test_security_score_counts_and_rounds():
    items = [assessment("Healthy", "a"), assessment("Healthy", "b"), assessment("Unhealthy", "c"), assessment("NotApplicable", "d")]
    sdk = SimpleNamespace(assessments=SimpleNamespace(list=lambda scope: iter(items)), close=lambda: None)
    client = SecurityClient(None, "s", {}, sdk_client=sdk)
    await client.connect()

    score = await client.get_security_score()

    assert (score.score_percentage, score.healthy, score.unhealthy, score.not_applicable) == (67, 2, 1, 1)
    assert [a.name for a in score.assessments] == ["c"]


@pytest.mark.asyncio
async def test_security_score_without_applicable_assessments_is_zero():
    sdk = SimpleNamespace(assessments=SimpleNamespace(list=lambda scope: iter([])), close=lambda: None)
    client = SecurityClient(None, "s", {}, sdk_client=sdk)
    await client.connect()
    assert (await client.get_security_score()).score_percentage == 0


def test_factory_requires_subscription():
    with pytest.raises(ConfigurationException) as excinfo:
        AzureClientFactory({"subscription_id": None})
    assert excinfo.value.variable == "AZURE_SUBSCRIPTION_ID"
