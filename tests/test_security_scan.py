import json

import httpx
import pytest

from opsdash.clients.osv_client import OSVClient
from opsdash.models.security_models import TechStack, TechStackItem, Vulnerability
from opsdash.services.security_service import SecurityScanService, vulnerability_status


class FakeTechStackService:
    def __init__(self, items):
        self.items = items

    async def get_tech_stack(self):
        return TechStack(tech_stack=self.items, repos=["SaralFrontend", "SaralBackend"], timestamp="2025-06-15T00:00:00+00:00")


STACK = [
    TechStackItem(category="Frontend", name="React", version="^18.2.0", type="framework"),
    TechStackItem(category="Frontend", name="Vite", version="5.2.0", type="framework"),
    TechStackItem(category="Infrastructure", name="sdk", version="8.0.100-alpine", type="image"),
    TechStackItem(category="Backend", name=".NET", version="net8.0", type="runtime"),
    TechStackItem(category="Backend", name="Serilog", version="3.1.1", type="dependency"),
    TechStackItem(category="Backend", name="Hangfire", version="1.8.0", type="dependency"),
]

OSV_ANSWERS = {
    "react": {"vulns": [{"id": "GHSA-r", "severity": [{"score": "CVSS:3.1/AV:N"}], "database_specific": {"severity": "MODERATE"}}]},
    "vite": {},
    "Microsoft.NETCore.App": {"vulns": [{"id": "CVE-n", "severity": [{"score": "8.1"}]}]},
}


async def scan_with(items):
    queries = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        queries.append((body["package"]["name"], body["version"], body["package"]["ecosystem"]))
        answer = OSV_ANSWERS.get(body["package"]["name"])
        if answer is None:
            return httpx.Response(500, text="osv failure")
        return httpx.Response(200, json=answer)

    osv = OSVClient({}, transport=httpx.MockTransport(handler))
    await osv.connect()
    scan = await SecurityScanService(FakeTechStackService(items), osv, {"max_concurrency": 2}).scan()
    await osv.disconnect()
    return scan, queries


@pytest.mark.asyncio
async def test_scan_statuses_and_summary():
    scan, queries = await scan_with(STACK)

    assert sorted(queries) == sorted([
        ("react", "18.2.0", "npm"),
        ("vite", "5.2.0", "npm"),
        ("Microsoft.NETCore.App", "8.0.100", "NuGet"),
        ("Serilog", "3.1.1", "NuGet"),
    ])
    by_package = {r.package: r for r in scan.results}
    assert [r.package for r in scan.results] == ["React", "Vite", ".NET", "Serilog", "Hangfire"]
    assert by_package["React"].status == "warning"
    assert by_package["React"].vulnerabilities[0].severity == "moderate"
    assert by_package["Vite"].status == "safe"
    assert by_package[".NET"].status == "critical"
    assert by_package[".NET"].version == "net8.0 (SDK 8.0.100)"
    assert by_package["Serilog"].status == "unknown"
    assert by_package["Serilog"].ecosystem == "NuGet"
    assert by_package["Hangfire"].ecosystem == "unknown"
    assert scan.summary.to_response() == {"total": 5, "critical": 1, "warning": 1, "safe": 1, "unknown": 2}
    assert scan.cached is False


@pytest.mark.asyncio
async def test_dotnet_without_sdk_image_uses_framework_version():
    items = [TechStackItem(category="Backend", name=".NET", version="net9.0", type="runtime")]

    scan, queries = await scan_with(items)

    assert queries == [("Microsoft.NETCore.App", "9.0.0", "NuGet")]
    assert scan.results[0].version == "net9.0"


def test_vulnerability_status_rules():
    assert vulnerability_status([]) == "safe"
    assert vulnerability_status([Vulnerability(id="a", severity="low"), Vulnerability(id="b", severity="high")]) == "critical"
    assert vulnerability_status([Vulnerability(id="a", severity="unknown")]) == "warning"
