"""OSV.dev vulnerability database client."""

from typing import Any, Dict, List, Optional

import httpx

from opsdash.core.base_client import HttpApiClient
from opsdash.core.utils import safe_get
from opsdash.models.security_models import Vulnerability


def severity_from_score(score: Any) -> Optional[str]:
    """Bucket a numeric CVSS base score; ``None`` for vector strings and other non-numbers."""
    try:
        value = float(score)
    except (TypeError, ValueError):
        return None
    if value >= 9.0:
        return "critical"
    if value >= 7.0:
        return "high"
    if value >= 4.0:
        return "medium"
    return "low"


def map_vulnerability(vuln: Dict[str, Any]) -> Vulnerability:
    """Reduce an OSV record to id, severity, summary and first fixed version."""
    severity = None
    if vuln.get("severity"):
        severity = severity_from_score(vuln["severity"][0].get("score"))
    if severity is None:
        db_severity = safe_get(vuln, "database_specific.severity")
        severity = str(db_severity).lower() if db_severity else "unknown"

    fixed = None
    affected = vuln.get("affected") or []
    if affected:
        for version_range in affected[0].get("ranges") or []:
            fixed = next((e["fixed"] for e in version_range.get("events") or [] if e.get("fixed")), None)
            if fixed:
                break

    summary = vuln.get("summary") or (vuln.get("details") or "")[:100] or "No description"
    return Vulnerability(id=vuln.get("id"), severity=severity, summary=summary, fixed=fixed)


class OSVClient(HttpApiClient):
    """Queries OSV for known vulnerabilities of one package version."""

    source = "OSV"

    def __init__(self, config: Dict[str, Any], transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(config, "OSVClient", transport=transport)
        self.api_url = config.get("api_url", "https://api.osv.dev/v1/query")

    async def query(self, package: str, version: str, ecosystem: str) -> List[Vulnerability]:
        response = await self._request(
            "POST",
            self.api_url,
            json={"package": {"name": package, "ecosystem": ecosystem}, "version": version},
        )
        vulns = response.json().get("vulns") or []
        self.logger.debug("OSV query completed", package=package, version=version, vulns=len(vulns))
        return [map_vulnerability(v) for v in vulns]
