"""HTTP probe client for environment health checks."""

import time
from typing import Any, Dict, Optional, Tuple

import httpx

from opsdash.core.base_client import HttpApiClient

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"


class HealthProbeClient(HttpApiClient):
    """Issues plain GETs and reports status plus latency instead of raising."""

    source = "Health probe"

    def __init__(self, config: Dict[str, Any], transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(config, "HealthProbeClient", transport=transport)

    def _client_options(self) -> Dict[str, Any]:
        return {"follow_redirects": True, "headers": {"Cache-Control": "no-store"}}

    async def probe(self, url: str) -> Tuple[str, Optional[int]]:
        """``(status, latency_ms)``; latency is ``None`` when the request itself failed."""
        start = time.perf_counter()
        try:
            response = await self.http.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.warning("Health probe failed", url=url, error=str(e) or e.__class__.__name__)
            return UNHEALTHY, None

        latency = int((time.perf_counter() - start) * 1000)
        return (HEALTHY if response.is_success else UNHEALTHY), latency
