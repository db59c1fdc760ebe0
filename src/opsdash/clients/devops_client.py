"""Azure DevOps REST client: projects, builds, build timelines and git items."""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from opsdash.core.base_client import HttpApiClient
from opsdash.core.exceptions import UpstreamFetchException
from opsdash.models.devops_models import DevOpsProject


class DevOpsClient(HttpApiClient):
    """Azure DevOps client authenticated with a personal access token.

    ``config`` carries ``org``, ``pat`` and optionally ``base_url`` and
    ``api_version``.
    """

    source = "Azure DevOps"

    def __init__(self, config: Dict[str, Any], transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(config, "DevOpsClient", transport=transport)
        self.org = config["org"]
        self.api_version = config.get("api_version", "7.1")
        self.base_url = f"{config.get('base_url', 'https://dev.azure.com').rstrip('/')}/{self.org}"

    def _client_options(self) -> Dict[str, Any]:
        # PAT basic auth uses an empty user name
        return {
            "base_url": self.base_url,
            "auth": httpx.BasicAuth("", self.config["pat"]),
            "headers": {"Content-Type": "application/json"},
        }

    def _params(self, **extra) -> Dict[str, Any]:
        return {"api-version": self.api_version, **extra}

    def web_url(self, project: str, build_id: int) -> str:
        return f"{self.base_url}/{project}/_build/results?buildId={build_id}"

    async def list_projects(self) -> List[DevOpsProject]:
        data = await self._get_json("/_apis/projects", params=self._params())
        projects = [
            DevOpsProject(
                id=item.get("id"),
                name=item.get("name"),
                description=item.get("description") or "",
                url=item.get("url"),
                state=item.get("state"),
                visibility=item.get("visibility"),
                last_update_time=item.get("lastUpdateTime"),
            )
            for item in data.get("value", [])
        ]
        self.logger.info(f"Fetched {len(projects)} DevOps projects")
        return projects

    async def list_builds(self, project: str, top: int = 100) -> List[Dict[str, Any]]:
        url = f"/{quote(project, safe='')}/_apis/build/builds"
        data = await self._get_json(url, params=self._params(**{"$top": top}))
        return data.get("value", [])

    async def get_build_timeline(self, project: str, build_id: int) -> List[Dict[str, Any]]:
        url = f"/{quote(project, safe='')}/_apis/build/builds/{build_id}/timeline"
        data = await self._get_json(url, params=self._params())
        return (data or {}).get("records") or []

    async def list_repository_items(
        self, project: str, repository: str, recursion_level: str = "OneLevel"
    ) -> List[Dict[str, Any]]:
        url = f"/{quote(project, safe='')}/_apis/git/repositories/{quote(repository, safe='')}/items"
        data = await self._get_json(url, params=self._params(recursionLevel=recursion_level))
        return data.get("value", [])

    async def get_file_content(self, project: str, repository: str, path: str) -> Optional[str]:
        """Raw file content, or ``None`` when the file cannot be read."""
        url = f"/{quote(project, safe='')}/_apis/git/repositories/{quote(repository, safe='')}/items"
        try:
            response = await self._request("GET", url, params=self._params(path=path))
        except UpstreamFetchException as e:
            self.logger.warning("Could not read repository file", repository=repository, path=path, error=e.message)
            return None
        return response.text
