"""Jira Cloud REST client for the task allocation view."""

from typing import Any, Dict, Optional

import httpx

from opsdash.core.base_client import HttpApiClient
from opsdash.core.utils import safe_get
from opsdash.models.ops_models import JiraTask, JiraTaskList

TASK_FIELDS = "summary,status,assignee,priority,created,updated"


class JiraClient(HttpApiClient):
    """Reads the most recent issues of one Jira project."""

    source = "Jira"

    def __init__(self, config: Dict[str, Any], transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(config, "JiraClient", transport=transport)
        self.domain = config["domain"]
        self.project_key = config.get("project_key")
        self.max_results = config.get("max_results", 50)

    def _client_options(self) -> Dict[str, Any]:
        return {
            "base_url": f"https://{self.domain}",
            "auth": httpx.BasicAuth(self.config["email"], self.config["api_token"]),
            "headers": {"Accept": "application/json", "Content-Type": "application/json"},
        }

    async def get_tasks(self) -> JiraTaskList:
        jql = f"project = {self.project_key} ORDER BY created DESC"
        data = await self._get_json(
            "/rest/api/3/search/jql",
            params={"jql": jql, "maxResults": self.max_results, "fields": TASK_FIELDS},
        )

        tasks = [self._map_issue(issue) for issue in data.get("issues", [])]
        total = data.get("total")
        self.logger.info("Fetched Jira tasks", project=self.project_key, count=len(tasks))
        return JiraTaskList(total=total if total is not None else len(tasks), tasks=tasks)

    @staticmethod
    def _map_issue(issue: Dict[str, Any]) -> JiraTask:
        fields = issue.get("fields") or {}
        return JiraTask(
            key=issue.get("key"),
            summary=fields.get("summary"),
            status=safe_get(fields, "status.name", "Unknown"),
            status_category=safe_get(fields, "status.statusCategory.name", "Unknown"),
            assignee=safe_get(fields, "assignee.displayName", "Unassigned"),
            priority=safe_get(fields, "priority.name", "None"),
            created=fields.get("created"),
            updated=fields.get("updated"),
        )
