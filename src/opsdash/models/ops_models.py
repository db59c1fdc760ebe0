"""Resource inventory, Jira and environment health payloads."""

from typing import Dict, List, Optional

from pydantic import Field

from .base_models import DashboardModel


class AzureResource(DashboardModel):
    id: Optional[str] = None
    name: str = ""
    type: str = ""
    full_type: Optional[str] = None
    location: Optional[str] = None
    resource_group: str = "Unknown"
    tags: Dict[str, str] = Field(default_factory=dict)


class ResourceInventory(DashboardModel):
    total: int = 0
    resources: List[AzureResource] = Field(default_factory=list)


class JiraTask(DashboardModel):
    key: str
    summary: Optional[str] = None
    status: str = "Unknown"
    status_category: str = "Unknown"
    assignee: str = "Unassigned"
    priority: str = "None"
    created: Optional[str] = None
    updated: Optional[str] = None


class JiraTaskList(DashboardModel):
    total: int = 0
    tasks: List[JiraTask] = Field(default_factory=list)


class EnvironmentHealth(DashboardModel):
    name: str
    url: str
    status: str
    response_time: Optional[int] = None
    backend_status: Optional[str] = None
    backend_response_time: Optional[int] = None


class HealthReport(DashboardModel):
    environments: List[EnvironmentHealth] = Field(default_factory=list)
    timestamp: str
