"""Azure DevOps payloads: projects, pipeline runs and their scan steps."""

from typing import List, Optional

from pydantic import Field

from .base_models import DashboardModel


class DevOpsProject(DashboardModel):
    id: Optional[str] = None
    name: str
    description: str = ""
    url: Optional[str] = None
    state: Optional[str] = None
    visibility: Optional[str] = None
    last_update_time: Optional[str] = None


class ProjectList(DashboardModel):
    projects: List[DevOpsProject] = Field(default_factory=list)
    count: int = 0


class ScanStatus(DashboardModel):
    status: Optional[str] = None
    name: str


class PipelineScans(DashboardModel):
    sonar: Optional[ScanStatus] = None
    trivy: Optional[ScanStatus] = None


class PipelineRun(DashboardModel):
    id: int
    name: str
    pipeline_name: str = "Unknown Pipeline"
    pipeline_id: Optional[int] = None
    project_name: str = "Unknown Project"
    state: Optional[str] = None
    result: Optional[str] = None
    created_date: Optional[str] = None
    started_date: Optional[str] = None
    finished_date: Optional[str] = None
    url: Optional[str] = None
    source_branch: Optional[str] = None
    requested_by: Optional[str] = None
    scans: Optional[PipelineScans] = None


class PipelineRunList(DashboardModel):
    runs: List[PipelineRun] = Field(default_factory=list)
    count: int = 0
