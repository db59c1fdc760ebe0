"""Azure DevOps projects and recent pipeline runs across projects."""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from opsdash.clients.devops_client import DevOpsClient
from opsdash.core.utils import safe_get
from opsdash.models.devops_models import PipelineRun, PipelineRunList, PipelineScans, ProjectList, ScanStatus
from opsdash.services.base import BaseService

SONAR_TASKS = ("SonarCloud Analysis", "SonarQube Analysis")
TRIVY_TASKS = ("Trivy Container Scan", "Trivy Scan")

NEVER = datetime.min.replace(tzinfo=timezone.utc)
_FRACTION = re.compile(r"\.(\d+)")


def _find_task(records: List[Dict[str, Any]], names: Sequence[str]) -> Optional[ScanStatus]:
    for record in records:
        record_name = record.get("name") or ""
        if any(name in record_name for name in names):
            return ScanStatus(status=record.get("result") or record.get("state"), name=record_name)
    return None


def extract_scans(records: List[Dict[str, Any]]) -> PipelineScans:
    """Pick the Sonar and Trivy steps out of a build timeline."""
    return PipelineScans(sonar=_find_task(records, SONAR_TASKS), trivy=_find_task(records, TRIVY_TASKS))


def _build_time(build: Dict[str, Any]) -> datetime:
    raw = build.get("startTime") or build.get("queueTime")
    if not raw:
        return NEVER
    # DevOps sends up to 7 fractional digits; fromisoformat before 3.11 wants exactly 3 or 6
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), raw.replace("Z", "+00:00"), count=1)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return NEVER
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)



class PipelineService(BaseService):
    """Aggregates builds of several DevOps projects into one run list."""

    def __init__(self, devops_client: DevOpsClient, config: Dict[str, Any]):
        super().__init__(config)
        self.client = devops_client
        self.builds_per_project = config.get("builds_per_project", 100)
        self.max_runs = config.get("max_runs", 100)
        self.max_runs_with_scans = config.get("max_runs_with_scans", 20)

    async def get_projects(self) -> ProjectList:
        projects = await self.client.list_projects()
        return ProjectList(projects=projects, count=len(projects))

    async def get_pipeline_runs(
        self, projects: Optional[List[str]] = None, include_scans: bool = False
    ) -> PipelineRunList:
        """Most recent runs across ``projects`` (all projects when empty).

        A project whose builds cannot be listed contributes no runs, and a
        build whose timeline cannot be read gets ``scans=None``.
        """
        if not projects:
            projects = [p.name for p in await self.client.list_projects()]

        per_project = await self.gather_items(
            [self.client.list_builds(name, self.builds_per_project) for name in projects],
            default=[],
            labels=projects,
        )
        builds = [build for project_builds in per_project for build in project_builds]
        builds.sort(key=_build_time, reverse=True)
        builds = builds[: self.max_runs_with_scans if include_scans else self.max_runs]

        scans: List[Optional[PipelineScans]] = [None] * len(builds)
        if include_scans:
            timelines = await self.gather_items(
                [self.client.get_build_timeline(safe_get(b, "project.name", ""), b["id"]) for b in builds],
                default=None,
                labels=[b["id"] for b in builds],
            )
            scans = [extract_scans(records) if records is not None else None for records in timelines]

        runs = [self._map_build(build, scan) for build, scan in zip(builds, scans)]
        self.logger.info(
            "Collected pipeline runs",
            projects=len(projects),
            builds=len(runs),
            include_scans=include_scans,
        )
        return PipelineRunList(runs=runs, count=len(runs))

    def _map_build(self, build: Dict[str, Any], scans: Optional[PipelineScans]) -> PipelineRun:
        project_name = safe_get(build, "project.name")
        branch = build.get("sourceBranch")
        return PipelineRun(
            id=build["id"],
            name=build.get("buildNumber") or f"Build #{build['id']}",
            pipeline_name=safe_get(build, "definition.name", "Unknown Pipeline"),
            pipeline_id=safe_get(build, "definition.id"),
            project_name=project_name or "Unknown Project",
            state=build.get("status"),
            result=build.get("result"),
            created_date=build.get("queueTime"),
            started_date=build.get("startTime"),
            finished_date=build.get("finishTime"),
            url=safe_get(build, "_links.web.href") or self.client.web_url(project_name, build["id"]),
            source_branch=branch.replace("refs/heads/", "") if branch else None,
            requested_by=safe_get(build, "requestedBy.displayName") or safe_get(build, "requestedFor.displayName"),
            scans=scans,
        )
