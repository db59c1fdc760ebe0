"""Security posture payloads: Security Center score, tech stack and OSV scan."""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base_models import DashboardModel


class VulnStatus(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class SecurityAssessment(DashboardModel):
    name: Optional[str] = None
    status: str
    description: Optional[str] = None


class SecurityScore(DashboardModel):
    enabled: bool = True
    score_percentage: int = 0
    healthy: int = 0
    unhealthy: int = 0
    not_applicable: int = 0
    total_assessments: int = 0
    assessments: List[SecurityAssessment] = Field(default_factory=list)


class TechStackItem(DashboardModel):
    category: str
    name: str
    version: str
    type: str


class TechStack(DashboardModel):
    tech_stack: List[TechStackItem] = Field(default_factory=list)
    repos: List[str] = Field(default_factory=list)
    timestamp: str


class Vulnerability(DashboardModel):
    id: str
    severity: str = "unknown"
    summary: str = "No description"
    fixed: Optional[str] = None


class VulnResult(DashboardModel):
    package: str
    version: str
    ecosystem: str
    vulnerabilities: List[Vulnerability] = Field(default_factory=list)
    status: VulnStatus = VulnStatus.UNKNOWN


class ScanSummary(DashboardModel):
    total: int = 0
    critical: int = 0
    warning: int = 0
    safe: int = 0
    unknown: int = 0


class SecurityScan(DashboardModel):
    results: List[VulnResult] = Field(default_factory=list)
    summary: ScanSummary = Field(default_factory=ScanSummary)
    timestamp: str
    cached: bool = False
