from .base_models import *
from .cost_models import *
from .devops_models import *
from .security_models import *
from .ops_models import *

__all__ = [
    "DashboardModel",
    "Granularity",
    "CostDimension",
    "QueryKind",
    "Impact",
    "CostRow",
    "CostSummary",
    "CostBreakdownEntry",
    "CostBreakdown",
    "HistoryPoint",
    "CostHistory",
    "VarianceChange",
    "CostVariance",
    "UntaggedCost",
    "DevOpsProject",
    "ProjectList",
    "ScanStatus",
    "PipelineScans",
    "PipelineRun",
    "PipelineRunList",
    "VulnStatus",
    "SecurityAssessment",
    "SecurityScore",
    "TechStackItem",
    "TechStack",
    "Vulnerability",
    "VulnResult",
    "ScanSummary",
    "SecurityScan",
    "AzureResource",
    "ResourceInventory",
    "JiraTask",
    "JiraTaskList",
    "EnvironmentHealth",
    "HealthReport",
]
