from .base import BaseService
from .cost_service import CostService
from .pipeline_service import PipelineService, extract_scans
from .security_service import SecurityScanService, TechStackService
from .health_service import HealthService

__all__ = [
    "BaseService",
    "CostService",
    "PipelineService",
    "extract_scans",
    "TechStackService",
    "SecurityScanService",
    "HealthService",
]
