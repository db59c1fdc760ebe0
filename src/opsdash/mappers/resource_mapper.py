"""Resource data mapping utilities."""

from typing import Any, Dict, Optional

import structlog

from opsdash.models.ops_models import AzureResource
from opsdash.models.security_models import SecurityAssessment

logger = structlog.get_logger(__name__)


class ResourceDataMapper:
    """Maps Azure SDK objects to dashboard models."""

    def map_resource(self, resource: Any) -> AzureResource:
        """Map a Resource Manager ``GenericResource`` to ``AzureResource``."""
        full_type = getattr(resource, "type", None)
        return AzureResource(
            id=getattr(resource, "id", None),
            name=getattr(resource, "name", None) or "",
            type=full_type.split("/")[-1] if full_type else "",
            full_type=full_type,
            location=getattr(resource, "location", None),
            resource_group=self.resource_group_from_id(getattr(resource, "id", None)) or "Unknown",
            tags=getattr(resource, "tags", None) or {},
        )

    def map_resource_group(self, resource_group: Any) -> Dict[str, Any]:
        properties = getattr(resource_group, "properties", None)
        return {
            "name": resource_group.name,
            "location": getattr(resource_group, "location", None),
            "tags": getattr(resource_group, "tags", None) or {},
            "provisioning_state": getattr(properties, "provisioning_state", None) if properties else None,
            "managed_by": getattr(resource_group, "managed_by", None),
        }

    def map_assessment(self, assessment: Any) -> SecurityAssessment:
        """Map a Security Center assessment to its name/status/description."""
        status = getattr(assessment, "status", None)
        return SecurityAssessment(
            name=getattr(assessment, "display_name", None) or getattr(assessment, "name", None),
            status=(getattr(status, "code", None) if status else None) or "Unknown",
            description=getattr(status, "description", None) if status else None,
        )

    @staticmethod
    def resource_group_from_id(resource_id: Optional[str]) -> Optional[str]:
        # /subscriptions/<sub>/resourceGroups/<rg>/providers/...
        if not resource_id:
            return None
        parts = resource_id.split("/")
        return parts[4] if len(parts) > 4 and parts[4] else None
