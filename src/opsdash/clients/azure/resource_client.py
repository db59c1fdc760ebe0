"""Azure Resource Management client."""

from typing import Any, Dict, List

from azure.core.exceptions import AzureError
from azure.mgmt.resource import ResourceManagementClient

from opsdash.core.base_client import AzureSdkClient
from opsdash.core.exceptions import UpstreamFetchException
from opsdash.core.utils import is_rate_limited, retry_with_backoff
from opsdash.mappers.resource_mapper import ResourceDataMapper
from opsdash.models.ops_models import AzureResource


class ResourceClient(AzureSdkClient):
    """Client for Azure Resource Management operations."""

    source = "Azure Resource Manager"

    def __init__(self, credential, subscription_id: str, config: Dict[str, Any], sdk_client: Any = None):
        super().__init__(credential, subscription_id, config, "ResourceClient", sdk_client=sdk_client)
        self.mapper = ResourceDataMapper()

    def _create_client(self):
        return ResourceManagementClient(
            credential=self.credential,
            subscription_id=self.subscription_id
        )

    async def health_check(self) -> bool:
        try:
            if not self._connected or not self._client:
                return False
            await self.list_resource_groups()
            return True
        except Exception as e:
            self.logger.warning("Resource Management health check failed", error=str(e))
            return False

    @retry_with_backoff(max_retries=3, retry_on=is_rate_limited)
    async def list_resource_groups(self) -> List[Dict[str, Any]]:
        """List resource groups with their tags."""
        self._ensure_connected()

        try:
            groups = await self._call(lambda: list(self._client.resource_groups.list()))
        except AzureError as e:
            raise UpstreamFetchException(self.source, f"Failed to list resource groups: {e}", getattr(e, "status_code", None))

        resource_groups = [self.mapper.map_resource_group(rg) for rg in groups]
        self.logger.info(f"Discovered {len(resource_groups)} resource groups")
        return resource_groups

    @retry_with_backoff(max_retries=3, retry_on=is_rate_limited)
    async def list_resources(self) -> List[AzureResource]:
        """List every resource in the subscription, sorted by type then name."""
        self._ensure_connected()

        try:
            raw_resources = await self._call(lambda: list(self._client.resources.list()))
        except AzureError as e:
            raise UpstreamFetchException(self.source, f"Failed to list resources: {e}", getattr(e, "status_code", None))

        resources = [self.mapper.map_resource(resource) for resource in raw_resources]
        resources.sort(key=lambda r: (r.type, r.name))
        self.logger.info(f"Discovered {len(resources)} resources")
        return resources
