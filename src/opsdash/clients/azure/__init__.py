from .client_factory import AzureClientFactory
from .cost_client import CostClient
from .resource_client import ResourceClient
from .security_client import SecurityClient


__all__ = [
    "AzureClientFactory",
    "CostClient",
    "ResourceClient",
    "SecurityClient"
]
