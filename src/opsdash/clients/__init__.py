from .azure.client_factory import AzureClientFactory
from .devops_client import DevOpsClient
from .health_client import HealthProbeClient
from .jira_client import JiraClient
from .osv_client import OSVClient

__all__ = ["AzureClientFactory", "DevOpsClient", "HealthProbeClient", "JiraClient", "OSVClient"]
