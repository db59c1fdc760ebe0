# src/opsdash/clients/azure/client_factory.py
"""Azure client factory for creating and managing Azure service clients."""

from typing import Dict, Any
import structlog
from azure.identity import DefaultAzureCredential, ClientSecretCredential

from opsdash.config.settings import require
from opsdash.core.exceptions import ClientConnectionException
from .cost_client import CostClient
from .resource_client import ResourceClient
from .security_client import SecurityClient

logger = structlog.get_logger(__name__)


class AzureClientFactory:
    """Factory for creating Azure service clients.

    Raises ``ConfigurationException`` naming ``AZURE_SUBSCRIPTION_ID`` when no
    subscription is configured, before any credential or network work.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.subscription_id = require(config.get("subscription_id"), "AZURE_SUBSCRIPTION_ID")
        self.tenant_id = config.get("tenant_id")
        self.client_id = config.get("client_id")
        self.client_secret = config.get("client_secret")

        self._credential = None
        self._clients: Dict[str, Any] = {}
        self.logger = logger.bind(factory="azure")

    def _get_credential(self):
        """Get Azure credential based on configuration."""
        if self._credential:
            return self._credential

        try:
            if self.client_id and self.client_secret and self.tenant_id:
                self._credential = ClientSecretCredential(
                    tenant_id=self.tenant_id,
                    client_id=self.client_id,
                    client_secret=self.client_secret
                )
                self.logger.info("Using service principal authentication")
            else:
                # managed identity, CLI login, environment...
                self._credential = DefaultAzureCredential()
                self.logger.info("Using default credential chain")

            return self._credential

        except Exception as e:
            raise ClientConnectionException("Azure", f"Failed to create credential: {e}")

    async def _connected(self, name: str, client):
        if name not in self._clients:
            await client.connect()
            self._clients[name] = client
            self.logger.info(f"Connected {name} client successfully")
        return self._clients[name]

    async def get_cost_client(self) -> CostClient:
        if "cost" in self._clients:
            return self._clients["cost"]
        return await self._connected("cost", CostClient(
            credential=self._get_credential(),
            subscription_id=self.subscription_id,
            config=self.config
        ))

    async def get_resource_client(self) -> ResourceClient:
        if "resource" in self._clients:
            return self._clients["resource"]
        return await self._connected("resource", ResourceClient(
            credential=self._get_credential(),
            subscription_id=self.subscription_id,
            config=self.config
        ))

    async def get_security_client(self) -> SecurityClient:
        if "security" in self._clients:
            return self._clients["security"]
        return await self._connected("security", SecurityClient(
            credential=self._get_credential(),
            subscription_id=self.subscription_id,
            config=self.config
        ))

    async def disconnect_all(self) -> None:
        """Disconnect all clients (for cleanup)."""
        for name, client in self._clients.items():
            try:
                await client.disconnect()
                self.logger.info(f"Disconnected {name} client successfully")
            except Exception as e:
                self.logger.warning(f"Error disconnecting {name} client: {e}")

        self._clients = {}
        self.logger.info("Azure client factory cleanup completed")
