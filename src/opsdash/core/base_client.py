"""Base classes for the upstream service clients.

``BaseClient`` fixes the connect/disconnect/health-check lifecycle every
client follows. ``AzureSdkClient`` adds the credential and subscription plus a
helper that pushes the blocking Azure SDK calls onto a worker thread, and
``HttpApiClient`` owns an ``httpx.AsyncClient`` for the plain REST upstreams
(Azure DevOps, Jira, OSV, health probes).
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, TypeVar

import httpx
import structlog

from opsdash.core.exceptions import ClientConnectionException, UpstreamFetchException

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class BaseClient(ABC):
    """Abstract base class for all external service clients."""

    def __init__(self, config: Dict[str, Any], name: Optional[str] = None):
        self.config = config
        self.name = name or self.__class__.__name__
        self._connected = False
        self.logger = logger.bind(client=self.name)

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the external service."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the external service."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the client connection is healthy."""
        pass

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()


class AzureSdkClient(BaseClient):
    """Base for clients wrapping a synchronous Azure management SDK client."""

    source = "Azure"

    def __init__(
        self,
        credential,
        subscription_id: str,
        config: Dict[str, Any],
        name: Optional[str] = None,
        sdk_client: Any = None,
    ):
        super().__init__(config, name)
        self.credential = credential
        self.subscription_id = subscription_id
        self._sdk_client = sdk_client
        self._client = None

    @property
    def scope(self) -> str:
        return f"/subscriptions/{self.subscription_id}"

    @abstractmethod
    def _create_client(self):
        """Build the underlying SDK client."""

    async def connect(self) -> None:
        try:
            self._client = self._sdk_client if self._sdk_client is not None else self._create_client()
            self._connected = True
            self.logger.info(f"{self.source} client connected successfully")
        except Exception as e:
            raise ClientConnectionException(self.source, f"Connection failed: {e}")

    async def disconnect(self) -> None:
        if self._client:
            self._client.close()
            self._connected = False
            self.logger.info(f"{self.source} client disconnected")

    def _ensure_connected(self) -> None:
        if not self._connected or self._client is None:
            raise UpstreamFetchException(self.source, "Client not connected")

    async def _call(self, fn: Callable[..., T], *args, **kwargs) -> T:
        """Run a blocking SDK call without stalling the event loop."""
        return await asyncio.to_thread(fn, *args, **kwargs)


class HttpApiClient(BaseClient):
    """Base for REST clients built on a shared ``httpx.AsyncClient``."""

    source = "HTTP API"

    def __init__(
        self,
        config: Dict[str, Any],
        name: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config, name)
        self.timeout = float(config.get("timeout_seconds", 30.0))
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    def _client_options(self) -> Dict[str, Any]:
        """Extra ``httpx.AsyncClient`` keyword arguments (auth, base URL, headers)."""
        return {}

    async def connect(self) -> None:
        if self._http is not None:
            return
        try:
            self._http = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                **self._client_options(),
            )
            self._connected = True
            self.logger.info(f"{self.source} client connected")
        except Exception as e:
            raise ClientConnectionException(self.source, str(e))

    async def disconnect(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            self._connected = False
            self.logger.info(f"{self.source} client disconnected")

    async def health_check(self) -> bool:
        return self._connected

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            raise UpstreamFetchException(self.source, "Client not connected")
        return self._http

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, mapping transport errors and non-2xx statuses to ``UpstreamFetchException``."""
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            self.logger.error(f"{self.source} request failed", url=url, error=str(e))
            raise UpstreamFetchException(self.source, str(e))

        if response.is_error:
            self.logger.warning(
                f"{self.source} returned an error status",
                url=url,
                status_code=response.status_code,
            )
            raise UpstreamFetchException(self.source, response.text, response.status_code)
        return response

    async def _get_json(self, url: str, **kwargs) -> Any:
        response = await self._request("GET", url, **kwargs)
        return response.json()
