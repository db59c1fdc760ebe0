"""Base service interface."""

from datetime import date, datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional, Sequence, TypeVar

import structlog

from opsdash.core.utils import gather_with_concurrency

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class BaseService:
    """Common plumbing for the services behind the dashboard endpoints."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.max_concurrency = self.config.get("max_concurrency", 10)
        self.logger = logger.bind(service=self.__class__.__name__)

    @staticmethod
    def today() -> date:
        return datetime.now(timezone.utc).date()

    @staticmethod
    def timestamp() -> str:
        return datetime.now(timezone.utc).isoformat()

    async def gather_items(
        self,
        coros: Sequence[Awaitable[T]],
        default: Any,
        labels: Optional[Sequence[Any]] = None,
    ) -> List[Any]:
        """Run a fan-out concurrently, replacing each failed item with ``default``.

        One item failing never fails the batch; the failure is logged with its
        label and the item's slot gets ``default``.
        """
        results = await gather_with_concurrency(list(coros), self.max_concurrency, return_exceptions=True)
        items: List[Any] = []
        for index, result in enumerate(results):
            if isinstance(result, BaseException):
                self.logger.warning(
                    "Fan-out item failed",
                    item=labels[index] if labels else index,
                    error=str(result),
                )
                items.append(default)
            else:
                items.append(result)
        return items
