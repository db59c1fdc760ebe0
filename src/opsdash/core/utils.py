"""Utility functions and decorators."""

import asyncio
import logging.config
import structlog
import yaml
from datetime import date
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar, Union
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

T = TypeVar('T')

logger = structlog.get_logger(__name__)


def is_rate_limited(error: BaseException) -> bool:
    """True for upstream throttling (HTTP 429 / "Too many requests")."""
    if getattr(error, "status_code", None) == 429:
        return True
    response = getattr(error, "response", None)
    if getattr(response, "status_code", None) == 429:
        return True
    return "too many requests" in str(error).lower()


def _log_retry(retry_state) -> None:
    logger.warning(
        "Retrying after rate limit",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


def retry_with_backoff(
    max_retries: int = 3,
    backoff_factor: float = 1.0,
    max_wait: float = 60.0,
    retry_on: Optional[Callable[[BaseException], bool]] = None,
):
    """Decorator for retry with exponential backoff.

    With ``retry_on`` only matching exceptions are retried; anything else is
    re-raised on the first failure.
    """
    kwargs: Dict[str, Any] = {}
    if retry_on is not None:
        kwargs["retry"] = retry_if_exception(retry_on)
    return retry(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=backoff_factor, max=max_wait),
        before_sleep=_log_retry,
        reraise=True,
        **kwargs,
    )


def setup_logging(config_path: Optional[Union[str, Path]] = None, log_level: str = "INFO") -> None:
    """Setup structured logging configuration."""
    if config_path and Path(config_path).exists():
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
        logging.config.dictConfig(config)
    else:
        logging.basicConfig(
            level=getattr(logging, log_level.upper()),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if config_path else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def safe_get(dictionary: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Safely get a value from a nested dictionary using dot notation."""
    keys = key.split('.')
    value = dictionary

    try:
        for k in keys:
            value = value[k]
        return value if value is not None else default
    except (KeyError, TypeError, IndexError):
        return default


def first_day_of_month(day: date) -> date:
    return day.replace(day=1)


def shift_months(day: date, months: int) -> date:
    """First day of the month ``months`` away from ``day`` (negative goes back)."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_label(year: int, month: int) -> str:
    """Short chart label, e.g. ``Jan 25``."""
    return date(year, month, 1).strftime("%b %y")


async def gather_with_concurrency(
    coros: List[Awaitable[T]],
    max_concurrency: int = 10,
    return_exceptions: bool = True
) -> List[Union[T, BaseException]]:
    """Execute coroutines with limited concurrency."""
    semaphore = asyncio.Semaphore(max_concurrency)

    async def limited_coro(coro):
        async with semaphore:
            return await coro

    limited_coros = [limited_coro(coro) for coro in coros]
    return await asyncio.gather(*limited_coros, return_exceptions=return_exceptions)
