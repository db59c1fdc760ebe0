"""Custom exceptions for the operations dashboard."""

from typing import Optional, Dict, Any, Sequence


class DashboardException(Exception):
    """Base exception for the dashboard."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationException(DashboardException):
    """Raised when a required setting is missing or invalid."""

    def __init__(self, message: str, variable: Optional[str] = None):
        self.variable = variable
        super().__init__(message, {"variable": variable} if variable else None)


class ClientConnectionException(DashboardException):
    """Raised when client connections fail."""

    def __init__(self, client_type: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.client_type = client_type
        super().__init__(f"{client_type} connection failed: {message}", details)


class UpstreamFetchException(DashboardException):
    """Raised when an upstream API call fails or returns a non-2xx status."""

    def __init__(self, source: str, message: str, status_code: Optional[int] = None):
        self.source = source
        self.status_code = status_code
        super().__init__(message, {"source": source, "status_code": status_code})


class ColumnNotFoundException(DashboardException):
    """Raised when a cost query result lacks an expected column."""

    def __init__(self, candidates: Sequence[str], available: Sequence[str]):
        self.candidates = list(candidates)
        self.available = list(available)
        super().__init__(
            f"None of the columns {self.candidates} found in result columns {self.available}"
        )
