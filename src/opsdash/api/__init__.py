from .app import create_app
from .registry import ServiceRegistry

__all__ = ["create_app", "ServiceRegistry"]
