from .settings import Settings, require

__all__ = ["Settings", "require"]
