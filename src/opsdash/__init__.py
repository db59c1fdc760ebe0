"""Operations dashboard API: cost, security, pipeline and task views."""

__version__ = "0.1.0"
