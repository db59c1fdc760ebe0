from . import azure, cost, health, jira

__all__ = ["azure", "cost", "health", "jira"]
