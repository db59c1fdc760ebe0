# src/opsdash/config/settings.py
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List
from enum import Enum
from dotenv import load_dotenv

from opsdash.core.exceptions import ConfigurationException

# Load .env file explicitly
load_dotenv()


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class RepositoryTarget(BaseModel):
    name: str
    type: str = Field("frontend", description="frontend or backend")


class EnvironmentTarget(BaseModel):
    name: str
    url: str
    backend_url: Optional[str] = None


class AzureSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AZURE_")

    subscription_id: Optional[str] = Field(None, description="Azure subscription ID")
    tenant_id: Optional[str] = Field(None, description="Azure tenant ID")
    client_id: Optional[str] = Field(None, description="Azure client ID for service principal")
    client_secret: Optional[str] = Field(None, description="Azure client secret")


class DevOpsSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AZURE_DEVOPS_")

    org: Optional[str] = Field(None, description="Azure DevOps organization name")
    pat: Optional[str] = Field(None, description="Personal access token with Build/Code (Read)")
    base_url: str = Field("https://dev.azure.com", description="Azure DevOps base URL")
    api_version: str = Field("7.1", description="REST API version")
    builds_per_project: int = Field(100, description="Builds fetched per project")
    max_runs: int = Field(100, description="Runs returned without scan details")
    max_runs_with_scans: int = Field(20, description="Runs returned when scan details are requested")
    max_concurrency: int = Field(10, description="Parallel upstream requests for fan-outs")


class TechStackSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TECH_STACK_")

    project: Optional[str] = Field(None, description="DevOps project holding the scanned repositories")
    repos: List[RepositoryTarget] = Field(default_factory=list, description="JSON list of {name, type}")


class JiraSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="JIRA_")

    email: Optional[str] = Field(None, description="Jira account email")
    api_token: Optional[str] = Field(None, description="Jira API token")
    domain: Optional[str] = Field(None, description="Jira site domain, e.g. acme.atlassian.net")
    project_key: Optional[str] = Field(None, description="Jira project key")
    max_results: int = Field(50, description="Issues returned per request")


class CostSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="COST_")

    history_months: int = Field(12, description="Complete months shown before the current one")
    variance_threshold: float = Field(100.0, description="Minimum absolute month-over-month change reported")
    display_threshold: float = Field(1.0, description="Breakdown entries at or below this are hidden")
    project_tag_key: str = Field("project", description="Resource group tag holding the project label")


class CacheSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CACHE_")

    cost_ttl_seconds: int = Field(300, description="TTL for the month-to-date summary")
    cost_history_ttl_seconds: int = Field(900, description="TTL for the monthly history")
    cost_variance_ttl_seconds: int = Field(900, description="TTL for the variance report")
    cost_by_rg_ttl_seconds: int = Field(900, description="TTL for the project breakdown")
    resources_ttl_seconds: int = Field(600, description="TTL for the resource inventory")
    security_score_ttl_seconds: int = Field(3600, description="TTL for the security score")
    security_scan_ttl_seconds: int = Field(3600, description="TTL for the OSV scan")


class RetrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RETRY_")

    attempts: int = Field(3, description="Attempts for rate-limited cost queries")
    backoff_factor: float = Field(1.0, description="Exponential backoff multiplier in seconds")
    max_wait: float = Field(30.0, description="Upper bound for a single backoff wait")


class HealthSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HEALTH_")

    environments: List[EnvironmentTarget] = Field(default_factory=list, description="JSON list of {name, url, backend_url}")
    timeout_seconds: float = Field(5.0, description="Probe timeout")


class OSVSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="OSV_")

    api_url: str = Field("https://api.osv.dev/v1/query", description="OSV query endpoint")
    timeout_seconds: float = Field(30.0, description="Request timeout")


class APISettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field("0.0.0.0", description="API host")
    port: int = Field(8000, description="API port")
    reload: bool = Field(False, description="Enable auto-reload in development")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    environment: Environment = Field(Environment.DEVELOPMENT, description="Environment")
    debug: bool = Field(False, description="Debug mode")
    log_level: LogLevel = Field(LogLevel.INFO, description="Log level")
    log_config_path: Optional[str] = Field(None, description="YAML logging config; enables JSON logs")

    azure: AzureSettings = Field(default_factory=lambda: AzureSettings())
    devops: DevOpsSettings = Field(default_factory=lambda: DevOpsSettings())
    tech_stack: TechStackSettings = Field(default_factory=lambda: TechStackSettings())
    jira: JiraSettings = Field(default_factory=lambda: JiraSettings())
    cost: CostSettings = Field(default_factory=lambda: CostSettings())
    cache: CacheSettings = Field(default_factory=lambda: CacheSettings())
    retry: RetrySettings = Field(default_factory=lambda: RetrySettings())
    health: HealthSettings = Field(default_factory=lambda: HealthSettings())
    osv: OSVSettings = Field(default_factory=lambda: OSVSettings())
    api: APISettings = Field(default_factory=lambda: APISettings())

    @field_validator('environment', mode='before')
    @classmethod
    def validate_environment(cls, v):
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @classmethod
    def create_from_env(cls) -> "Settings":
        """Create settings instance from environment variables."""
        return cls()


def require(value: Optional[str], variable: str) -> str:
    """Return ``value`` or raise naming the environment variable that is missing."""
    if not value:
        raise ConfigurationException(f"{variable} environment variable is not set", variable)
    return value
