"""
Material Engine - Configuration

Pydantic Settings for all configuration via environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Literal


class MaterialApiSettings(BaseSettings):
    """Material REST API configuration."""
    base_url: str = Field("http://localhost:8080", alias="MATERIAL_API_BASE_URL")
    timeout_seconds: float = Field(30.0, alias="MATERIAL_API_TIMEOUT_SECONDS")

    model_config = {"env_prefix": "", "extra": "ignore"}


class LoaderSettings(BaseSettings):
    """Page loading and navigation behaviour."""
    load_scores: bool = Field(True, alias="LOAD_SCORES")
    analytics_enabled: bool = Field(False, alias="ANALYTICS_ENABLED")
    analytics_users: str = Field("", alias="ANALYTICS_USERS")
    incremental_load: bool = Field(True, alias="INCREMENTAL_LOAD")

    model_config = {"env_prefix": "", "extra": "ignore"}

    @property
    def users(self) -> List[str]:
        """Analytics user ids, parsed from a comma separated list."""
        return [user.strip() for user in self.analytics_users.split(",") if user.strip()]


class CacheSettings(BaseSettings):
    """Caching configuration for permissions and material metadata."""
    enabled: bool = Field(True, alias="CACHE_ENABLED")
    ttl_metadata: int = Field(300, alias="CACHE_TTL_METADATA_SECONDS")
    max_entries: int = Field(256, alias="CACHE_MAX_ENTRIES")

    model_config = {"env_prefix": "", "extra": "ignore"}


class MCPSettings(BaseSettings):
    """MCP server configuration."""
    transport: Literal["sse", "stdio"] = Field("stdio", alias="MCP_TRANSPORT")
    port: int = Field(8090, alias="MCP_PORT")
    host: str = Field("0.0.0.0", alias="MCP_HOST")
    material_id: str = Field("", alias="MCP_MATERIAL_ID")

    model_config = {"env_prefix": "", "extra": "ignore"}


class LogSettings(BaseSettings):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", alias="LOG_LEVEL"
    )

    model_config = {"env_prefix": "", "extra": "ignore"}


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""
    api: MaterialApiSettings = Field(default_factory=MaterialApiSettings)
    loader: LoaderSettings = Field(default_factory=LoaderSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    mcp: MCPSettings = Field(default_factory=MCPSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = {"env_prefix": "", "extra": "ignore"}


def get_settings() -> Settings:
    """Load settings from environment variables."""
    from dotenv import load_dotenv
    load_dotenv()
    return Settings()
