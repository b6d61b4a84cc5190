"""
docstore-cache — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration must be defined here and validated at startup.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_COLLECTION_NAME = "rails_cache"
DEFAULT_DATABASE_NAME = "rails_cache"
DEFAULT_EXPIRES_IN = 86400  # 1 day


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class StoreBackend(str, Enum):
    """Supported document store backends."""

    MEMORY = "memory"
    MONGO = "mongo"  # Requires pymongo


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheStoreConfig(BaseModel):
    """Cache store configuration."""

    backend: StoreBackend = Field(default=StoreBackend.MEMORY, description="Document store backend to use")
    collection_name: str = Field(
        default=DEFAULT_COLLECTION_NAME, min_length=1, description="Collection holding the cache entries"
    )
    database_name: str = Field(default=DEFAULT_DATABASE_NAME, min_length=1, description="Database holding the collection")
    expires_in: float = Field(default=DEFAULT_EXPIRES_IN, gt=0, description="Default TTL in seconds")
    create_index: bool = Field(default=True, description="Index _id and expires on first collection use")
    namespace: str | None = Field(default=None, description="Cache key namespace/prefix")

    # Mongo-specific settings (only used when backend=mongo)
    mongo_url: str | None = Field(default=None, description="MongoDB connection URL")
    mongo_server_selection_timeout_ms: int = Field(
        default=5000, ge=1, description="Server selection timeout in milliseconds"
    )
    mongo_socket_timeout_ms: int = Field(default=5000, ge=1, description="Socket timeout in milliseconds")

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @field_validator("namespace")
    @classmethod
    def normalize_namespace(cls, v: str | None) -> str | None:
        """Treat a blank namespace as no namespace."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("mongo_url")
    @classmethod
    def validate_mongo_url(cls, v: str | None, info: Any) -> str | None:
        """Ensure mongo_url is provided when backend is mongo."""
        backend = info.data.get("backend")
        if backend == StoreBackend.MONGO and not v:
            raise ValueError("mongo_url is required when store backend is 'mongo'")
        return v


class ObservabilityConfig(BaseModel):
    """Observability and monitoring configuration."""

    enable_metrics: bool = Field(default=True, description="Enable in-process metrics collection")
    enable_tracing: bool = Field(default=False, description="Enable span tracing in logs")
    json_logs: bool = Field(default=True, description="Emit logs as JSON lines")


class DocstoreCacheConfig(BaseModel):
    """Root configuration for docstore-cache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheStoreConfig = Field(default_factory=CacheStoreConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
