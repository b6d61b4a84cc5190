"""
docstore-cache — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import DEFAULT_COLLECTION_NAME, DEFAULT_DATABASE_NAME, DEFAULT_EXPIRES_IN, DocstoreCacheConfig

logger = logging.getLogger(__name__)

_config_instance: DocstoreCacheConfig | None = None


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> DocstoreCacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in current directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated DocstoreCacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    env_path = Path(env_file) if env_file else Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Auto-detect store backend: Mongo if MONGO_URL is set, else memory
    mongo_url = os.getenv("MONGO_URL") or None
    store_backend = "mongo" if mongo_url else "memory"

    try:
        config_dict = {
            "environment": os.getenv("ENVIRONMENT", "development"),
            "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
            "cache": {
                "backend": os.getenv("CACHE_BACKEND", store_backend),
                "collection_name": os.getenv("CACHE_COLLECTION_NAME", DEFAULT_COLLECTION_NAME),
                "database_name": os.getenv("CACHE_DATABASE_NAME", DEFAULT_DATABASE_NAME),
                "expires_in": float(os.getenv("CACHE_EXPIRES_IN", str(DEFAULT_EXPIRES_IN))),
                "create_index": _env_flag("CACHE_CREATE_INDEX", "true"),
                "namespace": os.getenv("CACHE_NAMESPACE"),
                "mongo_url": mongo_url,
                "mongo_server_selection_timeout_ms": int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000")),
                "mongo_socket_timeout_ms": int(os.getenv("MONGO_SOCKET_TIMEOUT_MS", "5000")),
            },
            "observability": {
                "enable_metrics": _env_flag("ENABLE_METRICS", "true"),
                "enable_tracing": _env_flag("ENABLE_TRACING", "false"),
                "json_logs": _env_flag("JSON_LOGS", "true"),
            },
        }
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid numeric configuration value: {e}",
            details={"error": str(e)},
        ) from e

    try:
        _config_instance = DocstoreCacheConfig(**config_dict)
    except ValidationError as e:
        errors = [{"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]} for err in e.errors()]
        logger.error("Configuration validation failed", extra={"validation_errors": errors})
        raise ConfigurationError(
            "Configuration validation failed",
            details={"validation_errors": errors},
        ) from e

    logger.info(
        "Configuration loaded",
        extra={
            "environment": _config_instance.environment,
            "store_backend": _config_instance.cache.backend.value,
            "collection": _config_instance.cache.collection_name,
        },
    )
    return _config_instance


def get_config() -> DocstoreCacheConfig:
    """
    Get the current configuration instance.

    Loads configuration on first call.

    Returns:
        Current DocstoreCacheConfig instance
    """
    if _config_instance is None:
        return load_config()
    return _config_instance


def reload_config(env_file: str | None = None) -> DocstoreCacheConfig:
    """
    Force reload configuration from environment.

    Args:
        env_file: Optional path to .env file

    Returns:
        Newly loaded DocstoreCacheConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def reset_config() -> None:
    """Drop the cached configuration instance (testing only)."""
    global _config_instance
    _config_instance = None
