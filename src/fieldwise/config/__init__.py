"""Application configuration helpers."""

from __future__ import annotations

from .clarification import (
    DEFAULT_CRITICAL_FIELDS,
    DEFAULT_SEVERITY_CRITICAL_FIELDS,
    ClarificationConfig,
    get_clarification_config,
)
from .errors import ConfigurationError, ValidationError
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_CRITICAL_FIELDS",
    "DEFAULT_SEVERITY_CRITICAL_FIELDS",
    "ClarificationConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "StorageConfig",
    "ValidationError",
    "configure_logging",
    "get_clarification_config",
    "get_database_config",
    "get_storage_config",
]
