"""Application configuration helpers."""

from __future__ import annotations

from .env import env_flag, env_float, env_int, optional_env_var, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .practice import PracticeConfig, PracticeCredentials, get_practice_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import ScheduleConfig, SyncConfig, get_schedule_config, get_sync_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "PracticeConfig",
    "PracticeCredentials",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "ScheduleConfig",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "env_flag",
    "env_float",
    "env_int",
    "get_database_config",
    "get_practice_config",
    "get_schedule_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_var",
    "require_env_vars",
]
