"""Runtime infrastructure for beanbill.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- User settings via load_user_settings()
- Rules engine construction via create_rules_engine()
- Column-mapping cache stores and HTTP service clients

Usage:
    from beanbill.runtime import get_logger, get_paths

    logger = get_logger(__name__)
    paths = get_paths()
    print(paths.root, paths.settings)
"""

from beanbill.runtime.column_cache import (
    ColumnMappingStore,
    InMemoryColumnMappingCache,
    JsonFileColumnMappingCache,
)
from beanbill.runtime.history import append_history, load_history
from beanbill.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from beanbill.runtime.paths import ProjectPaths, get_paths, set_project_root
from beanbill.runtime.rule_engine import RulesEngine, RuleValidationError, create_rules_engine
from beanbill.runtime.services import (
    CategorizationClient,
    ColumnRecognizerClient,
    ServiceCancelled,
    ServiceConfig,
    ServiceError,
    ServiceUnavailable,
)
from beanbill.runtime.settings import SettingsError, UserSettings, load_user_settings

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Paths
    "get_paths",
    "set_project_root",
    "ProjectPaths",
    # Settings and rules
    "load_user_settings",
    "UserSettings",
    "SettingsError",
    "RulesEngine",
    "RuleValidationError",
    "create_rules_engine",
    # Column mapping cache
    "ColumnMappingStore",
    "InMemoryColumnMappingCache",
    "JsonFileColumnMappingCache",
    # History
    "load_history",
    "append_history",
    # Services
    "ServiceConfig",
    "ServiceUnavailable",
    "ServiceCancelled",
    "ServiceError",
    "ColumnRecognizerClient",
    "CategorizationClient",
]
