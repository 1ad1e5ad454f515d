"""Configuration models and loaders."""

from __future__ import annotations

from .config import (
    DEFAULT_CATEGORY_WEIGHTS,
    CacheConfig,
    CategoryConfig,
    Config,
    CriterionConfig,
    MonitoringConfig,
    ScoringConfig,
    SemanticConfig,
    find_config_file,
    load_config,
)

__all__ = [
    "DEFAULT_CATEGORY_WEIGHTS",
    "CacheConfig",
    "CategoryConfig",
    "Config",
    "CriterionConfig",
    "MonitoringConfig",
    "ScoringConfig",
    "SemanticConfig",
    "find_config_file",
    "load_config",
]
