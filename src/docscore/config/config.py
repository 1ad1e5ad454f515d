"""
Configuration management for DocScore using Pydantic.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docscore.errors import ConfigError

# --- Setup Logging ---
log = logging.getLogger(__name__)

# Category weights used for the composite score (must sum to 1.0)
DEFAULT_CATEGORY_WEIGHTS: Dict[str, float] = {
    "content-structure": 0.30,
    "outcomes-reversibility": 0.25,
    "terminology": 0.15,
    "permissions-plans": 0.15,
    "text-over-visuals": 0.10,
    "self-contained": 0.05,
}

WEIGHT_TOLERANCE = 1e-9

# --- Nested Configuration Models ---


class CriterionConfig(BaseModel):
    """Per-criterion overrides. Every field is optional; evaluators fall back to their defaults."""

    weight: Optional[float] = Field(default=None, ge=0, description="Weight inside the category average.")
    threshold: Optional[int] = Field(default=None, gt=0, description="Word threshold (e.g. long paragraphs).")
    ideal_ratio: Optional[float] = Field(default=None, gt=0, description="Ideal ratio (e.g. lists per paragraph).")
    long_sentence_threshold: Optional[int] = Field(
        default=None, gt=0, description="Words above which a sentence counts as long."
    )


class CategoryConfig(BaseModel):
    criteria: Dict[str, CriterionConfig] = Field(default_factory=dict)


class ScoringConfig(BaseModel):
    """Weights and thresholds read by evaluators. Passed explicitly into every evaluator call."""

    categories: Dict[str, CategoryConfig] = Field(default_factory=dict)
    category_weights: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_CATEGORY_WEIGHTS))
    top_issue_count: int = Field(default=5, ge=0, description="Number of issues surfaced as top issues.")
    green_threshold: float = Field(default=7.0, description="Scores at or above this are green.")
    yellow_threshold: float = Field(default=4.0, description="Scores at or above this (and below green) are yellow.")

    @field_validator("category_weights")
    @classmethod
    def validate_category_weights(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Ensure the composite weights form a complete distribution."""
        missing = set(DEFAULT_CATEGORY_WEIGHTS) - set(v)
        if missing:
            raise ValueError(f"category_weights is missing categories: {sorted(missing)}")
        total = sum(v.values())
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"category_weights must sum to 1.0 (got {total})")
        return v

    def criterion(self, category: str, criterion_id: str) -> CriterionConfig:
        """Overrides for one criterion, or an empty config when none are set."""
        category_config = self.categories.get(category)
        if category_config is None:
            return CriterionConfig()
        return category_config.criteria.get(criterion_id) or CriterionConfig()

    def criterion_weight(self, category: str, criterion_id: str, default: float) -> float:
        weight = self.criterion(category, criterion_id).weight
        return weight if weight else default

    def threshold(self, category: str, criterion_id: str, default: int) -> int:
        return self.criterion(category, criterion_id).threshold or default

    def ideal_ratio(self, category: str, criterion_id: str, default: float) -> float:
        return self.criterion(category, criterion_id).ideal_ratio or default

    def long_sentence_threshold(self, default: int = 25) -> int:
        return self.criterion("content-structure", "CS-01").long_sentence_threshold or default


class SemanticConfig(BaseModel):
    """Settings for the remote semantic capability."""

    api_key: Optional[SecretStr] = Field(default=None, description="Anthropic API key. None selects the estimator.")
    model: str = Field(default="claude-sonnet-4-20250514", description="Model used for semantic scoring.")
    max_tokens: int = Field(default=4096, gt=0)
    temperature: float = Field(default=0.0, ge=0.0, le=1.0)
    max_retries: int = Field(default=2, ge=0, description="Retries for transient failures, with exponential backoff.")
    timeout_seconds: float = Field(default=120.0, gt=0)

    @property
    def has_credentials(self) -> bool:
        return self.api_key is not None and bool(self.api_key.get_secret_value().strip())


class CacheConfig(BaseModel):
    """Content-hash cache and history persistence."""

    path: Optional[Path] = Field(default=None, description="JSON file backing the cache. None keeps it in memory.")
    max_entries: int = Field(default=50, gt=0)
    ttl_seconds: float = Field(default=7 * 24 * 60 * 60, gt=0, description="Entry time-to-live (default 7 days).")
    report_cache_enabled: bool = Field(default=True, description="Reuse whole reports for unchanged content.")
    history_path: Optional[Path] = Field(default=None, description="JSON file holding the scoring history.")
    max_history: int = Field(default=50, gt=0)

    @field_validator("path", "history_path", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Optional[Path]:
        if v is None or v == "":
            return None
        return Path(v).expanduser()


class MonitoringConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: Optional[str] = Field(default=None, description="Path to log file. If None, logs to console.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "DocScore"
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    semantic: SemanticConfig = Field(default_factory=SemanticConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="DOCSCORE_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        return cls._from_data(path, lambda text: yaml.safe_load(text))

    @classmethod
    def from_json(cls, path: Path) -> Config:
        log.debug("Loading configuration from JSON file: %s", path)
        return cls._from_data(path, json.loads)

    @classmethod
    def from_file(cls, path: Path) -> Config:
        """Load a YAML or JSON config, chosen by file suffix."""
        path = Path(path)
        if path.suffix.lower() == ".json":
            return cls.from_json(path)
        return cls.from_yaml(path)

    @classmethod
    def _from_data(cls, path: Path, parse: Any) -> Config:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        try:
            data = parse(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot parse configuration file {path}: {e}") from e
        if not data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for name in ("docscore.yaml", "docscore.yml", "docscore.json"):
        path = current_dir / name
        if path.exists():
            return path
    return None


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from ``path`` or a discovered file, falling back to defaults."""
    config_path = path or find_config_file()
    if config_path is None:
        log.info("No config file found. Using default settings.")
        return Config()
    log.info("Loading configuration from: %s", config_path)
    return Config.from_file(config_path)
