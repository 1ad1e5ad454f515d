"""
Unit tests for configuration loading and validation.
"""

import json

import pytest
import yaml
from pydantic import ValidationError

from docscore.config import DEFAULT_CATEGORY_WEIGHTS, Config, ScoringConfig, find_config_file, load_config
from docscore.errors import ConfigError


class TestDefaults:
    def test_default_weights_sum_to_one(self):
        config = Config()
        assert config.scoring.category_weights == DEFAULT_CATEGORY_WEIGHTS
        assert sum(config.scoring.category_weights.values()) == pytest.approx(1.0)

    def test_defaults(self):
        config = Config()
        assert config.semantic.api_key is None
        assert config.semantic.has_credentials is False
        assert config.cache.max_entries == 50
        assert config.cache.ttl_seconds == 7 * 24 * 60 * 60
        assert config.scoring.top_issue_count == 5
        assert config.monitoring.log_level == "INFO"

    def test_missing_criterion_overrides_fall_back(self):
        scoring = ScoringConfig()
        assert scoring.threshold("content-structure", "CS-01", 150) == 150
        assert scoring.ideal_ratio("content-structure", "CS-02", 0.3) == 0.3
        assert scoring.criterion_weight("unknown", "X-01", 0.25) == 0.25
        assert scoring.long_sentence_threshold() == 25


class TestValidation:
    def test_weights_must_sum_to_one(self):
        weights = dict(DEFAULT_CATEGORY_WEIGHTS, terminology=0.5)
        with pytest.raises(ValidationError, match="must sum to 1.0"):
            ScoringConfig(category_weights=weights)

    def test_every_category_needs_a_weight(self):
        weights = {key: value for key, value in DEFAULT_CATEGORY_WEIGHTS.items() if key != "self-contained"}
        weights["content-structure"] += 0.05
        with pytest.raises(ValidationError, match="missing categories"):
            ScoringConfig(category_weights=weights)

    def test_criterion_overrides_must_be_positive(self):
        with pytest.raises(ValidationError):
            ScoringConfig.model_validate({"categories": {"content-structure": {"criteria": {"CS-01": {"threshold": 0}}}}})


class TestLoading:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "docscore.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "scoring": {"categories": {"content-structure": {"criteria": {"CS-01": {"threshold": 120}}}}},
                    "cache": {"max_entries": 10, "history_path": "~/history.json"},
                }
            ),
            encoding="utf-8",
        )

        config = Config.from_file(path)

        assert config.scoring.threshold("content-structure", "CS-01", 150) == 120
        assert config.cache.max_entries == 10
        assert "~" not in str(config.cache.history_path)

    def test_json_file(self, tmp_path):
        path = tmp_path / "docscore.json"
        path.write_text(json.dumps({"semantic": {"model": "claude-test", "max_retries": 0}}), encoding="utf-8")

        config = Config.from_file(path)

        assert config.semantic.model == "claude-test"
        assert config.semantic.max_retries == 0

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "docscore.yaml"
        path.write_text("", encoding="utf-8")
        assert Config.from_file(path).cache.max_entries == 50

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "docscore.yaml"
        path.write_text("scoring: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError, match="Cannot parse"):
            Config.from_file(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "docscore.json"
        path.write_text(json.dumps({"cache": {"max_entries": -1}}), encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            Config.from_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.from_file(tmp_path / "absent.yaml")

    def test_discovery_in_working_directory(self, tmp_path):
        assert find_config_file() is None
        assert load_config().project_name == "DocScore"

        (tmp_path / "docscore.yml").write_text("cache:\n  max_history: 5\n", encoding="utf-8")
        assert find_config_file() == tmp_path / "docscore.yml"
        assert load_config().cache.max_history == 5


class TestEnvironment:
    def test_nested_override(self, monkeypatch):
        monkeypatch.setenv("DOCSCORE_SEMANTIC__MODEL", "claude-env")
        monkeypatch.setenv("DOCSCORE_CACHE__MAX_ENTRIES", "7")

        config = Config()

        assert config.semantic.model == "claude-env"
        assert config.cache.max_entries == 7

    def test_api_key_is_secret(self, monkeypatch):
        monkeypatch.setenv("DOCSCORE_SEMANTIC__API_KEY", "sk-env")
        config = Config()

        assert config.semantic.has_credentials
        assert "sk-env" not in repr(config.semantic)
        assert config.semantic.api_key.get_secret_value() == "sk-env"
