"""
Shared test configuration for DocScore.

Provides extracted-page fixtures, config fixtures and a scripted stand-in for
the Anthropic client so no test touches the network.
"""

# Standard library imports
import json
import os
from typing import Any, Callable, Dict
from unittest.mock import AsyncMock, MagicMock

# Third-party imports
import pytest

# Local imports
from docscore.config import Config, ScoringConfig
from tests.helpers import FailingSemantic, FakeClock, StaticSemantic, build_page, semantic_payload, text_response, words

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")
    config.addinivalue_line("markers", "slow: Tests that take >10 seconds")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep DOCSCORE_* variables and stray config files from leaking into tests."""
    for name in list(os.environ):
        if name.startswith("DOCSCORE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


# ============================================================================
# Content Fixtures
# ============================================================================


@pytest.fixture
def sample_page() -> Dict[str, Any]:
    """A short, well-structured procedural page."""
    return build_page(
        headings=[
            {"level": "h1", "text": "Delete a Record", "index": 0},
            {"level": "h2", "text": "Before you begin", "index": 1},
            {"level": "h2", "text": "Steps", "index": 2},
        ],
        paragraphs=[
            "Deleting a record permanently erases it from your workspace.",
            "Only workspace admins can delete records. This action cannot be undone.",
            "After deletion, the record no longer appears in search results or reports.",
        ],
        lists=[
            {"type": "ol", "items": ["Open the record", "Click Delete", "Confirm the deletion"]},
        ],
        images=[{"src": "https://cdn.example.com/img/delete-dialog.png", "alt": "Delete dialog", "hasAlt": True}],
        links=[{"href": "#steps", "text": "Steps", "type": "internal"}],
    )


@pytest.fixture
def wall_of_text_page() -> Dict[str, Any]:
    """One 210-word paragraph and nine 20-word paragraphs, no lists or images."""
    return build_page(
        url="https://help.example.com/wall",
        title="Wall of Text",
        headings=[{"level": "h1", "text": "Wall of Text", "index": 0}],
        paragraphs=[words(210)] + [words(20, "beta") for _ in range(9)],
    )


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture
def config() -> Config:
    return Config()


# ============================================================================
# Semantic Capability Fixtures
# ============================================================================


@pytest.fixture
def mock_client_factory() -> Callable[..., MagicMock]:
    """
    Build a fake AsyncAnthropic client.

    ``messages.create`` returns (or raises, for exceptions) each response in
    order; dicts are JSON-encoded into a text block.
    """

    def factory(*responses: Any) -> MagicMock:
        side_effects = []
        for response in responses:
            if isinstance(response, BaseException):
                side_effects.append(response)
            elif isinstance(response, dict):
                side_effects.append(text_response(json.dumps(response)))
            elif isinstance(response, str):
                side_effects.append(text_response(response))
            else:
                side_effects.append(response)
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=side_effects)
        return client

    return factory


@pytest.fixture
def failing_semantic() -> FailingSemantic:
    return FailingSemantic()


@pytest.fixture
def static_semantic() -> StaticSemantic:
    return StaticSemantic(semantic_payload())


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
