"""
DocScore - AI-friendliness scoring for documentation pages.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config
from .container import DependencyContainer
from .protocols import ScoreReport
from .scorer import Scorer

__all__ = ["__version__", "Config", "DependencyContainer", "ScoreReport", "Scorer"]
