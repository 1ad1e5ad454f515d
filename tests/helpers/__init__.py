from .metric_delta import counter_value, histogram_count, histogram_observes, metric_delta
from .pages import build_page, image, words
from .semantic import FailingSemantic, FakeClock, StaticSemantic, semantic_payload, text_response

__all__ = [
    "FailingSemantic",
    "FakeClock",
    "StaticSemantic",
    "build_page",
    "counter_value",
    "histogram_count",
    "histogram_observes",
    "image",
    "metric_delta",
    "semantic_payload",
    "text_response",
    "words",
]
