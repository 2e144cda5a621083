"""Rule evaluation categorization, filtering and severity."""

from .categorizer import categorize, flatten, visible_topics
from .filters import apply_filters, critical_only, merge_filters
from .severity import Severity, classify_score, is_not_applicable, summarize

__all__ = [
    "Severity",
    "apply_filters",
    "categorize",
    "classify_score",
    "critical_only",
    "flatten",
    "is_not_applicable",
    "merge_filters",
    "summarize",
    "visible_topics",
]
