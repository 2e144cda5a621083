"""Score severity bands for rule evaluations."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from config import ScoreSettings, get_score_settings
from core import CategorizedReport


class Severity(str, Enum):
    NA = "na"
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


def is_not_applicable(score: float) -> bool:
    """Negative scores are the engine's 'not applicable' sentinel."""
    return float(score) < 0


def classify_score(score: float, settings: Optional[ScoreSettings] = None) -> Severity:
    thresholds = settings or get_score_settings()
    value = float(score)
    if is_not_applicable(value):
        return Severity.NA
    if value >= thresholds.red_threshold:
        return Severity.CRITICAL
    if value >= thresholds.orange_threshold:
        return Severity.WARNING
    return Severity.OK


def summarize(categorized: CategorizedReport, settings: Optional[ScoreSettings] = None) -> Dict[Severity, int]:
    """Count evaluations per severity band."""
    counts = {severity: 0 for severity in Severity}
    for evaluations in categorized.values():
        for evaluation in evaluations:
            counts[classify_score(evaluation.score, settings)] += 1
    return counts
