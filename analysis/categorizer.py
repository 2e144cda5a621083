"""Group flat rule evaluations into per-topic buckets."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Tuple

from core import AnalysisReport, CategorizedReport, RuleEvaluation


def _evaluation_order(evaluation: RuleEvaluation) -> Tuple[float, str]:
    return (-float(evaluation.score), evaluation.name)


def categorize(report: Iterable[RuleEvaluation]) -> CategorizedReport:
    """Bucket evaluations by topic.

    Each bucket is ordered by descending score, ties by ascending name.
    Topic keys are sorted so repeated calls render identically.
    """
    buckets: Dict[str, List[RuleEvaluation]] = {}
    for evaluation in report:
        buckets.setdefault(evaluation.topic, []).append(evaluation)
    return {topic: sorted(buckets[topic], key=_evaluation_order) for topic in sorted(buckets)}


def flatten(categorized: CategorizedReport) -> AnalysisReport:
    """Inverse of categorize, in display order."""
    return [evaluation for evaluations in categorized.values() for evaluation in evaluations]


def visible_topics(categorized: CategorizedReport) -> Iterator[Tuple[str, List[RuleEvaluation]]]:
    """Topics that still hold at least one evaluation."""
    for topic, evaluations in categorized.items():
        if evaluations:
            yield topic, evaluations
