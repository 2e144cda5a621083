"""Predicate filtering over categorized reports."""

from __future__ import annotations

from typing import Iterable, List, Optional

from core import CategorizedReport, FilterDelta, FilterSet, RuleEvaluation
from .severity import is_not_applicable


def _dedupe(values: Iterable[str]) -> List[str]:
    out: List[str] = []
    seen = set()
    for value in values:
        text = str(value or "").strip()
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return out


def _topic_allowed(topic: str, filters: FilterSet) -> bool:
    return not filters.categories or topic in filters.categories


def _evaluation_allowed(evaluation: RuleEvaluation, filters: FilterSet) -> bool:
    if filters.names and evaluation.name not in filters.names:
        return False
    if filters.min_score is not None and evaluation.score < filters.min_score:
        return False
    if filters.max_score is not None and evaluation.score > filters.max_score:
        return False
    return True


def apply_filters(
    categorized: CategorizedReport,
    target_filters: Optional[FilterSet] = None,
    global_filters: Optional[FilterSet] = None,
    *,
    show_na: bool = False,
) -> CategorizedReport:
    """Keep only topics and evaluations matching every active filter.

    Dimensions are ANDed and values within one dimension are ORed. Both
    filter sets must accept an evaluation. Not-applicable scores are
    dropped unless ``show_na`` is set. A topic removed by evaluation-level
    predicates stays in the map with an empty list.
    """
    active = [item for item in (target_filters, global_filters) if item is not None and not item.is_empty()]
    result: CategorizedReport = {}
    for topic, evaluations in categorized.items():
        if not all(_topic_allowed(topic, item) for item in active):
            continue
        kept = []
        for evaluation in evaluations:
            if not show_na and is_not_applicable(evaluation.score):
                continue
            if all(_evaluation_allowed(evaluation, item) for item in active):
                kept.append(evaluation)
        result[topic] = kept
    return result


def critical_only(categorized: CategorizedReport, threshold: float) -> CategorizedReport:
    """Keep evaluations scoring at or above ``threshold``."""
    return {
        topic: [evaluation for evaluation in evaluations if evaluation.score >= threshold]
        for topic, evaluations in categorized.items()
    }


def merge_filters(current: FilterSet, delta: FilterDelta) -> FilterSet:
    """Apply an incremental change, returning a new FilterSet."""
    categories = [item for item in current.categories if item not in set(delta.remove_categories)]
    names = [item for item in current.names if item not in set(delta.remove_names)]

    min_score = current.min_score
    max_score = current.max_score
    if delta.clear_score_bounds:
        min_score = None
        max_score = None
    if delta.min_score is not None:
        min_score = float(delta.min_score)
    if delta.max_score is not None:
        max_score = float(delta.max_score)

    return FilterSet(
        categories=_dedupe(categories + list(delta.add_categories)),
        names=_dedupe(names + list(delta.add_names)),
        min_score=min_score,
        max_score=max_score,
    )
