"""CLI entrypoint for resolving automated analysis reports."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from rich.table import Table

from analysis import classify_score, visible_topics
from config import get_settings
from core import Failed, FilterDelta, Ready, ReportState, Target
from orchestrator import AutomatedAnalysisService, PipelineContext
from sources import CryostatRecordingSource
from utils import console, setup_logger


_SEVERITY_STYLES = {
    "na": "dim",
    "ok": "green",
    "warning": "yellow",
    "critical": "bold red",
}


def _render(service: AutomatedAnalysisService, target: Target, state: ReportState) -> None:
    if isinstance(state, Failed):
        console.print(f"[bold red]Automated analysis error:[/] {state.message}")
        action = service.recovery_action(target)
        if action is not None:
            console.print(f"Suggested action: {action.label}")
        return

    if not isinstance(state, Ready):
        console.print("Loading...")
        return

    staleness = service.staleness(target)
    if staleness is not None:
        console.print(f"Showing {state.provenance.value} report from {staleness}.")
    else:
        console.print("Showing live report.")

    table = Table(title=f"Automated Analysis: {target.display_name}")
    table.add_column("Topic")
    table.add_column("Rule")
    table.add_column("Score", justify="right")
    settings = service.context.settings.score
    for topic, evaluations in visible_topics(service.visible_report(target) or {}):
        for evaluation in evaluations:
            style = _SEVERITY_STYLES[classify_score(evaluation.score, settings).value]
            table.add_row(topic, evaluation.name, f"{evaluation.score:.1f}", style=style)
    console.print(table)


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    context = PipelineContext.from_settings(settings)
    target = Target(connect_url=args.target, alias=args.alias)

    async with CryostatRecordingSource(api_settings=settings.api, snapshot_reports=args.snapshot) as source:
        service = AutomatedAnalysisService(source, context)
        service.set_show_na(args.show_na)
        service.set_critical_only(args.critical)
        if args.category or args.rule or args.min_score is not None:
            service.update_filters(
                target,
                FilterDelta(add_categories=args.category, add_names=args.rule, min_score=args.min_score),
            )

        state: Optional[ReportState] = None
        if args.command == "resolve":
            state = await service.resolve(target)
        elif args.command == "start-profiling":
            state = await service.start_profiling(target)
        elif args.command == "clear-cache":
            state = await service.clear_cache(target)
        elif args.command == "clear-analysis":
            state = service.clear_analysis(target)

        await service.resolver.wait_for_cleanup()
        if state is not None:
            _render(service, target, state)
        service.close()
        return 1 if isinstance(state, Failed) else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Automated analysis report CLI")
    parser.add_argument("command", choices=["resolve", "start-profiling", "clear-cache", "clear-analysis"])
    parser.add_argument("--target", required=True, help="Target connect URL")
    parser.add_argument("--alias", default=None)
    parser.add_argument("--category", action="append", default=[], help="Only show this topic (repeatable)")
    parser.add_argument("--rule", action="append", default=[], help="Only show this rule name (repeatable)")
    parser.add_argument("--min-score", type=float, default=None)
    parser.add_argument("--critical", action="store_true", help="Show critical scores only")
    parser.add_argument("--show-na", action="store_true", help="Include not-applicable scores")
    parser.add_argument("--snapshot", action="store_true", help="Report on a snapshot of the live recording")
    parser.add_argument("--verbose", action="store_true")

    args = parser.parse_args()
    level = logging.DEBUG if args.verbose else logging.INFO
    for name in ("orchestrator", "sources", "storage"):
        setup_logger(name, level=level)
    raise SystemExit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
