#!/usr/bin/env python3
"""
Walk a selection, fix every eligible text run, and count what happened.

Every visit returns a TraversalResult value; callers merge their children's
results with +, which is associative and commutative, so sequential and
concurrent sibling visits produce the same totals.

Counting rules:
- containers contribute nothing themselves, only their descendants
- each text element contributes exactly one classification
- every other leaf counts as unsupported
- a text element whose font could not be loaded counts as failed

Usage:
    from TrackingCore.core_selection_traversal import fix_selection

    report = await fix_selection(selection, loader)
    print(report.summary)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from TrackingCore.core_config import DEFAULT_CONFIG, TrackingConfig
from TrackingCore.core_error_handling import (
    ErrorContext,
    ErrorInfo,
    ErrorTracker,
    FontLoadError,
)
from TrackingCore.core_logging_config import get_logger
from TrackingCore.core_run_transformer import (
    RunOutcome,
    RunPlan,
    apply_plan,
    plan_run,
    transform_run,
)
from TrackingCore.core_scene_model import (
    MIXED,
    FontLoader,
    FontName,
    Node,
    NodeKind,
    StyleRun,
    TextNode,
)
from TrackingCore.core_summary_messages import report_message
from TrackingCore.core_tracking_tables import TrackingTable, get_tracking_tables
from TrackingCore.core_typeface_dictionaries import TypefaceVariant

logger = get_logger(__name__)


@dataclass(frozen=True)
class OutcomeCount:
    supported_unmodified: int = 0
    unsupported_or_styled: int = 0
    modified: int = 0
    failed: int = 0

    def __add__(self, other: "OutcomeCount") -> "OutcomeCount":
        if not isinstance(other, OutcomeCount):
            return NotImplemented
        return OutcomeCount(
            self.supported_unmodified + other.supported_unmodified,
            self.unsupported_or_styled + other.unsupported_or_styled,
            self.modified + other.modified,
            self.failed + other.failed,
        )

    @classmethod
    def of(cls, outcome: RunOutcome) -> "OutcomeCount":
        if outcome is RunOutcome.MODIFIED:
            return cls(modified=1)
        if outcome is RunOutcome.UNMODIFIED:
            return cls(supported_unmodified=1)
        return cls(unsupported_or_styled=1)

    @property
    def total(self) -> int:
        return (
            self.supported_unmodified
            + self.unsupported_or_styled
            + self.modified
            + self.failed
        )


@dataclass(frozen=True)
class TraversalResult:
    count: OutcomeCount = OutcomeCount()
    plans: Tuple[RunPlan, ...] = ()
    errors: Tuple[ErrorInfo, ...] = ()

    def __add__(self, other: "TraversalResult") -> "TraversalResult":
        if not isinstance(other, TraversalResult):
            return NotImplemented
        return TraversalResult(
            self.count + other.count,
            self.plans + other.plans,
            self.errors + other.errors,
        )


@dataclass
class TraversalReport:
    """Outcome of one fix over a whole selection."""

    count: OutcomeCount
    plans: List[RunPlan] = field(default_factory=list)
    errors: ErrorTracker = field(default_factory=ErrorTracker)

    @property
    def failed_fonts(self) -> List[FontName]:
        fonts = {}
        for error in self.errors.get_errors_by_context(ErrorContext.FONT_LOADING):
            if isinstance(error.exception, FontLoadError):
                fonts.update(dict.fromkeys(error.exception.fonts))
        return list(fonts)

    @property
    def summary(self) -> str:
        return report_message(self.count, self.failed_fonts)

    @property
    def ok(self) -> bool:
        return self.count.failed == 0


def classify_element(outcomes: Iterable[RunOutcome]) -> RunOutcome:
    """Modified if any run changed, else unmodified if any was supported."""
    outcomes = list(outcomes)
    if RunOutcome.MODIFIED in outcomes:
        return RunOutcome.MODIFIED
    if RunOutcome.UNMODIFIED in outcomes:
        return RunOutcome.UNMODIFIED
    return RunOutcome.UNSUPPORTED


def decompose_style_runs(node: TextNode) -> List[StyleRun]:
    """
    Split a text node into maximal uniform runs.

    Reads one character at a time through get_style and merges neighbours
    with equal styles.
    """
    runs: List[StyleRun] = []
    if node.length == 0:
        return [StyleRun(node, 0, 0, node.get_style(0, 0))]
    for index in range(node.length):
        style = node.get_style(index, index + 1)
        if runs and runs[-1].style == style:
            last = runs[-1]
            runs[-1] = StyleRun(node, last.start, index + 1, style)
        else:
            runs.append(StyleRun(node, index, index + 1, style))
    return runs


async def load_fonts(loader: FontLoader, fonts: Sequence[FontName]) -> None:
    """Load fonts concurrently; raise one FontLoadError naming every failure."""
    results = await asyncio.gather(
        *(loader.load_font(font) for font in fonts), return_exceptions=True
    )
    failed: List[FontName] = []
    for result in results:
        if isinstance(result, FontLoadError):
            failed.extend(result.fonts)
        elif isinstance(result, BaseException):
            raise result
    if failed:
        raise FontLoadError(failed, "font is not installed")


async def fix_text_node(
    node: TextNode,
    loader: FontLoader,
    tables: Mapping[TypefaceVariant, TrackingTable],
    config: TrackingConfig = DEFAULT_CONFIG,
) -> TraversalResult:
    """Fix one text element, decomposing it first when its styling is mixed."""
    whole = node.get_style(0, node.length)
    if whole is not MIXED:
        plan = await transform_run(StyleRun(node, 0, node.length, whole), loader, tables, config)
        return TraversalResult(OutcomeCount.of(plan.outcome), (plan,))

    runs = decompose_style_runs(node)
    logger.debug(f"{node.name}: mixed styling, {len(runs)} runs")
    plans = [plan_run(run, tables, config) for run in runs]

    # Every font must be available before the first write to this node
    fonts = list(dict.fromkeys(p.new_font for p in plans if p.is_supported))
    await load_fonts(loader, fonts)
    for plan in plans:
        apply_plan(plan)

    outcome = classify_element(p.outcome for p in plans)
    return TraversalResult(OutcomeCount.of(outcome), tuple(plans))


class _Traversal:
    def __init__(
        self,
        loader: FontLoader,
        tables: Mapping[TypefaceVariant, TrackingTable],
        config: TrackingConfig,
    ):
        self.loader = loader
        self.tables = tables
        self.config = config

    async def visit_all(self, nodes: Sequence[Node]) -> TraversalResult:
        if self.config.concurrent:
            results = await asyncio.gather(*(self.visit(n) for n in nodes))
        else:
            results = [await self.visit(n) for n in nodes]
        return sum(results, TraversalResult())

    async def visit(self, node: Node) -> TraversalResult:
        # Only descendants are counted, never the container itself
        if node.kind is NodeKind.CONTAINER:
            return await self.visit_all(node.children)
        if node.kind is NodeKind.TEXT:
            return await self.visit_text(node)
        return TraversalResult(OutcomeCount(unsupported_or_styled=1))

    async def visit_text(self, node: TextNode) -> TraversalResult:
        try:
            return await fix_text_node(node, self.loader, self.tables, self.config)
        except FontLoadError as e:
            if self.config.stop_on_error:
                raise
            error = ErrorInfo.from_exception(
                ErrorContext.FONT_LOADING,
                e,
                node_id=node.id,
                node_name=node.name,
                additional_info={"fonts": [str(f) for f in e.fonts]},
            )
            return TraversalResult(OutcomeCount(failed=1), errors=(error,))


async def traverse(
    nodes: Sequence[Node],
    loader: FontLoader,
    tables: Optional[Mapping[TypefaceVariant, TrackingTable]] = None,
    config: TrackingConfig = DEFAULT_CONFIG,
) -> TraversalResult:
    """Visit every node of a selection and return the merged result."""
    return await _Traversal(loader, tables or get_tracking_tables(), config).visit_all(
        nodes
    )


async def fix_selection(
    nodes: Sequence[Node],
    loader: FontLoader,
    tables: Optional[Mapping[TypefaceVariant, TrackingTable]] = None,
    config: TrackingConfig = DEFAULT_CONFIG,
) -> TraversalReport:
    """Fix a whole selection and build the report with its summary line."""
    result = await traverse(nodes, loader, tables, config)
    tracker = ErrorTracker()
    tracker.extend(result.errors)
    report = TraversalReport(result.count, list(result.plans), tracker)
    logger.info(f"Tracking fix finished: {report.count}")
    return report


__all__ = [
    "OutcomeCount",
    "TraversalResult",
    "TraversalReport",
    "classify_element",
    "decompose_style_runs",
    "load_fonts",
    "fix_text_node",
    "traverse",
    "fix_selection",
]
