"""Logging setup and the per-run event handler of the tracking-fix CLI.

Diagnostics go through the standard logging module. Per-run events (a run
updated, unchanged or skipped, an error) go through HandlerAPI, which prints a
StatusIndicator line and counts the event in MetricsTracker.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Dict, Optional, Tuple


class Verbosity(IntEnum):
    """How much the CLI prints; each -v raises it one step."""

    QUIET = 0  # Summary line and errors
    BRIEF = 1  # Plus updated runs (default)
    VERBOSE = 2  # Plus unchanged and skipped runs, counts block
    DEBUG = 3  # Plus debug logging
    TRACE = 4


VERBOSITY_TO_LEVEL = {
    Verbosity.QUIET: logging.ERROR,
    Verbosity.BRIEF: logging.WARNING,
    Verbosity.VERBOSE: logging.INFO,
    Verbosity.DEBUG: logging.DEBUG,
    Verbosity.TRACE: logging.DEBUG,
}


class MetricsTracker:
    def __init__(self) -> None:
        self.processed: int = 0
        self.updated: int = 0
        self.unchanged: int = 0
        self.skipped: int = 0
        self.errors: int = 0
        # Target family -> number of runs retargeted to it
        self.family_swaps: Dict[str, int] = {}

    def increment(self, metric: str) -> None:
        if hasattr(self, metric):
            setattr(self, metric, getattr(self, metric) + 1)
            if metric in {"updated", "unchanged", "skipped", "errors"}:
                self.processed += 1

    def track_family_swap(self, family: Optional[str]) -> None:
        if not family:
            return
        self.family_swaps[family] = self.family_swaps.get(family, 0) + 1


def _node_label(node_name: str, char_range: Optional[Tuple[int, int]]) -> str:
    if char_range is None:
        return node_name
    return f"{node_name} [{char_range[0]}:{char_range[1]}]"


class HandlerAPI:
    def __init__(self, verbosity: Verbosity, metrics: MetricsTracker) -> None:
        self.verbosity = verbosity
        self.metrics = metrics

    def run_updated(
        self,
        node_name: str,
        old_value: str,
        new_value: str,
        char_range: Optional[Tuple[int, int]] = None,
        swapped_to: Optional[str] = None,
    ) -> None:
        self.metrics.increment("updated")
        self.metrics.track_family_swap(swapped_to)
        if self.verbosity < Verbosity.BRIEF:
            return
        import TrackingCore.core_console_styles as cs

        cs.StatusIndicator("updated").add_node(
            _node_label(node_name, char_range)
        ).add_values(old_value=old_value, new_value=new_value).emit()

    def run_unchanged(
        self,
        node_name: str,
        value: str,
        char_range: Optional[Tuple[int, int]] = None,
    ) -> None:
        self.metrics.increment("unchanged")
        if self.verbosity < Verbosity.VERBOSE:
            return
        import TrackingCore.core_console_styles as cs

        cs.StatusIndicator("unchanged").add_node(
            _node_label(node_name, char_range)
        ).add_values(value=value).emit()

    def skipped(
        self,
        node_name: str,
        reason: str,
        char_range: Optional[Tuple[int, int]] = None,
    ) -> None:
        self.metrics.increment("skipped")
        if self.verbosity < Verbosity.VERBOSE:
            return
        import TrackingCore.core_console_styles as cs

        cs.StatusIndicator("skipped").add_node(
            _node_label(node_name, char_range)
        ).add_message(f"[dim]({reason})[/dim]").emit()

    def info(
        self,
        message: str,
        verbose_only: bool = True,
    ) -> None:
        min_level = Verbosity.VERBOSE if verbose_only else Verbosity.BRIEF
        if self.verbosity < min_level:
            return
        import TrackingCore.core_console_styles as cs

        cs.StatusIndicator("info").add_message(message).emit()

    def warning(self, message: str, node_name: Optional[str] = None) -> None:
        if self.verbosity < Verbosity.BRIEF:
            return
        import TrackingCore.core_console_styles as cs

        indicator = cs.StatusIndicator("warning")
        if node_name:
            indicator.add_node(node_name)
        indicator.with_explanation(message).emit()

    def error(self, message: str, node_name: Optional[str] = None) -> None:
        import TrackingCore.core_console_styles as cs

        indicator = cs.StatusIndicator("error")
        if node_name:
            indicator.add_node(node_name)
        indicator.with_explanation(message).emit()
        self.metrics.increment("errors")


def print_summary(metrics: MetricsTracker, console=None) -> None:
    if metrics.processed == 0:
        return
    import TrackingCore.core_console_styles as cs

    current_verbosity = _handler_api.verbosity if _handler_api else Verbosity.BRIEF
    cs.emit(f"\n{'=' * 60}", console=console)
    cs.fmt_processing_summary(
        {
            "updated": metrics.updated,
            "unchanged": metrics.unchanged,
            "skipped": metrics.skipped,
            "errors": metrics.errors,
        },
        console=console,
    )
    if metrics.family_swaps and current_verbosity >= Verbosity.BRIEF:
        cs.StatusIndicator("info").add_message("Family swaps:").emit(console)
        for family, count in sorted(
            metrics.family_swaps.items(), key=lambda x: x[0].lower()
        ):
            cs.emit(f"{cs.indent(1)}• → {family}: {cs.fmt_count(count)}", console=console)
    cs.emit(f"{'=' * 60}\n", console=console)


_handler_api: Optional[HandlerAPI] = None


def setup_logging(
    verbosity: Verbosity = Verbosity.BRIEF,
) -> Tuple[logging.Logger, HandlerAPI, MetricsTracker]:
    """Configure logging for one CLI run and return a fresh handler and metrics."""
    global _handler_api
    logging.basicConfig(
        level=VERBOSITY_TO_LEVEL[verbosity],
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )
    metrics = MetricsTracker()
    _handler_api = HandlerAPI(verbosity, metrics)
    return logging.getLogger("TrackingFix"), _handler_api, metrics


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
