#!/usr/bin/env python3
"""
Exceptions raised by the tracking fixer and records of the ones it survives.

A font that cannot be loaded aborts only the text element that needed it. The
traversal turns the FontLoadError into an ErrorInfo naming the node, and the
ErrorTracker collects those records for the final report.

Usage:
    from TrackingCore.core_error_handling import ErrorContext, ErrorTracker, FontLoadError

    tracker = ErrorTracker()
    try:
        await loader.load_font(font)
    except FontLoadError as e:
        tracker.add_from_exception(
            ErrorContext.FONT_LOADING, e, node_id=node.id, node_name=node.name
        )

    if tracker.errors:
        tracker.print_summary()
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from TrackingCore.core_logging_config import get_logger

if TYPE_CHECKING:
    from TrackingCore.core_scene_model import FontName

logger = get_logger(__name__)


# ================================================================================================
# EXCEPTIONS
# ================================================================================================


class TrackingError(Exception):
    """Base class for every error raised by TrackingCore."""


class FontLoadError(TrackingError):
    """One or more font variants could not be made available."""

    def __init__(self, fonts: Iterable["FontName"], reason: Optional[str] = None):
        self.fonts = tuple(fonts)
        self.reason = reason
        message = "Could not load " + ", ".join(str(f) for f in self.fonts)
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SceneFormatError(TrackingError):
    """A scene document does not match the expected node shape."""

    def __init__(self, message: str, path: str = "$"):
        self.path = path
        super().__init__(f"{path}: {message}")


# ================================================================================================
# ERROR RECORDS
# ================================================================================================


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorContext(Enum):
    """Where in a tracking fix an error happened."""

    FONT_LOADING = "font_loading"  # Target font variant unavailable
    FONT_REGISTRY = "font_registry"  # Unreadable font file while indexing
    SCENE_IO = "scene_io"  # Selection snapshot could not be read
    UNKNOWN = "unknown"

    @property
    def default_severity(self) -> ErrorSeverity:
        return _DEFAULT_SEVERITY.get(self, ErrorSeverity.ERROR)

    @property
    def is_recoverable_by_default(self) -> bool:
        """Recoverable errors let the traversal continue with sibling nodes."""
        return self in (ErrorContext.FONT_LOADING, ErrorContext.FONT_REGISTRY)


_DEFAULT_SEVERITY = {
    ErrorContext.FONT_REGISTRY: ErrorSeverity.WARNING,
    ErrorContext.SCENE_IO: ErrorSeverity.CRITICAL,
}

_LOG_LEVEL = {
    ErrorSeverity.INFO: logger.info,
    ErrorSeverity.WARNING: logger.warning,
    ErrorSeverity.ERROR: logger.error,
    ErrorSeverity.CRITICAL: logger.error,
}


@dataclass
class ErrorInfo:
    """One recorded failure and the node it belongs to."""

    context: ErrorContext
    message: str
    node_id: Optional[str] = None
    node_name: Optional[str] = None
    exception: Optional[Exception] = None
    recoverable: Optional[bool] = None  # None = use context default
    severity: Optional[ErrorSeverity] = None  # None = use context default
    timestamp: datetime = field(default_factory=datetime.now)
    additional_info: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None

    def __post_init__(self):
        if self.recoverable is None:
            self.recoverable = self.context.is_recoverable_by_default
        if self.severity is None:
            self.severity = self.context.default_severity
        if self.exception is not None and self.stack_trace is None:
            self.stack_trace = "".join(traceback.format_exception(self.exception))

    @classmethod
    def from_exception(
        cls,
        context: ErrorContext,
        exception: Exception,
        node_id: Optional[str] = None,
        node_name: Optional[str] = None,
        message: Optional[str] = None,
        **kwargs,
    ) -> "ErrorInfo":
        """Build a record whose message defaults to the exception text."""
        return cls(
            context,
            message if message is not None else str(exception),
            node_id=node_id,
            node_name=node_name,
            exception=exception,
            **kwargs,
        )

    def to_user_message(self) -> str:
        """Short form for the console, without stack traces."""
        parts = [f"{self.context.value.upper()}:"]
        if self.node_name:
            parts.append(self.node_name)
        parts.append(self.message)
        if self.exception is not None and str(self.exception) != self.message:
            parts.append(f"({self.exception})")
        return " ".join(parts)

    def to_log_message(self) -> str:
        parts = [f"{self.context.value} [{self.severity.value}] {self.message}"]
        if self.node_id:
            parts.append(f"node={self.node_id}")
        if self.exception is not None:
            parts.append(f"{type(self.exception).__name__}: {self.exception}")
        if self.additional_info:
            parts.append(f"info={self.additional_info}")
        if not self.recoverable:
            parts.append("not recoverable")
        return " | ".join(parts)


class ErrorTracker:
    """Errors recorded during one run, indexed by context and by node."""

    def __init__(self):
        self.errors: List[ErrorInfo] = []
        self._by_context: Dict[ErrorContext, List[ErrorInfo]] = {}
        self._by_node: Dict[str, List[ErrorInfo]] = {}

    def __len__(self) -> int:
        return len(self.errors)

    def add_error(self, error: ErrorInfo) -> None:
        self.errors.append(error)
        self._by_context.setdefault(error.context, []).append(error)
        if error.node_id:
            self._by_node.setdefault(error.node_id, []).append(error)

        _LOG_LEVEL[error.severity](error.to_log_message())
        if error.severity is ErrorSeverity.CRITICAL and error.stack_trace:
            logger.debug(f"Stack trace:\n{error.stack_trace}")

    def add_from_exception(
        self,
        context: ErrorContext,
        exception: Exception,
        node_id: Optional[str] = None,
        node_name: Optional[str] = None,
        message: Optional[str] = None,
        **kwargs,
    ) -> ErrorInfo:
        error = ErrorInfo.from_exception(
            context, exception, node_id, node_name, message, **kwargs
        )
        self.add_error(error)
        return error

    def extend(self, errors: Iterable[ErrorInfo]) -> None:
        for error in errors:
            self.add_error(error)

    def get_errors_for_node(self, node_id: str) -> List[ErrorInfo]:
        return self._by_node.get(node_id, [])

    def get_errors_by_context(self, context: ErrorContext) -> List[ErrorInfo]:
        return self._by_context.get(context, [])

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_errors": len(self.errors),
            "nodes_with_errors": len(self._by_node),
            "by_context": {
                context.value: len(errors) for context, errors in self._by_context.items()
            },
        }

    def print_summary(self, console=None) -> None:
        """Print every recorded error followed by per-context counts."""
        if not self.errors:
            return
        from TrackingCore.core_console_styles import (
            ERROR_LABEL,
            emit,
            fmt_count,
            fmt_header,
        )

        summary = self.get_summary()
        emit("", console=console)
        fmt_header("ERROR SUMMARY", console=console)
        emit(
            f"{ERROR_LABEL} Total errors: {fmt_count(summary['total_errors'])}",
            console=console,
        )
        for error in self.errors:
            emit(f"    {error.to_user_message()}", console=console)
        emit("  Errors by context:", console=console)
        for context, count in sorted(summary["by_context"].items()):
            emit(f"    {context:20} : {fmt_count(count)}", console=console)


__all__ = [
    "TrackingError",
    "FontLoadError",
    "SceneFormatError",
    "ErrorSeverity",
    "ErrorContext",
    "ErrorInfo",
    "ErrorTracker",
]
