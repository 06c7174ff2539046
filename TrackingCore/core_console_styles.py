#!/usr/bin/env python3
"""
Console output for tracking fixes, rendered with Rich.

Every user-facing line goes through StatusIndicator so labels, node names and
before/after values line up the same way in every subcommand.

Usage:
from TrackingCore.core_console_styles import (
    RICH_ENABLED, UPDATED_LABEL, UNCHANGED_LABEL, ERROR_LABEL, WARNING_LABEL,
    INFO_LABEL, SUCCESS_LABEL, SKIPPED_LABEL,
    INDENT, indent,
    fmt_change, fmt_field, fmt_value, fmt_count, fmt_node, fmt_header,
    fmt_processing_summary, emit, get_console, create_table,
    StatusIndicator,
)

Set CONSOLE_CONFIG["use_rich"] to False to print plain text with the markup
stripped.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

from rich import box
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

# ============================================================================
# CONFIGURATION
# ============================================================================
CONSOLE_CONFIG = {
    "label_width": 11,  # status labels are padded to this width
    "indent_size": 12,  # continuation lines start under the message
    "use_rich": True,
}

RICH_ENABLED: bool = bool(CONSOLE_CONFIG["use_rich"])

_MARKUP_TAG = re.compile(r"\[/?[^\]]+\]")

# ============================================================================
# THEME
# ============================================================================
CUSTOM_THEME = Theme(
    {
        "darktext": "#282a39",
        "lighttext": "grey100",
        # Label backgrounds
        "info": "dodger_blue1",
        "updated": "magenta2",
        "unchanged": "turquoise2",
        "error": "red3",
        "warning": "gold1",
        "success": "green_yellow",
        "skipped": "orange1",
        # Content
        "value.before": "turquoise2",
        "value.after": "magenta2",
        "value.unchanged": "dim turquoise2",
        "node.name": "green",
        "node.range": "grey37",
        "count": "bold turquoise2",
        "field": "honeydew2",
        "field.number": "bold honeydew2",
    }
)

_console_singleton: Optional[Console] = None


def get_console() -> Console:
    """Shared themed console, created on first use."""
    global _console_singleton
    if _console_singleton is None:
        _console_singleton = Console(theme=CUSTOM_THEME, no_color=not RICH_ENABLED)
    return _console_singleton


def emit(message: str, console: Optional[Console] = None, end: str = "\n") -> None:
    if RICH_ENABLED:
        (console or get_console()).print(message, end=end, overflow="fold")
    else:
        print(_MARKUP_TAG.sub("", message), end=end)


def indent(level: int = 1, additional: int = 0) -> str:
    """Whitespace for a continuation line `level` steps under a status label."""
    if level <= 0:
        return ""
    return " " * (CONSOLE_CONFIG["indent_size"] + (level - 1) * 2 + additional)


INDENT: str = indent(1)


# ============================================================================
# STATUS LABELS
# ============================================================================


def _build_status_label(text: str, foreground_key: str, background_key: str) -> str:
    padded = f"{text:<{CONSOLE_CONFIG['label_width']}}"
    if not RICH_ENABLED:
        return padded
    style = (
        f"bold {CUSTOM_THEME.styles[foreground_key]} on {CUSTOM_THEME.styles[background_key]}"
    )
    return f"[{style}]{padded}[/{style}]"


INFO_LABEL: str = _build_status_label(" INFO", "lighttext", "info")
UPDATED_LABEL: str = _build_status_label(" UPDATED", "darktext", "updated")
UNCHANGED_LABEL: str = _build_status_label(" NO CHANGE", "darktext", "unchanged")
ERROR_LABEL: str = _build_status_label(" ERROR", "lighttext", "error")
WARNING_LABEL: str = _build_status_label(" WARNING", "darktext", "warning")
SUCCESS_LABEL: str = _build_status_label(" DONE", "darktext", "success")
SKIPPED_LABEL: str = _build_status_label(" SKIPPED", "darktext", "skipped")


# ============================================================================
# FORMATTING PRIMITIVES
# ============================================================================


def _styled(content, style: Optional[str]) -> str:
    if style and RICH_ENABLED:
        return f"[{style}]{content}[/{style}]"
    return str(content)


def fmt_change(old_value: str, new_value: str) -> str:
    """
    Example:
        >>> fmt_change("SF Pro Display 18 · 0%", "SF Pro Text 18 · -0.45px")
        "SF Pro Display 18 · 0% → SF Pro Text 18 · -0.45px"
    """
    arrow = " → " if RICH_ENABLED else " -> "
    return _styled(old_value, "value.before") + arrow + _styled(new_value, "value.after")


def fmt_field(field_name: str, value: str | int) -> str:
    number_style = "field.number" if isinstance(value, int) else None
    return f"{_styled(field_name, 'field')}: {_styled(value, number_style)}"


_VALUE_STYLES = {
    "before": "value.before",
    "after": "value.after",
    "unchanged": "value.unchanged",
}


def fmt_value(value: str | int, style: str = "plain") -> str:
    """Style a value as "before", "after", "unchanged" or "plain"."""
    return _styled(value, _VALUE_STYLES.get(style))


def fmt_count(value: int | str) -> str:
    return _styled(value, "count")


def fmt_node(label: str) -> str:
    """
    Node name in green, a trailing "[start:end]" character range dimmed.

    Example:
        >>> fmt_node("Title [0:5]")
        "Title [0:5]"
    """
    name, sep, char_range = label.rpartition(" [")
    if not sep or not RICH_ENABLED:
        return _styled(label, "node.name")
    # Rich would parse an unescaped "[0:5]" as a markup tag
    return f"{_styled(name, 'node.name')} [node.range]\\[{char_range}[/node.range]"


def fmt_header(text: str, console: Optional[Console] = None) -> None:
    if not RICH_ENABLED:
        print(f"=== {text} ===")
        return
    (console or get_console()).print(
        Panel(
            Align.center(text),
            box=box.HORIZONTALS,
            border_style="dodger_blue1",
            style="bold grey100",
            padding=0,
        )
    )


# ============================================================================
# STATUS INDICATOR
# ============================================================================


def _status_theme(
    label: str,
    template: str = "{context}",
    value_style: str = "plain",
    show_change: bool = False,
) -> Dict[str, object]:
    return {
        "label": label,
        "template": template,
        "value_style": value_style,
        "show_change": show_change,
    }


class StatusIndicator:
    """
    One status line: label, context, optional value line and indented items.

    Usage:
        StatusIndicator("updated")
            .add_node("Headline [0:12]")
            .add_values(old_value="SF Pro Display 18 · 0%",
                        new_value="SF Pro Text 18 · -0.45px")
            .emit()

        StatusIndicator("error").add_node("Caption").with_explanation(
            "Could not load SF Pro Text Bold"
        ).emit()
    """

    STATUS_THEMES = {
        "updated": _status_theme(UPDATED_LABEL, value_style="after", show_change=True),
        "unchanged": _status_theme(UNCHANGED_LABEL, value_style="unchanged"),
        "skipped": _status_theme(SKIPPED_LABEL),
        "success": _status_theme(SUCCESS_LABEL, "{context}{details}"),
        "info": _status_theme(INFO_LABEL, "{context}{details}"),
        "warning": _status_theme(WARNING_LABEL, "{context}{details}"),
        "error": _status_theme(ERROR_LABEL, "{context}: {details}"),
    }

    def __init__(self, status: str):
        if status not in self.STATUS_THEMES:
            known = ", ".join(sorted(self.STATUS_THEMES))
            raise ValueError(f"Unknown status {status!r}, expected one of: {known}")
        self.status = status
        self.theme = self.STATUS_THEMES[status]
        self.context_parts = []
        self.explanation = None
        self.old_value = None
        self.new_value = None
        self.value = None
        self.value_style_override = None

    def add_message(self, message: str, style: str = None):
        self.context_parts.append(_styled(message, style))
        return self

    def add_node(self, label: str, style: str = None):
        """Add a node label, optionally ending in a "[start:end]" range."""
        self.context_parts.append(_styled(fmt_node(label), style))
        return self

    def add_values(
        self,
        old_value: str = None,
        new_value: str = None,
        value: str = None,
        style: str = None,
    ):
        """Show old → new on updated lines, or a single value otherwise."""
        if self.theme["show_change"] and old_value and new_value:
            self.old_value, self.new_value = old_value, new_value
        elif value:
            self.value = value
        if style:
            self.value_style_override = style
        return self

    def with_explanation(self, message: str, style: str = None):
        self.explanation = _styled(message, style)
        return self

    def add_item(self, text: str, indent_level: int = 1, style: str = None):
        self.context_parts.append(f"\n{indent(indent_level)}{_styled(text, style)}")
        return self

    def with_counts(self, **counts: int):
        """Append one "name: n | name: n" line."""
        fields = " | ".join(fmt_field(name, n) for name, n in counts.items())
        self.context_parts.append(f"\n{INDENT}{fields}")
        return self

    def build(self) -> str:
        context = " ".join(self.context_parts)
        details = self.explanation or ""
        if details and context and self.theme["template"] == "{context}{details}":
            details = f" {details}"
        message = self.theme["template"].format(context=context, details=details)

        if self.old_value and self.new_value:
            change = fmt_change(self.old_value, self.new_value)
            message += f"\n{INDENT} {_styled(change, self.value_style_override)}"
        elif self.value:
            style = self.value_style_override or self.theme["value_style"]
            message += f"\n{INDENT} {fmt_value(self.value, style)}"

        return f"{self.theme['label']} {message}"

    def emit(self, console=None):
        emit(self.build(), console=console)


# ============================================================================
# HIGH-LEVEL HELPERS
# ============================================================================


def fmt_processing_summary(
    counts: Dict[str, int],
    title: str = "Tracking fix finished",
    console=None,
    notes: Optional[list] = None,
) -> None:
    """
    Print the end-of-run counts block.

    Example:
        >>> fmt_processing_summary({"updated": 3, "unchanged": 1, "errors": 0})
        # DONE  Tracking fix finished
        #       updated: 3 | unchanged: 1 | errors: 0
    """
    emit("", console=console)
    indicator = StatusIndicator("success").add_message(title).with_counts(**counts)
    for note in notes or []:
        indicator.add_item(note)
    indicator.emit(console)


def create_table(title: Optional[str] = None, show_header: bool = True) -> Table:
    return Table(
        title=title,
        title_justify="center",
        title_style="bold deep_sky_blue1",
        show_header=show_header,
        header_style="bold dodger_blue1",
        border_style="dim",
        box=box.SIMPLE_HEAD,
    )


__all__ = [
    "CONSOLE_CONFIG",
    "RICH_ENABLED",
    "INFO_LABEL",
    "UPDATED_LABEL",
    "UNCHANGED_LABEL",
    "ERROR_LABEL",
    "WARNING_LABEL",
    "SUCCESS_LABEL",
    "SKIPPED_LABEL",
    "INDENT",
    "indent",
    "fmt_change",
    "fmt_field",
    "fmt_value",
    "fmt_count",
    "fmt_node",
    "fmt_header",
    "fmt_processing_summary",
    "emit",
    "get_console",
    "create_table",
    "StatusIndicator",
]
