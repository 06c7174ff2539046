"""One-line summaries of a tracking fix, chosen by first match."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from TrackingCore.core_string_utils import pluralize
from TrackingCore.core_typeface_dictionaries import SUPPORTED_FAMILIES

if TYPE_CHECKING:
    from TrackingCore.core_scene_model import FontName
    from TrackingCore.core_selection_traversal import OutcomeCount


def _quoted_families() -> str:
    quoted = [f"'{family}'" for family in SUPPORTED_FAMILIES]
    return ", ".join(quoted[:-1]) + f" or {quoted[-1]}"


NOTHING_ELIGIBLE_MESSAGE = f"Please select texts with {_quoted_families()} fonts."


def summary_message(count: "OutcomeCount") -> str:
    if count.modified == 1:
        return "Updated 1 text with SF fonts ✅"
    if count.modified > 1:
        return f"Updated {count.modified} texts with SF fonts ✅"
    if count.supported_unmodified and count.unsupported_or_styled:
        return "Texts in selection with SF fonts are already fixed 👍"
    if count.supported_unmodified == 1:
        return "Text is already fixed 👍"
    if count.supported_unmodified > 1:
        return "Selected texts with SF fonts are already fixed 👍"
    return NOTHING_ELIGIBLE_MESSAGE


def failure_message(failed: int, fonts: Sequence["FontName"] = ()) -> str:
    message = f"Could not load fonts for {failed} {pluralize(failed, 'text')}"
    if fonts:
        message += ": " + ", ".join(str(font) for font in fonts)
    return message


def report_message(count: "OutcomeCount", failed_fonts: Sequence["FontName"] = ()) -> str:
    """
    Summary line including font-load failures.

    Failures replace the summary when nothing else was eligible, otherwise
    they are appended to it.
    """
    if not count.failed:
        return summary_message(count)
    failure = failure_message(count.failed, failed_fonts)
    if not count.modified and not count.supported_unmodified:
        return f"{failure} ⚠️"
    return f"{summary_message(count)} ⚠️ {failure}"
