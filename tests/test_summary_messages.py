import pytest

from TrackingCore.core_scene_model import FontName
from TrackingCore.core_selection_traversal import OutcomeCount
from TrackingCore.core_summary_messages import (
    NOTHING_ELIGIBLE_MESSAGE,
    failure_message,
    report_message,
    summary_message,
)


@pytest.mark.parametrize(
    "count, expected",
    [
        (OutcomeCount(modified=1), "Updated 1 text with SF fonts ✅"),
        (OutcomeCount(modified=1, supported_unmodified=4), "Updated 1 text with SF fonts ✅"),
        (OutcomeCount(modified=3, unsupported_or_styled=2), "Updated 3 texts with SF fonts ✅"),
        (
            OutcomeCount(supported_unmodified=2, unsupported_or_styled=1),
            "Texts in selection with SF fonts are already fixed 👍",
        ),
        (OutcomeCount(supported_unmodified=1), "Text is already fixed 👍"),
        (
            OutcomeCount(supported_unmodified=5),
            "Selected texts with SF fonts are already fixed 👍",
        ),
        (OutcomeCount(unsupported_or_styled=3), NOTHING_ELIGIBLE_MESSAGE),
        (OutcomeCount(), NOTHING_ELIGIBLE_MESSAGE),
    ],
)
def test_summary_message_first_match(count, expected):
    assert summary_message(count) == expected


def test_nothing_eligible_names_every_family():
    assert NOTHING_ELIGIBLE_MESSAGE == (
        "Please select texts with 'SF Pro', 'SF Pro Text', 'SF Pro Display', "
        "'SF Pro Rounded' or 'New York' fonts."
    )


def test_failure_message():
    assert failure_message(1) == "Could not load fonts for 1 text"
    assert failure_message(2, [FontName("New York", "Bold")]) == (
        "Could not load fonts for 2 texts: New York Bold"
    )


def test_failures_replace_summary_when_nothing_was_supported():
    count = OutcomeCount(failed=2, unsupported_or_styled=1)
    assert report_message(count) == "Could not load fonts for 2 texts ⚠️"


def test_failures_are_appended_to_a_real_summary():
    count = OutcomeCount(supported_unmodified=1, failed=1)
    assert report_message(count, [FontName("SF Pro Text", "Bold")]) == (
        "Text is already fixed 👍 ⚠️ Could not load fonts for 1 text: SF Pro Text Bold"
    )


def test_report_without_failures_is_the_plain_summary():
    count = OutcomeCount(modified=2)
    assert report_message(count) == summary_message(count)
