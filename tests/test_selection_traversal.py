import asyncio

import pytest

from TrackingCore.core_config import PIXELS, TrackingConfig
from TrackingCore.core_error_handling import ErrorContext, FontLoadError
from TrackingCore.core_run_transformer import RunOutcome
from TrackingCore.core_scene_model import FontName, StaticFontLoader
from TrackingCore.core_selection_traversal import (
    OutcomeCount,
    classify_element,
    decompose_style_runs,
    fix_selection,
)

from factories import (
    make_frame,
    make_mixed_text,
    make_shape,
    make_style,
    make_text,
    run_fix,
)


def test_outcome_count_merge_is_associative_and_commutative():
    a = OutcomeCount(modified=1)
    b = OutcomeCount(supported_unmodified=2, failed=1)
    c = OutcomeCount(unsupported_or_styled=3)
    assert (a + b) + c == a + (b + c)
    assert a + b == b + a
    assert sum([a, b, c], OutcomeCount()) == OutcomeCount(2, 3, 1, 1)
    assert (a + b + c).total == 7


def test_classify_element():
    M, U, X = RunOutcome.MODIFIED, RunOutcome.UNMODIFIED, RunOutcome.UNSUPPORTED
    assert classify_element([X, U, M]) is M
    assert classify_element([X, U]) is U
    assert classify_element([X, X]) is X


def test_one_modified_text_and_one_shape():
    report = run_fix([make_text("SF Pro Display", 18), make_shape()])
    assert report.count == OutcomeCount(modified=1, unsupported_or_styled=1)
    assert report.summary == "Updated 1 text with SF fonts ✅"
    assert report.ok


def test_containers_are_recursed_but_not_counted():
    deep = make_text("SF Pro Text", 24)
    tree = make_frame(
        make_frame(make_frame(deep, node_type="GROUP"), make_shape("ELLIPSE")),
        make_text("Helvetica", 12),
        make_text("SF Pro Text", 17, spacing=-0.408, unit=PIXELS),
    )
    report = run_fix([tree])
    assert report.count == OutcomeCount(
        supported_unmodified=1, unsupported_or_styled=2, modified=1
    )
    assert deep.get_style(0, deep.length).font.family == "SF Pro Display"


def test_second_pass_finds_nothing_to_change():
    nodes = [
        make_text("SF Pro Display", 12),
        make_frame(make_text("New York", 30), make_text("SF Pro Rounded", 9)),
    ]
    first = run_fix(nodes)
    second = run_fix(nodes)
    assert first.count.modified == 3
    assert second.count == OutcomeCount(supported_unmodified=3)
    assert second.summary == "Selected texts with SF fonts are already fixed 👍"


def test_styled_text_counts_as_unsupported_and_stays_untouched():
    styled = make_text("SF Pro Display", 12, text_style_id="S:body")
    for _ in range(2):
        report = run_fix([styled])
        assert report.count == OutcomeCount(unsupported_or_styled=1)
    assert styled.write_count == 0


def test_decompose_style_runs_merges_equal_neighbours():
    a = make_style("SF Pro Display", 24)
    b = make_style("SF Pro Text", 13)
    node = make_mixed_text(("Head", a), ("line", b), ("!", a))
    runs = decompose_style_runs(node)
    assert [(r.start, r.end) for r in runs] == [(0, 4), (4, 8), (8, 9)]
    assert [r.style for r in runs] == [a, b, a]


def test_mixed_text_runs_are_fixed_independently():
    display_small = make_style("SF Pro Display", 18)
    text_correct = make_style("SF Pro Text", 17, spacing=-0.408, unit=PIXELS)
    node = make_mixed_text(("Hello", display_small), ("World", text_correct))
    report = run_fix([node])

    assert report.count == OutcomeCount(modified=1)
    assert [p.outcome for p in report.plans] == [
        RunOutcome.MODIFIED,
        RunOutcome.UNMODIFIED,
    ]
    first = node.get_style(0, 5)
    assert first.font.family == "SF Pro Text"
    assert first.letter_spacing.value == pytest.approx(-0.45)
    assert node.get_style(5, 10) == text_correct


def test_mixed_text_with_styled_and_unsupported_runs():
    styled = make_style("SF Pro Display", 12, text_style_id="S:1")
    other = make_style("Helvetica", 12)
    node = make_mixed_text(("ab", styled), ("cd", other))
    report = run_fix([node])
    assert report.count == OutcomeCount(unsupported_or_styled=1)
    assert node.write_count == 0


def test_mixed_text_already_fixed_is_unmodified():
    a = make_style("SF Pro Text", 17, spacing=-0.408, unit=PIXELS)
    b = make_style("Helvetica", 17)
    report = run_fix([make_mixed_text(("ab", a), ("cd", b))])
    assert report.count == OutcomeCount(supported_unmodified=1)


def test_mixed_text_loads_each_font_once_before_writing():
    loader = StaticFontLoader()
    node = make_mixed_text(
        ("a", make_style("SF Pro Display", 12)),
        ("b", make_style("SF Pro Text", 14)),
        ("c", make_style("SF Pro Display", 16)),
    )
    run_fix([node], loader)
    assert loader.loads == [FontName("SF Pro Text", "Regular")]


def test_font_failure_aborts_only_that_element():
    missing = FontName("SF Pro Text", "Bold")
    loader = StaticFontLoader(missing=[missing])
    broken = make_mixed_text(
        ("ab", make_style("SF Pro Display", 12, font_style="Bold")),
        ("cd", make_style("SF Pro Display", 30)),
    )
    sibling = make_text("SF Pro Display", 12)
    report = run_fix([broken, make_frame(sibling)], loader)

    assert report.count == OutcomeCount(modified=1, failed=1)
    assert broken.write_count == 0
    assert sibling.get_style(0, sibling.length).font.family == "SF Pro Text"
    assert not report.ok
    errors = report.errors.get_errors_by_context(ErrorContext.FONT_LOADING)
    assert [e.node_id for e in errors] == [broken.id]
    assert report.errors.get_errors_for_node(sibling.id) == []
    assert report.failed_fonts == [missing]
    assert report.summary.startswith("Updated 1 text with SF fonts ✅")
    assert "SF Pro Text Bold" in report.summary


def test_failure_only_replaces_summary():
    loader = StaticFontLoader(available=[])
    report = run_fix([make_text("SF Pro Display", 12)], loader)
    assert report.count == OutcomeCount(failed=1)
    assert report.summary.startswith("Could not load fonts for 1 text")


def test_stop_on_error_propagates():
    loader = StaticFontLoader(available=[])
    with pytest.raises(FontLoadError):
        run_fix(
            [make_text("SF Pro Display", 12)],
            loader,
            config=TrackingConfig(stop_on_error=True),
        )


def test_concurrent_traversal_gives_same_counts():
    def build():
        return [
            make_frame(make_text("SF Pro Display", 12), make_shape()),
            make_frame(make_text("SF Pro Display", 14), make_text("Helvetica", 9)),
            make_text("SF Pro Text", 30),
        ]

    sequential = run_fix(build())
    concurrent = run_fix(build(), config=TrackingConfig(concurrent=True))
    assert sequential.count == concurrent.count == OutcomeCount(
        modified=3, unsupported_or_styled=2
    )


def test_concurrent_siblings_share_font_loads():
    loader = StaticFontLoader()
    nodes = [make_text("SF Pro Display", size) for size in (10, 11, 12, 13)]
    asyncio.run(
        fix_selection(nodes, loader, config=TrackingConfig(concurrent=True))
    )
    assert loader.loads == [FontName("SF Pro Text", "Regular")]
    assert len(loader.requests) == 4


def test_empty_selection_asks_for_eligible_text():
    report = run_fix([])
    assert report.count == OutcomeCount()
    assert report.summary.startswith("Please select texts with 'SF Pro'")
