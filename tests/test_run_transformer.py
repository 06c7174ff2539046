import asyncio

import pytest

from TrackingCore.core_config import PERCENT, PIXELS, TrackingConfig
from TrackingCore.core_error_handling import FontLoadError
from TrackingCore.core_run_transformer import (
    RunOutcome,
    compute_letter_spacing,
    letter_spacing_changed,
    plan_run,
    round_significant,
    transform_run,
)
from TrackingCore.core_scene_model import FontName, LetterSpacing, StaticFontLoader
from TrackingCore.core_typeface_dictionaries import TypefaceVariant

from factories import make_text, pixels, whole_run


def _transform(node, loader=None):
    loader = loader or StaticFontLoader()
    return asyncio.run(transform_run(whole_run(node), loader)), loader


def test_round_significant():
    assert round_significant(0.4561, 2) == 0.46
    assert round_significant(-0.408, 2) == -0.41
    assert round_significant(12.34, 2) == 12.0
    assert round_significant(0.0, 2) == 0.0


def test_letter_spacing_comparison_tolerates_float_noise():
    assert not letter_spacing_changed(pixels(-0.41), pixels(-0.408))
    assert not letter_spacing_changed(pixels(0.38), pixels(0.38000000001))
    assert letter_spacing_changed(pixels(-0.4), pixels(-0.408))
    assert letter_spacing_changed(LetterSpacing(0, PERCENT), LetterSpacing(0, PIXELS))


def test_display_below_threshold_retargets_to_text():
    node = make_text("SF Pro Display", 18, font_style="Semibold")
    plan, loader = _transform(node)
    assert plan.outcome is RunOutcome.MODIFIED
    assert plan.target_variant is TypefaceVariant.TEXT
    style = node.get_style(0, node.length)
    assert style.font == FontName("SF Pro Text", "Semibold")
    assert style.letter_spacing.unit == PIXELS
    assert style.letter_spacing.value == pytest.approx(-0.45)
    assert loader.requests == [FontName("SF Pro Text", "Semibold")]


def test_swap_threshold_is_exact():
    at_threshold = plan_run(whole_run(make_text("SF Pro Text", 20)))
    assert at_threshold.new_font.family == "SF Pro Display"
    assert at_threshold.new_letter_spacing.value == pytest.approx(0.38)

    just_below = plan_run(whole_run(make_text("SF Pro Display", 19.9)))
    assert just_below.new_font.family == "SF Pro Text"
    assert just_below.new_letter_spacing.value == pytest.approx(19.9 * -26 / 1000)


def test_other_variants_never_swap():
    for family in ("SF Pro", "SF Pro Rounded", "New York"):
        for size in (8, 20, 40):
            plan = plan_run(whole_run(make_text(family, size)))
            assert plan.new_font.family == family


def test_fractional_sizes_use_floor_entry():
    spacing = compute_letter_spacing(TypefaceVariant.DISPLAY, 78.5)
    assert spacing.value == pytest.approx(78.5 * 2 / 1000)


def test_sizes_below_domain_use_first_entry():
    spacing = compute_letter_spacing(TypefaceVariant.DEFAULT, 4)
    assert spacing.value == pytest.approx(4 * 41 / 1000)


def test_sizes_at_or_beyond_domain_max_are_zero():
    for variant, size in (
        (TypefaceVariant.SERIF, 54),
        (TypefaceVariant.SERIF, 72.5),
        (TypefaceVariant.DISPLAY, 79),
        (TypefaceVariant.ROUNDED, 120),
    ):
        assert compute_letter_spacing(variant, size) == LetterSpacing(0.0, PIXELS)


def test_serif_above_max_written_as_exact_zero():
    node = make_text("New York", 60, spacing=-0.3, unit=PIXELS)
    plan, _ = _transform(node)
    assert plan.outcome is RunOutcome.MODIFIED
    assert node.get_style(0, node.length).letter_spacing == LetterSpacing(0.0, PIXELS)


def test_already_correct_run_is_unmodified_but_rewritten():
    node = make_text("SF Pro Text", 17, spacing=-0.408, unit=PIXELS)
    plan, _ = _transform(node)
    assert plan.outcome is RunOutcome.UNMODIFIED
    assert not plan.family_changed
    assert node.write_count == 1


def test_unit_change_alone_counts_as_modified():
    node = make_text("SF Pro Text", 12, spacing=0, unit=PERCENT)
    plan, _ = _transform(node)
    assert plan.outcome is RunOutcome.MODIFIED
    assert node.get_style(0, node.length).letter_spacing == LetterSpacing(0.0, PIXELS)


def test_unsupported_family_is_untouched_and_never_loaded():
    node = make_text("Helvetica", 24)
    plan, loader = _transform(node)
    assert plan.outcome is RunOutcome.UNSUPPORTED
    assert loader.requests == []
    assert node.write_count == 0


def test_styled_text_is_never_touched():
    node = make_text("SF Pro Display", 12, text_style_id="S:caption")
    for _ in range(2):
        plan, loader = _transform(node)
        assert plan.outcome is RunOutcome.UNSUPPORTED
        assert plan.new_font is None
        assert loader.requests == []
    assert node.write_count == 0
    assert node.get_style(0, node.length).font.family == "SF Pro Display"


def test_transform_is_idempotent():
    node = make_text("SF Pro Display", 18)
    first, _ = _transform(node)
    after_first = node.segments
    second, _ = _transform(node)
    assert first.outcome is RunOutcome.MODIFIED
    assert second.outcome is RunOutcome.UNMODIFIED
    assert node.segments == after_first


def test_load_failure_leaves_run_unwritten():
    node = make_text("SF Pro Display", 18)
    loader = StaticFontLoader(missing=[FontName("SF Pro Text", "Regular")])
    with pytest.raises(FontLoadError) as excinfo:
        _transform(node, loader)
    assert excinfo.value.fonts == (FontName("SF Pro Text", "Regular"),)
    assert node.write_count == 0


def test_config_controls_scale_and_comparison():
    config = TrackingConfig(tracking_unit=100, compare_digits=1)
    spacing = compute_letter_spacing(TypefaceVariant.TEXT, 10, config=config)
    assert spacing.value == pytest.approx(10 * 12 / 100)

    node = make_text("SF Pro Text", 17, spacing=-0.43, unit=PIXELS)
    assert plan_run(whole_run(node), config=TrackingConfig(compare_digits=1)).outcome is RunOutcome.UNMODIFIED
    assert plan_run(whole_run(node)).outcome is RunOutcome.MODIFIED
