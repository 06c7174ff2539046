#!/usr/bin/env python3
"""
Variant swap and letter-spacing for a single uniform style run.

Planning is pure: plan_run() decides the target family, the new
letter-spacing and the outcome without touching the node. transform_run()
plans, waits for the target font to load, then writes.

Usage:
    from TrackingCore.core_run_transformer import transform_run

    plan = await transform_run(run, loader)
    if plan.outcome is RunOutcome.MODIFIED:
        ...
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from TrackingCore.core_config import DEFAULT_CONFIG, TrackingConfig
from TrackingCore.core_logging_config import get_logger
from TrackingCore.core_scene_model import FontLoader, FontName, LetterSpacing, StyleRun
from TrackingCore.core_tracking_tables import TrackingTable, get_tracking_tables
from TrackingCore.core_typeface_dictionaries import (
    VARIANT_SPECS,
    TypefaceVariant,
    resolve_variant,
)

logger = get_logger(__name__)


class RunOutcome(Enum):
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class RunPlan:
    run: StyleRun
    outcome: RunOutcome
    variant: Optional[TypefaceVariant] = None
    target_variant: Optional[TypefaceVariant] = None
    new_font: Optional[FontName] = None
    new_letter_spacing: Optional[LetterSpacing] = None
    skip_reason: Optional[str] = None

    @property
    def is_supported(self) -> bool:
        return self.outcome is not RunOutcome.UNSUPPORTED

    @property
    def family_changed(self) -> bool:
        return self.new_font is not None and self.new_font != self.run.font


def round_significant(value: float, digits: int) -> float:
    """
    Round to a number of significant digits.

    Two letter-spacings are considered equal when they agree to this many
    significant digits, so float noise from the size * coefficient product
    never reports a change.

    Examples:
        >>> round_significant(0.4561, 2)
        0.46
        >>> round_significant(-12.34, 2)
        -12.0
        >>> round_significant(0.0, 2)
        0.0
    """
    if value == 0 or not math.isfinite(value):
        return value
    magnitude = math.floor(math.log10(abs(value)))
    return round(value, digits - 1 - magnitude)


def letter_spacing_changed(
    old: LetterSpacing, new: LetterSpacing, digits: int = DEFAULT_CONFIG.compare_digits
) -> bool:
    if old.unit != new.unit:
        return True
    return round_significant(old.value, digits) != round_significant(new.value, digits)


def compute_letter_spacing(
    variant: TypefaceVariant,
    size: float,
    tables: Optional[Mapping[TypefaceVariant, TrackingTable]] = None,
    config: TrackingConfig = DEFAULT_CONFIG,
) -> LetterSpacing:
    """
    Letter-spacing for a variant at a (possibly fractional) point size.

    Fractional sizes use the entry for their floor, sizes below the domain use
    the first entry, and sizes at or beyond the domain maximum get exactly 0.
    """
    table = (tables or get_tracking_tables())[variant]
    key = math.floor(size)
    if key >= table.max_size:
        return LetterSpacing(0.0, config.letter_spacing_unit)
    coefficient = table.coefficient(key)
    return LetterSpacing(
        size * coefficient / config.tracking_unit, config.letter_spacing_unit
    )


def plan_run(
    run: StyleRun,
    tables: Optional[Mapping[TypefaceVariant, TrackingTable]] = None,
    config: TrackingConfig = DEFAULT_CONFIG,
) -> RunPlan:
    """Decide what a run should become, without touching the node."""
    if run.has_text_style:
        return RunPlan(run, RunOutcome.UNSUPPORTED, skip_reason="shared text style")

    variant = resolve_variant(run.font.family)
    if variant is None:
        return RunPlan(
            run, RunOutcome.UNSUPPORTED, skip_reason=f"unsupported family {run.font.family!r}"
        )

    target = VARIANT_SPECS[variant].swap_target(run.size) or variant
    new_font = FontName(target.family, run.font.style)
    new_letter_spacing = compute_letter_spacing(target, run.size, tables, config)

    modified = new_font != run.font or letter_spacing_changed(
        run.letter_spacing, new_letter_spacing, config.compare_digits
    )
    return RunPlan(
        run,
        RunOutcome.MODIFIED if modified else RunOutcome.UNMODIFIED,
        variant=variant,
        target_variant=target,
        new_font=new_font,
        new_letter_spacing=new_letter_spacing,
    )


def apply_plan(plan: RunPlan) -> None:
    """Write a supported plan to its node. The target font must already be loaded."""
    if not plan.is_supported:
        return
    run = plan.run
    run.node.set_style(
        run.start,
        run.end,
        font=plan.new_font if plan.family_changed else None,
        letter_spacing=plan.new_letter_spacing,
    )
    logger.debug(
        f"{run.node.name} [{run.start}:{run.end}] {plan.outcome.value}: "
        f"{run.style.describe()} -> {plan.new_font.family} {run.size:g} · {plan.new_letter_spacing}"
    )


async def transform_run(
    run: StyleRun,
    loader: FontLoader,
    tables: Optional[Mapping[TypefaceVariant, TrackingTable]] = None,
    config: TrackingConfig = DEFAULT_CONFIG,
) -> RunPlan:
    """Plan a run, load its target font and write the result."""
    plan = plan_run(run, tables, config)
    if plan.is_supported:
        await loader.load_font(plan.new_font)
        apply_plan(plan)
    return plan


__all__ = [
    "RunOutcome",
    "RunPlan",
    "round_significant",
    "letter_spacing_changed",
    "compute_letter_spacing",
    "plan_run",
    "apply_plan",
    "transform_run",
]
