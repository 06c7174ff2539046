#!/usr/bin/env python3
"""
Centralized typeface variant dictionaries for tracking fixes.

Philosophy: Only the published control points are stored; the dense per-size
tables are derived from them (see core_tracking_tables). Family names are
matched exactly, after whitespace normalization.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from TrackingCore.core_string_utils import normalize_family_name


class TypefaceVariant(Enum):
    """The closed set of supported typeface variants."""

    DEFAULT = "SF Pro"
    TEXT = "SF Pro Text"
    DISPLAY = "SF Pro Display"
    ROUNDED = "SF Pro Rounded"
    SERIF = "New York"

    @property
    def family(self) -> str:
        return self.value


# ================================================================================================
# 1. SIZE DOMAINS
# ================================================================================================
# Supported point sizes are [min, max); at or beyond max the tracking is zero

SIZE_MIN = 6
SIZE_MAX = 79
SIZE_SWAP = 20
SERIF_SIZE_MAX = 54


# ================================================================================================
# 2. PUBLISHED CONTROL POINTS (size -> tracking in thousandths of an em)
# ================================================================================================

DISPLAY_CONTROL_POINTS = {
    20: 19,
    21: 17,
    22: 16,
    24: 15,
    25: 14,
    27: 13,
    30: 12,
    33: 11,
    40: 10,
    44: 9,
    48: 8,
    50: 7,
    53: 6,
    56: 5,
    60: 4,
    65: 3,
    69: 2,
}

TEXT_CONTROL_POINTS = {
    6: 41,
    8: 26,
    9: 19,
    10: 12,
    11: 6,
    12: 0,
    13: -6,
    14: -11,
    15: -16,
    16: -20,
    17: -24,
    18: -25,
    19: -26,
}

# The unified family covers both optical ranges in one domain
DEFAULT_CONTROL_POINTS = {**TEXT_CONTROL_POINTS, **DISPLAY_CONTROL_POINTS}

ROUNDED_CONTROL_POINTS = {
    6: 87,
    7: 78,
    8: 70,
    9: 61,
    10: 52,
    11: 43,
    12: 36,
    13: 28,
    14: 22,
    15: 15,
    16: 10,
    17: 4,
    18: 2,
    19: 1,
    20: 8,
    22: 7,
    24: 6,
    28: 5,
    33: 4,
    40: 3,
    48: 2,
    56: 1,
    65: 0,
}

SERIF_CONTROL_POINTS = {
    6: 40,
    7: 32,
    8: 25,
    9: 20,
    10: 16,
    11: 11,
    12: 6,
    13: 0,
    14: -5,
    15: -10,
    16: -18,
    17: -22,
    18: -25,
    20: -22,
    22: -19,
    24: -16,
    28: -12,
    32: -9,
    36: -6,
    42: -3,
    48: -1,
}


# ================================================================================================
# 3. VARIANT SPECS
# ================================================================================================


@dataclass(frozen=True)
class VariantSpec:
    """Everything the transformer needs to know about one variant."""

    variant: TypefaceVariant
    min_size: int
    max_size: int
    control_points: Mapping[int, int]
    swap_threshold: Optional[int] = None
    swap_below: Optional[TypefaceVariant] = None  # Retarget when size < threshold
    swap_at_or_above: Optional[TypefaceVariant] = None  # Retarget when size >= threshold

    @property
    def family(self) -> str:
        return self.variant.family

    def swap_target(self, size: float) -> Optional[TypefaceVariant]:
        """Return the variant this size should be retargeted to, if any."""
        if self.swap_threshold is None:
            return None
        if self.swap_below is not None and size < self.swap_threshold:
            return self.swap_below
        if self.swap_at_or_above is not None and size >= self.swap_threshold:
            return self.swap_at_or_above
        return None


VARIANT_SPECS: Mapping[TypefaceVariant, VariantSpec] = MappingProxyType(
    {
        TypefaceVariant.DEFAULT: VariantSpec(
            TypefaceVariant.DEFAULT,
            SIZE_MIN,
            SIZE_MAX,
            MappingProxyType(DEFAULT_CONTROL_POINTS),
        ),
        TypefaceVariant.TEXT: VariantSpec(
            TypefaceVariant.TEXT,
            SIZE_MIN,
            SIZE_SWAP,
            MappingProxyType(TEXT_CONTROL_POINTS),
            swap_threshold=SIZE_SWAP,
            swap_at_or_above=TypefaceVariant.DISPLAY,
        ),
        TypefaceVariant.DISPLAY: VariantSpec(
            TypefaceVariant.DISPLAY,
            SIZE_SWAP,
            SIZE_MAX,
            MappingProxyType(DISPLAY_CONTROL_POINTS),
            swap_threshold=SIZE_SWAP,
            swap_below=TypefaceVariant.TEXT,
        ),
        TypefaceVariant.ROUNDED: VariantSpec(
            TypefaceVariant.ROUNDED,
            SIZE_MIN,
            SIZE_MAX,
            MappingProxyType(ROUNDED_CONTROL_POINTS),
        ),
        TypefaceVariant.SERIF: VariantSpec(
            TypefaceVariant.SERIF,
            SIZE_MIN,
            SERIF_SIZE_MAX,
            MappingProxyType(SERIF_CONTROL_POINTS),
        ),
    }
)

FAMILY_TO_VARIANT: Mapping[str, TypefaceVariant] = MappingProxyType(
    {variant.family: variant for variant in TypefaceVariant}
)

SUPPORTED_FAMILIES = tuple(variant.family for variant in TypefaceVariant)


def resolve_variant(family: Optional[str]) -> Optional[TypefaceVariant]:
    """
    Map a family name to its variant, or None when unsupported.

    Examples:
        >>> resolve_variant("SF Pro Text")
        <TypefaceVariant.TEXT: 'SF Pro Text'>
        >>> resolve_variant("  SF  Pro   Display ")
        <TypefaceVariant.DISPLAY: 'SF Pro Display'>
        >>> resolve_variant("Helvetica") is None
        True
    """
    normalized = normalize_family_name(family)
    if normalized is None:
        return None
    return FAMILY_TO_VARIANT.get(normalized)


# ================================================================================================
# MODULE INFO
# ================================================================================================

DICTIONARY_VERSION = "1.0.0"

if __name__ == "__main__":
    print(f"Typeface Dictionaries v{DICTIONARY_VERSION}")
    for spec in VARIANT_SPECS.values():
        print(
            f"{spec.family:16} [{spec.min_size}, {spec.max_size}) "
            f"control points: {len(spec.control_points)}"
        )
