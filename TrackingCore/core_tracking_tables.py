#!/usr/bin/env python3
"""
Dense per-size tracking tables derived from the published control points.

A control point at size S applies to every size from S up to the next control
point. Sizes inside the domain that come before the first control point get 0,
and control points outside [min_size, max_size) are never consulted.

Usage:
    from TrackingCore.core_tracking_tables import get_tracking_tables

    tables = get_tracking_tables()
    tables[TypefaceVariant.TEXT].coefficient(17)  # -24
"""

from __future__ import annotations

from functools import lru_cache
from types import MappingProxyType
from typing import Dict, Iterator, Mapping

from TrackingCore.core_logging_config import get_logger
from TrackingCore.core_typeface_dictionaries import (
    VARIANT_SPECS,
    TypefaceVariant,
    VariantSpec,
)

logger = get_logger(__name__)


class TrackingTable(Mapping[int, int]):
    """Read-only mapping of every integer size in [min_size, max_size) to a coefficient."""

    __slots__ = ("_entries", "min_size", "max_size")

    def __init__(self, entries: Mapping[int, int], min_size: int, max_size: int):
        self._entries = MappingProxyType(dict(entries))
        self.min_size = min_size
        self.max_size = max_size

    def __getitem__(self, size: int) -> int:
        return self._entries[size]

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TrackingTable([{self.min_size}, {self.max_size}), {len(self)} sizes)"

    def covers(self, size: int) -> bool:
        return self.min_size <= size < self.max_size

    def coefficient(self, size: int) -> int:
        """Coefficient for an integer size, clamping below the domain to min_size."""
        return self._entries[max(size, self.min_size)]


def build_table(
    control_points: Mapping[int, int], min_size: int, max_size: int
) -> TrackingTable:
    """
    Fill every integer size in [min_size, max_size) by holding the last control point.

    Examples:
        >>> dict(build_table({20: 19, 22: 16}, 20, 24))
        {20: 19, 21: 19, 22: 16, 23: 16}
        >>> dict(build_table({9: 19}, 6, 10))
        {6: 0, 7: 0, 8: 0, 9: 19}
    """
    if min_size > max_size:
        raise ValueError(f"Empty size domain: [{min_size}, {max_size})")

    entries: Dict[int, int] = {}
    current = 0
    for size in range(min_size, max_size):
        if size in control_points:
            current = control_points[size]
        entries[size] = current
    return TrackingTable(entries, min_size, max_size)


def build_tracking_tables(
    specs: Mapping[TypefaceVariant, VariantSpec] = VARIANT_SPECS,
) -> Mapping[TypefaceVariant, TrackingTable]:
    tables = {
        variant: build_table(spec.control_points, spec.min_size, spec.max_size)
        for variant, spec in specs.items()
    }
    logger.debug(
        "Built tracking tables: "
        + ", ".join(f"{v.family} {t!r}" for v, t in tables.items())
    )
    return MappingProxyType(tables)


@lru_cache(maxsize=1)
def get_tracking_tables() -> Mapping[TypefaceVariant, TrackingTable]:
    """Process-wide tables for the built-in variants, built on first use."""
    return build_tracking_tables(VARIANT_SPECS)


__all__ = [
    "TrackingTable",
    "build_table",
    "build_tracking_tables",
    "get_tracking_tables",
]
