#!/usr/bin/env python3
"""
Standardized string handling utilities for family and style names.

Philosophy:
- None means "no value was provided"
- Empty string means "value was provided but empty"
- Whitespace-only strings are treated as empty
- Internal runs of whitespace in names collapse to one space

Usage:
    from TrackingCore.core_string_utils import normalize_empty, normalize_family_name

    family = normalize_family_name(raw_family)  # "  SF  Pro " -> "SF Pro"
    if family is not None:
        process(family)
"""

import re
from typing import Optional

_WHITESPACE_RUN = re.compile(r"\s+")


def is_empty(value: Optional[str]) -> bool:
    """
    Check if string is None, empty, or whitespace-only.

    Examples:
        >>> is_empty(None)
        True
        >>> is_empty("   ")
        True
        >>> is_empty("  content  ")
        False
    """
    return not value or not str(value).strip()


def normalize_empty(value: Optional[str]) -> Optional[str]:
    """
    Convert empty/whitespace strings to None, strip meaningful content.

    Examples:
        >>> normalize_empty("")
        None
        >>> normalize_empty("  content  ")
        'content'
    """
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped if stripped else None


def normalize_family_name(value: Optional[str]) -> Optional[str]:
    """
    Normalize a family or style name for exact matching.

    Examples:
        >>> normalize_family_name("  SF  Pro\\tText ")
        'SF Pro Text'
        >>> normalize_family_name("   ")
        None
    """
    normalized = normalize_empty(value)
    if normalized is None:
        return None
    return _WHITESPACE_RUN.sub(" ", normalized)


def coalesce(*values: Optional[str]) -> Optional[str]:
    """
    Return first non-empty value.

    Use this for fallback chains (e.g., ID16 -> ID1).

    Examples:
        >>> coalesce(None, "", "first")
        'first'
        >>> coalesce(None, "", "  ")
        None
    """
    for value in values:
        if not is_empty(value):
            return normalize_empty(value)
    return None


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """
    Return the singular or plural noun for count.

    Examples:
        >>> pluralize(1, "text")
        'text'
        >>> pluralize(3, "text")
        'texts'
    """
    if count == 1:
        return singular
    return plural if plural is not None else f"{singular}s"
