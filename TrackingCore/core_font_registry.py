#!/usr/bin/env python3
"""
Index of installed font variants, read from font files with fontTools.

Only the name table is consulted: family from nameID 16 (Typographic Family)
falling back to nameID 1, style from nameID 17 falling back to nameID 2.

Usage:
    from TrackingCore.core_font_registry import FontRegistry, RegistryFontLoader

    registry = FontRegistry.from_paths(["~/Library/Fonts"], recursive=True)
    loader = RegistryFontLoader(registry)
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from fontTools.ttLib import TTFont, TTLibError

from TrackingCore.core_error_handling import ErrorContext, ErrorTracker, FontLoadError
from TrackingCore.core_file_collector import collect_font_files
from TrackingCore.core_logging_config import get_logger
from TrackingCore.core_scene_model import FontLoader, FontName
from TrackingCore.core_string_utils import coalesce, normalize_family_name

logger = get_logger(__name__)


def _extract_name_record(name_table, record_id: int) -> Optional[str]:
    """Extract a name record with fallback to different platforms."""
    rec = name_table.getName(record_id, 3, 1, 0x409) or name_table.getName(
        record_id, 1, 0, 0
    )
    return str(rec.toUnicode()) if rec else None


def read_font_name(path: str) -> Optional[FontName]:
    """Family and style of one font file, or None when the name table is missing."""
    font = TTFont(path, lazy=True)
    try:
        if "name" not in font:
            return None
        name_tbl = font["name"]
        family = coalesce(
            _extract_name_record(name_tbl, 16), _extract_name_record(name_tbl, 1)
        )
        style = coalesce(
            _extract_name_record(name_tbl, 17), _extract_name_record(name_tbl, 2)
        )
    finally:
        font.close()
    family = normalize_family_name(family)
    if family is None:
        return None
    return FontName(family, style or "Regular")


class FontRegistry:
    """Installed families and their styles, with the file each came from."""

    def __init__(self) -> None:
        self._styles: Dict[str, Set[str]] = {}
        self._paths: Dict[FontName, str] = {}
        self.errors = ErrorTracker()

    def add(self, font: FontName, path: Optional[str] = None) -> None:
        self._styles.setdefault(font.family, set()).add(font.style)
        if path:
            self._paths.setdefault(font, path)

    def discard(self, font: FontName) -> None:
        styles = self._styles.get(font.family)
        if styles is None:
            return
        styles.discard(font.style)
        if not styles:
            del self._styles[font.family]
        self._paths.pop(font, None)

    def __contains__(self, font: FontName) -> bool:
        return font.style in self._styles.get(font.family, ())

    def __len__(self) -> int:
        return sum(len(styles) for styles in self._styles.values())

    def families(self) -> List[Tuple[str, List[str]]]:
        return [
            (family, sorted(styles))
            for family, styles in sorted(self._styles.items(), key=lambda x: x[0].lower())
        ]

    def path_for(self, font: FontName) -> Optional[str]:
        return self._paths.get(font)

    @classmethod
    def from_fonts(cls, fonts: Iterable[FontName]) -> "FontRegistry":
        registry = cls()
        for font in fonts:
            registry.add(font)
        return registry

    @classmethod
    def from_paths(
        cls, paths: Iterable[str | Path], recursive: bool = False
    ) -> "FontRegistry":
        registry = cls()
        for path in collect_font_files(paths, recursive=recursive):
            try:
                font = read_font_name(path)
            except (TTLibError, OSError, KeyError) as e:
                registry.errors.add_from_exception(
                    ErrorContext.FONT_REGISTRY,
                    e,
                    message=f"Unreadable font file {Path(path).name}",
                    additional_info={"path": path},
                )
                continue
            if font is None:
                logger.warning(f"No family name in {path}")
                continue
            registry.add(font, path)
        logger.info(f"Indexed {len(registry)} font variants")
        return registry


class RegistryFontLoader(FontLoader):
    """Loads only the fonts present in a FontRegistry."""

    def __init__(self, registry: FontRegistry):
        super().__init__()
        self.registry = registry

    async def _load(self, font: FontName) -> None:
        await asyncio.sleep(0)
        if font not in self.registry:
            styles = dict(self.registry.families()).get(font.family)
            reason = (
                f"installed styles are {', '.join(styles)}"
                if styles
                else "family is not installed"
            )
            raise FontLoadError([font], reason)


__all__ = [
    "read_font_name",
    "FontRegistry",
    "RegistryFontLoader",
]
