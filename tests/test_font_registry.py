import asyncio

import pytest
from TrackingCore.core_error_handling import ErrorContext, FontLoadError
from TrackingCore.core_font_registry import (
    FontRegistry,
    RegistryFontLoader,
    read_font_name,
)
from TrackingCore.core_scene_model import FontName

from factories import build_font


def test_read_font_name_prefers_typographic_names(tmp_path):
    plain = build_font(tmp_path / "a.ttf", "SF Pro Text", "Regular")
    assert read_font_name(str(plain)) == FontName("SF Pro Text", "Regular")

    legacy = build_font(
        tmp_path / "b.ttf",
        "SF Pro Display Semibold",
        "Regular",
        typographic=("SF Pro Display", "Semibold"),
    )
    assert read_font_name(str(legacy)) == FontName("SF Pro Display", "Semibold")


def test_registry_from_directory(tmp_path):
    build_font(tmp_path / "text.ttf", "SF Pro Text", "Regular")
    build_font(tmp_path / "text-bold.ttf", "SF Pro Text", "Bold")
    nested = tmp_path / "serif"
    nested.mkdir()
    build_font(nested / "ny.ttf", "New York", "Regular")
    (tmp_path / "readme.txt").write_text("not a font")

    flat = FontRegistry.from_paths([tmp_path])
    assert flat.families() == [("SF Pro Text", ["Bold", "Regular"])]

    registry = FontRegistry.from_paths([tmp_path], recursive=True)
    assert len(registry) == 3
    assert FontName("New York") in registry
    assert registry.path_for(FontName("SF Pro Text", "Bold")).endswith("text-bold.ttf")


def test_unreadable_files_are_recorded_not_raised(tmp_path):
    (tmp_path / "broken.otf").write_bytes(b"definitely not a font")
    build_font(tmp_path / "ok.ttf", "SF Pro Rounded", "Regular")
    registry = FontRegistry.from_paths([tmp_path])
    assert len(registry) == 1
    errors = registry.errors.get_errors_by_context(ErrorContext.FONT_REGISTRY)
    assert len(errors) == 1
    assert errors[0].additional_info["path"].endswith("broken.otf")


def test_discard_removes_variant_and_empty_family():
    registry = FontRegistry.from_fonts(
        [FontName("SF Pro Text", "Regular"), FontName("SF Pro Text", "Bold")]
    )
    registry.discard(FontName("SF Pro Text", "Bold"))
    assert FontName("SF Pro Text", "Bold") not in registry
    registry.discard(FontName("SF Pro Text", "Regular"))
    registry.discard(FontName("Nope", "Regular"))
    assert registry.families() == []


def test_registry_loader():
    registry = FontRegistry.from_fonts([FontName("SF Pro Text", "Regular")])
    loader = RegistryFontLoader(registry)
    asyncio.run(loader.load_font(FontName("SF Pro Text", "Regular")))
    assert loader.is_loaded(FontName("SF Pro Text", "Regular"))

    with pytest.raises(FontLoadError, match="installed styles are Regular"):
        asyncio.run(loader.load_font(FontName("SF Pro Text", "Heavy")))
    with pytest.raises(FontLoadError, match="family is not installed"):
        asyncio.run(loader.load_font(FontName("New York", "Regular")))
