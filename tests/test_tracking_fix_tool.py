import argparse
import json

import pytest

from TrackingCore.TrackingFixTool import _font_size, _parse_font_arg, _positive_int, main
from TrackingCore.core_scene_model import FontName

from factories import build_font


@pytest.fixture
def scene_path(tmp_path):
    document = {
        "selection": [
            {
                "type": "FRAME",
                "id": "1:1",
                "name": "Card",
                "children": [
                    {
                        "type": "TEXT",
                        "id": "1:2",
                        "name": "Title",
                        "characters": "Hello",
                        "fontName": {"family": "SF Pro Display", "style": "Bold"},
                        "fontSize": 18,
                    },
                    {"type": "RECTANGLE", "id": "1:3"},
                ],
            }
        ]
    }
    path = tmp_path / "selection.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def test_parse_font_arg():
    assert _parse_font_arg("SF Pro Text/Bold") == FontName("SF Pro Text", "Bold")
    assert _parse_font_arg("New York") == FontName("New York", "Regular")
    assert _parse_font_arg(" New York / ") == FontName("New York", "Regular")


def test_fix_prints_summary(scene_path, capsys):
    assert main(["fix", str(scene_path), "-q"]) == 0
    assert "Updated 1 text with SF fonts" in capsys.readouterr().out


def test_fix_can_print_the_fixed_scene(scene_path, capsys):
    assert main(["fix", str(scene_path), "-q", "--show-scene"]) == 0
    out = capsys.readouterr().out
    assert '"family": "SF Pro Text"' in out
    assert '"unit": "PIXELS"' in out


def test_missing_font_fails_the_run(scene_path, capsys):
    code = main(["fix", str(scene_path), "-q", "--missing", "SF Pro Text/Bold"])
    assert code == 1
    assert "Could not load fonts for 1 text" in capsys.readouterr().out


def test_stop_on_error_fails_the_run(scene_path):
    args = ["fix", str(scene_path), "-q", "-m", "SF Pro Text/Bold", "--stop-on-error"]
    assert main(args) == 1


def test_unreadable_scene(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"selection": [{"type": "TEXT", "id": "x"}]}))
    assert main(["fix", str(path), "-q"]) == 2
    assert main(["fix", str(tmp_path / "absent.json"), "-q"]) == 2


@pytest.mark.parametrize("literal", ["NaN", "Infinity"])
def test_non_finite_font_size_is_a_scene_error(tmp_path, literal):
    path = tmp_path / "scene.json"
    path.write_text(
        '{"selection": [{"type": "TEXT", "id": "1:2", "characters": "Hi", '
        '"fontName": {"family": "SF Pro Display"}, '
        f'"fontSize": {literal}}}]}}',
        encoding="utf-8",
    )
    assert main(["fix", str(path), "-q"]) == 2


def test_numeric_argument_types():
    assert _positive_int("3") == 3
    assert _font_size("17.5") == 17.5
    for bad in ("0", "-1", "two"):
        with pytest.raises(argparse.ArgumentTypeError):
            _positive_int(bad)
    for bad in ("nan", "inf", "0", "-4", "big"):
        with pytest.raises(argparse.ArgumentTypeError):
            _font_size(bad)


@pytest.mark.parametrize(
    "argv",
    [
        ["fix", "scene.json", "--digits", "0"],
        ["fix", "scene.json", "--digits", "-2"],
        ["lookup", "SF Pro Display", "nan"],
        ["lookup", "SF Pro Display", "inf"],
    ],
)
def test_invalid_numbers_are_usage_errors(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    assert excinfo.value.code == 2
    assert "error:" in capsys.readouterr().err


def test_lookup(capsys):
    assert main(["lookup", "SF Pro Display", "18"]) == 0
    out = capsys.readouterr().out
    assert "SF Pro Text 18pt" in out
    assert "-0.45px" in out
    assert main(["lookup", "Helvetica", "12"]) == 2


def test_table(capsys):
    assert main(["table", "SF Pro Text"]) == 0
    assert "SF Pro Text" in capsys.readouterr().out
    assert main(["table", "Comic Sans"]) == 2


def test_fonts_without_files(tmp_path):
    assert main(["fonts", str(tmp_path)]) == 1


def test_fonts_lists_installed_families(tmp_path, capsys):
    build_font(tmp_path / "text.ttf", "SF Pro Text", "Bold")
    build_font(tmp_path / "other.ttf", "Helvetica", "Regular")
    assert main(["fonts", str(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert "SF Pro Text" in out
    assert "Helvetica" in out


def test_fix_with_font_folder(scene_path, tmp_path, capsys):
    fonts = tmp_path / "fonts"
    fonts.mkdir()
    build_font(fonts / "text-bold.ttf", "SF Pro Text", "Bold")
    assert main(["fix", str(scene_path), "-q", "--fonts", str(fonts)]) == 0
    assert "Updated 1 text with SF fonts" in capsys.readouterr().out

    args = ["fix", str(scene_path), "-q", "--fonts", str(fonts), "-m", "SF Pro Text/Bold"]
    assert main(args) == 1


def test_no_subcommand_prints_help(capsys):
    assert main([]) == 0
    assert "tracking-fix" in capsys.readouterr().out
