#!/usr/bin/env python3
"""
Read selection snapshots into the node model.

A snapshot is JSON, either a list of nodes or an object with a "selection"
list. Node shape (unknown keys are ignored):

    {"type": "FRAME", "id": "1:2", "name": "Card", "children": [...]}
    {"type": "TEXT", "id": "1:3", "name": "Title", "characters": "Hello",
     "fontName": {"family": "SF Pro Display", "style": "Bold"},
     "fontSize": 18, "letterSpacing": {"value": 0, "unit": "PERCENT"},
     "textStyleId": null,
     "segments": [{"start": 0, "end": 2, "fontSize": 24}, ...]}
    {"type": "RECTANGLE", "id": "1:4"}

Segment fields that are omitted inherit the node-level value.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Union

from TrackingCore.core_config import LETTER_SPACING_UNITS, PERCENT
from TrackingCore.core_error_handling import SceneFormatError
from TrackingCore.core_logging_config import get_logger
from TrackingCore.core_scene_model import (
    ContainerNode,
    FontName,
    LetterSpacing,
    Node,
    NodeKind,
    OtherNode,
    TextNode,
    TextStyle,
)
from TrackingCore.core_string_utils import normalize_empty, normalize_family_name

logger = get_logger(__name__)

CONTAINER_TYPES = {
    "DOCUMENT",
    "PAGE",
    "FRAME",
    "GROUP",
    "SECTION",
    "COMPONENT",
    "COMPONENT_SET",
    "INSTANCE",
    "BOOLEAN_OPERATION",
}

_STYLE_KEYS = ("fontName", "fontSize", "letterSpacing", "textStyleId")


def _require_mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SceneFormatError(f"expected an object, got {type(value).__name__}", path)
    return value


def _parse_font_name(value: Any, path: str) -> FontName:
    data = _require_mapping(value, path)
    family = normalize_family_name(data.get("family"))
    if family is None:
        raise SceneFormatError("font family is missing", f"{path}.family")
    style = normalize_empty(data.get("style")) or "Regular"
    return FontName(family, style)


def _parse_size(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SceneFormatError(f"font size must be a number, got {value!r}", path)
    if not math.isfinite(value) or value <= 0:
        raise SceneFormatError(f"font size must be a positive finite number, got {value!r}", path)
    return float(value)


def _parse_letter_spacing(value: Any, path: str) -> LetterSpacing:
    if value is None:
        return LetterSpacing(0.0, PERCENT)
    data = _require_mapping(value, path)
    unit = data.get("unit", PERCENT)
    if unit not in LETTER_SPACING_UNITS:
        raise SceneFormatError(f"unknown letter-spacing unit {unit!r}", f"{path}.unit")
    amount = data.get("value", 0)
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise SceneFormatError(
            f"letter-spacing must be a number, got {amount!r}", f"{path}.value"
        )
    if not math.isfinite(amount):
        raise SceneFormatError(
            f"letter-spacing must be finite, got {amount!r}", f"{path}.value"
        )
    return LetterSpacing(float(amount), unit)


def _parse_style(data: Mapping[str, Any], path: str) -> TextStyle:
    if "fontName" not in data:
        raise SceneFormatError("fontName is missing", path)
    if "fontSize" not in data:
        raise SceneFormatError("fontSize is missing", path)
    return TextStyle(
        font=_parse_font_name(data["fontName"], f"{path}.fontName"),
        size=_parse_size(data["fontSize"], f"{path}.fontSize"),
        letter_spacing=_parse_letter_spacing(
            data.get("letterSpacing"), f"{path}.letterSpacing"
        ),
        text_style_id=normalize_empty(data.get("textStyleId")),
    )


def _parse_text(data: Mapping[str, Any], path: str, node_id: str, name: str) -> TextNode:
    characters = data.get("characters", "")
    if not isinstance(characters, str):
        raise SceneFormatError("characters must be a string", f"{path}.characters")

    segments = data.get("segments")
    try:
        if segments is None:
            return TextNode(node_id, name, characters, style=_parse_style(data, path))

        if not isinstance(segments, list) or not segments:
            raise SceneFormatError("segments must be a non-empty list", f"{path}.segments")
        base = {k: data[k] for k in _STYLE_KEYS if k in data}
        parsed = []
        for index, raw in enumerate(segments):
            seg_path = f"{path}.segments[{index}]"
            seg = _require_mapping(raw, seg_path)
            merged = {**base, **{k: seg[k] for k in _STYLE_KEYS if k in seg}}
            try:
                start, end = int(seg["start"]), int(seg["end"])
            except (KeyError, TypeError, ValueError) as e:
                raise SceneFormatError(f"invalid segment bounds ({e})", seg_path) from e
            parsed.append((start, end, _parse_style(merged, seg_path)))
        return TextNode(node_id, name, characters, segments=parsed)
    except ValueError as e:
        # TextNode rejects segments that do not tile the characters
        raise SceneFormatError(str(e), path) from e


def parse_node(value: Any, path: str = "$") -> Node:
    data = _require_mapping(value, path)
    node_type = str(data.get("type", "")).upper()
    node_id = str(data.get("id") or path)
    name = normalize_empty(data.get("name")) or node_id

    if node_type == "TEXT":
        return _parse_text(data, path, node_id, name)

    children = data.get("children")
    if node_type in CONTAINER_TYPES or children is not None:
        if children is None:
            children = []
        if not isinstance(children, list):
            raise SceneFormatError("children must be a list", f"{path}.children")
        return ContainerNode(
            node_id,
            name,
            [parse_node(child, f"{path}.children[{i}]") for i, child in enumerate(children)],
            node_type=node_type or "FRAME",
        )

    return OtherNode(node_id, name, node_type=node_type or "RECTANGLE")


def parse_selection(document: Any) -> List[Node]:
    """Turn a decoded snapshot into the list of selected nodes."""
    if isinstance(document, Mapping):
        if "selection" not in document:
            raise SceneFormatError("expected a 'selection' list")
        document = document["selection"]
        root = "$.selection"
    else:
        root = "$"
    if not isinstance(document, list):
        raise SceneFormatError("selection must be a list", root)
    return [parse_node(item, f"{root}[{i}]") for i, item in enumerate(document)]


def load_scene(source: Union[str, Path, Mapping[str, Any], Sequence[Any]]) -> List[Node]:
    """Load a selection from a JSON file path or an already decoded document."""
    if isinstance(source, (str, Path)):
        path = Path(source).expanduser()
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise SceneFormatError(f"invalid JSON ({e.msg} at line {e.lineno})") from e
        logger.debug(f"Loaded scene snapshot {path}")
        return parse_selection(document)
    return parse_selection(source)


# ================================================================================================
# SERIALIZATION (reports only)
# ================================================================================================


def _style_to_dict(style: TextStyle) -> Dict[str, Any]:
    return {
        "fontName": {"family": style.font.family, "style": style.font.style},
        "fontSize": style.size,
        "letterSpacing": {
            "value": style.letter_spacing.value,
            "unit": style.letter_spacing.unit,
        },
        "textStyleId": style.text_style_id,
    }


def node_to_dict(node: Node) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": node.node_type, "id": node.id, "name": node.name}
    if node.kind is NodeKind.CONTAINER:
        data["children"] = [node_to_dict(child) for child in node.children]
    elif node.kind is NodeKind.TEXT:
        data["characters"] = node.characters
        segments = node.segments
        if len(segments) == 1:
            data.update(_style_to_dict(segments[0].style))
        else:
            data["segments"] = [
                {"start": seg.start, "end": seg.end, **_style_to_dict(seg.style)}
                for seg in segments
            ]
    return data


def scene_to_dict(nodes: Sequence[Node]) -> Dict[str, Any]:
    return {"selection": [node_to_dict(node) for node in nodes]}


__all__ = [
    "CONTAINER_TYPES",
    "parse_node",
    "parse_selection",
    "load_scene",
    "node_to_dict",
    "scene_to_dict",
]
