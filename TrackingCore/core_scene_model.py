#!/usr/bin/env python3
"""
Host document model: text styles, the node tree and the font loader.

The tracking fixer only talks to the host through this surface:
- Node.kind tags every node as CONTAINER, TEXT or OTHER
- TextNode.get_style(start, end) returns a TextStyle, or MIXED when the
  range is not uniform
- TextNode.set_style(start, end, font=..., letter_spacing=...) writes
- FontLoader.load_font(font) makes a font variant available or raises
  FontLoadError

The in-memory classes here back both the CLI and the tests.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from TrackingCore.core_config import PERCENT, PIXELS
from TrackingCore.core_error_handling import FontLoadError
from TrackingCore.core_logging_config import get_logger

logger = get_logger(__name__)


# ================================================================================================
# STYLE VALUES
# ================================================================================================


@dataclass(frozen=True)
class FontName:
    family: str
    style: str = "Regular"

    def __str__(self) -> str:
        return f"{self.family} {self.style}"


@dataclass(frozen=True)
class LetterSpacing:
    value: float = 0.0
    unit: str = PERCENT

    def __str__(self) -> str:
        suffix = "px" if self.unit == PIXELS else "%"
        return f"{self.value:g}{suffix}"


@dataclass(frozen=True)
class TextStyle:
    """The properties of one uniform stretch of characters."""

    font: FontName
    size: float
    letter_spacing: LetterSpacing = LetterSpacing()
    text_style_id: Optional[str] = None  # Shared named style governing the text

    @property
    def has_text_style(self) -> bool:
        return bool(self.text_style_id)

    def describe(self) -> str:
        return f"{self.font.family} {self.size:g} · {self.letter_spacing}"


class _Mixed:
    """Marker returned by get_style when a range holds more than one style."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MIXED"

    def __bool__(self) -> bool:
        return False


MIXED = _Mixed()


# ================================================================================================
# NODES
# ================================================================================================


class NodeKind(Enum):
    CONTAINER = "container"
    TEXT = "text"
    OTHER = "other"


class Node:
    kind: NodeKind = NodeKind.OTHER

    def __init__(self, id: str, name: str = "", node_type: str = "RECTANGLE"):
        self.id = id
        self.name = name or id
        self.node_type = node_type

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, name={self.name!r})"


class OtherNode(Node):
    kind = NodeKind.OTHER


class ContainerNode(Node):
    kind = NodeKind.CONTAINER

    def __init__(
        self,
        id: str,
        name: str = "",
        children: Optional[Iterable[Node]] = None,
        node_type: str = "FRAME",
    ):
        super().__init__(id, name, node_type)
        self.children: List[Node] = list(children or [])


@dataclass(frozen=True)
class TextSegment:
    start: int
    end: int
    style: TextStyle


class TextNode(Node):
    """
    A text element whose characters are covered by contiguous style segments.

    Adjacent segments with equal styles are merged after every write, so the
    segment list is always the minimal description of the text's styling.
    """

    kind = NodeKind.TEXT

    def __init__(
        self,
        id: str,
        name: str = "",
        characters: str = "",
        style: Optional[TextStyle] = None,
        segments: Optional[Iterable[Tuple[int, int, TextStyle]]] = None,
        node_type: str = "TEXT",
    ):
        super().__init__(id, name, node_type)
        self.characters = characters
        self.write_count = 0
        if segments is not None:
            self._segments = [TextSegment(s, e, st) for s, e, st in segments]
        elif style is not None:
            self._segments = [TextSegment(0, len(characters), style)]
        else:
            raise ValueError(f"Text node {id!r} needs a style or segments")
        self._validate()
        self._merge()

    @property
    def length(self) -> int:
        return len(self.characters)

    @property
    def segments(self) -> Tuple[TextSegment, ...]:
        return tuple(self._segments)

    def _validate(self) -> None:
        if not self._segments:
            raise ValueError(f"Text node {self.id!r} has no style segments")
        if self.length == 0:
            if len(self._segments) != 1 or self._segments[0].end != 0:
                raise ValueError(f"Empty text node {self.id!r} needs one empty segment")
            return
        cursor = 0
        for seg in self._segments:
            if seg.start != cursor or seg.end <= seg.start:
                raise ValueError(
                    f"Text node {self.id!r} segments must be contiguous and non-empty, "
                    f"got [{seg.start}, {seg.end}) at offset {cursor}"
                )
            cursor = seg.end
        if cursor != self.length:
            raise ValueError(
                f"Text node {self.id!r} segments end at {cursor}, text length is {self.length}"
            )

    def _merge(self) -> None:
        merged: List[TextSegment] = []
        for seg in self._segments:
            if merged and merged[-1].style == seg.style:
                merged[-1] = TextSegment(merged[-1].start, seg.end, seg.style)
            else:
                merged.append(seg)
        self._segments = merged

    def _check_range(self, start: int, end: int) -> None:
        if not 0 <= start <= end <= self.length:
            raise IndexError(
                f"Range [{start}, {end}) outside text node {self.id!r} of length {self.length}"
            )

    def get_style(self, start: int, end: int) -> Union[TextStyle, _Mixed]:
        self._check_range(start, end)
        if start == end:
            for seg in self._segments:
                if seg.start <= start < seg.end:
                    return seg.style
            return self._segments[-1].style
        styles: Set[TextStyle] = {
            seg.style
            for seg in self._segments
            if seg.start < end and seg.end > start
        }
        if len(styles) == 1:
            return styles.pop()
        return MIXED

    def set_style(
        self,
        start: int,
        end: int,
        font: Optional[FontName] = None,
        letter_spacing: Optional[LetterSpacing] = None,
    ) -> None:
        self._check_range(start, end)
        changes: Dict[str, object] = {}
        if font is not None:
            changes["font"] = font
        if letter_spacing is not None:
            changes["letter_spacing"] = letter_spacing
        self.write_count += 1
        if not changes:
            return

        if self.length == 0:
            only = self._segments[0]
            self._segments = [TextSegment(0, 0, replace(only.style, **changes))]
            return

        updated: List[TextSegment] = []
        for seg in self._segments:
            if seg.end <= start or seg.start >= end:
                updated.append(seg)
                continue
            if seg.start < start:
                updated.append(TextSegment(seg.start, start, seg.style))
            updated.append(
                TextSegment(
                    max(seg.start, start),
                    min(seg.end, end),
                    replace(seg.style, **changes),
                )
            )
            if seg.end > end:
                updated.append(TextSegment(end, seg.end, seg.style))
        self._segments = updated
        self._merge()


@dataclass(frozen=True)
class StyleRun:
    """A contiguous range of one text node with a single uniform style."""

    node: TextNode
    start: int
    end: int
    style: TextStyle

    @property
    def font(self) -> FontName:
        return self.style.font

    @property
    def size(self) -> float:
        return self.style.size

    @property
    def letter_spacing(self) -> LetterSpacing:
        return self.style.letter_spacing

    @property
    def has_text_style(self) -> bool:
        return self.style.has_text_style

    @property
    def is_whole_node(self) -> bool:
        return self.start == 0 and self.end == self.node.length

    @property
    def char_range(self) -> Optional[Tuple[int, int]]:
        return None if self.is_whole_node else (self.start, self.end)


# ================================================================================================
# FONT LOADING
# ================================================================================================


class FontLoader:
    """
    Asynchronous font availability collaborator.

    Subclasses implement _load(). load_font() memoises successful loads and
    shares one in-flight load between concurrent callers asking for the same
    font, so a failing load is reported to every waiter.
    """

    def __init__(self) -> None:
        self._loaded: Set[FontName] = set()
        self._pending: Dict[FontName, "asyncio.Future[None]"] = {}
        self.requests: List[FontName] = []
        self.loads: List[FontName] = []

    async def _load(self, font: FontName) -> None:
        raise NotImplementedError

    async def _load_and_record(self, font: FontName) -> None:
        try:
            self.loads.append(font)
            await self._load(font)
            self._loaded.add(font)
            logger.debug(f"Loaded font {font}")
        finally:
            self._pending.pop(font, None)

    def is_loaded(self, font: FontName) -> bool:
        return font in self._loaded

    async def load_font(self, font: FontName) -> None:
        self.requests.append(font)
        if font in self._loaded:
            return
        pending = self._pending.get(font)
        if pending is None:
            pending = asyncio.ensure_future(self._load_and_record(font))
            self._pending[font] = pending
        await pending


class StaticFontLoader(FontLoader):
    """
    Loader backed by a fixed set of fonts.

    With available=None every font loads except those listed in missing.
    """

    def __init__(
        self,
        available: Optional[Iterable[FontName]] = None,
        missing: Iterable[FontName] = (),
    ):
        super().__init__()
        self.available = None if available is None else frozenset(available)
        self.missing = frozenset(missing)

    async def _load(self, font: FontName) -> None:
        await asyncio.sleep(0)
        if font in self.missing or (
            self.available is not None and font not in self.available
        ):
            raise FontLoadError([font], "font is not installed")


__all__ = [
    "FontName",
    "LetterSpacing",
    "TextStyle",
    "MIXED",
    "NodeKind",
    "Node",
    "OtherNode",
    "ContainerNode",
    "TextSegment",
    "TextNode",
    "StyleRun",
    "FontLoader",
    "StaticFontLoader",
]
