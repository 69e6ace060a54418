"""
In-memory scene host.

A small scene graph with styled text nodes, a font registry and a scripted
UI surface. It behaves like a design tool host: ranges spanning different
values read back as MIXED, editing text requires its fonts to be loaded and
new text takes the style of the first character.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

import structlog

from sortlines.fonts import FontNotLoadedError, FontUnavailableError, is_font_name
from sortlines.models import (
    MIXED,
    RGB,
    FontName,
    LetterSpacing,
    LineHeight,
    RenderRequest,
    SolidPaint,
    TextCase,
    TextDecoration,
    is_mixed,
)

logger = structlog.get_logger(__name__)

DEFAULT_STYLE: Dict[str, Any] = {
    "font_size": 12.0,
    "font_name": FontName(family="Inter", style="Regular"),
    "text_case": TextCase.ORIGINAL,
    "text_decoration": TextDecoration.NONE,
    "letter_spacing": LetterSpacing(value=0.0, unit="PERCENT"),
    "line_height": LineHeight(unit="AUTO"),
    "fills": (SolidPaint(color=RGB(r=0.0, g=0.0, b=0.0)),),
    "text_style_id": "",
    "fill_style_id": "",
}


class FontRegistry:
    """
    Tracks which fonts the host can provide and which have been loaded.
    available=None means every font can be loaded.
    """

    def __init__(self, available: Optional[Iterable[FontName]] = None):
        self.available: Optional[Set[FontName]] = set(available) if available is not None else None
        self.loaded: Set[FontName] = set()
        self.requests: List[FontName] = []

    async def load(self, font_name: FontName):
        self.requests.append(font_name)
        await asyncio.sleep(0)
        if self.available is not None and font_name not in self.available:
            raise FontUnavailableError(font_name)
        self.loaded.add(font_name)

    def require(self, font_name: Any):
        if is_font_name(font_name) and font_name not in self.loaded:
            raise FontNotLoadedError(font_name)


class TextNode:
    type = "TEXT"

    def __init__(
        self,
        characters: str = "",
        name: Optional[str] = None,
        visible: bool = True,
        registry: Optional[FontRegistry] = None,
        **style: Any,
    ):
        unknown = set(style) - set(DEFAULT_STYLE)
        if unknown:
            raise TypeError(f"Unknown style attribute(s): {sorted(unknown)}")

        self.name = name
        self.visible = visible
        self.registry = registry
        self.default_style = {**DEFAULT_STYLE, **style}
        self._characters = characters
        self._styles: List[Dict[str, Any]] = [dict(self.default_style) for _ in characters]

    def __repr__(self) -> str:
        return f"TextNode(name={self.name!r}, characters={self._characters!r})"

    @property
    def characters(self) -> str:
        return self._characters

    @characters.setter
    def characters(self, value: str):
        if self.registry is not None:
            for style in self._styles or [self.default_style]:
                self.registry.require(style["font_name"])

        base = dict(self.default_style)
        if self._styles:
            base.update({k: v for k, v in self._styles[0].items() if v is not MIXED})
        self._characters = value
        self._styles = [dict(base) for _ in value]

    def style_at(self, index: int) -> Dict[str, Any]:
        return dict(self._styles[index])

    def mark_indeterminate(self, attribute: str, index: int):
        """Makes the host report MIXED for attribute at one position."""
        self._styles[index][attribute] = MIXED

    def _check_range(self, start: int, end: int):
        if not (0 <= start < end <= len(self._characters)):
            raise ValueError(f"Invalid range [{start}, {end}) for text of length {len(self._characters)}")

    def _get(self, attribute: str, start: int, end: int) -> Any:
        self._check_range(start, end)
        values = [style[attribute] for style in self._styles[start:end]]
        first = values[0]
        if all(v is not MIXED and v == first for v in values[1:]):
            return first
        return MIXED

    def _set(self, attribute: str, start: int, end: int, value: Any):
        self._check_range(start, end)
        if is_mixed(value):
            raise TypeError(f"Cannot assign MIXED to {attribute}")
        if attribute == "font_name" and self.registry is not None:
            self.registry.require(value)
        for style in self._styles[start:end]:
            style[attribute] = value

    def get_range_font_size(self, start: int, end: int):
        return self._get("font_size", start, end)

    def get_range_font_name(self, start: int, end: int):
        return self._get("font_name", start, end)

    def get_range_text_case(self, start: int, end: int):
        return self._get("text_case", start, end)

    def get_range_text_decoration(self, start: int, end: int):
        return self._get("text_decoration", start, end)

    def get_range_letter_spacing(self, start: int, end: int):
        return self._get("letter_spacing", start, end)

    def get_range_line_height(self, start: int, end: int):
        return self._get("line_height", start, end)

    def get_range_fills(self, start: int, end: int):
        return self._get("fills", start, end)

    def get_range_text_style_id(self, start: int, end: int):
        return self._get("text_style_id", start, end)

    def get_range_fill_style_id(self, start: int, end: int):
        return self._get("fill_style_id", start, end)

    def set_range_font_size(self, start: int, end: int, value: float):
        self._set("font_size", start, end, value)

    def set_range_font_name(self, start: int, end: int, value: FontName):
        self._set("font_name", start, end, value)

    def set_range_text_case(self, start: int, end: int, value: TextCase):
        self._set("text_case", start, end, value)

    def set_range_text_decoration(self, start: int, end: int, value: TextDecoration):
        self._set("text_decoration", start, end, value)

    def set_range_letter_spacing(self, start: int, end: int, value: LetterSpacing):
        self._set("letter_spacing", start, end, value)

    def set_range_line_height(self, start: int, end: int, value: LineHeight):
        self._set("line_height", start, end, value)

    def set_range_fills(self, start: int, end: int, value):
        self._set("fills", start, end, tuple(value))

    def set_range_text_style_id(self, start: int, end: int, value: str):
        self._set("text_style_id", start, end, value)

    def set_range_fill_style_id(self, start: int, end: int, value: str):
        self._set("fill_style_id", start, end, value)


class _ContainerNode:
    type = "FRAME"

    def __init__(self, children: Sequence[Any] = (), name: Optional[str] = None, visible: bool = True):
        self.children = list(children)
        self.name = name
        self.visible = visible


class FrameNode(_ContainerNode):
    type = "FRAME"


class GroupNode(_ContainerNode):
    type = "GROUP"


class InstanceNode(_ContainerNode):
    """A component instance; remote instances come from an external library."""

    type = "INSTANCE"

    def __init__(self, children: Sequence[Any] = (), name: Optional[str] = None, visible: bool = True, remote=False):
        super().__init__(children, name=name, visible=visible)
        self.remote = remote


class RectangleNode:
    type = "RECTANGLE"

    def __init__(self, name: Optional[str] = None, visible: bool = True):
        self.name = name
        self.visible = visible


class ScriptedSurface:
    """
    UI surface that answers with pre-recorded messages once shown.
    Messages are delivered on the next loop iterations, as a real UI would.
    """

    def __init__(self, responses: Sequence[Any] = ()):
        self.responses = list(responses)
        self.on_message = None
        self.requests: List[RenderRequest] = []
        self.sizes: List[tuple] = []
        self.closed = False

    def show(self, request: RenderRequest):
        self.requests.append(request)
        self.sizes.append((request.width, request.height))
        loop = asyncio.get_running_loop()
        for response in self.responses:
            loop.call_soon(self.post, response)

    def post(self, message: Any):
        if self.on_message is not None:
            self.on_message(message)

    def resize(self, width: int, height: int):
        self.sizes.append((width, height))

    def close(self):
        self.closed = True


class SceneHost:
    def __init__(
        self,
        selection: Sequence[Any],
        ui: Optional[Any] = None,
        registry: Optional[FontRegistry] = None,
    ):
        self.selection = list(selection)
        self.ui = ui if ui is not None else ScriptedSurface()
        self.registry = registry if registry is not None else FontRegistry()
        self.notifications: List[str] = []
        self.closed = False

    def notify(self, message: str):
        logger.info(message)
        self.notifications.append(message)

    async def load_font(self, font_name: FontName):
        await self.registry.load(font_name)

    def close(self):
        self.closed = True
