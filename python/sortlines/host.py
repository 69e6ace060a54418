"""
Capabilities the sorter consumes from its host.

Hosts are duck-typed: the in-memory scene (sortlines.scene) and the DOCX
adapter (sortlines.utils.docx) both satisfy these protocols without
inheriting from them.
"""

from typing import Any, Callable, Optional, Protocol, Sequence

from sortlines.models import FontName, RenderRequest


class StyledTextNode(Protocol):
    """A text document whose every position carries the nine style attributes."""

    type: str
    visible: bool
    characters: str

    def get_range_font_size(self, start: int, end: int) -> Any: ...
    def get_range_font_name(self, start: int, end: int) -> Any: ...
    def get_range_text_case(self, start: int, end: int) -> Any: ...
    def get_range_text_decoration(self, start: int, end: int) -> Any: ...
    def get_range_letter_spacing(self, start: int, end: int) -> Any: ...
    def get_range_line_height(self, start: int, end: int) -> Any: ...
    def get_range_fills(self, start: int, end: int) -> Any: ...
    def get_range_text_style_id(self, start: int, end: int) -> Any: ...
    def get_range_fill_style_id(self, start: int, end: int) -> Any: ...

    def set_range_font_size(self, start: int, end: int, value: Any) -> None: ...
    def set_range_font_name(self, start: int, end: int, value: Any) -> None: ...
    def set_range_text_case(self, start: int, end: int, value: Any) -> None: ...
    def set_range_text_decoration(self, start: int, end: int, value: Any) -> None: ...
    def set_range_letter_spacing(self, start: int, end: int, value: Any) -> None: ...
    def set_range_line_height(self, start: int, end: int, value: Any) -> None: ...
    def set_range_fills(self, start: int, end: int, value: Any) -> None: ...
    def set_range_text_style_id(self, start: int, end: int, value: Any) -> None: ...
    def set_range_fill_style_id(self, start: int, end: int, value: Any) -> None: ...


class SceneNode(Protocol):
    """
    Any node in a host scene. Containers additionally expose ``children``;
    externally-referenced subtrees expose ``remote = True``. Both are
    optional and read with getattr.
    """

    type: str
    visible: bool


class UISurface(Protocol):
    on_message: Optional[Callable[[Any], None]]

    def show(self, request: RenderRequest) -> None: ...
    def resize(self, width: int, height: int) -> None: ...
    def close(self) -> None: ...


class PluginHost(Protocol):
    selection: Sequence[SceneNode]
    ui: UISurface

    def notify(self, message: str) -> None: ...
    async def load_font(self, font_name: FontName) -> None: ...
    def close(self) -> None: ...


def getter_name(attribute: str) -> str:
    return f"get_range_{attribute}"


def setter_name(attribute: str) -> str:
    return f"set_range_{attribute}"
