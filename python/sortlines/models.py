from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class _Mixed:
    """
    Sentinel for a style attribute that cannot be resolved to a single value
    over the queried range. There is exactly one instance: ``MIXED``.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MIXED"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MIXED = _Mixed()


def is_mixed(value: Any) -> bool:
    return value is MIXED


# --- Style payloads ---
class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)


class FontName(_Payload):
    family: Optional[str] = None
    style: str = "Regular"

    @property
    def is_loadable(self) -> bool:
        # Inherited (theme/style) fonts have no family to load
        return isinstance(self.family, str) and bool(self.family) and isinstance(self.style, str)


class TextCase(str, Enum):
    ORIGINAL = "ORIGINAL"
    UPPER = "UPPER"
    LOWER = "LOWER"
    TITLE = "TITLE"
    SMALL_CAPS = "SMALL_CAPS"
    SMALL_CAPS_FORCED = "SMALL_CAPS_FORCED"


class TextDecoration(str, Enum):
    NONE = "NONE"
    UNDERLINE = "UNDERLINE"
    STRIKETHROUGH = "STRIKETHROUGH"


class LetterSpacing(_Payload):
    value: float = 0.0
    unit: str = Field("PIXELS", pattern="^(PIXELS|PERCENT|POINTS)$")


class LineHeight(_Payload):
    unit: str = Field("AUTO", pattern="^(AUTO|PIXELS|PERCENT|POINTS)$")
    value: Optional[float] = None


class RGB(_Payload):
    r: float = Field(..., ge=0.0, le=1.0)
    g: float = Field(..., ge=0.0, le=1.0)
    b: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def from_hex(cls, hex_value: str) -> "RGB":
        hex_value = hex_value.lstrip("#")
        r, g, b = (int(hex_value[i : i + 2], 16) / 255 for i in (0, 2, 4))
        return cls(r=r, g=g, b=b)

    def to_hex(self) -> str:
        return "".join(f"{round(c * 255):02X}" for c in (self.r, self.g, self.b))


class SolidPaint(_Payload):
    type: str = "SOLID"
    color: RGB
    opacity: float = Field(1.0, ge=0.0, le=1.0)
    visible: bool = True


Fills = Tuple[SolidPaint, ...]


# Order is the order in which the rebuilder applies attributes.
STYLE_ATTRIBUTES = (
    "font_size",
    "font_name",
    "text_case",
    "text_decoration",
    "letter_spacing",
    "line_height",
    "fills",
    "text_style_id",
    "fill_style_id",
)

LINE_BREAK = "\n"


@dataclass(frozen=True)
class Character:
    """
    One unit of text content together with the nine style attributes
    read for its single-unit range. Any attribute may be ``MIXED``.
    """

    character: str
    font_size: Union[Optional[float], _Mixed]
    font_name: Union[FontName, _Mixed]
    text_case: Union[TextCase, _Mixed]
    text_decoration: Union[TextDecoration, _Mixed]
    letter_spacing: Union[LetterSpacing, _Mixed]
    line_height: Union[LineHeight, _Mixed]
    fills: Union[Fills, _Mixed]
    text_style_id: Union[str, _Mixed]
    fill_style_id: Union[str, _Mixed]

    def with_character(self, character: str) -> "Character":
        return replace(self, character=character)


# --- Confirmation channel messages ---
class RenderRequest(BaseModel):
    """Payload sent to a UI surface when the confirmation dialog opens."""

    amount: int = Field(..., ge=0, description="Number of text components about to be sorted.")
    html: str = Field(..., description="Dialog body for surfaces that render HTML.")
    width: int = 400
    height: int = 170


class UIMessage(BaseModel):
    """
    A message posted back by a UI surface. Either a resize instruction
    (width + height) or a decision (confirm), never resolved twice.
    """

    model_config = ConfigDict(extra="ignore")

    confirm: Optional[StrictBool] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def is_resize(self) -> bool:
        return self.width is not None and self.height is not None

    @property
    def is_decision(self) -> bool:
        return self.confirm is not None
