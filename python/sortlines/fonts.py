import asyncio
from typing import List, Sequence, Union

import structlog

from sortlines.host import PluginHost, StyledTextNode
from sortlines.models import FontName, is_mixed

logger = structlog.get_logger(__name__)


class SortLinesError(Exception):
    pass


class FontUnavailableError(SortLinesError):
    """The host cannot provide the requested font."""

    def __init__(self, font_name: FontName):
        super().__init__(f"Font unavailable: {font_name.family} {font_name.style}")
        self.font_name = font_name


class FontNotLoadedError(SortLinesError):
    """Text was edited with a font that was never loaded."""

    def __init__(self, font_name: FontName):
        super().__init__(f"Font not loaded: {font_name.family} {font_name.style}")
        self.font_name = font_name


def is_font_name(value) -> bool:
    return not is_mixed(value) and isinstance(value, FontName) and value.is_loadable


def get_font_names(node: Union[StyledTextNode, Sequence[StyledTextNode]]) -> List[FontName]:
    """Loadable font names at every position of one node or many nodes."""
    if isinstance(node, (list, tuple)):
        return [font for n in node for font in get_font_names(n)]

    names = (node.get_range_font_name(i, i + 1) for i in range(len(node.characters)))
    return [name for name in names if is_font_name(name)]


async def load_fonts(host: PluginHost, nodes: Union[StyledTextNode, Sequence[StyledTextNode]]):
    """
    Loads every font used by nodes concurrently and waits for all of them.
    The first failure propagates.
    """
    unique = list(dict.fromkeys(get_font_names(nodes)))
    logger.info(f"Loading {len(unique)} font(s)")
    await asyncio.gather(*(host.load_font(font) for font in unique))
