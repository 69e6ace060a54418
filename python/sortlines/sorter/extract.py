from typing import List

import structlog

from sortlines.host import StyledTextNode, getter_name
from sortlines.models import STYLE_ATTRIBUTES, Character

logger = structlog.get_logger(__name__)


def get_characters(node: StyledTextNode) -> List[Character]:
    """
    Reads a styled text node into one Character per position, in document
    order. Each attribute is queried over the single-unit range [i, i + 1).
    Host query errors propagate.
    """
    getters = [(name, getattr(node, getter_name(name))) for name in STYLE_ATTRIBUTES]

    characters = []
    for i, char in enumerate(node.characters):
        styles = {name: getter(i, i + 1) for name, getter in getters}
        characters.append(Character(character=char, **styles))

    logger.debug(f"Extracted {len(characters)} characters", node_type=getattr(node, "type", None))
    return characters
