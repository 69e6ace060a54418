from typing import Sequence

import structlog

from sortlines.host import StyledTextNode, setter_name
from sortlines.models import LINE_BREAK, STYLE_ATTRIBUTES, Character, is_mixed

logger = structlog.get_logger(__name__)


def make_line_break(first: Character) -> Character:
    """Line-break record styled as a clone of the document's first character."""
    return first.with_character(LINE_BREAK)


def set_characters(node: StyledTextNode, characters: Sequence[Character]):
    """
    Writes characters back onto node: the plain text in one bulk assignment,
    then every concrete attribute per single-unit range. MIXED attributes
    are skipped so the host's default styling for that position stands.

    A setter failure propagates immediately; positions already written keep
    their new styling.
    """
    node.characters = "".join(c.character for c in characters)

    setters = [(name, getattr(node, setter_name(name))) for name in STYLE_ATTRIBUTES]
    skipped = 0

    for i, character in enumerate(characters):
        for name, setter in setters:
            value = getattr(character, name)
            if is_mixed(value):
                skipped += 1
                continue
            setter(i, i + 1, value)

    if skipped:
        logger.info(f"Left {skipped} mixed attribute(s) at host defaults", length=len(characters))
