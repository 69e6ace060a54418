from functools import cmp_to_key
from typing import List, Sequence

import structlog

from sortlines.host import StyledTextNode
from sortlines.models import LINE_BREAK, Character
from sortlines.sorter.extract import get_characters
from sortlines.sorter.rebuild import make_line_break, set_characters
from sortlines.utils.sequence import join_groups, split_on

logger = structlog.get_logger(__name__)

Line = List[Character]


def line_text(line: Sequence[Character]) -> str:
    """Whitespace-trimmed text of a line, used only for ordering."""
    return "".join(c.character for c in line).strip()


def compare_lines(a: Sequence[Character], b: Sequence[Character]) -> int:
    """
    Orders lines by trimmed text, code point by code point.
    Blank lines sort after every non-blank line and equal to each other.
    """
    a_text = line_text(a)
    b_text = line_text(b)

    if not a_text and not b_text:
        return 0
    if not a_text:
        return 1
    if not b_text:
        return -1
    if a_text < b_text:
        return -1
    if a_text > b_text:
        return 1
    return 0


def split_lines(characters: Sequence[Character]) -> List[Line]:
    return split_on(characters, lambda c: c.character == LINE_BREAK)


def sort_line_groups(lines: Sequence[Line]) -> List[Line]:
    # sorted() is stable: equal lines (blank ones included) keep their order
    return sorted(lines, key=cmp_to_key(compare_lines))


def plan_sort(characters: Sequence[Character]) -> List[Character]:
    """
    Returns the character sequence of the sorted document without touching
    the host. Every line break in the result is a clone of characters[0].
    """
    if not characters:
        return []

    line_break = make_line_break(characters[0])
    sorted_lines = sort_line_groups(split_lines(characters))
    return join_groups(sorted_lines, line_break)


def sort_lines(node: StyledTextNode):
    """
    Sorts the lines of node alphabetically in place, carrying every
    character's styling with it. Empty documents are left untouched.
    """
    if len(node.characters) == 0:
        return

    characters = get_characters(node)
    sorted_characters = plan_sort(characters)

    logger.debug(
        "Rebuilding sorted node",
        length=len(sorted_characters),
        lines=sum(1 for c in characters if c.character == LINE_BREAK) + 1,
    )
    set_characters(node, sorted_characters)
