from typing import List

import structlog
from diff_match_patch import diff_match_patch

from sortlines.host import StyledTextNode
from sortlines.sorter.engine import plan_sort
from sortlines.sorter.extract import get_characters

logger = structlog.get_logger(__name__)

_PREFIX = {-1: "- ", 0: "  ", 1: "+ "}


def sorted_text(node: StyledTextNode) -> str:
    """Plain text the node would hold after sorting. The node is not modified."""
    return "".join(c.character for c in plan_sort(get_characters(node)))


def diff_lines(original_text: str, modified_text: str) -> List[str]:
    """
    Line-level diff between two texts, one output line per input line,
    prefixed with '- ', '+ ' or '  '.
    """
    dmp = diff_match_patch()

    # Line mode: every line becomes one token so moves show as delete + insert
    chars1, chars2, line_array = dmp.diff_linesToChars(original_text + "\n", modified_text + "\n")
    diffs = dmp.diff_main(chars1, chars2, False)
    dmp.diff_charsToLines(diffs, line_array)

    output = []
    for op, text in diffs:
        for line in text.split("\n")[:-1]:
            output.append(f"{_PREFIX[op]}{line}")
    return output


def preview_node(node: StyledTextNode) -> List[str]:
    """Diff of the node's current text against its sorted text; empty when already sorted."""
    before = node.characters
    after = sorted_text(node)
    if before == after:
        return []
    return diff_lines(before, after)
