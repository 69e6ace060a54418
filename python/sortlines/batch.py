from dataclasses import dataclass

import structlog

from sortlines.confirm import confirm
from sortlines.fonts import load_fonts
from sortlines.host import PluginHost
from sortlines.selection import selected_text_nodes
from sortlines.sorter.engine import sort_lines

logger = structlog.get_logger(__name__)

ASK_IF_SELECTED_TEXT_COMPONENT_THRESHOLD = 2


@dataclass
class BatchResult:
    selected: int
    sorted: int = 0
    cancelled: bool = False


async def sort_selection(host: PluginHost, threshold: int = ASK_IF_SELECTED_TEXT_COMPONENT_THRESHOLD) -> BatchResult:
    """
    Sorts the lines of every visible text node under the host's selection.

    1. Asks for confirmation when at least `threshold` nodes are selected.
    2. Loads every font used by every node before touching any of them.
    3. Sorts the nodes one after another and notifies once.

    The host is closed on every exit path. Font and setter errors propagate;
    nodes sorted before the failure keep their changes.
    """
    nodes = selected_text_nodes(host.selection)
    amount = len(nodes)
    result = BatchResult(selected=amount)

    if amount == 0:
        host.notify("Please select a text node before sorting")

    try:
        if amount >= threshold:
            if not await confirm(host.ui, amount):
                logger.info("Sort cancelled by user", amount=amount)
                result.cancelled = True
                return result

        await load_fonts(host, nodes)

        for node in nodes:
            sort_lines(node)
            result.sorted += 1

        host.notify(f"Sorted {amount:,} text components!")
        logger.info(f"Sorted {amount} text node(s)")
        return result
    finally:
        host.close()
