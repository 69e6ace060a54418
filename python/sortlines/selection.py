from typing import Any, List, Sequence, Union

import structlog

from sortlines.host import SceneNode

logger = structlog.get_logger(__name__)


def node_has_children(node: Any) -> bool:
    return isinstance(getattr(node, "children", None), (list, tuple))


def is_remote(node: Any) -> bool:
    # Only an explicit boolean flag counts
    remote = getattr(node, "remote", None)
    return isinstance(remote, bool) and remote


def get_all_children(nodes: Union[SceneNode, Sequence[SceneNode]]) -> List[SceneNode]:
    """
    Flattens nodes depth-first: the given nodes first, then the flattened
    subtree of each one in order. Remote (externally-referenced) nodes are
    kept but not descended into.
    """
    if not isinstance(nodes, (list, tuple)):
        return get_all_children([nodes])

    flattened: List[SceneNode] = list(nodes)
    for node in nodes:
        # Remote is checked first so lazily-built children are never touched
        if is_remote(node):
            logger.debug("Skipping remote subtree", node_type=getattr(node, "type", None))
            continue
        if not node_has_children(node):
            continue
        for child in node.children:
            flattened.extend(get_all_children(child))
    return flattened


def is_text_node(node: Any) -> bool:
    return getattr(node, "type", None) == "TEXT"


def selected_text_nodes(selection: Sequence[SceneNode]) -> List[SceneNode]:
    """Visible TEXT nodes in the selection and everything beneath it."""
    return [n for n in get_all_children(selection) if is_text_node(n) and getattr(n, "visible", None) is True]
