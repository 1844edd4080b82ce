"""Selection highlighting - the ancestor chain from a node back to the root."""

import logging
from typing import Iterable

from contextdojo.models import TopicLink

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 100
DIMMED_OPACITY = 0.2


def path_to_root(
    selected_id: str | None,
    links: Iterable[TopicLink],
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> set[str]:
    """
    Collect the selected node and all its ancestors.

    Follows the first link whose target is the current node, hop by hop.
    Stops when no parent link exists, when the parent is already on the
    path (cycle), or after max_iterations hops. On cyclic or malformed
    links the result is partial, not an error.

    Args:
        selected_id: Node to start from (None means no selection)
        links: Directed parent -> child links
        max_iterations: Hop bound

    Returns:
        Set of node ids on the path, including selected_id
    """
    if selected_id is None:
        return set()

    link_list = list(links)
    path = {selected_id}
    current = selected_id

    for _ in range(max_iterations):
        parent_link = next((link for link in link_list if link.target == current), None)
        if parent_link is None or parent_link.source in path:
            break
        path.add(parent_link.source)
        current = parent_link.source
    else:
        logger.warning(f"Path to root from '{selected_id}' hit the {max_iterations} hop cap")

    return path


def is_link_highlighted(link: TopicLink, path: set[str]) -> bool:
    """A link is emphasized when both of its ends are on the path."""
    return link.source in path and link.target in path


def node_opacity(node_id: str, path: set[str], has_selection: bool) -> float:
    """Render opacity: everything is opaque unless a selection dims the rest."""
    if has_selection and node_id not in path:
        return DIMMED_OPACITY
    return 1.0
