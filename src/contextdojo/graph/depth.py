"""Tier computation for the layout: BFS distance from the root."""

from collections import defaultdict, deque
from typing import Iterable

from contextdojo.models import ROOT_ID, TopicLink, TopicNode


def compute_depths(
    nodes: Iterable[TopicNode],
    links: Iterable[TopicLink],
    root_id: str = ROOT_ID,
) -> tuple[dict[str, int], int]:
    """
    Compute the tier of every node.

    Walks directed parent -> child links breadth-first from the root. A node
    first reached after k hops gets depth k. Nodes the walk never reaches
    keep depth 0.

    Args:
        nodes: Graph nodes
        links: Directed links
        root_id: Id to start the walk from

    Returns:
        (node_id -> depth, max depth over the given nodes)
    """
    node_ids = [n.id for n in nodes]

    adjacency: dict[str, list[str]] = defaultdict(list)
    for link in links:
        adjacency[link.source].append(link.target)

    reached: dict[str, int] = {root_id: 0}
    queue: deque[str] = deque([root_id])
    while queue:
        current = queue.popleft()
        for child in adjacency.get(current, ()):
            if child not in reached:
                reached[child] = reached[current] + 1
                queue.append(child)

    depths = {node_id: reached.get(node_id, 0) for node_id in node_ids}
    max_depth = max(depths.values(), default=0)
    return depths, max_depth
