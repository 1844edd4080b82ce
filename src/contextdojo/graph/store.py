"""Graph store - merges proposed topics into the conversation map.

The merge is functional: it reads a snapshot and returns a new one, so the
store can swap snapshots atomically. Matching is by case-insensitive label,
mirroring how concept names are resolved to existing concepts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable

from contextdojo.config import settings
from contextdojo.models import (
    TopicGraph,
    TopicLink,
    TopicNode,
    TopicProposal,
    make_node_id,
    normalize_label,
)

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Result of merging a batch of proposals."""

    graph: TopicGraph
    added: list[str] = field(default_factory=list)  # New node ids, in creation order
    promoted: list[str] = field(default_factory=list)  # Ids upgraded potential -> active
    links_added: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added or self.promoted or self.links_added)


def _fresh_id(label: str, taken: set[str]) -> str:
    """Derive an id from the label that is not used by any existing node."""
    base = make_node_id(label)
    candidate = base
    suffix = 2
    while candidate in taken:
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


def merge_graph(graph: TopicGraph, candidates: Iterable[TopicProposal]) -> MergeResult:
    """
    Merge proposals into a graph without mutating it.

    For each candidate:
    1. A node with the same label (case-insensitive) is reused. It is only
       touched to promote potential -> active; no link is added for it.
    2. Otherwise a new node is created and linked under the node matching
       parent_label (including nodes created earlier in this batch),
       falling back to the root.

    Args:
        graph: Current snapshot
        candidates: Proposals from the topic extraction collaborator

    Returns:
        MergeResult with the new snapshot and what changed
    """
    nodes: list[TopicNode] = list(graph.nodes)
    links: list[TopicLink] = list(graph.links)
    root = graph.root

    by_key: dict[str, int] = {}
    for i, node in enumerate(nodes):
        by_key.setdefault(node.key, i)
    taken = {n.id for n in nodes}

    result = MergeResult(graph=graph)

    for candidate in candidates:
        key = normalize_label(candidate.label)
        if not key:
            logger.warning("Skipping proposal with blank label")
            continue

        existing_idx = by_key.get(key)
        if existing_idx is not None:
            existing = nodes[existing_idx]
            # Status only moves forward
            if existing.status == "potential" and candidate.status == "active":
                nodes[existing_idx] = replace(existing, status="active")
                result.promoted.append(existing.id)
                logger.debug(f"Promoted '{existing.label}' to active")
            continue

        node = TopicNode(
            id=_fresh_id(candidate.label, taken),
            label=candidate.label,
            type=candidate.type,
            status=candidate.status,
            description=candidate.description,
        )
        nodes.append(node)
        by_key[key] = len(nodes) - 1
        taken.add(node.id)
        result.added.append(node.id)

        parent_idx = by_key.get(normalize_label(candidate.parent_label))
        parent = nodes[parent_idx] if parent_idx is not None else root
        if parent.id == node.id:
            parent = root
        logger.debug(f"Created '{node.label}' ({node.status}) under '{parent.label}'")

        if not any(link.matches(parent.id, node.id) for link in links):
            links.append(TopicLink(source=parent.id, target=node.id))
            result.links_added += 1

    result.graph = TopicGraph(nodes=tuple(nodes), links=tuple(links), root_id=graph.root_id)
    return result


class GraphStore:
    """Owns the current conversation graph snapshot.

    merge() is synchronous, so on a single event loop each call sees the
    latest snapshot. Callers that await between reading the graph and
    merging must serialize those sequences themselves.
    """

    def __init__(self, root_label: str | None = None) -> None:
        self._graph = TopicGraph.initial(root_label or settings.root_label)
        self.version = 0

    @property
    def graph(self) -> TopicGraph:
        return self._graph

    def apply(self, candidates: Iterable[TopicProposal]) -> MergeResult:
        """Merge candidates into the current snapshot and keep the result."""
        result = merge_graph(self._graph, candidates)
        if result.changed:
            self._graph = result.graph
            self.version += 1
            logger.info(
                f"Graph v{self.version}: +{len(result.added)} nodes, "
                f"{len(result.promoted)} promoted, +{result.links_added} links "
                f"({len(self._graph.nodes)} nodes total)"
            )
        return result

    def merge(self, candidates: Iterable[TopicProposal]) -> TopicGraph:
        """Merge candidates and return the resulting graph."""
        return self.apply(candidates).graph

    def recent_active_labels(self, limit: int | None = None) -> list[str]:
        """Labels of active nodes in creation order, most recent last.

        Args:
            limit: Keep only the most recent N labels (default from settings)
        """
        if limit is None:
            limit = settings.graph_context_nodes
        if limit <= 0:
            return []
        labels = [n.label for n in self._graph.nodes if n.status == "active"]
        return labels[-limit:]
