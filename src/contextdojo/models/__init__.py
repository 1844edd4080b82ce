"""ContextDojo data models."""

from contextdojo.models.topic import (
    ROOT_ID,
    ROOT_LABEL,
    NodePosition,
    NodeStatus,
    NodeType,
    TopicGraph,
    TopicLink,
    TopicNode,
    TopicProposal,
    make_node_id,
    normalize_label,
)

__all__ = [
    "ROOT_ID",
    "ROOT_LABEL",
    "NodeType",
    "NodeStatus",
    "TopicNode",
    "TopicLink",
    "TopicGraph",
    "TopicProposal",
    "NodePosition",
    "normalize_label",
    "make_node_id",
]
