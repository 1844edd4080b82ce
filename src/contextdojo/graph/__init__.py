"""Conversation graph engine.

Provides:
- Topic merging with case-insensitive dedup and monotonic status
- Depth tiers (BFS distance from the root)
- Tier-pinned force layout with a per-session position cache
- Path-to-root highlighting for selections
"""

from contextdojo.graph.config import LayoutConfig
from contextdojo.graph.depth import compute_depths
from contextdojo.graph.highlight import is_link_highlighted, node_opacity, path_to_root
from contextdojo.graph.layout import LayoutEngine, LayoutNode
from contextdojo.graph.store import GraphStore, MergeResult, merge_graph

__all__ = [
    # Config
    "LayoutConfig",
    # Store
    "GraphStore",
    "MergeResult",
    "merge_graph",
    # Derived views
    "compute_depths",
    "path_to_root",
    "is_link_highlighted",
    "node_opacity",
    # Layout
    "LayoutEngine",
    "LayoutNode",
]
