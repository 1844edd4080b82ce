"""Conversation session - wires extraction, merging, layout and selection.

Flow per exchange:
1. Read the most recent active labels from the store
2. Ask the topic extractor for proposals
3. Merge them into the store (skipped when there are none)
4. Restart the layout simulation for the new graph

Steps 1-3 run under one lock so two exchanges never merge against the same
stale snapshot; later exchanges wait their turn.
"""

import asyncio
import logging

from contextdojo.config import Settings, settings as default_settings
from contextdojo.graph import (
    GraphStore,
    LayoutConfig,
    LayoutEngine,
    MergeResult,
    is_link_highlighted,
    node_opacity,
    path_to_root,
)
from contextdojo.ingestion.topic_extractor import TopicExtractor, format_exchange
from contextdojo.models import TopicGraph, TopicProposal

logger = logging.getLogger(__name__)


class ConversationSession:
    """State of one coaching session's topic map."""

    def __init__(
        self,
        extractor: TopicExtractor | None = None,
        store: GraphStore | None = None,
        layout: LayoutEngine | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.extractor = extractor or TopicExtractor(
            context_limit=self.settings.graph_context_nodes,
            root_label=self.settings.root_label,
        )
        self.store = store or GraphStore(root_label=self.settings.root_label)
        self.layout = layout or LayoutEngine(LayoutConfig.from_settings(self.settings))
        self.selected_id: str | None = None

        self._merge_lock = asyncio.Lock()
        self.layout.load(self.store.graph)

    @property
    def graph(self) -> TopicGraph:
        return self.store.graph

    async def start(self) -> None:
        """Start the layout simulation for the current graph."""
        await self.layout.restart(self.store.graph)

    async def close(self) -> None:
        """Stop the layout simulation."""
        await self.layout.stop()

    # ------------------------------------------------------------------
    # Graph updates
    # ------------------------------------------------------------------

    async def process_exchange(self, user_text: str, agent_text: str) -> MergeResult | None:
        """
        Map one user/agent exchange onto the graph.

        Returns:
            MergeResult, or None when extraction produced no proposals
        """
        exchange = format_exchange(user_text, agent_text)

        async with self._merge_lock:
            labels = self.store.recent_active_labels(self.settings.graph_context_nodes)
            proposals = await self.extractor.extract(exchange, labels)
            if not proposals:
                logger.debug("No topic proposals for exchange, graph unchanged")
                return None
            return await self._merge(proposals)

    async def apply_proposals(self, proposals: list[TopicProposal]) -> MergeResult | None:
        """Merge proposals produced outside the session's own extractor."""
        if not proposals:
            return None
        async with self._merge_lock:
            return await self._merge(proposals)

    async def _merge(self, proposals: list[TopicProposal]) -> MergeResult:
        result = self.store.apply(proposals)
        if result.changed:
            await self.layout.restart(result.graph)
        return result

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def highlighted(self) -> set[str]:
        """Ids on the path from the selected node to the root."""
        return path_to_root(
            self.selected_id,
            self.store.graph.links,
            max_iterations=self.settings.path_max_iterations,
        )

    def select(self, node_id: str | None) -> set[str]:
        """Select a node (None clears) and return the highlight set."""
        if node_id is not None and self.store.graph.get(node_id) is None:
            raise KeyError(node_id)
        self.selected_id = node_id
        return self.highlighted

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_state(self) -> dict:
        """Snapshot for the rendering surface."""
        graph = self.store.graph
        path = self.highlighted
        has_selection = self.selected_id is not None
        placed = {placement.id: placement for placement in self.layout.layout_nodes()}

        nodes = []
        for node in graph.nodes:
            data = node.to_dict()
            placement = placed.get(node.id)
            if placement is not None:
                data.update(placement.to_dict())
            else:
                data["depth"] = self.layout.depths.get(node.id, 0)
            data["highlighted"] = node.id in path
            data["opacity"] = node_opacity(node.id, path, has_selection)
            nodes.append(data)

        links = [
            {
                "source": link.source,
                "target": link.target,
                "highlighted": is_link_highlighted(link, path),
                "path": self.layout.edge_path(link),
            }
            for link in graph.links
        ]

        return {
            "version": self.store.version,
            "nodes": nodes,
            "links": links,
            "selected": self.selected_id,
            "highlighted": sorted(path),
            "canvas_height": self.layout.canvas_height,
            "settled": self.layout.settled,
        }
