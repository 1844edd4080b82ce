"""Unit tests for topic graph models."""

import pytest

from contextdojo.models import (
    ROOT_ID,
    TopicGraph,
    TopicLink,
    TopicNode,
    TopicProposal,
    make_node_id,
    normalize_label,
)


class TestLabelHelpers:
    """Tests for label normalization."""

    def test_normalize_label(self) -> None:
        assert normalize_label("Travel") == "travel"
        assert normalize_label("  TRAVEL  ") == "travel"
        assert normalize_label("Street   Food") == "street food"

    def test_make_node_id_matches_dedup_key(self) -> None:
        assert make_node_id("Street Food") == normalize_label("street  food")


class TestTopicNode:
    """Tests for TopicNode model."""

    def test_node_round_trip(self) -> None:
        node = TopicNode(id="travel", label="Travel", type="concept", status="active")
        restored = TopicNode.from_dict(node.to_dict())
        assert restored == node

    def test_node_is_frozen(self) -> None:
        node = TopicNode(id="travel", label="Travel", type="concept", status="potential")
        with pytest.raises(AttributeError):
            node.status = "active"  # type: ignore[misc]

    def test_key_is_case_insensitive(self) -> None:
        a = TopicNode(id="a", label="Travel", type="concept", status="active")
        b = TopicNode(id="b", label="tRaVeL", type="concept", status="active")
        assert a.key == b.key


class TestTopicLink:
    """Tests for TopicLink model."""

    def test_matches_either_direction(self) -> None:
        link = TopicLink(source="Context", target="travel")
        assert link.matches("Context", "travel")
        assert link.matches("travel", "Context")
        assert not link.matches("Context", "food")


class TestTopicGraph:
    """Tests for TopicGraph model."""

    def test_initial_graph_has_root(self, initial_graph: TopicGraph) -> None:
        assert initial_graph.node_ids == [ROOT_ID]
        assert initial_graph.root.type == "root"
        assert initial_graph.root.status == "active"
        assert initial_graph.links == ()

    def test_find_by_label(self, travel_graph: TopicGraph) -> None:
        node = travel_graph.find_by_label("JAPAN")
        assert node is not None
        assert node.label == "Japan"
        assert travel_graph.find_by_label("Unknown") is None

    def test_get_and_index(self, travel_graph: TopicGraph) -> None:
        index = travel_graph.index()
        assert set(index) == set(travel_graph.node_ids)
        assert travel_graph.get("travel") is index["travel"]
        assert travel_graph.get("missing") is None

    def test_rebuilt_graph_equal_and_indexed(self, travel_graph: TopicGraph) -> None:
        rebuilt = TopicGraph(nodes=travel_graph.nodes, links=travel_graph.links)
        assert rebuilt == travel_graph
        assert rebuilt.get("japan") is travel_graph.get("japan")

    def test_index_is_a_copy(self, travel_graph: TopicGraph) -> None:
        travel_graph.index().clear()
        assert travel_graph.get("travel") is not None

    def test_to_dict(self, travel_graph: TopicGraph) -> None:
        data = travel_graph.to_dict()
        assert len(data["nodes"]) == len(travel_graph.nodes)
        assert {"source": ROOT_ID, "target": "travel"} in data["links"]


class TestTopicProposal:
    """Tests for parsing extraction payload items."""

    def test_from_dict_full(self) -> None:
        p = TopicProposal.from_dict({
            "label": "Travel",
            "type": "concept",
            "status": "active",
            "parent": "Context",
            "description": "Trips",
        })
        assert p is not None
        assert p.label == "Travel"
        assert p.status == "active"
        assert p.parent_label == "Context"
        assert p.description == "Trips"

    def test_from_dict_accepts_parent_label_keys(self) -> None:
        p1 = TopicProposal.from_dict({"label": "Japan", "parentLabel": "Travel"})
        p2 = TopicProposal.from_dict({"label": "Japan", "parent_label": "Travel"})
        assert p1 is not None and p1.parent_label == "Travel"
        assert p2 is not None and p2.parent_label == "Travel"

    def test_from_dict_defaults(self) -> None:
        p = TopicProposal.from_dict({"label": "  Food  ", "type": "weird", "status": "maybe"})
        assert p is not None
        assert p.label == "Food"
        assert p.type == "concept"
        assert p.status == "potential"
        assert p.parent_label == "Context"
        assert p.description is None

    def test_from_dict_rejects_root_type(self) -> None:
        p = TopicProposal.from_dict({"label": "Other", "type": "root"})
        assert p is not None
        assert p.type == "concept"

    def test_from_dict_blank_label(self) -> None:
        assert TopicProposal.from_dict({"label": "   "}) is None
        assert TopicProposal.from_dict({}) is None
