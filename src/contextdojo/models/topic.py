"""Topic graph models - nodes, links and proposals for the conversation map."""

from dataclasses import dataclass, field
from typing import Any, Literal

NodeType = Literal["root", "concept", "entity", "action", "emotion"]
NodeStatus = Literal["active", "potential"]

ROOT_ID = "Context"
ROOT_LABEL = "Context"

PROPOSAL_TYPES: frozenset[str] = frozenset({"concept", "entity", "action", "emotion"})
NODE_STATUSES: frozenset[str] = frozenset({"active", "potential"})


def normalize_label(label: str) -> str:
    """Normalize a label into its dedup key (trimmed, single-spaced, casefolded)."""
    return " ".join(label.split()).casefold()


def make_node_id(label: str) -> str:
    """Derive a node id from its label."""
    return normalize_label(label)


def validate_node_type(type_str: Any) -> NodeType:
    """Validate proposal type, falling back to concept."""
    normalized = str(type_str or "").strip().lower()
    if normalized in PROPOSAL_TYPES:
        return normalized  # type: ignore[return-value]
    return "concept"


def validate_status(status_str: Any) -> NodeStatus:
    """Validate proposal status, falling back to potential."""
    normalized = str(status_str or "").strip().lower()
    if normalized in NODE_STATUSES:
        return normalized  # type: ignore[return-value]
    return "potential"


@dataclass(frozen=True)
class TopicNode:
    """
    A topic in the conversation map.

    Active nodes were actually discussed; potential nodes are suggested
    avenues that may be promoted later. Depth and position are derived by
    the layout and are not stored here.
    """

    id: str
    label: str
    type: NodeType
    status: NodeStatus
    description: str | None = None

    @property
    def key(self) -> str:
        """Dedup key used for case-insensitive label matching."""
        return normalize_label(self.label)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "status": self.status,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TopicNode":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            label=data["label"],
            type=data["type"],
            status=data["status"],
            description=data.get("description"),
        )


@dataclass(frozen=True)
class TopicLink:
    """Directed parent -> child edge, stored as two plain node ids."""

    source: str
    target: str

    def matches(self, a: str, b: str) -> bool:
        """Check whether this link connects a and b in either direction."""
        return (self.source == a and self.target == b) or (
            self.source == b and self.target == a
        )

    def to_dict(self) -> dict:
        return {"source": self.source, "target": self.target}


@dataclass
class NodePosition:
    """Simulation state for one node, owned by the layout position cache."""

    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0


@dataclass(frozen=True)
class TopicGraph:
    """Immutable snapshot of the conversation map.

    Always contains exactly one root node. Links reference nodes by id and
    are resolved through the id index at read time.
    """

    nodes: tuple[TopicNode, ...]
    links: tuple[TopicLink, ...] = ()
    root_id: str = ROOT_ID
    _by_id: dict[str, TopicNode] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_id: dict[str, TopicNode] = {}
        for node in self.nodes:
            by_id.setdefault(node.id, node)
        object.__setattr__(self, "_by_id", by_id)

    @classmethod
    def initial(cls, root_label: str = ROOT_LABEL) -> "TopicGraph":
        """Graph holding only the root node."""
        root = TopicNode(id=ROOT_ID, label=root_label, type="root", status="active")
        return cls(nodes=(root,), links=(), root_id=ROOT_ID)

    @property
    def root(self) -> TopicNode:
        node = self.get(self.root_id)
        if node is None:
            raise KeyError(f"Root node {self.root_id!r} missing from graph")
        return node

    @property
    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def index(self) -> dict[str, TopicNode]:
        """Copy of the id -> node lookup."""
        return dict(self._by_id)

    def get(self, node_id: str) -> TopicNode | None:
        return self._by_id.get(node_id)

    def find_by_label(self, label: str) -> TopicNode | None:
        """Find a node whose label matches case-insensitively."""
        key = normalize_label(label)
        for node in self.nodes:
            if node.key == key:
                return node
        return None

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [link.to_dict() for link in self.links],
        }


@dataclass
class TopicProposal:
    """A candidate node proposed by the topic extraction collaborator."""

    label: str
    type: NodeType = "concept"
    status: NodeStatus = "potential"
    parent_label: str = ROOT_LABEL
    description: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "TopicProposal | None":
        """Parse a raw extraction item. Returns None when the label is blank."""
        label = " ".join(str(raw.get("label") or "").split())
        if not label:
            return None

        parent = raw.get("parent") or raw.get("parentLabel") or raw.get("parent_label")
        parent_label = " ".join(str(parent or "").split()) or ROOT_LABEL

        description = raw.get("description")
        return cls(
            label=label,
            type=validate_node_type(raw.get("type")),
            status=validate_status(raw.get("status")),
            parent_label=parent_label,
            description=str(description).strip() if description else None,
        )

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "type": self.type,
            "status": self.status,
            "parent": self.parent_label,
            "description": self.description,
        }
