"""Topic map endpoints for the rendering surface.

Provides:
- GET /graph for the current nodes, links, layout and highlight
- POST /graph/exchange to map a conversation exchange onto the graph
- POST /graph/proposals to merge externally extracted topics
- POST /graph/select to change the highlighted path
"""

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Request
from pydantic import AliasChoices, BaseModel, Field

from contextdojo.graph import MergeResult
from contextdojo.models import TopicProposal
from contextdojo.session import ConversationSession

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request / Response Models
# ============================================================================


class ExchangeRequest(BaseModel):
    """One user/agent exchange from the conversation."""

    user_text: str
    agent_text: str = ""


class ProposalItem(BaseModel):
    """Topic proposal in the extraction payload format."""

    label: str = Field(min_length=1)
    type: Literal["concept", "entity", "action", "emotion"] = "concept"
    status: Literal["active", "potential"] = "potential"
    parent: str = Field(default="", validation_alias=AliasChoices("parent", "parentLabel", "parent_label"))
    description: str | None = None


class ProposalsRequest(BaseModel):
    nodes: list[ProposalItem]


class MergeResponse(BaseModel):
    """Outcome of a merge."""

    changed: bool
    added: list[str] = []
    promoted: list[str] = []
    links_added: int = 0
    version: int


class SelectRequest(BaseModel):
    node_id: str | None = None


class SelectResponse(BaseModel):
    selected: str | None
    highlighted: list[str]


class HealthResponse(BaseModel):
    status: str
    nodes: int
    links: int


def get_session(request: Request) -> ConversationSession:
    """Get conversation session from app state."""
    return request.app.state.session


def _merge_response(session: ConversationSession, result: MergeResult | None) -> MergeResponse:
    if result is None:
        return MergeResponse(changed=False, version=session.store.version)
    return MergeResponse(
        changed=result.changed,
        added=result.added,
        promoted=result.promoted,
        links_added=result.links_added,
        version=session.store.version,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Liveness plus graph size."""
    graph = get_session(request).graph
    return HealthResponse(status="ok", nodes=len(graph.nodes), links=len(graph.links))


@router.get("/graph")
async def get_graph(request: Request) -> dict:
    """Current graph with depths, positions and highlight state."""
    return get_session(request).render_state()


@router.post("/graph/exchange", response_model=MergeResponse)
async def post_exchange(body: ExchangeRequest, request: Request) -> MergeResponse:
    """Extract topics from an exchange and merge them."""
    session = get_session(request)
    result = await session.process_exchange(body.user_text, body.agent_text)
    return _merge_response(session, result)


@router.post("/graph/proposals", response_model=MergeResponse)
async def post_proposals(body: ProposalsRequest, request: Request) -> MergeResponse:
    """Merge proposals extracted by the client."""
    session = get_session(request)
    proposals = [
        p for p in (TopicProposal.from_dict(item.model_dump()) for item in body.nodes)
        if p is not None
    ]
    result = await session.apply_proposals(proposals)
    return _merge_response(session, result)


@router.post("/graph/select", response_model=SelectResponse)
async def post_select(body: SelectRequest, request: Request) -> SelectResponse:
    """Select a node (or clear with null) and return its path to the root."""
    session = get_session(request)
    try:
        highlighted = session.select(body.node_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown node: {body.node_id}")
    return SelectResponse(selected=session.selected_id, highlighted=sorted(highlighted))
