"""Topic extraction from conversation exchanges using LLM."""

import logging

import requests

from contextdojo.config import settings
from contextdojo.ingestion.llm_client import LLMClient, get_llm_client
from contextdojo.ingestion.prompts import TOPIC_MAPPER_PROMPT, TOPIC_MAPPER_SYSTEM_PROMPT
from contextdojo.models import TopicProposal

logger = logging.getLogger(__name__)

MAX_EXCHANGE_CHARS = 4000


def format_exchange(user_text: str, agent_text: str) -> str:
    """Render one user/agent exchange as prompt text."""
    return f"User: {user_text.strip()}\nAgent: {agent_text.strip()}"


class TopicExtractor:
    """Propose topic nodes for the latest exchange.

    Failures never propagate: an unreachable model, a malformed payload or
    an empty answer all come back as an empty proposal list, which leaves
    the graph untouched.
    """

    def __init__(
        self,
        llm_client: LLMClient | None = None,
        context_limit: int | None = None,
        root_label: str | None = None,
    ) -> None:
        self.llm = llm_client or get_llm_client()
        self.context_limit = context_limit if context_limit is not None else settings.graph_context_nodes
        self.root_label = root_label or settings.root_label

    def build_prompt(self, exchange_text: str, existing_labels: list[str]) -> str:
        """Build the mapper prompt from the exchange and recent node labels."""
        recent = existing_labels[-self.context_limit:] if self.context_limit > 0 else []
        return TOPIC_MAPPER_PROMPT.format(
            recent_nodes=", ".join(recent),
            exchange=exchange_text[:MAX_EXCHANGE_CHARS],
            root_label=self.root_label,
        )

    async def extract(self, exchange_text: str, existing_labels: list[str]) -> list[TopicProposal]:
        """
        Extract topic proposals from an exchange.

        Args:
            exchange_text: Latest exchange ("User: ...\\nAgent: ...")
            existing_labels: Active node labels, most recent last

        Returns:
            Proposals in the order the model listed them (may be empty)
        """
        if not exchange_text.strip():
            return []

        prompt = self.build_prompt(exchange_text, existing_labels)

        try:
            result = await self.llm.generate_json(
                prompt,
                system_prompt=TOPIC_MAPPER_SYSTEM_PROMPT,
                temperature=settings.extraction_temperature,
            )
        except (ValueError, requests.RequestException) as e:
            logger.warning(f"Topic extraction failed: {e}")
            return []

        if not isinstance(result, dict):
            logger.warning(f"Unexpected result type: {type(result)}")
            return []

        return self._parse_proposals(result.get("nodes") or [])

    def _parse_proposals(self, raw_nodes: list) -> list[TopicProposal]:
        """Parse raw node data into TopicProposal objects."""
        proposals: list[TopicProposal] = []

        if not isinstance(raw_nodes, list):
            logger.warning(f"Expected a list of nodes, got {type(raw_nodes)}")
            return proposals

        for raw in raw_nodes:
            if not isinstance(raw, dict):
                continue
            proposal = TopicProposal.from_dict(raw)
            if proposal is None:
                logger.debug(f"Dropping proposal without label: {raw}")
                continue
            proposals.append(proposal)

        return proposals
