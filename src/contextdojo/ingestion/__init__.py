"""Topic extraction collaborator: LLM client, prompts and proposal parsing."""

from contextdojo.ingestion.llm_client import LLMClient, close_llm_client, get_llm_client
from contextdojo.ingestion.output_parser import OutputParser, ThinkingStripper
from contextdojo.ingestion.topic_extractor import TopicExtractor, format_exchange

__all__ = [
    "LLMClient",
    "get_llm_client",
    "close_llm_client",
    "OutputParser",
    "ThinkingStripper",
    "TopicExtractor",
    "format_exchange",
]
