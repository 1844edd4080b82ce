"""
Cleanup and JSON parsing for model output.

Handles:
- <think>...</think> reasoning blocks
- Orphan thinking tags
- Markdown code fences around JSON
- Prose before or after the JSON payload
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)


class ThinkingStripper:
    """Strips reasoning blocks from LLM output.

    Only complete tag pairs are removed with their content; orphan tags are
    removed alone so valid content is never truncated.
    """

    THINKING_PATTERNS = [
        re.compile(r'<think>[\s\S]*?</think>', re.DOTALL),
        re.compile(r'<thinking>[\s\S]*?</thinking>', re.DOTALL),
    ]

    ORPHAN_TAGS = re.compile(r'</?think(?:ing)?>')

    @classmethod
    def strip(cls, text: str) -> str:
        if not text:
            return ""

        result = text
        for pattern in cls.THINKING_PATTERNS:
            result = pattern.sub('', result)
        result = cls.ORPHAN_TAGS.sub('', result)
        result = re.sub(r'\n{3,}', '\n\n', result)

        return result.strip()


class OutputParser:
    """Lenient JSON extraction from raw model output."""

    CODE_BLOCK_PATTERNS = [
        re.compile(r'```json\s*([\s\S]*?)\s*```', re.DOTALL),
        re.compile(r'```\s*([\s\S]*?)\s*```', re.DOTALL),
    ]

    JSON_PATTERNS = [
        re.compile(r'(\{[\s\S]*\})', re.DOTALL),
        re.compile(r'(\[[\s\S]*\])', re.DOTALL),
    ]

    @classmethod
    def parse_json(cls, raw_output: str, fallback: Any = None) -> Any:
        """
        Parse JSON from LLM output.

        Tries, in order: the whole text, a fenced code block, the outermost
        object or array. Returns fallback when nothing parses.
        """
        text = ThinkingStripper.strip(raw_output or "")
        if not text:
            return fallback

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        for pattern in cls.CODE_BLOCK_PATTERNS + cls.JSON_PATTERNS:
            match = pattern.search(text)
            if match:
                try:
                    return json.loads(match.group(1))
                except json.JSONDecodeError:
                    continue

        logger.warning(f"Failed to parse JSON from output: {text[:200]}...")
        return fallback
