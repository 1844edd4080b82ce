"""Unit tests for the LLM client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from contextdojo.ingestion import llm_client as llm_module
from contextdojo.ingestion.llm_client import LLMClient, close_llm_client, get_llm_client


def _response(payload: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestSyncChat:
    """Tests for response handling in the blocking request."""

    def test_content(self) -> None:
        client = LLMClient(base_url="http://llm/v1/", api_key="key")
        session = MagicMock()
        session.post.return_value = _response(
            {"choices": [{"message": {"content": "<think>hmm</think> answer "}}]}
        )

        with patch.object(client, "_get_session", return_value=session):
            result = client._sync_chat([{"role": "user", "content": "hi"}], 0.3, 100)

        assert result == "answer"
        url = session.post.call_args.args[0]
        assert url == "http://llm/v1/chat/completions"
        payload = session.post.call_args.kwargs["json"]
        assert payload["temperature"] == 0.3
        assert payload["max_tokens"] == 100

    def test_text_fallback(self) -> None:
        client = LLMClient()
        session = MagicMock()
        session.post.return_value = _response({"choices": [{"text": "plain"}]})

        with patch.object(client, "_get_session", return_value=session):
            assert client._sync_chat([], 0.3, 100) == "plain"

    def test_reasoning_fallback(self) -> None:
        client = LLMClient()
        session = MagicMock()
        session.post.return_value = _response(
            {"choices": [{"message": {"content": None, "reasoning_content": "from reasoning"}}]}
        )

        with patch.object(client, "_get_session", return_value=session):
            assert client._sync_chat([], 0.3, 100) == "from reasoning"

    def test_empty_choices(self) -> None:
        client = LLMClient()
        session = MagicMock()
        session.post.return_value = _response({"choices": []})

        with patch.object(client, "_get_session", return_value=session):
            with pytest.raises(ValueError):
                client._sync_chat([], 0.3, 100)

    @pytest.mark.parametrize(
        "payload",
        [
            [{"message": {"content": "hi"}}],
            {"choices": [{"message": None}]},
            {"choices": ["not a choice"]},
            {"choices": [{"message": {"content": ["part one", "part two"]}}]},
        ],
    )
    def test_malformed_payload_raises_value_error(self, payload) -> None:
        client = LLMClient()
        session = MagicMock()
        session.post.return_value = _response(payload)

        with patch.object(client, "_get_session", return_value=session):
            with pytest.raises(ValueError):
                client._sync_chat([], 0.3, 100)

    def test_http_error_propagates(self) -> None:
        client = LLMClient()
        session = MagicMock()
        response = _response({})
        response.raise_for_status.side_effect = requests.HTTPError("503")
        session.post.return_value = response

        with patch.object(client, "_get_session", return_value=session):
            with pytest.raises(requests.HTTPError):
                client._sync_chat([], 0.3, 100)


class TestLLMClient:
    """Tests for the async surface."""

    @pytest.mark.asyncio
    async def test_generate_builds_messages(self) -> None:
        client = LLMClient()
        with patch.object(client, "_sync_chat", return_value="ok") as sync_chat:
            result = await client.generate("prompt", system_prompt="system", temperature=0.1)

        assert result == "ok"
        messages = sync_chat.call_args.args[0]
        assert messages == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "prompt"},
        ]
        assert sync_chat.call_args.args[1] == 0.1

    @pytest.mark.asyncio
    async def test_generate_json(self) -> None:
        client = LLMClient()
        with patch.object(client, "_sync_chat", return_value='```json\n{"nodes": []}\n```'):
            assert await client.generate_json("prompt") == {"nodes": []}

    @pytest.mark.asyncio
    async def test_generate_json_unparseable(self) -> None:
        client = LLMClient()
        with patch.object(client, "_sync_chat", return_value="I cannot help with that"):
            with pytest.raises(ValueError):
                await client.generate_json("prompt")

    @pytest.mark.asyncio
    async def test_generate_json_fallback(self) -> None:
        client = LLMClient()
        with patch.object(client, "_sync_chat", return_value="nope"):
            assert await client.generate_json("prompt", fallback={"nodes": []}) == {"nodes": []}

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        client = LLMClient()
        session = client._get_session()
        assert session.headers["Authorization"].startswith("Bearer ")

        await client.close()
        assert client._session is None


class TestGlobalClient:
    """Tests for the shared client instance."""

    @pytest.mark.asyncio
    async def test_get_and_close(self) -> None:
        first = get_llm_client()
        assert get_llm_client() is first

        await close_llm_client()
        assert llm_module._llm_client is None
