"""
Tests for model client adapters.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage

from demystifier.config import Settings
from demystifier.exceptions import ModelUnavailableError
from demystifier.llm_client import ChatModelClient, OllamaClient, block_reason, build_model_client


class StubChatModel:
    """Chat model stand-in returning a fixed message."""

    def __init__(self, message: AIMessage):
        self.message = message

    async def ainvoke(self, prompt):
        return self.message


class TestChatModelClient:
    """Test suite for ChatModelClient."""

    async def test_returns_reply_text(self):
        client = ChatModelClient(FakeListChatModel(responses=['{"summary": "S"}']))
        assert await client.agenerate("prompt") == '{"summary": "S"}'

    async def test_empty_reply_is_unavailable(self):
        client = ChatModelClient(StubChatModel(AIMessage(content="")))
        with pytest.raises(ModelUnavailableError):
            await client.agenerate("prompt")

    async def test_blocked_prompt_reports_reason(self):
        message = AIMessage(content="", response_metadata={"prompt_feedback": {"block_reason": "SAFETY"}})
        client = ChatModelClient(StubChatModel(message))
        with pytest.raises(ModelUnavailableError) as excinfo:
            await client.agenerate("prompt")
        assert "SAFETY" in excinfo.value.reason

    async def test_content_filter_reports_reason_even_with_partial_text(self):
        message = AIMessage(content="{\"summary\": \"Par", response_metadata={"finish_reason": "content_filter"})
        client = ChatModelClient(StubChatModel(message))
        with pytest.raises(ModelUnavailableError) as excinfo:
            await client.agenerate("prompt")
        assert "content_filter" in excinfo.value.reason

    async def test_list_content_is_flattened(self):
        message = AIMessage(content=[{"type": "text", "text": "{\"summary\": "}, {"type": "text", "text": "\"S\"}"}])
        client = ChatModelClient(StubChatModel(message))
        assert await client.agenerate("prompt") == '{"summary": "S"}'


def test_block_reason():
    assert block_reason({}) is None
    assert block_reason({"prompt_feedback": {"block_reason": 0}}) is None
    assert block_reason({"prompt_feedback": {"block_reason": "OTHER"}}) == "OTHER"
    assert block_reason({"finish_reason": "SAFETY"}) == "SAFETY"
    assert block_reason({"finish_reason": "content_filter"}) == "content_filter"
    assert block_reason({"finish_reason": "CONTENT_FILTER"}) == "CONTENT_FILTER"
    assert block_reason({"finish_reason": "STOP"}) is None


class TestOllamaClient:
    """Test suite for OllamaClient."""

    @pytest.fixture
    def client(self):
        return OllamaClient(host="http://ollama:11434", model="mistral", temperature=0.1, max_tokens=100, timeout=5)

    def test_host_without_scheme(self):
        assert OllamaClient(host="ollama").host == "http://ollama:11434"

    async def test_returns_response_text(self, client):
        response = MagicMock(status_code=200)
        response.json.return_value = {"response": '{"summary": "S"}', "done_reason": "stop"}
        with patch("demystifier.llm_client.requests.post", return_value=response) as post:
            assert await client.agenerate("prompt") == '{"summary": "S"}'
        assert post.call_args.args[0] == "http://ollama:11434/api/generate"
        assert post.call_args.kwargs["json"]["model"] == "mistral"
        assert post.call_count == 1

    async def test_empty_response_is_unavailable(self, client):
        response = MagicMock(status_code=200)
        response.json.return_value = {"response": "", "done_reason": "load"}
        with patch("demystifier.llm_client.requests.post", return_value=response):
            with pytest.raises(ModelUnavailableError) as excinfo:
                await client.agenerate("prompt")
        assert "load" in excinfo.value.reason

    async def test_http_error_is_unavailable(self, client):
        response = MagicMock(status_code=500, text="boom")
        with patch("demystifier.llm_client.requests.post", return_value=response):
            with pytest.raises(ModelUnavailableError):
                await client.agenerate("prompt")

    async def test_non_json_reply_is_unavailable(self, client):
        response = MagicMock(status_code=200, text="<html>Bad gateway</html>")
        response.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
        with patch("demystifier.llm_client.requests.post", return_value=response):
            with pytest.raises(ModelUnavailableError) as excinfo:
                await client.agenerate("prompt")
        assert "non-JSON" in excinfo.value.reason

    async def test_transport_error_is_unavailable(self, client):
        with patch("demystifier.llm_client.requests.post", side_effect=requests.Timeout("slow")):
            with pytest.raises(ModelUnavailableError):
                await client.agenerate("prompt")


def test_build_model_client_defaults_to_ollama():
    client = build_model_client(Settings(LLM_PROVIDER="ollama", OLLAMA_MODEL="llama3"))
    assert isinstance(client, OllamaClient)
    assert client.model == "llama3"


def test_build_model_client_openai():
    from langchain_openai import ChatOpenAI

    client = build_model_client(
        Settings(LLM_PROVIDER="openai", OPENAI_API_KEY="sk-test", OPENAI_MODEL="gpt-4o-mini")
    )
    assert isinstance(client, ChatModelClient)
    assert isinstance(client.llm, ChatOpenAI)
    assert client.model_name == "gpt-4o-mini"
