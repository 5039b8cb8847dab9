"""
Tests for LLM Providers

Tests for scriptloom/llm/providers.py, using httpx.MockTransport instead of the network.
"""

import json

import httpx
import pytest

from scriptloom.core.config import LLMConfig
from scriptloom.core.constants import LLMProvider
from scriptloom.core.exceptions import ProviderError
from scriptloom.llm.providers import AnthropicProvider, GeminiProvider, OpenAICompatibleProvider, OpenAIProvider


def _recording_transport(handler_response, requests):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler_response
    return httpx.MockTransport(handler)


class TestGeminiProvider:
    """Tests for the Gemini REST provider."""

    @pytest.mark.asyncio
    async def test_generate(self):
        requests = []
        transport = _recording_transport(
            httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "{\"ok\": "}, {"text": "true}"}]}}]}),
            requests,
        )
        provider = GeminiProvider(LLMConfig.for_provider(LLMProvider.GEMINI), api_key="g-key", transport=transport)

        text = await provider.generate("PROMPT", system_prompt="SYSTEM", temperature=0.1, max_tokens=7000)

        assert text == '{"ok": true}'
        request = requests[0]
        assert request.url.params["key"] == "g-key"
        assert request.url.path.endswith("gemini-2.0-flash:generateContent")
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][0]["text"] == "PROMPT"
        assert body["systemInstruction"] == {"parts": [{"text": "SYSTEM"}]}
        assert body["generationConfig"] == {"temperature": 0.1, "maxOutputTokens": 7000}

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        transport = _recording_transport(
            httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}}), []
        )
        provider = GeminiProvider(LLMConfig.for_provider(LLMProvider.GEMINI), api_key="g-key", transport=transport)

        with pytest.raises(ProviderError, match="SAFETY"):
            await provider.generate("PROMPT")

    @pytest.mark.asyncio
    async def test_http_error(self):
        transport = _recording_transport(httpx.Response(500, text="boom"), [])
        provider = GeminiProvider(LLMConfig.for_provider(LLMProvider.GEMINI), api_key="g-key", transport=transport)

        with pytest.raises(ProviderError) as exc_info:
            await provider.generate("PROMPT")

        assert exc_info.value.provider == "gemini"

    @pytest.mark.asyncio
    async def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        requests = []
        transport = _recording_transport(httpx.Response(200, json={}), requests)
        provider = GeminiProvider(LLMConfig.for_provider(LLMProvider.GEMINI), transport=transport)

        assert not provider.is_available
        with pytest.raises(ProviderError, match="missing API key"):
            await provider.generate("PROMPT")
        assert requests == []


class TestOpenAICompatibleProvider:
    """Tests for chat-completions style providers."""

    @pytest.mark.asyncio
    async def test_generate(self):
        requests = []
        transport = _recording_transport(
            httpx.Response(200, json={"choices": [{"message": {"content": "hello"}}]}), requests
        )
        provider = OpenAICompatibleProvider(LLMConfig.for_provider(LLMProvider.GROQ), api_key="gsk", transport=transport)

        text = await provider.generate("PROMPT", system_prompt="SYSTEM")

        assert text == "hello"
        request = requests[0]
        assert str(request.url) == "https://api.groq.com/openai/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer gsk"
        body = json.loads(request.content)
        assert body["messages"] == [
            {"role": "system", "content": "SYSTEM"},
            {"role": "user", "content": "PROMPT"},
        ]
        assert body["temperature"] == 0.1
        assert body["max_tokens"] == 8192

    @pytest.mark.asyncio
    async def test_without_system_prompt(self):
        requests = []
        transport = _recording_transport(
            httpx.Response(200, json={"choices": [{"message": {"content": None}}]}), requests
        )
        provider = OpenAICompatibleProvider(LLMConfig.for_provider(LLMProvider.GROK), api_key="xai", transport=transport)

        assert await provider.generate("PROMPT") == ""
        assert json.loads(requests[0].content)["messages"] == [{"role": "user", "content": "PROMPT"}]

    @pytest.mark.asyncio
    async def test_http_error(self):
        transport = _recording_transport(httpx.Response(401, json={"error": "bad key"}), [])
        provider = OpenAICompatibleProvider(LLMConfig.for_provider(LLMProvider.DEEPSEEK), api_key="ds", transport=transport)

        with pytest.raises(ProviderError) as exc_info:
            await provider.generate("PROMPT")

        assert exc_info.value.provider == "deepseek"


class TestSDKProviders:
    """Tests for the Anthropic and OpenAI SDK providers."""

    @pytest.mark.asyncio
    async def test_anthropic_closes_client(self):
        requests = []
        transport = _recording_transport(httpx.Response(200, json={
            "id": "msg_1",
            "type": "message",
            "role": "assistant",
            "model": "claude-sonnet-4-5-20250929",
            "content": [{"type": "text", "text": "hello"}],
            "stop_reason": "end_turn",
            "stop_sequence": None,
            "usage": {"input_tokens": 3, "output_tokens": 1}
        }), requests)
        provider = AnthropicProvider(LLMConfig.for_provider(LLMProvider.ANTHROPIC), api_key="sk-ant", transport=transport)
        http_client = httpx.AsyncClient(transport=transport)
        provider._http_client = lambda: http_client

        text = await provider.generate("PROMPT", system_prompt="SYSTEM")

        assert text == "hello"
        assert json.loads(requests[0].content)["system"] == "SYSTEM"
        assert http_client.is_closed

    @pytest.mark.asyncio
    async def test_openai_closes_client(self):
        requests = []
        transport = _recording_transport(httpx.Response(200, json={
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-4o",
            "choices": [{
                "index": 0,
                "message": {"role": "assistant", "content": "hello"},
                "finish_reason": "stop"
            }]
        }), requests)
        provider = OpenAIProvider(LLMConfig.for_provider(LLMProvider.OPENAI), api_key="sk-openai", transport=transport)
        http_client = httpx.AsyncClient(transport=transport)
        provider._http_client = lambda: http_client

        text = await provider.generate("PROMPT")

        assert text == "hello"
        assert requests[0].headers["Authorization"] == "Bearer sk-openai"
        assert http_client.is_closed
