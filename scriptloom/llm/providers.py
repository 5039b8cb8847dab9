"""
Scriptloom LLM Providers

One async ``generate`` call per provider. Every failure is raised as
ProviderError; callers decide whether that degrades or aborts. SDK retries
are disabled so a unit of work makes exactly one attempt.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from scriptloom.core.config import LLMConfig
from scriptloom.core.constants import GEMINI_ENDPOINT, OPENAI_COMPATIBLE_ENDPOINTS, LLMProvider
from scriptloom.core.env_loader import get_api_key
from scriptloom.core.exceptions import ProviderError
from scriptloom.core.logging_config import get_logger

logger = get_logger("llm.providers")


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    def __init__(
        self,
        config: LLMConfig,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self._api_key = api_key or get_api_key(config.api_key_env)
        self._transport = transport
        if not self._api_key:
            logger.warning(f"API key not found: {config.api_key_env}")

    @property
    def name(self) -> str:
        return self.config.provider.value

    @property
    def is_available(self) -> bool:
        """Check if the provider has credentials."""
        return self._api_key is not None

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        """Generate a response from the LLM."""
        pass

    def _temperature(self, temperature: Optional[float]) -> float:
        return temperature if temperature is not None else self.config.temperature

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.config.timeout)

    def _require_key(self) -> str:
        if not self._api_key:
            raise ProviderError(self.name, f"missing API key ({self.config.api_key_env})")
        return self._api_key


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude provider."""

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        try:
            import anthropic

            kwargs: Dict[str, Any] = {}
            if system_prompt:
                kwargs["system"] = system_prompt

            async with anthropic.AsyncAnthropic(
                api_key=self._require_key(),
                max_retries=0,
                timeout=self.config.timeout,
                http_client=self._http_client() if self._transport else None
            ) as client:
                message = await client.messages.create(
                    model=self.config.model,
                    max_tokens=max_tokens or self.config.max_tokens,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=self._temperature(temperature),
                    **kwargs
                )

            return "".join(
                block.text for block in message.content if getattr(block, "type", "") == "text"
            )

        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError("anthropic", str(e))


class OpenAIProvider(BaseLLMProvider):
    """OpenAI GPT provider."""

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        try:
            import openai

            async with openai.AsyncOpenAI(
                api_key=self._require_key(),
                max_retries=0,
                timeout=self.config.timeout,
                http_client=self._http_client() if self._transport else None
            ) as client:
                response = await client.chat.completions.create(
                    model=self.config.model,
                    messages=_chat_messages(prompt, system_prompt),
                    max_tokens=max_tokens or self.config.max_tokens,
                    temperature=self._temperature(temperature)
                )

            return response.choices[0].message.content or ""

        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError("openai", str(e))


class OpenAICompatibleProvider(BaseLLMProvider):
    """Chat-completions endpoint over plain HTTP (Groq, xAI Grok, DeepSeek)."""

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        try:
            endpoint = OPENAI_COMPATIBLE_ENDPOINTS[self.config.provider]

            async with self._http_client() as client:
                response = await client.post(
                    endpoint,
                    headers={
                        "Authorization": f"Bearer {self._require_key()}",
                        "Content-Type": "application/json"
                    },
                    json={
                        "model": self.config.model,
                        "messages": _chat_messages(prompt, system_prompt),
                        "max_tokens": max_tokens or self.config.max_tokens,
                        "temperature": self._temperature(temperature)
                    }
                )
                response.raise_for_status()
                data = response.json()

            return data["choices"][0]["message"]["content"] or ""

        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(self.name, str(e))


class GeminiProvider(BaseLLMProvider):
    """Google Gemini provider over the generateContent REST endpoint."""

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        try:
            body: Dict[str, Any] = {
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": self._temperature(temperature),
                    "maxOutputTokens": max_tokens or self.config.max_tokens
                }
            }
            if system_prompt:
                body["systemInstruction"] = {"parts": [{"text": system_prompt}]}

            async with self._http_client() as client:
                response = await client.post(
                    GEMINI_ENDPOINT.format(model=self.config.model),
                    params={"key": self._require_key()},
                    headers={"Content-Type": "application/json"},
                    json=body
                )
                response.raise_for_status()
                data = response.json()

            candidates = data.get("candidates") or []
            if not candidates:
                feedback = data.get("promptFeedback", {})
                raise ProviderError("gemini", f"no candidates (block_reason: {feedback.get('blockReason', 'UNKNOWN')})")

            parts = (candidates[0].get("content") or {}).get("parts") or []
            return "".join(part.get("text", "") for part in parts)

        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError("gemini", str(e))


def _chat_messages(prompt: str, system_prompt: str) -> List[Dict[str, str]]:
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


PROVIDER_CLASSES = {
    LLMProvider.ANTHROPIC: AnthropicProvider,
    LLMProvider.OPENAI: OpenAIProvider,
    LLMProvider.GEMINI: GeminiProvider,
    LLMProvider.GROQ: OpenAICompatibleProvider,
    LLMProvider.GROK: OpenAICompatibleProvider,
    LLMProvider.DEEPSEEK: OpenAICompatibleProvider,
}
