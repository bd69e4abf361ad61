"""Text-generation providers used for reply drafting.

Anthropic (Messages API) and OpenAI (chat completions) sit behind one async
`chat` call. Transport errors surface as httpx exceptions and malformed
payloads as KeyError/ValueError; draft_service turns both into a degraded
draft.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o-mini",
}


@dataclass
class ChatMessage:
    role: str  # system, user or assistant
    content: str


@dataclass
class ChatResponse:
    content: str
    prompt_tokens: int
    completion_tokens: int
    model: str

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class AIProvider(ABC):
    """Anything that can turn a conversation into reply text."""

    default_model: str = ""

    @abstractmethod
    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> ChatResponse:
        """Return the generated reply for `messages`."""


class HTTPProvider(AIProvider):
    """Provider reached over a JSON POST endpoint."""

    base_url: str
    endpoint: str

    def __init__(self, api_key: str, default_model: str, timeout: float = 60.0):
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout

    @abstractmethod
    def headers(self) -> dict[str, str]: ...

    @abstractmethod
    def payload(
        self, messages: list[ChatMessage], model: str, temperature: float, max_tokens: int
    ) -> dict[str, Any]: ...

    @abstractmethod
    def parse(self, data: dict[str, Any], model: str) -> ChatResponse: ...

    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> ChatResponse:
        model = model or self.default_model
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
            response = await client.post(
                self.endpoint,
                headers={**self.headers(), "Content-Type": "application/json"},
                json=self.payload(messages, model, temperature, max_tokens),
            )
            response.raise_for_status()
            data = response.json()

        result = self.parse(data, model)
        logger.debug(
            "Generated %d tokens with %s", result.total_tokens, result.model
        )
        return result


class AnthropicProvider(HTTPProvider):
    base_url = "https://api.anthropic.com/v1"
    endpoint = "/messages"

    def __init__(self, api_key: str, default_model: str = DEFAULT_MODELS["anthropic"], timeout: float = 60.0):
        super().__init__(api_key, default_model, timeout)

    def headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key, "anthropic-version": ANTHROPIC_VERSION}

    def payload(self, messages, model, temperature, max_tokens):
        body: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {"role": m.role, "content": m.content} for m in messages if m.role != "system"
            ],
        }
        # System prompt travels as a top-level field
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        if system:
            body["system"] = system
        return body

    def parse(self, data, model):
        text = [b.get("text", "") for b in data.get("content", []) if b.get("type") == "text"]
        if not text:
            raise ValueError("Anthropic response contained no text content")
        usage = data.get("usage", {})
        return ChatResponse(
            content="".join(text),
            prompt_tokens=usage.get("input_tokens", 0),
            completion_tokens=usage.get("output_tokens", 0),
            model=data.get("model", model),
        )


class OpenAIProvider(HTTPProvider):
    base_url = "https://api.openai.com/v1"
    endpoint = "/chat/completions"

    def __init__(self, api_key: str, default_model: str = DEFAULT_MODELS["openai"], timeout: float = 60.0):
        super().__init__(api_key, default_model, timeout)

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def payload(self, messages, model, temperature, max_tokens):
        return {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    def parse(self, data, model):
        usage = data.get("usage", {})
        return ChatResponse(
            content=data["choices"][0]["message"]["content"],
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            model=data.get("model", model),
        )


_PROVIDERS: dict[str, type[HTTPProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
}


def get_provider(
    provider_name: str, api_key: str, model: str | None = None, timeout: float = 60.0
) -> AIProvider:
    """Build the configured provider. Unknown names raise ValueError."""
    try:
        provider_cls = _PROVIDERS[provider_name]
    except KeyError:
        raise ValueError(f"Unknown provider: {provider_name}") from None
    return provider_cls(api_key, default_model=model or DEFAULT_MODELS[provider_name], timeout=timeout)
