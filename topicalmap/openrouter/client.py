"""
OpenRouter API Client

Async chat-completion client used by every generation stage.

Two entry points share one implementation:
- complete_simple(prompt, system_prompt=None, options=None)
- complete_with_messages(messages, options=None)

Both return the raw text of the first choice.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

import httpx

from ..errors import CompletionConfigurationError, CompletionError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "anthropic/claude-sonnet-4"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096
LARGE_OUTPUT_TOKENS = 8192


@dataclass
class Message:
    """One role-tagged chat message."""
    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class CompletionOptions:
    """Per-call options. model=None falls back to the configured default."""
    model: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS


@dataclass
class TokenUsage:
    """Track token usage across calls."""
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class OpenRouterConfig:
    """Explicit client configuration (never read from ambient state)."""
    api_key: Optional[str]
    api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    default_model: str = DEFAULT_MODEL
    site_url: str = "http://localhost:3000"
    site_name: str = "Topical Map SaaS"
    timeout: float = 60.0

    @classmethod
    def from_settings(cls, settings) -> "OpenRouterConfig":
        return cls(
            api_key=settings.OPENROUTER_API_KEY,
            api_url=settings.OPENROUTER_API_URL,
            default_model=settings.OPENROUTER_MODEL,
            site_url=settings.OPENROUTER_SITE_URL,
            site_name=settings.OPENROUTER_SITE_NAME,
            timeout=settings.API_TIMEOUT,
        )


class OpenRouterClient:
    """
    Async client for the OpenRouter chat-completion API.

    Usage:
        client = OpenRouterClient(OpenRouterConfig(api_key="sk-or-..."))

        text = await client.complete_simple(
            "Génère un Knowledge Domain...",
            system_prompt=SYSTEM_PROMPT,
            options=CompletionOptions(max_tokens=8192),
        )

        await client.close()
    """

    def __init__(
        self,
        config: OpenRouterConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize OpenRouter client.

        Args:
            config: Credentials, endpoint and site metadata
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self._client = httpx.AsyncClient(
            headers={
                "Content-Type": "application/json",
                "HTTP-Referer": config.site_url,
                "X-Title": config.site_name,
            },
            timeout=httpx.Timeout(config.timeout),
            transport=transport,
        )
        self._closed = False

        self.total_usage = TokenUsage()
        self.call_count = 0

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "OpenRouterClient":
        return cls(OpenRouterConfig.from_settings(settings), transport=transport)

    async def complete_simple(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        options: Optional[CompletionOptions] = None,
    ) -> str:
        """Complete a single user prompt, optionally preceded by a system prompt."""
        messages: List[Message] = []
        if system_prompt:
            messages.append(Message(role="system", content=system_prompt))
        messages.append(Message(role="user", content=prompt))

        return await self._complete(messages, options or CompletionOptions())

    async def complete_with_messages(
        self,
        messages: List[Message],
        options: Optional[CompletionOptions] = None,
    ) -> str:
        """Complete a pre-built, ordered message list."""
        return await self._complete(list(messages), options or CompletionOptions())

    async def _complete(self, messages: List[Message], options: CompletionOptions) -> str:
        if self._closed:
            raise CompletionError("Client has been closed")

        if not self.config.api_key:
            raise CompletionConfigurationError("OPENROUTER_API_KEY is not configured")

        model = options.model or self.config.default_model
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [m.to_dict() for m in messages],
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }

        logger.debug(f"POST {self.config.api_url} model={model} max_tokens={options.max_tokens}")

        response = await self._client.post(
            self.config.api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self.config.api_key}"},
        )

        if not response.is_success:
            raise CompletionError(
                f"OpenRouter API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CompletionError(
                "OpenRouter returned invalid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from e

        if not isinstance(data, dict):
            raise CompletionError(
                "Unexpected OpenRouter response shape",
                status_code=response.status_code,
                body=response.text,
            )

        choices = data.get("choices") or []
        if not choices:
            raise CompletionError("No response from OpenRouter", status_code=response.status_code)

        self._track_usage(data.get("usage") or {})

        return choices[0].get("message", {}).get("content") or ""

    def _track_usage(self, usage: Dict[str, Any]):
        prompt_tokens = usage.get("prompt_tokens", 0) or 0
        completion_tokens = usage.get("completion_tokens", 0) or 0

        self.total_usage.prompt_tokens += prompt_tokens
        self.total_usage.completion_tokens += completion_tokens
        self.call_count += 1

        logger.info(f"OpenRouter call: {prompt_tokens} in, {completion_tokens} out")

    def get_usage_summary(self) -> Dict[str, Any]:
        """Get summary of all API usage."""
        return {
            "total_calls": self.call_count,
            "prompt_tokens": self.total_usage.prompt_tokens,
            "completion_tokens": self.total_usage.completion_tokens,
            "total_tokens": self.total_usage.total_tokens,
        }

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
