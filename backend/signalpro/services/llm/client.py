"""
LLM clients for the AI analysis stage.

One generate() call over Anthropic and OpenAI, tried in a configured order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


@dataclass
class LLMConfig:
    """Provider choice and credentials, with request defaults."""

    provider: LLMProvider
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-5-sonnet-latest"
    openai_model: str = "gpt-4o-mini"
    max_tokens: int = 2048
    temperature: float = 0.3
    timeout_seconds: float = 30.0


@dataclass
class LLMResponse:
    """Text completion plus the vendor token counts."""

    content: str
    model: str
    provider: LLMProvider
    usage: dict


class BaseLLMClient(ABC):
    """
    One vendor SDK behind a common generate() call.

    Subclasses only translate a prompt pair into the vendor request;
    defaults and error logging live here.
    """

    provider: LLMProvider

    def __init__(self, config: LLMConfig):
        self.config = config
        self._sdk_client = None

    @property
    @abstractmethod
    def model(self) -> str:
        pass

    @abstractmethod
    def _create_sdk_client(self):
        """Build the vendor client. The SDK is imported here, on first use."""
        pass

    @abstractmethod
    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> LLMResponse:
        pass

    @property
    def sdk_client(self):
        if self._sdk_client is None:
            self._sdk_client = self._create_sdk_client()
        return self._sdk_client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_format: Optional[str] = None,
    ) -> LLMResponse:
        """Call this vendor once, filling in configured defaults."""
        try:
            return await self._complete(
                system_prompt,
                user_prompt,
                temperature=self.config.temperature if temperature is None else temperature,
                max_tokens=self.config.max_tokens if max_tokens is None else max_tokens,
                json_mode=response_format == "json",
            )
        except Exception as e:
            logger.error(f"{self.provider.value} API error ({self.model}): {e}")
            raise


class AnthropicClient(BaseLLMClient):
    """Claude via the Messages API."""

    provider = LLMProvider.ANTHROPIC

    @property
    def model(self) -> str:
        return self.config.anthropic_model

    def _create_sdk_client(self):
        import anthropic

        return anthropic.AsyncAnthropic(
            api_key=self.config.anthropic_api_key,
            timeout=self.config.timeout_seconds,
        )

    async def _complete(self, system_prompt, user_prompt, temperature, max_tokens, json_mode):
        # No JSON mode flag on this API; the system prompt asks for JSON
        response = await self.sdk_client.messages.create(
            model=self.model,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        text = "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )
        return LLMResponse(
            content=text,
            model=self.model,
            provider=self.provider,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
        )


class OpenAIClient(BaseLLMClient):
    """GPT via Chat Completions."""

    provider = LLMProvider.OPENAI

    @property
    def model(self) -> str:
        return self.config.openai_model

    def _create_sdk_client(self):
        import openai

        return openai.AsyncOpenAI(
            api_key=self.config.openai_api_key,
            timeout=self.config.timeout_seconds,
        )

    async def _complete(self, system_prompt, user_prompt, temperature, max_tokens, json_mode):
        request = dict(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        response = await self.sdk_client.chat.completions.create(**request)
        usage = response.usage
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=self.model,
            provider=self.provider,
            usage={
                "prompt_tokens": usage.prompt_tokens if usage else 0,
                "completion_tokens": usage.completion_tokens if usage else 0,
            },
        )


CLIENT_TYPES: dict[LLMProvider, type[BaseLLMClient]] = {
    LLMProvider.ANTHROPIC: AnthropicClient,
    LLMProvider.OPENAI: OpenAIClient,
}


class LLMClient:
    """
    Tries each keyed provider in turn until one answers.

    The configured provider goes first; the other one follows when it
    has a key. A provider without a key is never tried.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._chain: list[BaseLLMClient] = self._build_chain()

        if not self.is_configured:
            logger.warning("No LLM API keys configured. AI analysis disabled.")

    def _build_chain(self) -> list[BaseLLMClient]:
        keys = {
            LLMProvider.ANTHROPIC: self.config.anthropic_api_key,
            LLMProvider.OPENAI: self.config.openai_api_key,
        }
        order = [self.config.provider] + [p for p in LLMProvider if p != self.config.provider]
        return [CLIENT_TYPES[p](self.config) for p in order if keys[p]]

    @property
    def providers(self) -> list[LLMProvider]:
        return [c.provider for c in self._chain]

    @property
    def is_configured(self) -> bool:
        return bool(self._chain)

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_format: Optional[str] = None,
    ) -> LLMResponse:
        """
        First successful completion along the chain.

        The last provider's error is raised when every provider fails.
        """
        if not self.is_configured:
            raise RuntimeError("No LLM providers configured")

        last_error: Optional[Exception] = None
        for client in self._chain:
            try:
                return await client.generate(
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    response_format=response_format,
                )
            except Exception as e:
                logger.warning(f"LLM provider {client.provider.value} failed: {e}")
                last_error = e

        raise last_error


def build_llm_client(settings) -> LLMClient:
    """LLM client from application settings."""
    return LLMClient(
        LLMConfig(
            provider=LLMProvider(settings.llm_primary_provider),
            anthropic_api_key=settings.anthropic_api_key,
            openai_api_key=settings.openai_api_key,
            anthropic_model=settings.llm_analysis_model,
            openai_model=settings.llm_openai_model,
            timeout_seconds=settings.llm_timeout_seconds,
        )
    )
