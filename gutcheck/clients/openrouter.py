"""OpenRouter chat-completions client with error translation."""

from dataclasses import dataclass, field
from typing import Any

import openai
import tiktoken
from openai import AsyncOpenAI
from pydantic import BaseModel

from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)


class LLMError(Exception):
    """Base error for a model request that produced no usable response."""


class LLMConnectionError(LLMError):
    """The endpoint could not be reached or the request timed out."""


class LLMStatusError(LLMError):
    """The endpoint answered with a non-success HTTP status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"OpenRouter API error: {status_code} - {message}")
        self.status_code = status_code


class LLMResponseError(LLMError):
    """The endpoint answered but the body could not be used."""


class CompletionToolCall(BaseModel):
    """A function call requested by the model."""

    id: str
    name: str
    arguments: str  # raw JSON text exactly as the model produced it

    def to_message_dict(self) -> dict[str, Any]:
        """Render in the shape the endpoint expects inside an assistant message."""
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class TokenUsage:
    """Token usage reported by the endpoint."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class CompletionResult:
    """Structured response from a chat-completions request."""

    content: str | None
    tool_calls: list[CompletionToolCall] = field(default_factory=list)
    model: str = ""
    finish_reason: str | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)

    def as_assistant_message(self) -> dict[str, Any]:
        """The assistant message to echo back when sending tool results."""
        message: dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [tc.to_message_dict() for tc in self.tool_calls]
        return message


@dataclass
class OpenRouterConfig:
    """Configuration for the OpenRouter client."""

    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "openai/gpt-4"
    temperature: float = 0.7
    max_tokens: int = 1000

    # Attribution headers OpenRouter shows on its dashboards
    app_url: str | None = "https://bowel-max.app"
    app_title: str | None = "Bowel Max"

    max_message_tokens: int = 2000
    tokenizer_model: str | None = "gpt-4"  # close enough for estimation; None disables


class OpenRouterClient:
    """Single-attempt client for an OpenAI-compatible chat-completions endpoint."""

    tokenizer: tiktoken.Encoding | None = None

    def __init__(self, api_key: str | None, config: OpenRouterConfig | None = None, client: AsyncOpenAI | None = None):
        """Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key
            config: Client configuration
            client: Pre-built SDK client, mainly for tests
        """
        self.config = config or OpenRouterConfig()

        if client is None:
            if not api_key:
                raise ValueError("OPENROUTER_API_KEY is required")
            headers = {}
            if self.config.app_url:
                headers["HTTP-Referer"] = self.config.app_url
            if self.config.app_title:
                headers["X-Title"] = self.config.app_title
            # Retries are disabled: every exchange is exactly one outbound attempt
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=self.config.base_url,
                max_retries=0,
                default_headers=headers,
            )
        self.client = client

        if self.config.tokenizer_model:
            try:
                self.tokenizer = tiktoken.encoding_for_model(self.config.tokenizer_model)
            except Exception:
                self.tokenizer = None

    async def create_completion(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
        **kwargs,
    ) -> CompletionResult:
        """Send one chat-completions request.

        Args:
            messages: Conversation in wire format
            tools: Function tool schema; omitted from the request when empty
            tool_choice: Tool selection mode, defaults to "auto" when tools are sent
            **kwargs: Overrides for model, temperature and max_tokens

        Returns:
            Parsed completion

        Raises:
            LLMConnectionError: Endpoint unreachable or timed out
            LLMStatusError: Non-success HTTP status
            LLMResponseError: Response body without a usable choice
        """
        request_params: dict[str, Any] = {
            "model": kwargs.get("model", self.config.model),
            "messages": messages,
            "temperature": kwargs.get("temperature", self.config.temperature),
            "max_tokens": kwargs.get("max_tokens", self.config.max_tokens),
        }
        if tools:
            request_params["tools"] = tools
            request_params["tool_choice"] = tool_choice or "auto"

        logger.debug(
            f"Creating completion with {len(messages)} messages, {len(tools) if tools else 0} tools, "
            f"model: {request_params['model']}"
        )

        try:
            response = await self.client.chat.completions.create(**request_params)
        except openai.APIStatusError as e:
            logger.error(f"OpenRouter returned status {e.status_code}: {e.message}")
            raise LLMStatusError(e.status_code, e.message) from e
        except openai.APIConnectionError as e:
            logger.error(f"OpenRouter unreachable: {e}")
            raise LLMConnectionError(f"OpenRouter connection error: {e}") from e
        except openai.APIError as e:
            logger.error(f"OpenRouter returned an unusable response: {e}")
            raise LLMResponseError(f"OpenRouter response error: {e}") from e

        choices = getattr(response, "choices", None)
        if not choices:
            # OpenRouter reports some upstream failures as 200 with an error body
            raise LLMResponseError("OpenRouter response contained no choices")

        choice = choices[0]
        message = choice.message

        tool_calls = [
            CompletionToolCall(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "{}")
            for tc in (getattr(message, "tool_calls", None) or [])
            if getattr(tc, "function", None) is not None
        ]

        usage = TokenUsage()
        if getattr(response, "usage", None):
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
                total_tokens=response.usage.total_tokens or 0,
            )

        logger.debug(f"Completion received - finish reason: {choice.finish_reason}, tool calls: {len(tool_calls)}")

        return CompletionResult(
            content=message.content,
            tool_calls=tool_calls,
            model=getattr(response, "model", None) or request_params["model"],
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    def estimate_message_tokens(self, message: str) -> int:
        """Estimate token count for a single message.

        Args:
            message: Message content

        Returns:
            Estimated token count
        """
        try:
            return len(self.tokenizer.encode(message)) if self.tokenizer else len(message) // 4
        except Exception:
            # Roughly 4 characters per token
            return len(message) // 4

    def validate_message_tokens(self, message: str) -> None:
        """Validate that a message doesn't exceed token limits.

        Args:
            message: Message content

        Raises:
            ValueError: If message exceeds token limit
        """
        token_count = self.estimate_message_tokens(message)
        if token_count > self.config.max_message_tokens:
            raise ValueError(
                f"Message exceeds token limit: {token_count} tokens > {self.config.max_message_tokens} limit"
            )

    async def aclose(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self.client.close()
