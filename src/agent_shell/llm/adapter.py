"""
LiteLLM-backed provider for the planner.

Any model LiteLLM can route to (OpenAI, Anthropic, Gemini, local servers...)
can drive an agent. Transient provider errors are retried with exponential
backoff; everything else is raised to the caller on the first failure.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import litellm
from pydantic import SecretStr

from agent_shell.llm.base import BaseLLMProvider, CompletionResponse
from agent_shell.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class LLMConfig:
    """
    Model and request options.

    Attributes:
        model: LiteLLM model name, e.g. "gpt-4o-mini".
        api_key: Provider key. When None LiteLLM falls back to the provider's
            own environment variables (OPENAI_API_KEY, ...).
        temperature: Sampling temperature in [0, 2].
        max_tokens: Completion length limit in [1, 32000].
        timeout: Per-request timeout in seconds.
        retry_attempts: Extra attempts after a transient failure.
        retry_delay: Delay before the first retry; doubles each time.
    """

    model: str
    api_key: Optional[SecretStr] = None
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout: int = 30
    retry_attempts: int = 3
    retry_delay: float = 1.0

    def __post_init__(self):
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        if not 1 <= self.max_tokens <= 32000:
            raise ValueError("max_tokens must be between 1 and 32000")
        if self.timeout < 1:
            raise ValueError("Timeout must be at least 1 second")
        if self.retry_attempts < 0:
            raise ValueError("retry_attempts must be non-negative")


class UniversalLLMAdapter(BaseLLMProvider):
    """
    Provider calling litellm.acompletion.

    Example:
        >>> adapter = UniversalLLMAdapter(LLMConfig(model="gpt-4o-mini", temperature=0.2))
        >>> if await adapter.check_credentials():
        ...     reply = await adapter.acompletion(messages)
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._request_count = 0
        self._total_tokens = 0

        logger.info(
            "LLM provider ready",
            extra={"model": config.model, "retry_attempts": config.retry_attempts},
        )

    async def acompletion(
        self, messages: List[Dict[str, str]], **kwargs: Any
    ) -> CompletionResponse:
        self.validate_messages(messages)
        request = self._request_params(kwargs)
        attempts = self.config.retry_attempts + 1

        for attempt in range(1, attempts + 1):
            try:
                raw = await litellm.acompletion(messages=messages, **request)
            except Exception as e:
                error = self.format_error(e)
                logger.warning(
                    f"LLM request {attempt}/{attempts} failed: {error['error_message']}",
                    extra={"model": self.config.model, "retryable": error["is_retryable"]},
                )
                if not error["is_retryable"] or attempt == attempts:
                    raise
                await asyncio.sleep(self.config.retry_delay * 2 ** (attempt - 1))
                continue

            response = self._to_response(raw)
            self._request_count += 1
            self._total_tokens += response["usage"]["total_tokens"]
            logger.debug(
                "LLM request completed",
                extra={"model": response["model"], "tokens": response["usage"]["total_tokens"]},
            )
            return response

    async def check_credentials(self) -> bool:
        """
        Ask the provider whether the configured key is valid.

        Without an explicit key there is nothing to check and True is returned.
        """
        if self.config.api_key is None:
            return True

        # check_valid_key is blocking
        return await asyncio.to_thread(
            litellm.check_valid_key,
            model=self.config.model,
            api_key=self.config.api_key.get_secret_value(),
        )

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "name": self.config.model,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "request_count": self._request_count,
            "total_tokens": self._total_tokens,
        }

    def _request_params(self, overrides: Dict[str, Any]) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": self.config.model,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "timeout": self.config.timeout,
        }
        params.update(overrides)
        if self.config.api_key is not None:
            params["api_key"] = self.config.api_key.get_secret_value()
        return params

    def _to_response(self, raw: Any) -> CompletionResponse:
        choices = getattr(raw, "choices", None) or []
        first = choices[0] if choices else None
        message = getattr(first, "message", None)

        usage = getattr(raw, "usage", None)
        counts = {
            key: int(getattr(usage, key, 0) or 0)
            for key in ("prompt_tokens", "completion_tokens", "total_tokens")
        }

        return CompletionResponse(
            content=getattr(message, "content", None) or "",
            model=getattr(raw, "model", None) or self.config.model,
            usage=counts,
            finish_reason=getattr(first, "finish_reason", None),
        )
