"""
Provider interface used by the LLM planner.

A planner only needs three things from a model provider: an awaitable chat
completion, a way to check the credential before the agent starts, and a
description of the model for logs. Message checking and error
classification are shared by every provider.

Example:
    >>> from agent_shell.llm.adapter import LLMConfig, UniversalLLMAdapter
    >>>
    >>> provider = UniversalLLMAdapter(LLMConfig(model="gpt-4o-mini"))
    >>> reply = await provider.acompletion(
    ...     [{"role": "user", "content": "Pick a greeting"}]
    ... )
    >>> print(reply["content"])
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional, TypedDict

CHAT_ROLES = ("system", "user", "assistant")

# Substrings of provider error messages worth another attempt
TRANSIENT_ERROR_MARKERS = (
    "timeout",
    "timed out",
    "rate limit",
    "429",
    "500",
    "502",
    "503",
    "connection",
    "network",
)


class Message(TypedDict):
    """One chat turn sent to the model."""

    role: Literal["system", "user", "assistant"]
    content: str


class CompletionResponse(TypedDict):
    """
    Provider-neutral completion result.

    Attributes:
        content: Text of the first choice, empty if the model returned none.
        model: Model name reported by the provider.
        usage: prompt_tokens, completion_tokens and total_tokens.
        finish_reason: Why generation stopped, if reported.
    """

    content: str
    model: str
    usage: Dict[str, int]
    finish_reason: Optional[str]


class BaseLLMProvider(ABC):
    """Chat model backing an LLMPlanner."""

    @abstractmethod
    async def acompletion(
        self, messages: List[Dict[str, str]], **kwargs: Any
    ) -> CompletionResponse:
        """
        Complete the conversation.

        Args:
            messages: Chat turns, see validate_messages().
            **kwargs: Per-request overrides such as temperature.

        Raises:
            ValueError: If messages are malformed.
        """

    @abstractmethod
    async def check_credentials(self) -> bool:
        """Return True if the provider accepts the configured credential."""

    @abstractmethod
    def get_model_info(self) -> Dict[str, Any]:
        """Describe the model; must contain at least "name"."""

    def validate_messages(self, messages: List[Dict[str, str]]) -> None:
        """
        Reject a conversation the provider would refuse anyway.

        Raises:
            ValueError: Naming the first offending message.
        """
        if not messages:
            raise ValueError("Messages list cannot be empty")

        for index, message in enumerate(messages):
            if not isinstance(message, dict):
                raise ValueError(f"Message {index} must be a dictionary")

            missing = [key for key in ("role", "content") if key not in message]
            if missing:
                raise ValueError(f"Message {index} missing '{missing[0]}' key")

            if message["role"] not in CHAT_ROLES:
                raise ValueError(
                    f"Message {index} has invalid role '{message['role']}', "
                    f"expected one of {', '.join(CHAT_ROLES)}"
                )

            content = message["content"]
            if not isinstance(content, str) or not content.strip():
                raise ValueError(f"Message {index} content must be a non-empty string")

    def format_error(self, error: Exception) -> Dict[str, Any]:
        """
        Classify a provider error.

        Returns:
            Dictionary with error_type, error_message and is_retryable.
        """
        text = str(error)
        lowered = text.lower()
        return {
            "error_type": type(error).__name__,
            "error_message": text,
            "is_retryable": isinstance(error, TimeoutError)
            or any(marker in lowered for marker in TRANSIENT_ERROR_MARKERS),
        }
