"""Request building and response normalization for the chat completions API."""

import json
from typing import Any

from ops_copilot.llm_client.types import LLMInvalidResponse, LLMResponse, ToolCall


def build_chat_completions_request(
    messages: list[dict[str, Any]],
    model: str,
    tools: list[dict[str, Any]] | None = None,
    tool_choice: str | dict[str, Any] | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
    response_format: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build an OpenAI-compatible chat completions payload.

    Args:
        messages: List of message dicts with role and content.
        model: Model identifier.
        tools: Optional list of tool definitions for function calling.
        tool_choice: Tool choice parameter ("auto", "none", or specific tool).
        max_tokens: Maximum tokens to generate.
        temperature: Sampling temperature.
        response_format: Optional structured output constraints.

    Returns:
        Request payload dictionary.
    """
    payload: dict[str, Any] = {"model": model, "messages": messages}

    # Omitting "tools" entirely is how a call is made tool-free.
    if tools:
        payload["tools"] = tools
        payload["tool_choice"] = tool_choice or "auto"

    if max_tokens is not None:
        payload["max_tokens"] = max_tokens
    if temperature is not None:
        payload["temperature"] = temperature
    if response_format is not None:
        payload["response_format"] = response_format

    return payload


def adapt_chat_completions_response(response_data: dict[str, Any]) -> LLMResponse:
    """Adapt an OpenAI-style chat completions response to LLMResponse.

    Args:
        response_data: Raw response body.

    Returns:
        Normalized LLMResponse structure.

    Raises:
        LLMInvalidResponse: If response format is invalid or unexpected.
    """
    try:
        choices = response_data.get("choices", [])
        if not choices:
            raise LLMInvalidResponse("Response has no choices")

        choice = choices[0]
        message = choice.get("message")
        if not isinstance(message, dict):
            raise LLMInvalidResponse("Response choice has no message")

        content = message.get("content", "") or ""

        tool_calls: list[ToolCall] = []
        for tc in message.get("tool_calls") or []:
            if not isinstance(tc, dict):
                continue
            function = tc.get("function") or {}
            arguments = function.get("arguments") or "{}"
            tool_calls.append(
                ToolCall(
                    id=tc.get("id", ""),
                    name=function.get("name", ""),
                    arguments=arguments if isinstance(arguments, str) else json.dumps(arguments),
                )
            )

        usage = response_data.get("usage") or {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
        }

        return LLMResponse(
            role=message.get("role", "assistant"),
            content=content,
            tool_calls=tool_calls,
            finish_reason=choice.get("finish_reason"),
            usage=usage,
            raw=response_data,
        )
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise LLMInvalidResponse(f"Invalid response format: {e}") from e
