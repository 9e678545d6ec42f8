"""Reasoning-service client.

This module provides the ReasoningClient class for calling an OpenAI-compatible
chat completions endpoint with error classification, retries and telemetry.
"""

import asyncio
import time
from typing import Any

import httpx

from ops_copilot.config.settings import AppConfig
from ops_copilot.llm_client.adapters import (
    adapt_chat_completions_response,
    build_chat_completions_request,
)
from ops_copilot.llm_client.types import (
    LLMClientError,
    LLMConnectionError,
    LLMInvalidResponse,
    LLMRateLimit,
    LLMResponse,
    LLMServerError,
    LLMTimeout,
)
from ops_copilot.telemetry import (
    MODEL_CALL_COMPLETED,
    MODEL_CALL_ERROR,
    MODEL_CALL_STARTED,
    TraceContext,
    get_logger,
)

log = get_logger(__name__)


class ReasoningClient:
    """Client for the remote reasoning service.

    Attributes:
        base_url: Base URL for the API (e.g., "https://api.openai.com/v1").
        model: Model identifier sent with every request.
        timeout_seconds: Default read timeout for requests.
        max_retries: Maximum number of retry attempts for retryable failures.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        model: str,
        timeout_seconds: float = 30.0,
        max_retries: int = 1,
        max_tokens: int | None = None,
        temperature: float | None = None,
        retry_backoff_seconds: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the ReasoningClient.

        Args:
            base_url: Base URL for the API.
            api_key: Bearer token; None sends no Authorization header.
            model: Model identifier.
            timeout_seconds: Default read timeout for requests.
            max_retries: Retries for timeouts, rate limits and 5xx responses.
            max_tokens: Default generation limit.
            temperature: Default sampling temperature.
            retry_backoff_seconds: Base of the exponential backoff between retries.
            transport: Optional httpx transport (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.retry_backoff_seconds = retry_backoff_seconds
        self._api_key = api_key
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: AppConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> "ReasoningClient | None":
        """Build a client from settings, or None when no API key is configured."""
        if not settings.reasoning_enabled or settings.reasoning_api_key is None:
            return None
        return cls(
            base_url=settings.reasoning_base_url,
            api_key=settings.reasoning_api_key.get_secret_value(),
            model=settings.reasoning_model,
            timeout_seconds=settings.reasoning_timeout_seconds,
            max_retries=settings.reasoning_max_retries,
            max_tokens=settings.reasoning_max_tokens,
            temperature=settings.reasoning_temperature,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        """Chat completions URL."""
        if self.base_url.endswith("/v1"):
            return f"{self.base_url}/chat/completions"
        return f"{self.base_url}/v1/chat/completions"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def respond(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | dict[str, Any] | None = None,
        response_format: dict[str, Any] | None = None,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout_s: float | None = None,
        max_retries: int | None = None,
        trace_ctx: TraceContext | None = None,
    ) -> LLMResponse:
        """Make a single reasoning-service call.

        Args:
            messages: List of message dicts with role and content.
            tools: Optional tool definitions; omitted means a tool-free call.
            tool_choice: Tool choice parameter ("auto", "none", or specific tool).
            response_format: Optional structured output constraints.
            system_prompt: Optional system prompt (prepended to messages).
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.
            timeout_s: Read timeout in seconds (overrides default).
            max_retries: Maximum number of retry attempts (overrides default).
            trace_ctx: Trace context for telemetry correlation.

        Returns:
            LLMResponse with normalized structure.

        Raises:
            LLMTimeout: If request times out.
            LLMConnectionError: If connection fails.
            LLMRateLimit: If rate limited after retries.
            LLMServerError: If server returns a 5xx after retries.
            LLMInvalidResponse: If response format is invalid.
            LLMClientError: For any other non-success response.
        """
        if timeout_s is None:
            timeout_s = self.timeout_seconds
        effective_max_retries = self.max_retries if max_retries is None else max_retries
        if trace_ctx is None:
            trace_ctx = TraceContext.new_trace()

        request_messages = list(messages)
        if system_prompt:
            request_messages.insert(0, {"role": "system", "content": system_prompt})

        payload = build_chat_completions_request(
            messages=request_messages,
            model=self.model,
            tools=tools,
            tool_choice=tool_choice,
            max_tokens=max_tokens if max_tokens is not None else self.max_tokens,
            temperature=temperature if temperature is not None else self.temperature,
            response_format=response_format,
        )

        start_time = time.time()
        _, span_id = trace_ctx.new_span()
        log.info(
            MODEL_CALL_STARTED,
            model_id=self.model,
            endpoint=self.endpoint,
            message_count=len(request_messages),
            tools_count=len(tools or []),
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )

        timeout_config = httpx.Timeout(connect=10.0, read=timeout_s, write=10.0, pool=10.0)

        last_error: Exception | None = None
        attempt = 0
        while attempt <= effective_max_retries:
            try:
                async with httpx.AsyncClient(
                    timeout=timeout_config, transport=self._transport
                ) as client:
                    response = await client.post(
                        self.endpoint, json=payload, headers=self._headers()
                    )
                    response.raise_for_status()
                    response_data = response.json()

                if isinstance(response_data, dict) and response_data.get("error"):
                    error_obj = response_data["error"]
                    error_msg = (
                        error_obj.get("message", str(error_obj))
                        if isinstance(error_obj, dict)
                        else str(error_obj)
                    )
                    raise LLMClientError(f"API returned error: {error_msg}")

                llm_response = adapt_chat_completions_response(response_data)

                duration_ms = int((time.time() - start_time) * 1000)
                log.info(
                    MODEL_CALL_COMPLETED,
                    model_id=self.model,
                    latency_ms=duration_ms,
                    tool_calls=len(llm_response["tool_calls"]),
                    finish_reason=llm_response["finish_reason"],
                    prompt_tokens=llm_response["usage"].get("prompt_tokens", 0),
                    completion_tokens=llm_response["usage"].get("completion_tokens", 0),
                    trace_id=trace_ctx.trace_id,
                    span_id=span_id,
                )
                return llm_response

            except httpx.TimeoutException:
                last_error = LLMTimeout(f"Request to {self.endpoint} timed out after {timeout_s}s")
                if await self._should_retry(attempt, effective_max_retries, trace_ctx):
                    attempt += 1
                    continue
                break

            except httpx.ConnectError as e:
                # Don't retry connection errors (service is likely down)
                last_error = LLMConnectionError(f"Failed to connect to {self.endpoint}: {e}")
                break

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 429:
                    last_error = LLMRateLimit(f"Rate limit exceeded: {e}")
                elif status >= 500:
                    last_error = LLMServerError(f"Server error {status}: {e}")
                else:
                    last_error = LLMClientError(f"HTTP error {status}: {e}")
                    break
                if await self._should_retry(attempt, effective_max_retries, trace_ctx):
                    attempt += 1
                    continue
                break

            except httpx.RequestError as e:
                last_error = LLMConnectionError(f"Request error: {e}")
                break

            except LLMClientError as e:
                last_error = e
                break

            except (ValueError, KeyError, TypeError) as e:
                last_error = LLMInvalidResponse(f"Invalid response format: {e}")
                break

        duration_ms = int((time.time() - start_time) * 1000)
        error_type = type(last_error).__name__ if last_error else "UnknownError"
        log.error(
            MODEL_CALL_ERROR,
            model_id=self.model,
            endpoint=self.endpoint,
            error_type=error_type,
            error=str(last_error) if last_error else "Unknown error",
            attempts=attempt + 1,
            latency_ms=duration_ms,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )

        if last_error:
            raise last_error
        raise LLMClientError("Request failed with unknown error")

    async def _should_retry(
        self, attempt: int, max_retries: int, trace_ctx: TraceContext
    ) -> bool:
        if attempt >= max_retries:
            return False
        wait_time = self.retry_backoff_seconds * 2**attempt
        log.warning(
            "model_call_retry",
            attempt=attempt + 1,
            wait_time=wait_time,
            trace_id=trace_ctx.trace_id,
        )
        await asyncio.sleep(wait_time)
        return True
