"""FastAPI service application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import StreamingResponse

from ops_copilot.capabilities import Capabilities, build_capabilities
from ops_copilot.commands import CommandResult, CommandService
from ops_copilot.intent import classify
from ops_copilot.orchestrator import (
    ConversationContext,
    ConversationOrchestrator,
    StreamChunk,
    encode_sse,
)
from ops_copilot.security import sanitize_error_message
from ops_copilot.service.models import (
    ChatRequest,
    CommandRequest,
    HealthResponse,
    ToolsResponse,
)
from ops_copilot.telemetry import TraceContext, get_logger

log = get_logger(__name__)

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def _capabilities(request: Request) -> Capabilities:
    capabilities = getattr(request.app.state, "capabilities", None)
    if capabilities is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return capabilities


def create_app(capabilities: Capabilities | None = None) -> FastAPI:
    """Build the service application.

    Args:
        capabilities: Pre-built capabilities (tests pass their own). When
            omitted they are built from settings at startup.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("service_starting")
        if getattr(app.state, "capabilities", None) is None:
            app.state.capabilities = await build_capabilities()
        caps: Capabilities = app.state.capabilities
        log.info(
            "service_ready",
            port=caps.settings.service_port,
            reasoning_enabled=caps.reasoning_enabled,
            tools=len(caps.registry.list_tools()),
        )

        yield

        log.info("service_stopped")

    app = FastAPI(
        title="Ops Copilot Service",
        description="Command and conversational access to business-operations records",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.capabilities = capabilities

    # ========================================================================
    # Health
    # ========================================================================

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        """Service health check endpoint."""
        caps = _capabilities(request)
        return HealthResponse(
            reasoning_enabled=caps.reasoning_enabled,
            reasoning_model=caps.settings.reasoning_model if caps.reasoning_enabled else None,
            tools=len(caps.registry.list_tools()),
            store=type(caps.store).__name__,
        )

    @app.get("/tools", response_model=ToolsResponse)
    async def list_tools(request: Request) -> ToolsResponse:
        """Registered tool definitions in OpenAI function format."""
        caps = _capabilities(request)
        return ToolsResponse(tools=caps.registry.get_tool_definitions_for_llm())

    # ========================================================================
    # Commands
    # ========================================================================

    @app.post("/command", response_model=CommandResult, response_model_exclude_none=True)
    async def run_command(body: CommandRequest, request: Request) -> CommandResult:
        """Classify and execute one direct command."""
        if not body.input.strip():
            raise HTTPException(status_code=400, detail="Input required")

        caps = _capabilities(request)
        service = CommandService(caps)
        return await service.handle(body.input, use_advanced=body.use_advanced)

    # ========================================================================
    # Chat
    # ========================================================================

    @app.post("/chat", response_model=None)
    async def chat(body: ChatRequest, request: Request) -> StreamingResponse | CommandResult:
        """Conversational exchange, streamed as server-sent events by default."""
        if not body.message.strip():
            raise HTTPException(status_code=400, detail="Message required")

        caps = _capabilities(request)
        orchestrator = ConversationOrchestrator(caps)
        context = ConversationContext(history=body.history)
        trace_ctx = TraceContext.new_trace()

        if not body.stream:
            try:
                outcome = await orchestrator.run(body.message, context, trace_ctx)
            except Exception as e:
                error_id = str(uuid4())[:8]
                log.error(
                    "chat_exchange_failed",
                    error_id=error_id,
                    error=sanitize_error_message(e),
                    error_type=type(e).__name__,
                    trace_id=trace_ctx.trace_id,
                    exc_info=True,
                )
                return CommandResult(
                    intent=classify(body.message),
                    action="chat",
                    success=False,
                    message=f"{sanitize_error_message(e)} (Error ID: {error_id})",
                )
            return CommandResult(
                intent=outcome.intent,
                action="chat",
                message=outcome.reply,
                data={
                    "tools_used": outcome.tools_used,
                    "used_fallback": outcome.used_fallback,
                    "trace_id": outcome.trace_id,
                },
            )

        async def event_stream() -> AsyncIterator[str]:
            chunks = orchestrator.stream(body.message, context, trace_ctx)
            try:
                async for chunk in chunks:
                    yield encode_sse(chunk)
            except Exception as e:
                log.error(
                    "chat_stream_failed",
                    error=sanitize_error_message(e),
                    error_type=type(e).__name__,
                    trace_id=trace_ctx.trace_id,
                    exc_info=True,
                )
                yield encode_sse(StreamChunk(error=sanitize_error_message(e)))
                yield encode_sse(StreamChunk.end())
            finally:
                await chunks.aclose()

        return StreamingResponse(
            event_stream(), media_type="text/event-stream", headers=SSE_HEADERS
        )

    return app


app = create_app()
