"""CLI interface for Ops Copilot.

Typer-based command-line access to the same pipeline the HTTP service uses:
direct commands, conversational exchanges and the tool catalogue.
"""

import asyncio
import json

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from ops_copilot.capabilities import Capabilities, build_capabilities
from ops_copilot.commands import CommandResult, CommandService
from ops_copilot.commands.dispatcher import format_value
from ops_copilot.config import get_settings
from ops_copilot.orchestrator import ConversationOrchestrator
from ops_copilot.store import SeedDataError

app = typer.Typer(help="Ops Copilot - business-operations command console")
console = Console()


async def _load_capabilities() -> Capabilities:
    try:
        return await build_capabilities()
    except SeedDataError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e


def _render_result(result: CommandResult) -> None:
    """Print a command result: message, then a table of records when present."""
    style = "green" if result.success else "yellow"
    console.print(f"[{style}]{result.message}[/{style}]")

    if result.entities:
        table = Table(title=f"{len(result.entities)} record(s)")
        table.add_column("ID", style="cyan", overflow="fold")
        table.add_column("Type", style="blue")
        table.add_column("Title", style="white")
        table.add_column("Status", style="green")
        table.add_column("Owner", style="magenta")
        table.add_column("Due", style="white")
        for entity in result.entities[:50]:
            table.add_row(
                str(entity.get("id", "")),
                str(entity.get("type", "")),
                str(entity.get("title", "")),
                str(entity.get("status", "")),
                str(entity.get("owner") or ""),
                str(entity.get("due_date") or ""),
            )
        console.print(table)

    if result.metrics:
        table = Table(title="Metrics")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="white", justify="right")
        for key, value in result.metrics.items():
            table.add_row(key, format_value(value))
        console.print(table)

    if result.suggestions:
        console.print("\n[dim]Try:[/dim]")
        for suggestion in result.suggestions:
            console.print(f"[dim]  {suggestion}[/dim]")


@app.command(name="command")
def command_command(
    text: str = typer.Argument(..., help="Command text, e.g. 'show all tasks'"),
    advanced: bool = typer.Option(
        False, "--advanced", help="Classify with the reasoning service when configured"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output the raw result as JSON"),
) -> None:
    """Run one direct command.

    Examples:
        ops-copilot command "create project: Mobile App v2"
        ops-copilot command "show tasks due this week"
    """
    if not text.strip():
        console.print("[red]Error: Input required[/red]")
        raise typer.Exit(1)

    async def _run() -> CommandResult:
        service = CommandService(await _load_capabilities())
        return await service.handle(text, use_advanced=advanced)

    result = asyncio.run(_run())

    if json_output:
        typer.echo(json.dumps(result.model_dump(mode="json", exclude_none=True), indent=2))
    else:
        _render_result(result)

    if not result.success:
        raise typer.Exit(1)


@app.command(name="chat")
def chat_command(
    message: str = typer.Argument(..., help="Message for the assistant"),
    stream: bool = typer.Option(True, "--stream/--no-stream", help="Print the reply as it arrives"),
) -> None:
    """Ask the assistant a question about the business.

    Examples:
        ops-copilot chat "What's our MRR?"
        ops-copilot chat "Who is overloaded this week?" --no-stream
    """

    async def _run() -> None:
        orchestrator = ConversationOrchestrator(await _load_capabilities())
        console.print("\n[bold blue]Copilot:[/bold blue]")
        if stream:
            async for chunk in orchestrator.stream(message):
                if chunk.content:
                    console.print(chunk.content, end="")
            console.print()
            return

        outcome = await orchestrator.run(message)
        console.print(Markdown(outcome.reply))
        if outcome.tools_used:
            console.print(f"\n[dim]Tools: {', '.join(outcome.tools_used)}[/dim]")
        if outcome.used_fallback:
            console.print("[dim]Answered from local data (reasoning service unavailable)[/dim]")
        console.print(f"[dim]Trace ID: {outcome.trace_id}[/dim]")

    asyncio.run(_run())


@app.command(name="tools")
def tools_command(
    json_output: bool = typer.Option(
        False, "--json", help="Output the OpenAI function definitions as JSON"
    ),
) -> None:
    """List the business tools available to commands and the assistant."""
    capabilities = asyncio.run(_load_capabilities())
    registry = capabilities.registry

    if json_output:
        typer.echo(json.dumps(registry.get_tool_definitions_for_llm(), indent=2))
        return

    table = Table(title=f"Business tools ({len(registry.list_tools())})")
    table.add_column("Name", style="cyan")
    table.add_column("Mutates", style="yellow")
    table.add_column("Parameters", style="blue", overflow="fold")
    table.add_column("Description", style="white", overflow="fold")
    for tool in registry.list_tools():
        params = ", ".join(
            f"{p.name}{'' if p.required else '?'}" for p in tool.parameters
        )
        table.add_row(tool.name, "yes" if tool.mutates else "no", params, tool.description)
    console.print(table)


@app.command(name="serve")
def serve_command(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", help="Bind port"),
) -> None:
    """Run the HTTP service."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "ops_copilot.service.app:app",
        host=host or settings.service_host,
        port=port or settings.service_port,
    )


if __name__ == "__main__":
    app()
