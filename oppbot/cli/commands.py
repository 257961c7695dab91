"""CLI commands for oppbot."""

import asyncio
import sys

import typer
from loguru import logger
from rich.console import Console
from rich.markdown import Markdown

from oppbot import __logo__, __version__

app = typer.Typer(
    name="oppbot",
    help=f"{__logo__} oppbot - Lark product-opportunity analysis bot",
    no_args_is_help=True,
)

console = Console()


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} oppbot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True
    ),
):
    """oppbot - Lark product-opportunity analysis bot."""
    pass


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (default from settings)"),
    port: int = typer.Option(None, "--port", "-p", help="Port (default from settings)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Run the webhook server."""
    import uvicorn

    from oppbot.api.app import create_app
    from oppbot.settings import ConfigError, get_settings

    settings = get_settings()
    _configure_logging("DEBUG" if verbose else settings.log_level)

    try:
        fastapi_app = create_app(settings)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    bind_host = host or settings.host
    bind_port = port or settings.port
    console.print(
        f"{__logo__} Starting oppbot on {bind_host}:{bind_port} "
        f"(delivery: {settings.delivery_mode})"
    )
    uvicorn.run(fastapi_app, host=bind_host, port=bind_port, log_level="warning")


@app.command()
def analyze(
    text: str = typer.Argument(..., help="Chat transcript, with or without the 产品分析 keyword"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Run one analysis locally and print the report (nothing is sent to Lark)."""
    from oppbot.agent.analyst import ProductAnalyst
    from oppbot.nl.intent_engine import MIN_ANALYSIS_CHARS, strip_command
    from oppbot.providers.litellm_provider import LiteLLMProvider
    from oppbot.settings import get_settings

    settings = get_settings()
    _configure_logging("DEBUG" if verbose else "WARNING")

    stripped = strip_command(text)
    if len(stripped) <= MIN_ANALYSIS_CHARS:
        console.print(f"[yellow]Text too short after stripping keywords ({len(stripped)} chars).[/yellow]")
        raise typer.Exit(1)

    analyst = ProductAnalyst(
        LiteLLMProvider(
            api_key=settings.completion_api_key or None,
            api_base=settings.completion_api_base or None,
            default_model=settings.completion_model,
            timeout=settings.completion_timeout,
        ),
        max_tokens=settings.completion_max_tokens,
        temperature=settings.completion_temperature,
    )
    with console.status("Analysing..."):
        result = asyncio.run(analyst.complete(stripped))

    console.print(Markdown(result.message))
    if not result.success:
        console.print(f"[dim]error: {result.error}[/dim]")
        raise typer.Exit(1)


@app.command()
def notify(
    chat_id: str = typer.Argument(..., help="Destination chat id (ignored in webhook mode)"),
    text: str = typer.Argument(..., help="Message text"),
):
    """Send a test message through the configured delivery mode."""
    from oppbot.channels.feishu import build_notifier
    from oppbot.settings import ConfigError, get_settings

    settings = get_settings()
    _configure_logging(settings.log_level)

    try:
        notifier = build_notifier(settings)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    result = asyncio.run(notifier.send(chat_id, text))
    if result.success:
        console.print(f"[green]✓[/green] Sent ({settings.delivery_mode}) {result.message_id}")
    else:
        console.print(f"[red]✗[/red] {result.error}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
