"""Command-line entrypoints: HTTP server, Telegram bot and one-shot routing."""

from __future__ import annotations

import asyncio
import json

import typer
import uvicorn

from intent_router.bootstrap import build_dispatcher, build_oracle
from intent_router.brain.decision import DecisionMaker
from intent_router.config import RoutingConfig, Settings
from intent_router.logging_utils import configure_logging

app = typer.Typer(name="intent-router", help="Intent routing and dispatch engine", add_completion=False)


@app.command()
def serve(
    host: str | None = typer.Option(None, help="Bind address; defaults to HOST."),
    port: int | None = typer.Option(None, help="Bind port; defaults to PORT."),
) -> None:
    """Run the HTTP front door."""
    settings = Settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "intent_router.api.main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


@app.command()
def telegram() -> None:
    """Run the Telegram bot with long polling."""
    from intent_router.channels.telegram import TelegramChannel, TelegramConfig

    settings = Settings()
    configure_logging(settings.log_level)
    if not settings.telegram_bot_token:
        typer.echo("TELEGRAM_BOT_TOKEN is not set", err=True)
        raise typer.Exit(code=1)

    channel = TelegramChannel(
        build_dispatcher(settings),
        TelegramConfig(token=settings.telegram_bot_token, command=settings.telegram_command),
    )
    channel.run()


@app.command()
def decide(query: str, user_id: str = typer.Option("cli", "--uid")) -> None:
    """Print the routing decision for QUERY without invoking any worker."""
    settings = Settings()
    configure_logging(settings.log_level)
    maker = DecisionMaker(build_oracle(settings), RoutingConfig())
    decision = asyncio.run(maker.decide(user_id, query))
    typer.echo(json.dumps(decision.to_payload(), ensure_ascii=False))


@app.command()
def route(
    query: str,
    user_id: str = typer.Option("cli", "--uid"),
    url: list[str] = typer.Option([], "--url", help="Attached media URL; repeatable."),
) -> None:
    """Route QUERY through the full pipeline and print the result envelope."""
    settings = Settings()
    configure_logging(settings.log_level)
    dispatcher = build_dispatcher(settings)
    envelope = asyncio.run(dispatcher.route(user_id, query, url))
    typer.echo(json.dumps(envelope.to_payload(), ensure_ascii=False))
    if not envelope.success:
        raise typer.Exit(code=1)


def main() -> None:
    app()
