"""
Main CLI application entry point.

This module contains the Typer application and command handlers for
Companion Client.
"""

from typing import Optional, Awaitable, Callable, TypeVar
import asyncio
import logging
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.panel import Panel
from pydantic import ValidationError

from companion_client import VERSION
from companion_client.api.models import ChatMode
from companion_client.config.settings import CompanionSettings, get_settings
from companion_client.core.client import CompanionClient
from companion_client.core.errors import CompanionError, create_user_friendly_message
from companion_client.core.login import ProfileHint
from companion_client.ui.notices import ConsoleNotifier

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Create the main Typer application
app = typer.Typer(
    name="companion",
    help="Companion Client - talk to your AI companions from the terminal",
    add_completion=False,
    rich_markup_mode="rich",
)

# Rich console for output
console = Console()


def setup_logging(level: str) -> None:
    """Route library logging through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"[bold blue]Companion Client[/bold blue] version [green]{VERSION}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Companion Client - talk to your AI companions from the terminal.
    """
    pass


def _load_settings() -> CompanionSettings:
    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1)
    setup_logging(settings.effective_log_level)
    return settings


def _run(action: Callable[[CompanionClient], Awaitable[T]]) -> T:
    """Build a client, run one action against it and close it."""
    settings = _load_settings()

    async def _runner() -> T:
        client = CompanionClient.create(settings, notifier=ConsoleNotifier(console))
        async with client:
            return await action(client)

    try:
        return asyncio.run(_runner())
    except CompanionError as e:
        console.print(f"[red]Error:[/red] {create_user_friendly_message(e)}")
        raise typer.Exit(1)
    except ValidationError as e:
        logger.debug(f"Unexpected response payload: {e}")
        console.print("[red]Error:[/red] The server returned an unexpected response.")
        raise typer.Exit(1)


@app.command("login")
def login_command(
    force: bool = typer.Option(False, "--force", "-f", help="Log in again even with a stored session"),
    nick_name: Optional[str] = typer.Option(None, "--name", help="Display name sent with the login"),
) -> None:
    """Log in and store the session."""
    async def _login(client: CompanionClient):
        hint = ProfileHint(nick_name=nick_name) if nick_name else None
        return await client.login(force=force, profile_hint=hint)

    result = _run(_login)
    name = result.identity.name if result.identity else "unknown"
    console.print(f"[green]✓[/green] Logged in as [bold]{name}[/bold]")


@app.command("whoami")
def whoami_command() -> None:
    """Show the signed-in account."""

    async def _whoami(client: CompanionClient):
        await client.login()
        return await client.auth.get_me()

    identity = _run(_whoami)
    table = Table(title="Account", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("ID", str(identity.id))
    table.add_row("Name", identity.name or "-")
    table.add_row("Points", str(identity.points))
    table.add_row("Phone", identity.phone or "-")
    console.print(table)


@app.command("logout")
def logout_command() -> None:
    """Forget the stored session."""

    async def _logout(client: CompanionClient):
        client.sign_out()

    _run(_logout)
    console.print("[green]✓[/green] Signed out")


@app.command("characters")
def characters_command(
    mine: bool = typer.Option(False, "--mine", help="List your own characters instead of official ones"),
) -> None:
    """List characters."""

    async def _characters(client: CompanionClient):
        if mine:
            await client.login()
            return await client.characters.get_my_characters()
        return await client.characters.get_official_characters()

    characters = _run(_characters)
    table = Table(title="My characters" if mine else "Official characters")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Description", style="dim")
    for character in characters:
        table.add_row(str(character.id), character.name, character.description or "")
    console.print(table)


@app.command("conversations")
def conversations_command() -> None:
    """List your conversations."""

    async def _conversations(client: CompanionClient):
        await client.login()
        return await client.conversations.get_conversations()

    conversations = _run(_conversations)
    table = Table(title="Conversations")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Character", style="bold")
    table.add_column("Messages", justify="right")
    table.add_column("Last message", style="dim")
    for conversation in conversations:
        name = conversation.character.name if conversation.character else str(conversation.character_id)
        table.add_row(
            str(conversation.id),
            name,
            str(conversation.message_count),
            conversation.last_message_at or "-",
        )
    console.print(table)


@app.command("send")
def send_command(
    conversation_id: int = typer.Argument(..., help="Conversation to send to"),
    message: str = typer.Argument(..., help="Message text"),
    mode: Optional[ChatMode] = typer.Option(None, "--mode", help="Chat mode"),
) -> None:
    """Send a message and print the reply."""

    async def _send(client: CompanionClient):
        await client.login()
        return await client.conversations.send_message(conversation_id, message, chat_mode=mode)

    response = _run(_send)
    console.print(Panel(
        response.assistant_message.content,
        title="Reply",
        border_style="blue",
    ))
    console.print(f"[dim]Points used: {response.points_consumed} · balance: {response.points_balance}[/dim]")


@app.command("config")
def config_command() -> None:
    """Show the effective configuration."""
    settings = _load_settings()
    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    for key, value in settings.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
