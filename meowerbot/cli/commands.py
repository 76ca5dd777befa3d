"""CLI commands for meowerbot."""

import asyncio
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from meowerbot import __logo__, __version__

app = typer.Typer(
    name="meowerbot",
    help=f"{__logo__} meowerbot - command bots for Meower",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} meowerbot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """meowerbot - command bots for Meower."""
    pass


def _build_bot(config_path: Path | None, extensions: list[str] | None):
    from meowerbot.bot import MeowerBot
    from meowerbot.config.loader import load_config

    config = load_config(config_path)
    bot = MeowerBot(config)

    # Extensions usually live next to where the bot is started
    if str(Path.cwd()) not in sys.path:
        sys.path.insert(0, str(Path.cwd()))
    bot.load_extensions([*config.extensions, *(extensions or [])])
    return bot


# ============================================================================
# Run
# ============================================================================


@app.command()
def run(
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
    extension: list[str] = typer.Option(None, "--extension", "-e", help="Module with setup(bot)"),
):
    """Log in and serve commands until the connection closes."""
    from meowerbot.errors import MeowerBotError

    bot = _build_bot(config_path, extension)

    if not bot.config.username or not bot.config.password:
        console.print("[red]Error: No credentials configured.[/red]")
        console.print("Set MEOWERBOT_USERNAME and MEOWERBOT_PASSWORD, or add them to the config file")
        raise typer.Exit(1)

    console.print(f"{__logo__} Starting {bot.config.username} with {len(bot.commands)} commands...")

    async def serve():
        try:
            await bot.start()
        finally:
            await bot.close()

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        console.print("\nShutting down...")
    except MeowerBotError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Inspection
# ============================================================================


@app.command()
def commands(
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
    extension: list[str] = typer.Option(None, "--extension", "-e", help="Module with setup(bot)"),
):
    """List the commands a bot would register."""
    bot = _build_bot(config_path, extension)
    name = bot.config.username or "bot"

    table = Table(title=f"Commands of @{name}")
    table.add_column("Category", style="cyan")
    table.add_column("Usage")
    table.add_column("Description")
    table.add_column("Admin")

    for command in bot.commands:
        table.add_row(
            command.category,
            command.usage(name),
            command.description or "",
            "🔒" if command.admin else "",
        )

    console.print(table)


@app.command()
def user(
    username: str = typer.Argument(..., help="User to look up"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
):
    """Show a user's public profile."""
    from meowerbot.api.client import MeowerAPI
    from meowerbot.config.loader import load_config
    from meowerbot.errors import RemoteServiceError

    config = load_config(config_path)

    async def fetch():
        api = MeowerAPI(config.endpoints)
        try:
            return await api.fetch_user(username)
        finally:
            await api.close()

    try:
        profile = asyncio.run(fetch())
    except RemoteServiceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"@{username}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("ID", profile.id)
    table.add_row("Level", str(profile.lvl))
    table.add_row("Quote", profile.quote or "")
    table.add_row("Avatar color", profile.avatar_color)
    table.add_row("Banned", "yes" if profile.banned else "no")
    console.print(table)
